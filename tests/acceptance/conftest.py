"""
Fixtures for acceptance tests: a fresh application per test and a small
HTTP client wrapper that acts as one signed-in account.
"""

import pytest

from geolink.app import create_app
from geolink.services.auth import generate_rsa_key_pair


class AccountClient:
    """Drives the API as a single registered account."""

    def __init__(self, client, email: str, password: str = "acceptance-pw"):
        self.client = client
        self.email = email
        client.post('/api/register', json={"email": email, "password": password})
        token = client.post('/api/login', json={"email": email, "password": password}).get_json()["token"]
        self.headers = {"Authorization": f"Bearer {token}"}

    def request_link(self, target: str):
        return self.client.post('/api/link-request', json={"toEmail": target}, headers=self.headers)

    def approve(self, requester: str, position=None):
        body = {"toEmail": requester, "sharing": True}
        if position is not None:
            body["position"] = list(position)
        return self.client.post('/api/share-position', json=body, headers=self.headers)

    def stop_sharing(self, viewer: str):
        return self.client.post('/api/share-position', json={"toEmail": viewer, "sharing": False}, headers=self.headers)

    def revoke(self, viewer: str):
        return self.client.post('/api/links/revoke', json={"viewerEmail": viewer}, headers=self.headers)

    def set_sharing(self, enabled: bool, position=None):
        body = {"enabled": enabled}
        if position is not None:
            body["position"] = list(position)
        return self.client.post('/api/sharing', json=body, headers=self.headers)

    def drain(self):
        return self.client.get('/api/notifications', headers=self.headers).get_json()

    def friend_position(self, owner: str):
        return self.client.get(f'/api/friend-position?friendEmail={owner}', headers=self.headers)

    def logout(self):
        return self.client.post('/api/logout', headers=self.headers)


@pytest.fixture(scope="session")
def acceptance_keys():
    return generate_rsa_key_pair()


@pytest.fixture
def test_client(acceptance_keys):
    private_key, public_key = acceptance_keys
    app = create_app({
        'TESTING': True,
        'ENVIRONMENT': 'testing',
        'JWT_PRIVATE_KEY': private_key,
        'JWT_PUBLIC_KEY': public_key,
        'BCRYPT_ROUNDS': 4,
        'REDIS_URL': None,
        'OTEL_ENABLED': False,
    })
    return app.test_client()


@pytest.fixture
def alice(test_client):
    return AccountClient(test_client, "alice@example.com")


@pytest.fixture
def bob(test_client):
    return AccountClient(test_client, "bob@example.com")


@pytest.fixture
def carol(test_client):
    return AccountClient(test_client, "carol@example.com")
