# -*- coding: utf-8 -*-
# SPDX-License-Identifier: Apache-2.0

"""
Pytest configuration and fixtures.
"""

import pytest
from typing import Dict

from geolink.app import create_app
from geolink.services.auth import AuthService, generate_rsa_key_pair
from geolink.services.identity import IdentityStore
from geolink.services.mailbox import NotificationMailbox
from geolink.services.sharing_registry import SharingRegistry
from geolink.services.consent import ConsentCoordinator
from geolink.services.position_gate import PositionGate
from geolink.models.entities import Coordinate

ALICE = "alice@example.com"
BOB = "bob@example.com"
CAROL = "carol@example.com"
PASSWORD = "correct-horse"


@pytest.fixture(scope="session")
def jwt_key_pair():
    """One RSA key pair for the whole test session."""
    return generate_rsa_key_pair()


@pytest.fixture(scope="session")
def test_config(jwt_key_pair) -> Dict:
    """Application config overrides for tests."""
    private_key, public_key = jwt_key_pair
    return {
        'TESTING': True,
        'ENVIRONMENT': 'testing',
        'BASE_URL': 'https://api.example.com',
        'JWT_PRIVATE_KEY': private_key,
        'JWT_PUBLIC_KEY': public_key,
        'BCRYPT_ROUNDS': 4,
        'REDIS_URL': None,
        'OTEL_ENABLED': False,
        'OTEL_EXPORTER_OTLP_ENDPOINT': None,
        'CORS_ALLOWED_ORIGINS': 'https://map.example.com',
        'CORS_ALLOW_ALL_ORIGINS': False,
    }


@pytest.fixture
def auth_service(jwt_key_pair):
    """Auth service with cheap bcrypt rounds."""
    private_key, public_key = jwt_key_pair
    return AuthService(private_key=private_key, public_key=public_key, bcrypt_rounds=4)


@pytest.fixture
def identity(auth_service):
    """Identity store with alice, bob and carol registered."""
    store = IdentityStore(auth_service)
    for email in (ALICE, BOB, CAROL):
        store.register(email, PASSWORD)
    return store


@pytest.fixture
def mailbox():
    return NotificationMailbox()


@pytest.fixture
def registry():
    return SharingRegistry()


@pytest.fixture
def coordinator(identity, mailbox, registry):
    return ConsentCoordinator(identity, mailbox, registry)


@pytest.fixture
def position_gate(identity, registry):
    return PositionGate(identity, registry)


@pytest.fixture
def taipei():
    """Sample position used across scenarios."""
    return Coordinate(latitude=25.03, longitude=121.56)


@pytest.fixture
def app(test_config):
    """Fresh application (and fresh in-memory stores) per test."""
    return create_app(test_config)


@pytest.fixture
def client(app):
    """Flask test client."""
    return app.test_client()


def register_and_login(client, email: str, password: str = PASSWORD) -> Dict[str, str]:
    """Register an account over HTTP and return its Authorization header."""
    client.post('/api/register', json={"email": email, "password": password})
    response = client.post('/api/login', json={"email": email, "password": password})
    token = response.get_json()["token"]
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def alice_headers(client):
    return register_and_login(client, ALICE)


@pytest.fixture
def bob_headers(client):
    return register_and_login(client, BOB)
