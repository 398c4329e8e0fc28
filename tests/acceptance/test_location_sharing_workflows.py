"""
Acceptance tests for Geolink location sharing.

Each test is a complete user journey driven over HTTP: accounts register,
sign in, ask for and grant consent, and poll for notifications and
positions the way the map client does.
"""

import threading
import pytest

TAIPEI = (25.03, 121.56)
TAICHUNG = (24.15, 120.67)

pytestmark = pytest.mark.acceptance


class TestConsentHandshake:
    """Request, approve and read."""

    def test_full_handshake(self, alice, bob):
        assert bob.request_link(alice.email).status_code == 200

        assert [(n["kind"], n["origin"]) for n in alice.drain()] == [("link_request", bob.email)]

        assert alice.approve(bob.email, TAIPEI).get_json() == {"message": "Started sharing"}

        assert [(n["kind"], n["origin"]) for n in bob.drain()] == [("link_approved", alice.email)]

        response = bob.friend_position(alice.email)
        assert response.status_code == 200
        assert response.get_json()["position"] == list(TAIPEI)

    def test_read_before_approval(self, alice, bob):
        bob.request_link(alice.email)

        response = bob.friend_position(alice.email)

        assert response.status_code == 403
        assert response.get_json()["detail"] == "Not sharing position"

    def test_request_to_unknown_account(self, bob):
        response = bob.request_link("ghost@example.com")

        assert response.status_code == 404
        assert response.get_json()["detail"] == "User not found"

    def test_revoke_keeps_position_but_blocks_read(self, alice, bob):
        bob.request_link(alice.email)
        alice.approve(bob.email, TAIPEI)

        alice.revoke(bob.email)

        assert bob.friend_position(alice.email).status_code == 403
        assert alice.client.get('/api/sharing', headers=alice.headers).get_json()["position"] == list(TAIPEI)

    def test_duplicate_requests_arrive_in_order(self, alice, bob):
        bob.request_link(alice.email)
        bob.request_link(alice.email)

        notifications = alice.drain()

        assert [(n["kind"], n["origin"]) for n in notifications] == [
            ("link_request", bob.email),
            ("link_request", bob.email)
        ]

    def test_silent_rejection(self, alice, bob):
        bob.request_link(alice.email)
        alice.drain()

        # Alice declines by doing nothing
        assert bob.drain() == []
        assert bob.friend_position(alice.email).status_code == 403


class TestSharingLifecycle:

    def test_position_updates_are_visible(self, alice, bob):
        alice.approve(bob.email, TAIPEI)
        alice.set_sharing(True, TAICHUNG)

        assert bob.friend_position(alice.email).get_json()["position"] == list(TAICHUNG)

    def test_pause_and_resume_keeps_viewers(self, alice, bob):
        alice.approve(bob.email, TAIPEI)

        alice.set_sharing(False)
        assert bob.friend_position(alice.email).status_code == 403

        alice.set_sharing(True)
        assert bob.friend_position(alice.email).get_json()["position"] == list(TAIPEI)

    def test_stop_sharing_with_one_viewer(self, alice, bob, carol):
        alice.approve(bob.email, TAIPEI)
        alice.approve(carol.email)

        alice.stop_sharing(bob.email)

        sharing = alice.client.get('/api/sharing', headers=alice.headers).get_json()
        assert sharing["enabled"] is False
        assert sharing["viewers"] == [carol.email]
        assert carol.friend_position(alice.email).status_code == 403

    def test_links_are_one_way(self, alice, bob):
        alice.approve(bob.email, TAIPEI)
        bob.set_sharing(True, TAICHUNG)

        assert alice.friend_position(bob.email).status_code == 403

    def test_approval_without_position(self, alice, bob):
        alice.approve(bob.email)

        assert bob.friend_position(alice.email).status_code == 403

        alice.set_sharing(True, TAIPEI)
        assert bob.friend_position(alice.email).status_code == 200


class TestSessions:

    def test_logout_without_blocklist(self, alice):
        assert alice.logout().status_code == 200

    def test_unauthenticated_calls_are_rejected(self, test_client):
        for method, path in [
            ("get", "/api/notifications"),
            ("get", "/api/sharing"),
            ("post", "/api/link-request"),
            ("get", "/api/friend-position?friendEmail=alice@example.com"),
        ]:
            response = getattr(test_client, method)(path)
            assert response.status_code == 401, path


class TestConcurrentPolling:
    """Several clients polling while the owner approves and revokes."""

    def test_pollers_only_see_consistent_answers(self, alice, bob):
        alice.set_sharing(True, TAIPEI)
        poll_client = alice.client.application.test_client()
        statuses = []
        positions = []
        stop = threading.Event()

        def poll():
            while not stop.is_set():
                response = poll_client.get(f'/api/friend-position?friendEmail={alice.email}', headers=bob.headers)
                statuses.append(response.status_code)
                if response.status_code == 200:
                    positions.append(response.get_json()["position"])

        poller = threading.Thread(target=poll)
        poller.start()
        for _ in range(20):
            alice.approve(bob.email, TAIPEI)
            alice.revoke(bob.email)
        stop.set()
        poller.join()

        assert set(statuses) <= {200, 403}
        assert all(position == list(TAIPEI) for position in positions)
