"""
Tests for the health check endpoint and service.
"""

import json
from unittest.mock import Mock, patch

import psutil
import redis

from geolink.services.health import HealthCheckService
from geolink.services.redis import RedisService
from geolink.tests.conftest import ALICE, BOB


class TestHealthCheckEndpoint:
    """Test cases for the /api/healthz endpoint."""

    def test_health_check_without_redis(self, client):
        response = client.get('/api/healthz')

        assert response.status_code == 200
        data = json.loads(response.data)

        assert data['status'] == 'healthy'
        assert data['service'] == 'geolink-api'
        assert data['version'] == '1.0.0'
        assert data['environment'] == 'testing'
        assert data['dependencies']['redis'] == {'status': 'disabled'}
        assert '_links' in data
        assert 'self' in data['_links']

    def test_health_reports_store_sizes(self, client, alice_headers, bob_headers):
        client.post('/api/link-request', json={"toEmail": ALICE}, headers=bob_headers)
        client.post('/api/share-position', json={"toEmail": BOB, "sharing": True}, headers=alice_headers)

        stores = client.get('/api/healthz').get_json()['stores']

        assert stores == {'accounts': 2, 'mailboxes': 2, 'sharing_entries': 1}

    def test_health_degraded_when_redis_unhealthy(self, app, client):
        app.redis_service.health = Mock(return_value={'status': 'unhealthy', 'error': 'refused'})

        response = client.get('/api/healthz')

        assert response.status_code == 200
        assert response.get_json()['status'] == 'degraded'

    def test_trace_header_absent_without_tracing(self, client):
        response = client.get('/api/healthz')

        assert 'X-Trace-Id' not in response.headers


class TestHealthCheckService:

    def make_service(self, identity, mailbox, registry):
        return HealthCheckService(identity, mailbox, registry, RedisService(None), 'testing')

    def test_system_metrics(self, identity, mailbox, registry):
        metrics = self.make_service(identity, mailbox, registry).get_health()['system_metrics']

        assert metrics['process']['threads'] >= 1
        assert metrics['process']['rss_mb'] > 0

    def test_system_metrics_failure(self, identity, mailbox, registry):
        service = self.make_service(identity, mailbox, registry)

        with patch('geolink.services.health.psutil.Process', side_effect=psutil.Error("denied")):
            metrics = service.get_health()['system_metrics']

        assert 'error' in metrics


class TestRedisService:

    def test_disabled_without_url(self):
        service = RedisService(None)

        assert service.is_available() is False
        assert service.is_token_blocked("x") is False
        assert service.add_to_blocklist("x", 2**31) is False
        assert service.health() == {'status': 'disabled'}

    def test_expired_token_needs_no_blocklist_entry(self):
        assert RedisService(None).add_to_blocklist("x", 0) is True

    def test_unreachable_server(self):
        with patch('geolink.services.redis.redis.from_url') as from_url:
            from_url.return_value.ping.side_effect = redis.ConnectionError("refused")

            service = RedisService("redis://localhost:6390/0")

        assert service.is_available() is False
        assert service.health()['status'] == 'unhealthy'

    def test_blocklist_roundtrip_with_client(self):
        client = Mock()
        client.ping.return_value = True
        client.exists.return_value = 1
        with patch('geolink.services.redis.redis.from_url', return_value=client):
            service = RedisService("redis://localhost:6379/0")

        assert service.add_to_blocklist("alice:1:access", 2**31) is True
        assert client.setex.call_args[0][0] == "blocklist:jwt:alice:1:access"
        assert service.is_token_blocked("alice:1:access") is True
