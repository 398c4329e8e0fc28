"""
Health Check Service

Reports the state of the in-memory stores, the optional Redis token
blocklist and basic process metrics.
"""

import os
import time
import psutil
from typing import Dict, Any
from opentelemetry import trace

from geolink.models.base import utc_now
from geolink.services.identity import IdentityStore
from geolink.services.mailbox import NotificationMailbox
from geolink.services.sharing_registry import SharingRegistry
from geolink.services.redis import RedisService

tracer = trace.get_tracer(__name__)

SERVICE_NAME = "geolink-api"
SERVICE_VERSION = "1.0.0"


class HealthCheckService:
    """Service for system health monitoring."""

    def __init__(
        self,
        identity: IdentityStore,
        mailbox: NotificationMailbox,
        registry: SharingRegistry,
        redis_service: RedisService,
        environment: str = "development"
    ):
        self.identity = identity
        self.mailbox = mailbox
        self.registry = registry
        self.redis_service = redis_service
        self.environment = environment

    def get_health(self) -> Dict[str, Any]:
        """Get health status including dependencies and metrics."""
        with tracer.start_as_current_span("health.check") as span:
            start_time = time.time()

            redis_health = self.redis_service.health()

            # The stores are in-process; only the blocklist can degrade
            overall_status = "degraded" if redis_health["status"] == "unhealthy" else "healthy"

            response_time_ms = round((time.time() - start_time) * 1000, 2)

            health_data = {
                "status": overall_status,
                "service": SERVICE_NAME,
                "version": SERVICE_VERSION,
                "environment": self.environment,
                "timestamp": utc_now().isoformat(),
                "response_time_ms": response_time_ms,
                "stores": {
                    "accounts": self.identity.account_count(),
                    "mailboxes": self.mailbox.mailbox_count(),
                    "sharing_entries": self.registry.entry_count()
                },
                "dependencies": {
                    "redis": redis_health
                },
                "system_metrics": self._get_system_metrics()
            }

            span.set_attributes({
                "health.overall_status": overall_status,
                "health.response_time_ms": response_time_ms,
                "health.redis_status": redis_health["status"]
            })

            return health_data

    def _get_system_metrics(self) -> Dict[str, Any]:
        """Get basic process performance metrics."""
        try:
            process = psutil.Process(os.getpid())
            memory = process.memory_info()

            return {
                "cpu_percent": psutil.cpu_percent(interval=None),
                "process": {
                    "pid": process.pid,
                    "rss_mb": round(memory.rss / 1024 / 1024, 2),
                    "threads": process.num_threads(),
                    "uptime_seconds": round(time.time() - process.create_time(), 2)
                },
                "load_average": list(os.getloadavg()) if hasattr(os, 'getloadavg') else None
            }
        except psutil.Error as e:
            return {
                "error": f"Failed to collect system metrics: {str(e)}"
            }
