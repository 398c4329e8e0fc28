# SPDX-License-Identifier: Apache-2.0

"""
Redis service for the JWT token blocklist.

Uses the standard redis-py client. Redis is optional: without a configured
URL, or when the server cannot be reached at start-up, the service reports
itself unavailable and the blocklist is skipped.
"""

import time
from typing import Optional, Dict, Any
import redis
from opentelemetry import trace
import logging

tracer = trace.get_tracer(__name__)
logger = logging.getLogger(__name__)


class RedisConnectionError(Exception):
    """Raised when Redis connection fails."""
    pass


class RedisService:
    """Token blocklist backed by Redis keys with TTLs."""

    def __init__(self, redis_url: Optional[str] = None):
        """
        Initialize the Redis service.

        Args:
            redis_url: Redis connection URL (redis://host:port/db); None disables Redis
        """
        self.redis_url = redis_url
        self.client = None

        if not self.redis_url:
            logger.info("No REDIS_URL configured, token blocklist disabled")
            return

        try:
            client = redis.from_url(self.redis_url, decode_responses=True)
            if not client.ping():
                raise RedisConnectionError("Redis ping failed")
            self.client = client
            logger.info(f"Redis service initialized at {self.redis_url}")
        except (redis.RedisError, RedisConnectionError) as e:
            logger.error(f"Failed to initialize Redis service: {str(e)}")

    def is_available(self) -> bool:
        """Check if Redis service is available."""
        return self.client is not None

    def add_to_blocklist(self, token_id: str, exp: int) -> bool:
        """
        Add a JWT token to the blocklist until it expires.

        Args:
            token_id: Unique token identifier
            exp: Token expiration timestamp

        Returns:
            True if stored (or already expired), False otherwise
        """
        ttl = max(0, exp - int(time.time()))
        if ttl <= 0:
            return True  # Token already expired

        if not self.client:
            logger.warning("Redis client not available, token not blocklisted")
            return False

        with tracer.start_as_current_span("redis.blocklist_add") as span:
            span.set_attribute("redis.ttl", ttl)
            try:
                result = self.client.setex(f"blocklist:jwt:{token_id}", ttl, "blocked")
                span.set_attribute("redis.result", "success")
                return bool(result)
            except redis.RedisError as e:
                span.set_attribute("redis.result", "error")
                logger.error(f"Redis blocklist add failed: {str(e)}")
                return False

    def is_token_blocked(self, token_id: str) -> bool:
        """
        Check if a JWT token is in the blocklist.

        Args:
            token_id: Unique token identifier

        Returns:
            True if token is blocked, False otherwise

        Raises:
            RedisConnectionError: If Redis is configured but the lookup fails
        """
        if not self.client:
            return False

        try:
            return bool(self.client.exists(f"blocklist:jwt:{token_id}"))
        except redis.RedisError as e:
            raise RedisConnectionError(f"Blocklist lookup failed: {str(e)}") from e

    def health(self) -> Dict[str, Any]:
        """Report Redis status for the health endpoint."""
        if not self.redis_url:
            return {"status": "disabled"}

        if not self.client:
            return {"status": "unhealthy", "error": "connection failed at start-up"}

        start_time = time.time()
        try:
            self.client.ping()
        except redis.RedisError as e:
            return {"status": "unhealthy", "error": str(e)}

        return {
            "status": "healthy",
            "response_time_ms": round((time.time() - start_time) * 1000, 2)
        }
