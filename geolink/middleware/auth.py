# SPDX-License-Identifier: Apache-2.0

"""
Authentication middleware for JWT token validation and user context extraction.

This module provides Flask middleware for validating JWT tokens, checking
the blocklist, and building the caller's context for request processing.
"""

from functools import wraps
from flask import request, g, current_app
from typing import Optional, Dict, Any, Callable
from opentelemetry import trace
import logging

from geolink.models.entities import UserContext
from geolink.services.auth import AuthService, TokenValidationError
from geolink.services.redis import RedisService, RedisConnectionError
from geolink.middleware.error_handler import AuthenticationException

tracer = trace.get_tracer(__name__)
logger = logging.getLogger(__name__)


class AuthMiddleware:
    """
    JWT authentication middleware for Flask applications.

    Handles token extraction, validation, blocklist checking, and user context
    building for protected endpoints.
    """

    def __init__(self, auth_service: AuthService, redis_service: RedisService):
        """
        Initialize the authentication middleware.

        Args:
            auth_service: JWT authentication service
            redis_service: Redis service for token blocklist
        """
        self.auth_service = auth_service
        self.redis_service = redis_service

    def extract_token_from_request(self) -> Optional[str]:
        """
        Extract JWT token from request headers.

        Returns:
            JWT token string or None if not found
        """
        auth_header = request.headers.get('Authorization', '')

        if not auth_header:
            return None

        # Handle "Bearer <token>" format
        if auth_header.startswith('Bearer '):
            return auth_header[7:].strip() or None

        return auth_header

    def is_token_blocked(self, token: str) -> bool:
        """
        Check if token is in the Redis blocklist.

        Args:
            token: JWT token to check

        Returns:
            True if token is blocked, False otherwise
        """
        try:
            token_id = self.auth_service.extract_token_id(token)
            return self.redis_service.is_token_blocked(token_id)
        except (TokenValidationError, RedisConnectionError) as e:
            logger.error(f"Error checking token blocklist: {str(e)}")
            # Fail secure - treat as blocked if we can't check
            return True

    def build_user_context(self, token_payload: Dict[str, Any]) -> UserContext:
        """
        Build user context from a validated token payload and request information.

        Args:
            token_payload: Decoded JWT payload

        Returns:
            UserContext for request processing
        """
        return UserContext(
            account=token_payload["sub"],
            token_payload=token_payload,
            ip_address=request.remote_addr,
            user_agent=request.headers.get('User-Agent', ''),
            session_id=request.headers.get('X-Session-ID')
        )

    def authenticate_request(self) -> UserContext:
        """
        Authenticate the current request.

        Returns:
            UserContext of the caller

        Raises:
            AuthenticationException: If the token is missing, revoked or invalid
        """
        with tracer.start_as_current_span("auth.middleware.validate_request") as span:
            span.set_attribute("auth.operation", "validate_request")

            token = self.extract_token_from_request()
            if not token:
                span.set_attribute("auth.result", "missing_token")
                logger.warning("Authentication failed: missing token")
                raise AuthenticationException("Missing authorization token")

            try:
                token_payload = self.auth_service.validate_token(token, "access")
            except TokenValidationError as e:
                span.set_attribute("auth.result", "invalid_token")
                logger.warning(f"Authentication failed: {str(e)}")
                raise AuthenticationException(str(e))

            if self.is_token_blocked(token):
                span.set_attribute("auth.result", "token_blocked")
                logger.warning("Authentication failed: token is blocked")
                raise AuthenticationException("Token has been revoked")

            user_context = self.build_user_context(token_payload)

            span.set_attributes({
                "auth.result": "success",
                "account.email": user_context.account
            })
            logger.debug(
                "Authentication successful",
                extra={
                    "account": user_context.account,
                    "ip_address": user_context.ip_address
                }
            )
            return user_context


def require_auth(f: Callable) -> Callable:
    """
    Decorator to require JWT authentication for Flask routes.

    Uses the application's ``auth_middleware`` and stores the caller's
    context in ``g.user_context`` before calling the route.
    """
    @wraps(f)
    def decorated_function(*args, **kwargs):
        auth_middleware: AuthMiddleware = current_app.auth_middleware
        g.user_context = auth_middleware.authenticate_request()
        return f(*args, **kwargs)

    return decorated_function
