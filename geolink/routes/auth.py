# -*- coding: utf-8 -*-
# SPDX-License-Identifier: Apache-2.0

"""
Authentication endpoints for registration, login and logout.
"""

from flask import request, jsonify, current_app, g
from flask_openapi3 import APIBlueprint, Tag
from opentelemetry import trace
from opentelemetry.trace import Status, StatusCode
import logging

from geolink.models.requests import RegisterRequest, LoginRequest
from geolink.models.responses import MessageResponse, AuthTokenResponse, ErrorResponse
from geolink.services.auth import TokenValidationError
from geolink.middleware.auth import require_auth
from geolink.middleware.validation import validate_json

# Set up logging and tracing
logger = logging.getLogger(__name__)
tracer = trace.get_tracer(__name__)

# Create API blueprint
auth_tag = Tag(name="Authentication", description="Account registration and token management")
auth_bp = APIBlueprint(
    'auth',
    __name__,
    url_prefix='/api',
    abp_tags=[auth_tag]
)


@auth_bp.post('/register', responses={201: MessageResponse, 400: ErrorResponse, 409: ErrorResponse})
@validate_json(RegisterRequest)
def register(data: RegisterRequest):
    """
    Register a new account.

    The email becomes the account reference used by every other endpoint.
    """
    with tracer.start_as_current_span(
        "auth.register",
        attributes={"operation": "register", "ip_address": request.remote_addr}
    ) as span:
        account = current_app.identity_store.register(data.email, data.password)

        span.set_status(Status(StatusCode.OK))
        return jsonify({
            "message": "Account created",
            "email": account.email,
            "_links": {
                "login": {
                    "href": f"{current_app.config['BASE_URL']}/api/login",
                    "method": "POST"
                }
            }
        }), 201


@auth_bp.post('/login', responses={200: AuthTokenResponse, 401: ErrorResponse})
@validate_json(LoginRequest)
def login(data: LoginRequest):
    """
    Authenticate an account and return a JWT access token.
    """
    with tracer.start_as_current_span(
        "auth.login",
        attributes={"operation": "login", "ip_address": request.remote_addr}
    ) as span:
        account = current_app.identity_store.authenticate(data.email, data.password)
        token_data = current_app.auth_service.generate_token(account)

        logger.info(
            "Account logged in",
            extra={"account": account.email, "ip_address": request.remote_addr}
        )

        span.set_status(Status(StatusCode.OK))
        return jsonify(token_data), 200


@auth_bp.post('/logout', responses={200: MessageResponse, 401: ErrorResponse})
@require_auth
def logout():
    """
    Revoke the caller's access token.

    The token is added to the Redis blocklist until it expires. Without Redis
    the call still succeeds and the token stays valid until expiry.
    """
    user_context = g.user_context

    with tracer.start_as_current_span(
        "auth.logout",
        attributes={"operation": "logout", "account.email": user_context.account}
    ) as span:
        auth_service = current_app.auth_service
        token = current_app.auth_middleware.extract_token_from_request()

        try:
            token_id = auth_service.extract_token_id(token)
        except TokenValidationError as e:
            # Already validated by require_auth; only a malformed claim set lands here
            logger.warning(f"Could not derive token id on logout: {str(e)}")
            token_id = None

        blocked = False
        if token_id:
            blocked = current_app.redis_service.add_to_blocklist(
                token_id,
                int(user_context.token_payload.get("exp", 0))
            )

        span.set_attribute("auth.token_blocked", blocked)
        logger.info(
            "Account logged out",
            extra={"account": user_context.account, "token_blocked": blocked}
        )

        return jsonify({
            "message": "Logged out successfully",
            "_links": {
                "login": {
                    "href": f"{current_app.config['BASE_URL']}/api/login",
                    "method": "POST"
                }
            }
        }), 200
