"""
Geolink API - Flask Application Entry Point

This module builds the Flask application with OpenAPI 3.0 support, wires the
in-memory stores and coordination services together, and registers the
middleware and routes of the live location sharing API.
"""

import os
from typing import Any, Dict, Optional
from flask import jsonify
from flask_openapi3 import OpenAPI, Info
import logging

from geolink.observability.config import setup_observability, setup_structured_logging
from geolink.observability.middleware import add_observability_middleware
from geolink.middleware.cors import configure_cors
from geolink.middleware.error_handler import register_error_handlers
from geolink.middleware.validation import ValidationMiddleware
from geolink.middleware.auth import AuthMiddleware
from geolink.services.hal import create_hal_formatter
from geolink.services.auth import AuthService
from geolink.services.identity import IdentityStore
from geolink.services.mailbox import NotificationMailbox
from geolink.services.sharing_registry import SharingRegistry
from geolink.services.consent import ConsentCoordinator
from geolink.services.position_gate import PositionGate
from geolink.services.redis import RedisService
from geolink.services.health import HealthCheckService, SERVICE_NAME, SERVICE_VERSION

logger = logging.getLogger(__name__)


def _env_flag(name: str, default: str = 'false') -> bool:
    return os.getenv(name, default).lower() == 'true'


def load_config() -> Dict[str, Any]:
    """Read application configuration from the environment."""
    environment = os.getenv('ENVIRONMENT', 'development')

    return {
        'ENVIRONMENT': environment,
        'DEBUG': environment == 'development',
        'BASE_URL': os.getenv('BASE_URL', 'http://localhost:5000'),

        # Security configuration
        'JWT_PRIVATE_KEY': os.getenv('JWT_PRIVATE_KEY'),
        'JWT_PUBLIC_KEY': os.getenv('JWT_PUBLIC_KEY'),
        'JWT_ACCESS_TOKEN_EXPIRES': int(os.getenv('JWT_ACCESS_TOKEN_EXPIRES', '3600')),
        'BCRYPT_ROUNDS': int(os.getenv('BCRYPT_ROUNDS', '12')),

        # Token blocklist; empty disables it
        'REDIS_URL': os.getenv('REDIS_URL'),

        # Observability
        'OTEL_ENABLED': _env_flag('OTEL_ENABLED', 'true'),
        'OTEL_EXPORTER_OTLP_ENDPOINT': os.getenv('OTEL_EXPORTER_OTLP_ENDPOINT'),

        # CORS
        'CORS_ALLOWED_ORIGINS': os.getenv('CORS_ALLOWED_ORIGINS', ''),
        'CORS_ALLOW_ALL_ORIGINS': _env_flag('CORS_ALLOW_ALL_ORIGINS'),

        'PORT': int(os.getenv('PORT', '5000')),
    }


def create_app(config_overrides: Optional[Dict[str, Any]] = None) -> OpenAPI:
    """
    Create and configure the Geolink application.

    Every call builds fresh stores, so each application instance starts with
    no accounts, no mailboxes and no sharing entries.

    Args:
        config_overrides: Values replacing the environment-derived configuration

    Returns:
        Configured OpenAPI (Flask) application
    """
    config = load_config()
    if config_overrides:
        config.update(config_overrides)

    tracing_active = setup_observability(
        environment=config['ENVIRONMENT'],
        otel_enabled=config['OTEL_ENABLED'],
        otlp_endpoint=config['OTEL_EXPORTER_OTLP_ENDPOINT'],
        service_name=SERVICE_NAME,
        service_version=SERVICE_VERSION
    )
    if not config.get('TESTING'):
        setup_structured_logging(config['ENVIRONMENT'])

    info = Info(
        title="Geolink API",
        version=SERVICE_VERSION,
        description="Consent-based live location sharing between registered accounts"
    )

    app = OpenAPI(__name__, info=info)
    app.config.update(config)

    add_observability_middleware(app, instrument=tracing_active)

    # Initialize services
    auth_service = AuthService(
        private_key=config['JWT_PRIVATE_KEY'],
        public_key=config['JWT_PUBLIC_KEY'],
        access_token_expires=config['JWT_ACCESS_TOKEN_EXPIRES'],
        bcrypt_rounds=config['BCRYPT_ROUNDS']
    )
    redis_service = RedisService(config['REDIS_URL'])

    identity = IdentityStore(auth_service)
    mailbox = NotificationMailbox()
    registry = SharingRegistry()
    consent = ConsentCoordinator(identity, mailbox, registry)
    position_gate = PositionGate(identity, registry)
    health_service = HealthCheckService(
        identity, mailbox, registry, redis_service, config['ENVIRONMENT']
    )

    # Initialize middleware
    hal_formatter = create_hal_formatter(config['BASE_URL'])
    validation_middleware = ValidationMiddleware(hal_formatter)
    auth_middleware = AuthMiddleware(auth_service, redis_service)

    configure_cors(
        app,
        allow_all_origins=config['CORS_ALLOW_ALL_ORIGINS'],
        allow_credentials=True
    )
    register_error_handlers(app, hal_formatter)

    # Make services available to routes
    app.auth_service = auth_service
    app.redis_service = redis_service
    app.identity_store = identity
    app.mailbox = mailbox
    app.sharing_registry = registry
    app.consent_coordinator = consent
    app.position_gate = position_gate
    app.health_service = health_service
    app.hal_formatter = hal_formatter
    app.validation_middleware = validation_middleware
    app.auth_middleware = auth_middleware

    # Register routes
    from geolink.routes.auth import auth_bp
    from geolink.routes.links import links_bp

    app.register_api(auth_bp)
    app.register_api(links_bp)

    @app.get('/api/healthz')
    def health_check():
        """Health check with store sizes, Redis status and process metrics."""
        health_data = health_service.get_health()
        return jsonify(hal_formatter.builder.build_resource_response(
            health_data,
            "health",
            "system"
        ))

    logger.info(
        "Geolink API initialized",
        extra={
            "environment": config['ENVIRONMENT'],
            "tracing": tracing_active,
            "blocklist": redis_service.is_available()
        }
    )

    return app


if __name__ == '__main__':
    app = create_app()
    app.run(
        host='0.0.0.0',
        port=app.config['PORT'],
        debug=app.config['DEBUG']
    )
