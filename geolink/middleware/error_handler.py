# -*- coding: utf-8 -*-
# SPDX-License-Identifier: Apache-2.0

"""
Error handling middleware with structured HAL responses.
Provides the application exception hierarchy and centralized error
formatting for the Flask application.
"""

from flask import Flask, request, jsonify
from werkzeug.exceptions import HTTPException
from typing import Dict, Any, Tuple, Optional
from opentelemetry import trace
import logging

from geolink.services.hal import HalFormatter

tracer = trace.get_tracer(__name__)
logger = logging.getLogger(__name__)


class CustomException(Exception):
    """Base class for custom application exceptions."""

    def __init__(self, message: str, status_code: int = 500, error_type: str = "application-error"):
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.error_type = error_type


class ValidationException(CustomException):
    """Exception for validation errors."""

    def __init__(self, message: str, validation_errors: list = None):
        super().__init__(message, 400, "validation-error")
        self.validation_errors = validation_errors or []


class AuthenticationException(CustomException):
    """Exception for authentication errors."""

    def __init__(self, message: str):
        super().__init__(message, 401, "authentication-required")


class AuthorizationException(CustomException):
    """Exception for authorization errors."""

    def __init__(self, message: str):
        super().__init__(message, 403, "insufficient-permissions")


class NotFoundException(CustomException):
    """Exception for resource not found errors."""

    def __init__(self, message: str):
        super().__init__(message, 404, "resource-not-found")


class ConflictException(CustomException):
    """Exception for resource conflict errors."""

    def __init__(self, message: str):
        super().__init__(message, 409, "resource-conflict")


class UnknownAccountError(NotFoundException):
    """A referenced account is not registered."""

    def __init__(self, account: Optional[str]):
        super().__init__("User not found")
        self.account = account


class NotAuthorizedError(AuthorizationException):
    """
    The viewer may not read the owner's position.

    The message is the same whichever check failed so callers cannot tell
    a missing consent from disabled sharing.
    """

    def __init__(self):
        super().__init__("Not sharing position")


class SelfLinkError(ValidationException):
    """An account tried to link with, or share with, itself."""

    def __init__(self, account: str):
        super().__init__(
            "An account cannot link with itself",
            [{
                "field": "toEmail",
                "message": "Target account must differ from the caller",
                "type": "self_link",
                "input": account
            }]
        )
        self.account = account


class ErrorHandlerMiddleware:
    """Centralized error handling middleware with HAL response formatting."""

    def __init__(self, app: Flask, hal_formatter: HalFormatter):
        self.app = app
        self.hal_formatter = hal_formatter
        self.register_error_handlers()

    def register_error_handlers(self):
        """Register error handlers with Flask application."""

        @self.app.errorhandler(CustomException)
        def handle_custom_exception(error: CustomException):
            return self.handle_custom_exception(error)

        @self.app.errorhandler(HTTPException)
        def handle_http_exception(error: HTTPException):
            if error.code is not None and error.code >= 500:
                return self.handle_server_error(error)
            return self.handle_client_error(error)

        @self.app.errorhandler(Exception)
        def handle_generic_exception(error):
            return self.handle_unexpected_error(error)

    def handle_custom_exception(self, error: CustomException) -> Tuple[Any, int]:
        """
        Handle application exceptions raised by services and routes.

        Args:
            error: Application exception

        Returns:
            Tuple of (JSON response, status code)
        """
        with tracer.start_as_current_span("error_handler.custom_exception") as span:
            span.set_attributes({
                "error.type": error.error_type,
                "error.status": error.status_code,
                "http.method": request.method,
                "http.path": request.path
            })

            logger.warning(
                f"Custom exception: {error.error_type}",
                extra={
                    "error_type": error.error_type,
                    "status_code": error.status_code,
                    "detail": error.message,
                    "path": request.path,
                    "method": request.method
                }
            )

            # Use appropriate formatter method based on error type
            if isinstance(error, ValidationException):
                error_response = self.hal_formatter.format_validation_error(
                    error.message,
                    request.path,
                    error.validation_errors
                )
            elif isinstance(error, AuthenticationException):
                error_response = self.hal_formatter.format_authentication_error(error.message, request.path)
            elif isinstance(error, AuthorizationException):
                error_response = self.hal_formatter.format_authorization_error(error.message, request.path)
            elif isinstance(error, NotFoundException):
                error_response = self.hal_formatter.format_not_found_error(error.message, request.path)
            elif isinstance(error, ConflictException):
                error_response = self.hal_formatter.format_conflict_error(error.message, request.path)
            else:
                error_response = self.hal_formatter.format_server_error(error.message, request.path)

            return jsonify(error_response), error.status_code

    def handle_client_error(self, error: HTTPException) -> Tuple[Any, int]:
        """
        Handle werkzeug client errors (4xx status codes).

        Args:
            error: HTTP exception

        Returns:
            Tuple of (JSON response, status code)
        """
        title = error.name
        error_type = title.lower().replace(' ', '-')
        detail = str(error.description) if error.description else title

        logger.warning(
            f"Client error: {title}",
            extra={
                "error_type": error_type,
                "status_code": error.code,
                "detail": detail,
                "path": request.path,
                "method": request.method,
                "ip_address": request.remote_addr
            }
        )

        error_response = self.hal_formatter.builder.build_error_response(
            error_type,
            title,
            error.code,
            detail,
            request.path
        )
        return jsonify(error_response), error.code

    def handle_server_error(self, error: HTTPException) -> Tuple[Any, int]:
        """
        Handle werkzeug server errors (5xx status codes).

        Args:
            error: HTTP exception

        Returns:
            Tuple of (JSON response, status code)
        """
        detail = str(error.description) if error.description else error.name

        logger.error(
            f"Server error: {error.name}",
            extra={
                "status_code": error.code,
                "detail": detail,
                "path": request.path,
                "method": request.method
            }
        )

        # Don't expose internal error details in production
        if self.app.config.get('ENVIRONMENT') == 'production':
            detail = "An internal server error occurred"

        error_response = self.hal_formatter.format_server_error(detail, request.path)
        error_response['status'] = error.code
        return jsonify(error_response), error.code

    def handle_unexpected_error(self, error: Exception) -> Tuple[Any, int]:
        """
        Handle unexpected exceptions not caught by specific handlers.

        Args:
            error: Unexpected exception

        Returns:
            Tuple of (JSON response, status code)
        """
        with tracer.start_as_current_span("error_handler.unexpected_error") as span:
            span.set_attributes({
                "error.type": "unexpected-error",
                "error.class": error.__class__.__name__,
                "http.method": request.method,
                "http.path": request.path
            })
            span.record_exception(error)

            logger.error(
                f"Unexpected error: {error.__class__.__name__}",
                extra={
                    "error_type": "unexpected-error",
                    "error_class": error.__class__.__name__,
                    "error_message": str(error),
                    "path": request.path,
                    "method": request.method
                },
                exc_info=error
            )

            # Don't expose internal error details
            detail = "An unexpected error occurred"
            if self.app.config.get('ENVIRONMENT') != 'production':
                detail = f"{error.__class__.__name__}: {str(error)}"

            error_response = self.hal_formatter.format_server_error(detail, request.path)

            return jsonify(error_response), 500


def register_error_handlers(app: Flask, hal_formatter: HalFormatter) -> ErrorHandlerMiddleware:
    """
    Register centralized error handlers on a Flask application.

    Args:
        app: Flask application
        hal_formatter: HAL formatter used to build problem documents

    Returns:
        Configured ErrorHandlerMiddleware instance
    """
    return ErrorHandlerMiddleware(app, hal_formatter)
