# -*- coding: utf-8 -*-
# SPDX-License-Identifier: Apache-2.0

"""
Request validation middleware using Pydantic models.
Validated models are passed to the route handler as its first argument.
"""

from functools import wraps
from flask import request, jsonify, current_app
from typing import Type, Callable, Dict, Any, List, Optional
from pydantic import BaseModel, ValidationError
from opentelemetry import trace
import logging

from geolink.services.hal import HalFormatter

tracer = trace.get_tracer(__name__)
logger = logging.getLogger(__name__)


class ValidationMiddleware:
    """Middleware for request validation using Pydantic models."""

    def __init__(self, hal_formatter: HalFormatter):
        self.hal_formatter = hal_formatter

    def format_validation_errors(self, validation_error: ValidationError) -> List[Dict[str, Any]]:
        """
        Format Pydantic validation errors for API response.

        Args:
            validation_error: Pydantic ValidationError

        Returns:
            List of formatted error dictionaries
        """
        errors = []

        for error in validation_error.errors():
            field_path = ".".join(str(loc) for loc in error["loc"])
            errors.append({
                "field": field_path,
                "message": error["msg"],
                "type": error["type"]
            })

        return errors

    def _error_response(self, detail: str, errors: List[Dict[str, Any]]):
        error_response = self.hal_formatter.format_validation_error(detail, request.path, errors)
        return jsonify(error_response), 400

    def _read_json_object(self) -> Optional[Dict[str, Any]]:
        json_data = request.get_json(silent=True)
        if isinstance(json_data, dict):
            return json_data
        return None

    def validate_json_body(self, model_class: Type[BaseModel]) -> Callable:
        """
        Decorator to validate JSON request body against Pydantic model.

        Args:
            model_class: Pydantic model class for validation

        Returns:
            Decorator function
        """
        def decorator(f: Callable) -> Callable:
            @wraps(f)
            def decorated_function(*args, **kwargs):
                with tracer.start_as_current_span("validation.validate_json_body") as span:
                    span.set_attributes({
                        "validation.model": model_class.__name__,
                        "http.method": request.method,
                        "http.path": request.path
                    })

                    if not request.is_json:
                        span.set_attribute("validation.result", "invalid_content_type")
                        return self._error_response(
                            "Request must have Content-Type: application/json",
                            [{
                                "field": "content-type",
                                "message": "Expected application/json",
                                "type": "content_type_error"
                            }]
                        )

                    json_data = self._read_json_object()
                    if json_data is None:
                        span.set_attribute("validation.result", "invalid_json")
                        return self._error_response(
                            "Invalid JSON in request body",
                            [{
                                "field": "body",
                                "message": "Expected a JSON object",
                                "type": "json_error"
                            }]
                        )

                    try:
                        validated_data = model_class.model_validate(json_data)
                    except ValidationError as e:
                        span.set_attribute("validation.result", "validation_error")
                        validation_errors = self.format_validation_errors(e)

                        logger.warning(
                            "Request validation failed",
                            extra={
                                "model": model_class.__name__,
                                "path": request.path,
                                "method": request.method,
                                "errors": validation_errors
                            }
                        )
                        return self._error_response(
                            f"Request validation failed for {model_class.__name__}",
                            validation_errors
                        )

                    span.set_attribute("validation.result", "success")
                    return f(validated_data, *args, **kwargs)

            return decorated_function
        return decorator

    def validate_query_params(self, model_class: Type[BaseModel]) -> Callable:
        """
        Decorator to validate query parameters against Pydantic model.

        Args:
            model_class: Pydantic model class for validation

        Returns:
            Decorator function
        """
        def decorator(f: Callable) -> Callable:
            @wraps(f)
            def decorated_function(*args, **kwargs):
                with tracer.start_as_current_span("validation.validate_query_params") as span:
                    span.set_attributes({
                        "validation.model": model_class.__name__,
                        "http.method": request.method,
                        "http.path": request.path
                    })

                    query_data = request.args.to_dict()

                    try:
                        validated_params = model_class.model_validate(query_data)
                    except ValidationError as e:
                        span.set_attribute("validation.result", "validation_error")
                        validation_errors = self.format_validation_errors(e)

                        logger.warning(
                            "Query parameter validation failed",
                            extra={
                                "model": model_class.__name__,
                                "path": request.path,
                                "params": query_data,
                                "errors": validation_errors
                            }
                        )
                        return self._error_response(
                            f"Query parameter validation failed for {model_class.__name__}",
                            validation_errors
                        )

                    span.set_attribute("validation.result", "success")
                    return f(validated_params, *args, **kwargs)

            return decorated_function
        return decorator


def validate_json(model_class: Type[BaseModel]) -> Callable:
    """
    Convenience decorator for JSON body validation.

    Resolves the application's ``validation_middleware`` at request time.
    """
    def decorator(f: Callable) -> Callable:
        @wraps(f)
        def decorated_function(*args, **kwargs):
            middleware: ValidationMiddleware = current_app.validation_middleware
            return middleware.validate_json_body(model_class)(f)(*args, **kwargs)
        return decorated_function
    return decorator


def validate_query(model_class: Type[BaseModel]) -> Callable:
    """
    Convenience decorator for query parameter validation.

    Resolves the application's ``validation_middleware`` at request time.
    """
    def decorator(f: Callable) -> Callable:
        @wraps(f)
        def decorated_function(*args, **kwargs):
            middleware: ValidationMiddleware = current_app.validation_middleware
            return middleware.validate_query_params(model_class)(f)(*args, **kwargs)
        return decorated_function
    return decorator
