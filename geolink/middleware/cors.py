# -*- coding: utf-8 -*-
# SPDX-License-Identifier: Apache-2.0

"""
CORS middleware for the map frontend.

Origins come from ``CORS_ALLOWED_ORIGINS`` (comma separated; an entry ending
in ``*`` matches by prefix). Local dev servers are added in development.
"""

from flask import Flask, request, make_response
from typing import Iterable, List, Optional
import logging

logger = logging.getLogger(__name__)

DEVELOPMENT_ORIGINS = [
    'http://localhost:3000',
    'http://localhost:5173',
    'http://127.0.0.1:3000',
    'http://127.0.0.1:5173'
]

ALLOWED_METHODS = ('GET', 'POST', 'OPTIONS')
ALLOWED_HEADERS = ('Accept', 'Authorization', 'Content-Type', 'X-Requested-With', 'X-Session-ID')
EXPOSED_HEADERS = ('Content-Length', 'Content-Type', 'X-Trace-Id')


def parse_origins(value: Optional[str]) -> List[str]:
    """Split a comma separated origin list, dropping blanks."""
    if not value:
        return []
    return [origin.strip() for origin in value.split(',') if origin.strip()]


def origin_matches(origin: str, patterns: Iterable[str]) -> bool:
    for pattern in patterns:
        if pattern == '*' or pattern == origin:
            return True
        if pattern.endswith('*') and origin.startswith(pattern[:-1]):
            return True
    return False


class CORSMiddleware:
    """Origin allow-list and preflight handling for a Flask app."""

    def __init__(
        self,
        app: Flask,
        allowed_origins: Optional[List[str]] = None,
        allow_all_origins: bool = False,
        allow_credentials: bool = True,
        max_age: int = 86400
    ):
        self.app = app
        if allowed_origins is None:
            allowed_origins = parse_origins(app.config.get('CORS_ALLOWED_ORIGINS'))
            if app.config.get('ENVIRONMENT') == 'development':
                allowed_origins = DEVELOPMENT_ORIGINS + allowed_origins
        self.allowed_origins = allowed_origins
        self.allow_all_origins = allow_all_origins
        self.allow_credentials = allow_credentials
        self.max_age = max_age

        app.before_request(self._preflight)
        app.after_request(self._decorate)

    def is_origin_allowed(self, origin: Optional[str]) -> bool:
        if not origin:
            return False
        return self.allow_all_origins or origin_matches(origin, self.allowed_origins)

    def add_cors_headers(self, response, origin: str):
        headers = response.headers
        headers['Access-Control-Allow-Origin'] = origin
        headers['Access-Control-Allow-Methods'] = ', '.join(ALLOWED_METHODS)
        headers['Access-Control-Allow-Headers'] = ', '.join(ALLOWED_HEADERS)
        headers['Access-Control-Expose-Headers'] = ', '.join(EXPOSED_HEADERS)
        headers['Access-Control-Max-Age'] = str(self.max_age)
        if self.allow_credentials:
            headers['Access-Control-Allow-Credentials'] = 'true'
        headers.add('Vary', 'Origin')
        return response

    def _preflight(self):
        if request.method != 'OPTIONS':
            return None

        origin = request.headers.get('Origin')
        if not origin:
            return None
        if not self.is_origin_allowed(origin):
            logger.warning("CORS preflight rejected", extra={"origin": origin})
            return make_response('', 403)

        return self.add_cors_headers(make_response('', 200), origin)

    def _decorate(self, response):
        origin = request.headers.get('Origin')
        if self.is_origin_allowed(origin):
            self.add_cors_headers(response, origin)
        elif origin and request.method != 'OPTIONS':
            logger.warning("CORS origin not allowed", extra={"origin": origin})
        return response


def configure_cors(app: Flask, **kwargs) -> CORSMiddleware:
    """Configure CORS for Flask application."""
    return CORSMiddleware(app, **kwargs)
