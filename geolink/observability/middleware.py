"""
Observability Middleware

Times every request, writes one structured completion line per request and
echoes the trace id back to the client. Flask spans come from
FlaskInstrumentor when tracing is active.
"""

import time
import logging
from typing import Optional
from flask import Flask, request, g
from opentelemetry import trace
from opentelemetry.instrumentation.flask import FlaskInstrumentor

logger = logging.getLogger(__name__)

TRACE_HEADER = 'X-Trace-Id'


def current_trace_id() -> Optional[str]:
    """Hex trace id of the active span, if any."""
    span_context = trace.get_current_span().get_span_context()
    if not span_context.is_valid:
        return None
    return format(span_context.trace_id, "032x")


def add_observability_middleware(app: Flask, instrument: bool = True):
    """Attach request timing and completion logging to ``app``."""

    if instrument:
        FlaskInstrumentor().instrument_app(app)

    @app.before_request
    def mark_request_start():
        g.request_started = time.perf_counter()
        g.trace_id = current_trace_id()

    @app.after_request
    def log_completed_request(response):
        started = g.get('request_started')
        duration_ms = round((time.perf_counter() - started) * 1000, 2) if started else None

        if duration_ms is not None:
            trace.get_current_span().set_attribute("http.duration_ms", duration_ms)

        caller = g.get('user_context')
        logger.info(
            "HTTP request completed",
            extra={
                "method": request.method,
                "path": request.path,
                "status_code": response.status_code,
                "duration_ms": duration_ms,
                "remote_addr": request.remote_addr,
                "account": caller.account if caller else None,
                "trace_id": g.get('trace_id')
            }
        )

        if g.get('trace_id'):
            response.headers[TRACE_HEADER] = g.trace_id
        return response
