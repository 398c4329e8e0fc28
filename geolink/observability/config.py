"""
OpenTelemetry Configuration

Sets up distributed tracing and structured logging for the Geolink API.
"""

import json
import logging
from typing import Optional
from opentelemetry import trace
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.sampling import TraceIdRatioBased
from opentelemetry.sdk.trace.export import BatchSpanProcessor, ConsoleSpanExporter
from opentelemetry.sdk.resources import Resource
from opentelemetry.exporter.otlp.proto.grpc.trace_exporter import OTLPSpanExporter

SAMPLING_RATIOS = {
    'production': 0.1,
    'staging': 0.5
}

LOG_LEVELS = {
    'production': logging.WARNING,
    'staging': logging.INFO,
    'development': logging.DEBUG,
    'testing': logging.WARNING
}

# Attributes every LogRecord carries; anything else came in through ``extra=``
_RESERVED_ATTRS = set(logging.LogRecord('', 0, '', 0, '', (), None).__dict__) | {'message', 'asctime'}

_tracer_provider_configured = False


def setup_observability(
    environment: str = 'development',
    otel_enabled: bool = True,
    otlp_endpoint: Optional[str] = None,
    service_name: str = 'geolink-api',
    service_version: str = '1.0.0'
) -> bool:
    """
    Initialize OpenTelemetry tracing.

    The global tracer provider is installed at most once per process.

    Returns:
        True if a tracer provider is active after the call
    """
    global _tracer_provider_configured

    if not otel_enabled:
        return _tracer_provider_configured

    if _tracer_provider_configured:
        return True

    sampler = TraceIdRatioBased(SAMPLING_RATIOS.get(environment, 1.0))

    resource = Resource.create({
        "service.name": service_name,
        "service.version": service_version,
        "deployment.environment": environment
    })

    tracer_provider = TracerProvider(sampler=sampler, resource=resource)

    if otlp_endpoint:
        tracer_provider.add_span_processor(
            BatchSpanProcessor(OTLPSpanExporter(endpoint=otlp_endpoint), max_export_batch_size=512)
        )
    elif environment == 'development':
        tracer_provider.add_span_processor(BatchSpanProcessor(ConsoleSpanExporter()))

    trace.set_tracer_provider(tracer_provider)
    _tracer_provider_configured = True
    return True


class StructuredFormatter(logging.Formatter):
    """Render log records as one JSON object per line, with trace correlation."""

    def format(self, record: logging.LogRecord) -> str:
        entry = {
            "timestamp": self.formatTime(record, "%Y-%m-%dT%H:%M:%S"),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage()
        }

        span_context = trace.get_current_span().get_span_context()
        if span_context.is_valid:
            entry["trace_id"] = format(span_context.trace_id, "032x")
            entry["span_id"] = format(span_context.span_id, "016x")

        for key, value in record.__dict__.items():
            if key not in _RESERVED_ATTRS and not key.startswith('_'):
                entry[key] = value

        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)

        return json.dumps(entry, default=str)


def setup_structured_logging(environment: str) -> None:
    """Configure structured JSON logging on the root logger."""
    root_logger = logging.getLogger()
    root_logger.setLevel(LOG_LEVELS.get(environment, logging.INFO))

    if not any(isinstance(h.formatter, StructuredFormatter) for h in root_logger.handlers):
        handler = logging.StreamHandler()
        handler.setFormatter(StructuredFormatter())
        root_logger.addHandler(handler)

    # Quiet chatty libraries
    logging.getLogger('werkzeug').setLevel(logging.WARNING)
    logging.getLogger('urllib3').setLevel(logging.WARNING)
