"""
Structured logging configuration.

Every record leaves the process as one JSON object per line. Records from
structlog loggers (the access log) and from plain ``logging`` loggers in
the rest of the package go through the same ProcessorFormatter, so both
render alike:

    {"event": "request completed", "method": "GET", "status": 200, ...}
"""

import logging
import sys
from typing import Any

import structlog
from opentelemetry import trace

HANDLER_NAME = "skeleton_api.json"


def add_trace_context(logger: Any, method_name: str, event_dict: dict[str, Any]) -> dict[str, Any]:
    """Add the active span's ids, when there is one."""
    span = trace.get_current_span()
    span_context = span.get_span_context()
    if span_context.is_valid:
        event_dict.setdefault("trace_id", f"{span_context.trace_id:032x}")
        event_dict.setdefault("span_id", f"{span_context.span_id:016x}")
    return event_dict


SHARED_PROCESSORS = [
    structlog.stdlib.add_logger_name,
    structlog.stdlib.add_log_level,
    structlog.processors.TimeStamper(fmt="iso", utc=True),
    add_trace_context,
]


def build_formatter() -> structlog.stdlib.ProcessorFormatter:
    """Formatter that renders any log record as a single JSON line."""
    return structlog.stdlib.ProcessorFormatter(
        foreign_pre_chain=SHARED_PROCESSORS,
        processors=[
            structlog.stdlib.ProcessorFormatter.remove_processors_meta,
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(default=str),
        ],
    )


def configure_logging(log_level: str = "INFO") -> None:
    """
    Route structlog through the standard library and install one JSON
    handler on the root logger.

    Safe to call more than once (each create_app() call does); the handler
    is only installed the first time.
    """
    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            *SHARED_PROCESSORS,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.UnicodeDecoder(),
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    root = logging.getLogger()
    if not any(handler.get_name() == HANDLER_NAME for handler in root.handlers):
        handler = logging.StreamHandler(sys.stdout)
        handler.set_name(HANDLER_NAME)
        handler.setFormatter(build_formatter())
        root.addHandler(handler)
    root.setLevel(log_level)
