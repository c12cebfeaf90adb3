"""
Structured logging for the PetWell staff directory.

Provides JSON-formatted logs for production and human-readable
logs for development, with request ID and OpenTelemetry trace
correlation.
"""

import logging
import sys
from contextvars import ContextVar
from dataclasses import asdict, dataclass
from typing import Any, Dict, Optional

import structlog
from opentelemetry import trace
from pythonjsonlogger import jsonlogger

# Context variable for request ID
request_id_context: ContextVar[Optional[str]] = ContextVar("request_id", default=None)


@dataclass
class LogContext:
    """Log context container for structured data."""
    component: str
    operation: str = "general"
    metadata: Optional[Dict[str, Any]] = None

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for logging."""
        result = asdict(self)
        metadata = result.pop("metadata") or {}
        result.update(metadata)
        return {k: v for k, v in result.items() if v is not None}


def add_request_id(logger: logging.Logger, method_name: str, event_dict: Dict[str, Any]) -> Dict[str, Any]:
    """Add request ID to log entries."""
    request_id = request_id_context.get()
    if request_id:
        event_dict["request_id"] = request_id
    return event_dict


def add_trace_context(logger: logging.Logger, method_name: str, event_dict: Dict[str, Any]) -> Dict[str, Any]:
    """Add OpenTelemetry trace context."""
    current_span = trace.get_current_span()
    if current_span and current_span.is_recording():
        span_context = current_span.get_span_context()
        event_dict["trace_id"] = format(span_context.trace_id, "032x")
        event_dict["span_id"] = format(span_context.span_id, "016x")
    return event_dict


class ObservabilityLogger:
    """
    Logger bound to a component context.

    Thin wrapper over a structlog logger so call sites can pass
    structured key-value fields alongside the message.
    """

    def __init__(self, name: str, context: Optional[LogContext] = None):
        self.name = name
        self.context = context or LogContext(component=name)
        self._logger = structlog.get_logger(name).bind(**self.context.to_dict())

    def debug(self, message: str, **kwargs):
        self._logger.debug(message, **kwargs)

    def info(self, message: str, **kwargs):
        self._logger.info(message, **kwargs)

    def warning(self, message: str, **kwargs):
        self._logger.warning(message, **kwargs)

    def error(self, message: str, **kwargs):
        self._logger.error(message, **kwargs)

    def exception(self, message: str, **kwargs):
        """Log exception with full traceback."""
        self._logger.exception(message, **kwargs)


def setup_logging(level: str = "INFO", format_type: str = "json") -> None:
    """
    Configure structured logging.

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        format_type: Output format ("json" or "console")
    """
    log_level = getattr(logging, level.upper(), logging.INFO)
    handler = logging.StreamHandler(sys.stdout)

    processors = [
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        add_request_id,
        add_trace_context,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
    ]

    if format_type == "json":
        # Event fields travel as `extra` and are rendered by the JSON formatter
        handler.setFormatter(jsonlogger.JsonFormatter("%(message)s"))
        processors.append(structlog.stdlib.render_to_log_kwargs)
    else:
        handler.setFormatter(logging.Formatter("%(message)s"))
        processors.append(structlog.dev.ConsoleRenderer())

    logging.root.handlers = [handler]
    logging.root.setLevel(log_level)

    structlog.configure(
        processors=processors,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    # Silence noisy loggers
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("passlib").setLevel(logging.ERROR)


def get_logger(name: str, component: Optional[str] = None, **context_kwargs) -> ObservabilityLogger:
    """
    Get a configured logger.

    Args:
        name: Logger name (usually __name__)
        component: Component name for context
        **context_kwargs: Additional context data

    Returns:
        ObservabilityLogger instance
    """
    context = LogContext(component=component or name, metadata=context_kwargs or None)
    return ObservabilityLogger(name, context)
