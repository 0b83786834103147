"""Structured logging configuration."""
import logging
import sys
import json
import time
import uuid
from datetime import datetime, timezone
from typing import Optional
from contextlib import contextmanager
import traceback

from quote_builder.config import settings


# Record attributes promoted into the formatted output when present
CONTEXT_FIELDS = ("trace_id", "action", "latency_ms", "status")
HANDLER_NAME = "quote_builder.console"


class StructuredFormatter(logging.Formatter):
    """Structured JSON formatter for production logging."""

    def format(self, record):
        """Format log record as structured JSON."""
        log_entry = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "module": record.module,
            "function": record.funcName,
            "line": record.lineno
        }

        for name in CONTEXT_FIELDS:
            if hasattr(record, name):
                log_entry[name] = getattr(record, name)

        # Add extra fields
        if hasattr(record, 'extra_fields'):
            log_entry.update(record.extra_fields)

        # Add exception info if present
        if record.exc_info:
            log_entry['exception'] = {
                'type': record.exc_info[0].__name__,
                'message': str(record.exc_info[1]),
                'traceback': traceback.format_exception(*record.exc_info)
            }

        return json.dumps(log_entry, default=str)


class HumanReadableFormatter(logging.Formatter):
    """Human readable formatter for development logging."""

    def format(self, record):
        """Format log record for human readability."""
        formatted = f"[{record.levelname}] {record.getMessage()}"

        if hasattr(record, 'trace_id'):
            formatted += f" [trace_id={record.trace_id}]"

        if hasattr(record, 'action'):
            formatted += f" [action={record.action}]"

        if hasattr(record, 'latency_ms'):
            formatted += f" [latency={record.latency_ms}ms]"

        if hasattr(record, 'status'):
            formatted += f" [status={record.status}]"

        if hasattr(record, 'extra_fields'):
            for key, value in record.extra_fields.items():
                formatted += f" [{key}={value}]"

        return formatted


class TraceLogger:
    """Logger with trace ID support and structured logging.

    Keyword arguments other than ``action``, ``status`` and ``latency_ms``
    are collected into ``extra_fields`` so they never collide with
    ``LogRecord`` attributes.
    """

    def __init__(self, name: str, trace_id: Optional[str] = None):
        self.logger = logging.getLogger(name)
        self.trace_id = trace_id or str(uuid.uuid4())

    def _build_extra(self, **kwargs) -> dict:
        extra = {'trace_id': self.trace_id}
        extra_fields = {}
        for key, value in kwargs.items():
            if key in CONTEXT_FIELDS:
                extra[key] = value
            else:
                extra_fields[key] = value
        if extra_fields:
            extra['extra_fields'] = extra_fields
        return extra

    def _log_with_context(self, level: int, message: str, **kwargs):
        """Log with trace context and additional fields."""
        self.logger.log(level, message, extra=self._build_extra(**kwargs))

    def debug(self, message: str, **kwargs):
        self._log_with_context(logging.DEBUG, message, **kwargs)

    def info(self, message: str, **kwargs):
        self._log_with_context(logging.INFO, message, **kwargs)

    def warning(self, message: str, **kwargs):
        self._log_with_context(logging.WARNING, message, **kwargs)

    def error(self, message: str, **kwargs):
        self._log_with_context(logging.ERROR, message, **kwargs)

    def exception(self, message: str, **kwargs):
        """Log exception with traceback."""
        self.logger.exception(message, extra=self._build_extra(**kwargs))


def setup_logging():
    """Configure application logging."""
    if settings.app_env == "production":
        formatter = StructuredFormatter()
    else:
        formatter = HumanReadableFormatter()

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setFormatter(formatter)
    console_handler.set_name(HANDLER_NAME)

    root_logger = logging.getLogger()
    root_logger.setLevel(getattr(logging, settings.log_level.upper()))
    # Re-running setup (reloads, tests) replaces our handler instead of stacking
    for handler in list(root_logger.handlers):
        if handler.get_name() == HANDLER_NAME:
            root_logger.removeHandler(handler)
    root_logger.addHandler(console_handler)

    app_logger = logging.getLogger("quote_builder")
    app_logger.setLevel(getattr(logging, settings.log_level.upper()))

    logging.getLogger("uvicorn").setLevel(logging.INFO)
    logging.getLogger("sqlalchemy").setLevel(logging.WARNING)

    app_logger.info("Logging configured", extra={
        'extra_fields': {
            'app_env': settings.app_env,
            'log_level': settings.log_level
        }
    })


def get_trace_logger(name: str, trace_id: Optional[str] = None) -> TraceLogger:
    """Get a logger under the ``quote_builder`` namespace with trace ID support."""
    if not name.startswith("quote_builder"):
        name = f"quote_builder.{name}"
    return TraceLogger(name, trace_id)


@contextmanager
def log_action(action: str, trace_id: Optional[str] = None, **context):
    """Context manager for logging a user action with timing."""
    logger = get_trace_logger(f"action.{action}", trace_id)
    start_time = time.time()

    try:
        logger.info(f"Starting {action}", action=action, status="started", **context)
        yield logger
        latency_ms = (time.time() - start_time) * 1000
        logger.info(f"Completed {action}",
                    action=action,
                    status="success",
                    latency_ms=round(latency_ms, 2),
                    **context)
    except Exception as e:
        latency_ms = (time.time() - start_time) * 1000
        logger.error(f"Failed {action}: {str(e)}",
                     action=action,
                     status="failed",
                     latency_ms=round(latency_ms, 2),
                     error_type=type(e).__name__,
                     **context)
        raise


def log_endpoint_request(endpoint: str, method: str, trace_id: str, **context):
    """Log endpoint request."""
    logger = get_trace_logger("endpoint", trace_id)
    logger.info(f"{method} {endpoint}",
                endpoint=endpoint,
                method=method,
                status="request_received",
                **context)


def log_endpoint_response(endpoint: str, method: str, trace_id: str, status_code: int, latency_ms: float, **context):
    """Log endpoint response."""
    logger = get_trace_logger("endpoint", trace_id)
    status = "success" if 200 <= status_code < 400 else "error"
    logger.info(f"{method} {endpoint} - {status_code}",
                endpoint=endpoint,
                method=method,
                status_code=status_code,
                status=status,
                latency_ms=round(latency_ms, 2),
                **context)


def log_catalog_imported(kind: str, row_count: int, trace_id: Optional[str] = None, **context):
    """Log a successful catalog or customer import."""
    logger = get_trace_logger("import", trace_id)
    logger.info(f"Imported {row_count} {kind} rows",
                kind=kind,
                row_count=row_count,
                status="imported",
                **context)


def log_quote_committed(quote_id: int, total, line_count: int, trace_id: Optional[str] = None, **context):
    """Log a quote committed to history."""
    logger = get_trace_logger("ledger", trace_id)
    logger.info(f"Quote committed: {quote_id}",
                quote_id=quote_id,
                total=str(total),
                line_count=line_count,
                status="committed",
                **context)


def log_pdf_generated(quote_id: Optional[int], size_bytes: int, trace_id: Optional[str] = None, **context):
    """Log PDF generation."""
    logger = get_trace_logger("pdf", trace_id)
    logger.info(f"PDF generated for quote {quote_id}",
                quote_id=quote_id,
                size_bytes=size_bytes,
                status="generated",
                **context)


def log_store_degraded(key: str, reason: str, trace_id: Optional[str] = None):
    """Log an unreadable store value that was replaced by an empty history."""
    logger = get_trace_logger("store", trace_id)
    logger.warning(f"Store entry '{key}' unreadable, starting with empty history: {reason}",
                   key=key,
                   reason=reason,
                   status="degraded")


def log_store_backup(key: str, backup_key: str, trace_id: Optional[str] = None):
    """Log an unreadable store value copied aside before it is overwritten."""
    logger = get_trace_logger("store", trace_id)
    logger.warning(f"Store entry '{key}' copied to '{backup_key}' before rewriting history",
                   key=key,
                   backup_key=backup_key,
                   status="backed_up")


def log_error(error: Exception, context: str, trace_id: Optional[str] = None, **extra_context):
    """Log error with context."""
    logger = get_trace_logger("error", trace_id)
    logger.error(f"Error in {context}: {str(error)}",
                 error_type=type(error).__name__,
                 error_message=str(error),
                 context=context,
                 status="error",
                 **extra_context)
