"""
Structured Logging Configuration

Configures structlog on top of stdlib logging. Logs render as JSON (default)
or colorized console output, carry the per-call context bound through
structlog.contextvars, and never contain credentials.
"""
import logging
import os
import sys
import uuid

import structlog
from structlog import dev as structlog_dev

SERVICE_NAME = "realtime-agent-bridge"

SENSITIVE_KEYS = {
    "api_key", "apikey",
    "token", "access_token", "bearer",
    "password", "secret",
    "authorization", "credential", "credentials",
}


def add_service_context(logger, method_name, event_dict):
    """Add service context to the log record."""
    event_dict["service"] = SERVICE_NAME
    return event_dict


def _is_sensitive(key) -> bool:
    normalized = str(key).lower().replace("-", "_")
    return any(normalized == k or normalized.endswith("_" + k) for k in SENSITIVE_KEYS)


def _redact(value):
    if value is None or isinstance(value, bool):
        return value
    if isinstance(value, str) and len(value) > 4:
        # keep a short prefix (e.g. "sk") so operators can tell keys apart
        return f"{value[:2]}***REDACTED***"
    return "***REDACTED***"


def _sanitize(value):
    if isinstance(value, dict):
        return {
            k: _redact(v) if _is_sensitive(k) else _sanitize(v)
            for k, v in value.items()
        }
    if isinstance(value, (list, tuple)):
        return [_sanitize(v) for v in value]
    return value


def sanitize_secrets(logger, method_name, event_dict):
    """Redact credentials (API keys, bearer tokens, auth headers) from log events."""
    return _sanitize(event_dict)


def configure_logging(log_level: str = "INFO", log_format: str = "json"):
    """
    Set up structured logging.

    Environment overrides:
      - LOG_LEVEL: debug|info|warning|error|critical (default: INFO)
      - LOG_FORMAT: json|console (default: json)
    """
    log_level = os.getenv("LOG_LEVEL", log_level).upper()
    log_format = os.getenv("LOG_FORMAT", log_format).strip().lower()
    level_value = getattr(logging, log_level, logging.INFO)

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            add_service_context,
            sanitize_secrets,
            structlog.processors.format_exc_info,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    renderer = (
        structlog_dev.ConsoleRenderer()
        if log_format == "console"
        else structlog.processors.JSONRenderer()
    )
    formatter = structlog.stdlib.ProcessorFormatter(
        processor=renderer,
        foreign_pre_chain=[
            structlog.stdlib.add_logger_name,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
        ],
    )

    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.setLevel(level_value)

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setFormatter(formatter)
    root_logger.addHandler(console_handler)

    # Reduce noisy third-party loggers
    logging.getLogger("websockets").setLevel(logging.WARNING)
    logging.getLogger("asyncio").setLevel(logging.WARNING)


def bind_call_context(call_id: str = None) -> str:
    """Start a fresh per-call log context and return its call id."""
    call_id = call_id or uuid.uuid4().hex
    structlog.contextvars.clear_contextvars()
    structlog.contextvars.bind_contextvars(call_id=call_id)
    return call_id


def get_logger(name: str):
    """Get a structlog logger."""
    return structlog.get_logger(name)
