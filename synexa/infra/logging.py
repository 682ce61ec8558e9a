"""
Structured logging for the Synexa client.

Provides:
- JSON or console structured logs via structlog
- Prediction ID correlation through context variables
- Redaction of credentials (API keys never reach log output)

Loggers are structlog wrappers around stdlib loggers under "synexa", which
carries a NullHandler: until the application configures logging (for
example with configure_logging()), the client writes nothing to stdout or
stderr.
"""
from __future__ import annotations

import logging
import sys
from datetime import datetime, timezone
from typing import Any, Dict, Set

import structlog

LIBRARY_LOGGER_NAME = "synexa"

logging.getLogger(LIBRARY_LOGGER_NAME).addHandler(logging.NullHandler())

# Keys whose values are replaced before rendering
SENSITIVE_KEYS: Set[str] = frozenset({
    "api_key",
    "x-api-key",
    "auth",
    "authorization",
    "token",
    "secret",
    "password",
})


def sanitize_log_context(context: Dict[str, Any]) -> Dict[str, Any]:
    """
    Remove sensitive values from log context.
    
    Args:
        context: Log context dictionary
    
    Returns:
        Sanitized context with sensitive values redacted
    """
    sanitized = {}
    for key, value in context.items():
        key_lower = key.lower()
        if any(sensitive in key_lower for sensitive in SENSITIVE_KEYS):
            sanitized[key] = "[REDACTED]"
        elif isinstance(value, dict):
            sanitized[key] = sanitize_log_context(value)
        elif isinstance(value, (list, tuple)):
            sanitized[key] = [
                sanitize_log_context(item) if isinstance(item, dict) else item
                for item in value
            ]
        else:
            sanitized[key] = value
    return sanitized


def sanitize_sensitive_data(
    logger: logging.Logger,
    method_name: str,
    event_dict: Dict[str, Any],
) -> Dict[str, Any]:
    """Structlog processor to sanitize sensitive data from logs."""
    return sanitize_log_context(event_dict)


def add_timestamp(
    logger: logging.Logger,
    method_name: str,
    event_dict: Dict[str, Any],
) -> Dict[str, Any]:
    """Structlog processor to add ISO timestamp."""
    event_dict["timestamp"] = datetime.now(timezone.utc).isoformat()
    return event_dict


def add_library_info(
    logger: logging.Logger,
    method_name: str,
    event_dict: Dict[str, Any],
) -> Dict[str, Any]:
    """Structlog processor to tag entries with the client library name."""
    from synexa import __version__

    event_dict["library"] = "synexa"
    event_dict["library_version"] = __version__
    return event_dict


def configure_logging(
    log_level: str = "INFO",
    json_format: bool = True,
    use_structured_logging: bool = True,
) -> None:
    """
    Configure structured logging for applications using the client.
    
    Args:
        log_level: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        json_format: If True, output JSON logs. If False, use console format.
        use_structured_logging: If True, use structlog. If False, use basic logging.
    """
    log_level_num = getattr(logging, log_level.upper(), logging.INFO)
    
    if not use_structured_logging:
        logging.basicConfig(
            level=log_level_num,
            format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
            stream=sys.stdout,
        )
        return
    
    shared_processors = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        add_timestamp,
        add_library_info,
        sanitize_sensitive_data,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.UnicodeDecoder(),
    ]
    
    if json_format:
        shared_processors.append(structlog.processors.JSONRenderer())
    else:
        shared_processors.append(structlog.dev.ConsoleRenderer(colors=True))
    
    structlog.configure(
        processors=shared_processors,
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )
    
    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=log_level_num,
    )
    
    # httpx logs every request at INFO
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)


def configure_logging_from_settings() -> None:
    """Configure logging from LOG_LEVEL / LOG_FORMAT / USE_STRUCTURED_LOGGING."""
    from synexa.infra.settings import get_settings

    settings = get_settings()
    if settings.LOG_FORMAT == "auto":
        json_format = not sys.stdout.isatty()
    else:
        json_format = settings.LOG_FORMAT == "json"
    configure_logging(
        log_level=settings.LOG_LEVEL,
        json_format=json_format,
        use_structured_logging=settings.USE_STRUCTURED_LOGGING,
    )


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    """
    Get a structured logger instance.
    
    Args:
        name: Logger name (typically __name__)
    
    Returns:
        Structured logger bound to the given name, emitting through the
        stdlib logger of the same name
    """
    return structlog.wrap_logger(logging.getLogger(name))


class LogContext:
    """
    Context manager for binding additional context to logs.
    
    Usage:
        with LogContext(prediction_id="abc123"):
            logger.info("prediction_polled")
    """
    
    def __init__(self, **kwargs: Any):
        self.context = kwargs
    
    def __enter__(self) -> "LogContext":
        structlog.contextvars.bind_contextvars(**self.context)
        return self
    
    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        structlog.contextvars.unbind_contextvars(*self.context.keys())
