"""
Infrastructure helpers: structured logging and settings.
"""
from synexa.infra.logging import configure_logging, get_logger, LogContext
from synexa.infra.settings import Settings, get_settings, clear_settings_cache

__all__ = [
    "configure_logging",
    "get_logger",
    "LogContext",
    "Settings",
    "get_settings",
    "clear_settings_cache",
]
