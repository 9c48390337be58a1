"""
Central logging configuration for household_schedule.

Keeps third-party libraries quiet while leaving the package's own loggers at
the requested verbosity, and tags every record with the request's
correlation id.
"""

import logging
import os
from typing import Optional


class CorrelationIdFilter(logging.Filter):
    """Add correlation ID to all log records for request tracing."""

    def filter(self, record: logging.LogRecord) -> bool:
        # Imported lazily; the middleware module imports aiohttp
        from household_schedule.api.middleware.correlation_id import get_request_id

        record.request_id = get_request_id()
        return True


NOISY_LOGGERS: dict[str, int] = {
    "aiohttp.access": logging.WARNING,
    "aiohttp.server": logging.WARNING,
    "aiohttp.web": logging.INFO,
    "aiohttp.web_log": logging.WARNING,
    "asyncio": logging.WARNING,
    "icalendar": logging.INFO,
}


def configure_logging(debug_mode: bool = False, force_debug: Optional[bool] = None) -> None:
    """
    Configure logging levels for household_schedule.

    Args:
        debug_mode: Whether to enable debug logging for household_schedule modules
        force_debug: Override debug mode setting (None to use env var detection)

    Environment Variables:
        HOUSEHOLD_SCHEDULE_DEBUG: Set to '1', 'true', 'yes' to force debug logging
        HOUSEHOLD_SCHEDULE_LOG_LEVEL: Override root log level (DEBUG, INFO, WARNING, ERROR)
    """
    env_debug = os.getenv("HOUSEHOLD_SCHEDULE_DEBUG", "").lower() in ("1", "true", "yes", "on")
    env_log_level = os.getenv("HOUSEHOLD_SCHEDULE_LOG_LEVEL", "").upper()

    if force_debug is not None:
        final_debug = force_debug
    else:
        final_debug = env_debug or debug_mode

    root_level = logging.DEBUG if final_debug else logging.INFO
    if env_log_level in ("DEBUG", "INFO", "WARNING", "ERROR"):
        root_level = getattr(logging, env_log_level)

    root_logger = logging.getLogger()
    root_logger.setLevel(root_level)

    correlation_filter = CorrelationIdFilter()

    # Keep the colorized handler installed by household_schedule._init_logging
    if not root_logger.handlers:
        handler = logging.StreamHandler()
        handler.setLevel(root_level)
        handler.setFormatter(
            logging.Formatter("[%(asctime)s] [%(request_id)s] %(levelname)s - %(name)s - %(message)s")
        )
        handler.addFilter(correlation_filter)
        root_logger.addHandler(handler)
    else:
        for existing_handler in root_logger.handlers:
            if not any(isinstance(f, CorrelationIdFilter) for f in existing_handler.filters):
                existing_handler.addFilter(correlation_filter)

    for logger_name, level in NOISY_LOGGERS.items():
        logging.getLogger(logger_name).setLevel(level)
    logging.getLogger("household_schedule").setLevel(logging.DEBUG if final_debug else root_level)

    root_logger.info(
        "Logging configured (debug=%s, root level=%s)", final_debug, logging.getLevelName(root_level)
    )


def get_logging_status() -> dict[str, str]:
    """Return current levels of the root, package and noisy third-party loggers."""
    status = {"root": logging.getLevelName(logging.getLogger().level)}
    for logger_name in ("household_schedule", *NOISY_LOGGERS):
        status[logger_name] = logging.getLevelName(logging.getLogger(logger_name).level)
    return status
