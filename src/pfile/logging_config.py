"""
Centralized logging configuration for pfile.

This module provides structured logging setup using structlog with
consistent formatting, levels, and processors across all components.
"""

import logging
import os
import sys
from typing import Any

import structlog


class ColoredJSONRenderer:
    """JSON renderer with optional color support for development terminals."""

    def __init__(self, colors: bool = False):
        self.colors = colors
        self.json_renderer = structlog.processors.JSONRenderer()

    def __call__(self, logger: Any, method_name: str, event_dict: dict[str, Any]) -> str:
        """Render log entry as JSON with optional colors."""
        level = str(event_dict.get("level", "")).upper()
        json_output = self.json_renderer(logger, method_name, event_dict)

        if not self.colors:
            return str(json_output)

        color_codes = {
            "DEBUG": "\033[36m",
            "INFO": "\033[32m",
            "WARNING": "\033[33m",
            "ERROR": "\033[31m",
            "CRITICAL": "\033[35m",
        }
        color = color_codes.get(level, "")

        return f"{color}{str(json_output)}\033[0m"


def get_log_level() -> int:
    """
    Get log level from the LOG_LEVEL environment variable.

    Returns:
        int: Log level constant from logging module, INFO when unset or unknown
    """
    level_name = os.getenv("LOG_LEVEL", "INFO").upper()

    level_mapping = {
        "DEBUG": logging.DEBUG,
        "INFO": logging.INFO,
        "WARNING": logging.WARNING,
        "ERROR": logging.ERROR,
        "CRITICAL": logging.CRITICAL,
    }

    return level_mapping.get(level_name, logging.INFO)


def is_development_environment() -> bool:
    """Check if running in development environment."""
    return os.getenv("ENVIRONMENT", "development").lower() in ["development", "dev", "local"]


def configure_structured_logging() -> None:
    """
    Configure structured logging for the entire application.

    Development gets a console renderer (colored JSON on a TTY),
    production gets plain JSON lines on stderr.
    """
    log_level = get_log_level()
    is_dev = is_development_environment()
    use_colors = is_dev and sys.stderr.isatty()

    logging.basicConfig(
        level=log_level,
        format="%(message)s",
        stream=sys.stderr,
    )

    processors: list[Any] = [
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
    ]

    if is_dev:
        processors.append(ColoredJSONRenderer(colors=True) if use_colors else structlog.dev.ConsoleRenderer())
    else:
        processors.append(structlog.processors.JSONRenderer())

    structlog.configure(
        processors=processors,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    logging.getLogger().setLevel(log_level)

    logger = structlog.get_logger("pfile.logging")
    logger.info(
        "logging_configured",
        log_level=logging.getLevelName(log_level),
        environment="development" if is_dev else "production",
        colors_enabled=use_colors,
    )


def get_logger(name: str | None = None) -> Any:
    """
    Get a structured logger instance.

    Args:
        name: Logger name (optional, defaults to calling module)

    Returns:
        structlog.BoundLogger: Configured logger instance
    """
    if name is None:
        import inspect

        frame = inspect.currentframe()
        if frame and frame.f_back:
            name = frame.f_back.f_globals.get("__name__", "unknown")

    return structlog.get_logger(name)


def log_performance(operation: str, duration: float, **context: Any) -> None:
    """
    Log performance metrics.

    Args:
        operation: Name of the operation
        duration: Duration in seconds
        **context: Additional context information
    """
    logger = get_logger("pfile.performance")
    logger.info("performance_metric", operation=operation, duration_seconds=duration, **context)


def log_user_action(action: str, **context: Any) -> None:
    """
    Log user actions for the local audit trail.

    Args:
        action: Action performed
        **context: Additional context information
    """
    logger = get_logger("pfile.user_actions")
    logger.info("user_action", action=action, **context)


def log_error(error: Exception, context: dict[str, Any] | None = None) -> None:
    """
    Log errors with structured context.

    Args:
        error: Exception that occurred
        context: Additional context information
    """
    logger = get_logger("pfile.errors")

    error_context = {
        "error_type": type(error).__name__,
        "error_message": str(error),
    }

    if context:
        error_context.update(context)

    logger.error("error_occurred", **error_context, exc_info=error)


def log_security_event(event_type: str, **context: Any) -> None:
    """
    Log security-related events (key generation, import, decrypt failures).

    Args:
        event_type: Type of security event
        **context: Additional context information, never key material
    """
    logger = get_logger("pfile.security")
    logger.warning("security_event", event_type=event_type, **context)
