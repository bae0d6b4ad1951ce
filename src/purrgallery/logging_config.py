"""
Centralized logging configuration for purrgallery.

This module provides structured logging setup using structlog with
consistent formatting, levels, and processors across all components.
"""

import logging
import os
import sys
from typing import Any

import structlog

from . import __version__


class ColoredJSONRenderer:
    """JSON renderer with optional color support for development."""

    def __init__(self, colors: bool = False):
        self.colors = colors
        self.json_renderer = structlog.processors.JSONRenderer()

    def __call__(self, logger: Any, method_name: str, event_dict: dict[str, Any]) -> str:
        """Render log entry as JSON with optional colors."""
        json_output = self.json_renderer(logger, method_name, event_dict)

        if not self.colors:
            return str(json_output)

        level = event_dict.get("level", "").upper()
        color_codes = {
            "DEBUG": "\033[36m",
            "INFO": "\033[32m",
            "WARNING": "\033[33m",
            "ERROR": "\033[31m",
            "CRITICAL": "\033[35m",
        }

        reset_code = "\033[0m"
        color = color_codes.get(level, "")

        return f"{color}{str(json_output)}{reset_code}"


def get_log_level() -> int:
    """
    Get log level from environment variable or default to INFO.

    Returns:
        int: Log level constant from logging module
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


def add_app_context(logger: Any, method_name: str, event_dict: dict[str, Any]) -> dict[str, Any]:
    """Stamp every entry with the application name and version."""
    event_dict.setdefault("app", "purrgallery")
    event_dict.setdefault("app_version", __version__)
    return event_dict


def configure_structured_logging() -> None:
    """
    Configure structured logging for the entire application.

    Sets up structlog with processors and renderers chosen by the
    ENVIRONMENT variable: a console renderer in development, JSON lines
    in production.
    """
    # Determine environment settings
    log_level = get_log_level()
    is_dev = is_development_environment()
    use_colors = is_dev and sys.stderr.isatty()

    # Configure standard library logging
    logging.basicConfig(
        level=log_level,
        format="%(message)s",  # structlog renders the message
        stream=sys.stderr,
    )

    # Build processor chain
    processors: list[Any] = [
        # Drop entries below the configured level
        structlog.stdlib.filter_by_level,
        # Logger name and level
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        # Application name and version
        add_app_context,
        # %-style positional arguments
        structlog.stdlib.PositionalArgumentsFormatter(),
        # ISO timestamp
        structlog.processors.TimeStamper(fmt="iso"),
        # Stack info and exception tracebacks
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        # Decode byte strings
        structlog.processors.UnicodeDecoder(),
    ]

    if is_dev:
        # Development: readable console output, JSON with colors on a terminal
        processors.append(structlog.dev.ConsoleRenderer() if not use_colors else ColoredJSONRenderer(colors=True))
    else:
        # Production: one JSON object per line
        processors.append(structlog.processors.JSONRenderer())

    # Configure structlog
    structlog.configure(
        processors=processors,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    # Set up root logger
    root_logger = logging.getLogger()
    root_logger.setLevel(log_level)

    # Log configuration info
    logger = structlog.get_logger("purrgallery.logging")
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
    logger = get_logger("purrgallery.performance")
    logger.info("performance_metric", operation=operation, duration_seconds=duration, **context)


def log_user_action(user_id: str, action: str, **context: Any) -> None:
    """
    Log user actions for audit trail.

    Args:
        user_id: User identifier
        action: Action performed
        **context: Additional context information
    """
    logger = get_logger("purrgallery.user_actions")
    logger.info("user_action", user_id=user_id, action=action, **context)


def log_error(error: Exception, context: dict[str, Any] | None = None) -> None:
    """
    Log errors with structured context.

    Args:
        error: Exception that occurred
        context: Additional context information
    """
    logger = get_logger("purrgallery.errors")

    error_context = {
        "error_type": type(error).__name__,
        "error_message": str(error),
    }

    if context:
        error_context.update(context)

    logger.error("error_occurred", **error_context, exc_info=error)
