"""
Structured logging for marketlens.

This module provides structured logging with support for both console and file output,
JSON and pretty formatting, and contextual information tracking.

Example Usage:
    ```python
    from marketlens.utils.logger import setup_logging, get_logger, add_context, LogConfig

    setup_logging(LogConfig(level="DEBUG", format="json"))

    logger = get_logger(__name__)
    logger.info("analysis_started", symbol="INFY", bars=250)

    with add_context(symbol="TCS", request_id="r-42"):
        logger.info("indicators_computed")
        logger.info("signal_generated", action="BUY")
    ```
"""

from contextlib import contextmanager
from dataclasses import dataclass
import logging
from pathlib import Path
import sys
from typing import TYPE_CHECKING, Any, Literal

import structlog
from structlog.types import EventDict, Processor

if TYPE_CHECKING:
    from marketlens.config.settings import LoggingSettings


@dataclass
class LogConfig:
    """Configuration for the logging system.

    Attributes:
        level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        format: Output format - "json" for production, "pretty" for development
        file_path: Optional path to log file. If None, only logs to console
        include_timestamp: Whether to include timestamps in logs
        include_caller_info: Whether to include caller file/line information
        console_output: Whether to output to console (default: True)
        float_precision: Decimal places kept for float values in log entries
        environment: Environment name (dev, staging, prod)
        app_version: Application version string
    """

    level: str = "INFO"
    format: Literal["json", "pretty"] = "pretty"
    file_path: str | None = None
    include_timestamp: bool = True
    include_caller_info: bool = True
    console_output: bool = True
    float_precision: int = 4
    environment: str = "dev"
    app_version: str = "0.1.0"

    @classmethod
    def from_settings(cls, settings: "LoggingSettings", **overrides: Any) -> "LogConfig":
        """Build a LogConfig from the LOG_* environment settings.

        Args:
            settings: Loaded logging settings
            **overrides: Any other LogConfig field, such as environment

        Returns:
            LogConfig carrying the settings level, format and file path
        """
        return cls(
            level=settings.level,
            format=settings.format,
            file_path=settings.file_path,
            **overrides,
        )


_installed_handlers: list[logging.Handler] = []


def add_app_info(logger: logging.Logger, method_name: str, event_dict: EventDict) -> EventDict:
    """Add application-level information to log entries.

    Args:
        logger: The logger instance
        method_name: The logging method name
        event_dict: The event dictionary

    Returns:
        Updated event dictionary with app info
    """
    event_dict["app"] = "marketlens"
    event_dict["environment"] = getattr(add_app_info, "environment", "unknown")
    event_dict["version"] = getattr(add_app_info, "version", "unknown")
    return event_dict


def round_floats(logger: logging.Logger, method_name: str, event_dict: EventDict) -> EventDict:
    """Round float values so indicator-heavy entries stay readable.

    Args:
        logger: The logger instance
        method_name: The logging method name
        event_dict: The event dictionary

    Returns:
        Updated event dictionary with rounded floats
    """
    precision = getattr(round_floats, "precision", 4)

    def round_value(value: Any) -> Any:
        if isinstance(value, float):
            return round(value, precision)
        if isinstance(value, dict):
            return {k: round_value(v) for k, v in value.items()}
        if isinstance(value, (list, tuple)):
            return type(value)(round_value(item) for item in value)
        return value

    return {key: round_value(value) for key, value in event_dict.items()}


def _build_processors(config: LogConfig) -> list[Processor]:
    processors: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        add_app_info,
        round_floats,
    ]

    if config.include_timestamp:
        processors.append(structlog.processors.TimeStamper(fmt="iso"))

    if config.include_caller_info:
        processors.append(
            structlog.processors.CallsiteParameterAdder(
                [
                    structlog.processors.CallsiteParameter.FILENAME,
                    structlog.processors.CallsiteParameter.LINENO,
                    structlog.processors.CallsiteParameter.FUNC_NAME,
                ]
            )
        )

    processors.append(structlog.processors.StackInfoRenderer())
    processors.append(structlog.processors.format_exc_info)
    return processors


def _formatter(config: LogConfig, renderer: Processor) -> structlog.stdlib.ProcessorFormatter:
    return structlog.stdlib.ProcessorFormatter(
        foreign_pre_chain=_build_processors(config),
        processors=[
            structlog.stdlib.ProcessorFormatter.remove_processors_meta,
            renderer,
        ],
    )


def setup_logging(config: LogConfig) -> None:
    """Setup the logging system with the given configuration.

    This function initializes structlog with appropriate processors and handlers
    based on the provided configuration. Console output follows
    ``config.format``; file output is always JSON.

    Args:
        config: LogConfig instance with logging configuration
    """
    add_app_info.environment = config.environment
    add_app_info.version = config.app_version
    round_floats.precision = config.float_precision

    level = getattr(logging, config.level.upper())

    root_logger = logging.getLogger()
    for handler in _installed_handlers:
        root_logger.removeHandler(handler)
        handler.close()
    _installed_handlers.clear()
    root_logger.setLevel(level)

    if config.format == "json":
        console_renderer: Processor = structlog.processors.JSONRenderer()
    else:
        console_renderer = structlog.dev.ConsoleRenderer(colors=True)

    if config.console_output:
        console_handler = logging.StreamHandler(sys.stdout)
        console_handler.setFormatter(_formatter(config, console_renderer))
        _installed_handlers.append(console_handler)

    if config.file_path:
        file_path = Path(config.file_path)
        file_path.parent.mkdir(parents=True, exist_ok=True)

        file_handler = logging.FileHandler(file_path)
        file_handler.setFormatter(_formatter(config, structlog.processors.JSONRenderer()))
        _installed_handlers.append(file_handler)

    for handler in _installed_handlers:
        handler.setLevel(level)
        root_logger.addHandler(handler)

    structlog.configure(
        processors=[
            *_build_processors(config),
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


def get_logger(name: str) -> structlog.BoundLogger:
    """Get a logger instance for the given name.

    Args:
        name: Logger name, typically __name__ of the calling module

    Returns:
        Configured structlog BoundLogger instance
    """
    return structlog.get_logger(name)


@contextmanager
def add_context(**kwargs: Any):
    """Bind contextual information to all log entries inside the block.

    Context is stored in structlog contextvars, so concurrent analyses running
    in different tasks or threads never see each other's values.

    Args:
        **kwargs: Key-value pairs to add as context

    Yields:
        None
    """
    with structlog.contextvars.bound_contextvars(**kwargs):
        yield


def set_log_level(level: str) -> None:
    """Change the logging level at runtime.

    Args:
        level: New log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
    """
    new_level = getattr(logging, level.upper())
    root_logger = logging.getLogger()
    root_logger.setLevel(new_level)
    for handler in root_logger.handlers:
        handler.setLevel(new_level)


def clear_context() -> None:
    """Clear all contextual variables bound in the current context."""
    structlog.contextvars.clear_contextvars()
