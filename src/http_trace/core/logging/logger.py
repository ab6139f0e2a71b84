"""
Main logger for http-trace.

HTTPTraceLogger owns the handlers of the ``http_trace`` logger. Library
modules log through ``logging.getLogger(__name__)`` and propagate into it,
so configuring it once captures span events, retry decisions and
transport failures.
"""

import logging
from typing import Optional, Any

from .config import LoggingConfig
from .formatters import get_formatter
from .filters import ExtraFieldsFilter
from .handlers import build_handlers
from ...utils.sanitizer import mask_sensitive_data

ROOT_LOGGER_NAME = "http_trace"


class HTTPTraceLogger:
    """
    Configured logger for http-trace.

    Features:
    - stdout/stderr stream and rotating file handlers
    - Optional propagation into the application root logger
    - JSON, text and colored formatters
    - Static extra fields
    - Sensitive data masking for structured fields

    Example:
        >>> logger = HTTPTraceLogger(LoggingConfig.create(level="DEBUG", format="json"))
        >>> logger.info("Client started", base_url="https://api.com")
    """

    def __init__(self, config: Optional[LoggingConfig] = None, name: str = ROOT_LOGGER_NAME):
        """
        Args:
            config: Logging configuration (uses defaults if None)
            name: Logger name
        """
        self.config = config or LoggingConfig()
        self.name = name
        self._closed = False

        self._logger = logging.getLogger(name)
        self._logger.setLevel(self.config.level.as_int)
        self._logger.propagate = self.config.propagate

        # Reinitialisation replaces previous handlers
        self._close_handlers()

        filters = []
        if self.config.extra_fields:
            filters.append(ExtraFieldsFilter(self.config.extra_fields))

        formatter = get_formatter(self.config.format.value)
        for handler in build_handlers(self.config, formatter, filters):
            self._logger.addHandler(handler)

    @property
    def logger(self) -> logging.Logger:
        """Underlying stdlib logger."""
        return self._logger

    def _log(self, level: int, message: str, kwargs: dict) -> None:
        self._logger.log(level, message, extra=mask_sensitive_data(kwargs))

    def debug(self, message: str, **kwargs: Any) -> None:
        """Log debug message with extra fields."""
        self._log(logging.DEBUG, message, kwargs)

    def info(self, message: str, **kwargs: Any) -> None:
        """Log info message with extra fields."""
        self._log(logging.INFO, message, kwargs)

    def warning(self, message: str, **kwargs: Any) -> None:
        """Log warning message with extra fields."""
        self._log(logging.WARNING, message, kwargs)

    def error(self, message: str, **kwargs: Any) -> None:
        """Log error message with extra fields."""
        self._log(logging.ERROR, message, kwargs)

    def _close_handlers(self) -> None:
        for handler in self._logger.handlers[:]:
            try:
                handler.flush()
                handler.close()
            except Exception:
                # Closing a broken stream must not break reconfiguration
                pass
            self._logger.removeHandler(handler)

    def close(self) -> None:
        """
        Flush and close all handlers. Idempotent.

        Example:
            >>> with HTTPTraceLogger(config) as logger:
            ...     logger.info("Processing...")
        """
        if self._closed:
            return

        self._close_handlers()
        self._closed = True

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
        return False


_default_logger: Optional[HTTPTraceLogger] = None


def get_logger(config: Optional[LoggingConfig] = None) -> HTTPTraceLogger:
    """
    Get global logger instance, creating it on first call.

    Example:
        >>> logger = get_logger()
        >>> logger.info("Hello")
    """
    global _default_logger

    if _default_logger is None:
        _default_logger = HTTPTraceLogger(config)

    return _default_logger


def configure_logging(config: LoggingConfig) -> HTTPTraceLogger:
    """
    Configure the global ``http_trace`` logger, replacing the previous one.

    Example:
        >>> logger = configure_logging(LoggingConfig.create(level="DEBUG", format="colored"))
    """
    global _default_logger

    if _default_logger is not None:
        _default_logger.close()

    _default_logger = HTTPTraceLogger(config)
    return _default_logger
