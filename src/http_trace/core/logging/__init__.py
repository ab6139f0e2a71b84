"""
Logging system for http-trace.

Example:
    >>> from http_trace.core.logging import LoggingConfig, configure_logging
    >>>
    >>> logger = configure_logging(LoggingConfig.create(level="DEBUG", format="json"))
    >>> # Span events from TraceClient now go to stderr as JSON
"""

from .config import LoggingConfig, LogLevel, LogFormat
from .logger import HTTPTraceLogger, get_logger, configure_logging
from .formatters import JSONFormatter, TextFormatter, ColoredFormatter, get_formatter
from .filters import ExtraFieldsFilter
from .handlers import build_handlers, rotating_file_handler, stream_handler

__all__ = [
    # Config
    "LoggingConfig",
    "LogLevel",
    "LogFormat",
    # Logger
    "HTTPTraceLogger",
    "get_logger",
    "configure_logging",
    # Formatters
    "JSONFormatter",
    "TextFormatter",
    "ColoredFormatter",
    "get_formatter",
    # Filters
    "ExtraFieldsFilter",
    # Handlers
    "build_handlers",
    "stream_handler",
    "rotating_file_handler",
]
