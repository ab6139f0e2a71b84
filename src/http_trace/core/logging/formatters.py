"""
Log formatters for different output formats.

Trace events carry their fields (method, url, status, headers, body, ...)
as LogRecord attributes; every formatter appends them.
"""

import json
import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Tuple

# Standard LogRecord attributes, never treated as extra fields
_RECORD_FIELDS = frozenset({
    'name', 'msg', 'args', 'created', 'filename', 'funcName',
    'levelname', 'levelno', 'lineno', 'module', 'msecs',
    'message', 'pathname', 'process', 'processName', 'relativeCreated',
    'thread', 'threadName', 'exc_info', 'exc_text', 'stack_info',
    'asctime', 'taskName',
})


def extra_fields(record: logging.LogRecord) -> List[Tuple[str, Any]]:
    """Fields passed through ``extra=`` in insertion order."""
    return [
        (key, value)
        for key, value in record.__dict__.items()
        if key not in _RECORD_FIELDS and not key.startswith('_')
    ]


class JSONFormatter(logging.Formatter):
    """
    JSON formatter for structured logging.

    Example output:
        {"timestamp": "2024-01-15T10:30:45.123000+00:00", "level": "DEBUG",
         "logger": "http_trace.core.span", "message": "request",
         "method": "GET", "url": "https://api.com", "headers": "accept: */*"}
    """

    def format(self, record: logging.LogRecord) -> str:
        """Format log record as JSON."""
        log_data: Dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        for key, value in extra_fields(record):
            log_data[key] = value

        if record.exc_info:
            log_data['exception'] = self.formatException(record.exc_info)

        return json.dumps(log_data, default=str)


class TextFormatter(logging.Formatter):
    """
    Plain text formatter.

    Format: [timestamp] [level] [logger] message key=value ...

    Multi-line values (headers, bodies) are rendered with repr() so one
    event stays on one line.
    """

    def __init__(self):
        super().__init__(
            fmt='[%(asctime)s] [%(levelname)s] [%(name)s] %(message)s',
            datefmt='%Y-%m-%d %H:%M:%S'
        )

    def _append_fields(self, base_msg: str, record: logging.LogRecord) -> str:
        parts = []
        for key, value in extra_fields(record):
            if isinstance(value, str) and ('\n' in value or ' ' in value):
                value = repr(value)
            parts.append(f"{key}={value}")

        if parts:
            base_msg += " " + " ".join(parts)
        return base_msg

    def format(self, record: logging.LogRecord) -> str:
        """Format log record as text."""
        return self._append_fields(super().format(record), record)


class ColoredFormatter(TextFormatter):
    """
    Colored text formatter for terminal output.

    - DEBUG: Cyan
    - INFO: Green
    - WARNING: Yellow
    - ERROR: Red
    - CRITICAL: Red + Bold
    """

    COLORS = {
        'DEBUG': '\033[36m',
        'INFO': '\033[32m',
        'WARNING': '\033[33m',
        'ERROR': '\033[31m',
        'CRITICAL': '\033[1;31m',
        'RESET': '\033[0m'
    }

    def format(self, record: logging.LogRecord) -> str:
        """Format log record with colors."""
        levelname = record.levelname
        if levelname in self.COLORS:
            record.levelname = f"{self.COLORS[levelname]}{levelname}{self.COLORS['RESET']}"

        try:
            return super().format(record)
        finally:
            record.levelname = levelname


def get_formatter(format_type: str) -> logging.Formatter:
    """
    Get formatter by type.

    Raises:
        ValueError: If format_type is unknown

    Example:
        >>> formatter = get_formatter("json")
    """
    formatters = {
        "json": JSONFormatter,
        "text": TextFormatter,
        "colored": ColoredFormatter,
    }

    formatter_class = formatters.get(format_type.lower())
    if not formatter_class:
        raise ValueError(
            f"Unknown format type: {format_type}. "
            f"Available: {', '.join(formatters.keys())}"
        )

    return formatter_class()
