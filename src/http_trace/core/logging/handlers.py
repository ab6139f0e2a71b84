"""
Handlers of the ``http_trace`` logger, built from LoggingConfig.
"""

import logging
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import List, Sequence

from .config import LoggingConfig


def stream_handler(name: str) -> logging.StreamHandler:
    """StreamHandler на sys.stdout или sys.stderr."""
    return logging.StreamHandler(sys.stdout if name == "stdout" else sys.stderr)


def rotating_file_handler(path: str, rotate_bytes: int, rotate_backups: int) -> RotatingFileHandler:
    """
    RotatingFileHandler в utf-8.

    Родительская директория создаётся при необходимости;
    старые файлы: trace.log.1 ... trace.log.N.
    """
    Path(path).parent.mkdir(parents=True, exist_ok=True)
    return RotatingFileHandler(
        filename=path,
        maxBytes=rotate_bytes,
        backupCount=rotate_backups,
        encoding='utf-8'
    )


def build_handlers(
    config: LoggingConfig,
    formatter: logging.Formatter,
    filters: Sequence[logging.Filter] = ()
) -> List[logging.Handler]:
    """
    Все handlers для конфигурации: поток, затем файл.

    Example:
        >>> handlers = build_handlers(LoggingConfig.create(stream="stdout"), TextFormatter())
    """
    handlers: List[logging.Handler] = []
    if config.stream is not None:
        handlers.append(stream_handler(config.stream))
    if config.file_path is not None:
        handlers.append(rotating_file_handler(
            config.file_path, config.rotate_bytes, config.rotate_backups
        ))

    for handler in handlers:
        handler.setLevel(config.level.as_int)
        handler.setFormatter(formatter)
        for f in filters:
            handler.addFilter(f)
    return handlers
