"""
Logging configuration for http-trace.

Request/response events of TraceSpan are emitted at DEBUG, retry
decisions at WARNING, so the level decides how much of a trace is kept.
"""

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional, Dict, Any


class LogLevel(str, Enum):
    """Log levels."""
    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"

    @property
    def as_int(self) -> int:
        return logging.getLevelName(self.value)


class LogFormat(str, Enum):
    """Log output formats."""
    JSON = "json"
    TEXT = "text"
    COLORED = "colored"


STREAMS = ("stdout", "stderr")


@dataclass(frozen=True)
class LoggingConfig:
    """
    Куда и в каком виде писать события trace.

    Attributes:
        level: Минимальный уровень для логгера ``http_trace``
        format: json / text / colored
        stream: "stdout", "stderr" или None (без вывода в поток)
        file_path: Файл с ротацией; None - без файла
        rotate_bytes: Размер файла до ротации
        rotate_backups: Сколько старых файлов хранить
        propagate: Передавать записи в корневой логгер приложения
        extra_fields: Статические поля каждой записи (service, env, ...)

    Example:
        >>> config = LoggingConfig.create(level="DEBUG", format="json", stream=None,
        ...                               file_path="/var/log/app/trace.log")
    """

    level: LogLevel = LogLevel.INFO
    format: LogFormat = LogFormat.TEXT
    stream: Optional[str] = "stderr"
    file_path: Optional[str] = None
    rotate_bytes: int = 10 * 1024 * 1024  # 10MB
    rotate_backups: int = 5
    propagate: bool = False
    extra_fields: Dict[str, Any] = field(default_factory=dict)

    def __post_init__(self):
        if self.stream is not None and self.stream not in STREAMS:
            raise ValueError(f"stream must be one of {STREAMS} or None, got {self.stream!r}")
        if self.rotate_bytes <= 0:
            raise ValueError("rotate_bytes must be positive")
        if self.rotate_backups < 0:
            raise ValueError("rotate_backups must be non-negative")

    @property
    def has_output(self) -> bool:
        """Есть ли хоть один собственный handler."""
        return self.stream is not None or self.file_path is not None

    @classmethod
    def create(
        cls,
        level: str = "INFO",
        format: str = "text",
        stream: Optional[str] = "stderr",
        file_path: Optional[str] = None,
        **kwargs: Any
    ) -> "LoggingConfig":
        """
        LoggingConfig из строковых значений (регистр не важен).

        Example:
            >>> LoggingConfig.create(level="debug", format="JSON", propagate=True)
        """
        return cls(
            level=LogLevel(level.upper()),
            format=LogFormat(format.lower()),
            stream=stream,
            file_path=file_path,
            **kwargs
        )
