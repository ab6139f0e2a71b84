"""
Система конфигурации для http-trace.

Все конфиги immutable (frozen dataclasses) для безопасного использования
из нескольких задач одновременно.
"""

from dataclasses import dataclass, field, replace
from typing import Optional, Tuple, Dict, Union, TYPE_CHECKING, Mapping
from types import MappingProxyType

import httpx

if TYPE_CHECKING:
    from .logging import LoggingConfig

# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# TIMEOUT CONFIG
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━

@dataclass(frozen=True)
class TimeoutConfig:
    """
    Конфигурация таймаутов транспорта.

    Args:
        connect: Таймаут подключения (сек)
        read: Таймаут чтения данных (сек)
        write: Таймаут записи (сек, по умолчанию = read)
        pool: Таймаут ожидания соединения из пула (сек, по умолчанию = connect)

    Examples:
        >>> TimeoutConfig(connect=5, read=30)
        >>> TimeoutConfig(connect=3, read=60, pool=10)
    """
    connect: float = 5
    read: float = 30
    write: Optional[float] = None
    pool: Optional[float] = None

    def __post_init__(self):
        """Валидация."""
        if self.connect <= 0:
            raise ValueError("connect timeout must be positive")
        if self.read <= 0:
            raise ValueError("read timeout must be positive")
        if self.write is not None and self.write <= 0:
            raise ValueError("write timeout must be positive")
        if self.pool is not None and self.pool <= 0:
            raise ValueError("pool timeout must be positive")

    def as_httpx(self) -> httpx.Timeout:
        """Вернуть как httpx.Timeout."""
        return httpx.Timeout(
            connect=self.connect,
            read=self.read,
            write=self.write if self.write is not None else self.read,
            pool=self.pool if self.pool is not None else self.connect,
        )

# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# RETRY POLICY
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━

@dataclass(frozen=True)
class RetryPolicy:
    """
    Политика повторов для send_and_retry.

    Args:
        max_attempts: Количество повторов ПОСЛЕ первой попытки
            (всего выполнений = 1 + max_attempts)
        delay: Фиксированная пауза между попытками (сек)

    Examples:
        >>> RetryPolicy(max_attempts=3, delay=0.5)
        >>> RetryPolicy()  # без повторов
    """
    max_attempts: int = 0
    delay: float = 0.0

    def __post_init__(self):
        """Валидация."""
        if self.max_attempts < 0:
            raise ValueError("max_attempts must be non-negative")
        if self.delay < 0:
            raise ValueError("delay must be non-negative")

    @property
    def total_attempts(self) -> int:
        """Максимум выполнений запроса, включая первое."""
        return self.max_attempts + 1

# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# MAIN CONFIG
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━

def _freeze_dict(d: Optional[Dict[str, str]]) -> Mapping[str, str]:
    """
    Convert dict to immutable MappingProxyType.

    Example:
        >>> frozen = _freeze_dict({"X-API-Key": "secret"})
        >>> frozen["X-New"] = "value"  # Raises TypeError
    """
    if d is None:
        return MappingProxyType({})
    return MappingProxyType(dict(d))

@dataclass(frozen=True)
class TraceClientConfig:
    """
    Главная конфигурация TraceClient.

    Args:
        base_url: Базовый URL (опционально)
        headers: Дефолтные заголовки
        timeout: Конфигурация таймаутов
        retry: Политика повторов по умолчанию для send_and_retry()
        follow_redirects: Следовать редиректам (решает транспорт)
        verify_ssl: Проверять SSL сертификаты
        http2: Разрешить HTTP/2 (нужен пакет h2, extra "http2")
        telemetry: Создавать OpenTelemetry метрики выполнения
        tracer_name: Имя OpenTelemetry tracer/meter
        logging: Конфигурация логирования (None = не трогать логгеры)

    Examples:
        >>> config = TraceClientConfig(base_url="https://api.example.com")
        >>> config = TraceClientConfig.create(timeout=60, max_retries=2, retry_delay=0.5)
    """
    base_url: Optional[str] = None
    headers: Mapping[str, str] = field(default_factory=lambda: MappingProxyType({}))
    timeout: TimeoutConfig = field(default_factory=TimeoutConfig)
    retry: RetryPolicy = field(default_factory=RetryPolicy)
    follow_redirects: bool = False
    verify_ssl: bool = True
    http2: bool = False
    telemetry: bool = False
    tracer_name: str = "http_trace"
    logging: Optional['LoggingConfig'] = None

    def __post_init__(self):
        """Normalize base_url and freeze mutable dicts."""
        if not isinstance(self.headers, MappingProxyType):
            object.__setattr__(self, 'headers', _freeze_dict(self.headers))

        if self.base_url:
            normalized = self.base_url.rstrip('/')
            if normalized != self.base_url:
                object.__setattr__(self, 'base_url', normalized)

        if not self.tracer_name:
            raise ValueError("tracer_name must not be empty")

    @classmethod
    def create(
        cls,
        base_url: Optional[str] = None,
        timeout: Union[float, Tuple[float, float], TimeoutConfig] = 30,
        max_retries: int = 0,
        retry_delay: float = 0.0,
        headers: Optional[Dict[str, str]] = None,
        follow_redirects: bool = False,
        verify_ssl: bool = True,
        telemetry: bool = False,
        logging: Optional['LoggingConfig'] = None,
        **kwargs
    ) -> 'TraceClientConfig':
        """
        Удобный конструктор конфигурации.

        Args:
            base_url: Базовый URL
            timeout: Таймаут (число, (connect, read) или TimeoutConfig)
            max_retries: Количество повторов для send_and_retry()
            retry_delay: Пауза между повторами (сек)
            headers: Заголовки
            follow_redirects: Следовать редиректам
            verify_ssl: Проверять SSL
            **kwargs: Остальные поля TraceClientConfig (http2, tracer_name, ...)
            telemetry: Включить метрики
            logging: Конфигурация логирования

        Examples:
            >>> config = TraceClientConfig.create(timeout=60)
            >>> config = TraceClientConfig.create(timeout=(5, 60), max_retries=3, retry_delay=1.0)
        """
        return cls(
            base_url=base_url,
            headers=headers or {},
            timeout=_to_timeout_config(timeout),
            retry=RetryPolicy(max_attempts=max_retries, delay=retry_delay),
            follow_redirects=follow_redirects,
            verify_ssl=verify_ssl,
            telemetry=telemetry,
            logging=logging,
            **kwargs
        )

    def with_timeout(self, timeout: Union[float, Tuple[float, float], TimeoutConfig]) -> 'TraceClientConfig':
        """
        Создать новый конфиг с изменённым timeout.

        Example:
            >>> new_config = config.with_timeout((3, 60))
        """
        return replace(self, timeout=_to_timeout_config(timeout))

    def with_retry(self, max_attempts: int, delay: float = 0.0) -> 'TraceClientConfig':
        """
        Создать новый конфиг с другой политикой повторов.

        Example:
            >>> new_config = config.with_retry(3, delay=0.2)
        """
        return replace(self, retry=RetryPolicy(max_attempts=max_attempts, delay=delay))

    def with_headers(self, headers: Dict[str, str]) -> 'TraceClientConfig':
        """
        Создать новый конфиг с дополнительными заголовками.

        Example:
            >>> new_config = config.with_headers({"X-API-Key": "secret"})
        """
        merged = dict(self.headers)
        merged.update(headers)
        return replace(self, headers=_freeze_dict(merged))


def _to_timeout_config(timeout: Union[float, Tuple[float, float], TimeoutConfig]) -> TimeoutConfig:
    if isinstance(timeout, TimeoutConfig):
        return timeout
    if isinstance(timeout, tuple):
        return TimeoutConfig(connect=timeout[0], read=timeout[1])
    return TimeoutConfig(connect=5, read=timeout)
