"""
Иерархия исключений http-trace.

Таксономия:
- TransportError - сеть, таймауты, сборка запроса, чтение тела ответа
- DecodeError - тело ответа не удалось десериализовать
- StatusError - ответ с не-2xx статусом

Решение о повторе принимает http_trace.core.classifier, а не сами классы.
"""

from typing import Optional

import httpx

# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# BASE
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━

class TraceClientError(Exception):
    """Базовое исключение http-trace."""

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)

# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# TRANSPORT
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━

class TransportError(TraceClientError):
    """
    Ошибка транспорта.

    Args:
        message: Сообщение об ошибке
        url: URL запроса
        cause: Исходное исключение httpx (если есть)
    """

    def __init__(
        self,
        message: str,
        url: Optional[str] = None,
        cause: Optional[BaseException] = None
    ):
        self.url = url
        self.cause = cause

        full_message = message
        if url:
            full_message += f" (url: {url})"
        super().__init__(full_message)

class ConnectionError(TransportError):
    """
    Не удалось установить соединение.

    Примеры:
    - Connection refused
    - DNS resolution failed
    - Ошибка прокси
    """
    pass

class TimeoutError(TransportError):
    """
    Таймаут запроса.

    Args:
        message: Сообщение об ошибке
        url: URL запроса
        timeout_type: Тип таймаута ('connect', 'read', 'write', 'pool')
        cause: Исходное исключение
    """

    def __init__(
        self,
        message: str,
        url: Optional[str] = None,
        timeout_type: Optional[str] = None,
        cause: Optional[BaseException] = None
    ):
        self.timeout_type = timeout_type

        msg = message
        if timeout_type:
            msg += f" ({timeout_type} timeout)"

        super().__init__(msg, url, cause)

class InvalidRequestError(TransportError):
    """
    Запрос не удалось собрать.

    Примеры: невалидный URL, неподдерживаемая схема,
    недопустимые символы в заголовке.
    """
    pass

class BodyReadError(TransportError):
    """Ошибка чтения тела ответа."""
    pass

# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# DECODE / STATUS
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━

class DecodeError(TraceClientError):
    """
    Тело ответа не удалось разобрать в нужную структуру.

    Args:
        message: Описание ошибки парсера
        url: URL
        text: Превью тела ответа
        cause: Исходное исключение
    """

    def __init__(
        self,
        message: str,
        url: Optional[str] = None,
        text: str = "",
        cause: Optional[BaseException] = None
    ):
        self.url = url
        self.text = text
        self.cause = cause
        super().__init__(message)

class StatusError(TraceClientError):
    """
    Ответ со статусом вне диапазона 2xx.

    Args:
        status_code: HTTP статус код
        url: URL
        description: Начало тела ответа (до 1024 символов)
    """

    def __init__(self, status_code: int, url: Optional[str] = None, description: str = ""):
        self.status_code = status_code
        self.url = url
        self.description = description

        msg = f"HTTP {status_code} error"
        if url:
            msg += f" for {url}"

        super().__init__(msg)

# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# СПЕЦИАЛЬНЫЕ
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━

class ResponseConsumedError(RuntimeError):
    """Повторный терминальный вызов на уже прочитанном TraceResponse."""
    pass

# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# УТИЛИТЫ
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━

_TIMEOUT_TYPES = (
    (httpx.ConnectTimeout, "connect"),
    (httpx.ReadTimeout, "read"),
    (httpx.WriteTimeout, "write"),
    (httpx.PoolTimeout, "pool"),
)


def classify_httpx_exception(
    exc: BaseException,
    url: Optional[str] = None,
    reading_body: bool = False
) -> TransportError:
    """
    Конвертировать исключения httpx в TransportError.

    Args:
        exc: Исключение из httpx (или ошибка сборки запроса)
        url: URL запроса
        reading_body: Ошибка возникла при чтении тела ответа

    Returns:
        Подкласс TransportError с правильной классификацией

    Examples:
        >>> err = classify_httpx_exception(httpx.ReadTimeout("timed out"), "https://example.com")
        >>> assert isinstance(err, TimeoutError)
        >>> assert err.timeout_type == "read"
    """
    message = str(exc) or type(exc).__name__

    if isinstance(exc, httpx.TimeoutException):
        timeout_type = None
        for exc_type, name in _TIMEOUT_TYPES:
            if isinstance(exc, exc_type):
                timeout_type = name
                break
        return TimeoutError(message, url, timeout_type=timeout_type, cause=exc)

    elif isinstance(exc, (httpx.ConnectError, httpx.ProxyError)):
        return ConnectionError(message, url, cause=exc)

    elif isinstance(exc, (httpx.InvalidURL, httpx.UnsupportedProtocol, httpx.LocalProtocolError)):
        return InvalidRequestError(message, url, cause=exc)

    elif reading_body or isinstance(exc, (httpx.StreamError, httpx.DecodingError)):
        return BodyReadError(message, url, cause=exc)

    elif isinstance(exc, (TypeError, ValueError)):
        # Ошибки сборки запроса (невалидные заголовки, тело и т.п.)
        return InvalidRequestError(message, url, cause=exc)

    else:
        return TransportError(message, url, cause=exc)
