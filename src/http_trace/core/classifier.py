"""
Классификация ошибок для решения о повторе.

Все функции чистые и тотальные: принимают любое исключение,
ничего не меняют и не кешируют.
"""

from typing import Optional

from .exceptions import (
    ConnectionError,
    InvalidRequestError,
    StatusError,
    TimeoutError,
)


def is_connect(error: BaseException) -> bool:
    """Ошибка установки соединения (включая connect timeout)."""
    if isinstance(error, ConnectionError):
        return True
    return isinstance(error, TimeoutError) and error.timeout_type == "connect"


def is_request(error: BaseException) -> bool:
    """Запрос сформирован некорректно на стороне клиента."""
    return isinstance(error, InvalidRequestError)


def is_timeout(error: BaseException) -> bool:
    """Таймаут любого типа."""
    return isinstance(error, TimeoutError)


def is_status(error: BaseException) -> bool:
    """Ответ с не-2xx статусом."""
    return isinstance(error, StatusError)


def status_code(error: BaseException) -> Optional[int]:
    """HTTP статус, если ошибка его несёт."""
    if isinstance(error, StatusError):
        return error.status_code
    return None


def is_server_error(code: Optional[int]) -> bool:
    """5xx."""
    return code is not None and 500 <= code < 600


def is_retryable(error: BaseException) -> bool:
    """
    Можно ли повторить попытку после этой ошибки.

    Повторяем при ошибках соединения, таймаутах и 5xx.
    Всё остальное (4xx, ошибки декодирования, сборки запроса) терминально.

    Examples:
        >>> is_retryable(StatusError(503, "https://example.com"))
        True
        >>> is_retryable(StatusError(404, "https://example.com"))
        False
    """
    return is_connect(error) or is_timeout(error) or is_server_error(status_code(error))
