"""
Ключи httpx.Request.extensions, которыми builder передаёт клиенту
метаданные запроса.
"""

from typing import FrozenSet

import httpx

from ..utils.sanitizer import SENSITIVE_HEADERS

SENSITIVE_HEADERS_EXTENSION = "http_trace.sensitive_headers"
VERSION_EXTENSION = "http_trace.version"

DEFAULT_HTTP_VERSION = "HTTP/1.1"


def sensitive_headers(request: httpx.Request) -> FrozenSet[str]:
    """Явно помеченные sensitive заголовки плюс набор по умолчанию."""
    flagged = request.extensions.get(SENSITIVE_HEADERS_EXTENSION, ())
    return SENSITIVE_HEADERS | frozenset(name.lower() for name in flagged)


def requested_version(request: httpx.Request) -> str:
    """Версия протокола, запрошенная через builder.version()."""
    return request.extensions.get(VERSION_EXTENSION, DEFAULT_HTTP_VERSION)


def is_replayable(request: httpx.Request) -> bool:
    """Тело полностью в памяти и может быть отправлено повторно."""
    return isinstance(request.stream, httpx.ByteStream)
