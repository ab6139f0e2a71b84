# src/http_trace/response.py
"""
Обёртка над httpx.Response вместе с её trace span.

Каждый терминальный метод (bytes, text, json, error_for_status при
не-2xx, aclose) потребляет тело ответа ровно один раз и закрывает span.
Повторный терминальный вызов поднимает ResponseConsumedError.
"""

import codecs
import json as jsonlib
import logging
from typing import Any, Optional, Tuple

import httpx
from pydantic import TypeAdapter

from .core.exceptions import (
    DecodeError,
    ResponseConsumedError,
    StatusError,
    classify_httpx_exception,
)
from .core.span import TraceSpan
from .utils.representation import UNREADABLE_MARKER, response_headers_repr, text_repr

logger = logging.getLogger(__name__)

STATUS_DESCRIPTION_LIMIT = 1024
TEXT_PREVIEW_LIMIT = 256


def _decode(content: bytes, encoding: str) -> str:
    """Lossy decode; unknown encoding labels fall back to UTF-8."""
    try:
        name = codecs.lookup(encoding).name
    except LookupError:
        name = "utf-8"
    if name == "utf-8":
        name = "utf-8-sig"
    return content.decode(name, errors="replace")


class TraceResponse:
    """
    Ответ, ожидающий потребления, и span его выполнения.

    Example:
        >>> response = await client.get("https://api.example.com/users").send()
        >>> response = await response.error_for_status()
        >>> users = await response.json()
    """

    def __init__(self, response: httpx.Response, span: TraceSpan):
        self._response = response
        self._span = span
        self._consumed = False

    # ==================== Accessors ====================

    @property
    def status_code(self) -> int:
        return self._response.status_code

    @property
    def headers(self) -> httpx.Headers:
        return self._response.headers

    @property
    def url(self) -> str:
        return str(self._response.url)

    @property
    def http_version(self) -> str:
        return self._response.http_version

    @property
    def span(self) -> TraceSpan:
        return self._span

    @property
    def consumed(self) -> bool:
        return self._consumed

    @property
    def is_success(self) -> bool:
        return 200 <= self.status_code < 300

    # ==================== Internals ====================

    def _ensure_unconsumed(self, operation: str) -> None:
        if self._consumed:
            raise ResponseConsumedError(
                f"{operation}() called on an already consumed response for {self.url}"
            )

    def _headers_repr(self) -> str:
        """Заголовки ответа для события; сбой представления не мешает чтению."""
        try:
            return response_headers_repr(self._response.headers)
        except Exception:
            logger.debug("Failed to render response headers for %s", self.url, exc_info=True)
            return UNREADABLE_MARKER

    def _take(self, operation: str) -> None:
        self._ensure_unconsumed(operation)
        self._consumed = True

    async def _read(self) -> bytes:
        """Прочитать тело; ошибки чтения становятся BodyReadError/TimeoutError."""
        span = self._span
        try:
            with span.in_scope():
                return await self._response.aread()
        except (httpx.HTTPError, httpx.StreamError) as e:
            span.record("error", True)
            span.record("error_description", str(e))
            raise classify_httpx_exception(e, self.url, reading_body=True) from e
        except BaseException:
            span.end()
            raise

    async def _bytes_imp(self, log_success: bool) -> Tuple[bytes, str]:
        headers = self._headers_repr()
        span = self._span

        try:
            content = await self._read()
        except Exception:
            span.event(logging.ERROR, "response body read failed", res_headers=headers)
            span.end()
            raise

        if log_success:
            span.event(logging.DEBUG, "response", headers=headers, size=len(content))

        return content, headers

    # ==================== Terminal operations ====================

    async def bytes(self) -> bytes:
        """
        Прочитать тело полностью.

        Raises:
            BodyReadError: Ошибка чтения тела
            TimeoutError: Таймаут чтения
        """
        self._take("bytes")
        content, _headers = await self._bytes_imp(log_success=True)
        self._span.end()
        return content

    async def text(self, default_encoding: str = "utf-8") -> str:
        """Тело как текст; charset из Content-Type или default_encoding."""
        return await self.text_with_charset(default_encoding)

    async def text_with_charset(self, default_encoding: str) -> str:
        """
        Тело как текст с явной кодировкой по умолчанию.

        Невалидные последовательности заменяются, а не поднимают ошибку.
        """
        self._take("text")
        content, headers = await self._bytes_imp(log_success=False)

        text = _decode(content, self._response.charset_encoding or default_encoding)

        self._span.event(
            logging.DEBUG,
            "response",
            headers=headers,
            size=len(content),
            text=text[:TEXT_PREVIEW_LIMIT],
        )
        self._span.end()
        return text

    async def json(self, type_: Optional[Any] = None) -> Any:
        """
        Разобрать тело как JSON.

        Args:
            type_: Целевой тип (pydantic модель, dataclass, List[int], ...).
                None - вернуть результат json.loads как есть.

        Raises:
            DecodeError: Невалидный JSON или несоответствие типу
            BodyReadError: Ошибка чтения тела

        Example:
            >>> user = await response.json(User)
        """
        adapter = TypeAdapter(type_) if type_ is not None else None

        self._take("json")
        span = self._span
        content, headers = await self._bytes_imp(log_success=False)

        try:
            value = jsonlib.loads(content)
            if adapter is not None:
                value = adapter.validate_python(value)
        except ValueError as e:
            preview = text_repr(content)
            span.record("error", True)
            span.record("error_description", str(e))
            span.event(
                logging.ERROR,
                "response decode failed",
                headers=headers,
                size=len(content),
                text=preview,
            )
            span.end()
            raise DecodeError(str(e), self.url, text=preview, cause=e) from e

        span.event(
            logging.DEBUG,
            "response",
            headers=headers,
            size=len(content),
            text=text_repr(content),
        )
        span.end()
        return value

    async def error_for_status(self) -> "TraceResponse":
        """
        Вернуть self для 2xx, иначе поднять StatusError.

        При не-2xx тело читается как текст, первые 1024 символа
        становятся error_description. Если тело прочитать не удалось,
        поднимается ошибка чтения, а не StatusError.

        Raises:
            StatusError: Статус вне 2xx
            BodyReadError: Не удалось прочитать тело ошибки
        """
        self._ensure_unconsumed("error_for_status")

        if self.is_success:
            return self

        self._take("error_for_status")
        status = self.status_code
        span = self._span

        span.record("error", True)
        span.event(
            logging.ERROR,
            "response status error",
            headers=self._headers_repr(),
        )

        try:
            content = await self._read()
        except Exception:
            span.end()
            raise

        text = _decode(content, self._response.charset_encoding or "utf-8")
        description = text[:STATUS_DESCRIPTION_LIMIT]

        span.record("error_description", description)
        span.end()

        raise StatusError(status, self.url, description)

    async def aclose(self) -> None:
        """Закрыть ответ без чтения тела. Повторный вызов ничего не делает."""
        if not self._consumed:
            self._consumed = True
            try:
                await self._response.aclose()
            finally:
                self._span.end()

    async def __aenter__(self) -> "TraceResponse":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.aclose()

    def __repr__(self) -> str:
        return f"<TraceResponse [{self.status_code}] {self.url}>"
