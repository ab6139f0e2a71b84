# src/http_trace/request_builder.py
"""
Функциональный builder запроса и стратегии повторов.

Каждый setter возвращает новый builder, исходный не меняется, поэтому
один и тот же builder можно отправлять повторно (если тело в памяти).

Стратегии:
- send(): одна попытка
- send_and_retry(policy): до 1 + max_attempts попыток, каждая через
  клон builder'а и error_for_status()
- send_and_retry_one(retry_if): не более двух попыток одного собранного
  запроса, без error_for_status()
"""

import asyncio
import base64
import copy
import logging
import re
from typing import (
    TYPE_CHECKING,
    Any,
    Dict,
    FrozenSet,
    Iterable,
    List,
    Mapping,
    Optional,
    Tuple,
    Union,
)

import httpx
from opentelemetry.trace import Span

from .core.classifier import is_retryable
from .core.config import RetryPolicy, TimeoutConfig
from .core.exceptions import InvalidRequestError, TraceClientError
from .core.extensions import SENSITIVE_HEADERS_EXTENSION, VERSION_EXTENSION
from .core.retry_engine import RetryEngine
from .core.span import operation_span

if TYPE_CHECKING:
    from .client import TraceClient
    from .response import TraceResponse

logger = logging.getLogger(__name__)

HTTP_VERSIONS = frozenset({"HTTP/0.9", "HTTP/1.0", "HTTP/1.1", "HTTP/2", "HTTP/3"})

# RFC 7230 token
_HEADER_NAME_RE = re.compile(r"^[!#$%&'*+\-.^_`|~0-9A-Za-z]+$")
_HEADER_VALUE_FORBIDDEN = ("\r", "\n", "\0")

_UNSET = object()

HeaderValue = Union[str, bytes]
QueryParams = Union[Mapping[str, Any], Iterable[Tuple[str, Any]]]


def _header_key(name: Any) -> str:
    """Имя заголовка для сравнения: str в нижнем регистре, bytes как latin-1."""
    if isinstance(name, bytes):
        name = name.decode("latin-1")
    return str(name).lower()


def _header_error(name: Any, value: Any) -> Optional[str]:
    """Описание проблемы с заголовком или None, если он валиден."""
    if isinstance(name, bytes):
        name = name.decode("latin-1")
    if not isinstance(name, str) or not _HEADER_NAME_RE.match(name):
        return f"invalid header name: {name!r}"

    if isinstance(value, bytes):
        value = value.decode("latin-1")
    if not isinstance(value, str):
        return f"invalid value type for header {name!r}: {type(value).__name__}"
    if any(ch in value for ch in _HEADER_VALUE_FORBIDDEN):
        return f"invalid value for header {name!r}"

    return None


def _query_items(params: QueryParams) -> List[Tuple[str, Any]]:
    items = params.items() if isinstance(params, Mapping) else params
    result = []
    for key, value in items:
        if isinstance(value, (list, tuple)):
            result.extend((key, v) for v in value)
        else:
            result.append((key, value))
    return result


class TraceRequestBuilder:
    """
    Builder одного запроса, привязанный к TraceClient.

    Example:
        >>> response = await (
        ...     client.post("/orders")
        ...     .bearer_auth(token)
        ...     .json({"item": 42})
        ...     .send_and_retry(RetryPolicy(max_attempts=3, delay=0.5))
        ... )
    """

    def __init__(self, client: "TraceClient", method: str, url: str):
        self._client = client
        self._method = method.upper()
        self._url = url

        self._headers: Tuple[Tuple[HeaderValue, HeaderValue], ...] = ()
        self._sensitive: FrozenSet[str] = frozenset()
        self._params: Tuple[Tuple[str, Any], ...] = ()

        # Тело: ровно один из content / data / json, files только с data
        self._content: Optional[Any] = None
        self._data: Optional[Dict[str, Any]] = None
        self._files: Optional[Any] = None
        self._json: Any = _UNSET

        self._timeout: Optional[Union[float, Tuple[float, float], TimeoutConfig]] = None
        self._version: Optional[str] = None

        # Ошибка сборки откладывается до терминального вызова
        self._error: Optional[InvalidRequestError] = None

    def _replace(self, **changes: Any) -> "TraceRequestBuilder":
        clone = copy.copy(self)
        for name, value in changes.items():
            setattr(clone, name, value)
        return clone

    def _with_error(self, message: str) -> "TraceRequestBuilder":
        if self._error is not None:
            return self
        return self._replace(_error=InvalidRequestError(message, url=self._url))

    def _without_body(self) -> Dict[str, Any]:
        return {"_content": None, "_data": None, "_files": None, "_json": _UNSET}

    # ==================== Properties ====================

    @property
    def method(self) -> str:
        return self._method

    @property
    def url(self) -> str:
        return self._url

    @property
    def sensitive_headers(self) -> FrozenSet[str]:
        return self._sensitive

    # ==================== Headers ====================

    def header(
        self,
        name: HeaderValue,
        value: HeaderValue,
        sensitive: bool = False,
    ) -> "TraceRequestBuilder":
        """
        Добавить заголовок (повторное имя добавляет ещё одно значение).

        Args:
            name: Имя заголовка
            value: Значение
            sensitive: Не показывать значение в логах и trace событиях
        """
        problem = _header_error(name, value)
        if problem is not None:
            return self._with_error(problem)

        changes: Dict[str, Any] = {"_headers": self._headers + ((name, value),)}
        if sensitive:
            changes["_sensitive"] = self._sensitive | {_header_key(name)}
        return self._replace(**changes)

    def headers(self, headers: Mapping[str, HeaderValue]) -> "TraceRequestBuilder":
        """Заменить заголовки с теми же именами значениями из mapping."""
        names = {_header_key(name) for name in headers}
        builder = self._replace(
            _headers=tuple(
                (name, value) for name, value in self._headers
                if _header_key(name) not in names
            )
        )
        for name, value in headers.items():
            builder = builder.header(name, value)
        return builder

    def basic_auth(self, username: Any, password: Optional[Any] = None) -> "TraceRequestBuilder":
        """Authorization: Basic, значение помечается sensitive."""
        userpass = f"{username}:" if password is None else f"{username}:{password}"
        token = base64.b64encode(userpass.encode("utf-8")).decode("ascii")
        return self.header("Authorization", f"Basic {token}", sensitive=True)

    def bearer_auth(self, token: Any) -> "TraceRequestBuilder":
        """Authorization: Bearer, значение помечается sensitive."""
        return self.header("Authorization", f"Bearer {token}", sensitive=True)

    # ==================== Query & body ====================

    def query(self, params: QueryParams) -> "TraceRequestBuilder":
        """Добавить query параметры к уже заданным."""
        try:
            items = _query_items(params)
        except (TypeError, ValueError) as e:
            return self._with_error(f"invalid query parameters: {e}")
        return self._replace(_params=self._params + tuple(items))

    def body(self, content: Any) -> "TraceRequestBuilder":
        """
        Тело запроса.

        bytes/str можно отправить повторно; итераторы и файлы считаются
        потоковыми, и такой запрос не клонируется.
        """
        return self._replace(**{**self._without_body(), "_content": content})

    def form(self, data: Mapping[str, Any]) -> "TraceRequestBuilder":
        """application/x-www-form-urlencoded тело."""
        return self._replace(**{**self._without_body(), "_data": dict(data)})

    def json(self, value: Any) -> "TraceRequestBuilder":
        """JSON тело (Content-Type: application/json)."""
        return self._replace(**{**self._without_body(), "_json": value})

    def multipart(self, files: Any, data: Optional[Mapping[str, Any]] = None) -> "TraceRequestBuilder":
        """multipart/form-data тело; такой запрос не клонируется."""
        return self._replace(**{
            **self._without_body(),
            "_files": files,
            "_data": dict(data) if data is not None else None,
        })

    # ==================== Options ====================

    def timeout(self, timeout: Union[float, Tuple[float, float], TimeoutConfig]) -> "TraceRequestBuilder":
        """Таймаут этого запроса вместо таймаута клиента."""
        return self._replace(_timeout=timeout)

    def version(self, version: str) -> "TraceRequestBuilder":
        """
        Запрошенная версия протокола ("HTTP/1.1", "HTTP/2", ...).

        Метка попадает в событие "request". Версию соединения выбирает
        httpx: HTTP/2 возможен только при TraceClientConfig(http2=True)
        и поддержке сервером (ALPN), фактическая версия в
        TraceResponse.http_version.
        """
        if version not in HTTP_VERSIONS:
            return self._with_error(f"unsupported HTTP version: {version!r}")
        return self._replace(_version=version)

    # ==================== Build ====================

    @property
    def is_clonable(self) -> bool:
        if self._files is not None:
            return False
        return self._content is None or isinstance(self._content, (bytes, str))

    def try_clone(self) -> Optional["TraceRequestBuilder"]:
        """Копия builder'а или None, если тело потоковое."""
        if not self.is_clonable:
            return None
        return copy.copy(self)

    def build(self) -> httpx.Request:
        """
        Собрать httpx.Request.

        Raises:
            InvalidRequestError: Невалидный заголовок, URL или тело
        """
        if self._error is not None:
            raise self._error

        extensions: Dict[str, Any] = {SENSITIVE_HEADERS_EXTENSION: self._sensitive}
        if self._version is not None:
            extensions[VERSION_EXTENSION] = self._version

        return self._client.build_request(
            self._method,
            self._url,
            headers=list(self._headers) or None,
            params=list(self._params) or None,
            content=self._content,
            data=self._data,
            files=self._files,
            json=None if self._json is _UNSET else self._json,
            timeout=self._timeout,
            extensions=extensions,
        )

    # ==================== Send ====================

    async def _send(self, parent: Optional[Span] = None, attempt: Optional[int] = None) -> "TraceResponse":
        request = self.build()
        return await self._client.execute(request, parent=parent, attempt=attempt)

    async def send(self) -> "TraceResponse":
        """
        Собрать и выполнить запрос один раз.

        Raises:
            InvalidRequestError: Ошибка сборки
            TransportError: Ошибка транспорта (см. TraceClient.execute)
        """
        return await self._send()

    async def send_and_retry(self, policy: Optional[RetryPolicy] = None) -> "TraceResponse":
        """
        Выполнить с повторами и проверкой статуса.

        Повтор выполняется, пока бюджет не исчерпан и ошибка retry-eligible
        (соединение, таймаут, 5xx). Потоковый запрос выполняется ровно один
        раз. Ошибка последней попытки пробрасывается без обёртки.

        Args:
            policy: RetryPolicy (по умолчанию из конфигурации клиента)

        Returns:
            TraceResponse со статусом 2xx

        Raises:
            StatusError: Не-2xx статус последней попытки
            TransportError: Ошибка транспорта последней попытки
        """
        if policy is None:
            policy = self._client.config.retry
        engine = RetryEngine(policy)

        with operation_span(
            self._method, self._url, "send_and_retry", tracer=self._client.tracer
        ) as operation:
            while True:
                builder = self.try_clone()
                replayable = builder is not None
                if builder is None:
                    builder = self

                try:
                    response = await builder._send(parent=operation, attempt=engine.attempt)
                    response = await response.error_for_status()
                except TraceClientError as e:
                    if not replayable or not engine.should_retry(e):
                        operation.set_attribute("http_trace.retry.attempts", engine.attempt + 1)
                        raise

                    logger.warning(
                        "Attempt %d/%d failed for %s %s: %s, retrying",
                        engine.attempt + 1, policy.total_attempts, self._method, self._url, e,
                        extra={"attempt": engine.attempt, "error": type(e).__name__},
                    )
                    await engine.async_wait()
                    engine.increment()
                    continue

                operation.set_attribute("http_trace.retry.attempts", engine.attempt + 1)
                return response

    async def send_and_retry_one(self, retry_if: Optional[float] = None) -> "TraceResponse":
        """
        Выполнить собранный запрос, при retry-eligible ошибке ещё один раз.

        Статус ответа не проверяется: не-2xx ответ возвращается как есть.

        Args:
            retry_if: Пауза перед повтором в секундах; None - без повтора

        Raises:
            InvalidRequestError: Ошибка сборки
            TransportError: Ошибка транспорта последней попытки
        """
        request = self.build()

        if retry_if is None:
            return await self._client.execute(request)

        retry_request = self._client.try_clone_request(request)
        if retry_request is None:
            logger.warning(
                "Request body of %s %s is not replayable, retry disabled",
                self._method, self._url,
            )

        with operation_span(
            self._method, self._url, "send_and_retry_one", tracer=self._client.tracer
        ) as operation:
            try:
                response = await self._client.execute(request, parent=operation, attempt=0)
            except TraceClientError as e:
                if retry_request is None or not is_retryable(e):
                    operation.set_attribute("http_trace.retry.attempts", 1)
                    raise

                logger.warning(
                    "Request %s %s failed: %s, retrying once",
                    self._method, self._url, e,
                    extra={"attempt": 0, "error": type(e).__name__},
                )
                if retry_if > 0:
                    await asyncio.sleep(retry_if)

                operation.set_attribute("http_trace.retry.attempts", 2)
                return await self._client.execute(retry_request, parent=operation, attempt=1)

            operation.set_attribute("http_trace.retry.attempts", 1)
            return response

    def __repr__(self) -> str:
        return f"<TraceRequestBuilder {self._method} {self._url}>"
