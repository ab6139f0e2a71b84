# src/http_trace/client.py
"""
Асинхронный trace-клиент на базе httpx.

TraceClient выполняет готовые httpx.Request внутри trace span и
ExecutionGuard; запросы собираются через TraceRequestBuilder
(client.get(...), client.post(...), ...).
"""

import logging
from typing import Any, Dict, Optional, Tuple, Union

import httpx
from opentelemetry import trace
from opentelemetry.trace import Span

from .core.config import TimeoutConfig, TraceClientConfig
from .core.exceptions import classify_httpx_exception
from .core.extensions import is_replayable, requested_version, sensitive_headers
from .core.guard import ExecutionGuard, ExecutionTelemetry
from .core.logging import configure_logging
from .core.span import TraceSpan
from .request_builder import TraceRequestBuilder
from .response import TraceResponse
from .utils.representation import headers_repr, text_repr

logger = logging.getLogger(__name__)

STREAMING_BODY = "<streaming>"
EMPTY_BODY = "<none>"


def _body_repr(request: httpx.Request) -> str:
    if not is_replayable(request):
        return STREAMING_BODY
    content = request.content
    if not content:
        return EMPTY_BODY
    return text_repr(content)


def _request_fields(request: httpx.Request) -> Dict[str, Any]:
    """Поля события "request"; сбой представления не мешает выполнению."""
    fields: Dict[str, Any] = {"version": requested_version(request)}
    try:
        fields["body"] = _body_repr(request)
        fields["headers"] = headers_repr(request.headers, sensitive_headers(request))
    except Exception:
        logger.debug("Failed to render request for trace event", exc_info=True)
    return fields


def _request_timeout(timeout: Optional[Union[float, Tuple[float, float], TimeoutConfig]]) -> Any:
    """Таймаут запроса в виде httpx; невалидные значения поднимают ValueError."""
    if timeout is None:
        return httpx.USE_CLIENT_DEFAULT
    if isinstance(timeout, TimeoutConfig):
        return timeout.as_httpx()
    if isinstance(timeout, tuple):
        return TimeoutConfig(connect=timeout[0], read=timeout[1]).as_httpx()
    return TimeoutConfig(connect=timeout, read=timeout).as_httpx()


class TraceClient:
    """
    HTTP клиент с trace span на каждое выполнение и повторами.

    Example:
        >>> async with TraceClient(base_url="https://api.example.com") as client:
        ...     response = await client.get("/users").send_and_retry()
        ...     users = await response.json()

        >>> # Или без context manager
        >>> client = TraceClient(config=TraceClientConfig.create(max_retries=3))
        >>> response = await client.get("https://api.example.com/users").send()
        >>> await client.close()
    """

    def __init__(
        self,
        base_url: Optional[str] = None,
        *,
        config: Optional[TraceClientConfig] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        client: Optional[httpx.AsyncClient] = None,
        **kwargs: Any,
    ):
        """
        Инициализация клиента.

        Args:
            base_url: Базовый URL для относительных путей
            config: TraceClientConfig (если указан, остальные параметры игнорируются)
            transport: Транспорт httpx (например, httpx.MockTransport в тестах)
            client: Готовый httpx.AsyncClient; клиент его не закрывает
            **kwargs: Параметры TraceClientConfig.create()
        """
        if config is not None:
            self._config = config
        else:
            self._config = TraceClientConfig.create(base_url=base_url, **kwargs)

        if self._config.logging is not None:
            configure_logging(self._config.logging)

        self._tracer = trace.get_tracer(self._config.tracer_name)
        self._telemetry: Optional[ExecutionTelemetry] = None
        if self._config.telemetry:
            self._telemetry = ExecutionTelemetry(self._config.tracer_name)

        self._transport = transport

        # Клиент создаётся лениво или при входе в context manager
        self._client: Optional[httpx.AsyncClient] = client
        self._owns_client = client is None

    @classmethod
    def create(cls, **kwargs: Any) -> "TraceClient":
        """
        Создать клиент из параметров TraceClientConfig.create().

        Example:
            >>> client = TraceClient.create(base_url="https://api.example.com", follow_redirects=True)
        """
        transport = kwargs.pop("transport", None)
        return cls(config=TraceClientConfig.create(**kwargs), transport=transport)

    def _get_client(self) -> httpx.AsyncClient:
        """Получить или создать httpx клиент."""
        if self._client is None:
            client_kwargs: Dict[str, Any] = {
                "base_url": self._config.base_url or "",
                "headers": dict(self._config.headers),
                "timeout": self._config.timeout.as_httpx(),
                "verify": self._config.verify_ssl,
                "follow_redirects": self._config.follow_redirects,
                "http2": self._config.http2,
            }

            if self._transport is not None:
                client_kwargs["transport"] = self._transport

            self._client = httpx.AsyncClient(**client_kwargs)
            self._owns_client = True
        return self._client

    async def __aenter__(self) -> "TraceClient":
        """Async context manager entry."""
        self._get_client()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        """Async context manager exit."""
        await self.close()

    async def close(self) -> None:
        """Закрыть клиент и освободить ресурсы."""
        if self._client is not None and self._owns_client:
            await self._client.aclose()
            self._client = None

    @property
    def config(self) -> TraceClientConfig:
        return self._config

    @property
    def base_url(self) -> Optional[str]:
        return self._config.base_url

    @property
    def tracer(self) -> trace.Tracer:
        return self._tracer

    # ==================== Builders ====================

    def request(self, method: str, url: str) -> TraceRequestBuilder:
        """Начать сборку запроса произвольным методом."""
        return TraceRequestBuilder(self, method, url)

    def get(self, url: str) -> TraceRequestBuilder:
        return self.request("GET", url)

    def post(self, url: str) -> TraceRequestBuilder:
        return self.request("POST", url)

    def put(self, url: str) -> TraceRequestBuilder:
        return self.request("PUT", url)

    def patch(self, url: str) -> TraceRequestBuilder:
        return self.request("PATCH", url)

    def delete(self, url: str) -> TraceRequestBuilder:
        return self.request("DELETE", url)

    def head(self, url: str) -> TraceRequestBuilder:
        return self.request("HEAD", url)

    def options(self, url: str) -> TraceRequestBuilder:
        return self.request("OPTIONS", url)

    # ==================== Request assembly ====================

    def build_request(
        self,
        method: str,
        url: str,
        *,
        headers: Optional[Any] = None,
        params: Optional[Any] = None,
        content: Optional[Union[str, bytes, Any]] = None,
        data: Optional[Dict[str, Any]] = None,
        files: Optional[Any] = None,
        json: Optional[Any] = None,
        timeout: Optional[Union[float, Tuple[float, float], TimeoutConfig]] = None,
        extensions: Optional[Dict[str, Any]] = None,
    ) -> httpx.Request:
        """
        Собрать httpx.Request с настройками клиента.

        Raises:
            InvalidRequestError: Невалидный URL, заголовок или тело
        """
        client = self._get_client()

        try:
            return client.build_request(
                method,
                url,
                headers=headers,
                params=params,
                content=content,
                data=data,
                files=files,
                json=json,
                timeout=_request_timeout(timeout),
                extensions=extensions,
            )
        except (httpx.HTTPError, httpx.InvalidURL, TypeError, ValueError) as e:
            raise classify_httpx_exception(e, url) from e

    @staticmethod
    def try_clone_request(request: httpx.Request) -> Optional[httpx.Request]:
        """
        Копия запроса для повторной отправки.

        Returns:
            Новый httpx.Request или None, если тело потоковое
        """
        if not is_replayable(request):
            return None

        return httpx.Request(
            request.method,
            request.url,
            headers=request.headers.copy(),
            content=request.content,
            extensions=dict(request.extensions),
        )

    # ==================== Execution ====================

    async def execute(
        self,
        request: httpx.Request,
        *,
        parent: Optional[Span] = None,
        attempt: Optional[int] = None,
    ) -> TraceResponse:
        """
        Выполнить запрос внутри trace span.

        Тело ответа не читается: TraceResponse владеет открытым потоком
        и span до терминального вызова.

        Args:
            request: Собранный httpx.Request
            parent: Родительский span (операция с повторами)
            attempt: Номер попытки для событий лога

        Returns:
            TraceResponse

        Raises:
            ConnectionError: Ошибка соединения
            TimeoutError: Таймаут
            InvalidRequestError: Запрос отклонён транспортом
            TransportError: Прочие ошибки транспорта
        """
        client = self._get_client()
        url = str(request.url)

        with ExecutionGuard(self._telemetry):
            span = TraceSpan(request.method, url, tracer=self._tracer, parent=parent)
            fields = _request_fields(request)
            if attempt is not None:
                fields["attempt"] = attempt

            with span.in_scope():
                span.event(logging.DEBUG, "request", **fields)

                try:
                    response = await client.send(request, stream=True)
                except (httpx.HTTPError, httpx.InvalidURL) as e:
                    span.record("error", True)
                    span.record("error_description", str(e))
                    span.end()
                    raise classify_httpx_exception(e, url) from e
                except BaseException:
                    span.record("error", True)
                    span.end()
                    raise

            span.record("status", str(response.status_code))
            return TraceResponse(response, span)

    def __repr__(self) -> str:
        return f"TraceClient(base_url={self.base_url!r})"
