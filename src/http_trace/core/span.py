"""
Trace span для одной попытки выполнения запроса.

TraceSpan объединяет два sink'а:
- OpenTelemetry span (атрибуты http.*, статус, события)
- стандартный logging (события с полями span в extra)

Span передаётся явно вместе с ответом (TraceResponse), а не через
глобальный контекст.
"""

import logging
from contextlib import contextmanager
from typing import Any, Dict, Iterator, Optional

from opentelemetry import trace
from opentelemetry.trace import Span, SpanKind, Status, StatusCode, Tracer

from ..utils.sanitizer import mask_sensitive_data, mask_url

logger = logging.getLogger(__name__)

SPAN_NAME = "http_trace"
OPERATION_SPAN_NAME = "http_trace.operation"

# Поля, объявленные при создании span
SPAN_FIELDS = ("error", "error_description", "method", "status", "url")

# method/url фиксируются при создании, остальные записываются позже
_RECORDABLE_FIELDS = frozenset({"error", "error_description", "status"})

_OTEL_ATTRIBUTES = {
    "method": "http.method",
    "url": "http.url",
    "status": "http.status_code",
    "error": "error",
    "error_description": "error.description",
}


def _attribute_value(value: Any) -> Any:
    """Привести значение к типу, допустимому для OpenTelemetry атрибута."""
    if isinstance(value, (bool, int, float, str)):
        return value
    return str(value)


class TraceSpan:
    """
    Структурированный контекст одной попытки выполнения.

    Example:
        >>> span = TraceSpan("GET", "https://api.example.com/users")
        >>> with span.in_scope():
        ...     span.event(logging.DEBUG, "request", headers="Accept: */*")
        >>> span.record("status", "200")
        >>> span.end()
    """

    def __init__(
        self,
        method: str,
        url: str,
        *,
        tracer: Optional[Tracer] = None,
        parent: Optional[Span] = None,
        name: str = SPAN_NAME,
    ):
        """
        Args:
            method: HTTP метод
            url: URL запроса
            tracer: OpenTelemetry tracer (по умолчанию глобальный "http_trace")
            parent: Родительский span (операция с повторами)
            name: Имя span
        """
        self.name = name
        self._fields: Dict[str, Any] = {
            "error": None,
            "error_description": None,
            "method": method,
            "status": None,
            "url": url,
        }
        self._ended = False

        tracer = tracer or trace.get_tracer(SPAN_NAME)
        context = trace.set_span_in_context(parent) if parent is not None else None
        self._span = tracer.start_span(
            name,
            context=context,
            kind=SpanKind.CLIENT,
            attributes={
                _OTEL_ATTRIBUTES["method"]: method,
                _OTEL_ATTRIBUTES["url"]: mask_url(url),
            },
        )

    # ==================== Поля ====================

    def record(self, field: str, value: Any) -> None:
        """
        Записать значение объявленного поля.

        Необъявленные поля игнорируются. Ошибки sink'а не пробрасываются.
        """
        if field not in _RECORDABLE_FIELDS:
            logger.debug("Ignoring undeclared span field %r", field)
            return

        self._fields[field] = value

        try:
            attribute = value
            if field == "status" and isinstance(value, str) and value.isdigit():
                attribute = int(value)
            self._span.set_attribute(_OTEL_ATTRIBUTES[field], _attribute_value(attribute))

            if field == "error" and value:
                self._span.set_status(Status(StatusCode.ERROR))
            elif field == "error_description" and self._fields["error"]:
                self._span.set_status(Status(StatusCode.ERROR, str(value)))
        except Exception:
            logger.debug("Failed to record span field %r", field, exc_info=True)

    @property
    def fields(self) -> Dict[str, Any]:
        """Копия текущих значений полей."""
        return dict(self._fields)

    @property
    def method(self) -> str:
        return self._fields["method"]

    @property
    def url(self) -> str:
        return self._fields["url"]

    @property
    def otel_span(self) -> Span:
        return self._span

    @property
    def ended(self) -> bool:
        return self._ended

    # ==================== События ====================

    def event(self, level: int, message: str, **fields: Any) -> None:
        """
        Записать событие внутри span.

        Событие уходит в logging (поля span + переданные поля в extra,
        с маскированием) и в OpenTelemetry span как span event.
        Сбой записи никогда не влияет на вызывающий код.

        Args:
            level: Уровень logging (logging.DEBUG, logging.ERROR, ...)
            message: Имя события
            **fields: Дополнительные поля
        """
        try:
            if logger.isEnabledFor(level):
                extra = {k: v for k, v in self._fields.items() if v is not None}
                extra.update(fields)
                logger.log(level, message, extra=mask_sensitive_data(extra))

            if self._span.is_recording():
                self._span.add_event(
                    message,
                    attributes={
                        key: _attribute_value(value)
                        for key, value in fields.items()
                        if value is not None
                    },
                )
        except Exception:
            logger.debug("Failed to emit trace event %r", message, exc_info=True)

    @contextmanager
    def in_scope(self) -> Iterator["TraceSpan"]:
        """
        Сделать span текущим для OpenTelemetry контекста.

        Вложенные span'ы (например, от инструментированного транспорта)
        становятся его детьми. Span при выходе не закрывается.
        """
        with trace.use_span(
            self._span,
            end_on_exit=False,
            record_exception=False,
            set_status_on_exception=False,
        ):
            yield self

    def end(self) -> None:
        """Завершить span. Повторный вызов ничего не делает."""
        if self._ended:
            return
        self._ended = True
        try:
            self._span.end()
        except Exception:
            logger.debug("Failed to end span %r", self.name, exc_info=True)

    def __repr__(self) -> str:
        return f"TraceSpan(name={self.name!r}, method={self.method!r}, url={self.url!r})"


@contextmanager
def operation_span(
    method: str,
    url: str,
    strategy: str,
    tracer: Optional[Tracer] = None,
) -> Iterator[Span]:
    """
    Родительский span для цикла повторов.

    Каждая попытка создаёт собственный TraceSpan с этим span в качестве
    явного родителя.

    Args:
        method: HTTP метод
        url: URL
        strategy: "send_and_retry" или "send_and_retry_one"
        tracer: OpenTelemetry tracer
    """
    tracer = tracer or trace.get_tracer(SPAN_NAME)
    span = tracer.start_span(
        OPERATION_SPAN_NAME,
        kind=SpanKind.INTERNAL,
        attributes={
            "http.method": method,
            "http.url": mask_url(url),
            "http_trace.retry.strategy": strategy,
        },
    )
    try:
        yield span
    except BaseException as e:
        span.set_status(Status(StatusCode.ERROR, str(e)))
        raise
    finally:
        span.end()
