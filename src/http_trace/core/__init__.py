"""Core http-trace модули."""

from .config import TimeoutConfig, RetryPolicy, TraceClientConfig
from .retry_engine import RetryEngine
from .exceptions import (
    TraceClientError,
    TransportError,
    ConnectionError,
    TimeoutError,
    InvalidRequestError,
    BodyReadError,
    DecodeError,
    StatusError,
    ResponseConsumedError,
    classify_httpx_exception,
)
from .span import TraceSpan, operation_span
from .guard import ExecutionGuard, ExecutionTelemetry, active_executions

__all__ = [
    # Config
    "TimeoutConfig",
    "RetryPolicy",
    "TraceClientConfig",

    # Retry
    "RetryEngine",

    # Exceptions
    "TraceClientError",
    "TransportError",
    "ConnectionError",
    "TimeoutError",
    "InvalidRequestError",
    "BodyReadError",
    "DecodeError",
    "StatusError",
    "ResponseConsumedError",
    "classify_httpx_exception",

    # Tracing
    "TraceSpan",
    "operation_span",
    "ExecutionGuard",
    "ExecutionTelemetry",
    "active_executions",
]
