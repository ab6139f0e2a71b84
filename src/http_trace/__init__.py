"""HTTP Trace - tracing and retry layer for httpx."""

import logging
from importlib.metadata import version, PackageNotFoundError

from .client import TraceClient
from .request_builder import TraceRequestBuilder
from .response import TraceResponse
from .core.config import TraceClientConfig, TimeoutConfig, RetryPolicy
from .core.exceptions import (
    TraceClientError,
    TransportError,
    ConnectionError,
    TimeoutError,
    InvalidRequestError,
    BodyReadError,
    DecodeError,
    StatusError,
    ResponseConsumedError,
)
from .core.span import TraceSpan
from .core.guard import ExecutionGuard, ExecutionTelemetry, active_executions
from .core import classifier
from .utils.representation import text_repr, headers_repr

# Set up logging - add NullHandler to prevent "No handler found" warnings
# Users can configure logging themselves using logging.getLogger('http_trace')
logging.getLogger('http_trace').addHandler(logging.NullHandler())

# Version info - read from package metadata (single source of truth in pyproject.toml)
try:
    __version__ = version("http-trace")
except PackageNotFoundError:
    # Package is not installed (development mode)
    __version__ = "0.0.0-dev"

__license__ = "MIT"

# All public exports
__all__ = [
    # Core
    "TraceClient",
    "TraceRequestBuilder",
    "TraceResponse",
    "TraceSpan",

    # Config
    "TraceClientConfig",
    "TimeoutConfig",
    "RetryPolicy",

    # Guard
    "ExecutionGuard",
    "ExecutionTelemetry",
    "active_executions",

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

    # Helpers
    "classifier",
    "text_repr",
    "headers_repr",
]
