"""Тесты иерархии исключений и маппинга исключений httpx."""

import httpx
import pytest

from http_trace.core.exceptions import (
    BodyReadError,
    ConnectionError,
    DecodeError,
    InvalidRequestError,
    ResponseConsumedError,
    StatusError,
    TimeoutError,
    TraceClientError,
    TransportError,
    classify_httpx_exception,
)

URL = "https://api.example.com/items"


class TestHierarchy:

    def test_transport_subclasses(self):
        for cls in (ConnectionError, TimeoutError, InvalidRequestError, BodyReadError):
            assert issubclass(cls, TransportError)
            assert issubclass(cls, TraceClientError)

    def test_decode_and_status_are_not_transport(self):
        assert not issubclass(DecodeError, TransportError)
        assert not issubclass(StatusError, TransportError)

    def test_response_consumed_is_runtime_error(self):
        assert issubclass(ResponseConsumedError, RuntimeError)
        assert not issubclass(ResponseConsumedError, TraceClientError)

    def test_transport_error_message_includes_url(self):
        error = TransportError("boom", URL)
        assert str(error) == f"boom (url: {URL})"
        assert error.url == URL

    def test_timeout_error_message(self):
        error = TimeoutError("timed out", URL, timeout_type="read")
        assert "read timeout" in str(error)
        assert error.timeout_type == "read"

    def test_status_error_fields(self):
        error = StatusError(503, URL, "maintenance")
        assert error.status_code == 503
        assert error.description == "maintenance"
        assert str(error) == f"HTTP 503 error for {URL}"


class TestClassifyHttpxException:

    @pytest.mark.parametrize("exc_type, timeout_type", [
        (httpx.ConnectTimeout, "connect"),
        (httpx.ReadTimeout, "read"),
        (httpx.WriteTimeout, "write"),
        (httpx.PoolTimeout, "pool"),
    ])
    def test_timeouts(self, exc_type, timeout_type):
        exc = exc_type("timed out")
        error = classify_httpx_exception(exc, URL)
        assert isinstance(error, TimeoutError)
        assert error.timeout_type == timeout_type
        assert error.cause is exc

    @pytest.mark.parametrize("exc_type", [httpx.ConnectError, httpx.ProxyError])
    def test_connection_errors(self, exc_type):
        assert isinstance(classify_httpx_exception(exc_type("refused"), URL), ConnectionError)

    @pytest.mark.parametrize("exc", [
        httpx.InvalidURL("bad url"),
        httpx.UnsupportedProtocol("ftp"),
        httpx.LocalProtocolError("illegal header"),
        TypeError("Object of type set is not JSON serializable"),
        ValueError("bad value"),
    ])
    def test_invalid_request(self, exc):
        assert isinstance(classify_httpx_exception(exc, URL), InvalidRequestError)

    def test_read_error_while_reading_body(self):
        error = classify_httpx_exception(httpx.ReadError("reset"), URL, reading_body=True)
        assert isinstance(error, BodyReadError)

    def test_decoding_error_is_body_read(self):
        error = classify_httpx_exception(httpx.DecodingError("bad gzip"), URL)
        assert isinstance(error, BodyReadError)

    def test_other_errors_are_plain_transport(self):
        error = classify_httpx_exception(httpx.RemoteProtocolError("peer closed"), URL)
        assert type(error) is TransportError

    def test_empty_message_uses_type_name(self):
        error = classify_httpx_exception(httpx.ReadError(""), URL)
        assert "ReadError" in str(error)
