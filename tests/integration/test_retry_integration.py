"""
End-to-end tests for send_and_retry / send_and_retry_one against mocked transports.
"""

import logging
from unittest.mock import AsyncMock, call, patch

import httpx
import pytest

from http_trace import RetryPolicy, TraceClient
from http_trace.core.exceptions import (
    BodyReadError,
    ConnectionError,
    DecodeError,
    StatusError,
    TimeoutError,
)
from http_trace.core.span import OPERATION_SPAN_NAME, SPAN_NAME

pytestmark = pytest.mark.integration


async def chunks():
    yield b"part-1"
    yield b"part-2"


class CountingTransport(httpx.MockTransport):
    """MockTransport, считающий обращения к транспорту."""

    def __init__(self, outcomes):
        self.calls = 0
        self._outcomes = list(outcomes)
        super().__init__(self._handle)

    def _handle(self, request):
        outcome = self._outcomes[min(self.calls, len(self._outcomes) - 1)]
        self.calls += 1
        if isinstance(outcome, type) and issubclass(outcome, Exception):
            raise outcome("mock failure", request=request)
        return outcome


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# send_and_retry
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━

class TestSendAndRetry:

    @pytest.mark.asyncio
    async def test_success_after_server_errors(self, client, mock_router):
        route = mock_router.get("/flaky").mock(side_effect=[
            httpx.Response(503, text="busy"),
            httpx.Response(502, text="bad gateway"),
            httpx.Response(200, json={"ok": True}),
        ])

        response = await client.get("/flaky").send_and_retry(RetryPolicy(max_attempts=3))

        assert await response.json() == {"ok": True}
        assert route.call_count == 3

    @pytest.mark.asyncio
    async def test_budget_exhausted_raises_last_error(self, client, mock_router):
        route = mock_router.get("/down").mock(return_value=httpx.Response(503, text="maintenance"))

        with pytest.raises(StatusError) as exc_info:
            await client.get("/down").send_and_retry(RetryPolicy(max_attempts=2))

        assert exc_info.value.status_code == 503
        assert exc_info.value.description == "maintenance"
        assert route.call_count == 3

    @pytest.mark.asyncio
    async def test_zero_attempts_executes_once(self, client, mock_router):
        route = mock_router.get("/down").mock(return_value=httpx.Response(500))

        with pytest.raises(StatusError):
            await client.get("/down").send_and_retry(RetryPolicy(max_attempts=0))
        assert route.call_count == 1

    @pytest.mark.asyncio
    async def test_terminal_status_stops_immediately(self, client, mock_router):
        route = mock_router.get("/missing").mock(return_value=httpx.Response(404, text="nope"))

        with pytest.raises(StatusError) as exc_info:
            await client.get("/missing").send_and_retry(RetryPolicy(max_attempts=5))

        assert exc_info.value.status_code == 404
        assert route.call_count == 1

    @pytest.mark.asyncio
    async def test_connect_errors_are_retried(self, client, mock_router):
        route = mock_router.get("/users").mock(side_effect=[
            httpx.ConnectError,
            httpx.ConnectTimeout,
            httpx.ReadTimeout,
            httpx.Response(200, json=[]),
        ])

        response = await client.get("/users").send_and_retry(RetryPolicy(max_attempts=3))
        assert await response.json() == []
        assert route.call_count == 4

    @pytest.mark.asyncio
    async def test_last_transport_error_propagates_unwrapped(self, client, mock_router):
        mock_router.get("/users").mock(side_effect=httpx.ReadTimeout)

        with pytest.raises(TimeoutError) as exc_info:
            await client.get("/users").send_and_retry(RetryPolicy(max_attempts=1))
        assert exc_info.value.timeout_type == "read"

    @pytest.mark.asyncio
    async def test_default_policy_from_config(self, base_url, mock_router):
        route = mock_router.get("/down").mock(side_effect=httpx.ConnectError)

        async with TraceClient(base_url=base_url, max_retries=2) as client:
            with pytest.raises(ConnectionError):
                await client.get("/down").send_and_retry()

        assert route.call_count == 3

    @pytest.mark.asyncio
    async def test_fixed_delay_between_attempts(self, client, mock_router):
        mock_router.get("/down").mock(return_value=httpx.Response(503))

        with patch("http_trace.core.retry_engine.asyncio.sleep", new_callable=AsyncMock) as sleep:
            with pytest.raises(StatusError):
                await client.get("/down").send_and_retry(RetryPolicy(max_attempts=3, delay=0.2))

        assert sleep.await_args_list == [call(0.2)] * 3

    @pytest.mark.asyncio
    async def test_post_body_resent_on_each_attempt(self, client, mock_router):
        route = mock_router.post("/orders").mock(side_effect=[
            httpx.Response(500),
            httpx.Response(201, json={"id": 7}),
        ])

        response = await (
            client.post("/orders")
            .json({"item": 42})
            .send_and_retry(RetryPolicy(max_attempts=1))
        )

        assert response.status_code == 201
        bodies = [recorded.request.content for recorded in route.calls]
        assert len(bodies) == 2
        assert bodies[0] == bodies[1]
        await response.aclose()

    @pytest.mark.asyncio
    async def test_streaming_body_single_attempt(self):
        transport = CountingTransport([httpx.ConnectError])
        client = TraceClient(transport=transport)

        with pytest.raises(ConnectionError):
            await (
                client.put("https://api.example.com/upload")
                .body(chunks())
                .send_and_retry(RetryPolicy(max_attempts=3))
            )

        assert transport.calls == 1
        await client.close()

    @pytest.mark.asyncio
    async def test_warning_logged_before_retry(self, client, mock_router, caplog):
        caplog.set_level(logging.WARNING, logger="http_trace")
        mock_router.get("/flaky").mock(side_effect=[httpx.ConnectError, httpx.Response(200)])

        response = await client.get("/flaky").send_and_retry(RetryPolicy(max_attempts=1))
        await response.aclose()

        warnings = [r for r in caplog.records if r.levelno == logging.WARNING]
        assert len(warnings) == 1
        assert warnings[0].attempt == 0
        assert "retrying" in warnings[0].getMessage()

    @pytest.mark.asyncio
    async def test_attempt_spans_share_operation_parent(self, client, mock_router, span_exporter):
        mock_router.get("/flaky").mock(side_effect=[httpx.Response(503), httpx.Response(200)])

        response = await client.get("/flaky").send_and_retry(RetryPolicy(max_attempts=2))
        await response.aclose()

        spans = span_exporter.get_finished_spans()
        operation = [s for s in spans if s.name == OPERATION_SPAN_NAME]
        attempts = [s for s in spans if s.name == SPAN_NAME]

        assert len(operation) == 1
        assert len(attempts) == 2
        assert operation[0].attributes["http_trace.retry.strategy"] == "send_and_retry"
        assert operation[0].attributes["http_trace.retry.attempts"] == 2
        for span in attempts:
            assert span.parent.span_id == operation[0].context.span_id
        assert [s.attributes["http.status_code"] for s in attempts] == [503, 200]

    @pytest.mark.asyncio
    async def test_attempt_number_in_request_events(self, client, mock_router, caplog):
        caplog.set_level(logging.DEBUG, logger="http_trace")
        mock_router.get("/flaky").mock(side_effect=[httpx.ConnectError, httpx.Response(200)])

        response = await client.get("/flaky").send_and_retry(RetryPolicy(max_attempts=1))
        await response.aclose()

        events = [r for r in caplog.records if r.getMessage() == "request"]
        assert [e.attempt for e in events] == [0, 1]


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# send_and_retry_one
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━

class TestSendAndRetryOne:

    @pytest.mark.asyncio
    async def test_none_executes_exactly_once(self, client, mock_router):
        route = mock_router.get("/down").mock(side_effect=httpx.ConnectError)

        with pytest.raises(ConnectionError):
            await client.get("/down").send_and_retry_one(None)
        assert route.call_count == 1

    @pytest.mark.asyncio
    async def test_retries_once_then_raises(self, client, mock_router):
        route = mock_router.get("/down").mock(side_effect=httpx.ConnectError)

        with pytest.raises(ConnectionError):
            await client.get("/down").send_and_retry_one(0.0)
        assert route.call_count == 2

    @pytest.mark.asyncio
    async def test_retry_succeeds(self, client, mock_router):
        route = mock_router.get("/flaky").mock(side_effect=[
            httpx.ConnectTimeout,
            httpx.Response(200, text="ok"),
        ])

        response = await client.get("/flaky").send_and_retry_one(0.0)
        assert await response.text() == "ok"
        assert route.call_count == 2

    @pytest.mark.asyncio
    async def test_status_not_checked(self, client, mock_router):
        """5xx ответ не ошибка для этой стратегии: повтора нет."""
        route = mock_router.get("/down").mock(return_value=httpx.Response(503, text="busy"))

        response = await client.get("/down").send_and_retry_one(0.0)
        assert response.status_code == 503
        assert route.call_count == 1

        with pytest.raises(StatusError):
            await response.error_for_status()

    @pytest.mark.asyncio
    async def test_delay_before_retry(self, client, mock_router):
        mock_router.get("/flaky").mock(side_effect=[httpx.ConnectError, httpx.Response(200)])

        with patch("http_trace.request_builder.asyncio.sleep", new_callable=AsyncMock) as sleep:
            response = await client.get("/flaky").send_and_retry_one(0.75)
        await response.aclose()

        sleep.assert_awaited_once_with(0.75)

    @pytest.mark.asyncio
    async def test_zero_delay_skips_sleep(self, client, mock_router):
        mock_router.get("/flaky").mock(side_effect=[httpx.ConnectError, httpx.Response(200)])

        with patch("http_trace.request_builder.asyncio.sleep", new_callable=AsyncMock) as sleep:
            response = await client.get("/flaky").send_and_retry_one(0)
        await response.aclose()

        sleep.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_streaming_body_is_not_retried(self, caplog):
        caplog.set_level(logging.WARNING, logger="http_trace")
        transport = CountingTransport([httpx.ConnectError, httpx.Response(200)])
        client = TraceClient(transport=transport)

        with pytest.raises(ConnectionError):
            await (
                client.post("https://api.example.com/upload")
                .body(chunks())
                .send_and_retry_one(0.0)
            )

        assert transport.calls == 1
        assert any("not replayable" in r.getMessage() for r in caplog.records)
        await client.close()

    @pytest.mark.asyncio
    async def test_buffered_body_resent(self):
        transport = CountingTransport([httpx.ConnectError, httpx.Response(201)])
        client = TraceClient(transport=transport)

        response = await (
            client.post("https://api.example.com/orders")
            .body(b'{"item": 42}')
            .send_and_retry_one(0.0)
        )

        assert response.status_code == 201
        assert transport.calls == 2
        await response.aclose()
        await client.close()

    @pytest.mark.asyncio
    async def test_operation_span_attempts(self, client, mock_router, span_exporter):
        mock_router.get("/flaky").mock(side_effect=[httpx.ConnectError, httpx.Response(200)])

        response = await client.get("/flaky").send_and_retry_one(0.0)
        await response.aclose()

        operation = [s for s in span_exporter.get_finished_spans() if s.name == OPERATION_SPAN_NAME]
        assert operation[0].attributes["http_trace.retry.strategy"] == "send_and_retry_one"
        assert operation[0].attributes["http_trace.retry.attempts"] == 2


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# Классификация на реальных ответах
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━

class TestOutcomes:

    @pytest.mark.asyncio
    async def test_decode_error_is_terminal(self, client, mock_router):
        route = mock_router.get("/user").mock(return_value=httpx.Response(200, text="{broken"))

        response = await client.get("/user").send_and_retry(RetryPolicy(max_attempts=3))
        with pytest.raises(DecodeError):
            await response.json()
        assert route.call_count == 1

    @pytest.mark.asyncio
    async def test_single_outcome_per_send(self, client, mock_router):
        mock_router.get("/data").mock(return_value=httpx.Response(200, text="payload"))

        response = await client.get("/data").send()
        assert await response.text() == "payload"
        with pytest.raises(RuntimeError):
            await response.bytes()

    @pytest.mark.asyncio
    async def test_body_read_error_is_not_retried(self):
        class Broken(httpx.AsyncByteStream):
            async def __aiter__(self):
                raise httpx.ReadError("reset")
                yield b""

        transport = CountingTransport([httpx.Response(503, stream=Broken())])
        client = TraceClient(transport=transport)

        with pytest.raises(BodyReadError):
            await client.get("https://api.example.com/x").send_and_retry(RetryPolicy(max_attempts=3))

        assert transport.calls == 1
        await client.close()
