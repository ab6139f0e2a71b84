"""
Retry Examples

Demonstrates send_and_retry with a fixed-delay policy and the
single-retry send_and_retry_one strategy.
"""

import asyncio

from http_trace import (
    RetryPolicy,
    StatusError,
    TimeoutError,
    TraceClient,
    TraceClientConfig,
)
from http_trace.core.logging import LoggingConfig


async def retry_on_server_error(client: TraceClient):
    """Retry 5xx responses: 1 + 2 attempts, 0.5s apart."""
    print("\n=== Retry on 503 ===")

    try:
        await client.get("/status/503").send_and_retry(RetryPolicy(max_attempts=2, delay=0.5))
    except StatusError as e:
        print(f"Failed after 3 attempts: {e.status_code}")


async def no_retry_on_client_error(client: TraceClient):
    """4xx is terminal: executed once."""
    print("\n=== No Retry on 404 ===")

    try:
        await client.get("/status/404").send_and_retry(RetryPolicy(max_attempts=5))
    except StatusError as e:
        print(f"Failed immediately: {e.status_code}")


async def retry_on_timeout(client: TraceClient):
    """Read timeout on every attempt."""
    print("\n=== Retry on Timeout ===")

    try:
        await client.get("/delay/5").timeout((5, 1)).send_and_retry(RetryPolicy(max_attempts=1))
    except TimeoutError as e:
        print(f"Timed out ({e.timeout_type})")


async def retry_once(client: TraceClient):
    """One extra attempt after a connection error or timeout; status is not checked."""
    print("\n=== send_and_retry_one ===")

    response = await client.get("/status/503").send_and_retry_one(retry_if=0.2)
    print(f"Status returned as is: {response.status_code}")
    await response.aclose()


async def main():
    config = TraceClientConfig.create(
        base_url="https://httpbin.org",
        timeout=10,
        logging=LoggingConfig.create(level="INFO"),
    )

    async with TraceClient(config=config) as client:
        await retry_on_server_error(client)
        await no_retry_on_client_error(client)
        await retry_on_timeout(client)
        await retry_once(client)


if __name__ == "__main__":
    asyncio.run(main())
