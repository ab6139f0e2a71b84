"""
Environment Configuration Example.

Loads TraceClientConfig from HTTP_TRACE_* variables and a .env file.
"""

import asyncio
import os

from http_trace import TraceClient
from http_trace.core.env_config import load_from_env


async def main():
    with open(".env.example-http-trace", "w") as f:
        f.write("HTTP_TRACE_BASE_URL=https://httpbin.org\n")
        f.write("HTTP_TRACE_RETRY_MAX_ATTEMPTS=2\n")
        f.write("HTTP_TRACE_RETRY_DELAY=0.25\n")
        f.write("HTTP_TRACE_LOG_LEVEL=DEBUG\n")
        f.write("HTTP_TRACE_LOG_FORMAT=json\n")

    try:
        config = load_from_env(env_file=".env.example-http-trace")
    finally:
        os.remove(".env.example-http-trace")

    print(f"Base URL: {config.base_url}")
    print(f"Retry: {config.retry}")

    async with TraceClient(config=config) as client:
        response = await client.get("/get").send_and_retry()
        print(f"Status: {response.status_code}")
        await response.aclose()


if __name__ == "__main__":
    asyncio.run(main())
