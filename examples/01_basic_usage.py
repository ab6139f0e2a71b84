"""
Basic TraceClient Usage Examples

Demonstrates GET/POST requests, typed JSON decoding and status checks.
"""

import asyncio
from typing import List

from pydantic import BaseModel

from http_trace import StatusError, TraceClient, TraceClientConfig
from http_trace.core.logging import LoggingConfig


class Post(BaseModel):
    id: int
    title: str
    userId: int


async def basic_get_request(client: TraceClient):
    """Simple GET request."""
    print("\n=== Basic GET Request ===")

    response = await client.get("/posts/1").send()
    print(f"Status: {response.status_code}")
    print(f"Data: {await response.json()}")


async def typed_json(client: TraceClient):
    """GET with typed JSON decoding."""
    print("\n=== Typed JSON ===")

    response = await client.get("/posts").query({"userId": 1}).send()
    posts = await response.json(List[Post])
    print(f"Loaded {len(posts)} posts, first: {posts[0].title!r}")


async def post_with_json(client: TraceClient):
    """POST request with JSON body and sensitive header."""
    print("\n=== POST with JSON ===")

    response = await (
        client.post("/posts")
        .json({"title": "My Post", "body": "This is the content", "userId": 1})
        .header("X-Api-Key", "not-a-real-key", sensitive=True)
        .send()
    )
    print(f"Status: {response.status_code}")
    print(f"Created: {await response.json()}")


async def status_check(client: TraceClient):
    """error_for_status on 404."""
    print("\n=== Status Check ===")

    response = await client.get("/posts/0").send()
    try:
        await response.error_for_status()
    except StatusError as e:
        print(f"Status error: {e.status_code} for {e.url}")


async def main():
    config = TraceClientConfig.create(
        base_url="https://jsonplaceholder.typicode.com",
        timeout=10,
        logging=LoggingConfig.create(level="DEBUG", format="colored"),
    )

    async with TraceClient(config=config) as client:
        await basic_get_request(client)
        await typed_json(client)
        await post_with_json(client)
        await status_check(client)


if __name__ == "__main__":
    asyncio.run(main())
