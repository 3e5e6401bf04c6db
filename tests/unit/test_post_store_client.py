from __future__ import annotations

import json
from datetime import datetime, timezone

import httpx
import pytest

from conftest import FakePostServer
from posts.client import (
    PostStoreApiError,
    PostStoreClient,
    PostStoreTransportError,
)


@pytest.mark.asyncio
async def test_list_posts_parses_records(post_server: FakePostServer):
    async with PostStoreClient(client=post_server.async_client()) as store:
        posts = await store.list_posts()

    assert [p.id for p in posts] == ["p1", "p2", "p3"]
    assert posts[0].user_id == "u1"
    assert posts[0].posted_at == datetime(2024, 1, 1, 10, tzinfo=timezone.utc)
    assert post_server.requests == [("GET", "/posts")]


@pytest.mark.asyncio
async def test_list_posts_coerces_numeric_ids():
    server = FakePostServer(
        [{"id": 7, "userId": 1, "title": "t", "text": "x", "postedAt": "2024-01-01T00:00:00Z"}]
    )
    store = PostStoreClient(client=server.async_client())

    posts = await store.list_posts()

    assert posts[0].id == "7"
    assert posts[0].user_id == "1"


@pytest.mark.asyncio
async def test_create_post_sends_wire_body_and_returns_record(post_server: FakePostServer):
    store = PostStoreClient(client=post_server.async_client())
    when = datetime(2024, 3, 4, 5, 6, 7, 891000, tzinfo=timezone.utc)

    created = await store.create_post(user_id="u1", title="Hello", text="World", posted_at=when)

    assert created.id == "new-1"
    assert created.title == "Hello"
    assert post_server.bodies == [
        {"userId": "u1", "title": "Hello", "text": "World", "postedAt": "2024-03-04T05:06:07.891Z"}
    ]


@pytest.mark.asyncio
async def test_delete_missing_post_raises_api_error(post_server: FakePostServer):
    store = PostStoreClient(client=post_server.async_client())

    with pytest.raises(PostStoreApiError):
        await store.delete_post("does-not-exist")


@pytest.mark.asyncio
async def test_non_2xx_raises_api_error_without_retry(post_server: FakePostServer):
    post_server.fail_status["GET"] = 503
    store = PostStoreClient(client=post_server.async_client())

    with pytest.raises(PostStoreApiError):
        await store.list_posts()
    assert post_server.count("GET") == 1


@pytest.mark.asyncio
async def test_transport_failure_raises_transport_error(post_server: FakePostServer):
    post_server.fail_transport.add("POST")
    store = PostStoreClient(client=post_server.async_client())

    with pytest.raises(PostStoreTransportError):
        await store.create_post(
            user_id="u1", title="t", text="x", posted_at=datetime(2024, 1, 1, tzinfo=timezone.utc)
        )


@pytest.mark.asyncio
async def test_malformed_payload_raises_api_error():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json={"not": "a list"})

    client = httpx.AsyncClient(transport=httpx.MockTransport(handler), base_url="http://store.test")
    store = PostStoreClient(client=client)

    with pytest.raises(PostStoreApiError):
        await store.list_posts()


@pytest.mark.asyncio
async def test_invalid_records_are_skipped():
    payload = [
        {"id": "p1", "title": "no owner"},
        "not a record",
        {"id": "p2", "userId": "u1", "title": "t", "text": "x", "postedAt": "2024-01-01T00:00:00Z"},
    ]

    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, content=json.dumps(payload))

    client = httpx.AsyncClient(transport=httpx.MockTransport(handler), base_url="http://store.test")
    store = PostStoreClient(client=client)

    posts = await store.list_posts()

    assert [p.id for p in posts] == ["p2"]


@pytest.mark.asyncio
async def test_delete_escapes_post_id():
    seen = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request.url.raw_path)
        return httpx.Response(200, json={})

    client = httpx.AsyncClient(transport=httpx.MockTransport(handler), base_url="http://store.test")
    store = PostStoreClient(client=client)

    await store.delete_post("a/b?c#d")

    assert seen == [b"/posts/a%2Fb%3Fc%23d"]


@pytest.mark.asyncio
async def test_injected_client_is_not_closed(post_server: FakePostServer):
    client = post_server.async_client()
    async with PostStoreClient(client=client):
        pass

    assert not client.is_closed
    await client.aclose()
