from __future__ import annotations

import logging
from datetime import datetime
from typing import Any, Dict, List, Optional
from urllib.parse import quote

import httpx
from pydantic import ValidationError

from state.models import Post, format_timestamp


logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "http://localhost:5001"


class PostStoreError(RuntimeError):
    """Base error for the post store client."""


class PostStoreApiError(PostStoreError):
    """Store answered with a non-2xx status or an unexpected payload."""


class PostStoreTransportError(PostStoreError):
    """The request never got an answer (connection failure, timeout)."""


class PostStoreClient:
    """
    Minimal async client for a JSON posts collection.

    Notes
    - `GET /posts` returns every user's posts; callers filter by user.
    - `POST /posts` returns the created record with its store-assigned id.
    - `DELETE /posts/{id}` returns no meaningful body.
    - Requests are never retried; any failure raises a `PostStoreError`.
    """

    def __init__(
        self,
        *,
        base_url: str = DEFAULT_BASE_URL,
        timeout: float = 15.0,
        client: Optional[httpx.AsyncClient] = None,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self._timeout = timeout
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(base_url=self._base_url, timeout=self._timeout)

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    async def __aenter__(self) -> "PostStoreClient":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.aclose()

    # --------------- Public API ---------------
    async def list_posts(self) -> List[Post]:
        """Fetch all posts in the collection, in store order.

        Records that do not parse as a post are logged and skipped.
        """
        resp = await self._send("GET", "/posts")
        data = self._json(resp)
        if not isinstance(data, list):
            raise PostStoreApiError("Expected a JSON array from GET /posts")
        posts: List[Post] = []
        for item in data:
            try:
                posts.append(Post.model_validate(item))
            except ValidationError as ve:
                # One bad record must not hide everyone else's posts
                logger.warning("Skipping malformed post record: %s", ve)
        return posts

    async def create_post(self, *, user_id: str, title: str, text: str, posted_at: datetime) -> Post:
        """Create a post and return the stored record."""
        body: Dict[str, Any] = {
            "userId": user_id,
            "title": title,
            "text": text,
            "postedAt": format_timestamp(posted_at),
        }
        resp = await self._send("POST", "/posts", json=body)
        data = self._json(resp)
        try:
            return Post.model_validate(data)
        except ValidationError as ve:
            raise PostStoreApiError(f"Failed to parse created post: {ve}") from ve

    async def delete_post(self, post_id: str) -> None:
        await self._send("DELETE", f"/posts/{quote(post_id, safe='')}")

    # --------------- Internal ---------------
    async def _send(self, method: str, path: str, **kwargs: Any) -> httpx.Response:
        try:
            resp = await self._client.request(method, path, **kwargs)
        except (httpx.TimeoutException, httpx.TransportError) as exc:
            raise PostStoreTransportError(f"{method} {path} failed: {exc}") from exc

        if not resp.is_success:
            raise PostStoreApiError(
                f"HTTP {resp.status_code} from post store on {method} {path}: {resp.text[:200]}"
            )
        logger.debug("%s %s -> %s", method, path, resp.status_code)
        return resp

    @staticmethod
    def _json(resp: httpx.Response) -> Any:
        try:
            return resp.json()
        except ValueError as exc:  # JSON decode error
            raise PostStoreApiError("Failed to parse JSON from post store") from exc


__all__ = [
    "PostStoreClient",
    "PostStoreError",
    "PostStoreApiError",
    "PostStoreTransportError",
]
