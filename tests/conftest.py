import json
import os
import sys
from typing import Any, Dict, List, Optional, Tuple

import httpx
import pytest


def pytest_configure():
    # Ensure `src/` is importable as top-level for `posts.*` / `state.*` imports
    root = os.path.abspath(os.path.dirname(os.path.dirname(__file__)))
    src_path = os.path.join(root, "src")
    if src_path not in sys.path:
        sys.path.insert(0, src_path)


class FakePostServer:
    """In-memory `/posts` collection served through httpx.MockTransport."""

    def __init__(self, posts: Optional[List[Dict[str, Any]]] = None) -> None:
        self.posts: List[Dict[str, Any]] = [dict(p) for p in (posts or [])]
        self.requests: List[Tuple[str, str]] = []
        self.bodies: List[Dict[str, Any]] = []
        # method -> HTTP status to answer with instead of serving the request
        self.fail_status: Dict[str, int] = {}
        # methods that raise a transport error
        self.fail_transport: set = set()
        self._seq = 0

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append((request.method, request.url.path))
        if request.method in self.fail_transport:
            raise httpx.ConnectError("connection refused", request=request)
        status = self.fail_status.get(request.method)
        if status is not None:
            return httpx.Response(status, json={"error": "forced"})

        path = request.url.path
        if request.method == "GET" and path == "/posts":
            return httpx.Response(200, json=self.posts)
        if request.method == "POST" and path == "/posts":
            body = json.loads(request.content)
            self.bodies.append(body)
            self._seq += 1
            record = {"id": f"new-{self._seq}", **body}
            self.posts.append(record)
            return httpx.Response(201, json=record)
        if request.method == "DELETE" and path.startswith("/posts/"):
            post_id = path.rsplit("/", 1)[-1]
            for i, p in enumerate(self.posts):
                if str(p.get("id")) == post_id:
                    del self.posts[i]
                    return httpx.Response(200, json={})
            return httpx.Response(404, json={})
        return httpx.Response(404, json={})

    def async_client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            transport=httpx.MockTransport(self.handler), base_url="http://store.test"
        )

    def count(self, method: str) -> int:
        return sum(1 for m, _ in self.requests if m == method)


def make_post(post_id: str, user_id: str, posted_at: str, title: str = "t", text: str = "x") -> Dict[str, Any]:
    return {"id": post_id, "userId": user_id, "title": title, "text": text, "postedAt": posted_at}


@pytest.fixture
def post_server() -> FakePostServer:
    return FakePostServer(
        [
            make_post("p1", "u1", "2024-01-01T10:00:00.000Z", title="first"),
            make_post("p2", "u2", "2024-01-02T10:00:00.000Z", title="other user"),
            make_post("p3", "u1", "2024-01-03T10:00:00.000Z", title="latest"),
        ]
    )
