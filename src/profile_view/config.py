from __future__ import annotations

import os
from typing import Optional

from pydantic import BaseModel

from posts.client import DEFAULT_BASE_URL


ENV_POSTS_API_BASE = "PROFILE_POSTS_API_BASE"
ENV_HTTP_TIMEOUT = "PROFILE_HTTP_TIMEOUT"
ENV_SESSION_PATH = "PROFILE_SESSION_PATH"
ENV_FERNET_KEY = "PROFILE_FERNET_KEY"
ENV_USERS_PATH = "PROFILE_USERS_PATH"


def _getenv(name: str, default: Optional[str] = None) -> Optional[str]:
    val = os.environ.get(name)
    return val if val not in (None, "") else default


def _require(v: Optional[str], what: str) -> str:
    if not v:
        raise RuntimeError(f"Missing required configuration: {what}")
    return v


class Settings(BaseModel):
    posts_api_base: str = DEFAULT_BASE_URL
    http_timeout: float = 15.0
    session_path: str = ".cache/session.bin"
    fernet_key: str
    users_path: str = "db/data.json"

    @classmethod
    def from_env(cls) -> "Settings":
        timeout_raw = _getenv(ENV_HTTP_TIMEOUT, "15")
        try:
            timeout = float(timeout_raw)  # type: ignore[arg-type]
        except ValueError as ex:
            raise RuntimeError(f"Invalid {ENV_HTTP_TIMEOUT}: {timeout_raw!r}") from ex
        return cls(
            posts_api_base=_getenv(ENV_POSTS_API_BASE, DEFAULT_BASE_URL),  # type: ignore[arg-type]
            http_timeout=timeout,
            session_path=_getenv(ENV_SESSION_PATH, ".cache/session.bin"),  # type: ignore[arg-type]
            fernet_key=_require(_getenv(ENV_FERNET_KEY), ENV_FERNET_KEY),
            users_path=_getenv(ENV_USERS_PATH, "db/data.json"),  # type: ignore[arg-type]
        )
