from __future__ import annotations

from datetime import datetime, timezone
from typing import Annotated, Any, List, Optional

from pydantic import BaseModel, BeforeValidator, ConfigDict, Field, field_validator


class DraftValidationError(ValueError):
    """Raised when a post draft is missing a required field."""


def _coerce_id(v: Any) -> Any:
    # json-server style stores may hand back numeric ids
    if isinstance(v, (int, float)) and not isinstance(v, bool):
        return str(int(v)) if float(v).is_integer() else str(v)
    return v


RecordId = Annotated[str, BeforeValidator(_coerce_id)]


class User(BaseModel):
    """
    Identity record of the logged-in user.

    Read-only input for the controller; only `id` is used to scope posts.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    id: RecordId
    first_name: str = Field(default="", alias="firstName")
    last_name: str = Field(default="", alias="lastName")
    email: str = ""
    password: str = ""

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()


class Post(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: RecordId
    user_id: RecordId = Field(..., alias="userId")
    title: str
    text: str
    posted_at: datetime = Field(..., alias="postedAt")

    @field_validator("posted_at")
    @classmethod
    def _assume_utc(cls, v: datetime) -> datetime:
        # Naive timestamps would not compare against aware ones
        if v.tzinfo is None:
            return v.replace(tzinfo=timezone.utc)
        return v


class PostDraft(BaseModel):
    """Compose buffer for a new post."""

    title: str = ""
    text: str = ""

    def require_complete(self) -> None:
        if not self.title.strip() or not self.text.strip():
            raise DraftValidationError("Both title and content are required.")


class SyncState(BaseModel):
    """
    Transient view state owned by the sync controller.

    Fields
    - posts: the user's posts, newest first.
    - is_loading: True while a command's network round trip is in flight.
    - error: user-facing error message of the last operation, if any.
    - success: user-facing confirmation of the last operation, if any.

    Notes
    - Never persisted; rebuilt from the remote store on every initialize.
    """

    posts: List[Post] = Field(default_factory=list)
    is_loading: bool = False
    error: Optional[str] = None
    success: Optional[str] = None

    @classmethod
    def empty(cls) -> "SyncState":
        return cls()


def format_timestamp(dt: datetime) -> str:
    """Render `dt` as ISO-8601 UTC with milliseconds and a `Z` suffix."""
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    utc = dt.astimezone(timezone.utc)
    return utc.isoformat(timespec="milliseconds").replace("+00:00", "Z")
