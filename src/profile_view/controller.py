"""Post synchronization controller for the profile view.

Reconciles the profile's in-memory post list with the remote post store.
Every mutating command ends by re-listing the store, so the displayed posts
always come from the store's answer rather than from local edits.

Commands are serialized per controller with an asyncio.Lock: a second
command issued while one is in flight waits for it to finish. Re-list
responses therefore cannot arrive out of order.
"""
from __future__ import annotations

import asyncio
import logging
from contextlib import contextmanager
from datetime import datetime, timezone
from typing import Callable, Iterator, List, Optional

from posts.client import PostStoreClient, PostStoreError
from posts.ordering import posts_for_user
from state.models import DraftValidationError, PostDraft, SyncState, User


logger = logging.getLogger(__name__)

LOAD_FAILED = "Failed to load posts."
POST_ADDED = "Your post has been successfully added!"
POST_DELETED = "Your post has been successfully deleted!"

StateListener = Callable[[SyncState], None]


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class SyncController:
    """Owns `SyncState` and runs list/create/delete against the post store.

    Failures never escape a command: store errors become state updates
    (list) or log entries (create, delete), and the controller stays usable.

    Example:
        >>> controller = SyncController(PostStoreClient())
        >>> state = await controller.initialize(user)
        >>> state = await controller.create_post(user, PostDraft(title="Hi", text="..."))
    """

    def __init__(
        self,
        store: PostStoreClient,
        *,
        clock: Optional[Callable[[], datetime]] = None,
    ) -> None:
        self._store = store
        self._clock = clock or _utcnow
        self._state = SyncState.empty()
        self._draft = PostDraft()
        self._lock = asyncio.Lock()
        self._listeners: List[StateListener] = []

    async def aclose(self) -> None:
        await self._store.aclose()

    # --------------- Observation ---------------
    @property
    def state(self) -> SyncState:
        """Snapshot of the current state; mutating it has no effect."""
        return self._state.model_copy(deep=True)

    @property
    def draft(self) -> PostDraft:
        return self._draft.model_copy()

    def update_draft(self, *, title: Optional[str] = None, text: Optional[str] = None) -> PostDraft:
        changes = {k: v for k, v in (("title", title), ("text", text)) if v is not None}
        self._draft = self._draft.model_copy(update=changes)
        return self.draft

    def subscribe(self, listener: StateListener) -> Callable[[], None]:
        """Call `listener` with a snapshot on every state change.

        Returns a function that removes the listener.
        """
        self._listeners.append(listener)

        def _unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return _unsubscribe

    # --------------- Commands ---------------
    async def initialize(self, user: User) -> SyncState:
        """Load `user`'s posts from the store. Safe to call again to refresh."""
        async with self._lock:
            with self._loading():
                await self._relist(user)
            return self.state

    async def create_post(self, user: User, draft: Optional[PostDraft] = None) -> SyncState:
        """Send a new post for `user`; uses the draft buffer when `draft` is None.

        A blank title or text is rejected locally without touching the store.
        """
        async with self._lock:
            draft = draft if draft is not None else self._draft
            try:
                draft.require_complete()
            except DraftValidationError as exc:
                self._state.error = str(exc)
                self._state.success = None
                self._notify()
                return self.state

            with self._loading():
                try:
                    created = await self._store.create_post(
                        user_id=user.id,
                        title=draft.title,
                        text=draft.text,
                        posted_at=self._clock(),
                    )
                except PostStoreError as exc:
                    logger.warning("Error adding post for user %s: %s", user.id, exc)
                else:
                    self._state.posts = [created, *self._state.posts]
                    self._state.success = POST_ADDED
                    self._notify()
                await self._relist(user)
                self._draft = PostDraft()
            return self.state

    async def delete_post(self, user: User, post_id: str) -> SyncState:
        """Delete `post_id` from the store.

        The id is not checked against `user`; the view only offers the posts
        already filtered to `user`.
        """
        async with self._lock:
            with self._loading():
                try:
                    await self._store.delete_post(post_id)
                except PostStoreError as exc:
                    logger.warning("Error deleting post %s: %s", post_id, exc)
                else:
                    self._state.posts = [p for p in self._state.posts if p.id != post_id]
                    self._state.success = POST_DELETED
                    self._notify()
                await self._relist(user)
            return self.state

    # --------------- Internal ---------------
    async def _relist(self, user: User) -> bool:
        """Replace `posts` with the store's current view of `user`'s posts.

        On failure the list is emptied, `error` is set and any `success`
        message from the same command is dropped.
        """
        try:
            fetched = await self._store.list_posts()
        except PostStoreError as exc:
            logger.warning("Error fetching posts: %s", exc)
            self._state.posts = []
            self._state.error = LOAD_FAILED
            self._state.success = None
            return False
        self._state.posts = posts_for_user(fetched, user.id)
        return True

    @contextmanager
    def _loading(self) -> Iterator[None]:
        self._state.is_loading = True
        self._state.error = None
        self._state.success = None
        self._notify()
        try:
            yield
        finally:
            self._state.is_loading = False
            self._notify()

    def _notify(self) -> None:
        if not self._listeners:
            return
        snapshot = self.state
        for listener in list(self._listeners):
            listener(snapshot)


__all__ = ["SyncController", "LOAD_FAILED", "POST_ADDED", "POST_DELETED"]
