from __future__ import annotations

import logging
from typing import Iterable, Optional

from posts.client import PostStoreClient
from state.models import DraftValidationError, SyncState, User
from state.session_store import SessionMissingError, SessionStore
from state.users import authenticate, load_users

from .config import Settings
from .controller import SyncController


logger = logging.getLogger(__name__)

NO_POSTS_MESSAGE = "You have no posts yet."


class ProfileView:
    """
    Presentation-side glue around `SyncController`.

    - `open()` resolves the logged-in user from the session store and loads
      their posts. Session errors propagate so the caller can route to login.
    - User intents (submit, delete, refresh, logout) are forwarded to the
      controller with the resolved user.
    """

    def __init__(self, controller: SyncController, session: SessionStore) -> None:
        self.controller = controller
        self._session = session
        self.user: Optional[User] = None
        self.compose_open = False

    @property
    def state(self) -> SyncState:
        return self.controller.state

    @property
    def greeting(self) -> str:
        user = self._require_user()
        return f"Welcome, {user.first_name} {user.last_name}!"

    @property
    def empty_message(self) -> Optional[str]:
        return NO_POSTS_MESSAGE if not self.controller.state.posts else None

    async def open(self) -> SyncState:
        try:
            self.user = self._session.read()
        except SessionMissingError:
            logger.warning("No user found in session storage, redirecting")
            raise
        return await self.controller.initialize(self.user)

    async def refresh(self) -> SyncState:
        return await self.controller.initialize(self._require_user())

    def toggle_compose(self) -> bool:
        self.compose_open = not self.compose_open
        return self.compose_open

    def edit_draft(self, *, title: Optional[str] = None, text: Optional[str] = None) -> None:
        self.controller.update_draft(title=title, text=text)

    async def submit_post(self) -> SyncState:
        user = self._require_user()
        try:
            self.controller.draft.require_complete()
        except DraftValidationError:
            # Dialog stays open so the user can fill in the missing field
            return await self.controller.create_post(user)
        state = await self.controller.create_post(user)
        self.compose_open = False
        return state

    async def delete_post(self, post_id: str) -> SyncState:
        return await self.controller.delete_post(self._require_user(), post_id)

    async def aclose(self) -> None:
        await self.controller.aclose()

    def logout(self) -> None:
        self._session.clear()
        self.user = None
        self.compose_open = False

    def _require_user(self) -> User:
        if self.user is None:
            raise SessionMissingError("Profile view has not been opened")
        return self.user


def log_in(
    session: SessionStore,
    users: Iterable[User],
    email: str,
    password: str,
) -> User:
    """Check credentials and store the matching user as the session user.

    Raises `LoginError` with per-field messages when the credentials do not match.
    """
    user = authenticate(users, email, password)
    session.write(user)
    logger.info("User %s logged in", user.id)
    return user


def build_view(settings: Optional[Settings] = None) -> ProfileView:
    """Wire a `ProfileView` from `settings` (environment when omitted)."""
    cfg = settings or Settings.from_env()
    store = PostStoreClient(base_url=cfg.posts_api_base, timeout=cfg.http_timeout)
    session = SessionStore(path=cfg.session_path, fernet_key=cfg.fernet_key)
    return ProfileView(SyncController(store), session)


def log_in_from_settings(email: str, password: str, settings: Optional[Settings] = None) -> User:
    cfg = settings or Settings.from_env()
    session = SessionStore(path=cfg.session_path, fernet_key=cfg.fernet_key)
    return log_in(session, load_users(cfg.users_path), email, password)
