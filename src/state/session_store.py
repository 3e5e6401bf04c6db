from __future__ import annotations

import json
import logging
import os
from pathlib import Path
from typing import Optional

from cryptography.fernet import Fernet, InvalidToken
from pydantic import ValidationError

from .models import User


logger = logging.getLogger(__name__)


class SessionError(RuntimeError):
    """Base error for the session store; the profile view cannot open."""


class SessionMissingError(SessionError):
    """No user is logged in."""


class SessionCorruptError(SessionError):
    """The stored session could not be decrypted or parsed."""


def _to_fernet(key: str | bytes) -> Fernet:
    """Construct a Fernet instance from a user-provided key.

    The key must be a URL-safe base64-encoded 32-byte key (str or bytes),
    as returned by `cryptography.fernet.Fernet.generate_key()`.
    """
    if isinstance(key, str):
        key_bytes = key.encode("utf-8")
    else:
        key_bytes = key
    return Fernet(key_bytes)


def _dump_user_json(user: User) -> bytes:
    # Deterministic JSON: stable key order, no extra whitespace
    return json.dumps(
        user.model_dump(by_alias=True), separators=(",", ":"), sort_keys=True
    ).encode("utf-8")


def _load_user_json(data: bytes) -> User:
    raw = json.loads(data.decode("utf-8"))
    return User.model_validate(raw)


class SessionStore:
    """
    File-backed storage for the logged-in user, encrypted at rest using Fernet.

    Usage
    - `write(user)` at login, `read()` when the profile opens, `clear()` at logout.
    - `read()` raises `SessionMissingError` when nobody is logged in and
      `SessionCorruptError` when the file cannot be decrypted or parsed.
      Callers route away from the profile on either.

    Path and key come from `profile_view.config.Settings`.
    """

    def __init__(self, *, path: os.PathLike[str] | str, fernet_key: str | bytes) -> None:
        self._path = Path(path)
        self._fernet = _to_fernet(fernet_key)

    @property
    def path(self) -> Path:
        return self._path

    # -------- Core operations --------
    def read(self) -> User:
        """Read and decrypt the logged-in user.

        Raises:
        - SessionMissingError if no session file exists.
        - SessionCorruptError if decryption fails or content is not a valid user.
        """
        try:
            body = self._path.read_bytes()
        except FileNotFoundError as ex:
            raise SessionMissingError("No user found in session storage") from ex

        try:
            decrypted = self._fernet.decrypt(body)
        except InvalidToken as ex:
            raise SessionCorruptError("Failed to decrypt session: invalid Fernet token") from ex

        try:
            return _load_user_json(decrypted)
        except (ValueError, ValidationError) as ex:
            raise SessionCorruptError("Failed to parse user data from session") from ex

    def read_optional(self) -> Optional[User]:
        """Like `read()`, but returns None when nobody is logged in."""
        try:
            return self.read()
        except SessionMissingError:
            return None

    def write(self, user: User) -> None:
        """Encrypt and store `user` as the logged-in user."""
        ciphertext = self._fernet.encrypt(_dump_user_json(user))
        self._path.parent.mkdir(parents=True, exist_ok=True)
        tmp = self._path.with_name(self._path.name + ".tmp")
        tmp.write_bytes(ciphertext)
        os.replace(tmp, self._path)
        logger.debug("Stored session for user %s", user.id)

    def clear(self) -> None:
        """Remove the stored session; a no-op when nobody is logged in."""
        try:
            self._path.unlink()
        except FileNotFoundError:
            return
        logger.debug("Cleared session at %s", self._path)


__all__ = [
    "SessionStore",
    "SessionError",
    "SessionMissingError",
    "SessionCorruptError",
]
