from __future__ import annotations

import json
import logging
import os
from pathlib import Path
from typing import Dict, Iterable, List, Optional

from pydantic import ValidationError

from .models import User


logger = logging.getLogger(__name__)

EMAIL_REQUIRED = "Email is required"
PASSWORD_REQUIRED = "Password is required"
INCORRECT_PASSWORD = "Incorrect password"
EMAIL_NOT_REGISTERED = "This email is not registered. Create an account!"


class LoginError(ValueError):
    """Login rejected; `errors` maps form field name to message."""

    def __init__(self, errors: Dict[str, str]) -> None:
        super().__init__("Please consider change the fields below")
        self.errors = dict(errors)


def load_users(path: os.PathLike[str] | str) -> List[User]:
    """Load the user directory from a `{"users": [...]}` JSON document.

    Entries that do not describe a valid user are skipped.
    """
    with Path(path).open("r", encoding="utf-8") as f:
        raw = json.load(f)

    entries = raw.get("users") if isinstance(raw, dict) else None
    if not isinstance(entries, list):
        return []

    out: List[User] = []
    for item in entries:
        try:
            out.append(User.model_validate(item))
        except ValidationError:
            logger.warning("Skipping malformed user entry in %s", path)
    return out


def _find_by_email(users: Iterable[User], email: str) -> Optional[User]:
    for u in users:
        if u.email == email:
            return u
    return None


def authenticate(users: Iterable[User], email: str, password: str) -> User:
    """Return the user matching `email` and `password`.

    Rules:
    - Blank fields are reported per field before any lookup.
    - A known email with the wrong password is reported on the password field.
    - An unknown email is reported on the email field.
    """
    errors: Dict[str, str] = {}
    if not email:
        errors["email"] = EMAIL_REQUIRED
    if not password:
        errors["password"] = PASSWORD_REQUIRED
    if errors:
        raise LoginError(errors)

    users = list(users)
    for u in users:
        if u.email == email and u.password == password:
            return u

    if _find_by_email(users, email) is not None:
        raise LoginError({"password": INCORRECT_PASSWORD})
    raise LoginError({"email": EMAIL_NOT_REGISTERED})


__all__ = ["LoginError", "authenticate", "load_users"]
