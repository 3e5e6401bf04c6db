"""
Data models and the session storage adapter.

The models describe posts, the logged-in user and the controller's transient
view state. The session store keeps the logged-in user encrypted on disk.
"""

from .models import DraftValidationError, Post, PostDraft, SyncState, User

__all__ = ["DraftValidationError", "Post", "PostDraft", "SyncState", "User"]
