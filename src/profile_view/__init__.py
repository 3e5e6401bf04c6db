"""
Profile view: post synchronization for the logged-in user.

Modules:
- controller: SyncController, list/create/delete with re-list reconciliation
- view: ProfileView glue, login helper and wiring from settings
- config: environment-driven settings
"""

from .controller import SyncController
from .view import ProfileView, build_view, log_in, log_in_from_settings

__all__ = ["ProfileView", "SyncController", "build_view", "log_in", "log_in_from_settings"]
