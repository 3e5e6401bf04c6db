"""
Remote post store access for the profile view.

Modules:
- client: async HTTP client for the posts collection (list/create/delete)
- ordering: display ordering of posts (newest first)
"""

__all__ = [
    "client",
    "ordering",
]
