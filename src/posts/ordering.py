from __future__ import annotations

from typing import Iterable, List

from state.models import Post


def order_posts(posts: Iterable[Post]) -> List[Post]:
    """
    Return `posts` newest first by `posted_at`.

    Posts sharing a timestamp keep their input order (`sorted` is stable,
    including with `reverse=True`).
    """
    return sorted(posts, key=lambda p: p.posted_at, reverse=True)


def posts_for_user(posts: Iterable[Post], user_id: str) -> List[Post]:
    """Keep only `user_id`'s posts, in display order."""
    return order_posts(p for p in posts if p.user_id == user_id)
