"""
posts/models.py -- Domain dataclasses for blog posts.

Pure data containers with zero logic. Validation lives in posts/service.py;
ownership checks live in posts/guard.py.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass
class Author:
    """Public profile of a post's owner. Never carries the password hash."""

    id: str
    name: str
    email: str


@dataclass
class Post:
    """A published post.

    owner_id is set once from the authenticated caller at creation and is
    never updated. author is populated by PostStore reads (joined from
    users) and is None on a Post that has not been read back from the store.

    id is None before the record is written to the database.
    """

    title: str
    content: str  # may embed HTML from the rich text editor
    owner_id: str
    id: str | None = None
    created_at: str = ""  # ISO 8601, set by store on insert
    updated_at: str = ""  # ISO 8601, bumped on every update
    author: Author | None = None
