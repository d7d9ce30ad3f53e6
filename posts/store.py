"""
posts/store.py -- SQLAlchemy Core persistence layer for posts.

Pattern: Repository + Data Mapper (same as auth/store.py). PostStore is the
repository; _row_to_post is the mapper.

Every read joins users so the returned Post carries its author's public
profile -- one query instead of one lookup per post.

Concurrency: each method is a single statement in its own transaction.
Two concurrent updates of the same post are last-writer-wins.

Security: all queries use bound parameters. No f-strings in SQL.
"""

from __future__ import annotations

import uuid
from datetime import datetime, timezone

from sqlalchemy import Column, ForeignKey, Integer, String, Table, Text, select
from sqlalchemy.engine import Engine

from auth.store import users_table
from core.database import metadata
from posts.models import Author, Post

# ---------------------------------------------------------------------------
# Schema
# ---------------------------------------------------------------------------

posts_table = Table(
    "posts",
    metadata,
    # Insertion sequence. Breaks ties between posts created within the same
    # clock tick so newest-first ordering is total.
    Column("seq", Integer, primary_key=True, autoincrement=True),
    Column("id", String(32), nullable=False, unique=True),
    Column("title", String(200), nullable=False),
    Column("content", Text, nullable=False),
    Column("owner_id", String(32), ForeignKey("users.id"), nullable=False, index=True),
    Column("created_at", String(32), nullable=False),
    Column("updated_at", String(32), nullable=False),
)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def _select_with_author():
    return select(
        posts_table,
        users_table.c.name.label("author_name"),
        users_table.c.email.label("author_email"),
    ).select_from(posts_table.outerjoin(users_table, posts_table.c.owner_id == users_table.c.id))


# ---------------------------------------------------------------------------
# Repository
# ---------------------------------------------------------------------------


class PostStore:
    """Repository for Post entities.

    Usage:
        store = PostStore(engine)
        post_id = store.create_post(Post(title="Hello", content="<p>World</p>", owner_id=uid))
        post = store.get_post(post_id)
        store.update_post(post_id, title="Hello again", content="<p>World</p>")
        store.delete_post(post_id)
    """

    def __init__(self, engine: Engine) -> None:
        self.engine = engine

    def create_post(self, post: Post) -> str:
        """Insert a new post and return its generated id.

        Raises sqlalchemy.exc.IntegrityError if owner_id references no user.
        """
        post_id = uuid.uuid4().hex
        now = _now_iso()
        with self.engine.connect() as conn:
            conn.execute(
                posts_table.insert().values(
                    id=post_id,
                    title=post.title,
                    content=post.content,
                    owner_id=post.owner_id,
                    created_at=now,
                    updated_at=now,
                )
            )
            conn.commit()
        return post_id

    def get_post(self, post_id: str) -> Post | None:
        """Return the post with its author populated, or None if not found."""
        with self.engine.connect() as conn:
            row = conn.execute(_select_with_author().where(posts_table.c.id == post_id)).fetchone()
        return _row_to_post(row) if row is not None else None

    def list_posts(self) -> list[Post]:
        """Return every post, newest created first."""
        query = _select_with_author().order_by(posts_table.c.created_at.desc(), posts_table.c.seq.desc())
        with self.engine.connect() as conn:
            rows = conn.execute(query).fetchall()
        return [_row_to_post(r) for r in rows]

    def update_post(self, post_id: str, title: str, content: str) -> bool:
        """Overwrite title and content. owner_id and created_at are untouched.

        Returns True if a row was updated, False if post_id was not found.
        """
        with self.engine.connect() as conn:
            result = conn.execute(
                posts_table.update()
                .where(posts_table.c.id == post_id)
                .values(title=title, content=content, updated_at=_now_iso())
            )
            conn.commit()
        return result.rowcount > 0

    def delete_post(self, post_id: str) -> bool:
        """Permanently delete a post. Returns True if deleted, False if not found.

        Ownership is the caller's responsibility (posts/guard.py).
        """
        with self.engine.connect() as conn:
            result = conn.execute(posts_table.delete().where(posts_table.c.id == post_id))
            conn.commit()
        return result.rowcount > 0


# ---------------------------------------------------------------------------
# Row mapper (Data Mapper pattern)
# ---------------------------------------------------------------------------


def _row_to_post(row) -> Post:
    author = None
    if row.author_name is not None:
        author = Author(id=row.owner_id, name=row.author_name, email=row.author_email)
    return Post(
        id=row.id,
        title=row.title,
        content=row.content,
        owner_id=row.owner_id,
        created_at=row.created_at,
        updated_at=row.updated_at,
        author=author,
    )
