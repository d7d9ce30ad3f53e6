"""
posts/service.py -- Post CRUD service.

Thin layer over PostStore that owns the input rules:
  title   -- trimmed, 1..TITLE_MAX_LENGTH characters after trimming.
  content -- stored verbatim (HTML from the rich text editor is allowed), but
             must contain visible text once tags and whitespace are removed.

Ownership is NOT checked here. Mutating routes run posts/guard.py first and
pass the already-authorized post's id in.
"""

from __future__ import annotations

import logging
import re

from sqlalchemy.exc import IntegrityError

from core.errors import NotFound, TokenErrorKind, Unauthorized, ValidationFailed
from posts.models import Post
from posts.store import PostStore

logger = logging.getLogger("quill.posts")

TITLE_MAX_LENGTH = 200

_TAG_RE = re.compile(r"<[^>]*>")


def visible_text(content: str) -> str:
    """Return content with HTML tags removed and surrounding whitespace trimmed."""
    return _TAG_RE.sub("", content).strip()


def _clean_title(title: str) -> str:
    cleaned = (title or "").strip()
    if not cleaned:
        raise ValidationFailed("Please provide title and content.")
    if len(cleaned) > TITLE_MAX_LENGTH:
        raise ValidationFailed(f"Title must be at most {TITLE_MAX_LENGTH} characters.")
    return cleaned


def _check_content(content: str) -> str:
    if not content or not visible_text(content):
        raise ValidationFailed("Please provide title and content.")
    return content


class PostService:
    """CRUD operations on posts.

    Usage:
        service = PostService(PostStore(engine))
        post = service.create_post("Hello", "<p>World</p>", owner_id=identity.user_id)
    """

    def __init__(self, store: PostStore) -> None:
        self.store = store

    def list_posts(self) -> list[Post]:
        """All posts, newest first."""
        return self.store.list_posts()

    def get_post(self, post_id: str) -> Post:
        post = self.store.get_post(post_id)
        if post is None:
            raise NotFound("Post not found.")
        return post

    def create_post(self, title: str, content: str, owner_id: str) -> Post:
        """Validate and insert a post owned by owner_id; return it as stored."""
        post = Post(title=_clean_title(title), content=_check_content(content), owner_id=owner_id)
        try:
            post_id = self.store.create_post(post)
        except IntegrityError as exc:
            # Token verified but its subject has no user row (database reset, or
            # a token signed elsewhere with the same secret). Answer as for any
            # rejected token rather than a 500.
            logger.warning("Post create rejected: token subject %s is not a user", owner_id)
            raise Unauthorized(TokenErrorKind.INVALID_SIGNATURE) from exc
        logger.info("Post %s created by %s", post_id, owner_id)
        return self.get_post(post_id)

    def update_post(self, post_id: str, title: str, content: str) -> Post:
        """Replace title and content. The owner cannot be changed through here."""
        cleaned_title = _clean_title(title)
        checked_content = _check_content(content)
        if not self.store.update_post(post_id, cleaned_title, checked_content):
            raise NotFound("Post not found.")
        return self.get_post(post_id)

    def delete_post(self, post_id: str) -> None:
        if not self.store.delete_post(post_id):
            raise NotFound("Post not found.")
        logger.info("Post %s deleted", post_id)
