"""
posts/guard.py -- Ownership Guard for mutating post routes.

authorize_owner() is the pure gate:
    (post id, AuthContext) -> Post, or NotFound / Forbidden
Existence is checked before ownership. A missing post is 404 for every
caller, owner or not, so a non-owner learns nothing extra from a 403.

require_post_owner() composes it after auth.dependencies.require_identity
for FastAPI routes. The loaded Post is handed to the route so the handler
does not fetch it a second time.

No retries and no state kept between calls.
"""

from __future__ import annotations

import logging

from fastapi import Depends, Request

from auth.dependencies import require_identity
from auth.models import AuthContext
from core.errors import Forbidden, NotFound
from posts.models import Post
from posts.store import PostStore

logger = logging.getLogger("quill.posts.guard")


def authorize_owner(store: PostStore, post_id: str, identity: AuthContext) -> Post:
    """Return the post if identity owns it."""
    post = store.get_post(post_id)
    if post is None:
        raise NotFound("Post not found.")
    if post.owner_id != identity.user_id:
        logger.info("User %s denied on post %s owned by %s", identity.user_id, post_id, post.owner_id)
        raise Forbidden()
    return post


def require_post_owner(
    request: Request,
    post_id: str,
    identity: AuthContext = Depends(require_identity),
) -> Post:
    """FastAPI dependency: 401 without a valid token, then 404, then 403.

    post_id is bound from the route path ("/posts/{post_id}").
    """
    store: PostStore = request.app.state.post_store
    return authorize_owner(store, post_id, identity)
