"""
api/routes/posts.py -- Blog post routes.

Routes:
  GET    /posts            -- list, newest first (public)
  GET    /posts/{post_id}  -- one post (public)
  POST   /posts            -- create (bearer token)
  PUT    /posts/{post_id}  -- replace title/content (bearer token + owner)
  DELETE /posts/{post_id}  -- delete (bearer token + owner)

Authorization pipeline for mutations, fixed order:
  require_identity (401) -> authorize_owner: exists (404) -> owns (403)
The guard hands the loaded Post to the handler.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse

from api.models import PostInput, PostResponse, envelope
from auth.dependencies import require_identity
from auth.models import AuthContext
from posts.guard import require_post_owner
from posts.models import Post
from posts.service import PostService

router = APIRouter()


def _service(request: Request) -> PostService:
    return request.app.state.post_service


@router.get("/posts")
def list_posts(request: Request) -> JSONResponse:
    posts = _service(request).list_posts()
    rows = [PostResponse.from_post(p) for p in posts]
    return JSONResponse(content=envelope(rows, count=len(rows)))


@router.get("/posts/{post_id}")
def get_post(request: Request, post_id: str) -> JSONResponse:
    post = _service(request).get_post(post_id)
    return JSONResponse(content=envelope(PostResponse.from_post(post)))


@router.post("/posts", status_code=201)
def create_post(
    request: Request,
    body: PostInput,
    identity: AuthContext = Depends(require_identity),
) -> JSONResponse:
    """Create a post owned by the token's subject."""
    post = _service(request).create_post(body.title, body.content, owner_id=identity.user_id)
    return JSONResponse(
        status_code=201,
        content=envelope(PostResponse.from_post(post), message="Post created successfully."),
    )


@router.put("/posts/{post_id}")
def update_post(
    request: Request,
    body: PostInput,
    post: Post = Depends(require_post_owner),
) -> JSONResponse:
    """Replace title and content. owner_id is never read from the body."""
    updated = _service(request).update_post(post.id, body.title, body.content)
    return JSONResponse(content=envelope(PostResponse.from_post(updated), message="Post updated successfully."))


@router.delete("/posts/{post_id}")
def delete_post(request: Request, post: Post = Depends(require_post_owner)) -> JSONResponse:
    _service(request).delete_post(post.id)
    return JSONResponse(content=envelope(message="Post deleted successfully."))
