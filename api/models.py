"""
API request and response models for the Quill REST endpoints.

These Pydantic v2 models define the HTTP transport contract. They are kept
separate from the dataclasses in auth/models.py and posts/models.py, which
own the internal domain representation. Route handlers map between the two.

Every response body uses one envelope:
    {"success": bool, "message"?: str, "count"?: int, "data"?: ...}
Absent keys are omitted rather than sent as null (see envelope()).
"""

from typing import Any, Optional

from fastapi.encoders import jsonable_encoder
from pydantic import BaseModel, ConfigDict, Field, field_validator

from auth.models import User
from auth.tokens import BCRYPT_MAX_BYTES
from posts.models import Post

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

EMAIL_PATTERN = r"^[^@\s]+@[^@\s]+\.[^@\s]+$"
PASSWORD_MIN_LENGTH = 6


# ---------------------------------------------------------------------------
# Envelope
# ---------------------------------------------------------------------------


class ApiResponse(BaseModel):
    """Uniform response envelope for success and error bodies alike."""

    model_config = ConfigDict(frozen=True)

    success: bool
    message: Optional[str] = None
    count: Optional[int] = None
    data: Optional[Any] = None


def envelope(
    data: Any = None,
    message: Optional[str] = None,
    count: Optional[int] = None,
    success: bool = True,
) -> dict:
    """Build a JSON-ready envelope dict, dropping top-level keys that are not set.

    data may be a BaseModel or a list of them. It is encoded separately so
    None-valued fields inside it (e.g. a post without an author) are kept.
    """
    body = ApiResponse(success=success, message=message, count=count).model_dump(exclude_none=True)
    if data is not None:
        body["data"] = jsonable_encoder(data)
    return body


# ---------------------------------------------------------------------------
# Auth -- request models
# ---------------------------------------------------------------------------


class RegisterRequest(BaseModel):
    """Request body for POST /auth/register.

    name and email are trimmed; the password is taken verbatim.
    Email comparison stays case-sensitive -- no lowercasing.
    """

    name: str = Field(min_length=1, max_length=100)
    email: str = Field(min_length=3, max_length=255, pattern=EMAIL_PATTERN)
    password: str = Field(min_length=PASSWORD_MIN_LENGTH)

    @field_validator("name", "email", mode="before")
    @classmethod
    def strip_text(cls, value: Any) -> Any:
        return value.strip() if isinstance(value, str) else value

    @field_validator("password")
    @classmethod
    def password_fits_bcrypt(cls, value: str) -> str:
        """Reject passwords bcrypt cannot hash in full (72 bytes, not characters)."""
        if len(value.encode("utf-8")) > BCRYPT_MAX_BYTES:
            raise ValueError(f"Password must be at most {BCRYPT_MAX_BYTES} bytes.")
        return value


class LoginRequest(BaseModel):
    """Request body for POST /auth/login. Shape-only validation.

    Fields longer than 255 characters are rejected as a 400 before any
    lookup. Any other input that is not a correct email/password pair is
    reported as InvalidCredentials by the credential check.
    """

    email: str = Field(max_length=255)
    password: str = Field(max_length=255)

    @field_validator("email", mode="before")
    @classmethod
    def strip_email(cls, value: Any) -> Any:
        return value.strip() if isinstance(value, str) else value


# ---------------------------------------------------------------------------
# Auth -- response models
# ---------------------------------------------------------------------------


class UserData(BaseModel):
    """Public view of a user. hashed_password has no field here on purpose."""

    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    email: str

    @classmethod
    def from_user(cls, user: User) -> "UserData":
        return cls(id=user.id, name=user.name, email=user.email)


class AuthData(UserData):
    """Register/login payload: the public user plus a freshly minted token."""

    token: str

    @classmethod
    def from_user_and_token(cls, user: User, token: str) -> "AuthData":
        return cls(id=user.id, name=user.name, email=user.email, token=token)


# ---------------------------------------------------------------------------
# Posts
# ---------------------------------------------------------------------------


class PostInput(BaseModel):
    """Request body for POST /posts and PUT /posts/{id}.

    Fields default to "" so a missing field reaches the service and gets the
    same "Please provide title and content." message as a blank one.
    There is deliberately no owner field: ownership comes from the token.
    """

    title: str = ""
    content: str = ""


class AuthorInfo(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    email: str


class PostResponse(BaseModel):
    """One post with its author's public profile populated."""

    model_config = ConfigDict(frozen=True)

    id: str
    title: str
    content: str
    owner_id: str
    author: Optional[AuthorInfo] = None
    created_at: str
    updated_at: str

    @classmethod
    def from_post(cls, post: Post) -> "PostResponse":
        """Factory Method: the domain -> transport mapping lives beside the model."""
        author = None
        if post.author is not None:
            author = AuthorInfo(id=post.author.id, name=post.author.name, email=post.author.email)
        return cls(
            id=post.id,
            title=post.title,
            content=post.content,
            owner_id=post.owner_id,
            author=author,
            created_at=post.created_at,
            updated_at=post.updated_at,
        )


# ---------------------------------------------------------------------------
# Health
# ---------------------------------------------------------------------------


class HealthData(BaseModel):
    """Payload for GET /health."""

    model_config = ConfigDict(frozen=True)

    status: str
    version: str
    components: dict[str, str]
