"""
auth/models.py -- Domain dataclasses for authentication entities.

Pattern: Data class (pure data container, zero logic). Stores and routes do
the work.

Layer rule: no imports from api/ or posts/.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass
class User:
    """A registered author.

    email is unique and compared case-sensitively, exactly as stored.
    hashed_password is a bcrypt hash; it never leaves the auth layer -- API
    responses are built from id/name/email only.

    id is None before the record is written to the database.
    """

    name: str
    email: str
    hashed_password: str
    id: str | None = None
    created_at: str | None = None


@dataclass(frozen=True)
class AuthContext:
    """Identity resolved from a verified bearer token.

    Trusted for the lifetime of one request. The User record is not re-read.
    """

    user_id: str
