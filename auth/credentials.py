"""
auth/credentials.py -- Registration and password verification.

register_user() and verify_credentials() are the only supported way to create
or authenticate a local account. Routes must not inline get_by_email() +
verify_password(); that re-introduces the timing side channel [C1].

Layer rule: no imports from api/ or posts/.
"""

from __future__ import annotations

import logging

from sqlalchemy.exc import IntegrityError

from auth.models import User
from auth.store import UserStore
from auth.tokens import _DUMMY_HASH, hash_password, verify_password
from core.errors import DuplicateEmail, InvalidCredentials

logger = logging.getLogger("quill.auth.credentials")


def register_user(store: UserStore, name: str, email: str, password: str) -> User:
    """Create a user with a bcrypt-hashed password and return the stored record.

    Raises DuplicateEmail if the email is taken -- both when the pre-check
    finds it and when a concurrent insert trips the UNIQUE constraint.
    """
    if store.get_by_email(email) is not None:
        raise DuplicateEmail()

    user = User(name=name, email=email, hashed_password=hash_password(password))
    try:
        user_id = store.create_user(user)
    except IntegrityError as exc:
        raise DuplicateEmail() from exc

    created = store.get_by_id(user_id)
    if created is None:
        raise RuntimeError(f"user {user_id} missing immediately after insert")
    logger.info("Registered user %s", user_id)
    return created


def verify_credentials(store: UserStore, email: str, password: str) -> User:
    """Return the User for a correct email/password pair.

    Always runs bcrypt whether or not the email exists:
    - Unknown email: bcrypt runs against _DUMMY_HASH (same cost as a real check)
    - Wrong password: bcrypt runs against the real hash (same cost)
    Both raise the same InvalidCredentials, so neither the error nor the
    timing tells a caller which emails are registered.
    """
    user = store.get_by_email(email)
    if user is None:
        # Equalize timing -- do NOT return early before running bcrypt [C1]
        verify_password(password, _DUMMY_HASH)
        raise InvalidCredentials()
    if not verify_password(password, user.hashed_password):
        raise InvalidCredentials()
    return user
