"""
core/errors.py -- Domain error taxonomy for Quill.

Every gate and service fails fast with one of these. The outermost layer
(exception handlers in api/main.py) maps them to a status code and the
`message` attribute, which is always safe to show a caller. Internal detail
(e.g. which of the four token failures occurred) stays on the exception for
logging and tests and is never written to a response body.

Layer rule: core/ is the kernel. No imports from api/, auth/, or posts/.
"""

from __future__ import annotations

from enum import Enum


class BlogError(Exception):
    """Base class. Subclasses set status_code, code and a default message."""

    status_code: int = 500
    code: str = "internal_error"
    default_message: str = "An unexpected error occurred."

    def __init__(self, message: str | None = None) -> None:
        self.message = message or self.default_message
        super().__init__(self.message)


class ValidationFailed(BlogError):
    status_code = 400
    code = "validation_error"
    default_message = "Request validation failed."


class DuplicateEmail(BlogError):
    """Registration with an email that already belongs to a user."""

    status_code = 400
    code = "duplicate_email"
    default_message = "User already exists with this email."


class InvalidCredentials(BlogError):
    """Unknown email OR wrong password. Deliberately one kind for both."""

    status_code = 401
    code = "invalid_credentials"
    default_message = "Invalid credentials."


class TokenErrorKind(str, Enum):
    MISSING = "missing"
    MALFORMED = "malformed"
    EXPIRED = "expired"
    INVALID_SIGNATURE = "invalid_signature"


class Unauthorized(BlogError):
    """Bearer token missing or rejected.

    All four kinds produce the same 401 response; `kind` is for logs and tests.
    """

    status_code = 401
    code = "unauthorized"
    default_message = "Not authorized, token missing or invalid."

    def __init__(self, kind: TokenErrorKind, message: str | None = None) -> None:
        self.kind = kind
        super().__init__(message)


class Forbidden(BlogError):
    status_code = 403
    code = "forbidden"
    default_message = "Not authorized to perform this action."


class NotFound(BlogError):
    status_code = 404
    code = "not_found"
    default_message = "Resource not found."
