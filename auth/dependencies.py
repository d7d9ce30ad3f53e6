"""
auth/dependencies.py -- Token Verifier gate and its FastAPI Depends() wrapper.

authenticate_request() is the pure gate:
    Authorization header value -> AuthContext, or Unauthorized(kind)
It never touches the request object or the database, so it can be unit
tested with a header string and a Settings instance.

require_identity() adapts it to FastAPI: it reads the header, runs the gate,
stores the AuthContext on request.state.identity for downstream dependencies,
and logs the internal failure kind. Every kind reaches the caller as the same
401 via the BlogError handler in api/main.py.

Layer rule: no imports from api/ or posts/. Importing fastapi is allowed
because this module is part of the FastAPI dependency injection system.
"""

from __future__ import annotations

import logging
from datetime import datetime

from fastapi import Request

from auth.models import AuthContext
from auth.tokens import decode_access_token, extract_bearer_token
from core.config import Settings
from core.errors import Unauthorized

logger = logging.getLogger("quill.auth.dependencies")


def authenticate_request(authorization: str | None, settings: Settings, now: datetime | None = None) -> AuthContext:
    """Resolve the caller's identity from an Authorization header value."""
    token = extract_bearer_token(authorization)
    user_id = decode_access_token(token, settings, now=now)
    return AuthContext(user_id=user_id)


def require_identity(request: Request) -> AuthContext:
    """Require a valid bearer token. Raises Unauthorized (401) otherwise.

    Use as a FastAPI dependency:
        @router.post("/posts")
        def route(identity: AuthContext = Depends(require_identity)): ...
    """
    settings: Settings = request.app.state.settings
    try:
        identity = authenticate_request(request.headers.get("Authorization"), settings)
    except Unauthorized as exc:
        logger.info("Rejected bearer token on %s %s: %s", request.method, request.url.path, exc.kind.value)
        raise
    request.state.identity = identity
    return identity
