"""
auth/tokens.py -- Password hashing and JWT bearer tokens.

Security design decisions:
  JWT: python-jose with HS256. Tokens carry sub (user id), iat and exp, all
       integers except sub. Issuance is a pure computation -- nothing is
       persisted, so tokens cannot be revoked before exp (documented
       behaviour; logout is client-side token deletion).

  Verification is staged so failures are distinguishable internally:
       1. structure -- header and claims decode, claims are a JSON object with
          sub/iat/exp of the right types             -> MALFORMED
       2. signature -- HS256 under the server secret  -> INVALID_SIGNATURE
       3. expiry    -- now >= exp                     -> EXPIRED
       python-jose's jwt.decode() folds all of these into one JWTError, so
       the stages call jws/jwt helpers individually.

  Passwords: bcrypt used directly. _DUMMY_HASH enables timing equalization
       in auth/credentials.verify_credentials() so response time does not
       reveal whether an email is registered [C1].

Settings are passed in explicitly; nothing here reads the environment.

Layer rule: no imports from api/ or posts/. Import from core/ is allowed.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import TYPE_CHECKING

import bcrypt
from jose import JWTError, jws, jwt
from jose.exceptions import JWSError

from core.errors import TokenErrorKind, Unauthorized

if TYPE_CHECKING:
    from core.config import Settings

logger = logging.getLogger("quill.auth")

_ALGORITHM = "HS256"

# bcrypt only looks at the first 72 bytes; newer releases raise instead of
# truncating. api/models.py rejects longer passwords before they reach here.
BCRYPT_MAX_BYTES = 72

# ---------------------------------------------------------------------------
# Password hashing (bcrypt -- direct usage, no passlib wrapper)
# ---------------------------------------------------------------------------


def hash_password(plain: str) -> str:
    """Return a salted bcrypt hash of the given plaintext password."""
    return bcrypt.hashpw(plain.encode("utf-8"), bcrypt.gensalt()).decode("utf-8")


def verify_password(plain: str, hashed: str) -> bool:
    """Return True if the plaintext password matches the bcrypt hash."""
    try:
        return bcrypt.checkpw(plain.encode("utf-8"), hashed.encode("utf-8"))
    except ValueError:
        # Malformed stored hash or over-long input
        return False


# Timing equalization dummy hash [C1]. Computed once at module load.
_DUMMY_HASH: str = hash_password("quill_timing_dummy")


# ---------------------------------------------------------------------------
# JWT issue
# ---------------------------------------------------------------------------


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def create_access_token(user_id: str, settings: Settings, now: datetime | None = None) -> str:
    """Mint a signed token for user_id, valid for settings.token_expire_seconds.

    Args:
        user_id:  Opaque user id, stored as the sub claim.
        settings: Supplies secret_key and token_expire_seconds.
        now:      Issue time. Defaults to the current UTC time; tests pin it.
    """
    issued_at = int((now or _utcnow()).timestamp())
    payload = {
        "sub": user_id,
        "iat": issued_at,
        "exp": issued_at + settings.token_expire_seconds,
    }
    return jwt.encode(payload, settings.secret_key, algorithm=_ALGORITHM)


# ---------------------------------------------------------------------------
# Bearer extraction and JWT verification
# ---------------------------------------------------------------------------


def extract_bearer_token(authorization: str | None) -> str:
    """Return the token from an "Authorization: Bearer <token>" header value.

    Raises Unauthorized(MISSING) when the header is absent, empty, uses another
    scheme, or carries no token after the scheme.
    """
    if not authorization:
        raise Unauthorized(TokenErrorKind.MISSING)
    scheme, _, token = authorization.strip().partition(" ")
    token = token.strip()
    if scheme.lower() != "bearer" or not token:
        raise Unauthorized(TokenErrorKind.MISSING)
    return token


def _is_int(value) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def _read_claims(token: str) -> dict:
    """Decode header and claims without verifying. Raises MALFORMED."""
    try:
        header = jwt.get_unverified_header(token)
        claims = jwt.get_unverified_claims(token)
    except JWTError as exc:
        raise Unauthorized(TokenErrorKind.MALFORMED) from exc
    if not isinstance(header, dict) or "alg" not in header:
        raise Unauthorized(TokenErrorKind.MALFORMED)
    sub = claims.get("sub")
    if not isinstance(sub, str) or not sub:
        raise Unauthorized(TokenErrorKind.MALFORMED)
    if not _is_int(claims.get("iat")) or not _is_int(claims.get("exp")):
        raise Unauthorized(TokenErrorKind.MALFORMED)
    return claims


def decode_access_token(token: str, settings: Settings, now: datetime | None = None) -> str:
    """Verify token and return its subject (the user id).

    Raises Unauthorized with kind MALFORMED, INVALID_SIGNATURE or EXPIRED.
    Expiry is inclusive: a token is rejected from the second exp is reached.
    """
    claims = _read_claims(token)

    try:
        jws.verify(token, settings.secret_key, algorithms=[_ALGORITHM])
    except JWSError as exc:
        # Structure already parsed, so any failure here is the signature or
        # a disallowed algorithm (e.g. "none").
        raise Unauthorized(TokenErrorKind.INVALID_SIGNATURE) from exc

    current = (now or _utcnow()).timestamp()
    if current >= claims["exp"]:
        raise Unauthorized(TokenErrorKind.EXPIRED)

    return claims["sub"]
