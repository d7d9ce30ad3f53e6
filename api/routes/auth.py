"""
api/routes/auth.py -- Registration, login and identity endpoints.

Routes:
  POST /auth/register  -- create account; returns public user + token (201)
  POST /auth/login     -- password login; returns public user + token
  GET  /auth/me        -- current user's public profile (requires bearer token)

There is no logout endpoint. Tokens are stateless and stay valid until exp;
clients log out by discarding the token.

Security:
  [H2] register and login are rate-limited to 10 requests/minute per IP.
  [C1] verify_credentials() provides timing equalization -- use it, never inline.
  [M5] Cache-Control: no-store on responses that carry a token.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse

from api.limiter import limiter
from api.models import AuthData, LoginRequest, RegisterRequest, UserData, envelope
from auth.credentials import register_user, verify_credentials
from auth.dependencies import require_identity
from auth.models import AuthContext
from auth.store import UserStore
from auth.tokens import create_access_token
from core.config import Settings
from core.errors import NotFound

# Auth policy:
# - POST /auth/register: public
# - POST /auth/login:    public
# - GET  /auth/me:       requires bearer token (require_identity)
router = APIRouter()


def _token_response(status_code: int, data: AuthData, message: str) -> JSONResponse:
    resp = JSONResponse(status_code=status_code, content=envelope(data, message=message))
    resp.headers["Cache-Control"] = "no-store"  # [M5]
    return resp


@limiter.limit("10/minute")  # [H2] must be ABOVE @router to preserve FastAPI introspection
@router.post("/auth/register", status_code=201)
def register(request: Request, body: RegisterRequest) -> JSONResponse:
    """Create an account and log it in.

    A taken email raises DuplicateEmail (400), including when two requests
    race for the same address.
    """
    user_store: UserStore = request.app.state.user_store
    settings: Settings = request.app.state.settings
    user = register_user(user_store, body.name, body.email, body.password)
    token = create_access_token(user.id, settings)
    return _token_response(201, AuthData.from_user_and_token(user, token), "User registered successfully.")


@limiter.limit("10/minute")  # [H2]
@router.post("/auth/login")
def login(request: Request, body: LoginRequest) -> JSONResponse:
    """Authenticate with email and password.

    Unknown email and wrong password produce the same 401 InvalidCredentials.
    """
    user_store: UserStore = request.app.state.user_store
    settings: Settings = request.app.state.settings
    user = verify_credentials(user_store, body.email, body.password)
    token = create_access_token(user.id, settings)
    return _token_response(200, AuthData.from_user_and_token(user, token), "Login successful.")


@router.get("/auth/me")
def me(request: Request, identity: AuthContext = Depends(require_identity)) -> JSONResponse:
    """Return the public profile of the token's subject."""
    user_store: UserStore = request.app.state.user_store
    user = user_store.get_by_id(identity.user_id)
    if user is None:
        raise NotFound("User not found.")
    return JSONResponse(content=envelope(UserData.from_user(user)))
