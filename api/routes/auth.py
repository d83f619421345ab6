"""
api/routes/auth.py -- Account registration and cookie sessions.

Routes:
  POST /auth/register   -- create a user account; 201
  POST /auth/login      -- password login; sets the session cookie
  POST /auth/logout     -- clears the session cookie; 200
  GET  /auth/me         -- current session claims, or authenticated=false

Security:
  login_user() provides timing equalization -- use it, never inline
  get_by_email() + verify_password().
  Wrong password and unknown email return the same 401 body.
  Cache-Control: no-store on login responses.
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse

from api.models import LoginRequest, MeResponse, OkResponse, RegisterRequest, SessionUser
from auth.accounts import login_user, register_user
from auth.dependencies import try_get_session
from auth.store import UserStore
from auth.tokens import clear_auth_cookie, set_auth_cookie
from core.errors import Unauthorized

logger = logging.getLogger("jobboard.api")

# Auth policy: every route here is public. /auth/me reports the session
# rather than requiring one.
router = APIRouter()


@router.post("/auth/register", response_model=OkResponse, status_code=201)
def register(request: Request, body: RegisterRequest) -> OkResponse:
    """Create a regular user account. Does not log the new user in."""
    user_store: UserStore = request.app.state.user_store
    register_user(user_store, body.name, body.email, body.password)
    return OkResponse()


@router.post("/auth/login", response_model=OkResponse)
def login(request: Request, body: LoginRequest) -> JSONResponse:
    """Authenticate with email and password; set the session cookie."""
    user_store: UserStore = request.app.state.user_store
    try:
        user, token = login_user(user_store, body.email, body.password)
    except Unauthorized as exc:
        resp = JSONResponse(status_code=exc.status_code, content={"error": exc.message})
        resp.headers["Cache-Control"] = "no-store"
        return resp

    logger.info("User id=%s logged in", user.id)
    resp = JSONResponse(status_code=200, content=OkResponse().model_dump())
    set_auth_cookie(resp, token)
    resp.headers["Cache-Control"] = "no-store"
    return resp


@router.post("/auth/logout", response_model=OkResponse)
def logout() -> JSONResponse:
    resp = JSONResponse(content=OkResponse().model_dump())
    clear_auth_cookie(resp)
    return resp


@router.get("/auth/me", response_model=MeResponse)
def me(request: Request) -> MeResponse:
    """Return the verified session claims, if any.

    A missing, expired or tampered token is reported as authenticated=false,
    never as an error.
    """
    claims = try_get_session(request)
    if claims is None:
        return MeResponse(authenticated=False)
    return MeResponse(authenticated=True, user=SessionUser(**claims.to_dict()))
