"""
auth/dependencies.py -- FastAPI Depends() helpers for authentication.

Two token sources are checked in priority order:
  1. Session cookie ("access_token") -- set by POST /api/auth/login.
  2. Authorization: Bearer <token> header -- scripts and service callers.

Verification is stateless: the JWT signature and expiry are the whole check,
no store lookup happens per request.

try_get_session() is the soft variant (returns None on failure).
get_current_session() wraps it and raises Unauthorized (401).
require_admin() wraps get_current_session() and raises Forbidden (403).

Verified claims are attached to request.state.session for downstream code.
"""

from __future__ import annotations

from fastapi import Request

from auth.models import SessionClaims
from auth.tokens import InvalidTokenError, decode_session_token, get_token_from_request
from core.errors import Forbidden, Unauthorized


def try_get_session(request: Request) -> SessionClaims | None:
    """Return verified session claims, or None when absent or invalid. Never raises."""
    token = get_token_from_request(request)
    if not token:
        return None
    try:
        return decode_session_token(token)
    except InvalidTokenError:
        return None


def get_current_session(request: Request) -> SessionClaims:
    """Require a valid session. Missing, malformed and expired tokens all give 401.

    Use as a FastAPI dependency:
        @router.get("/protected")
        def route(session: SessionClaims = Depends(get_current_session)): ...
    """
    claims = try_get_session(request)
    if claims is None:
        raise Unauthorized()
    request.state.session = claims
    return claims


def require_admin(request: Request) -> SessionClaims:
    """Require the admin role. 401 if unauthenticated, 403 if not admin."""
    claims = get_current_session(request)
    if not claims.is_admin:
        raise Forbidden()
    return claims
