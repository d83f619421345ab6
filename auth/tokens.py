"""
auth/tokens.py -- Password hashing, session JWTs, and the session cookie.

Security design decisions:
  Passwords: bcrypt used directly (no passlib wrapper). The salt is generated
       per call and embedded in the hash, so nothing else needs storing.
       BCRYPT_ROUNDS sets the work factor and can be raised over time; old
       hashes keep verifying because the cost is part of the hash string.

  JWT: python-jose with HS256. Tokens are signed with JWT_SECRET and carry
       sub (user id), name, email, role, iat and exp. There is no server-side
       session table -- every request re-verifies the signature and expiry.
       Any failure raises InvalidTokenError with one fixed message, so a
       caller cannot tell a tampered token from an expired one.

  Cookie: httpOnly, SameSite=Lax, Secure outside DEBUG mode, max_age equal
       to the JWT lifetime so both expire together.

  JWT_SECRET: sourced from core.config.get_settings(). The Settings class
       validates the key at startup: dev mode (DEBUG=true) auto-generates a
       random key with a warning; production mode refuses to start without
       one. Short keys (<32 chars) are rejected with ValueError.

Layer rule: no imports from api/ or listings/. Import from core/ is allowed.
"""

from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone

import bcrypt
from fastapi import Request, Response
from jose import JWTError, jwt

from auth.models import ROLES, SessionClaims
from core.config import get_settings

logger = logging.getLogger("jobboard.auth")

_ALGORITHM = "HS256"

COOKIE_NAME = "access_token"

# bcrypt only reads the first 72 bytes of its input (bcrypt 4.1+ raises on
# longer input instead of truncating). Truncate here, identically on hash and
# verify, so long passphrases keep working.
_BCRYPT_MAX_BYTES = 72


class InvalidTokenError(Exception):
    """Raised for any session token that fails verification."""

    def __init__(self) -> None:
        super().__init__("Invalid or expired token")


# ---------------------------------------------------------------------------
# Password hashing
# ---------------------------------------------------------------------------


def _password_bytes(plain: str) -> bytes:
    return plain.encode("utf-8")[:_BCRYPT_MAX_BYTES]


def hash_password(plain: str) -> str:
    """Return a salted bcrypt hash of the given plaintext password."""
    salt = bcrypt.gensalt(rounds=get_settings().bcrypt_rounds)
    return bcrypt.hashpw(_password_bytes(plain), salt).decode("utf-8")


def verify_password(plain: str, hashed: str) -> bool:
    """Return True if the plaintext password matches the bcrypt hash.

    A malformed or empty hash returns False instead of raising.
    """
    try:
        return bcrypt.checkpw(_password_bytes(plain), hashed.encode("utf-8"))
    except (ValueError, TypeError, AttributeError):
        return False


# ---------------------------------------------------------------------------
# JWT encode / decode
# ---------------------------------------------------------------------------


def create_session_token(
    user_id: int | str,
    email: str,
    role: str,
    name: str | None = None,
    expire_seconds: int = 0,
    issued_at: datetime | None = None,
) -> str:
    """Encode a signed session JWT.

    Args:
        user_id:        Database ID of the user, stored as the sub claim.
        email:          Lower-cased login email.
        role:           "user" or "admin".
        name:           Optional display name.
        expire_seconds: Token lifetime. If 0 (default), uses
                        Settings.token_expire_seconds (seven days).
        issued_at:      Override for the iat claim; defaults to now.
    """
    settings = get_settings()
    duration = expire_seconds if expire_seconds > 0 else settings.token_expire_seconds
    issued = issued_at or datetime.now(timezone.utc)
    payload = {
        "sub": str(user_id),
        "email": email,
        "role": role,
        "iat": int(issued.timestamp()),
        "exp": int((issued + timedelta(seconds=duration)).timestamp()),
    }
    if name:
        payload["name"] = name
    return jwt.encode(payload, settings.jwt_secret, algorithm=_ALGORITHM)


def decode_session_token(token: str) -> SessionClaims:
    """Verify a session JWT and return its claims.

    Raises InvalidTokenError if the signature does not match, the structure
    is malformed, a required claim is missing, or the token has expired.
    """
    try:
        payload = jwt.decode(token, get_settings().jwt_secret, algorithms=[_ALGORITHM])
    except JWTError as exc:
        raise InvalidTokenError() from exc

    try:
        claims = SessionClaims(
            sub=str(payload["sub"]),
            email=str(payload["email"]),
            role=str(payload["role"]),
            iat=int(payload["iat"]),
            exp=int(payload["exp"]),
            name=payload.get("name"),
        )
    except (KeyError, TypeError, ValueError) as exc:
        raise InvalidTokenError() from exc
    if claims.role not in ROLES:
        raise InvalidTokenError()
    return claims


# ---------------------------------------------------------------------------
# Cookie transport
# ---------------------------------------------------------------------------


def set_auth_cookie(response: Response, token: str, expire_seconds: int = 0) -> None:
    """Write the session token as an httpOnly cookie on the response.

    httponly=True: JS cannot read the cookie (XSS mitigation).
    samesite="lax": cookie sent on same-site requests and top-level GET
        navigations, but not on cross-site POST.
    secure: only sent over HTTPS when SECURE_COOKIES resolves true.
    max_age: matches the JWT expiry so both expire together.
    """
    settings = get_settings()
    duration = expire_seconds if expire_seconds > 0 else settings.token_expire_seconds
    response.set_cookie(
        COOKIE_NAME,
        value=token,
        max_age=duration,
        path="/",
        httponly=True,
        samesite="lax",
        secure=bool(settings.secure_cookies),
    )


def clear_auth_cookie(response: Response) -> None:
    """Expire the session cookie immediately (Max-Age=0)."""
    settings = get_settings()
    response.delete_cookie(
        COOKIE_NAME,
        path="/",
        httponly=True,
        samesite="lax",
        secure=bool(settings.secure_cookies),
    )


def get_token_from_request(request: Request) -> str | None:
    """Return the session token from the cookie or a Bearer header, if any.

    The cookie wins when both are present. Never raises.
    """
    token = request.cookies.get(COOKIE_NAME)
    if token:
        return token
    auth_header = request.headers.get("Authorization", "")
    if auth_header.startswith("Bearer "):
        return auth_header[7:].strip() or None
    return None
