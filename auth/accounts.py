"""
auth/accounts.py -- Account lifecycle: registration, login, admin setup.

These functions sit between the routes and UserStore. They raise the
core.errors taxonomy so the HTTP layer only has to serialize failures.

Duplicate emails are checked optimistically first (cheap, friendly error),
but the UNIQUE(email) constraint is the real guard: a concurrent insert
that slips past the check fails with IntegrityError, mapped to Conflict
here as well.
"""

from __future__ import annotations

import hmac
import logging
from functools import lru_cache

from sqlalchemy.exc import IntegrityError

from auth.models import User
from auth.store import UserStore, normalize_email
from auth.tokens import create_session_token, hash_password, verify_password
from core.config import get_settings
from core.errors import Conflict, Unauthorized, ValidationError

logger = logging.getLogger("jobboard.auth")

EMAIL_TAKEN = "Email already registered"
BAD_CREDENTIALS = "Invalid email or password"


@lru_cache(maxsize=1)
def _dummy_hash() -> str:
    # Verified against when the email is unknown, so a miss costs the same
    # bcrypt work as a wrong password and response time leaks nothing.
    return hash_password("jobboard_timing_dummy")


def _ensure_unused(store: UserStore, email: str) -> None:
    if store.email_exists(email):
        raise Conflict(EMAIL_TAKEN)


def _insert(store: UserStore, user: User) -> int:
    try:
        return store.create_user(user)
    except IntegrityError as exc:
        logger.info("Concurrent registration for %s rejected by unique constraint", user.email)
        raise Conflict(EMAIL_TAKEN) from exc


def register_user(store: UserStore, name: str, email: str, password: str) -> int:
    """Create a regular user account and return its ID.

    Raises Conflict if the (lower-cased) email is already registered.
    """
    _ensure_unused(store, email)
    user = User(
        name=name.strip(),
        email=normalize_email(email),
        hashed_password=hash_password(password),
        role="user",
    )
    user_id = _insert(store, user)
    logger.info("Registered user id=%s", user_id)
    return user_id


def authenticate_user(store: UserStore, email: str, password: str) -> User | None:
    """Return the User for valid credentials, None otherwise.

    Always runs bcrypt whether or not the user exists:
    - Unknown email: bcrypt runs against the dummy hash (same cost as a real check)
    - Wrong password: bcrypt runs against the real hash
    """
    user = store.get_by_email(email)
    if user is None:
        verify_password(password, _dummy_hash())
        return None
    if not verify_password(password, user.hashed_password):
        return None
    return user


def login_user(store: UserStore, email: str, password: str) -> tuple[User, str]:
    """Authenticate and issue a session token scoped to the user's stored role.

    Raises Unauthorized with one message for both unknown email and wrong
    password so the response cannot be used to enumerate accounts.
    """
    user = authenticate_user(store, email, password)
    if user is None:
        raise Unauthorized(BAD_CREDENTIALS)
    role = "admin" if user.role == "admin" else "user"
    token = create_session_token(user.id, user.email, role, name=user.name)
    return user, token


def setup_admin(store: UserStore, token: str, email: str, password: str) -> int:
    """Create an admin account, gated by the ADMIN_SETUP_TOKEN secret.

    Fails closed: with no secret configured, no admin can be created this way.
    """
    expected = get_settings().admin_setup_token
    if not expected:
        raise ValidationError("ADMIN_SETUP_TOKEN is not configured")
    if not hmac.compare_digest(token.encode("utf-8"), expected.encode("utf-8")):
        logger.warning("Admin setup attempted with an invalid setup token")
        raise Unauthorized("Invalid setup token")

    _ensure_unused(store, email)
    user = User(
        name="Admin",
        email=normalize_email(email),
        hashed_password=hash_password(password),
        role="admin",
    )
    user_id = _insert(store, user)
    logger.info("Admin account created id=%s", user_id)
    return user_id
