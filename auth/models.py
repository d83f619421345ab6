"""
auth/models.py -- Domain dataclasses for authentication entities.

Pattern: Data class (pure data container, zero logic). Mirrors the approach
in listings/models.py -- dataclasses own domain shape; stores and routes do
the work.

Layer rule: no imports from api/ or listings/.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass

ROLES = ("user", "admin")


@dataclass
class User:
    """A registered identity.

    email is stored lower-cased and is the login key. hashed_password is a
    bcrypt hash; the plaintext is never persisted.
    """

    name: str
    email: str
    hashed_password: str
    role: str = "user"  # "user" | "admin"
    id: int | None = None
    created_at: str | None = None
    updated_at: str | None = None


@dataclass(frozen=True)
class SessionClaims:
    """Verified contents of a session token.

    Nothing here is persisted: the signed token in the client's cookie is the
    only copy, and every request re-verifies it.
    """

    sub: str
    email: str
    role: str
    iat: int
    exp: int
    name: str | None = None

    @property
    def is_admin(self) -> bool:
        return self.role == "admin"

    def to_dict(self) -> dict:
        return asdict(self)
