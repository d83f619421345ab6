"""
listings/query.py -- Translate raw listing request parameters into a query.

ListingQuery is the validated form of GET /api/jobs: a type filter, an
expired-flag policy, optional equality filters, an optional free-text term,
and clamped paging. It never rejects input -- out-of-range or garbage values
resolve to defaults so the public endpoint stays permissive.

ListingFilter is the store-agnostic filter. listings/store.py turns it into
SQL; nothing here knows about tables.

Free-text search is a LIKE match, so the term is escaped with escape_like()
and always matched literally ("c++", "50%", "a_b" included).
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Optional

DEFAULT_TYPE = "job"
DEFAULT_LIMIT = 20
MAX_LIMIT = 50

# Keeps (page - 1) * limit inside a signed 64-bit SQL integer.
MAX_PAGE = (2**63 - 1) // MAX_LIMIT

# Columns that can be grouped by GET /api/jobs/counts/{field}.
GROUPABLE_FIELDS = ("state", "qualification", "department")

# Columns OR-ed together for the free-text q parameter.
SEARCH_FIELDS = ("title", "department", "state", "qualification")

LIKE_ESCAPE = "\\"

_TRUTHY = {"1", "true", "yes"}


def escape_like(term: str) -> str:
    """Escape LIKE wildcards so the term matches literally.

    Use with ``column.ilike(pattern, escape=LIKE_ESCAPE)``.
    """
    return (
        term.replace(LIKE_ESCAPE, LIKE_ESCAPE * 2)
        .replace("%", LIKE_ESCAPE + "%")
        .replace("_", LIKE_ESCAPE + "_")
    )


def _clean(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    value = value.strip()
    return value or None


def _to_int(value, default: int) -> int:
    """Parse a query-string number; non-numeric or non-finite input gives default."""
    if value is None:
        return default
    if isinstance(value, str):
        value = value.strip()
        if not value:
            return default
    try:
        number = float(value)
    except (TypeError, ValueError):
        return default
    if not math.isfinite(number):
        return default
    return int(number)


def clamp_page(value) -> int:
    return min(max(_to_int(value, 1), 1), MAX_PAGE)


def clamp_limit(value, default: int = DEFAULT_LIMIT) -> int:
    return min(max(_to_int(value, default), 1), MAX_LIMIT)


def resolve_type(value: Optional[str]) -> str:
    """Missing or blank type means "job". Unknown types pass through and match nothing."""
    return _clean(value) or DEFAULT_TYPE


def parse_flag(value: Optional[str]) -> bool:
    return (_clean(value) or "").lower() in _TRUTHY


@dataclass(frozen=True)
class ListingFilter:
    """Conditions AND-ed together by the store.

    is_expired=None means "no constraint"; equals maps column -> exact value;
    search is the raw (unescaped) free-text term.
    """

    type: str
    is_expired: Optional[bool] = False
    equals: dict[str, str] = field(default_factory=dict)
    search: Optional[str] = None


@dataclass(frozen=True)
class ListingQuery:
    type: str = DEFAULT_TYPE
    q: Optional[str] = None
    state: Optional[str] = None
    qualification: Optional[str] = None
    department: Optional[str] = None
    include_expired: bool = False
    page: int = 1
    limit: int = DEFAULT_LIMIT

    @classmethod
    def from_params(
        cls,
        type: Optional[str] = None,
        q: Optional[str] = None,
        state: Optional[str] = None,
        qualification: Optional[str] = None,
        department: Optional[str] = None,
        include_expired: Optional[str] = None,
        page=None,
        limit=None,
    ) -> "ListingQuery":
        return cls(
            type=resolve_type(type),
            q=_clean(q),
            state=_clean(state),
            qualification=_clean(qualification),
            department=_clean(department),
            include_expired=parse_flag(include_expired),
            page=clamp_page(page),
            limit=clamp_limit(limit),
        )

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.limit

    def to_filter(self) -> ListingFilter:
        equals = {
            name: value
            for name, value in (
                ("state", self.state),
                ("qualification", self.qualification),
                ("department", self.department),
            )
            if value
        }
        return ListingFilter(
            type=self.type,
            is_expired=None if self.include_expired else False,
            equals=equals,
            search=self.q,
        )

    def total_pages(self, total: int) -> int:
        return max(math.ceil(total / self.limit), 1)
