"""
listings/store.py -- SQLAlchemy-backed persistence layer for listings.

Uses SQLAlchemy Core (not ORM) so the domain dataclass in listings/models.py
remains the authoritative domain representation. Swapping SQLite for
PostgreSQL is a connection string change, not a rewrite.

Pattern: Repository + Data Mapper. ListingStore is the repository; the
_row_to_listing function is the mapper. Route handlers never touch SQL
directly.

Uniqueness:
  slug        -- UNIQUE. Backs the check-then-insert in listings/slug.py.
  source_url  -- UNIQUE. SQL UNIQUE admits any number of NULLs, so listings
                 without a source never collide with each other.
  Both surface as sqlalchemy.exc.IntegrityError on insert/update; callers
  map that to a 409.

Security: all queries use bound parameters. No f-strings in SQL.

Usage:
    store = ListingStore(Database("sqlite:///jobboard.db"))
    listing_id = store.create_listing(listing)
    items, total = store.search(ListingQuery.from_params(type="result", page="2"))
    rows = store.count_by("state", "job")
"""

from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import (
    Boolean,
    Column,
    Integer,
    MetaData,
    String,
    Table,
    Text,
    false,
    func,
    or_,
    select,
)

from core.db import Database
from listings.models import Listing
from listings.query import GROUPABLE_FIELDS, LIKE_ESCAPE, MAX_LIMIT, SEARCH_FIELDS, ListingFilter, ListingQuery, escape_like

# ---------------------------------------------------------------------------
# Schema
# ---------------------------------------------------------------------------

metadata = MetaData()

_listings = Table(
    "listings",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("type", String(20), nullable=False, server_default="job", index=True),
    Column("title", String(500), nullable=False),
    Column("slug", String(600), nullable=False, unique=True),
    Column("department", String(255), nullable=False),
    Column("state", String(255), nullable=False),
    Column("qualification", String(255), nullable=False),
    Column("eligibility", Text),
    Column("age_limit", Text),
    Column("vacancies", Text),
    Column("salary", Text),
    Column("fees", Text),
    Column("selection_process", Text),
    Column("start_date", String(10)),  # YYYY-MM-DD
    Column("last_date", String(10)),  # YYYY-MM-DD
    Column("apply_link", Text, nullable=False),
    Column("notification_pdf", Text),
    Column("source_name", String(255)),
    Column("source_url", String(1000), unique=True),  # NULL allowed many times
    Column("is_expired", Boolean, nullable=False, server_default=false(), index=True),
    Column("created_at", String(32), nullable=False, index=True),
    Column("updated_at", String(32), nullable=False),
)

# Fields an admin edit may change. slug, id and timestamps are excluded.
MUTABLE_FIELDS = frozenset(
    {
        "type",
        "title",
        "department",
        "state",
        "qualification",
        "eligibility",
        "age_limit",
        "vacancies",
        "salary",
        "fees",
        "selection_process",
        "start_date",
        "last_date",
        "apply_link",
        "notification_pdf",
        "source_name",
        "source_url",
        "is_expired",
    }
)

_ADMIN_LIST_LIMIT = 200

# Largest value a signed 64-bit INTEGER primary key can hold.
_MAX_ID = 2**63 - 1


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def _storable_id(listing_id: int) -> bool:
    return -_MAX_ID <= listing_id <= _MAX_ID


def _newest_first():
    return (_listings.c.created_at.desc(), _listings.c.id.desc())


def _where(flt: ListingFilter) -> list:
    """Turn a ListingFilter into SQLAlchemy WHERE clauses (AND-ed by the caller)."""
    clauses = [_listings.c.type == flt.type]
    if flt.is_expired is not None:
        clauses.append(_listings.c.is_expired == flt.is_expired)
    for name, value in flt.equals.items():
        clauses.append(_listings.c[name] == value)
    if flt.search:
        pattern = f"%{escape_like(flt.search)}%"
        clauses.append(or_(*(_listings.c[name].ilike(pattern, escape=LIKE_ESCAPE) for name in SEARCH_FIELDS)))
    return clauses


# ---------------------------------------------------------------------------
# Repository
# ---------------------------------------------------------------------------


class ListingStore:
    def __init__(self, db: Database) -> None:
        self.db = db
        metadata.create_all(db.engine)

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    def create_listing(self, listing: Listing) -> int:
        """Insert a new listing and return its assigned database ID.

        Raises sqlalchemy.exc.IntegrityError if the slug or source_url is
        already taken.
        """
        now = _now_iso()
        with self.db.engine.connect() as conn:
            result = conn.execute(
                _listings.insert().values(
                    type=listing.type,
                    title=listing.title,
                    slug=listing.slug,
                    department=listing.department,
                    state=listing.state,
                    qualification=listing.qualification,
                    eligibility=listing.eligibility,
                    age_limit=listing.age_limit,
                    vacancies=listing.vacancies,
                    salary=listing.salary,
                    fees=listing.fees,
                    selection_process=listing.selection_process,
                    start_date=listing.start_date,
                    last_date=listing.last_date,
                    apply_link=listing.apply_link,
                    notification_pdf=listing.notification_pdf,
                    source_name=listing.source_name,
                    source_url=listing.source_url,
                    is_expired=listing.is_expired,
                    created_at=listing.created_at or now,
                    updated_at=now,
                )
            )
            conn.commit()
            return result.inserted_primary_key[0]

    def update_listing(self, listing_id: int, **fields) -> bool:
        """Update mutable fields on an existing listing.

        Accepts any subset of MUTABLE_FIELDS; anything else raises ValueError
        before touching the database. An empty update only checks existence.

        Returns True if the listing exists, False otherwise. Raises
        IntegrityError if a new source_url collides with another listing.
        """
        unknown = set(fields) - MUTABLE_FIELDS
        if unknown:
            raise ValueError(f"Unknown listing fields: {sorted(unknown)!r}")
        if not _storable_id(listing_id):
            return False
        if not fields:
            return self.get_listing(listing_id) is not None
        with self.db.engine.connect() as conn:
            result = conn.execute(
                _listings.update().where(_listings.c.id == listing_id).values(updated_at=_now_iso(), **fields)
            )
            conn.commit()
        return result.rowcount > 0

    def delete_listing(self, listing_id: int) -> bool:
        """Permanently delete a listing. Returns True if deleted, False if not found."""
        if not _storable_id(listing_id):
            return False
        with self.db.engine.connect() as conn:
            result = conn.execute(_listings.delete().where(_listings.c.id == listing_id))
            conn.commit()
        return result.rowcount > 0

    # ------------------------------------------------------------------
    # Single-record reads
    # ------------------------------------------------------------------

    def get_listing(self, listing_id: int) -> Optional[Listing]:
        if not _storable_id(listing_id):
            return None
        with self.db.engine.connect() as conn:
            row = conn.execute(_listings.select().where(_listings.c.id == listing_id)).fetchone()
        return _row_to_listing(row) if row is not None else None

    def get_by_slug(self, slug: str) -> Optional[Listing]:
        with self.db.engine.connect() as conn:
            row = conn.execute(_listings.select().where(_listings.c.slug == slug)).fetchone()
        return _row_to_listing(row) if row is not None else None

    def slug_exists(self, slug: str) -> bool:
        with self.db.engine.connect() as conn:
            found = conn.execute(select(_listings.c.id).where(_listings.c.slug == slug).limit(1)).first()
        return found is not None

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def search(self, query: ListingQuery) -> tuple[list[Listing], int]:
        """Return one page of matching listings (newest first) and the total match count."""
        clauses = _where(query.to_filter())
        page_stmt = (
            _listings.select().where(*clauses).order_by(*_newest_first()).offset(query.offset).limit(query.limit)
        )
        count_stmt = select(func.count()).select_from(_listings).where(*clauses)
        with self.db.engine.connect() as conn:
            rows = conn.execute(page_stmt).fetchall()
            total = conn.execute(count_stmt).scalar() or 0
        return [_row_to_listing(r) for r in rows], total

    def latest(self, listing_type: str, limit: int) -> list[Listing]:
        """Return the newest non-expired listings of one type."""
        limit = min(max(limit, 1), MAX_LIMIT)
        clauses = _where(ListingFilter(type=listing_type))
        with self.db.engine.connect() as conn:
            rows = conn.execute(
                _listings.select().where(*clauses).order_by(*_newest_first()).limit(limit)
            ).fetchall()
        return [_row_to_listing(r) for r in rows]

    def list_recent(self, limit: int = _ADMIN_LIST_LIMIT) -> list[Listing]:
        """Return the newest listings of every type, expired included. Admin view."""
        with self.db.engine.connect() as conn:
            rows = conn.execute(_listings.select().order_by(*_newest_first()).limit(limit)).fetchall()
        return [_row_to_listing(r) for r in rows]

    def count_by(self, field: str, listing_type: str) -> list[tuple[str, int]]:
        """Group non-expired listings of one type by field.

        Sorted by count descending, then key ascending so ties are stable.
        """
        if field not in GROUPABLE_FIELDS:
            raise ValueError(f"Cannot group listings by {field!r}")
        column = _listings.c[field]
        count = func.count().label("total")
        stmt = (
            select(column.label("key"), count)
            .where(*_where(ListingFilter(type=listing_type)))
            .group_by(column)
            .order_by(count.desc(), column.asc())
        )
        with self.db.engine.connect() as conn:
            rows = conn.execute(stmt).fetchall()
        return [(row.key or "", int(row.total)) for row in rows]

    def count_active(self, listing_type: str) -> int:
        """Count non-expired listings of one type."""
        stmt = select(func.count()).select_from(_listings).where(*_where(ListingFilter(type=listing_type)))
        with self.db.engine.connect() as conn:
            return conn.execute(stmt).scalar() or 0


# ---------------------------------------------------------------------------
# Row mapper (Data Mapper pattern -- DB row -> domain dataclass)
# ---------------------------------------------------------------------------


def _row_to_listing(row) -> Listing:
    return Listing(
        id=row.id,
        type=row.type,
        title=row.title,
        slug=row.slug,
        department=row.department,
        state=row.state,
        qualification=row.qualification,
        eligibility=row.eligibility,
        age_limit=row.age_limit,
        vacancies=row.vacancies,
        salary=row.salary,
        fees=row.fees,
        selection_process=row.selection_process,
        start_date=row.start_date,
        last_date=row.last_date,
        apply_link=row.apply_link,
        notification_pdf=row.notification_pdf,
        source_name=row.source_name,
        source_url=row.source_url,
        is_expired=bool(row.is_expired),
        created_at=row.created_at,
        updated_at=row.updated_at,
    )
