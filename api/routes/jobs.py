"""
api/routes/jobs.py -- Public listing reads and admin listing writes.

Routes (in registration order to avoid FastAPI path capture conflicts):
  GET    /jobs                     -- filtered, paginated search
  GET    /jobs/latest              -- newest non-expired listings of one type
  GET    /jobs/counts/{field}      -- grouped counts by state/qualification/department
  GET    /jobs/slug/{slug}         -- single listing by slug
  POST   /jobs                     -- create listing (admin)
  DELETE /jobs/{job_id}            -- delete listing (admin)

Query parameters on the read routes are accepted as raw strings and
normalized by listings.query, so malformed page/limit values fall back to
defaults instead of failing validation.

create_listing and delete_listing are also mounted under /admin/jobs by
api/routes/admin.py.
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from api.models import (
    CountFieldEnum,
    CountRow,
    CountsResponse,
    ListingCreate,
    ListingCreated,
    ListingItem,
    ListingList,
    ListingOut,
    ListingPage,
    OkResponse,
)
from auth.dependencies import require_admin
from auth.models import SessionClaims
from core.config import get_settings
from core.errors import Conflict, InternalError, NotFound
from listings.query import ListingQuery, clamp_limit, resolve_type
from listings.slug import assign_unique_slug
from listings.store import ListingStore

logger = logging.getLogger("jobboard.api")

# Auth policy:
# - GET    /jobs, /jobs/latest, /jobs/counts/*, /jobs/slug/*: public
# - POST   /jobs:          requires admin (require_admin)
# - DELETE /jobs/{job_id}: requires admin (require_admin)
router = APIRouter()

DUPLICATE_LISTING = "Duplicate job (source URL already exists)"


# ---------------------------------------------------------------------------
# Public reads
# ---------------------------------------------------------------------------


@router.get("/jobs", response_model=ListingPage)
def search_listings(
    request: Request,
    type_: Optional[str] = Query(default=None, alias="type"),
    q: Optional[str] = None,
    state: Optional[str] = None,
    qualification: Optional[str] = None,
    department: Optional[str] = None,
    include_expired: Optional[str] = Query(default=None, alias="includeExpired"),
    page: Optional[str] = None,
    limit: Optional[str] = None,
) -> ListingPage:
    """Search listings of one type, newest first.

    Expired listings are hidden unless includeExpired=1. q is a literal,
    case-insensitive substring match over title, department, state and
    qualification.
    """
    store: ListingStore = request.app.state.listing_store
    query = ListingQuery.from_params(
        type=type_,
        q=q,
        state=state,
        qualification=qualification,
        department=department,
        include_expired=include_expired,
        page=page,
        limit=limit,
    )
    items, total = store.search(query)
    return ListingPage(
        items=[ListingOut.from_listing(item) for item in items],
        total=total,
        page=query.page,
        limit=query.limit,
        total_pages=query.total_pages(total),
    )


@router.get("/jobs/latest", response_model=ListingList)
def latest_listings(
    request: Request,
    type_: Optional[str] = Query(default=None, alias="type"),
    limit: Optional[str] = None,
) -> ListingList:
    """Return up to 50 of the newest non-expired listings of one type."""
    store: ListingStore = request.app.state.listing_store
    items = store.latest(resolve_type(type_), clamp_limit(limit))
    return ListingList(items=[ListingOut.from_listing(item) for item in items])


@router.get("/jobs/counts/{field}", response_model=CountsResponse)
def count_listings(
    request: Request,
    field: CountFieldEnum,
    type_: Optional[str] = Query(default=None, alias="type"),
) -> CountsResponse:
    """Count non-expired listings of one type grouped by field.

    Rows are sorted by count descending, then key ascending.
    """
    store: ListingStore = request.app.state.listing_store
    rows = store.count_by(field.value, resolve_type(type_))
    return CountsResponse(rows=[CountRow(key=key, count=count) for key, count in rows])


@router.get("/jobs/slug/{slug}", response_model=ListingItem)
def get_listing_by_slug(request: Request, slug: str) -> ListingItem:
    store: ListingStore = request.app.state.listing_store
    listing = store.get_by_slug(slug)
    if listing is None:
        raise NotFound()
    return ListingItem(item=ListingOut.from_listing(listing))


# ---------------------------------------------------------------------------
# Admin writes
# ---------------------------------------------------------------------------


@router.post("/jobs", response_model=ListingCreated)
def create_listing(
    request: Request,
    body: ListingCreate,
    session: SessionClaims = Depends(require_admin),
) -> ListingCreated:
    """Create a listing with a unique slug derived from its title.

    Slug probing and the INSERT are not atomic; a racing create that takes
    the same slug or source URL fails on the UNIQUE index and returns 409.
    """
    store: ListingStore = request.app.state.listing_store
    slug = assign_unique_slug(store, body.title, max_attempts=get_settings().slug_max_attempts)
    try:
        listing_id = store.create_listing(body.to_listing(slug))
    except IntegrityError as exc:
        raise Conflict(DUPLICATE_LISTING) from exc
    except SQLAlchemyError as exc:
        logger.exception("Failed to create listing %r", slug)
        raise InternalError("Failed to create job") from exc
    logger.info("Listing id=%s slug=%s created by user %s", listing_id, slug, session.sub)
    return ListingCreated(id=listing_id, slug=slug)


@router.delete("/jobs/{job_id}", response_model=OkResponse)
def delete_listing(
    request: Request,
    job_id: int,
    session: SessionClaims = Depends(require_admin),
) -> OkResponse:
    """Hard-delete a listing."""
    store: ListingStore = request.app.state.listing_store
    if not store.delete_listing(job_id):
        raise NotFound()
    logger.info("Listing id=%s deleted by user %s", job_id, session.sub)
    return OkResponse()
