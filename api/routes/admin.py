"""
api/routes/admin.py -- Admin account bootstrap and listing management.

Routes:
  POST   /admin/setup          -- create an admin account (setup secret)
  POST   /admin/jobs           -- create listing (same handler as POST /jobs)
  GET    /admin/jobs           -- newest 200 listings, every type, expired included
  GET    /admin/jobs/{job_id}  -- single listing by ID
  PUT    /admin/jobs/{job_id}  -- partial update
  DELETE /admin/jobs/{job_id}  -- delete listing (same handler as DELETE /jobs/{job_id})
  GET    /admin/stats          -- non-expired listing counts per type

/admin/setup is the only way to create an admin. It is gated by the
ADMIN_SETUP_TOKEN secret, not by a session, and is disabled when the secret
is unset.
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, Request
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from api.models import (
    AdminSetupRequest,
    ListingCreated,
    ListingItem,
    ListingList,
    ListingOut,
    ListingUpdate,
    OkResponse,
    StatsResponse,
)
from api.routes.jobs import DUPLICATE_LISTING, create_listing, delete_listing
from auth.accounts import setup_admin
from auth.dependencies import require_admin
from auth.models import SessionClaims
from auth.store import UserStore
from core.errors import Conflict, InternalError, NotFound
from listings.store import ListingStore

logger = logging.getLogger("jobboard.api")

# Auth policy:
# - POST /admin/setup: setup secret in the body (no session)
# - everything else:   requires admin (require_admin)
router = APIRouter()


@router.post("/admin/setup", response_model=OkResponse)
def setup(request: Request, body: AdminSetupRequest) -> OkResponse:
    """Create an admin account using the ADMIN_SETUP_TOKEN secret.

    400 when the secret is not configured, 401 when it does not match,
    409 when the email is already registered.
    """
    user_store: UserStore = request.app.state.user_store
    setup_admin(user_store, body.token, body.email, body.password)
    return OkResponse()


router.add_api_route("/admin/jobs", create_listing, methods=["POST"], response_model=ListingCreated)


@router.get("/admin/jobs", response_model=ListingList)
def list_all_listings(
    request: Request,
    session: SessionClaims = Depends(require_admin),
) -> ListingList:
    store: ListingStore = request.app.state.listing_store
    return ListingList(items=[ListingOut.from_listing(item) for item in store.list_recent()])


@router.get("/admin/jobs/{job_id}", response_model=ListingItem)
def get_listing(
    request: Request,
    job_id: int,
    session: SessionClaims = Depends(require_admin),
) -> ListingItem:
    store: ListingStore = request.app.state.listing_store
    listing = store.get_listing(job_id)
    if listing is None:
        raise NotFound()
    return ListingItem(item=ListingOut.from_listing(listing))


@router.put("/admin/jobs/{job_id}", response_model=OkResponse)
def update_listing(
    request: Request,
    job_id: int,
    body: ListingUpdate,
    session: SessionClaims = Depends(require_admin),
) -> OkResponse:
    """Apply a partial update. Only fields present in the body change.

    The slug is never regenerated, so existing links keep working after a
    title edit.
    """
    store: ListingStore = request.app.state.listing_store
    try:
        found = store.update_listing(job_id, **body.to_fields())
    except IntegrityError as exc:
        raise Conflict(DUPLICATE_LISTING) from exc
    except SQLAlchemyError as exc:
        logger.exception("Failed to update listing id=%s", job_id)
        raise InternalError("Failed to update job") from exc
    if not found:
        raise NotFound()
    logger.info("Listing id=%s updated by user %s", job_id, session.sub)
    return OkResponse()


router.add_api_route("/admin/jobs/{job_id}", delete_listing, methods=["DELETE"], response_model=OkResponse)


@router.get("/admin/stats", response_model=StatsResponse)
def stats(
    request: Request,
    session: SessionClaims = Depends(require_admin),
) -> StatsResponse:
    store: ListingStore = request.app.state.listing_store
    return StatsResponse(
        jobs=store.count_active("job"),
        results=store.count_active("result"),
        admit_cards=store.count_active("admit-card"),
    )
