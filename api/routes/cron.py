"""
api/routes/cron.py -- Scheduler-triggered maintenance.

Routes:
  GET /cron/daily -- run one ingestion pass and report what changed

A caller is authorized when either:
  - its User-Agent contains CRON_USER_AGENT (the hosting scheduler), or
  - CRON_SCRAPE_TOKEN is set and matches the Bearer header or, when no
    Bearer header is sent, the ?token= query value.
Tokens are compared in constant time. Everything else gets 401.
"""

from __future__ import annotations

import hmac
import logging
from typing import Optional

from fastapi import APIRouter, Request

from api.models import CronSummary
from core.config import get_settings
from core.errors import Unauthorized
from listings.ingest import run_daily_ingestion
from listings.store import ListingStore

logger = logging.getLogger("jobboard.api")

router = APIRouter()


def _token_matches(candidate: str, expected: str) -> bool:
    return hmac.compare_digest(candidate.encode("utf-8"), expected.encode("utf-8"))


def is_cron_request(request: Request, token: Optional[str] = None) -> bool:
    settings = get_settings()
    user_agent = request.headers.get("user-agent", "")
    if settings.cron_user_agent and settings.cron_user_agent in user_agent:
        return True

    expected = settings.cron_scrape_token
    if not expected:
        return False
    header = request.headers.get("Authorization", "")
    if header.startswith("Bearer "):
        return _token_matches(header[len("Bearer ") :], expected)
    return bool(token) and _token_matches(token, expected)


@router.get("/cron/daily", response_model=CronSummary)
def daily(request: Request, token: Optional[str] = None) -> CronSummary:
    if not is_cron_request(request, token):
        logger.warning("Rejected cron call from %s", request.client.host if request.client else "unknown")
        raise Unauthorized()
    store: ListingStore = request.app.state.listing_store
    summary = run_daily_ingestion(store)
    return CronSummary(
        inserted=summary.inserted,
        duplicates=summary.duplicates,
        expired_marked=summary.expired_marked,
        total_scraped=summary.total_scraped,
    )
