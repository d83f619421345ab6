"""
listings/models.py -- Domain dataclasses for job / result / admit-card listings.

These are pure data containers with zero logic. Query construction lives in
listings/query.py, slug assignment in listings/slug.py, persistence in
listings/store.py.
"""

from dataclasses import dataclass
from typing import Optional

LISTING_TYPES = ("job", "result", "admit-card")


@dataclass
class Listing:
    """One published listing.

    slug is assigned once at creation (see listings/slug.py) and never
    changes afterwards, even when the title is edited.

    start_date / last_date are ISO calendar dates (YYYY-MM-DD).
    source_url is unique among listings that have one; any number of
    listings may have none.

    id is None before the record is written to the database.
    """

    title: str
    slug: str
    department: str
    state: str
    qualification: str
    apply_link: str
    type: str = "job"  # "job" | "result" | "admit-card"
    eligibility: Optional[str] = None
    age_limit: Optional[str] = None
    vacancies: Optional[str] = None
    salary: Optional[str] = None
    fees: Optional[str] = None
    selection_process: Optional[str] = None
    start_date: Optional[str] = None
    last_date: Optional[str] = None
    notification_pdf: Optional[str] = None
    source_name: Optional[str] = None
    source_url: Optional[str] = None
    is_expired: bool = False
    id: Optional[int] = None
    created_at: str = ""  # ISO 8601, set by store on insert
    updated_at: str = ""
