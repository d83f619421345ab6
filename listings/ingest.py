"""
listings/ingest.py -- Daily ingestion entry point for the cron route.

Scraping is not implemented yet: run_daily_ingestion() reports an empty run
so the scheduler wiring and authorization can be exercised end to end.
"""

import logging
from dataclasses import asdict, dataclass

from listings.store import ListingStore

logger = logging.getLogger("jobboard.listings")


@dataclass(frozen=True)
class IngestionSummary:
    inserted: int = 0
    duplicates: int = 0
    expired_marked: int = 0
    total_scraped: int = 0

    def to_dict(self) -> dict:
        return asdict(self)


def run_daily_ingestion(store: ListingStore) -> IngestionSummary:
    """Run one ingestion pass against store and return what changed."""
    summary = IngestionSummary()
    logger.info("Daily ingestion finished: %s", summary.to_dict())
    return summary
