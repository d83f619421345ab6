"""
listings/slug.py -- URL slugs for listings.

assign_unique_slug() probes the store sequentially: "base", "base-2",
"base-3", ... until a free slug is found. The probe and the later INSERT are
not atomic; the UNIQUE index on listings.slug turns a racing duplicate into
an IntegrityError instead of two listings sharing a slug.

Probing is capped at max_attempts. Past the cap a random suffix is used
rather than looping indefinitely on pathological input.
"""

from __future__ import annotations

import logging
import re
import secrets
import time
from typing import Protocol

logger = logging.getLogger("jobboard.listings")

_DISALLOWED = re.compile(r"[^a-z0-9\s-]")
_WHITESPACE = re.compile(r"\s+")
_HYPHENS = re.compile(r"-+")


class SlugLookup(Protocol):
    def slug_exists(self, slug: str) -> bool: ...


def slugify(title: str) -> str:
    """Lowercase, keep [a-z0-9], whitespace and hyphens, hyphenate, tidy edges.

    >>> slugify("  Staff Nurse -- Recruitment 2024! ")
    'staff-nurse-recruitment-2024'
    """
    slug = _DISALLOWED.sub("", title.lower()).strip()
    slug = _WHITESPACE.sub("-", slug)
    slug = _HYPHENS.sub("-", slug)
    return slug.strip("-")


def fallback_slug() -> str:
    return f"job-{int(time.time() * 1000)}"


def assign_unique_slug(store: SlugLookup, title: str, max_attempts: int = 1000) -> str:
    base = slugify(title) or fallback_slug()
    slug = base
    suffix = 2
    for _ in range(max_attempts):
        if not store.slug_exists(slug):
            return slug
        slug = f"{base}-{suffix}"
        suffix += 1
    logger.warning("Slug probing for %r exhausted %d attempts; using random suffix", base, max_attempts)
    return f"{base}-{secrets.token_hex(4)}"
