"""
API request and response models for the listing service REST endpoints.

These Pydantic v2 models define the HTTP transport contract for the API layer.
They are intentionally separate from the dataclasses in listings/models.py and
auth/models.py, which own the internal domain representation. Route handlers
map between the two.

The wire format is camelCase (ageLimit, notificationPDF, isExpired, ...);
alias generators keep the Python attribute names snake_case.
"""

from datetime import date, datetime
from enum import Enum
from typing import Annotated, Optional

from pydantic import (
    AfterValidator,
    BaseModel,
    ConfigDict,
    EmailStr,
    Field,
    HttpUrl,
    StringConstraints,
    TypeAdapter,
    field_validator,
)
from pydantic.alias_generators import to_camel

from listings.models import Listing

# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------


class ListingTypeEnum(str, Enum):
    job = "job"
    result = "result"
    admit_card = "admit-card"


class CountFieldEnum(str, Enum):
    state = "state"
    qualification = "qualification"
    department = "department"


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def parse_calendar_date(value) -> Optional[str]:
    """Return an ISO calendar date, or None for missing or unparseable input.

    Accepts YYYY-MM-DD or a full ISO 8601 timestamp. Bad dates are dropped
    rather than rejected.
    """
    if value is None:
        return None
    if isinstance(value, datetime):
        return value.date().isoformat()
    if isinstance(value, date):
        return value.isoformat()
    text = str(value).strip()
    if not text:
        return None
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    try:
        if len(text) == 10:
            return date.fromisoformat(text).isoformat()
        return datetime.fromisoformat(text).date().isoformat()
    except ValueError:
        return None


_http_url = TypeAdapter(HttpUrl)


def check_http_url(value: str) -> str:
    """Require an absolute http(s) URL but return the submitted text as-is."""
    _http_url.validate_python(value)
    return value


WebUrl = Annotated[str, AfterValidator(check_http_url)]


# ---------------------------------------------------------------------------
# Auth -- request models
# ---------------------------------------------------------------------------

# Passwords and the setup secret are compared exactly, so only names and
# emails have surrounding whitespace trimmed.
TrimmedName = Annotated[str, StringConstraints(strip_whitespace=True, min_length=2, max_length=255)]


class _CredentialsMixin(BaseModel):
    @field_validator("email", mode="before", check_fields=False)
    @classmethod
    def trim_email(cls, value):
        return value.strip() if isinstance(value, str) else value


class RegisterRequest(_CredentialsMixin):
    """Request body for POST /api/auth/register."""

    name: TrimmedName
    email: EmailStr
    password: str = Field(min_length=8, max_length=255)


class LoginRequest(_CredentialsMixin):
    """Request body for POST /api/auth/login."""

    email: EmailStr
    password: str = Field(min_length=1, max_length=255)


class AdminSetupRequest(_CredentialsMixin):
    """Request body for POST /api/admin/setup."""

    token: str = Field(min_length=1)
    email: EmailStr
    password: str = Field(min_length=10, max_length=255)


# ---------------------------------------------------------------------------
# Auth -- response models
# ---------------------------------------------------------------------------


class OkResponse(BaseModel):
    model_config = ConfigDict(frozen=True)

    ok: bool = True


class SessionUser(BaseModel):
    """Verified session claims as returned by GET /api/auth/me."""

    model_config = ConfigDict(frozen=True)

    sub: str
    name: Optional[str] = None
    email: str
    role: str
    iat: int
    exp: int


class MeResponse(BaseModel):
    model_config = ConfigDict(frozen=True)

    authenticated: bool
    user: Optional[SessionUser] = None


# ---------------------------------------------------------------------------
# Listings -- request models
# ---------------------------------------------------------------------------


class SourceIn(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    name: str = Field(min_length=2, max_length=255)
    url: WebUrl


class _ListingFieldsMixin(BaseModel):
    @field_validator("start_date", "last_date", mode="before", check_fields=False)
    @classmethod
    def lenient_date(cls, value):
        return parse_calendar_date(value)


class ListingCreate(_ListingFieldsMixin):
    """Request body for POST /api/jobs and POST /api/admin/jobs."""

    model_config = ConfigDict(str_strip_whitespace=True, alias_generator=to_camel, populate_by_name=True)

    type: ListingTypeEnum = ListingTypeEnum.job
    title: str = Field(min_length=3, max_length=500)
    department: str = Field(min_length=2, max_length=255)
    state: str = Field(min_length=2, max_length=255)
    qualification: str = Field(min_length=2, max_length=255)
    eligibility: Optional[str] = None
    age_limit: Optional[str] = None
    vacancies: Optional[str] = None
    salary: Optional[str] = None
    fees: Optional[str] = None
    start_date: Optional[str] = None
    last_date: Optional[str] = None
    selection_process: Optional[str] = None
    apply_link: WebUrl
    notification_pdf: Optional[WebUrl] = Field(default=None, alias="notificationPDF")
    source: Optional[SourceIn] = None

    def to_listing(self, slug: str) -> Listing:
        return Listing(
            type=self.type.value,
            title=self.title,
            slug=slug,
            department=self.department,
            state=self.state,
            qualification=self.qualification,
            eligibility=self.eligibility,
            age_limit=self.age_limit,
            vacancies=self.vacancies,
            salary=self.salary,
            fees=self.fees,
            selection_process=self.selection_process,
            start_date=self.start_date,
            last_date=self.last_date,
            apply_link=self.apply_link,
            notification_pdf=self.notification_pdf,
            source_name=self.source.name if self.source else None,
            source_url=self.source.url if self.source else None,
            is_expired=False,
        )


# Columns that cannot be NULL; an update leaves them alone instead.
_REQUIRED_COLUMNS = frozenset({"type", "title", "department", "state", "qualification", "apply_link", "is_expired"})


class ListingUpdate(_ListingFieldsMixin):
    """Request body for PUT /api/admin/jobs/{id}. Unknown keys are rejected."""

    model_config = ConfigDict(
        str_strip_whitespace=True,
        alias_generator=to_camel,
        populate_by_name=True,
        extra="forbid",
    )

    type: Optional[ListingTypeEnum] = None
    title: Optional[str] = Field(default=None, min_length=3, max_length=500)
    department: Optional[str] = Field(default=None, min_length=2, max_length=255)
    state: Optional[str] = Field(default=None, min_length=2, max_length=255)
    qualification: Optional[str] = Field(default=None, min_length=2, max_length=255)
    eligibility: Optional[str] = None
    age_limit: Optional[str] = None
    vacancies: Optional[str] = None
    salary: Optional[str] = None
    fees: Optional[str] = None
    start_date: Optional[str] = None
    last_date: Optional[str] = None
    selection_process: Optional[str] = None
    apply_link: Optional[WebUrl] = None
    notification_pdf: Optional[WebUrl] = Field(default=None, alias="notificationPDF")
    source: Optional[SourceIn] = None
    is_expired: Optional[bool] = None

    def to_fields(self) -> dict:
        """Return only the fields the caller actually sent, as store column values.

        An explicit null for a required column means "leave unchanged".
        """
        fields: dict = {}
        for name, value in self.model_dump(exclude_unset=True, mode="json").items():
            if name == "source":
                fields["source_name"] = value["name"] if value else None
                fields["source_url"] = value["url"] if value else None
            elif value is None and name in _REQUIRED_COLUMNS:
                continue
            else:
                fields[name] = value
        return fields


# ---------------------------------------------------------------------------
# Listings -- response models
# ---------------------------------------------------------------------------


class SourceOut(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: Optional[str] = None
    url: Optional[str] = None


class ListingOut(BaseModel):
    """One listing in API responses (camelCase on the wire)."""

    model_config = ConfigDict(frozen=True, alias_generator=to_camel, populate_by_name=True)

    id: int
    type: str
    title: str
    slug: str
    department: str
    state: str
    qualification: str
    eligibility: Optional[str] = None
    age_limit: Optional[str] = None
    vacancies: Optional[str] = None
    salary: Optional[str] = None
    fees: Optional[str] = None
    selection_process: Optional[str] = None
    start_date: Optional[str] = None
    last_date: Optional[str] = None
    apply_link: str
    notification_pdf: Optional[str] = Field(default=None, alias="notificationPDF")
    source: Optional[SourceOut] = None
    is_expired: bool
    created_at: str
    updated_at: str

    @classmethod
    def from_listing(cls, listing: Listing) -> "ListingOut":
        """Build a ListingOut from a domain Listing (Factory Method)."""
        source = None
        if listing.source_name or listing.source_url:
            source = SourceOut(name=listing.source_name, url=listing.source_url)
        return cls(
            id=listing.id,
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
            source=source,
            is_expired=listing.is_expired,
            created_at=listing.created_at,
            updated_at=listing.updated_at,
        )


class ListingPage(BaseModel):
    """Response for GET /api/jobs."""

    model_config = ConfigDict(frozen=True, alias_generator=to_camel, populate_by_name=True)

    items: list[ListingOut]
    total: int
    page: int
    limit: int
    total_pages: int


class ListingList(BaseModel):
    """Response for GET /api/jobs/latest and GET /api/admin/jobs."""

    model_config = ConfigDict(frozen=True)

    items: list[ListingOut]


class ListingItem(BaseModel):
    model_config = ConfigDict(frozen=True)

    item: ListingOut


class ListingCreated(BaseModel):
    model_config = ConfigDict(frozen=True)

    ok: bool = True
    id: int
    slug: str


class CountRow(BaseModel):
    model_config = ConfigDict(frozen=True)

    key: str
    count: int


class CountsResponse(BaseModel):
    model_config = ConfigDict(frozen=True)

    rows: list[CountRow]


class StatsResponse(BaseModel):
    """Response for GET /api/admin/stats -- non-expired listings per type."""

    model_config = ConfigDict(frozen=True, alias_generator=to_camel, populate_by_name=True)

    jobs: int
    results: int
    admit_cards: int


class CronSummary(BaseModel):
    """Response for GET /api/cron/daily."""

    model_config = ConfigDict(frozen=True, alias_generator=to_camel, populate_by_name=True)

    ok: bool = True
    inserted: int
    duplicates: int
    expired_marked: int
    total_scraped: int


# ---------------------------------------------------------------------------
# Errors and health
# ---------------------------------------------------------------------------


class ErrorResponse(BaseModel):
    """Envelope returned on every 4xx/5xx response."""

    model_config = ConfigDict(frozen=True)

    error: str


class HealthResponse(BaseModel):
    model_config = ConfigDict(frozen=True)

    ok: bool = True
