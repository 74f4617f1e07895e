"""Core data models for the job board engine.

Entity models mirror rows in the store and are frozen; updates go through
src.core.db and come back as fresh instances.
"""

from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Annotated

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator, model_validator

Score = Annotated[Decimal, Field(ge=0, le=100)]
Money = Annotated[Decimal, Field(ge=0, decimal_places=2)]


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------


class JobStatus(str, Enum):
    DRAFT = "draft"
    ACTIVE = "active"
    PAUSED = "paused"
    CLOSED = "closed"
    ARCHIVED = "archived"


class VisibilityLevel(str, Enum):
    PUBLIC = "public"
    INTERNAL = "internal"
    RESTRICTED = "restricted"
    PRIVATE = "private"


class ApplicationPath(str, Enum):
    DIRECT = "direct"
    VENDOR = "vendor"
    CONSENT_BASED = "consent_based"


class ApplicationStatus(str, Enum):
    PENDING = "pending"
    REVIEWING = "reviewing"
    INTERVIEWED = "interviewed"
    REJECTED = "rejected"
    ACCEPTED = "accepted"
    WITHDRAWN = "withdrawn"


class NotificationType(str, Enum):
    NEW_JOB_ALERT = "new_job_alert"
    APPLICATION_UPDATE = "application_update"
    JOB_MATCH = "job_match"
    APPLICATION_DEADLINE = "application_deadline"


class TenantType(str, Enum):
    ENTERPRISE = "enterprise"
    STARTUP = "startup"
    AGENCY = "agency"
    NONPROFIT = "nonprofit"


class AlertFrequency(str, Enum):
    IMMEDIATE = "immediate"
    DAILY = "daily"
    WEEKLY = "weekly"


def _none_to_list(v: object) -> object:
    return [] if v is None else v


def _strip(v: object) -> object:
    return v.strip() if isinstance(v, str) else v


# ---------------------------------------------------------------------------
# Entities
# ---------------------------------------------------------------------------


class Organization(BaseModel):
    """A tenant that posts job requisitions."""

    model_config = ConfigDict(frozen=True)

    id: int
    name: str
    slug: str
    description: str | None = None
    type: TenantType
    logo_url: str | None = None
    website_url: str | None = None
    created_at: datetime
    updated_at: datetime


class Candidate(BaseModel):
    """A candidate profile (a row in the users table)."""

    model_config = ConfigDict(frozen=True)

    id: int
    email: str
    first_name: str = ""
    last_name: str = ""
    phone: str | None = None
    resume_url: str | None = None
    linkedin_url: str | None = None
    portfolio_url: str | None = None
    location: str | None = None
    preferred_locations: list[str] = Field(default_factory=list)
    skills: list[str] = Field(default_factory=list)
    experience_years: int | None = Field(default=None, ge=0)
    created_at: datetime = Field(default_factory=datetime.now)
    updated_at: datetime = Field(default_factory=datetime.now)

    @field_validator("preferred_locations", "skills", mode="before")
    @classmethod
    def lists_never_none(cls, v: object) -> object:
        return _none_to_list(v)


class JobRequisition(BaseModel):
    """A job posting owned by an organization."""

    model_config = ConfigDict(frozen=True)

    id: int
    organization_id: int
    title: str
    description: str
    requirements: str
    responsibilities: str
    location: str
    remote_allowed: bool = False
    employment_type: str
    department: str | None = None
    salary_min: Money | None = None
    salary_max: Money | None = None
    salary_currency: str = "USD"
    compensation_details: str | None = None
    benefits_summary: str | None = None
    visibility_level: VisibilityLevel = VisibilityLevel.PUBLIC
    allowed_application_paths: list[ApplicationPath] = Field(
        default_factory=lambda: [ApplicationPath.DIRECT], min_length=1,
    )
    status: JobStatus = JobStatus.DRAFT
    published_at: datetime | None = None
    application_deadline: datetime | None = None
    external_id: str | None = None
    created_by: int | None = None
    created_at: datetime = Field(default_factory=datetime.now)
    updated_at: datetime = Field(default_factory=datetime.now)

    @property
    def is_searchable(self) -> bool:
        return self.status == JobStatus.ACTIVE and self.visibility_level == VisibilityLevel.PUBLIC


class Vendor(BaseModel):
    """A third-party recruitment agency."""

    model_config = ConfigDict(frozen=True)

    id: int
    name: str
    email: str
    contact_person: str | None = None
    phone: str | None = None
    commission_rate: Decimal | None = Field(default=None, ge=0, le=100)
    is_active: bool = True
    created_at: datetime
    updated_at: datetime


class Application(BaseModel):
    """A candidate's application to a job, with the scores computed at creation."""

    model_config = ConfigDict(frozen=True)

    id: int
    job_id: int
    user_id: int
    application_path: ApplicationPath
    vendor_id: int | None = None
    cover_letter: str | None = None
    resume_url: str | None = None
    custom_responses: dict[str, str] = Field(default_factory=dict)
    eligibility_score: Score = Decimal(0)
    readiness_score: Score = Decimal(0)
    skills_match_percentage: Score = Decimal(0)
    status: ApplicationStatus = ApplicationStatus.PENDING
    applied_at: datetime
    last_updated: datetime
    consent_given: bool = False
    consent_timestamp: datetime | None = None


class SearchAlert(BaseModel):
    """Saved search criteria a candidate wants to be notified about."""

    model_config = ConfigDict(frozen=True)

    id: int
    user_id: int
    name: str
    keywords: list[str] = Field(default_factory=list)
    locations: list[str] = Field(default_factory=list)
    employment_types: list[str] = Field(default_factory=list)
    salary_min: Money | None = None
    remote_allowed: bool | None = None
    is_active: bool = True
    frequency: AlertFrequency = AlertFrequency.DAILY
    last_sent: datetime | None = None
    created_at: datetime
    updated_at: datetime


class Notification(BaseModel):
    """A notification produced for a user. Delivery happens elsewhere."""

    model_config = ConfigDict(frozen=True)

    id: int
    user_id: int
    type: NotificationType
    title: str
    message: str
    related_job_id: int | None = None
    related_application_id: int | None = None
    read: bool = False
    sent_at: datetime
    read_at: datetime | None = None


# ---------------------------------------------------------------------------
# Inputs
# ---------------------------------------------------------------------------


class CreateOrganizationInput(BaseModel):
    name: str = Field(min_length=1)
    slug: str = Field(min_length=1, max_length=100)
    description: str | None = None
    type: TenantType
    logo_url: str | None = None
    website_url: str | None = None


class CreateCandidateInput(BaseModel):
    email: EmailStr
    first_name: str
    last_name: str
    phone: str | None = None
    resume_url: str | None = None
    linkedin_url: str | None = None
    portfolio_url: str | None = None
    location: str | None = None
    preferred_locations: list[str] = Field(default_factory=list)
    skills: list[str] = Field(default_factory=list)
    experience_years: int | None = Field(default=None, ge=0)

    @field_validator("email", mode="before")
    @classmethod
    def email_stripped(cls, v: object) -> object:
        return _strip(v)

    @field_validator("preferred_locations", "skills", mode="before")
    @classmethod
    def lists_never_none(cls, v: object) -> object:
        return _none_to_list(v)


class CreateJobRequisitionInput(BaseModel):
    organization_id: int
    title: str
    description: str
    requirements: str
    responsibilities: str
    location: str
    remote_allowed: bool = False
    employment_type: str
    department: str | None = None
    salary_min: Money | None = None
    salary_max: Money | None = None
    salary_currency: str = Field(default="USD", min_length=3, max_length=3)
    compensation_details: str | None = None
    benefits_summary: str | None = None
    visibility_level: VisibilityLevel = VisibilityLevel.PUBLIC
    allowed_application_paths: list[ApplicationPath] = Field(
        default_factory=lambda: [ApplicationPath.DIRECT], min_length=1,
    )
    application_deadline: datetime | None = None
    created_by: int | None = None

    @model_validator(mode="after")
    def salary_range_ordered(self) -> "CreateJobRequisitionInput":
        if (
            self.salary_min is not None
            and self.salary_max is not None
            and self.salary_min > self.salary_max
        ):
            msg = "salary_min must not exceed salary_max"
            raise ValueError(msg)
        return self


_REQUIRED_JOB_FIELDS = frozenset({
    "title",
    "description",
    "requirements",
    "responsibilities",
    "location",
    "remote_allowed",
    "employment_type",
    "salary_currency",
    "visibility_level",
    "allowed_application_paths",
    "status",
})


class UpdateJobRequisitionInput(BaseModel):
    """Partial update. Only fields explicitly set are written."""

    id: int
    title: str | None = None
    description: str | None = None
    requirements: str | None = None
    responsibilities: str | None = None
    location: str | None = None
    remote_allowed: bool | None = None
    employment_type: str | None = None
    department: str | None = None
    salary_min: Money | None = None
    salary_max: Money | None = None
    salary_currency: str | None = Field(default=None, min_length=3, max_length=3)
    compensation_details: str | None = None
    benefits_summary: str | None = None
    visibility_level: VisibilityLevel | None = None
    allowed_application_paths: list[ApplicationPath] | None = Field(default=None, min_length=1)
    status: JobStatus | None = None
    application_deadline: datetime | None = None

    @model_validator(mode="after")
    def required_fields_not_cleared(self) -> "UpdateJobRequisitionInput":
        cleared = sorted(
            name for name in self.model_fields_set & _REQUIRED_JOB_FIELDS
            if getattr(self, name) is None
        )
        if cleared:
            msg = f"fields cannot be set to null: {', '.join(cleared)}"
            raise ValueError(msg)
        return self

    def changes(self) -> dict[str, object]:
        """Return the explicitly-set fields, excluding the id."""
        return {
            name: getattr(self, name)
            for name in self.model_fields_set
            if name != "id"
        }


class CreateApplicationInput(BaseModel):
    job_id: int
    user_id: int
    application_path: ApplicationPath
    vendor_id: int | None = None
    cover_letter: str | None = None
    resume_url: str | None = None
    custom_responses: dict[str, str] = Field(default_factory=dict)
    consent_given: bool = True


class CreateVendorInput(BaseModel):
    name: str = Field(min_length=1, max_length=200)
    email: EmailStr
    contact_person: str | None = None
    phone: str | None = None
    commission_rate: Decimal | None = Field(default=None, ge=0, le=100)

    @field_validator("email", mode="before")
    @classmethod
    def email_stripped(cls, v: object) -> object:
        return _strip(v)


class CreateSearchAlertInput(BaseModel):
    user_id: int
    name: str = Field(min_length=1, max_length=200)
    keywords: list[str] = Field(default_factory=list)
    locations: list[str] = Field(default_factory=list)
    employment_types: list[str] = Field(default_factory=list)
    salary_min: Money | None = None
    remote_allowed: bool | None = None
    frequency: AlertFrequency = AlertFrequency.DAILY


class JobSearchCriteria(BaseModel):
    """Optional search predicates; every one that is set narrows the result."""

    keywords: str | None = None
    location: str | None = None
    remote_allowed: bool | None = None
    employment_types: list[str] | None = None
    salary_min: Decimal | None = None
    salary_max: Decimal | None = None
    organization_id: int | None = None
    skills: list[str] | None = None
    page: int = Field(default=1, ge=1)
    limit: int | None = Field(default=None, ge=1)


# ---------------------------------------------------------------------------
# Results
# ---------------------------------------------------------------------------


class JobSearchResult(BaseModel):
    """One page of search results plus the unpaginated total."""

    jobs: list[JobRequisition]
    total: int
    page: int
    limit: int
    has_more: bool = Field(serialization_alias="hasMore")


class AlertRunResult(BaseModel):
    """Outcome of processing a single search alert."""

    alert_id: int
    user_id: int
    matched_job_ids: list[int] = Field(default_factory=list)
    notifications_created: int = 0
