"""SQLite database layer: schema, row mapping, and CRUD for every entity.

Money columns hold integer minor units (cents) so range predicates compare
numerically. Scores and commission rates hold decimal strings with two
places. Timestamps are ISO-8601 strings with a fixed microsecond format so
lexical order equals chronological order.
"""

import json
import logging
import sqlite3
from collections.abc import Callable, Sequence
from datetime import datetime
from decimal import ROUND_HALF_UP, Decimal
from pathlib import Path
from typing import Any, TypeVar

from src.core.errors import (
    CandidateNotFound,
    DuplicateApplication,
    EmailTaken,
    OrganizationNotFound,
    SlugTaken,
)
from src.core.schemas import (
    Application,
    ApplicationStatus,
    Candidate,
    CreateCandidateInput,
    CreateJobRequisitionInput,
    CreateOrganizationInput,
    CreateSearchAlertInput,
    CreateVendorInput,
    JobRequisition,
    JobStatus,
    Notification,
    NotificationType,
    Organization,
    SearchAlert,
    Vendor,
)

logger = logging.getLogger(__name__)

_TWO_PLACES = Decimal("0.01")

T = TypeVar("T")

_ORGANIZATIONS_TABLE = """
CREATE TABLE IF NOT EXISTS organizations (
    id           INTEGER PRIMARY KEY AUTOINCREMENT,
    name         TEXT NOT NULL,
    slug         TEXT NOT NULL UNIQUE,
    description  TEXT,
    type         TEXT NOT NULL,
    logo_url     TEXT,
    website_url  TEXT,
    created_at   TEXT NOT NULL,
    updated_at   TEXT NOT NULL
);
"""

_USERS_TABLE = """
CREATE TABLE IF NOT EXISTS users (
    id                   INTEGER PRIMARY KEY AUTOINCREMENT,
    email                TEXT NOT NULL UNIQUE,
    first_name           TEXT NOT NULL,
    last_name            TEXT NOT NULL,
    phone                TEXT,
    resume_url           TEXT,
    linkedin_url         TEXT,
    portfolio_url        TEXT,
    location             TEXT,
    preferred_locations  TEXT NOT NULL DEFAULT '[]',
    skills               TEXT NOT NULL DEFAULT '[]',
    experience_years     INTEGER,
    created_at           TEXT NOT NULL,
    updated_at           TEXT NOT NULL
);
"""

_JOB_REQUISITIONS_TABLE = """
CREATE TABLE IF NOT EXISTS job_requisitions (
    id                         INTEGER PRIMARY KEY AUTOINCREMENT,
    organization_id            INTEGER NOT NULL REFERENCES organizations(id),
    title                      TEXT NOT NULL,
    description                TEXT NOT NULL,
    requirements               TEXT NOT NULL,
    responsibilities           TEXT NOT NULL,
    location                   TEXT NOT NULL,
    remote_allowed             INTEGER NOT NULL DEFAULT 0,
    employment_type            TEXT NOT NULL,
    department                 TEXT,
    salary_min_cents           INTEGER,
    salary_max_cents           INTEGER,
    salary_currency            TEXT NOT NULL DEFAULT 'USD',
    compensation_details       TEXT,
    benefits_summary           TEXT,
    visibility_level           TEXT NOT NULL DEFAULT 'public',
    allowed_application_paths  TEXT NOT NULL DEFAULT '["direct"]',
    status                     TEXT NOT NULL DEFAULT 'draft',
    published_at               TEXT,
    application_deadline       TEXT,
    external_id                TEXT,
    created_by                 INTEGER REFERENCES users(id),
    created_at                 TEXT NOT NULL,
    updated_at                 TEXT NOT NULL
);
"""

_VENDORS_TABLE = """
CREATE TABLE IF NOT EXISTS vendors (
    id               INTEGER PRIMARY KEY AUTOINCREMENT,
    name             TEXT NOT NULL,
    email            TEXT NOT NULL,
    contact_person   TEXT,
    phone            TEXT,
    commission_rate  TEXT,
    is_active        INTEGER NOT NULL DEFAULT 1,
    created_at       TEXT NOT NULL,
    updated_at       TEXT NOT NULL
);
"""

_JOB_APPLICATIONS_TABLE = """
CREATE TABLE IF NOT EXISTS job_applications (
    id                       INTEGER PRIMARY KEY AUTOINCREMENT,
    job_id                   INTEGER NOT NULL REFERENCES job_requisitions(id),
    user_id                  INTEGER NOT NULL REFERENCES users(id),
    application_path         TEXT NOT NULL,
    vendor_id                INTEGER REFERENCES vendors(id),
    cover_letter             TEXT,
    resume_url               TEXT,
    custom_responses         TEXT NOT NULL DEFAULT '{}',
    eligibility_score        TEXT NOT NULL DEFAULT '0.00',
    readiness_score          TEXT NOT NULL DEFAULT '0.00',
    skills_match_percentage  TEXT NOT NULL DEFAULT '0.00',
    status                   TEXT NOT NULL DEFAULT 'pending',
    applied_at               TEXT NOT NULL,
    last_updated             TEXT NOT NULL,
    consent_given            INTEGER NOT NULL DEFAULT 0,
    consent_timestamp        TEXT,
    UNIQUE (job_id, user_id)
);
"""

_SEARCH_ALERTS_TABLE = """
CREATE TABLE IF NOT EXISTS search_alerts (
    id                INTEGER PRIMARY KEY AUTOINCREMENT,
    user_id           INTEGER NOT NULL REFERENCES users(id),
    name              TEXT NOT NULL,
    keywords          TEXT NOT NULL DEFAULT '[]',
    locations         TEXT NOT NULL DEFAULT '[]',
    employment_types  TEXT NOT NULL DEFAULT '[]',
    salary_min_cents  INTEGER,
    remote_allowed    INTEGER,
    is_active         INTEGER NOT NULL DEFAULT 1,
    frequency         TEXT NOT NULL DEFAULT 'daily',
    last_sent         TEXT,
    created_at        TEXT NOT NULL,
    updated_at        TEXT NOT NULL
);
"""

_NOTIFICATIONS_TABLE = """
CREATE TABLE IF NOT EXISTS notifications (
    id                      INTEGER PRIMARY KEY AUTOINCREMENT,
    user_id                 INTEGER NOT NULL REFERENCES users(id),
    type                    TEXT NOT NULL,
    title                   TEXT NOT NULL,
    message                 TEXT NOT NULL,
    related_job_id          INTEGER REFERENCES job_requisitions(id),
    related_application_id  INTEGER REFERENCES job_applications(id),
    read                    INTEGER NOT NULL DEFAULT 0,
    sent_at                 TEXT NOT NULL,
    read_at                 TEXT
);
"""

_INDEXES = """
CREATE INDEX IF NOT EXISTS job_org_idx ON job_requisitions(organization_id);
CREATE INDEX IF NOT EXISTS job_status_idx ON job_requisitions(status, visibility_level);
CREATE INDEX IF NOT EXISTS job_published_idx ON job_requisitions(published_at);
CREATE INDEX IF NOT EXISTS app_user_idx ON job_applications(user_id);
CREATE INDEX IF NOT EXISTS app_status_idx ON job_applications(status);
CREATE INDEX IF NOT EXISTS alert_user_idx ON search_alerts(user_id);
CREATE INDEX IF NOT EXISTS notif_user_idx ON notifications(user_id, read);
"""

JOB_COLUMNS = "j.*"


def init_db(path: str | Path) -> sqlite3.Connection:
    """Create the database and tables, returning a connection."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    conn = sqlite3.connect(str(path))
    conn.row_factory = sqlite3.Row
    conn.create_function("icontains", 2, _icontains, deterministic=True)
    conn.execute("PRAGMA journal_mode=WAL")
    conn.execute("PRAGMA foreign_keys=ON")
    for ddl in (
        _ORGANIZATIONS_TABLE,
        _USERS_TABLE,
        _JOB_REQUISITIONS_TABLE,
        _VENDORS_TABLE,
        _JOB_APPLICATIONS_TABLE,
        _SEARCH_ALERTS_TABLE,
        _NOTIFICATIONS_TABLE,
    ):
        conn.execute(ddl)
    conn.executescript(_INDEXES)
    conn.commit()
    return conn


def _icontains(haystack: str | None, needle: str | None) -> int:
    """SQL function: 1 if needle is a case-insensitive substring of haystack.

    NULL on either side never matches.
    """
    if haystack is None or needle is None:
        return 0
    return int(needle.casefold() in haystack.casefold())


# ---------------------------------------------------------------------------
# Value encoding
# ---------------------------------------------------------------------------


def now() -> datetime:
    return datetime.now()


def _ts(value: datetime | None) -> str | None:
    return value.isoformat(timespec="microseconds") if value is not None else None


def to_cents(value: Decimal | None, rounding: str = ROUND_HALF_UP) -> int | None:
    if value is None:
        return None
    return int((Decimal(value) * 100).to_integral_value(rounding=rounding))


def _from_cents(value: int | None) -> Decimal | None:
    if value is None:
        return None
    return Decimal(value).scaleb(-2)


def _dec_str(value: Decimal | None) -> str | None:
    if value is None:
        return None
    return str(Decimal(value).quantize(_TWO_PLACES, rounding=ROUND_HALF_UP))


def _enum_values(items: Sequence[Any]) -> list[Any]:
    return [getattr(item, "value", item) for item in items]


def _row_dict(row: sqlite3.Row, json_columns: Sequence[str] = ()) -> dict[str, Any]:
    data = dict(row)
    for col in json_columns:
        raw = data.get(col)
        data[col] = json.loads(raw) if raw else None
    return data


def _is_unique_violation(exc: sqlite3.IntegrityError) -> bool:
    return "UNIQUE constraint failed" in str(exc)


def _reload(
    conn: sqlite3.Connection,
    getter: Callable[[sqlite3.Connection, int], T | None],
    row_id: int | None,
) -> T:
    """Read back a row just inserted on this connection."""
    obj = getter(conn, row_id or 0)
    if obj is None:
        msg = f"Inserted row {row_id} could not be read back"
        raise RuntimeError(msg)
    return obj


# ---------------------------------------------------------------------------
# Organizations
# ---------------------------------------------------------------------------


def _row_to_organization(row: sqlite3.Row) -> Organization:
    return Organization.model_validate(dict(row))


def create_organization(conn: sqlite3.Connection, data: CreateOrganizationInput) -> Organization:
    """Insert an organization. Raises SlugTaken if the slug is in use."""
    ts = _ts(now())
    try:
        cursor = conn.execute(
            """
            INSERT INTO organizations
                (name, slug, description, type, logo_url, website_url, created_at, updated_at)
            VALUES (?, ?, ?, ?, ?, ?, ?, ?)
            """,
            (
                data.name,
                data.slug,
                data.description,
                data.type.value,
                data.logo_url,
                data.website_url,
                ts,
                ts,
            ),
        )
        conn.commit()
    except sqlite3.IntegrityError as e:
        conn.rollback()
        if _is_unique_violation(e):
            raise SlugTaken(data.slug) from e
        raise
    return _reload(conn, get_organization, cursor.lastrowid)


def get_organization(conn: sqlite3.Connection, organization_id: int) -> Organization | None:
    row = conn.execute(
        "SELECT * FROM organizations WHERE id = ?", (organization_id,),
    ).fetchone()
    return _row_to_organization(row) if row is not None else None


def list_organizations(conn: sqlite3.Connection) -> list[Organization]:
    rows = conn.execute("SELECT * FROM organizations ORDER BY id").fetchall()
    return [_row_to_organization(r) for r in rows]


# ---------------------------------------------------------------------------
# Candidates (users)
# ---------------------------------------------------------------------------


def _row_to_candidate(row: sqlite3.Row) -> Candidate:
    return Candidate.model_validate(_row_dict(row, ("preferred_locations", "skills")))


def create_candidate(conn: sqlite3.Connection, data: CreateCandidateInput) -> Candidate:
    """Insert a candidate profile. Raises EmailTaken on a duplicate email."""
    ts = _ts(now())
    try:
        cursor = conn.execute(
            """
            INSERT INTO users
                (email, first_name, last_name, phone, resume_url, linkedin_url,
                 portfolio_url, location, preferred_locations, skills,
                 experience_years, created_at, updated_at)
            VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
            """,
            (
                data.email,
                data.first_name,
                data.last_name,
                data.phone,
                data.resume_url,
                data.linkedin_url,
                data.portfolio_url,
                data.location,
                json.dumps(data.preferred_locations),
                json.dumps(data.skills),
                data.experience_years,
                ts,
                ts,
            ),
        )
        conn.commit()
    except sqlite3.IntegrityError as e:
        conn.rollback()
        if _is_unique_violation(e):
            raise EmailTaken(data.email) from e
        raise
    return _reload(conn, get_candidate, cursor.lastrowid)


def get_candidate(conn: sqlite3.Connection, user_id: int) -> Candidate | None:
    row = conn.execute("SELECT * FROM users WHERE id = ?", (user_id,)).fetchone()
    return _row_to_candidate(row) if row is not None else None


def get_candidate_by_email(conn: sqlite3.Connection, email: str) -> Candidate | None:
    row = conn.execute(
        "SELECT * FROM users WHERE email = ?", (email.strip(),),
    ).fetchone()
    return _row_to_candidate(row) if row is not None else None


# ---------------------------------------------------------------------------
# Vendors
# ---------------------------------------------------------------------------


def _row_to_vendor(row: sqlite3.Row) -> Vendor:
    return Vendor.model_validate(dict(row))


def create_vendor(conn: sqlite3.Connection, data: CreateVendorInput) -> Vendor:
    ts = _ts(now())
    cursor = conn.execute(
        """
        INSERT INTO vendors
            (name, email, contact_person, phone, commission_rate, is_active,
             created_at, updated_at)
        VALUES (?, ?, ?, ?, ?, 1, ?, ?)
        """,
        (
            data.name,
            data.email,
            data.contact_person,
            data.phone,
            _dec_str(data.commission_rate),
            ts,
            ts,
        ),
    )
    conn.commit()
    return _reload(conn, get_vendor, cursor.lastrowid)


def get_vendor(conn: sqlite3.Connection, vendor_id: int) -> Vendor | None:
    """Fetch a vendor whether or not it is active."""
    row = conn.execute("SELECT * FROM vendors WHERE id = ?", (vendor_id,)).fetchone()
    return _row_to_vendor(row) if row is not None else None


def list_active_vendors(conn: sqlite3.Connection) -> list[Vendor]:
    rows = conn.execute(
        "SELECT * FROM vendors WHERE is_active = 1 ORDER BY name, id",
    ).fetchall()
    return [_row_to_vendor(r) for r in rows]


def set_vendor_active(conn: sqlite3.Connection, vendor_id: int, active: bool) -> Vendor | None:
    conn.execute(
        "UPDATE vendors SET is_active = ?, updated_at = ? WHERE id = ?",
        (int(active), _ts(now()), vendor_id),
    )
    conn.commit()
    return get_vendor(conn, vendor_id)


# ---------------------------------------------------------------------------
# Job requisitions
# ---------------------------------------------------------------------------

# Columns a partial update may write, mapped to their storage encoders.
_JOB_UPDATE_ENCODERS: dict[str, tuple[str, Any]] = {
    "title": ("title", None),
    "description": ("description", None),
    "requirements": ("requirements", None),
    "responsibilities": ("responsibilities", None),
    "location": ("location", None),
    "remote_allowed": ("remote_allowed", int),
    "employment_type": ("employment_type", None),
    "department": ("department", None),
    "salary_min": ("salary_min_cents", to_cents),
    "salary_max": ("salary_max_cents", to_cents),
    "salary_currency": ("salary_currency", None),
    "compensation_details": ("compensation_details", None),
    "benefits_summary": ("benefits_summary", None),
    "visibility_level": ("visibility_level", lambda v: v.value),
    "allowed_application_paths": (
        "allowed_application_paths", lambda v: json.dumps(_enum_values(v)),
    ),
    "status": ("status", lambda v: v.value),
    "published_at": ("published_at", _ts),
    "application_deadline": ("application_deadline", _ts),
}


def row_to_job(row: sqlite3.Row) -> JobRequisition:
    data = _row_dict(row, ("allowed_application_paths",))
    data["salary_min"] = _from_cents(data.pop("salary_min_cents"))
    data["salary_max"] = _from_cents(data.pop("salary_max_cents"))
    return JobRequisition.model_validate(data)


def insert_job_requisition(
    conn: sqlite3.Connection,
    data: CreateJobRequisitionInput,
    status: JobStatus = JobStatus.DRAFT,
    published_at: datetime | None = None,
) -> JobRequisition:
    """Insert a job requisition. Raises OrganizationNotFound for a bad org id."""
    if get_organization(conn, data.organization_id) is None:
        raise OrganizationNotFound(data.organization_id)
    if data.created_by is not None and get_candidate(conn, data.created_by) is None:
        raise CandidateNotFound(data.created_by)
    ts = _ts(now())
    cursor = conn.execute(
        """
        INSERT INTO job_requisitions
            (organization_id, title, description, requirements, responsibilities,
             location, remote_allowed, employment_type, department,
             salary_min_cents, salary_max_cents, salary_currency,
             compensation_details, benefits_summary, visibility_level,
             allowed_application_paths, status, published_at,
             application_deadline, created_by, created_at, updated_at)
        VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
        """,
        (
            data.organization_id,
            data.title,
            data.description,
            data.requirements,
            data.responsibilities,
            data.location,
            int(data.remote_allowed),
            data.employment_type,
            data.department,
            to_cents(data.salary_min),
            to_cents(data.salary_max),
            data.salary_currency,
            data.compensation_details,
            data.benefits_summary,
            data.visibility_level.value,
            json.dumps(_enum_values(data.allowed_application_paths)),
            status.value,
            _ts(published_at),
            _ts(data.application_deadline),
            data.created_by,
            ts,
            ts,
        ),
    )
    conn.commit()
    return _reload(conn, get_job_requisition, cursor.lastrowid)


def get_job_requisition(conn: sqlite3.Connection, job_id: int) -> JobRequisition | None:
    row = conn.execute(
        "SELECT * FROM job_requisitions WHERE id = ?", (job_id,),
    ).fetchone()
    return row_to_job(row) if row is not None else None


def list_public_job_requisitions(conn: sqlite3.Connection) -> list[JobRequisition]:
    """All active, public jobs, newest published first."""
    rows = conn.execute(
        """
        SELECT * FROM job_requisitions
        WHERE status = 'active' AND visibility_level = 'public'
        ORDER BY published_at DESC, id DESC
        """,
    ).fetchall()
    return [row_to_job(r) for r in rows]


def list_job_requisitions_by_organization(
    conn: sqlite3.Connection,
    organization_id: int,
) -> list[JobRequisition]:
    """Every job of an organization regardless of status or visibility."""
    rows = conn.execute(
        "SELECT * FROM job_requisitions WHERE organization_id = ? ORDER BY id",
        (organization_id,),
    ).fetchall()
    return [row_to_job(r) for r in rows]


def update_job_requisition_fields(
    conn: sqlite3.Connection,
    job_id: int,
    changes: dict[str, Any],
    expected_status: JobStatus | None = None,
) -> JobRequisition | None:
    """Write the given fields and refresh updated_at.

    With expected_status the update only applies if the row still has that
    status. Returns the updated job, or None if no row was updated.
    """
    assignments: list[str] = []
    params: list[Any] = []
    for name, value in changes.items():
        if name not in _JOB_UPDATE_ENCODERS:
            msg = f"Unknown job requisition field: {name}"
            raise ValueError(msg)
        column, encode = _JOB_UPDATE_ENCODERS[name]
        assignments.append(f"{column} = ?")
        params.append(encode(value) if encode is not None and value is not None else value)
    assignments.append("updated_at = ?")
    params.append(_ts(now()))

    sql = f"UPDATE job_requisitions SET {', '.join(assignments)} WHERE id = ?"
    params.append(job_id)
    if expected_status is not None:
        sql += " AND status = ?"
        params.append(expected_status.value)

    cursor = conn.execute(sql, params)
    conn.commit()
    if cursor.rowcount == 0:
        return None
    return get_job_requisition(conn, job_id)


def query_jobs(
    conn: sqlite3.Connection,
    where: str,
    params: Sequence[Any],
    limit: int,
    offset: int = 0,
) -> list[JobRequisition]:
    """Select jobs aliased as ``j`` matching a WHERE fragment, newest first."""
    rows = conn.execute(
        f"""
        SELECT {JOB_COLUMNS} FROM job_requisitions AS j
        WHERE {where}
        ORDER BY j.published_at DESC, j.id DESC
        LIMIT ? OFFSET ?
        """,
        (*params, limit, offset),
    ).fetchall()
    return [row_to_job(r) for r in rows]


def count_jobs(conn: sqlite3.Connection, where: str, params: Sequence[Any]) -> int:
    row = conn.execute(
        f"SELECT COUNT(*) FROM job_requisitions AS j WHERE {where}",
        tuple(params),
    ).fetchone()
    return int(row[0])


# ---------------------------------------------------------------------------
# Applications
# ---------------------------------------------------------------------------


def _row_to_application(row: sqlite3.Row) -> Application:
    return Application.model_validate(_row_dict(row, ("custom_responses",)))


def application_exists(conn: sqlite3.Connection, job_id: int, user_id: int) -> bool:
    row = conn.execute(
        "SELECT 1 FROM job_applications WHERE job_id = ? AND user_id = ? LIMIT 1",
        (job_id, user_id),
    ).fetchone()
    return row is not None


def insert_application(
    conn: sqlite3.Connection,
    *,
    job_id: int,
    user_id: int,
    application_path: str,
    vendor_id: int | None,
    cover_letter: str | None,
    resume_url: str | None,
    custom_responses: dict[str, str],
    eligibility_score: Decimal,
    readiness_score: Decimal,
    skills_match_percentage: Decimal,
    consent_given: bool,
    applied_at: datetime,
) -> Application:
    """Insert an application row.

    Raises DuplicateApplication if (job_id, user_id) already exists.
    """
    ts = _ts(applied_at)
    try:
        cursor = conn.execute(
            """
            INSERT INTO job_applications
                (job_id, user_id, application_path, vendor_id, cover_letter,
                 resume_url, custom_responses, eligibility_score, readiness_score,
                 skills_match_percentage, status, applied_at, last_updated,
                 consent_given, consent_timestamp)
            VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
            """,
            (
                job_id,
                user_id,
                application_path,
                vendor_id,
                cover_letter,
                resume_url,
                json.dumps(custom_responses),
                _dec_str(eligibility_score),
                _dec_str(readiness_score),
                _dec_str(skills_match_percentage),
                ApplicationStatus.PENDING.value,
                ts,
                ts,
                int(consent_given),
                ts if consent_given else None,
            ),
        )
        conn.commit()
    except sqlite3.IntegrityError as e:
        conn.rollback()
        if _is_unique_violation(e):
            raise DuplicateApplication(job_id, user_id) from e
        raise
    return _reload(conn, get_application, cursor.lastrowid)


def get_application(conn: sqlite3.Connection, application_id: int) -> Application | None:
    row = conn.execute(
        "SELECT * FROM job_applications WHERE id = ?", (application_id,),
    ).fetchone()
    return _row_to_application(row) if row is not None else None


def list_applications_by_user(conn: sqlite3.Connection, user_id: int) -> list[Application]:
    rows = conn.execute(
        "SELECT * FROM job_applications WHERE user_id = ? ORDER BY applied_at DESC, id DESC",
        (user_id,),
    ).fetchall()
    return [_row_to_application(r) for r in rows]


def list_applications_by_job(conn: sqlite3.Connection, job_id: int) -> list[Application]:
    rows = conn.execute(
        "SELECT * FROM job_applications WHERE job_id = ? ORDER BY applied_at DESC, id DESC",
        (job_id,),
    ).fetchall()
    return [_row_to_application(r) for r in rows]


def set_application_status(
    conn: sqlite3.Connection,
    application_id: int,
    status: ApplicationStatus,
) -> Application | None:
    """Set status and last_updated. Returns None if the id does not exist."""
    cursor = conn.execute(
        "UPDATE job_applications SET status = ?, last_updated = ? WHERE id = ?",
        (status.value, _ts(now()), application_id),
    )
    conn.commit()
    if cursor.rowcount == 0:
        return None
    return get_application(conn, application_id)


# ---------------------------------------------------------------------------
# Search alerts
# ---------------------------------------------------------------------------


def _row_to_alert(row: sqlite3.Row) -> SearchAlert:
    data = _row_dict(row, ("keywords", "locations", "employment_types"))
    data["salary_min"] = _from_cents(data.pop("salary_min_cents"))
    return SearchAlert.model_validate(data)


def insert_search_alert(conn: sqlite3.Connection, data: CreateSearchAlertInput) -> SearchAlert:
    ts = _ts(now())
    cursor = conn.execute(
        """
        INSERT INTO search_alerts
            (user_id, name, keywords, locations, employment_types,
             salary_min_cents, remote_allowed, is_active, frequency,
             created_at, updated_at)
        VALUES (?, ?, ?, ?, ?, ?, ?, 1, ?, ?, ?)
        """,
        (
            data.user_id,
            data.name,
            json.dumps(data.keywords),
            json.dumps(data.locations),
            json.dumps(data.employment_types),
            to_cents(data.salary_min),
            int(data.remote_allowed) if data.remote_allowed is not None else None,
            data.frequency.value,
            ts,
            ts,
        ),
    )
    conn.commit()
    return _reload(conn, get_search_alert, cursor.lastrowid)


def get_search_alert(conn: sqlite3.Connection, alert_id: int) -> SearchAlert | None:
    row = conn.execute("SELECT * FROM search_alerts WHERE id = ?", (alert_id,)).fetchone()
    return _row_to_alert(row) if row is not None else None


def list_search_alerts_by_user(conn: sqlite3.Connection, user_id: int) -> list[SearchAlert]:
    rows = conn.execute(
        "SELECT * FROM search_alerts WHERE user_id = ? ORDER BY id", (user_id,),
    ).fetchall()
    return [_row_to_alert(r) for r in rows]


def list_active_search_alerts(conn: sqlite3.Connection) -> list[SearchAlert]:
    rows = conn.execute(
        "SELECT * FROM search_alerts WHERE is_active = 1 ORDER BY id",
    ).fetchall()
    return [_row_to_alert(r) for r in rows]


def set_search_alert_active(
    conn: sqlite3.Connection,
    alert_id: int,
    active: bool,
) -> SearchAlert | None:
    conn.execute(
        "UPDATE search_alerts SET is_active = ?, updated_at = ? WHERE id = ?",
        (int(active), _ts(now()), alert_id),
    )
    conn.commit()
    return get_search_alert(conn, alert_id)


def set_search_alert_last_sent(
    conn: sqlite3.Connection,
    alert_id: int,
    sent_at: datetime,
) -> None:
    conn.execute(
        "UPDATE search_alerts SET last_sent = ?, updated_at = ? WHERE id = ?",
        (_ts(sent_at), _ts(now()), alert_id),
    )
    conn.commit()


# ---------------------------------------------------------------------------
# Notifications
# ---------------------------------------------------------------------------


def _row_to_notification(row: sqlite3.Row) -> Notification:
    return Notification.model_validate(dict(row))


def insert_notification(
    conn: sqlite3.Connection,
    *,
    user_id: int,
    type: NotificationType,
    title: str,
    message: str,
    related_job_id: int | None = None,
    related_application_id: int | None = None,
) -> Notification:
    cursor = conn.execute(
        """
        INSERT INTO notifications
            (user_id, type, title, message, related_job_id,
             related_application_id, read, sent_at)
        VALUES (?, ?, ?, ?, ?, ?, 0, ?)
        """,
        (
            user_id,
            type.value,
            title,
            message,
            related_job_id,
            related_application_id,
            _ts(now()),
        ),
    )
    conn.commit()
    return _reload(conn, get_notification, cursor.lastrowid)


def get_notification(conn: sqlite3.Connection, notification_id: int) -> Notification | None:
    row = conn.execute(
        "SELECT * FROM notifications WHERE id = ?", (notification_id,),
    ).fetchone()
    return _row_to_notification(row) if row is not None else None


def list_notifications_by_user(
    conn: sqlite3.Connection,
    user_id: int,
    unread_only: bool = False,
) -> list[Notification]:
    sql = "SELECT * FROM notifications WHERE user_id = ?"
    if unread_only:
        sql += " AND read = 0"
    sql += " ORDER BY sent_at DESC, id DESC"
    rows = conn.execute(sql, (user_id,)).fetchall()
    return [_row_to_notification(r) for r in rows]


def set_notification_read(conn: sqlite3.Connection, notification_id: int) -> Notification | None:
    """Mark one notification read. read_at is only set the first time."""
    conn.execute(
        "UPDATE notifications SET read = 1, read_at = ? WHERE id = ? AND read = 0",
        (_ts(now()), notification_id),
    )
    conn.commit()
    return get_notification(conn, notification_id)


def set_all_notifications_read(conn: sqlite3.Connection, user_id: int) -> int:
    """Mark every unread notification of a user read. Returns the count changed."""
    cursor = conn.execute(
        "UPDATE notifications SET read = 1, read_at = ? WHERE user_id = ? AND read = 0",
        (_ts(now()), user_id),
    )
    conn.commit()
    return cursor.rowcount
