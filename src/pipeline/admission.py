"""Application admission: validate, score, and persist a new application.

Check order (first failure wins):
  1. job exists                       -> JobNotFound
  2. candidate exists                 -> CandidateNotFound
  3. supplied vendor exists, active   -> VendorInvalid
  4. no prior (job, candidate) row    -> DuplicateApplication
  5. path allowed by the job          -> PathNotAllowed
     vendor path names a vendor       -> VendorInvalid

The pre-check in step 4 is backed by UNIQUE(job_id, user_id) in the store, so
a concurrent duplicate that slips past it still fails as DuplicateApplication.
"""

import logging
import sqlite3
from decimal import Decimal

from src.core.config import ScoringConfig
from src.core.db import (
    application_exists,
    get_candidate,
    get_job_requisition,
    get_vendor,
    insert_application,
    now,
)
from src.core.errors import (
    CandidateNotFound,
    DuplicateApplication,
    JobNotFound,
    PathNotAllowed,
    VendorInvalid,
)
from src.core.schemas import Application, ApplicationPath, CreateApplicationInput
from src.pipeline.scorer import score_eligibility, score_readiness, skills_match_percentage

logger = logging.getLogger(__name__)


def create_application(
    conn: sqlite3.Connection,
    data: CreateApplicationInput,
    config: ScoringConfig | None = None,
) -> Application:
    """Admit and persist an application, returning the stored row.

    Writes exactly one application row and nothing else.
    """
    job = get_job_requisition(conn, data.job_id)
    if job is None:
        _reject(data, "job not found")
        raise JobNotFound(data.job_id)

    candidate = get_candidate(conn, data.user_id)
    if candidate is None:
        _reject(data, "user not found")
        raise CandidateNotFound(data.user_id)

    if data.vendor_id is not None:
        vendor = get_vendor(conn, data.vendor_id)
        if vendor is None or not vendor.is_active:
            _reject(data, "vendor not found or inactive")
            raise VendorInvalid(data.vendor_id)

    if application_exists(conn, data.job_id, data.user_id):
        _reject(data, "duplicate")
        raise DuplicateApplication(data.job_id, data.user_id)

    if data.application_path not in job.allowed_application_paths:
        _reject(data, "path not allowed")
        raise PathNotAllowed(
            data.application_path.value,
            [p.value for p in job.allowed_application_paths],
        )

    if data.application_path == ApplicationPath.VENDOR and data.vendor_id is None:
        _reject(data, "vendor path without vendor")
        raise VendorInvalid(None, "vendor applications must name a vendor")

    eligibility = score_eligibility(candidate, job, config)
    readiness = score_readiness(candidate, config)
    skills_pct = skills_match_percentage(candidate, job)

    application = insert_application(
        conn,
        job_id=data.job_id,
        user_id=data.user_id,
        application_path=data.application_path.value,
        vendor_id=data.vendor_id,
        cover_letter=data.cover_letter,
        resume_url=data.resume_url,
        custom_responses=data.custom_responses,
        eligibility_score=eligibility,
        readiness_score=readiness,
        skills_match_percentage=skills_pct,
        consent_given=data.consent_given,
        applied_at=now(),
    )
    logger.info(
        "Application %d created: job=%d user=%d path=%s eligibility=%s readiness=%s skills=%s",
        application.id, data.job_id, data.user_id, data.application_path.value,
        application.eligibility_score, application.readiness_score,
        application.skills_match_percentage,
    )
    return application


def calculate_eligibility_score(
    conn: sqlite3.Connection,
    user_id: int,
    job_id: int,
    config: ScoringConfig | None = None,
) -> Decimal:
    """Eligibility of a user for a job; 0 if either does not exist."""
    candidate = get_candidate(conn, user_id)
    job = get_job_requisition(conn, job_id)
    if candidate is None or job is None:
        logger.debug("Eligibility for user=%d job=%d: missing entity, scoring 0", user_id, job_id)
        return Decimal(0)
    return score_eligibility(candidate, job, config)


def calculate_readiness_score(
    conn: sqlite3.Connection,
    user_id: int,
    config: ScoringConfig | None = None,
) -> Decimal:
    """Profile readiness of a user; 0 if the user does not exist."""
    candidate = get_candidate(conn, user_id)
    if candidate is None:
        return Decimal(0)
    return score_readiness(candidate, config)


def calculate_skills_match(conn: sqlite3.Connection, user_id: int, job_id: int) -> Decimal:
    """Skills match percentage of a user for a job; 0 if either does not exist."""
    candidate = get_candidate(conn, user_id)
    job = get_job_requisition(conn, job_id)
    if candidate is None or job is None:
        return Decimal(0)
    return skills_match_percentage(candidate, job)


def _reject(data: CreateApplicationInput, reason: str) -> None:
    logger.info(
        "Application rejected (%s): job=%d user=%d path=%s",
        reason, data.job_id, data.user_id, data.application_path.value,
    )
