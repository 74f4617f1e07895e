"""Job requisition lifecycle: create as draft, update, publish.

Only a draft with non-blank title, description, requirements and
responsibilities can be published, and publishing is the only way a job
becomes active.
"""

import logging
import sqlite3

from src.core.db import (
    get_job_requisition,
    insert_job_requisition,
    now,
    update_job_requisition_fields,
)
from src.core.errors import JobNotFound, NotEligibleForTransition
from src.core.schemas import (
    CreateJobRequisitionInput,
    JobRequisition,
    JobStatus,
    UpdateJobRequisitionInput,
)

logger = logging.getLogger(__name__)

REQUIRED_FOR_PUBLISH = ("title", "description", "requirements", "responsibilities")


def create_job_requisition(
    conn: sqlite3.Connection,
    data: CreateJobRequisitionInput,
) -> JobRequisition:
    """Create a job in draft status."""
    job = insert_job_requisition(conn, data)
    logger.info("Job %d created as draft for organization %d", job.id, job.organization_id)
    return job


def update_job_requisition(
    conn: sqlite3.Connection,
    data: UpdateJobRequisitionInput,
) -> JobRequisition | None:
    """Apply a partial update. Returns None for an unknown id.

    Raises NotEligibleForTransition when the update would activate a job that
    is not already active.
    """
    existing = get_job_requisition(conn, data.id)
    if existing is None:
        return None

    changes = data.changes()
    if changes.get("status") == JobStatus.ACTIVE and existing.status != JobStatus.ACTIVE:
        raise NotEligibleForTransition(data.id, "jobs are activated by publishing")

    updated = update_job_requisition_fields(conn, data.id, changes)
    if updated is not None:
        logger.info("Job %d updated: %s", data.id, ", ".join(sorted(changes)) or "no fields")
    return updated


def missing_publish_fields(job: JobRequisition) -> list[str]:
    return [name for name in REQUIRED_FOR_PUBLISH if not getattr(job, name).strip()]


def publish_job_requisition(conn: sqlite3.Connection, job_id: int) -> JobRequisition:
    """Move a draft job to active and stamp published_at.

    Raises JobNotFound for an unknown id and NotEligibleForTransition when the
    job is not a draft or is missing required text. A failed publish leaves
    the job untouched.
    """
    job = get_job_requisition(conn, job_id)
    if job is None:
        raise JobNotFound(job_id)
    if job.status != JobStatus.DRAFT:
        raise NotEligibleForTransition(job_id, f"status is {job.status.value}, not draft")

    missing = missing_publish_fields(job)
    if missing:
        raise NotEligibleForTransition(job_id, f"missing {', '.join(missing)}")

    published = update_job_requisition_fields(
        conn,
        job_id,
        {"status": JobStatus.ACTIVE, "published_at": now()},
        expected_status=JobStatus.DRAFT,
    )
    if published is None:
        # Another writer moved the job out of draft between the read and the update.
        raise NotEligibleForTransition(job_id, "status changed during publish")

    logger.info("Job %d published", job_id)
    return published
