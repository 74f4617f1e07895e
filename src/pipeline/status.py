"""Application status updates, single and bulk.

A bulk update treats every id as its own unit: an unknown id is skipped and
the rest still apply. When enabled, each actual status change produces an
application_update notification for the candidate.
"""

import logging
import sqlite3
from collections.abc import Iterable

from src.core.config import NotificationsConfig
from src.core.db import get_application, get_job_requisition, set_application_status
from src.core.schemas import Application, ApplicationStatus, NotificationType
from src.pipeline.notifications import create_notification

logger = logging.getLogger(__name__)


def update_application_status(
    conn: sqlite3.Connection,
    application_id: int,
    status: ApplicationStatus | str,
    config: NotificationsConfig | None = None,
) -> Application | None:
    """Set an application's status. Returns None for an unknown id.

    Raises ValueError for a status string that is not an ApplicationStatus.
    """
    status = ApplicationStatus(status)
    config = config or NotificationsConfig()

    before = get_application(conn, application_id)
    if before is None:
        logger.info("Status update skipped: application %d not found", application_id)
        return None

    updated = set_application_status(conn, application_id, status)
    if updated is None:
        return None

    if before.status != status:
        logger.info(
            "Application %d: %s -> %s", application_id, before.status.value, status.value,
        )
        if config.on_status_change:
            _notify_status_change(conn, updated)
    return updated


def bulk_update_application_status(
    conn: sqlite3.Connection,
    application_ids: Iterable[int],
    status: ApplicationStatus | str,
    config: NotificationsConfig | None = None,
) -> list[Application]:
    """Update many applications, returning only those that were updated."""
    status = ApplicationStatus(status)
    updated: list[Application] = []
    for application_id in application_ids:
        result = update_application_status(conn, application_id, status, config)
        if result is not None:
            updated.append(result)
    return updated


def _notify_status_change(conn: sqlite3.Connection, application: Application) -> None:
    job = get_job_requisition(conn, application.job_id)
    job_title = job.title if job is not None else f"job {application.job_id}"
    create_notification(
        conn,
        user_id=application.user_id,
        type=NotificationType.APPLICATION_UPDATE,
        title=f"Application update: {job_title}",
        message=f"Your application for {job_title} is now {application.status.value}.",
        related_job_id=application.job_id,
        related_application_id=application.id,
    )
