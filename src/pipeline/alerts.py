"""Search alerts: saved criteria that produce new_job_alert notifications.

process_search_alerts is a one-shot run; whoever calls it decides how often.
Each run sees only jobs published after the previous run and no later than the
run time itself, so a job is announced to an alert at most once.
"""

import logging
import sqlite3
from datetime import datetime, timedelta

from src.core.config import Settings
from src.core.db import (
    get_candidate,
    insert_search_alert,
    list_active_search_alerts,
    list_search_alerts_by_user,
    now,
    query_jobs,
    set_search_alert_last_sent,
)
from src.core.errors import CandidateNotFound
from src.core.schemas import (
    AlertFrequency,
    AlertRunResult,
    CreateSearchAlertInput,
    NotificationType,
    SearchAlert,
)
from src.pipeline.matcher import (
    EmploymentTypeFilter,
    Filter,
    KeywordsFilter,
    LocationFilter,
    NotAppliedFilter,
    PublishedAfterFilter,
    PublishedBeforeFilter,
    RemoteFilter,
    SalaryMinFilter,
    SearchableJobsFilter,
    compose_filters,
)
from src.pipeline.notifications import create_notification

logger = logging.getLogger(__name__)

# Minimum gap between two runs of an alert.
_FREQUENCY_INTERVALS: dict[AlertFrequency, timedelta] = {
    AlertFrequency.IMMEDIATE: timedelta(0),
    AlertFrequency.DAILY: timedelta(days=1),
    AlertFrequency.WEEKLY: timedelta(days=7),
}


def create_search_alert(conn: sqlite3.Connection, data: CreateSearchAlertInput) -> SearchAlert:
    """Save a search alert. Raises CandidateNotFound for an unknown user."""
    if get_candidate(conn, data.user_id) is None:
        raise CandidateNotFound(data.user_id)
    alert = insert_search_alert(conn, data)
    logger.info(
        "Search alert %d '%s' created for user %d (%s)",
        alert.id, alert.name, alert.user_id, alert.frequency.value,
    )
    return alert


def list_search_alerts(conn: sqlite3.Connection, user_id: int) -> list[SearchAlert]:
    """Active and inactive alerts of a user."""
    return list_search_alerts_by_user(conn, user_id)


def is_alert_due(alert: SearchAlert, at: datetime) -> bool:
    """True if the alert has never run or its frequency interval has elapsed."""
    if not alert.is_active:
        return False
    if alert.last_sent is None:
        return True
    return at - alert.last_sent >= _FREQUENCY_INTERVALS[alert.frequency]


def alert_filters(alert: SearchAlert, at: datetime) -> list[Filter]:
    """Filter chain for an alert's saved criteria, bounded to (last_sent, at]."""
    return [
        SearchableJobsFilter(),
        KeywordsFilter(alert.keywords),
        LocationFilter(alert.locations),
        EmploymentTypeFilter(alert.employment_types),
        SalaryMinFilter(alert.salary_min),
        RemoteFilter(alert.remote_allowed),
        PublishedAfterFilter(alert.last_sent),
        PublishedBeforeFilter(at),
        NotAppliedFilter(alert.user_id),
    ]


def run_alert(
    conn: sqlite3.Connection,
    alert: SearchAlert,
    settings: Settings,
    at: datetime,
) -> AlertRunResult:
    """Match one alert, notify per matched job, and advance last_sent."""
    where = compose_filters(alert_filters(alert, at))
    jobs = query_jobs(
        conn, where.sql, where.params, limit=settings.alerts.max_jobs_per_alert,
    )

    for job in jobs:
        create_notification(
            conn,
            user_id=alert.user_id,
            type=NotificationType.NEW_JOB_ALERT,
            title=f"New job for '{alert.name}': {job.title}",
            message=f"{job.title} in {job.location} matches your saved search '{alert.name}'.",
            related_job_id=job.id,
        )
    set_search_alert_last_sent(conn, alert.id, at)

    logger.info("Alert %d '%s': %d new jobs", alert.id, alert.name, len(jobs))
    return AlertRunResult(
        alert_id=alert.id,
        user_id=alert.user_id,
        matched_job_ids=[j.id for j in jobs],
        notifications_created=len(jobs),
    )


def process_search_alerts(
    conn: sqlite3.Connection,
    settings: Settings | None = None,
    at: datetime | None = None,
) -> list[AlertRunResult]:
    """Run every active alert that is due. Returns one result per alert run."""
    settings = settings or Settings()
    at = at or now()

    results: list[AlertRunResult] = []
    for alert in list_active_search_alerts(conn):
        if not is_alert_due(alert, at):
            logger.debug("Alert %d not due (last sent %s)", alert.id, alert.last_sent)
            continue
        results.append(run_alert(conn, alert, settings, at))

    logger.info(
        "Processed %d due alerts, %d notifications",
        len(results), sum(r.notifications_created for r in results),
    )
    return results
