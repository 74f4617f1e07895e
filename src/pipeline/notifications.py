"""Notification production and read-state tracking.

A stored row is the produced notification; delivery (email, push) is handled
outside this package.
"""

import logging
import sqlite3

from src.core.db import (
    get_candidate,
    insert_notification,
    list_notifications_by_user,
    set_all_notifications_read,
    set_notification_read,
)
from src.core.errors import CandidateNotFound
from src.core.schemas import Notification, NotificationType

logger = logging.getLogger(__name__)


def create_notification(
    conn: sqlite3.Connection,
    user_id: int,
    type: NotificationType | str,
    title: str,
    message: str,
    related_job_id: int | None = None,
    related_application_id: int | None = None,
) -> Notification:
    """Store a notification for a user.

    Raises CandidateNotFound for an unknown user and ValueError for an unknown type.
    """
    if get_candidate(conn, user_id) is None:
        raise CandidateNotFound(user_id)
    notification = insert_notification(
        conn,
        user_id=user_id,
        type=NotificationType(type),
        title=title,
        message=message,
        related_job_id=related_job_id,
        related_application_id=related_application_id,
    )
    logger.debug("Notification %d (%s) for user %d", notification.id, notification.type.value, user_id)
    return notification


def list_notifications(
    conn: sqlite3.Connection,
    user_id: int,
    unread_only: bool = False,
) -> list[Notification]:
    """Notifications of a user, newest first."""
    return list_notifications_by_user(conn, user_id, unread_only=unread_only)


def mark_notification_read(conn: sqlite3.Connection, notification_id: int) -> Notification | None:
    return set_notification_read(conn, notification_id)


def mark_all_notifications_read(conn: sqlite3.Connection, user_id: int) -> int:
    count = set_all_notifications_read(conn, user_id)
    logger.debug("Marked %d notifications read for user %d", count, user_id)
    return count
