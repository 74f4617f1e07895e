"""Job search: filter chain -> paginated query -> total count."""

import logging
import sqlite3

from src.core.config import Settings
from src.core.db import count_jobs, query_jobs
from src.core.schemas import JobSearchCriteria, JobSearchResult
from src.pipeline.matcher import build_search_filters, compose_filters

logger = logging.getLogger(__name__)


def search_jobs(
    conn: sqlite3.Connection,
    criteria: JobSearchCriteria,
    settings: Settings | None = None,
) -> JobSearchResult:
    """Search active, public jobs.

    Pages are 1-indexed. ``total`` counts every match regardless of paging and
    ``has_more`` is true while rows remain past the current page. The limit
    falls back to ``search.default_limit`` and is capped at ``search.max_limit``.
    """
    settings = settings or Settings()
    limit = min(criteria.limit or settings.search.default_limit, settings.search.max_limit)
    offset = (criteria.page - 1) * limit

    where = compose_filters(build_search_filters(criteria))
    jobs = query_jobs(conn, where.sql, where.params, limit=limit, offset=offset)
    total = count_jobs(conn, where.sql, where.params)

    logger.info(
        "Search page %d (limit %d): %d of %d matching jobs",
        criteria.page, limit, len(jobs), total,
    )

    return JobSearchResult(
        jobs=jobs,
        total=total,
        page=criteria.page,
        limit=limit,
        has_more=offset + len(jobs) < total,
    )
