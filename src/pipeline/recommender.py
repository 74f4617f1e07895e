"""Job recommendations from a candidate's stored profile.

Exactly one targeting branch applies per call, in priority order:

  1. skills              - requirements contain any candidate skill
  2. preferred locations - location contains any preferred location
  3. current location    - location contains the candidate's location
  4. remote              - remote_allowed jobs only

Branches are never blended. Jobs the candidate applied to are always excluded.
"""

import logging
import sqlite3
from enum import Enum

from src.core.config import Settings
from src.core.db import get_candidate, query_jobs
from src.core.schemas import Candidate, JobRequisition
from src.pipeline.matcher import (
    Filter,
    LocationFilter,
    NotAppliedFilter,
    RemoteFilter,
    SearchableJobsFilter,
    SkillsFilter,
    compose_filters,
)

logger = logging.getLogger(__name__)


class RecommendationBranch(str, Enum):
    SKILLS = "skills"
    PREFERRED_LOCATIONS = "preferred_locations"
    LOCATION = "location"
    REMOTE = "remote"


def select_branch(candidate: Candidate) -> tuple[RecommendationBranch, Filter]:
    """Pick the single targeting filter for a candidate."""
    skills = [s for s in candidate.skills if s.strip()]
    if skills:
        return RecommendationBranch.SKILLS, SkillsFilter(skills)

    preferred = [loc for loc in candidate.preferred_locations if loc.strip()]
    if preferred:
        return RecommendationBranch.PREFERRED_LOCATIONS, LocationFilter(preferred)

    if candidate.location and candidate.location.strip():
        return RecommendationBranch.LOCATION, LocationFilter([candidate.location])

    return RecommendationBranch.REMOTE, RemoteFilter(True)


def recommend_jobs(
    conn: sqlite3.Connection,
    user_id: int,
    limit: int | None = None,
    settings: Settings | None = None,
) -> list[JobRequisition]:
    """Return up to ``limit`` recommended jobs, newest published first.

    Returns an empty list for an unknown user.
    """
    settings = settings or Settings()
    candidate = get_candidate(conn, user_id)
    if candidate is None:
        logger.info("No recommendations: user %d not found", user_id)
        return []

    if limit is None:
        limit = settings.recommendations.default_limit
    if limit < 1:
        msg = f"limit must be positive, got {limit}"
        raise ValueError(msg)

    branch, targeting = select_branch(candidate)
    where = compose_filters([
        SearchableJobsFilter(),
        NotAppliedFilter(user_id),
        targeting,
    ])
    jobs = query_jobs(conn, where.sql, where.params, limit=limit)

    logger.info(
        "Recommended %d jobs for user %d via %s branch", len(jobs), user_id, branch.value,
    )
    return jobs
