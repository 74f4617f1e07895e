"""Filter chain for job search and recommendation.

Each filter renders one SQL predicate over ``job_requisitions AS j``; the
chain ANDs them. A filter with nothing to check renders ``None`` and drops out
of the chain. Text predicates use the ``icontains`` SQL function registered by
init_db, so matching is a case-insensitive substring test with no wildcard
escaping concerns.

Multi-value filters (keywords, locations, skills) OR their values together.
"""

import logging
from collections.abc import Callable, Iterable, Sequence
from datetime import datetime
from decimal import ROUND_CEILING, ROUND_FLOOR, Decimal
from typing import Any, NamedTuple

from src.core.db import to_cents
from src.core.schemas import JobSearchCriteria, JobStatus, VisibilityLevel

logger = logging.getLogger(__name__)

KEYWORD_FIELDS = ("title", "description", "requirements", "responsibilities")


class Clause(NamedTuple):
    """A SQL predicate fragment with its bound parameters."""

    sql: str
    params: tuple[Any, ...] = ()


# A filter renders a clause, or None when it has nothing to restrict.
Filter = Callable[[], Clause | None]


def _clean(values: Iterable[str] | None) -> list[str]:
    return [v for v in (values or []) if v and v.strip()]


def _any_contains(columns: Sequence[str], needles: Sequence[str]) -> Clause | None:
    if not needles:
        return None
    parts: list[str] = []
    params: list[Any] = []
    for needle in needles:
        for column in columns:
            parts.append(f"icontains(j.{column}, ?)")
            params.append(needle)
    return Clause(" OR ".join(parts), tuple(params))


class SearchableJobsFilter:
    """Only active, public jobs. Always part of search and recommendation chains."""

    def __call__(self) -> Clause:
        return Clause(
            "j.status = ? AND j.visibility_level = ?",
            (JobStatus.ACTIVE.value, VisibilityLevel.PUBLIC.value),
        )


class KeywordsFilter:
    """Any keyword appears in title, description, requirements or responsibilities."""

    def __init__(self, keywords: Iterable[str] | None) -> None:
        self._keywords = _clean(keywords)

    def __call__(self) -> Clause | None:
        return _any_contains(KEYWORD_FIELDS, self._keywords)


class LocationFilter:
    """Job location contains any of the given locations."""

    def __init__(self, locations: Iterable[str] | None) -> None:
        self._locations = _clean(locations)

    def __call__(self) -> Clause | None:
        return _any_contains(("location",), self._locations)


class SkillsFilter:
    """Job requirements contain any of the given skills."""

    def __init__(self, skills: Iterable[str] | None) -> None:
        self._skills = _clean(skills)

    def __call__(self) -> Clause | None:
        return _any_contains(("requirements",), self._skills)


class RemoteFilter:
    """Exact match on remote_allowed. None disables the filter."""

    def __init__(self, remote_allowed: bool | None) -> None:
        self._remote = remote_allowed

    def __call__(self) -> Clause | None:
        if self._remote is None:
            return None
        return Clause("j.remote_allowed = ?", (int(self._remote),))


class EmploymentTypeFilter:
    """Employment type is one of the given values (exact match)."""

    def __init__(self, employment_types: Iterable[str] | None) -> None:
        self._types = _clean(employment_types)

    def __call__(self) -> Clause | None:
        if not self._types:
            return None
        placeholders = ", ".join("?" for _ in self._types)
        return Clause(f"j.employment_type IN ({placeholders})", tuple(self._types))


class SalaryMinFilter:
    """The job can pay at least this much: salary_max >= value.

    Jobs without a salary_max never match. Sub-cent values round up so a job
    paying less than the value never matches.
    """

    def __init__(self, salary_min: Decimal | None) -> None:
        self._cents = to_cents(salary_min, rounding=ROUND_CEILING)

    def __call__(self) -> Clause | None:
        if self._cents is None:
            return None
        return Clause("j.salary_max_cents >= ?", (self._cents,))


class SalaryMaxFilter:
    """The job starts at or below this much: salary_min <= value.

    Jobs without a salary_min never match. Sub-cent values round down.
    """

    def __init__(self, salary_max: Decimal | None) -> None:
        self._cents = to_cents(salary_max, rounding=ROUND_FLOOR)

    def __call__(self) -> Clause | None:
        if self._cents is None:
            return None
        return Clause("j.salary_min_cents <= ?", (self._cents,))


class OrganizationFilter:
    def __init__(self, organization_id: int | None) -> None:
        self._organization_id = organization_id

    def __call__(self) -> Clause | None:
        if self._organization_id is None:
            return None
        return Clause("j.organization_id = ?", (self._organization_id,))


class NotAppliedFilter:
    """Exclude jobs the user already has an application for."""

    def __init__(self, user_id: int) -> None:
        self._user_id = user_id

    def __call__(self) -> Clause:
        return Clause(
            "NOT EXISTS (SELECT 1 FROM job_applications AS a "
            "WHERE a.job_id = j.id AND a.user_id = ?)",
            (self._user_id,),
        )


class PublishedAfterFilter:
    """Jobs published strictly after a point in time. None disables the filter."""

    def __init__(self, since: datetime | None) -> None:
        self._since = since

    def __call__(self) -> Clause | None:
        if self._since is None:
            return None
        return Clause(
            "j.published_at > ?", (self._since.isoformat(timespec="microseconds"),),
        )


class PublishedBeforeFilter:
    """Jobs published at or before a point in time."""

    def __init__(self, until: datetime) -> None:
        self._until = until

    def __call__(self) -> Clause:
        return Clause(
            "j.published_at <= ?", (self._until.isoformat(timespec="microseconds"),),
        )


def build_search_filters(criteria: JobSearchCriteria) -> list[Filter]:
    """Build the filter chain for an explicit search request."""
    return [
        SearchableJobsFilter(),
        KeywordsFilter([criteria.keywords] if criteria.keywords else None),
        LocationFilter([criteria.location] if criteria.location else None),
        RemoteFilter(criteria.remote_allowed),
        EmploymentTypeFilter(criteria.employment_types),
        SalaryMinFilter(criteria.salary_min),
        SalaryMaxFilter(criteria.salary_max),
        OrganizationFilter(criteria.organization_id),
        SkillsFilter(criteria.skills),
    ]


def compose_filters(filters: Sequence[Filter]) -> Clause:
    """AND every active filter's clause into one WHERE fragment."""
    parts: list[str] = []
    params: list[Any] = []
    for f in filters:
        clause = f()
        if clause is None:
            continue
        parts.append(f"({clause.sql})")
        params.extend(clause.params)
    if not parts:
        return Clause("1 = 1")
    logger.debug("Composed %d of %d filters", len(parts), len(filters))
    return Clause(" AND ".join(parts), tuple(params))
