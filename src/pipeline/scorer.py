"""Rule-based scoring of candidate profiles and candidate-job fit.

Score range: 0-100 (clamped). Point weights come from ScoringConfig.

  * readiness   - profile completeness, independent of any job
  * skills      - percentage of the candidate's skills found in the job text
  * eligibility - location fit + experience band + skills + profile bonus

Skills matching is a plain case-insensitive substring test against the job's
requirements and description, so "java" matches "javascript".
"""

import logging
from decimal import ROUND_HALF_UP, Decimal

from pydantic import BaseModel

from src.core.config import ScoringConfig
from src.core.schemas import Candidate, JobRequisition

logger = logging.getLogger(__name__)

_ZERO = Decimal(0)
_HUNDRED = Decimal(100)
_TWO_PLACES = Decimal("0.01")


class EligibilityBreakdown(BaseModel):
    """The four independent eligibility sub-scores and their clamped total."""

    location: Decimal
    experience: Decimal
    skills: Decimal
    profile_bonus: Decimal

    @property
    def total(self) -> Decimal:
        return _clamp(self.location + self.experience + self.skills + self.profile_bonus)


def score_readiness(candidate: Candidate, config: ScoringConfig | None = None) -> Decimal:
    """Score profile completeness from which fields are populated.

    experience_years == 0 counts as set. Empty or whitespace-only strings
    count as absent. Weights are summed as-is and clamped, never rescaled.
    """
    config = config or ScoringConfig()
    score = _ZERO

    # Basic info
    if _present(candidate.first_name) and _present(candidate.last_name):
        score += _d(config.name_points)
    if _present(candidate.email):
        score += _d(config.email_points)
    if _present(candidate.phone):
        score += _d(config.phone_points)

    # Professional
    if _present(candidate.resume_url):
        score += _d(config.resume_points)
    if candidate.experience_years is not None:
        score += _d(config.experience_points)
    if _present(candidate.location):
        score += _d(config.location_points)

    # Preferences
    if _normalized_skills(candidate.skills):
        score += _d(config.skills_points)
    if any(_present(loc) for loc in candidate.preferred_locations):
        score += _d(config.preferred_locations_points)

    # Links
    if _present(candidate.linkedin_url):
        score += _d(config.linkedin_points)
    if _present(candidate.portfolio_url):
        score += _d(config.portfolio_points)

    return _clamp(score)


def skills_match_percentage(candidate: Candidate, job: JobRequisition) -> Decimal:
    """Percentage of the candidate's skills that appear in the job text.

    Returns 0 for a candidate without skills. Quantized to two places.
    """
    skills = _normalized_skills(candidate.skills)
    if not skills:
        return _ZERO

    haystack = f"{job.requirements} {job.description}".lower()
    matched = sum(1 for skill in skills if skill in haystack)
    pct = _HUNDRED * matched / len(skills)
    return _clamp(pct.quantize(_TWO_PLACES, rounding=ROUND_HALF_UP))


def eligibility_breakdown(
    candidate: Candidate,
    job: JobRequisition,
    config: ScoringConfig | None = None,
) -> EligibilityBreakdown:
    """Compute each eligibility sub-score independently."""
    config = config or ScoringConfig()

    skills_pct = skills_match_percentage(candidate, job)
    skills_points = (skills_pct * _d(config.skills_weight)).quantize(
        Decimal(1), rounding=ROUND_HALF_UP,
    )

    breakdown = EligibilityBreakdown(
        location=_location_fit(candidate, job, config),
        experience=_experience_band(candidate.experience_years, config),
        skills=skills_points,
        profile_bonus=_profile_bonus(candidate, config),
    )
    logger.debug(
        "Eligibility user=%d job=%d: location=%s experience=%s skills=%s bonus=%s",
        candidate.id, job.id, breakdown.location, breakdown.experience,
        breakdown.skills, breakdown.profile_bonus,
    )
    return breakdown


def score_eligibility(
    candidate: Candidate,
    job: JobRequisition,
    config: ScoringConfig | None = None,
) -> Decimal:
    """Score how well a candidate fits a job, 0-100."""
    return eligibility_breakdown(candidate, job, config).total


def _location_fit(candidate: Candidate, job: JobRequisition, config: ScoringConfig) -> Decimal:
    if job.remote_allowed:
        return _d(config.remote_match_points)

    job_location = job.location.lower()
    current = (candidate.location or "").strip().lower()
    if current and current in job_location:
        return _d(config.location_match_points)

    for preferred in candidate.preferred_locations:
        preferred = preferred.strip().lower()
        if preferred and preferred in job_location:
            return _d(config.preferred_location_match_points)

    return _ZERO


def _experience_band(years: int | None, config: ScoringConfig) -> Decimal:
    if years is None:
        return _ZERO
    for min_years, points in config.experience_bands:
        if years >= min_years:
            return _d(points)
    return _ZERO


def _profile_bonus(candidate: Candidate, config: ScoringConfig) -> Decimal:
    bonus = _ZERO
    if _present(candidate.resume_url):
        bonus += _d(config.resume_bonus)
    if _present(candidate.linkedin_url):
        bonus += _d(config.linkedin_bonus)
    if _present(candidate.portfolio_url):
        bonus += _d(config.portfolio_bonus)
    if _normalized_skills(candidate.skills):
        bonus += _d(config.skills_bonus)
    return bonus


def _normalized_skills(skills: list[str]) -> list[str]:
    return [s.strip().lower() for s in skills if s.strip()]


def _present(value: str | None) -> bool:
    return value is not None and bool(value.strip())


def _d(value: float) -> Decimal:
    return Decimal(str(value))


def _clamp(value: Decimal) -> Decimal:
    return max(_ZERO, min(_HUNDRED, value))
