"""Configuration models and YAML loader for the job board engine."""

from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, Field, field_validator, model_validator


class DatabaseConfig(BaseModel):
    """Database configuration."""

    path: str = "data/jobboard.db"


class SearchSettings(BaseModel):
    """Pagination defaults for job search."""

    default_limit: int = Field(default=20, ge=1)
    max_limit: int = Field(default=100, ge=1)

    @model_validator(mode="after")
    def default_within_max(self) -> "SearchSettings":
        if self.default_limit > self.max_limit:
            msg = "default_limit must not exceed max_limit"
            raise ValueError(msg)
        return self


class RecommendationConfig(BaseModel):
    """Defaults for the recommendation engine."""

    default_limit: int = Field(default=10, ge=1)


class ScoringConfig(BaseModel):
    """Point weights for readiness and eligibility scoring.

    Readiness weights sum to 95; the scorer clamps but never
    renormalizes.
    """

    # Readiness (profile completeness)
    name_points: float = 10.0
    email_points: float = 10.0
    phone_points: float = 10.0
    resume_points: float = 20.0
    experience_points: float = 10.0
    location_points: float = 10.0
    skills_points: float = 10.0
    preferred_locations_points: float = 5.0
    linkedin_points: float = 5.0
    portfolio_points: float = 5.0

    # Eligibility: location fit
    remote_match_points: float = 20.0
    location_match_points: float = 20.0
    preferred_location_match_points: float = 15.0

    # Eligibility: experience bands, checked highest first
    experience_bands: list[tuple[int, float]] = Field(
        default_factory=lambda: [(5, 30.0), (2, 20.0), (1, 10.0)],
    )

    # Eligibility: skills contribution multiplier on the 0-100 match percentage
    skills_weight: float = Field(default=0.4, ge=0.0, le=1.0)

    # Eligibility: profile richness bonus
    resume_bonus: float = 3.0
    linkedin_bonus: float = 2.0
    portfolio_bonus: float = 2.0
    skills_bonus: float = 3.0

    @field_validator("experience_bands")
    @classmethod
    def bands_sorted_desc(cls, v: list[tuple[int, float]]) -> list[tuple[int, float]]:
        return sorted(v, key=lambda band: band[0], reverse=True)


class AlertsConfig(BaseModel):
    """Search alert processing limits."""

    max_jobs_per_alert: int = Field(default=20, ge=1)


class NotificationsConfig(BaseModel):
    """When notifications are produced."""

    on_status_change: bool = True


class Settings(BaseModel):
    """Top-level settings loaded from YAML."""

    database: DatabaseConfig = Field(default_factory=DatabaseConfig)
    search: SearchSettings = Field(default_factory=SearchSettings)
    recommendations: RecommendationConfig = Field(default_factory=RecommendationConfig)
    scoring: ScoringConfig = Field(default_factory=ScoringConfig)
    alerts: AlertsConfig = Field(default_factory=AlertsConfig)
    notifications: NotificationsConfig = Field(default_factory=NotificationsConfig)

    @classmethod
    def from_yaml(cls, path: str | Path) -> "Settings":
        """Load settings from a YAML file."""
        path = Path(path)
        if not path.exists():
            msg = f"Config file not found: {path}"
            raise FileNotFoundError(msg)
        raw: dict[str, Any] = yaml.safe_load(path.read_text()) or {}
        return cls.model_validate(raw)
