"""Shared fixtures: a fresh database per test plus entity factories."""

import itertools
from collections.abc import Callable
from datetime import datetime

import pytest

from src.core.db import (
    create_candidate,
    create_organization,
    create_vendor,
    init_db,
    insert_job_requisition,
    now,
)
from src.core.schemas import (
    Candidate,
    CreateCandidateInput,
    CreateJobRequisitionInput,
    CreateOrganizationInput,
    CreateVendorInput,
    JobRequisition,
    JobStatus,
    Organization,
    TenantType,
    Vendor,
)


@pytest.fixture()
def db(tmp_path):  # type: ignore[no-untyped-def]
    """Provide a fresh SQLite connection per test."""
    conn = init_db(tmp_path / "test.db")
    yield conn
    conn.close()


@pytest.fixture()
def org(db) -> Organization:  # type: ignore[no-untyped-def]
    return create_organization(
        db, CreateOrganizationInput(name="Acme", slug="acme", type=TenantType.STARTUP),
    )


@pytest.fixture()
def make_candidate(db) -> Callable[..., Candidate]:  # type: ignore[no-untyped-def]
    counter = itertools.count(1)

    def _make(**kw: object) -> Candidate:
        n = next(counter)
        defaults: dict[str, object] = {
            "email": f"user{n}@example.com",
            "first_name": "Ada",
            "last_name": "Lovelace",
        }
        defaults.update(kw)
        return create_candidate(db, CreateCandidateInput(**defaults))  # type: ignore[arg-type]

    return _make


@pytest.fixture()
def make_job(db, org) -> Callable[..., JobRequisition]:  # type: ignore[no-untyped-def]
    """Insert a job. Active jobs get published_at=now unless one is given."""

    def _make(
        *,
        status: JobStatus = JobStatus.ACTIVE,
        published_at: datetime | None = None,
        **kw: object,
    ) -> JobRequisition:
        defaults: dict[str, object] = {
            "organization_id": org.id,
            "title": "Backend Engineer",
            "description": "Build and run our public APIs.",
            "requirements": "Python, SQL",
            "responsibilities": "Ship features and review code.",
            "location": "Berlin, Germany",
            "employment_type": "full_time",
        }
        defaults.update(kw)
        if status == JobStatus.ACTIVE and published_at is None:
            published_at = now()
        return insert_job_requisition(
            db,
            CreateJobRequisitionInput(**defaults),  # type: ignore[arg-type]
            status=status,
            published_at=published_at,
        )

    return _make


@pytest.fixture()
def make_vendor(db) -> Callable[..., Vendor]:  # type: ignore[no-untyped-def]
    counter = itertools.count(1)

    def _make(**kw: object) -> Vendor:
        n = next(counter)
        defaults: dict[str, object] = {
            "name": f"Talent Partners {n}",
            "email": f"vendor{n}@example.com",
        }
        defaults.update(kw)
        return create_vendor(db, CreateVendorInput(**defaults))  # type: ignore[arg-type]

    return _make
