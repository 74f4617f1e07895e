"""Tests for the database layer: init, encoding, directory CRUD, row mapping."""

from datetime import datetime, timedelta
from decimal import ROUND_CEILING, ROUND_FLOOR, Decimal

import pytest

from src.core.db import (
    _reload,
    create_candidate,
    create_organization,
    get_application,
    get_candidate,
    get_candidate_by_email,
    get_job_requisition,
    get_organization,
    get_vendor,
    init_db,
    insert_application,
    insert_job_requisition,
    list_active_vendors,
    list_applications_by_job,
    list_applications_by_user,
    list_job_requisitions_by_organization,
    list_organizations,
    list_public_job_requisitions,
    now,
    set_vendor_active,
    to_cents,
    update_job_requisition_fields,
)
from src.core.errors import (
    CandidateNotFound,
    DuplicateApplication,
    EmailTaken,
    OrganizationNotFound,
    SlugTaken,
)
from src.core.schemas import (
    ApplicationPath,
    ApplicationStatus,
    CreateCandidateInput,
    CreateJobRequisitionInput,
    CreateOrganizationInput,
    JobStatus,
    TenantType,
    VisibilityLevel,
)


def _apply(db, job_id: int, user_id: int, **kw: object):  # type: ignore[no-untyped-def]
    defaults: dict[str, object] = {
        "job_id": job_id,
        "user_id": user_id,
        "application_path": ApplicationPath.DIRECT.value,
        "vendor_id": None,
        "cover_letter": None,
        "resume_url": None,
        "custom_responses": {},
        "eligibility_score": Decimal("55"),
        "readiness_score": Decimal("70"),
        "skills_match_percentage": Decimal("33.333"),
        "consent_given": True,
        "applied_at": now(),
    }
    defaults.update(kw)
    return insert_application(db, **defaults)  # type: ignore[arg-type]


class TestInitDb:
    def test_creates_tables(self, db) -> None:  # type: ignore[no-untyped-def]
        tables = {
            row[0]
            for row in db.execute(
                "SELECT name FROM sqlite_master WHERE type='table'"
            ).fetchall()
        }
        assert {
            "organizations",
            "users",
            "job_requisitions",
            "vendors",
            "job_applications",
            "search_alerts",
            "notifications",
        } <= tables

    def test_idempotent(self, tmp_path) -> None:  # type: ignore[no-untyped-def]
        """Calling init_db twice on the same path doesn't error."""
        p = tmp_path / "double.db"
        conn1 = init_db(p)
        conn1.close()
        conn2 = init_db(p)
        conn2.close()

    def test_creates_parent_directory(self, tmp_path) -> None:  # type: ignore[no-untyped-def]
        conn = init_db(tmp_path / "nested" / "dir" / "board.db")
        conn.close()
        assert (tmp_path / "nested" / "dir" / "board.db").exists()

    @pytest.mark.parametrize(
        ("haystack", "needle", "expected"),
        [
            ("Senior Python Engineer", "python", 1),
            ("Senior Python Engineer", "PYTHON ENG", 1),
            ("Senior Python Engineer", "rust", 0),
            ("100% remote", "100%", 1),
            ("1000 users", "100%", 0),
            ("snake_case", "e_c", 1),
            (None, "python", 0),
        ],
    )
    def test_icontains_function(
        self, db, haystack: str | None, needle: str, expected: int,  # type: ignore[no-untyped-def]
    ) -> None:
        row = db.execute("SELECT icontains(?, ?)", (haystack, needle)).fetchone()
        assert row[0] == expected


class TestValueEncoding:
    @pytest.mark.parametrize(
        ("value", "cents"),
        [
            (Decimal("0"), 0),
            (Decimal("85000"), 8500000),
            (Decimal("85000.5"), 8500050),
            (Decimal("0.005"), 1),
            (None, None),
        ],
    )
    def test_to_cents(self, value: Decimal | None, cents: int | None) -> None:
        assert to_cents(value) == cents

    def test_to_cents_directed_rounding(self) -> None:
        assert to_cents(Decimal("100.001"), rounding=ROUND_CEILING) == 10001
        assert to_cents(Decimal("100.009"), rounding=ROUND_FLOOR) == 10000
        assert to_cents(Decimal("100.00"), rounding=ROUND_CEILING) == 10000


class TestReload:
    def test_returns_inserted_entity(self, db, org) -> None:  # type: ignore[no-untyped-def]
        assert _reload(db, get_organization, org.id) == org

    def test_missing_row_raises(self, db) -> None:  # type: ignore[no-untyped-def]
        with pytest.raises(RuntimeError, match="could not be read back"):
            _reload(db, get_organization, 404)


class TestOrganizations:
    def test_create_and_get(self, db) -> None:  # type: ignore[no-untyped-def]
        org = create_organization(
            db,
            CreateOrganizationInput(
                name="Globex", slug="globex", type=TenantType.ENTERPRISE,
                website_url="https://globex.example",
            ),
        )
        fetched = get_organization(db, org.id)
        assert fetched == org
        assert fetched.type == TenantType.ENTERPRISE
        assert fetched.website_url == "https://globex.example"

    def test_duplicate_slug(self, db, org) -> None:  # type: ignore[no-untyped-def]
        with pytest.raises(SlugTaken, match="acme"):
            create_organization(
                db, CreateOrganizationInput(name="Other", slug="acme", type=TenantType.AGENCY),
            )

    def test_list(self, db, org) -> None:  # type: ignore[no-untyped-def]
        create_organization(
            db, CreateOrganizationInput(name="B", slug="b", type=TenantType.NONPROFIT),
        )
        assert [o.slug for o in list_organizations(db)] == ["acme", "b"]

    def test_get_missing(self, db) -> None:  # type: ignore[no-untyped-def]
        assert get_organization(db, 42) is None


class TestCandidates:
    def test_round_trip_lists(self, db, make_candidate) -> None:  # type: ignore[no-untyped-def]
        c = make_candidate(skills=["Python", "SQL"], preferred_locations=["Remote"])
        fetched = get_candidate(db, c.id)
        assert fetched is not None
        assert fetched.skills == ["Python", "SQL"]
        assert fetched.preferred_locations == ["Remote"]
        assert fetched.experience_years is None

    def test_duplicate_email(self, db, make_candidate) -> None:  # type: ignore[no-untyped-def]
        make_candidate(email="ada@example.com")
        with pytest.raises(EmailTaken):
            create_candidate(
                db,
                CreateCandidateInput(email="ada@example.com", first_name="A", last_name="B"),
            )

    def test_get_by_email(self, db, make_candidate) -> None:  # type: ignore[no-untyped-def]
        c = make_candidate(email="grace@example.com")
        assert get_candidate_by_email(db, " grace@example.com ") == c
        assert get_candidate_by_email(db, "nobody@example.com") is None

    def test_get_missing(self, db) -> None:  # type: ignore[no-untyped-def]
        assert get_candidate(db, 999) is None


class TestVendors:
    def test_commission_stored_as_decimal(self, db, make_vendor) -> None:  # type: ignore[no-untyped-def]
        v = make_vendor(commission_rate=Decimal("12.5"))
        assert get_vendor(db, v.id).commission_rate == Decimal("12.50")

    def test_deactivate(self, db, make_vendor) -> None:  # type: ignore[no-untyped-def]
        a = make_vendor(name="Alpha")
        b = make_vendor(name="Beta")
        updated = set_vendor_active(db, a.id, False)
        assert updated is not None and updated.is_active is False
        assert [v.id for v in list_active_vendors(db)] == [b.id]
        # Inactive vendors are still fetchable by id.
        assert get_vendor(db, a.id) is not None


class TestJobRequisitions:
    def test_salary_round_trip(self, db, make_job) -> None:  # type: ignore[no-untyped-def]
        job = make_job(salary_min=Decimal("85000.50"), salary_max=Decimal("120000"))
        fetched = get_job_requisition(db, job.id)
        assert fetched.salary_min == Decimal("85000.50")
        assert fetched.salary_max == Decimal("120000")
        row = db.execute(
            "SELECT salary_min_cents, salary_max_cents FROM job_requisitions WHERE id = ?",
            (job.id,),
        ).fetchone()
        assert tuple(row) == (8500050, 12000000)

    def test_paths_round_trip(self, db, make_job) -> None:  # type: ignore[no-untyped-def]
        job = make_job(
            allowed_application_paths=[ApplicationPath.DIRECT, ApplicationPath.VENDOR],
        )
        assert get_job_requisition(db, job.id).allowed_application_paths == [
            ApplicationPath.DIRECT, ApplicationPath.VENDOR,
        ]

    def test_unknown_organization(self, db) -> None:  # type: ignore[no-untyped-def]
        data = CreateJobRequisitionInput(
            organization_id=77, title="T", description="D", requirements="R",
            responsibilities="X", location="L", employment_type="contract",
        )
        with pytest.raises(OrganizationNotFound):
            insert_job_requisition(db, data)

    def test_unknown_creator(self, db, org) -> None:  # type: ignore[no-untyped-def]
        data = CreateJobRequisitionInput(
            organization_id=org.id, title="T", description="D", requirements="R",
            responsibilities="X", location="L", employment_type="contract", created_by=5,
        )
        with pytest.raises(CandidateNotFound):
            insert_job_requisition(db, data)

    def test_list_public_orders_newest_first(self, db, make_job) -> None:  # type: ignore[no-untyped-def]
        base = datetime(2026, 1, 1, 9, 0)
        old = make_job(title="Old", published_at=base)
        new = make_job(title="New", published_at=base + timedelta(days=1))
        make_job(title="Draft", status=JobStatus.DRAFT)
        make_job(title="Internal", visibility_level=VisibilityLevel.INTERNAL)
        assert [j.id for j in list_public_job_requisitions(db)] == [new.id, old.id]

    def test_list_by_organization_includes_all_states(self, db, org, make_job) -> None:  # type: ignore[no-untyped-def]
        make_job(status=JobStatus.DRAFT)
        make_job(status=JobStatus.CLOSED)
        make_job(visibility_level=VisibilityLevel.PRIVATE)
        assert len(list_job_requisitions_by_organization(db, org.id)) == 3

    def test_update_fields(self, db, make_job) -> None:  # type: ignore[no-untyped-def]
        job = make_job(status=JobStatus.DRAFT)
        updated = update_job_requisition_fields(
            db, job.id, {"title": "Staff Engineer", "salary_max": Decimal("150000")},
        )
        assert updated.title == "Staff Engineer"
        assert updated.salary_max == Decimal("150000")
        assert updated.updated_at >= job.updated_at

    def test_update_with_expected_status_mismatch(self, db, make_job) -> None:  # type: ignore[no-untyped-def]
        job = make_job(status=JobStatus.CLOSED)
        result = update_job_requisition_fields(
            db, job.id, {"status": JobStatus.ACTIVE}, expected_status=JobStatus.DRAFT,
        )
        assert result is None
        assert get_job_requisition(db, job.id).status == JobStatus.CLOSED

    def test_update_unknown_field(self, db, make_job) -> None:  # type: ignore[no-untyped-def]
        job = make_job()
        with pytest.raises(ValueError, match="Unknown job requisition field"):
            update_job_requisition_fields(db, job.id, {"organization_id": 9})

    def test_update_missing_job(self, db) -> None:  # type: ignore[no-untyped-def]
        assert update_job_requisition_fields(db, 404, {"title": "X"}) is None


class TestApplications:
    def test_insert_encodes_scores(self, db, make_job, make_candidate) -> None:  # type: ignore[no-untyped-def]
        job = make_job()
        user = make_candidate()
        app = _apply(db, job.id, user.id, custom_responses={"visa": "no"})
        assert app.status == ApplicationStatus.PENDING
        assert app.skills_match_percentage == Decimal("33.33")
        assert app.eligibility_score == Decimal("55.00")
        assert app.custom_responses == {"visa": "no"}
        stored = db.execute(
            "SELECT skills_match_percentage FROM job_applications WHERE id = ?", (app.id,),
        ).fetchone()[0]
        assert stored == "33.33"

    def test_consent_timestamp_follows_consent(self, db, make_job, make_candidate) -> None:  # type: ignore[no-untyped-def]
        job = make_job()
        with_consent = _apply(db, job.id, make_candidate().id, consent_given=True)
        without = _apply(db, job.id, make_candidate().id, consent_given=False)
        assert with_consent.consent_timestamp == with_consent.applied_at
        assert without.consent_timestamp is None
        assert without.consent_given is False

    def test_unique_job_user_pair(self, db, make_job, make_candidate) -> None:  # type: ignore[no-untyped-def]
        job = make_job()
        user = make_candidate()
        _apply(db, job.id, user.id)
        with pytest.raises(DuplicateApplication):
            _apply(db, job.id, user.id, cover_letter="second try")
        assert len(list_applications_by_job(db, job.id)) == 1

    def test_lists_newest_first(self, db, make_job, make_candidate) -> None:  # type: ignore[no-untyped-def]
        user = make_candidate()
        base = datetime(2026, 2, 1, 10, 0)
        first = _apply(db, make_job().id, user.id, applied_at=base)
        second = _apply(db, make_job().id, user.id, applied_at=base + timedelta(hours=1))
        assert [a.id for a in list_applications_by_user(db, user.id)] == [second.id, first.id]

    def test_get_missing(self, db) -> None:  # type: ignore[no-untyped-def]
        assert get_application(db, 1) is None
