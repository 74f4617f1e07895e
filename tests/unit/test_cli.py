"""Tests for the command-line entry point."""

import json
from decimal import Decimal
from pathlib import Path

import pytest

from main import main, parse_args
from src.core.schemas import CreateSearchAlertInput, JobStatus
from src.pipeline.alerts import create_search_alert


@pytest.fixture()
def config(tmp_path: Path) -> Path:
    """Settings file pointing at the same database as the ``db`` fixture."""
    cfg = tmp_path / "settings.yaml"
    cfg.write_text(f"database:\n  path: {tmp_path / 'test.db'}\nsearch:\n  default_limit: 2\n")
    return cfg


def _run(config: Path, *argv: str) -> None:
    main(["--config", str(config), *argv])


class TestParseArgs:
    def test_defaults(self) -> None:
        args = parse_args(["search"])
        assert args.config == "config/settings.yaml"
        assert args.verbose is False
        assert args.page == 1
        assert args.limit is None
        assert args.remote_allowed is None

    def test_command_required(self) -> None:
        with pytest.raises(SystemExit):
            parse_args([])

    def test_repeatable_filters(self) -> None:
        args = parse_args([
            "search", "--skill", "python", "--skill", "sql",
            "--employment-type", "contract", "--remote",
        ])
        assert args.skills == ["python", "sql"]
        assert args.employment_types == ["contract"]
        assert args.remote_allowed is True

    def test_onsite_flag(self) -> None:
        assert parse_args(["search", "--onsite"]).remote_allowed is False

    def test_user_id_required(self) -> None:
        with pytest.raises(SystemExit):
            parse_args(["recommend"])


class TestCommands:
    def test_init_db(self, tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
        cfg = tmp_path / "settings.yaml"
        cfg.write_text(f"database:\n  path: {tmp_path / 'fresh' / 'board.db'}\n")
        _run(cfg, "init-db")
        assert "Database ready" in capsys.readouterr().out
        assert (tmp_path / "fresh" / "board.db").exists()

    def test_search(self, db, config, make_job, capsys) -> None:  # type: ignore[no-untyped-def]
        for _ in range(3):
            make_job(title="Python Engineer")
        make_job(title="Designer", requirements="Figma")
        _run(config, "search", "--keywords", "python")
        out = json.loads(capsys.readouterr().out)
        assert out["total"] == 3
        assert out["limit"] == 2
        assert out["hasMore"] is True
        assert len(out["jobs"]) == 2

    def test_recommend(self, db, config, make_candidate, make_job, capsys) -> None:  # type: ignore[no-untyped-def]
        user = make_candidate(skills=["Figma"])
        job = make_job(requirements="Figma, Sketch")
        make_job(requirements="Python")
        _run(config, "recommend", "--user-id", str(user.id))
        out = json.loads(capsys.readouterr().out)
        assert [j["id"] for j in out] == [job.id]

    def test_score(self, db, config, make_candidate, make_job, capsys) -> None:  # type: ignore[no-untyped-def]
        user = make_candidate(location="Berlin", skills=["Python"])
        job = make_job()
        _run(config, "score", "--user-id", str(user.id), "--job-id", str(job.id))
        out = json.loads(capsys.readouterr().out)
        assert out["user_id"] == user.id
        assert out["job_id"] == job.id
        assert Decimal(out["readiness_score"]) == 40
        assert Decimal(out["skills_match_percentage"]) == 100
        assert Decimal(out["eligibility_breakdown"]["location"]) == 20
        assert Decimal(out["eligibility_score"]) == 63

    def test_score_unknown_user(self, db, config, capsys) -> None:  # type: ignore[no-untyped-def]
        _run(config, "score", "--user-id", "404")
        assert Decimal(json.loads(capsys.readouterr().out)["readiness_score"]) == 0

    def test_publish(self, db, config, make_job, capsys) -> None:  # type: ignore[no-untyped-def]
        draft = make_job(status=JobStatus.DRAFT)
        _run(config, "publish", "--job-id", str(draft.id))
        out = json.loads(capsys.readouterr().out)
        assert out["status"] == "active"
        assert out["published_at"] is not None

    def test_publish_twice_exits_with_error(self, db, config, make_job, capsys) -> None:  # type: ignore[no-untyped-def]
        draft = make_job(status=JobStatus.DRAFT)
        _run(config, "publish", "--job-id", str(draft.id))
        capsys.readouterr()
        with pytest.raises(SystemExit) as exc_info:
            _run(config, "publish", "--job-id", str(draft.id))
        assert exc_info.value.code == 1
        assert "Error: Job" in capsys.readouterr().err

    def test_publish_unknown_job(self, db, config, capsys) -> None:  # type: ignore[no-untyped-def]
        with pytest.raises(SystemExit) as exc_info:
            _run(config, "publish", "--job-id", "404")
        assert exc_info.value.code == 1
        assert "Job not found: 404" in capsys.readouterr().err

    def test_process_alerts(self, db, config, make_candidate, make_job, capsys) -> None:  # type: ignore[no-untyped-def]
        user = make_candidate()
        alert = create_search_alert(db, CreateSearchAlertInput(user_id=user.id, name="Any"))
        job = make_job()
        _run(config, "process-alerts")
        out = json.loads(capsys.readouterr().out)
        assert out == [{
            "alert_id": alert.id,
            "user_id": user.id,
            "matched_job_ids": [job.id],
            "notifications_created": 1,
        }]

    def test_invalid_search_arguments(self, db, config, capsys) -> None:  # type: ignore[no-untyped-def]
        with pytest.raises(SystemExit) as exc_info:
            _run(config, "search", "--page", "0")
        assert exc_info.value.code == 1
        assert "Error:" in capsys.readouterr().err

    def test_missing_config(self, tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
        with pytest.raises(SystemExit) as exc_info:
            _run(tmp_path / "missing.yaml", "init-db")
        assert exc_info.value.code == 1
        assert "Error loading config" in capsys.readouterr().err
