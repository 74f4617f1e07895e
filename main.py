"""CLI entry point for the job board engine."""

import argparse
import json
import logging
import sqlite3
import sys
from decimal import Decimal
from typing import Any

from pydantic import ValidationError

from src.core.config import Settings
from src.core.db import get_candidate, get_job_requisition, init_db
from src.core.errors import JobBoardError
from src.core.schemas import JobSearchCriteria
from src.pipeline.admission import calculate_readiness_score
from src.pipeline.alerts import process_search_alerts
from src.pipeline.recommender import recommend_jobs
from src.pipeline.requisitions import publish_job_requisition
from src.pipeline.scorer import eligibility_breakdown, skills_match_percentage
from src.pipeline.search import search_jobs


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Job board engine - search, recommend, score and publish jobs",
    )
    parser.add_argument(
        "--config",
        default="config/settings.yaml",
        help="Path to settings YAML file (default: config/settings.yaml)",
    )
    parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Enable verbose (DEBUG) logging",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    subparsers.add_parser("init-db", help="Create the database and tables")

    # --- search ---
    search_parser = subparsers.add_parser("search", help="Search active public jobs")
    search_parser.add_argument("--keywords", help="Match title, description, requirements or responsibilities")
    search_parser.add_argument("--location", help="Substring of the job location")
    remote = search_parser.add_mutually_exclusive_group()
    remote.add_argument("--remote", dest="remote_allowed", action="store_true", default=None,
                        help="Only remote-allowed jobs")
    remote.add_argument("--onsite", dest="remote_allowed", action="store_false",
                        help="Only jobs that do not allow remote work")
    search_parser.add_argument("--employment-type", action="append", dest="employment_types",
                               help="Allowed employment type (repeatable)")
    search_parser.add_argument("--salary-min", type=Decimal, help="Job salary_max must reach this")
    search_parser.add_argument("--salary-max", type=Decimal, help="Job salary_min must not exceed this")
    search_parser.add_argument("--organization", type=int, dest="organization_id",
                               help="Organization id")
    search_parser.add_argument("--skill", action="append", dest="skills",
                               help="Skill that must appear in requirements (repeatable, any-of)")
    search_parser.add_argument("--page", type=int, default=1, help="1-indexed page (default: 1)")
    search_parser.add_argument("--limit", type=int, help="Page size")

    # --- recommend ---
    recommend_parser = subparsers.add_parser("recommend", help="Recommend jobs for a candidate")
    recommend_parser.add_argument("--user-id", type=int, required=True)
    recommend_parser.add_argument("--limit", type=int)

    # --- score ---
    score_parser = subparsers.add_parser(
        "score", help="Readiness of a candidate, and eligibility for a job when given",
    )
    score_parser.add_argument("--user-id", type=int, required=True)
    score_parser.add_argument("--job-id", type=int)

    # --- publish ---
    publish_parser = subparsers.add_parser("publish", help="Publish a draft job requisition")
    publish_parser.add_argument("--job-id", type=int, required=True)

    subparsers.add_parser("process-alerts", help="Run due search alerts once")

    return parser.parse_args(argv)


def setup_logging(verbose: bool) -> None:
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%H:%M:%S",
    )


def _emit(data: Any) -> None:
    print(json.dumps(data, indent=2, default=str))


def cmd_search(conn: sqlite3.Connection, settings: Settings, args: argparse.Namespace) -> None:
    criteria = JobSearchCriteria(
        keywords=args.keywords,
        location=args.location,
        remote_allowed=args.remote_allowed,
        employment_types=args.employment_types,
        salary_min=args.salary_min,
        salary_max=args.salary_max,
        organization_id=args.organization_id,
        skills=args.skills,
        page=args.page,
        limit=args.limit,
    )
    result = search_jobs(conn, criteria, settings)
    _emit(result.model_dump(mode="json", by_alias=True))


def cmd_recommend(conn: sqlite3.Connection, settings: Settings, args: argparse.Namespace) -> None:
    jobs = recommend_jobs(conn, args.user_id, args.limit, settings)
    _emit([j.model_dump(mode="json") for j in jobs])


def cmd_score(conn: sqlite3.Connection, settings: Settings, args: argparse.Namespace) -> None:
    output: dict[str, Any] = {
        "user_id": args.user_id,
        "readiness_score": calculate_readiness_score(conn, args.user_id, settings.scoring),
    }
    if args.job_id is not None:
        candidate = get_candidate(conn, args.user_id)
        job = get_job_requisition(conn, args.job_id)
        output["job_id"] = args.job_id
        if candidate is None or job is None:
            output["eligibility_score"] = Decimal(0)
            output["skills_match_percentage"] = Decimal(0)
        else:
            breakdown = eligibility_breakdown(candidate, job, settings.scoring)
            output["eligibility_score"] = breakdown.total
            output["eligibility_breakdown"] = breakdown.model_dump(mode="json")
            output["skills_match_percentage"] = skills_match_percentage(candidate, job)
    _emit(output)


def cmd_publish(conn: sqlite3.Connection, settings: Settings, args: argparse.Namespace) -> None:
    job = publish_job_requisition(conn, args.job_id)
    _emit(job.model_dump(mode="json"))


def cmd_process_alerts(conn: sqlite3.Connection, settings: Settings, args: argparse.Namespace) -> None:
    results = process_search_alerts(conn, settings)
    _emit([r.model_dump(mode="json") for r in results])


_COMMANDS = {
    "search": cmd_search,
    "recommend": cmd_recommend,
    "score": cmd_score,
    "publish": cmd_publish,
    "process-alerts": cmd_process_alerts,
}


def main(argv: list[str] | None = None) -> None:
    args = parse_args(argv)
    setup_logging(args.verbose)

    try:
        settings = Settings.from_yaml(args.config)
    except (FileNotFoundError, ValueError) as e:
        print(f"Error loading config: {e}", file=sys.stderr)
        sys.exit(1)

    conn = init_db(settings.database.path)
    try:
        if args.command == "init-db":
            print(f"Database ready at {settings.database.path}")
        else:
            _COMMANDS[args.command](conn, settings, args)
    except (JobBoardError, ValidationError, ValueError) as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)
    finally:
        conn.close()


if __name__ == "__main__":
    main()
