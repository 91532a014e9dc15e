"""CLI entry point for the candidate ranking pipeline."""

import argparse
import asyncio
import json
import logging
import sys
from datetime import datetime
from pathlib import Path

from centrifuge.core.config import Settings
from centrifuge.core.db import count_candidates, init_db, insert_rank_run, upsert_candidate
from centrifuge.core.errors import RankingError
from centrifuge.core.schemas import (
    Candidate,
    JobDescriptionRequest,
    ProfileUrlsRequest,
    RankOutcome,
    StructuredFilterRequest,
)
from centrifuge.pipeline.orchestrator import build_pipeline


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Candidate centrifuge - rank stored profiles against exemplars or a job description",
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

    # --- rank subcommand ---
    rank_parser = subparsers.add_parser("rank", help="Rank the candidate pool")
    source = rank_parser.add_mutually_exclusive_group(required=True)
    source.add_argument(
        "--urls",
        nargs="+",
        help="Profile URLs of the exemplar candidates",
    )
    source.add_argument(
        "--skills",
        nargs="+",
        help="Structured filter: skills the exemplars must have",
    )
    source.add_argument(
        "--description",
        help="Job description text to rank against",
    )
    rank_parser.add_argument("--job-title", default="", help="Structured filter: job title")
    rank_parser.add_argument(
        "--company-id",
        action="append",
        default=[],
        dest="company_ids",
        help="Structured filter: company id (repeatable)",
    )
    rank_parser.add_argument(
        "--near-region",
        action="store_true",
        help="Structured filter: only exemplars near the target region",
    )
    rank_parser.add_argument(
        "--match-all-skills",
        action="store_true",
        help="Structured filter: require every skill instead of any",
    )
    rank_parser.add_argument(
        "--relevant-skill",
        action="append",
        default=[],
        dest="relevant_skills",
        help="Job description: skill counted in the relevant-skill ratio (repeatable)",
    )
    rank_parser.add_argument(
        "--weight-profile",
        default="profile_search",
        help="Job description: named weight profile (default: profile_search)",
    )
    rank_parser.add_argument(
        "--export",
        choices=["json"],
        help="Export results to format (json)",
    )

    # --- import-candidates subcommand ---
    import_parser = subparsers.add_parser(
        "import-candidates",
        help="Load candidate profiles from a JSON file into the database",
    )
    import_parser.add_argument("--file", required=True, help="JSON file with a list of candidates")

    # --- dry-run subcommand ---
    subparsers.add_parser("dry-run", help="Show the resolved configuration without ranking")

    return parser.parse_args(argv)


def setup_logging(verbose: bool) -> None:
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%H:%M:%S",
    )


def build_request(
    args: argparse.Namespace,
) -> ProfileUrlsRequest | StructuredFilterRequest | JobDescriptionRequest:
    """Turn rank arguments into a request model."""
    if args.urls:
        return ProfileUrlsRequest(urls=args.urls)
    if args.description:
        return JobDescriptionRequest(
            description=args.description,
            skills=args.relevant_skills,
            weight_profile=args.weight_profile,
        )
    return StructuredFilterRequest(
        skills=args.skills,
        job_title=args.job_title,
        company_ids=args.company_ids,
        near_target_region=args.near_region,
        match_all_skills=args.match_all_skills,
    )


def export_outcome_json(outcome: RankOutcome) -> str:
    """Export a rank outcome as a JSON string."""
    return json.dumps(
        {
            "input_not_found": outcome.input_not_found,
            "input_count": outcome.input_count,
            "results": [r.model_dump() for r in outcome.results],
        },
        indent=2,
    )


async def run_rank(settings: Settings, args: argparse.Namespace) -> None:
    """Run one ranking request and record it."""
    request = build_request(args)
    conn = init_db(settings.database.path)
    started_at = datetime.now()
    try:
        pipeline = build_pipeline(settings, conn)
        outcome = await pipeline.rank(request)
        insert_rank_run(
            conn,
            kind=request.kind,
            request_json=request.model_dump_json(),
            input_count=outcome.input_count,
            result_count=len(outcome.results),
            input_not_found=outcome.input_not_found,
            started_at=started_at,
            finished_at=datetime.now(),
        )
    finally:
        conn.close()

    if outcome.input_not_found:
        print("No input candidates matched the request.")
        return

    print(f"\nRanked {len(outcome.results)} candidates from {outcome.input_count} exemplars.")
    for position, r in enumerate(outcome.results[:10], 1):
        print(f"  {position:>3}. {r.candidate_id}  score={r.combined_score:.4f}  "
              f"experience={r.total_experience_years}y ({r.experience_score:.3f})")

    if args.export == "json":
        print(f"\n{export_outcome_json(outcome)}")


def cmd_import_candidates(settings: Settings, path: str) -> None:
    """Handle import-candidates subcommand."""
    file_path = Path(path)
    if not file_path.exists():
        msg = f"Candidates file not found: {file_path}"
        raise FileNotFoundError(msg)

    raw = json.loads(file_path.read_text())
    if not isinstance(raw, list):
        msg = "Candidates file must contain a JSON list"
        raise ValueError(msg)

    conn = init_db(settings.database.path)
    try:
        inserted = sum(
            1 for item in raw if upsert_candidate(conn, Candidate.model_validate(item))
        )
    finally:
        conn.close()
    print(f"Imported {inserted} new candidates ({len(raw) - inserted} duplicates skipped).")


def dry_run(settings: Settings) -> None:
    """Print what a rank run would use without calling any provider."""
    conn = init_db(settings.database.path)
    pool_size = count_candidates(conn)
    conn.close()

    ns = settings.vector_index.namespaces
    print(f"[DRY RUN] Candidate pool: {pool_size} profiles in {settings.database.path}")
    print(f"[DRY RUN] Embeddings: {settings.embedding.provider} "
          f"(model: {settings.embedding.model or 'provider default'})")
    print(f"[DRY RUN] Vector index: {settings.vector_index.provider}/"
          f"{settings.vector_index.index_name}, top_k={settings.vector_index.top_k}")
    print(f"  Namespaces: {ns.skills}, {ns.features}, {ns.job_titles}")
    print(f"  Retry: {settings.vector_index.retry.model_dump()}")
    print(f"[DRY RUN] Pool batch size: {settings.pipeline.batch_size}, "
          f"result limit: {settings.pipeline.result_limit}")
    print(f"[DRY RUN] Weight profiles: {sorted(settings.scoring.profiles)}")


def main(argv: list[str] | None = None) -> None:
    args = parse_args(argv)
    setup_logging(args.verbose)

    try:
        settings = Settings.from_yaml(args.config)
    except (FileNotFoundError, ValueError) as e:
        print(f"Error loading config: {e}", file=sys.stderr)
        sys.exit(1)

    if args.command == "import-candidates":
        try:
            cmd_import_candidates(settings, args.file)
        except (FileNotFoundError, ValueError) as e:
            print(f"Error: {e}", file=sys.stderr)
            sys.exit(1)
    elif args.command == "dry-run":
        dry_run(settings)
    else:
        try:
            asyncio.run(run_rank(settings, args))
        except RankingError as e:
            print(f"Search failed: {e}", file=sys.stderr)
            sys.exit(1)
        except ValueError as e:
            # pydantic ValidationError and unknown weight profiles
            print(f"Invalid request: {e}", file=sys.stderr)
            sys.exit(2)


if __name__ == "__main__":
    main()
