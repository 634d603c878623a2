# src/main.py — v3
"""CLI entry point — community maintenance and DRIFT search commands.

Usage:
    graphdrift detect --scope <id>
    graphdrift assign --scope <id> <content_id> <content_type>
    graphdrift migrate
    graphdrift status
    graphdrift summarize [--limit N | --scope <id> --community <id>]
    graphdrift search --scope <id> "<question>" [--quick] [--json]
"""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from typing import TYPE_CHECKING

from graphdrift.version import __version__

if TYPE_CHECKING:
    from graphdrift.api.facade import GraphDriftServices
    from graphdrift.config.settings import Settings

logger = logging.getLogger(__name__)


def main(argv: list[str] | None = None) -> int:
    """Main CLI entry point."""
    parser = _build_parser()
    args = parser.parse_args(argv)

    if not hasattr(args, "func"):
        parser.print_help()
        return 1

    from pydantic import ValidationError

    from graphdrift.config.settings import ConfigurationError, load_settings

    try:
        settings = load_settings()
    except (ConfigurationError, ValidationError) as exc:
        print(f"Configuration error: {exc}", file=sys.stderr)
        return 2
    _setup_logging(settings, args.verbose)

    try:
        return asyncio.run(_run(args, settings))
    except KeyboardInterrupt:
        logger.info("Interrupted by user")
        return 130
    except Exception as exc:
        logger.error("Fatal error: %s", exc, exc_info=args.verbose)
        return 1


async def _run(args: argparse.Namespace, settings: Settings) -> int:
    from graphdrift.api.facade import build_services

    services = build_services(settings)
    try:
        return await args.func(args, services)
    finally:
        await services.close()


def _build_parser() -> argparse.ArgumentParser:
    """Build CLI argument parser."""
    parser = argparse.ArgumentParser(
        prog="graphdrift",
        description=f"graphdrift v{__version__} — community detection and DRIFT search",
    )
    parser.add_argument(
        "--version", action="version", version=f"%(prog)s {__version__}",
    )
    parser.add_argument(
        "-v", "--verbose", action="store_true",
        help="Enable debug logging",
    )

    subparsers = parser.add_subparsers(dest="command")

    # --- detect ---
    p_detect = subparsers.add_parser(
        "detect", help="Rebuild all communities of one scope",
    )
    p_detect.add_argument("--scope", required=True, help="Scope id")
    p_detect.add_argument(
        "--ensure-schema", action="store_true",
        help="Create the community constraint and vector index first",
    )
    p_detect.set_defaults(func=_cmd_detect)

    # --- assign ---
    p_assign = subparsers.add_parser(
        "assign", help="Attach a content's new concepts to existing communities",
    )
    p_assign.add_argument("--scope", required=True, help="Scope id")
    p_assign.add_argument("content_id", help="Content node id")
    p_assign.add_argument("content_type", help="Content node label (e.g. Document)")
    p_assign.set_defaults(func=_cmd_assign)

    # --- migrate ---
    p_migrate = subparsers.add_parser(
        "migrate", help="Run community detection for every scope",
    )
    p_migrate.set_defaults(func=_cmd_migrate)

    # --- status ---
    p_status = subparsers.add_parser(
        "status", help="Show community counts per scope",
    )
    p_status.set_defaults(func=_cmd_status)

    # --- summarize ---
    p_summarize = subparsers.add_parser(
        "summarize", help="Regenerate reports of stale communities",
    )
    p_summarize.add_argument(
        "--limit", type=int, default=None,
        help="Max communities to process (default: SUMMARIZER_BATCH_SIZE)",
    )
    p_summarize.add_argument("--scope", default=None, help="Scope id (with --community)")
    p_summarize.add_argument("--community", default=None, help="Summarize one community")
    p_summarize.set_defaults(func=_cmd_summarize)

    # --- search ---
    p_search = subparsers.add_parser(
        "search", help="Answer a question with DRIFT search",
    )
    p_search.add_argument("--scope", required=True, help="Scope id")
    p_search.add_argument("question", help="Question to answer")
    p_search.add_argument("--top-k", type=int, default=None, help="Communities to match")
    p_search.add_argument("--max-depth", type=int, default=None, help="Follow-up depth")
    p_search.add_argument(
        "--quick", action="store_true", help="Skip follow-up exploration",
    )
    p_search.add_argument(
        "--json", action="store_true", help="Print the full result as JSON",
    )
    p_search.set_defaults(func=_cmd_search)

    return parser


async def _cmd_detect(args: argparse.Namespace, services: GraphDriftServices) -> int:
    from graphdrift.core.scope import scope_context

    if args.ensure_schema:
        await services.ensure_schema()
    with scope_context(args.scope):
        report = await services.detector.detect_communities()

    if report.skipped:
        print(f"\nDetection skipped for {report.scope_id}: clustering backend unavailable")
        return 0
    print(f"\nDetection complete for {report.scope_id}:")
    for level in report.levels:
        print(
            f"  Level {level.level} (resolution {level.resolution}): "
            f"{level.communities_created}/{level.clusters_found} clusters kept"
        )
    print(f"  Communities:  {report.total_communities}")
    print(f"  Parent links: {report.parent_links}")
    return 0


async def _cmd_assign(args: argparse.Namespace, services: GraphDriftServices) -> int:
    from graphdrift.community.models import DetectionReport
    from graphdrift.core.scope import scope_context

    with scope_context(args.scope):
        result = await services.staleness.detect_and_assign_communities(
            args.content_id, args.content_type
        )

    if isinstance(result, DetectionReport):
        print(f"\nScope had no communities; full detection created {result.total_communities}")
        return 0
    print("\nAssignment complete:")
    print(f"  Orphans:     {len(result.orphans)}")
    print(f"  Assigned:    {len(result.assigned)}")
    print(f"  Unassigned:  {len(result.unassigned)}")
    print(f"  Now stale:   {len(result.stale_community_ids)}")
    return 0


async def _cmd_migrate(args: argparse.Namespace, services: GraphDriftServices) -> int:
    result = await services.batch.migrate_all()
    print("\nMigration complete:")
    print(f"  Scopes:       {result.total_scopes}")
    print(f"  Processed:    {result.processed_scopes}")
    print(f"  Skipped:      {len(result.skipped_scopes)}")
    print(f"  Failed:       {len(result.failed_scopes)}")
    print(f"  Communities:  {result.communities_created}")
    print(f"  Duration:     {result.duration_seconds:.1f}s")
    for scope_id, error in result.failed_scopes.items():
        print(f"    {scope_id}: {error}")
    return 1 if result.failed_scopes else 0


async def _cmd_status(args: argparse.Namespace, services: GraphDriftServices) -> int:
    statuses = await services.batch.get_status()
    print(f"\n{'Scope':<30} {'Total':>7} {'Stale':>7} {'Done':>7}")
    for s in statuses:
        print(
            f"{s.scope_id:<30} {s.total_communities:>7} "
            f"{s.stale_communities:>7} {s.processed_communities:>7}"
        )
    return 0


async def _cmd_summarize(args: argparse.Namespace, services: GraphDriftServices) -> int:
    from graphdrift.core.scope import scope_context

    if args.community:
        if not args.scope:
            logger.error("--community requires --scope")
            return 1
        with scope_context(args.scope):
            usage = await services.summarizer.summarize_by_id(args.community)
        print(f"\nCommunity {args.community}: {'summarized' if usage else 'skipped'}")
        return 0

    limit = args.limit or services.settings.summarizer_batch_size
    batch = await services.summarizer.summarize_stale(limit)
    print("\nSummarization complete:")
    print(f"  Processed:  {len(batch.processed)}")
    print(f"  Skipped:    {len(batch.skipped)}")
    print(f"  Failed:     {len(batch.failed)}")
    print(f"  Tokens:     {batch.token_usage.input} in / {batch.token_usage.output} out")
    return 1 if batch.failed else 0


async def _cmd_search(args: argparse.Namespace, services: GraphDriftServices) -> int:
    from graphdrift.core.scope import scope_context

    with scope_context(args.scope):
        if args.quick:
            result = await services.drift.quick_search(args.question, top_k=args.top_k)
        else:
            result = await services.drift.search(
                args.question, top_k=args.top_k, max_depth=args.max_depth
            )

    if args.json:
        print(json.dumps(result.model_dump(mode="json", exclude={"hyde_embedding"}), indent=2))
        return 0

    print(f"\n{result.answer}\n")
    print(f"  Confidence:   {result.confidence:.0f}")
    print(f"  Communities:  {', '.join(c.name for c in result.matched_communities) or '-'}")
    print(f"  Follow-ups:   {len(result.follow_up_answers)}")
    print(f"  Hops:         {result.hops}")
    print(f"  Tokens:       {result.token_usage.input} in / {result.token_usage.output} out")
    return 0


def _setup_logging(settings: Settings, verbose: bool) -> None:
    """Configure logging for CLI usage."""
    from graphdrift.logging.logger import setup_logging

    setup_logging(
        level="DEBUG" if verbose else settings.log_level,
        log_format=settings.log_format,
        log_file=str(settings.log_file) if settings.log_file else None,
        rotation=settings.log_rotation,
        retention=settings.log_retention,
    )
    # Quiet noisy libraries
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("neo4j").setLevel(logging.WARNING)


if __name__ == "__main__":
    sys.exit(main())
