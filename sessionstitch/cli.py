#!/usr/bin/env python3
"""Merge Claude Code sessions that were split across several files.

Usage:
  session-stitch list [--project PATH] [--json]
  session-stitch find-splits [--json]
  session-stitch merge-splits [--yes]
  session-stitch merge ID ID [ID ...] [--name NAME] [--delete-sources] [--output-id UUID] [--dry-run]
"""
from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path

from sessionstitch.corpus import Corpus
from sessionstitch.errors import SessionStitchError
from sessionstitch.observability import initialize as initialize_observability, shutdown as shutdown_observability
from sessionstitch.pipeline import MergePipeline, merge_split_groups, plan_merge
from sessionstitch.reporting import (
    render_bulk_preview,
    render_bulk_report,
    render_listing,
    render_merge_plan,
    render_merge_result,
    render_split_report,
)
from sessionstitch.splits import find_split_groups

logger = logging.getLogger("sessionstitch")


def _confirm(prompt: str) -> bool:
    try:
        answer = input(prompt)
    except EOFError:
        return False
    return answer.strip().lower() == "yes"


def cmd_list(corpus: Corpus, args: argparse.Namespace) -> int:
    project_dir = None
    if args.project:
        project_dir = corpus.resolve_project(args.project)
        if project_dir is None:
            raise SessionStitchError(f"No project matching {args.project} under {corpus.projects_dir}")
    summaries = corpus.summaries(project_dir)
    if args.json:
        print(json.dumps([s.model_dump() for s in summaries], indent=2))
        return 0
    print(render_listing(summaries))
    return 0


def cmd_find_splits(corpus: Corpus, args: argparse.Namespace) -> int:
    logger.info("Scanning all sessions for splits...")
    groups = find_split_groups(corpus.summaries())
    if args.json:
        print(json.dumps([g.model_dump() for g in groups], indent=2))
        return 0
    print(render_split_report(groups))
    return 0


def cmd_merge_splits(corpus: Corpus, args: argparse.Namespace) -> int:
    logger.info("Scanning all sessions for splits...")
    groups = find_split_groups(corpus.summaries())
    if not groups:
        print("No split sessions found! Nothing to merge.")
        return 0

    target = corpus.target_project()
    print(render_bulk_preview(groups, str(target)))
    print("")
    if not args.yes and not _confirm("Continue with merge? (yes/no) "):
        print("Merge cancelled.")
        return 0

    report = merge_split_groups(corpus, groups, target)
    print(render_bulk_report(report))
    return 0 if report.ok else 1


def cmd_merge(corpus: Corpus, args: argparse.Namespace) -> int:
    plan = plan_merge(
        corpus,
        args.session_ids,
        name=args.name,
        output_id=args.output_id,
        delete_sources=args.delete_sources,
    )
    print(render_merge_plan(plan))
    print("")
    if args.dry_run:
        print("DRY RUN: no changes will be made.")
        return 0

    result = MergePipeline(corpus, plan).run()
    print(render_merge_result(result))
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="session-stitch",
        description="Find and merge Claude Code sessions that were split across files",
    )
    parser.add_argument("--claude-dir", default="", help="Claude data directory (default: $CLAUDE_DIR or ~/.claude)")
    parser.add_argument("--verbose", "-v", action="store_true", help="Debug logging")
    sub = parser.add_subparsers(dest="command", required=True)

    p_list = sub.add_parser("list", help="List sessions across all projects")
    p_list.add_argument("--project", default="", help="Only sessions of this project path or directory name")
    p_list.add_argument("--json", action="store_true")
    p_list.set_defaults(handler=cmd_list)

    p_find = sub.add_parser("find-splits", help="Show groups of sessions sharing a slug")
    p_find.add_argument("--json", action="store_true")
    p_find.set_defaults(handler=cmd_find_splits)

    p_bulk = sub.add_parser("merge-splits", help="Merge every split group (deletes the originals)")
    p_bulk.add_argument("--yes", "-y", action="store_true", help="Skip the confirmation prompt")
    p_bulk.set_defaults(handler=cmd_merge_splits)

    p_merge = sub.add_parser("merge", help="Merge the given sessions into a new one")
    p_merge.add_argument("session_ids", nargs="*", metavar="SESSION_ID")
    p_merge.add_argument("--name", default="", help="Name/slug for the merged session")
    p_merge.add_argument("--delete-sources", action="store_true", help="Delete source sessions after a successful merge")
    p_merge.add_argument("--output-id", default="", help="UUID for the merged session (default: random)")
    p_merge.add_argument("--dry-run", action="store_true", help="Show the plan without changing anything")
    p_merge.set_defaults(handler=cmd_merge)

    return parser


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.INFO)
    initialize_observability()

    corpus = Corpus(Path(args.claude_dir).expanduser() if args.claude_dir else None)
    try:
        return args.handler(corpus, args)
    except (SessionStitchError, OSError) as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1
    finally:
        shutdown_observability()


if __name__ == "__main__":
    raise SystemExit(main())
