"""
Command handlers and argument parser for the ckd-assessments CLI.
"""

import argparse
import asyncio
import json
import logging
import sys
from datetime import datetime

from assessment_store import NotFoundError, RecordStore, StoreError, open_store


def _format_timestamp(timestamp_ms: int) -> str:
    return datetime.fromtimestamp(timestamp_ms / 1000).strftime("%Y-%m-%d %H:%M")


def _print_assessment_line(record: dict) -> None:
    level = record.get("riskLevel")
    level = level.upper() if isinstance(level, str) and level else "N/A"
    score = record.get("riskScore")
    score = score if score is not None else "N/A"
    sex = record.get("sex")
    sex = sex.capitalize() if isinstance(sex, str) else "?"
    print(
        f"  [{record['id']}] {_format_timestamp(record['timestamp'])}  "
        f"{level:<8} Score: {score}/20  Age: {record.get('age', '?')}, {sex}"
    )


def _print_assessment_detail(record: dict) -> None:
    print(f"\nAssessment #{record['id']}")
    print(f"Saved: {_format_timestamp(record['timestamp'])}")
    print(f"Risk level: {record.get('riskLevel') or 'N/A'}")
    print(f"Risk score: {record.get('riskScore', 'N/A')}")
    fields = {k: v for k, v in record.items()
              if k not in ("id", "timestamp", "riskLevel", "riskScore")}
    if fields:
        print("\nAnswers:")
        for key, value in fields.items():
            rendered = value if isinstance(value, str) else json.dumps(value)
            print(f"  {key}: {rendered}")


# ---------------------------------------------------------------------------
# history
# ---------------------------------------------------------------------------

async def cmd_history(args, store: RecordStore):
    """List, view, delete or clear stored assessments."""
    action = args.history_action

    if action == 'list':
        assessments = await store.list_all()
        if not assessments:
            print("No previous assessments found.")
            return
        print(f"\n{len(assessments)} stored assessment(s), newest first:\n")
        for record in assessments:
            _print_assessment_line(record)

    elif action == 'view':
        try:
            record = await store.get_by_id(args.id)
        except NotFoundError:
            print(f"Error: Assessment {args.id} not found")
            sys.exit(1)
        _print_assessment_detail(record)

    elif action == 'delete':
        await store.delete_by_id(args.id)
        print(f"✓ Assessment {args.id} deleted.")

    elif action == 'clear':
        if not args.yes:
            try:
                confirm = input("Delete all stored assessments? This cannot be undone. (y/N): ")
            except (EOFError, KeyboardInterrupt):
                return
            if confirm.strip().lower() not in ('y', 'yes'):
                print("Cancelled.")
                return
        removed = await store.clear()
        print(f"✓ Deleted {removed} assessment(s).")


# ---------------------------------------------------------------------------
# Argument parser
# ---------------------------------------------------------------------------

def build_parser() -> argparse.ArgumentParser:
    """Build the top-level argument parser with subcommands."""
    parser = argparse.ArgumentParser(
        prog="ckd-assessments",
        description="Review and prune the local CKD risk assessment history",
    )
    parser.add_argument("--db", help="Path to the history database (default: per-user data dir)")
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    subparsers = parser.add_subparsers(dest="command", required=True)

    # --- history ---
    p_history = subparsers.add_parser("history", help="Manage stored assessments")
    sp_history = p_history.add_subparsers(dest="history_action", required=True)

    sp_history.add_parser("list", help="List all assessments, newest first")

    sp_view = sp_history.add_parser("view", help="View one assessment")
    sp_view.add_argument("id", type=int, help="Assessment ID")

    sp_delete = sp_history.add_parser("delete", help="Delete one assessment")
    sp_delete.add_argument("id", type=int, help="Assessment ID")

    sp_clear = sp_history.add_parser("clear", help="Delete all assessments")
    sp_clear.add_argument("--yes", action="store_true", help="Skip the confirmation prompt")

    return parser


async def main(argv: list[str] | None = None):
    """Entry point for the CLI."""
    parser = build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    try:
        store = await open_store(args.db)
        if args.command == 'history':
            await cmd_history(args, store)
    except StoreError as e:
        print(f"Error: {e}")
        sys.exit(1)


def run():
    """Console-script entry point."""
    asyncio.run(main())
