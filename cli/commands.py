"""
CLI subcommand implementations for the dojo-log system.

Subcommands::

    dojo-log add      TECHNIQUE [--notes N] [--teacher T] [--partner P]
    dojo-log dictate  FIELD [--technique X] [--notes N] [--teacher T] [--partner P]
    dojo-log history  [--limit N] [--json]
    dojo-log search   QUERY [--limit N] [--json]
    dojo-log delete   ID
    dojo-log config   [--db-path P] [--locale L] [--dictation-timeout S]
"""

import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path

from contracts.v1 import LogEntryContract
from dojo_log.config import FORM_FIELDS, load_settings
from dojo_log.errors import DojoLogError, EngineUnavailable, InvalidEntry
from dojo_log.models import DictationState, LogEntry, Source
from dojo_log.resources import AppResources
from dojo_log.user_config import update_user_config, user_config_path


def _print_entries(entries: list[LogEntry], as_json: bool = False) -> None:
    """Print entries newest first, as a card list or JSON."""
    if as_json:
        payload = [LogEntryContract(**e.to_dict()).model_dump() for e in entries]
        print(json.dumps(payload, ensure_ascii=False, indent=2))
        return

    if not entries:
        print("No logs recorded.")
        return

    for e in entries:
        marker = "🎤" if e.source is Source.VOICE else "⌨️"
        print(f"\n#{e.id:<4} {e.technique_name:<30} {e.date[:10]}  {marker}")
        people = e.teacher or ""
        if e.partner:
            people = f"{people} & {e.partner}" if people else e.partner
        if people:
            print(f"      👤 {people}")
        if e.notes:
            print(f"      {e.notes}")


def _form_values(args) -> dict:
    return {
        "technique_name": getattr(args, "technique", None) or "",
        "notes": args.notes or "",
        "teacher": args.teacher or "",
        "partner": args.partner or "",
    }


# ---------------------------------------------------------------------------
# Subcommand: add
# ---------------------------------------------------------------------------

async def cmd_add(args, resources: AppResources):
    """Save a typed log entry."""
    form = resources.log_form()
    for name, value in _form_values(args).items():
        form.set_field(name, value)

    try:
        entry_id = await form.submit()
    except InvalidEntry:
        print(f"Error: {form.error}")
        sys.exit(1)
    print(f"✓ {form.feedback} (#{entry_id})")


# ---------------------------------------------------------------------------
# Subcommand: dictate
# ---------------------------------------------------------------------------

async def cmd_dictate(args, resources: AppResources):
    """Fill one field by voice, then save the entry."""
    form = resources.log_form()
    for name, value in _form_values(args).items():
        if value:
            form.set_field(name, value)

    done = asyncio.Event()

    async with resources.dictation_controller(form=form) as controller:
        def _on_status(state: DictationState) -> None:
            if state is DictationState.LISTENING:
                print(f"🎤 {controller.status_text} (speak now)")
            elif state is DictationState.IDLE:
                done.set()

        controller.on_status_change(_on_status)
        try:
            await controller.start_dictation(args.field)
        except EngineUnavailable as e:
            print(f"Error: {e}. Install the 'voice' extra to enable dictation.")
            sys.exit(1)
        if controller.state is not DictationState.IDLE:
            await done.wait()

    if form.error:
        print(f"Error: {form.error}")
        sys.exit(1)
    if not form.values[args.field]:
        print("Nothing was recognised; no log saved.")
        return

    print(f"  {args.field}: {form.values[args.field]}")
    try:
        entry_id = await form.submit()
    except InvalidEntry:
        print(f"Error: {form.error}")
        sys.exit(1)
    print(f"✓ {form.feedback} (#{entry_id})")


# ---------------------------------------------------------------------------
# Subcommands: history / search / delete
# ---------------------------------------------------------------------------

async def cmd_history(args, resources: AppResources):
    """List the most recent logs."""
    entries = await resources.store.list(args.limit)
    _print_entries(entries, args.json)
    if entries and not args.json:
        total = await resources.store.count()
        print(f"\nShowing {len(entries)} of {total} log(s).")


async def cmd_search(args, resources: AppResources):
    """Search logs by technique name or notes."""
    entries = await resources.store.search(args.query, limit=args.limit)
    _print_entries(entries, args.json)


async def cmd_delete(args, resources: AppResources):
    """Delete a log by id."""
    if await resources.store.delete(args.id):
        print(f"Log #{args.id} deleted.")
    else:
        print(f"Log #{args.id} not found.")


# ---------------------------------------------------------------------------
# Subcommand: config
# ---------------------------------------------------------------------------

def cmd_config(args):
    """Show the effective settings, saving any given preferences first."""
    changes = {
        name: value
        for name, value in (
            ("db_path", args.db_path),
            ("locale", args.locale),
            ("dictation_timeout_seconds", args.dictation_timeout),
        )
        if value is not None
    }
    if changes:
        update_user_config(**changes)

    settings = load_settings()
    print(f"Config file:       {user_config_path()}")
    print(f"Database:          {settings.db_path}")
    print(f"Locale:            {settings.locale}")
    print(f"Dictation timeout: {settings.dictation_timeout_seconds:g}s")


# ---------------------------------------------------------------------------
# Argument parser
# ---------------------------------------------------------------------------

def _positive_int(value: str) -> int:
    number = int(value)
    if number < 1:
        raise argparse.ArgumentTypeError("must be a positive integer")
    return number


def _positive_float(value: str) -> float:
    try:
        number = float(value)
    except ValueError:
        raise argparse.ArgumentTypeError("must be a number") from None
    if number <= 0:
        raise argparse.ArgumentTypeError("must be greater than zero")
    return number


def build_parser() -> argparse.ArgumentParser:
    """Build the top-level argument parser with subcommands."""
    parser = argparse.ArgumentParser(
        prog="dojo-log",
        description="Personal martial-arts training log",
    )
    parser.add_argument("--db", help="Path to the log database (or set DOJO_LOG_DB_PATH)")
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    subparsers = parser.add_subparsers(dest="command", required=True)

    # --- add ---
    p_add = subparsers.add_parser("add", help="Save a technique log")
    p_add.add_argument("technique", help="Technique name")
    p_add.add_argument("--notes")
    p_add.add_argument("--teacher")
    p_add.add_argument("--partner")

    # --- dictate ---
    p_dictate = subparsers.add_parser("dictate", help="Fill one field by voice and save")
    p_dictate.add_argument("field", choices=FORM_FIELDS, help="Field to dictate")
    p_dictate.add_argument("--technique", help="Technique name (when not dictated)")
    p_dictate.add_argument("--notes")
    p_dictate.add_argument("--teacher")
    p_dictate.add_argument("--partner")

    # --- history ---
    p_history = subparsers.add_parser("history", help="Show recent logs")
    p_history.add_argument("--limit", type=_positive_int, default=None,
                           help="Maximum number of logs (default: 50)")
    p_history.add_argument("--json", action="store_true", help="Print JSON")

    # --- search ---
    p_search = subparsers.add_parser("search", help="Search logs")
    p_search.add_argument("query", help="Text to find in technique names and notes")
    p_search.add_argument("--limit", type=_positive_int, default=None)
    p_search.add_argument("--json", action="store_true", help="Print JSON")

    # --- delete ---
    p_delete = subparsers.add_parser("delete", help="Delete a log")
    p_delete.add_argument("id", type=int, help="Log ID")

    # --- config ---
    p_config = subparsers.add_parser("config", help="Show or save preferences")
    p_config.add_argument("--db-path", help="Default database path (empty string clears it)")
    p_config.add_argument("--locale", help="Recognition locale, e.g. fr-FR")
    p_config.add_argument("--dictation-timeout", type=_positive_float,
                          help="Seconds before a dictation is stopped")

    return parser


COMMANDS = {
    "add": cmd_add,
    "dictate": cmd_dictate,
    "history": cmd_history,
    "search": cmd_search,
    "delete": cmd_delete,
}


async def main(argv: list[str] | None = None):
    """Entry point for the CLI."""
    parser = build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    if args.command == "config":
        cmd_config(args)
        return

    settings = load_settings()
    if args.db:
        settings.db_path = Path(args.db).expanduser()
    if args.command == "history" and args.limit is None:
        args.limit = settings.list_limit

    resources = AppResources.from_settings(settings)
    try:
        await COMMANDS[args.command](args, resources)
    except DojoLogError as e:
        print(f"Error: {e}")
        sys.exit(1)
    finally:
        await resources.close()


def run():
    """Console-script entry point."""
    asyncio.run(main())
