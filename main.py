#!/usr/bin/env python3
"""
Main entry point for iMessage Filter.

Resolves a conversation filter against chat.db and reports what an export
would include, or lists contacts and chats to build a filter from.
"""
from typing import List, Optional
import argparse
import sys
import logging

from imessage_filter.config import Config, set_config
from imessage_filter.database import DatabaseConnection
from imessage_filter.filtering.listing import run_diagnostic
from imessage_filter.filtering.query_context import QueryContext
from imessage_filter.filtering.reporter import report_selection
from imessage_filter.filtering.resolver import FilterResolver, NothingMatched
from imessage_filter.logger_config import setup_logging
from imessage_filter.utils import Colors, pluralize

NOTHING_MATCHED_MESSAGE = "No chatrooms were found with the supplied contacts."


def print_section(title: str) -> None:
    """Print a formatted section title."""
    print(f"{Colors.BOLD}{Colors.HEADER}{'=' * 60}{Colors.ENDC}")
    print(f"{Colors.BOLD}{Colors.HEADER}{title}{Colors.ENDC}")
    print(f"{Colors.BOLD}{Colors.HEADER}{'=' * 60}{Colors.ENDC}")


def _parse_args(argv: List[str]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Resolve iMessage conversation filters against chat.db (read-only)."
    )
    parser.add_argument(
        "--db-path",
        default=None,
        help="Path to chat.db (defaults to ./chat.db or ~/Library/Messages/chat.db).",
    )
    parser.add_argument(
        "-t",
        "--conversation-filter",
        default=None,
        help=(
            "Contacts to include: ',' separates members of one conversation, "
            "';' separates conversations. Example: 'Jane,+15551234567;bob@example.com'"
        ),
    )
    parser.add_argument(
        "--list-contacts",
        action="store_true",
        help="List direct messages and group chats with message counts.",
    )
    parser.add_argument(
        "--diagnostic",
        action="store_true",
        help="Report duplicated contacts and chats.",
    )
    parser.add_argument(
        "--use-memory",
        action="store_true",
        help="Load the DB into RAM (SQLite :memory:) before reading it.",
    )
    return parser.parse_args(argv)


def _run(db: DatabaseConnection, args: argparse.Namespace, conversation_filter: Optional[str]) -> int:
    if args.list_contacts:
        for line in db.list_contacts().render_lines():
            print(line)
        return 0

    participants, chats = db.build_caches()

    if args.diagnostic:
        print_section("iMessage Database Diagnostics")
        for line in run_diagnostic(participants, chats).render_lines():
            print(f"    {line}")
        return 0

    if not conversation_filter:
        print(f"{Colors.WARNING}No conversation filter given; nothing to resolve.{Colors.ENDC}")
        return 0

    resolution = FilterResolver(participants, chats).resolve(conversation_filter)
    if isinstance(resolution, NothingMatched):
        print(NOTHING_MATCHED_MESSAGE)
        return 0

    summary = report_selection(resolution.selection, participants, chats)
    context = QueryContext()
    context.set_selection(resolution.selection)
    message_count = db.count_filtered_messages(context)

    print(f"{Colors.OKGREEN}{summary.describe()}{Colors.ENDC}")
    print(f"Selected handle IDs: {sorted(resolution.selection.selected_handle_ids)}")
    print(f"Selected chat IDs: {sorted(resolution.selection.selected_chat_ids)}")
    print(f"{pluralize(message_count, 'message')} would be exported.")
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    """Main function. Returns the process exit status."""
    if argv is None:
        argv = sys.argv[1:]
    args = _parse_args(argv)
    setup_logging()

    # Built from this run's arguments only
    config = Config(db_path=args.db_path, conversation_filter=args.conversation_filter)
    set_config(config)

    if not config.validate():
        print(f"{Colors.FAIL}Error: Database file not found or not readable.{Colors.ENDC}")
        print("Please ensure chat.db exists in the current directory or at:")
        print(f"  {config.DEFAULT_MESSAGES_PATH / config.DEFAULT_DB_NAME}")
        return 1

    try:
        with DatabaseConnection(config, use_memory=args.use_memory) as db:
            return _run(db, args, config.conversation_filter)
    except Exception as e:
        print(f"{Colors.FAIL}Error: {e}{Colors.ENDC}")
        logging.exception("Error during execution")
        return 1


if __name__ == '__main__':
    sys.exit(main())
