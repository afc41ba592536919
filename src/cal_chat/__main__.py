"""Entry point for ``python -m cal_chat``.

Provides a CLI for talking to the calendar assistant from a terminal and
for managing linked calendars.  Uses stdlib :mod:`argparse` for argument
parsing.

Subcommands:
    chat   -- Default. Handle one message and print the reply.
    link   -- Import an authorized-user token file for a user.
    status -- Report whether a user has a linked calendar, or list every
              linked user when no --user is given.

Exit codes:
    0 -- Command completed (including a reply that reports a failure).
    1 -- An error occurred (config error, missing token file).
    2 -- Argument parsing error (handled by argparse).
"""

from __future__ import annotations

import argparse
import asyncio
import sys

from cal_chat.assistant import build_assistant
from cal_chat.calendar.credentials import JsonCredentialStore
from cal_chat.calendar.exceptions import CalendarError
from cal_chat.config import ConfigError, Settings, load_settings
from cal_chat.log import setup_logging

_SUBCOMMANDS = {"chat", "link", "status"}


def build_parser() -> argparse.ArgumentParser:
    """Build and return the CLI argument parser with subcommands."""
    parser = argparse.ArgumentParser(
        prog="cal-chat",
        description="Manage your Google Calendar with natural-language messages.",
    )

    subparsers = parser.add_subparsers(dest="command")

    # --- "chat" subcommand (default) ----------------------------------
    chat_parser = subparsers.add_parser("chat", help="Send one message to the assistant.")
    chat_parser.add_argument("message", nargs="+", help="The message text.")
    _add_common(chat_parser)

    # --- "link" subcommand --------------------------------------------
    link_parser = subparsers.add_parser(
        "link",
        help="Link a calendar by importing an authorized-user token file.",
    )
    link_parser.add_argument("token_file", help="Path to the token JSON file.")
    _add_common(link_parser)

    # --- "status" subcommand ------------------------------------------
    status_parser = subparsers.add_parser(
        "status",
        help="Show whether a calendar is linked for a user (all users if omitted).",
    )
    _add_common(status_parser, user_default=None)

    return parser


def _add_common(parser: argparse.ArgumentParser, user_default: str | None = "cli") -> None:
    parser.add_argument(
        "-u",
        "--user",
        default=user_default,
        help=f"Chat identity the command acts for (default: {user_default or 'all users'}).",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        default=False,
        help="Enable debug-level logging.",
    )


def _resolve_command(
    parser: argparse.ArgumentParser,
    argv: list[str],
) -> argparse.Namespace:
    """Parse *argv*, routing to ``chat`` when no subcommand is given.

    ``cal-chat what do I have tomorrow`` is treated as
    ``cal-chat chat what do I have tomorrow``.
    """
    if not argv:
        argv = ["chat"]
    elif argv[0] in {"-h", "--help"}:
        pass
    elif argv[0] not in _SUBCOMMANDS:
        argv = ["chat", *argv]

    return parser.parse_args(argv)


def _handle_chat(args: argparse.Namespace, settings: Settings) -> int:
    assistant = build_assistant(settings)
    reply = asyncio.run(assistant.handle_message(args.user, " ".join(args.message)))
    print(reply.text)
    return 0


def _handle_link(args: argparse.Namespace, settings: Settings) -> int:
    store = JsonCredentialStore(settings.credential_store_path)
    try:
        store.link_from_file(args.user, args.token_file)
    except CalendarError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1
    print(f"Calendar linked for {args.user}.")
    return 0


def _handle_status(args: argparse.Namespace, settings: Settings) -> int:
    store = JsonCredentialStore(settings.credential_store_path)
    try:
        users = [args.user] if args.user else store.list_users()
        linked = {user: store.linked_at(user) for user in users if store.is_linked(user)}
    except CalendarError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1

    if not users:
        print("No calendars linked.")
    for user in users:
        if user in linked:
            print(f"{user}: calendar linked at {linked[user]}.")
        else:
            print(f"{user}: no calendar linked.")
    return 0


def main(argv: list[str] | None = None) -> int:
    """Run the cal-chat CLI.

    Args:
        argv: Command-line arguments.  Defaults to ``sys.argv[1:]``
            when ``None`` (the normal case).

    Returns:
        Exit code: ``0`` on success, ``1`` on error.
    """
    parser = build_parser()
    args = _resolve_command(parser, argv if argv is not None else sys.argv[1:])

    try:
        settings = load_settings()
    except ConfigError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1

    # --- Configure logging --------------------------------------------
    setup_logging(
        "DEBUG" if args.verbose else settings.log_level,
        secrets=[settings.gemini_api_key],
    )

    # --- Dispatch to subcommand handler -------------------------------
    if args.command == "link":
        return _handle_link(args, settings)
    if args.command == "status":
        return _handle_status(args, settings)
    return _handle_chat(args, settings)


if __name__ == "__main__":
    raise SystemExit(main())
