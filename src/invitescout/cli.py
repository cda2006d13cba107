"""Summary: Command-line interface for InviteScout.

Importance: Provides a local-first entry point for scans and parser checks.
Alternatives: Drive scans only through the HTTP API.
"""

from __future__ import annotations

import argparse
import json
import os
from pathlib import Path

from invitescout.app import build_context, configure_logging
from invitescout.calendar_markup import parse_calendar_markup
from invitescout.config import AppConfig
from invitescout.free_text import parse_free_text
from invitescout.models import InviteEvent, ProviderCredentials


def build_parser() -> argparse.ArgumentParser:
    """Summary: Build the CLI argument parser.

    Importance: Defines supported commands for local operation.
    Alternatives: Use a CLI framework like Typer or Click.
    """

    parser = argparse.ArgumentParser(description="InviteScout CLI")
    subparsers = parser.add_subparsers(dest="command", required=True)

    for command, help_text in (
        ("scan", "Scan mailboxes and add invites to Google Calendar"),
        ("preview", "Scan mailboxes without writing to the calendar"),
    ):
        scan = subparsers.add_parser(command, help=help_text)
        scan.add_argument("--gmail-token", default=os.getenv("GMAIL_ACCESS_TOKEN"))
        scan.add_argument("--outlook-token", default=os.getenv("OUTLOOK_ACCESS_TOKEN"))
        if command == "scan":
            scan.add_argument("--calendar-token", default=os.getenv("GOOGLE_CALENDAR_TOKEN"))

    parse_ics = subparsers.add_parser("parse-ics", help="Parse an .ics file into an invite")
    parse_ics.add_argument("path", type=str)
    parse_ics.add_argument("--fallback-title", type=str, default="")

    parse_text = subparsers.add_parser("parse-text", help="Parse an email body into an invite")
    parse_text.add_argument("path", type=str)
    parse_text.add_argument("--subject", type=str, default="")

    return parser


def run_cli(argv: list[str] | None = None) -> int:
    """Summary: Execute CLI commands based on arguments.

    Importance: Prints JSON so results can be piped into other tools.
    Alternatives: Print human-readable tables.
    """

    parser = build_parser()
    args = parser.parse_args(argv)
    config = AppConfig.from_env()
    configure_logging(config.log_level)

    if args.command == "parse-ics":
        markup = Path(args.path).read_text(encoding="utf-8")
        invite = parse_calendar_markup(markup, args.fallback_title, config.markup_utc_marker)
        return _print_invite(invite)

    if args.command == "parse-text":
        body = Path(args.path).read_text(encoding="utf-8")
        invite = parse_free_text(body, args.subject, config.free_text_unresolved)
        return _print_invite(invite)

    context = build_context(config)
    credentials = ProviderCredentials(gmail=args.gmail_token, outlook=args.outlook_token)
    if args.command == "preview":
        report = context.service.preview(credentials)
    else:
        report = context.service.scan_and_add(credentials, args.calendar_token or args.gmail_token)
    print(json.dumps(report.to_dict(), indent=2))
    return 1 if report.error else 0


def _print_invite(invite: InviteEvent | None) -> int:
    if invite is None:
        print("No invite found.")
        return 1
    print(json.dumps(invite.to_dict(), indent=2))
    return 0


def main() -> None:
    raise SystemExit(run_cli())


if __name__ == "__main__":
    main()
