"""
Command-line triggers for schedulers without HTTP access (e.g. cron).

Usage:
    music-library send-reminders [--dry-run]
    music-library init-rows
"""
from __future__ import annotations

import argparse
import logging
from typing import List, Optional

from .errors import LibraryError
from .mail import get_mail_transport
from .observability import setup_logging
from .repositories import get_spreadsheet
from .services import initialize_new_rows, send_daily_reminders
from .settings import get_settings

logger = logging.getLogger(__name__)


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="music-library", description="Sheet music library triggers")
    parser.add_argument("--log-level", default=None, help="logging level (DEBUG/INFO/WARNING/ERROR); overrides LOG_LEVEL")
    sub = parser.add_subparsers(dest="command", required=True)

    reminders = sub.add_parser("send-reminders", help="run the daily reminder process once")
    reminders.add_argument("--dry-run", action="store_true", help="compose emails and print them instead of sending")

    sub.add_parser("init-rows", help="give new item rows the default 'Checked In' status")
    return parser


# PUBLIC_INTERFACE
def main(argv: Optional[List[str]] = None) -> int:
    """Run one trigger and return the process exit status."""
    args = _build_parser().parse_args(argv)
    settings = get_settings()
    setup_logging(args.log_level or settings.log_level, settings.log_format)

    try:
        if args.command == "send-reminders":
            summary = send_daily_reminders(get_spreadsheet(), get_mail_transport(), settings, dry_run=args.dry_run)
            for email in summary.emails:
                print(f"To: {email.to}\nSubject: {email.subject}\n\n{email.body}\n")
            print(
                f"processed={summary.processed} skipped={summary.skipped} "
                f"recipients={summary.recipients} sent={summary.emails_sent} "
                f"failed={len(summary.failed_recipients)}"
            )
        else:
            print(f"initialized={initialize_new_rows(get_spreadsheet(), settings)}")
    except LibraryError as e:
        logger.error("%s: %s", e.code, e.message)
        return 1
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
