"""
Trigger entry points: form submissions, the daily reminder run, and new-row
initialization. Each reads one snapshot of the Items sheet and writes back
only the rows it changes.
"""
from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from datetime import date, datetime
from typing import List, Optional, Sequence
from zoneinfo import ZoneInfo

from .errors import InventorySheetNotFoundError
from .layout import CHECKIN_FORM, CHECKOUT_FORM, ITEMS_SHEET
from .mail import MailTransport
from .models import CellValue, ItemStatus, ReminderEmail, Row, cell_to_text, rows_from_sheet
from .reconciler import CHECK_IN, ReconcileResult, check_out, parse_item_ids, reconcile
from .reminders import RowOutcome, aggregate, classify, compose, reminder_dates, today_in_zone
from .repositories import Sheet, Spreadsheet
from .schemas import parse_return_date
from .settings import Settings

logger = logging.getLogger(__name__)


def _items_sheet(spreadsheet: Spreadsheet, settings: Settings) -> Sheet:
    sheet = spreadsheet.get_sheet(settings.items_sheet_name)
    if sheet is None:
        raise InventorySheetNotFoundError(settings.items_sheet_name)
    return sheet


def read_rows(spreadsheet: Spreadsheet, settings: Settings) -> List[Row]:
    """Take one normalized snapshot of the Items sheet."""
    sheet = _items_sheet(spreadsheet, settings)
    return rows_from_sheet(sheet.read_all_rows(), ZoneInfo(spreadsheet.time_zone))


def _value(values: Sequence[CellValue], index: int) -> CellValue:
    return values[index] if index < len(values) else None


# ---------------------------------------------------------------------------
# Form submissions
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class SubmissionResult:
    action: str
    reconcile: Optional[ReconcileResult] = None


def check_in_items(sheet: Sheet, rows: Sequence[Row], values: Sequence[CellValue]) -> ReconcileResult:
    requested = parse_item_ids(_value(values, CHECKIN_FORM.item_ids))
    logger.info("[Check In] Requested Item IDs: %s", ", ".join(requested))
    return reconcile(requested, rows, sheet, CHECK_IN, log_prefix="[Check In]")


def check_out_items(
    sheet: Sheet,
    rows: Sequence[Row],
    values: Sequence[CellValue],
    time_zone: Optional[str] = None,
) -> ReconcileResult:
    requested = parse_item_ids(_value(values, CHECKOUT_FORM.item_ids))
    holder_email = cell_to_text(_value(values, CHECKOUT_FORM.holder_email)).strip()
    holder_name = cell_to_text(_value(values, CHECKOUT_FORM.holder_name)).strip()

    raw_date = _value(values, CHECKOUT_FORM.return_date)
    return_date: CellValue
    try:
        return_date = parse_return_date(raw_date, time_zone)
    except ValueError:
        # Written as text so the reminder run reports the row as malformed
        return_date = cell_to_text(raw_date)
        logger.warning("[Check Out] Unparseable return date %r for %s", raw_date, holder_email)

    logger.info("[Check Out] Requested Item IDs: %s (holder %s)", ", ".join(requested), holder_email)
    transition = check_out(holder_name, holder_email, return_date)
    return reconcile(requested, rows, sheet, transition, log_prefix="[Check Out]")


# PUBLIC_INTERFACE
def handle_form_submission(
    spreadsheet: Spreadsheet,
    sheet_name: str,
    values: Sequence[CellValue],
    settings: Settings,
) -> SubmissionResult:
    """
    Route a form submission to check-in or check-out handling by the name of
    the responses sheet it landed in. Unknown sheets are logged and ignored.

    Raises:
        InventorySheetNotFoundError if the Items sheet is missing; nothing is written.
    """
    sheet = _items_sheet(spreadsheet, settings)

    logger.info("[onFormSubmit] Function started - Sheet: %s", sheet_name, extra={"sheet_name": sheet_name})
    logger.debug("[onFormSubmit] Form values: %s", json.dumps(list(values), default=str))

    if sheet_name == settings.checkin_sheet_name:
        result = SubmissionResult("check_in", check_in_items(sheet, read_rows(spreadsheet, settings), values))
    elif sheet_name == settings.checkout_sheet_name:
        rows = read_rows(spreadsheet, settings)
        result = SubmissionResult("check_out", check_out_items(sheet, rows, values, spreadsheet.time_zone))
    else:
        logger.warning("[onFormSubmit] Unknown sheet: %s - no action taken", sheet_name)
        result = SubmissionResult("ignored")

    logger.info("[onFormSubmit] Function completed")
    return result


# PUBLIC_INTERFACE
def initialize_new_rows(spreadsheet: Spreadsheet, settings: Settings) -> int:
    """
    Give every item row that has an ID but no status the default 'Checked In'
    status. Returns the number of rows changed.
    """
    sheet = _items_sheet(spreadsheet, settings)
    initialized = 0
    for row_index, cells in enumerate(sheet.read_all_rows()):
        if row_index < ITEMS_SHEET.header_rows:
            continue
        row = Row.from_cells(row_index, cells)
        # Unknown but non-blank status text is left alone
        if not row.id.strip() or cell_to_text(_value(cells, ITEMS_SHEET.status)).strip():
            continue
        sheet.write_range(row_index, ITEMS_SHEET.status, [ItemStatus.CHECKED_IN.value])
        initialized += 1
        logger.info("[onChange] Initialized item %s with default status", row.id, extra={"item_id": row.id})
    return initialized


# ---------------------------------------------------------------------------
# Daily reminders
# ---------------------------------------------------------------------------

@dataclass
class ReminderRunSummary:
    today: date
    is_monday: bool
    dry_run: bool = False
    processed: int = 0
    skipped: int = 0
    recipients: int = 0
    emails_sent: int = 0
    failed_recipients: List[str] = field(default_factory=list)
    emails: List[ReminderEmail] = field(default_factory=list)


# PUBLIC_INTERFACE
def send_daily_reminders(
    spreadsheet: Spreadsheet,
    transport: MailTransport,
    settings: Settings,
    now: Optional[datetime] = None,
    dry_run: bool = False,
) -> ReminderRunSummary:
    """
    Send one consolidated reminder email per holder with items overdue
    (Mondays only), due tomorrow, or due in exactly seven days.

    A delivery failure is logged and recorded, and the run moves on to the
    next recipient. With ``dry_run`` the emails are composed and returned
    but never handed to the transport.

    Raises:
        InventorySheetNotFoundError if the Items sheet is missing.
    """
    logger.info("[Reminders] Starting daily reminder process")

    sheet = _items_sheet(spreadsheet, settings)
    time_zone = spreadsheet.time_zone
    dates = reminder_dates(today_in_zone(time_zone, now))

    logger.info("[Reminders] Today: %s", dates.today.isoformat())
    logger.info("[Reminders] Is Monday: %s", dates.is_monday)

    rows = rows_from_sheet(sheet.read_all_rows(), ZoneInfo(time_zone))
    summary = ReminderRunSummary(today=dates.today, is_monday=dates.is_monday, dry_run=dry_run)

    classified = []
    for row in rows:
        result = classify(row, dates.today, dates.tomorrow, dates.one_week_from_now, dates.is_monday)
        if result.outcome is RowOutcome.SKIPPED:
            summary.skipped += 1
        elif result.outcome is RowOutcome.CLASSIFIED:
            summary.processed += 1
            classified.append((row, result.buckets))

    groups = aggregate(classified)
    summary.recipients = len(groups)
    logger.info("[Reminders] Processed %d items, skipped %d", summary.processed, summary.skipped)
    logger.info("[Reminders] Found %d people to email", summary.recipients)

    for group in groups.values():
        email = compose(group, time_zone, settings.organization_name)
        if dry_run:
            summary.emails.append(email)
            continue
        try:
            transport.send(email.to, email.subject, email.body)
        except Exception as e:  # noqa: BLE001
            summary.failed_recipients.append(group.email)
            logger.error("[Reminders] Failed to send email to %s: %s", group.email, e, extra={"recipient": group.email})
            continue
        summary.emails_sent += 1
        logger.info("[Reminders] Email sent to %s", group.email, extra={"recipient": group.email})

    logger.info("[Reminders] Sent %d emails", summary.emails_sent)
    logger.info("[Reminders] Daily reminder process complete")
    return summary
