"""
Reminder scheduling engine.

Every checked-out row is classified into zero or more buckets relative to
"today" in the store's time zone, classified rows are grouped per recipient,
and each group is rendered into one plain-text email. Nothing here touches
the store or a mail transport; see ``services.send_daily_reminders``.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date, datetime, timedelta, timezone
from enum import Enum
from typing import Dict, FrozenSet, Iterable, List, Optional, Tuple, Union
from zoneinfo import ZoneInfo

from .models import Bucket, CheckedOutItem, ItemStatus, ReminderEmail, ReminderGroup, Row

logger = logging.getLogger(__name__)

DEFAULT_MEMBER_NAME = "Choir Member"
DEFAULT_ORGANIZATION = "San Diego Saints Choir"

_MONTHS = ("Jan", "Feb", "Mar", "Apr", "May", "Jun", "Jul", "Aug", "Sep", "Oct", "Nov", "Dec")


# ---------------------------------------------------------------------------
# Dates
# ---------------------------------------------------------------------------

def today_in_zone(time_zone: str, now: Optional[datetime] = None) -> date:
    """
    Return the current calendar day in ``time_zone``.

    ``now`` defaults to the current instant; a naive value is taken as UTC.
    """
    tz = ZoneInfo(time_zone)
    if now is None:
        return datetime.now(tz).date()
    if now.tzinfo is None:
        now = now.replace(tzinfo=timezone.utc)
    return now.astimezone(tz).date()


@dataclass(frozen=True)
class ReminderDates:
    today: date
    tomorrow: date
    one_week_from_now: date
    is_monday: bool


def reminder_dates(today: date) -> ReminderDates:
    return ReminderDates(
        today=today,
        tomorrow=today + timedelta(days=1),
        one_week_from_now=today + timedelta(days=7),
        is_monday=today.weekday() == 0,
    )


# ---------------------------------------------------------------------------
# Classification
# ---------------------------------------------------------------------------

class RowOutcome(str, Enum):
    """How a row was handled by the classifier. Exactly one applies per row."""

    IGNORED = "ignored"  # not checked out
    SKIPPED = "skipped"  # checked out but malformed
    CLASSIFIED = "classified"
    UNMATCHED = "unmatched"  # valid, but no boundary hit today


@dataclass(frozen=True)
class Classification:
    outcome: RowOutcome
    buckets: FrozenSet[Bucket] = frozenset()
    reason: Optional[str] = None


# PUBLIC_INTERFACE
def classify(
    row: Row,
    today: date,
    tomorrow: date,
    one_week_from_now: date,
    is_monday_today: bool,
) -> Classification:
    """
    Decide which reminder buckets ``row`` belongs to.

    Overdue items are only reported on Mondays so that holders get a weekly
    nudge rather than a daily one. The due-tomorrow and due-in-a-week buckets
    match exact calendar days.
    """
    if row.status is not ItemStatus.CHECKED_OUT:
        return Classification(RowOutcome.IGNORED)

    if not row.holder_email.strip():
        logger.info("[Reminders] Skipping item %s: no email", row.id, extra={"item_id": row.id, "row_index": row.row_index})
        return Classification(RowOutcome.SKIPPED, reason="no email")

    if row.due_date is None:
        logger.info(
            "[Reminders] Skipping item %s: invalid/missing due date",
            row.id,
            extra={"item_id": row.id, "row_index": row.row_index},
        )
        return Classification(RowOutcome.SKIPPED, reason="invalid/missing due date")

    buckets = set()
    if row.due_date < today and is_monday_today:
        buckets.add(Bucket.OVERDUE)
    if row.due_date == tomorrow:
        buckets.add(Bucket.DUE_TOMORROW)
    if row.due_date == one_week_from_now:
        buckets.add(Bucket.DUE_IN_WEEK)

    if not buckets:
        return Classification(RowOutcome.UNMATCHED)
    return Classification(RowOutcome.CLASSIFIED, frozenset(buckets))


# ---------------------------------------------------------------------------
# Aggregation
# ---------------------------------------------------------------------------

_BUCKET_ORDER = (Bucket.OVERDUE, Bucket.DUE_TOMORROW, Bucket.DUE_IN_WEEK)


# PUBLIC_INTERFACE
def aggregate(
    classified: Iterable[Tuple[Row, FrozenSet[Bucket]]],
    default_name: str = DEFAULT_MEMBER_NAME,
) -> Dict[str, ReminderGroup]:
    """
    Group classified rows into one ReminderGroup per holder email.

    The email is used verbatim as the key (no case folding, no trimming).
    The first row seen for an email names the group; items keep row order.
    """
    groups: Dict[str, ReminderGroup] = {}
    for row, buckets in classified:
        if not buckets or row.due_date is None:
            continue
        email = row.holder_email
        group = groups.get(email)
        if group is None:
            group = ReminderGroup(email=email, name=row.holder_name if row.holder_name.strip() else default_name)
            groups[email] = group

        item = CheckedOutItem(
            item_id=row.id,
            holder_name=row.holder_name,
            holder_email=email,
            due_date=row.due_date,
        )
        for bucket in _BUCKET_ORDER:
            if bucket in buckets:
                group.bucket(bucket).append(item)
    return groups


# ---------------------------------------------------------------------------
# Composition
# ---------------------------------------------------------------------------

def format_due_date(value: Union[date, datetime], time_zone: str) -> str:
    """Render a due date as e.g. 'Jan 5, 2025', in ``time_zone`` for aware datetimes."""
    if isinstance(value, datetime):
        if value.tzinfo is not None:
            value = value.astimezone(ZoneInfo(time_zone))
        value = value.date()
    return f"{_MONTHS[value.month - 1]} {value.day}, {value.year}"


def group_by_date(items: List[CheckedOutItem], time_zone: str) -> Dict[str, List[CheckedOutItem]]:
    """Group items by formatted due date, keeping first-seen date order."""
    grouped: Dict[str, List[CheckedOutItem]] = {}
    for item in items:
        grouped.setdefault(format_due_date(item.due_date, time_zone), []).append(item)
    return grouped


def _section(title: str, date_label: str, items: List[CheckedOutItem], time_zone: str) -> str:
    text = f"{title}:\n"
    for date_str, dated in group_by_date(items, time_zone).items():
        text += f"  {date_label} {date_str}:\n"
        for item in dated:
            text += f"  - Item #{item.item_id}\n"
    return text + "\n"


# PUBLIC_INTERFACE
def compose(group: ReminderGroup, time_zone: str, organization: str = DEFAULT_ORGANIZATION) -> ReminderEmail:
    """
    Render the reminder email for one recipient.

    Subject and closing follow the priority overdue > due tomorrow > due in a
    week. Sections always appear in that same order, each only when its
    bucket is non-empty.
    """
    has_overdue = bool(group.overdue)
    has_tomorrow = bool(group.due_tomorrow)
    has_week = bool(group.due_in_week)

    if has_overdue:
        subject = f"OVERDUE: Sheet Music Return - {organization}"
    elif has_tomorrow:
        subject = f"Sheet Music Due Tomorrow - {organization}"
    else:
        subject = f"Sheet Music Due in 1 Week - {organization}"

    body = f"Hi {group.name},\n\n"

    if has_overdue and (has_tomorrow or has_week):
        body += "This is a reminder about your checked-out sheet music:\n\n"
    elif has_overdue:
        body += "This is a notice that you have OVERDUE sheet music that needs to be returned:\n\n"
    elif has_tomorrow:
        body += "This is a reminder that you have sheet music due back TOMORROW:\n\n"
    else:
        body += "This is a friendly reminder that you have sheet music due back in 7 days:\n\n"

    if has_overdue:
        body += _section("OVERDUE ITEMS", "Was due on", group.overdue, time_zone)
    if has_tomorrow:
        body += _section("ITEMS DUE TOMORROW", "Due on", group.due_tomorrow, time_zone)
    if has_week:
        body += _section("ITEMS DUE IN 7 DAYS", "Due on", group.due_in_week, time_zone)

    if has_overdue:
        body += "Please return overdue items as soon as possible"
        if has_tomorrow or has_week:
            body += ", and plan ahead for upcoming due dates"
        body += ".\n\n"
    elif has_tomorrow:
        body += "Please return these items by tomorrow. If you need more time, please contact the choir librarian.\n\n"
    else:
        body += (
            "Please plan to return these items by the due date. "
            "If you need more time, please contact the choir librarian.\n\n"
        )

    body += f"Thank you,\n{organization} Library"

    return ReminderEmail(to=group.email, subject=subject, body=body)
