from dataclasses import replace
from datetime import date, datetime, timedelta
from zoneinfo import ZoneInfo

import pytest

from music_library.mail import OutboxMailTransport
from music_library.repositories import ITEMS_HEADER, InMemorySpreadsheet
from music_library.settings import get_settings

TZ = "America/Los_Angeles"
MONDAY = date(2025, 1, 6)
TUESDAY = date(2025, 1, 7)


def at_noon(day: date) -> datetime:
    """An aware instant in the middle of ``day`` in the library time zone."""
    return datetime(day.year, day.month, day.day, 12, 0, tzinfo=ZoneInfo(TZ))


def days_from(day: date, n: int) -> date:
    return day + timedelta(days=n)


def item_row(item_id, status="Checked In", holder="", email="", due=None, title="Messiah"):
    """Cells of one Items sheet row in column order."""
    return ["Choral", title, status, holder, email, due, item_id]


@pytest.fixture
def settings():
    return replace(
        get_settings(),
        time_zone=TZ,
        items_sheet_name="Items",
        checkin_sheet_name="Check In Responses",
        checkout_sheet_name="Check Out Responses",
        organization_name="San Diego Saints Choir",
        enable_basic_auth=False,
    )


@pytest.fixture
def spreadsheet():
    return InMemorySpreadsheet(TZ, {"Items": [ITEMS_HEADER]})


@pytest.fixture
def items(spreadsheet):
    return spreadsheet.get_sheet("Items")


@pytest.fixture
def outbox():
    return OutboxMailTransport()
