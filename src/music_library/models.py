from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime, tzinfo
from enum import Enum
from typing import List, Optional, Sequence, Union

from .layout import ITEMS_SHEET

# Loosely-typed value of a single store cell.
CellValue = Union[str, int, float, bool, date, datetime, None]


class ItemStatus(str, Enum):
    """Status values as they appear in the Items sheet."""

    CHECKED_IN = "Checked In"
    CHECKED_OUT = "Checked Out"


class Bucket(str, Enum):
    """Temporal reminder categories."""

    OVERDUE = "overdue"
    DUE_TOMORROW = "due_tomorrow"
    DUE_IN_WEEK = "due_in_week"


def cell_to_text(value: CellValue) -> str:
    """
    Render a cell as text the way a spreadsheet displays it.

    Integral floats lose their fractional part so that an ID typed as 42 and
    stored as 42.0 still reads "42".
    """
    if value is None:
        return ""
    if isinstance(value, bool):
        return "TRUE" if value else "FALSE"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    if isinstance(value, (date, datetime)):
        return value.isoformat()
    return str(value)


def cell_to_date(value: CellValue, time_zone: Optional[tzinfo] = None) -> Optional[date]:
    """
    Truncate a date-valued cell to its calendar day.

    Aware datetimes are first converted to ``time_zone``. Anything that is not
    a date value (including text that merely looks like one) yields None.
    """
    if isinstance(value, datetime):
        if value.tzinfo is not None and time_zone is not None:
            value = value.astimezone(time_zone)
        return value.date()
    if isinstance(value, date):
        return value
    return None


def _cell(cells: Sequence[CellValue], index: int) -> CellValue:
    return cells[index] if index < len(cells) else None


# PUBLIC_INTERFACE
@dataclass(frozen=True)
class Row:
    """
    Strict view of one Items sheet row.

    Fields:
    - row_index: 0-based position in the sheet (0 is the header)
    - id: human-assigned item ID, always text
    - name: item title
    - status: ItemStatus, or None for blank/unknown status text
    - holder_name / holder_email: raw holder fields ('' when cleared)
    - due_date: calendar day the item is due, None when missing or not a date
    """

    row_index: int
    id: str
    name: str
    status: Optional[ItemStatus]
    holder_name: str
    holder_email: str
    due_date: Optional[date]

    @classmethod
    def from_cells(cls, row_index: int, cells: Sequence[CellValue], time_zone: Optional[tzinfo] = None) -> "Row":
        status_text = cell_to_text(_cell(cells, ITEMS_SHEET.status)).strip()
        try:
            status: Optional[ItemStatus] = ItemStatus(status_text)
        except ValueError:
            status = None
        return cls(
            row_index=row_index,
            id=cell_to_text(_cell(cells, ITEMS_SHEET.id)),
            name=cell_to_text(_cell(cells, ITEMS_SHEET.name)),
            status=status,
            holder_name=cell_to_text(_cell(cells, ITEMS_SHEET.holder_name)),
            holder_email=cell_to_text(_cell(cells, ITEMS_SHEET.holder_email)),
            due_date=cell_to_date(_cell(cells, ITEMS_SHEET.return_date), time_zone),
        )


def rows_from_sheet(all_rows: Sequence[Sequence[CellValue]], time_zone: Optional[tzinfo] = None) -> List[Row]:
    """Normalize every data row of a sheet snapshot, skipping the header."""
    return [
        Row.from_cells(i, cells, time_zone)
        for i, cells in enumerate(all_rows)
        if i >= ITEMS_SHEET.header_rows
    ]


@dataclass(frozen=True)
class CheckedOutItem:
    """Read-only projection of a checked-out row used during one reminder run."""

    item_id: str
    holder_name: str
    holder_email: str
    due_date: date


@dataclass
class ReminderGroup:
    """All items one recipient must hear about in a single run."""

    email: str
    name: str
    overdue: List[CheckedOutItem] = field(default_factory=list)
    due_tomorrow: List[CheckedOutItem] = field(default_factory=list)
    due_in_week: List[CheckedOutItem] = field(default_factory=list)

    def bucket(self, bucket: Bucket) -> List[CheckedOutItem]:
        if bucket is Bucket.OVERDUE:
            return self.overdue
        if bucket is Bucket.DUE_TOMORROW:
            return self.due_tomorrow
        return self.due_in_week


@dataclass(frozen=True)
class ReminderEmail:
    to: str
    subject: str
    body: str
