from __future__ import annotations

from datetime import date, datetime
from typing import List, Optional, Union
from zoneinfo import ZoneInfo

from pydantic import BaseModel, ConfigDict, Field, field_validator

# Raw answer value as delivered by a form submission
FormValue = Union[str, int, float, bool, None]

_US_FORMATS = ("%m/%d/%Y", "%m/%d/%Y %H:%M:%S", "%m/%d/%Y %H:%M")


def parse_return_date(value: FormValue, time_zone: Optional[str] = None) -> date:
    """
    Parse a check-out form's return date answer into a calendar day.
    - ISO8601 date or datetime ('2025-01-31', '2025-01-31T13:45:00')
    - US form style ('1/31/2025', '1/31/2025 13:45:00')
    Time of day is discarded. A datetime carrying a UTC offset is first
    converted to ``time_zone`` when one is given.
    """
    if not isinstance(value, str) or not value.strip():
        raise ValueError("Return date must be a non-empty date string.")

    s = value.strip()
    try:
        parsed = datetime.fromisoformat(s)
    except ValueError:
        pass
    else:
        if parsed.tzinfo is not None and time_zone:
            parsed = parsed.astimezone(ZoneInfo(time_zone))
        return parsed.date()
    for fmt in _US_FORMATS:
        try:
            return datetime.strptime(s, fmt).date()
        except ValueError:
            continue
    raise ValueError(
        "Invalid return date format. Use ISO8601 (e.g., '2025-01-31') or M/D/YYYY (e.g., '1/31/2025')."
    )


# PUBLIC_INTERFACE
class FormSubmission(BaseModel):
    """
    A form-submitted event: the raw answer array plus the sheet it landed in.
    """

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "sheet_name": "Check Out Responses",
                "values": ["1/2/2025 10:00:00", "alto@example.com", "1/16/2025", "12, 14", "Ann Alto"],
            }
        }
    )

    sheet_name: str = Field(..., description="Name of the responses sheet the submission was written to", min_length=1)
    values: List[FormValue] = Field(default_factory=list, description="Form answers in column order")

    @field_validator("sheet_name")
    @classmethod
    def validate_sheet_name(cls, v: str) -> str:
        s = v.strip()
        if not s:
            raise ValueError("sheet_name must not be blank")
        return s


# PUBLIC_INTERFACE
class SubmissionResultOut(BaseModel):
    """Outcome of dispatching one form submission."""

    action: str = Field(..., description="check_in, check_out or ignored")
    requested_ids: List[str] = Field(default_factory=list, description="Parsed item IDs in request order")
    matched_count: int = Field(0, description="Number of requested IDs that matched a row")
    not_found_ids: List[str] = Field(default_factory=list, description="Requested IDs with no matching row")


# PUBLIC_INTERFACE
class ReminderEmailOut(BaseModel):
    to: str
    subject: str
    body: str


# PUBLIC_INTERFACE
class ReminderRunOut(BaseModel):
    """
    Summary of one daily reminder run.
    """

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "today": "2025-01-06",
                "is_monday": True,
                "dry_run": False,
                "processed": 3,
                "skipped": 1,
                "recipients": 2,
                "emails_sent": 2,
                "failed_recipients": [],
                "emails": [],
            }
        }
    )

    today: date = Field(..., description="Calendar day of the run in the library time zone")
    is_monday: bool = Field(..., description="Whether overdue reminders were included")
    dry_run: bool = Field(False, description="When true, emails were composed but not sent")
    processed: int = Field(..., description="Rows placed in at least one reminder bucket")
    skipped: int = Field(..., description="Checked-out rows skipped for a missing email or due date")
    recipients: int = Field(..., description="Distinct recipients with at least one reminder")
    emails_sent: int = Field(..., description="Emails handed to the transport successfully")
    failed_recipients: List[str] = Field(default_factory=list, description="Recipients whose delivery failed")
    emails: List[ReminderEmailOut] = Field(default_factory=list, description="Composed emails (dry runs only)")


# PUBLIC_INTERFACE
class ItemOut(BaseModel):
    """
    Schema returned by the API for an inventory row.
    """

    row_index: int = Field(..., description="0-based row position in the Items sheet")
    id: str = Field(..., description="Human-assigned item ID")
    name: str = Field(..., description="Item name")
    status: Optional[str] = Field(default=None, description="'Checked In', 'Checked Out', or null when blank")
    holder_name: str = Field("", description="Name of the current holder")
    holder_email: str = Field("", description="Email of the current holder")
    due_date: Optional[date] = Field(default=None, description="Return date, null when missing or invalid")


# PUBLIC_INTERFACE
class InitializeRowsOut(BaseModel):
    initialized: int = Field(..., description="Number of rows given the default status")
