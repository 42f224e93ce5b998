from __future__ import annotations

from fastapi import APIRouter, Depends, Query

from ..auth import require_trigger_auth
from ..mail import MailTransport, get_mail_transport
from ..repositories import Spreadsheet, get_spreadsheet
from ..schemas import ReminderEmailOut, ReminderRunOut
from ..services import send_daily_reminders
from ..settings import Settings, get_settings

router = APIRouter(
    prefix="/api/v1/reminders",
    tags=["reminders"],
    dependencies=[Depends(require_trigger_auth)],
)


# PUBLIC_INTERFACE
@router.post(
    "/run",
    response_model=ReminderRunOut,
    summary="Run Daily Reminders",
    description=(
        "Send one reminder email per holder with items overdue (Mondays only), due tomorrow, "
        "or due in exactly 7 days. Intended to be called once a day by a scheduler.\n\n"
        "With `dry_run=true` the emails are composed and returned without being sent."
    ),
    responses={
        200: {"description": "Run completed"},
        503: {"description": "Items sheet not found"},
    },
)
def run_reminders(
    dry_run: bool = Query(False, description="Compose emails without sending them"),
    store: Spreadsheet = Depends(get_spreadsheet),
    transport: MailTransport = Depends(get_mail_transport),
    settings: Settings = Depends(get_settings),
) -> ReminderRunOut:
    """
    Run the daily reminder process and return its summary.
    """
    summary = send_daily_reminders(store, transport, settings, dry_run=dry_run)
    return ReminderRunOut(
        today=summary.today,
        is_monday=summary.is_monday,
        dry_run=summary.dry_run,
        processed=summary.processed,
        skipped=summary.skipped,
        recipients=summary.recipients,
        emails_sent=summary.emails_sent,
        failed_recipients=summary.failed_recipients,
        emails=[ReminderEmailOut(to=e.to, subject=e.subject, body=e.body) for e in summary.emails],
    )
