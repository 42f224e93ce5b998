from __future__ import annotations

from fastapi import APIRouter, Depends, status

from ..auth import require_trigger_auth
from ..repositories import Spreadsheet, get_spreadsheet
from ..schemas import FormSubmission, SubmissionResultOut
from ..services import handle_form_submission
from ..settings import Settings, get_settings

router = APIRouter(
    prefix="/api/v1/forms",
    tags=["forms"],
    dependencies=[Depends(require_trigger_auth)],
)


# PUBLIC_INTERFACE
@router.post(
    "/submissions",
    response_model=SubmissionResultOut,
    status_code=status.HTTP_200_OK,
    summary="Form Submitted",
    description=(
        "Handle a check-in or check-out form submission.\n\n"
        "The submission is routed by `sheet_name`: the check-in responses sheet checks the listed "
        "items in, the check-out responses sheet checks them out to the submitted holder. "
        "Any other sheet is ignored. Unknown item IDs are reported in `not_found_ids`."
    ),
    responses={
        200: {"description": "Submission processed"},
        503: {"description": "Items sheet not found"},
    },
)
def submit_form(
    payload: FormSubmission,
    store: Spreadsheet = Depends(get_spreadsheet),
    settings: Settings = Depends(get_settings),
) -> SubmissionResultOut:
    """
    Dispatch a form submission to check-in or check-out reconciliation.
    """
    result = handle_form_submission(store, payload.sheet_name, payload.values, settings)
    if result.reconcile is None:
        return SubmissionResultOut(action=result.action)
    return SubmissionResultOut(
        action=result.action,
        requested_ids=result.reconcile.requested_ids,
        matched_count=result.reconcile.matched_count,
        not_found_ids=result.reconcile.not_found_ids,
    )
