from __future__ import annotations

from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status

from ..auth import require_trigger_auth
from ..models import ItemStatus
from ..repositories import Spreadsheet, get_spreadsheet
from ..schemas import InitializeRowsOut, ItemOut
from ..services import initialize_new_rows, read_rows
from ..settings import Settings, get_settings

router = APIRouter(
    prefix="/api/v1/items",
    tags=["items"],
)


# PUBLIC_INTERFACE
@router.get(
    "/",
    response_model=List[ItemOut],
    summary="List Items",
    description=(
        "List inventory rows as normalized items, in sheet order.\n\n"
        "Query parameters:\n"
        "- status: 'checked_in', 'checked_out' or 'unset' to filter by status"
    ),
    responses={
        200: {"description": "Items retrieved"},
        400: {"description": "Invalid status filter"},
        503: {"description": "Items sheet not found"},
    },
)
def list_items(
    status_filter: Optional[str] = Query(None, alias="status", description="checked_in, checked_out or unset"),
    store: Spreadsheet = Depends(get_spreadsheet),
    settings: Settings = Depends(get_settings),
) -> List[ItemOut]:
    """
    Return every item row, optionally filtered by status.
    """
    filters = {"checked_in": ItemStatus.CHECKED_IN, "checked_out": ItemStatus.CHECKED_OUT, "unset": None}
    if status_filter is not None and status_filter.strip().lower() not in filters:
        raise HTTPException(status_code=400, detail="status must be 'checked_in', 'checked_out' or 'unset'")

    rows = read_rows(store, settings)
    if status_filter is not None:
        wanted = filters[status_filter.strip().lower()]
        rows = [r for r in rows if r.status is wanted]
    return [
        ItemOut(
            row_index=r.row_index,
            id=r.id,
            name=r.name,
            status=r.status.value if r.status else None,
            holder_name=r.holder_name,
            holder_email=r.holder_email,
            due_date=r.due_date,
        )
        for r in rows
    ]


# PUBLIC_INTERFACE
@router.post(
    "/initialize",
    response_model=InitializeRowsOut,
    status_code=status.HTTP_200_OK,
    summary="Initialize New Rows",
    description="Set status 'Checked In' on every item row that has an ID but a blank status.",
    dependencies=[Depends(require_trigger_auth)],
)
def initialize_rows(
    store: Spreadsheet = Depends(get_spreadsheet),
    settings: Settings = Depends(get_settings),
) -> InitializeRowsOut:
    """
    Apply default values to newly added item rows.
    """
    return InitializeRowsOut(initialized=initialize_new_rows(store, settings))
