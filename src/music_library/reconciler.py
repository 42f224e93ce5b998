from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Dict, List, Sequence

from .layout import ITEMS_SHEET
from .models import CellValue, ItemStatus, Row, cell_to_text
from .repositories import Sheet

logger = logging.getLogger(__name__)


# PUBLIC_INTERFACE
def parse_item_ids(raw: CellValue) -> List[str]:
    """
    Split a free-text item ID list ("10, 12,  7") into tokens.

    Whitespace around the list and each token is trimmed, empty tokens are
    dropped and duplicates are kept in request order.
    """
    text = cell_to_text(raw).strip()
    return [token.strip() for token in text.split(",") if token.strip()]


@dataclass(frozen=True)
class StateTransition:
    """The four Items sheet cells written to a matched row, status first."""

    status: ItemStatus
    holder_name: str = ""
    holder_email: str = ""
    return_date: CellValue = ""

    def cells(self) -> List[CellValue]:
        return [self.status.value, self.holder_name, self.holder_email, self.return_date]


CHECK_IN = StateTransition(ItemStatus.CHECKED_IN)


def check_out(holder_name: str, holder_email: str, return_date: CellValue) -> StateTransition:
    return StateTransition(ItemStatus.CHECKED_OUT, holder_name, holder_email, return_date)


@dataclass(frozen=True)
class ReconcileResult:
    requested_ids: List[str]
    matched_count: int
    not_found_ids: List[str] = field(default_factory=list)
    matched_rows: List[int] = field(default_factory=list)


# PUBLIC_INTERFACE
def build_id_index(rows: Sequence[Row]) -> Dict[str, Row]:
    """
    Map each item ID to the first row carrying it, scanning top to bottom.
    IDs are keyed exactly as the cell reads. Header rows and rows with a
    blank ID are never indexed.
    """
    index: Dict[str, Row] = {}
    for row in rows:
        if row.row_index < ITEMS_SHEET.header_rows or not row.id.strip():
            continue
        index.setdefault(row.id, row)
    return index


# PUBLIC_INTERFACE
def reconcile(
    requested_ids: Sequence[str],
    rows: Sequence[Row],
    sheet: Sheet,
    transition: StateTransition,
    log_prefix: str = "[Check In]",
) -> ReconcileResult:
    """
    Apply ``transition`` to the row matching each requested ID.

    Each occurrence of an ID is handled on its own, so a repeated ID rewrites
    the same row again. IDs with no matching row are collected in request
    order and reported; they never abort the batch.

    Raises:
        ValueError if the transition does not cover exactly the update columns.
    """
    values = transition.cells()
    if len(values) != ITEMS_SHEET.update_column_count:
        raise ValueError(
            f"State transition writes {len(values)} cells, expected {ITEMS_SHEET.update_column_count}"
        )
    index = build_id_index(rows)
    matched_rows: List[int] = []
    not_found: List[str] = []

    for item_id in requested_ids:
        row = index.get(str(item_id))
        if row is None:
            not_found.append(item_id)
            logger.info("%s Item %s not found in %s sheet", log_prefix, item_id, sheet.name, extra={"item_id": item_id})
            continue
        sheet.write_range(row.row_index, ITEMS_SHEET.update_start_column, values)
        matched_rows.append(row.row_index)
        logger.info(
            "%s Item %s -> %s (row %d)",
            log_prefix,
            item_id,
            transition.status.value,
            row.row_index + 1,
            extra={"item_id": item_id, "row_index": row.row_index},
        )

    logger.info("%s Summary - Processed: %d/%d", log_prefix, len(matched_rows), len(requested_ids))
    if not_found:
        logger.warning("%s Not found IDs: %s", log_prefix, ", ".join(not_found))

    return ReconcileResult(
        requested_ids=list(requested_ids),
        matched_count=len(matched_rows),
        not_found_ids=not_found,
        matched_rows=matched_rows,
    )
