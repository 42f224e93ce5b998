from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class _ItemsSheet:
    """
    Column indices (0-based) of the Items sheet.

    status, holder_name, holder_email and return_date must stay contiguous and
    in that order: state transitions write them as a single range starting at
    ``status``.
    """

    name: int = 1
    status: int = 2
    holder_name: int = 3
    holder_email: int = 4
    return_date: int = 5
    id: int = 6
    header_rows: int = 1

    @property
    def update_start_column(self) -> int:
        return self.status

    @property
    def update_column_count(self) -> int:
        return self.return_date - self.status + 1


@dataclass(frozen=True)
class _CheckOutForm:
    """Positions of check-out form answers in a submission's values array."""

    holder_email: int = 1
    return_date: int = 2
    item_ids: int = 3
    holder_name: int = 4


@dataclass(frozen=True)
class _CheckInForm:
    """Positions of check-in form answers in a submission's values array."""

    item_ids: int = 2


ITEMS_SHEET = _ItemsSheet()
CHECKOUT_FORM = _CheckOutForm()
CHECKIN_FORM = _CheckInForm()
