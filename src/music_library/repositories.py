from __future__ import annotations

from abc import ABC, abstractmethod
from threading import RLock
from typing import Dict, Iterable, List, Optional, Sequence

from .models import CellValue
from .settings import get_settings


# PUBLIC_INTERFACE
class Sheet(ABC):
    """One named sheet of the inventory store: an ordered grid of loosely-typed cells."""

    name: str

    @abstractmethod
    def read_all_rows(self) -> List[List[CellValue]]:
        """Return a snapshot of every row, header included, in sheet order."""

    @abstractmethod
    def write_range(self, row_index: int, start_column: int, values: Sequence[CellValue]) -> None:
        """
        Overwrite ``len(values)`` cells of one row starting at ``start_column``.
        Both indices are 0-based. Rows are padded with None when shorter.
        """

    @abstractmethod
    def append_row(self, values: Sequence[CellValue]) -> int:
        """Append a row and return its 0-based index."""


# PUBLIC_INTERFACE
class Spreadsheet(ABC):
    """Abstract inventory store: a set of named sheets sharing one time zone."""

    @property
    @abstractmethod
    def time_zone(self) -> str:
        """IANA time zone all dates in the store are interpreted in."""

    @abstractmethod
    def get_sheet(self, name: str) -> Optional[Sheet]:
        """Return the sheet with ``name``, or None if it does not exist."""

    @abstractmethod
    def create_sheet(self, name: str, header: Optional[Sequence[CellValue]] = None) -> Sheet:
        """Return the sheet with ``name``, creating it (with an optional header row) if missing."""


def _write_cells(row: List[CellValue], start_column: int, values: Sequence[CellValue]) -> List[CellValue]:
    end = start_column + len(values)
    if len(row) < end:
        row = row + [None] * (end - len(row))
    row[start_column:end] = list(values)
    return row


class InMemorySheet(Sheet):
    """
    Thread-safe in-memory sheet suitable for testing and default runtime.
    """

    def __init__(self, name: str, rows: Optional[Iterable[Sequence[CellValue]]] = None) -> None:
        self.name = name
        self._lock = RLock()
        self._rows: List[List[CellValue]] = [list(r) for r in rows or []]

    def read_all_rows(self) -> List[List[CellValue]]:
        with self._lock:
            # Return copies to avoid external mutation
            return [list(r) for r in self._rows]

    def write_range(self, row_index: int, start_column: int, values: Sequence[CellValue]) -> None:
        if row_index < 0 or start_column < 0:
            raise IndexError(f"Invalid range origin ({row_index}, {start_column})")
        with self._lock:
            while len(self._rows) <= row_index:
                self._rows.append([])
            self._rows[row_index] = _write_cells(self._rows[row_index], start_column, values)

    def append_row(self, values: Sequence[CellValue]) -> int:
        with self._lock:
            self._rows.append(list(values))
            return len(self._rows) - 1


class InMemorySpreadsheet(Spreadsheet):
    def __init__(self, time_zone: str, sheets: Optional[Dict[str, Iterable[Sequence[CellValue]]]] = None) -> None:
        self._time_zone = time_zone
        self._lock = RLock()
        self._sheets: Dict[str, InMemorySheet] = {
            name: InMemorySheet(name, rows) for name, rows in (sheets or {}).items()
        }

    @property
    def time_zone(self) -> str:
        return self._time_zone

    def get_sheet(self, name: str) -> Optional[Sheet]:
        with self._lock:
            return self._sheets.get(name)

    def create_sheet(self, name: str, header: Optional[Sequence[CellValue]] = None) -> Sheet:
        with self._lock:
            sheet = self._sheets.get(name)
            if sheet is None:
                sheet = InMemorySheet(name, [header] if header is not None else [])
                self._sheets[name] = sheet
            return sheet


ITEMS_HEADER: List[CellValue] = [
    "Category", "Item Name", "Status", "User Name", "User Email", "Return Date", "Item ID",
]

_spreadsheet: Optional[Spreadsheet] = None


# PUBLIC_INTERFACE
def get_spreadsheet() -> Spreadsheet:
    """
    Return the process-wide store configured by settings, creating it on first use.
    - memory: InMemorySpreadsheet with an empty Items sheet
    - sqlite: SQLiteSpreadsheet at SQLITE_DB_PATH
    """
    global _spreadsheet
    if _spreadsheet is None:
        settings = get_settings()
        if settings.persistence_backend == "sqlite":
            from .db import SQLiteSpreadsheet

            store: Spreadsheet = SQLiteSpreadsheet(settings.sqlite_db_path, settings.time_zone)
        else:
            store = InMemorySpreadsheet(settings.time_zone)
        store.create_sheet(settings.items_sheet_name, ITEMS_HEADER)
        _spreadsheet = store
    return _spreadsheet
