from __future__ import annotations

import json
import os
import sqlite3
from contextlib import contextmanager
from dataclasses import dataclass
from datetime import date, datetime
from typing import Any, Generator, List, Optional, Sequence

from .models import CellValue
from .repositories import Sheet, Spreadsheet, _write_cells


@dataclass(frozen=True)
class _Cols:
    table: str = "sheet_rows"
    sheet: str = "sheet"
    row_index: str = "row_index"
    cells: str = "cells"
    sheets_table: str = "sheets"
    name: str = "name"


_COLS = _Cols()


def encode_cell(value: CellValue) -> Any:
    """
    Encode a cell as JSON-safe data. Date values are tagged so that they come
    back as dates rather than text.
    """
    if isinstance(value, datetime):
        return {"$datetime": value.isoformat()}
    if isinstance(value, date):
        return {"$date": value.isoformat()}
    return value


def decode_cell(value: Any) -> CellValue:
    if isinstance(value, dict):
        if "$datetime" in value:
            return datetime.fromisoformat(value["$datetime"])
        if "$date" in value:
            return date.fromisoformat(value["$date"])
        raise ValueError(f"Unknown cell tag: {sorted(value)}")
    return value


class SQLiteSheet(Sheet):
    """One sheet stored as JSON-encoded rows keyed by (sheet, row_index)."""

    def __init__(self, owner: "SQLiteSpreadsheet", name: str) -> None:
        self._owner = owner
        self.name = name

    def _load(self, conn: sqlite3.Connection, row_index: int) -> List[CellValue]:
        row = conn.execute(
            f"SELECT {_COLS.cells} FROM {_COLS.table} WHERE {_COLS.sheet} = ? AND {_COLS.row_index} = ?",
            (self.name, row_index),
        ).fetchone()
        if row is None:
            return []
        return [decode_cell(c) for c in json.loads(row[_COLS.cells])]

    def _store(self, conn: sqlite3.Connection, row_index: int, cells: Sequence[CellValue]) -> None:
        conn.execute(
            f"""
            INSERT INTO {_COLS.table} ({_COLS.sheet}, {_COLS.row_index}, {_COLS.cells})
            VALUES (?, ?, ?)
            ON CONFLICT({_COLS.sheet}, {_COLS.row_index}) DO UPDATE SET {_COLS.cells} = excluded.{_COLS.cells}
            """,
            (self.name, row_index, json.dumps([encode_cell(c) for c in cells])),
        )

    def read_all_rows(self) -> List[List[CellValue]]:
        with self._owner._conn() as conn:
            rows = conn.execute(
                f"""
                SELECT {_COLS.row_index}, {_COLS.cells} FROM {_COLS.table}
                WHERE {_COLS.sheet} = ?
                ORDER BY {_COLS.row_index} ASC
                """,
                (self.name,),
            ).fetchall()
        result: List[List[CellValue]] = []
        for r in rows:
            # Gaps left by sparse writes read back as empty rows
            while len(result) < int(r[_COLS.row_index]):
                result.append([])
            result.append([decode_cell(c) for c in json.loads(r[_COLS.cells])])
        return result

    def write_range(self, row_index: int, start_column: int, values: Sequence[CellValue]) -> None:
        if row_index < 0 or start_column < 0:
            raise IndexError(f"Invalid range origin ({row_index}, {start_column})")
        with self._owner._conn() as conn:
            cells = _write_cells(self._load(conn, row_index), start_column, values)
            self._store(conn, row_index, cells)

    def append_row(self, values: Sequence[CellValue]) -> int:
        with self._owner._conn() as conn:
            row = conn.execute(
                f"SELECT MAX({_COLS.row_index}) AS last FROM {_COLS.table} WHERE {_COLS.sheet} = ?",
                (self.name,),
            ).fetchone()
            index = 0 if row is None or row["last"] is None else int(row["last"]) + 1
            self._store(conn, index, values)
            return index


class SQLiteSpreadsheet(Spreadsheet):
    """
    Lightweight SQLite store implementing the Spreadsheet interface.
    """

    def __init__(self, db_path: str, time_zone: str) -> None:
        os.makedirs(os.path.dirname(db_path) or ".", exist_ok=True)
        self._db_path = db_path
        self._time_zone = time_zone
        self._init_db()

    @contextmanager
    def _conn(self) -> Generator[sqlite3.Connection, None, None]:
        conn = sqlite3.connect(self._db_path)
        conn.row_factory = sqlite3.Row
        try:
            yield conn
            conn.commit()
        finally:
            conn.close()

    def _init_db(self) -> None:
        with self._conn() as conn:
            conn.execute(
                f"""
                CREATE TABLE IF NOT EXISTS {_COLS.sheets_table} (
                    {_COLS.name} TEXT PRIMARY KEY
                )
                """
            )
            conn.execute(
                f"""
                CREATE TABLE IF NOT EXISTS {_COLS.table} (
                    {_COLS.sheet} TEXT NOT NULL,
                    {_COLS.row_index} INTEGER NOT NULL,
                    {_COLS.cells} TEXT NOT NULL,
                    PRIMARY KEY ({_COLS.sheet}, {_COLS.row_index})
                )
                """
            )

    @property
    def time_zone(self) -> str:
        return self._time_zone

    def get_sheet(self, name: str) -> Optional[Sheet]:
        with self._conn() as conn:
            row = conn.execute(
                f"SELECT {_COLS.name} FROM {_COLS.sheets_table} WHERE {_COLS.name} = ?", (name,)
            ).fetchone()
        return SQLiteSheet(self, name) if row else None

    def create_sheet(self, name: str, header: Optional[Sequence[CellValue]] = None) -> Sheet:
        existing = self.get_sheet(name)
        if existing is not None:
            return existing
        with self._conn() as conn:
            conn.execute(f"INSERT INTO {_COLS.sheets_table} ({_COLS.name}) VALUES (?)", (name,))
        sheet = SQLiteSheet(self, name)
        if header is not None:
            sheet.append_row(header)
        return sheet
