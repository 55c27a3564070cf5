"""Build named-column DataFrames from decoded sheet grids."""

from __future__ import annotations

import logging
from collections.abc import Sequence
from pathlib import Path
from typing import Any

import pandas as pd

from dispo_parser.errors import DuplicateColumnsError, InvalidSheetCountError, NoHeadersFoundError
from dispo_parser.io import read_workbook
from dispo_parser.models import Cell, CellKind

logger = logging.getLogger(__name__)

EXPECTED_SHEET_COUNT = 1


def decode_text(text: str) -> str:
    """Drop NUL code units that TMS exports embed in text cells.

    The text is walked as UTF-16 code units; zero units are removed and each
    remaining unit is narrowed to its low byte.
    """
    raw = text.encode("utf-16-le", errors="surrogatepass")
    units = (int.from_bytes(raw[i:i + 2], "little") for i in range(0, len(raw), 2))
    return "".join(chr(unit & 0xFF) for unit in units if unit != 0)


def display_value(value: Any) -> str:
    """Generic display form of a table value."""
    if value is None:
        return ""
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def cell_to_value(cell: Cell) -> Any:
    kind = cell.kind
    if kind is CellKind.TEXT:
        return decode_text(str(cell.value))
    if kind in (CellKind.NUMBER, CellKind.BOOLEAN):
        return cell.value
    if kind in (CellKind.DATETIME, CellKind.DURATION):
        if isinstance(cell.value, str):
            return decode_text(cell.value)
        return float(cell.value)
    # EMPTY and ERROR cells carry no usable value.
    return None


def header_names(rows: Sequence[Sequence[Cell]], sheet: str = "") -> list[str]:
    if not rows:
        raise NoHeadersFoundError(sheet)
    names: list[str] = []
    for cell in rows[0]:
        if cell.kind is CellKind.TEXT:
            names.append(decode_text(str(cell.value)))
        else:
            names.append(decode_text(display_value(cell.value)))
    return names


def _find_duplicates(names: Sequence[str]) -> list[str]:
    seen: set[str] = set()
    dupes: set[str] = set()
    for name in names:
        if name in seen:
            dupes.add(name)
        seen.add(name)
    return sorted(dupes)


def build_table(rows: Sequence[Sequence[Cell]], sheet: str = "") -> pd.DataFrame:
    """Build a table from *rows*; the first row is the header.

    Every column is exactly ``len(rows) - 1`` long: rows shorter than the
    header are padded with ``None``, cells beyond the header are ignored.
    """
    names = header_names(rows, sheet)
    duplicates = _find_duplicates(names)
    if duplicates:
        raise DuplicateColumnsError(duplicates)

    data_rows = rows[1:]
    columns: dict[str, pd.Series] = {}
    for col_idx, name in enumerate(names):
        values = [
            cell_to_value(row[col_idx]) if col_idx < len(row) else None
            for row in data_rows
        ]
        columns[name] = pd.Series(values, dtype=object)

    df = pd.DataFrame(columns, columns=names)
    logger.debug("Built table %r: %d rows x %d columns", sheet, len(df), len(names))
    return df


def parse_workbook(path: Path) -> pd.DataFrame:
    """Decode *path* and build the table of its single sheet."""
    workbook = read_workbook(path)
    actual = len(workbook.sheet_names)
    if actual != EXPECTED_SHEET_COUNT:
        raise InvalidSheetCountError(EXPECTED_SHEET_COUNT, actual)

    sheet = workbook.sheet_names[0]
    df = build_table(workbook.rows(sheet), sheet)
    logger.info("Loaded %s: %d rows x %d columns", Path(path).name, len(df), len(df.columns))
    return df
