"""I/O helpers — decode workbooks into typed cell grids, write JSON artifacts."""

from __future__ import annotations

import json
import logging
import zipfile
from collections.abc import Iterable
from dataclasses import dataclass, field
from datetime import date, datetime, time, timedelta
from pathlib import Path
from typing import Any

import openpyxl
import xlrd
from openpyxl.utils.datetime import to_excel
from openpyxl.utils.exceptions import InvalidFileException
from xlrd.compdoc import CompDocError

from dispo_parser.errors import WorkbookError
from dispo_parser.models import Cell, CellKind

logger = logging.getLogger(__name__)

OPENPYXL_SUFFIXES = (".xlsx", ".xlsm", ".xltx", ".xltm")
XLRD_SUFFIXES = (".xls",)

Grid = list[list[Cell]]


@dataclass
class WorkbookGrid:
    """Decoded workbook: sheet names in workbook order plus each sheet's rows."""

    path: Path
    sheet_names: list[str] = field(default_factory=list)
    sheets: dict[str, Grid] = field(default_factory=dict)

    def rows(self, sheet_name: str) -> Grid:
        try:
            return self.sheets[sheet_name]
        except KeyError:
            raise WorkbookError(f"Sheet not found: {sheet_name!r} in {self.path.name}") from None


# ── Used-range trimming ─────────────────────────────────────────


def _trim_row(cells: Iterable[Cell]) -> list[Cell]:
    row = list(cells)
    while row and row[-1].is_empty:
        row.pop()
    return row


def _trim_grid(rows: Iterable[Iterable[Cell]]) -> Grid:
    grid = [_trim_row(r) for r in rows]
    while grid and not grid[-1]:
        grid.pop()
    return grid


# ── xlrd (.xls) ─────────────────────────────────────────────────


def _xlrd_cell(cell: Any) -> Cell:
    ctype = cell.ctype
    if ctype == xlrd.XL_CELL_TEXT:
        return Cell(CellKind.TEXT, cell.value)
    if ctype == xlrd.XL_CELL_NUMBER:
        return Cell(CellKind.NUMBER, float(cell.value))
    if ctype == xlrd.XL_CELL_DATE:
        return Cell(CellKind.DATETIME, float(cell.value))
    if ctype == xlrd.XL_CELL_BOOLEAN:
        return Cell(CellKind.BOOLEAN, bool(cell.value))
    if ctype == xlrd.XL_CELL_ERROR:
        return Cell(CellKind.ERROR, xlrd.error_text_from_code.get(cell.value, "#ERR"))
    return Cell.empty()


def _read_xls(path: Path) -> WorkbookGrid:
    try:
        book = xlrd.open_workbook(str(path))
    except (xlrd.XLRDError, CompDocError, OSError) as exc:
        raise WorkbookError(f"Could not read workbook {path}: {exc}") from exc

    grid = WorkbookGrid(path=path, sheet_names=[str(n) for n in book.sheet_names()])
    try:
        for name in grid.sheet_names:
            sheet = book.sheet_by_name(name)
            grid.sheets[name] = _trim_grid(
                (_xlrd_cell(c) for c in sheet.row(r)) for r in range(sheet.nrows)
            )
    except xlrd.XLRDError as exc:
        raise WorkbookError(f"Could not decode workbook {path}: {exc}") from exc
    finally:
        book.release_resources()
    return grid


# ── openpyxl (.xlsx family) ─────────────────────────────────────


def _openpyxl_cell(cell: Any) -> Cell:
    value = cell.value
    if value is None:
        return Cell.empty()
    if getattr(cell, "data_type", None) == "e":
        return Cell(CellKind.ERROR, str(value))
    if isinstance(value, bool):
        return Cell(CellKind.BOOLEAN, value)
    if isinstance(value, (int, float)):
        return Cell(CellKind.NUMBER, value)
    if isinstance(value, timedelta):
        return Cell(CellKind.DURATION, value.total_seconds() / 86400)
    if isinstance(value, (datetime, date, time)):
        return Cell(CellKind.DATETIME, float(to_excel(value)))
    return Cell(CellKind.TEXT, str(value))


def _read_openpyxl(path: Path) -> WorkbookGrid:
    try:
        book = openpyxl.load_workbook(path, data_only=True)
    except (InvalidFileException, zipfile.BadZipFile, KeyError, OSError) as exc:
        raise WorkbookError(f"Could not read workbook {path}: {exc}") from exc

    grid = WorkbookGrid(path=path, sheet_names=list(book.sheetnames))
    try:
        for ws in book.worksheets:
            grid.sheets[ws.title] = _trim_grid(
                (_openpyxl_cell(c) for c in row) for row in ws.iter_rows()
            )
    finally:
        book.close()
    return grid


# ── Loading ─────────────────────────────────────────────────────


def read_workbook(path: Path) -> WorkbookGrid:
    """Decode every sheet of *path* into rows of typed cells.

    Raises
    ------
    WorkbookError
        If *path* does not exist, is not a file, has an unsupported
        extension, or the decoder rejects it.
    """
    path = Path(path)
    if not path.exists():
        raise WorkbookError(f"Input file not found: {path}")
    if not path.is_file():
        raise WorkbookError(f"Input path is not a file: {path}")

    suffix = path.suffix.lower()
    if suffix in XLRD_SUFFIXES:
        grid = _read_xls(path)
    elif suffix in OPENPYXL_SUFFIXES:
        grid = _read_openpyxl(path)
    else:
        raise WorkbookError(f"Unsupported file type: {suffix!r}. Use .xls or .xlsx")

    logger.debug("Decoded %s: sheets=%s", path.name, grid.sheet_names)
    return grid


# ── Writing ─────────────────────────────────────────────────────


def _json_default(obj: Any) -> Any:
    if isinstance(obj, Path):
        return str(obj)
    if isinstance(obj, (datetime, date)):
        return obj.isoformat()
    item = getattr(obj, "item", None)
    if callable(item):
        converted = item()
        if isinstance(converted, (str, int, float, bool)) or converted is None:
            return converted
    raise TypeError(f"Object of type {type(obj).__name__} is not JSON serializable")


def write_json(path: Path, data: Any) -> Path:
    """Write *data* as pretty-printed JSON to *path* (atomic + deterministic)."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)

    payload = json.dumps(
        data,
        indent=2,
        sort_keys=True,
        ensure_ascii=False,
        default=_json_default,
    ) + "\n"
    tmp_path = path.with_suffix(path.suffix + ".tmp")
    tmp_path.write_text(payload, encoding="utf-8")
    tmp_path.replace(path)
    return path
