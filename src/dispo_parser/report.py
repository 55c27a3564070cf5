"""Excel writer — produces Job_Rows.xlsx for the dispatch planners."""

from __future__ import annotations

from collections.abc import Sequence
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

from openpyxl import Workbook
from openpyxl.styles import Alignment, Font, PatternFill
from openpyxl.utils import get_column_letter
from openpyxl.worksheet.table import Table, TableStyleInfo
from openpyxl.worksheet.worksheet import Worksheet

from dispo_parser.models import BatchReport, JobRow, TemperatureRange

JOB_SHEET_FILE = "Job_Rows.xlsx"

# ── Style constants ──────────────────────────────────────────────

HEADER_FONT = Font(name="Calibri", bold=True, size=11, color="FFFFFF")
HEADER_FILL = PatternFill(start_color="2F5496", end_color="2F5496", fill_type="solid")
HEADER_ALIGN = Alignment(horizontal="center", vertical="center", wrap_text=True)

TITLE_FONT = Font(name="Calibri", bold=True, size=14, color="2F5496")
SUBTITLE_FONT = Font(name="Calibri", bold=False, size=10, color="808080")
LABEL_FONT = Font(name="Calibri", bold=True, size=11)
VALUE_FONT = Font(name="Calibri", size=11)
WARN_FONT = Font(name="Calibri", italic=True, size=10, color="CC6600")

NOTE_FILL = PatternFill(start_color="FFF2CC", end_color="FFF2CC", fill_type="solid")
INVALID_FILL = PatternFill(start_color="F8CBAD", end_color="F8CBAD", fill_type="solid")

INT_FMT = "#,##0"
DATE_FMT = "yyyy-mm-dd"
TIME_FMT = "hh:mm"
DATETIME_FMT = "yyyy-mm-dd hh:mm"

JOB_COLUMNS: list[str] = [
    "Job Number",
    "HAWB Number",
    "Mode",
    "Temperature",
    "Quantity",
    "Address",
    "Postal Code",
    "City",
    "Country",
    "Equipment",
    "Planned Date",
    "Planned Time",
    "Tolerance",
    "Early",
    "Late",
    "Contact Name",
]

_COL_FORMATS: dict[str, str] = {
    "Quantity": INT_FMT,
    "Tolerance": INT_FMT,
    "Planned Date": DATE_FMT,
    "Planned Time": TIME_FMT,
    "Early": DATETIME_FMT,
    "Late": DATETIME_FMT,
}

_AUTO_WIDTH_SAMPLE_ROWS = 300
_EXCEL_FORMULA_PREFIXES = ("=", "+", "-", "@")


# ── Helpers ──────────────────────────────────────────────────────


def _style_header(ws: Worksheet, ncols: int) -> None:
    for c in range(1, ncols + 1):
        cell = ws.cell(row=1, column=c)
        cell.font = HEADER_FONT
        cell.fill = HEADER_FILL
        cell.alignment = HEADER_ALIGN


def _auto_width(ws: Worksheet) -> None:
    max_row = min(ws.max_row, _AUTO_WIDTH_SAMPLE_ROWS + 1)
    for c_idx in range(1, ws.max_column + 1):
        width = 0
        for row in ws.iter_rows(min_row=1, max_row=max_row, min_col=c_idx, max_col=c_idx):
            width = max(width, len(str(row[0].value or "")))
        ws.column_dimensions[get_column_letter(c_idx)].width = min(width + 4, 40)


def _apply_number_formats(ws: Worksheet) -> None:
    if ws.max_row < 2:
        return
    for c_idx, name in enumerate(JOB_COLUMNS, 1):
        fmt = _COL_FORMATS.get(name)
        if not fmt:
            continue
        for row in ws.iter_rows(min_row=2, max_row=ws.max_row, min_col=c_idx, max_col=c_idx):
            for cell in row:
                cell.number_format = fmt


def _excel_text(val: str) -> str:
    # Keep TMS free text from being evaluated as a formula.
    if val.startswith("'"):
        return val
    stripped = val.lstrip()
    if stripped and stripped[0] in _EXCEL_FORMULA_PREFIXES:
        return f"'{val}"
    return val


def _temperature_text(row: JobRow) -> str:
    return ", ".join(tr.label for tr in row.temperature_ranges)


def _job_values(row: JobRow) -> list[Any]:
    planned = row.calculated_date
    return [
        _excel_text(row.job_number),
        _excel_text(row.hawb_number),
        row.mode.value,
        _temperature_text(row),
        row.quantity,
        _excel_text(row.address),
        _excel_text(row.postal_code),
        _excel_text(row.city),
        _excel_text(row.country),
        _excel_text(row.equipment),
        planned.date(),
        planned.time(),
        row.tolerance,
        row.early_date,
        row.late_date,
        _excel_text(row.contact_name),
    ]


def _add_excel_table(ws: Worksheet, name: str, ncols: int, nrows: int) -> None:
    if nrows < 1 or ncols < 1:
        return
    ref = f"A1:{get_column_letter(ncols)}{nrows + 1}"
    table = Table(displayName=name, ref=ref)
    table.tableStyleInfo = TableStyleInfo(
        name="TableStyleMedium9", showFirstColumn=False,
        showLastColumn=False, showRowStripes=True, showColumnStripes=False,
    )
    ws.add_table(table)


def _write_jobs(wb: Workbook, rows: Sequence[JobRow]) -> None:
    ws = wb.create_sheet(title="Jobs")
    for c_idx, name in enumerate(JOB_COLUMNS, 1):
        ws.cell(row=1, column=c_idx, value=name)

    temperature_col = JOB_COLUMNS.index("Temperature") + 1
    for r_idx, job in enumerate(rows, 2):
        for c_idx, value in enumerate(_job_values(job), 1):
            ws.cell(row=r_idx, column=c_idx, value=value)
        if TemperatureRange.INVALID in job.temperature_ranges:
            ws.cell(row=r_idx, column=temperature_col).fill = INVALID_FILL

    _style_header(ws, len(JOB_COLUMNS))
    _apply_number_formats(ws)
    ws.freeze_panes = "A2"
    _auto_width(ws)
    _add_excel_table(ws, "Jobs", len(JOB_COLUMNS), len(rows))


def _write_batch(wb: Workbook, report: BatchReport) -> None:
    ws = wb.create_sheet(title="Batch")

    ws.cell(row=1, column=1, value="dispo-parser — Batch").font = TITLE_FONT
    ws.merge_cells("A1:C1")
    generated = datetime.now(timezone.utc).strftime("%Y-%m-%d %H:%M UTC")
    ws.cell(row=2, column=1, value=f"Generated {generated}").font = SUBTITLE_FONT
    ws.merge_cells("A2:C2")

    row = 4
    counts = [
        ("CL View rows", report.cl_view_rows),
        ("Shipper Site rows", report.shipper_site_rows),
        ("Job rows", report.joined_rows),
        ("Unmatched CL View rows", report.unmatched_cl_view_rows),
        ("Unmatched Shipper Site rows", report.unmatched_shipper_site_rows),
        ("Defaulted dates", report.defaulted_dates),
        ("Invalid temperature ranges", report.invalid_temperature_ranges),
    ]
    for label, value in counts:
        lbl_cell = ws.cell(row=row, column=1, value=label)
        lbl_cell.font = LABEL_FONT
        lbl_cell.fill = NOTE_FILL
        val_cell = ws.cell(row=row, column=2, value=value)
        val_cell.font = VALUE_FONT
        val_cell.fill = NOTE_FILL
        val_cell.number_format = INT_FMT
        row += 1

    row += 1
    ws.cell(row=row, column=1, value="Notes").font = LABEL_FONT
    row += 1
    if report.warnings:
        for warn in report.warnings:
            ws.cell(row=row, column=1, value=f"⚠ {warn}").font = WARN_FONT
            row += 1
    else:
        ws.cell(row=row, column=1, value="No warnings").font = VALUE_FONT

    ws.column_dimensions["A"].width = 30
    ws.column_dimensions["B"].width = 14
    ws.column_dimensions["C"].width = 14


# ── Public API ───────────────────────────────────────────────────


def write_job_sheet(
    out_dir: Path,
    rows: Sequence[JobRow],
    report: BatchReport | None = None,
) -> Path:
    """Write ``Job_Rows.xlsx`` (``Jobs`` + ``Batch`` sheets) and return the path."""
    if report is None:
        report = BatchReport(joined_rows=len(rows))

    out_dir = Path(out_dir)
    out_dir.mkdir(parents=True, exist_ok=True)
    sheet_path = out_dir / JOB_SHEET_FILE

    wb = Workbook()
    active_sheet = wb.active
    if active_sheet is not None:
        wb.remove(active_sheet)

    _write_jobs(wb, rows)
    _write_batch(wb, report)

    tmp_path = out_dir / "Job_Rows.tmp.xlsx"
    wb.save(tmp_path)
    tmp_path.replace(sheet_path)
    return sheet_path
