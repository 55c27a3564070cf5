"""Parse pipeline: two exports and a mode in, job rows and batch counts out.

Pure with respect to its inputs: the workbooks are only read, nothing is
written. Artifact persistence lives in :mod:`dispo_parser.artifacts`.
"""

from __future__ import annotations

import logging
from pathlib import Path

from dispo_parser.assemble import assemble_job_rows
from dispo_parser.dates import EPOCH
from dispo_parser.join import count_unmatched, inner_join, select_columns
from dispo_parser.mapping import resolve_mapping
from dispo_parser.models import (
    BatchReport,
    DispoMode,
    JobRow,
    ParseOptions,
    TemperatureRange,
)
from dispo_parser.table import parse_workbook

logger = logging.getLogger(__name__)


def _batch_warnings(report: BatchReport) -> list[str]:
    warnings: list[str] = []
    if report.joined_rows == 0:
        warnings.append("No job numbers matched between CL View and Shipper Site")
    if report.unmatched_cl_view_rows:
        warnings.append(
            f"{report.unmatched_cl_view_rows} CL View row(s) had no matching Shipper Site row"
        )
    if report.unmatched_shipper_site_rows:
        warnings.append(
            f"{report.unmatched_shipper_site_rows} Shipper Site row(s) had no matching CL View row"
        )
    if report.defaulted_dates:
        warnings.append(
            f"{report.defaulted_dates} job(s) have an unparseable target date (set to 1970-01-01)"
        )
    if report.invalid_temperature_ranges:
        warnings.append(
            f"{report.invalid_temperature_ranges} job(s) have an unknown temperature range"
        )
    return warnings


def create_job_rows(
    cl_view_path: Path,
    shipper_site_path: Path,
    mode: DispoMode,
    options: ParseOptions | None = None,
) -> tuple[list[JobRow], BatchReport]:
    """Build every job row for *mode* and report what was lost on the way.

    Raises
    ------
    ParseFilesError
        On any structural failure (unreadable workbook, wrong sheet count,
        missing columns, bad quantity, ...) and, under the strict policy,
        on unparseable dates or temperature text.
    """
    options = options or ParseOptions()
    mapping = resolve_mapping(mode, options.column_overrides)

    cl_view = select_columns(parse_workbook(cl_view_path), mapping.cl_view_columns())
    shipper_site = select_columns(
        parse_workbook(shipper_site_path), mapping.shipper_site_columns()
    )

    key = mapping.job_number
    joined = inner_join(cl_view, shipper_site, key)
    rows = assemble_job_rows(joined, mapping, mode, options)

    report = BatchReport(
        cl_view_rows=len(cl_view),
        shipper_site_rows=len(shipper_site),
        joined_rows=len(rows),
        unmatched_cl_view_rows=count_unmatched(cl_view, shipper_site, key),
        unmatched_shipper_site_rows=count_unmatched(shipper_site, cl_view, key),
        defaulted_dates=sum(
            1 for row in rows if EPOCH in (row.early_date, row.late_date)
        ),
        invalid_temperature_ranges=sum(
            1 for row in rows if TemperatureRange.INVALID in row.temperature_ranges
        ),
    )
    report.warnings = _batch_warnings(report)
    for warning in report.warnings:
        logger.warning(warning)

    logger.info(
        "%s batch: %d CL View x %d Shipper Site -> %d job rows",
        mode.value,
        report.cl_view_rows,
        report.shipper_site_rows,
        report.joined_rows,
    )
    return rows, report


def parse_files(cl_view: Path, shipper_site: Path, mode: str) -> list[JobRow]:
    """Parse *mode* (``"Delivery"`` / ``"Pickup"``) and build its job rows.

    Uses the default lenient options; see :func:`create_job_rows` for the
    batch counts and the strict policy.
    """
    rows, _ = create_job_rows(Path(cl_view), Path(shipper_site), DispoMode.parse(mode))
    return rows
