"""JSON artifact persistence for a parse run."""

from __future__ import annotations

from collections.abc import Iterable
from pathlib import Path

from dispo_parser.io import write_json
from dispo_parser.models import BatchReport, JobRow, RunManifest

JOB_ROWS_FILE = "job_rows.json"
BATCH_REPORT_FILE = "batch_report.json"
MANIFEST_FILE = "run_manifest.json"


def write_job_rows(out_dir: Path, rows: Iterable[JobRow]) -> Path:
    """Write ``job_rows.json`` (camelCase records, join order) and return the path."""
    return write_json(Path(out_dir) / JOB_ROWS_FILE, [row.to_dict() for row in rows])


def write_batch_report(out_dir: Path, report: BatchReport) -> Path:
    return write_json(Path(out_dir) / BATCH_REPORT_FILE, report.to_dict())


def write_manifest(out_dir: Path, manifest: RunManifest) -> Path:
    return write_json(Path(out_dir) / MANIFEST_FILE, manifest.to_dict())
