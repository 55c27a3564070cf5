"""CLI entry point for dispo-parser."""

from __future__ import annotations

import logging
from collections.abc import Callable
from pathlib import Path

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.panel import Panel
from rich.table import Table as RichTable

from dispo_parser import __version__
from dispo_parser.artifacts import write_batch_report, write_job_rows, write_manifest
from dispo_parser.errors import ParseFilesError
from dispo_parser.mapping import load_mapping_profile, parse_mapping_overrides, resolve_mapping
from dispo_parser.models import (
    DEFAULT_DATE_FORMAT,
    BatchReport,
    DispoMode,
    ExtractionPolicy,
    ParseOptions,
    RunManifest,
)
from dispo_parser.pipeline import create_job_rows
from dispo_parser.report import write_job_sheet
from dispo_parser.utils import sha256_file, utcnow_iso

app = typer.Typer(
    name="dispo",
    help="dispo-parser — Turn TMS CL View + Shipper Site exports into dispo job rows.",
    add_completion=False,
    no_args_is_help=True,
)
console = Console()


def _noop(*_args: object, **_kwargs: object) -> None:
    return None


def _printer(quiet: bool) -> Callable[..., None]:
    return _noop if quiet else console.print


def _err(msg: str) -> None:
    console.print(f"[red]x[/red] {msg}")


# ── Helpers ──────────────────────────────────────────────────────


def _version_callback(value: bool) -> None:
    if value:
        console.print(f"dispo-parser v{__version__}")
        raise typer.Exit()


def _configure_logging(verbose: bool) -> None:
    handler = RichHandler(console=Console(stderr=True), show_path=False)
    handler.setFormatter(logging.Formatter("%(message)s", datefmt="[%X]"))
    package_logger = logging.getLogger("dispo_parser")
    package_logger.handlers.clear()
    package_logger.addHandler(handler)
    package_logger.setLevel(logging.DEBUG if verbose else logging.WARNING)
    package_logger.propagate = False


def _collect_overrides(profile: Path | None, col_map: list[str] | None) -> dict[str, str]:
    return parse_mapping_overrides(load_mapping_profile(profile) + (col_map or []))


def _manifest(
    out_dir: Path,
    cl_view: Path,
    shipper_site: Path,
    mode: str,
    created_at: str,
    *,
    rows_out: int = 0,
    status: str = "success",
    error_code: int | None = None,
    error_message: str = "",
) -> RunManifest:
    return RunManifest(
        version=__version__,
        mode=mode,
        cl_view_path=str(cl_view.resolve()),
        shipper_site_path=str(shipper_site.resolve()),
        cl_view_sha256=sha256_file(cl_view),
        shipper_site_sha256=sha256_file(shipper_site),
        output_dir=str(out_dir.resolve()),
        created_at_utc=created_at,
        rows_out=rows_out,
        status=status,
        error_code=error_code,
        error_message=error_message,
    )


def _write_failure_artifacts(
    out_dir: Path,
    cl_view: Path,
    shipper_site: Path,
    mode: str,
    created_at: str,
    *,
    message: str,
    error_code: int = 2,
) -> tuple[Path, Path]:
    report_path = write_batch_report(out_dir, BatchReport(warnings=[message]))
    manifest_path = write_manifest(
        out_dir,
        _manifest(
            out_dir,
            cl_view,
            shipper_site,
            mode,
            created_at,
            status="failed",
            error_code=error_code,
            error_message=message,
        ),
    )
    return report_path, manifest_path


def _fail(
    out_dir: Path,
    cl_view: Path,
    shipper_site: Path,
    mode: str,
    created_at: str,
    *,
    message: str,
    error_code: int,
) -> typer.Exit:
    report_path, manifest_path = _write_failure_artifacts(
        out_dir,
        cl_view,
        shipper_site,
        mode,
        created_at,
        message=message,
        error_code=error_code,
    )
    _err(message)
    console.print(f"  Batch report -> {report_path}")
    console.print(f"  Manifest     -> {manifest_path}")
    return typer.Exit(code=error_code)


def _summary_table(report: BatchReport) -> RichTable:
    tbl = RichTable(title="Batch Summary", show_lines=True)
    tbl.add_column("Check", style="bold")
    tbl.add_column("Result")
    tbl.add_row("CL View rows", str(report.cl_view_rows))
    tbl.add_row("Shipper Site rows", str(report.shipper_site_rows))
    tbl.add_row("Job rows", str(report.joined_rows))
    tbl.add_row("Unmatched CL View", str(report.unmatched_cl_view_rows))
    tbl.add_row("Unmatched Shipper Site", str(report.unmatched_shipper_site_rows))
    tbl.add_row("Defaulted dates", str(report.defaulted_dates))
    tbl.add_row("Invalid temperature", str(report.invalid_temperature_ranges))
    for w in report.warnings:
        tbl.add_row("Warning", f"[yellow]{w}[/yellow]")
    return tbl


# ── Callbacks ────────────────────────────────────────────────────


@app.callback()
def main(
    version: bool | None = typer.Option(
        None, "--version", "-V",
        help="Show version and exit.",
        callback=_version_callback,
        is_eager=True,
    ),
) -> None:
    """dispo-parser CLI."""


# ── parse command ────────────────────────────────────────────────


@app.command()
def parse(
    cl_view: Path = typer.Option(
        ..., "--cl-view",
        help="CL View export (.xls or .xlsx) with loads, quantities and target dates.",
    ),
    shipper_site: Path = typer.Option(
        ..., "--shipper-site",
        help="Shipper/Consignee Site export with HAWB and temperature range.",
    ),
    mode: str = typer.Option(
        ..., "--mode",
        help="Dispo mode: Delivery or Pickup (case-sensitive).",
    ),
    out_dir: Path = typer.Option(
        Path("output"), "--out-dir", "-o",
        help="Output directory for job rows + batch report + manifest.",
    ),
    col_map: list[str] | None = typer.Option(
        None, "--map", "-m",
        help="Column override: field=Column Name. E.g. --map hawb=\"HAWB #\"",
    ),
    profile: Path | None = typer.Option(
        None, "--profile",
        help="Profile file containing column overrides (field=Column Name lines).",
    ),
    strict: bool = typer.Option(
        False, "--strict",
        help="Fail on unparseable dates or temperature text instead of defaulting them.",
    ),
    date_format: str = typer.Option(
        DEFAULT_DATE_FORMAT, "--date-format",
        help="strptime format of the target date columns.",
    ),
    xlsx: bool = typer.Option(
        True, "--xlsx/--no-xlsx",
        help="Also write Job_Rows.xlsx.",
    ),
    quiet: bool = typer.Option(
        False, "--quiet", "-q",
        help="Suppress informational output; still writes all artifacts.",
    ),
    verbose: bool = typer.Option(
        False, "--verbose", "-v",
        help="Log debug details (table shapes, join counts) to stderr.",
    ),
) -> None:
    """Join the two exports and write the dispo job rows."""
    _configure_logging(verbose)
    echo = _printer(quiet)
    created_at = utcnow_iso()
    out_dir.mkdir(parents=True, exist_ok=True)

    try:
        dispo_mode = DispoMode.parse(mode)
        overrides = _collect_overrides(profile, col_map)
        resolve_mapping(dispo_mode, overrides)
    except ValueError as exc:
        raise _fail(
            out_dir, cl_view, shipper_site, mode, created_at,
            message=str(exc), error_code=2,
        ) from None

    options = ParseOptions(
        policy=ExtractionPolicy.STRICT if strict else ExtractionPolicy.LENIENT,
        date_format=date_format,
        column_overrides=overrides,
    )

    if not quiet:
        console.print(Panel(
            f"[bold]dispo-parser[/bold] v{__version__}  [dim]{dispo_mode.value}[/dim]\n"
            f"CL View:      {cl_view}\nShipper Site: {shipper_site}\nOutput:       {out_dir}",
            title="Parse Start", border_style="blue",
        ))
        if profile:
            console.print(f"  Using profile: {profile}")
        if overrides:
            console.print(f"  Column overrides: {overrides}")
        console.print(f"  Policy: {options.policy.value}, date format: {date_format}")

    try:
        echo("[blue]>[/blue] Reading and joining exports …")
        rows, report = create_job_rows(cl_view, shipper_site, dispo_mode, options)

        rows_path = write_job_rows(out_dir, rows)
        echo(f"  Job rows     -> {rows_path}")
        report_path = write_batch_report(out_dir, report)
        echo(f"  Batch report -> {report_path}")

        if xlsx:
            echo("[blue]>[/blue] Writing Job_Rows.xlsx …")
            sheet_path = write_job_sheet(out_dir, rows, report)
            echo(f"  Workbook     -> {sheet_path}")

        manifest_path = write_manifest(
            out_dir,
            _manifest(
                out_dir, cl_view, shipper_site, dispo_mode.value, created_at,
                rows_out=len(rows),
            ),
        )
        echo(f"  Manifest     -> {manifest_path}")

        if not quiet:
            console.print(_summary_table(report))
            console.print(Panel(
                f"[green]Done[/green] — {len(rows)} job rows -> {rows_path}",
                title="Parse Complete", border_style="green",
            ))
    except ParseFilesError as exc:
        raise _fail(
            out_dir, cl_view, shipper_site, dispo_mode.value, created_at,
            message=str(exc), error_code=2,
        ) from None
    except Exception as exc:
        raise _fail(
            out_dir, cl_view, shipper_site, dispo_mode.value, created_at,
            message=f"Unexpected internal error: {exc}", error_code=1,
        ) from None


# ── columns command ──────────────────────────────────────────────


@app.command()
def columns(
    mode: str = typer.Option(
        ..., "--mode",
        help="Dispo mode: Delivery or Pickup (case-sensitive).",
    ),
    col_map: list[str] | None = typer.Option(
        None, "--map", "-m",
        help="Column override: field=Column Name.",
    ),
    profile: Path | None = typer.Option(
        None, "--profile",
        help="Profile file containing column overrides (field=Column Name lines).",
    ),
) -> None:
    """Show which export column feeds each job-row field."""
    try:
        mapping = resolve_mapping(DispoMode.parse(mode), _collect_overrides(profile, col_map))
    except ValueError as exc:
        _err(str(exc))
        raise typer.Exit(code=2) from None

    cl_view_columns = set(mapping.cl_view_columns())
    shipper_site_columns = set(mapping.shipper_site_columns())

    tbl = RichTable(title=f"{mode} column mapping", show_lines=False)
    tbl.add_column("Field", style="bold")
    tbl.add_column("Column")
    tbl.add_column("Export")
    for field_name, column in mapping.items():
        sources = []
        if column in cl_view_columns:
            sources.append("CL View")
        if column in shipper_site_columns:
            sources.append("Shipper Site")
        tbl.add_row(field_name, column, " + ".join(sources))
    console.print(tbl)
