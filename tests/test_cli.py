"""CLI integration tests for dispo-parser."""

from __future__ import annotations

import json
from pathlib import Path

import pytest
from typer.testing import CliRunner

import dispo_parser.cli as cli_mod
from conftest import CL_VIEW_DELIVERY_HEADER, SHIPPER_SITE_HEADER, WriteXlsx, cl_view_row
from dispo_parser import __version__
from dispo_parser.cli import app

runner = CliRunner()


def _parse_args(cl_view: Path, shipper_site: Path, out_dir: Path, *extra: str) -> list[str]:
    return [
        "parse",
        "--cl-view", str(cl_view),
        "--shipper-site", str(shipper_site),
        "--mode", "Delivery",
        "--out-dir", str(out_dir),
        *extra,
    ]


def test_version_flag() -> None:
    result = runner.invoke(app, ["--version"])

    assert result.exit_code == 0
    assert f"dispo-parser v{__version__}" in result.output


def test_parse_writes_all_artifacts(delivery_exports: tuple[Path, Path], tmp_path: Path) -> None:
    cl_view, shipper_site = delivery_exports
    out_dir = tmp_path / "out"

    result = runner.invoke(app, _parse_args(cl_view, shipper_site, out_dir))

    assert result.exit_code == 0, result.output
    rows = json.loads((out_dir / "job_rows.json").read_text(encoding="utf-8"))
    assert rows == [
        {
            "address": "1 Main St",
            "calculatedDate": "2024-01-01T08:30:00",
            "city": "Springfield",
            "contactName": "Acme",
            "country": "US",
            "earlyDate": "2024-01-01T08:00:00",
            "equipment": "REEF",
            "hawbNumber": "H1",
            "jobNumber": "J1",
            "lateDate": "2024-01-01T09:00:00",
            "mode": "Delivery",
            "postalCode": "62701",
            "quantity": 5,
            "temperatureRanges": ["Ambient"],
            "tolerance": 30,
        }
    ]
    report = json.loads((out_dir / "batch_report.json").read_text(encoding="utf-8"))
    assert report["joined_rows"] == 1
    assert report["warnings"] == []
    manifest = json.loads((out_dir / "run_manifest.json").read_text(encoding="utf-8"))
    assert manifest["status"] == "success"
    assert manifest["rows_out"] == 1
    assert manifest["mode"] == "Delivery"
    assert len(manifest["cl_view_sha256"]) == 64
    assert (out_dir / "Job_Rows.xlsx").exists()
    assert "Parse Complete" in result.output


def test_parse_no_xlsx_and_quiet(delivery_exports: tuple[Path, Path], tmp_path: Path) -> None:
    cl_view, shipper_site = delivery_exports
    out_dir = tmp_path / "out"

    result = runner.invoke(
        app, _parse_args(cl_view, shipper_site, out_dir, "--no-xlsx", "--quiet")
    )

    assert result.exit_code == 0, result.output
    assert (out_dir / "job_rows.json").exists()
    assert not (out_dir / "Job_Rows.xlsx").exists()
    assert "Parse Start" not in result.output


def test_parse_verbose_logs_join_details(
    delivery_exports: tuple[Path, Path], tmp_path: Path
) -> None:
    cl_view, shipper_site = delivery_exports

    result = runner.invoke(
        app, _parse_args(cl_view, shipper_site, tmp_path / "out", "--quiet", "--verbose")
    )

    assert result.exit_code == 0, result.output
    assert "Joined on 'Load #'" in result.output


def test_parse_wrong_sheet_count_exits_2_with_failed_manifest(
    write_xlsx: WriteXlsx, delivery_exports: tuple[Path, Path], tmp_path: Path
) -> None:
    _, shipper_site = delivery_exports
    cl_view = write_xlsx(
        "two_sheets.xlsx", [CL_VIEW_DELIVERY_HEADER, cl_view_row("J1")], sheets=["Notes"]
    )
    out_dir = tmp_path / "out"

    result = runner.invoke(app, _parse_args(cl_view, shipper_site, out_dir, "--quiet"))

    assert result.exit_code == 2
    assert "Expected 1 sheets, found 2" in result.output
    manifest = json.loads((out_dir / "run_manifest.json").read_text(encoding="utf-8"))
    assert manifest["status"] == "failed"
    assert manifest["error_code"] == 2
    assert manifest["rows_out"] == 0
    report = json.loads((out_dir / "batch_report.json").read_text(encoding="utf-8"))
    assert report["warnings"] == ["Expected 1 sheets, found 2"]
    assert not (out_dir / "job_rows.json").exists()


def test_parse_invalid_mode_exits_2(delivery_exports: tuple[Path, Path], tmp_path: Path) -> None:
    cl_view, shipper_site = delivery_exports
    out_dir = tmp_path / "out"
    args = _parse_args(cl_view, shipper_site, out_dir)
    args[args.index("Delivery")] = "delivery"

    result = runner.invoke(app, args)

    assert result.exit_code == 2
    manifest = json.loads((out_dir / "run_manifest.json").read_text(encoding="utf-8"))
    assert manifest["status"] == "failed"
    assert "DispoMode" in manifest["error_message"]


def test_parse_unknown_map_field_exits_2(delivery_exports: tuple[Path, Path], tmp_path: Path) -> None:
    cl_view, shipper_site = delivery_exports
    out_dir = tmp_path / "out"

    result = runner.invoke(
        app, _parse_args(cl_view, shipper_site, out_dir, "--map", "weight=Gross Weight")
    )

    assert result.exit_code == 2
    assert "Unknown mapping field" in result.output


def test_parse_profile_and_map_overrides(write_xlsx: WriteXlsx, tmp_path: Path) -> None:
    cl_view = write_xlsx(
        "cl_view.xlsx", [["Job"] + CL_VIEW_DELIVERY_HEADER[1:], cl_view_row("J1")]
    )
    shipper_site = write_xlsx(
        "shipper_site.xlsx",
        [["Job", "HAWB", "Ref: Temperature Range"], ["J1", "H1", "Ambient"]],
    )
    profile = tmp_path / "site.profile"
    profile.write_text("# renamed headers\njob_number=Job\nhawb=HAWB No\n", encoding="utf-8")
    out_dir = tmp_path / "out"

    result = runner.invoke(
        app,
        _parse_args(
            cl_view, shipper_site, out_dir, "--profile", str(profile), "--map", "hawb=HAWB"
        ),
    )

    assert result.exit_code == 0, result.output
    rows = json.loads((out_dir / "job_rows.json").read_text(encoding="utf-8"))
    assert [(r["jobNumber"], r["hawbNumber"]) for r in rows] == [("J1", "H1")]


def test_parse_strict_fails_on_bad_date(write_xlsx: WriteXlsx, tmp_path: Path) -> None:
    cl_view = write_xlsx(
        "cl_view.xlsx", [CL_VIEW_DELIVERY_HEADER, cl_view_row("J1", early="2024-01-01")]
    )
    shipper_site = write_xlsx(
        "shipper_site.xlsx", [SHIPPER_SITE_HEADER, ["J1", "H1", "Ambient"]]
    )
    out_dir = tmp_path / "out"

    lenient = runner.invoke(app, _parse_args(cl_view, shipper_site, out_dir, "--quiet"))
    strict = runner.invoke(
        app, _parse_args(cl_view, shipper_site, out_dir, "--quiet", "--strict")
    )

    assert lenient.exit_code == 0
    assert strict.exit_code == 2
    manifest = json.loads((out_dir / "run_manifest.json").read_text(encoding="utf-8"))
    assert manifest["status"] == "failed"
    assert "2024-01-01" in manifest["error_message"]


def test_parse_date_format_option(write_xlsx: WriteXlsx, tmp_path: Path) -> None:
    cl_view = write_xlsx(
        "cl_view.xlsx",
        [
            CL_VIEW_DELIVERY_HEADER,
            cl_view_row("J1", early="2024-01-01 08:00", late="2024-01-01 08:10"),
        ],
    )
    shipper_site = write_xlsx(
        "shipper_site.xlsx", [SHIPPER_SITE_HEADER, ["J1", "H1", "Ambient"]]
    )
    out_dir = tmp_path / "out"

    result = runner.invoke(
        app,
        _parse_args(
            cl_view, shipper_site, out_dir, "--quiet", "--strict",
            "--date-format", "%Y-%m-%d %H:%M",
        ),
    )

    assert result.exit_code == 0, result.output
    rows = json.loads((out_dir / "job_rows.json").read_text(encoding="utf-8"))
    assert rows[0]["calculatedDate"] == "2024-01-01T08:05:00"
    assert rows[0]["tolerance"] == 15


def test_parse_unexpected_error_exits_1(
    monkeypatch: pytest.MonkeyPatch, delivery_exports: tuple[Path, Path], tmp_path: Path
) -> None:
    cl_view, shipper_site = delivery_exports
    out_dir = tmp_path / "out"

    def _boom(*_args: object, **_kwargs: object) -> None:
        raise RuntimeError("disk on fire")

    monkeypatch.setattr(cli_mod, "create_job_rows", _boom)

    result = runner.invoke(app, _parse_args(cl_view, shipper_site, out_dir, "--quiet"))

    assert result.exit_code == 1
    assert "Unexpected internal error: disk on fire" in result.output
    manifest = json.loads((out_dir / "run_manifest.json").read_text(encoding="utf-8"))
    assert manifest["error_code"] == 1


def test_parse_missing_input_file_exits_2(delivery_exports: tuple[Path, Path], tmp_path: Path) -> None:
    _, shipper_site = delivery_exports
    out_dir = tmp_path / "out"

    result = runner.invoke(
        app, _parse_args(tmp_path / "missing.xls", shipper_site, out_dir, "--quiet")
    )

    assert result.exit_code == 2
    manifest = json.loads((out_dir / "run_manifest.json").read_text(encoding="utf-8"))
    assert manifest["cl_view_sha256"] == ""
    assert "not found" in manifest["error_message"]


def test_columns_command_shows_mode_mapping() -> None:
    result = runner.invoke(app, ["columns", "--mode", "Pickup", "--map", "hawb=HAWB #"])

    assert result.exit_code == 0, result.output
    assert "Shipper Name" in result.output
    assert "HAWB #" in result.output
    assert "Consignee" not in result.output


def test_columns_command_rejects_bad_mode() -> None:
    result = runner.invoke(app, ["columns", "--mode", "Both"])

    assert result.exit_code == 2
    assert "Both" in result.output
