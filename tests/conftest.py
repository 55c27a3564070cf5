from __future__ import annotations

from collections.abc import Callable, Sequence
from pathlib import Path

import pytest
from openpyxl import Workbook

CL_VIEW_DELIVERY_HEADER = [
    "Load #",
    "Actual Quantity",
    "Equipment Codes",
    "Target Delivery (Early)",
    "Target Delivery (Late)",
    "Consignee",
    "Consignee Name",
    "Consignee Address",
    "Consignee City",
    "Consignee State",
    "Consignee Postal Code",
    "Consignee Country",
]

SHIPPER_SITE_HEADER = ["Load #", "Ref: House Waybill Number", "Ref: Temperature Range"]

WriteXlsx = Callable[..., Path]


def cl_view_row(
    job: object,
    quantity: object = 5,
    early: object = "01/01/2024 08:00",
    late: object = "01/01/2024 09:00",
    name: object = "Acme",
) -> list[object]:
    return [
        job,
        quantity,
        "REEF",
        early,
        late,
        "ACME-01",
        name,
        "1 Main St",
        "Springfield",
        "IL",
        "62701",
        "US",
    ]


@pytest.fixture
def write_xlsx(tmp_path: Path) -> WriteXlsx:
    """Write rows to ``tmp_path/name``; pass ``sheets=`` for extra sheet titles."""

    def _write(
        name: str,
        rows: Sequence[Sequence[object]],
        *,
        sheets: Sequence[str] = (),
    ) -> Path:
        wb = Workbook()
        ws = wb.active
        assert ws is not None
        ws.title = "Sheet1"
        for row in rows:
            ws.append(list(row))
        for title in sheets:
            wb.create_sheet(title=title)
        path = tmp_path / name
        wb.save(path)
        return path

    return _write


@pytest.fixture
def delivery_exports(write_xlsx: WriteXlsx) -> tuple[Path, Path]:
    cl_view = write_xlsx(
        "cl_view.xlsx",
        [CL_VIEW_DELIVERY_HEADER, cl_view_row("J1")],
    )
    shipper_site = write_xlsx(
        "shipper_site.xlsx",
        [SHIPPER_SITE_HEADER, ["J1", "H1", "Ambient"]],
    )
    return cl_view, shipper_site
