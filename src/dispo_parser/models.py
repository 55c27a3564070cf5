"""Data models shared across the package."""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from numbers import Integral
from typing import Any

from dispo_parser.errors import DispoModeParseError, TemperatureRangeParseError

DEFAULT_DATE_FORMAT = "%m/%d/%Y %H:%M"


class DispoMode(str, Enum):
    """Whether a batch is a delivery (consignee side) or a pickup (shipper side)."""

    DELIVERY = "Delivery"
    PICKUP = "Pickup"

    @classmethod
    def parse(cls, value: str) -> DispoMode:
        """Return the mode for *value*; matching is case-exact."""
        for mode in cls:
            if mode.value == value:
                return mode
        raise DispoModeParseError(value)

    def __str__(self) -> str:
        return self.value


class TemperatureRange(str, Enum):
    DRY_ICE = "DryIce"
    DRY_SHIPPER = "DryShipper"
    REFRIGERATED = "Refrigerated"
    CONTROLLED_AMBIENT = "ControlledAmbient"
    FROZEN = "Frozen"
    AMBIENT = "Ambient"
    NON_SOP = "NonSOP"
    INVALID = "Invalid"

    @classmethod
    def from_text(cls, value: str) -> TemperatureRange:
        """Map one descriptive TMS string to its tag (exact match)."""
        try:
            return _TEMPERATURE_TEXT[value]
        except KeyError:
            raise TemperatureRangeParseError(value) from None

    @property
    def label(self) -> str:
        return _TEMPERATURE_LABELS[self]


_TEMPERATURE_TEXT: dict[str, TemperatureRange] = {
    "Frozen Dry Ice -80C to -20C": TemperatureRange.DRY_ICE,
    "Deep Frozen Dry Ice -70C [+/-10C]": TemperatureRange.DRY_ICE,
    "Cryogenics -190C to -150C": TemperatureRange.DRY_SHIPPER,
    "Refrigerated +2C to +8C": TemperatureRange.REFRIGERATED,
    "Controlled Ambient +15C to +25C": TemperatureRange.CONTROLLED_AMBIENT,
    "Frozen -25C to -15C": TemperatureRange.FROZEN,
    "Ambient": TemperatureRange.AMBIENT,
    "Frozen -50C  [+/-10C]": TemperatureRange.NON_SOP,
}

_TEMPERATURE_LABELS: dict[TemperatureRange, str] = {
    TemperatureRange.DRY_ICE: "Dry Ice",
    TemperatureRange.DRY_SHIPPER: "Dry Shipper",
    TemperatureRange.REFRIGERATED: "Refrigerated",
    TemperatureRange.CONTROLLED_AMBIENT: "Controlled Ambient",
    TemperatureRange.FROZEN: "Frozen",
    TemperatureRange.AMBIENT: "Ambient",
    TemperatureRange.NON_SOP: "Non SOP",
    TemperatureRange.INVALID: "Invalid",
}


class ExtractionPolicy(str, Enum):
    """How soft per-cell failures (dates, temperature text) are handled.

    ``lenient`` replaces them with sentinel values so the batch always
    completes; ``strict`` raises the typed error instead.
    """

    LENIENT = "lenient"
    STRICT = "strict"


@dataclass(frozen=True)
class ParseOptions:
    policy: ExtractionPolicy = ExtractionPolicy.LENIENT
    date_format: str = DEFAULT_DATE_FORMAT
    column_overrides: Mapping[str, str] = field(default_factory=dict)


# ── Decoded workbook cells ──────────────────────────────────────


class CellKind(str, Enum):
    TEXT = "text"
    NUMBER = "number"
    BOOLEAN = "boolean"
    EMPTY = "empty"
    ERROR = "error"
    DATETIME = "datetime"
    DURATION = "duration"


@dataclass(frozen=True)
class Cell:
    """One decoded spreadsheet cell.

    DATETIME / DURATION cells carry the spreadsheet serial number, or ISO
    text when the decoder hands back text.
    """

    kind: CellKind
    value: Any = None

    @classmethod
    def empty(cls) -> Cell:
        return cls(CellKind.EMPTY)

    @property
    def is_empty(self) -> bool:
        return self.kind is CellKind.EMPTY


# ── Output records ──────────────────────────────────────────────


@dataclass(frozen=True)
class JobRow:
    """One dispo job: a CL View row joined with its Shipper Site row."""

    mode: DispoMode
    job_number: str
    hawb_number: str
    temperature_ranges: tuple[TemperatureRange, ...]
    quantity: int
    address: str
    postal_code: str
    city: str
    country: str
    equipment: str
    tolerance: int
    early_date: datetime
    late_date: datetime
    calculated_date: datetime
    contact_name: str

    def to_dict(self) -> dict[str, Any]:
        return {
            "mode": self.mode.value,
            "jobNumber": self.job_number,
            "hawbNumber": self.hawb_number,
            "temperatureRanges": [tr.value for tr in self.temperature_ranges],
            "quantity": self.quantity,
            "address": self.address,
            "postalCode": self.postal_code,
            "city": self.city,
            "country": self.country,
            "equipment": self.equipment,
            "tolerance": self.tolerance,
            "earlyDate": self.early_date.isoformat(),
            "lateDate": self.late_date.isoformat(),
            "calculatedDate": self.calculated_date.isoformat(),
            "contactName": self.contact_name,
        }


def _to_non_negative_int(value: Any, field_name: str) -> int:
    if isinstance(value, bool) or not isinstance(value, Integral):
        raise TypeError(f"{field_name} must be an integer")
    result = int(value)
    if result < 0:
        raise ValueError(f"{field_name} must be >= 0")
    return result


def _to_string_list(values: Sequence[Any] | None, field_name: str) -> list[str]:
    if values is None:
        return []
    if isinstance(values, str):
        raise TypeError(f"{field_name} must be a sequence of strings")
    normalized: list[str] = []
    for item in values:
        if not isinstance(item, str):
            raise TypeError(f"{field_name} items must be strings")
        normalized.append(item)
    return normalized


@dataclass
class BatchReport:
    """Counts and warnings for a single parse request.

    Unmatched rows are dropped by the join; they are counted here so the
    loss is visible even though it is not an error.
    """

    cl_view_rows: int = 0
    shipper_site_rows: int = 0
    joined_rows: int = 0
    unmatched_cl_view_rows: int = 0
    unmatched_shipper_site_rows: int = 0
    defaulted_dates: int = 0
    invalid_temperature_ranges: int = 0
    warnings: list[str] = field(default_factory=list)

    def __post_init__(self) -> None:
        for name in (
            "cl_view_rows",
            "shipper_site_rows",
            "joined_rows",
            "unmatched_cl_view_rows",
            "unmatched_shipper_site_rows",
            "defaulted_dates",
            "invalid_temperature_ranges",
        ):
            setattr(self, name, _to_non_negative_int(getattr(self, name), name))
        self.warnings = _to_string_list(self.warnings, "warnings")
        if self.unmatched_cl_view_rows > self.cl_view_rows:
            raise ValueError("unmatched_cl_view_rows must be <= cl_view_rows")
        if self.unmatched_shipper_site_rows > self.shipper_site_rows:
            raise ValueError("unmatched_shipper_site_rows must be <= shipper_site_rows")

    def to_dict(self) -> dict[str, Any]:
        return {
            "cl_view_rows": self.cl_view_rows,
            "shipper_site_rows": self.shipper_site_rows,
            "joined_rows": self.joined_rows,
            "unmatched_cl_view_rows": self.unmatched_cl_view_rows,
            "unmatched_shipper_site_rows": self.unmatched_shipper_site_rows,
            "defaulted_dates": self.defaulted_dates,
            "invalid_temperature_ranges": self.invalid_temperature_ranges,
            "warnings": list(self.warnings),
        }


@dataclass
class RunManifest:
    """Audit-trail manifest for a single CLI run."""

    tool: str = "dispo-parser"
    version: str = ""
    mode: str = ""
    cl_view_path: str = ""
    shipper_site_path: str = ""
    cl_view_sha256: str = ""
    shipper_site_sha256: str = ""
    output_dir: str = ""
    created_at_utc: str = ""
    rows_out: int = 0
    status: str = "success"
    error_code: int | None = None
    error_message: str = ""

    def __post_init__(self) -> None:
        self.rows_out = _to_non_negative_int(self.rows_out, "rows_out")
        if self.status not in {"success", "failed"}:
            raise ValueError("status must be 'success' or 'failed'")

    def to_dict(self) -> dict[str, Any]:
        return {
            "tool": self.tool,
            "version": self.version,
            "mode": self.mode,
            "cl_view_path": self.cl_view_path,
            "shipper_site_path": self.shipper_site_path,
            "cl_view_sha256": self.cl_view_sha256,
            "shipper_site_sha256": self.shipper_site_sha256,
            "output_dir": self.output_dir,
            "created_at_utc": self.created_at_utc,
            "rows_out": self.rows_out,
            "status": self.status,
            "error_code": self.error_code,
            "error_message": self.error_message,
        }
