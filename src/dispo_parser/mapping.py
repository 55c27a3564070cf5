"""Mode-dependent column bindings for the TMS exports."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, fields, replace
from pathlib import Path

from dispo_parser.models import DispoMode

# Header names as they appear in the .xls files downloaded from TMS.
JOB_NUMBER_COLUMN = "Load #"
HAWB_COLUMN = "Ref: House Waybill Number"
QUANTITY_COLUMN = "Actual Quantity"
EQUIPMENT_CODES_COLUMN = "Equipment Codes"
TEMPERATURE_RANGE_COLUMN = "Ref: Temperature Range"

_TARGET_COLUMNS: dict[DispoMode, tuple[str, str]] = {
    DispoMode.DELIVERY: ("Target Delivery (Early)", "Target Delivery (Late)"),
    DispoMode.PICKUP: ("Target Ship (Early)", "Target Ship (Late)"),
}

# Party whose address/contact block is authoritative for the mode.
_PARTY_PREFIX: dict[DispoMode, str] = {
    DispoMode.DELIVERY: "Consignee",
    DispoMode.PICKUP: "Shipper",
}


@dataclass(frozen=True)
class ColumnMapping:
    """Logical field -> physical column name, fully determined by the mode."""

    job_number: str
    hawb: str
    quantity: str
    equipment_codes: str
    temperature_range: str
    target_early: str
    target_late: str
    info: str
    name: str
    address: str
    city: str
    state: str
    postal_code: str
    country: str

    @classmethod
    def for_mode(cls, mode: DispoMode) -> ColumnMapping:
        party = _PARTY_PREFIX[mode]
        early, late = _TARGET_COLUMNS[mode]
        return cls(
            job_number=JOB_NUMBER_COLUMN,
            hawb=HAWB_COLUMN,
            quantity=QUANTITY_COLUMN,
            equipment_codes=EQUIPMENT_CODES_COLUMN,
            temperature_range=TEMPERATURE_RANGE_COLUMN,
            target_early=early,
            target_late=late,
            info=party,
            name=f"{party} Name",
            address=f"{party} Address",
            city=f"{party} City",
            state=f"{party} State",
            postal_code=f"{party} Postal Code",
            country=f"{party} Country",
        )

    @classmethod
    def field_names(cls) -> list[str]:
        return [f.name for f in fields(cls)]

    def items(self) -> list[tuple[str, str]]:
        return [(name, getattr(self, name)) for name in self.field_names()]

    def cl_view_columns(self) -> list[str]:
        """Columns projected out of the CL View export."""
        return [
            self.job_number,
            self.quantity,
            self.equipment_codes,
            self.target_early,
            self.target_late,
            self.info,
            self.name,
            self.address,
            self.city,
            self.state,
            self.postal_code,
            self.country,
        ]

    def shipper_site_columns(self) -> list[str]:
        """Columns projected out of the Shipper/Consignee Site export."""
        return [self.job_number, self.hawb, self.temperature_range]

    def with_overrides(self, overrides: Mapping[str, str]) -> ColumnMapping:
        """Return a copy with some fields bound to different column names."""
        if not overrides:
            return self
        known = set(self.field_names())
        unknown = sorted(set(overrides) - known)
        if unknown:
            raise ValueError(
                f"Unknown mapping field(s): {', '.join(unknown)}. "
                f"Expected one of: {', '.join(self.field_names())}"
            )
        for name, column in overrides.items():
            if not column.strip():
                raise ValueError(f"Mapping for {name!r} must name a non-empty column")
        return replace(self, **dict(overrides))


# ── Override parsing (--map / --profile) ────────────────────────


def parse_mapping_overrides(raw: list[str] | None) -> dict[str, str]:
    """Parse ``field=Column Name`` pairs into ``{field: column}``.

    Later entries win, so profile lines can be overridden by ``--map``.
    """
    if not raw:
        return {}
    overrides: dict[str, str] = {}
    for item in raw:
        if "=" not in item:
            raise ValueError(f"Invalid mapping value: {item!r}  (expected field=Column Name)")
        name, column = item.split("=", 1)
        name = name.strip()
        column = column.strip()
        if not name or not column:
            raise ValueError("Mapping entries must have a non-empty field and column (field=Column)")
        overrides[name] = column
    return overrides


def load_mapping_profile(profile: Path | None) -> list[str]:
    """Return the ``field=Column Name`` lines of a profile file."""
    if not profile:
        return []
    if not profile.exists():
        raise ValueError(f"Profile not found: {profile} (expected lines like hawb=HAWB)")
    if profile.is_dir():
        raise ValueError(f"Profile is a directory, not a file: {profile}")
    try:
        text = profile.read_text(encoding="utf-8")
    except OSError as exc:
        raise ValueError(f"Cannot read profile {profile}: {exc}") from exc

    lines: list[str] = []
    for line in text.splitlines():
        stripped = line.strip()
        if not stripped or stripped.startswith("#"):
            continue
        lines.append(stripped)
    return lines


def resolve_mapping(mode: DispoMode, overrides: Mapping[str, str] | None = None) -> ColumnMapping:
    return ColumnMapping.for_mode(mode).with_overrides(overrides or {})
