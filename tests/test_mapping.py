from __future__ import annotations

from pathlib import Path

import pytest

from dispo_parser.mapping import (
    ColumnMapping,
    load_mapping_profile,
    parse_mapping_overrides,
    resolve_mapping,
)
from dispo_parser.models import DispoMode


@pytest.mark.parametrize("mode", list(DispoMode))
def test_mapping_has_fourteen_non_empty_bindings(mode: DispoMode) -> None:
    mapping = ColumnMapping.for_mode(mode)

    items = mapping.items()
    assert len(items) == 14
    assert all(column for _, column in items)


def test_delivery_uses_consignee_columns() -> None:
    mapping = ColumnMapping.for_mode(DispoMode.DELIVERY)

    assert mapping.info == "Consignee"
    assert mapping.name == "Consignee Name"
    assert mapping.postal_code == "Consignee Postal Code"
    assert mapping.target_early == "Target Delivery (Early)"
    assert mapping.target_late == "Target Delivery (Late)"


def test_pickup_uses_shipper_columns() -> None:
    mapping = ColumnMapping.for_mode(DispoMode.PICKUP)

    assert mapping.info == "Shipper"
    assert mapping.address == "Shipper Address"
    assert mapping.country == "Shipper Country"
    assert mapping.target_early == "Target Ship (Early)"
    assert mapping.target_late == "Target Ship (Late)"


def test_mode_invariant_columns_match_between_modes() -> None:
    delivery = ColumnMapping.for_mode(DispoMode.DELIVERY)
    pickup = ColumnMapping.for_mode(DispoMode.PICKUP)

    for field_name in ("job_number", "hawb", "quantity", "equipment_codes", "temperature_range"):
        assert getattr(delivery, field_name) == getattr(pickup, field_name)
    assert delivery.job_number == "Load #"
    assert delivery.hawb == "Ref: House Waybill Number"


def test_projections_share_only_the_job_number() -> None:
    mapping = ColumnMapping.for_mode(DispoMode.DELIVERY)

    cl_view = mapping.cl_view_columns()
    shipper_site = mapping.shipper_site_columns()

    assert len(cl_view) == 12
    assert shipper_site == ["Load #", "Ref: House Waybill Number", "Ref: Temperature Range"]
    assert set(cl_view) & set(shipper_site) == {"Load #"}


def test_with_overrides_rebinds_only_named_fields() -> None:
    base = ColumnMapping.for_mode(DispoMode.DELIVERY)

    mapping = base.with_overrides({"hawb": "HAWB #"})

    assert mapping.hawb == "HAWB #"
    for field_name, column in base.items():
        if field_name != "hawb":
            assert getattr(mapping, field_name) == column


def test_with_overrides_rejects_unknown_field() -> None:
    with pytest.raises(ValueError, match="Unknown mapping field"):
        ColumnMapping.for_mode(DispoMode.PICKUP).with_overrides({"weight": "Gross Weight"})


def test_parse_mapping_overrides_later_entries_win() -> None:
    overrides = parse_mapping_overrides(["hawb=HAWB", " quantity = Pieces ", "hawb=HAWB #"])

    assert overrides == {"hawb": "HAWB #", "quantity": "Pieces"}


@pytest.mark.parametrize("raw", ["hawb", "=HAWB", "hawb=  "])
def test_parse_mapping_overrides_rejects_malformed_entries(raw: str) -> None:
    with pytest.raises(ValueError):
        parse_mapping_overrides([raw])


def test_load_mapping_profile_skips_comments_and_blank_lines(tmp_path: Path) -> None:
    profile = tmp_path / "tms.profile"
    profile.write_text("# site overrides\n\nhawb=HAWB #\n  city = Town \n", encoding="utf-8")

    assert load_mapping_profile(profile) == ["hawb=HAWB #", "city = Town"]


def test_load_mapping_profile_missing_file(tmp_path: Path) -> None:
    with pytest.raises(ValueError, match="Profile not found"):
        load_mapping_profile(tmp_path / "nope.profile")


def test_load_mapping_profile_directory(tmp_path: Path) -> None:
    with pytest.raises(ValueError, match="directory"):
        load_mapping_profile(tmp_path)


def test_resolve_mapping_without_overrides_is_the_mode_default() -> None:
    assert resolve_mapping(DispoMode.PICKUP) == ColumnMapping.for_mode(DispoMode.PICKUP)
