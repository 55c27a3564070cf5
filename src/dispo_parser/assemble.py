"""Zip the extracted columns of a joined table into JobRow records."""

from __future__ import annotations

import logging
from collections.abc import Sequence
from typing import TypeVar

import pandas as pd

from dispo_parser.dates import EPOCH, midpoint, tolerance
from dispo_parser.errors import MismatchedRowCountError
from dispo_parser.extract import (
    extract_datetimes,
    extract_int32,
    extract_strings,
    extract_temperature_ranges,
)
from dispo_parser.mapping import ColumnMapping
from dispo_parser.models import DispoMode, ExtractionPolicy, JobRow, ParseOptions, TemperatureRange

logger = logging.getLogger(__name__)

T = TypeVar("T")

MISSING_QUANTITY = -1


def _at(values: Sequence[T], index: int, default: T) -> T:
    return values[index] if index < len(values) else default


def _check_lengths(columns: dict[str, Sequence[object]], expected: int) -> None:
    for name, values in columns.items():
        if len(values) != expected:
            raise MismatchedRowCountError(expected, len(values), name)


def assemble_job_rows(
    df: pd.DataFrame,
    mapping: ColumnMapping,
    mode: DispoMode,
    options: ParseOptions | None = None,
) -> list[JobRow]:
    """Build one :class:`JobRow` per row of the joined table *df*.

    A column that comes back shorter than the table yields per-field
    fallbacks (``""``, quantity ``-1``, ``[Invalid]``, epoch) under the
    lenient policy and :class:`MismatchedRowCountError` under the strict one.
    """
    options = options or ParseOptions()
    policy = options.policy

    strings = {
        "job_number": extract_strings(df, mapping.job_number),
        "hawb_number": extract_strings(df, mapping.hawb),
        "address": extract_strings(df, mapping.address),
        "postal_code": extract_strings(df, mapping.postal_code),
        "city": extract_strings(df, mapping.city),
        "country": extract_strings(df, mapping.country),
        "equipment": extract_strings(df, mapping.equipment_codes),
        "contact_name": extract_strings(df, mapping.name),
    }
    quantities = extract_int32(df, mapping.quantity)
    temperature_ranges = extract_temperature_ranges(df, mapping.temperature_range, policy)
    early_dates = extract_datetimes(df, mapping.target_early, options.date_format, policy)
    late_dates = extract_datetimes(df, mapping.target_late, options.date_format, policy)

    total = len(df)
    if policy is ExtractionPolicy.STRICT:
        _check_lengths(
            {
                **strings,
                mapping.quantity: quantities,
                mapping.temperature_range: temperature_ranges,
                mapping.target_early: early_dates,
                mapping.target_late: late_dates,
            },
            total,
        )

    rows: list[JobRow] = []
    for index in range(total):
        early = _at(early_dates, index, EPOCH)
        late = _at(late_dates, index, EPOCH)
        text = {name: _at(values, index, "") for name, values in strings.items()}
        rows.append(
            JobRow(
                mode=mode,
                temperature_ranges=tuple(
                    _at(temperature_ranges, index, [TemperatureRange.INVALID])
                ),
                quantity=_at(quantities, index, MISSING_QUANTITY),
                tolerance=tolerance(early, late),
                early_date=early,
                late_date=late,
                calculated_date=midpoint(early, late),
                **text,
            )
        )

    logger.debug("Assembled %d job rows (%s)", len(rows), mode.value)
    return rows
