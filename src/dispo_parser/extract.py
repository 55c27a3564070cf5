"""Field extractors: each turns one table column into a typed list aligned with rows.

Every extractor returns exactly one entry per row. Soft failures are
replaced by sentinels under the lenient policy instead of being skipped,
otherwise the index-based zip in the assembler would misalign rows.
"""

from __future__ import annotations

import logging
import math
import re
from datetime import datetime
from numbers import Real
from typing import Any

import pandas as pd

from dispo_parser.dates import EPOCH
from dispo_parser.errors import (
    DateTimeErrorKind,
    DateTimeParseError,
    MissingColumnsError,
    NumericErrorKind,
    NumericParseError,
    TemperatureRangeParseError,
)
from dispo_parser.models import DEFAULT_DATE_FORMAT, ExtractionPolicy, TemperatureRange
from dispo_parser.table import display_value

logger = logging.getLogger(__name__)

INT32_MIN = -(2**31)
INT32_MAX = 2**31 - 1

_FLOAT_TEXT = re.compile(
    r"[+-]?(?:(?:\d+\.?\d*|\.\d+)(?:e[+-]?\d+)?|inf|infinity|nan)",
    re.ASCII | re.IGNORECASE,
)


def _column(df: pd.DataFrame, column: str) -> pd.Series:
    if column not in df.columns:
        raise MissingColumnsError([column])
    return df[column]


def _is_missing(value: Any) -> bool:
    if value is None:
        return True
    return isinstance(value, float) and math.isnan(value)


# ── Strings ─────────────────────────────────────────────────────


def extract_strings(df: pd.DataFrame, column: str) -> list[str]:
    values: list[str] = []
    for value in _column(df, column):
        if isinstance(value, str):
            values.append(value)
        elif _is_missing(value):
            values.append("")
        else:
            values.append(display_value(value))
    return values


# ── Integers ────────────────────────────────────────────────────


def value_to_float(value: Any, column: str = "") -> float:
    """Coerce a table value to ``float`` (numbers directly, text by parsing).

    Text must be a plain ASCII decimal literal: no surrounding whitespace,
    no ``_`` digit separators and no non-ASCII digits.
    """
    if isinstance(value, str):
        if not _FLOAT_TEXT.fullmatch(value):
            raise NumericParseError(NumericErrorKind.STRING_PARSE_ERROR, value, column)
        return float(value)
    if isinstance(value, bool) or value is None:
        raise NumericParseError(NumericErrorKind.INVALID_TYPE, value, column)
    if isinstance(value, Real):
        return float(value)
    raise NumericParseError(NumericErrorKind.INVALID_TYPE, value, column)


def value_to_int32(value: Any, column: str = "") -> int:
    number = value_to_float(value, column)
    if not math.isfinite(number):
        raise NumericParseError(NumericErrorKind.PARSE_ERROR, value, column)
    result = math.trunc(number)
    if not INT32_MIN <= result <= INT32_MAX:
        raise NumericParseError(NumericErrorKind.PARSE_ERROR, value, column)
    return result


def extract_int32(df: pd.DataFrame, column: str) -> list[int]:
    """Fails on the first bad cell; no partial column is returned."""
    return [value_to_int32(value, column) for value in _column(df, column)]


# ── Temperature ranges ──────────────────────────────────────────


def parse_temperature_ranges(
    text: str, policy: ExtractionPolicy = ExtractionPolicy.LENIENT
) -> list[TemperatureRange]:
    """Split a comma separated TMS temperature cell into tags.

    An empty cell means no special handling, i.e. ``[Ambient]``.
    """
    if text == "":
        return [TemperatureRange.AMBIENT]

    ranges: list[TemperatureRange] = []
    for segment in text.split(","):
        try:
            ranges.append(TemperatureRange.from_text(segment.strip()))
        except TemperatureRangeParseError:
            if policy is ExtractionPolicy.STRICT:
                raise
            ranges.append(TemperatureRange.INVALID)
    return ranges


def extract_temperature_ranges(
    df: pd.DataFrame,
    column: str,
    policy: ExtractionPolicy = ExtractionPolicy.LENIENT,
) -> list[list[TemperatureRange]]:
    return [
        parse_temperature_ranges(value, policy)
        if isinstance(value, str)
        else [TemperatureRange.AMBIENT]
        for value in _column(df, column)
    ]


# ── Date-times ──────────────────────────────────────────────────


def value_to_datetime(value: Any, fmt: str = DEFAULT_DATE_FORMAT, column: str = "") -> datetime:
    if not isinstance(value, str):
        raise DateTimeParseError(DateTimeErrorKind.INVALID_TYPE, value, column)
    try:
        return datetime.strptime(value, fmt)
    except ValueError:
        raise DateTimeParseError(DateTimeErrorKind.PARSE_ERROR, value, column) from None


def extract_datetimes(
    df: pd.DataFrame,
    column: str,
    fmt: str = DEFAULT_DATE_FORMAT,
    policy: ExtractionPolicy = ExtractionPolicy.LENIENT,
) -> list[datetime]:
    """Parse a text column of dates; unparseable cells become :data:`EPOCH`."""
    dates: list[datetime] = []
    for value in _column(df, column):
        try:
            dates.append(value_to_datetime(value, fmt, column))
        except DateTimeParseError as exc:
            if policy is ExtractionPolicy.STRICT:
                raise
            logger.debug("Defaulting date in %r: %s", column, exc)
            dates.append(EPOCH)
    return dates
