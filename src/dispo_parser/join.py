"""Column projection and the job-number join between the two exports."""

from __future__ import annotations

import logging
from collections.abc import Sequence
from numbers import Real
from typing import Any

import pandas as pd

from dispo_parser.errors import DuplicateColumnsError, MissingColumnsError

logger = logging.getLogger(__name__)

_JOIN_KEY = "__join_key__"


def select_columns(df: pd.DataFrame, columns: Sequence[str]) -> pd.DataFrame:
    """Project *df* onto *columns* (first occurrence order, duplicates collapsed)."""
    wanted = list(dict.fromkeys(columns))
    missing = [c for c in wanted if c not in df.columns]
    if missing:
        raise MissingColumnsError(missing)
    return df.loc[:, wanted].copy()


def join_key(value: Any) -> str | None:
    """Tag a key cell with its kind so only same-kind cells compare equal.

    ``True`` never matches ``1.0`` and the text ``"1"`` never matches the
    number ``1``. Integer and float numbers share one kind. Missing cells
    have no key.
    """
    if value is None:
        return None
    if isinstance(value, bool):
        return f"bool:{value}"
    if isinstance(value, str):
        return f"text:{value}"
    if isinstance(value, Real):
        number = float(value)
        if number != number:
            return None
        return f"number:{number!r}"
    if pd.isna(value):
        return None
    return f"{type(value).__name__}:{value!r}"


def _keys(table: pd.DataFrame, on: str) -> pd.Series:
    return table[on].map(join_key).astype(object)


def inner_join(left: pd.DataFrame, right: pd.DataFrame, on: str) -> pd.DataFrame:
    """Relational inner join on *on*.

    Keys match by exact equality of kind and value (see :func:`join_key`),
    and missing keys never match. Duplicate keys on either side produce
    every matching pair. Output follows the left table's row order.
    """
    for name, table in (("left", left), ("right", right)):
        if on not in table.columns:
            logger.debug("Join key %r missing from %s table", on, name)
            raise MissingColumnsError([on])

    clashes = (set(left.columns) & set(right.columns)) - {on}
    if clashes:
        raise DuplicateColumnsError(clashes)

    left_keyed = left.assign(**{_JOIN_KEY: _keys(left, on)})
    right_keyed = right.assign(**{_JOIN_KEY: _keys(right, on)}).drop(columns=[on])
    left_keyed = left_keyed[left_keyed[_JOIN_KEY].notna()]
    right_keyed = right_keyed[right_keyed[_JOIN_KEY].notna()]

    joined = left_keyed.merge(right_keyed, how="inner", on=_JOIN_KEY, sort=False)
    joined = joined.drop(columns=[_JOIN_KEY]).reset_index(drop=True)
    logger.debug(
        "Joined on %r: %d x %d -> %d rows", on, len(left), len(right), len(joined)
    )
    return joined


def count_unmatched(table: pd.DataFrame, other: pd.DataFrame, on: str) -> int:
    """Rows of *table* whose key has no counterpart in *other*."""
    other_keys = list(_keys(other, on).dropna())
    return int((~_keys(table, on).isin(other_keys)).sum())
