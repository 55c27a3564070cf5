"""Every failure a parse request can report."""

from __future__ import annotations

from collections.abc import Iterable
from enum import Enum


class ParseFilesError(Exception):
    """Base class for all errors raised while turning exports into job rows."""


class WorkbookError(ParseFilesError):
    """The workbook could not be opened or decoded (wraps the reader error)."""


class NoHeadersFoundError(ParseFilesError):
    def __init__(self, sheet: str = "") -> None:
        self.sheet = sheet
        where = f" in sheet {sheet!r}" if sheet else ""
        super().__init__(f"No header row found{where}")


class InvalidSheetCountError(ParseFilesError):
    def __init__(self, expected: int, actual: int) -> None:
        self.expected = expected
        self.actual = actual
        super().__init__(f"Expected {expected} sheets, found {actual}")


class MismatchedRowCountError(ParseFilesError):
    def __init__(self, expected: int, actual: int, column: str = "") -> None:
        self.expected = expected
        self.actual = actual
        self.column = column
        label = f" for column {column!r}" if column else ""
        super().__init__(f"Mismatched row count{label}. Found {expected} and {actual}")


class TableError(ParseFilesError):
    """Column selection / join failure on a built table."""


class MissingColumnsError(TableError):
    def __init__(self, columns: Iterable[str]) -> None:
        self.columns = sorted(columns)
        super().__init__(f"Missing required columns: {', '.join(self.columns)}")


class DuplicateColumnsError(TableError):
    def __init__(self, columns: Iterable[str]) -> None:
        self.columns = sorted(columns)
        super().__init__(f"Duplicate columns: {', '.join(self.columns)}")


class NumericErrorKind(str, Enum):
    INVALID_TYPE = "InvalidType"
    STRING_PARSE_ERROR = "StringParseError"
    PARSE_ERROR = "ParseError"


class NumericParseError(ParseFilesError):
    """A cell could not be coerced to a number."""

    _TEMPLATES = {
        NumericErrorKind.INVALID_TYPE: "Value can not parsed to numeric: {}",
        NumericErrorKind.STRING_PARSE_ERROR: "Error parsing string to numeric: {}",
        NumericErrorKind.PARSE_ERROR: "Parse error: {}",
    }

    def __init__(self, kind: NumericErrorKind, value: object, column: str = "") -> None:
        self.kind = kind
        self.value = value
        self.column = column
        message = self._TEMPLATES[kind].format(value)
        if column:
            message = f"{message} (column {column!r})"
        super().__init__(message)


class DateTimeErrorKind(str, Enum):
    INVALID_TYPE = "InvalidType"
    PARSE_ERROR = "ParseError"


class DateTimeParseError(ParseFilesError):
    """A cell could not be parsed as a date-time with the configured format."""

    def __init__(self, kind: DateTimeErrorKind, value: object, column: str = "") -> None:
        self.kind = kind
        self.value = value
        self.column = column
        if kind is DateTimeErrorKind.INVALID_TYPE:
            message = f"Value can not parsed to date-time: {value}"
        else:
            message = f"Error parsing string to date-time: {value}"
        if column:
            message = f"{message} (column {column!r})"
        super().__init__(message)


class DispoModeParseError(ParseFilesError, ValueError):
    def __init__(self, value: str) -> None:
        self.value = value
        super().__init__(
            f"Error parsing {value!r} to a DispoMode. Expected 'Delivery' or 'Pickup'"
        )


class TemperatureRangeParseError(ParseFilesError, ValueError):
    def __init__(self, value: str) -> None:
        self.value = value
        super().__init__(f"String can not be parsed to TemperatureRange: {value!r}")
