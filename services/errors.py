"""Errors raised while decoding reading payloads.

Every error derives from ``ValueError`` so callers that already treat bad
input as a ``ValueError`` (the HTTP layer maps it to 400) keep working.
"""

from __future__ import annotations

from typing import Optional


class ReadingSetError(ValueError):
    """Base class for all decode failures."""

    field: Optional[str] = None

    @property
    def kind(self) -> str:
        return type(self).__name__


class DocumentMalformed(ReadingSetError):
    """The payload is not a JSON object."""


class MissingRowsOrReadings(ReadingSetError):
    """The envelope carries neither ``rows`` nor ``readings``."""

    def __init__(self, message: str = "Missing readings or rows array") -> None:
        super().__init__(message)


class RowsNotArray(ReadingSetError):
    """The ``rows``/``readings`` member is not an array."""

    def __init__(self, message: str = "Expected array of rows in result set") -> None:
        super().__init__(message)


class RowNotObject(ReadingSetError):
    """A row, or an element of a reading array, is not a JSON object."""

    def __init__(self, message: str = "Expected reading to be an object") -> None:
        super().__init__(message)


class FieldError(ReadingSetError):
    """A failure tied to a single named field of a reading."""

    default_message = "Invalid reading element"

    def __init__(self, field: str, message: Optional[str] = None) -> None:
        self.field = field
        super().__init__(message or f"{self.default_message} '{field}'")


class UnparsableNumericField(FieldError):
    default_message = "Cannot parse the numeric type of reading element"


class UnhandledFieldType(FieldError):
    default_message = "Cannot handle unsupported type of reading element"


class EmptyArrayValue(FieldError):
    default_message = "Cannot parse the array type of reading element"


class MissingRequiredField(FieldError):
    default_message = "Missing required reading field"


class InvalidField(FieldError):
    default_message = "Invalid value for reading field"
