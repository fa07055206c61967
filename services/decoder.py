"""Decoding of storage-service JSON payloads into ``ReadingSet`` instances.

Two envelope shapes are accepted::

    {"count": <uint>, "rows": [<reading>, ...]}     # query result
    {"readings": [<reading>, ...]}                  # notification

Each ``<reading>`` object carries ``asset_code``, ``read_key``, ``user_ts``
and optionally ``id`` and ``ts``, plus either a numeric ``value`` or a
``reading`` member. Readings whose ``reading`` member is not an object are
quarantined: the asset is renamed with the quarantine prefix and the raw
scalar is kept as a datapoint named after the original asset.
"""

from __future__ import annotations

import json
import logging
import math
from datetime import datetime, tzinfo
from functools import lru_cache
from typing import Any, Dict, List, Mapping, Optional, Union

from models.readings import (
    INT64_MAX,
    INT64_MIN,
    LIST_ELEMENT_NAME,
    UINT64_MAX,
    Datapoint,
    DatapointValue,
    Reading,
    ReadingSet,
    RowError,
)
from services.errors import (
    DocumentMalformed,
    EmptyArrayValue,
    InvalidField,
    MissingRequiredField,
    MissingRowsOrReadings,
    ReadingSetError,
    RowNotObject,
    RowsNotArray,
    UnhandledFieldType,
    UnparsableNumericField,
)
from services.escaping import escape_json_string
from services.timestamps import parse_timestamp, resolve_timezone
from settings import get_settings

logger = logging.getLogger(__name__)

DEFAULT_QUARANTINE_PREFIX = "error_invalid_reading"
SOURCE_KEY_FIELD = "read_key"
VALUE_FIELD = "value"


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def classify_number(value: Any) -> Optional[DatapointValue]:
    """Decide Integer vs Float for a decoded JSON number.

    ``json`` yields ``int`` for integral literals and ``float`` for literals
    with a fraction or exponent, so the literal form drives the choice.
    Returns None when the number cannot be represented.
    """
    if not _is_number(value):
        return None
    if isinstance(value, int):
        if INT64_MIN <= value <= INT64_MAX:
            return DatapointValue.integer(value)
        return None
    if math.isfinite(value):
        return DatapointValue.floating(value)
    return None


def dict_to_datapoint_value(
    obj: Mapping[str, Any], log: Optional[logging.Logger] = None
) -> Optional[DatapointValue]:
    """Build an OBJECT value from the scalar members of ``obj``.

    Nested objects and arrays are not expanded; they are skipped along with
    booleans and nulls. Returns None when no member produced a datapoint.
    """
    log = log or logger
    members: List[Datapoint] = []
    for name, raw in obj.items():
        if isinstance(raw, str):
            members.append(Datapoint(name, DatapointValue.string(raw)))
        elif _is_number(raw):
            value = classify_number(raw)
            if value is None:
                raise UnparsableNumericField(name)
            members.append(Datapoint(name, value))
        else:
            log.debug(
                "Skipping non-scalar member inside reading array element",
                extra={"field": name, "reason": type(raw).__name__},
            )

    if not members:
        return None
    return DatapointValue.object(members)


class ReadingSetDecoder:
    """Decodes envelopes and reading objects according to one policy.

    The decoder holds no per-call state, so one instance can serve
    concurrent calls on independent payloads.
    """

    def __init__(
        self,
        quarantine_prefix: str = DEFAULT_QUARANTINE_PREFIX,
        timezone: Optional[tzinfo] = None,
        isolate_row_errors: bool = False,
        log: Optional[logging.Logger] = None,
    ) -> None:
        self.quarantine_prefix = quarantine_prefix
        self.timezone = timezone
        self.isolate_row_errors = isolate_row_errors
        self.log = log or logger

    def decode(
        self,
        document: Union[str, bytes],
        isolate_row_errors: Optional[bool] = None,
    ) -> ReadingSet:
        """Decode a query or notification envelope into a new ``ReadingSet``."""
        isolate = self.isolate_row_errors if isolate_row_errors is None else isolate_row_errors
        doc = self._parse_document(document)

        has_rows = "rows" in doc
        if not has_rows and "readings" not in doc:
            raise MissingRowsOrReadings()

        result = ReadingSet()
        declared_count: Optional[int] = None
        if has_rows and "count" in doc:
            declared_count = doc["count"]
            if not isinstance(declared_count, int) or isinstance(declared_count, bool) or declared_count < 0:
                raise InvalidField("count", "Expected 'count' to be an unsigned integer")
            if declared_count == 0:
                return result

        rows = doc["rows"] if has_rows else doc["readings"]
        if not isinstance(rows, list):
            raise RowsNotArray()

        for row_number, row in enumerate(rows, start=1):
            try:
                if not isinstance(row, dict):
                    raise RowNotObject()
                reading = self.decode_reading(row)
            except ReadingSetError as exc:
                if not isolate:
                    raise
                result.errors.append(
                    RowError(
                        row_number=row_number,
                        kind=exc.kind,
                        reason=str(exc),
                        field=exc.field,
                    )
                )
                self.log.warning(
                    "Skipping undecodable row",
                    extra={"row_number": row_number, "field": exc.field, "reason": str(exc)},
                )
                continue
            result.readings.append(reading)

        last = result.readings[-1] if result.readings else None
        result.last_id = last.id if last is not None and last.id is not None else 0
        result.count = declared_count if declared_count is not None else len(result.readings)

        self.log.info(
            "Decoded reading set",
            extra={"row_count": result.count, "last_id": result.last_id},
        )
        return result

    def decode_reading(self, obj: Mapping[str, Any]) -> Reading:
        """Decode a single reading object, quarantining invalid ``reading`` members."""
        reading_id = self._optional_id(obj)
        asset = self._required_str(obj, "asset_code")
        if not asset:
            raise InvalidField("asset_code", "Expected 'asset_code' to be a non-empty string")
        user_ts = self._timestamp(obj, "user_ts", required=True)
        ts = self._timestamp(obj, "ts", required=False) or user_ts
        uuid = self._required_str(obj, SOURCE_KEY_FIELD)

        reading = Reading(
            asset_name=asset,
            uuid=uuid,
            user_timestamp=user_ts,
            timestamp=ts,
            id=reading_id,
        )

        value = obj.get(VALUE_FIELD)
        if VALUE_FIELD in obj and _is_number(value):
            classified = classify_number(value)
            if classified is None:
                raise UnparsableNumericField(VALUE_FIELD)
            reading.add_datapoint(Datapoint(VALUE_FIELD, classified))
        elif isinstance(obj.get("reading"), dict):
            for datapoint in self._decode_members(obj["reading"]):
                reading.add_datapoint(datapoint)
        else:
            self._quarantine(reading, obj.get("reading"))

        self.log.debug(
            "Decoded reading",
            extra={"asset_code": reading.asset_name, "reading_id": reading.id},
        )
        return reading

    def _decode_members(self, members: Mapping[str, Any]) -> List[Datapoint]:
        datapoints: List[Datapoint] = []
        for name, raw in members.items():
            if isinstance(raw, str):
                datapoints.append(Datapoint(name, DatapointValue.string(raw)))
            elif _is_number(raw):
                value = classify_number(raw)
                if value is None:
                    raise UnparsableNumericField(name)
                datapoints.append(Datapoint(name, value))
            elif isinstance(raw, list):
                datapoints.append(Datapoint(VALUE_FIELD, self._decode_array(name, raw)))
            else:
                raise UnhandledFieldType(
                    name,
                    f"Cannot handle unsupported type '{_json_type_name(raw)}' "
                    f"of reading element '{name}'",
                )
        return datapoints

    def _decode_array(self, name: str, elements: List[Any]) -> DatapointValue:
        items: List[Datapoint] = []
        for element in elements:
            if not isinstance(element, dict):
                raise RowNotObject()
            value = dict_to_datapoint_value(element, self.log)
            if value is None:
                raise EmptyArrayValue(
                    name, f"Array element of reading element '{name}' has no scalar members"
                )
            items.append(Datapoint(LIST_ELEMENT_NAME, value))
        if not items:
            raise EmptyArrayValue(name)
        return DatapointValue.array(items)

    def _quarantine(self, reading: Reading, raw: Any) -> None:
        original_asset = reading.asset_name
        converted: Any = raw
        if isinstance(raw, str):
            converted = escape_json_string(raw)
            reading.add_datapoint(Datapoint(original_asset, DatapointValue.string(converted)))
        elif _is_number(raw):
            value = classify_number(raw)
            if value is None:
                raise UnparsableNumericField("reading")
            reading.add_datapoint(Datapoint(original_asset, value))

        reading.asset_name = f"{self.quarantine_prefix}_{original_asset}"
        self.log.error(
            "Invalid reading: value %r converted to %r",
            raw,
            converted,
            extra={
                "asset_code": original_asset,
                "reading_id": reading.id,
                "invalid_value": _json_type_name(raw),
            },
        )

    def _parse_document(self, document: Union[str, bytes]) -> Dict[str, Any]:
        try:
            doc = json.loads(document, parse_constant=_reject_constant)
        except (ValueError, TypeError) as exc:
            raise DocumentMalformed(f"Unable to parse results json document: {exc}") from exc
        except RecursionError as exc:
            raise DocumentMalformed("Unable to parse results json document: nesting too deep") from exc
        if not isinstance(doc, dict):
            raise DocumentMalformed("Unable to parse results json document: expected an object")
        return doc

    def _timestamp(
        self, obj: Mapping[str, Any], name: str, required: bool
    ) -> Optional[datetime]:
        if name not in obj:
            if required:
                raise MissingRequiredField(name)
            return None
        raw = obj[name]
        if not isinstance(raw, str):
            raise InvalidField(name, f"Expected '{name}' to be a timestamp string")
        try:
            return parse_timestamp(raw, self.timezone)
        except (ValueError, OverflowError) as exc:
            raise InvalidField(name, f"Invalid timestamp in '{name}': {raw!r}") from exc

    @staticmethod
    def _required_str(obj: Mapping[str, Any], name: str) -> str:
        if name not in obj:
            raise MissingRequiredField(name)
        raw = obj[name]
        if not isinstance(raw, str):
            raise InvalidField(name, f"Expected '{name}' to be a string")
        return raw

    @staticmethod
    def _optional_id(obj: Mapping[str, Any]) -> Optional[int]:
        if "id" not in obj:
            return None
        raw = obj["id"]
        if isinstance(raw, bool) or not isinstance(raw, int) or not 0 <= raw <= UINT64_MAX:
            raise InvalidField("id", "Expected 'id' to be an unsigned integer")
        return raw


def _reject_constant(name: str) -> Any:
    raise ValueError(f"Unsupported JSON constant {name}")


def _json_type_name(value: Any) -> str:
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "bool"
    if isinstance(value, dict):
        return "object"
    if isinstance(value, list):
        return "array"
    if isinstance(value, str):
        return "string"
    return "number"


@lru_cache
def build_default_decoder() -> ReadingSetDecoder:
    """Factory that wires a decoder from environment settings."""
    settings = get_settings()
    return ReadingSetDecoder(
        quarantine_prefix=settings.quarantine_prefix,
        timezone=resolve_timezone(settings.timezone),
        isolate_row_errors=settings.isolate_row_errors,
    )


def reading_set_from_json(document: Union[str, bytes]) -> ReadingSet:
    return build_default_decoder().decode(document)


def reading_from_json(obj: Mapping[str, Any]) -> Reading:
    return build_default_decoder().decode_reading(obj)
