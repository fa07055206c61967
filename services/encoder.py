"""Encode readings back into the storage-service reading-object shape."""

from __future__ import annotations

import json
from datetime import tzinfo
from typing import Any, Dict, Iterable, Optional

from models.readings import Reading, ReadingSet
from services.timestamps import format_timestamp


def reading_to_dict(reading: Reading, tz: Optional[tzinfo] = None) -> Dict[str, Any]:
    payload: Dict[str, Any] = {}
    if reading.has_id:
        payload["id"] = reading.id
    payload["asset_code"] = reading.asset_name
    payload["read_key"] = reading.uuid
    payload["user_ts"] = format_timestamp(reading.user_timestamp, tz)
    payload["ts"] = format_timestamp(reading.timestamp, tz)
    # Duplicate datapoint names collapse here; the last one wins.
    payload["reading"] = {
        datapoint.name: datapoint.value.to_python() for datapoint in reading.datapoints
    }
    return payload


def readings_to_rows(readings: Iterable[Reading], tz: Optional[tzinfo] = None) -> list[Dict[str, Any]]:
    return [reading_to_dict(reading, tz) for reading in readings]


def reading_set_to_dict(reading_set: ReadingSet, tz: Optional[tzinfo] = None) -> Dict[str, Any]:
    """Render a set in the query envelope shape."""
    return {"count": reading_set.count, "rows": readings_to_rows(reading_set, tz)}


def dumps(reading_set: ReadingSet, tz: Optional[tzinfo] = None, **kwargs: Any) -> str:
    return json.dumps(reading_set_to_dict(reading_set, tz), **kwargs)
