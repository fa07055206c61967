"""Pydantic schemas for the HTTP API layer."""

from __future__ import annotations

from datetime import datetime
from typing import List, Optional, Union

from pydantic import BaseModel, Field

from models.readings import Datapoint, DatapointType, Reading, ReadingSet, RowError


class DatapointSchema(BaseModel):
    """A named datapoint; composite values nest further datapoints."""

    name: str
    type: DatapointType
    value: Union[int, float, str, List["DatapointSchema"]]

    @classmethod
    def from_datapoint(cls, datapoint: Datapoint) -> "DatapointSchema":
        value = datapoint.value
        if value.is_composite:
            payload: Union[int, float, str, List[DatapointSchema]] = [
                cls.from_datapoint(child) for child in value.children
            ]
        else:
            payload = value.payload  # type: ignore[assignment]
        return cls(name=datapoint.name, type=value.type, value=payload)


class ReadingSchema(BaseModel):
    """A decoded reading with its identity fields."""

    id: Optional[int] = Field(default=None, ge=0)
    asset_code: str
    read_key: str
    user_ts: datetime
    ts: datetime
    datapoints: List[DatapointSchema] = Field(default_factory=list)

    @classmethod
    def from_reading(cls, reading: Reading) -> "ReadingSchema":
        return cls(
            id=reading.id,
            asset_code=reading.asset_name,
            read_key=reading.uuid,
            user_ts=reading.user_timestamp,
            ts=reading.timestamp,
            datapoints=[DatapointSchema.from_datapoint(dp) for dp in reading.datapoints],
        )


class RowErrorSchema(BaseModel):
    """Details about a row skipped under per-row isolation."""

    row_number: int = Field(..., ge=1)
    kind: str
    reason: str
    field: Optional[str] = None

    @classmethod
    def from_row_error(cls, error: RowError) -> "RowErrorSchema":
        return cls(
            row_number=error.row_number,
            kind=error.kind,
            reason=error.reason,
            field=error.field,
        )


class ReadingSetResponse(BaseModel):
    """Full decode result for one payload."""

    count: int = Field(..., ge=0)
    last_id: int = Field(..., ge=0)
    readings: List[ReadingSchema] = Field(default_factory=list)
    errors: List[RowErrorSchema] = Field(default_factory=list)

    @classmethod
    def from_reading_set(cls, reading_set: ReadingSet) -> "ReadingSetResponse":
        return cls(
            count=reading_set.count,
            last_id=reading_set.last_id,
            readings=[ReadingSchema.from_reading(reading) for reading in reading_set],
            errors=[RowErrorSchema.from_row_error(error) for error in reading_set.errors],
        )


class DecodeErrorDetail(BaseModel):
    """Body of a 400 response for a payload that failed to decode."""

    kind: str
    message: str
    field: Optional[str] = None


DatapointSchema.model_rebuild()
