"""Domain models for decoded sensor readings."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Iterable, Iterator, List, Optional, Tuple, Union

INT64_MIN = -(2**63)
INT64_MAX = 2**63 - 1
UINT64_MAX = 2**64 - 1

LIST_ELEMENT_NAME = "unnamed_list_elem#"


class DatapointType(str, Enum):
    """Discriminant of a ``DatapointValue``."""

    INTEGER = "integer"
    FLOAT = "float"
    STRING = "string"
    ARRAY = "array"
    OBJECT = "object"


Payload = Union[int, float, str, Tuple["Datapoint", ...]]


@dataclass(frozen=True, slots=True)
class DatapointValue:
    """Tagged union holding a scalar or a composite of nested datapoints.

    Use the named constructors; the discriminant is fixed when the value is
    built and is never inferred from the payload afterwards. Composite
    values own their children as an immutable tuple.
    """

    type: DatapointType
    payload: Payload

    def __post_init__(self) -> None:
        kind, payload = self.type, self.payload
        if kind is DatapointType.INTEGER:
            if isinstance(payload, bool) or not isinstance(payload, int):
                raise TypeError("INTEGER datapoint values require an int payload")
            if not INT64_MIN <= payload <= INT64_MAX:
                raise ValueError(f"Integer {payload} does not fit in 64 bits")
        elif kind is DatapointType.FLOAT:
            if not isinstance(payload, float):
                raise TypeError("FLOAT datapoint values require a float payload")
        elif kind is DatapointType.STRING:
            if not isinstance(payload, str):
                raise TypeError("STRING datapoint values require a str payload")
        elif not isinstance(payload, tuple) or not all(
            isinstance(item, Datapoint) for item in payload
        ):
            raise TypeError(f"{kind.name} datapoint values require a tuple of Datapoint")

    @classmethod
    def integer(cls, value: int) -> "DatapointValue":
        return cls(DatapointType.INTEGER, value)

    @classmethod
    def floating(cls, value: float) -> "DatapointValue":
        return cls(DatapointType.FLOAT, value)

    @classmethod
    def string(cls, value: str) -> "DatapointValue":
        return cls(DatapointType.STRING, value)

    @classmethod
    def array(cls, items: Iterable["Datapoint"]) -> "DatapointValue":
        return cls(DatapointType.ARRAY, tuple(items))

    @classmethod
    def object(cls, members: Iterable["Datapoint"]) -> "DatapointValue":
        return cls(DatapointType.OBJECT, tuple(members))

    @property
    def is_composite(self) -> bool:
        return self.type in (DatapointType.ARRAY, DatapointType.OBJECT)

    @property
    def children(self) -> Tuple["Datapoint", ...]:
        if not self.is_composite:
            return ()
        return self.payload  # type: ignore[return-value]

    def to_python(self) -> Any:
        """Return the plain JSON-compatible value of this tree."""
        if self.type is DatapointType.ARRAY:
            return [item.value.to_python() for item in self.children]
        if self.type is DatapointType.OBJECT:
            return {item.name: item.value.to_python() for item in self.children}
        return self.payload


@dataclass(frozen=True, slots=True)
class Datapoint:
    """A name bound to one value. Names need not be unique within a reading."""

    name: str
    value: DatapointValue


@dataclass(slots=True)
class Reading:
    """One sensor observation: identity fields plus ordered datapoints."""

    asset_name: str
    uuid: str
    user_timestamp: datetime
    timestamp: datetime
    id: Optional[int] = None
    datapoints: List[Datapoint] = field(default_factory=list)

    @property
    def has_id(self) -> bool:
        return self.id is not None

    def add_datapoint(self, datapoint: Datapoint) -> None:
        self.datapoints.append(datapoint)

    def datapoint_names(self) -> List[str]:
        return [datapoint.name for datapoint in self.datapoints]

    def get_datapoint(self, name: str) -> Optional[Datapoint]:
        for datapoint in self.datapoints:
            if datapoint.name == name:
                return datapoint
        return None


@dataclass(frozen=True, slots=True)
class RowError:
    """A row skipped while decoding with per-row isolation enabled."""

    row_number: int
    kind: str
    reason: str
    field: Optional[str] = None


class ReadingSet:
    """Ordered collection owning the readings decoded from one payload.

    ``count`` is the declared (or derived) row count of the payload and
    ``last_id`` the identifier of the last decoded reading. Instances are not
    synchronized; callers sharing one across threads must serialize mutation.
    """

    def __init__(self, readings: Optional[List[Reading]] = None) -> None:
        self._readings: List[Reading] = list(readings) if readings else []
        self.count: int = len(self._readings)
        self.last_id: int = 0
        self.errors: List[RowError] = []

    @property
    def readings(self) -> List[Reading]:
        return self._readings

    def __len__(self) -> int:
        return len(self._readings)

    def __iter__(self) -> Iterator[Reading]:
        return iter(self._readings)

    def __repr__(self) -> str:
        return (
            f"ReadingSet(count={self.count}, last_id={self.last_id}, "
            f"readings={len(self._readings)}, errors={len(self.errors)})"
        )

    def append(self, source: Union["ReadingSet", List[Reading]]) -> None:
        """Move every reading of ``source`` into this set.

        The source is left empty but usable; its readings are detached, not
        dropped, since they now belong to this set.
        """
        if isinstance(source, ReadingSet):
            moved = source.clear()
        else:
            moved = list(source)
            source.clear()
        self._readings.extend(moved)
        self.count += len(moved)

    def clear(self) -> List[Reading]:
        """Detach the readings and hand them to the caller."""
        detached, self._readings = self._readings, []
        return detached

    def remove_all(self) -> None:
        """Drop every reading held by the set."""
        self._readings.clear()
