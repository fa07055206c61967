"""Unit tests for the reading domain model."""

from __future__ import annotations

from datetime import datetime, timezone

import pytest

from models.readings import (
    Datapoint,
    DatapointType,
    DatapointValue,
    LIST_ELEMENT_NAME,
    Reading,
    ReadingSet,
)


def _reading(asset: str, reading_id: int | None = None) -> Reading:
    """Helper to build deterministic readings."""

    instant = datetime(2024, 1, 1, tzinfo=timezone.utc)
    reading = Reading(
        asset_name=asset,
        uuid="key-1",
        user_timestamp=instant,
        timestamp=instant,
        id=reading_id,
    )
    reading.add_datapoint(Datapoint("value", DatapointValue.integer(1)))
    return reading


def test_named_constructors_set_discriminant() -> None:
    assert DatapointValue.integer(7).type is DatapointType.INTEGER
    assert DatapointValue.floating(7.0).type is DatapointType.FLOAT
    assert DatapointValue.string("x").type is DatapointType.STRING
    assert DatapointValue.object([]).type is DatapointType.OBJECT
    assert DatapointValue.array([]).type is DatapointType.ARRAY


def test_integer_and_float_are_not_equal() -> None:
    assert DatapointValue.integer(7) != DatapointValue.floating(7.0)


@pytest.mark.parametrize(
    "factory, payload",
    [
        (DatapointValue.integer, 1.5),
        (DatapointValue.integer, True),
        (DatapointValue.floating, 1),
        (DatapointValue.string, 3),
    ],
)
def test_constructors_reject_mismatched_payloads(factory, payload) -> None:
    with pytest.raises(TypeError):
        factory(payload)


def test_integer_must_fit_in_64_bits() -> None:
    with pytest.raises(ValueError):
        DatapointValue.integer(2**63)


def test_composite_value_to_python() -> None:
    element = DatapointValue.object(
        [
            Datapoint("a", DatapointValue.integer(1)),
            Datapoint("b", DatapointValue.string("x")),
        ]
    )
    array = DatapointValue.array([Datapoint(LIST_ELEMENT_NAME, element)])

    assert array.is_composite
    assert array.children[0].value == element
    assert array.to_python() == [{"a": 1, "b": "x"}]


def test_reading_allows_duplicate_datapoint_names() -> None:
    reading = _reading("pump")
    reading.add_datapoint(Datapoint("value", DatapointValue.integer(2)))

    assert reading.datapoint_names() == ["value", "value"]
    first = reading.get_datapoint("value")
    assert first is not None
    assert first.value == DatapointValue.integer(1)
    assert reading.get_datapoint("missing") is None
    assert reading.has_id is False


def test_reading_set_from_existing_readings_counts_them() -> None:
    readings = [_reading("a"), _reading("b")]

    reading_set = ReadingSet(readings)

    assert reading_set.count == 2
    assert len(reading_set) == 2
    assert reading_set.last_id == 0
    assert [reading.asset_name for reading in reading_set] == ["a", "b"]


def test_append_reading_set_transfers_ownership() -> None:
    destination = ReadingSet([_reading("a")])
    source = ReadingSet([_reading("b"), _reading("c")])
    moved = list(source.readings)

    destination.append(source)

    assert [r.asset_name for r in destination] == ["a", "b", "c"]
    assert destination.count == 3
    assert len(source) == 0
    assert destination.readings[1] is moved[0]

    # The emptied source remains usable.
    source.append([_reading("d")])
    assert [r.asset_name for r in source] == ["d"]


def test_append_list_clears_source_list() -> None:
    destination = ReadingSet()
    batch = [_reading("a"), _reading("b")]

    destination.append(batch)

    assert batch == []
    assert destination.count == 2


def test_clear_detaches_readings_without_destroying_them() -> None:
    reading = _reading("a", reading_id=5)
    reading_set = ReadingSet([reading])

    detached = reading_set.clear()

    assert detached == [reading]
    assert detached[0].datapoints
    assert len(reading_set) == 0


def test_remove_all_empties_the_set() -> None:
    reading_set = ReadingSet([_reading("a"), _reading("b")])

    reading_set.remove_all()

    assert len(reading_set) == 0
    assert list(reading_set) == []
