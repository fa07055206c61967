from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest

from services.escaping import escape_json_string
from services.timestamps import format_timestamp, parse_timestamp, resolve_timezone


def test_parse_timestamp_fraction_becomes_microseconds() -> None:
    parsed = parse_timestamp("2020-01-01 10:00:00.5")

    assert parsed.microsecond == 500000
    assert parsed.tzinfo is timezone.utc


def test_parse_timestamp_without_fraction_has_zero_microseconds() -> None:
    assert parse_timestamp("2020-01-01 10:00:00").microsecond == 0


def test_parse_timestamp_truncates_fraction_beyond_microseconds() -> None:
    parsed = parse_timestamp("2020-01-01 10:00:00.123456789", tz=timezone.utc)

    assert parsed == datetime(2020, 1, 1, 10, 0, 0, 123456, tzinfo=timezone.utc)


def test_parse_timestamp_subtracts_zone_offset() -> None:
    plus_two = timezone(timedelta(hours=2))

    parsed = parse_timestamp("2020-01-01 10:00:00.000001", tz=plus_two)

    assert parsed == datetime(2020, 1, 1, 8, 0, 0, 1, tzinfo=timezone.utc)


def test_parse_timestamp_ignores_trailing_text() -> None:
    parsed = parse_timestamp("2020-01-01 10:00:00.25+00", tz=timezone.utc)

    assert parsed == datetime(2020, 1, 1, 10, 0, 0, 250000, tzinfo=timezone.utc)


@pytest.mark.parametrize("text", ["", "yesterday", "2020-13-01 10:00:00", "2020-01-01"])
def test_parse_timestamp_rejects_invalid_text(text: str) -> None:
    with pytest.raises(ValueError):
        parse_timestamp(text, tz=timezone.utc)


def test_format_timestamp_renders_wall_clock() -> None:
    instant = datetime(2020, 1, 1, 8, 0, 0, 500000, tzinfo=timezone.utc)

    assert format_timestamp(instant, timezone(timedelta(hours=2))) == "2020-01-01 10:00:00.500000"


def test_resolve_timezone() -> None:
    assert resolve_timezone(None) is None
    assert resolve_timezone("utc") is timezone.utc


def test_escape_json_string_escapes_quotes() -> None:
    assert escape_json_string('hello "world"') == 'hello \\"world\\"'


def test_escape_json_string_escapes_backslash_before_quote() -> None:
    assert escape_json_string('a\\b"c') == 'a\\\\b\\"c'
    assert escape_json_string("plain") == "plain"
