from __future__ import annotations

import logging

from logging_config import ContextualFormatter


def _record(**extra) -> logging.LogRecord:
    record = logging.LogRecord(
        name="services.decoder",
        level=logging.ERROR,
        pathname=__file__,
        lineno=1,
        msg="Invalid reading",
        args=(),
        exc_info=None,
    )
    for key, value in extra.items():
        setattr(record, key, value)
    return record


def test_formatter_appends_known_extra_keys() -> None:
    formatter = ContextualFormatter(fmt="%(message)s")

    message = formatter.format(_record(asset_code="temp1", reading_id=4, unknown="x"))

    assert message == "Invalid reading | asset_code=temp1 reading_id=4"


def test_formatter_quotes_values_with_whitespace() -> None:
    formatter = ContextualFormatter(fmt="%(message)s", extra_keys=["reason"])

    message = formatter.format(_record(reason="bad value", asset_code="ignored"))

    assert message == "Invalid reading | reason='bad value'"


def test_formatter_without_context_leaves_message() -> None:
    formatter = ContextualFormatter(fmt="%(levelname)s %(message)s")

    assert formatter.format(_record(field=None)) == "ERROR Invalid reading"
