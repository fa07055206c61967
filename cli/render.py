from __future__ import annotations

from typing import Any, Dict, Iterable, List

import typer


def echo_heading(text: str) -> None:
    typer.secho(text, bold=True)


def echo_key_values(pairs: Iterable[tuple[str, Any]]) -> None:
    for key, value in pairs:
        typer.echo(f"{key}: {value}")


def _datapoint_lines(datapoints: List[Dict[str, Any]], depth: int) -> List[str]:
    indent = "  " * depth
    lines: List[str] = []
    for datapoint in datapoints:
        value = datapoint.get("value")
        kind = datapoint.get("type")
        if isinstance(value, list):
            lines.append(f"{indent}- {datapoint.get('name')} ({kind}):")
            lines.extend(_datapoint_lines(value, depth + 1))
        else:
            lines.append(f"{indent}- {datapoint.get('name')} ({kind}): {value!r}")
    return lines


def render_reading_set(payload: Dict[str, Any]) -> None:
    echo_heading("Reading Set")
    echo_key_values(
        [
            ("count", payload.get("count")),
            ("last_id", payload.get("last_id")),
        ]
    )

    readings = payload.get("readings") or []
    typer.echo()
    echo_heading("Readings")
    if readings:
        for reading in readings:
            reading_id = reading.get("id")
            label = f"#{reading_id} " if reading_id is not None else ""
            typer.echo(f"{label}{reading.get('asset_code')} @ {reading.get('user_ts')}")
            for line in _datapoint_lines(reading.get("datapoints") or [], depth=1):
                typer.echo(line)
    else:
        typer.echo("No readings decoded.")

    errors = payload.get("errors") or []
    if errors:
        typer.echo()
        echo_heading("Skipped rows")
        for error in errors:
            typer.echo(
                f"  - row {error.get('row_number')}: {error.get('kind')}: {error.get('reason')}"
            )
