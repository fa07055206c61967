from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Optional

import typer

from app.schemas import ReadingSetResponse
from cli.client import ApiClient
from cli.config import CLIConfig, load_config
from cli.render import render_reading_set
from logging_config import configure_logging
from services.decoder import build_default_decoder
from services.errors import ReadingSetError


@dataclass
class CLIState:
    config: CLIConfig
    client: ApiClient


app = typer.Typer(
    help="Utilities for decoding storage-service reading payloads.",
    context_settings={"help_option_names": ["-h", "--help"]},
)


def _get_state(ctx: typer.Context) -> CLIState:
    state = ctx.obj
    if not isinstance(state, CLIState):
        raise typer.Exit(code=1)
    return state


@app.callback()
def main(
    ctx: typer.Context,
    base_url: Optional[str] = typer.Option(
        None,
        "--base-url",
        "-b",
        help="Decoder API base URL (defaults to API_BASE_URL env or http://localhost:8000).",
    ),
    timeout: Optional[float] = typer.Option(
        None,
        "--timeout",
        help="Seconds to wait for the decoder API to respond.",
    ),
) -> None:
    """Entry point for the CLI."""
    configure_logging()
    config = load_config(base_url=base_url, request_timeout=timeout)
    client = ApiClient(config)
    ctx.obj = CLIState(config=config, client=client)
    ctx.call_on_close(client.close)


@app.command("decode")
def decode_command(
    file: Path = typer.Argument(..., exists=True, dir_okay=False, readable=True, help="Path to JSON payload."),
    isolate: Optional[bool] = typer.Option(
        None,
        "--isolate/--strict",
        help="Skip undecodable rows instead of rejecting the whole payload.",
    ),
) -> None:
    """Decode a local payload and display the readings."""
    decoder = build_default_decoder()
    try:
        reading_set = decoder.decode(file.read_bytes(), isolate_row_errors=isolate)
    except ReadingSetError as exc:
        typer.secho(f"{exc.kind}: {exc}", fg=typer.colors.RED, err=True)
        raise typer.Exit(code=1) from exc
    render_reading_set(ReadingSetResponse.from_reading_set(reading_set).model_dump(mode="json"))


@app.command("submit")
def submit_command(
    ctx: typer.Context,
    file: Path = typer.Argument(..., exists=True, dir_okay=False, readable=True, help="Path to JSON payload."),
    isolate: Optional[bool] = typer.Option(
        None,
        "--isolate/--strict",
        help="Ask the service to skip undecodable rows.",
    ),
) -> None:
    """Send a payload to the decoder service and display the result."""
    state = _get_state(ctx)
    typer.echo(f"Submitting {file} to {state.config.base_url} ...")
    payload = state.client.decode_file(file, isolate=isolate)
    typer.echo()
    render_reading_set(payload)
