from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Dict, List

import pytest
from typer.testing import CliRunner

from cli.app import app
from cli.config import load_config


class StubClient:
    def __init__(self, config) -> None:
        self.config = config
        self.decode_calls: List[tuple[Path, bool | None]] = []
        self.result_payload: Dict[str, Any] = {
            "count": 1,
            "last_id": 42,
            "readings": [
                {
                    "id": 42,
                    "asset_code": "temp1",
                    "read_key": "key-42",
                    "user_ts": "2020-01-01T10:00:00.500000Z",
                    "ts": "2020-01-01T10:00:00.500000Z",
                    "datapoints": [{"name": "temperature", "type": "integer", "value": 21}],
                }
            ],
            "errors": [],
        }
        self.closed = False

    def decode_file(self, path: Path, isolate: bool | None = None) -> Dict[str, Any]:
        self.decode_calls.append((path, isolate))
        return self.result_payload

    def close(self) -> None:
        self.closed = True


@pytest.fixture()
def runner() -> CliRunner:
    return CliRunner()


@pytest.fixture(autouse=True)
def _quiet_logging(monkeypatch) -> None:
    monkeypatch.setattr("cli.app.configure_logging", lambda: None)


def _install_stub(monkeypatch, stub: StubClient) -> None:
    def factory(config):
        stub.config = config
        return stub

    monkeypatch.setattr("cli.app.ApiClient", factory)


def _write_payload(tmp_path: Path, payload: Dict[str, Any]) -> Path:
    path = tmp_path / "payload.json"
    path.write_text(json.dumps(payload))
    return path


def _row(reading_id: int, reading: Any) -> Dict[str, Any]:
    return {
        "id": reading_id,
        "asset_code": "temp1",
        "read_key": f"key-{reading_id}",
        "user_ts": "2020-01-01 10:00:00",
        "reading": reading,
    }


def test_decode_renders_local_payload(monkeypatch, runner: CliRunner, tmp_path) -> None:
    stub = StubClient(config=None)
    _install_stub(monkeypatch, stub)
    path = _write_payload(
        tmp_path,
        {"count": 1, "rows": [_row(42, {"value": [{"a": 1}], "unit": "C"})]},
    )

    result = runner.invoke(app, ["decode", str(path)])

    assert result.exit_code == 0
    assert "count: 1" in result.stdout
    assert "last_id: 42" in result.stdout
    assert "#42 temp1" in result.stdout
    assert "unnamed_list_elem# (object):" in result.stdout
    assert "a (integer): 1" in result.stdout
    assert "unit (string): 'C'" in result.stdout
    assert not stub.decode_calls
    assert stub.closed is True


def test_decode_reports_errors(monkeypatch, runner: CliRunner, tmp_path) -> None:
    _install_stub(monkeypatch, StubClient(config=None))
    path = _write_payload(tmp_path, {"items": []})

    result = runner.invoke(app, ["decode", str(path)])

    assert result.exit_code == 1
    assert "MissingRowsOrReadings" in result.output


def test_decode_isolate_lists_skipped_rows(monkeypatch, runner: CliRunner, tmp_path) -> None:
    _install_stub(monkeypatch, StubClient(config=None))
    path = _write_payload(tmp_path, {"readings": [_row(1, {"ok": 1}), 7]})

    result = runner.invoke(app, ["decode", "--isolate", str(path)])

    assert result.exit_code == 0
    assert "Skipped rows" in result.stdout
    assert "row 2: RowNotObject" in result.stdout


def test_submit_uses_api_client(monkeypatch, runner: CliRunner, tmp_path) -> None:
    stub = StubClient(config=None)
    _install_stub(monkeypatch, stub)
    path = _write_payload(tmp_path, {"readings": []})

    result = runner.invoke(
        app,
        ["--base-url", "http://example.test/", "submit", "--strict", str(path)],
    )

    assert result.exit_code == 0
    assert stub.decode_calls == [(path, False)]
    assert stub.config.base_url == "http://example.test"
    assert "temperature (integer): 21" in result.stdout
    assert stub.closed is True


def test_load_config_reads_environment(monkeypatch) -> None:
    monkeypatch.setenv("API_BASE_URL", "http://decoder:9000/")
    monkeypatch.setenv("CLI_REQUEST_TIMEOUT", "not-a-number")

    config = load_config()

    assert config.base_url == "http://decoder:9000"
    assert config.request_timeout == 30.0
