"""Tests for the CLI."""

import json

import pytest
import yaml
from fastapi.testclient import TestClient
from rich.console import Console
from typer.testing import CliRunner

from treasury_dashboard.cli import main as cli

runner = CliRunner()


@pytest.fixture(autouse=True)
def wide_console(monkeypatch):
    """Render wide enough that table cells never wrap."""
    monkeypatch.setattr(cli, "console", Console(width=200))


@pytest.fixture
def offline_cli(monkeypatch, make_context):
    """Route the CLI's context construction to the fake upstream."""
    monkeypatch.setattr(cli, "build_context", lambda config: make_context())


def test_wallets_lists_configured_wallets():
    """The bundled configuration lists every treasury wallet."""
    result = runner.invoke(cli.app, ["wallets"])

    assert result.exit_code == 0
    assert "Aurelius Foundation" in result.output
    assert "Aurelius Validator" in result.output
    assert "validator" in result.output
    assert "ethereum" in result.output


def test_snapshot_json(offline_cli):
    """JSON output is the same payload the HTTP endpoint serves."""
    result = runner.invoke(cli.app, ["snapshot", "--format", "json"])

    assert result.exit_code == 0
    data = json.loads(result.output[result.output.index("{") :])
    assert data["treasury"]["totalUSD"] == 84000.0
    assert data["burnRate"]["runwayMonths"] == 21.0


def test_snapshot_table(offline_cli):
    """Table output renders the overview."""
    result = runner.invoke(cli.app, ["snapshot"])

    assert result.exit_code == 0
    assert "Treasury Overview" in result.output
    assert "$84,000" in result.output


def test_watch_runs_requested_refreshes(offline_cli):
    """Watch mode stops after ``--count`` refreshes."""
    result = runner.invoke(cli.app, ["watch", "--interval", "0", "--count", "2"])

    assert result.exit_code == 0
    assert result.output.count("Treasury Overview") == 2
    assert "Refreshing every 0s" in result.output


def test_invalid_config_path(tmp_path):
    """A config file that does not match the schema exits with an error."""
    bad = tmp_path / "dashboard.yaml"
    bad.write_text("wallets: {}\n")

    result = runner.invoke(cli.app, ["--config", str(bad), "wallets"])

    assert result.exit_code == 1
    assert "Failed to load configuration" in result.output


def test_serve_uses_config_option(monkeypatch, tmp_path, config):
    """The served app is built from the ``--config`` file, not the bundled one."""
    alt = tmp_path / "alt.yaml"
    raw = config.model_dump(mode="json")
    raw["sheets"]["expenses"] = "alt-sheet"
    alt.write_text(yaml.safe_dump(raw))
    served = {}

    def fake_run(api, **kwargs):
        with TestClient(api) as client:
            served["sheet"] = client.app.state.context.config.sheets.expenses
            served["port"] = kwargs["port"]

    monkeypatch.setattr(cli.uvicorn, "run", fake_run)
    result = runner.invoke(cli.app, ["--config", str(alt), "serve", "--port", "8123"])

    assert result.exit_code == 0
    assert served == {"sheet": "alt-sheet", "port": 8123}
