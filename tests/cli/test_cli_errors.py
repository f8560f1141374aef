"""Tests for CLI error handling.

Verifies:
    - Missing snapshot paths are rejected by argument validation.
    - Unparseable snapshots and invalid configs exit with code 2.
    - Errors are reported as JSON when ``--format json`` is requested.
    - Unknown ``--only`` names exit with code 2.
"""

from __future__ import annotations

import json
from pathlib import Path

import pytest
from click.testing import CliRunner

from clawmon.cli.main import cli


@pytest.fixture
def runner() -> CliRunner:
    """Create a Click CliRunner for invoking commands."""
    return CliRunner()


@pytest.mark.parametrize("command", ["score", "compare", "detect"])
def test_missing_snapshot(runner: CliRunner, tmp_path: Path, command: str) -> None:
    result = runner.invoke(cli, [command, str(tmp_path / "absent.json")])
    assert result.exit_code == 2


@pytest.mark.parametrize("command", ["score", "compare", "detect"])
def test_broken_snapshot_text(
    runner: CliRunner, broken_snapshot: Path, command: str
) -> None:
    result = runner.invoke(cli, [command, str(broken_snapshot)])
    assert result.exit_code == 2
    assert "Error: Invalid JSON" in result.output


def test_broken_snapshot_json(runner: CliRunner, broken_snapshot: Path) -> None:
    result = runner.invoke(cli, ["score", str(broken_snapshot), "--format", "json"])
    assert result.exit_code == 2
    assert json.loads(result.output)["error"].startswith("Invalid JSON")


def test_wrong_snapshot_shape(runner: CliRunner, tmp_path: Path) -> None:
    path = tmp_path / "shape.json"
    path.write_text(json.dumps({"items": []}))
    result = runner.invoke(cli, ["score", str(path)])
    assert result.exit_code == 2
    assert "feedback" in result.output


@pytest.mark.parametrize("command", ["score", "compare", "detect"])
def test_invalid_config(
    runner: CliRunner, snapshot_file: Path, invalid_config: Path, command: str
) -> None:
    result = runner.invoke(cli, [
        command, str(snapshot_file), "--config", str(invalid_config),
        "--format", "json",
    ])
    assert result.exit_code == 2
    assert "discount_factor" in json.loads(result.output)["error"]


def test_unknown_only_name(runner: CliRunner, snapshot_file: Path) -> None:
    result = runner.invoke(cli, ["score", str(snapshot_file), "--only", "pagerank"])
    assert result.exit_code == 2
    assert "Unknown mitigation 'pagerank'" in result.output


def test_unknown_command(runner: CliRunner) -> None:
    result = runner.invoke(cli, ["frobnicate"])
    assert result.exit_code != 0
