"""Tests for ``clawmon detect`` command."""

from __future__ import annotations

import json
from pathlib import Path

import pytest
from click.testing import CliRunner

from clawmon.cli.main import cli

SYBILS = [f"sybil-{i}" for i in range(1, 6)]


@pytest.fixture
def runner() -> CliRunner:
    """Create a Click CliRunner for invoking commands."""
    return CliRunner()


class TestDetectJson:
    """Tests for the JSON detection report."""

    def test_report_sections(self, runner: CliRunner, snapshot_file: Path) -> None:
        result = runner.invoke(cli, ["detect", str(snapshot_file), "--format", "json"])
        assert result.exit_code == 0
        data = json.loads(result.output)
        assert set(data) == {
            "mutual_pairs", "sybil_clusters", "sybil_rank", "jaccard", "temporal",
        }

    def test_ring_detected(self, runner: CliRunner, snapshot_file: Path) -> None:
        result = runner.invoke(cli, ["detect", str(snapshot_file), "--format", "json"])
        data = json.loads(result.output)
        assert len(data["mutual_pairs"]) == 10
        assert data["sybil_clusters"] == [SYBILS]

    def test_sybil_rank_summary(self, runner: CliRunner, snapshot_file: Path) -> None:
        result = runner.invoke(cli, ["detect", str(snapshot_file), "--format", "json"])
        rank = json.loads(result.output)["sybil_rank"]
        assert rank["node_count"] == 37
        assert rank["iterations_run"] == 6
        assert len(rank["seeds"]) == 9

    def test_no_scripted_timing(self, runner: CliRunner, snapshot_file: Path) -> None:
        result = runner.invoke(cli, ["detect", str(snapshot_file), "--format", "json"])
        temporal = json.loads(result.output)["temporal"]
        assert temporal["lockstep_pairs"] == []
        assert temporal["flagged_addresses"] == []


class TestDetectText:
    """Tests for the Rich detection report."""

    def test_text_report(self, runner: CliRunner, snapshot_file: Path) -> None:
        result = runner.invoke(cli, ["detect", str(snapshot_file)])
        assert result.exit_code == 0
        assert "Mutual-Feedback Clusters" in result.output
        assert "Mutual pairs: 10" in result.output
        assert "No correlated submission timing" in result.output
