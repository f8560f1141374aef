"""Shared fixtures for CLI tests.

Snapshots come from the top-level ``snapshot_file`` fixture; this module
adds mitigation config files and a few broken inputs.
"""

from __future__ import annotations

from pathlib import Path

import pytest


@pytest.fixture
def graph_off_config(tmp_path: Path) -> Path:
    """A YAML config that disables graph analysis, nested under ``mitigations``."""
    path = tmp_path / "mitigations.yaml"
    path.write_text(
        "mitigations:\n"
        "  graph_analysis:\n"
        "    enabled: false\n"
    )
    return path


@pytest.fixture
def invalid_config(tmp_path: Path) -> Path:
    """A YAML config with an out-of-range discount factor."""
    path = tmp_path / "invalid.yaml"
    path.write_text("graph_analysis:\n  discount_factor: 5\n")
    return path


@pytest.fixture
def broken_snapshot(tmp_path: Path) -> Path:
    """A snapshot file that is not valid JSON."""
    path = tmp_path / "broken.json"
    path.write_text("{\"feedback\": [")
    return path


@pytest.fixture
def empty_snapshot(tmp_path: Path) -> Path:
    """A well-formed snapshot with no feedback."""
    path = tmp_path / "empty.json"
    path.write_text("[]")
    return path
