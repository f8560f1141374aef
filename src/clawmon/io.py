"""Snapshot and configuration loading for hosts.

The scoring core works on in-memory lists; this module is the only place
that touches the filesystem.

Snapshot format (JSON), either a bare list of records or an object with a
``feedback`` list::

    {"feedback": [
        {"id": "fb-1", "agentId": "gmail-integration",
         "clientAddress": "0xabc", "value": 92, "timestamp": 1700000000000}
    ]}

Mitigation configuration (YAML or JSON), keyed by mitigation name, optionally
nested under ``mitigations``. Omitted values keep their defaults::

    sybil_rank:
      trust_threshold: 0.25
    temporalDecay:
      enabled: false
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any

import yaml

from clawmon.core.mitigations.config import MitigationConfig
from clawmon.core.scoring.models import Feedback
from clawmon.exceptions import ConfigError, SnapshotError

logger = logging.getLogger(__name__)


def _read_text(path: Path, error: type[Exception]) -> str:
    try:
        return path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as exc:
        raise error(f"Cannot read {path}: {exc}") from exc


# ---------------------------------------------------------------------------
# Feedback snapshots
# ---------------------------------------------------------------------------


def parse_feedback(data: Any, strict: bool = False) -> list[Feedback]:
    """Convert decoded snapshot data into ``Feedback`` records.

    Args:
        data: A list of records or a mapping with a ``feedback`` list.
        strict: Raise on malformed records instead of skipping them.

    Returns:
        Feedback in snapshot order. Records with a duplicate id are
        dropped after the first occurrence.

    Raises:
        SnapshotError: If the top-level shape is wrong, or (in strict
            mode) a record is malformed.
    """
    if isinstance(data, dict):
        data = data.get("feedback")
    if not isinstance(data, list):
        raise SnapshotError(
            "Snapshot must be a list of feedback records or an object "
            "with a 'feedback' list"
        )

    feedback: list[Feedback] = []
    seen: set[str] = set()
    for index, record in enumerate(data):
        try:
            if not isinstance(record, dict):
                raise ValueError(f"expected an object, got {type(record).__name__}")
            fb = Feedback.from_dict(record)
        except (KeyError, TypeError, ValueError) as exc:
            if strict:
                raise SnapshotError(f"Malformed feedback record #{index}: {exc}") from exc
            logger.warning("Skipping malformed feedback record #%d: %s", index, exc)
            continue
        if fb.id in seen:
            logger.warning("Skipping duplicate feedback id %s", fb.id)
            continue
        seen.add(fb.id)
        feedback.append(fb)
    return feedback


def load_feedback(path: str | Path, strict: bool = False) -> list[Feedback]:
    """Load a JSON feedback snapshot from disk.

    Raises:
        SnapshotError: If the file is unreadable, not valid JSON, or not a
            feedback snapshot.
    """
    path = Path(path)
    raw = _read_text(path, SnapshotError)
    try:
        data = json.loads(raw)
    except json.JSONDecodeError as exc:
        raise SnapshotError(f"Invalid JSON in {path}: {exc}") from exc
    feedback = parse_feedback(data, strict=strict)
    logger.debug("Loaded %d feedback records from %s", len(feedback), path)
    return feedback


def dump_feedback(feedback: list[Feedback], path: str | Path) -> None:
    """Write ``feedback`` as a snapshot that :func:`load_feedback` reads back."""
    payload = {"feedback": [fb.to_dict() for fb in feedback]}
    Path(path).write_text(json.dumps(payload, indent=2) + "\n", encoding="utf-8")


# ---------------------------------------------------------------------------
# Mitigation configuration
# ---------------------------------------------------------------------------


def load_mitigation_config(
    path: str | Path,
    base: MitigationConfig | None = None,
) -> MitigationConfig:
    """Load a mitigation configuration file and merge it over ``base``.

    ``.json`` files are parsed as JSON; anything else with PyYAML's
    ``safe_load``. An empty file yields ``base`` (default configuration).

    Raises:
        ConfigError: If the file is unreadable, malformed, names unknown
            mitigations or parameters, or fails validation.
    """
    path = Path(path)
    raw = _read_text(path, ConfigError)
    try:
        if path.suffix.lower() == ".json":
            data = json.loads(raw) if raw.strip() else None
        else:
            data = yaml.safe_load(raw)
    except (json.JSONDecodeError, yaml.YAMLError) as exc:
        raise ConfigError(f"Cannot parse {path}: {exc}") from exc

    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise ConfigError(f"{path} must contain a mapping of mitigation settings")
    if "mitigations" in data:
        data = data["mitigations"] or {}
        if not isinstance(data, dict):
            raise ConfigError(f"'mitigations' in {path} must be a mapping")

    return MitigationConfig.from_dict(data, base=base)
