"""Options and helpers shared by the ClawMon subcommands."""

from __future__ import annotations

import json
import sys
from collections.abc import Callable
from typing import Any, NoReturn

import click

from clawmon.core.mitigations.config import (
    DEFAULT_MITIGATION_CONFIG,
    MitigationConfig,
)
from clawmon.core.scoring.models import Feedback
from clawmon.exceptions import ConfigError, SnapshotError
from clawmon.io import load_feedback, load_mitigation_config


def format_option(func: Callable[..., Any]) -> Callable[..., Any]:
    """Attach the ``--format text|json`` option."""
    return click.option(
        "--format", "output_format",
        type=click.Choice(["text", "json"]),
        default="text",
        help="Output format (default: text).",
    )(func)


def config_option(func: Callable[..., Any]) -> Callable[..., Any]:
    """Attach the ``--config FILE`` option."""
    return click.option(
        "--config", "config_path",
        type=click.Path(exists=True, dir_okay=False),
        default=None,
        help="YAML or JSON mitigation settings merged over the defaults.",
    )(func)


def now_option(func: Callable[..., Any]) -> Callable[..., Any]:
    """Attach the ``--now MS`` option."""
    return click.option(
        "--now", "now",
        type=int,
        default=None,
        help="Reference time in epoch milliseconds (default: newest feedback).",
    )(func)


def fail(message: str, output_format: str) -> NoReturn:
    """Report ``message`` in the requested format and exit with code 2."""
    if output_format == "json":
        click.echo(json.dumps({"error": message}))
    else:
        click.echo(f"Error: {message}")
    sys.exit(2)


def read_snapshot(path: str, output_format: str) -> list[Feedback]:
    """Load a snapshot or exit with code 2."""
    try:
        return load_feedback(path)
    except SnapshotError as exc:
        fail(str(exc), output_format)


def read_config(
    config_path: str | None,
    output_format: str,
    only: tuple[str, ...] = (),
) -> MitigationConfig:
    """Build the mitigation config from ``--config`` and ``--only``.

    Exits with code 2 when the file is invalid or a name is unknown.
    """
    try:
        config = (
            load_mitigation_config(config_path)
            if config_path is not None
            else DEFAULT_MITIGATION_CONFIG
        )
        if only:
            config = config.only(*only)
    except ConfigError as exc:
        fail(str(exc), output_format)
    return config

