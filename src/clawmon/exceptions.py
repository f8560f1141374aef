"""ClawMon exception hierarchy.

All public exceptions inherit from ClawMonError, giving callers a single
base class to catch when they want to handle any ClawMon-specific failure
without swallowing unrelated errors.

The scoring core itself never raises for missing data: empty or fully
revoked feedback yields the canonical empty summary. Exceptions are
reserved for invalid configuration and unreadable snapshots at the
host edge.
"""


class ClawMonError(Exception):
    """Base exception for all ClawMon errors."""


class ConfigError(ClawMonError, ValueError):
    """Raised when a mitigation configuration is invalid.

    Covers discount factors or thresholds outside [0, 1], non-positive
    windows and half-lives, unknown mitigation names, and unknown seed
    strategies. Subclasses ``ValueError`` so that callers validating
    parameters the usual way keep working.
    """


class SnapshotError(ClawMonError):
    """Raised when a feedback snapshot cannot be loaded.

    Covers missing files, malformed JSON, and records lacking the
    required feedback fields.
    """
