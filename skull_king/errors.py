from __future__ import annotations


class ScorekeeperError(Exception):
    """Base class for every error raised by the scorekeeper core."""


class PreconditionError(ScorekeeperError):
    """An operation was invoked in a phase that does not allow it."""


class ValidationError(ScorekeeperError):
    """Malformed input: bad names, out-of-range numbers, unknown players."""


class SnapshotError(ValidationError):
    """A snapshot could not be restored (bad shape, version or invariants)."""
