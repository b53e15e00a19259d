from __future__ import annotations

from typing import Sequence


class GraphcloneError(Exception):
    """Base exception for graphclone."""


class ConfigError(GraphcloneError):
    pass


class SnapshotError(GraphcloneError):
    """Raised when a pickled object graph cannot be read or written."""
    pass


class NotAContainerError(GraphcloneError, TypeError):
    """
    A non-container value was handed to an operation that enumerates or
    rewrites entries. This is a caller bug, never a recoverable condition.
    """
    pass


class DuplicateRegistrationError(GraphcloneError, ValueError):
    """
    Raised by the reference map when an original node is registered twice, or
    when one clone is registered for two different originals.
    """
    pass


class TopologyMismatch(GraphcloneError, AssertionError):
    """
    Raised by `assert_isomorphic` when a clone does not reproduce the shape,
    the cycles or the aliasing of its original.

    Parameters
    ----------
    message : str | None
        Optional explicit message. If omitted, one is built from `problems`.
    problems : Sequence[tuple[str, str]] | None
        Pairs of (kind, json_path), kind being "stale", "alias" or "shape".
    """

    def __init__(
        self,
        message: str | None = None,
        *,
        problems: Sequence[tuple[str, str]] | None = None,
        limit: int = 10,
    ) -> None:
        self.problems: list[tuple[str, str]] = list(problems or [])
        if message is None:
            shown = self.problems[:limit]
            details = "; ".join(f"{kind} at {path}" for (kind, path) in shown) or "unknown location(s)"
            more = len(self.problems) - len(shown)
            extra = f" (+{more} more)" if more > 0 else ""
            message = f"clone topology differs from original: {details}{extra}"
        super().__init__(message)
