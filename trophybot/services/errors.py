from __future__ import annotations


class TrackerError(Exception):
    """Base for all tracker failures."""


class SnapshotError(TrackerError):
    """Snapshot source could not return a player."""


class NotFound(SnapshotError):
    pass


class Forbidden(SnapshotError):
    """Upstream denied access (bad API key, IP not allowed)."""


AuthError = Forbidden


class TransientError(SnapshotError):
    """Network, timeout or parse failure. Retried next cycle."""


class Ineligible(TrackerError):
    """Player is no longer in the tracked league."""

    def __init__(self, tag: str, league: str | None = None) -> None:
        self.tag = tag
        self.league = league
        super().__init__(f"#{tag} is not in Legend League (league: {league or 'Unknown'})")


class StorageError(TrackerError):
    """Durable store read/write failed."""
