"""
Dataclass for tracking run statistics.
"""

import time
from dataclasses import dataclass, field

from .outcome import EntryResult, Outcome


@dataclass
class RunStats:
    """Tracks per-outcome counts for a single pass over all content entries."""

    entries_delivered: int = 0
    entries_no_match: int = 0
    entries_failed: int = 0
    entries_cancelled: int = 0
    commits_failed: int = 0
    already_existed: int = 0
    _started_at: float = field(default_factory=time.monotonic, repr=False)

    def record(self, result: EntryResult) -> None:
        """Counts one finished entry."""
        if result.outcome is Outcome.DELIVERED:
            self.entries_delivered += 1
            if not result.committed:
                self.commits_failed += 1
            if result.already_existed:
                self.already_existed += 1
        elif result.outcome is Outcome.NO_MATCH:
            self.entries_no_match += 1
        elif result.outcome is Outcome.FAILED:
            self.entries_failed += 1
        else:
            self.entries_cancelled += 1

    @property
    def total(self) -> int:
        return (
            self.entries_delivered
            + self.entries_no_match
            + self.entries_failed
            + self.entries_cancelled
        )

    @property
    def elapsed(self) -> float:
        return time.monotonic() - self._started_at

    @property
    def has_errors(self) -> bool:
        return self.entries_failed > 0 or self.commits_failed > 0
