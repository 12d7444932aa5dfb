"""
Per-item outcomes collected over a backup run.
"""

from __future__ import annotations

from collections import Counter
from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional


class Outcome(str, Enum):
    """What happened to a single volume or snapshot."""

    CREATED = "created"
    UNTAGGED = "untagged"
    DELETED = "deleted"
    KEPT = "kept"
    FAILED = "failed"


@dataclass(frozen=True)
class ItemResult:
    """Result of one per-item step (one volume snapshotted, one snapshot checked)."""

    volume_id: str
    outcome: Outcome
    snapshot_id: Optional[str] = None
    reason: str = ""

    @property
    def ok(self) -> bool:
        return self.outcome in (Outcome.CREATED, Outcome.DELETED, Outcome.KEPT)


@dataclass
class RunSummary:
    """Everything one invocation discovered, created and pruned."""

    volume_ids: List[str] = field(default_factory=list)
    creations: List[ItemResult] = field(default_factory=list)
    retention: List[ItemResult] = field(default_factory=list)

    @property
    def failures(self) -> List[ItemResult]:
        return [result for result in self.creations + self.retention if not result.ok]

    def counts(self) -> Counter:
        """Tally outcomes across both stages."""
        return Counter(result.outcome for result in self.creations + self.retention)

    def format_summary(self) -> str:
        counts = self.counts()
        return (
            f"Run complete: {len(self.volume_ids)} volumes, "
            f"{counts[Outcome.CREATED]} snapshots created, "
            f"{counts[Outcome.UNTAGGED]} left untagged, "
            f"{counts[Outcome.DELETED]} deleted, "
            f"{counts[Outcome.KEPT]} kept, "
            f"{counts[Outcome.FAILED]} failed"
        )
