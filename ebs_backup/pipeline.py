"""
The backup run: discovery, then snapshot creation, then retention.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Optional

from .client import SnapshotClient
from .config import BackupConfig
from .creation import snapshot_volumes
from .discovery import Scope, discover_volumes
from .results import RunSummary
from .retention import enforce_retention


def run_backup(
    client: SnapshotClient,
    config: BackupConfig,
    scope: Scope,
    now: Optional[datetime] = None,
) -> RunSummary:
    """Run all three stages once and return what happened per item."""
    now = now or datetime.now(timezone.utc)
    summary = RunSummary()
    summary.volume_ids = discover_volumes(client, scope)
    if not summary.volume_ids:
        return summary
    summary.creations = snapshot_volumes(client, summary.volume_ids, config, today=now.date())
    summary.retention = enforce_retention(client, summary.volume_ids, config, now=now)
    return summary
