"""
Retention enforcement: delete self-managed snapshots past the retention window.

Age is judged at day granularity. A snapshot's start time is truncated to its
UTC calendar day and compared against ``now - retention_days``; a snapshot
whose day falls on or before that instant is deleted.
"""

from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone
from typing import List, Optional

from botocore.exceptions import BotoCoreError, ClientError

from .client import SnapshotClient, SnapshotInfo
from .config import BackupConfig
from .results import ItemResult, Outcome


def _as_utc(moment: datetime) -> datetime:
    if moment.tzinfo is None:
        return moment.replace(tzinfo=timezone.utc)
    return moment.astimezone(timezone.utc)


def compute_cutoff(now: datetime, retention_days: int) -> datetime:
    return _as_utc(now) - timedelta(days=retention_days)


def snapshot_day(start_time: datetime) -> datetime:
    """Midnight UTC of the day the snapshot was started."""
    start = _as_utc(start_time)
    return datetime(start.year, start.month, start.day, tzinfo=timezone.utc)


def is_expired(start_time: datetime, cutoff: datetime) -> bool:
    return snapshot_day(start_time) <= _as_utc(cutoff)


def _is_self_managed(snapshot: SnapshotInfo, config: BackupConfig) -> bool:
    return snapshot.tags.get(config.tag_key) == config.tag_value


def _expire_snapshot(
    client: SnapshotClient, volume_id: str, snapshot: SnapshotInfo, cutoff: datetime
) -> ItemResult:
    if not is_expired(snapshot.start_time, cutoff):
        logging.info(
            "Not deleting snapshot %s. Description: %s ...",
            snapshot.snapshot_id,
            snapshot.description,
        )
        return ItemResult(volume_id, Outcome.KEPT, snapshot_id=snapshot.snapshot_id)

    logging.info(
        "DELETING snapshot %s. Description: %s ...",
        snapshot.snapshot_id,
        snapshot.description,
    )
    try:
        client.delete_snapshot(snapshot.snapshot_id)
    except (ClientError, BotoCoreError) as exc:
        logging.error("Failed to delete snapshot %s: %s", snapshot.snapshot_id, exc)
        return ItemResult(
            volume_id, Outcome.FAILED, snapshot_id=snapshot.snapshot_id, reason=str(exc)
        )
    return ItemResult(volume_id, Outcome.DELETED, snapshot_id=snapshot.snapshot_id)


def cleanup_volume_snapshots(
    client: SnapshotClient,
    volume_id: str,
    config: BackupConfig,
    cutoff: datetime,
) -> List[ItemResult]:
    """Check every self-managed snapshot of one volume against the cutoff."""
    try:
        snapshots = client.list_snapshots(
            volume_id=volume_id, tag_key=config.tag_key, tag_value=config.tag_value
        )
    except (ClientError, BotoCoreError) as exc:
        logging.error("Could not list snapshots of volume %s: %s", volume_id, exc)
        return [ItemResult(volume_id, Outcome.FAILED, reason=str(exc))]

    results = []
    for snapshot in snapshots:
        if not _is_self_managed(snapshot, config):
            logging.warning(
                "Ignoring snapshot %s: not tagged %s=%s",
                snapshot.snapshot_id,
                config.tag_key,
                config.tag_value,
            )
            continue
        logging.debug("Checking %s...", snapshot.snapshot_id)
        results.append(_expire_snapshot(client, volume_id, snapshot, cutoff))
    return results


def enforce_retention(
    client: SnapshotClient,
    volume_ids: List[str],
    config: BackupConfig,
    now: Optional[datetime] = None,
) -> List[ItemResult]:
    """Delete expired self-managed snapshots of every volume."""
    cutoff = compute_cutoff(now or datetime.now(timezone.utc), config.retention_days)
    results: List[ItemResult] = []
    for volume_id in volume_ids:
        results.extend(cleanup_volume_snapshots(client, volume_id, config, cutoff))
    return results
