"""
Snapshot creation: one snapshot per volume, tagged so retention can find it.
"""

from __future__ import annotations

import logging
from datetime import date, datetime, timezone
from typing import List, Optional

from botocore.exceptions import BotoCoreError, ClientError

from .client import SnapshotClient
from .config import BackupConfig
from .exceptions import SnapshotCreationError, VolumeNotFoundError
from .results import ItemResult, Outcome

NAME_TAG_KEY = "Name"


def build_snapshot_description(today: date, instance_name: str, device: Optional[str]) -> str:
    """Human-readable audit string, e.g. ``2024-01-10 web-1:/dev/xvda-backup``."""
    return f"{today.strftime('%Y-%m-%d')} {instance_name}:{device or ''}-backup"


def get_instance_name(client: SnapshotClient, instance_id: Optional[str]) -> str:
    """Name tag of an instance, or an empty string when unavailable."""
    if not instance_id:
        return ""
    try:
        tags = client.list_tags(instance_id, key=NAME_TAG_KEY)
    except (ClientError, BotoCoreError) as exc:
        logging.warning("Could not read Name tag of %s: %s", instance_id, exc)
        return ""
    return tags.get(NAME_TAG_KEY, "")


def snapshot_volume(
    client: SnapshotClient,
    volume_id: str,
    config: BackupConfig,
    today: Optional[date] = None,
) -> ItemResult:
    """
    Snapshot a single volume and tag the new snapshot as self-managed.

    Returns:
        ItemResult with outcome CREATED, UNTAGGED (snapshot exists but the
        marker tag could not be applied) or FAILED (no snapshot was made)
    """
    today = today or datetime.now(timezone.utc).date()
    try:
        volumes = client.list_volumes(volume_ids=[volume_id])
        if not volumes:
            raise VolumeNotFoundError(volume_id)
        volume = volumes[0]
        instance_name = get_instance_name(client, volume.instance_id)
        description = build_snapshot_description(today, instance_name, volume.device)
        snapshot_id = client.create_snapshot(volume_id, description)
    except (ClientError, BotoCoreError, VolumeNotFoundError, SnapshotCreationError) as exc:
        logging.error("Snapshot of volume %s failed: %s", volume_id, exc)
        return ItemResult(volume_id, Outcome.FAILED, reason=str(exc))

    logging.info(
        "New snapshot created for %s with Volume ID %s and snapshot ID %s",
        instance_name,
        volume_id,
        snapshot_id,
    )

    try:
        client.create_tag(snapshot_id, config.tag_key, config.tag_value)
    except (ClientError, BotoCoreError) as exc:
        logging.critical(
            "Snapshot %s of volume %s could not be tagged %s=%s and will never be "
            "cleaned up automatically: %s",
            snapshot_id,
            volume_id,
            config.tag_key,
            config.tag_value,
            exc,
        )
        return ItemResult(volume_id, Outcome.UNTAGGED, snapshot_id=snapshot_id, reason=str(exc))

    return ItemResult(volume_id, Outcome.CREATED, snapshot_id=snapshot_id)


def snapshot_volumes(
    client: SnapshotClient,
    volume_ids: List[str],
    config: BackupConfig,
    today: Optional[date] = None,
) -> List[ItemResult]:
    """Snapshot every volume in order; a failure on one never stops the rest."""
    return [snapshot_volume(client, volume_id, config, today) for volume_id in volume_ids]
