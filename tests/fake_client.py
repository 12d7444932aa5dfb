"""In-memory stand-in for SnapshotClient that records every call."""

from __future__ import annotations

import itertools
from datetime import datetime, timezone
from typing import Dict, List, Optional

from ebs_backup.client import SnapshotInfo, VolumeInfo
from ebs_backup.exceptions import MetadataLookupError

MARKER = {"CreatedBy": "AutomatedBackup"}


def make_snapshot(snapshot_id, volume_id, day, tags=None, description=""):
    """Build a SnapshotInfo started at 15:30 UTC on ``day`` (a date tuple)."""
    return SnapshotInfo(
        snapshot_id=snapshot_id,
        volume_id=volume_id,
        start_time=datetime(*day, 15, 30, tzinfo=timezone.utc),
        description=description or f"{snapshot_id} description",
        tags=dict(MARKER if tags is None else tags),
    )


class FakeSnapshotClient:
    """Implements the seven client operations against plain dictionaries."""

    def __init__(
        self,
        volumes: Optional[List[VolumeInfo]] = None,
        instance_id: Optional[str] = "i-local",
        instance_tags: Optional[Dict[str, Dict[str, str]]] = None,
        snapshots: Optional[List[SnapshotInfo]] = None,
    ):
        self.volumes = list(volumes or [])
        self.instance_id = instance_id
        self.resource_tags: Dict[str, Dict[str, str]] = dict(instance_tags or {})
        self.snapshots: Dict[str, SnapshotInfo] = {
            snapshot.snapshot_id: snapshot for snapshot in (snapshots or [])
        }
        self.calls: List[tuple] = []
        self.failures: Dict[str, Exception] = {}
        self._ids = itertools.count(1)

    def _record(self, name: str, *args) -> None:
        self.calls.append((name, *args))
        if name in self.failures:
            raise self.failures[name]

    def call_names(self) -> List[str]:
        return [call[0] for call in self.calls]

    def get_local_instance_id(self) -> str:
        self._record("get_local_instance_id")
        if self.instance_id is None:
            raise MetadataLookupError("meta-data/instance-id", OSError("unreachable"))
        return self.instance_id

    def list_volumes(self, instance_id=None, volume_ids=None) -> List[VolumeInfo]:
        self._record("list_volumes", instance_id, tuple(volume_ids or ()))
        volumes = self.volumes
        if instance_id:
            volumes = [vol for vol in volumes if vol.instance_id == instance_id]
        if volume_ids:
            volumes = [vol for vol in volumes if vol.volume_id in volume_ids]
        return list(volumes)

    def list_tags(self, resource_id, key=None, value=None) -> Dict[str, str]:
        self._record("list_tags", resource_id, key, value)
        tags = self.resource_tags.get(resource_id, {})
        return {
            k: v
            for k, v in tags.items()
            if (key is None or k == key) and (value is None or v == value)
        }

    def create_snapshot(self, volume_id: str, description: str) -> str:
        self._record("create_snapshot", volume_id, description)
        snapshot_id = f"snap-{next(self._ids):04d}"
        self.snapshots[snapshot_id] = SnapshotInfo(
            snapshot_id=snapshot_id,
            volume_id=volume_id,
            start_time=datetime.now(timezone.utc),
            description=description,
        )
        return snapshot_id

    def create_tag(self, resource_id: str, key: str, value: str) -> None:
        self._record("create_tag", resource_id, key, value)
        snapshot = self.snapshots[resource_id]
        self.snapshots[resource_id] = SnapshotInfo(
            snapshot_id=snapshot.snapshot_id,
            volume_id=snapshot.volume_id,
            start_time=snapshot.start_time,
            description=snapshot.description,
            tags={**snapshot.tags, key: value},
        )

    def list_snapshots(self, volume_id=None, tag_key=None, tag_value=None) -> List[SnapshotInfo]:
        self._record("list_snapshots", volume_id, tag_key, tag_value)
        found = []
        for snapshot in self.snapshots.values():
            if volume_id and snapshot.volume_id != volume_id:
                continue
            if tag_key and tag_key not in snapshot.tags:
                continue
            if tag_key and tag_value and snapshot.tags.get(tag_key) != tag_value:
                continue
            found.append(snapshot)
        return found

    def delete_snapshot(self, snapshot_id: str) -> None:
        self._record("delete_snapshot", snapshot_id)
        del self.snapshots[snapshot_id]
