"""
EC2 snapshot client.

Wraps the handful of EC2 calls the backup run needs behind one small class so
that discovery, creation and retention never touch boto3 directly.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from datetime import datetime
from typing import Dict, Iterable, List, Optional

import boto3

from . import metadata
from .exceptions import SnapshotCreationError


@dataclass(frozen=True)
class VolumeInfo:
    """A volume as seen in the regional inventory."""

    volume_id: str
    instance_id: Optional[str] = None
    device: Optional[str] = None


@dataclass(frozen=True)
class SnapshotInfo:
    """A snapshot with the fields the retention pass reads."""

    snapshot_id: str
    volume_id: str
    start_time: datetime
    description: str = ""
    tags: Dict[str, str] = field(default_factory=dict)


def _credential_kwargs() -> Dict[str, str]:
    """
    Explicit credentials from the environment, when present.

    An empty result lets boto3 fall back to its default chain (instance
    profile, shared config files).
    """
    aws_access_key_id = os.getenv("AWS_ACCESS_KEY_ID")
    aws_secret_access_key = os.getenv("AWS_SECRET_ACCESS_KEY")
    if not (aws_access_key_id and aws_secret_access_key):
        return {}
    kwargs = {
        "aws_access_key_id": aws_access_key_id,
        "aws_secret_access_key": aws_secret_access_key,
    }
    aws_session_token = os.getenv("AWS_SESSION_TOKEN")
    if aws_session_token:
        kwargs["aws_session_token"] = aws_session_token
    return kwargs


def create_ec2_client(region: str):
    """Create a regional EC2 boto3 client."""
    client_kwargs = _credential_kwargs()
    if client_kwargs:
        logging.debug("Using AWS credentials from environment")
    return boto3.client("ec2", region_name=region, **client_kwargs)


def _filters(**named_values: Optional[Iterable[str]]) -> List[Dict]:
    filters = []
    for name, values in named_values.items():
        if values:
            filters.append({"Name": name, "Values": list(values)})
    return filters


def _pick_attachment(volume: Dict, instance_id: Optional[str]) -> Dict:
    """Attachment to `instance_id` when given and present, else the first one."""
    attachments = volume.get("Attachments") or [{}]
    for attachment in attachments:
        if instance_id and attachment.get("InstanceId") == instance_id:
            return attachment
    return attachments[0]


def _tags_to_dict(resource: Dict) -> Dict[str, str]:
    return {tag["Key"]: tag["Value"] for tag in resource.get("Tags", [])}


class SnapshotClient:
    """The seven cloud operations used by a backup run."""

    def __init__(self, ec2_client, metadata_timeout: int = 2):
        self.ec2 = ec2_client
        self.metadata_timeout = metadata_timeout

    @classmethod
    def for_region(cls, region: str, metadata_timeout: int = 2) -> "SnapshotClient":
        return cls(create_ec2_client(region), metadata_timeout)

    def get_local_instance_id(self) -> str:
        """Instance id of the host this process runs on."""
        return metadata.get_instance_id(self.metadata_timeout)

    def list_volumes(
        self,
        instance_id: Optional[str] = None,
        volume_ids: Optional[List[str]] = None,
    ) -> List[VolumeInfo]:
        """
        List volumes, optionally limited to one instance's attachments or to
        explicit ids.
        """
        kwargs: Dict = {}
        filters = _filters(**{"attachment.instance-id": [instance_id] if instance_id else None})
        if filters:
            kwargs["Filters"] = filters
        if volume_ids:
            kwargs["VolumeIds"] = list(volume_ids)

        volumes = []
        paginator = self.ec2.get_paginator("describe_volumes")
        for page in paginator.paginate(**kwargs):
            for volume in page.get("Volumes", []):
                attachment = _pick_attachment(volume, instance_id)
                volumes.append(
                    VolumeInfo(
                        volume_id=volume["VolumeId"],
                        instance_id=attachment.get("InstanceId"),
                        device=attachment.get("Device"),
                    )
                )
        return volumes

    def list_tags(
        self,
        resource_id: str,
        key: Optional[str] = None,
        value: Optional[str] = None,
    ) -> Dict[str, str]:
        """Tags on a resource, optionally filtered server side by key and value."""
        filters = _filters(
            **{
                "resource-id": [resource_id],
                "key": [key] if key else None,
                "value": [value] if value else None,
            }
        )
        tags: Dict[str, str] = {}
        paginator = self.ec2.get_paginator("describe_tags")
        for page in paginator.paginate(Filters=filters):
            for tag in page.get("Tags", []):
                tags[tag["Key"]] = tag["Value"]
        return tags

    def create_snapshot(self, volume_id: str, description: str) -> str:
        """Request a snapshot and return its id."""
        response = self.ec2.create_snapshot(VolumeId=volume_id, Description=description)
        snapshot_id = response.get("SnapshotId")
        if not snapshot_id:
            raise SnapshotCreationError(volume_id, ValueError("no SnapshotId in response"))
        return snapshot_id

    def create_tag(self, resource_id: str, key: str, value: str) -> None:
        self.ec2.create_tags(Resources=[resource_id], Tags=[{"Key": key, "Value": value}])

    def list_snapshots(
        self,
        volume_id: Optional[str] = None,
        tag_key: Optional[str] = None,
        tag_value: Optional[str] = None,
    ) -> List[SnapshotInfo]:
        """List snapshots owned by this account, filtered by volume and/or tag."""
        named: Dict[str, Optional[List[str]]] = {"volume-id": [volume_id] if volume_id else None}
        if tag_key and tag_value:
            named[f"tag:{tag_key}"] = [tag_value]
        elif tag_key:
            named["tag-key"] = [tag_key]
        kwargs: Dict = {"OwnerIds": ["self"]}
        filters = _filters(**named)
        if filters:
            kwargs["Filters"] = filters

        snapshots = []
        paginator = self.ec2.get_paginator("describe_snapshots")
        for page in paginator.paginate(**kwargs):
            for snapshot in page.get("Snapshots", []):
                snapshots.append(
                    SnapshotInfo(
                        snapshot_id=snapshot["SnapshotId"],
                        volume_id=snapshot.get("VolumeId", ""),
                        start_time=snapshot["StartTime"],
                        description=snapshot.get("Description", ""),
                        tags=_tags_to_dict(snapshot),
                    )
                )
        return snapshots

    def delete_snapshot(self, snapshot_id: str) -> None:
        self.ec2.delete_snapshot(SnapshotId=snapshot_id)
