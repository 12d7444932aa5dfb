"""
Volume discovery: decide which volumes this run backs up.
"""

from __future__ import annotations

import logging
from enum import Enum
from typing import List, Optional

from botocore.exceptions import BotoCoreError, ClientError

from .client import SnapshotClient
from .exceptions import MetadataLookupError

ALL_SCOPE_ARGUMENT = "all"


class Scope(str, Enum):
    """Which instances' volumes a run covers."""

    SELF = "self"
    ALL = "all"

    @classmethod
    def from_argument(cls, argument: Optional[str]) -> "Scope":
        """Only the literal ``all`` widens the scope; anything else means this host."""
        if argument == ALL_SCOPE_ARGUMENT:
            return cls.ALL
        return cls.SELF


def _unique(volume_ids: List[str]) -> List[str]:
    return list(dict.fromkeys(volume_ids))


def get_my_volumes(client: SnapshotClient) -> List[str]:
    """Volumes attached to the instance this process runs on."""
    logging.info("Getting volumes attached to this instance")
    try:
        instance_id = client.get_local_instance_id()
    except MetadataLookupError as exc:
        logging.error("Could not determine local instance id: %s", exc)
        return []
    try:
        volumes = client.list_volumes(instance_id=instance_id)
    except (ClientError, BotoCoreError) as exc:
        logging.error("Could not list volumes for instance %s: %s", instance_id, exc)
        return []
    return _unique([vol.volume_id for vol in volumes])


def get_all_volumes(client: SnapshotClient) -> List[str]:
    """Every volume in the client's region."""
    logging.info("Getting volumes attached to all instances")
    try:
        volumes = client.list_volumes()
    except (ClientError, BotoCoreError) as exc:
        logging.error("Could not list volumes: %s", exc)
        return []
    return _unique([vol.volume_id for vol in volumes])


def discover_volumes(client: SnapshotClient, scope: Scope) -> List[str]:
    """
    Resolve the volume ids to operate on.

    Lookup failures are logged and produce an empty list so the later stages
    simply have nothing to do.
    """
    if scope is Scope.ALL:
        volume_ids = get_all_volumes(client)
    else:
        volume_ids = get_my_volumes(client)

    if volume_ids:
        logging.info("Found: %s", " ".join(volume_ids))
    else:
        logging.warning("Found: no volumes")
    return volume_ids
