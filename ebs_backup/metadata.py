"""
EC2 instance metadata lookups.

Uses the IMDSv2 session token when the endpoint issues one and plain GETs
otherwise.
"""

from __future__ import annotations

from typing import Optional
from urllib import request as urllib_request

from .exceptions import MetadataLookupError

METADATA_BASE_URL = "http://169.254.169.254/latest"
TOKEN_TTL_SECONDS = 21600


def _fetch_token(timeout: int) -> Optional[str]:
    """Request an IMDSv2 session token, or None when the endpoint does not issue one."""
    req = urllib_request.Request(
        f"{METADATA_BASE_URL}/api/token",
        method="PUT",
        headers={"X-aws-ec2-metadata-token-ttl-seconds": str(TOKEN_TTL_SECONDS)},
    )
    try:
        with urllib_request.urlopen(req, timeout=timeout) as response:
            return response.read().decode("utf-8").strip()
    except OSError:  # HTTPError, URLError and socket timeouts
        return None


def get_metadata(path: str, timeout: int = 2) -> str:
    """
    Read a single metadata value, e.g. ``meta-data/instance-id``.

    Raises:
        MetadataLookupError: If the endpoint is unreachable or answers with an
            error or an empty body
    """
    try:
        token = _fetch_token(timeout)
        headers = {"X-aws-ec2-metadata-token": token} if token else {}
        req = urllib_request.Request(f"{METADATA_BASE_URL}/{path}", method="GET", headers=headers)
        with urllib_request.urlopen(req, timeout=timeout) as response:
            value = response.read().decode("utf-8").strip()
    except OSError as exc:  # URLError and socket timeouts
        raise MetadataLookupError(path, exc) from exc
    if not value:
        raise MetadataLookupError(path, ValueError("empty response"))
    return value


def get_instance_id(timeout: int = 2) -> str:
    return get_metadata("meta-data/instance-id", timeout)


def region_from_availability_zone(availability_zone: str) -> str:
    """Strip the zone letter: ``us-west-2a`` -> ``us-west-2``."""
    return availability_zone.rstrip("abcdefghijklmnopqrstuvwxyz")


def get_region(timeout: int = 2) -> str:
    """Region of the running instance, derived from its availability zone."""
    return region_from_availability_zone(
        get_metadata("meta-data/placement/availability-zone", timeout)
    )
