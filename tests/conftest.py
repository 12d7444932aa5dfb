"""Shared pytest fixtures for test files."""

from __future__ import annotations

from datetime import datetime, timezone
from unittest.mock import MagicMock

import pytest

from ebs_backup.client import VolumeInfo
from ebs_backup.config import BackupConfig
from tests.fake_client import FakeSnapshotClient


@pytest.fixture(autouse=True)
def stub_boto3_client(monkeypatch):
    """Replace boto3.client with a MagicMock factory so tests never call real AWS."""
    factory = MagicMock(name="boto3.client")
    monkeypatch.setattr("boto3.client", factory)
    return factory


@pytest.fixture(autouse=True)
def isolated_environment(tmp_path, monkeypatch):
    """Keep tests away from the developer's ~/.env and real credentials."""
    for name in (
        "AWS_ACCESS_KEY_ID",
        "AWS_SECRET_ACCESS_KEY",
        "AWS_SESSION_TOKEN",
        "EBS_BACKUP_REGION",
        "EBS_BACKUP_LOG_FILE",
        "EBS_BACKUP_LOG_MAX_LINES",
        "EBS_BACKUP_RETENTION_DAYS",
        "EBS_BACKUP_TAG_KEY",
        "EBS_BACKUP_TAG_VALUE",
        "EBS_BACKUP_METADATA_TIMEOUT",
    ):
        monkeypatch.delenv(name, raising=False)
    env_file = tmp_path / ".env"
    env_file.write_text("")
    monkeypatch.setenv("EBS_BACKUP_ENV_FILE", str(env_file))
    yield env_file


@pytest.fixture
def backup_config(tmp_path):
    """Default configuration writing its log under tmp_path."""
    return BackupConfig(log_file=tmp_path / "ebs-snapshot.log")


@pytest.fixture
def fixed_now():
    return datetime(2024, 1, 10, 6, 0, 0, tzinfo=timezone.utc)


@pytest.fixture
def fake_client():
    """Two volumes on the local instance, one on another instance, one detached."""
    return FakeSnapshotClient(
        volumes=[
            VolumeInfo("vol-root", instance_id="i-local", device="/dev/xvda"),
            VolumeInfo("vol-data", instance_id="i-local", device="/dev/xvdf"),
            VolumeInfo("vol-other", instance_id="i-other", device="/dev/sda1"),
            VolumeInfo("vol-detached"),
        ],
        instance_id="i-local",
        instance_tags={"i-local": {"Name": "web-1", "Env": "prod"}, "i-other": {}},
    )
