"""
Configuration for the EBS backup run.

Values come from the environment, optionally seeded from a .env file, and are
frozen into a single BackupConfig that every stage receives.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

from .exceptions import ConfigurationError

DEFAULT_REGION = "us-west-2"
AUTO_REGION = "auto"
DEFAULT_LOG_FILE = "/var/log/ebs-snapshot.log"
DEFAULT_LOG_MAX_LINES = 5000
DEFAULT_RETENTION_DAYS = 7
DEFAULT_TAG_KEY = "CreatedBy"
DEFAULT_TAG_VALUE = "AutomatedBackup"
DEFAULT_METADATA_TIMEOUT = 2


@dataclass(frozen=True)
class BackupConfig:
    """Settings shared by discovery, snapshot creation and retention."""

    region: str = DEFAULT_REGION
    log_file: Path = Path(DEFAULT_LOG_FILE)
    log_max_lines: int = DEFAULT_LOG_MAX_LINES
    retention_days: int = DEFAULT_RETENTION_DAYS
    tag_key: str = DEFAULT_TAG_KEY
    tag_value: str = DEFAULT_TAG_VALUE
    metadata_timeout: int = DEFAULT_METADATA_TIMEOUT

    @property
    def auto_region(self) -> bool:
        return self.region == AUTO_REGION


def resolve_env_path(env_path: Optional[str] = None) -> str:
    """
    Determine which .env file should seed the configuration.

    Priority order:
      1. Explicit parameter
      2. EBS_BACKUP_ENV_FILE environment variable
      3. ~/.env
    """
    if env_path:
        return env_path
    env_file = os.environ.get("EBS_BACKUP_ENV_FILE")
    if env_file:
        return env_file
    return str(Path.home() / ".env")


def _read_int(name: str, default: int) -> int:
    raw = os.environ.get(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        value = int(raw)
    except ValueError as exc:
        raise ConfigurationError(f"{name} must be an integer, got {raw!r}") from exc
    if value < 0:
        raise ConfigurationError(f"{name} must not be negative, got {value}")
    return value


def _read_str(name: str, default: str) -> str:
    value = os.environ.get(name, "").strip()
    return value or default


def load_config(env_path: Optional[str] = None) -> BackupConfig:
    """
    Build the run configuration from the environment.

    Args:
        env_path: Optional .env file to load before reading variables.
            Variables already set in the environment take precedence.

    Returns:
        BackupConfig with defaults for anything unset

    Raises:
        ConfigurationError: If a numeric setting is malformed, negative or a
            required positive value is zero
    """
    load_dotenv(resolve_env_path(env_path))

    log_max_lines = _read_int("EBS_BACKUP_LOG_MAX_LINES", DEFAULT_LOG_MAX_LINES)
    if log_max_lines == 0:
        raise ConfigurationError("EBS_BACKUP_LOG_MAX_LINES must be at least 1")

    metadata_timeout = _read_int("EBS_BACKUP_METADATA_TIMEOUT", DEFAULT_METADATA_TIMEOUT)
    if metadata_timeout == 0:
        raise ConfigurationError("EBS_BACKUP_METADATA_TIMEOUT must be at least 1")

    return BackupConfig(
        region=_read_str("EBS_BACKUP_REGION", DEFAULT_REGION),
        log_file=Path(_read_str("EBS_BACKUP_LOG_FILE", DEFAULT_LOG_FILE)).expanduser(),
        log_max_lines=log_max_lines,
        retention_days=_read_int("EBS_BACKUP_RETENTION_DAYS", DEFAULT_RETENTION_DAYS),
        tag_key=_read_str("EBS_BACKUP_TAG_KEY", DEFAULT_TAG_KEY),
        tag_value=_read_str("EBS_BACKUP_TAG_VALUE", DEFAULT_TAG_VALUE),
        metadata_timeout=metadata_timeout,
    )
