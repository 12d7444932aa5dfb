"""
Exceptions for the EBS backup package.
"""


class ConfigurationError(RuntimeError):
    """Raised when required configuration is missing or invalid."""


class LogFileNotWritableError(OSError):
    """Raised when the run log cannot be created or written."""

    def __init__(self, path):
        super().__init__(f"Cannot write to {path}. Check permissions or sudo access.")
        self.path = path


class MetadataLookupError(RuntimeError):
    """Raised when the instance metadata endpoint cannot be queried."""

    def __init__(self, path: str, error: Exception):
        super().__init__(f"Instance metadata lookup for {path} failed: {error}")


class VolumeNotFoundError(ValueError):
    """Raised when a volume is not present in the configured region."""

    def __init__(self, volume_id: str):
        super().__init__(f"Volume {volume_id} not found")


class SnapshotCreationError(ValueError):
    """Raised when the snapshot request for a volume does not return an id."""

    def __init__(self, volume_id: str, error: Exception):
        super().__init__(f"Error creating snapshot for volume {volume_id}: {str(error)}")
