"""
EBS Backup Package
Snapshots EBS volumes on a schedule and prunes the snapshots it created once
they age past the retention window.
"""

from .cli import main

__all__ = ["main"]
