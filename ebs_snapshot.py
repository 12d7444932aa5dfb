#!/usr/bin/env python3
"""
Automatic EBS Volume Snapshot Creation & Clean-Up Script
Snapshots this instance's volumes (or every volume with "all") and deletes
automated snapshots older than the retention window.
"""

from ebs_backup import main

if __name__ == "__main__":  # pragma: no cover - script entry point
    raise SystemExit(main())
