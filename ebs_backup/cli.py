"""
EBS backup command-line entry point.

Usage:
    ebs-backup          back up the volumes attached to this instance
    ebs-backup all      back up every volume in the configured region
"""

from __future__ import annotations

import argparse
import importlib.util
import logging
import sys
from typing import Optional, Sequence

from .exceptions import ConfigurationError, LogFileNotWritableError, MetadataLookupError
from .logfile import configure_logging, mirror_output, prepare_log_file

EX_SOFTWARE = 70
REQUIRED_MODULES = ("boto3", "botocore", "dotenv")


def check_prerequisites() -> None:
    """Exit with EX_SOFTWARE when a required library is not installed."""
    for module_name in REQUIRED_MODULES:
        if importlib.util.find_spec(module_name) is None:
            print(
                f'In order to use this script, the module "{module_name}" must be installed.',
                file=sys.stderr,
            )
            sys.exit(EX_SOFTWARE)


def parse_args(argv: Sequence[str]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="ebs-backup",
        description="Snapshot EBS volumes and prune old automated snapshots.",
    )
    parser.add_argument(
        "scope",
        nargs="?",
        default=None,
        help='"all" to back up every volume in the region; omit for this instance only',
    )
    return parser.parse_args(argv)


def _resolve_region(config) -> str:
    from .metadata import get_region

    if config.auto_region:
        return get_region(config.metadata_timeout)
    return config.region


def _run(config, scope_argument: Optional[str]) -> int:
    from .client import SnapshotClient
    from .discovery import Scope
    from .pipeline import run_backup

    try:
        region = _resolve_region(config)
    except MetadataLookupError:
        logging.exception("Could not determine region from instance metadata")
        return 1

    client = SnapshotClient.for_region(region, config.metadata_timeout)
    summary = run_backup(client, config, Scope.from_argument(scope_argument))
    logging.info(summary.format_summary())
    for failure in summary.failures:
        logging.warning(
            "%s %s %s: %s",
            failure.outcome.value,
            failure.volume_id,
            failure.snapshot_id or "-",
            failure.reason,
        )
    return 0


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Main entry point for the ebs-backup CLI."""
    args = parse_args(sys.argv[1:] if argv is None else argv)
    check_prerequisites()

    from .config import load_config

    try:
        config = load_config()
    except ConfigurationError as exc:
        print(f"ERROR: {exc}", file=sys.stderr)
        return 1

    try:
        prepare_log_file(config.log_file, config.log_max_lines)
    except LogFileNotWritableError as exc:
        print(f"ERROR: {exc}", file=sys.stderr)
        return 1

    with mirror_output(config.log_file):
        configure_logging()
        try:
            return _run(config, args.scope)
        except Exception:
            logging.exception("Backup run aborted")
            raise


if __name__ == "__main__":  # pragma: no cover - script entry point
    raise SystemExit(main())
