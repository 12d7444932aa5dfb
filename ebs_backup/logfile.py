"""
Run log handling.

The log file is capped to its most recent lines at startup, and for the
duration of a run everything written to stdout and stderr is appended to it
as well.
"""

from __future__ import annotations

import logging
import os
import sys
from collections import deque
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator, TextIO

from .exceptions import LogFileNotWritableError

LOG_FORMAT = "[%(asctime)s]: %(message)s"
LOG_DATE_FORMAT = "%Y-%m-%d+%H:%M:%S"


def prepare_log_file(path: Path, max_lines: int) -> None:
    """
    Create the log file if needed, check it is writable and keep only its
    last ``max_lines`` lines.

    Raises:
        LogFileNotWritableError: If the file cannot be created or written
    """
    try:
        path.touch(exist_ok=True)
    except OSError as exc:
        raise LogFileNotWritableError(path) from exc
    if not os.access(path, os.W_OK):
        raise LogFileNotWritableError(path)

    with path.open("r", encoding="utf-8", errors="replace") as handle:
        tail = deque(handle, maxlen=max_lines)
    with path.open("w", encoding="utf-8") as handle:
        handle.writelines(tail)


class _TeeStream:
    """Write-through wrapper that copies everything to a second stream."""

    def __init__(self, primary: TextIO, copy: TextIO):
        self.primary = primary
        self.copy = copy

    def write(self, data: str) -> int:
        self.copy.write(data)
        self.copy.flush()
        return self.primary.write(data)

    def flush(self) -> None:
        self.copy.flush()
        self.primary.flush()

    def __getattr__(self, name):
        return getattr(self.primary, name)


@contextmanager
def mirror_output(path: Path) -> Iterator[None]:
    """Append stdout and stderr to ``path`` until the block exits."""
    original_stdout, original_stderr = sys.stdout, sys.stderr
    with path.open("a", encoding="utf-8") as log_handle:
        tees = (_TeeStream(original_stdout, log_handle), _TeeStream(original_stderr, log_handle))
        sys.stdout, sys.stderr = tees
        try:
            yield
        finally:
            sys.stdout, sys.stderr = original_stdout, original_stderr
            # Handlers bound to the tees would write to a closed file afterwards.
            for handler in logging.root.handlers[:]:
                if getattr(handler, "stream", None) in tees:
                    logging.root.removeHandler(handler)


def configure_logging(verbose: bool = False) -> None:
    """
    Send log records to the current stdout with the run log's timestamp format.

    Call inside ``mirror_output`` so records reach the log file too.
    """
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format=LOG_FORMAT,
        datefmt=LOG_DATE_FORMAT,
        stream=sys.stdout,
        force=True,
    )
