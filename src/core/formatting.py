# src/core/formatting.py - v1
"""Name, size and id helpers for processed file records."""

from __future__ import annotations

import itertools
import time
from collections.abc import Iterable

_SIZE_UNITS = ("Bytes", "KB", "MB", "GB", "TB")


def split_name(filename: str) -> tuple[str, str]:
    """Split a filename into (display name, lower-case extension).

    The display name is everything before the first dot, so
    "report.final.pdf" displays as "report". A name without a dot has
    no extension.
    """
    if "." not in filename:
        return filename, ""
    display = filename.split(".", 1)[0]
    extension = filename.rsplit(".", 1)[1].lower()
    return display, extension


def extension_of(filename: str) -> str:
    return split_name(filename)[1]


def format_size(num_bytes: int) -> str:
    """Human-readable size: 0 Bytes, 512 Bytes, 1.5 KB, 2.25 MB..."""
    if num_bytes <= 0:
        return "0 Bytes"
    value = float(num_bytes)
    index = 0
    while value >= 1024 and index < len(_SIZE_UNITS) - 1:
        value /= 1024
        index += 1
    return f"{round(value, 2):g} {_SIZE_UNITS[index]}"


def total_size_label(sizes: Iterable[int]) -> str:
    return format_size(sum(sizes))


class RecordIdFactory:
    """Generate record ids unique within one batch run.

    Ids combine the filename, the wall clock in milliseconds and a
    per-run counter, so two files with the same name submitted in the
    same millisecond still get distinct ids.
    """

    def __init__(self) -> None:
        self._counter = itertools.count()

    def next_id(self, filename: str) -> str:
        epoch_ms = int(time.time() * 1000)
        return f"{filename}-{epoch_ms}-{next(self._counter)}"
