# src/logging/handlers.py - v1
"""Rotating file handler for log files, sized with labels like '10MB'."""

from __future__ import annotations

import re
from logging.handlers import RotatingFileHandler
from pathlib import Path

_SIZE_RE = re.compile(r"^(\d+(?:\.\d+)?)\s*(B|BYTES|KB|MB|GB)?$", re.IGNORECASE)
_MULTIPLIERS = {"B": 1, "BYTES": 1, "KB": 1024, "MB": 1024**2, "GB": 1024**3}


def parse_size(size_str: str) -> int:
    """Parse a size label into bytes.

    Accepts the labels produced by core.formatting.format_size as well as
    compact forms: '10MB', '1.5 GB', '512 Bytes', '4096'.
    """
    match = _SIZE_RE.match(size_str.strip())
    if not match:
        raise ValueError(f"Invalid size format: {size_str!r}. Use e.g. '10MB'.")
    value = float(match.group(1))
    unit = (match.group(2) or "B").upper()
    return int(value * _MULTIPLIERS[unit])


def create_rotating_handler(
    log_file: str,
    rotation: str = "10MB",
    retention: int = 30,
) -> RotatingFileHandler:
    """Create a rotating file handler, creating the parent directory.

    Args:
        log_file: Path to log file (``~`` is expanded).
        rotation: Max file size before rotation (e.g. "10MB").
        retention: Number of backup files to keep.
    """
    path = Path(log_file).expanduser()
    path.parent.mkdir(parents=True, exist_ok=True)
    return RotatingFileHandler(
        filename=str(path),
        maxBytes=parse_size(rotation),
        backupCount=retention,
        encoding="utf-8",
    )
