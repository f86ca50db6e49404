# src/urls/downloader.py - v1
"""Bulk download of original bytes for remotely backed records."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable, Sequence
from pathlib import Path

import httpx

from batchview.batch.processor import progress_percent
from batchview.config.settings import Settings
from batchview.core.models import ProcessedFileRecord
from batchview.urls.resolver import DualQualityResolver

logger = logging.getLogger(__name__)

DownloadProgress = Callable[[int], None]


def unique_target(dest_dir: Path, name: str, taken: set[str]) -> Path:
    """Pick a file name under dest_dir not already used in this download."""
    candidate = Path(name).name or "download"
    stem, suffix = Path(candidate).stem, Path(candidate).suffix
    counter = 1
    while candidate in taken:
        candidate = f"{stem} ({counter}){suffix}"
        counter += 1
    taken.add(candidate)
    return dest_dir / candidate


async def download_originals(
    records: Sequence[ProcessedFileRecord],
    resolver: DualQualityResolver,
    dest_dir: Path,
    on_progress: DownloadProgress | None = None,
    client: httpx.AsyncClient | None = None,
    settings: Settings | None = None,
) -> dict[str, Path]:
    """Fetch every remote record's original bytes into dest_dir.

    Records without a remote id have nothing to fetch and are skipped.
    Progress is reported after every file, failed or not. Failures are
    logged and left out of the result.

    Returns:
        Mapping of record id to the written path.
    """
    remote = [r for r in records if r.remote_id]
    if not remote:
        return {}

    dest_dir.mkdir(parents=True, exist_ok=True)
    taken: set[str] = set()
    targets = [(r, unique_target(dest_dir, r.original_name, taken)) for r in remote]
    written: dict[str, Path] = {}
    done = 0

    owns_client = client is None
    if client is None:
        settings = settings or Settings(_env_file=None)
        client = httpx.AsyncClient(
            timeout=httpx.Timeout(settings.download_timeout_s), follow_redirects=True,
        )

    async def _fetch(record: ProcessedFileRecord, target: Path) -> None:
        nonlocal done
        url = resolver.resolve_urls(record).download_url
        try:
            response = await client.get(url)
            response.raise_for_status()
            await asyncio.to_thread(target.write_bytes, response.content)
            written[record.id] = target
        except Exception as exc:
            logger.warning("Download of %s failed: %s", record.original_name, exc)
        finally:
            done += 1
            if on_progress is not None:
                on_progress(progress_percent(done, len(targets)))

    try:
        await asyncio.gather(*(_fetch(r, t) for r, t in targets))
    finally:
        if owns_client:
            await client.aclose()

    logger.info("Downloaded %d of %d original(s) to %s", len(written), len(targets), dest_dir)
    return written
