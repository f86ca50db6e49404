# src/enrichment/image_enricher.py - v1
"""Image enricher: probes natural dimensions with Pillow.

Dimensions are cosmetic. A decode error or a probe that exceeds the
timeout yields 0x0 and the enrichment still succeeds. The image is its
own thumbnail; nothing is transcoded.
"""

from __future__ import annotations

import asyncio
import io
import logging

from PIL import Image

from batchview.config.settings import Settings
from batchview.core.models import ClassifiedKind, ImageMetadata
from batchview.enrichment.base_enricher import BaseEnricher, EnrichmentResult
from batchview.handles.manager import ResourceHandle

logger = logging.getLogger(__name__)


def probe_dimensions(data: bytes) -> tuple[int, int]:
    """Read width and height from the image header."""
    with Image.open(io.BytesIO(data)) as img:
        return img.size


class ImageEnricher(BaseEnricher):
    """Enricher for standalone image files."""

    def __init__(self, settings: Settings | None = None) -> None:
        self._settings = settings or Settings(_env_file=None)

    @property
    def supported_kinds(self) -> list[ClassifiedKind]:
        return [ClassifiedKind.IMAGE]

    async def enrich(
        self, handle: ResourceHandle, kind: ClassifiedKind,
    ) -> EnrichmentResult:
        warnings: list[str] = []
        try:
            width, height = await asyncio.wait_for(
                asyncio.to_thread(probe_dimensions, handle.data),
                timeout=self._settings.image_probe_timeout_s,
            )
        except asyncio.TimeoutError:
            logger.warning("Dimension probe timed out for %s", handle.name)
            width, height = 0, 0
            warnings.append("DIMENSIONS_TIMEOUT")
        except Exception as exc:
            logger.debug("Cannot read dimensions of %s: %s", handle.name, exc)
            width, height = 0, 0
            warnings.append("DIMENSIONS_UNAVAILABLE")

        return EnrichmentResult(
            metadata=ImageMetadata(width=width, height=height),
            thumbnails=[handle.uri],
            cover_image=handle.uri,
            warnings=warnings,
        )
