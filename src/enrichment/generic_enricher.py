# src/enrichment/generic_enricher.py - v1
"""Fallback enricher: a fixed per-kind icon, no content inspection."""

from __future__ import annotations

from batchview.config.settings import Settings
from batchview.core.formatting import extension_of
from batchview.core.models import ClassifiedKind, GenericMetadata
from batchview.enrichment.base_enricher import BaseEnricher, EnrichmentResult
from batchview.handles.manager import ResourceHandle


def icon_for(kind: ClassifiedKind, base_path: str = "/icons") -> str:
    return f"{base_path.rstrip('/')}/{kind.value}.svg"


class GenericEnricher(BaseEnricher):
    """Enricher for every kind without a dedicated one. Never fails."""

    def __init__(self, settings: Settings | None = None) -> None:
        self._settings = settings or Settings(_env_file=None)

    @property
    def supported_kinds(self) -> list[ClassifiedKind]:
        return [
            ClassifiedKind.DOCUMENT,
            ClassifiedKind.PRESENTATION,
            ClassifiedKind.SPREADSHEET,
            ClassifiedKind.ARCHIVE,
            ClassifiedKind.VIDEO,
            ClassifiedKind.AUDIO,
            ClassifiedKind.OTHER,
        ]

    async def enrich(
        self, handle: ResourceHandle, kind: ClassifiedKind,
    ) -> EnrichmentResult:
        icon = icon_for(kind, self._settings.icon_base_path)
        return EnrichmentResult(
            metadata=GenericMetadata(kind=kind.value, extension=extension_of(handle.name)),
            thumbnails=[icon],
            cover_image=icon,
        )
