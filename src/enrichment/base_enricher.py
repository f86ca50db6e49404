# src/enrichment/base_enricher.py - v1
"""Abstract enricher interface, one implementation per classified kind."""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field

from batchview.core.models import ClassifiedKind, KindMetadata
from batchview.handles.manager import ResourceHandle


@dataclass
class EnrichmentResult:
    """What an enricher adds to a record."""

    metadata: KindMetadata
    thumbnails: list[str] = field(default_factory=list)
    cover_image: str | None = None
    warnings: list[str] = field(default_factory=list)


class BaseEnricher(ABC):
    """Unified interface for per-kind enrichment."""

    @property
    @abstractmethod
    def supported_kinds(self) -> list[ClassifiedKind]:
        """Kinds this enricher handles."""

    @abstractmethod
    async def enrich(
        self, handle: ResourceHandle, kind: ClassifiedKind,
    ) -> EnrichmentResult:
        """Inspect the handle and return metadata and thumbnails."""
