# src/enrichment/enricher_factory.py - v1
"""Factory: instantiate the enricher for a classified kind."""

from __future__ import annotations

from batchview.config.settings import Settings
from batchview.core.models import ClassifiedKind
from batchview.enrichment.base_enricher import BaseEnricher
from batchview.enrichment.generic_enricher import GenericEnricher
from batchview.enrichment.image_enricher import ImageEnricher
from batchview.enrichment.pdf_enricher import PdfEnricher

# Registry maps kind -> enricher class.
_ENRICHER_REGISTRY: dict[ClassifiedKind, type[BaseEnricher]] = {}


def _register_defaults() -> None:
    """Register built-in enrichers. Later classes win for shared kinds."""
    for cls in [GenericEnricher, ImageEnricher, PdfEnricher]:
        instance = cls()
        for kind in instance.supported_kinds:
            _ENRICHER_REGISTRY[kind] = cls


_register_defaults()


def create_enricher(
    kind: ClassifiedKind, settings: Settings | None = None,
) -> BaseEnricher:
    """Create the enricher for a kind.

    Every kind has one: kinds without a dedicated enricher fall back to
    GenericEnricher.
    """
    cls = _ENRICHER_REGISTRY.get(kind, GenericEnricher)
    return cls(settings=settings)


def register_enricher(kind: ClassifiedKind, cls: type[BaseEnricher]) -> None:
    """Register a custom enricher for a kind."""
    _ENRICHER_REGISTRY[kind] = cls


def supported_kinds() -> list[ClassifiedKind]:
    return sorted(_ENRICHER_REGISTRY, key=lambda k: k.value)
