# tests/unit/enrichment/test_unit_generic_enricher.py - v1
"""Tests for enrichment/generic_enricher.py and the enricher factory."""

from __future__ import annotations

import pytest

from batchview.config.settings import Settings
from batchview.core.models import ClassifiedKind, GenericMetadata
from batchview.enrichment.base_enricher import BaseEnricher, EnrichmentResult
from batchview.enrichment.enricher_factory import (
    _ENRICHER_REGISTRY,
    create_enricher,
    register_enricher,
    supported_kinds,
)
from batchview.enrichment.generic_enricher import GenericEnricher, icon_for
from batchview.enrichment.image_enricher import ImageEnricher
from batchview.enrichment.pdf_enricher import PdfEnricher
from batchview.handles.manager import ResourceHandle


def _handle(name: str) -> ResourceHandle:
    return ResourceHandle(
        uri="blob:batchview/test/g", name=name, content_type="application/zip", data=b"PK",
    )


class TestGenericEnricher:
    def test_icon_for(self):
        assert icon_for(ClassifiedKind.ARCHIVE, "/static/icons/") == "/static/icons/archive.svg"

    @pytest.mark.asyncio
    async def test_icon_thumbnail(self):
        settings = Settings(_env_file=None, icon_base_path="/assets")
        result = await GenericEnricher(settings).enrich(
            _handle("bundle.ZIP"), ClassifiedKind.ARCHIVE,
        )
        assert result.metadata == GenericMetadata(kind="archive", extension="zip")
        assert result.thumbnails == ["/assets/archive.svg"]
        assert result.cover_image == "/assets/archive.svg"

    @pytest.mark.asyncio
    @pytest.mark.parametrize("kind", [
        ClassifiedKind.DOCUMENT, ClassifiedKind.VIDEO, ClassifiedKind.AUDIO, ClassifiedKind.OTHER,
    ])
    async def test_every_generic_kind(self, settings, kind):
        result = await GenericEnricher(settings).enrich(_handle("x"), kind)
        assert result.metadata.kind == kind.value


class TestEnricherFactory:
    def test_dedicated_enrichers(self, settings):
        assert isinstance(create_enricher(ClassifiedKind.PDF, settings), PdfEnricher)
        assert isinstance(create_enricher(ClassifiedKind.IMAGE, settings), ImageEnricher)

    def test_generic_fallback(self, settings):
        assert isinstance(create_enricher(ClassifiedKind.SPREADSHEET, settings), GenericEnricher)

    def test_every_kind_supported(self):
        assert set(supported_kinds()) == set(ClassifiedKind)

    def test_register_custom(self, settings):
        class AudioEnricher(BaseEnricher):
            def __init__(self, settings=None):
                self.settings = settings

            @property
            def supported_kinds(self):
                return [ClassifiedKind.AUDIO]

            async def enrich(self, handle, kind):
                return EnrichmentResult(metadata=GenericMetadata(kind="audio"))

        previous = _ENRICHER_REGISTRY[ClassifiedKind.AUDIO]
        try:
            register_enricher(ClassifiedKind.AUDIO, AudioEnricher)
            enricher = create_enricher(ClassifiedKind.AUDIO, settings)
            assert isinstance(enricher, AudioEnricher)
            assert enricher.settings is settings
        finally:
            register_enricher(ClassifiedKind.AUDIO, previous)
