# src/enrichment/pdf_enricher.py - v1
"""PDF enricher: page count, document metadata and page thumbnails.

A PDF that cannot be read is not an error for the batch. The record
degrades to one page, no thumbnails and empty metadata.
"""

from __future__ import annotations

import logging

from batchview.config.settings import Settings
from batchview.core.formatting import split_name
from batchview.core.models import ClassifiedKind, PdfMetadata
from batchview.enrichment.base_enricher import BaseEnricher, EnrichmentResult
from batchview.enrichment.pdf_inspector import (
    PdfDocument,
    PdfInfo,
    PdfInspector,
    PyMuPdfInspector,
    parse_pdf_date,
)
from batchview.handles.manager import ResourceHandle

logger = logging.getLogger(__name__)

UNKNOWN_AUTHOR = "Unknown"


def is_likely_pitch_deck(filename: str, keywords: list[str]) -> bool:
    """Filename heuristic: any keyword appears, case-insensitive."""
    lowered = filename.lower()
    return any(k in lowered for k in keywords)


class PdfEnricher(BaseEnricher):
    """Enricher for PDF files."""

    def __init__(
        self,
        settings: Settings | None = None,
        inspector: PdfInspector | None = None,
    ) -> None:
        self._settings = settings or Settings(_env_file=None)
        self._inspector = inspector or PyMuPdfInspector()

    @property
    def supported_kinds(self) -> list[ClassifiedKind]:
        return [ClassifiedKind.PDF]

    async def enrich(
        self, handle: ResourceHandle, kind: ClassifiedKind,
    ) -> EnrichmentResult:
        try:
            doc = await self._inspector.open_document(handle.data)
        except Exception as exc:
            logger.warning("Cannot open PDF %s: %s", handle.name, exc)
            return EnrichmentResult(
                metadata=PdfMetadata(),
                warnings=[f"PDF_UNREADABLE: {exc}"],
            )

        try:
            return await self._inspect(doc, handle)
        except Exception as exc:
            logger.warning("PDF inspection failed for %s: %s", handle.name, exc)
            return EnrichmentResult(
                metadata=PdfMetadata(),
                warnings=[f"PDF_UNREADABLE: {exc}"],
            )
        finally:
            await doc.close()

    async def _inspect(self, doc: PdfDocument, handle: ResourceHandle) -> EnrichmentResult:
        settings = self._settings
        display_name, _ = split_name(handle.name)
        page_count = doc.page_count
        if page_count < 1:
            raise ValueError("document has no pages")
        warnings: list[str] = []

        try:
            info = await doc.read_metadata()
        except Exception as exc:
            logger.debug("No metadata for %s: %s", handle.name, exc)
            info = PdfInfo()
            warnings.append("PDF_METADATA_UNAVAILABLE")

        thumbnails: list[str] = []
        if settings.generate_thumbnails:
            pages = min(page_count, settings.pdf_max_thumbnail_pages)
            logger.debug(
                "Generating thumbnails for %d of %d pages of %s",
                pages, page_count, handle.name,
            )
            for page_number in range(1, pages + 1):
                try:
                    thumb = await doc.render_page_thumbnail(
                        page_number,
                        scale=settings.pdf_thumbnail_scale,
                        quality=settings.pdf_thumbnail_quality,
                    )
                except Exception as exc:
                    logger.warning(
                        "Thumbnail failed for page %d of %s: %s",
                        page_number, handle.name, exc,
                    )
                    warnings.append(f"THUMBNAIL_FAILED_PAGE_{page_number}")
                    continue
                thumbnails.append(thumb.data_url)

        metadata = PdfMetadata(
            page_count=page_count,
            author=info.author or UNKNOWN_AUTHOR,
            title=info.title or display_name,
            created_at=parse_pdf_date(info.creation_date),
            modified_at=parse_pdf_date(info.mod_date),
            is_likely_pitch_deck=is_likely_pitch_deck(
                handle.name, settings.pitch_deck_keywords_list,
            ),
        )
        return EnrichmentResult(
            metadata=metadata,
            thumbnails=thumbnails,
            cover_image=thumbnails[0] if thumbnails else None,
            warnings=warnings,
        )
