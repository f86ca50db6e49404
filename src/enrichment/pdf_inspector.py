# src/enrichment/pdf_inspector.py - v1
"""PDF inspection interface and its PyMuPDF (fitz) implementation.

The PDF enricher only talks to ``PdfInspector``/``PdfDocument``, so the
rasterization engine can be swapped without touching its control flow.
Requires the 'pymupdf' package.
"""

from __future__ import annotations

import asyncio
import base64
import logging
import re
import threading
from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone

logger = logging.getLogger(__name__)

# MuPDF keeps global state; calls from worker threads are serialized.
_MUPDF_LOCK = threading.Lock()

_PDF_DATE_RE = re.compile(
    r"^(?:D:)?(\d{4})(\d{2})?(\d{2})?(\d{2})?(\d{2})?(\d{2})?"
    r"(Z|[+-]\d{2}'?(?:\d{2}'?)?)?"
)


@dataclass(frozen=True)
class PdfInfo:
    """Document information dictionary, raw strings as stored in the PDF."""

    author: str | None = None
    title: str | None = None
    creation_date: str | None = None
    mod_date: str | None = None


@dataclass(frozen=True)
class PageThumbnail:
    """One rasterized page."""

    page_number: int
    width: int
    height: int
    image_bytes: bytes
    mime_type: str = "image/jpeg"

    @property
    def data_url(self) -> str:
        encoded = base64.b64encode(self.image_bytes).decode("ascii")
        return f"data:{self.mime_type};base64,{encoded}"


class PdfDocument(ABC):
    """An opened PDF. Must be closed by whoever opened it."""

    @property
    @abstractmethod
    def page_count(self) -> int:
        """Number of pages."""

    @abstractmethod
    async def read_metadata(self) -> PdfInfo:
        """Read the document information dictionary."""

    @abstractmethod
    async def render_page_thumbnail(
        self, page_number: int, scale: float, quality: int,
    ) -> PageThumbnail:
        """Rasterize a 1-based page at the given scale as JPEG."""

    @abstractmethod
    async def close(self) -> None:
        """Release the underlying document."""


class PdfInspector(ABC):
    """Opens PDF bytes into a PdfDocument."""

    @abstractmethod
    async def open_document(self, data: bytes) -> PdfDocument:
        """Open a PDF. Raises on unreadable input."""


class PyMuPdfDocument(PdfDocument):
    """PdfDocument backed by a fitz.Document."""

    def __init__(self, doc: object, fitz_module: object, page_count: int) -> None:
        self._doc = doc
        self._fitz = fitz_module
        # Read under the lock at open time; the loop thread never touches fitz.
        self._page_count = page_count

    @property
    def page_count(self) -> int:
        return self._page_count

    async def read_metadata(self) -> PdfInfo:
        return await asyncio.to_thread(self._read_metadata_sync)

    def _read_metadata_sync(self) -> PdfInfo:
        with _MUPDF_LOCK:
            raw = self._doc.metadata or {}  # type: ignore[attr-defined]
        return PdfInfo(
            author=raw.get("author") or None,
            title=raw.get("title") or None,
            creation_date=raw.get("creationDate") or None,
            mod_date=raw.get("modDate") or None,
        )

    async def render_page_thumbnail(
        self, page_number: int, scale: float, quality: int,
    ) -> PageThumbnail:
        return await asyncio.to_thread(self._render_sync, page_number, scale, quality)

    def _render_sync(self, page_number: int, scale: float, quality: int) -> PageThumbnail:
        fitz = self._fitz
        with _MUPDF_LOCK:
            page = self._doc[page_number - 1]  # type: ignore[index]
            pix = page.get_pixmap(matrix=fitz.Matrix(scale, scale), alpha=False)  # type: ignore[attr-defined]
            image_bytes = pix.tobytes(output="jpeg", jpg_quality=quality)
            return PageThumbnail(
                page_number=page_number,
                width=pix.width,
                height=pix.height,
                image_bytes=image_bytes,
            )

    async def close(self) -> None:
        await asyncio.to_thread(self._close_sync)

    def _close_sync(self) -> None:
        with _MUPDF_LOCK:
            self._doc.close()  # type: ignore[attr-defined]


class PyMuPdfInspector(PdfInspector):
    """PdfInspector using PyMuPDF."""

    async def open_document(self, data: bytes) -> PdfDocument:
        try:
            import fitz  # PyMuPDF
        except ImportError as e:
            raise ImportError(
                "pymupdf package required for PDF inspection: pip install pymupdf"
            ) from e

        def _open() -> tuple[object, int]:
            with _MUPDF_LOCK:
                doc = fitz.open(stream=data, filetype="pdf")
                return doc, doc.page_count

        doc, page_count = await asyncio.to_thread(_open)
        return PyMuPdfDocument(doc, fitz, page_count)


def parse_pdf_date(value: str | None) -> datetime | None:
    """Parse a PDF date string such as ``D:20230415093000+02'00'``.

    Missing trailing components default to their minimum. Returns None
    when the string is empty or not a PDF date.
    """
    if not value:
        return None
    match = _PDF_DATE_RE.match(value.strip())
    if not match:
        return None
    year, month, day, hour, minute, second, tz = match.groups()
    try:
        tzinfo = _parse_tz(tz)
        return datetime(
            int(year),
            int(month or 1),
            int(day or 1),
            int(hour or 0),
            int(minute or 0),
            int(second or 0),
            tzinfo=tzinfo,
        )
    except ValueError:
        logger.debug("Unparseable PDF date %r", value)
        return None


def _parse_tz(tz: str | None) -> timezone | None:
    if not tz:
        return None
    if tz == "Z":
        return timezone.utc
    digits = tz[1:].replace("'", "")
    hours = int(digits[:2])
    minutes = int(digits[2:4] or 0)
    offset = timedelta(hours=hours, minutes=minutes)
    return timezone(offset if tz[0] == "+" else -offset)
