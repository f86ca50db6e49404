# tests/conftest.py - v1
"""Shared test fixtures for all unit and integration tests.

Provides raw file factories, real PDFs built with PyMuPDF, real PNGs
built with Pillow, processed records and settings without a .env file.
"""

from __future__ import annotations

import io
from collections.abc import Callable

import pytest

from batchview.config.settings import Settings
from batchview.core.formatting import format_size, split_name
from batchview.core.models import (
    ClassifiedKind,
    ProcessedFileRecord,
    RawFileInput,
    default_metadata,
)
from batchview.logging.context import clear_context


# === HELPERS ===


def make_pdf(pages: int = 3, author: str = "", title: str = "") -> bytes:
    """Build a real PDF with one line of text per page."""
    import fitz

    doc = fitz.open()
    for number in range(1, pages + 1):
        page = doc.new_page(width=300, height=400)
        page.insert_text((40, 60), f"Page {number}")
    if author or title:
        doc.set_metadata({
            "author": author,
            "title": title,
            "creationDate": "D:20230415093000+02'00'",
            "modDate": "D:20230416100000Z",
        })
    data = doc.tobytes()
    doc.close()
    return data


def make_png(width: int = 64, height: int = 48) -> bytes:
    from PIL import Image

    buffer = io.BytesIO()
    Image.new("RGB", (width, height), color=(200, 30, 30)).save(buffer, format="PNG")
    return buffer.getvalue()


def make_raw(
    name: str, content: bytes = b"data", content_type: str = "",
) -> RawFileInput:
    return RawFileInput(
        name=name, size=len(content), content_type=content_type, content=content,
    )


def make_record(
    name: str,
    kind: ClassifiedKind,
    record_id: str | None = None,
    size: int = 1024,
    remote_id: str | None = None,
) -> ProcessedFileRecord:
    """Minimal valid record for routing, URL and summary tests."""
    display_name, extension = split_name(name)
    return ProcessedFileRecord(
        id=record_id or f"{name}-1",
        display_name=display_name,
        original_name=name,
        extension=extension,
        size_label=format_size(size),
        size_bytes=size,
        kind=kind,
        resource_uri=f"blob:batchview/test/{record_id or name}",
        metadata=default_metadata(kind, extension),
        remote_id=remote_id,
    )


# === FIXTURES ===


@pytest.fixture(autouse=True)
def _reset_log_context():
    clear_context()
    yield
    clear_context()


@pytest.fixture
def settings() -> Settings:
    """Default settings, isolated from any local .env file."""
    return Settings(_env_file=None)


@pytest.fixture
def pdf_factory() -> Callable[..., bytes]:
    return make_pdf


@pytest.fixture
def png_factory() -> Callable[..., bytes]:
    return make_png


@pytest.fixture
def raw_factory() -> Callable[..., RawFileInput]:
    return make_raw


@pytest.fixture
def record_factory() -> Callable[..., ProcessedFileRecord]:
    return make_record


@pytest.fixture
def sample_pdf() -> bytes:
    """Three-page PDF with author and title set."""
    return make_pdf(pages=3, author="Jane Doe", title="Quarterly Report")


@pytest.fixture
def sample_png() -> bytes:
    return make_png(64, 48)
