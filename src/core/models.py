# src/core/models.py - v1
"""Shared Pydantic domain models used across modules.

No module redefines these types; all imports come from core.models.
"""

from __future__ import annotations

import asyncio
import mimetypes
from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import Annotated, Literal, Union

from pydantic import BaseModel, ConfigDict, Field, model_validator


# === CLASSIFICATION ===


class ClassifiedKind(str, Enum):
    """Closed set of content kinds. Every file gets exactly one."""

    IMAGE = "image"
    PDF = "pdf"
    DOCUMENT = "document"
    PRESENTATION = "presentation"
    SPREADSHEET = "spreadsheet"
    ARCHIVE = "archive"
    VIDEO = "video"
    AUDIO = "audio"
    OTHER = "other"


MIXED = "mixed"
BatchKind = Union[ClassifiedKind, Literal["mixed"]]


# === INPUT ===


class RawFileInput(BaseModel):
    """Caller-supplied file: bytes (or a path to them) plus declared attributes."""

    model_config = ConfigDict(frozen=True)

    name: str
    size: int = 0
    content_type: str = ""
    content: bytes | Path = b""

    @classmethod
    def from_path(cls, path: Path, content_type: str | None = None) -> RawFileInput:
        """Build an input from a file on disk, guessing the content type."""
        if content_type is None:
            guessed, _ = mimetypes.guess_type(path.name)
            content_type = guessed or ""
        return cls(
            name=path.name,
            size=path.stat().st_size,
            content_type=content_type,
            content=path,
        )

    async def read_bytes(self) -> bytes:
        """Return the file bytes. Paths are read off the event loop."""
        if isinstance(self.content, Path):
            return await asyncio.to_thread(self.content.read_bytes)
        return self.content


# === KIND METADATA (tagged union over ClassifiedKind) ===


class ImageMetadata(BaseModel):
    """Natural dimensions of an image; 0x0 when the probe failed."""

    kind: Literal["image"] = "image"
    width: int = 0
    height: int = 0

    @property
    def dimensions(self) -> str:
        return f"{self.width} x {self.height}"


class PdfMetadata(BaseModel):
    """Document-level PDF facts."""

    kind: Literal["pdf"] = "pdf"
    page_count: int = 1
    author: str | None = None
    title: str | None = None
    created_at: datetime | None = None
    modified_at: datetime | None = None
    is_likely_pitch_deck: bool = False


class GenericMetadata(BaseModel):
    """Metadata for kinds without binary inspection."""

    kind: Literal[
        "document", "presentation", "spreadsheet", "archive", "video", "audio", "other"
    ]
    extension: str = ""


KindMetadata = Annotated[
    Union[ImageMetadata, PdfMetadata, GenericMetadata],
    Field(discriminator="kind"),
]


def default_metadata(kind: ClassifiedKind, extension: str = "") -> KindMetadata:
    """Return the safe default metadata payload for a kind."""
    if kind is ClassifiedKind.IMAGE:
        return ImageMetadata()
    if kind is ClassifiedKind.PDF:
        return PdfMetadata()
    return GenericMetadata(kind=kind.value, extension=extension)


# === OUTPUT RECORD ===


class ProcessedFileRecord(BaseModel):
    """One classified, enriched file. Exactly one per input file."""

    id: str
    display_name: str
    original_name: str
    extension: str = ""
    size_label: str
    size_bytes: int = 0
    kind: ClassifiedKind
    content_type: str = "application/octet-stream"
    resource_uri: str = ""
    thumbnails: list[str] = Field(default_factory=list)
    cover_image: str | None = None
    metadata: KindMetadata
    processing_error: str | None = None
    remote_id: str | None = None

    @model_validator(mode="after")
    def check_degraded_record(self) -> ProcessedFileRecord:
        if self.metadata.kind != self.kind.value:
            raise ValueError(
                f"metadata kind {self.metadata.kind!r} does not match record kind "
                f"{self.kind.value!r}"
            )
        if self.processing_error is not None and (self.thumbnails or self.cover_image):
            raise ValueError("a record with processing_error cannot carry thumbnails")
        return self

    @property
    def has_error(self) -> bool:
        return self.processing_error is not None


# === BATCH RUN STATE ===


class BatchError(BaseModel):
    """A per-file error surfaced alongside otherwise successful results."""

    record_id: str
    message: str


class BatchRunState(BaseModel):
    """Transient progress and error state for one batch run."""

    run_id: str
    is_processing: bool = False
    progress_percent: int = 0
    current_file_name: str | None = None
    errors: list[BatchError] = Field(default_factory=list)
    records: list[ProcessedFileRecord] = Field(default_factory=list)
    failed: bool = False
    fatal_error: str | None = None

    def advance(self, percent: int) -> int:
        """Move progress forward; never lets it go backwards or past 100."""
        percent = max(0, min(100, percent))
        if percent > self.progress_percent:
            self.progress_percent = percent
        return self.progress_percent


# === PRESENTATION ===


class StrategyName(str, Enum):
    SINGLE_IMAGE = "single-image"
    GRID_GALLERY = "grid-gallery"
    MASONRY_GALLERY = "masonry-gallery"
    LIGHTBOX_GALLERY = "lightbox-gallery"
    PDF_VIEWER = "pdf-viewer"
    MULTI_PDF_VIEWER = "multi-pdf-viewer"
    VIDEO_PLAYER = "video-player"
    ARCHIVE_EXPLORER = "archive-explorer"
    DOCUMENT_VIEWER = "document-viewer"
    PRESENTATION_VIEWER = "presentation-viewer"
    FILE_DISPLAY = "file-display"
    COMPOSITE_MIXED = "composite-mixed"


class PresentationStrategy(BaseModel):
    """Router output: a display strategy and the records it applies to."""

    name: StrategyName
    records: list[ProcessedFileRecord] = Field(default_factory=list)
    page_size: int | None = None
    lazy_load: bool = False
    image_strategy: PresentationStrategy | None = None
    item_strategies: list[PresentationStrategy] = Field(default_factory=list)

    @property
    def is_composite(self) -> bool:
        return self.name is StrategyName.COMPOSITE_MIXED

    @property
    def remainder(self) -> list[ProcessedFileRecord]:
        """Non-image records of a composite strategy."""
        return [r for s in self.item_strategies for r in s.records]


# === URLS ===


class ResolvedUrls(BaseModel):
    """Preview and original-bytes addresses for one file."""

    view_url: str
    download_url: str
    thumbnail_url: str
