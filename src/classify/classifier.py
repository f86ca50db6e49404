# src/classify/classifier.py - v1
"""Map a file's declared content type and extension to a ClassifiedKind.

Rules are evaluated in a fixed order and the first match wins:
PDF, presentation, document, spreadsheet, image, archive, video, audio.
Anything else is "other". Office container formats are checked before
images so that Keynote/Pages style extensions are never read as images.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from typing import Protocol

from batchview.core.formatting import extension_of
from batchview.core.models import MIXED, BatchKind, ClassifiedKind


@dataclass(frozen=True)
class _Rule:
    kind: ClassifiedKind
    mime_prefixes: tuple[str, ...] = ()
    mime_fragments: tuple[str, ...] = ()
    extensions: frozenset[str] = frozenset()

    def matches(self, mime: str, extension: str) -> bool:
        if extension in self.extensions:
            return True
        if any(mime.startswith(p) for p in self.mime_prefixes):
            return True
        return any(f in mime for f in self.mime_fragments)


_RULES: tuple[_Rule, ...] = (
    _Rule(
        ClassifiedKind.PDF,
        mime_prefixes=("application/pdf",),
        extensions=frozenset({"pdf"}),
    ),
    _Rule(
        ClassifiedKind.PRESENTATION,
        mime_fragments=("presentation", "powerpoint"),
        extensions=frozenset({"ppt", "pptx", "key", "odp"}),
    ),
    _Rule(
        ClassifiedKind.DOCUMENT,
        mime_fragments=("document", "msword", "wordprocessing"),
        extensions=frozenset({"doc", "docx", "pages", "rtf", "txt", "odt"}),
    ),
    _Rule(
        ClassifiedKind.SPREADSHEET,
        mime_fragments=("spreadsheet", "excel"),
        extensions=frozenset({"xls", "xlsx", "numbers", "ods", "csv"}),
    ),
    _Rule(
        ClassifiedKind.IMAGE,
        mime_prefixes=("image/",),
        extensions=frozenset(
            {"jpg", "jpeg", "png", "gif", "webp", "svg", "heic", "heif", "avif"}
        ),
    ),
    _Rule(
        ClassifiedKind.ARCHIVE,
        mime_fragments=("zip", "archive"),
        extensions=frozenset({"zip", "rar", "7z", "tar", "gz"}),
    ),
    _Rule(
        ClassifiedKind.VIDEO,
        mime_prefixes=("video/",),
        extensions=frozenset({"mp4", "mov", "avi", "mkv", "webm"}),
    ),
    _Rule(
        ClassifiedKind.AUDIO,
        mime_prefixes=("audio/",),
        extensions=frozenset({"mp3", "wav", "ogg", "m4a", "flac"}),
    ),
)


# Vendor prefixes whose "document" segment would otherwise shadow the
# spreadsheet and presentation rules.
_VENDOR_PREFIXES = ("vnd.openxmlformats-officedocument.", "vnd.oasis.opendocument.")


class _HasKind(Protocol):
    kind: ClassifiedKind


def classify(name: str, content_type: str | None = None) -> ClassifiedKind:
    """Classify one file. Total and deterministic over any strings.

    Args:
        name: File name as supplied by the caller (extension is taken
            from the last dot).
        content_type: Declared MIME type; may be empty.

    Returns:
        The first matching ClassifiedKind, or ClassifiedKind.OTHER.
    """
    mime = (content_type or "").strip().lower()
    for prefix in _VENDOR_PREFIXES:
        mime = mime.replace(prefix, "")
    extension = extension_of(name or "")
    for rule in _RULES:
        if rule.matches(mime, extension):
            return rule.kind
    return ClassifiedKind.OTHER


def classify_batch(records: Sequence[_HasKind]) -> BatchKind:
    """Return the kind shared by every record, or "mixed".

    An empty batch classifies as document.
    """
    if not records:
        return ClassifiedKind.DOCUMENT
    kinds = {r.kind for r in records}
    if len(kinds) == 1:
        return records[0].kind
    return MIXED


def group_by_kind(records: Iterable[_HasKind]) -> dict[ClassifiedKind, list]:
    """Bucket records by kind. Every kind is a key; input order is kept."""
    groups: dict[ClassifiedKind, list] = {kind: [] for kind in ClassifiedKind}
    for record in records:
        groups[record.kind].append(record)
    return groups
