# src/routing/router.py - v1
"""Presentation router: pick one display strategy for a processed batch.

Rules, first match wins:
    1. One record: the kind's single-file strategy.
    2. All images: by count. 1 single, 2-6 grid, 7-20 masonry,
       more than 20 a lazily loaded lightbox paged by 20.
    3. All one non-image kind: that kind's multi-file strategy.
    4. Otherwise composite-mixed: the image subset goes through rule 2
       on its own count, every other record through rule 1. Children are
       never composite themselves.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence

from batchview.classify.classifier import classify_batch
from batchview.core.errors import EmptyBatchError
from batchview.core.models import (
    MIXED,
    ClassifiedKind,
    PresentationStrategy,
    ProcessedFileRecord,
    StrategyName,
)

logger = logging.getLogger(__name__)

GRID_MAX_IMAGES = 6
MASONRY_MAX_IMAGES = 20
LIGHTBOX_PAGE_SIZE = 20

_SINGLE_FILE_STRATEGIES: dict[ClassifiedKind, StrategyName] = {
    ClassifiedKind.PDF: StrategyName.PDF_VIEWER,
    ClassifiedKind.IMAGE: StrategyName.SINGLE_IMAGE,
    ClassifiedKind.DOCUMENT: StrategyName.DOCUMENT_VIEWER,
    ClassifiedKind.PRESENTATION: StrategyName.PRESENTATION_VIEWER,
    ClassifiedKind.VIDEO: StrategyName.VIDEO_PLAYER,
}

_MULTI_FILE_STRATEGIES: dict[ClassifiedKind, StrategyName] = {
    ClassifiedKind.PDF: StrategyName.MULTI_PDF_VIEWER,
    ClassifiedKind.ARCHIVE: StrategyName.ARCHIVE_EXPLORER,
    ClassifiedKind.PRESENTATION: StrategyName.PRESENTATION_VIEWER,
    ClassifiedKind.DOCUMENT: StrategyName.DOCUMENT_VIEWER,
    ClassifiedKind.VIDEO: StrategyName.VIDEO_PLAYER,
}


def single_file_strategy(record: ProcessedFileRecord) -> PresentationStrategy:
    """Rule 1: dedicated display for one file; generic display otherwise."""
    name = _SINGLE_FILE_STRATEGIES.get(record.kind, StrategyName.FILE_DISPLAY)
    return PresentationStrategy(name=name, records=[record])


def image_strategy(
    records: Sequence[ProcessedFileRecord],
    page_size: int = LIGHTBOX_PAGE_SIZE,
) -> PresentationStrategy:
    """Rule 2: gallery tier chosen by image count."""
    count = len(records)
    if count == 0:
        raise EmptyBatchError("No images to route")
    if count == 1:
        return PresentationStrategy(name=StrategyName.SINGLE_IMAGE, records=list(records))
    if count <= GRID_MAX_IMAGES:
        return PresentationStrategy(name=StrategyName.GRID_GALLERY, records=list(records))
    if count <= MASONRY_MAX_IMAGES:
        return PresentationStrategy(name=StrategyName.MASONRY_GALLERY, records=list(records))
    return PresentationStrategy(
        name=StrategyName.LIGHTBOX_GALLERY,
        records=list(records),
        page_size=page_size,
        lazy_load=True,
    )


def select_strategy(
    records: Sequence[ProcessedFileRecord],
    page_size: int = LIGHTBOX_PAGE_SIZE,
) -> PresentationStrategy:
    """Choose the display strategy for a whole batch.

    Args:
        records: Processed records, in display order.
        page_size: Page size of the lazily loaded lightbox tier.

    Raises:
        EmptyBatchError: If ``records`` is empty.
    """
    if not records:
        raise EmptyBatchError("Cannot select a strategy for an empty batch")

    if len(records) == 1:
        strategy = single_file_strategy(records[0])
    else:
        batch_kind = classify_batch(records)
        if batch_kind == ClassifiedKind.IMAGE:
            strategy = image_strategy(records, page_size)
        elif batch_kind != MIXED:
            name = _MULTI_FILE_STRATEGIES.get(batch_kind, StrategyName.FILE_DISPLAY)
            strategy = PresentationStrategy(name=name, records=list(records))
        else:
            strategy = _composite_strategy(records, page_size)

    logger.debug("Selected %s for %d record(s)", strategy.name.value, len(records))
    return strategy


def _composite_strategy(
    records: Sequence[ProcessedFileRecord], page_size: int,
) -> PresentationStrategy:
    images = [r for r in records if r.kind is ClassifiedKind.IMAGE]
    others = [r for r in records if r.kind is not ClassifiedKind.IMAGE]
    return PresentationStrategy(
        name=StrategyName.COMPOSITE_MIXED,
        records=list(records),
        image_strategy=image_strategy(images, page_size) if images else None,
        item_strategies=[single_file_strategy(r) for r in others],
    )


def page_count(strategy: PresentationStrategy) -> int:
    """Number of pages of a strategy; 1 unless it is paginated."""
    if not strategy.page_size:
        return 1
    return max(1, -(-len(strategy.records) // strategy.page_size))


def paginate(strategy: PresentationStrategy, page: int) -> list[ProcessedFileRecord]:
    """Records of a 0-based page. Unpaginated strategies have one page."""
    if page < 0:
        raise ValueError(f"page must be >= 0, got {page}")
    if not strategy.page_size:
        return list(strategy.records) if page == 0 else []
    start = page * strategy.page_size
    return list(strategy.records[start:start + strategy.page_size])
