# src/batch/summary.py - v1
"""Aggregate statistics over a processed batch."""

from __future__ import annotations

from collections.abc import Sequence

from pydantic import BaseModel, Field

from batchview.classify.classifier import classify_batch, group_by_kind
from batchview.core.formatting import total_size_label
from batchview.core.models import BatchKind, ClassifiedKind, ProcessedFileRecord


class BatchSummary(BaseModel):
    total_files: int = 0
    total_size_bytes: int = 0
    total_size_label: str = "0 Bytes"
    counts_by_kind: dict[ClassifiedKind, int] = Field(default_factory=dict)
    primary_kind: BatchKind = ClassifiedKind.OTHER
    error_count: int = 0


def batch_summary(records: Sequence[ProcessedFileRecord]) -> BatchSummary:
    """Count files per kind and total their sizes.

    Only kinds present in the batch appear in ``counts_by_kind``. An empty
    batch has primary kind "other".
    """
    if not records:
        return BatchSummary()
    groups = group_by_kind(records)
    return BatchSummary(
        total_files=len(records),
        total_size_bytes=sum(r.size_bytes for r in records),
        total_size_label=total_size_label(r.size_bytes for r in records),
        counts_by_kind={kind: len(items) for kind, items in groups.items() if items},
        primary_kind=classify_batch(records),
        error_count=sum(1 for r in records if r.has_error),
    )
