# tests/unit/batch/test_unit_summary.py - v1
"""Tests for batch/summary.py - batch statistics."""

from __future__ import annotations

from batchview.batch.summary import batch_summary
from batchview.core.models import MIXED, ClassifiedKind


class TestBatchSummary:
    def test_empty(self):
        summary = batch_summary([])
        assert summary.total_files == 0
        assert summary.total_size_label == "0 Bytes"
        assert summary.primary_kind is ClassifiedKind.OTHER
        assert summary.counts_by_kind == {}

    def test_mixed(self, record_factory):
        records = [
            record_factory("a.png", ClassifiedKind.IMAGE, size=1024),
            record_factory("b.png", ClassifiedKind.IMAGE, size=1024),
            record_factory("c.pdf", ClassifiedKind.PDF, size=2048),
        ]
        summary = batch_summary(records)
        assert summary.total_files == 3
        assert summary.total_size_bytes == 4096
        assert summary.total_size_label == "4 KB"
        assert summary.counts_by_kind == {ClassifiedKind.IMAGE: 2, ClassifiedKind.PDF: 1}
        assert summary.primary_kind == MIXED

    def test_errors_counted(self, record_factory):
        ok = record_factory("a.zip", ClassifiedKind.ARCHIVE)
        bad = ok.model_copy(update={"id": "bad", "processing_error": "boom"})
        summary = batch_summary([ok, bad])
        assert summary.error_count == 1
        assert summary.primary_kind is ClassifiedKind.ARCHIVE
