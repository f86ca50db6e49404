# tests/unit/batch/test_unit_session.py - v1
"""Tests for batch/session.py - run superseding and handle ownership."""

from __future__ import annotations

import asyncio

import pytest

from batchview.batch.session import BatchSession
from batchview.core.formatting import extension_of
from batchview.core.models import ClassifiedKind, default_metadata
from batchview.enrichment.base_enricher import BaseEnricher, EnrichmentResult


class SlowEnricher(BaseEnricher):
    def __init__(self, delay: float = 0.0, failing=()):
        self.delay = delay
        self.failing = set(failing)

    @property
    def supported_kinds(self):
        return list(ClassifiedKind)

    async def enrich(self, handle, kind):
        await asyncio.sleep(self.delay)
        if handle.name in self.failing:
            raise RuntimeError("broken")
        return EnrichmentResult(metadata=default_metadata(kind, extension_of(handle.name)))


def _session(settings, delay: float = 0.0, failing=()) -> BatchSession:
    enricher = SlowEnricher(delay, failing)
    return BatchSession(settings=settings, enricher_factory=lambda kind, s: enricher)


class TestSubmit:
    @pytest.mark.asyncio
    async def test_submit_and_close_balance_handles(self, settings, raw_factory):
        session = _session(settings)
        state = await session.submit([raw_factory(f"f{i}.txt") for i in range(4)])
        assert len(state.records) == 4
        assert session.handles.live_count == 4
        assert session.close() == 4
        assert session.handles.live_count == 0
        assert session.handles.acquired_count == session.handles.released_count

    @pytest.mark.asyncio
    async def test_run_ids_change(self, settings, raw_factory):
        session = _session(settings)
        first = await session.submit([raw_factory("a.txt")])
        second = await session.submit([raw_factory("b.txt")])
        assert first.run_id != second.run_id
        assert session.state is second

    @pytest.mark.asyncio
    async def test_resubmit_releases_previous_handles(self, settings, raw_factory):
        session = _session(settings)
        first = await session.submit([raw_factory("a.txt"), raw_factory("b.txt")])
        old_uris = [r.resource_uri for r in first.records]
        await session.submit([raw_factory("c.txt")])
        assert not any(session.handles.is_live(u) for u in old_uris)
        assert session.handles.live_count == 1
        assert [r.original_name for r in session.records] == ["c.txt"]

    @pytest.mark.asyncio
    async def test_superseded_run_is_discarded(self, settings, raw_factory):
        session = _session(settings, delay=0.05)
        progress_a: list[int] = []
        run_a = asyncio.create_task(session.submit(
            [raw_factory(f"a{i}.txt") for i in range(3)],
            concurrency=1,
            on_progress=lambda s: progress_a.append(s.progress_percent),
        ))
        await asyncio.sleep(0.02)
        state_b = await session.submit([raw_factory("b.txt")])
        state_a = await run_a

        assert state_a.records == []
        assert [r.original_name for r in session.records] == ["b.txt"]
        assert session.state is state_b
        assert session.handles.live_count == 1
        assert all(p < 100 for p in progress_a)
        session.close()
        assert session.handles.acquired_count == session.handles.released_count

    @pytest.mark.asyncio
    async def test_closed_session_rejects_submit(self, settings, raw_factory):
        session = _session(settings)
        session.close()
        with pytest.raises(RuntimeError, match="closed"):
            await session.submit([raw_factory("a.txt")])

    @pytest.mark.asyncio
    async def test_async_context_manager(self, settings, raw_factory):
        async with _session(settings) as session:
            await session.submit([raw_factory("a.txt")])
            handles = session.handles
        assert session.closed
        assert handles.live_count == 0


class TestRecordManagement:
    @pytest.mark.asyncio
    async def test_remove_file(self, settings, raw_factory):
        session = _session(settings, failing={"b.txt"})
        state = await session.submit([raw_factory("a.txt"), raw_factory("b.txt")])
        bad = state.records[1]
        assert session.remove_file(bad.id) is True
        assert [r.original_name for r in session.records] == ["a.txt"]
        assert state.errors == []
        assert not session.handles.is_live(bad.resource_uri)
        assert session.remove_file(bad.id) is False

    @pytest.mark.asyncio
    async def test_clear_errors(self, settings, raw_factory):
        session = _session(settings, failing={"a.txt"})
        state = await session.submit([raw_factory("a.txt")])
        assert len(state.errors) == 1
        session.clear_errors()
        assert state.errors == []
        assert state.records[0].has_error

    def test_remove_without_run(self, settings):
        assert _session(settings).remove_file("nope") is False


class TestReprocess:
    @pytest.mark.asyncio
    async def test_reprocess_replaces_failed_record(self, settings, raw_factory):
        enricher = SlowEnricher(failing={"a.txt"})
        session = BatchSession(settings=settings, enricher_factory=lambda kind, s: enricher)
        state = await session.submit([raw_factory("a.txt"), raw_factory("b.txt")])
        bad = state.records[0]
        assert bad.has_error
        assert len(state.errors) == 1

        enricher.failing.clear()
        record = await session.reprocess_file(bad.id)

        assert record is not None
        assert not record.has_error
        assert record.id == bad.id
        assert session.records[0] is record
        assert [r.original_name for r in session.records] == ["a.txt", "b.txt"]
        assert session.state.errors == []
        assert session.state.is_processing is False
        assert session.state.current_file_name is None
        assert not session.handles.is_live(bad.resource_uri)
        assert session.handles.is_live(record.resource_uri)
        assert session.handles.live_count == 2

    @pytest.mark.asyncio
    async def test_reprocess_duplicate_names(self, settings, raw_factory):
        session = _session(settings)
        state = await session.submit([
            raw_factory("a.txt", content=b"first"), raw_factory("a.txt", content=b"second"),
        ])
        second = state.records[1]
        record = await session.reprocess_file(second.id)
        assert record.size_bytes == len(b"second")
        assert session.records[1] is record

    @pytest.mark.asyncio
    async def test_reprocess_unknown_id(self, settings, raw_factory):
        session = _session(settings)
        await session.submit([raw_factory("a.txt")])
        assert await session.reprocess_file("missing") is None
        assert session.handles.live_count == 1

    @pytest.mark.asyncio
    async def test_reprocess_removed_record(self, settings, raw_factory):
        session = _session(settings)
        state = await session.submit([raw_factory("a.txt")])
        record_id = state.records[0].id
        session.remove_file(record_id)
        assert await session.reprocess_file(record_id) is None

    @pytest.mark.asyncio
    async def test_reprocess_without_run(self, settings):
        assert await _session(settings).reprocess_file("x") is None

    @pytest.mark.asyncio
    async def test_closed_session_rejects_reprocess(self, settings, raw_factory):
        session = _session(settings)
        state = await session.submit([raw_factory("a.txt")])
        session.close()
        with pytest.raises(RuntimeError):
            await session.reprocess_file(state.records[0].id)
