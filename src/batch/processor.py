# src/batch/processor.py - v1
"""Batch processor: classify, acquire and enrich a batch of raw files.

Workflow per batch:
    1. Split the input into sequential chunks of ``concurrency`` files.
    2. Run every file of a chunk concurrently; chunk N+1 starts only once
       chunk N has fully settled.
    3. Publish progress after each file completes.
    4. Reassemble records by original index, not completion order.

A failure for one file produces a degraded record with
``processing_error`` set; the batch always completes. Only a fault in
the driver itself is fatal (BatchProcessingError).
"""

from __future__ import annotations

import asyncio
import logging
import time
import uuid
from collections.abc import Callable, Iterator, Sequence
from typing import TypeVar

from batchview.classify.classifier import classify
from batchview.config.settings import Settings
from batchview.core.errors import BatchProcessingError
from batchview.core.formatting import RecordIdFactory, format_size, split_name
from batchview.core.models import (
    BatchError,
    BatchRunState,
    ClassifiedKind,
    ProcessedFileRecord,
    RawFileInput,
    default_metadata,
)
from batchview.enrichment.base_enricher import BaseEnricher
from batchview.enrichment.enricher_factory import create_enricher
from batchview.handles.manager import GENERIC_CONTENT_TYPE, ResourceHandleManager
from batchview.logging.context import set_file_context, set_run_context

logger = logging.getLogger(__name__)

T = TypeVar("T")

ProgressCallback = Callable[[BatchRunState], None]
EnricherFactory = Callable[[ClassifiedKind, Settings], BaseEnricher]


def chunked(items: Sequence[T], size: int) -> Iterator[tuple[int, Sequence[T]]]:
    """Yield (start index, chunk) pairs of at most ``size`` items."""
    if size < 1:
        raise ValueError(f"chunk size must be >= 1, got {size}")
    for start in range(0, len(items), size):
        yield start, items[start:start + size]


def progress_percent(completed: int, total: int) -> int:
    """completed / total as a percentage, rounded half up."""
    if total <= 0:
        return 100
    return int(completed * 100 / total + 0.5)


def new_run_id() -> str:
    return f"run-{int(time.time() * 1000)}-{uuid.uuid4().hex[:8]}"


class BatchProcessor:
    """Drives raw files through classifier, handle manager and enrichers."""

    def __init__(
        self,
        settings: Settings | None = None,
        handles: ResourceHandleManager | None = None,
        enricher_factory: EnricherFactory | None = None,
    ) -> None:
        self._settings = settings or Settings(_env_file=None)
        self._handles = handles or ResourceHandleManager()
        self._enricher_factory = enricher_factory or (
            lambda kind, settings: create_enricher(kind, settings)
        )
        self._enrichers: dict[ClassifiedKind, BaseEnricher] = {}

    @property
    def handles(self) -> ResourceHandleManager:
        return self._handles

    async def run(
        self,
        raw_files: Sequence[RawFileInput],
        concurrency: int | None = None,
        on_progress: ProgressCallback | None = None,
    ) -> BatchRunState:
        """Process a batch into a fresh BatchRunState.

        A fatal driver error does not propagate; it is reported through
        ``state.failed`` and ``state.fatal_error`` with the records
        completed before it.
        """
        state = BatchRunState(run_id=new_run_id())
        try:
            await self.process_batch(
                raw_files, concurrency=concurrency, on_progress=on_progress, state=state,
            )
        except BatchProcessingError:
            pass  # already recorded on state
        return state

    async def process_batch(
        self,
        raw_files: Sequence[RawFileInput],
        concurrency: int | None = None,
        on_progress: ProgressCallback | None = None,
        state: BatchRunState | None = None,
    ) -> list[ProcessedFileRecord]:
        """Process every file, returning one record per input in input order.

        Args:
            raw_files: Ordered input batch.
            concurrency: Chunk size (default: settings.concurrency).
            on_progress: Called with the run state after each file completes.
            state: Run state to update (a new one is created if omitted).

        Raises:
            BatchProcessingError: On a fault in the driver itself. The
                exception and ``state.records`` carry the records that
                completed before the fault.
        """
        concurrency = concurrency or self._settings.concurrency
        state = state or BatchRunState(run_id=new_run_id())
        set_run_context(self._handles.session_id, state.run_id)

        total = len(raw_files)
        state.is_processing = True
        state.progress_percent = 0
        state.errors = []
        state.records = []
        state.failed = False
        state.fatal_error = None

        results: list[ProcessedFileRecord | None] = [None] * total
        ids = RecordIdFactory()
        completed = 0
        faulted = False

        def _on_file_done(index: int, record: ProcessedFileRecord) -> None:
            nonlocal completed, faulted
            results[index] = record
            completed += 1
            if faulted:
                return
            state.advance(progress_percent(completed, total))
            if on_progress is not None:
                try:
                    on_progress(state)
                except Exception:
                    faulted = True
                    raise

        logger.info(
            "Processing batch of %d file(s), concurrency=%d", total, concurrency,
        )
        t0 = time.perf_counter()
        try:
            for start, chunk in chunked(raw_files, concurrency):
                # The whole chunk settles before a fault is raised, so every
                # acquired handle ends up on a returned record.
                outcomes = await asyncio.gather(
                    *(
                        self._process_and_report(start + offset, raw, state, ids, _on_file_done)
                        for offset, raw in enumerate(chunk)
                    ),
                    return_exceptions=True,
                )
                for outcome in outcomes:
                    if isinstance(outcome, BaseException):
                        raise outcome
        except Exception as exc:
            state.records = [r for r in results if r is not None]
            state.is_processing = False
            state.current_file_name = None
            state.failed = True
            state.fatal_error = str(exc) or exc.__class__.__name__
            logger.exception(
                "Batch %s failed after %d of %d file(s)", state.run_id, completed, total,
            )
            raise BatchProcessingError(state.fatal_error, state.records) from exc

        records = [r for r in results if r is not None]
        state.records = records
        state.is_processing = False
        state.current_file_name = None
        state.advance(100)
        logger.info(
            "Batch %s complete: %d file(s), %d error(s) in %.2fs",
            state.run_id, len(records), len(state.errors), time.perf_counter() - t0,
        )
        return records

    async def _process_and_report(
        self,
        index: int,
        raw: RawFileInput,
        state: BatchRunState,
        ids: RecordIdFactory,
        on_done: Callable[[int, ProcessedFileRecord], None],
    ) -> None:
        record = await self.process_file(raw, state, ids)
        on_done(index, record)

    async def process_file(
        self,
        raw: RawFileInput,
        state: BatchRunState,
        ids: RecordIdFactory | None = None,
        record_id: str | None = None,
    ) -> ProcessedFileRecord:
        """Process one file. Never raises; failures degrade the record.

        ``record_id`` reuses an existing id, as when a file is reprocessed.
        """
        record_id = record_id or (ids or RecordIdFactory()).next_id(raw.name)
        state.current_file_name = raw.name
        set_file_context(raw.name, "classify")

        kind = ClassifiedKind.OTHER
        uri = ""
        try:
            kind = classify(raw.name, raw.content_type)

            set_file_context(raw.name, "acquire")
            uri, acquire_error = await self._handles.safe_acquire(raw)
            if acquire_error is not None:
                return self._fail(state, raw, record_id, kind, uri, acquire_error)

            set_file_context(raw.name, "enrich")
            handle = self._handles.resolve(uri)
            result = await self._enricher_for(kind).enrich(handle, kind)
            for warning in result.warnings:
                logger.debug("Enrichment warning for %s: %s", raw.name, warning)

            display_name, extension = split_name(raw.name)
            return ProcessedFileRecord(
                id=record_id,
                display_name=display_name,
                original_name=raw.name,
                extension=extension,
                size_label=format_size(raw.size),
                size_bytes=raw.size,
                kind=kind,
                content_type=handle.content_type,
                resource_uri=uri,
                thumbnails=result.thumbnails,
                cover_image=result.cover_image,
                metadata=result.metadata,
            )
        except Exception as exc:
            logger.exception("Failed to process %s", raw.name)
            return self._fail(
                state, raw, record_id, kind, uri, str(exc) or exc.__class__.__name__,
            )

    def _enricher_for(self, kind: ClassifiedKind) -> BaseEnricher:
        enricher = self._enrichers.get(kind)
        if enricher is None:
            enricher = self._enricher_factory(kind, self._settings)
            self._enrichers[kind] = enricher
        return enricher

    @staticmethod
    def _fail(
        state: BatchRunState,
        raw: RawFileInput,
        record_id: str,
        kind: ClassifiedKind,
        uri: str,
        message: str,
    ) -> ProcessedFileRecord:
        """Record the error and build the degraded record with safe defaults."""
        state.errors.append(BatchError(record_id=record_id, message=message))
        display_name, extension = split_name(raw.name)
        return ProcessedFileRecord(
            id=record_id,
            display_name=display_name,
            original_name=raw.name,
            extension=extension,
            size_label=format_size(raw.size),
            size_bytes=raw.size,
            kind=kind,
            content_type=raw.content_type or GENERIC_CONTENT_TYPE,
            resource_uri=uri,
            metadata=default_metadata(kind, extension),
            processing_error=message,
        )
