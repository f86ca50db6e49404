# src/batch/session.py - v1
"""Batch session: owns the handles and the current run of one consuming view.

A new submission fully supersedes the previous one. Results of a
superseded run are discarded when it finishes and its handles released,
never merged into the newer run. Closing the session releases every
handle still open, exactly once.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from types import TracebackType

from batchview.batch.processor import BatchProcessor, EnricherFactory, ProgressCallback
from batchview.config.settings import Settings
from batchview.core.errors import BatchProcessingError
from batchview.core.models import BatchRunState, ProcessedFileRecord, RawFileInput
from batchview.handles.manager import ResourceHandleManager

logger = logging.getLogger(__name__)


class BatchSession:
    """Scope for one batch view: submit, reprocess, remove, close."""

    def __init__(
        self,
        settings: Settings | None = None,
        enricher_factory: EnricherFactory | None = None,
    ) -> None:
        self._settings = settings or Settings(_env_file=None)
        self._handles = ResourceHandleManager()
        self._processor = BatchProcessor(
            settings=self._settings,
            handles=self._handles,
            enricher_factory=enricher_factory,
        )
        self._generation = 0
        self._state: BatchRunState | None = None
        self._sources: dict[str, RawFileInput] = {}
        self._closed = False

    # --- Properties ---

    @property
    def handles(self) -> ResourceHandleManager:
        return self._handles

    @property
    def state(self) -> BatchRunState | None:
        """State of the current (most recent) run, if any."""
        return self._state

    @property
    def records(self) -> list[ProcessedFileRecord]:
        return list(self._state.records) if self._state else []

    @property
    def closed(self) -> bool:
        return self._closed

    # --- Operations ---

    async def submit(
        self,
        raw_files: Sequence[RawFileInput],
        concurrency: int | None = None,
        on_progress: ProgressCallback | None = None,
    ) -> BatchRunState:
        """Process a new batch, superseding any earlier one.

        Returns the run's state. If another submission started while this
        one was running, the returned state is marked superseded: its
        records were discarded and their handles released.
        """
        if self._closed:
            raise RuntimeError("BatchSession is closed")

        self._generation += 1
        generation = self._generation
        previous = self._state
        state = BatchRunState(run_id=f"{self._handles.session_id}-{generation}")
        self._state = state
        self._sources = {}
        if previous is not None and not previous.is_processing:
            self._release_records(previous.records)

        def _progress(run_state: BatchRunState) -> None:
            if on_progress is not None and generation == self._generation:
                on_progress(run_state)

        try:
            await self._processor.process_batch(
                raw_files, concurrency=concurrency, on_progress=_progress, state=state,
            )
        except BatchProcessingError as exc:
            logger.error("Batch %s failed: %s", state.run_id, exc)

        if generation != self._generation or self._closed:
            logger.info("Discarding results of superseded run %s", state.run_id)
            self._release_records(state.records)
            state.records = []
        else:
            self._sources = _match_sources(state.records, raw_files)
        return state

    async def reprocess_file(self, record_id: str) -> ProcessedFileRecord | None:
        """Run one record of the current batch through the pipeline again.

        The new record keeps the id and position of the old one. Its old
        handle and errors are dropped. Returns None for an unknown id.
        """
        if self._closed:
            raise RuntimeError("BatchSession is closed")
        state = self._state
        if state is None:
            return None
        if state.is_processing:
            raise RuntimeError("Cannot reprocess while a batch is running")

        index = next(
            (i for i, r in enumerate(state.records) if r.id == record_id), None,
        )
        raw = self._sources.get(record_id)
        if index is None or raw is None:
            logger.warning("Cannot reprocess unknown record %s", record_id)
            return None

        old = state.records[index]
        if old.resource_uri:
            self._handles.release(old.resource_uri)
        state.errors = [e for e in state.errors if e.record_id != record_id]

        logger.info("Reprocessing %s (%s)", raw.name, record_id)
        state.is_processing = True
        try:
            record = await self._processor.process_file(raw, state, record_id=record_id)
        finally:
            state.is_processing = False
            state.current_file_name = None

        records = list(state.records)
        records[index] = record
        state.records = records
        return record

    def remove_file(self, record_id: str) -> bool:
        """Drop one record and its errors, releasing its handle."""
        if self._state is None:
            return False
        for record in self._state.records:
            if record.id == record_id:
                self._handles.release(record.resource_uri)
                self._state.records = [r for r in self._state.records if r.id != record_id]
                self._state.errors = [e for e in self._state.errors if e.record_id != record_id]
                self._sources.pop(record_id, None)
                return True
        return False

    def clear_errors(self) -> None:
        if self._state is not None:
            self._state.errors = []

    def close(self) -> int:
        """Release every handle still owned by the session."""
        self._closed = True
        released = self._handles.release_all()
        logger.debug("Session %s closed, %d handle(s) released", self._handles.session_id, released)
        return released

    async def __aenter__(self) -> BatchSession:
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.close()

    def _release_records(self, records: Sequence[ProcessedFileRecord]) -> None:
        for record in records:
            if record.resource_uri:
                self._handles.release(record.resource_uri)


def _match_sources(
    records: Sequence[ProcessedFileRecord], raw_files: Sequence[RawFileInput],
) -> dict[str, RawFileInput]:
    """Pair each record with the raw input it was built from.

    Records come back in input order, so a forward scan on the file name
    pairs duplicates correctly.
    """
    sources: dict[str, RawFileInput] = {}
    position = 0
    for record in records:
        for offset in range(position, len(raw_files)):
            if raw_files[offset].name == record.original_name:
                sources[record.id] = raw_files[offset]
                position = offset + 1
                break
    return sources
