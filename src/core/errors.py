# src/core/errors.py - v1
"""Exception hierarchy shared by all batchview modules."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from batchview.core.models import ProcessedFileRecord


class BatchviewError(Exception):
    """Base class for batchview errors."""


class HandleAcquisitionError(BatchviewError):
    """Raised when a resource handle cannot be created for a file."""


class UnknownHandleError(BatchviewError, KeyError):
    """Raised when resolving a handle URI that is not live."""


class EmptyBatchError(BatchviewError, ValueError):
    """Raised when routing is asked to pick a strategy for zero records."""


class BatchProcessingError(BatchviewError):
    """Batch-level fatal failure. Carries the records completed before it."""

    def __init__(
        self, message: str, records: list[ProcessedFileRecord] | None = None,
    ) -> None:
        super().__init__(message)
        self.records = list(records or [])
