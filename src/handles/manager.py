# src/handles/manager.py - v1
"""Resource handle manager: ownership-tracked local URIs for raw files.

Each acquired handle owns a copy of the file bytes under a
``blob:batchview/<session>/<uuid>`` address until it is released.
Every acquire must be matched by exactly one effective release; a
second release, or releasing an address that was never acquired, is a
no-op.
"""

from __future__ import annotations

import logging
import uuid
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from dataclasses import dataclass

from batchview.core.errors import HandleAcquisitionError, UnknownHandleError
from batchview.core.formatting import extension_of
from batchview.core.models import RawFileInput

logger = logging.getLogger(__name__)

URI_SCHEME = "blob:batchview"
GENERIC_CONTENT_TYPE = "application/octet-stream"

# Used when the declared type is missing or generic. Viewers refuse to
# treat a handle as a PDF unless it is labelled application/pdf.
_CONTENT_TYPES: dict[str, str] = {
    "pdf": "application/pdf",
    "jpg": "image/jpeg",
    "jpeg": "image/jpeg",
    "png": "image/png",
    "gif": "image/gif",
    "webp": "image/webp",
    "doc": "application/msword",
    "docx": "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
    "ppt": "application/vnd.ms-powerpoint",
    "pptx": "application/vnd.openxmlformats-officedocument.presentationml.presentation",
    "xls": "application/vnd.ms-excel",
    "xlsx": "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
}


def infer_content_type(name: str, declared: str | None) -> str:
    """Return the declared type, or one inferred from the extension."""
    if declared and declared.strip().lower() != GENERIC_CONTENT_TYPE:
        return declared
    return _CONTENT_TYPES.get(extension_of(name), GENERIC_CONTENT_TYPE)


@dataclass(frozen=True)
class ResourceHandle:
    """A live, byte-accurate local reference to one file."""

    uri: str
    name: str
    content_type: str
    data: bytes

    @property
    def size(self) -> int:
        return len(self.data)


class ResourceHandleManager:
    """Creates and releases resource handles for one processing session.

    This is the only component that owns shared mutable state (the map
    of live handles). Handles are never shared between concurrent
    operations, so no locking is needed.
    """

    def __init__(self, session_id: str | None = None) -> None:
        self._session_id = session_id or uuid.uuid4().hex[:12]
        self._live: dict[str, ResourceHandle] = {}
        self._acquired = 0
        self._released = 0

    @property
    def session_id(self) -> str:
        return self._session_id

    @property
    def live_count(self) -> int:
        return len(self._live)

    @property
    def acquired_count(self) -> int:
        return self._acquired

    @property
    def released_count(self) -> int:
        return self._released

    async def acquire(self, raw: RawFileInput) -> str:
        """Read the file bytes and register a new handle.

        Raises:
            HandleAcquisitionError: If the bytes cannot be read.
        """
        try:
            data = await raw.read_bytes()
        except OSError as exc:
            raise HandleAcquisitionError(
                f"Cannot read {raw.name!r}: {exc}"
            ) from exc

        content_type = infer_content_type(raw.name, raw.content_type)
        uri = f"{URI_SCHEME}/{self._session_id}/{uuid.uuid4()}"
        self._live[uri] = ResourceHandle(
            uri=uri, name=raw.name, content_type=content_type, data=data,
        )
        self._acquired += 1
        logger.debug(
            "Acquired %s for %s (%s, %d bytes)", uri, raw.name, content_type, len(data),
        )
        return uri

    async def safe_acquire(self, raw: RawFileInput) -> tuple[str, str | None]:
        """Acquire without raising.

        Returns:
            (uri, None) on success, or ("", error message) with the empty
            placeholder handle on any failure.
        """
        try:
            return await self.acquire(raw), None
        except Exception as exc:
            logger.warning("Handle acquisition failed for %s: %s", raw.name, exc)
            return "", str(exc) or exc.__class__.__name__

    def resolve(self, uri: str) -> ResourceHandle:
        """Return the live handle behind a URI."""
        try:
            return self._live[uri]
        except KeyError:
            raise UnknownHandleError(f"No live handle for {uri!r}") from None

    def is_live(self, uri: str) -> bool:
        return uri in self._live

    def release(self, uri: str) -> None:
        """Release a handle. Unknown or already released URIs are ignored."""
        if self._live.pop(uri, None) is None:
            logger.debug("Release of inactive handle ignored: %r", uri)
            return
        self._released += 1
        logger.debug("Released %s", uri)

    def release_all(self) -> int:
        """Release every live handle. Returns how many were released."""
        uris = list(self._live)
        for uri in uris:
            self.release(uri)
        if uris:
            logger.info("Released %d handle(s) for session %s", len(uris), self._session_id)
        return len(uris)

    @asynccontextmanager
    async def scoped(self, raw: RawFileInput) -> AsyncIterator[str]:
        """Acquire a handle released on every exit path."""
        uri = await self.acquire(raw)
        try:
            yield uri
        finally:
            self.release(uri)
