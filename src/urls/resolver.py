# src/urls/resolver.py - v1
"""Dual-quality URL resolver.

A record backed by the remote file endpoint gets a preview address
(compressed rendition) and a download address (original bytes). The
endpoint contract is ``GET <base>/api/files/<id>?mode=preview|download``.
Records without a remote id point every address at their local handle.
"""

from __future__ import annotations

from collections.abc import Iterable
from urllib.parse import quote

from batchview.config.settings import Settings
from batchview.core.models import ClassifiedKind, ProcessedFileRecord, ResolvedUrls

DEFAULT_THUMBNAIL_SIZE = 300

_PREVIEW_KINDS = frozenset({
    ClassifiedKind.IMAGE,
    ClassifiedKind.VIDEO,
    ClassifiedKind.PDF,
})


class DualQualityResolver:
    """Build view, download and thumbnail URLs for records.

    Args:
        base_url: Root of the remote file endpoint.
        mirror: Serve the original bytes for every address. Used where the
            endpoint has no preview rendition.
        thumbnail_size: ``size`` parameter of thumbnail URLs.
    """

    def __init__(
        self,
        base_url: str,
        mirror: bool = False,
        thumbnail_size: int = DEFAULT_THUMBNAIL_SIZE,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self._mirror = mirror
        self._thumbnail_size = thumbnail_size

    @classmethod
    def from_settings(cls, settings: Settings) -> DualQualityResolver:
        return cls(
            base_url=settings.remote_base_url,
            mirror=settings.remote_mirror_urls,
            thumbnail_size=settings.remote_thumbnail_size,
        )

    @property
    def base_url(self) -> str:
        return self._base_url

    @property
    def mirror(self) -> bool:
        return self._mirror

    def resolve_urls(self, record: ProcessedFileRecord | str) -> ResolvedUrls:
        """Resolve the addresses of a record, or of a bare remote id."""
        if isinstance(record, str):
            return self._remote_urls(record)
        if record.remote_id:
            return self._remote_urls(record.remote_id)
        return ResolvedUrls(
            view_url=record.resource_uri,
            download_url=record.resource_uri,
            thumbnail_url=record.resource_uri,
        )

    def resolve_many(
        self, records: Iterable[ProcessedFileRecord],
    ) -> dict[str, ResolvedUrls]:
        return {record.id: self.resolve_urls(record) for record in records}

    def _remote_urls(self, remote_id: str) -> ResolvedUrls:
        endpoint = f"{self._base_url}/api/files/{quote(remote_id, safe='')}"
        download_url = f"{endpoint}?mode=download"
        if self._mirror:
            return ResolvedUrls(
                view_url=download_url,
                download_url=download_url,
                thumbnail_url=download_url,
            )
        return ResolvedUrls(
            view_url=f"{endpoint}?mode=preview",
            download_url=download_url,
            thumbnail_url=f"{endpoint}?mode=preview&size={self._thumbnail_size}",
        )


def optimal_preview_url(record: ProcessedFileRecord, urls: ResolvedUrls) -> str:
    """Preview rendition for visual kinds, original bytes for the rest."""
    if record.kind in _PREVIEW_KINDS:
        return urls.view_url
    return urls.download_url
