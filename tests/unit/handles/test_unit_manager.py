# tests/unit/handles/test_unit_manager.py - v1
"""Tests for handles/manager.py - acquire, resolve and release accounting."""

from __future__ import annotations

from pathlib import Path

import pytest

from batchview.core.errors import HandleAcquisitionError, UnknownHandleError
from batchview.core.models import RawFileInput
from batchview.handles.manager import (
    GENERIC_CONTENT_TYPE,
    URI_SCHEME,
    ResourceHandleManager,
    infer_content_type,
)


class TestInferContentType:
    def test_declared_type_kept(self):
        assert infer_content_type("a.pdf", "application/x-custom") == "application/x-custom"

    def test_missing_type_inferred(self):
        assert infer_content_type("a.PDF", "") == "application/pdf"

    def test_generic_type_inferred(self):
        assert infer_content_type("a.png", GENERIC_CONTENT_TYPE) == "image/png"

    def test_unknown_extension(self):
        assert infer_content_type("a.xyz", None) == GENERIC_CONTENT_TYPE


class TestAcquire:
    @pytest.mark.asyncio
    async def test_acquire_and_resolve(self, raw_factory):
        manager = ResourceHandleManager(session_id="s1")
        uri = await manager.acquire(raw_factory("a.pdf", b"%PDF"))
        assert uri.startswith(f"{URI_SCHEME}/s1/")
        handle = manager.resolve(uri)
        assert handle.data == b"%PDF"
        assert handle.content_type == "application/pdf"
        assert handle.size == 4
        assert manager.live_count == 1

    @pytest.mark.asyncio
    async def test_uris_are_unique(self, raw_factory):
        manager = ResourceHandleManager()
        raw = raw_factory("a.txt")
        assert await manager.acquire(raw) != await manager.acquire(raw)

    @pytest.mark.asyncio
    async def test_unreadable_path_raises(self, tmp_path: Path):
        raw = RawFileInput(name="gone.txt", size=1, content=tmp_path / "gone.txt")
        manager = ResourceHandleManager()
        with pytest.raises(HandleAcquisitionError, match="gone.txt"):
            await manager.acquire(raw)
        assert manager.acquired_count == 0

    @pytest.mark.asyncio
    async def test_safe_acquire_returns_placeholder(self, tmp_path: Path):
        raw = RawFileInput(name="gone.txt", size=1, content=tmp_path / "gone.txt")
        uri, error = await ResourceHandleManager().safe_acquire(raw)
        assert uri == ""
        assert error and "gone.txt" in error

    @pytest.mark.asyncio
    async def test_safe_acquire_success(self, raw_factory):
        uri, error = await ResourceHandleManager().safe_acquire(raw_factory("a.txt"))
        assert uri and error is None


class TestRelease:
    @pytest.mark.asyncio
    async def test_release_is_idempotent(self, raw_factory):
        manager = ResourceHandleManager()
        uri = await manager.acquire(raw_factory("a.txt"))
        manager.release(uri)
        manager.release(uri)
        assert manager.released_count == 1
        assert not manager.is_live(uri)
        with pytest.raises(UnknownHandleError):
            manager.resolve(uri)

    def test_release_unknown_is_noop(self):
        manager = ResourceHandleManager()
        manager.release("blob:batchview/none/none")
        manager.release("")
        assert manager.released_count == 0

    @pytest.mark.asyncio
    async def test_release_all_balances_counters(self, raw_factory):
        manager = ResourceHandleManager()
        for i in range(5):
            await manager.acquire(raw_factory(f"f{i}.txt"))
        assert manager.release_all() == 5
        assert manager.live_count == 0
        assert manager.acquired_count == manager.released_count == 5
        assert manager.release_all() == 0

    @pytest.mark.asyncio
    async def test_scoped_releases_on_error(self, raw_factory):
        manager = ResourceHandleManager()
        with pytest.raises(RuntimeError):
            async with manager.scoped(raw_factory("a.txt")) as uri:
                assert manager.is_live(uri)
                raise RuntimeError("boom")
        assert manager.live_count == 0
        assert manager.released_count == 1

    def test_unknown_handle_is_key_error(self):
        with pytest.raises(KeyError):
            ResourceHandleManager().resolve("nope")
