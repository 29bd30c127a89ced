"""Tests for reconciliation and content de-duplication."""

from __future__ import annotations

import logging

import pytest

from docwatch.watching.events import ChangeEvent, FileIdentity, NetAction
from docwatch.watching.reconciler import Reconciler
from tests.utils import ChangeRecorder, MemoryFileSystem

DOC = "/docs/readme.md"


@pytest.fixture
def fs() -> MemoryFileSystem:
    memory = MemoryFileSystem()
    memory.write(DOC, "# Hello\n", mtime=100.0)
    return memory


@pytest.fixture
def identity() -> FileIdentity:
    return FileIdentity(mtime=100.0)


@pytest.fixture
def reconciler(fs, identity, changes: ChangeRecorder) -> Reconciler:
    r = Reconciler(DOC, identity, fs, fs, changes)
    r.seed(b"# Hello\n")
    return r


class TestModified:
    """MODIFIED actions."""

    @pytest.mark.asyncio
    async def test_new_content_is_delivered(self, reconciler, fs, identity, changes) -> None:
        fs.write(DOC, "# Changed\n", mtime=101.0)
        event = await reconciler.apply(NetAction.MODIFIED)
        assert event == ChangeEvent("modified")
        assert changes.events == ["modified"]
        assert identity.mtime == 101.0
        assert reconciler.last_content == b"# Changed\n"

    @pytest.mark.asyncio
    async def test_identical_content_suppressed_but_mtime_refreshed(
        self, reconciler, fs, identity, changes
    ) -> None:
        """Touch-only change: no callback, identity still follows the file."""
        fs.touch(DOC, mtime=150.0)
        assert await reconciler.apply(NetAction.MODIFIED) is None
        assert changes.events == []
        assert identity.mtime == 150.0
        assert reconciler.suppressed == 1

    @pytest.mark.asyncio
    async def test_repeated_reconciliation_is_idempotent(self, reconciler, fs, changes) -> None:
        """The same change detected twice (native + poll) notifies once."""
        fs.write(DOC, "# Changed\n", mtime=101.0)
        await reconciler.apply(NetAction.MODIFIED)
        await reconciler.apply(NetAction.MODIFIED)
        assert changes.events == ["modified"]
        assert reconciler.delivered == 1

    @pytest.mark.asyncio
    async def test_read_failure_is_ignored(self, reconciler, fs, identity, changes) -> None:
        fs.delete(DOC)
        assert await reconciler.apply(NetAction.MODIFIED) is None
        assert changes.events == []
        assert identity.mtime == 100.0
        assert reconciler.file_present

    @pytest.mark.asyncio
    async def test_unseeded_reconciler_delivers_first_read(self, fs, identity, changes) -> None:
        reconciler = Reconciler(DOC, identity, fs, fs, changes)
        await reconciler.apply(NetAction.MODIFIED)
        assert changes.events == ["modified"]


class TestDeleted:
    """DELETED actions."""

    @pytest.mark.asyncio
    async def test_deletion_clears_identity_and_notifies(
        self, reconciler, fs, identity, changes
    ) -> None:
        fs.delete(DOC)
        event = await reconciler.apply(NetAction.DELETED)
        assert event is not None
        assert event.to_dict() == {"type": "deleted"}
        assert identity.mtime is None
        assert not reconciler.file_present
        assert changes.events == ["deleted"]

    @pytest.mark.asyncio
    async def test_second_deletion_suppressed(self, reconciler, changes) -> None:
        await reconciler.apply(NetAction.DELETED)
        await reconciler.apply(NetAction.DELETED)
        assert changes.events == ["deleted"]

    @pytest.mark.asyncio
    async def test_recreation_with_same_content_is_delivered(
        self, reconciler, fs, identity, changes
    ) -> None:
        fs.delete(DOC)
        await reconciler.apply(NetAction.DELETED)
        fs.write(DOC, "# Hello\n", mtime=200.0)
        await reconciler.apply(NetAction.MODIFIED)
        assert changes.events == ["deleted", "modified"]
        assert identity.mtime == 200.0
        assert reconciler.file_present


class TestCallbacks:
    """Callback invocation."""

    @pytest.mark.asyncio
    async def test_async_callback_awaited(self, fs, identity) -> None:
        received: list[ChangeEvent] = []

        async def on_change(event: ChangeEvent) -> None:
            received.append(event)

        reconciler = Reconciler(DOC, identity, fs, fs, on_change)
        await reconciler.apply(NetAction.DELETED)
        assert received == [ChangeEvent("deleted")]

    @pytest.mark.asyncio
    async def test_callback_error_is_logged(
        self, fs, identity, caplog: pytest.LogCaptureFixture
    ) -> None:
        def on_change(event: ChangeEvent) -> None:
            raise RuntimeError("render failed")

        reconciler = Reconciler(DOC, identity, fs, fs, on_change)
        with caplog.at_level(logging.ERROR, logger="docwatch"):
            event = await reconciler.apply(NetAction.DELETED)
        assert event == ChangeEvent("deleted")
        assert "render failed" in caplog.text
