"""Tests for the poll loop backstop channel."""

from __future__ import annotations

import pytest

from docwatch.watching.events import FileIdentity, NetAction
from docwatch.watching.poller import PollLoop
from tests.utils import ManualClock, MemoryFileSystem

DOC = "/docs/readme.md"


@pytest.fixture
def clock() -> ManualClock:
    return ManualClock()


@pytest.fixture
def fs() -> MemoryFileSystem:
    memory = MemoryFileSystem()
    memory.write(DOC, "# Hello\n", mtime=100.0)
    return memory


@pytest.fixture
def identity() -> FileIdentity:
    return FileIdentity(mtime=100.0)


@pytest.fixture
def actions() -> list[NetAction]:
    return []


@pytest.fixture
def poller(fs, identity, clock, actions) -> PollLoop:
    return PollLoop(DOC, identity, fs, clock, actions.append, interval=5.0)


class TestPollDetection:
    """What a single tick reports."""

    @pytest.mark.asyncio
    async def test_unchanged_file(self, poller, clock, actions) -> None:
        poller.start()
        await clock.advance(5.0)
        assert poller.ticks == 1
        assert actions == []

    @pytest.mark.asyncio
    async def test_detects_change_within_one_interval(
        self, poller, clock, fs, identity, actions
    ) -> None:
        poller.start()
        await clock.advance(1.0)
        fs.write(DOC, "# Changed\n", mtime=101.0)

        await clock.advance(4.0)
        assert actions == [NetAction.MODIFIED]
        # Only a successful reconciliation moves the identity
        assert identity.mtime == 100.0

    @pytest.mark.asyncio
    async def test_repeats_until_identity_confirmed(
        self, poller, clock, fs, identity, actions
    ) -> None:
        poller.start()
        fs.write(DOC, "# Changed\n", mtime=101.0)
        await clock.advance(10.0)
        assert actions == [NetAction.MODIFIED, NetAction.MODIFIED]

        identity.mtime = 101.0
        await clock.advance(5.0)
        assert actions == [NetAction.MODIFIED, NetAction.MODIFIED]

    @pytest.mark.asyncio
    async def test_deletion_with_prior_identity(self, poller, clock, fs, identity, actions) -> None:
        """A failing stat with a known identity reports deletion and clears it."""
        poller.start()
        fs.delete(DOC)
        await clock.advance(5.0)
        assert actions == [NetAction.DELETED]
        assert identity.mtime is None

        await clock.advance(5.0)
        assert actions == [NetAction.DELETED]

    @pytest.mark.asyncio
    async def test_permission_failure_with_prior_identity(
        self, poller, clock, fs, identity, actions
    ) -> None:
        poller.start()
        fs.denied.add(DOC)
        await clock.advance(5.0)
        assert actions == [NetAction.DELETED]
        assert not identity.known

    @pytest.mark.asyncio
    async def test_failure_without_identity_is_transient(self, fs, clock, actions) -> None:
        identity = FileIdentity()
        poller = PollLoop("/docs/missing.md", identity, fs, clock, actions.append, interval=5.0)
        poller.start()
        await clock.advance(15.0)
        assert poller.ticks == 3
        assert actions == []

    @pytest.mark.asyncio
    async def test_success_without_identity_takes_no_action(self, fs, clock, actions) -> None:
        identity = FileIdentity()
        poller = PollLoop(DOC, identity, fs, clock, actions.append, interval=5.0)
        poller.start()
        await clock.advance(5.0)
        assert actions == []
        assert identity.mtime is None


class TestPollScheduling:
    """Interval spacing and cancellation."""

    @pytest.mark.asyncio
    async def test_first_tick_after_one_interval(self, poller, clock, fs) -> None:
        poller.start()
        await clock.advance(4.99)
        assert fs.stat_calls == 0
        await clock.advance(0.01)
        assert fs.stat_calls == 1

    @pytest.mark.asyncio
    async def test_never_more_often_than_interval(self, poller, clock, fs) -> None:
        poller.start()
        await clock.advance(24.0)
        assert fs.stat_calls == 4
        assert clock.pending == 1

    @pytest.mark.asyncio
    async def test_start_is_idempotent(self, poller, clock) -> None:
        poller.start()
        poller.start()
        assert clock.pending == 1

    @pytest.mark.asyncio
    async def test_stop_cancels_pending_tick(self, poller, clock, fs, actions) -> None:
        poller.start()
        await clock.advance(5.0)
        poller.stop()
        assert not poller.is_running()
        assert clock.pending == 0

        fs.delete(DOC)
        await clock.advance(20.0)
        assert fs.stat_calls == 1
        assert actions == []

    @pytest.mark.asyncio
    async def test_direct_tick_reports_action(self, poller, fs) -> None:
        poller.start()
        fs.touch(DOC, mtime=200.0)
        assert await poller.tick() is NetAction.MODIFIED
