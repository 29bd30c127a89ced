"""Periodic metadata comparison, the backstop detection channel.

Native notifications are lossy on network filesystems, with editors that
save via rename, and when the OS coalesces events upstream. The poll loop
re-stats the file on a fixed interval and reports what it sees directly as
a net action; a single sample needs no coalescing.
"""

from __future__ import annotations

import asyncio
from collections.abc import Callable

from docwatch.errors import FileAccessError
from docwatch.logging import TRACE, get_logger
from docwatch.watching.clock import Clock, TimerHandle
from docwatch.watching.events import FileIdentity, NetAction
from docwatch.watching.providers import MetadataProvider

log = get_logger("watching.poller")

# Default poll interval in seconds
DEFAULT_POLL_INTERVAL = 5.0


class PollLoop:
    """Re-stats the watched file every interval.

    The next tick is only scheduled once the current one has finished, so
    ticks never overlap and never run more often than the interval.
    """

    def __init__(
        self,
        path: str,
        identity: FileIdentity,
        metadata: MetadataProvider,
        clock: Clock,
        on_action: Callable[[NetAction], None],
        interval: float = DEFAULT_POLL_INTERVAL,
    ) -> None:
        """Initialize the poll loop.

        Args:
            path: File to stat.
            identity: Shared fingerprint. Read here, cleared on deletion;
                the reconciler records new mtimes.
            metadata: Metadata provider.
            clock: Timer source.
            on_action: Called with MODIFIED or DELETED when detected.
            interval: Seconds between ticks.
        """
        self._path = path
        self._identity = identity
        self._metadata = metadata
        self._clock = clock
        self._on_action = on_action
        self._interval = interval
        self._timer: TimerHandle | None = None
        self._task: asyncio.Task[None] | None = None
        self._running = False
        self._ticks = 0

    @property
    def interval(self) -> float:
        return self._interval

    @property
    def ticks(self) -> int:
        """Number of completed ticks."""
        return self._ticks

    def is_running(self) -> bool:
        return self._running

    def start(self) -> None:
        """Schedule the first tick one interval from now."""
        if self._running:
            return
        self._running = True
        self._schedule()
        log.debug("Poll loop started for %s (interval=%.1fs)", self._path, self._interval)

    def stop(self) -> None:
        """Cancel the pending tick and any tick in progress."""
        self._running = False
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None
        if self._task is not None and not self._task.done():
            if self._task is not asyncio.current_task():
                self._task.cancel()
        self._task = None

    def _schedule(self) -> None:
        self._timer = self._clock.call_later(self._interval, self._fire)

    def _fire(self) -> None:
        self._timer = None
        if not self._running:
            return
        self._task = asyncio.get_running_loop().create_task(self._run_tick())
        self._task.add_done_callback(self._tick_done)

    def _tick_done(self, task: asyncio.Task[None]) -> None:
        if task.cancelled():
            return
        error = task.exception()
        if error is not None:
            log.error("Poll tick for %s failed: %s", self._path, error, exc_info=error)

    async def _run_tick(self) -> None:
        try:
            await self.tick()
        finally:
            self._task = None
            if self._running:
                self._schedule()

    async def tick(self) -> NetAction | None:
        """Take one metadata sample and emit an action if it shows a change."""
        try:
            st = await self._metadata.stat(self._path)
        except FileAccessError as e:
            return self._sample_failed(e)
        finally:
            self._ticks += 1

        if not self._running:
            return None
        if not self._identity.known:
            # Never confirmed since start or last deletion; leave it to reconciliation
            return None
        if st.mtime == self._identity.mtime:
            log.log(TRACE, "Poll: %s unchanged", self._path)
            return None

        # Identity is left to the reconciler; until a read confirms the new
        # mtime every tick reports the change again
        log.debug("Poll: %s mtime %s -> %s", self._path, self._identity.mtime, st.mtime)
        self._on_action(NetAction.MODIFIED)
        return NetAction.MODIFIED

    def _sample_failed(self, error: FileAccessError) -> NetAction | None:
        if not self._running:
            return None
        if not self._identity.known:
            log.log(TRACE, "Poll: %s unavailable, no prior identity: %s", self._path, error)
            return None

        log.debug("Poll: %s gone: %s", self._path, error)
        self._identity.clear()
        self._on_action(NetAction.DELETED)
        return NetAction.DELETED
