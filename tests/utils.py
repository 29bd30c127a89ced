"""Shared test utilities for docwatch tests.

Provides in-memory stand-ins for every collaborator the watch engine uses,
so the coalescing window and poll interval can be driven without sleeping.
"""

from __future__ import annotations

import asyncio
import itertools
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any

from docwatch.errors import FileAccessError, FileNotFound, FilePermissionDenied, RegistrationError
from docwatch.watching.events import FileStat

DOC = "/docs/readme.md"


async def settle(rounds: int = 25) -> None:
    """Let pending tasks and callbacks on the loop run to completion."""
    for _ in range(rounds):
        await asyncio.sleep(0)


@dataclass
class _ManualTimer:
    when: float
    seq: int
    callback: Callable[[], None]
    cancelled: bool = False

    def cancel(self) -> None:
        self.cancelled = True


class ManualClock:
    """Clock whose time only moves when a test calls advance()."""

    def __init__(self, start: float = 0.0) -> None:
        self._now = start
        self._timers: list[_ManualTimer] = []
        self._seq = itertools.count()

    def now(self) -> float:
        return self._now

    def call_later(self, delay: float, callback: Callable[[], None]) -> _ManualTimer:
        timer = _ManualTimer(self._now + max(0.0, delay), next(self._seq), callback)
        self._timers.append(timer)
        return timer

    @property
    def pending(self) -> int:
        """Number of timers that are scheduled and not cancelled."""
        return sum(1 for t in self._timers if not t.cancelled)

    async def advance(self, seconds: float) -> None:
        """Move time forward, firing due timers in order and settling tasks."""
        target = self._now + seconds
        while True:
            due = [t for t in self._timers if not t.cancelled and t.when <= target + 1e-9]
            if not due:
                break
            timer = min(due, key=lambda t: (t.when, t.seq))
            self._timers.remove(timer)
            self._now = max(self._now, timer.when)
            timer.callback()
            await settle()
        self._now = target
        await settle()

    async def advance_ms(self, ms: float) -> None:
        await self.advance(ms / 1000.0)


class MemoryFileSystem:
    """MetadataProvider and ContentReader over an in-memory dict."""

    def __init__(self) -> None:
        self.files: dict[str, tuple[bytes, float]] = {}
        self.denied: set[str] = set()
        self.stat_calls = 0
        self.read_calls = 0
        # Number of upcoming read() calls that fail even though the file exists
        self.failing_reads = 0

    def write(self, path: str, content: bytes | str, mtime: float) -> None:
        if isinstance(content, str):
            content = content.encode("utf-8")
        self.files[path] = (content, mtime)

    def touch(self, path: str, mtime: float) -> None:
        content, _ = self.files[path]
        self.files[path] = (content, mtime)

    def delete(self, path: str) -> None:
        self.files.pop(path, None)

    def _lookup(self, path: str) -> tuple[bytes, float]:
        if path in self.denied:
            raise FilePermissionDenied(path, f"Permission denied: {path}")
        if path not in self.files:
            raise FileNotFound(path, f"File not found: {path}")
        return self.files[path]

    async def stat(self, path: str) -> FileStat:
        self.stat_calls += 1
        content, mtime = self._lookup(path)
        return FileStat(mtime=mtime, size=len(content))

    async def read(self, path: str) -> bytes:
        self.read_calls += 1
        if self.failing_reads > 0:
            self.failing_reads -= 1
            raise FileAccessError(path, f"Failed to read file: {path}")
        content, _ = self._lookup(path)
        return content


@dataclass
class FakeSubscription:
    path: str
    on_event: Callable[[Any], None]
    unsubscribe_calls: int = 0

    @property
    def closed(self) -> bool:
        return self.unsubscribe_calls > 0

    async def unsubscribe(self) -> None:
        self.unsubscribe_calls += 1


@dataclass
class FakeNotifier:
    """NotificationProvider that lets tests emit events by hand."""

    fail: bool = False
    subscriptions: list[FakeSubscription] = field(default_factory=list)

    async def subscribe(self, path: str, on_event: Callable[[Any], None]) -> FakeSubscription:
        if self.fail:
            raise RegistrationError(f"Failed to start file watcher for {path}: no watches left")
        subscription = FakeSubscription(path, on_event)
        self.subscriptions.append(subscription)
        return subscription

    @property
    def active(self) -> list[FakeSubscription]:
        return [s for s in self.subscriptions if not s.closed]

    def emit(self, event: Any) -> None:
        """Deliver an event to every open subscription."""
        for subscription in self.active:
            subscription.on_event(event)


class ChangeRecorder:
    """on_change callback that records the event types it receives."""

    def __init__(self) -> None:
        self.events: list[str] = []

    def __call__(self, event: Any) -> None:
        self.events.append(event.type)
