"""Watch session lifecycle and the FileWatcher engine.

A WatchSession binds one path to one callback and owns every resource
needed to watch it: the native subscription, the coalescer timer, the poll
loop and in-flight reconciliation tasks. FileWatcher holds at most one
session and always stops the previous one before starting another.

Example:
    async def on_change(event: ChangeEvent) -> None:
        if event.type == "deleted":
            await watcher.stop_watching()
        else:
            render(await watcher.reload())

    watcher = FileWatcher()
    status = await watcher.start_watching("README.md", on_change)
    if not status.is_watching:
        print(status.error)
"""

from __future__ import annotations

import asyncio
import os
from typing import Any

from docwatch.config.schema import WatchConfig
from docwatch.errors import CapabilityError, FileAccessError, RegistrationError
from docwatch.logging import get_logger
from docwatch.watching.classifier import classify
from docwatch.watching.clock import Clock, LoopClock
from docwatch.watching.coalescer import Coalescer
from docwatch.watching.events import FileIdentity, HealthStatus, NetAction, WatchState
from docwatch.watching.poller import PollLoop
from docwatch.watching.providers import (
    ContentReader,
    LocalFileSystem,
    MetadataProvider,
    NotificationProvider,
    Subscription,
    WatchdogNotifier,
)
from docwatch.watching.reconciler import ChangeCallback, Reconciler

log = get_logger("watching")


class WatchSession:
    """One watched path, from start until stop.

    States: STARTING -> ACTIVE | ERROR, ACTIVE -> STOPPED. A stopped session
    is never restarted; start a new one instead.
    """

    def __init__(
        self,
        path: str,
        on_change: ChangeCallback,
        *,
        metadata: MetadataProvider,
        reader: ContentReader,
        notifier: NotificationProvider | None,
        clock: Clock,
        config: WatchConfig,
    ) -> None:
        self.path = path
        self.identity = FileIdentity()
        self._metadata = metadata
        self._reader = reader
        self._notifier = notifier
        self._config = config
        self._state = WatchState.IDLE
        self._error: str | None = None
        self._subscription: Subscription | None = None
        self._tasks: set[asyncio.Task[Any]] = set()

        self.reconciler = Reconciler(path, self.identity, metadata, reader, on_change)
        self.coalescer = Coalescer(clock, self._dispatch, window=config.debounce_ms / 1000.0)
        self.poller = PollLoop(
            path,
            self.identity,
            metadata,
            clock,
            self._dispatch,
            interval=config.poll_interval_ms / 1000.0,
        )

    @property
    def state(self) -> WatchState:
        return self._state

    @property
    def error(self) -> str | None:
        return self._error

    @property
    def subscribed(self) -> bool:
        return self._subscription is not None

    def status(self) -> HealthStatus:
        watching = self._state is WatchState.ACTIVE
        return HealthStatus(
            is_watching=watching,
            error=self._error,
            path=self.path,
            state=self._state,
            file_present=watching and self.reconciler.file_present,
        )

    async def start(self) -> None:
        """Test capability, seed identity, then start both channels.

        Failures leave the session in ERROR with a message; nothing is raised.
        """
        self._state = WatchState.STARTING
        try:
            await self._check_capability()
        except CapabilityError as e:
            self._fail(str(e))
            return
        if self._state is WatchState.STOPPED:
            return

        if self._notifier is not None and self._config.native_events:
            try:
                subscription = await self._notifier.subscribe(self.path, self._on_native_event)
            except (RegistrationError, OSError) as e:
                if not self._config.poll_only_fallback:
                    self._fail(str(e))
                    return
                self._error = f"Native notifications unavailable, polling only: {e}"
                log.warning("%s", self._error)
            else:
                if self._state is WatchState.STOPPED:
                    # Stopped while registering
                    await subscription.unsubscribe()
                    return
                self._subscription = subscription

        self.poller.start()
        self._state = WatchState.ACTIVE
        log.info("Watching %s", self.path)

    async def _check_capability(self) -> None:
        try:
            st = await self._metadata.stat(self.path)
            if not st.is_file:
                raise CapabilityError(f"Not a file: {self.path}")
            content = await self._reader.read(self.path)
        except FileAccessError as e:
            raise CapabilityError(f"Cannot watch {self.path}: {e}") from e
        self.identity.mtime = st.mtime
        self.reconciler.seed(content)

    def _fail(self, message: str) -> None:
        self._state = WatchState.ERROR
        self._error = message
        log.error("Failed to start file watcher: %s", message)

    async def stop(self) -> None:
        """Cancel timers and tasks, then unsubscribe the native channel once."""
        if self._state is WatchState.STOPPED:
            return
        previous = self._state
        self._state = WatchState.STOPPED

        self.coalescer.cancel()
        self.poller.stop()
        current = asyncio.current_task()
        for task in list(self._tasks):
            if task is not current and not task.done():
                task.cancel()
        self._tasks.clear()

        subscription, self._subscription = self._subscription, None
        if subscription is not None:
            try:
                await subscription.unsubscribe()
            except Exception as e:
                log.error("Failed to stop file watcher: %s", e)

        if previous is not WatchState.ERROR:
            self._error = None
        log.info("Stopped watching %s", self.path)

    def _on_native_event(self, event: Any) -> None:
        if self._state not in (WatchState.STARTING, WatchState.ACTIVE):
            return
        kind = classify(event, self.path)
        if kind is not None:
            self.coalescer.add(kind)

    def _dispatch(self, action: NetAction) -> None:
        if self._state not in (WatchState.STARTING, WatchState.ACTIVE):
            return
        task = asyncio.get_running_loop().create_task(self.reconciler.apply(action))
        self._tasks.add(task)
        task.add_done_callback(self._task_done)

    def _task_done(self, task: asyncio.Task[Any]) -> None:
        self._tasks.discard(task)
        if task.cancelled():
            return
        error = task.exception()
        if error is not None:
            log.error("Reconciliation of %s failed: %s", self.path, error, exc_info=error)


class FileWatcher:
    """Keeps a caller's view of one file in sync with disk.

    Owns at most one WatchSession. Collaborators default to the local
    filesystem, watchdog and the running event loop; tests inject fakes.
    """

    def __init__(
        self,
        config: WatchConfig | None = None,
        *,
        metadata: MetadataProvider | None = None,
        reader: ContentReader | None = None,
        notifier: NotificationProvider | None = None,
        clock: Clock | None = None,
    ) -> None:
        """Initialize the watcher.

        Args:
            config: Timing and fallback settings (defaults to WatchConfig()).
            metadata: Metadata provider (defaults to LocalFileSystem).
            reader: Content reader (defaults to the metadata provider when it
                can also read, else LocalFileSystem).
            notifier: Native notification provider (defaults to WatchdogNotifier).
            clock: Timer source (defaults to the running event loop).
        """
        self._config = config or WatchConfig()
        local = LocalFileSystem()
        self._metadata: MetadataProvider = metadata or local
        if reader is None:
            reader = metadata if hasattr(metadata, "read") else local  # type: ignore[assignment]
        self._reader: ContentReader = reader
        self._notifier: NotificationProvider = notifier or WatchdogNotifier()
        self._clock: Clock = clock or LoopClock()
        self._session: WatchSession | None = None
        self._lock = asyncio.Lock()

    @property
    def config(self) -> WatchConfig:
        return self._config

    @property
    def session(self) -> WatchSession | None:
        """Current (possibly stopped or failed) session."""
        return self._session

    def get_status(self) -> HealthStatus:
        """Return the current health status. No side effects."""
        if self._session is None:
            return HealthStatus()
        return self._session.status()

    def is_watching(self) -> bool:
        return self.get_status().is_watching

    async def start_watching(self, path: str | os.PathLike[str], on_change: ChangeCallback) -> HealthStatus:
        """Start watching path, stopping any previous session first.

        Args:
            path: File to watch; made absolute.
            on_change: Called with ChangeEvent("modified") or
                ChangeEvent("deleted"). May be a coroutine function.

        Returns:
            HealthStatus after the attempt. On failure is_watching is False
            and error holds a human-readable message.
        """
        async with self._lock:
            await self._stop_current()
            session = WatchSession(
                os.path.abspath(os.fspath(path)),
                on_change,
                metadata=self._metadata,
                reader=self._reader,
                notifier=self._notifier,
                clock=self._clock,
                config=self._config,
            )
            self._session = session
            await session.start()
            return session.status()

    async def stop_watching(self) -> None:
        """Stop the current session. Safe to call when nothing is watched."""
        async with self._lock:
            await self._stop_current()

    async def _stop_current(self) -> None:
        if self._session is not None:
            await self._session.stop()

    async def reload(self, path: str | os.PathLike[str] | None = None) -> bytes:
        """Read the file directly, independent of any watch session.

        This is the manual fallback when watching could not start.

        Raises:
            FileAccessError: The file could not be read.
            ValueError: No path given and no session to take it from.
        """
        if path is None:
            if self._session is None:
                raise ValueError("No path to reload")
            target = self._session.path
        else:
            target = os.path.abspath(os.fspath(path))
        return await self._reader.read(target)

    async def __aenter__(self) -> FileWatcher:
        return self

    async def __aexit__(self, *args: object) -> None:
        await self.stop_watching()
