"""Filesystem collaborators consumed by the watch engine.

The engine only talks to these protocols. Default implementations:

- LocalFileSystem: stat and read through the loop's default executor
- WatchdogNotifier: native notifications via a watchdog Observer on the
  parent directory, filtered to the watched file and marshalled onto the
  event loop
"""

from __future__ import annotations

import asyncio
import os
import stat as stat_module
from collections.abc import Callable
from typing import Any, Protocol

from watchdog.events import FileSystemEvent, FileSystemEventHandler
from watchdog.observers import Observer

from docwatch.errors import FileAccessError, RegistrationError
from docwatch.logging import TRACE, get_logger
from docwatch.watching.classifier import concerns_path
from docwatch.watching.events import FileStat

log = get_logger("watching.providers")


class MetadataProvider(Protocol):
    """Reads file metadata."""

    async def stat(self, path: str) -> FileStat:
        """Return metadata for path.

        Raises:
            FileAccessError: FileNotFound, FilePermissionDenied or other failure.
        """
        ...


class ContentReader(Protocol):
    """Reads file content."""

    async def read(self, path: str) -> bytes:
        """Return the full content of path.

        Raises:
            FileAccessError: FileNotFound, FilePermissionDenied or other failure.
        """
        ...


class Subscription(Protocol):
    """Handle returned by NotificationProvider.subscribe()."""

    async def unsubscribe(self) -> None: ...


class NotificationProvider(Protocol):
    """Delivers native change notifications for a single file.

    Implementations may deliver zero, one or many notifications per real
    change. on_event is always invoked on the event loop thread.
    """

    async def subscribe(self, path: str, on_event: Callable[[Any], None]) -> Subscription:
        """Start delivering notifications for path.

        Raises:
            RegistrationError: The channel could not be registered.
        """
        ...


class LocalFileSystem:
    """MetadataProvider and ContentReader for the local filesystem."""

    async def stat(self, path: str) -> FileStat:
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(None, self._stat_sync, path)

    async def read(self, path: str) -> bytes:
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(None, self._read_sync, path)

    @staticmethod
    def _stat_sync(path: str) -> FileStat:
        try:
            st = os.stat(path)
            # Probe read permission as well; stat alone succeeds on mode 000 files
            if stat_module.S_ISREG(st.st_mode) and not os.access(path, os.R_OK):
                raise PermissionError(13, "Permission denied", path)
        except OSError as e:
            raise FileAccessError.from_os_error(path, e) from e
        return FileStat(
            mtime=st.st_mtime,
            size=st.st_size,
            is_file=stat_module.S_ISREG(st.st_mode),
        )

    @staticmethod
    def _read_sync(path: str) -> bytes:
        try:
            with open(path, "rb") as f:
                return f.read()
        except OSError as e:
            raise FileAccessError.from_os_error(path, e) from e


class _ForwardingHandler(FileSystemEventHandler):
    """Forwards events for one file from the observer thread to the loop."""

    def __init__(
        self,
        path: str,
        loop: asyncio.AbstractEventLoop,
        on_event: Callable[[Any], None],
    ) -> None:
        super().__init__()
        self._path = path
        self._loop = loop
        self._on_event = on_event
        self.active = True

    def on_any_event(self, event: FileSystemEvent) -> None:
        if not self.active or not concerns_path(event, self._path):
            return
        try:
            self._loop.call_soon_threadsafe(self._deliver, event)
        except RuntimeError:
            # Loop already closed; nothing left to notify
            log.debug("Dropped %s event for %s: loop closed", event.event_type, self._path)

    def _deliver(self, event: FileSystemEvent) -> None:
        # Re-checked on the loop: unsubscribe may have run after the event was queued
        if self.active:
            log.log(TRACE, "Native event %s for %s", event.event_type, self._path)
            self._on_event(event)


class WatchdogSubscription:
    """Running watchdog observer for one watched file."""

    def __init__(self, observer: Any, handler: _ForwardingHandler) -> None:
        self._observer = observer
        self._handler = handler
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    async def unsubscribe(self) -> None:
        """Stop the observer. Safe to call more than once."""
        if self._closed:
            return
        self._closed = True
        self._handler.active = False
        loop = asyncio.get_running_loop()
        await loop.run_in_executor(None, self._shutdown)

    def _shutdown(self) -> None:
        self._observer.stop()
        self._observer.join(timeout=2.0)


class WatchdogNotifier:
    """NotificationProvider backed by watchdog.

    Watches the parent directory non-recursively, since atomic saves replace
    the file itself and a watch on the old inode would go silent. For a
    symlink that is the directory of the link's target.
    """

    def __init__(self, observer_factory: Callable[[], Any] = Observer) -> None:
        self._observer_factory = observer_factory

    async def subscribe(self, path: str, on_event: Callable[[Any], None]) -> WatchdogSubscription:
        loop = asyncio.get_running_loop()
        directory = os.path.dirname(os.path.realpath(path)) or os.sep
        handler = _ForwardingHandler(path, loop, on_event)
        observer = self._observer_factory()

        def start() -> None:
            observer.schedule(handler, directory, recursive=False)
            observer.start()

        try:
            await loop.run_in_executor(None, start)
        except Exception as e:
            handler.active = False
            raise RegistrationError(f"Failed to start file watcher for {path}: {e}") from e

        log.debug("Native watch registered on %s for %s", directory, path)
        return WatchdogSubscription(observer, handler)
