"""Apply net actions to the watched file's state.

Both detection channels funnel into Reconciler.apply(). Content is compared
byte-for-byte against what was last delivered, so the same real change seen
by both channels (or a touch that leaves content alone) reaches the caller
at most once.
"""

from __future__ import annotations

import asyncio
import inspect
from collections.abc import Awaitable, Callable

from docwatch.errors import FileAccessError
from docwatch.logging import VERBOSE, get_logger
from docwatch.watching.events import ChangeEvent, FileIdentity, NetAction
from docwatch.watching.providers import ContentReader, MetadataProvider

log = get_logger("watching.reconciler")

ChangeCallback = Callable[[ChangeEvent], "Awaitable[None] | None"]


class Reconciler:
    """Executes net actions for one watch session.

    Actions are serialized with a lock: a read/compare/store sequence from
    one channel never interleaves with another's.
    """

    def __init__(
        self,
        path: str,
        identity: FileIdentity,
        metadata: MetadataProvider,
        reader: ContentReader,
        on_change: ChangeCallback,
    ) -> None:
        self._path = path
        self._identity = identity
        self._metadata = metadata
        self._reader = reader
        self._on_change = on_change
        self._lock = asyncio.Lock()
        self._last_content: bytes | None = None
        self._file_present = True
        self._delivered = 0
        self._suppressed = 0

    @property
    def file_present(self) -> bool:
        return self._file_present

    @property
    def last_content(self) -> bytes | None:
        """Content most recently delivered (or seeded at start)."""
        return self._last_content

    @property
    def delivered(self) -> int:
        """Number of callbacks invoked."""
        return self._delivered

    @property
    def suppressed(self) -> int:
        """Number of actions that produced no callback."""
        return self._suppressed

    def seed(self, content: bytes | None) -> None:
        """Record the content the caller already has, before watching starts."""
        self._last_content = content

    async def apply(self, action: NetAction) -> ChangeEvent | None:
        """Apply one net action.

        Returns:
            The event delivered to the callback, or None if suppressed.
        """
        async with self._lock:
            if action is NetAction.DELETED:
                event = self._handle_deleted()
            else:
                event = await self._handle_modified()

            if event is None:
                self._suppressed += 1
                return None

            self._delivered += 1
            await self._notify(event)
            return event

    def _handle_deleted(self) -> ChangeEvent | None:
        self._identity.clear()
        if not self._file_present:
            log.debug("Deletion of %s already reported", self._path)
            return None
        self._file_present = False
        self._last_content = None
        log.info("Watched file deleted: %s", self._path)
        return ChangeEvent("deleted")

    async def _handle_modified(self) -> ChangeEvent | None:
        try:
            st = await self._metadata.stat(self._path)
            content = await self._reader.read(self._path)
        except FileAccessError as e:
            # A real deletion is picked up by the poll loop
            log.debug("Reload of %s failed, ignoring: %s", self._path, e)
            return None

        self._identity.mtime = st.mtime
        if self._file_present and content == self._last_content:
            log.log(VERBOSE, "Content of %s unchanged (mtime %s), suppressed", self._path, st.mtime)
            return None

        self._file_present = True
        self._last_content = content
        log.info("Watched file modified: %s (%d bytes)", self._path, len(content))
        return ChangeEvent("modified")

    async def _notify(self, event: ChangeEvent) -> None:
        try:
            result = self._on_change(event)
            if inspect.isawaitable(result):
                await result
        except Exception as e:
            log.error("Error in file change callback: %s", e)
