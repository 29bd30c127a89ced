"""Trailing-debounce coalescing of classified events.

A burst of notifications (editors commonly emit several per save, and
atomic saves show up as delete followed by create) is buffered until the
channel has been quiet for the window, then resolved to one NetAction.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable

from docwatch.logging import TRACE, get_logger
from docwatch.watching.clock import Clock, TimerHandle
from docwatch.watching.events import EventKind, NetAction, RawEvent

log = get_logger("watching.coalescer")

# Default coalescing window in seconds
DEFAULT_WINDOW = 0.1


def resolve_net_action(events: Iterable[RawEvent]) -> NetAction | None:
    """Resolve buffered events, in arrival order, to one net action.

    A delete only wins when it is not followed by a re-creation. Plain
    modifications, plain creations and delete-then-recreate bursts all
    resolve to MODIFIED.

    Returns:
        The net action, or None for an empty buffer.
    """
    saw_any = False
    saw_delete = False
    recreated_after_delete = False

    for event in events:
        saw_any = True
        if event.kind is EventKind.DELETED:
            saw_delete = True
            recreated_after_delete = False
        elif event.kind is EventKind.CREATED and saw_delete:
            recreated_after_delete = True

    if not saw_any:
        return None
    if saw_delete and not recreated_after_delete:
        return NetAction.DELETED
    return NetAction.MODIFIED


class Coalescer:
    """Buffers events and emits one NetAction after a quiet window.

    Every new event re-arms the timer, so a sustained burst produces a
    single flush once it stops.
    """

    def __init__(
        self,
        clock: Clock,
        on_action: Callable[[NetAction], None],
        window: float = DEFAULT_WINDOW,
    ) -> None:
        """Initialize the coalescer.

        Args:
            clock: Timer source.
            on_action: Called with the resolved action on each flush.
            window: Quiet period in seconds before a flush.
        """
        self._clock = clock
        self._on_action = on_action
        self._window = window
        self._queue: list[RawEvent] = []
        self._timer: TimerHandle | None = None
        self._closed = False

    @property
    def window(self) -> float:
        return self._window

    @property
    def pending(self) -> int:
        """Number of events waiting for the next flush."""
        return len(self._queue)

    def add(self, kind: EventKind) -> None:
        """Buffer an event and restart the quiet window."""
        if self._closed:
            return
        self._queue.append(RawEvent(kind=kind, arrived_at=self._clock.now()))
        if self._timer is not None:
            self._timer.cancel()
        self._timer = self._clock.call_later(self._window, self.flush)
        log.log(TRACE, "Buffered %s (%d pending)", kind.value, len(self._queue))

    def flush(self) -> NetAction | None:
        """Resolve and clear the buffer now.

        The queue is swapped out before anything else runs, so an event
        delivered while the action is being handled starts the next window.
        """
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None
        events, self._queue = self._queue, []
        if self._closed:
            return None

        action = resolve_net_action(events)
        if action is None:
            return None

        log.debug("Flushed %d event(s) -> %s", len(events), action.value)
        self._on_action(action)
        return action

    def cancel(self) -> None:
        """Drop the pending timer and buffered events. Further adds are ignored."""
        self._closed = True
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None
        self._queue = []
