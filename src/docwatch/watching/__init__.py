"""File watching for docwatch.

Keeps a single file's on-disk state in sync with the caller by combining
native notifications (coalesced over a short window) with a periodic poll,
and delivering one de-duplicated ChangeEvent per real change.
"""

from docwatch.watching.events import (
    ChangeEvent,
    EventKind,
    FileIdentity,
    FileStat,
    HealthStatus,
    NetAction,
    RawEvent,
    WatchState,
)
from docwatch.watching.session import FileWatcher, WatchSession

__all__ = [
    "ChangeEvent",
    "EventKind",
    "FileIdentity",
    "FileStat",
    "FileWatcher",
    "HealthStatus",
    "NetAction",
    "RawEvent",
    "WatchSession",
    "WatchState",
]
