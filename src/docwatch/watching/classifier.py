"""Map raw notifications onto EventKind values.

Notifications arrive either as watchdog ``FileSystemEvent`` objects or, from
simpler providers, as plain event-type strings. Anything whose kind cannot be
determined is treated as a modification so that a potential change is never
silently dropped.
"""

from __future__ import annotations

import os
from typing import Any

from watchdog.events import (
    EVENT_TYPE_CLOSED,
    EVENT_TYPE_CREATED,
    EVENT_TYPE_DELETED,
    EVENT_TYPE_MODIFIED,
    EVENT_TYPE_MOVED,
    FileSystemEvent,
)

from docwatch.logging import get_logger
from docwatch.watching.events import EventKind

log = get_logger("watching.classifier")

# Event types that never imply a content change (access only)
IGNORED_EVENT_TYPES = frozenset({"opened", "closed_no_write"})

_KIND_BY_TYPE = {
    EVENT_TYPE_CREATED: EventKind.CREATED,
    EVENT_TYPE_MODIFIED: EventKind.MODIFIED,
    EVENT_TYPE_CLOSED: EventKind.MODIFIED,  # close after write
    EVENT_TYPE_DELETED: EventKind.DELETED,
}


def normalize_path(path: str | bytes | os.PathLike[Any]) -> str:
    """Normalize a path for comparison against the watched path.

    Symlinks are resolved: the native channel watches the directory of the
    real file, and some backends (FSEvents) only ever report real paths.
    """
    return os.path.normcase(os.path.realpath(os.fsdecode(path)))


def concerns_path(event: FileSystemEvent, watched: str) -> bool:
    """Check whether a watchdog event touches the watched file.

    The native channel watches the parent directory, so sibling files and
    directory events have to be filtered out here.
    """
    if event.is_directory:
        return False
    target = normalize_path(watched)
    if normalize_path(event.src_path) == target:
        return True
    dest = getattr(event, "dest_path", "")
    return bool(dest) and normalize_path(dest) == target


def classify(event: FileSystemEvent | EventKind | str, watched: str | None = None) -> EventKind | None:
    """Classify a raw notification.

    Args:
        event: watchdog event, EventKind, or event-type string.
        watched: Watched path, needed to resolve the direction of moves.

    Returns:
        CREATED, MODIFIED or DELETED. ``None`` for access-only notifications
        (opened, closed without write) which carry no change at all.
    """
    if isinstance(event, EventKind):
        kind = event
    elif isinstance(event, str):
        kind = _classify_type(event)
    else:
        kind = _classify_fs_event(event, watched)

    if kind is None:
        return None
    if kind is EventKind.UNKNOWN:
        log.warning("Unknown event kind %r for %s, treating as modified", _describe(event), watched)
        return EventKind.MODIFIED
    return kind


def _classify_type(event_type: str) -> EventKind | None:
    if event_type in IGNORED_EVENT_TYPES:
        return None
    try:
        return _KIND_BY_TYPE.get(event_type) or EventKind(event_type)
    except ValueError:
        return EventKind.UNKNOWN


def _classify_fs_event(event: FileSystemEvent, watched: str | None) -> EventKind | None:
    if event.event_type != EVENT_TYPE_MOVED:
        return _classify_type(event.event_type)

    # Rename onto the watched path is how editors save atomically
    if watched is not None:
        target = normalize_path(watched)
        if event.dest_path and normalize_path(event.dest_path) == target:
            return EventKind.CREATED
        if normalize_path(event.src_path) == target:
            return EventKind.DELETED
    return EventKind.UNKNOWN


def _describe(event: object) -> str:
    return getattr(event, "event_type", None) or str(event)
