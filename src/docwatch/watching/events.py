"""Value types shared by the watching components."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Literal


class EventKind(Enum):
    """Classified kind of a single low-level notification."""

    CREATED = "created"
    MODIFIED = "modified"
    DELETED = "deleted"
    UNKNOWN = "unknown"


class NetAction(Enum):
    """Single decided outcome of a batch of events or a poll sample."""

    MODIFIED = "modified"
    DELETED = "deleted"


class WatchState(Enum):
    """Lifecycle state of a watch session."""

    IDLE = "idle"
    STARTING = "starting"
    ACTIVE = "active"
    ERROR = "error"
    STOPPED = "stopped"


@dataclass(slots=True)
class RawEvent:
    """One classified notification waiting in the coalescing window."""

    kind: EventKind
    arrived_at: float


@dataclass(slots=True)
class FileIdentity:
    """Fingerprint of the watched file.

    Only the modification time is tracked; ``None`` means the file is not
    currently known to exist.
    """

    mtime: float | None = None

    @property
    def known(self) -> bool:
        return self.mtime is not None

    def clear(self) -> None:
        self.mtime = None


@dataclass(frozen=True, slots=True)
class FileStat:
    """Metadata returned by a MetadataProvider."""

    mtime: float
    size: int
    is_file: bool = True


@dataclass(frozen=True, slots=True)
class ChangeEvent:
    """Payload passed to the on_change callback."""

    type: Literal["modified", "deleted"]

    def to_dict(self) -> dict[str, str]:
        return {"type": self.type}


@dataclass(frozen=True, slots=True)
class HealthStatus:
    """Externally visible state of a FileWatcher.

    Attributes:
        is_watching: True while a session is active (channels running).
        error: Human-readable failure message, or None.
        path: Watched path, or None when idle.
        state: Current WatchState.
        file_present: False once a deletion has been reconciled.
    """

    is_watching: bool = False
    error: str | None = None
    path: str | None = None
    state: WatchState = WatchState.IDLE
    file_present: bool = False

    def to_dict(self) -> dict[str, object]:
        """Serialize to dictionary for display layers."""
        return {
            "is_watching": self.is_watching,
            "error": self.error,
            "path": self.path,
            "state": self.state.value,
            "file_present": self.file_present,
        }
