"""Exception types raised by docwatch collaborators.

Only the providers and the content helpers raise these. The watch engine
catches them at its boundary and reports them through HealthStatus.error,
so callers of FileWatcher never see them escape start_watching().
"""

from __future__ import annotations

import errno


class DocwatchError(Exception):
    """Base class for all docwatch errors."""

    pass


class FileAccessError(DocwatchError):
    """A stat or read of the watched file failed.

    Attributes:
        path: Path that was being accessed.
        message: Human-readable description.
    """

    def __init__(self, path: str, message: str) -> None:
        super().__init__(message)
        self.path = path
        self.message = message

    def __str__(self) -> str:
        return self.message

    @classmethod
    def from_os_error(cls, path: str, exc: OSError) -> FileAccessError:
        """Translate an OSError into the matching FileAccessError subclass."""
        if isinstance(exc, FileNotFoundError) or exc.errno == errno.ENOENT:
            return FileNotFound(path, f"File not found: {path}")
        if isinstance(exc, PermissionError) or exc.errno in (errno.EACCES, errno.EPERM):
            return FilePermissionDenied(path, f"Permission denied: {path}")
        return FileAccessError(path, f"Failed to access {path}: {exc.strerror or exc}")


class FileNotFound(FileAccessError):
    """The file does not exist."""

    pass


class FilePermissionDenied(FileAccessError):
    """The file exists but cannot be stat'ed or read."""

    pass


class CapabilityError(DocwatchError):
    """The watched path could not be stat'ed when a session started."""

    pass


class RegistrationError(DocwatchError):
    """The native notification channel could not be registered."""

    pass
