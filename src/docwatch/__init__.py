"""docwatch: keep an application's view of one file in sync with disk."""

__version__ = "0.1.0"

from docwatch.config import Config, WatchConfig, get_config, load_config
from docwatch.errors import (
    CapabilityError,
    DocwatchError,
    FileAccessError,
    FileNotFound,
    FilePermissionDenied,
    RegistrationError,
)
from docwatch.watching import (
    ChangeEvent,
    FileWatcher,
    HealthStatus,
    NetAction,
    WatchState,
)

__all__ = [
    # Engine
    "FileWatcher",
    "ChangeEvent",
    "HealthStatus",
    "NetAction",
    "WatchState",
    # Config
    "Config",
    "WatchConfig",
    "load_config",
    "get_config",
    # Errors
    "DocwatchError",
    "FileAccessError",
    "FileNotFound",
    "FilePermissionDenied",
    "CapabilityError",
    "RegistrationError",
]
