"""Configuration schema dataclasses for docwatch.

Defines the structure of configuration at all levels (system, user, project).
All fields have defaults so partial configs merge together.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any


@dataclass
class WatchConfig:
    """File watching configuration.

    Example config.yaml:
        watch:
          debounce_ms: 100
          poll_interval_ms: 5000
          poll_only_fallback: false
          native_events: true
    """

    debounce_ms: int = 100  # Coalescing window for native events
    poll_interval_ms: int = 5000  # Backstop poll interval
    poll_only_fallback: bool = False  # Keep polling if native registration fails
    native_events: bool = True  # Disable to run on polling alone


@dataclass
class LoggingConfig:
    """Logging configuration."""

    level: str | None = None  # DEBUG, INFO, WARNING, ERROR
    verbose: int | None = None  # 0-4, takes precedence over level
    file: str | None = None  # Log file path


@dataclass
class Config:
    """Root configuration object.

    Attributes:
        watch: Watch engine timing and fallback settings.
        logging: Log level and destination.
        extra: Unknown top-level keys, kept for extensions.
    """

    watch: WatchConfig = field(default_factory=WatchConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)
    extra: dict[str, Any] = field(default_factory=dict)
