"""Configuration file loading and caching.

Handles:
- YAML file parsing
- Environment variable overrides
- Config caching
- Conversion from dict to typed Config dataclass
"""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Any

import yaml

from docwatch.config.merge import merge_configs
from docwatch.config.paths import get_config_paths
from docwatch.config.schema import Config, LoggingConfig, WatchConfig

# Module logger (may not be configured yet at import time)
_log = logging.getLogger("docwatch.config")

_cached_config: Config | None = None

# Environment variable -> (section, key, converter)
_ENV_OVERRIDES: dict[str, tuple[str, str, type]] = {
    "DOCWATCH_LOG": ("logging", "file", str),
    "DOCWATCH_DEBOUNCE_MS": ("watch", "debounce_ms", int),
    "DOCWATCH_POLL_INTERVAL_MS": ("watch", "poll_interval_ms", int),
}


def load_yaml_file(path: Path) -> dict[str, Any]:
    """Load a YAML file, returning empty dict if not found or invalid."""
    if not path.exists():
        return {}

    try:
        with open(path, encoding="utf-8") as f:
            data = yaml.safe_load(f)
            return data if isinstance(data, dict) else {}
    except yaml.YAMLError as e:
        _log.warning("Invalid YAML in %s: %s", path, e)
        return {}
    except PermissionError:
        _log.debug("Permission denied reading %s", path)
        return {}
    except OSError as e:
        _log.warning("Error reading %s: %s", path, e)
        return {}


def env_overrides() -> dict[str, Any]:
    """Build config dict from DOCWATCH_* environment variables."""
    overrides: dict[str, Any] = {}
    for var, (section, key, convert) in _ENV_OVERRIDES.items():
        raw = os.environ.get(var)
        if not raw:
            continue
        try:
            value = convert(raw)
        except ValueError:
            _log.warning("Ignoring %s=%r: not a valid %s", var, raw, convert.__name__)
            continue
        overrides.setdefault(section, {})[key] = value
    return overrides


def _as_int(value: Any, default: int, minimum: int = 1) -> int:
    try:
        return max(minimum, int(value))
    except (TypeError, ValueError):
        return default


def dict_to_config(data: dict[str, Any]) -> Config:
    """Convert merged dict to typed Config dataclass."""
    defaults = WatchConfig()
    watch_data = data.get("watch") or {}
    watch = WatchConfig(
        debounce_ms=_as_int(watch_data.get("debounce_ms"), defaults.debounce_ms),
        poll_interval_ms=_as_int(watch_data.get("poll_interval_ms"), defaults.poll_interval_ms),
        poll_only_fallback=bool(watch_data.get("poll_only_fallback", defaults.poll_only_fallback)),
        native_events=bool(watch_data.get("native_events", defaults.native_events)),
    )

    log_data = data.get("logging") or {}
    verbose = log_data.get("verbose")
    logging_config = LoggingConfig(
        level=log_data.get("level"),
        verbose=_as_int(verbose, 2, minimum=0) if verbose is not None else None,
        file=log_data.get("file"),
    )

    known_keys = {"watch", "logging"}
    extra = {k: v for k, v in data.items() if k not in known_keys}

    return Config(watch=watch, logging=logging_config, extra=extra)


def load_config(root: str | os.PathLike[str] | None = None, reload: bool = False) -> Config:
    """Load and merge config from all sources.

    Priority order (highest to lowest):
    1. Environment variables
    2. Project config (<root>/.docwatch/config.yaml)
    3. User config
    4. System config

    Args:
        root: Project directory for project-level config.
        reload: Force reload even if cached.

    Returns:
        Merged Config object.
    """
    global _cached_config

    if _cached_config is not None and not reload and root is None:
        return _cached_config

    layers: list[dict[str, Any]] = []
    for path in get_config_paths(root):
        data = load_yaml_file(path)
        if data:
            _log.debug("Loaded config from %s", path)
            layers.append(data)

    env_config = env_overrides()
    if env_config:
        layers.append(env_config)

    config = dict_to_config(merge_configs(*layers))

    # Cache only global config (no project root)
    if root is None:
        _cached_config = config
    return config


def get_config() -> Config:
    """Get the cached global config, loading it on first use."""
    if _cached_config is None:
        return load_config()
    return _cached_config


def reset_config() -> None:
    """Reset cached config. Useful for testing."""
    global _cached_config
    _cached_config = None
