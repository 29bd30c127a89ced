"""Merging of layered config dicts (system -> user -> project -> env)."""

from __future__ import annotations

from typing import Any


def normalize_keys(data: dict[str, Any]) -> dict[str, Any]:
    """Accept dashed YAML keys (``poll-interval-ms``) as their underscore form."""
    result: dict[str, Any] = {}
    for key, value in data.items():
        if isinstance(key, str):
            key = key.replace("-", "_")
        result[key] = normalize_keys(value) if isinstance(value, dict) else value
    return result


def deep_merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """Return base updated with override, recursing into nested dicts.

    Lists and scalars replace the base value. ``None`` never overrides, so a
    layer can leave a key unset by writing it empty.
    """
    result = dict(base)
    for key, value in override.items():
        if value is None:
            continue
        current = result.get(key)
        if isinstance(current, dict) and isinstance(value, dict):
            result[key] = deep_merge(current, value)
        else:
            result[key] = value
    return result


def merge_configs(*configs: dict[str, Any]) -> dict[str, Any]:
    """Merge config layers, later layers winning."""
    result: dict[str, Any] = {}
    for config in configs:
        if config:
            result = deep_merge(result, normalize_keys(config))
    return result
