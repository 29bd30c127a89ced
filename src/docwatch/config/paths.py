"""Platform-aware configuration path resolution.

Handles config file locations for:
- Windows: %PROGRAMDATA% (system), %APPDATA% (user)
- Unix: /etc/ (system), $XDG_CONFIG_HOME, ~/.config/docwatch/ or ~/.docwatch/ (user)
- Project: <root>/.docwatch/
"""

from __future__ import annotations

import os
import sys
from pathlib import Path

CONFIG_FILENAME = "config.yaml"
APP_NAME = "docwatch"
DOT_DIR = ".docwatch"


def get_system_config_path() -> Path | None:
    """Get system-level config path (the file may not exist)."""
    if sys.platform == "win32":
        program_data = os.environ.get("PROGRAMDATA")
        if program_data:
            return Path(program_data) / APP_NAME / CONFIG_FILENAME
        return None
    return Path("/etc") / APP_NAME / CONFIG_FILENAME


def get_user_config_path() -> Path | None:
    """Get user-level config path (the file may not exist)."""
    if sys.platform == "win32":
        app_data = os.environ.get("APPDATA")
        if app_data:
            return Path(app_data) / APP_NAME / CONFIG_FILENAME
        return None

    xdg_config = os.environ.get("XDG_CONFIG_HOME")
    if xdg_config:
        return Path(xdg_config) / APP_NAME / CONFIG_FILENAME

    home = Path.home()
    if (home / ".config").exists():
        return home / ".config" / APP_NAME / CONFIG_FILENAME
    return home / DOT_DIR / CONFIG_FILENAME


def get_project_config_path(root: str | os.PathLike[str]) -> Path:
    """Get project-level config path under root."""
    return Path(root) / DOT_DIR / CONFIG_FILENAME


def get_config_paths(root: str | os.PathLike[str] | None = None) -> list[Path]:
    """Get all config paths, lowest priority first.

    Args:
        root: Optional project directory for project-level config.

    Returns:
        Paths in merge order: system, user, project.
    """
    candidates = [get_system_config_path(), get_user_config_path()]
    if root:
        candidates.append(get_project_config_path(root))
    return [p for p in candidates if p is not None]
