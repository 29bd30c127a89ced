"""Configuration management for docwatch.

Provides hierarchical YAML-based configuration with:
- System-level config (/etc/docwatch/ or %PROGRAMDATA%)
- User-level config (~/.config/docwatch/, ~/.docwatch/ or %APPDATA%)
- Project-level config (<root>/.docwatch/)
- Environment variable overrides (highest priority)

Example usage:
    from docwatch.config import load_config

    config = load_config(root="/path/to/project")
    print(config.watch.poll_interval_ms)
"""

from docwatch.config.loader import (
    get_config,
    load_config,
    reset_config,
)
from docwatch.config.paths import (
    get_config_paths,
    get_project_config_path,
    get_system_config_path,
    get_user_config_path,
)
from docwatch.config.schema import (
    Config,
    LoggingConfig,
    WatchConfig,
)

__all__ = [
    "Config",
    "load_config",
    "get_config",
    "reset_config",
    "WatchConfig",
    "LoggingConfig",
    "get_config_paths",
    "get_system_config_path",
    "get_user_config_path",
    "get_project_config_path",
]
