"""Centralized configuration paths and constants for respace.

Single source of truth for file paths and scripting-bridge constants used
across the engine and the CLI.
"""

import os
from pathlib import Path
from typing import Final


# Reserved window id marking an artifact as application-level
APPLICATION_SENTINEL: Final[str] = "0"

# macOS launch and automation commands
OPEN_COMMAND: Final[str] = "open"
OSASCRIPT_COMMAND: Final[str] = "osascript"
APP_BUNDLE_SUFFIX: Final[str] = ".app"


def _config_dir() -> Path:
    override = os.environ.get("RESPACE_CONFIG_DIR")
    if override:
        return Path(override).expanduser()
    return Path.home() / ".config" / "respace-raycast"


class ConfigPaths:
    """Centralized configuration paths.

    All paths are computed once at import time based on user's home directory
    (or RESPACE_CONFIG_DIR when set). Use these constants instead of
    constructing paths manually.

    Example:
        from .constants import ConfigPaths

        workspaces = load_workspaces(ConfigPaths.WORKSPACES_FILE)
    """

    # Base directories
    HOME: Final[Path] = Path.home()
    CONFIG_DIR: Final[Path] = _config_dir()
    LOCAL_STATE_DIR: Final[Path] = HOME / ".local" / "state" / "respace"

    # Workspace definitions (owned by the editing UI, read-only here)
    WORKSPACES_FILE: Final[Path] = CONFIG_DIR / "workspaces.json"

    # Engine tuning
    ENGINE_CONFIG_FILE: Final[Path] = CONFIG_DIR / "engine.json"

    # Tracked artifacts of open workspaces
    SESSIONS_FILE: Final[Path] = LOCAL_STATE_DIR / "sessions.json"

    @classmethod
    def for_config_dir(cls, config_dir: Path) -> dict[str, Path]:
        """Resolve the per-directory file paths for an explicit config dir.

        Args:
            config_dir: Directory to use instead of CONFIG_DIR

        Returns:
            Mapping with "workspaces" and "engine" file paths
        """
        return {
            "workspaces": config_dir / "workspaces.json",
            "engine": config_dir / "engine.json",
        }
