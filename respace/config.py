"""Configuration loader for respace.

Handles loading engine tuning (timeouts and settle delays) and the read-only
workspace definition document from JSON files.
"""

import json
import logging
from pathlib import Path
from typing import List, Optional

from pydantic import BaseModel, Field, ValidationError

from .errors import WorkspaceNotFoundError
from .models import Workspace

logger = logging.getLogger(__name__)


class LaunchTimings(BaseModel):
    """Time bounds and settle delays, in seconds.

    These are tunable; none of them is load-bearing for correctness. Probe
    timeouts bound how long one unresponsive application can stall a phase.
    """

    liveness_timeout: float = Field(default=1.0, ge=0)
    window_ids_timeout: float = Field(default=2.0, ge=0)
    title_timeout: float = Field(default=1.0, ge=0)
    command_timeout: float = Field(default=10.0, ge=0)
    close_timeout: float = Field(default=2.0, ge=0)
    poll_interval: float = Field(default=0.1, gt=0)
    appear_timeout: float = Field(default=1.5, ge=0)
    settle_delay: float = Field(default=0.3, ge=0)
    bucket_settle_delay: float = Field(default=1.5, ge=0)


class EngineConfig(BaseModel):
    """Engine configuration."""

    timings: LaunchTimings = Field(default_factory=LaunchTimings)
    terminal_app: str = Field(default="Terminal", min_length=1)
    file_manager_app: str = Field(default="Finder", min_length=1)


def load_engine_config(config_file: Path) -> EngineConfig:
    """Load engine configuration from JSON file.

    Args:
        config_file: Path to engine.json

    Returns:
        EngineConfig; defaults when the file is missing or invalid
    """
    if not config_file.exists():
        logger.info(f"Engine config file does not exist: {config_file}, using defaults")
        return EngineConfig()

    try:
        with open(config_file) as f:
            data = json.load(f)

        config = EngineConfig.model_validate(data)
        logger.debug(f"Loaded engine config from {config_file}: {config.timings}")
        return config

    except (json.JSONDecodeError, ValidationError) as e:
        logger.error(f"Failed to load engine config from {config_file}: {e}")
        logger.warning("Using default engine configuration")
        return EngineConfig()


def load_workspaces(config_file: Path) -> List[Workspace]:
    """Load workspace definitions from the workspace document.

    The document is owned by the editing UI; it is only read here. Invalid
    workspace entries are skipped.

    Args:
        config_file: Path to workspaces.json ({"workspaces": [...]})

    Returns:
        List of workspaces in document order
    """
    if not config_file.exists():
        logger.warning(f"Workspace file does not exist: {config_file}")
        return []

    try:
        with open(config_file) as f:
            data = json.load(f)
    except json.JSONDecodeError as e:
        logger.error(f"Failed to parse workspace file {config_file}: {e}")
        return []

    workspaces: List[Workspace] = []
    for entry in data.get("workspaces", []):
        try:
            workspaces.append(Workspace.model_validate(entry))
        except ValidationError as e:
            logger.error(f"Skipping invalid workspace {entry.get('name', '?')!r}: {e}")
            continue

    logger.info(f"Loaded {len(workspaces)} workspace(s) from {config_file}")
    return workspaces


def find_workspace(workspaces: List[Workspace], name_or_id: str) -> Workspace:
    """Find a workspace by id, exact name, or case-insensitive name.

    Raises:
        WorkspaceNotFoundError: If nothing matches
    """
    match: Optional[Workspace] = next(
        (w for w in workspaces if w.id == name_or_id or w.name == name_or_id),
        None,
    )
    if match is None:
        lowered = name_or_id.lower()
        match = next((w for w in workspaces if w.name.lower() == lowered), None)
    if match is None:
        raise WorkspaceNotFoundError(name_or_id)
    return match
