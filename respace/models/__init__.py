"""
Pydantic models for respace.

- Workspace items and the workspace document (item.py)
- Launch tracking: BeforeLaunchState, TrackedArtifact, lifecycle states (artifact.py)
- Batch reports for launch and close (report.py)
"""

from .item import ItemType, WorkspaceItem, Workspace
from .artifact import (
    ArtifactState,
    BeforeLaunchState,
    TrackedArtifact,
    TrackingMode,
)
from .report import CloseReport, LaunchReport

__all__ = [
    "ItemType",
    "WorkspaceItem",
    "Workspace",
    "ArtifactState",
    "BeforeLaunchState",
    "TrackedArtifact",
    "TrackingMode",
    "CloseReport",
    "LaunchReport",
]
