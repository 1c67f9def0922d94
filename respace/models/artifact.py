"""
Launch tracking models.

BeforeLaunchState is the ephemeral snapshot taken around an application
launch; TrackedArtifact is the only durable output of a launch and the only
input close/verify ever need.
"""

from __future__ import annotations

import uuid
from datetime import datetime
from enum import Enum
from typing import FrozenSet, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator

from ..constants import APPLICATION_SENTINEL
from .item import ItemType, WorkspaceItem


class TrackingMode(str, Enum):
    """Granularity at which an artifact can be verified and closed."""

    WINDOW = "window"
    APPLICATION = "application"


class ArtifactState(str, Enum):
    """Lifecycle of a tracked artifact.

    created -> tracked -> {verified_alive | verified_dead} -> {closed | already_gone}
    """

    CREATED = "created"
    TRACKED = "tracked"
    VERIFIED_ALIVE = "verified_alive"
    VERIFIED_DEAD = "verified_dead"
    CLOSED = "closed"
    ALREADY_GONE = "already_gone"

    @property
    def is_terminal(self) -> bool:
        return self in (ArtifactState.CLOSED, ArtifactState.ALREADY_GONE)

    def can_transition_to(self, target: "ArtifactState") -> bool:
        return target in _TRANSITIONS[self]


_TRANSITIONS = {
    ArtifactState.CREATED: {ArtifactState.TRACKED},
    ArtifactState.TRACKED: {ArtifactState.VERIFIED_ALIVE, ArtifactState.VERIFIED_DEAD},
    # Re-verification of a live artifact is allowed; verify is idempotent
    ArtifactState.VERIFIED_ALIVE: {
        ArtifactState.VERIFIED_ALIVE,
        ArtifactState.VERIFIED_DEAD,
        ArtifactState.CLOSED,
    },
    ArtifactState.VERIFIED_DEAD: {ArtifactState.ALREADY_GONE},
    ArtifactState.CLOSED: set(),
    ArtifactState.ALREADY_GONE: set(),
}


class BeforeLaunchState(BaseModel):
    """Process/window state of an application item captured before launch.

    window_ids_known is False when the window-id query could not answer;
    window_ids_before is then empty but says nothing about existing windows.
    """

    model_config = ConfigDict(frozen=True)

    item: WorkspaceItem
    was_running: bool
    window_ids_before: FrozenSet[str] = Field(default_factory=frozenset)
    window_ids_known: bool = True
    process_name: str = Field(..., min_length=1)


class TrackedArtifact(BaseModel):
    """An OS-level window or application instance produced by a launch.

    Attributes:
        id: Engine-generated identifier, unrelated to OS identifiers
        system_window_id: Opaque OS window id, or APPLICATION_SENTINEL
        item_id: Originating item id (lookup only)
        process_name: Owning process/application name
        window_title: Best-effort title at launch time
        item_type: Type of the originating item
        tracking_mode: window or application
        launched_at: When the artifact was recorded
        target_path: Filesystem path for file/folder artifacts
    """

    model_config = ConfigDict(frozen=True)

    id: str = Field(default_factory=lambda: str(uuid.uuid4()), min_length=1)
    system_window_id: str = Field(..., min_length=1)
    item_id: str = Field(..., min_length=1)
    process_name: str = Field(..., min_length=1)
    window_title: Optional[str] = None
    item_type: ItemType
    tracking_mode: TrackingMode
    launched_at: datetime = Field(default_factory=datetime.now)
    target_path: Optional[str] = None

    @model_validator(mode="after")
    def check_sentinel(self) -> "TrackedArtifact":
        is_sentinel = self.system_window_id == APPLICATION_SENTINEL
        if self.tracking_mode is TrackingMode.APPLICATION and not is_sentinel:
            raise ValueError(
                f"application-mode artifact must use sentinel window id "
                f"{APPLICATION_SENTINEL!r}, got {self.system_window_id!r}"
            )
        if self.tracking_mode is TrackingMode.WINDOW and is_sentinel:
            raise ValueError("window-mode artifact cannot use the sentinel window id")
        return self

    @property
    def is_application_level(self) -> bool:
        return self.tracking_mode is TrackingMode.APPLICATION
