"""Launch and close batch reports."""

from __future__ import annotations

from typing import Dict, List, Optional

from pydantic import BaseModel, Field

from .artifact import ArtifactState, TrackedArtifact


class LaunchReport(BaseModel):
    """Best-effort outcome of launching one workspace."""

    workspace_name: str
    total: int = Field(default=0, ge=0)
    success_count: int = Field(default=0, ge=0)
    failure_count: int = Field(default=0, ge=0)
    errors: List[str] = Field(default_factory=list)
    artifacts: List[TrackedArtifact] = Field(default_factory=list)

    @property
    def first_error(self) -> Optional[str]:
        """Representative failure message (the first one recorded)."""
        return self.errors[0] if self.errors else None

    @property
    def succeeded(self) -> bool:
        return self.total > 0 and self.failure_count == 0


class CloseReport(BaseModel):
    """Outcome of closing a workspace's tracked artifacts."""

    workspace_name: str
    requested: int = Field(default=0, ge=0)
    alive: int = Field(default=0, ge=0)
    closed_count: int = Field(default=0, ge=0)
    already_gone_count: int = Field(default=0, ge=0)
    errors: List[str] = Field(default_factory=list)
    # Final lifecycle state per artifact id
    states: Dict[str, ArtifactState] = Field(default_factory=dict)

    @property
    def first_error(self) -> Optional[str]:
        return self.errors[0] if self.errors else None

    @property
    def succeeded(self) -> bool:
        return not self.errors

    @property
    def still_open_ids(self) -> List[str]:
        """Artifacts that outlived the close (verified alive, not closed)."""
        return [artifact_id for artifact_id, state in self.states.items() if not state.is_terminal]
