"""
Workspace item and workspace models.

Items are the caller-owned launch targets. The JSON shape matches the
workspace document written by the editing UI (camelCase timestamps,
millisecond delays).
"""

from __future__ import annotations

import uuid
from datetime import datetime
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class ItemType(str, Enum):
    """Closed set of launchable item types."""

    APP = "app"
    FOLDER = "folder"
    FILE = "file"
    URL = "url"
    TERMINAL = "terminal"

    @property
    def is_application(self) -> bool:
        """True for the only type whose launch artifacts are ambiguous."""
        return self is ItemType.APP


class WorkspaceItem(BaseModel):
    """A single user-declared launch target.

    Attributes:
        id: Stable item identifier (generated when absent)
        type: Item type, selects the launch strategy
        name: Display label
        path: App identifier, filesystem path, URL, or shell command text
        delay: Milliseconds to wait before this item becomes eligible to start
    """

    model_config = ConfigDict(frozen=True)

    id: str = Field(default_factory=lambda: str(uuid.uuid4()), min_length=1)
    type: ItemType = Field(..., description="Item type")
    name: str = Field(..., description="Display label")
    path: str = Field(..., min_length=1, description="Type-dependent launch target")
    delay: int = Field(default=0, ge=0, description="Pre-launch delay in milliseconds")

    @field_validator("delay", mode="before")
    @classmethod
    def coerce_missing_delay(cls, v):
        """Treat null delays from the workspace document as zero."""
        return 0 if v is None else v

    @property
    def delay_seconds(self) -> float:
        return self.delay / 1000.0


class Workspace(BaseModel):
    """A named, ordered group of items."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    id: str = Field(default_factory=lambda: str(uuid.uuid4()), min_length=1)
    name: str = Field(..., min_length=1)
    icon: Optional[str] = None
    description: Optional[str] = None
    items: List[WorkspaceItem] = Field(default_factory=list)
    created_at: Optional[datetime] = Field(default=None, alias="createdAt")
    updated_at: Optional[datetime] = Field(default=None, alias="updatedAt")
