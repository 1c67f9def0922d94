"""Launch strategy interface.

One strategy per item type (file and folder share one). Each strategy knows
how to start an item and, where possible, how to verify and close what that
start produced.
"""

import asyncio
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import List, Tuple

from ...config import EngineConfig
from ...constants import OPEN_COMMAND
from ...errors import LaunchCommandError
from ...models import ItemType, TrackedArtifact, WorkspaceItem
from ..script_bridge import ScriptBridge, run_command

logger = logging.getLogger(__name__)


@dataclass
class CloseOutcome:
    """Result of closing one strategy's share of a workspace."""

    closed_ids: List[str] = field(default_factory=list)
    errors: List[str] = field(default_factory=list)

    @property
    def closed(self) -> int:
        return len(self.closed_ids)

    def merge(self, other: "CloseOutcome") -> None:
        self.closed_ids.extend(other.closed_ids)
        self.errors.extend(other.errors)


class LaunchStrategy(ABC):
    """Capability interface: launch, close, verify_windows."""

    item_types: Tuple[ItemType, ...] = ()
    # Advisory strategies close best-effort; their results never count
    advisory: bool = False

    def __init__(self, bridge: ScriptBridge, config: EngineConfig):
        self.bridge = bridge
        self.config = config
        self.timings = config.timings

    @abstractmethod
    async def launch(self, item: WorkspaceItem) -> List[TrackedArtifact]:
        """Start the item and return the artifacts it produced.

        Raises:
            LaunchCommandError: If the OS refused the launch
        """

    @abstractmethod
    async def close(self, artifacts: List[TrackedArtifact]) -> CloseOutcome:
        """Close verified-alive artifacts owned by this strategy."""

    @abstractmethod
    async def verify_windows(self, artifacts: List[TrackedArtifact]) -> List[TrackedArtifact]:
        """Return the subset of artifacts that still exist."""

    async def _open(self, item: WorkspaceItem, *args: str) -> None:
        """Run `open` with the given arguments for an item.

        Raises:
            LaunchCommandError: On missing binary, timeout, or non-zero exit
        """
        cmd = [OPEN_COMMAND, *args]
        try:
            returncode, _, stderr = await run_command(cmd, self.timings.command_timeout)
        except asyncio.TimeoutError:
            raise LaunchCommandError(
                item.name, f"launch command timed out after {self.timings.command_timeout}s"
            )
        except OSError as e:
            raise LaunchCommandError(item.name, str(e))

        if returncode != 0:
            raise LaunchCommandError(item.name, stderr or f"exit code {returncode}")

        logger.debug(f"Launch command issued for {item.name} ({item.type.value})")
