"""Terminal command launch strategy.

The command text is handed to the terminal as a script argument, never
interpolated into script source. Terminal sessions are not tracked.
"""

import logging
from typing import List

from ...errors import LaunchCommandError, ScriptBridgeError
from ...models import ItemType, TrackedArtifact, WorkspaceItem
from .. import scripts
from .base import CloseOutcome, LaunchStrategy

logger = logging.getLogger(__name__)


class TerminalStrategy(LaunchStrategy):
    """Run a shell command in a new terminal window."""

    item_types = (ItemType.TERMINAL,)

    async def launch(self, item: WorkspaceItem) -> List[TrackedArtifact]:
        try:
            await self.bridge.run(
                scripts.RUN_IN_TERMINAL,
                self.config.terminal_app,
                item.path,
                timeout=self.timings.command_timeout,
            )
        except ScriptBridgeError as e:
            raise LaunchCommandError(item.name, e.message)

        logger.debug(f"Started terminal command for {item.name} in {self.config.terminal_app}")
        return []

    async def close(self, artifacts: List[TrackedArtifact]) -> CloseOutcome:
        return CloseOutcome()

    async def verify_windows(self, artifacts: List[TrackedArtifact]) -> List[TrackedArtifact]:
        return []
