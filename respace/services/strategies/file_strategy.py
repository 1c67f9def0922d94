"""File and folder launch strategy.

Files and folders open with their default handler. The resulting artifact
is owned by the file manager and closing it is advisory: matching file
manager windows are closed on a best-effort basis and failures are never
reported.
"""

import asyncio
import logging
from pathlib import Path
from typing import List

from ...constants import APPLICATION_SENTINEL
from ...errors import ErrorCode, LaunchCommandError, ScriptBridgeError
from ...models import ItemType, TrackedArtifact, TrackingMode, WorkspaceItem
from .. import scripts
from .base import CloseOutcome, LaunchStrategy

logger = logging.getLogger(__name__)


class FileStrategy(LaunchStrategy):
    """Open files and folders with the default handler."""

    item_types = (ItemType.FILE, ItemType.FOLDER)
    advisory = True

    async def launch(self, item: WorkspaceItem) -> List[TrackedArtifact]:
        path = Path(item.path).expanduser()
        if not path.exists():
            raise LaunchCommandError(
                item.name,
                f"Path does not exist: {item.path}",
                code=ErrorCode.PATH_NOT_FOUND,
            )

        await self._open(item, str(path))

        return [
            TrackedArtifact(
                system_window_id=APPLICATION_SENTINEL,
                item_id=item.id,
                process_name=self.config.file_manager_app,
                item_type=item.type,
                tracking_mode=TrackingMode.APPLICATION,
                target_path=str(path),
            )
        ]

    async def verify_windows(self, artifacts: List[TrackedArtifact]) -> List[TrackedArtifact]:
        checks = await asyncio.gather(*(self._has_open_window(a) for a in artifacts))
        return [artifact for artifact, is_open in zip(artifacts, checks) if is_open]

    async def _has_open_window(self, artifact: TrackedArtifact) -> bool:
        if not artifact.target_path:
            return False
        try:
            output = await self.bridge.run(
                scripts.COUNT_PATH_WINDOWS,
                artifact.process_name,
                artifact.target_path,
                timeout=self.timings.window_ids_timeout,
            )
        except ScriptBridgeError as e:
            # Unknown is not absent
            logger.debug(f"Could not verify {artifact.target_path}: {e.message}")
            return True

        try:
            return int(output or 0) > 0
        except ValueError:
            return False

    async def close(self, artifacts: List[TrackedArtifact]) -> CloseOutcome:
        outcome = CloseOutcome()
        for artifact in artifacts:
            if not artifact.target_path:
                continue
            try:
                await self.bridge.run(
                    scripts.CLOSE_PATH_WINDOWS,
                    artifact.process_name,
                    artifact.target_path,
                    timeout=self.timings.close_timeout,
                )
                outcome.closed_ids.append(artifact.id)
            except ScriptBridgeError as e:
                logger.debug(f"Best-effort close of {artifact.target_path} failed: {e.message}")
        return outcome
