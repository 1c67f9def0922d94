"""Application launch strategy.

Applications are the only item type whose artifacts are ambiguous: the app
may already be running, may open zero or more windows, and may not expose
window ids at all. Launching is therefore split into three phases
(capture_before, launch_command, capture_after) that the scheduler runs
across a whole delay bucket at once; launch() runs them back to back for a
single item.
"""

import asyncio
import logging
from collections import defaultdict
from typing import Dict, List, Optional

import psutil

from ...config import EngineConfig
from ...errors import CloseError, ErrorCode, ScriptBridgeError, ScriptTimeoutError
from ...models import BeforeLaunchState, ItemType, TrackedArtifact, WorkspaceItem
from .. import scripts
from ..script_bridge import ScriptBridge
from ..state_capture import StateCapture
from ..window_probe import WindowProbe, find_processes
from .base import CloseOutcome, LaunchStrategy

logger = logging.getLogger(__name__)


def group_by_process(artifacts: List[TrackedArtifact]) -> Dict[str, List[TrackedArtifact]]:
    groups: Dict[str, List[TrackedArtifact]] = defaultdict(list)
    for artifact in artifacts:
        groups[artifact.process_name].append(artifact)
    return dict(groups)


class AppStrategy(LaunchStrategy):
    """Launch, verify and close native applications."""

    item_types = (ItemType.APP,)

    def __init__(
        self,
        bridge: ScriptBridge,
        config: EngineConfig,
        probe: WindowProbe,
        capture: Optional[StateCapture] = None,
    ):
        super().__init__(bridge, config)
        self.probe = probe
        self.capture = capture or StateCapture(probe, config.timings)

    # Phased launch protocol

    async def capture_before(self, item: WorkspaceItem) -> BeforeLaunchState:
        return await self.capture.capture_before(item)

    async def launch_command(self, item: WorkspaceItem) -> None:
        """Issue `open -a` without waiting for windows to appear."""
        await self._open(item, "-a", item.path)

    async def capture_after(self, before: BeforeLaunchState) -> List[TrackedArtifact]:
        return await self.capture.capture_after(before)

    async def launch(self, item: WorkspaceItem) -> List[TrackedArtifact]:
        before = await self.capture_before(item)
        await self.launch_command(item)
        await asyncio.sleep(self.timings.bucket_settle_delay)
        return await self.capture_after(before)

    # Verification

    async def verify_windows(self, artifacts: List[TrackedArtifact]) -> List[TrackedArtifact]:
        groups = group_by_process(artifacts)
        results = await asyncio.gather(
            *(self._verify_group(name, group) for name, group in groups.items())
        )
        return [artifact for survivors in results for artifact in survivors]

    async def _verify_group(
        self,
        process_name: str,
        group: List[TrackedArtifact],
    ) -> List[TrackedArtifact]:
        """
        Verify one application's artifacts.

        - Process dead: the whole group is gone
        - APPLICATION artifacts: liveness is sufficient proof
        - WINDOW artifacts: kept only if the id is still enumerated
        """
        if not await self.probe.is_running(process_name):
            logger.info(f"{process_name} is no longer running, dropping {len(group)} artifact(s)")
            return []

        live_ids: Optional[set] = set()
        if any(not a.is_application_level for a in group):
            window_ids = await self.probe.window_ids(process_name)
            # Unknown is not absent
            live_ids = None if window_ids is None else set(window_ids)

        survivors = [
            a for a in group
            if a.is_application_level or live_ids is None or a.system_window_id in live_ids
        ]
        if len(survivors) != len(group):
            logger.debug(
                f"{process_name}: {len(group) - len(survivors)} tracked window(s) no longer exist"
            )
        return survivors

    # Closing

    async def close(self, artifacts: List[TrackedArtifact]) -> CloseOutcome:
        groups = group_by_process(artifacts)
        results = await asyncio.gather(
            *(self._close_group(name, group) for name, group in groups.items()),
            return_exceptions=True,
        )

        outcome = CloseOutcome()
        for (process_name, group), result in zip(groups.items(), results):
            if isinstance(result, Exception):
                logger.error(f"Failed to close {process_name}: {result}")
                outcome.errors.append(str(result))
            else:
                outcome.merge(result)
        return outcome

    async def _close_group(self, process_name: str, group: List[TrackedArtifact]) -> CloseOutcome:
        if any(a.is_application_level for a in group):
            await self.quit_application(process_name)
            return CloseOutcome(closed_ids=[a.id for a in group])

        outcome = CloseOutcome()
        for artifact in group:
            try:
                await self.close_window(process_name, artifact.system_window_id)
                outcome.closed_ids.append(artifact.id)
            except CloseError as e:
                logger.warning(e.message)
                outcome.errors.append(e.message)
        return outcome

    async def quit_application(self, process_name: str) -> None:
        """Quit gracefully, falling back to force-terminating the processes.

        A quit that does not finish in time is left alone: the application
        is usually waiting on a save prompt and killing it would lose work.

        Raises:
            CloseError: If the quit timed out or termination was refused
        """
        try:
            await self.bridge.run(
                scripts.QUIT_APPLICATION,
                process_name,
                timeout=self.timings.close_timeout,
            )
            logger.info(f"Quit {process_name}")
            return
        except ScriptTimeoutError:
            raise CloseError(
                process_name,
                f"quit did not finish within {self.timings.close_timeout}s, "
                f"the application may be waiting for input",
                code=ErrorCode.QUIT_FAILED,
            )
        except ScriptBridgeError as e:
            logger.warning(f"Graceful quit of {process_name} failed ({e.message}), terminating")

        await self.force_terminate(process_name)

    async def force_terminate(self, process_name: str) -> int:
        """Kill every matching process; already-exited processes are ignored.

        Raises:
            CloseError: If a process could not be killed
        """
        def _kill() -> int:
            killed = 0
            for proc in find_processes(process_name):
                try:
                    proc.kill()
                    killed += 1
                except psutil.NoSuchProcess:
                    continue
                except psutil.AccessDenied as e:
                    raise CloseError(process_name, f"access denied (pid {e.pid})", code=ErrorCode.QUIT_FAILED)
            return killed

        killed = await asyncio.to_thread(_kill)
        logger.info(f"Terminated {killed} process(es) for {process_name}")
        return killed

    async def close_window(self, process_name: str, window_id: str) -> None:
        """Close one window: close-button click first, direct close second.

        Raises:
            CloseError: If both techniques failed
        """
        try:
            await self.bridge.run(
                scripts.CLOSE_WINDOW_UI,
                process_name,
                window_id,
                timeout=self.timings.close_timeout,
            )
            logger.debug(f"Closed {process_name} window {window_id} via close button")
            return
        except ScriptBridgeError as e:
            logger.debug(f"UI close of {process_name} window {window_id} failed: {e.message}")

        try:
            await self.bridge.run(
                scripts.CLOSE_WINDOW_DIRECT,
                process_name,
                window_id,
                timeout=self.timings.close_timeout,
            )
            logger.debug(f"Closed {process_name} window {window_id} via application")
        except ScriptBridgeError as e:
            raise CloseError(process_name, f"window {window_id}: {e.message}")
