"""State capture around application launches.

capture_before() snapshots liveness and window ids before the launch
command is issued; capture_after() waits for the application to settle,
re-queries window ids and turns the diff into tracked artifacts.
"""

import asyncio
import logging
from typing import Dict, List, Optional, Sequence

from ..config import LaunchTimings
from ..models import BeforeLaunchState, TrackedArtifact, WorkspaceItem
from .tracking_resolver import diff_window_ids, resolve_tracking
from .window_probe import WindowProbe, resolve_process_name

logger = logging.getLogger(__name__)


class StateCapture:
    """Before/after process and window snapshots for application items."""

    def __init__(self, probe: WindowProbe, timings: Optional[LaunchTimings] = None):
        self.probe = probe
        self.timings = timings or LaunchTimings()

    async def capture_before(self, item: WorkspaceItem) -> BeforeLaunchState:
        """Snapshot liveness and window ids for an application item.

        Both probe queries run concurrently.
        """
        process_name = resolve_process_name(item.path)
        was_running, window_ids = await asyncio.gather(
            self.probe.is_running(process_name),
            self.probe.window_ids(process_name),
        )

        known = window_ids is not None
        logger.debug(
            f"Before launch: {process_name} running={was_running}, "
            f"{len(window_ids) if known else 'unknown'} window(s)"
        )
        return BeforeLaunchState(
            item=item,
            was_running=was_running,
            window_ids_before=frozenset(window_ids or ()),
            window_ids_known=known,
            process_name=process_name,
        )

    async def wait_for_process(self, process_name: str) -> bool:
        """Poll liveness until the process appears or appear_timeout passes.

        Returns:
            True if the process was seen
        """
        loop = asyncio.get_running_loop()
        deadline = loop.time() + self.timings.appear_timeout

        while True:
            if await self.probe.is_running(process_name):
                return True
            if loop.time() >= deadline:
                return False
            await asyncio.sleep(self.timings.poll_interval)

    async def capture_after(self, before: BeforeLaunchState) -> List[TrackedArtifact]:
        """Diff post-launch window state against the snapshot.

        Returns:
            Artifacts for whatever the launch created (possibly none)
        """
        process_name = before.process_name

        if not before.was_running:
            appeared = await self.wait_for_process(process_name)
            if not appeared:
                logger.debug(
                    f"{process_name} not visible in process table after "
                    f"{self.timings.appear_timeout}s"
                )

        await asyncio.sleep(self.timings.settle_delay)

        window_ids_after = await self.probe.window_ids(process_name)
        new_window_ids = diff_window_ids(before, window_ids_after or ())
        titles = await self._fetch_titles(process_name, new_window_ids)

        artifacts = resolve_tracking(before, new_window_ids, titles)
        logger.info(
            f"Tracked {len(artifacts)} artifact(s) for {process_name} "
            f"(was_running={before.was_running}, new_windows={len(new_window_ids)})"
        )
        return artifacts

    async def _fetch_titles(
        self,
        process_name: str,
        window_ids: Sequence[str],
    ) -> Dict[str, Optional[str]]:
        """Best-effort titles, one concurrent query per window id."""
        if not window_ids:
            return {}

        titles = await asyncio.gather(
            *(self.probe.window_title(process_name, window_id) for window_id in window_ids)
        )
        return dict(zip(window_ids, titles))
