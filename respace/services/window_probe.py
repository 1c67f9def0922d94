"""Window probe: process liveness, window ids and titles.

Liveness comes from the process table (psutil), which is an order of
magnitude faster than asking System Events and never hangs on an
unresponsive application. Window ids and titles go through the scripting
bridge.

Every query is time-bounded and never raises. On timeout or bridge error a
query degrades to "no information": False for liveness, None for window ids
and titles. An empty tuple of window ids is a real answer (the application
reported no windows); None means nothing could be learned.
"""

import asyncio
import logging
from typing import List, Optional, Tuple

import psutil

from ..config import LaunchTimings
from ..constants import APP_BUNDLE_SUFFIX
from ..errors import ScriptBridgeError, ScriptTimeoutError
from . import scripts
from .script_bridge import ScriptBridge, parse_script_list

logger = logging.getLogger(__name__)


def resolve_process_name(path: str) -> str:
    """Derive the process/application name from an app item's path.

    "/Applications/Safari.app" -> "Safari", "Calendar" -> "Calendar"
    """
    name = path.strip().rstrip("/")
    if name.lower().endswith(APP_BUNDLE_SUFFIX):
        name = name[: -len(APP_BUNDLE_SUFFIX)]
    return name.split("/")[-1] or path


def _process_matches(info: dict, name_lower: str) -> bool:
    proc_name = (info.get("name") or "").lower()
    if proc_name == name_lower:
        return True
    exe = (info.get("exe") or "").lower()
    return f"/{name_lower}{APP_BUNDLE_SUFFIX}/" in exe


def find_processes(process_name: str) -> List[psutil.Process]:
    """Return running processes belonging to the named application.

    Matches the process name or an executable inside `<name>.app`,
    case-insensitively.
    """
    name_lower = process_name.lower()
    matches = []
    for proc in psutil.process_iter(["name", "exe"]):
        try:
            if _process_matches(proc.info, name_lower):
                matches.append(proc)
        except (psutil.NoSuchProcess, psutil.AccessDenied):
            continue
    return matches


class WindowProbe:
    """Time-bounded queries about a named application's processes and windows.

    Example:
        >>> probe = WindowProbe(ScriptBridge(), LaunchTimings())
        >>> await probe.is_running("Calendar")
        True
        >>> await probe.window_ids("Calendar")
        ('4711',)
    """

    def __init__(self, bridge: ScriptBridge, timings: Optional[LaunchTimings] = None):
        self.bridge = bridge
        self.timings = timings or LaunchTimings()

    async def is_running(self, process_name: str) -> bool:
        """Check the process table for the application.

        Returns:
            True if at least one matching process exists; False if none, or
            if the scan timed out or failed
        """
        try:
            processes = await asyncio.wait_for(
                asyncio.to_thread(find_processes, process_name),
                timeout=self.timings.liveness_timeout,
            )
        except asyncio.TimeoutError:
            logger.warning(
                f"Liveness check for {process_name} timed out after "
                f"{self.timings.liveness_timeout}s"
            )
            return False
        except (psutil.Error, OSError) as e:
            logger.warning(f"Liveness check for {process_name} failed: {e}")
            return False

        return bool(processes)

    async def window_ids(self, process_name: str) -> Optional[Tuple[str, ...]]:
        """Enumerate the application's window ids.

        Tries the direct application query first and falls back to UI
        automation when it errors or reports nothing. Both attempts share
        one `window_ids_timeout` budget.

        Returns:
            Ordered, de-duplicated window ids; an empty tuple if a query
            answered with no windows; None if no query answered at all
        """
        loop = asyncio.get_running_loop()
        deadline = loop.time() + self.timings.window_ids_timeout
        answered = False

        for technique, script in (
            ("direct", scripts.WINDOW_IDS_DIRECT),
            ("ui", scripts.WINDOW_IDS_UI),
        ):
            remaining = deadline - loop.time()
            if remaining <= 0:
                logger.debug(f"Window id budget exhausted for {process_name} before {technique} query")
                break

            try:
                output = await self.bridge.run(script, process_name, timeout=remaining)
            except ScriptTimeoutError:
                logger.warning(f"Window id query ({technique}) for {process_name} timed out")
                continue
            except ScriptBridgeError as e:
                logger.debug(f"Window id query ({technique}) for {process_name} failed: {e.message}")
                continue

            answered = True
            ids = parse_script_list(output)
            if ids:
                logger.debug(f"{process_name}: {len(ids)} window(s) via {technique} query")
                return tuple(ids)

        if not answered:
            logger.warning(f"Window ids of {process_name} are unknown, no query answered")
            return None
        return ()

    async def window_title(self, process_name: str, window_id: str) -> Optional[str]:
        """Look up a window's title; None when unknown."""
        try:
            output = await self.bridge.run(
                scripts.WINDOW_TITLE,
                process_name,
                window_id,
                timeout=self.timings.title_timeout,
            )
        except ScriptBridgeError as e:
            logger.debug(f"Title query for {process_name} window {window_id} failed: {e.message}")
            return None

        title = output.strip()
        if not title or title == "missing value":
            return None
        return title
