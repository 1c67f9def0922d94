"""Scripting bridge and process runner.

Runs `osascript` and other OS commands asynchronously with a hard time bound.
A timed-out child is killed and reaped before the error is raised, so one
unresponsive application cannot leak processes or stall a phase barrier.
"""

import asyncio
import logging
from typing import List, Sequence, Tuple

from ..constants import OSASCRIPT_COMMAND
from ..errors import ErrorCode, ScriptBridgeError, ScriptTimeoutError

logger = logging.getLogger(__name__)


async def run_command(cmd: Sequence[str], timeout: float) -> Tuple[int, str, str]:
    """Run a command without a shell and collect its output.

    Args:
        cmd: Program and arguments
        timeout: Seconds before the process is killed

    Returns:
        (returncode, stdout, stderr) with output decoded as UTF-8

    Raises:
        FileNotFoundError: If the program does not exist
        asyncio.TimeoutError: If the process did not finish in time
    """
    logger.debug(f"Executing: {cmd[0]} ({len(cmd) - 1} args, timeout={timeout}s)")

    proc = await asyncio.create_subprocess_exec(
        *cmd,
        stdin=asyncio.subprocess.DEVNULL,
        stdout=asyncio.subprocess.PIPE,
        stderr=asyncio.subprocess.PIPE,
    )

    try:
        stdout, stderr = await asyncio.wait_for(proc.communicate(), timeout=timeout)
    except asyncio.TimeoutError:
        proc.kill()
        await proc.wait()
        raise

    return (
        proc.returncode,
        stdout.decode("utf-8", errors="replace").strip(),
        stderr.decode("utf-8", errors="replace").strip(),
    )


def parse_script_list(output: str) -> List[str]:
    """Parse an AppleScript list printed by osascript ("12, 34, 56").

    Empty output and `missing value` entries are dropped; order is kept and
    duplicates removed.
    """
    values: List[str] = []
    for part in output.split(","):
        value = part.strip()
        if not value or value == "missing value" or value in values:
            continue
        values.append(value)
    return values


class ScriptBridge:
    """Async wrapper around osascript.

    Example:
        >>> bridge = ScriptBridge()
        >>> ids = await bridge.run(scripts.WINDOW_IDS_DIRECT, "Calendar", timeout=2.0)
    """

    def __init__(self, executable: str = OSASCRIPT_COMMAND):
        self.executable = executable
        self._call_count = 0
        self._timeout_count = 0

    async def run(self, script: str, *args: str, timeout: float) -> str:
        """Run an AppleScript with argv parameters.

        Args:
            script: AppleScript source using `on run argv`
            *args: Values passed as argv items (never interpolated)
            timeout: Upper time bound in seconds

        Returns:
            stdout of osascript, stripped

        Raises:
            ScriptTimeoutError: If the script exceeded the time bound
            ScriptBridgeError: If osascript is missing or exited non-zero
        """
        self._call_count += 1
        cmd = [self.executable, "-e", script, *args]

        try:
            returncode, stdout, stderr = await run_command(cmd, timeout)
        except asyncio.TimeoutError:
            self._timeout_count += 1
            raise ScriptTimeoutError(timeout)
        except FileNotFoundError:
            raise ScriptBridgeError(
                f"{self.executable} not found",
                code=ErrorCode.BRIDGE_UNAVAILABLE,
            )

        if returncode != 0:
            raise ScriptBridgeError(stderr or "no error output", returncode=returncode)

        return stdout

    def get_stats(self) -> dict:
        """Bridge call counters for diagnostics."""
        return {
            "calls": self._call_count,
            "timeouts": self._timeout_count,
        }
