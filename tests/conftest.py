"""
Pytest configuration and fixtures for respace tests.

The fake desktop stands in for macOS: FakeBridge answers the engine's
AppleScripts from it, FakeProbe reads liveness from it instead of the
process table, and fake_open replaces the `open` command.
"""

import sys
import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Optional, Tuple
from unittest.mock import patch

import pytest

# Add repository root to Python path BEFORE test collection
package_root = Path(__file__).parent.parent
if str(package_root) not in sys.path:
    sys.path.insert(0, str(package_root))

from respace.config import EngineConfig, LaunchTimings  # noqa: E402
from respace.constants import APPLICATION_SENTINEL  # noqa: E402
from respace.errors import ScriptBridgeError  # noqa: E402
from respace.models import ItemType, TrackedArtifact, TrackingMode, WorkspaceItem  # noqa: E402
from respace.services import scripts  # noqa: E402
from respace.services.script_bridge import ScriptBridge  # noqa: E402
from respace.services.strategies import StrategyRegistry  # noqa: E402
from respace.services.window_probe import WindowProbe, resolve_process_name  # noqa: E402


@dataclass
class FakeApp:
    """One application on the fake desktop."""

    name: str
    running: bool = False
    windows: List[str] = field(default_factory=list)
    titles: Dict[str, str] = field(default_factory=dict)
    # Window ids each successive launch creates; exhausted plan creates none
    launch_plan: List[List[str]] = field(default_factory=list)
    quit_fails: bool = False


class FakeDesktop:
    """In-memory model of running apps, windows and file manager windows."""

    def __init__(self):
        self.apps: Dict[str, FakeApp] = {}
        self.finder_windows: List[str] = []
        self.opened: List[str] = []
        self.terminal_commands: List[str] = []
        self.failing_opens: Dict[str, str] = {}
        self.events: List[Tuple[float, str, str]] = []

    def install(self, name: str, **kwargs) -> FakeApp:
        app = FakeApp(name=name, **kwargs)
        self.apps[name] = app
        return app

    def record(self, event: str, subject: str) -> None:
        self.events.append((time.monotonic(), event, subject))

    def app(self, name: str) -> Optional[FakeApp]:
        return self.apps.get(name)

    def launch_app(self, name: str) -> None:
        app = self.apps.get(name) or self.install(name)
        app.running = True
        if app.launch_plan:
            app.windows.extend(app.launch_plan.pop(0))
        self.record("launch", name)

    def quit_app(self, name: str) -> None:
        app = self.apps.get(name)
        if app is None or not app.running:
            return
        if app.quit_fails:
            raise ScriptBridgeError(f"{name} got an error: User canceled.", returncode=1)
        app.running = False
        app.windows.clear()
        self.record("quit", name)

    def close_window(self, name: str, window_id: str) -> None:
        app = self.apps.get(name)
        if app is None or window_id not in app.windows:
            raise ScriptBridgeError("window not found", returncode=1)
        app.windows.remove(window_id)
        self.record("close_window", f"{name}:{window_id}")

    def user_closes_window(self, name: str, window_id: str) -> None:
        self.apps[name].windows.remove(window_id)

    def user_quits(self, name: str) -> None:
        self.apps[name].running = False
        self.apps[name].windows.clear()

    def launch_times(self, name: str) -> List[float]:
        return [t for t, event, subject in self.events if event == "launch" and subject == name]


class FakeBridge(ScriptBridge):
    """ScriptBridge answering the engine's scripts from a FakeDesktop."""

    def __init__(self, desktop: FakeDesktop):
        super().__init__(executable="osascript")
        self.desktop = desktop
        self.calls: List[Tuple[str, Tuple[str, ...]]] = []

    async def run(self, script: str, *args: str, timeout: float) -> str:
        self.calls.append((script, args))
        self._call_count += 1
        desktop = self.desktop

        if script in (scripts.WINDOW_IDS_DIRECT, scripts.WINDOW_IDS_UI):
            app = desktop.app(args[0])
            if app is None or not app.running:
                return ""
            return ", ".join(app.windows)

        if script == scripts.WINDOW_TITLE:
            app = desktop.app(args[0])
            return (app.titles.get(args[1], "") if app else "")

        if script == scripts.QUIT_APPLICATION:
            desktop.quit_app(args[0])
            return ""

        if script in (scripts.CLOSE_WINDOW_UI, scripts.CLOSE_WINDOW_DIRECT):
            desktop.close_window(args[0], args[1])
            return "closed"

        if script == scripts.RUN_IN_TERMINAL:
            desktop.terminal_commands.append(args[1])
            return ""

        if script == scripts.COUNT_PATH_WINDOWS:
            return str(sum(1 for path in desktop.finder_windows if args[1] in path))

        if script == scripts.CLOSE_PATH_WINDOWS:
            desktop.finder_windows = [p for p in desktop.finder_windows if args[1] not in p]
            return ""

        raise ScriptBridgeError("unexpected script", returncode=1)


class FakeProbe(WindowProbe):
    """WindowProbe reading liveness from the fake desktop."""

    async def is_running(self, process_name: str) -> bool:
        app = self.bridge.desktop.app(process_name)
        return bool(app and app.running)


@pytest.fixture
def zero_timings() -> LaunchTimings:
    """Timings with every settle delay removed."""
    return LaunchTimings(
        appear_timeout=0,
        settle_delay=0,
        bucket_settle_delay=0,
        poll_interval=0.001,
    )


@pytest.fixture
def engine_config(zero_timings) -> EngineConfig:
    return EngineConfig(timings=zero_timings)


@pytest.fixture
def desktop() -> FakeDesktop:
    return FakeDesktop()


@pytest.fixture
def fake_bridge(desktop) -> FakeBridge:
    return FakeBridge(desktop)


@pytest.fixture
def fake_probe(fake_bridge, zero_timings) -> FakeProbe:
    return FakeProbe(fake_bridge, zero_timings)


@pytest.fixture
def fake_open(desktop):
    """Replace the `open` command with the fake desktop."""

    async def _run_command(cmd, timeout):
        if cmd[1] == "-a":
            target = resolve_process_name(cmd[2])
        else:
            target = cmd[1]

        if target in desktop.failing_opens:
            return 1, "", desktop.failing_opens[target]

        if cmd[1] == "-a":
            desktop.launch_app(target)
        else:
            desktop.opened.append(target)
            desktop.finder_windows.append(target)
            desktop.record("open", target)
        return 0, "", ""

    with patch("respace.services.strategies.base.run_command", side_effect=_run_command) as mock:
        yield mock


@pytest.fixture
def registry(fake_bridge, fake_probe, engine_config, fake_open) -> StrategyRegistry:
    """Standard registry wired to the fake desktop."""
    return StrategyRegistry.default(fake_bridge, fake_probe, engine_config)


def make_item(item_type: ItemType, name: str, path: Optional[str] = None, delay: int = 0, **kwargs) -> WorkspaceItem:
    """Build a WorkspaceItem with sensible defaults."""
    return WorkspaceItem(type=item_type, name=name, path=path or name, delay=delay, **kwargs)


def make_artifact(
    process_name: str = "Calendar",
    window_id: Optional[str] = "4711",
    item_type: ItemType = ItemType.APP,
    item_id: str = "item-1",
    **kwargs,
) -> TrackedArtifact:
    """Build a TrackedArtifact; window_id=None yields an application-level one."""
    if window_id is None:
        return TrackedArtifact(
            system_window_id=APPLICATION_SENTINEL,
            item_id=item_id,
            process_name=process_name,
            item_type=item_type,
            tracking_mode=TrackingMode.APPLICATION,
            **kwargs,
        )
    return TrackedArtifact(
        system_window_id=window_id,
        item_id=item_id,
        process_name=process_name,
        item_type=item_type,
        tracking_mode=TrackingMode.WINDOW,
        **kwargs,
    )


@pytest.fixture
def item_factory():
    return make_item


@pytest.fixture
def artifact_factory():
    return make_artifact
