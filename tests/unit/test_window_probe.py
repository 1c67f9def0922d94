"""Unit tests for the window probe and process-name resolution."""

import time
from unittest.mock import AsyncMock, MagicMock, patch

import psutil
import pytest

from respace.config import LaunchTimings
from respace.errors import ScriptBridgeError, ScriptTimeoutError
from respace.services import scripts
from respace.services.window_probe import (
    WindowProbe,
    _process_matches,
    find_processes,
    resolve_process_name,
)


class TestResolveProcessName:
    @pytest.mark.parametrize("path,expected", [
        ("/Applications/Safari.app", "Safari"),
        ("/Applications/Safari.app/", "Safari"),
        ("/System/Applications/Calendar.APP", "Calendar"),
        ("Spotify", "Spotify"),
        ("  Visual Studio Code.app ", "Visual Studio Code"),
    ])
    def test_resolve(self, path, expected):
        assert resolve_process_name(path) == expected


class TestProcessMatching:
    def test_matches_name_case_insensitively(self):
        assert _process_matches({"name": "Calendar", "exe": None}, "calendar")

    def test_matches_bundle_executable(self):
        info = {"name": "Electron", "exe": "/Applications/Slack.app/Contents/MacOS/Slack"}
        assert _process_matches(info, "slack")

    def test_rejects_other_process(self):
        assert not _process_matches({"name": "Mail", "exe": "/System/Mail.app/x"}, "calendar")

    def test_find_processes_uses_process_table(self):
        calendar = MagicMock(info={"name": "Calendar", "exe": ""})
        mail = MagicMock(info={"name": "Mail", "exe": ""})

        with patch("respace.services.window_probe.psutil.process_iter", return_value=[calendar, mail]):
            assert find_processes("Calendar") == [calendar]


@pytest.fixture
def mock_bridge():
    bridge = MagicMock()
    bridge.run = AsyncMock(return_value="")
    return bridge


@pytest.fixture
def probe(mock_bridge, zero_timings):
    return WindowProbe(mock_bridge, zero_timings)


class TestIsRunning:
    @pytest.mark.asyncio
    async def test_running(self, probe):
        with patch("respace.services.window_probe.find_processes", return_value=[MagicMock()]):
            assert await probe.is_running("Calendar") is True

    @pytest.mark.asyncio
    async def test_not_running(self, probe):
        with patch("respace.services.window_probe.find_processes", return_value=[]):
            assert await probe.is_running("Calendar") is False

    @pytest.mark.asyncio
    async def test_psutil_error_degrades_to_false(self, probe):
        with patch("respace.services.window_probe.find_processes", side_effect=psutil.AccessDenied()):
            assert await probe.is_running("Calendar") is False

    @pytest.mark.asyncio
    async def test_timeout_degrades_to_false(self, mock_bridge):
        probe = WindowProbe(mock_bridge, LaunchTimings(liveness_timeout=0.01))

        def slow_scan(name):
            time.sleep(0.2)
            return [MagicMock()]

        with patch("respace.services.window_probe.find_processes", side_effect=slow_scan):
            assert await probe.is_running("Calendar") is False


class TestWindowIds:
    @pytest.mark.asyncio
    async def test_direct_query_used_first(self, probe, mock_bridge):
        mock_bridge.run.return_value = "4711, 4712"

        assert await probe.window_ids("Calendar") == ("4711", "4712")
        mock_bridge.run.assert_awaited_once()
        assert mock_bridge.run.await_args.args[0] == scripts.WINDOW_IDS_DIRECT

    @pytest.mark.asyncio
    async def test_falls_back_to_ui_when_direct_fails(self, probe, mock_bridge):
        mock_bridge.run.side_effect = [ScriptBridgeError("not scriptable"), "88"]

        assert await probe.window_ids("Spotify") == ("88",)
        assert mock_bridge.run.await_args_list[1].args[0] == scripts.WINDOW_IDS_UI

    @pytest.mark.asyncio
    async def test_falls_back_to_ui_when_direct_empty(self, probe, mock_bridge):
        mock_bridge.run.side_effect = ["", "12"]
        assert await probe.window_ids("Notes") == ("12",)

    @pytest.mark.asyncio
    async def test_timeouts_give_unknown(self, probe, mock_bridge):
        mock_bridge.run.side_effect = ScriptTimeoutError(2.0)
        assert await probe.window_ids("Calendar") is None

    @pytest.mark.asyncio
    async def test_answered_without_windows_is_empty(self, probe, mock_bridge):
        mock_bridge.run.side_effect = ["", ScriptBridgeError("not scriptable")]
        assert await probe.window_ids("Calendar") == ()

    @pytest.mark.asyncio
    async def test_missing_values_dropped(self, probe, mock_bridge):
        mock_bridge.run.return_value = "missing value, 5, 5"
        assert await probe.window_ids("Calendar") == ("5",)


class TestWindowTitle:
    @pytest.mark.asyncio
    async def test_title(self, probe, mock_bridge):
        mock_bridge.run.return_value = "Week 21\n"
        assert await probe.window_title("Calendar", "4711") == "Week 21"
        assert mock_bridge.run.await_args.args[1:] == ("Calendar", "4711")

    @pytest.mark.asyncio
    async def test_unknown_title(self, probe, mock_bridge):
        mock_bridge.run.return_value = "missing value"
        assert await probe.window_title("Calendar", "4711") is None

    @pytest.mark.asyncio
    async def test_error_gives_none(self, probe, mock_bridge):
        mock_bridge.run.side_effect = ScriptBridgeError("boom")
        assert await probe.window_title("Calendar", "4711") is None
