"""Unit tests for configuration loading."""

import json

import pytest

from respace.config import (
    EngineConfig,
    LaunchTimings,
    find_workspace,
    load_engine_config,
    load_workspaces,
)
from respace.constants import ConfigPaths
from respace.errors import ErrorCode, WorkspaceNotFoundError


@pytest.fixture
def workspaces_file(tmp_path):
    data = {
        "workspaces": [
            {
                "id": "ws-1",
                "name": "Morning",
                "items": [
                    {"id": "a", "type": "app", "name": "Calendar", "path": "Calendar"},
                    {"id": "b", "type": "url", "name": "News", "path": "https://news.example"},
                ],
            },
            {"id": "ws-bad", "name": "Broken", "items": [{"type": "hologram", "name": "x", "path": "x"}]},
            {"id": "ws-2", "name": "Deep Work", "items": []},
        ]
    }
    path = tmp_path / "workspaces.json"
    path.write_text(json.dumps(data))
    return path


class TestLaunchTimings:
    def test_defaults(self):
        timings = LaunchTimings()
        assert timings.window_ids_timeout == 2.0
        assert timings.settle_delay == 0.3
        assert timings.bucket_settle_delay == 1.5
        assert timings.poll_interval == 0.1

    def test_negative_rejected(self):
        with pytest.raises(ValueError):
            LaunchTimings(settle_delay=-1)

    def test_zero_poll_interval_rejected(self):
        with pytest.raises(ValueError):
            LaunchTimings(poll_interval=0)


class TestLoadEngineConfig:
    def test_missing_file_gives_defaults(self, tmp_path):
        assert load_engine_config(tmp_path / "engine.json") == EngineConfig()

    def test_partial_override(self, tmp_path):
        path = tmp_path / "engine.json"
        path.write_text(json.dumps({"terminal_app": "iTerm", "timings": {"settle_delay": 0.5}}))

        config = load_engine_config(path)

        assert config.terminal_app == "iTerm"
        assert config.file_manager_app == "Finder"
        assert config.timings.settle_delay == 0.5
        assert config.timings.close_timeout == 2.0

    def test_malformed_json_gives_defaults(self, tmp_path, caplog):
        path = tmp_path / "engine.json"
        path.write_text("{not json")

        assert load_engine_config(path) == EngineConfig()
        assert "Failed to load engine config" in caplog.text

    def test_invalid_values_give_defaults(self, tmp_path):
        path = tmp_path / "engine.json"
        path.write_text(json.dumps({"timings": {"settle_delay": -3}}))
        assert load_engine_config(path) == EngineConfig()


class TestLoadWorkspaces:
    def test_invalid_entries_skipped(self, workspaces_file):
        workspaces = load_workspaces(workspaces_file)
        assert [w.name for w in workspaces] == ["Morning", "Deep Work"]
        assert len(workspaces[0].items) == 2

    def test_missing_file(self, tmp_path):
        assert load_workspaces(tmp_path / "nothing.json") == []

    def test_malformed_file(self, tmp_path):
        path = tmp_path / "workspaces.json"
        path.write_text("[")
        assert load_workspaces(path) == []


class TestFindWorkspace:
    def test_by_id_and_name(self, workspaces_file):
        workspaces = load_workspaces(workspaces_file)
        assert find_workspace(workspaces, "ws-2").name == "Deep Work"
        assert find_workspace(workspaces, "Morning").id == "ws-1"
        assert find_workspace(workspaces, "deep work").id == "ws-2"

    def test_not_found(self, workspaces_file):
        with pytest.raises(WorkspaceNotFoundError) as exc_info:
            find_workspace(load_workspaces(workspaces_file), "Evening")
        assert exc_info.value.code is ErrorCode.WORKSPACE_NOT_FOUND


class TestConfigPaths:
    def test_for_config_dir(self, tmp_path):
        paths = ConfigPaths.for_config_dir(tmp_path)
        assert paths["workspaces"] == tmp_path / "workspaces.json"
        assert paths["engine"] == tmp_path / "engine.json"

    def test_sessions_live_in_state_dir(self):
        assert ConfigPaths.SESSIONS_FILE.parent == ConfigPaths.LOCAL_STATE_DIR
        assert ConfigPaths.WORKSPACES_FILE.name == "workspaces.json"
