"""Integration tests for the respace command-line interface."""

import json
from unittest.mock import MagicMock, patch

import psutil
import pytest

from respace.cli import RespaceCLI
from respace.engine import WorkspaceEngine
from respace.session_store import SessionStore


@pytest.fixture(autouse=True)
def no_logging_setup():
    with patch("respace.cli.setup_logging"):
        yield


@pytest.fixture
def config_dir(tmp_path):
    config_dir = tmp_path / "config"
    config_dir.mkdir()
    (config_dir / "workspaces.json").write_text(json.dumps({
        "workspaces": [
            {
                "id": "ws-morning",
                "name": "Morning",
                "items": [
                    {"id": "calendar", "type": "app", "name": "Calendar", "path": "Calendar"},
                    {"id": "example", "type": "url", "name": "Example", "path": "https://example.com"},
                    {"id": "spotify", "type": "app", "name": "Spotify", "path": "Spotify"},
                ],
            },
            {"id": "ws-empty", "name": "Empty", "items": []},
        ]
    }))
    (config_dir / "engine.json").write_text(json.dumps({
        "timings": {"appear_timeout": 0, "settle_delay": 0, "bucket_settle_delay": 0, "poll_interval": 0.001}
    }))
    return config_dir


@pytest.fixture
def store(tmp_path):
    return SessionStore(tmp_path / "state" / "sessions.json")


@pytest.fixture
def cli(registry, fake_bridge, store):
    return RespaceCLI(
        engine_factory=lambda config, sink: WorkspaceEngine(registry, config, sink, bridge=fake_bridge),
        store=store,
    )


@pytest.fixture
def morning_desktop(desktop):
    desktop.install("Calendar", launch_plan=[["4711"]])
    desktop.install("Spotify")
    return desktop


class TestList:
    def test_list_marks_open_workspaces(self, cli, config_dir, store, artifact_factory, capsys):
        store.save("ws-morning", "Morning", [artifact_factory()])

        assert cli.run(["--config-dir", str(config_dir), "list"]) == 0

        lines = capsys.readouterr().out.splitlines()
        assert lines[0].startswith("● Morning")
        assert lines[1].startswith("  Empty")

    def test_list_json(self, cli, config_dir, capsys):
        assert cli.run(["--config-dir", str(config_dir), "--json", "list"]) == 0

        data = json.loads(capsys.readouterr().out)
        assert data[0] == {"id": "ws-morning", "name": "Morning", "items": 3, "open": False}


class TestLaunchVerifyClose:
    def test_full_cycle(self, cli, config_dir, store, morning_desktop, capsys):
        args = ["--config-dir", str(config_dir)]

        assert cli.run(args + ["launch", "morning"]) == 0
        record = store.load("ws-morning")
        assert len(record.artifacts) == 2
        assert "Tracking 2 new artifact(s)" in capsys.readouterr().out

        assert cli.run(args + ["--json", "verify", "Morning"]) == 0
        alive = json.loads(capsys.readouterr().out)
        assert len(alive) == 2

        assert cli.run(args + ["--json", "close", "Morning"]) == 0
        report = json.loads(capsys.readouterr().out)
        assert report["closed_count"] == 2
        assert store.load("ws-morning") is None
        assert not morning_desktop.apps["Spotify"].running

    def test_launch_json_report(self, cli, config_dir, morning_desktop, capsys):
        assert cli.run(["--config-dir", str(config_dir), "--json", "launch", "ws-morning"]) == 0

        report = json.loads(capsys.readouterr().out)
        assert report["success_count"] == 3
        assert report["total"] == 3
        assert len(report["artifacts"]) == 2

    def test_verify_rewrites_store(self, cli, config_dir, store, morning_desktop, capsys):
        args = ["--config-dir", str(config_dir)]
        cli.run(args + ["launch", "Morning"])

        morning_desktop.user_quits("Spotify")
        assert cli.run(args + ["verify", "Morning"]) == 0

        assert "1/2 tracked artifact(s) still open" in capsys.readouterr().out
        assert len(store.load("ws-morning").artifacts) == 1

    def test_verify_without_session(self, cli, config_dir, capsys):
        assert cli.run(["--config-dir", str(config_dir), "verify", "Morning"]) == 0
        assert "No open session for Morning" in capsys.readouterr().out

    def test_close_without_session_is_already_closed(self, cli, config_dir, capsys):
        assert cli.run(["--config-dir", str(config_dir), "close", "Morning"]) == 0
        assert "Workspace already closed" in capsys.readouterr().err

    def test_failed_close_keeps_session(self, cli, config_dir, store, morning_desktop, capsys):
        args = ["--config-dir", str(config_dir)]
        cli.run(args + ["launch", "Morning"])
        morning_desktop.apps["Spotify"].quit_fails = True
        denied = MagicMock()
        denied.kill.side_effect = psutil.AccessDenied(321)

        with patch("respace.services.strategies.app_strategy.find_processes", return_value=[denied]):
            assert cli.run(args + ["close", "Morning"]) == 1

        assert "Failed to close Spotify" in capsys.readouterr().out
        assert morning_desktop.apps["Spotify"].running
        record = store.load("ws-morning")
        assert [a.process_name for a in record.artifacts] == ["Spotify"]

        morning_desktop.apps["Spotify"].quit_fails = False
        assert cli.run(args + ["close", "Morning"]) == 0
        assert store.load("ws-morning") is None
        assert not morning_desktop.apps["Spotify"].running

    def test_launch_with_failures_exits_nonzero(self, cli, config_dir, morning_desktop):
        morning_desktop.failing_opens["Spotify"] = "not found"
        assert cli.run(["--config-dir", str(config_dir), "launch", "Morning"]) == 1

    def test_empty_workspace_exits_nonzero(self, cli, config_dir, capsys):
        assert cli.run(["--config-dir", str(config_dir), "launch", "Empty"]) == 1
        assert "Workspace is empty" in capsys.readouterr().err

    def test_verbose_prints_diagnostics(self, cli, config_dir, morning_desktop, capsys):
        assert cli.run(["--config-dir", str(config_dir), "--verbose", "launch", "Morning"]) == 0
        out = capsys.readouterr().out
        assert '"capture_before"' in out
        assert '"bucket"' in out
        diagnostics = json.loads(out[out.index("{"):])
        assert diagnostics["bridge"]["calls"] > 0


class TestErrors:
    def test_unknown_workspace(self, cli, config_dir, capsys):
        assert cli.run(["--config-dir", str(config_dir), "launch", "Evening"]) == 1

        out = capsys.readouterr().out
        assert "❌ Workspace not found: Evening" in out
        assert "respace list" in out

    def test_unknown_workspace_json(self, cli, config_dir, capsys):
        assert cli.run(["--config-dir", str(config_dir), "--json", "close", "Evening"]) == 1
        assert json.loads(capsys.readouterr().out)["error"]["code"] == 1301

    def test_no_command_prints_help(self, cli, capsys):
        assert cli.run([]) == 1
        assert "usage: respace" in capsys.readouterr().out
