#!/usr/bin/env python3
"""
Respace CLI

Command-line interface for launching, verifying and closing workspaces.
"""

import argparse
import asyncio
import json
import logging
import os
import sys
from pathlib import Path
from typing import Callable, List, Optional

from .config import EngineConfig, find_workspace, load_engine_config, load_workspaces
from .constants import ConfigPaths
from .engine import WorkspaceEngine
from .errors import RespaceError
from .models import TrackedArtifact, Workspace
from .progress import ConsoleProgressSink, ProgressSink
from .session_store import SessionStore

logger = logging.getLogger(__name__)

EngineFactory = Callable[[EngineConfig, ProgressSink], WorkspaceEngine]


def setup_logging(verbose: bool = False) -> None:
    """Setup logging to stderr."""
    log_level = "DEBUG" if verbose else os.environ.get("LOG_LEVEL", "WARNING").upper()

    # Configure root logger
    root_logger = logging.getLogger()
    root_logger.setLevel(log_level)

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(logging.Formatter("%(levelname)s [%(name)s] %(message)s"))
    root_logger.addHandler(handler)

    logger.debug(f"Logging configured: level={log_level}")


def _default_engine_factory(config: EngineConfig, sink: ProgressSink) -> WorkspaceEngine:
    return WorkspaceEngine.create(config, sink)


def _describe(artifact: TrackedArtifact) -> str:
    if artifact.is_application_level:
        target = artifact.target_path or "application"
        return f"{artifact.process_name:20} {target}"
    title = artifact.window_title or "(untitled)"
    return f"{artifact.process_name:20} window {artifact.system_window_id}  {title}"


class RespaceCLI:
    """CLI client for the workspace engine."""

    def __init__(
        self,
        engine_factory: Optional[EngineFactory] = None,
        store: Optional[SessionStore] = None,
    ):
        self.engine_factory = engine_factory or _default_engine_factory
        self.store = store or SessionStore()

    def _paths(self, args) -> dict:
        if args.config_dir:
            return ConfigPaths.for_config_dir(Path(args.config_dir).expanduser())
        return {
            "workspaces": ConfigPaths.WORKSPACES_FILE,
            "engine": ConfigPaths.ENGINE_CONFIG_FILE,
        }

    def _workspaces(self, args) -> List[Workspace]:
        return load_workspaces(self._paths(args)["workspaces"])

    def _engine(self, args) -> WorkspaceEngine:
        config = load_engine_config(self._paths(args)["engine"])
        sink = ConsoleProgressSink(quiet=args.json)
        return self.engine_factory(config, sink)

    async def cmd_list(self, args):
        """List workspaces."""
        workspaces = self._workspaces(args)
        open_sessions = self.store.list_open()

        if args.json:
            print(json.dumps([
                {
                    "id": w.id,
                    "name": w.name,
                    "items": len(w.items),
                    "open": w.id in open_sessions,
                }
                for w in workspaces
            ], indent=2))
            return 0

        if not workspaces:
            print("No workspaces found")
            return 0

        for workspace in workspaces:
            marker = "●" if workspace.id in open_sessions else " "
            print(f"{marker} {workspace.name:30} {len(workspace.items)} items")

        return 0

    async def cmd_launch(self, args):
        """Launch a workspace."""
        workspace = find_workspace(self._workspaces(args), args.workspace)
        engine = self._engine(args)

        report = await engine.launch_with_report(workspace.items, workspace.name)

        previous = self.store.load(workspace.id)
        artifacts = (previous.artifacts if previous else []) + report.artifacts
        if artifacts:
            self.store.save(workspace.id, workspace.name, artifacts)

        if args.json:
            print(json.dumps(report.model_dump(mode="json"), indent=2))
        else:
            print(f"Tracking {len(report.artifacts)} new artifact(s)")
            for artifact in report.artifacts:
                print(f"  {_describe(artifact)}")

        if args.verbose:
            print(json.dumps(engine.diagnostics(), indent=2))

        return 0 if report.succeeded else 1

    async def cmd_verify(self, args):
        """Verify a workspace's tracked artifacts."""
        workspace = find_workspace(self._workspaces(args), args.workspace)
        record = self.store.load(workspace.id)
        if record is None:
            if args.json:
                print(json.dumps([]))
            else:
                print(f"No open session for {workspace.name}")
            return 0

        engine = self._engine(args)
        alive = await engine.verify(record.artifacts)

        if alive:
            self.store.save(workspace.id, workspace.name, alive)
        else:
            self.store.remove(workspace.id)

        if args.json:
            print(json.dumps([a.model_dump(mode="json") for a in alive], indent=2))
            return 0

        print(f"{len(alive)}/{len(record.artifacts)} tracked artifact(s) still open")
        for artifact in alive:
            print(f"  {_describe(artifact)}")
        return 0

    async def cmd_close(self, args):
        """Close a workspace's tracked artifacts."""
        workspace = find_workspace(self._workspaces(args), args.workspace)
        record = self.store.load(workspace.id)
        artifacts = record.artifacts if record else []

        engine = self._engine(args)
        report = await engine.close(artifacts, workspace.name)

        still_open = set(report.still_open_ids)
        remaining = [a for a in artifacts if a.id in still_open]
        if remaining:
            self.store.save(workspace.id, workspace.name, remaining)
        else:
            self.store.remove(workspace.id)

        if args.json:
            print(json.dumps(report.model_dump(mode="json"), indent=2))
        elif report.errors:
            for error in report.errors:
                print(f"  Error: {error}")

        return 0 if report.succeeded else 1

    def build_parser(self) -> argparse.ArgumentParser:
        parser = argparse.ArgumentParser(
            description="Launch and close groups of apps, files, URLs and terminal commands",
            prog="respace",
        )
        parser.add_argument("--config-dir", help=f"Configuration directory (default: {ConfigPaths.CONFIG_DIR})")
        parser.add_argument("--json", action="store_true", help="Output as JSON")
        parser.add_argument("--verbose", "-v", action="store_true", help="Debug logging and launch phase timings")

        subparsers = parser.add_subparsers(dest="command", help="Command to execute")

        subparsers.add_parser("list", help="List workspaces")

        launch_parser = subparsers.add_parser("launch", help="Launch a workspace")
        launch_parser.add_argument("workspace", help="Workspace name or id")

        verify_parser = subparsers.add_parser("verify", help="Check which launched windows are still open")
        verify_parser.add_argument("workspace", help="Workspace name or id")

        close_parser = subparsers.add_parser("close", help="Close what a launch opened")
        close_parser.add_argument("workspace", help="Workspace name or id")

        return parser

    def run(self, argv: Optional[List[str]] = None) -> int:
        """Run CLI."""
        parser = self.build_parser()
        args = parser.parse_args(argv)

        if not args.command:
            parser.print_help()
            return 1

        setup_logging(args.verbose)

        # Route to command handler
        cmd_map = {
            "list": self.cmd_list,
            "launch": self.cmd_launch,
            "verify": self.cmd_verify,
            "close": self.cmd_close,
        }

        handler = cmd_map.get(args.command)
        if not handler:
            print(f"Unknown command: {args.command}")
            return 1

        try:
            return asyncio.run(handler(args))
        except KeyboardInterrupt:
            print("\nInterrupted")
            return 130
        except RespaceError as e:
            if args.json:
                print(json.dumps({"error": e.to_dict()}, indent=2))
            else:
                print(f"❌ {e.message}")
                if e.suggestion:
                    print(f"  → {e.suggestion}")
            return 1
        except Exception as e:
            logger.error(f"Unexpected error: {e}", exc_info=True)
            print(f"❌ Error: {e}")
            return 1


def main():
    """Main entry point."""
    cli = RespaceCLI()
    sys.exit(cli.run())


if __name__ == "__main__":
    main()
