"""Workspace engine: the caller-facing facade.

Wires the scripting bridge, window probe, strategy registry, launch
scheduler and close/verify orchestrator together. Callers hold on to the
artifact list returned by launch() and hand it back to verify() and
close(); the engine keeps no state between calls.
"""

import logging
from typing import List, Optional, Sequence

from .config import EngineConfig
from .models import CloseReport, LaunchReport, TrackedArtifact, WorkspaceItem
from .monitoring import LaunchMetrics
from .progress import LoggingProgressSink, ProgressSink
from .services import CloseOrchestrator, LaunchScheduler, ScriptBridge, WindowProbe
from .services.strategies import StrategyRegistry

logger = logging.getLogger(__name__)


class WorkspaceEngine:
    """Launch, verify and close workspaces.

    Example:
        >>> engine = WorkspaceEngine.create(load_engine_config(path))
        >>> artifacts = await engine.launch(workspace.items, workspace.name)
        >>> alive = await engine.verify(artifacts)
        >>> report = await engine.close(alive, workspace.name)
    """

    def __init__(
        self,
        registry: StrategyRegistry,
        config: Optional[EngineConfig] = None,
        sink: Optional[ProgressSink] = None,
        metrics: Optional[LaunchMetrics] = None,
        bridge: Optional[ScriptBridge] = None,
    ):
        self.config = config or EngineConfig()
        self.registry = registry
        self.bridge = bridge
        self.sink = sink or LoggingProgressSink()
        self.metrics = metrics or LaunchMetrics()

        self.scheduler = LaunchScheduler(registry, self.config.timings, self.sink, self.metrics)
        self.orchestrator = CloseOrchestrator(registry, self.sink)

    @classmethod
    def create(
        cls,
        config: Optional[EngineConfig] = None,
        sink: Optional[ProgressSink] = None,
        bridge: Optional[ScriptBridge] = None,
    ) -> "WorkspaceEngine":
        """Build an engine backed by the real OS scripting bridge."""
        config = config or EngineConfig()
        bridge = bridge or ScriptBridge()
        probe = WindowProbe(bridge, config.timings)
        registry = StrategyRegistry.default(bridge, probe, config)
        return cls(registry, config, sink, bridge=bridge)

    async def launch(self, items: Sequence[WorkspaceItem], workspace_name: str) -> List[TrackedArtifact]:
        """Launch a workspace and return the artifacts it created."""
        report = await self.launch_with_report(items, workspace_name)
        return report.artifacts

    async def launch_with_report(self, items: Sequence[WorkspaceItem], workspace_name: str) -> LaunchReport:
        return await self.scheduler.run(items, workspace_name)

    async def verify(self, artifacts: Sequence[TrackedArtifact]) -> List[TrackedArtifact]:
        return await self.orchestrator.verify(artifacts)

    async def close(self, artifacts: Sequence[TrackedArtifact], workspace_name: str) -> CloseReport:
        return await self.orchestrator.close(artifacts, workspace_name)

    def diagnostics(self) -> dict:
        """Launch phase timings and, when known, scripting bridge counters."""
        data = {"phases": self.metrics.to_dict()}
        if self.bridge is not None:
            data["bridge"] = self.bridge.get_stats()
        return data
