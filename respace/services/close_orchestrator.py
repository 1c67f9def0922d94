"""Close/verify orchestrator.

Routes tracked artifacts to the strategy that owns them (by item type) and
runs verification and closing across strategies concurrently. Closing
always re-verifies first, so an artifact the user already dismissed is
reported as already gone instead of being closed twice.
"""

import asyncio
import logging
from typing import Dict, List, Optional, Sequence, Tuple

from ..errors import UnknownItemTypeError
from ..models import ArtifactState, CloseReport, TrackedArtifact
from ..progress import LoggingProgressSink, ProgressSink
from .strategies import CloseOutcome, LaunchStrategy, StrategyRegistry

logger = logging.getLogger(__name__)


def advance_state(states: Dict[str, ArtifactState], artifact_id: str, target: ArtifactState) -> bool:
    """Move one artifact along its lifecycle.

    Returns:
        True if the transition was applied; invalid transitions are logged
        and leave the state unchanged
    """
    current = states[artifact_id]
    if not current.can_transition_to(target):
        logger.warning(
            f"Ignoring invalid state change for artifact {artifact_id}: "
            f"{current.value} -> {target.value}"
        )
        return False
    states[artifact_id] = target
    return True


class CloseOrchestrator:
    """Verify and close tracked artifacts through their strategies."""

    def __init__(self, registry: StrategyRegistry, sink: Optional[ProgressSink] = None):
        self.registry = registry
        self.sink = sink or LoggingProgressSink()

    def group_by_strategy(
        self,
        artifacts: Sequence[TrackedArtifact],
    ) -> List[Tuple[LaunchStrategy, List[TrackedArtifact]]]:
        """Group artifacts by owning strategy, in first-seen order.

        Item types sharing a strategy (file and folder) share a group.
        Artifacts of unregistered types are logged and left out.
        """
        groups: Dict[int, Tuple[LaunchStrategy, List[TrackedArtifact]]] = {}
        for artifact in artifacts:
            try:
                strategy = self.registry.get(artifact.item_type)
            except UnknownItemTypeError as e:
                logger.warning(f"Ignoring artifact {artifact.id}: {e.message}")
                continue
            groups.setdefault(id(strategy), (strategy, []))[1].append(artifact)
        return list(groups.values())

    async def verify(self, artifacts: Sequence[TrackedArtifact]) -> List[TrackedArtifact]:
        """Return the artifacts that still exist.

        Idempotent: verifying the result again yields the same set while
        nothing changes on screen.
        """
        if not artifacts:
            return []

        groups = self.group_by_strategy(artifacts)
        results = await asyncio.gather(
            *(strategy.verify_windows(group) for strategy, group in groups),
            return_exceptions=True,
        )

        alive: List[TrackedArtifact] = []
        for (strategy, group), result in zip(groups, results):
            if isinstance(result, Exception):
                logger.error(
                    f"Verification by {type(strategy).__name__} failed, dropping "
                    f"{len(group)} artifact(s): {result}",
                    exc_info=result,
                )
                continue
            alive.extend(result)

        logger.info(f"Verified {len(alive)}/{len(artifacts)} artifact(s) still alive")
        return alive

    async def close(self, artifacts: Sequence[TrackedArtifact], workspace_name: str) -> CloseReport:
        """Close whatever is still alive of a launched workspace.

        Close failures are logged and counted, never raised.
        """
        requested = len(artifacts)
        states = {a.id: ArtifactState.TRACKED for a in artifacts}

        alive = await self.verify(artifacts)
        alive_ids = {a.id for a in alive}
        for artifact_id in states:
            if artifact_id in alive_ids:
                advance_state(states, artifact_id, ArtifactState.VERIFIED_ALIVE)
            elif advance_state(states, artifact_id, ArtifactState.VERIFIED_DEAD):
                advance_state(states, artifact_id, ArtifactState.ALREADY_GONE)

        if not alive:
            self.sink.finish(
                True,
                "Workspace already closed",
                f'Nothing from "{workspace_name}" is still open',
            )
            return CloseReport(
                workspace_name=workspace_name,
                requested=requested,
                already_gone_count=requested,
                states=states,
            )

        groups = self.group_by_strategy(alive)
        total = len(alive)
        done = 0
        lock = asyncio.Lock()
        self.sink.update(0, total, f"Closing {workspace_name}...")

        async def close_group(strategy: LaunchStrategy, group: List[TrackedArtifact]) -> CloseOutcome:
            nonlocal done
            try:
                return await strategy.close(group)
            finally:
                async with lock:
                    done += len(group)
                    self.sink.update(done, total, f"{done}/{total} items closed")

        results = await asyncio.gather(
            *(close_group(strategy, group) for strategy, group in groups),
            return_exceptions=True,
        )

        errors: List[str] = []
        closed_ids: List[str] = []
        for (strategy, group), result in zip(groups, results):
            if strategy.advisory:
                # Best-effort close, the outcome is not accounted
                closed_ids.extend(a.id for a in group)
                continue
            if isinstance(result, Exception):
                logger.error(f"{type(strategy).__name__} failed to close {len(group)} artifact(s): {result}")
                errors.append(str(result))
                continue
            closed_ids.extend(result.closed_ids)
            errors.extend(result.errors)

        for artifact_id in closed_ids:
            if artifact_id in states:
                advance_state(states, artifact_id, ArtifactState.CLOSED)

        closed_count = sum(1 for s in states.values() if s is ArtifactState.CLOSED)
        report = CloseReport(
            workspace_name=workspace_name,
            requested=requested,
            alive=total,
            closed_count=closed_count,
            already_gone_count=requested - total,
            errors=errors,
            states=states,
        )
        self._finish(report)
        return report

    def _finish(self, report: CloseReport) -> None:
        logger.info(
            f"Workspace {report.workspace_name!r}: closed {report.closed_count}/{report.alive}, "
            f"{report.already_gone_count} already gone, {len(report.errors)} error(s)"
        )
        if report.succeeded:
            self.sink.finish(
                True,
                "Workspace closed",
                f'Closed {report.closed_count} items from "{report.workspace_name}"',
            )
        else:
            self.sink.finish(
                False,
                "Workspace closed with errors",
                f"{report.closed_count}/{report.alive} items closed. {report.first_error}",
            )
