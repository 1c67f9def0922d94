"""Launch scheduler.

Launches a workspace's items as one batch:

1. Application items are bucketed by delay and buckets run in ascending
   delay order. Before a non-zero bucket the pipeline sleeps for that
   bucket's delay, measured from the end of the previous bucket.
2. Inside a bucket a three-phase protocol runs across all items at once:
   A) capture_before for every item, B) launch command for every item,
   C) one shared settle delay, then capture_after for every item. Each phase
   is a barrier, so window-probe latency is paid once per bucket instead of
   once per item, and slow applications never serialize fast ones.
3. Other items (files, folders, URLs, terminal commands) launch
   independently, each after its own delay, alongside the buckets.

Individual failures are recorded per item and never abort the batch.
"""

from __future__ import annotations

import asyncio
import logging
from collections import defaultdict
from typing import Any, Iterable, List, Optional, Sequence, Tuple

from ..config import LaunchTimings
from ..errors import error_message
from ..models import LaunchReport, TrackedArtifact, WorkspaceItem
from ..monitoring import LaunchMetrics
from ..progress import LoggingProgressSink, ProgressSink
from .strategies import AppStrategy, StrategyRegistry

logger = logging.getLogger(__name__)


def bucket_by_delay(items: Iterable[WorkspaceItem]) -> List[Tuple[int, List[WorkspaceItem]]]:
    """Group items by delay (ms), ascending; item order kept within a bucket."""
    buckets = defaultdict(list)
    for item in items:
        buckets[item.delay].append(item)
    return sorted(buckets.items())


class LaunchTally:
    """Running success/failure counts and the artifact accumulator.

    The only state shared between concurrently launching items. Writers
    never read each other's in-flight state, so one lock is enough.
    """

    def __init__(self, workspace_name: str, total: int, sink: ProgressSink):
        self.workspace_name = workspace_name
        self.total = total
        self.sink = sink
        self.success_count = 0
        self.failure_count = 0
        self.errors: List[str] = []
        self.artifacts: List[TrackedArtifact] = []
        self._lock = asyncio.Lock()

    async def record_success(self, item: WorkspaceItem, artifacts: Sequence[TrackedArtifact]) -> None:
        async with self._lock:
            self.success_count += 1
            self.artifacts.extend(artifacts)
            self.sink.update(
                self.success_count,
                self.total,
                f"{self.success_count}/{self.total} items launched",
            )
        logger.debug(f"Launched {item.name}: {len(artifacts)} artifact(s)")

    async def record_failure(self, item: WorkspaceItem, error: BaseException) -> None:
        message = error_message(error)
        async with self._lock:
            self.failure_count += 1
            self.errors.append(message)
            self.sink.update(
                self.success_count,
                self.total,
                f"{self.success_count}/{self.total} items launched",
            )
        logger.error(f"Error launching {item.name}: {message}")

    def to_report(self) -> LaunchReport:
        return LaunchReport(
            workspace_name=self.workspace_name,
            total=self.total,
            success_count=self.success_count,
            failure_count=self.failure_count,
            errors=list(self.errors),
            artifacts=list(self.artifacts),
        )


class LaunchScheduler:
    """Delay-bucketed, phase-parallel workspace launcher.

    Example:
        >>> scheduler = LaunchScheduler(StrategyRegistry.default(ScriptBridge()))
        >>> report = await scheduler.run(workspace.items, workspace.name)
        >>> report.success_count, len(report.artifacts)
        (3, 2)
    """

    def __init__(
        self,
        registry: StrategyRegistry,
        timings: Optional[LaunchTimings] = None,
        sink: Optional[ProgressSink] = None,
        metrics: Optional[LaunchMetrics] = None,
    ):
        self.registry = registry
        self.timings = timings or LaunchTimings()
        self.sink = sink or LoggingProgressSink()
        self.metrics = metrics or LaunchMetrics()

    async def run(self, items: Sequence[WorkspaceItem], workspace_name: str) -> LaunchReport:
        """Launch every item and collect the tracked artifacts.

        Returns:
            Best-effort report; artifacts are in no particular order
        """
        if not items:
            self.sink.finish(False, "Workspace is empty", f'"{workspace_name}" has no items to launch')
            return LaunchReport(workspace_name=workspace_name)

        tally = LaunchTally(workspace_name, len(items), self.sink)
        self.sink.update(0, tally.total, f"Launching {workspace_name}...")

        applications = [item for item in items if item.type.is_application]
        others = [item for item in items if not item.type.is_application]

        logger.info(
            f"Launching workspace {workspace_name!r}: {len(applications)} application(s), "
            f"{len(others)} other item(s)"
        )

        await asyncio.gather(
            self._run_application_buckets(applications, tally),
            self._run_other_items(others, tally),
        )

        report = tally.to_report()
        self._finish(report)
        return report

    async def _run_application_buckets(self, items: List[WorkspaceItem], tally: LaunchTally) -> None:
        if not items:
            return

        try:
            strategy = self.registry.application
        except Exception as e:
            for item in items:
                await tally.record_failure(item, e)
            return

        for delay_ms, bucket in bucket_by_delay(items):
            if delay_ms > 0:
                logger.debug(f"Waiting {delay_ms}ms before launching {len(bucket)} application(s)")
                await asyncio.sleep(delay_ms / 1000.0)

            with self.metrics.measure("bucket"):
                await self.run_bucket(bucket, strategy, tally)

    async def run_bucket(
        self,
        bucket: List[WorkspaceItem],
        strategy: AppStrategy,
        tally: LaunchTally,
    ) -> None:
        """Run the three-phase protocol for one delay bucket."""
        # Phase A: snapshot state before anything in this bucket launches
        with self.metrics.measure("capture_before"):
            results = await asyncio.gather(
                *(strategy.capture_before(item) for item in bucket),
                return_exceptions=True,
            )
        captured = await self._collect(bucket, results, tally)
        if not captured:
            return

        # Phase B: issue every launch command without waiting for windows
        with self.metrics.measure("launch"):
            results = await asyncio.gather(
                *(strategy.launch_command(before.item) for before in captured),
                return_exceptions=True,
            )
        launched = [
            before for before, _ in await self._collect(
                [before.item for before in captured],
                results,
                tally,
                pair_with=captured,
            )
        ]
        if not launched:
            return

        # Phase C: one shared settle delay, then diff every item
        with self.metrics.measure("capture_after"):
            await asyncio.sleep(self.timings.bucket_settle_delay)
            results = await asyncio.gather(
                *(strategy.capture_after(before) for before in launched),
                return_exceptions=True,
            )

        for before, result in zip(launched, results):
            if isinstance(result, Exception):
                await tally.record_failure(before.item, result)
            elif isinstance(result, BaseException):
                raise result
            else:
                await tally.record_success(before.item, result)

    async def _collect(
        self,
        items: Sequence[WorkspaceItem],
        results: Sequence[Any],
        tally: LaunchTally,
        pair_with: Optional[Sequence[Any]] = None,
    ) -> List[Any]:
        """Record phase failures and return what may proceed to the next phase.

        Without pair_with the successful results are returned; with it, the
        (pair_with[i], result) pairs of successful items.
        """
        survivors = []
        for index, (item, result) in enumerate(zip(items, results)):
            if isinstance(result, Exception):
                await tally.record_failure(item, result)
            elif isinstance(result, BaseException):
                raise result
            elif pair_with is None:
                survivors.append(result)
            else:
                survivors.append((pair_with[index], result))
        return survivors

    async def _run_other_items(self, items: List[WorkspaceItem], tally: LaunchTally) -> None:
        if items:
            await asyncio.gather(*(self._launch_other(item, tally) for item in items))

    async def _launch_other(self, item: WorkspaceItem, tally: LaunchTally) -> None:
        if item.delay > 0:
            await asyncio.sleep(item.delay_seconds)

        try:
            strategy = self.registry.get(item.type)
            with self.metrics.measure("other_item"):
                artifacts = await strategy.launch(item)
        except Exception as e:
            await tally.record_failure(item, e)
            return

        await tally.record_success(item, artifacts)

    def _finish(self, report: LaunchReport) -> None:
        logger.info(
            f"Workspace {report.workspace_name!r}: {report.success_count}/{report.total} launched, "
            f"{len(report.artifacts)} artifact(s) tracked"
        )

        if report.failure_count == 0:
            self.sink.finish(
                True,
                "Workspace launched successfully",
                f'Opened {report.success_count} items from "{report.workspace_name}"',
            )
        else:
            self.sink.finish(
                False,
                "Workspace launched with errors",
                f"{report.success_count}/{report.total} items opened, "
                f"{report.failure_count} failed. {report.first_error}",
            )
