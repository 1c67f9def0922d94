"""
Launch Metrics Module

Wall-clock timing of the launch phases:
- capture_before (per bucket)
- launch (per bucket)
- capture_after (per bucket, including the shared settle delay)
- bucket (whole three-phase protocol)
- other_item (each non-application item)

Window-probe latency is paid once per bucket rather than once per item;
these numbers show whether that holds in practice.
"""

import time
from dataclasses import dataclass, field
from typing import Dict
from contextlib import contextmanager
import logging

logger = logging.getLogger(__name__)


@dataclass
class PhaseTiming:
    """Accumulated timings of one launch phase"""
    phase: str
    count: int = 0
    total_ms: float = 0.0
    slowest_ms: float = 0.0

    def record(self, duration_ms: float):
        self.count += 1
        self.total_ms += duration_ms
        self.slowest_ms = max(self.slowest_ms, duration_ms)

    @property
    def avg_ms(self) -> float:
        return self.total_ms / self.count if self.count else 0.0

    def to_dict(self) -> dict:
        return {
            "count": self.count,
            "total_ms": round(self.total_ms, 2),
            "avg_ms": round(self.avg_ms, 2),
            "slowest_ms": round(self.slowest_ms, 2),
        }


@dataclass
class LaunchMetrics:
    """
    Phase timing tracker for one engine instance.

    Slow phases are logged; they usually mean an application's scripting
    interface is unresponsive.
    """
    phases: Dict[str, PhaseTiming] = field(default_factory=dict)
    slow_phase_ms: float = 5000.0

    def record_phase(self, phase: str, duration_ms: float):
        """
        Record one run of a phase

        Args:
            phase: Phase name (e.g., "capture_before")
            duration_ms: Duration in milliseconds
        """
        self.phases.setdefault(phase, PhaseTiming(phase)).record(duration_ms)

        if duration_ms > self.slow_phase_ms:
            logger.warning(
                f"Slow launch phase: {phase} took {duration_ms:.0f}ms "
                f"(threshold: {self.slow_phase_ms:.0f}ms)"
            )

    @contextmanager
    def measure(self, phase: str):
        """
        Time the enclosed block as one run of a phase, even if it raises

        Usage:
            with metrics.measure("capture_before"):
                await asyncio.gather(...)
        """
        start_time = time.perf_counter()
        try:
            yield
        finally:
            self.record_phase(phase, (time.perf_counter() - start_time) * 1000.0)

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON serialization"""
        return {name: timing.to_dict() for name, timing in self.phases.items()}
