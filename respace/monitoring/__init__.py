"""
Monitoring for respace.

Phase timing metrics for the launch scheduler.
"""

from .metrics import LaunchMetrics, PhaseTiming

__all__ = ["LaunchMetrics", "PhaseTiming"]
