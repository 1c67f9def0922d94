"""
Launch orchestration services.

Scripting bridge, window probe, state capture, tracking resolution, the
launch scheduler and the close/verify orchestrator.
"""

from .script_bridge import ScriptBridge, parse_script_list, run_command
from .window_probe import WindowProbe, resolve_process_name
from .state_capture import StateCapture
from .tracking_resolver import decide_tracking_mode, diff_window_ids, resolve_tracking
from .launch_scheduler import LaunchScheduler, bucket_by_delay
from .close_orchestrator import CloseOrchestrator

__all__ = [
    "ScriptBridge",
    "parse_script_list",
    "run_command",
    "WindowProbe",
    "resolve_process_name",
    "StateCapture",
    "decide_tracking_mode",
    "diff_window_ids",
    "resolve_tracking",
    "LaunchScheduler",
    "bucket_by_delay",
    "CloseOrchestrator",
]
