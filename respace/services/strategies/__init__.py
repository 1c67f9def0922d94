"""
Item launch strategies.

One strategy per item type behind the launch/close/verify_windows interface,
looked up through an explicit StrategyRegistry.
"""

from .base import CloseOutcome, LaunchStrategy
from .app_strategy import AppStrategy
from .file_strategy import FileStrategy
from .url_strategy import UrlStrategy
from .terminal_strategy import TerminalStrategy
from .registry import StrategyRegistry

__all__ = [
    "CloseOutcome",
    "LaunchStrategy",
    "AppStrategy",
    "FileStrategy",
    "UrlStrategy",
    "TerminalStrategy",
    "StrategyRegistry",
]
