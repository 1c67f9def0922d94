"""Strategy registry.

An explicit, constructed mapping from item type to strategy, passed into
the scheduler and the close/verify orchestrator. Tests build it with fakes.
"""

import logging
from typing import Dict, Mapping, Optional

from ...config import EngineConfig
from ...errors import UnknownItemTypeError
from ...models import ItemType
from ..script_bridge import ScriptBridge
from ..window_probe import WindowProbe
from .app_strategy import AppStrategy
from .base import LaunchStrategy
from .file_strategy import FileStrategy
from .terminal_strategy import TerminalStrategy
from .url_strategy import UrlStrategy

logger = logging.getLogger(__name__)


class StrategyRegistry:
    """Item type to launch strategy lookup."""

    def __init__(self, strategies: Mapping[ItemType, LaunchStrategy]):
        self._strategies: Dict[ItemType, LaunchStrategy] = dict(strategies)

    def get(self, item_type: ItemType) -> LaunchStrategy:
        """Return the strategy for an item type.

        Raises:
            UnknownItemTypeError: If no strategy is registered
        """
        strategy = self._strategies.get(item_type)
        if strategy is None:
            raise UnknownItemTypeError(getattr(item_type, "value", str(item_type)))
        return strategy

    @property
    def application(self) -> AppStrategy:
        strategy = self.get(ItemType.APP)
        if not isinstance(strategy, AppStrategy):
            raise TypeError(f"application strategy must be an AppStrategy, got {type(strategy).__name__}")
        return strategy

    def __contains__(self, item_type: ItemType) -> bool:
        return item_type in self._strategies

    @classmethod
    def default(
        cls,
        bridge: ScriptBridge,
        probe: Optional[WindowProbe] = None,
        config: Optional[EngineConfig] = None,
    ) -> "StrategyRegistry":
        """Build the standard registry covering every ItemType."""
        config = config or EngineConfig()
        probe = probe or WindowProbe(bridge, config.timings)

        apps = AppStrategy(bridge, config, probe)
        files = FileStrategy(bridge, config)
        urls = UrlStrategy(bridge, config)
        terminals = TerminalStrategy(bridge, config)

        strategies: Dict[ItemType, LaunchStrategy] = {}
        for item_type in ItemType:
            match item_type:
                case ItemType.APP:
                    strategies[item_type] = apps
                case ItemType.FILE | ItemType.FOLDER:
                    strategies[item_type] = files
                case ItemType.URL:
                    strategies[item_type] = urls
                case ItemType.TERMINAL:
                    strategies[item_type] = terminals

        logger.debug(f"Strategy registry built for {len(strategies)} item types")
        return cls(strategies)
