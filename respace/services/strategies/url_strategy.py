"""URL launch strategy. Opened pages are never tracked or closed."""

import logging
from typing import List

from ...models import ItemType, TrackedArtifact, WorkspaceItem
from .base import CloseOutcome, LaunchStrategy

logger = logging.getLogger(__name__)


class UrlStrategy(LaunchStrategy):
    """Open URLs in the default browser."""

    item_types = (ItemType.URL,)

    async def launch(self, item: WorkspaceItem) -> List[TrackedArtifact]:
        await self._open(item, item.path)
        return []

    async def close(self, artifacts: List[TrackedArtifact]) -> CloseOutcome:
        return CloseOutcome()

    async def verify_windows(self, artifacts: List[TrackedArtifact]) -> List[TrackedArtifact]:
        return []
