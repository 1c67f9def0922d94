"""Tracking mode resolution.

Decides, from a before/after diff of an application launch, what (if
anything) the launch created and at which granularity it can be tracked.
Deterministic and side-effect free: titles and the timestamp are supplied
by the caller.
"""

import logging
from datetime import datetime
from typing import Dict, List, Optional, Sequence

from ..constants import APPLICATION_SENTINEL
from ..models import BeforeLaunchState, TrackedArtifact, TrackingMode

logger = logging.getLogger(__name__)


def diff_window_ids(before: BeforeLaunchState, window_ids_after: Sequence[str]) -> List[str]:
    """Window ids present after launch but not before, in after-order.

    The sentinel id is reserved and never reported as a window.
    """
    seen = set()
    new_ids = []
    for window_id in window_ids_after:
        if window_id == APPLICATION_SENTINEL:
            continue
        if window_id in before.window_ids_before or window_id in seen:
            continue
        seen.add(window_id)
        new_ids.append(window_id)
    return new_ids


def decide_tracking_mode(was_running: bool, new_window_ids: Sequence[str]) -> Optional[TrackingMode]:
    """
    Decide tracking granularity.

    Rules:
    1. New window ids observed: WINDOW
    2. No new ids, process was not running before: APPLICATION
    3. No new ids, process was already running: None (never tracked, so
       pre-existing user work is never closed)
    """
    if new_window_ids:
        return TrackingMode.WINDOW
    if not was_running:
        return TrackingMode.APPLICATION
    return None


def resolve_tracking(
    before: BeforeLaunchState,
    new_window_ids: Sequence[str],
    titles: Optional[Dict[str, Optional[str]]] = None,
    now: Optional[datetime] = None,
) -> List[TrackedArtifact]:
    """
    Produce the artifacts for one application launch.

    Args:
        before: State captured before the launch
        new_window_ids: after - before, see diff_window_ids()
        titles: Best-effort window titles keyed by window id
        now: Launch timestamp for every produced artifact

    Returns:
        One WINDOW artifact per new id, exactly one APPLICATION artifact
        with the sentinel id, or nothing
    """
    titles = titles or {}
    launched_at = now or datetime.now()

    if before.was_running and not before.window_ids_known:
        logger.warning(
            f"{before.process_name} was already running and its windows could not be "
            f"listed before launch, not tracking"
        )
        return []

    mode = decide_tracking_mode(before.was_running, new_window_ids)

    if mode is None:
        logger.debug(
            f"{before.process_name} was already running with no new windows, not tracking"
        )
        return []

    if mode is TrackingMode.APPLICATION:
        return [
            TrackedArtifact(
                system_window_id=APPLICATION_SENTINEL,
                item_id=before.item.id,
                process_name=before.process_name,
                item_type=before.item.type,
                tracking_mode=TrackingMode.APPLICATION,
                launched_at=launched_at,
            )
        ]

    return [
        TrackedArtifact(
            system_window_id=window_id,
            item_id=before.item.id,
            process_name=before.process_name,
            window_title=titles.get(window_id),
            item_type=before.item.type,
            tracking_mode=TrackingMode.WINDOW,
            launched_at=launched_at,
        )
        for window_id in dict.fromkeys(new_window_ids)
    ]
