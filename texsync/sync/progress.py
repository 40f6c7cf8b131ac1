"""Progress reporting for sync runs.

The engine pushes ``SyncProgressInfo`` events into a ``SyncProgressTracker``;
presentation layers subscribe with a callback. Delivery is best effort: an
exception raised by the callback is logged and never aborts the sync.
"""

import logging
import threading
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Optional

logger = logging.getLogger(__name__)


class SyncStage(str, Enum):
    """Stages of a sync run, in the order they are entered."""

    FETCHING = "fetching"
    SCANNING = "scanning"
    COMPARING = "comparing"
    DOWNLOADING = "downloading"
    DELETING = "deleting"
    COMPLETE = "complete"


@dataclass(frozen=True)
class SyncProgressInfo:
    """A single progress notification."""

    stage: SyncStage
    message: str
    current: Optional[int] = None
    """1-based index of the item being processed (item stages only)"""

    total: Optional[int] = None
    """Number of items in the current stage (item stages only)"""


ProgressCallback = Callable[[SyncProgressInfo], None]


class SyncProgressTracker:
    """Forwards progress events to an optional callback."""

    def __init__(self, callback: Optional[ProgressCallback] = None):
        self.callback = callback
        self._lock = threading.Lock()

    def emit(
        self,
        stage: SyncStage,
        message: str,
        current: Optional[int] = None,
        total: Optional[int] = None,
    ) -> None:
        """Report a stage transition or item step."""
        info = SyncProgressInfo(stage, message, current, total)
        logger.debug(
            f"[{stage.value}] {message}"
            + (f" ({current}/{total})" if current is not None else "")
        )
        if self.callback is None:
            return
        # Worker threads report concurrently
        with self._lock:
            try:
                self.callback(info)
            except Exception as e:
                logger.warning(f"Progress callback failed: {e}")
