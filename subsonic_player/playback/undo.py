"""
Reversible queue mutations.

Destructive queue operations capture a QueueSnapshot first so the caller
can offer an undo. Each snapshot restores at most once.
"""

import logging
from typing import Callable, Optional

from .queue import PlayQueue
from .types import QueueSnapshot

logger = logging.getLogger(__name__)


class UndoableQueueMutation:
    """Snapshot/restore wrapper around a PlayQueue."""

    def __init__(self, queue: PlayQueue) -> None:
        self._queue = queue

    def apply(self, mutation: Callable[[PlayQueue], None]) -> Optional[QueueSnapshot]:
        """
        Snapshot the queue, then run ``mutation`` on it.

        Returns:
            The snapshot, or None when the queue was empty (nothing to undo)
        """
        snapshot = None if self._queue.is_empty else self._queue.snapshot()
        mutation(self._queue)
        return snapshot

    def restore(self, snapshot: QueueSnapshot) -> bool:
        """
        Reinstate the queue from ``snapshot``.

        Returns:
            False if the snapshot was already consumed
        """
        if snapshot.consumed:
            logger.warning("Queue snapshot already restored, ignoring")
            return False
        snapshot.consumed = True
        self._queue.restore(snapshot)
        logger.info(
            f"Queue restored: {len(snapshot.previous_queue)} tracks, "
            f"index {snapshot.previous_index}"
        )
        return True
