"""
Queue management.

Handles track ordering, shuffle and repeat. Navigation is computed by the
pure functions at module level; PlayQueue holds the materialized order and
the cursor.
"""

import logging
import random
from typing import Iterable, Optional, Sequence

from .types import QueueSnapshot, RepeatMode, Track

logger = logging.getLogger(__name__)

# Threshold for restart vs previous track (seconds)
PREVIOUS_TRACK_THRESHOLD = 3.0


# =============================================================================
# Transition functions
# =============================================================================


def compute_next(current: int, length: int, repeat_mode: RepeatMode) -> Optional[int]:
    """
    Index to play after ``current``.

    Traversal is always sequential over the materialized order; shuffle
    reorders the queue itself when toggled.

    Returns:
        Next index, or None when the queue is exhausted
    """
    if length == 0:
        return None

    # Repeat one: replay current track
    if repeat_mode == RepeatMode.ONE and 0 <= current < length:
        return current

    if current + 1 < length:
        return current + 1

    # At end of queue
    if repeat_mode == RepeatMode.ALL:
        return 0
    return None


def compute_previous(
    current: int,
    current_time: float,
    threshold: float = PREVIOUS_TRACK_THRESHOLD,
) -> Optional[int]:
    """
    Index to play for a "previous" request.

    Previous never wraps to the tail, whatever the repeat mode.

    Returns:
        Previous index, or None to restart the current track
    """
    if current_time > threshold:
        return None
    if current > 0:
        return current - 1
    return None


def compute_shuffled_order(
    tracks: Sequence[Track],
    anchor_index: int,
    rng: Optional[random.Random] = None,
) -> list[Track]:
    """
    Uniformly random permutation of ``tracks`` with the anchor fixed first.

    Keeping the anchor (the playing track) at position 0 lets shuffle be
    turned on without interrupting playback. A negative anchor shuffles
    everything.
    """
    rng = rng or random.Random()
    rest = [track for i, track in enumerate(tracks) if i != anchor_index]
    rng.shuffle(rest)
    if 0 <= anchor_index < len(tracks):
        return [tracks[anchor_index]] + rest
    return rest


def find_track_index(tracks: Sequence[Track], track_id: str) -> int:
    """Lowest index of a track with ``track_id``, or -1."""
    for i, track in enumerate(tracks):
        if track.id == track_id:
            return i
    return -1


# =============================================================================
# Queue state
# =============================================================================


class PlayQueue:
    """
    Materialized play order plus cursor.

    While shuffled, the insertion order is kept aside so disabling shuffle
    can restore it. When the current entry is removed the queue becomes
    "detached": the cursor then sits just before the entry that followed
    the removed one, so the next track is still the one the user expects.
    """

    def __init__(self, rng: Optional[random.Random] = None) -> None:
        self._tracks: list[Track] = []
        self._original: Optional[list[Track]] = None  # insertion order while shuffled
        self._index: int = -1
        self._detached: bool = False
        self._rng = rng or random.Random()

    # =========================================================================
    # State Access
    # =========================================================================

    @property
    def tracks(self) -> tuple[Track, ...]:
        return tuple(self._tracks)

    @property
    def index(self) -> int:
        return self._index

    @property
    def detached(self) -> bool:
        return self._detached

    @property
    def is_shuffled(self) -> bool:
        return self._original is not None

    @property
    def is_empty(self) -> bool:
        return len(self._tracks) == 0

    @property
    def current(self) -> Optional[Track]:
        """Track under the cursor (None while detached)."""
        if self._detached or not 0 <= self._index < len(self._tracks):
            return None
        return self._tracks[self._index]

    def __len__(self) -> int:
        return len(self._tracks)

    def __getitem__(self, index: int) -> Track:
        return self._tracks[index]

    # =========================================================================
    # Queue Management
    # =========================================================================

    def set_queue(self, tracks: Iterable[Track], start_index: int = 0) -> None:
        """Replace queue and cursor. Out-of-range start indexes clamp to 0."""
        self._tracks = list(tracks)
        self._original = None
        self._detached = False

        if not self._tracks:
            self._index = -1
        elif 0 <= start_index < len(self._tracks):
            self._index = start_index
        else:
            logger.debug(f"Start index {start_index} out of range, using 0")
            self._index = 0

    def append(self, tracks: Iterable[Track]) -> None:
        """Add tracks to the tail. Cursor is unchanged."""
        added = list(tracks)
        self._tracks.extend(added)
        if self._original is not None:
            self._original.extend(added)

    def remove_at(self, index: int) -> Optional[Track]:
        """
        Remove one entry.

        Returns:
            The removed track, or None if the index was out of range
        """
        if not 0 <= index < len(self._tracks):
            logger.debug(f"Remove ignored: index {index} out of range")
            return None

        removed = self._tracks.pop(index)
        if self._original is not None:
            for i, track in enumerate(self._original):
                if track is removed:
                    del self._original[i]
                    break

        if self._detached:
            # Cursor sits before the next entry
            if index <= self._index:
                self._index -= 1
        elif index < self._index:
            self._index -= 1
        elif index == self._index:
            self._detached = True
            self._index = index - 1
            logger.info(f"Removed current track {removed.id}; it keeps playing detached")

        return removed

    def move_to(self, index: int) -> Optional[Track]:
        """Point the cursor at ``index``, reattaching the queue."""
        if not 0 <= index < len(self._tracks):
            return None
        self._index = index
        self._detached = False
        return self._tracks[index]

    def clear(self) -> None:
        self._tracks = []
        self._original = None
        self._index = -1
        self._detached = False

    def replace_track(self, track: Track) -> None:
        """Swap every entry with the same ID for ``track`` (metadata updates)."""
        self._tracks = [track if t.id == track.id else t for t in self._tracks]
        if self._original is not None:
            self._original = [track if t.id == track.id else t for t in self._original]

    # =========================================================================
    # Navigation
    # =========================================================================

    def next_index(self, repeat_mode: RepeatMode) -> Optional[int]:
        """Index of the next track, or None if the queue is exhausted."""
        if self._detached and repeat_mode == RepeatMode.ONE:
            # The repeated track is no longer part of the queue
            repeat_mode = RepeatMode.OFF
        return compute_next(self._index, len(self._tracks), repeat_mode)

    def previous_index(
        self,
        current_time: float,
        threshold: float = PREVIOUS_TRACK_THRESHOLD,
    ) -> Optional[int]:
        """Index of the previous track, or None to restart the current one."""
        if self._detached:
            if current_time > threshold or self._index < 0:
                return None
            return self._index
        return compute_previous(self._index, current_time, threshold)

    # =========================================================================
    # Shuffle
    # =========================================================================

    def set_shuffle(self, enabled: bool) -> None:
        """
        Enable or disable shuffle.

        Enabling moves the current track to position 0 and shuffles the
        rest. Disabling restores insertion order and finds the current
        track again by ID (lowest index wins for duplicates).
        """
        if enabled:
            if self._original is None:
                self._original = list(self._tracks)
            anchor = -1 if self._detached else self._index
            self._tracks = compute_shuffled_order(self._tracks, anchor, self._rng)
            self._index = 0 if anchor >= 0 else -1
            logger.debug(f"Shuffle applied to {len(self._tracks)} tracks")
            return

        if self._original is None:
            return

        current = self.current
        self._tracks = self._original
        self._original = None
        if self._detached:
            self._index = -1
        elif current is not None:
            self._index = find_track_index(self._tracks, current.id)
        logger.debug("Original order restored")

    # =========================================================================
    # Snapshots
    # =========================================================================

    def snapshot(self) -> QueueSnapshot:
        """Capture contents and cursor for a later restore."""
        return QueueSnapshot(
            previous_queue=tuple(self._tracks),
            previous_index=self._index,
            previous_original=tuple(self._original) if self._original is not None else None,
        )

    def restore(self, snapshot: QueueSnapshot) -> None:
        """Reinstate contents and cursor from a snapshot."""
        self._tracks = list(snapshot.previous_queue)
        self._original = (
            list(snapshot.previous_original) if snapshot.previous_original is not None else None
        )
        self._detached = False
        if 0 <= snapshot.previous_index < len(self._tracks):
            self._index = snapshot.previous_index
        else:
            self._index = -1
