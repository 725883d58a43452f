"""Playback, queue and reporting module."""

from .types import (
    ErrorKind,
    PlaybackStatus,
    PlayerError,
    PlayerState,
    QueueSnapshot,
    RepeatMode,
    Track,
)
from .queue import (
    PREVIOUS_TRACK_THRESHOLD,
    PlayQueue,
    compute_next,
    compute_previous,
    compute_shuffled_order,
    find_track_index,
)
from .undo import UndoableQueueMutation
from .tasks import BackgroundTasks, BestEffortResult, best_effort
from .mutations import optimistic_update
from .events import EventEmitter, Unsubscribe
from .scrobble import ScrobbleReporter, scrobble_threshold
from .cover_art import CoverArtResolver
from .engine import PlaybackEngine
from .command_handler import PlaybackCommandHandler
from .volume_handler import VolumeCommandHandler

__all__ = [
    # Types
    "ErrorKind",
    "PlaybackStatus",
    "PlayerError",
    "PlayerState",
    "QueueSnapshot",
    "RepeatMode",
    "Track",
    # Queue
    "PREVIOUS_TRACK_THRESHOLD",
    "PlayQueue",
    "UndoableQueueMutation",
    "compute_next",
    "compute_previous",
    "compute_shuffled_order",
    "find_track_index",
    # Async helpers
    "BackgroundTasks",
    "BestEffortResult",
    "EventEmitter",
    "Unsubscribe",
    "best_effort",
    "optimistic_update",
    # Reporting
    "CoverArtResolver",
    "ScrobbleReporter",
    "scrobble_threshold",
    # Engine
    "PlaybackEngine",
    "PlaybackCommandHandler",
    "VolumeCommandHandler",
]
