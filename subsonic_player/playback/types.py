"""
Playback data model.

Tracks come from the catalog and are read-only to the engine. PlayerState
is the single aggregate the engine owns; subscribers only ever see frozen
copies of it.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Optional


class PlaybackStatus(Enum):
    """Playback status state machine."""

    IDLE = "idle"  # Nothing loaded, or load failed
    LOADING = "loading"  # Resolving / buffering before audio renders
    PLAYING = "playing"  # Audio rendering
    PAUSED = "paused"  # Source loaded, position maintained
    ENDED = "ended"  # Halted at the end of the queue


class RepeatMode(Enum):
    """Queue repeat modes."""

    OFF = "off"  # Stop after last track
    ALL = "all"  # Loop entire queue
    ONE = "one"  # Repeat current track

    def cycle(self) -> "RepeatMode":
        """Next mode in the Off -> All -> One -> Off cycle."""
        order = [RepeatMode.OFF, RepeatMode.ALL, RepeatMode.ONE]
        return order[(order.index(self) + 1) % len(order)]


@dataclass(frozen=True)
class Track:
    """
    A catalog track.

    Attributes:
        id: Catalog track ID (identity for every queue operation)
        title: Display title
        artist: Display artist name
        album: Display album name
        artist_id: Catalog artist ID
        album_id: Catalog album ID
        duration: Length in seconds, if the catalog knows it
        cover_art: Cover art ID for CoverArtResolver
        starred: Whether the user marked the track as favorite
    """

    id: str
    title: str = ""
    artist: str = ""
    album: str = ""
    artist_id: Optional[str] = None
    album_id: Optional[str] = None
    duration: Optional[float] = None
    cover_art: Optional[str] = None
    starred: bool = False

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Track":
        """Build a Track from a catalog song payload."""
        duration = data.get("duration")
        return cls(
            id=str(data["id"]),
            title=data.get("title", ""),
            artist=data.get("artist", ""),
            album=data.get("album", ""),
            artist_id=data.get("artistId"),
            album_id=data.get("albumId"),
            duration=float(duration) if duration is not None else None,
            cover_art=data.get("coverArt"),
            # The catalog sends a timestamp when starred and omits the key otherwise
            starred=bool(data.get("starred")),
        )


@dataclass(frozen=True)
class PlayerState:
    """
    Snapshot of the player.

    Invariants (outside of ``detached``):
    - ``queue_index == -1`` exactly when ``current_track is None``
    - ``queue[queue_index].id == current_track.id`` otherwise
    - ``0.0 <= volume <= 1.0``
    """

    current_track: Optional[Track] = None
    queue: tuple[Track, ...] = ()
    queue_index: int = -1
    status: PlaybackStatus = PlaybackStatus.IDLE
    current_time: float = 0.0
    duration: float = 0.0
    volume: float = 1.0
    shuffle: bool = False
    repeat_mode: RepeatMode = RepeatMode.OFF
    # Current track was removed from the queue while still playing
    detached: bool = False

    @property
    def is_playing(self) -> bool:
        return self.status == PlaybackStatus.PLAYING

    @property
    def is_loading(self) -> bool:
        return self.status == PlaybackStatus.LOADING


@dataclass
class QueueSnapshot:
    """
    Queue contents captured before a destructive mutation.

    Consumed at most once by a restore.
    """

    previous_queue: tuple[Track, ...]
    previous_index: int
    # Insertion order when the snapshot was taken with shuffle on
    previous_original: Optional[tuple[Track, ...]] = None
    consumed: bool = field(default=False, compare=False)


class ErrorKind(Enum):
    """Categories of non-fatal player failures."""

    RESOLUTION = "resolution"  # Stream URL or cover art lookup failed
    TRANSPORT = "transport"  # Render target reported an error
    REPORTING = "reporting"  # Now-playing / scrobble submission failed
    REMOTE_UPDATE = "remote_update"  # Optimistic remote change was rolled back


@dataclass(frozen=True)
class PlayerError:
    """Non-fatal failure published on the engine's error channel."""

    kind: ErrorKind
    message: str
    track_id: Optional[str] = None
