"""
Transport types.
"""

from dataclasses import dataclass
from typing import Any, Optional


@dataclass
class TransportTrackMetadata:
    """
    Track metadata handed to a transport alongside the source URL.

    Transports that cannot probe the stream themselves (the simulated
    transport, remote renderers) use ``duration`` as the track length.
    """

    track_id: str
    title: str = ""
    artist: str = ""
    album: str = ""
    duration: Optional[float] = None  # seconds
    cover_art_url: str = ""

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {
            "track_id": self.track_id,
            "title": self.title,
            "artist": self.artist,
            "album": self.album,
            "duration": self.duration,
            "cover_art_url": self.cover_art_url,
        }


@dataclass
class TransportInfo:
    """Information about a transport, for display and logging."""

    transport_type: str  # 'simulated', ...
    name: str

    def __str__(self) -> str:
        return f"{self.name} ({self.transport_type})"
