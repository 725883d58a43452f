"""
Abstract transport interface.

Defines the contract between the playback engine and whatever actually
renders audio (a native audio API, an external process, a remote device).
"""

import logging
from abc import ABC, abstractmethod
from typing import Callable, Optional

from .types import TransportInfo, TransportTrackMetadata

logger = logging.getLogger(__name__)

# Event callback types
TimeUpdateCallback = Callable[[float], None]  # current time in seconds
DurationChangeCallback = Callable[[float], None]  # duration in seconds
EndedCallback = Callable[[], None]
PlayingCallback = Callable[[], None]
PausedCallback = Callable[[], None]
WaitingCallback = Callable[[], None]
CanPlayCallback = Callable[[], None]
ErrorCallback = Callable[[str], None]  # error message


class Transport(ABC):
    """
    Abstract base class for audio transports.

    Commands are coroutines; events are delivered through plain callbacks
    registered with the ``on_*`` methods. A transport only ever has one
    registered listener per event: the engine that owns it.
    """

    def __init__(self, name: str = "Transport"):
        """Initialize transport."""
        self.name = name
        self._volume: float = 1.0
        self._source: Optional[str] = None
        self._is_connected: bool = False

        # Event callbacks
        self._on_time_update: Optional[TimeUpdateCallback] = None
        self._on_duration_change: Optional[DurationChangeCallback] = None
        self._on_ended: Optional[EndedCallback] = None
        self._on_playing: Optional[PlayingCallback] = None
        self._on_paused: Optional[PausedCallback] = None
        self._on_waiting: Optional[WaitingCallback] = None
        self._on_can_play: Optional[CanPlayCallback] = None
        self._on_error: Optional[ErrorCallback] = None

    # =========================================================================
    # Source Control - Required
    # =========================================================================

    @abstractmethod
    async def set_source(self, url: str, metadata: TransportTrackMetadata) -> None:
        """Assign a new source. Does not start playback."""
        pass

    @abstractmethod
    async def clear_source(self) -> None:
        """Stop rendering and detach the current source."""
        pass

    @property
    def has_source(self) -> bool:
        """Check if a source is currently assigned."""
        return bool(self._source)

    # =========================================================================
    # Playback Control - Required
    # =========================================================================

    @abstractmethod
    async def play(self) -> None:
        """
        Start or resume playback of the current source.

        Raises if playback cannot be started.
        """
        pass

    @abstractmethod
    async def pause(self) -> None:
        """Pause playback."""
        pass

    @abstractmethod
    async def seek(self, seconds: float) -> None:
        """Move the playback position."""
        pass

    # =========================================================================
    # Volume Control - Required
    # =========================================================================

    @abstractmethod
    async def set_volume(self, level: float) -> None:
        """Set playback volume (0.0-1.0)."""
        pass

    @property
    def volume(self) -> float:
        """Current volume level (0.0-1.0)."""
        return self._volume

    # =========================================================================
    # Lifecycle
    # =========================================================================

    async def connect(self) -> bool:
        """Initialize the transport. Returns True if successful."""
        self._is_connected = True
        return True

    async def disconnect(self) -> None:
        """Release transport resources."""
        await self.clear_source()
        self._is_connected = False

    def is_connected(self) -> bool:
        """Check if transport is connected."""
        return self._is_connected

    # =========================================================================
    # Event Callbacks
    # =========================================================================

    def on_time_update(self, callback: Optional[TimeUpdateCallback]) -> None:
        """Register callback for periodic time reports."""
        self._on_time_update = callback

    def on_duration_change(self, callback: Optional[DurationChangeCallback]) -> None:
        """Register callback for duration becoming known."""
        self._on_duration_change = callback

    def on_ended(self, callback: Optional[EndedCallback]) -> None:
        """Register callback for natural end of the source."""
        self._on_ended = callback

    def on_playing(self, callback: Optional[PlayingCallback]) -> None:
        """Register callback for audio actually rendering."""
        self._on_playing = callback

    def on_paused(self, callback: Optional[PausedCallback]) -> None:
        """Register callback for pause."""
        self._on_paused = callback

    def on_waiting(self, callback: Optional[WaitingCallback]) -> None:
        """Register callback for buffering."""
        self._on_waiting = callback

    def on_can_play(self, callback: Optional[CanPlayCallback]) -> None:
        """Register callback for enough data being available to resume."""
        self._on_can_play = callback

    def on_error(self, callback: Optional[ErrorCallback]) -> None:
        """Register callback for rendering errors."""
        self._on_error = callback

    # =========================================================================
    # Event Notification Helpers
    # =========================================================================

    def _notify_time_update(self, seconds: float) -> None:
        if self._on_time_update:
            try:
                self._on_time_update(seconds)
            except Exception as e:
                logger.error(f"Time update callback error: {e}")

    def _notify_duration_change(self, seconds: float) -> None:
        if self._on_duration_change:
            try:
                self._on_duration_change(seconds)
            except Exception as e:
                logger.error(f"Duration change callback error: {e}")

    def _notify_ended(self) -> None:
        if self._on_ended:
            try:
                self._on_ended()
            except Exception as e:
                logger.error(f"Ended callback error: {e}")

    def _notify_playing(self) -> None:
        if self._on_playing:
            try:
                self._on_playing()
            except Exception as e:
                logger.error(f"Playing callback error: {e}")

    def _notify_paused(self) -> None:
        if self._on_paused:
            try:
                self._on_paused()
            except Exception as e:
                logger.error(f"Paused callback error: {e}")

    def _notify_waiting(self) -> None:
        if self._on_waiting:
            try:
                self._on_waiting()
            except Exception as e:
                logger.error(f"Waiting callback error: {e}")

    def _notify_can_play(self) -> None:
        if self._on_can_play:
            try:
                self._on_can_play()
            except Exception as e:
                logger.error(f"Can-play callback error: {e}")

    def _notify_error(self, message: str) -> None:
        if self._on_error:
            try:
                self._on_error(message)
            except Exception as e:
                logger.error(f"Error callback error: {e}")

    # =========================================================================
    # Info
    # =========================================================================

    def get_info(self) -> TransportInfo:
        """Get information about this transport."""
        return TransportInfo(transport_type="unknown", name=self.name)
