"""
Simulated transport.

Renders no audio. A virtual clock advances while "playing" and the
transport reports time updates, duration and natural end exactly like a
real renderer would, which makes it usable for headless runs and demos.
"""

import asyncio
import logging
from typing import Optional

from .base import Transport
from .types import TransportInfo, TransportTrackMetadata

logger = logging.getLogger(__name__)


class SimulatedTransport(Transport):
    """Virtual-clock transport driven by an asyncio task."""

    def __init__(
        self,
        tick_interval: float = 0.25,
        speed: float = 1.0,
        name: str = "Simulated",
    ):
        super().__init__(name)
        self._tick_interval = tick_interval
        self._speed = speed

        self._metadata: Optional[TransportTrackMetadata] = None
        self._position: float = 0.0
        self._duration: float = 0.0
        self._clock_task: Optional[asyncio.Task] = None

    @property
    def position(self) -> float:
        """Current virtual position in seconds."""
        return self._position

    @property
    def is_playing(self) -> bool:
        return self._clock_task is not None and not self._clock_task.done()

    async def set_source(self, url: str, metadata: TransportTrackMetadata) -> None:
        await self._cancel_clock()
        self._source = url
        self._metadata = metadata
        self._position = 0.0
        self._duration = metadata.duration or 0.0
        logger.debug(f"Source set: {metadata.track_id} ({self._duration:.1f}s)")
        if self._duration > 0:
            self._notify_duration_change(self._duration)

    async def clear_source(self) -> None:
        await self._cancel_clock()
        self._source = None
        self._metadata = None
        self._position = 0.0
        self._duration = 0.0

    async def play(self) -> None:
        if not self._source:
            raise RuntimeError("No source assigned")
        if self.is_playing:
            return
        self._clock_task = asyncio.create_task(self._clock_loop())
        self._notify_playing()

    async def pause(self) -> None:
        if not self.is_playing:
            return
        await self._cancel_clock()
        self._notify_paused()

    async def seek(self, seconds: float) -> None:
        if not self._source:
            return
        upper = self._duration if self._duration > 0 else seconds
        self._position = max(0.0, min(seconds, upper))
        self._notify_time_update(self._position)

    async def set_volume(self, level: float) -> None:
        self._volume = max(0.0, min(1.0, level))

    async def _clock_loop(self) -> None:
        """Advance the virtual position until the source ends."""
        try:
            while True:
                await asyncio.sleep(self._tick_interval)
                self._position += self._tick_interval * self._speed
                if self._duration > 0 and self._position >= self._duration:
                    self._position = self._duration
                    self._notify_time_update(self._position)
                    break
                self._notify_time_update(self._position)
        except asyncio.CancelledError:
            return

        self._clock_task = None
        logger.debug("Simulated source ended")
        self._notify_ended()

    async def _cancel_clock(self) -> None:
        """Cancel the clock task if running."""
        task = self._clock_task
        self._clock_task = None
        if task and not task.done() and task is not asyncio.current_task():
            task.cancel()
            try:
                await task
            except asyncio.CancelledError:
                pass

    def get_info(self) -> TransportInfo:
        return TransportInfo(transport_type="simulated", name=self.name)
