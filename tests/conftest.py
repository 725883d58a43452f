"""Shared fixtures: scriptable fakes of the transport and catalog."""

import asyncio
import random
from typing import Optional

import pytest

from subsonic_player.playback import PlaybackEngine, PlayQueue, Track
from subsonic_player.transport import Transport, TransportInfo, TransportTrackMetadata


class FakeTransport(Transport):
    """
    Transport that records commands and only emits events when told to.

    Tests drive time, end of track, buffering and errors through the
    ``emit_*`` helpers.
    """

    def __init__(self) -> None:
        super().__init__(name="Fake")
        self.calls: list[tuple] = []
        self.metadata: Optional[TransportTrackMetadata] = None
        self.play_error: Optional[Exception] = None
        self.pause_error: Optional[Exception] = None
        # Events emitted from inside play(), before it returns
        self.play_events: tuple[str, ...] = ()

    async def set_source(self, url: str, metadata: TransportTrackMetadata) -> None:
        self.calls.append(("set_source", url))
        self._source = url
        self.metadata = metadata

    async def clear_source(self) -> None:
        self.calls.append(("clear_source",))
        self._source = None
        self.metadata = None

    async def play(self) -> None:
        self.calls.append(("play",))
        if self.play_error:
            raise self.play_error
        for event in self.play_events:
            getattr(self, f"emit_{event}")()

    async def pause(self) -> None:
        self.calls.append(("pause",))
        if self.pause_error:
            raise self.pause_error

    async def seek(self, seconds: float) -> None:
        self.calls.append(("seek", seconds))

    async def set_volume(self, level: float) -> None:
        self.calls.append(("set_volume", level))
        self._volume = level

    def get_info(self) -> TransportInfo:
        return TransportInfo(transport_type="fake", name=self.name)

    @property
    def source(self) -> Optional[str]:
        return self._source

    def commands(self, name: str) -> list[tuple]:
        return [call for call in self.calls if call[0] == name]

    def emit_time(self, seconds: float) -> None:
        self._notify_time_update(seconds)

    def emit_duration(self, seconds: float) -> None:
        self._notify_duration_change(seconds)

    def emit_ended(self) -> None:
        self._notify_ended()

    def emit_playing(self) -> None:
        self._notify_playing()

    def emit_paused(self) -> None:
        self._notify_paused()

    def emit_waiting(self) -> None:
        self._notify_waiting()

    def emit_can_play(self) -> None:
        self._notify_can_play()

    def emit_error(self, message: str = "decode error") -> None:
        self._notify_error(message)


class FakeCatalog:
    """
    Catalog client with controllable latency and failures.

    ``hold_stream`` / ``hold_cover_art`` return a future that the pending
    lookup waits on, which lets tests interleave concurrent requests.
    """

    def __init__(self) -> None:
        self.stream_requests: list[str] = []
        self.reports: list[tuple[str, bool]] = []
        self.cover_art_requests: list[tuple[str, int]] = []
        self.star_calls: list[tuple[str, bool]] = []

        self.failing_streams: set[str] = set()
        self.fail_reports = False
        self.fail_cover_art = False
        self.fail_star = False

        self._stream_gates: dict[str, asyncio.Future] = {}
        self._cover_art_gate: Optional[asyncio.Future] = None

    def hold_stream(self, track_id: str) -> asyncio.Future:
        gate = asyncio.get_running_loop().create_future()
        self._stream_gates[track_id] = gate
        return gate

    def hold_cover_art(self) -> asyncio.Future:
        self._cover_art_gate = asyncio.get_running_loop().create_future()
        return self._cover_art_gate

    async def resolve_stream_url(self, track_id: str) -> str:
        self.stream_requests.append(track_id)
        gate = self._stream_gates.pop(track_id, None)
        if gate is not None:
            await gate
        if track_id in self.failing_streams:
            raise ConnectionError(f"stream {track_id} unavailable")
        return f"http://stream/{track_id}"

    async def report_play_event(self, track_id: str, *, submission: bool) -> None:
        self.reports.append((track_id, submission))
        if self.fail_reports:
            raise ConnectionError("scrobble endpoint down")

    async def resolve_cover_art_url(self, cover_art_id: str, size: int) -> str:
        self.cover_art_requests.append((cover_art_id, size))
        if self._cover_art_gate is not None:
            await self._cover_art_gate
        if self.fail_cover_art:
            raise ConnectionError("cover art lookup failed")
        return f"http://art/{cover_art_id}?size={size}"

    async def set_starred(self, track_id: str, starred: bool) -> None:
        self.star_calls.append((track_id, starred))
        if self.fail_star:
            raise ConnectionError("star failed")

    @property
    def now_playing(self) -> list[str]:
        return [track_id for track_id, submission in self.reports if not submission]

    @property
    def scrobbles(self) -> list[str]:
        return [track_id for track_id, submission in self.reports if submission]


def make_tracks(*ids: str, duration: Optional[float] = 300.0) -> list[Track]:
    """Tracks named after their IDs."""
    return [
        Track(id=track_id, title=f"Track {track_id}", artist="Artist", duration=duration,
              cover_art=f"al-{track_id}")
        for track_id in ids
    ]


async def settle(rounds: int = 5) -> None:
    """Let pending callbacks and tasks run."""
    for _ in range(rounds):
        await asyncio.sleep(0)


@pytest.fixture
def transport() -> FakeTransport:
    return FakeTransport()


@pytest.fixture
def catalog() -> FakeCatalog:
    return FakeCatalog()


@pytest.fixture
def engine(transport: FakeTransport, catalog: FakeCatalog) -> PlaybackEngine:
    return PlaybackEngine(
        transport=transport,
        catalog=catalog,
        queue=PlayQueue(rng=random.Random(1234)),
    )
