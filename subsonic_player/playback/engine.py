"""
Playback engine.

Core playback controller that orchestrates queue, scrobbling, cover art
and the audio transport.
"""

import asyncio
import logging
from dataclasses import replace
from typing import Awaitable, Callable, Optional, Sequence

from subsonic_player.catalog import CatalogClient
from subsonic_player.transport import Transport, TransportTrackMetadata

from .cover_art import CoverArtResolver
from .events import EventEmitter, Unsubscribe
from .mutations import optimistic_update
from .queue import PREVIOUS_TRACK_THRESHOLD, PlayQueue, find_track_index
from .scrobble import ScrobbleReporter
from .tasks import BackgroundTasks, BestEffortResult
from .types import (
    ErrorKind,
    PlaybackStatus,
    PlayerError,
    PlayerState,
    QueueSnapshot,
    Track,
)
from .undo import UndoableQueueMutation

logger = logging.getLogger(__name__)


def clamp_volume(level: float) -> float:
    return max(0.0, min(1.0, level))


class PlaybackEngine:
    """
    Main playback controller.

    Coordinates:
    - PlayQueue: Track ordering, shuffle, repeat
    - ScrobbleReporter: Now-playing and scrobble events
    - CoverArtResolver: Cover art URLs
    - Transport: Actual audio rendering

    State machine:
        IDLE -> LOADING (on play_song)
        LOADING -> PLAYING (when the transport renders)
        LOADING -> IDLE (on resolution or transport failure)
        PLAYING <-> PAUSED
        PLAYING/PAUSED -> ENDED (queue exhausted)
        any -> LOADING (on play_song)
        any -> IDLE (on clear_queue)

    Every mutation replaces the frozen PlayerState and notifies
    subscribers synchronously, so observers never see partial updates.
    Loads are stamped with a generation number; a load whose stream URL
    arrives after a newer load started is discarded.
    """

    def __init__(
        self,
        transport: Transport,
        catalog: CatalogClient,
        queue: Optional[PlayQueue] = None,
        cover_art: Optional[CoverArtResolver] = None,
        scrobbler: Optional[ScrobbleReporter] = None,
        initial_volume: float = 1.0,
        previous_threshold: float = PREVIOUS_TRACK_THRESHOLD,
    ):
        """Initialize engine."""
        self.transport = transport
        self.catalog = catalog
        self.queue = queue or PlayQueue()
        self._undo = UndoableQueueMutation(self.queue)

        self._tasks = BackgroundTasks()
        self.cover_art = cover_art or CoverArtResolver(catalog.resolve_cover_art_url)
        self.scrobbler = scrobbler or ScrobbleReporter(self._report_play_event, tasks=self._tasks)
        self.scrobbler.set_failure_callback(self._on_report_failed)

        self._previous_threshold = previous_threshold

        # State and observers
        self._state = PlayerState(volume=clamp_volume(initial_volume))
        self._state_changes: EventEmitter[PlayerState] = EventEmitter("state")
        self._errors: EventEmitter[PlayerError] = EventEmitter("error")

        # Load tracking
        self._generation: int = 0
        self._awaiting_source: bool = False  # stream URL still resolving

        # Buffering
        self._buffering: bool = False
        self._status_before_buffering: PlaybackStatus = PlaybackStatus.PLAYING

        # Volume to restore when unmuting
        self._volume_before_mute: Optional[float] = None

        # Wire up transport callbacks
        self.transport.on_time_update(self._on_time_update)
        self.transport.on_duration_change(self._on_duration_change)
        self.transport.on_ended(self._on_ended)
        self.transport.on_playing(self._on_playing)
        self.transport.on_paused(self._on_paused)
        self.transport.on_waiting(self._on_waiting)
        self.transport.on_can_play(self._on_can_play)
        self.transport.on_error(self._on_transport_error)

        logger.info("PlaybackEngine initialized")

    # =========================================================================
    # Observation
    # =========================================================================

    @property
    def state(self) -> PlayerState:
        """Current state snapshot."""
        return self._state

    def subscribe(self, listener: Callable[[PlayerState], None]) -> Unsubscribe:
        """Register a listener called with every new state snapshot."""
        return self._state_changes.subscribe(listener)

    def subscribe_errors(self, listener: Callable[[PlayerError], None]) -> Unsubscribe:
        """Register a listener for non-fatal failures."""
        return self._errors.subscribe(listener)

    def _update(self, **changes) -> None:
        new_state = replace(self._state, **changes)
        if new_state == self._state:
            return
        self._state = new_state
        self._state_changes.emit(new_state)

    def _queue_fields(self) -> dict:
        return {
            "queue": self.queue.tracks,
            "queue_index": self.queue.index,
            "detached": self.queue.detached,
        }

    def _report_error(self, kind: ErrorKind, message: str, track_id: Optional[str] = None) -> None:
        self._errors.emit(PlayerError(kind=kind, message=message, track_id=track_id))

    # =========================================================================
    # Lifecycle
    # =========================================================================

    async def drain(self) -> None:
        """Wait for outstanding background work (auto-advance, reports)."""
        await self._tasks.drain()
        await self.scrobbler.drain()

    async def shutdown(self) -> None:
        """Invalidate in-flight loads and wait for background work."""
        self._invalidate_loads()
        await self.drain()
        logger.info("PlaybackEngine shut down")

    # =========================================================================
    # Playback Commands
    # =========================================================================

    async def play_song(
        self,
        track: Track,
        queue: Optional[Sequence[Track]] = None,
        start_index: Optional[int] = None,
    ) -> bool:
        """
        Play a track, replacing the queue.

        Args:
            track: Track to play
            queue: New queue (defaults to just ``track``)
            start_index: Position of ``track`` in ``queue``

        Returns:
            True if playback started. Failures are published on the
            error channel, never raised.
        """
        tracks = list(queue) if queue else [track]
        index = start_index if start_index is not None else 0

        if not 0 <= index < len(tracks) or tracks[index].id != track.id:
            found = find_track_index(tracks, track.id)
            if found < 0:
                logger.warning(f"Track {track.id} not in supplied queue, playing it alone")
                tracks, found = [track], 0
            index = found

        self.queue.set_queue(tracks, index)
        if self._state.shuffle:
            self.queue.set_shuffle(True)

        current = self.queue.current
        if current is None:
            return False
        return await self._load(current)

    async def play_album(self, tracks: Sequence[Track], start_index: int = 0) -> bool:
        """Play a list of tracks starting at ``start_index``."""
        if not tracks:
            return False
        if not 0 <= start_index < len(tracks):
            start_index = 0
        return await self.play_song(tracks[start_index], tracks, start_index)

    async def play(self) -> bool:
        """
        Start or resume playback.

        Resumes a paused source; otherwise (re)loads the track under the
        queue cursor, e.g. after a queue restore.
        """
        status = self._state.status

        if status == PlaybackStatus.PLAYING:
            return True

        if status == PlaybackStatus.PAUSED and self.transport.has_source:
            if not await self._transport_command(self.transport.play(), "Resume"):
                return False
            self._update(status=PlaybackStatus.PLAYING)
            logger.info("Playback resumed")
            return True

        if status == PlaybackStatus.LOADING:
            return False

        current = self.queue.current
        if current is not None:
            return await self._load(current)
        if not self.queue.is_empty:
            return await self.play_next()

        logger.debug("Nothing to play - queue empty")
        return False

    async def pause(self) -> bool:
        """Pause playback."""
        if self._state.status != PlaybackStatus.PLAYING:
            logger.debug(f"Cannot pause in state {self._state.status.name}")
            return False

        if not await self._transport_command(self.transport.pause(), "Pause"):
            return False
        self._update(status=PlaybackStatus.PAUSED)
        logger.info("Playback paused")
        return True

    async def toggle_play_pause(self) -> None:
        """Pause if playing, resume if paused with a source, else nothing."""
        status = self._state.status
        if status == PlaybackStatus.PLAYING:
            await self.pause()
        elif status == PlaybackStatus.PAUSED and self.transport.has_source:
            await self.play()
        else:
            logger.debug(f"Toggle play/pause ignored in state {status.name}")

    async def play_next(self) -> bool:
        """
        Skip to the next track.

        Returns:
            True if a next track was started, False if the queue is
            empty or exhausted
        """
        if self.queue.is_empty:
            return False

        next_index = self.queue.next_index(self._state.repeat_mode)
        if next_index is None:
            await self._halt()
            return False

        return await self._play_index(next_index)

    async def play_previous(self) -> bool:
        """
        Go to the previous track or restart the current one.

        - If position > threshold: Restart current track
        - Otherwise: Previous track (restart at the head of the queue)
        """
        if self.queue.is_empty:
            return False

        previous_index = self.queue.previous_index(
            self._state.current_time, self._previous_threshold
        )
        if previous_index is None:
            logger.debug(f"Restarting track (position {self._state.current_time:.1f}s)")
            return await self.seek(0)

        return await self._play_index(previous_index)

    async def seek(self, seconds: float) -> bool:
        """
        Seek within the loaded source.

        Returns:
            False if nothing is loaded or the transport refused
        """
        if not self.transport.has_source:
            logger.debug("Cannot seek: no source loaded")
            return False

        position = max(0.0, seconds)
        duration = self._effective_duration()
        if duration > 0:
            position = min(position, duration)

        if not await self._transport_command(self.transport.seek(position), "Seek"):
            return False
        self._update(current_time=position)
        return True

    async def seek_by(self, delta: float) -> bool:
        """Seek relative to the current position."""
        return await self.seek(self._state.current_time + delta)

    async def set_volume(self, level: float) -> float:
        """
        Set volume, clamped to 0.0-1.0.

        Returns:
            Volume after clamping
        """
        clamped = clamp_volume(level)
        await self._transport_command(self.transport.set_volume(clamped), "Set volume")
        self._update(volume=clamped)
        return clamped

    async def change_volume(self, delta: float) -> float:
        """Adjust volume by a relative amount."""
        return await self.set_volume(self._state.volume + delta)

    async def toggle_mute(self) -> float:
        """
        Mute, or restore the volume that was active before muting.

        Returns:
            Volume after the toggle
        """
        if self._state.volume > 0:
            self._volume_before_mute = self._state.volume
            return await self.set_volume(0.0)

        restore = self._volume_before_mute or 1.0
        self._volume_before_mute = None
        return await self.set_volume(restore)

    # =========================================================================
    # Modes
    # =========================================================================

    def toggle_shuffle(self) -> bool:
        """
        Flip shuffle and rematerialize the queue order.

        The current track keeps playing; only its queue position moves.
        """
        enabled = not self._state.shuffle
        self.queue.set_shuffle(enabled)
        self._update(shuffle=enabled, **self._queue_fields())
        logger.info(f"Shuffle mode: {enabled}")
        return enabled

    def toggle_repeat(self) -> None:
        """Cycle repeat mode Off -> All -> One -> Off."""
        mode = self._state.repeat_mode.cycle()
        self._update(repeat_mode=mode)
        logger.info(f"Repeat mode: {mode.value}")

    # =========================================================================
    # Queue Edits
    # =========================================================================

    def add_to_queue(self, tracks: Sequence[Track]) -> None:
        """Append tracks without touching the current track."""
        if not tracks:
            return
        self.queue.append(tracks)
        self._update(**self._queue_fields())
        logger.info(f"Added {len(tracks)} tracks to queue")

    def remove_from_queue(self, index: int) -> bool:
        """
        Remove one queue entry. Never stops playback.

        Returns:
            False if the index was out of range
        """
        removed = self.queue.remove_at(index)
        if removed is None:
            return False
        self._update(**self._queue_fields())
        return True

    async def clear_queue(self) -> Optional[QueueSnapshot]:
        """
        Stop playback and empty the queue.

        Returns:
            Snapshot for restore_queue_state, or None if the queue was
            already empty
        """
        snapshot = self._undo.apply(lambda queue: queue.clear())
        self._invalidate_loads()
        await self._transport_command(self.transport.clear_source(), "Clear source")

        self._update(
            current_track=None,
            status=PlaybackStatus.IDLE,
            current_time=0.0,
            duration=0.0,
            **self._queue_fields(),
        )
        logger.info("Queue cleared")
        return snapshot

    async def restore_queue_state(self, snapshot: QueueSnapshot) -> bool:
        """
        Reinstate queue and cursor from a clear_queue snapshot.

        Playback is not resumed and the transport source is not
        reattached; call play() to start the restored track.
        """
        if not self._undo.restore(snapshot):
            return False

        if self.queue.is_shuffled != self._state.shuffle:
            self.queue.set_shuffle(self._state.shuffle)

        self._invalidate_loads()
        generation = self._generation
        if self.transport.has_source:
            await self._transport_command(
                self.transport.clear_source(), "Clear source after restore"
            )
            if generation != self._generation:
                return True

        current = self.queue.current
        self._update(
            current_track=current,
            status=PlaybackStatus.IDLE,
            current_time=0.0,
            duration=0.0,
            **self._queue_fields(),
        )
        return True

    # =========================================================================
    # Favorites
    # =========================================================================

    def set_current_track_starred(self, starred: bool) -> None:
        """Update the starred flag of the current track."""
        track = self._state.current_track
        if track is None:
            return
        self._set_track_starred(track.id, starred)

    async def toggle_star(self) -> Optional[BestEffortResult]:
        """
        Star or unstar the current track optimistically.

        Returns:
            Result of the remote call, or None if nothing is loaded
        """
        track = self._state.current_track
        if track is None:
            return None

        target = not track.starred
        result = await optimistic_update(
            apply=lambda: self._set_track_starred(track.id, target),
            revert=lambda: self._set_track_starred(track.id, not target),
            remote=lambda: self.catalog.set_starred(track.id, target),
            description=f"{'Star' if target else 'Unstar'} track {track.id}",
        )
        if not result.ok:
            self._report_error(
                ErrorKind.REMOTE_UPDATE,
                f"Failed to {'star' if target else 'unstar'} track: {result.error}",
                track.id,
            )
        return result

    def _set_track_starred(self, track_id: str, starred: bool) -> None:
        current = self._state.current_track
        for track in [current, *self.queue.tracks]:
            if track is not None and track.id == track_id:
                updated = replace(track, starred=starred)
                break
        else:
            return

        self.queue.replace_track(updated)
        changes = self._queue_fields()
        if current is not None and current.id == track_id:
            changes["current_track"] = updated
        self._update(**changes)

    # =========================================================================
    # Cover Art
    # =========================================================================

    async def resolve_cover_art(
        self, cover_art_id: Optional[str], size: Optional[int] = None
    ) -> Optional[str]:
        """Resolve a cover art ID to a URL (cached)."""
        return await self.cover_art.resolve(cover_art_id, size)

    async def current_cover_art_url(self, size: Optional[int] = None) -> Optional[str]:
        """Cover art URL of the current track."""
        track = self._state.current_track
        if track is None:
            return None
        return await self.cover_art.resolve(track.cover_art, size)

    # =========================================================================
    # Internal Playback Management
    # =========================================================================

    async def _play_index(self, index: int) -> bool:
        """Play the queue entry at ``index`` keeping the queue order."""
        track = self.queue.move_to(index)
        if track is None:
            return False
        return await self._load(track)

    async def _load(self, track: Track) -> bool:
        """
        Resolve, assign and start ``track``.

        The caller has already positioned the queue cursor on it.
        """
        self._generation += 1
        generation = self._generation
        self._awaiting_source = True
        self._buffering = False

        logger.info(f"Loading track {track.id}: {track.artist} - {track.title}")
        self._update(
            current_track=track,
            status=PlaybackStatus.LOADING,
            current_time=0.0,
            duration=0.0,
            **self._queue_fields(),
        )
        self.scrobbler.track_loading(track)

        try:
            url = await self.catalog.resolve_stream_url(track.id)
        except Exception as e:
            if generation != self._generation:
                logger.debug(f"Ignoring failure of superseded load for {track.id}")
                return False
            self._fail_load(track, ErrorKind.RESOLUTION, f"Failed to resolve stream: {e}")
            return False

        if generation != self._generation:
            logger.debug(f"Discarding stale stream URL for {track.id}")
            return False
        self._awaiting_source = False

        metadata = TransportTrackMetadata(
            track_id=track.id,
            title=track.title,
            artist=track.artist,
            album=track.album,
            duration=track.duration,
            cover_art_url=self.cover_art.get_cached(track.cover_art) or "",
        )

        try:
            await self.transport.set_source(url, metadata)
            if generation != self._generation:
                return False
            await self.transport.play()
        except Exception as e:
            if generation != self._generation:
                logger.debug(f"Ignoring failure of superseded load for {track.id}")
                return False
            self._fail_load(track, ErrorKind.TRANSPORT, f"Failed to start playback: {e}")
            return False

        if generation != self._generation:
            return False

        if self._state.status == PlaybackStatus.LOADING and not self._buffering:
            self._update(status=PlaybackStatus.PLAYING)
        logger.info(f"Now playing: {track.artist} - {track.title}")
        return True

    def _fail_load(self, track: Track, kind: ErrorKind, message: str) -> None:
        self._awaiting_source = False
        logger.error(f"{message} (track {track.id})")
        self._update(status=PlaybackStatus.IDLE)
        self._report_error(kind, message, track.id)

    def _invalidate_loads(self) -> None:
        """Make every in-flight load stale."""
        self._generation += 1
        self._awaiting_source = False
        self._buffering = False

    async def _halt(self) -> None:
        """Stop at the end of the queue, keeping the last track for display."""
        self._invalidate_loads()
        if self.transport.has_source:
            await self._transport_command(self.transport.pause(), "Pause at end of queue")
        self._update(status=PlaybackStatus.ENDED)
        logger.info("End of queue - playback stopped")

    async def _transport_command(self, command: Awaitable[None], description: str) -> bool:
        """Run a transport command, converting failures to error events."""
        try:
            await command
            return True
        except Exception as e:
            message = f"{description} failed: {e}"
            logger.error(message, exc_info=True)
            track = self._state.current_track
            self._report_error(ErrorKind.TRANSPORT, message, track.id if track else None)
            return False

    def _effective_duration(self) -> float:
        if self._state.duration > 0:
            return self._state.duration
        track = self._state.current_track
        if track is not None and track.duration:
            return track.duration
        return 0.0

    # =========================================================================
    # Callbacks from Components
    # =========================================================================

    async def _report_play_event(self, track_id: str, submission: bool) -> None:
        await self.catalog.report_play_event(track_id, submission=submission)

    def _on_report_failed(self, track_id: str, submission: bool, error: Exception) -> None:
        label = "scrobble" if submission else "now playing"
        self._report_error(ErrorKind.REPORTING, f"Failed to report {label}: {error}", track_id)

    def _on_time_update(self, seconds: float) -> None:
        """Callback for periodic time reports."""
        if self._awaiting_source:
            return
        self._update(current_time=seconds)
        self.scrobbler.time_update(self._state.current_track, seconds, self._effective_duration())

    def _on_duration_change(self, seconds: float) -> None:
        """Callback when the transport knows the duration."""
        if self._awaiting_source:
            return
        self._update(duration=max(0.0, seconds))

    def _on_ended(self) -> None:
        """Callback when the source ended naturally."""
        if self._awaiting_source:
            return
        logger.info("Track ended naturally")
        self._update(status=PlaybackStatus.ENDED)
        self._tasks.track(asyncio.create_task(self.play_next()))

    def _on_playing(self) -> None:
        """Callback when audio is rendering."""
        if self._awaiting_source:
            return
        self._buffering = False
        self._update(status=PlaybackStatus.PLAYING)

    def _on_paused(self) -> None:
        """Callback when the transport paused."""
        if self._awaiting_source:
            return
        if self._state.status in (PlaybackStatus.IDLE, PlaybackStatus.ENDED):
            return
        self._buffering = False
        self._update(status=PlaybackStatus.PAUSED)

    def _on_waiting(self) -> None:
        """Callback when the transport is buffering."""
        if self._awaiting_source or self._state.status == PlaybackStatus.LOADING:
            return
        self._status_before_buffering = self._state.status
        self._buffering = True
        self._update(status=PlaybackStatus.LOADING)

    def _on_can_play(self) -> None:
        """Callback when enough data is buffered to resume."""
        if not self._buffering or self._awaiting_source:
            return
        self._buffering = False
        if self._state.status == PlaybackStatus.LOADING:
            self._update(status=self._status_before_buffering)

    def _on_transport_error(self, message: str) -> None:
        """Callback when the transport reports an error. Does not auto-advance."""
        if self._awaiting_source:
            logger.debug(f"Ignoring error from previous source: {message}")
            return

        logger.error(f"Transport error: {message}")
        self._buffering = False
        status = PlaybackStatus.PAUSED if self.transport.has_source else PlaybackStatus.IDLE
        if self._state.status in (PlaybackStatus.PLAYING, PlaybackStatus.LOADING):
            self._update(status=status)

        track = self._state.current_track
        self._report_error(ErrorKind.TRANSPORT, message, track.id if track else None)
