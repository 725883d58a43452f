"""
Scrobble reporting.

Sends "now playing" notifications when a track is loaded and a single
scrobble submission once the listener has heard enough of it.
"""

import logging
from dataclasses import dataclass
from typing import Any, Callable, Coroutine, Optional

from .tasks import BackgroundTasks
from .types import Track

logger = logging.getLogger(__name__)

# Scrobble after 4 minutes or 50% of the track, whichever comes first
MAX_THRESHOLD_SECONDS = 240.0
THRESHOLD_FRACTION = 0.5

# (track_id, submission) -> remote call
ReportCallback = Callable[[str, bool], Coroutine[Any, Any, None]]
FailureCallback = Callable[[str, bool, Exception], None]


def scrobble_threshold(
    duration: float,
    max_seconds: float = MAX_THRESHOLD_SECONDS,
    fraction: float = THRESHOLD_FRACTION,
) -> float:
    """Listening time after which a play counts."""
    return min(max_seconds, duration * fraction)


@dataclass
class ScrobbleState:
    """Per-track reporting state."""

    now_playing_reported_for: Optional[str] = None
    scrobbled_for: Optional[str] = None


class ScrobbleReporter:
    """
    Emits now-playing and scrobble events to the catalog.

    All reports are fire-and-forget: failures are logged and handed to the
    optional failure callback, never raised.
    """

    def __init__(
        self,
        report_callback: ReportCallback,
        tasks: Optional[BackgroundTasks] = None,
        enabled: bool = True,
        max_threshold_seconds: float = MAX_THRESHOLD_SECONDS,
        threshold_fraction: float = THRESHOLD_FRACTION,
    ):
        """
        Initialize scrobble reporter.

        Args:
            report_callback: Async callback submitting a play event
            tasks: Background task set used for fire-and-forget reports
            enabled: When False, nothing is reported
            max_threshold_seconds: Upper bound of the scrobble threshold
            threshold_fraction: Fraction of the duration that counts as a play
        """
        self._report = report_callback
        self._tasks = tasks or BackgroundTasks()
        self._enabled = enabled
        self._max_threshold = max_threshold_seconds
        self._fraction = threshold_fraction
        self._on_failure: Optional[FailureCallback] = None

        self.state = ScrobbleState()

    def set_failure_callback(self, callback: Optional[FailureCallback]) -> None:
        """Set callback invoked when a report fails."""
        self._on_failure = callback

    @property
    def tasks(self) -> BackgroundTasks:
        return self._tasks

    def track_loading(self, track: Track) -> None:
        """
        Called on every load attempt.

        Resets the scrobble flag so a replay can count again, and reports
        "now playing" unless this track was the last one reported.
        """
        self.state.scrobbled_for = None

        if self.state.now_playing_reported_for == track.id:
            logger.debug(f"Now playing already reported for {track.id}")
            return

        self.state.now_playing_reported_for = track.id
        self._send(track.id, submission=False)

    def time_update(self, track: Optional[Track], current_time: float, duration: float) -> bool:
        """
        Evaluate the scrobble threshold for a time report.

        Returns:
            True if this update triggered the submission
        """
        if track is None or duration <= 0:
            return False
        if self.state.scrobbled_for == track.id:
            return False

        threshold = scrobble_threshold(duration, self._max_threshold, self._fraction)
        if current_time < threshold:
            return False

        self.state.scrobbled_for = track.id
        logger.info(f"Scrobbling {track.id} at {current_time:.1f}s (threshold {threshold:.1f}s)")
        self._send(track.id, submission=True)
        return True

    def reset(self) -> None:
        """Forget every reported track."""
        self.state = ScrobbleState()

    async def drain(self) -> None:
        """Wait for outstanding reports."""
        await self._tasks.drain()

    def _send(self, track_id: str, submission: bool) -> None:
        if not self._enabled:
            return

        label = "Scrobble" if submission else "Now playing report"

        def failed(error: Exception) -> None:
            if self._on_failure:
                self._on_failure(track_id, submission, error)

        self._tasks.spawn(
            self._report(track_id, submission),
            f"{label} for {track_id}",
            on_failure=failed,
        )
