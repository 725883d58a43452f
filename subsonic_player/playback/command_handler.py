"""
Playback command handler.

Maps named player commands (keyboard shortcuts, remote buttons) onto
engine operations.
"""

import logging
from typing import TYPE_CHECKING, Any, Optional

if TYPE_CHECKING:
    from .engine import PlaybackEngine
    from .types import QueueSnapshot

logger = logging.getLogger(__name__)

CMD_TOGGLE_PLAY = "toggle_play"
CMD_NEXT = "next"
CMD_PREVIOUS = "previous"
CMD_SEEK_FORWARD = "seek_forward"
CMD_SEEK_BACKWARD = "seek_backward"
CMD_TOGGLE_REPEAT = "toggle_repeat"
CMD_TOGGLE_SHUFFLE = "toggle_shuffle"
CMD_TOGGLE_STAR = "toggle_star"
CMD_CLEAR_QUEUE = "clear_queue"
CMD_UNDO_CLEAR = "undo_clear"

DEFAULT_SEEK_STEP = 10.0  # seconds


class PlaybackCommandHandler:
    """
    Handles playback commands.

    Keeps the snapshot of the last clear_queue so undo_clear can bring
    the queue back.
    """

    def __init__(self, engine: "PlaybackEngine", seek_step: float = DEFAULT_SEEK_STEP):
        """
        Initialize command handler.

        Args:
            engine: PlaybackEngine instance
            seek_step: Seconds to jump for seek_forward / seek_backward
        """
        self.engine = engine
        self.seek_step = seek_step
        self._last_clear: Optional["QueueSnapshot"] = None

    @property
    def can_undo_clear(self) -> bool:
        return self._last_clear is not None and not self._last_clear.consumed

    def get_commands(self) -> list[str]:
        """Get list of commands this handler processes."""
        return [
            CMD_TOGGLE_PLAY,
            CMD_NEXT,
            CMD_PREVIOUS,
            CMD_SEEK_FORWARD,
            CMD_SEEK_BACKWARD,
            CMD_TOGGLE_REPEAT,
            CMD_TOGGLE_SHUFFLE,
            CMD_TOGGLE_STAR,
            CMD_CLEAR_QUEUE,
            CMD_UNDO_CLEAR,
        ]

    async def handle_command(self, command: str, **kwargs: Any) -> None:
        """Handle a playback command."""
        try:
            if command == CMD_TOGGLE_PLAY:
                await self.engine.toggle_play_pause()
            elif command == CMD_NEXT:
                await self.engine.play_next()
            elif command == CMD_PREVIOUS:
                await self.engine.play_previous()
            elif command == CMD_SEEK_FORWARD:
                await self.engine.seek_by(kwargs.get("step", self.seek_step))
            elif command == CMD_SEEK_BACKWARD:
                await self.engine.seek_by(-kwargs.get("step", self.seek_step))
            elif command == CMD_TOGGLE_REPEAT:
                self.engine.toggle_repeat()
            elif command == CMD_TOGGLE_SHUFFLE:
                self.engine.toggle_shuffle()
            elif command == CMD_TOGGLE_STAR:
                await self.engine.toggle_star()
            elif command == CMD_CLEAR_QUEUE:
                await self._handle_clear_queue()
            elif command == CMD_UNDO_CLEAR:
                await self._handle_undo_clear()
            else:
                logger.warning(f"Unhandled playback command: {command}")
        except Exception as e:
            logger.error(f"Error handling playback command {command}: {e}", exc_info=True)

    async def _handle_clear_queue(self) -> None:
        snapshot = await self.engine.clear_queue()
        if snapshot is not None:
            self._last_clear = snapshot
            logger.info(f"Queue cleared ({len(snapshot.previous_queue)} tracks), undo available")

    async def _handle_undo_clear(self) -> None:
        if self._last_clear is None:
            logger.debug("Nothing to undo")
            return
        snapshot, self._last_clear = self._last_clear, None
        if await self.engine.restore_queue_state(snapshot):
            logger.info("Queue restored")
