"""
Volume command handler.

Processes absolute, stepped and mute volume commands.
"""

import logging
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from .engine import PlaybackEngine

logger = logging.getLogger(__name__)

CMD_VOLUME_UP = "volume_up"
CMD_VOLUME_DOWN = "volume_down"
CMD_SET_VOLUME = "set_volume"
CMD_MUTE = "mute"

DEFAULT_VOLUME_STEP = 0.1


class VolumeCommandHandler:
    """
    Handles volume commands.

    Processes both absolute volume and volume step commands.
    """

    def __init__(self, engine: "PlaybackEngine", volume_step: float = DEFAULT_VOLUME_STEP):
        """Initialize handler."""
        self.engine = engine
        self.volume_step = volume_step

    def get_commands(self) -> list[str]:
        """Get list of commands this handler processes."""
        return [CMD_VOLUME_UP, CMD_VOLUME_DOWN, CMD_SET_VOLUME, CMD_MUTE]

    async def handle_command(self, command: str, **kwargs: Any) -> None:
        """Handle a volume command."""
        try:
            if command == CMD_VOLUME_UP:
                await self.engine.change_volume(self.volume_step)
            elif command == CMD_VOLUME_DOWN:
                await self.engine.change_volume(-self.volume_step)
            elif command == CMD_SET_VOLUME:
                await self._handle_set_volume(kwargs.get("volume"))
            elif command == CMD_MUTE:
                volume = await self.engine.toggle_mute()
                logger.debug(f"Mute toggled, volume now {volume:.2f}")
            else:
                logger.warning(f"Unhandled volume command: {command}")
        except Exception as e:
            logger.error(f"Error handling volume command {command}: {e}", exc_info=True)

    async def _handle_set_volume(self, volume: Any) -> None:
        if volume is None:
            logger.warning("set_volume command without a volume")
            return
        logger.debug(f"Received set volume: {volume}")
        await self.engine.set_volume(float(volume))
