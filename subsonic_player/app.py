"""
SubsonicPlayer Application.

Main orchestrator that wires together all components and manages lifecycle.
"""

import logging
import sys
from typing import Any, Awaitable, Callable, Optional

from subsonic_player.catalog import CatalogClient
from subsonic_player.config import Config
from subsonic_player.playback import (
    CoverArtResolver,
    PlaybackCommandHandler,
    PlaybackEngine,
    ScrobbleReporter,
    VolumeCommandHandler,
)
from subsonic_player.transport import Transport, TransportFactory

logger = logging.getLogger(__name__)

CommandCallback = Callable[..., Awaitable[None]]


def setup_logging(level: str = "info") -> None:
    """Configure logging to stdout."""
    log_level = getattr(logging, level.upper(), logging.INFO)
    logging.basicConfig(
        level=log_level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        stream=sys.stdout,
        force=True,
    )


class SubsonicPlayer:
    """
    Main SubsonicPlayer application.

    Orchestrates all components:
    - Audio transport (via TransportFactory)
    - Reporting (ScrobbleReporter, CoverArtResolver)
    - Playback (PlaybackEngine)
    - Commands (PlaybackCommandHandler, VolumeCommandHandler)

    Usage:
        config = load_config(...)
        player = SubsonicPlayer(config, catalog)
        await player.start()
        await player.handle_command("toggle_play")
        await player.stop()
    """

    def __init__(
        self,
        config: Config,
        catalog: CatalogClient,
        transport: Optional[Transport] = None,
    ):
        """
        Initialize SubsonicPlayer.

        Args:
            config: Validated configuration
            catalog: Client for the music server
            transport: Transport to use instead of the configured one
        """
        self._config = config
        self._catalog = catalog
        self._transport_override = transport
        self._is_running = False

        # Components (initialized in start())
        self._transport: Optional[Transport] = None
        self._cover_art: Optional[CoverArtResolver] = None
        self._scrobbler: Optional[ScrobbleReporter] = None
        self._engine: Optional[PlaybackEngine] = None

        # Handlers
        self._playback_handler: Optional[PlaybackCommandHandler] = None
        self._volume_handler: Optional[VolumeCommandHandler] = None
        self._commands: dict[str, CommandCallback] = {}

    @property
    def is_running(self) -> bool:
        return self._is_running

    @property
    def engine(self) -> PlaybackEngine:
        if self._engine is None:
            raise RuntimeError("SubsonicPlayer not started")
        return self._engine

    @property
    def transport(self) -> Optional[Transport]:
        return self._transport

    @property
    def commands(self) -> list[str]:
        """Names accepted by handle_command."""
        return list(self._commands.keys())

    async def start(self) -> None:
        """
        Start SubsonicPlayer and all components.

        Startup order:
        1. Audio transport
        2. Cover art resolver and scrobble reporter
        3. Playback engine
        4. Command handlers
        5. Initial volume

        Raises:
            TransportNotFoundError: If the configured transport is unknown
            ConnectionError: If the transport cannot connect
        """
        if self._is_running:
            return

        logger.info("Starting SubsonicPlayer...")

        # 1. Create and connect transport
        transport = self._transport_override or TransportFactory.create_from_config(self._config)
        if not await transport.connect():
            raise ConnectionError(f"Failed to connect transport: {transport.name}")
        self._transport = transport
        logger.info(f"Connected to transport: {transport.get_info()}")

        # 2. Create reporting components
        self._cover_art = CoverArtResolver(
            self._catalog.resolve_cover_art_url,
            default_size=self._config.cover_art.default_size,
        )
        self._scrobbler = ScrobbleReporter(
            self._report_play_event,
            enabled=self._config.scrobble.enabled,
            max_threshold_seconds=self._config.scrobble.max_threshold_seconds,
            threshold_fraction=self._config.scrobble.threshold_fraction,
        )
        if not self._config.scrobble.enabled:
            logger.info("Scrobbling disabled")

        # 3. Create engine
        self._engine = PlaybackEngine(
            transport=transport,
            catalog=self._catalog,
            cover_art=self._cover_art,
            scrobbler=self._scrobbler,
            initial_volume=self._config.player.initial_volume,
            previous_threshold=self._config.player.previous_restart_threshold,
        )

        # 4. Create handlers and register their commands
        self._playback_handler = PlaybackCommandHandler(
            self._engine, seek_step=self._config.player.seek_step
        )
        self._volume_handler = VolumeCommandHandler(
            self._engine, volume_step=self._config.player.volume_step
        )
        self._commands = {}
        for handler in (self._playback_handler, self._volume_handler):
            for command in handler.get_commands():
                self._commands[command] = handler.handle_command

        # 5. Apply initial volume
        await self._engine.set_volume(self._config.player.initial_volume)

        self._is_running = True
        logger.info("SubsonicPlayer ready")

    async def handle_command(self, command: str, **kwargs: Any) -> None:
        """Dispatch a named command to its handler."""
        callback = self._commands.get(command)
        if callback is None:
            logger.warning(f"Unknown command: {command}")
            return
        await callback(command, **kwargs)

    async def _report_play_event(self, track_id: str, submission: bool) -> None:
        await self._catalog.report_play_event(track_id, submission=submission)

    async def stop(self) -> None:
        """
        Stop SubsonicPlayer and all components.

        Shutdown order (reverse of startup):
        1. Shut down engine (waits for outstanding reports)
        2. Disconnect transport
        """
        if not self._is_running:
            return

        logger.info("Stopping SubsonicPlayer...")
        self._is_running = False

        # 1. Shut down engine
        if self._engine:
            try:
                await self._engine.shutdown()
            except Exception as e:
                logger.warning(f"Error stopping engine: {e}")

        # 2. Disconnect transport
        if self._transport:
            try:
                await self._transport.disconnect()
            except Exception as e:
                logger.warning(f"Error disconnecting transport: {e}")

        self._commands = {}
        logger.info("SubsonicPlayer stopped")
