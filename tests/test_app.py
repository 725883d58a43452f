"""Tests for the SubsonicPlayer orchestrator."""

import asyncio
import logging

import pytest

from conftest import FakeCatalog, FakeTransport, make_tracks
from subsonic_player import SubsonicPlayer, setup_logging
from subsonic_player.config import Config
from subsonic_player.playback import PlaybackStatus
from subsonic_player.transport import SimulatedTransport, TransportNotFoundError


@pytest.fixture
def config() -> Config:
    config = Config()
    config.player.initial_volume = 0.8
    return config


class TestSubsonicPlayer:
    """Tests for SubsonicPlayer lifecycle and command dispatch."""

    @pytest.mark.asyncio
    async def test_start_applies_initial_volume(
        self, config: Config, catalog: FakeCatalog, transport: FakeTransport
    ) -> None:
        player = SubsonicPlayer(config, catalog, transport=transport)
        await player.start()

        assert player.is_running
        assert transport.is_connected()
        assert player.engine.state.volume == 0.8
        assert transport.volume == 0.8

        await player.stop()
        assert not player.is_running
        assert not transport.is_connected()

    def test_engine_before_start(self, config: Config, catalog: FakeCatalog) -> None:
        player = SubsonicPlayer(config, catalog)
        with pytest.raises(RuntimeError):
            player.engine

    @pytest.mark.asyncio
    async def test_transport_from_config(self, config: Config, catalog: FakeCatalog) -> None:
        player = SubsonicPlayer(config, catalog)
        await player.start()
        assert isinstance(player.transport, SimulatedTransport)
        await player.stop()

    @pytest.mark.asyncio
    async def test_unknown_transport(self, config: Config, catalog: FakeCatalog) -> None:
        config.transport.type = "chromecast"
        player = SubsonicPlayer(config, catalog)
        with pytest.raises(TransportNotFoundError):
            await player.start()

    @pytest.mark.asyncio
    async def test_command_dispatch(
        self, config: Config, catalog: FakeCatalog, transport: FakeTransport
    ) -> None:
        config.player.volume_step = 0.2
        player = SubsonicPlayer(config, catalog, transport=transport)
        await player.start()
        assert "toggle_play" in player.commands
        assert "mute" in player.commands

        await player.engine.play_album(make_tracks("A", "B"))
        await player.handle_command("toggle_play")
        assert player.engine.state.status == PlaybackStatus.PAUSED

        await player.handle_command("volume_down")
        assert player.engine.state.volume == pytest.approx(0.6)

        await player.handle_command("does_not_exist")
        await player.stop()

    @pytest.mark.asyncio
    async def test_scrobbling_disabled(
        self, config: Config, catalog: FakeCatalog, transport: FakeTransport
    ) -> None:
        config.scrobble.enabled = False
        player = SubsonicPlayer(config, catalog, transport=transport)
        await player.start()

        await player.engine.play_album(make_tracks("A"))
        transport.emit_time(200.0)
        await player.stop()
        assert catalog.reports == []

    @pytest.mark.asyncio
    async def test_stop_waits_for_reports(
        self, config: Config, catalog: FakeCatalog, transport: FakeTransport
    ) -> None:
        player = SubsonicPlayer(config, catalog, transport=transport)
        await player.start()
        await player.engine.play_album(make_tracks("A"))
        await player.stop()
        assert catalog.now_playing == ["A"]

    @pytest.mark.asyncio
    async def test_end_to_end_with_simulated_transport(self, catalog: FakeCatalog) -> None:
        config = Config()
        config.transport.simulated.tick_interval = 0.01
        config.transport.simulated.speed = 50.0
        player = SubsonicPlayer(config, catalog)
        await player.start()

        tracks = make_tracks("A", "B", duration=1.0)
        await player.engine.play_album(tracks)

        for _ in range(200):
            state = player.engine.state
            if state.status == PlaybackStatus.ENDED and state.queue_index == 1:
                break
            await asyncio.sleep(0.01)

        state = player.engine.state
        assert state.status == PlaybackStatus.ENDED
        assert state.current_track is not None and state.current_track.id == "B"
        await player.stop()
        assert catalog.scrobbles == ["A", "B"]


class TestSetupLogging:
    """Tests for setup_logging."""

    def test_level(self) -> None:
        setup_logging("debug")
        assert logging.getLogger().level == logging.DEBUG
        setup_logging("nonsense")
        assert logging.getLogger().level == logging.INFO
