"""
Transport factory and registry.

Provides factory methods to instantiate transports by type name.
"""

import logging
from typing import Optional

from subsonic_player.config import Config

from .base import Transport
from .simulated import SimulatedTransport

logger = logging.getLogger(__name__)


class TransportNotFoundError(Exception):
    """Raised when requested transport type is not available."""

    pass


class TransportRegistry:
    """
    Registry of available transport types.

    Transports register themselves here with their type name.
    Factory uses this to instantiate transports.
    """

    _transports: dict[str, type[Transport]] = {}

    @classmethod
    def register(cls, type_name: str, transport_class: type[Transport]) -> None:
        """Register a transport class."""
        cls._transports[type_name] = transport_class
        logger.debug(f"Registered transport type: {type_name}")

    @classmethod
    def get(cls, type_name: str) -> Optional[type[Transport]]:
        """Get transport class by type name."""
        return cls._transports.get(type_name)

    @classmethod
    def available_types(cls) -> list[str]:
        """Get list of registered transport type names."""
        return list(cls._transports.keys())


class TransportFactory:
    """
    Factory for creating transport instances.

    Usage:
        transport = TransportFactory.create_from_config(config)
    """

    @classmethod
    def create_from_config(cls, config: Config) -> Transport:
        """Create a transport based on configuration."""
        transport_type = config.transport.type

        transport_class = TransportRegistry.get(transport_type)
        if not transport_class:
            available = TransportRegistry.available_types()
            raise TransportNotFoundError(
                f"Transport type '{transport_type}' not available. "
                f"Available types: {available}"
            )

        if transport_type == "simulated":
            return cls.create_simulated(
                tick_interval=config.transport.simulated.tick_interval,
                speed=config.transport.simulated.speed,
            )

        # Generic instantiation for registered transports
        return transport_class(name=f"{transport_type} Transport")

    @classmethod
    def create_simulated(cls, tick_interval: float = 0.25, speed: float = 1.0) -> Transport:
        """Create a simulated (virtual clock) transport."""
        return SimulatedTransport(tick_interval=tick_interval, speed=speed)

    @classmethod
    def list_available_transports(cls) -> list[str]:
        """List available transport types."""
        return TransportRegistry.available_types()


# Register transports
TransportRegistry.register("simulated", SimulatedTransport)
