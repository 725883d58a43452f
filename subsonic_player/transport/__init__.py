"""
Audio transports.

Provides the abstract transport contract and a factory for concrete
transports.
"""

from .base import (
    CanPlayCallback,
    DurationChangeCallback,
    EndedCallback,
    ErrorCallback,
    PausedCallback,
    PlayingCallback,
    TimeUpdateCallback,
    Transport,
    WaitingCallback,
)
from .factory import (
    TransportFactory,
    TransportNotFoundError,
    TransportRegistry,
)
from .simulated import SimulatedTransport
from .types import TransportInfo, TransportTrackMetadata

__all__ = [
    # Types
    "TransportInfo",
    "TransportTrackMetadata",
    # Base class
    "Transport",
    # Callback types
    "CanPlayCallback",
    "DurationChangeCallback",
    "EndedCallback",
    "ErrorCallback",
    "PausedCallback",
    "PlayingCallback",
    "TimeUpdateCallback",
    "WaitingCallback",
    # Factory
    "TransportFactory",
    "TransportNotFoundError",
    "TransportRegistry",
    # Transports
    "SimulatedTransport",
]
