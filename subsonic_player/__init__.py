"""
SubsonicPlayer - Playback and queue engine for Subsonic music servers.

Drives an audio transport from a play queue, reports plays back to the
server and resolves cover art.
"""

__version__ = "0.1.0"

from .app import SubsonicPlayer, setup_logging
from .catalog import CatalogClient
from .config import Config, ConfigError, load_config

__all__ = [
    "__version__",
    "SubsonicPlayer",
    "setup_logging",
    "CatalogClient",
    "Config",
    "ConfigError",
    "load_config",
]
