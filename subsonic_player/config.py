"""
Player configuration system.

Priority order (highest to lowest):
1. Explicit overrides (e.g. from the embedding application)
2. Environment variables
3. Configuration file (YAML)
4. Default values
"""

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Optional

import yaml

logger = logging.getLogger(__name__)


# Valid log levels
VALID_LOG_LEVELS = {"debug", "info", "warning", "error"}

# Environment variable mappings
ENV_MAPPINGS = {
    # Player
    "SUBSONICPLAYER_INITIAL_VOLUME": ("player", "initial_volume"),
    "SUBSONICPLAYER_PREVIOUS_THRESHOLD": ("player", "previous_restart_threshold"),
    "SUBSONICPLAYER_SEEK_STEP": ("player", "seek_step"),
    "SUBSONICPLAYER_VOLUME_STEP": ("player", "volume_step"),
    # Scrobbling
    "SUBSONICPLAYER_SCROBBLE_ENABLED": ("scrobble", "enabled"),
    "SUBSONICPLAYER_SCROBBLE_MAX_THRESHOLD": ("scrobble", "max_threshold_seconds"),
    "SUBSONICPLAYER_SCROBBLE_FRACTION": ("scrobble", "threshold_fraction"),
    # Cover art
    "SUBSONICPLAYER_COVER_ART_SIZE": ("cover_art", "default_size"),
    # Transport
    "SUBSONICPLAYER_TRANSPORT": ("transport", "type"),
    # Logging
    "SUBSONICPLAYER_LOG_LEVEL": ("logging", "level"),
}

FLOAT_ENV_VARS = {
    "SUBSONICPLAYER_INITIAL_VOLUME",
    "SUBSONICPLAYER_PREVIOUS_THRESHOLD",
    "SUBSONICPLAYER_SEEK_STEP",
    "SUBSONICPLAYER_VOLUME_STEP",
    "SUBSONICPLAYER_SCROBBLE_MAX_THRESHOLD",
    "SUBSONICPLAYER_SCROBBLE_FRACTION",
}
INT_ENV_VARS = {"SUBSONICPLAYER_COVER_ART_SIZE"}
BOOL_ENV_VARS = {"SUBSONICPLAYER_SCROBBLE_ENABLED"}


class ConfigError(Exception):
    """Configuration error."""

    pass


@dataclass
class PlayerConfig:
    """Playback behaviour configuration."""

    initial_volume: float = 1.0
    previous_restart_threshold: float = 3.0  # seconds
    seek_step: float = 10.0  # seconds
    volume_step: float = 0.1


@dataclass
class ScrobbleConfig:
    """Scrobble timing configuration."""

    enabled: bool = True
    max_threshold_seconds: float = 240.0  # 4 minutes
    threshold_fraction: float = 0.5  # or half the track, whichever comes first


@dataclass
class CoverArtConfig:
    """Cover art lookup configuration."""

    default_size: int = 300


@dataclass
class SimulatedTransportConfig:
    """Simulated transport configuration."""

    tick_interval: float = 0.25
    speed: float = 1.0


@dataclass
class TransportConfig:
    """Audio transport configuration."""

    type: str = "simulated"
    simulated: SimulatedTransportConfig = field(default_factory=SimulatedTransportConfig)


@dataclass
class LoggingConfig:
    """Logging configuration."""

    level: str = "info"


@dataclass
class Config:
    """Complete player configuration."""

    player: PlayerConfig = field(default_factory=PlayerConfig)
    scrobble: ScrobbleConfig = field(default_factory=ScrobbleConfig)
    cover_art: CoverArtConfig = field(default_factory=CoverArtConfig)
    transport: TransportConfig = field(default_factory=TransportConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)


def validate_config(config: Config) -> None:
    """
    Validate configuration.

    Raises:
        ConfigError: If configuration is invalid
    """
    errors = []

    # Player
    if not 0.0 <= config.player.initial_volume <= 1.0:
        errors.append(f"Invalid initial_volume: {config.player.initial_volume} (must be 0.0-1.0)")
    if config.player.previous_restart_threshold < 0:
        errors.append(
            f"Invalid previous_restart_threshold: {config.player.previous_restart_threshold}"
        )
    if config.player.seek_step <= 0:
        errors.append(f"Invalid seek_step: {config.player.seek_step}")
    if not 0.0 < config.player.volume_step <= 1.0:
        errors.append(f"Invalid volume_step: {config.player.volume_step} (must be 0.0-1.0)")

    # Scrobble
    if config.scrobble.max_threshold_seconds <= 0:
        errors.append(f"Invalid max_threshold_seconds: {config.scrobble.max_threshold_seconds}")
    if not 0.0 < config.scrobble.threshold_fraction <= 1.0:
        errors.append(
            f"Invalid threshold_fraction: {config.scrobble.threshold_fraction} "
            f"(must be 0.0-1.0)"
        )

    # Cover art
    if config.cover_art.default_size <= 0:
        errors.append(f"Invalid cover art size: {config.cover_art.default_size}")

    # Transport
    if not config.transport.type:
        errors.append("Transport type is required")
    if config.transport.simulated.tick_interval <= 0:
        errors.append(f"Invalid tick_interval: {config.transport.simulated.tick_interval}")
    if config.transport.simulated.speed <= 0:
        errors.append(f"Invalid simulated speed: {config.transport.simulated.speed}")

    # Logging
    if config.logging.level.lower() not in VALID_LOG_LEVELS:
        errors.append(
            f"Invalid log level: {config.logging.level}. "
            f"Valid values: {sorted(VALID_LOG_LEVELS)}"
        )

    if errors:
        raise ConfigError("Configuration validation failed:\n  - " + "\n  - ".join(errors))


def load_yaml_config(path: Path) -> dict:
    """
    Load configuration from YAML file.

    Args:
        path: Path to YAML file

    Returns:
        Configuration dictionary

    Raises:
        ConfigError: If file cannot be read or parsed
    """
    if not path.exists():
        logger.debug(f"Config file not found: {path}")
        return {}

    try:
        with open(path) as f:
            data = yaml.safe_load(f)
            return data if data else {}
    except yaml.YAMLError as e:
        raise ConfigError(f"Error parsing YAML config: {e}")
    except IOError as e:
        raise ConfigError(f"Error reading config file: {e}")


def _set_nested(d: dict, path: tuple, value: Any) -> None:
    """Set a nested dictionary value using a path tuple."""
    for key in path[:-1]:
        d = d.setdefault(key, {})
    d[path[-1]] = value


def load_env_config() -> dict:
    """
    Load configuration from environment variables.

    Returns:
        Configuration dictionary with values from environment
    """
    result: dict = {}

    for env_var, path in ENV_MAPPINGS.items():
        value: Any = os.environ.get(env_var)
        if value is None:
            continue

        if env_var in FLOAT_ENV_VARS:
            try:
                value = float(value)
            except ValueError:
                logger.warning(f"Invalid number for {env_var}: {value}")
                continue
        elif env_var in INT_ENV_VARS:
            try:
                value = int(value)
            except ValueError:
                logger.warning(f"Invalid integer for {env_var}: {value}")
                continue
        elif env_var in BOOL_ENV_VARS:
            value = value.lower() in ("true", "1", "yes", "on")

        _set_nested(result, path, value)

    return result


def _deep_merge(base: dict, override: dict) -> None:
    """Recursively merge override into base."""
    for key, value in override.items():
        if key in base and isinstance(base[key], dict) and isinstance(value, dict):
            _deep_merge(base[key], value)
        else:
            base[key] = value


def merge_configs(*configs: dict) -> dict:
    """
    Deep merge multiple configuration dictionaries.
    Later configs override earlier ones.
    """
    result: dict = {}
    for config in configs:
        _deep_merge(result, config)
    return result


def dict_to_config(d: dict) -> Config:
    """Convert a dictionary to Config dataclass."""
    config = Config()

    # Player
    if "player" in d:
        p = d["player"]
        config.player.initial_volume = float(
            p.get("initial_volume", config.player.initial_volume)
        )
        config.player.previous_restart_threshold = float(
            p.get("previous_restart_threshold", config.player.previous_restart_threshold)
        )
        config.player.seek_step = float(p.get("seek_step", config.player.seek_step))
        config.player.volume_step = float(p.get("volume_step", config.player.volume_step))

    # Scrobble
    if "scrobble" in d:
        s = d["scrobble"]
        config.scrobble.enabled = bool(s.get("enabled", config.scrobble.enabled))
        config.scrobble.max_threshold_seconds = float(
            s.get("max_threshold_seconds", config.scrobble.max_threshold_seconds)
        )
        config.scrobble.threshold_fraction = float(
            s.get("threshold_fraction", config.scrobble.threshold_fraction)
        )

    # Cover art
    if "cover_art" in d:
        config.cover_art.default_size = int(
            d["cover_art"].get("default_size", config.cover_art.default_size)
        )

    # Transport
    if "transport" in d:
        t = d["transport"]
        config.transport.type = t.get("type", config.transport.type)
        if "simulated" in t:
            sim = t["simulated"]
            config.transport.simulated.tick_interval = float(
                sim.get("tick_interval", config.transport.simulated.tick_interval)
            )
            config.transport.simulated.speed = float(
                sim.get("speed", config.transport.simulated.speed)
            )

    # Logging
    if "logging" in d:
        config.logging.level = d["logging"].get("level", config.logging.level)

    return config


def load_config(
    config_path: Optional[Path] = None,
    overrides: Optional[dict] = None,
) -> Config:
    """
    Load configuration from all sources.

    Priority (highest to lowest):
    1. Overrides
    2. Environment variables
    3. Config file
    4. Defaults

    Args:
        config_path: Path to YAML config file
        overrides: Dictionary of explicit overrides

    Returns:
        Merged Config object

    Raises:
        ConfigError: If configuration is invalid
    """
    configs = []

    # 1. Load from file (lowest priority of explicit configs)
    if config_path:
        file_config = load_yaml_config(config_path)
        if file_config:
            configs.append(file_config)
            logger.debug(f"Loaded config from {config_path}")

    # 2. Load from environment
    env_config = load_env_config()
    if env_config:
        configs.append(env_config)
        logger.debug("Loaded config from environment variables")

    # 3. Explicit overrides (highest priority)
    if overrides:
        configs.append(overrides)
        logger.debug("Applied config overrides")

    merged = merge_configs(*configs) if configs else {}

    # Convert to Config object (fills in defaults)
    try:
        config = dict_to_config(merged)
    except (TypeError, ValueError) as e:
        raise ConfigError(f"Invalid configuration value: {e}")

    validate_config(config)

    return config
