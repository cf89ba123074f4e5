"""
PlayQueue Configuration System.

Priority order (highest to lowest):
1. Command-line arguments
2. Environment variables
3. Configuration file (YAML)
4. Default values
"""

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Optional
from urllib.parse import urlparse

import yaml

logger = logging.getLogger(__name__)


# Valid log levels
VALID_LOG_LEVELS = {"debug", "info", "warning", "error"}

# Known collaborator types
VALID_ENGINE_TYPES = {"memory", "none"}
VALID_RESOLVER_TYPES = {"none", "http"}

# Environment variable mappings
ENV_MAPPINGS = {
    # Player
    "PLAYQUEUE_DEFAULT_VOLUME": ("player", "default_volume"),
    "PLAYQUEUE_TICK_INTERVAL_MS": ("player", "tick_interval_ms"),
    "PLAYQUEUE_SYNTHETIC_STEP": ("player", "synthetic_step"),
    # Engine
    "PLAYQUEUE_ENGINE": ("engine", "type"),
    "PLAYQUEUE_TRACK_DURATION_S": ("engine", "track_duration_s"),
    # Resolver
    "PLAYQUEUE_RESOLVER": ("resolver", "type"),
    "PLAYQUEUE_RESOLVER_URL": ("resolver", "base_url"),
    "PLAYQUEUE_RESOLVER_TIMEOUT_S": ("resolver", "timeout_s"),
    # Logging
    "PLAYQUEUE_LOG_LEVEL": ("logging", "level"),
}

_INT_ENV_VARS = {"PLAYQUEUE_TICK_INTERVAL_MS"}
_FLOAT_ENV_VARS = {
    "PLAYQUEUE_DEFAULT_VOLUME",
    "PLAYQUEUE_SYNTHETIC_STEP",
    "PLAYQUEUE_TRACK_DURATION_S",
    "PLAYQUEUE_RESOLVER_TIMEOUT_S",
}


class ConfigError(Exception):
    """Configuration error."""

    pass


@dataclass
class PlayerConfig:
    """Transport and progress clock configuration."""

    default_volume: float = 80.0
    tick_interval_ms: int = 250  # Progress clock period
    synthetic_step: float = 1.0  # Percent added per synthetic tick

    @property
    def tick_interval_s(self) -> float:
        """Tick interval in seconds."""
        return self.tick_interval_ms / 1000.0


@dataclass
class EngineConfig:
    """Playback engine configuration."""

    type: str = "memory"
    track_duration_s: float = 30.0  # Duration reported by the memory engine


@dataclass
class ResolverConfig:
    """Track resolution service configuration."""

    type: str = "none"
    base_url: str = ""
    timeout_s: float = 10.0
    cache_size: int = 100


@dataclass
class LoggingConfig:
    """Logging configuration."""

    level: str = "info"


@dataclass
class Config:
    """Complete PlayQueue configuration."""

    player: PlayerConfig = field(default_factory=PlayerConfig)
    engine: EngineConfig = field(default_factory=EngineConfig)
    resolver: ResolverConfig = field(default_factory=ResolverConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)


def validate_url(url: str) -> bool:
    """Validate an http(s) base URL."""
    parsed = urlparse(url)
    return parsed.scheme in ("http", "https") and bool(parsed.netloc)


def validate_config(config: Config) -> None:
    """
    Validate configuration.

    Raises:
        ConfigError: If configuration is invalid
    """
    errors = []

    # Player
    if not 0 <= config.player.default_volume <= 100:
        errors.append(f"Invalid default_volume: {config.player.default_volume} (0-100)")
    if config.player.tick_interval_ms <= 0:
        errors.append(f"Invalid tick_interval_ms: {config.player.tick_interval_ms}")
    if not 0 < config.player.synthetic_step <= 100:
        errors.append(f"Invalid synthetic_step: {config.player.synthetic_step} (0-100]")

    # Engine
    if config.engine.type not in VALID_ENGINE_TYPES:
        errors.append(
            f"Invalid engine type: {config.engine.type}. "
            f"Valid values: {sorted(VALID_ENGINE_TYPES)}"
        )
    if config.engine.track_duration_s <= 0:
        errors.append(f"Invalid track_duration_s: {config.engine.track_duration_s}")

    # Resolver
    if config.resolver.type not in VALID_RESOLVER_TYPES:
        errors.append(
            f"Invalid resolver type: {config.resolver.type}. "
            f"Valid values: {sorted(VALID_RESOLVER_TYPES)}"
        )
    elif config.resolver.type == "http":
        if not config.resolver.base_url:
            errors.append("Resolver base_url is required when resolver type is 'http'")
        elif not validate_url(config.resolver.base_url):
            errors.append(f"Invalid resolver base_url: {config.resolver.base_url}")
    if config.resolver.timeout_s <= 0:
        errors.append(f"Invalid resolver timeout_s: {config.resolver.timeout_s}")
    if config.resolver.cache_size < 0:
        errors.append(f"Invalid resolver cache_size: {config.resolver.cache_size}")

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
    except yaml.YAMLError as e:
        raise ConfigError(f"Error parsing YAML config: {e}")
    except IOError as e:
        raise ConfigError(f"Error reading config file: {e}")

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigError(f"Config file must contain a mapping: {path}")
    return data


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

        if env_var in _INT_ENV_VARS:
            try:
                value = int(value)
            except ValueError:
                logger.warning(f"Invalid integer for {env_var}: {value}")
                continue
        elif env_var in _FLOAT_ENV_VARS:
            try:
                value = float(value)
            except ValueError:
                logger.warning(f"Invalid number for {env_var}: {value}")
                continue

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
        p = d["player"] or {}
        config.player.default_volume = float(
            p.get("default_volume", config.player.default_volume)
        )
        config.player.tick_interval_ms = int(
            p.get("tick_interval_ms", config.player.tick_interval_ms)
        )
        config.player.synthetic_step = float(
            p.get("synthetic_step", config.player.synthetic_step)
        )

    # Engine
    if "engine" in d:
        e = d["engine"] or {}
        config.engine.type = str(e.get("type", config.engine.type)).lower()
        config.engine.track_duration_s = float(
            e.get("track_duration_s", config.engine.track_duration_s)
        )

    # Resolver
    if "resolver" in d:
        r = d["resolver"] or {}
        config.resolver.type = str(r.get("type", config.resolver.type)).lower()
        config.resolver.base_url = r.get("base_url", config.resolver.base_url) or ""
        config.resolver.timeout_s = float(r.get("timeout_s", config.resolver.timeout_s))
        config.resolver.cache_size = int(r.get("cache_size", config.resolver.cache_size))

    # Logging
    if "logging" in d:
        config.logging.level = (d["logging"] or {}).get("level", config.logging.level)

    return config


def load_config(
    config_path: Optional[Path] = None,
    cli_args: Optional[dict] = None,
) -> Config:
    """
    Load configuration from all sources.

    Priority (highest to lowest):
    1. CLI arguments
    2. Environment variables
    3. Config file
    4. Defaults

    Args:
        config_path: Path to YAML config file
        cli_args: Dictionary of CLI arguments

    Returns:
        Merged Config object

    Raises:
        ConfigError: If configuration is invalid
    """
    configs = []

    if config_path:
        file_config = load_yaml_config(config_path)
        if file_config:
            configs.append(file_config)
            logger.debug(f"Loaded config from {config_path}")

    env_config = load_env_config()
    if env_config:
        configs.append(env_config)
        logger.debug("Loaded config from environment variables")

    if cli_args:
        configs.append(cli_args)
        logger.debug("Loaded config from CLI arguments")

    merged = merge_configs(*configs) if configs else {}

    try:
        config = dict_to_config(merged)
    except (TypeError, ValueError) as e:
        raise ConfigError(f"Invalid configuration value: {e}")

    validate_config(config)

    return config
