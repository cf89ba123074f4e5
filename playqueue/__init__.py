"""
PlayQueue - Queue and transport controller for sequential playback.

Tracks the current item, playback flag, progress, shuffle and repeat modes,
and mediates between user intent and a playback engine.
"""

__version__ = "0.1.0"

from .config import Config, load_config, ConfigError
from .playback import Player, PlayerSnapshot, RepeatMode, Track

__all__ = [
    "__version__",
    "Config",
    "load_config",
    "ConfigError",
    "Player",
    "PlayerSnapshot",
    "RepeatMode",
    "Track",
]
