"""
Playback engine types and enumerations.
"""

from dataclasses import dataclass
from enum import IntEnum


class EngineState(IntEnum):
    """Playback engine state enumeration."""

    STOPPED = 1  # Nothing loaded, or unloaded
    LOADED = 2  # Resource loaded, not started
    PLAYING = 3  # Active playback
    PAUSED = 4  # Paused, position maintained
    ERROR = 5  # Runtime error, playback halted


@dataclass
class EngineInfo:
    """
    Information about a playback engine.

    Used for logging and display purposes.
    """

    engine_type: str  # 'memory', etc.
    name: str  # Display name

    def __str__(self) -> str:
        return f"{self.name} ({self.engine_type})"
