"""
Playback engines module.

Provides abstract interface and factory for playback engines.
"""

from .base import (
    EndedCallback,
    EngineError,
    ErrorCallback,
    PlaybackEngine,
)
from .factory import (
    EngineFactory,
    EngineNotFoundError,
    EngineRegistry,
)
from .memory import MemoryEngine
from .types import EngineInfo, EngineState

__all__ = [
    # Types
    "EngineInfo",
    "EngineState",
    # Base class
    "PlaybackEngine",
    "EngineError",
    # Callback types
    "EndedCallback",
    "ErrorCallback",
    # Factory
    "EngineFactory",
    "EngineNotFoundError",
    "EngineRegistry",
    # Engines
    "MemoryEngine",
]
