"""
Abstract playback engine interface.

Defines the contract the transport needs from whatever produces audio.
"""

import logging
from abc import ABC, abstractmethod
from typing import Callable, Optional

from .types import EngineInfo, EngineState

logger = logging.getLogger(__name__)

# Event callback types
EndedCallback = Callable[[], None]
ErrorCallback = Callable[[str], None]  # error_message


class EngineError(Exception):
    """Raised when the engine rejects a request (e.g. play() refused)."""

    pass


class PlaybackEngine(ABC):
    """
    Abstract base class for playback engines.

    An engine loads a resource by URL, exposes play/pause/seek/volume
    controls and a position/duration readout, and emits "ended" and
    "error" events. Decoding and output are entirely the engine's concern.
    """

    def __init__(self, name: str = "PlaybackEngine"):
        """Initialize engine."""
        self.name = name
        self._volume: float = 1.0  # 0.0-1.0
        self._state: EngineState = EngineState.STOPPED
        self._is_connected: bool = False
        self._url: Optional[str] = None

        # Event callbacks
        self._on_ended: Optional[EndedCallback] = None
        self._on_error: Optional[ErrorCallback] = None

    # =========================================================================
    # Playback Control - Required
    # =========================================================================

    @abstractmethod
    async def load(self, url: str) -> None:
        """Load a resource, replacing whatever was loaded before."""
        pass

    @abstractmethod
    async def play(self) -> None:
        """
        Start or resume playback of the loaded resource.

        Raises:
            EngineError: If the engine refuses to start
        """
        pass

    @abstractmethod
    async def pause(self) -> None:
        """Pause current playback."""
        pass

    @abstractmethod
    async def stop(self) -> None:
        """Stop playback and unload the current resource."""
        pass

    # =========================================================================
    # Position Control - Required
    # =========================================================================

    @abstractmethod
    async def seek(self, position_s: float) -> None:
        """Seek to position in seconds."""
        pass

    @property
    @abstractmethod
    def position(self) -> float:
        """Current playback position in seconds."""
        pass

    @property
    @abstractmethod
    def duration(self) -> float:
        """Duration of the loaded resource in seconds (0 when unknown)."""
        pass

    # =========================================================================
    # Volume Control
    # =========================================================================

    async def set_volume(self, level: float) -> None:
        """Set playback volume (0.0-1.0)."""
        self._volume = max(0.0, min(1.0, level))

    @property
    def volume(self) -> float:
        """Current volume (0.0-1.0)."""
        return self._volume

    # =========================================================================
    # State
    # =========================================================================

    @property
    def state(self) -> EngineState:
        """Current engine state."""
        return self._state

    @property
    def url(self) -> Optional[str]:
        """URL of the loaded resource, if any."""
        return self._url

    # =========================================================================
    # Lifecycle
    # =========================================================================

    async def connect(self) -> bool:
        """Acquire engine resources. Returns True if successful."""
        self._is_connected = True
        return True

    async def disconnect(self) -> None:
        """Release engine resources."""
        self._is_connected = False

    def is_connected(self) -> bool:
        """Check if engine is connected."""
        return self._is_connected

    # =========================================================================
    # Event Callbacks
    # =========================================================================

    def on_ended(self, callback: Optional[EndedCallback]) -> None:
        """Register callback for natural end of the loaded resource."""
        self._on_ended = callback

    def on_error(self, callback: Optional[ErrorCallback]) -> None:
        """Register callback for runtime playback errors."""
        self._on_error = callback

    def _notify_ended(self) -> None:
        """Notify listener that playback ended naturally."""
        if self._on_ended:
            try:
                self._on_ended()
            except Exception as e:
                logger.error(f"Ended callback error: {e}")

    def _notify_error(self, message: str) -> None:
        """Notify listener of a playback error."""
        if self._on_error:
            try:
                self._on_error(message)
            except Exception as e:
                logger.error(f"Error callback error: {e}")

    # =========================================================================
    # Info
    # =========================================================================

    def get_info(self) -> EngineInfo:
        """Get information about this engine."""
        return EngineInfo(engine_type="unknown", name=self.name)
