"""
In-memory playback engine.

Plays nothing audible: position advances with a monotonic clock and the
"ended" event fires when the configured duration elapses. Used by the
console and by tests as a stand-in for a real audio stack.
"""

import asyncio
import logging
import time
from typing import Optional

from .base import EngineError, PlaybackEngine
from .types import EngineInfo, EngineState

logger = logging.getLogger(__name__)


class MemoryEngine(PlaybackEngine):
    """Virtual engine with timestamp-based position tracking."""

    def __init__(self, name: str = "Memory Engine", track_duration_s: float = 30.0):
        super().__init__(name=name)
        self._track_duration_s = track_duration_s
        self._duration_s: float = 0.0

        # Position is value-at-timestamp while playing
        self._position_value_s: float = 0.0
        self._position_timestamp: float = 0.0

        self._end_handle: Optional[asyncio.TimerHandle] = None

    async def load(self, url: str) -> None:
        self._cancel_end_timer()
        self._url = url
        self._duration_s = self._track_duration_s
        self._position_value_s = 0.0
        self._state = EngineState.LOADED
        logger.debug(f"Loaded {url}")

    async def play(self) -> None:
        if not self._url:
            raise EngineError("Nothing loaded")
        if self._state == EngineState.PLAYING:
            return
        if self._state == EngineState.ERROR:
            raise EngineError(f"Engine in error state for {self._url}")

        self._position_timestamp = time.monotonic()
        self._state = EngineState.PLAYING
        self._schedule_end_timer()
        logger.debug(f"Playing {self._url} from {self._position_value_s:.2f}s")

    async def pause(self) -> None:
        if self._state != EngineState.PLAYING:
            return
        self._position_value_s = self.position
        self._cancel_end_timer()
        self._state = EngineState.PAUSED

    async def stop(self) -> None:
        self._cancel_end_timer()
        self._url = None
        self._duration_s = 0.0
        self._position_value_s = 0.0
        self._state = EngineState.STOPPED

    async def seek(self, position_s: float) -> None:
        if not self._url:
            return
        self._position_value_s = max(0.0, min(position_s, self._duration_s))
        self._position_timestamp = time.monotonic()
        if self._state == EngineState.PLAYING:
            self._cancel_end_timer()
            self._schedule_end_timer()

    @property
    def position(self) -> float:
        if self._state != EngineState.PLAYING:
            return self._position_value_s
        elapsed = time.monotonic() - self._position_timestamp
        return min(self._position_value_s + elapsed, self._duration_s)

    @property
    def duration(self) -> float:
        return self._duration_s

    async def disconnect(self) -> None:
        await self.stop()
        await super().disconnect()

    # =========================================================================
    # Event simulation
    # =========================================================================

    def finish(self) -> None:
        """End the loaded resource now, as if it played to completion."""
        self._cancel_end_timer()
        self._position_value_s = self._duration_s
        self._state = EngineState.STOPPED
        self._notify_ended()

    def fail(self, message: str = "playback error") -> None:
        """Emit a runtime error."""
        self._cancel_end_timer()
        self._position_value_s = self.position
        self._state = EngineState.ERROR
        logger.warning(f"Engine error: {message}")
        self._notify_error(message)

    def _schedule_end_timer(self) -> None:
        remaining = max(0.0, self._duration_s - self._position_value_s)
        loop = asyncio.get_running_loop()
        self._end_handle = loop.call_later(remaining, self.finish)

    def _cancel_end_timer(self) -> None:
        if self._end_handle:
            self._end_handle.cancel()
            self._end_handle = None

    def get_info(self) -> EngineInfo:
        return EngineInfo(engine_type="memory", name=self.name)
