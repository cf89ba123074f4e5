"""
Progress clock.

Publishes playback progress (0-100) either by sampling the engine
(real mode) or from a timer-driven counter when no stream exists
(synthetic mode). The clock owns a single asyncio task, so at most one
mode is ever active.
"""

import asyncio
import logging
from enum import Enum
from typing import Callable, Optional

logger = logging.getLogger(__name__)

DEFAULT_TICK_INTERVAL_S = 0.25
DEFAULT_SYNTHETIC_STEP = 1.0

# Returns progress percent, or None when the engine has no duration yet
ProgressSampler = Callable[[], Optional[float]]
ProgressCallback = Callable[[float], None]
FinishedCallback = Callable[[], None]


class ClockMode(Enum):
    """Which source drives progress."""

    IDLE = "idle"
    REAL = "real"
    SYNTHETIC = "synthetic"


class ProgressClock:
    """
    Exclusive progress timer.

    Every start_*() call tears down the running mode first; stop() is
    synchronous so it can be called atomically with a state change.
    """

    def __init__(
        self,
        on_progress: ProgressCallback,
        on_finished: FinishedCallback,
        interval_s: float = DEFAULT_TICK_INTERVAL_S,
        synthetic_step: float = DEFAULT_SYNTHETIC_STEP,
    ) -> None:
        """
        Initialize clock.

        Args:
            on_progress: Receives each new progress value
            on_finished: Called when synthetic playback reaches 100
            interval_s: Tick period in seconds
            synthetic_step: Percent added per synthetic tick
        """
        self._on_progress = on_progress
        self._on_finished = on_finished
        self.interval_s = interval_s
        self.synthetic_step = synthetic_step

        self._mode = ClockMode.IDLE
        self._task: Optional[asyncio.Task[None]] = None

    @property
    def mode(self) -> ClockMode:
        """Active mode."""
        return self._mode

    @property
    def is_running(self) -> bool:
        """Whether a timer task is active."""
        return self._task is not None and not self._task.done()

    def start_real(self, sampler: ProgressSampler) -> None:
        """Sample engine position every tick until stopped."""
        self.stop()
        self._mode = ClockMode.REAL
        self._task = asyncio.create_task(self._real_loop(sampler))
        logger.debug("Progress clock started (real)")

    def start_synthetic(self, start: float = 0.0) -> None:
        """Count from start to 100, then finish playback."""
        self.stop()
        self._mode = ClockMode.SYNTHETIC
        self._task = asyncio.create_task(self._synthetic_loop(start))
        logger.debug(f"Progress clock started (synthetic from {start:.0f})")

    def stop(self) -> None:
        """Cancel whichever timer is active."""
        if self._task and not self._task.done():
            self._task.cancel()
            logger.debug(f"Progress clock stopped ({self._mode.value})")
        self._task = None
        self._mode = ClockMode.IDLE

    async def join(self) -> None:
        """Wait for the active timer to end on its own or be cancelled."""
        task = self._task
        if task is None:
            return
        try:
            await task
        except asyncio.CancelledError:
            pass

    # =========================================================================
    # Timer loops
    # =========================================================================

    async def _real_loop(self, sampler: ProgressSampler) -> None:
        while True:
            await asyncio.sleep(self.interval_s)
            try:
                value = sampler()
                if value is not None:
                    self._on_progress(max(0.0, min(100.0, value)))
            except Exception as e:
                logger.error(f"Progress sampling error: {e}")

    async def _synthetic_loop(self, start: float) -> None:
        progress = max(0.0, min(100.0, start))
        while progress < 100.0:
            await asyncio.sleep(self.interval_s)
            progress = min(100.0, progress + self.synthetic_step)
            try:
                self._on_progress(progress)
            except Exception as e:
                logger.error(f"Progress callback error: {e}")

        # Synthetic playback has no "ended" event, so the clock ends it
        if self._task is asyncio.current_task():
            self._task = None
            self._mode = ClockMode.IDLE
        logger.debug("Synthetic playback finished")
        try:
            self._on_finished()
        except Exception as e:
            logger.error(f"Finished callback error: {e}")
