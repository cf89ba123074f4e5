"""
PlayQueue Player.

Transport facade that composes the queue store, navigation, the track
loader and the progress clock, and reacts to playback engine events.
"""

import asyncio
import logging
import random
from typing import Any, Coroutine, Iterable, Optional

from playqueue.config import PlayerConfig
from playqueue.engines import PlaybackEngine
from playqueue.models import Track
from playqueue.resolvers import NullResolver, TrackResolver

from .clock import ClockMode, ProgressClock
from .loader import TrackLoader
from .navigation import Navigator
from .queue import RepeatMode
from .state import PlayerSnapshot, PlayerState, StateListener, clamp_percent

logger = logging.getLogger(__name__)


class Player:
    """
    Main transport controller.

    Coordinates:
    - PlayerState: queue, current index, flags, progress, volume
    - Navigator: next/previous/go-to selection
    - TrackLoader: URL resolution and engine start
    - ProgressClock: real or synthetic progress

    Every operation is a coroutine or a plain method on the event loop;
    none of them raise for resolution or engine failures.
    """

    def __init__(
        self,
        config: Optional[PlayerConfig] = None,
        engine: Optional[PlaybackEngine] = None,
        resolver: Optional[TrackResolver] = None,
        rng: Optional[random.Random] = None,
    ):
        """
        Initialize player.

        Args:
            config: Player settings (defaults if omitted)
            engine: Playback engine; None means playback is always simulated
            resolver: Resolution service for tracks without a stream
            rng: Random source for shuffle
        """
        self.config = config or PlayerConfig()
        self.engine = engine
        self.resolver = resolver or NullResolver()

        self._state = PlayerState(default_volume=self.config.default_volume)
        self._clock = ProgressClock(
            on_progress=self._on_clock_progress,
            on_finished=self._on_clock_finished,
            interval_s=self.config.tick_interval_s,
            synthetic_step=self.config.synthetic_step,
        )
        self._loader = TrackLoader(self._state, self._clock, self.resolver, engine)
        self._navigator = Navigator(self._state, self._loader, rng)

        # Engine-event continuations
        self._tasks: set[asyncio.Task[Any]] = set()
        self._is_running = False

        # Wire up engine callbacks
        if self.engine:
            self.engine.on_ended(self._on_engine_ended)
            self.engine.on_error(self._on_engine_error)

        logger.info("Player initialized")

    # =========================================================================
    # Lifecycle
    # =========================================================================

    async def start(self) -> None:
        """Connect the engine and open the resolver."""
        if self._is_running:
            return
        self._is_running = True

        if self.engine:
            if not self.engine.is_connected():
                await self.engine.connect()
            await self.engine.set_volume(self._state.volume / 100.0)

        await self.resolver.start()
        logger.info("Player started")

    async def shutdown(self) -> None:
        """Stop playback, cancel timers and pending work, detach listeners."""
        await self.close_player()

        for task in list(self._tasks):
            task.cancel()
        if self._tasks:
            await asyncio.gather(*self._tasks, return_exceptions=True)
        self._tasks.clear()

        self._state.clear_listeners()
        if self.engine:
            self.engine.on_ended(None)
            self.engine.on_error(None)
            await self.engine.disconnect()
        await self.resolver.close()

        self._is_running = False
        logger.info("Player shut down")

    # =========================================================================
    # State Access
    # =========================================================================

    def snapshot(self) -> PlayerSnapshot:
        """Current state snapshot."""
        return self._state.snapshot()

    def add_listener(self, listener: StateListener) -> None:
        """Receive a snapshot after every state change."""
        self._state.add_listener(listener)

    def remove_listener(self, listener: StateListener) -> None:
        """Stop receiving snapshots."""
        self._state.remove_listener(listener)

    @property
    def clock_mode(self) -> ClockMode:
        """Which source currently drives progress."""
        return self._clock.mode

    # =========================================================================
    # Transport
    # =========================================================================

    async def play_track(self, track: Track) -> None:
        """
        Play a single track.

        The current track toggles play/pause; any other track replaces the
        whole queue and starts playing.
        """
        current = self._state.queue.current_track
        if current and current.track_id == track.track_id:
            await self.toggle_play()
            return

        queue = self._state.queue
        queue.set_queue([track])
        queue.set_current_index(0)
        new_current = queue.current_track
        assert new_current is not None
        await self._loader.load(new_current, should_play=True)

    async def toggle_play(self) -> None:
        """Pause if playing, resume if paused. No-op without a current track."""
        track = self._state.queue.current_track
        if track is None:
            logger.debug("Toggle ignored, no current track")
            return

        if self._state.is_playing:
            self._state.update(is_playing=False)
            await self._loader.pause()
            logger.info("Playback paused")
        else:
            self._state.update(is_playing=True)
            await self._loader.resume(track)
            logger.info("Playback resumed")

    async def seek(self, position: float) -> None:
        """
        Move to a position (0-100).

        Progress is published immediately. A loaded engine stream with a
        known duration is repositioned too; synthetic playback only
        changes the displayed value.
        """
        track = self._state.queue.current_track
        if track is None:
            logger.debug("Seek ignored, no current track")
            return

        position = clamp_percent(position)
        self._state.update(progress=position)

        engine = self.engine
        if (
            engine
            and track.has_stream
            and engine.url == track.streaming_url
            and engine.duration > 0
        ):
            try:
                await engine.seek(position / 100.0 * engine.duration)
            except Exception as e:
                logger.error(f"Seek failed: {e}")

    async def set_volume(self, volume: float) -> float:
        """
        Set volume (0-100) and apply it to the engine as 0.0-1.0.

        Returns:
            Volume after clamping
        """
        volume = clamp_percent(volume)
        self._state.update(volume=volume)
        if self.engine:
            try:
                await self.engine.set_volume(volume / 100.0)
            except Exception as e:
                logger.error(f"Failed to apply volume: {e}")
        logger.debug(f"Volume set to {volume:.0f}")
        return volume

    async def close_player(self) -> None:
        """Stop and unload the engine and reset everything to defaults."""
        self._state.reset()
        await self._loader.unload()
        logger.info("Player closed")

    # =========================================================================
    # Modes and presentation flags
    # =========================================================================

    def toggle_shuffle(self) -> bool:
        self._state.update(is_shuffled=not self._state.is_shuffled)
        logger.info(f"Shuffle: {self._state.is_shuffled}")
        return self._state.is_shuffled

    def toggle_repeat(self) -> RepeatMode:
        """Cycle off -> one -> all -> off."""
        self._state.update(repeat_mode=self._state.repeat_mode.next())
        logger.info(f"Repeat mode: {self._state.repeat_mode.value}")
        return self._state.repeat_mode

    def toggle_minimize(self) -> bool:
        self._state.update(is_minimized=not self._state.is_minimized)
        return self._state.is_minimized

    def open_queue_panel(self) -> None:
        self._state.update(is_queue_open=True)

    def close_queue_panel(self) -> None:
        self._state.update(is_queue_open=False)

    def toggle_queue_panel(self) -> bool:
        self._state.update(is_queue_open=not self._state.is_queue_open)
        return self._state.is_queue_open

    # =========================================================================
    # Navigation
    # =========================================================================

    async def skip_next(self) -> None:
        await self._navigator.skip_next()

    async def skip_previous(self) -> None:
        await self._navigator.skip_previous()

    async def go_to_index(self, index: Optional[int], auto_play: bool = True) -> bool:
        return await self._navigator.go_to_index(index, auto_play)

    async def play_from_queue(self, index: int) -> bool:
        """Select a queue entry from the queue panel and play it."""
        return await self._navigator.go_to_index(index, auto_play=True)

    # =========================================================================
    # Queue Management
    # =========================================================================

    def append(self, track: Track) -> None:
        """Add to the end; selects it (without playing) if nothing is selected."""
        self._state.queue.append(track)
        self._state.publish()

    def insert_next(self, track: Track) -> None:
        """Queue right after the current track."""
        self._state.queue.insert_next(track)
        self._state.publish()

    async def remove(self, track_id: str) -> bool:
        """
        Remove the first entry with track_id.

        Whenever a current track remains afterwards (the same one, its
        successor or the new last entry) it is re-loaded from the start
        honoring the previous play state; when nothing is selected, the
        engine is stopped.

        Returns:
            True if an entry was removed
        """
        was_playing = self._state.is_playing
        result = self._state.queue.remove(track_id)
        if not result.removed:
            return False

        current = self._state.queue.current_track
        if current is None:
            self._state.update(is_playing=False, progress=0.0)
            await self._loader.unload()
        else:
            await self._loader.load(current, should_play=was_playing)
        return True

    def reorder(self, from_index: int, to_index: int) -> bool:
        """Move one queue entry; the current track stays current."""
        if not self._state.queue.reorder(from_index, to_index):
            logger.debug(f"Reorder {from_index} -> {to_index} ignored")
            return False
        self._state.publish()
        return True

    async def clear(self) -> None:
        """Empty the queue and stop playback; modes, volume and flags are kept."""
        self._state.queue.clear()
        self._state.update(is_playing=False, progress=0.0)
        await self._loader.unload()

    async def set_queue(self, tracks: Iterable[Track]) -> None:
        """
        Replace the queue contents.

        The index is kept while in range. If the current track changes as
        a result, playback stops and progress resets.
        """
        before = self._state.queue.current_track
        self._state.queue.set_queue(tracks)
        after = self._state.queue.current_track

        if after is None or before is None or after.track_id != before.track_id:
            self._state.update(is_playing=False, progress=0.0)
            await self._loader.pause()
        else:
            self._state.publish()

    async def set_current_index(self, index: int) -> bool:
        """
        Point at another entry without loading it.

        Playback stops and progress resets when the selection changes.
        Out-of-range indices are ignored.
        """
        queue = self._state.queue
        if index == queue.current_index:
            return True
        if not queue.set_current_index(index):
            return False
        self._state.update(is_playing=False, progress=0.0)
        await self._loader.pause()
        return True

    # =========================================================================
    # Callbacks from Components
    # =========================================================================

    def _on_clock_progress(self, progress: float) -> None:
        """Progress only advances while playing."""
        if self._state.is_playing:
            self._state.update(progress=progress)

    def _on_clock_finished(self) -> None:
        """Synthetic playback reached 100."""
        logger.info("Simulated playback finished")
        self._state.update(is_playing=False, progress=0.0)

    def _on_engine_ended(self) -> None:
        """Callback when the engine reports natural end of the resource."""
        if not self._state.is_playing or self._clock.mode != ClockMode.REAL:
            logger.debug("Ignoring ended event, not playing a real stream")
            return
        logger.debug("Track ended, advancing")
        self._spawn(self._navigator.skip_next())

    def _on_engine_error(self, message: str) -> None:
        """Callback when the engine reports a runtime error."""
        logger.error(f"Playback error: {message}")
        self._loader.invalidate()
        self._clock.stop()
        self._state.update(is_playing=False)

    def _spawn(self, coro: Coroutine[Any, Any, Any]) -> None:
        task = asyncio.create_task(coro)
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
