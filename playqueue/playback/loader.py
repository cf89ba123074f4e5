"""
Track loader.

Resolves a playable URL for the current queue entry, hands it to the
playback engine and starts the matching progress clock mode.
"""

import logging
from typing import Optional

from playqueue.engines import PlaybackEngine
from playqueue.models import Track
from playqueue.resolvers import TrackResolver

from .clock import ProgressClock
from .state import PlayerState

logger = logging.getLogger(__name__)


class TrackLoader:
    """
    Bridges queue entries to the engine and the progress clock.

    Every load, pause, resume or unload starts a new generation. A
    continuation that resumes after its generation was superseded may
    still merge resolved URLs into the queue, but never touches the
    engine or the clock.

    The engine itself is owned by the last generation that loaded or
    started a resource on it. A superseded start may only silence the
    engine while it still owns it; the URL alone cannot tell a stale start
    from a newer load of the same resource.
    """

    def __init__(
        self,
        state: PlayerState,
        clock: ProgressClock,
        resolver: TrackResolver,
        engine: Optional[PlaybackEngine] = None,
    ) -> None:
        self._state = state
        self._clock = clock
        self._resolver = resolver
        self._engine = engine
        self._generation = 0
        # Generation that last loaded or started a resource on the engine
        self._engine_owner = 0

    @property
    def generation(self) -> int:
        """Current load generation."""
        return self._generation

    def invalidate(self) -> int:
        """Supersede any in-flight load. Returns the new generation."""
        self._generation += 1
        return self._generation

    def _is_stale(self, generation: int) -> bool:
        return generation != self._generation

    # =========================================================================
    # Loading
    # =========================================================================

    async def load(self, track: Track, should_play: bool = True) -> bool:
        """
        Load a queue entry, optionally starting playback.

        The intent (is_playing=should_play, progress=0) is published before
        anything is awaited. Resolution and engine failures fall back to
        synthetic playback and are never raised.

        Returns:
            True if real playback started, or the track was prepared
            without playing
        """
        generation = self.invalidate()
        self._clock.stop()
        self._state.update(is_playing=should_play, progress=0.0)
        logger.info(f"Loading {track} (play={should_play})")

        await self._pause_engine()

        resolved = track
        if not track.has_stream:
            try:
                resolved = await self._resolver.resolve(track)
            except Exception as e:
                logger.warning(f"Resolution failed for track {track.track_id}: {e}")
                if self._is_stale(generation):
                    return False
                if should_play:
                    self._start_synthetic()
                return False

            # Merging into our own queue copies is harmless even when stale
            if self._state.queue.merge_resolved(resolved):
                self._state.publish()

        if self._is_stale(generation):
            logger.debug(f"Load of {track.track_id} superseded, skipping engine")
            return False

        if not should_play:
            if self._engine and resolved.has_stream:
                await self._prepare(resolved, generation)
            return True

        if self._engine and resolved.has_stream:
            return await self._start_engine(resolved, generation)

        logger.info(f"No stream for {track}, simulating playback")
        self._start_synthetic()
        return False

    async def _prepare(self, track: Track, generation: int) -> None:
        """Load the URL without playing so a later resume plays the right resource."""
        assert self._engine is not None and track.streaming_url
        self._engine_owner = generation
        try:
            await self._engine.load(track.streaming_url)
        except Exception as e:
            logger.warning(f"Engine failed to load {track.track_id}: {e}")

    async def _start_engine(self, track: Track, generation: int) -> bool:
        assert self._engine is not None and track.streaming_url
        self._engine_owner = generation
        try:
            await self._engine.load(track.streaming_url)
            await self._engine.set_volume(self._state.volume / 100.0)
            await self._engine.play()
        except Exception as e:
            logger.error(f"Engine failed to start {track.track_id}: {e}")
            if not self._is_stale(generation):
                self._start_synthetic()
            return False

        if self._is_stale(generation):
            await self._silence_if_owner(generation)
            return False

        self._clock.start_real(self._sample_engine)
        logger.info(f"Playing {track}")
        return True

    # =========================================================================
    # Transport
    # =========================================================================

    async def pause(self) -> None:
        """Stop the clock and pause the engine, keeping the resource loaded."""
        self.invalidate()
        self._clock.stop()
        await self._pause_engine()

    async def resume(self, track: Track) -> None:
        """
        Resume the current track.

        Real playback when the track has a stream and an engine exists,
        otherwise the synthetic clock continues from the current progress.
        """
        generation = self.invalidate()
        self._clock.stop()

        if not (self._engine and track.has_stream):
            self._start_synthetic(self._state.progress)
            return

        url = track.streaming_url
        assert url is not None
        self._engine_owner = generation
        try:
            if self._engine.url != url:
                await self._engine.load(url)
                await self._seek_engine_to_progress()
            await self._engine.set_volume(self._state.volume / 100.0)
            await self._engine.play()
        except Exception as e:
            logger.error(f"Engine failed to resume {track.track_id}: {e}")
            if not self._is_stale(generation):
                self._start_synthetic(self._state.progress)
            return

        if self._is_stale(generation):
            await self._silence_if_owner(generation)
            return
        self._clock.start_real(self._sample_engine)

    async def unload(self) -> None:
        """Stop the clock and stop/unload the engine."""
        self.invalidate()
        self._clock.stop()
        if self._engine:
            try:
                await self._engine.stop()
            except Exception as e:
                logger.error(f"Engine stop failed: {e}")

    # =========================================================================
    # Helpers
    # =========================================================================

    def _start_synthetic(self, start: float = 0.0) -> None:
        self._clock.start_synthetic(start)

    def _sample_engine(self) -> Optional[float]:
        """Engine position as a percentage, None while duration is unknown."""
        if not self._engine:
            return None
        duration = self._engine.duration
        if duration <= 0:
            return None
        return self._engine.position / duration * 100.0

    async def _seek_engine_to_progress(self) -> None:
        assert self._engine is not None
        if self._state.progress > 0 and self._engine.duration > 0:
            await self._engine.seek(self._state.progress / 100.0 * self._engine.duration)

    async def _silence_if_owner(self, generation: int) -> None:
        """Pause a start that was superseded, unless a newer generation took the engine."""
        if self._engine_owner != generation:
            logger.debug(
                f"Stale start {generation} left alone, engine owned by {self._engine_owner}"
            )
            return
        await self._pause_engine()

    async def _pause_engine(self) -> None:
        if not self._engine:
            return
        try:
            await self._engine.pause()
        except Exception as e:
            logger.error(f"Engine pause failed: {e}")
