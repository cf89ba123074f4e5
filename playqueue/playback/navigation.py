"""
Queue navigation.

Computes next/previous targets under shuffle and repeat modes and moves
the selection through the loader.
"""

import logging
import random
from typing import Optional

from .loader import TrackLoader
from .queue import NO_INDEX, RepeatMode
from .state import PlayerState

logger = logging.getLogger(__name__)


def next_index(
    length: int,
    current: int,
    shuffled: bool,
    repeat_mode: RepeatMode,
    rng: random.Random,
) -> Optional[int]:
    """
    Target of a forward skip.

    Args:
        length: Queue length, must be > 0
        current: Current index or NO_INDEX
        shuffled: Pick uniformly at random instead of sequentially
        repeat_mode: ONE restarts the current track, ALL wraps at the end
        rng: Random source for shuffle

    Returns:
        Index to select, or None to clear the selection (end of queue)
    """
    if length <= 0:
        raise ValueError("next_index() requires a non-empty queue")

    if repeat_mode == RepeatMode.ONE and current != NO_INDEX:
        return current

    if shuffled:
        candidate = rng.randrange(length)
        # Never pick the same track twice in a row going forward
        if length > 1 and candidate == current:
            candidate = (candidate + 1) % length
    else:
        candidate = current + 1

    if candidate >= length:
        return 0 if repeat_mode == RepeatMode.ALL else None
    return candidate


def previous_index(
    length: int,
    current: int,
    shuffled: bool,
    repeat_mode: RepeatMode,
    rng: random.Random,
) -> Optional[int]:
    """
    Target of a backward skip.

    Shuffle picks uniformly with no anti-repeat correction, and repeat ONE
    does not apply going backward.

    Returns:
        Index to select, or None to clear the selection (start of queue)
    """
    if length <= 0:
        raise ValueError("previous_index() requires a non-empty queue")

    candidate = rng.randrange(length) if shuffled else current - 1

    if candidate < 0:
        return length - 1 if repeat_mode == RepeatMode.ALL else None
    return candidate


class Navigator:
    """Moves the current-index pointer and drives the loader."""

    def __init__(
        self,
        state: PlayerState,
        loader: TrackLoader,
        rng: Optional[random.Random] = None,
    ) -> None:
        self._state = state
        self._loader = loader
        self._rng = rng or random.Random()

    async def skip_next(self) -> None:
        """Advance per shuffle/repeat; clears the selection at the end of the queue."""
        queue = self._state.queue
        if queue.is_empty:
            logger.debug("Skip next ignored, queue empty")
            return

        target = next_index(
            len(queue),
            queue.current_index,
            self._state.is_shuffled,
            self._state.repeat_mode,
            self._rng,
        )
        if target is None:
            logger.info("End of queue reached")
        await self.go_to_index(target, auto_play=True)

    async def skip_previous(self) -> None:
        """Go back per shuffle/repeat; clears the selection at the start of the queue."""
        queue = self._state.queue
        if queue.is_empty:
            logger.debug("Skip previous ignored, queue empty")
            return

        target = previous_index(
            len(queue),
            queue.current_index,
            self._state.is_shuffled,
            self._state.repeat_mode,
            self._rng,
        )
        if target is None:
            logger.info("Start of queue reached")
        await self.go_to_index(target, auto_play=True)

    async def go_to_index(self, index: Optional[int], auto_play: bool = True) -> bool:
        """
        Select a queue position.

        None or an out-of-range index stops playback and clears the
        selection. A valid index becomes current with progress 0 and is
        loaded only when auto_play is set.

        Returns:
            True if a track was selected
        """
        queue = self._state.queue
        if index is None or not 0 <= index < len(queue):
            queue.clear_selection()
            self._state.update(is_playing=False, progress=0.0)
            await self._loader.pause()
            return False

        queue.set_current_index(index)
        track = queue.current_track
        assert track is not None
        logger.debug(f"Selected index {index}: {track.track_id}")

        if auto_play:
            await self._loader.load(track, should_play=True)
        else:
            self._state.update(is_playing=False, progress=0.0)
            await self._loader.pause()
        return True
