"""
Queue management for PlayQueue.

Owns the ordered track list and the current-index pointer, and keeps the
pointer on the same logical track across structural changes.
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Iterable, Optional

from playqueue.models import Track

logger = logging.getLogger(__name__)

# Current index when nothing is selected
NO_INDEX = -1


class RepeatMode(Enum):
    """Queue repeat modes."""

    OFF = "off"  # Stop after last track
    ONE = "one"  # Restart current track on forward skip
    ALL = "all"  # Wrap around the queue

    def next(self) -> "RepeatMode":
        """Cycle off -> one -> all -> off."""
        modes = list(RepeatMode)
        return modes[(modes.index(self) + 1) % len(modes)]


@dataclass
class RemovalResult:
    """
    Outcome of a remove() call.

    Attributes:
        removed: Whether an entry matched the ID
        removed_index: Position the entry occupied (NO_INDEX if none)
        current_changed: Whether the current track is now a different entry
    """

    removed: bool
    removed_index: int = NO_INDEX
    current_changed: bool = False


class QueueStore:
    """
    Ordered playlist with a current-index pointer.

    The current track is always derived from the pointer, so there is no
    separate cache to resynchronize. Invariants:
    - empty queue implies index == NO_INDEX
    - index != NO_INDEX implies 0 <= index < len(queue)

    Mutations never await, so each one is atomic on the event loop.
    """

    def __init__(self, tracks: Optional[Iterable[Track]] = None) -> None:
        self._tracks: list[Track] = [t.copy() for t in tracks] if tracks else []
        self._current_index: int = NO_INDEX

    # =========================================================================
    # Access
    # =========================================================================

    @property
    def tracks(self) -> tuple[Track, ...]:
        """Queue contents (read-only view)."""
        return tuple(self._tracks)

    @property
    def current_index(self) -> int:
        """Current index, or NO_INDEX when nothing is selected."""
        return self._current_index

    @property
    def current_track(self) -> Optional[Track]:
        """Track at the current index."""
        if self._current_index == NO_INDEX:
            return None
        return self._tracks[self._current_index]

    @property
    def up_next(self) -> tuple[Track, ...]:
        """Tracks after the current one (whole queue when nothing selected)."""
        return tuple(self._tracks[self._current_index + 1 :])

    @property
    def is_empty(self) -> bool:
        """Check if queue is empty."""
        return not self._tracks

    def __len__(self) -> int:
        return len(self._tracks)

    def get(self, index: int) -> Optional[Track]:
        """Track at index, or None if out of range."""
        if 0 <= index < len(self._tracks):
            return self._tracks[index]
        return None

    def index_of(self, track_id: str) -> int:
        """Position of the first entry with track_id, or NO_INDEX."""
        for i, track in enumerate(self._tracks):
            if track.track_id == track_id:
                return i
        return NO_INDEX

    # =========================================================================
    # Structural mutation
    # =========================================================================

    def append(self, track: Track) -> None:
        """
        Add a track at the end.

        With no selection the appended track becomes current, at the last
        index rather than 0. On an empty queue that is index 0; on a queue
        whose selection was cleared (for example after running off the end)
        the next play starts from the newly added track. Playback is not
        started here.
        """
        self._tracks.append(track.copy())
        if self._current_index == NO_INDEX:
            self._current_index = len(self._tracks) - 1
        logger.debug(f"Appended {track.track_id}, queue length {len(self._tracks)}")

    def insert_next(self, track: Track) -> None:
        """
        Insert a track right after the current one.

        With no selection the queue is replaced by the single track, which
        becomes current.
        """
        if self._current_index == NO_INDEX:
            self._tracks = [track.copy()]
            self._current_index = 0
        else:
            self._tracks.insert(self._current_index + 1, track.copy())
        logger.debug(f"Inserted {track.track_id} next, queue length {len(self._tracks)}")

    def remove(self, track_id: str) -> RemovalResult:
        """Remove the first entry matching track_id."""
        index = self.index_of(track_id)
        if index == NO_INDEX:
            logger.debug(f"Remove ignored, {track_id} not in queue")
            return RemovalResult(removed=False)

        del self._tracks[index]
        current = self._current_index
        current_changed = False

        if index == current:
            current_changed = True
            if not self._tracks:
                self._current_index = NO_INDEX
            elif current >= len(self._tracks):
                self._current_index = len(self._tracks) - 1
        elif index < current:
            self._current_index = max(current - 1, 0)

        logger.debug(
            f"Removed {track_id} at {index}, index {current} -> {self._current_index}"
        )
        return RemovalResult(removed=True, removed_index=index, current_changed=current_changed)

    def reorder(self, from_index: int, to_index: int) -> bool:
        """
        Move one entry from from_index to to_index.

        Returns:
            False (no-op) for equal, negative or out-of-range indices
        """
        length = len(self._tracks)
        if (
            from_index == to_index
            or from_index < 0
            or to_index < 0
            or from_index >= length
            or to_index >= length
        ):
            return False

        moved = self._tracks.pop(from_index)
        self._tracks.insert(to_index, moved)

        current = self._current_index
        if from_index == current:
            self._current_index = to_index
        elif from_index < current <= to_index:
            self._current_index = current - 1
        elif to_index <= current < from_index:
            self._current_index = current + 1

        logger.debug(
            f"Moved {moved.track_id} {from_index} -> {to_index}, "
            f"index {current} -> {self._current_index}"
        )
        return True

    def clear(self) -> None:
        """Empty the queue and clear the selection."""
        self._tracks.clear()
        self._current_index = NO_INDEX
        logger.debug("Queue cleared")

    # =========================================================================
    # Low-level overrides
    # =========================================================================

    def set_queue(self, tracks: Iterable[Track]) -> None:
        """Replace the contents; the index survives only while still in range."""
        self._tracks = [t.copy() for t in tracks]
        if self._current_index >= len(self._tracks):
            self._current_index = NO_INDEX

    def set_current_index(self, index: int) -> bool:
        """Point at index (NO_INDEX clears). Out-of-range values are ignored."""
        if index != NO_INDEX and not 0 <= index < len(self._tracks):
            logger.warning(f"Ignoring out-of-range index {index} (length {len(self._tracks)})")
            return False
        self._current_index = index
        return True

    def clear_selection(self) -> None:
        """Select nothing, keeping the contents."""
        self._current_index = NO_INDEX

    def merge_resolved(self, resolved: Track) -> int:
        """
        Attach a resolved stream to every entry with the same ID.

        Returns:
            Number of entries updated
        """
        updated = 0
        for i, track in enumerate(self._tracks):
            if track.track_id == resolved.track_id:
                self._tracks[i] = resolved.copy()
                updated += 1
        return updated
