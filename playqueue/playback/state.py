"""
Player state and snapshots.

All transport components mutate one PlayerState through update(), which
applies the changes together and then notifies listeners with an
immutable PlayerSnapshot.
"""

import logging
from dataclasses import dataclass
from typing import Any, Callable, Optional

from playqueue.models import Track

from .queue import QueueStore, RepeatMode

logger = logging.getLogger(__name__)

DEFAULT_VOLUME = 80.0

# Listener receives a snapshot after every state change
StateListener = Callable[["PlayerSnapshot"], None]


def clamp_percent(value: float) -> float:
    """Clamp to the 0-100 range."""
    return max(0.0, min(100.0, float(value)))


@dataclass(frozen=True)
class PlayerSnapshot:
    """Read-only view of the transport, as exposed to the presentation layer."""

    current_track: Optional[Track]
    current_index: int
    queue: tuple[Track, ...]
    up_next: tuple[Track, ...]
    is_playing: bool
    progress: float
    volume: float
    is_shuffled: bool
    repeat_mode: RepeatMode
    is_minimized: bool
    is_queue_open: bool

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for display or JSON output."""
        return {
            "current_track": self.current_track.to_dict() if self.current_track else None,
            "current_index": self.current_index,
            "queue": [t.track_id for t in self.queue],
            "up_next": [t.track_id for t in self.up_next],
            "is_playing": self.is_playing,
            "progress": round(self.progress, 2),
            "volume": self.volume,
            "is_shuffled": self.is_shuffled,
            "repeat_mode": self.repeat_mode.value,
            "is_minimized": self.is_minimized,
            "is_queue_open": self.is_queue_open,
        }


class PlayerState:
    """
    Mutable transport state.

    Invariants maintained here:
    - progress and volume stay within 0-100
    - with no current track, is_playing is False and progress is 0
    """

    _FIELDS = (
        "is_playing",
        "progress",
        "volume",
        "is_shuffled",
        "repeat_mode",
        "is_minimized",
        "is_queue_open",
    )

    def __init__(self, default_volume: float = DEFAULT_VOLUME) -> None:
        self.default_volume = clamp_percent(default_volume)
        self.queue = QueueStore()
        self.is_playing: bool = False
        self.progress: float = 0.0
        self.volume: float = self.default_volume
        self.is_shuffled: bool = False
        self.repeat_mode: RepeatMode = RepeatMode.OFF
        self.is_minimized: bool = False
        self.is_queue_open: bool = False

        self._listeners: list[StateListener] = []

    # =========================================================================
    # Listeners
    # =========================================================================

    def add_listener(self, listener: StateListener) -> None:
        """Register a snapshot listener."""
        if listener not in self._listeners:
            self._listeners.append(listener)

    def remove_listener(self, listener: StateListener) -> None:
        """Unregister a snapshot listener."""
        if listener in self._listeners:
            self._listeners.remove(listener)

    def clear_listeners(self) -> None:
        """Detach every listener."""
        self._listeners.clear()

    # =========================================================================
    # Mutation
    # =========================================================================

    def update(self, **changes: Any) -> PlayerSnapshot:
        """
        Apply field changes and publish one snapshot.

        Queue mutations are made on self.queue beforehand; calling update()
        with no changes just publishes the result.
        """
        for name, value in changes.items():
            if name not in self._FIELDS:
                raise AttributeError(f"Unknown player state field: {name}")
            if name in ("progress", "volume"):
                value = clamp_percent(value)
            setattr(self, name, value)

        if self.queue.current_track is None:
            self.is_playing = False
            self.progress = 0.0

        return self.publish()

    def reset(self) -> PlayerSnapshot:
        """Restore initial values, including the default volume."""
        self.queue.clear()
        return self.update(
            is_playing=False,
            progress=0.0,
            volume=self.default_volume,
            is_shuffled=False,
            repeat_mode=RepeatMode.OFF,
            is_minimized=False,
            is_queue_open=False,
        )

    def snapshot(self) -> PlayerSnapshot:
        """Current state as an immutable snapshot."""
        return PlayerSnapshot(
            current_track=self.queue.current_track,
            current_index=self.queue.current_index,
            queue=self.queue.tracks,
            up_next=self.queue.up_next,
            is_playing=self.is_playing,
            progress=self.progress,
            volume=self.volume,
            is_shuffled=self.is_shuffled,
            repeat_mode=self.repeat_mode,
            is_minimized=self.is_minimized,
            is_queue_open=self.is_queue_open,
        )

    def publish(self) -> PlayerSnapshot:
        """Send the current snapshot to every listener."""
        snapshot = self.snapshot()
        for listener in list(self._listeners):
            try:
                listener(snapshot)
            except Exception as e:
                logger.error(f"State listener error: {e}")
        return snapshot
