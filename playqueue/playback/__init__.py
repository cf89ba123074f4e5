"""Playback, queue and transport management module."""

from playqueue.models import Track

from .clock import ClockMode, ProgressClock
from .loader import TrackLoader
from .navigation import Navigator, next_index, previous_index
from .player import Player
from .queue import NO_INDEX, QueueStore, RemovalResult, RepeatMode
from .state import PlayerSnapshot, PlayerState, StateListener

__all__ = [
    # Queue
    "NO_INDEX",
    "QueueStore",
    "RemovalResult",
    "RepeatMode",
    "Track",
    # State
    "PlayerSnapshot",
    "PlayerState",
    "StateListener",
    # Clock
    "ClockMode",
    "ProgressClock",
    # Loading and navigation
    "TrackLoader",
    "Navigator",
    "next_index",
    "previous_index",
    # Player
    "Player",
]
