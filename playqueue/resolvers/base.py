"""
Abstract track resolver interface.

A resolver is asked for a playable resource reference when a track
enters playback without one.
"""

import logging
from abc import ABC, abstractmethod

from playqueue.models import Track

logger = logging.getLogger(__name__)


class ResolutionError(Exception):
    """Raised when the resolution service cannot be reached or fails."""

    pass


class TrackResolver(ABC):
    """Base class for track resolution services."""

    name = "resolver"

    @abstractmethod
    async def resolve(self, track: Track) -> Track:
        """
        Attach a streaming URL to a copy of the track.

        Returns:
            A new Track; its streaming_url is None when nothing playable exists

        Raises:
            ResolutionError: If the service fails
        """
        pass

    async def start(self) -> None:
        """Acquire resources (sessions, connections)."""
        pass

    async def close(self) -> None:
        """Release resources."""
        pass


class NullResolver(TrackResolver):
    """Resolver that never finds a stream; playback is always simulated."""

    name = "none"

    async def resolve(self, track: Track) -> Track:
        logger.debug(f"No resolver configured for track {track.track_id}")
        return track.copy()
