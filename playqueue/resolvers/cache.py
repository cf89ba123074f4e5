"""
In-memory cache of resolved tracks.
"""

from dataclasses import dataclass, field
from typing import Optional

from playqueue.models import Track


@dataclass
class ResolutionCache:
    """Bounded cache of resolved tracks keyed by track ID."""

    _cache: dict[str, Track] = field(default_factory=dict)
    _max_size: int = 100

    def get(self, track_id: str) -> Optional[Track]:
        """Get cached resolution for track."""
        cached = self._cache.get(track_id)
        return cached.copy() if cached else None

    def set(self, track_id: str, track: Track) -> None:
        """Cache a resolved track."""
        if self._max_size <= 0:
            return
        # Simple FIFO eviction when at capacity
        if len(self._cache) >= self._max_size and track_id not in self._cache:
            oldest = next(iter(self._cache))
            del self._cache[oldest]
        self._cache[track_id] = track.copy()

    def invalidate(self, track_id: str) -> None:
        """Drop a cached resolution."""
        self._cache.pop(track_id, None)

    def clear(self) -> None:
        """Clear all cached resolutions."""
        self._cache.clear()

    def __len__(self) -> int:
        return len(self._cache)
