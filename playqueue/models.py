"""
Track model shared by the queue, the loader and the resolvers.
"""

import copy
from dataclasses import dataclass, field, replace
from typing import Any, Optional


@dataclass
class Track:
    """
    A playable item supplied by the caller.

    Attributes:
        track_id: Identity; duplicates are allowed in a queue
        streaming_url: Playable resource reference, if already known
        title: Display title
        artist: Display artist
        album: Display album
        duration_ms: Track duration in milliseconds (0 when unknown)
        artwork_url: Cover image URL
        metadata: Free-form extra fields from the caller
    """

    track_id: str
    streaming_url: Optional[str] = None
    title: str = ""
    artist: str = ""
    album: str = ""
    duration_ms: int = 0
    artwork_url: str = ""
    metadata: dict[str, Any] = field(default_factory=dict)

    @property
    def has_stream(self) -> bool:
        """Whether a usable resource reference is attached."""
        return bool(self.streaming_url)

    def copy(self) -> "Track":
        """Independent copy; the caller's object is never mutated."""
        return replace(self, metadata=copy.deepcopy(self.metadata))

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {
            "track_id": self.track_id,
            "streaming_url": self.streaming_url,
            "title": self.title,
            "artist": self.artist,
            "album": self.album,
            "duration_ms": self.duration_ms,
            "artwork_url": self.artwork_url,
        }

    def __str__(self) -> str:
        if self.title:
            if self.artist:
                return f"{self.artist} - {self.title}"
            return self.title
        return f"Track {self.track_id}"
