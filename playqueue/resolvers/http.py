"""
HTTP track resolution client.

Asks a preview service for a playable URL:

    GET {base_url}/tracks/{track_id}/preview
    200 {"preview_url": "...", "duration_ms": 30000, "title": "...", ...}
"""

import asyncio
import logging
from typing import Any, Optional
from urllib.parse import quote

import aiohttp

from playqueue.models import Track

from .base import ResolutionError, TrackResolver
from .cache import ResolutionCache

logger = logging.getLogger(__name__)

# Descriptive fields copied from the response when the track lacks them
_FILL_FIELDS = ("title", "artist", "album", "artwork_url")


class HttpTrackResolver(TrackResolver):
    """Preview-URL resolver backed by an HTTP JSON service."""

    name = "http"

    def __init__(self, base_url: str, timeout_s: float = 10.0, cache_size: int = 100):
        """
        Initialize resolver.

        Args:
            base_url: Service root, e.g. "https://previews.example.com/api"
            timeout_s: Total request timeout in seconds
            cache_size: Number of resolved tracks to keep (0 disables caching)
        """
        self.base_url = base_url.rstrip("/")
        self._timeout = aiohttp.ClientTimeout(total=timeout_s)
        self._cache = ResolutionCache(_max_size=cache_size)
        self._session: Optional[aiohttp.ClientSession] = None

    async def __aenter__(self) -> "HttpTrackResolver":
        """Async context manager entry."""
        await self.start()
        return self

    async def __aexit__(
        self,
        exc_type: Optional[type],
        exc_val: Optional[BaseException],
        exc_tb: Optional[Any],
    ) -> None:
        """Async context manager exit."""
        await self.close()

    async def start(self) -> None:
        if self._session is None:
            self._session = aiohttp.ClientSession(
                headers={"Accept": "application/json"},
                timeout=self._timeout,
            )

    async def close(self) -> None:
        if self._session:
            await self._session.close()
            self._session = None

    async def resolve(self, track: Track) -> Track:
        cached = self._cache.get(track.track_id)
        if cached and cached.has_stream:
            logger.debug(f"Resolution cache hit for track {track.track_id}")
            payload: dict[str, Any] = {name: getattr(cached, name) for name in _FILL_FIELDS}
            payload["preview_url"] = cached.streaming_url
            payload["duration_ms"] = cached.duration_ms
            return self._merge(track, payload)

        data = await self._fetch_preview(track.track_id)
        if not data or not data.get("preview_url"):
            logger.info(f"No preview available for track {track.track_id}")
            return track.copy()

        resolved = self._merge(track, data)
        self._cache.set(track.track_id, resolved)
        logger.debug(f"Resolved track {track.track_id} -> {resolved.streaming_url}")
        return resolved

    async def _fetch_preview(self, track_id: str) -> Optional[dict[str, Any]]:
        """
        Fetch preview info for a track.

        Returns:
            Response JSON, or None when the service has no preview

        Raises:
            ResolutionError: On network failure, timeout or server error
        """
        await self.start()
        assert self._session is not None

        url = f"{self.base_url}/tracks/{quote(track_id, safe='')}/preview"
        try:
            async with self._session.get(url) as resp:
                if resp.status == 404:
                    return None
                if resp.status != 200:
                    raise ResolutionError(f"Preview service returned HTTP {resp.status}")
                data = await resp.json(content_type=None)
        except (aiohttp.ClientError, asyncio.TimeoutError, ValueError) as e:
            raise ResolutionError(f"Preview request failed for {track_id}: {e}") from e

        if not isinstance(data, dict):
            raise ResolutionError(f"Unexpected preview response for {track_id}")
        return data

    @staticmethod
    def _merge(track: Track, data: dict[str, Any]) -> Track:
        """Copy of track with the response applied."""
        resolved = track.copy()
        resolved.streaming_url = data.get("preview_url") or None
        for name in _FILL_FIELDS:
            if not getattr(resolved, name) and data.get(name):
                setattr(resolved, name, str(data[name]))
        if not resolved.duration_ms and data.get("duration_ms"):
            try:
                resolved.duration_ms = int(data["duration_ms"])
            except (TypeError, ValueError):
                logger.debug(f"Ignoring bad duration_ms for {track.track_id}")
        return resolved
