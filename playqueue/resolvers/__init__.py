"""Track resolution services."""

from .base import NullResolver, ResolutionError, TrackResolver
from .cache import ResolutionCache
from .factory import ResolverFactory, ResolverNotFoundError
from .http import HttpTrackResolver

__all__ = [
    "HttpTrackResolver",
    "NullResolver",
    "ResolutionCache",
    "ResolutionError",
    "ResolverFactory",
    "ResolverNotFoundError",
    "TrackResolver",
]
