"""
Resolver factory.
"""

import logging

from playqueue.config import Config

from .base import NullResolver, TrackResolver
from .http import HttpTrackResolver

logger = logging.getLogger(__name__)


class ResolverNotFoundError(Exception):
    """Raised when requested resolver type is not available."""

    pass


class ResolverFactory:
    """Creates the configured track resolver."""

    @classmethod
    def create_from_config(cls, config: Config) -> TrackResolver:
        resolver_type = config.resolver.type
        if resolver_type == "none":
            return NullResolver()
        if resolver_type == "http":
            logger.info(f"Resolving previews via {config.resolver.base_url}")
            return HttpTrackResolver(
                base_url=config.resolver.base_url,
                timeout_s=config.resolver.timeout_s,
                cache_size=config.resolver.cache_size,
            )
        raise ResolverNotFoundError(f"Resolver type '{resolver_type}' not available")
