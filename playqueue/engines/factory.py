"""
Engine factory and registry.

Provides factory methods to instantiate playback engines by type name.
"""

import logging
from typing import Optional

from playqueue.config import Config

from .base import PlaybackEngine
from .memory import MemoryEngine

logger = logging.getLogger(__name__)

# Configured type that means "run without an engine" (synthetic playback only)
NO_ENGINE = "none"


class EngineNotFoundError(Exception):
    """Raised when requested engine type is not available."""

    pass


class EngineRegistry:
    """
    Registry of available engine types.

    Engines register themselves here with their type name.
    Factory uses this to instantiate engines.
    """

    _engines: dict[str, type[PlaybackEngine]] = {}

    @classmethod
    def register(cls, type_name: str, engine_class: type[PlaybackEngine]) -> None:
        """Register an engine class."""
        cls._engines[type_name] = engine_class
        logger.debug(f"Registered engine type: {type_name}")

    @classmethod
    def get(cls, type_name: str) -> Optional[type[PlaybackEngine]]:
        """Get engine class by type name."""
        return cls._engines.get(type_name)

    @classmethod
    def available_types(cls) -> list[str]:
        """Get list of registered engine type names."""
        return list(cls._engines.keys())


class EngineFactory:
    """
    Factory for creating playback engine instances.

    Usage:
        engine = await EngineFactory.create_from_config(config)
    """

    @classmethod
    async def create_from_config(cls, config: Config) -> Optional[PlaybackEngine]:
        """
        Create and connect an engine based on configuration.

        Returns:
            Connected engine, or None when the configured type is "none"

        Raises:
            EngineNotFoundError: If the type is unknown or connection fails
        """
        engine_type = config.engine.type
        if engine_type == NO_ENGINE:
            logger.info("No playback engine configured, playback will be simulated")
            return None

        if not EngineRegistry.get(engine_type):
            available = EngineRegistry.available_types()
            raise EngineNotFoundError(
                f"Engine type '{engine_type}' not available. Available types: {available}"
            )

        if engine_type == "memory":
            return await cls.create_memory(track_duration_s=config.engine.track_duration_s)

        raise EngineNotFoundError(f"No factory for engine type '{engine_type}'")

    @classmethod
    async def create_memory(
        cls,
        track_duration_s: float = 30.0,
        name: Optional[str] = None,
    ) -> MemoryEngine:
        """
        Create and connect a memory engine.

        Args:
            track_duration_s: Duration reported for every loaded resource
            name: Display name

        Returns:
            Connected MemoryEngine

        Raises:
            EngineNotFoundError: If the engine fails to connect
        """
        engine = MemoryEngine(
            name=name or "Memory Engine",
            track_duration_s=track_duration_s,
        )
        if not await engine.connect():
            raise EngineNotFoundError("Failed to connect memory engine")
        return engine

    @classmethod
    def list_available_engines(cls) -> list[str]:
        """List available engine types."""
        return EngineRegistry.available_types()


# Register engines
EngineRegistry.register("memory", MemoryEngine)
