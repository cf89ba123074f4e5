"""
PlayQueue Application.

Wires configuration, engine, resolver and player together and runs the
interactive console.
"""

import asyncio
import logging
import sys
from typing import Callable, Optional, TextIO

from playqueue.config import Config
from playqueue.console import QUIT_COMMANDS, ConsoleCommandHandler
from playqueue.engines import EngineFactory, PlaybackEngine
from playqueue.playback import Player
from playqueue.resolvers import ResolverFactory, TrackResolver

logger = logging.getLogger(__name__)

PROMPT = "playqueue> "


class PlayQueueApp:
    """
    Main PlayQueue application.

    Usage:
        config = load_config(...)
        app = PlayQueueApp(config)
        await app.run()
    """

    def __init__(
        self,
        config: Config,
        stdin: Optional[TextIO] = None,
        output: Optional[Callable[[str], None]] = None,
        json_output: bool = False,
    ):
        """
        Initialize PlayQueueApp.

        Args:
            config: Validated configuration
            stdin: Command source (defaults to sys.stdin)
            output: Where command results go (defaults to print)
            json_output: Print state as JSON instead of text
        """
        self._config = config
        self._stdin = stdin or sys.stdin
        self._output = output or print
        self._json_output = json_output

        # Components (initialized in start())
        self._engine: Optional[PlaybackEngine] = None
        self._resolver: Optional[TrackResolver] = None
        self._player: Optional[Player] = None
        self._handler: Optional[ConsoleCommandHandler] = None

    @property
    def player(self) -> Optional[Player]:
        return self._player

    async def start(self) -> None:
        """
        Create and start all components.

        Raises:
            EngineNotFoundError: If the engine cannot be created
            ResolverNotFoundError: If the resolver type is unknown
        """
        logger.info("Starting PlayQueue...")

        self._engine = await EngineFactory.create_from_config(self._config)
        if self._engine:
            logger.info(f"Playback engine: {self._engine.get_info()}")

        self._resolver = ResolverFactory.create_from_config(self._config)
        logger.info(f"Track resolver: {self._resolver.name}")

        self._player = Player(
            config=self._config.player,
            engine=self._engine,
            resolver=self._resolver,
        )
        await self._player.start()
        self._handler = ConsoleCommandHandler(self._player, json_output=self._json_output)

    async def stop(self) -> None:
        """Shut everything down, including components of a partial start."""
        if self._player:
            await self._player.shutdown()
        else:
            # Startup failed before the player took ownership
            if self._engine:
                await self._engine.disconnect()
            if self._resolver:
                await self._resolver.close()
        self._player = None
        self._engine = None
        self._resolver = None
        self._handler = None
        logger.info("PlayQueue stopped")

    async def run(self) -> None:
        """Start, process commands until quit or end of input, then stop."""
        try:
            await self.start()
            assert self._handler is not None
            await self._command_loop(self._handler)
        finally:
            await self.stop()

    async def _command_loop(self, handler: ConsoleCommandHandler) -> None:
        loop = asyncio.get_running_loop()
        interactive = self._stdin.isatty()

        while True:
            if interactive:
                print(PROMPT, end="", flush=True)
            line = await loop.run_in_executor(None, self._stdin.readline)
            if not line:
                break

            command = line.strip()
            if command.lower() in QUIT_COMMANDS:
                break

            result = await handler.handle_line(command)
            if result:
                self._output(result)
