"""
PlayQueue CLI entry point.

Provides command-line interface for running the PlayQueue console.
"""

import argparse
import asyncio
import logging
import sys
from pathlib import Path
from typing import Any, Optional, TextIO

from playqueue import __version__
from playqueue.app import PlayQueueApp
from playqueue.config import Config, ConfigError, load_config
from playqueue.engines import EngineNotFoundError
from playqueue.resolvers import ResolverNotFoundError

logger = logging.getLogger(__name__)

# Exit codes
EXIT_SUCCESS = 0
EXIT_CONFIG_ERROR = 1
EXIT_RUNTIME_ERROR = 2


def setup_logging(level: str = "info", stream: TextIO = sys.stdout) -> None:
    """Configure logging to stdout, or to another stream such as stderr."""
    log_level = getattr(logging, level.upper(), logging.INFO)
    logging.basicConfig(
        level=log_level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        stream=stream,
        force=True,
    )


def parse_args(argv: Optional[list[str]] = None) -> argparse.Namespace:
    """Parse command-line arguments."""
    parser = argparse.ArgumentParser(
        prog="playqueue",
        description="Playback queue and transport console",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  playqueue
  playqueue --config config.yaml
  playqueue --resolver-url https://previews.example.com/api --volume 60
  printf 'add a\\nadd b\\nnext\\nstatus\\n' | playqueue --json

Environment Variables:
  PLAYQUEUE_DEFAULT_VOLUME, PLAYQUEUE_TICK_INTERVAL_MS, PLAYQUEUE_SYNTHETIC_STEP
  PLAYQUEUE_ENGINE, PLAYQUEUE_TRACK_DURATION_S
  PLAYQUEUE_RESOLVER, PLAYQUEUE_RESOLVER_URL, PLAYQUEUE_RESOLVER_TIMEOUT_S
  PLAYQUEUE_LOG_LEVEL
""",
    )

    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {__version__}",
    )
    parser.add_argument(
        "--config",
        type=Path,
        default=Path("./config.yaml"),
        metavar="PATH",
        help="Path to config file (default: ./config.yaml)",
    )
    parser.add_argument(
        "--json",
        action="store_true",
        dest="json_output",
        help="Print state as JSON after each command",
    )

    # Player
    player_group = parser.add_argument_group("Player")
    player_group.add_argument(
        "--volume",
        type=float,
        metavar="0-100",
        help="Default volume (default: 80)",
    )
    player_group.add_argument(
        "--tick-ms",
        type=int,
        metavar="INT",
        help="Progress clock interval in milliseconds (default: 250)",
    )

    # Engine
    engine_group = parser.add_argument_group("Engine")
    engine_group.add_argument(
        "--engine",
        choices=["memory", "none"],
        help="Playback engine type (default: memory)",
    )
    engine_group.add_argument(
        "--track-duration",
        type=float,
        metavar="SECONDS",
        help="Track duration reported by the memory engine (default: 30)",
    )

    # Resolver
    resolver_group = parser.add_argument_group("Resolver")
    resolver_group.add_argument(
        "--resolver-url",
        metavar="URL",
        help="Preview service base URL (enables the http resolver)",
    )
    resolver_group.add_argument(
        "--resolver-timeout",
        type=float,
        metavar="SECONDS",
        help="Preview request timeout (default: 10)",
    )

    # Logging
    parser.add_argument(
        "--log-level",
        choices=["debug", "info", "warning", "error"],
        metavar="LEVEL",
        help="Log level: debug, info, warning, error",
    )

    return parser.parse_args(argv)


def _set_nested(d: dict, path: tuple, value: Any) -> None:
    """Set a nested dictionary value."""
    for key in path[:-1]:
        d = d.setdefault(key, {})
    d[path[-1]] = value


def args_to_dict(args: argparse.Namespace) -> dict:
    """Convert argparse namespace to nested config dict."""
    result: dict = {}

    mappings = {
        "volume": ("player", "default_volume"),
        "tick_ms": ("player", "tick_interval_ms"),
        "engine": ("engine", "type"),
        "track_duration": ("engine", "track_duration_s"),
        "resolver_url": ("resolver", "base_url"),
        "resolver_timeout": ("resolver", "timeout_s"),
        "log_level": ("logging", "level"),
    }

    for arg_name, path in mappings.items():
        value = getattr(args, arg_name, None)
        if value is None:
            continue
        _set_nested(result, path, value)

    # A resolver URL on the command line implies the http resolver
    if getattr(args, "resolver_url", None):
        _set_nested(result, ("resolver", "type"), "http")

    return result


def log_config(config: Config) -> None:
    """Log configuration summary."""
    logger.info(f"Engine: {config.engine.type}")
    if config.resolver.type == "http":
        logger.info(f"Resolver: {config.resolver.base_url}")
    else:
        logger.info("Resolver: none (tracks without a URL are simulated)")
    logger.info(
        f"Default volume: {config.player.default_volume:.0f}, "
        f"tick: {config.player.tick_interval_ms}ms"
    )


def run_console(args: argparse.Namespace) -> int:
    """
    Run the interactive console.

    Args:
        args: Parsed arguments

    Returns:
        Exit code
    """
    # JSON state owns stdout, so logs go to stderr
    log_stream = sys.stderr if args.json_output else sys.stdout
    setup_logging("warning" if args.json_output else "info", log_stream)

    try:
        cli_config = args_to_dict(args)
        config = load_config(args.config, cli_config)
        setup_logging(config.logging.level, log_stream)
        log_config(config)
    except ConfigError as e:
        logger.error(f"Configuration error: {e}")
        return EXIT_CONFIG_ERROR

    logger.info(f"PlayQueue v{__version__}")

    try:
        app = PlayQueueApp(config, json_output=args.json_output)
        asyncio.run(app.run())
        return EXIT_SUCCESS

    except (EngineNotFoundError, ResolverNotFoundError) as e:
        logger.error(f"Startup error: {e}")
        return EXIT_RUNTIME_ERROR

    except KeyboardInterrupt:
        logger.info("Interrupted")
        return EXIT_SUCCESS

    except Exception as e:
        logger.exception(f"Unexpected error: {e}")
        return EXIT_RUNTIME_ERROR


def main(argv: Optional[list[str]] = None) -> int:
    """
    Main entry point.

    Returns:
        Exit code: 0=success, 1=config error, 2=runtime error
    """
    args = parse_args(argv)
    return run_console(args)


if __name__ == "__main__":
    sys.exit(main())
