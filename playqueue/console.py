"""
Text command handler.

Translates console commands into player operations.
"""

import json
import logging
import shlex
from typing import TYPE_CHECKING, Awaitable, Callable, Optional

from playqueue.models import Track
from playqueue.playback import PlayerSnapshot

if TYPE_CHECKING:
    from playqueue.playback import Player

logger = logging.getLogger(__name__)

QUIT_COMMANDS = {"quit", "exit"}

HELP_TEXT = """\
Commands:
  add ID [URL]        append a track
  next-add ID [URL]   queue a track right after the current one
  play ID [URL]       play a single track (toggles if already current)
  toggle              play/pause
  next | prev         skip forward / backward
  select N            play queue entry N (0-based)
  seek PCT            jump to a position, 0-100
  volume N            set volume, 0-100
  shuffle | repeat    toggle shuffle / cycle repeat mode
  minimize            toggle minimized view
  queue [open|close]  toggle or set the queue panel
  remove ID           remove first entry with ID
  move FROM TO        reorder queue entries
  clear               empty the queue
  close               close the player and reset everything
  status              show current state
  help                show this text
  quit                exit"""


class CommandError(Exception):
    """Bad command arguments."""

    pass


def format_status(snapshot: PlayerSnapshot) -> str:
    """Human-readable state summary."""
    track = snapshot.current_track
    if track:
        icon = ">" if snapshot.is_playing else "||"
        mode = "stream" if track.has_stream else "simulated"
        now = f"{icon} [{snapshot.current_index}] {track} ({mode}) {snapshot.progress:5.1f}%"
    else:
        now = "-- nothing selected"

    flags = [
        f"vol {snapshot.volume:.0f}",
        f"repeat {snapshot.repeat_mode.value}",
        "shuffle" if snapshot.is_shuffled else "in order",
    ]
    if snapshot.is_minimized:
        flags.append("minimized")
    if snapshot.is_queue_open:
        flags.append("queue open")

    lines = [now, "  " + ", ".join(flags)]
    for i, queued in enumerate(snapshot.queue):
        marker = "*" if i == snapshot.current_index else " "
        lines.append(f"  {marker} {i}: {queued.track_id}  {queued}")
    return "\n".join(lines)


def _parse_track(args: list[str]) -> Track:
    if not args or len(args) > 2:
        raise CommandError("expected: ID [URL]")
    return Track(track_id=args[0], streaming_url=args[1] if len(args) == 2 else None)


def _parse_int(value: str, name: str) -> int:
    try:
        return int(value)
    except ValueError:
        raise CommandError(f"{name} must be an integer, got {value!r}")


def _parse_float(value: str, name: str) -> float:
    try:
        return float(value)
    except ValueError:
        raise CommandError(f"{name} must be a number, got {value!r}")


class ConsoleCommandHandler:
    """
    Handles console commands.

    handle_line() never raises: bad input and unexpected failures are
    reported in the returned text.
    """

    def __init__(self, player: "Player", json_output: bool = False):
        """Initialize handler."""
        self.player = player
        self.json_output = json_output
        self._commands: dict[str, Callable[[list[str]], Awaitable[Optional[str]]]] = {
            "add": self._handle_add,
            "next-add": self._handle_next_add,
            "play": self._handle_play,
            "toggle": self._handle_toggle,
            "next": self._handle_next,
            "prev": self._handle_prev,
            "select": self._handle_select,
            "seek": self._handle_seek,
            "volume": self._handle_volume,
            "shuffle": self._handle_shuffle,
            "repeat": self._handle_repeat,
            "minimize": self._handle_minimize,
            "queue": self._handle_queue,
            "remove": self._handle_remove,
            "move": self._handle_move,
            "clear": self._handle_clear,
            "close": self._handle_close,
            "status": self._handle_status,
            "help": self._handle_help,
        }

    def get_commands(self) -> list[str]:
        """Names of the commands this handler processes."""
        return sorted(self._commands)

    async def handle_line(self, line: str) -> str:
        """Run one command line and return the text to show."""
        try:
            parts = shlex.split(line)
        except ValueError as e:
            return f"error: {e}"
        if not parts:
            return ""

        name, args = parts[0].lower(), parts[1:]
        handler = self._commands.get(name)
        if handler is None:
            return f"unknown command: {name} (try 'help')"

        try:
            message = await handler(args)
        except CommandError as e:
            return f"{name}: {e}"
        except Exception as e:
            logger.error(f"Error handling command {name}: {e}", exc_info=True)
            return f"{name} failed: {e}"

        if message is not None:
            return message
        return self._render(self.player.snapshot())

    def _render(self, snapshot: PlayerSnapshot) -> str:
        if self.json_output:
            return json.dumps(snapshot.to_dict())
        return format_status(snapshot)

    @staticmethod
    def _expect(args: list[str], count: int, usage: str) -> None:
        if len(args) != count:
            raise CommandError(f"expected: {usage}")

    # =========================================================================
    # Queue commands
    # =========================================================================

    async def _handle_add(self, args: list[str]) -> Optional[str]:
        self.player.append(_parse_track(args))
        return None

    async def _handle_next_add(self, args: list[str]) -> Optional[str]:
        self.player.insert_next(_parse_track(args))
        return None

    async def _handle_remove(self, args: list[str]) -> Optional[str]:
        self._expect(args, 1, "ID")
        if not await self.player.remove(args[0]):
            return f"not in queue: {args[0]}"
        return None

    async def _handle_move(self, args: list[str]) -> Optional[str]:
        self._expect(args, 2, "FROM TO")
        from_index = _parse_int(args[0], "FROM")
        to_index = _parse_int(args[1], "TO")
        if not self.player.reorder(from_index, to_index):
            return f"nothing moved ({from_index} -> {to_index})"
        return None

    async def _handle_clear(self, args: list[str]) -> Optional[str]:
        await self.player.clear()
        return None

    # =========================================================================
    # Transport commands
    # =========================================================================

    async def _handle_play(self, args: list[str]) -> Optional[str]:
        await self.player.play_track(_parse_track(args))
        return None

    async def _handle_toggle(self, args: list[str]) -> Optional[str]:
        await self.player.toggle_play()
        return None

    async def _handle_next(self, args: list[str]) -> Optional[str]:
        await self.player.skip_next()
        return None

    async def _handle_prev(self, args: list[str]) -> Optional[str]:
        await self.player.skip_previous()
        return None

    async def _handle_select(self, args: list[str]) -> Optional[str]:
        self._expect(args, 1, "N")
        index = _parse_int(args[0], "N")
        if not await self.player.play_from_queue(index):
            return f"no queue entry {index}, playback stopped"
        return None

    async def _handle_seek(self, args: list[str]) -> Optional[str]:
        self._expect(args, 1, "PCT")
        await self.player.seek(_parse_float(args[0], "PCT"))
        return None

    async def _handle_volume(self, args: list[str]) -> Optional[str]:
        self._expect(args, 1, "N")
        await self.player.set_volume(_parse_float(args[0], "N"))
        return None

    async def _handle_close(self, args: list[str]) -> Optional[str]:
        await self.player.close_player()
        return None

    # =========================================================================
    # Mode and panel commands
    # =========================================================================

    async def _handle_shuffle(self, args: list[str]) -> Optional[str]:
        self.player.toggle_shuffle()
        return None

    async def _handle_repeat(self, args: list[str]) -> Optional[str]:
        self.player.toggle_repeat()
        return None

    async def _handle_minimize(self, args: list[str]) -> Optional[str]:
        self.player.toggle_minimize()
        return None

    async def _handle_queue(self, args: list[str]) -> Optional[str]:
        if not args:
            self.player.toggle_queue_panel()
        elif args == ["open"]:
            self.player.open_queue_panel()
        elif args == ["close"]:
            self.player.close_queue_panel()
        else:
            raise CommandError("expected: [open|close]")
        return None

    # =========================================================================
    # Info
    # =========================================================================

    async def _handle_status(self, args: list[str]) -> Optional[str]:
        return None

    async def _handle_help(self, args: list[str]) -> Optional[str]:
        return HELP_TEXT
