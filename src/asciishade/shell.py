import logging
from collections.abc import Callable
from typing import TextIO

from asciishade.config import HTML_OUTPUT
from asciishade.errors import AsciiShadeError, InvalidArgument
from asciishade.pixels import PixelGrid
from asciishade.render import AsciiOutput, ConsoleOutput, HtmlOutput
from asciishade.session import ERR_ADD_FORMAT, ERR_REMOVE_FORMAT, Session

logger = logging.getLogger(__name__)

PROMPT = ">>> "
MSG_RESOLUTION = "Resolution set to {}."
ERR_UNKNOWN_COMMAND = "Did not execute due to incorrect command."
ERR_RESOLUTION_FORMAT = "Did not change resolution due to incorrect format."
ERR_PAD_FORMAT = "Did not change padding due to incorrect format."
ERR_UNEXPECTED = "An unexpected error occurred."


class ExitShell(Exception):
    pass


class Shell:
    """Line-oriented command loop driving a Session for one image.

    Commands::

        chars                     list the active characters
        add|remove <c|a-z|all|space>
        res [up|down]             show or double/halve the resolution
        round <abs|up|down>       choose the rounding policy
        output <console|html>     choose where asciiArt writes
        pad <on|off>              sample the padded image instead of the original
        asciiArt                  run the conversion
        exit
    """

    def __init__(
        self,
        session: Session,
        grid: PixelGrid,
        stdout: TextIO,
        console: AsciiOutput | None = None,
        html: AsciiOutput | None = None,
    ):
        self.session = session
        self.grid = grid
        self.stdout = stdout
        self.console = console if console is not None else ConsoleOutput(stdout)
        self.html = html if html is not None else HtmlOutput(session.settings.html_path, session.settings.font_name)
        self._commands: dict[str, Callable[[list[str]], None]] = {
            "exit": self._exit,
            "chars": self._chars,
            "add": self._add,
            "remove": self._remove,
            "res": self._resolution,
            "round": self._round,
            "output": self._output,
            "pad": self._pad,
            "asciiArt": self._ascii_art,
        }

    def execute(self, line: str) -> None:
        """Run one command line. Raises ExitShell on ``exit``."""
        parts = line.split()
        if not parts:
            return
        handler = self._commands.get(parts[0])
        if handler is None:
            raise InvalidArgument(ERR_UNKNOWN_COMMAND)
        handler(parts[1:])

    def run(self, read_line: Callable[[str], str] = input) -> None:
        while True:
            try:
                line = read_line(PROMPT)
            except EOFError:
                return
            try:
                self.execute(line)
            except ExitShell:
                return
            except AsciiShadeError as exc:
                self._print(str(exc))
            except Exception:
                logger.exception("Command %r failed", line)
                self._print(ERR_UNEXPECTED)

    def _print(self, message: str) -> None:
        self.stdout.write(message + "\n")

    def _exit(self, args: list[str]) -> None:
        raise ExitShell()

    def _chars(self, args: list[str]) -> None:
        self._print(" ".join(self.session.active_characters()))

    def _add(self, args: list[str]) -> None:
        if len(args) != 1:
            raise InvalidArgument(ERR_ADD_FORMAT)
        self.session.add(args[0])

    def _remove(self, args: list[str]) -> None:
        if len(args) != 1:
            raise InvalidArgument(ERR_REMOVE_FORMAT)
        self.session.remove(args[0])

    def _resolution(self, args: list[str]) -> None:
        if not args:
            self._print(MSG_RESOLUTION.format(self.session.resolution))
            return
        if args == ["up"]:
            resolution = self.session.resolution_up(self.grid)
        elif args == ["down"]:
            resolution = self.session.resolution_down(self.grid)
        else:
            raise InvalidArgument(ERR_RESOLUTION_FORMAT)
        self._print(MSG_RESOLUTION.format(resolution))

    def _round(self, args: list[str]) -> None:
        self.session.set_rounding(args[0] if len(args) == 1 else "")

    def _output(self, args: list[str]) -> None:
        self.session.set_output(args[0] if len(args) == 1 else "")

    def _pad(self, args: list[str]) -> None:
        if args == ["on"]:
            self.session.set_pad(True)
        elif args == ["off"]:
            self.session.set_pad(False)
        else:
            raise InvalidArgument(ERR_PAD_FORMAT)

    def _ascii_art(self, args: list[str]) -> None:
        lines = self.session.run(self.grid)
        target = self.html if self.session.output == HTML_OUTPUT else self.console
        target.out(lines)
