# =============================================================================
# Terminal Surface
# =============================================================================
# Key events, the screen operations the picker emits, and a rich/readchar
# backed terminal. Entering the terminal as a context manager switches to
# the alternate screen with a hidden cursor; leaving always restores it.

import os
import sys
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Iterable

import readchar
from loguru import logger
from rich.console import Console
from rich.control import Control
from rich.segment import ControlType

if os.name == "posix":
    import termios
    import tty

HIGHLIGHT_STYLE = "bold cyan"


class TerminalError(Exception):
    """The terminal could not be switched into or out of picker mode."""


class Key(Enum):
    UP = "up"
    DOWN = "down"
    LEFT = "left"
    RIGHT = "right"
    ENTER = "enter"
    BACKSPACE = "backspace"
    ESCAPE = "escape"
    CHAR = "char"
    INTERRUPT = "interrupt"
    OTHER = "other"


class KeyKind(Enum):
    PRESS = "press"
    REPEAT = "repeat"
    RELEASE = "release"


@dataclass(frozen=True)
class KeyEvent:
    key: Key
    char: str | None = None
    kind: KeyKind = KeyKind.PRESS


_KEY_MAP = {
    readchar.key.UP: Key.UP,
    readchar.key.DOWN: Key.DOWN,
    readchar.key.LEFT: Key.LEFT,
    readchar.key.RIGHT: Key.RIGHT,
    readchar.key.ENTER: Key.ENTER,
    "\r": Key.ENTER,
    "\n": Key.ENTER,
    readchar.key.BACKSPACE: Key.BACKSPACE,
    "\x08": Key.BACKSPACE,
    readchar.key.CTRL_C: Key.INTERRUPT,
    "\x1b": Key.ESCAPE,
}


def translate_key(raw: str) -> KeyEvent:
    """Map a readchar key string to a KeyEvent."""
    key = _KEY_MAP.get(raw)
    if key is not None:
        return KeyEvent(key)
    if len(raw) == 1 and raw.isprintable():
        return KeyEvent(Key.CHAR, char=raw)
    return KeyEvent(Key.OTHER)


# Screen operations. Rows and columns are zero-based.

@dataclass(frozen=True)
class MoveTo:
    row: int
    column: int = 0


@dataclass(frozen=True)
class ClearLine:
    pass


@dataclass(frozen=True)
class Write:
    text: str
    highlight: bool = False


ScreenOp = MoveTo | ClearLine | Write


class RichTerminal:
    """Terminal surface backed by a rich Console and readchar."""

    def __init__(
        self,
        console: Console | None = None,
        read_key: Callable[[], str] = readchar.readkey,
        stdin_fd: int | None = None,
    ):
        self.console = console or Console(highlight=False)
        self._read_key = read_key
        self._stdin_fd = stdin_fd
        self._saved_tty = None

    @property
    def height(self) -> int:
        return self.console.size.height

    def __enter__(self) -> "RichTerminal":
        self._enter_cbreak()
        try:
            self.console.set_alt_screen(True)
            self.console.show_cursor(False)
            self.console.clear()
            self.flush()
        except OSError as e:
            self._restore()
            raise TerminalError(f"Could not prepare terminal: {e}") from e
        logger.debug("Picker screen entered", operation="terminal", status="entered")
        return self

    def __exit__(self, exc_type, exc, tb) -> bool:
        self._restore()
        logger.debug("Picker screen restored", operation="terminal", status="restored")
        return False

    def _enter_cbreak(self) -> None:
        """Keep keystrokes from echoing between reads (POSIX ttys only)."""
        if os.name != "posix":
            return
        fd = self._stdin_fd
        if fd is None:
            try:
                fd = sys.stdin.fileno()
            except (AttributeError, ValueError, OSError):
                return
        if not os.isatty(fd):
            return
        try:
            self._saved_tty = (fd, termios.tcgetattr(fd))
            tty.setcbreak(fd)
        except termios.error as e:
            self._saved_tty = None
            raise TerminalError(f"Could not enter cbreak mode: {e}") from e

    def _restore(self) -> None:
        try:
            self.console.show_cursor(True)
            self.console.set_alt_screen(False)
            self.flush()
        finally:
            if self._saved_tty is not None:
                fd, attrs = self._saved_tty
                self._saved_tty = None
                termios.tcsetattr(fd, termios.TCSADRAIN, attrs)

    def apply(self, ops: Iterable[ScreenOp]) -> None:
        for op in ops:
            if isinstance(op, MoveTo):
                self.console.control(Control.move_to(op.column, op.row))
            elif isinstance(op, ClearLine):
                self.console.control(Control((ControlType.ERASE_IN_LINE, 2)))
            elif isinstance(op, Write):
                self.console.out(
                    op.text,
                    style=HIGHLIGHT_STYLE if op.highlight else None,
                    highlight=False,
                    end=""
                )

    def flush(self) -> None:
        self.console.file.flush()

    def read_key(self) -> KeyEvent:
        try:
            raw = self._read_key()
        except KeyboardInterrupt:
            return KeyEvent(Key.INTERRUPT)
        return translate_key(raw)
