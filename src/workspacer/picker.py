# =============================================================================
# Picker Engine
# =============================================================================
# Interactive filter-as-you-type list. Each loop iteration re-derives the
# filtered items, renders the visible window, writes only what changed since
# the previous frame, then blocks on the next key.
#
# Screen layout:
#   row 0        "Filter: <text>"
#   rows 1..h    visible items, the selected one prefixed with "> "
#   last row     left blank

from dataclasses import dataclass, field
from enum import Enum
from uuid import uuid4

from loguru import logger

from workspacer.errors import Error, ErrorType, Result
from workspacer.items import ItemSource
from workspacer.terminal import ClearLine, Key, KeyEvent, KeyKind, MoveTo, ScreenOp, TerminalError, Write

SELECTED_PREFIX = "> "
UNSELECTED_PREFIX = "  "
STATUS_LABEL = "Filter: "
STATUS_ROW = 0
LIST_TOP_ROW = 1
RESERVED_LINES = 2


class ItemSourceError(Exception):
    """The item source could not list items for the current filter."""


class Outcome(Enum):
    CONTINUE = "continue"
    SELECT = "select"
    CANCEL = "cancel"


@dataclass
class BrowserState:
    selected: int = 0
    offset: int = 0
    filter_text: str = ""
    last_frame: list[str] = field(default_factory=list)
    # Filter text currently drawn on the status line
    shown_filter_text: str = ""


def visible_height(terminal_height: int) -> int:
    return max(0, terminal_height - RESERVED_LINES)


def clamp_selection(state: BrowserState, item_count: int, height: int) -> None:
    """Restore offset <= selected < offset + height within [0, item_count)."""
    if item_count == 0:
        state.selected = 0
        state.offset = 0
        return
    state.selected = min(max(state.selected, 0), item_count - 1)
    state.offset = min(max(state.offset, 0), state.selected)
    if height > 0 and state.selected >= state.offset + height:
        state.offset = state.selected - height + 1


def render_frame(items: list[str], state: BrowserState, height: int) -> list[str]:
    """Lines for the visible window [offset, offset + height)."""
    end = min(state.offset + height, len(items))
    return [
        (SELECTED_PREFIX if index == state.selected else UNSELECTED_PREFIX) + items[index]
        for index in range(state.offset, end)
    ]


def _line_ops(row: int, line: str) -> list[ScreenOp]:
    return [MoveTo(row), ClearLine(), Write(line, highlight=line.startswith(SELECTED_PREFIX))]


def diff_frames(old: list[str], new: list[str], top_row: int = LIST_TOP_ROW) -> list[ScreenOp]:
    """Minimal screen writes that turn the old frame into the new one."""
    ops: list[ScreenOp] = []
    for index, (before, after) in enumerate(zip(old, new)):
        if before != after:
            ops.extend(_line_ops(top_row + index, after))

    # Rows only in the old frame
    for index in range(len(new), len(old)):
        ops.extend([MoveTo(top_row + index), ClearLine()])

    # Rows only in the new frame
    for index in range(len(old), len(new)):
        ops.extend(_line_ops(top_row + index, new[index]))

    return ops


def diff_status(old_text: str, new_text: str, row: int = STATUS_ROW) -> list[ScreenOp]:
    """Append typed characters, or blank removed ones, on the status line."""
    if old_text == new_text:
        return []
    column = len(STATUS_LABEL)
    if new_text.startswith(old_text):
        return [MoveTo(row, column + len(old_text)), Write(new_text[len(old_text):])]
    if old_text.startswith(new_text):
        removed = len(old_text) - len(new_text)
        return [
            MoveTo(row, column + len(new_text)),
            Write(" " * removed),
            MoveTo(row, column + len(new_text)),
        ]
    return [MoveTo(row), ClearLine(), Write(STATUS_LABEL + new_text)]


def initial_screen_ops() -> list[ScreenOp]:
    return [MoveTo(STATUS_ROW), ClearLine(), Write(STATUS_LABEL)]


def handle_key(state: BrowserState, event: KeyEvent, item_count: int, height: int) -> Outcome:
    """Apply one key press to the browser state."""
    if event.kind is not KeyKind.PRESS:
        return Outcome.CONTINUE

    # Interrupt is checked before anything else
    if event.key is Key.INTERRUPT:
        return Outcome.CANCEL

    if event.key is Key.UP:
        if state.selected > 0:
            state.selected -= 1
            if state.selected < state.offset:
                state.offset -= 1
    elif event.key is Key.DOWN:
        if state.selected + 1 < item_count and height > 0:
            state.selected += 1
            if state.selected >= state.offset + height:
                state.offset += 1
    elif event.key is Key.CHAR and event.char:
        state.filter_text += event.char
        state.selected = 0
        state.offset = 0
    elif event.key is Key.BACKSPACE:
        if state.filter_text:
            state.filter_text = state.filter_text[:-1]
            state.selected = 0
            state.offset = 0
    elif event.key in (Key.ENTER, Key.RIGHT):
        if item_count > 0:
            return Outcome.SELECT

    return Outcome.CONTINUE


class Picker:
    """One interactive picker session over an item source."""

    def __init__(self, items_provider: ItemSource, terminal):
        self.items_provider = items_provider
        self.terminal = terminal
        self.state = BrowserState()

    def redraw(self, items: list[str], height: int) -> list[ScreenOp]:
        state = self.state
        frame = render_frame(items, state, height)
        ops = diff_frames(state.last_frame, frame)
        ops.extend(diff_status(state.shown_filter_text, state.filter_text))
        if ops:
            self.terminal.apply(ops)
        self.terminal.flush()
        state.last_frame = frame
        state.shown_filter_text = state.filter_text
        return ops

    def _loop(self) -> str | None:
        state = self.state
        self.terminal.apply(initial_screen_ops())
        while True:
            try:
                items = self.items_provider(state.filter_text)
            except OSError as e:
                raise ItemSourceError(str(e)) from e
            height = visible_height(self.terminal.height)
            clamp_selection(state, len(items), height)
            self.redraw(items, height)

            event = self.terminal.read_key()
            outcome = handle_key(state, event, len(items), height)
            if outcome is Outcome.SELECT:
                return items[state.selected]
            if outcome is Outcome.CANCEL:
                return None

    def run(self) -> Result[str | None]:
        """
        Run the session until a selection or cancellation.

        Returns:
            Result with the selected label, None when cancelled, or an
            IO_ERROR / UI_ERROR. The terminal is restored on every path.
        """
        op_trace_id = str(uuid4())
        logger.debug("Picker session started", operation="picker", status="started", trace_id=op_trace_id)
        try:
            with self.terminal:
                selected = self._loop()
        except KeyboardInterrupt:
            selected = None
        except ItemSourceError as e:
            logger.error("Item listing failed", operation="picker", status="failed",
                         trace_id=op_trace_id, error=str(e))
            return Result.err(Error(
                error_type=ErrorType.IO_ERROR,
                message=f"Could not list items: {e}",
                context={"filter_text": self.state.filter_text},
                original_exception=e.__cause__
            ))
        except (TerminalError, OSError) as e:
            logger.error("Terminal unavailable", operation="picker", status="failed",
                         trace_id=op_trace_id, error=str(e), error_type=type(e).__name__)
            return Result.err(Error(
                error_type=ErrorType.UI_ERROR,
                message=f"Terminal error: {e}",
                original_exception=e
            ))

        logger.info(
            "Picker session finished",
            operation="picker",
            status="selected" if selected is not None else "cancelled",
            trace_id=op_trace_id,
            selected=selected
        )
        return Result.ok(selected)


def run(items_provider: ItemSource, terminal) -> Result[str | None]:
    return Picker(items_provider, terminal).run()
