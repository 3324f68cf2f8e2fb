"""Shared test helpers: a scripted terminal and a recording executor."""

import pytest

from workspacer.terminal import Key, KeyEvent


def chars(text: str) -> list[KeyEvent]:
    return [KeyEvent(Key.CHAR, char=ch) for ch in text]


UP = KeyEvent(Key.UP)
DOWN = KeyEvent(Key.DOWN)
ENTER = KeyEvent(Key.ENTER)
RIGHT = KeyEvent(Key.RIGHT)
BACKSPACE = KeyEvent(Key.BACKSPACE)
INTERRUPT = KeyEvent(Key.INTERRUPT)


class FakeTerminal:
    """Terminal surface that replays scripted key events and records writes."""

    def __init__(self, keys, height: int = 10):
        self.keys = list(keys)
        self.height = height
        self.ops = []
        self.flushes = 0
        self.entered = False
        self.restored = False

    def __enter__(self):
        self.entered = True
        return self

    def __exit__(self, exc_type, exc, tb):
        self.restored = True
        return False

    def apply(self, ops):
        self.ops.extend(ops)

    def flush(self):
        self.flushes += 1

    def read_key(self):
        if not self.keys:
            raise AssertionError("picker read more keys than were scripted")
        key = self.keys.pop(0)
        if isinstance(key, BaseException):
            raise key
        return key


class RecordingExecutor:
    def __init__(self, exit_status: int = 0):
        self.exit_status = exit_status
        self.executable = None
        self.calls = []

    def __call__(self, args):
        self.calls.append(list(args))
        return self.exit_status


@pytest.fixture
def config_path(tmp_path):
    return tmp_path / "Workspacer" / "config.toml"
