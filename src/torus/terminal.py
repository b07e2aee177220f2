"""Small helper for controlling ANSI terminal output."""

from __future__ import annotations

import os
import shutil
import sys
import time
from typing import Callable, Optional, Sequence, TextIO, Tuple

CURSOR_HOME = "\033[H"
CLEAR_SCREEN = "\033[2J"
HIDE_CURSOR = "\033[?25l"
SHOW_CURSOR = "\033[?25h"
RESET_STYLE = "\033[0m"

COLOR_PALETTE: Tuple[str, ...] = (
    "\033[31m",  # red
    "\033[33m",  # yellow
    "\033[32m",  # green
    "\033[36m",  # cyan
    "\033[34m",  # blue
    "\033[35m",  # magenta
)


def compose_frame(rows: Sequence[str], color: Optional[str] = None) -> str:
    start = color or ""
    return "".join(f"{start}{row}{RESET_STYLE}\n" for row in rows)


class ColorCycler:
    """Steps through a colour palette on a timer, independent of the animation."""

    def __init__(
        self,
        palette: Sequence[str] = COLOR_PALETTE,
        interval: Optional[float] = 1.0,
        *,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        if not palette:
            raise ValueError("ColorCycler requires at least one colour")
        if interval is not None and interval <= 0:
            raise ValueError("Colour interval must be positive")
        self._palette = tuple(palette)
        self._interval = interval
        self._clock = clock
        self._index = 0
        self._last_change = clock()

    @property
    def index(self) -> int:
        return self._index

    def current(self) -> str:
        if self._interval is not None:
            now = self._clock()
            steps = int((now - self._last_change) // self._interval)
            if steps > 0:
                self._index = (self._index + steps) % len(self._palette)
                self._last_change += steps * self._interval
        return self._palette[self._index]


class TerminalController:
    """Context manager that prepares the terminal for smooth animations."""

    def __init__(self, *, clear: bool = True, stream: Optional[TextIO] = None) -> None:
        self._clear = clear
        self._stream = stream
        self._cursor_hidden = False

    @property
    def stream(self) -> TextIO:
        return self._stream if self._stream is not None else sys.stdout

    def __enter__(self) -> "TerminalController":
        out = self.stream
        if self._clear:
            out.write(CLEAR_SCREEN)
        out.write(CURSOR_HOME)
        out.write(HIDE_CURSOR)
        out.flush()
        self._cursor_hidden = True
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.restore()

    def restore(self) -> None:
        if self._cursor_hidden:
            out = self.stream
            out.write(RESET_STYLE)
            out.write(SHOW_CURSOR)
            out.flush()
            self._cursor_hidden = False

    def draw(self, frame: str) -> None:
        out = self.stream
        out.write(CURSOR_HOME)
        out.write(frame)
        out.write(RESET_STYLE)
        out.flush()

    def get_size(self) -> os.terminal_size:
        return shutil.get_terminal_size(fallback=(80, 24))

    def size_tuple(self) -> Tuple[int, int]:
        size = self.get_size()
        return size.columns, size.lines

    def fits(self, width: int, height: int) -> bool:
        columns, lines = self.size_tuple()
        return width <= columns and height <= lines
