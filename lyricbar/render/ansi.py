from __future__ import annotations

import shutil
import signal
import sys
import textwrap
from dataclasses import dataclass
from typing import Callable


CSI = "\x1b["
MORE = "…"


def _sgr(*codes: int) -> str:
    return CSI + ";".join(str(c) for c in codes) + "m"


@dataclass(frozen=True, slots=True)
class Theme:
    title: str = _sgr(36, 1)  # cyan bold
    text: str = _sgr(0)
    dim: str = _sgr(90)  # bright black
    reset: str = _sgr(0)


def wrap_lines(lines: list[str], width: int) -> list[str]:
    """Wrap every line to `width` columns, keeping blank lines between verses."""
    width = max(width, 1)
    out: list[str] = []
    for line in lines:
        out.extend(textwrap.wrap(line, width) or [""])
    return out


class AnsiRenderer:
    """Full-screen frame: a title row and the lyrics text below it."""

    def __init__(self, use_alt_screen: bool = True, theme: Theme | None = None):
        self.use_alt_screen = use_alt_screen
        self.theme = theme or Theme()
        self._entered = False
        self._resize_handler: Callable[..., None] | None = None
        self._last_render_args: tuple[str, list[str], bool] | None = None

    def __enter__(self):
        self.enter()
        return self

    def __exit__(self, exc_type, exc, tb):
        self.exit()

    def enter(self) -> None:
        if self._entered:
            return
        if self.use_alt_screen:
            sys.stdout.write(CSI + "?1049h")  # alt screen
        sys.stdout.write(CSI + "?25l")  # hide cursor
        sys.stdout.write(CSI + "H" + CSI + "2J")  # home + clear
        sys.stdout.flush()
        self._entered = True

        # redraw the last frame at the new size
        def _on_resize(*_args) -> None:
            if self._last_render_args:
                title, lines, dimmed = self._last_render_args
                self.render(title, lines, dimmed=dimmed)

        self._resize_handler = _on_resize
        signal.signal(signal.SIGWINCH, _on_resize)

    def exit(self) -> None:
        if not self._entered:
            return
        if self._resize_handler:
            signal.signal(signal.SIGWINCH, signal.SIG_DFL)
            self._resize_handler = None
        sys.stdout.write(self.theme.reset)
        sys.stdout.write(CSI + "?25h")  # show cursor
        if self.use_alt_screen:
            sys.stdout.write(CSI + "?1049l")  # normal screen
        sys.stdout.flush()
        self._entered = False
        self._last_render_args = None

    def render(self, title: str, lines: list[str], *, dimmed: bool = False) -> None:
        """Draw one frame. Placeholders (loading, not found) are drawn dimmed."""
        self._last_render_args = (title, lines, dimmed)

        cols, rows = shutil.get_terminal_size(fallback=(80, 24))
        body_rows = max(rows - 1, 1)
        body = wrap_lines(lines, cols)
        cut = len(body) > body_rows
        if cut:
            body = body[: body_rows - 1]
        style = self.theme.dim if dimmed else self.theme.text

        out: list[str] = [f"{self.theme.title}♫ {title[:cols]} ♫{self.theme.reset}"]
        out.extend(f"{style}{line}{self.theme.reset}" for line in body)
        if cut:
            out.append(f"{self.theme.dim}{MORE}{self.theme.reset}")

        sys.stdout.write(CSI + "H" + CSI + "2J")
        sys.stdout.write("\n".join(out))
        sys.stdout.write(self.theme.reset)
        sys.stdout.flush()
