from __future__ import annotations

import threading
from typing import Hashable

from lyricbar.lyrics.types import LyricsResult


class LyricsDisplay:
    """
    Hands results from resolver workers to the thread that owns the screen.

    Updates are kept per track, latest one wins. `take` only hands out the
    update for the track the caller says is playing, so a late result for a
    previous track can never replace the current one.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._ready = threading.Event()
        self._pending: dict[Hashable, LyricsResult] = {}

    def show(self, track: Hashable, result: LyricsResult) -> None:
        with self._lock:
            self._pending[track] = result
            self._ready.set()

    def take(self, track: Hashable | None, timeout: float | None = None) -> LyricsResult | None:
        """Wait for updates, return the one for `track` and drop the rest."""
        if not self._ready.wait(timeout):
            return None
        with self._lock:
            pending, self._pending = self._pending, {}
            self._ready.clear()
        if track is None:
            return None
        return pending.get(track)
