from __future__ import annotations

import logging
import threading
from typing import Callable, Iterator

from lyricbar.config import AppConfig
from lyricbar.lyrics.types import LyricsResult
from lyricbar.mpris.client import MprisClient, TrackInfo
from lyricbar.mpris.errors import MprisError
from lyricbar.render.display import LyricsDisplay

from .base import Host, TrackRef

logger = logging.getLogger(__name__)

# config key -> AppConfig attribute
_CONFIG_KEYS = {
    "lyricbar.customcmd": "custom_command",
}


class MprisHost(Host):
    """
    Host backed by an MPRIS player on the session bus.

    Only the UI loop talks to D-Bus (through `poll`); workers see the last
    snapshot it stored. MPRIS has no playlist selection, so the playing track
    is the whole playlist and is always selected.
    """

    def __init__(
        self,
        cfg: AppConfig,
        display: LyricsDisplay,
        *,
        preferred_player: str | None = None,
        pick_player: Callable[..., MprisClient] | None = None,
    ):
        super().__init__()
        self.cfg = cfg
        self.display = display
        self.preferred_player = preferred_player
        self._pick_player = pick_player or MprisClient.pick_player
        self._now_playing: TrackInfo | None = None
        self._state_lock = threading.Lock()

    def poll(self) -> TrackInfo | None:
        """
        Read the player once. Returns the new track when it changed since the
        previous call; raises MprisError when no player can be read.
        """
        try:
            client = self._pick_player(preferred=self.preferred_player)
            ti = client.track_info()
        except MprisError:
            with self._state_lock:
                self._now_playing = None
            raise

        with self._state_lock:
            previous, self._now_playing = self._now_playing, ti
        if previous is not None and previous.track_key == ti.track_key:
            return None
        return ti

    def currently_playing(self) -> TrackInfo | None:
        with self._state_lock:
            return self._now_playing

    def find_meta(self, track: TrackRef, name: str) -> str | None:
        if not isinstance(track, TrackInfo):
            return None
        return track.lookup(name)

    def get_config_string(self, key: str) -> str:
        attr = _CONFIG_KEYS.get(key)
        if attr is None:
            return ""
        return getattr(self.cfg, attr) or ""

    def set_displayed_lyrics(self, track: TrackRef, result: LyricsResult) -> None:
        self.display.show(track, result)

    def playlist(self) -> Iterator[TrackInfo]:
        track = self.currently_playing()
        if track is not None:
            yield track

    def is_selected(self, track: TrackRef) -> bool:
        return True
