from __future__ import annotations

from dataclasses import dataclass, field
import logging
from typing import Any, Mapping
from urllib.parse import unquote, urlparse

import dbus

from .errors import NoPlayersFound, PlayerUnavailable

logger = logging.getLogger(__name__)

PLAYER_IFACE = "org.mpris.MediaPlayer2.Player"

# title-format name -> xesam key
_FIELD_KEYS = {
    "album artist": "xesam:albumArtist",
    "tracknumber": "xesam:trackNumber",
    "genre": "xesam:genre",
    "composer": "xesam:composer",
    "year": "xesam:contentCreated",
    "uri": "xesam:url",
    "lyrics": "xesam:asText",
}


@dataclass(frozen=True, slots=True)
class TrackInfo:
    title: str
    artist: str
    album: str
    # stable-ish identifier for "track changed" checks
    track_key: str
    meta: Mapping[str, str] = field(default_factory=dict, compare=False, repr=False)

    @property
    def display(self) -> str:
        if self.artist and self.title:
            return f"{self.artist} - {self.title}"
        return self.title or self.artist

    def lookup(self, name: str) -> str | None:
        if name == "artist":
            return self.artist or None
        if name == "title":
            return self.title or None
        if name == "album":
            return self.album or None
        if name == "path":
            url = self.meta.get("xesam:url", "")
            return unquote(urlparse(url).path) if url.startswith("file://") else None
        key = _FIELD_KEYS.get(name)
        if key is None and name.startswith(("xesam:", "mpris:")):
            key = name
        if key is None:
            return None
        value = self.meta.get(key) or None
        if value and name == "year":
            return value[:4]
        return value


def _to_str(value: Any) -> str:
    try:
        return str(value)
    except Exception:
        return ""


def _join_values(value: Any) -> str:
    if isinstance(value, (list, tuple, dbus.Array)):
        return ", ".join(_to_str(x) for x in value if _to_str(x))
    return _to_str(value)


def track_info_from_metadata(md: Mapping[str, Any]) -> TrackInfo:
    meta = {str(k): _join_values(v) for k, v in md.items()}
    title = meta.get("xesam:title", "")
    artist = meta.get("xesam:artist", "")
    album = meta.get("xesam:album", "")
    url = meta.get("xesam:url", "")
    track_id = meta.get("mpris:trackid", "")
    key = " | ".join(x for x in (artist, title, album, url, track_id) if x)
    return TrackInfo(title=title, artist=artist, album=album, track_key=key, meta=meta)


class MprisClient:
    def __init__(self, service_name: str):
        self.service_name = service_name
        self._bus = dbus.SessionBus()
        self._obj = self._bus.get_object(service_name, "/org/mpris/MediaPlayer2")
        self._props = dbus.Interface(self._obj, "org.freedesktop.DBus.Properties")

    @staticmethod
    def list_players() -> list[str]:
        try:
            bus = dbus.SessionBus()
            return [s for s in bus.list_names() if s.startswith("org.mpris.MediaPlayer2.")]
        except dbus.DBusException as e:
            # No session bus (CI, sandboxes, ssh sessions): treat as "no players".
            logger.debug("Unable to connect to D-Bus session bus: %s", e)
            return []

    @staticmethod
    def pick_player(preferred: str | None = None) -> "MprisClient":
        players = MprisClient.list_players()
        if not players:
            raise NoPlayersFound("No active MPRIS players")

        if preferred:
            # allow passing short name like "vlc"
            for s in players:
                if s == preferred or s.endswith("." + preferred):
                    return MprisClient(s)
            logger.warning("Preferred player '%s' not found, falling back", preferred)

        for s in players:
            try:
                c = MprisClient(s)
                if c.playback_status().lower() == "playing":
                    return c
            except (dbus.DBusException, PlayerUnavailable):
                continue

        return MprisClient(players[0])

    def playback_status(self) -> str:
        try:
            return _to_str(self._props.Get(PLAYER_IFACE, "PlaybackStatus"))
        except dbus.DBusException as e:
            raise PlayerUnavailable(str(e)) from e

    def metadata(self) -> dict[str, Any]:
        try:
            return dict(self._props.Get(PLAYER_IFACE, "Metadata"))
        except dbus.DBusException as e:
            raise PlayerUnavailable(str(e)) from e

    def track_info(self) -> TrackInfo:
        return track_info_from_metadata(self.metadata())
