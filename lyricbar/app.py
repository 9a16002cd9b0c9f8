from __future__ import annotations

import logging
import signal
import time

from lyricbar.config import AppConfig
from lyricbar.host.mpris import MprisHost
from lyricbar.i18n import set_lang, t
from lyricbar.lyrics.resolver import LyricsResolver
from lyricbar.lyrics.types import Resolution
from lyricbar.mpris.errors import NoPlayersFound, PlayerUnavailable
from lyricbar.render.ansi import AnsiRenderer
from lyricbar.render.display import LyricsDisplay

logger = logging.getLogger(__name__)


def watch(cfg: AppConfig, *, preferred_player: str | None, max_ticks: int | None = None) -> int:
    """
    Main watch loop:
    MPRIS -> track change -> resolver (worker) -> display handoff -> render.
    """
    set_lang(cfg.lang)
    display = LyricsDisplay()
    host = MprisHost(cfg, display, preferred_player=preferred_player)
    resolver = LyricsResolver.from_config(cfg, host)

    renderer = AnsiRenderer(use_alt_screen=cfg.use_alt_screen)
    renderer.enter()

    # Handle SIGINT (Ctrl+C) gracefully
    def _on_sigint(signum, frame):
        renderer.exit()
        raise KeyboardInterrupt

    previous_sigint = signal.signal(signal.SIGINT, _on_sigint)

    tick_s = 1.0 / max(cfg.refresh_hz, 1.0)
    ticks = 0
    try:
        while max_ticks is None or ticks < max_ticks:
            ticks += 1
            try:
                changed = host.poll()
            except NoPlayersFound:
                renderer.render("lyricbar", [t("no_mpris_players")], dimmed=True)
                time.sleep(1.0)
                continue
            except PlayerUnavailable as e:
                renderer.render("lyricbar", [t("mpris_unavailable", error=str(e))], dimmed=True)
                time.sleep(0.5)
                continue

            if changed is not None:
                logger.info("Now playing: %s", changed.display or changed.track_key)
                resolver.on_track_changed(changed)

            track = host.currently_playing()
            result = display.take(track, timeout=tick_s)
            if track is None or result is None:
                continue
            renderer.render(
                track.display or t("unknown_track"),
                result.display_text().splitlines(),
                dimmed=result.is_placeholder,
            )
    finally:
        signal.signal(signal.SIGINT, previous_sigint)
        resolver.close(wait=False)
        renderer.exit()
    return 0


def resolve_current(cfg: AppConfig, *, preferred_player: str | None) -> Resolution:
    """Resolve the playing track once, on the calling thread. Raises MprisError without a player."""
    set_lang(cfg.lang)
    host = MprisHost(cfg, LyricsDisplay(), preferred_player=preferred_player)
    track = host.poll()
    with LyricsResolver.from_config(cfg, host) as resolver:
        return resolver.resolve(track)
