from __future__ import annotations

import logging
import threading
from concurrent.futures import Future, ThreadPoolExecutor
from dataclasses import replace

from lyricbar.cache.files import CacheStore
from lyricbar.config import AppConfig
from lyricbar.host.base import Host, TrackRef

from .providers import LyricsProvider, ProviderChain
from .script import ScriptProvider
from .types import (
    LOADING,
    NOT_FOUND,
    LyricsResult,
    Outcome,
    Resolution,
    TrackIdentity,
)

logger = logging.getLogger(__name__)

# Checked in order; the first non-empty one wins.
LYRICS_TAGS = ("unsynced lyrics", "UNSYNCEDLYRICS", "lyrics")


class LyricsResolver:
    """
    Track -> lyrics, trying embedded tags, then the cache, then the providers.

    `resolve` blocks on disk and subprocess work; hosts call
    `on_track_changed`, which runs it on a worker thread. At most one
    cache/provider lookup runs per artist/title at a time, and results for
    a track that is no longer playing are dropped instead of shown.
    """

    def __init__(
        self,
        host: Host,
        cache: CacheStore,
        providers: ProviderChain,
        *,
        workers: int = 2,
    ):
        self.host = host
        self.cache = cache
        self.providers = providers
        self.workers = max(workers, 1)
        self._executor: ThreadPoolExecutor | None = None
        self._executor_lock = threading.Lock()
        self._in_flight: dict[TrackIdentity, Future[Resolution]] = {}
        self._in_flight_lock = threading.Lock()

    @classmethod
    def from_config(cls, cfg: AppConfig, host: Host) -> "LyricsResolver":
        cache = CacheStore(cfg.cache_dir)
        cache.ensure_ready()
        return cls(host, cache, ProviderChain(cls._build_providers(cfg, host)), workers=cfg.workers)

    @staticmethod
    def _build_providers(cfg: AppConfig, host: Host) -> list[LyricsProvider]:
        out: list[LyricsProvider] = []
        for s in cfg.providers:
            name = s.strip().lower()
            if name == "script":
                out.append(ScriptProvider(host, timeout_s=cfg.script_timeout_s))
            else:
                logger.info("Unknown provider '%s' in config, skipping", s)
        return out

    # -- scheduling -------------------------------------------------------

    def on_track_changed(self, track: TrackRef) -> Future[Resolution]:
        with self._executor_lock:
            if self._executor is None:
                self._executor = ThreadPoolExecutor(max_workers=self.workers, thread_name_prefix="lyricbar")
            return self._executor.submit(self.resolve, track)

    def close(self, wait: bool = True) -> None:
        with self._executor_lock:
            executor, self._executor = self._executor, None
        if executor is not None:
            # queued lookups for earlier tracks are not worth starting
            executor.shutdown(wait=wait, cancel_futures=True)

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()

    # -- pipeline ---------------------------------------------------------

    def resolve(self, track: TrackRef) -> Resolution:
        lyrics = self._lyrics_from_metadata(track)
        if lyrics is not None:
            shown = self._push(track, LyricsResult.found(lyrics))
            return Resolution(Outcome.FOUND_VIA_METADATA, lyrics, source="metadata", displayed=shown)

        identity = self._identity(track)
        if not identity.complete:
            shown = self._push(track, NOT_FOUND)
            return Resolution(Outcome.NOT_FOUND, displayed=shown)

        with self._in_flight_lock:
            pending = self._in_flight.get(identity)
            owner = pending is None
            if owner:
                pending = self._in_flight[identity] = Future()

        if not owner:
            logger.debug("%s is already being resolved, waiting", identity.display)
            if not pending.done():
                self._push(track, LOADING)
            res = pending.result()
            shown = self._push(track, res.as_result())
            return replace(res, displayed=shown)

        try:
            res = self._lookup(track, identity)
        except BaseException as e:
            pending.set_exception(e)
            raise
        else:
            pending.set_result(res)
            return res
        finally:
            with self._in_flight_lock:
                self._in_flight.pop(identity, None)

    def _lookup(self, track: TrackRef, identity: TrackIdentity) -> Resolution:
        cached = self.cache.get(identity)
        if cached is not None:
            shown = self._push(track, LyricsResult.found(cached))
            return Resolution(Outcome.FOUND_VIA_CACHE, cached, source="cache", displayed=shown)

        self._push(track, LOADING)

        hit = self.providers.fetch(track)
        if hit is not None:
            shown = self._push(track, LyricsResult.found(hit.text))
            self.cache.put(identity, hit.text)
            return Resolution(Outcome.FOUND_VIA_PROVIDER, hit.text, source=hit.source, displayed=shown)

        shown = self._push(track, NOT_FOUND)
        return Resolution(Outcome.NOT_FOUND, displayed=shown)

    def _lyrics_from_metadata(self, track: TrackRef) -> str | None:
        with self.host.metadata_lock():
            for tag in LYRICS_TAGS:
                value = self.host.find_meta(track, tag)
                if value:
                    return value
        return None

    def _identity(self, track: TrackRef) -> TrackIdentity:
        with self.host.metadata_lock():
            artist = self.host.find_meta(track, "artist") or ""
            title = self.host.find_meta(track, "title") or ""
        return TrackIdentity(artist=artist, title=title)

    def _push(self, track: TrackRef, result: LyricsResult) -> bool:
        if not self.host.is_playing(track):
            logger.debug("Dropping %s: track is no longer playing", result.kind.value)
            return False
        self.host.set_displayed_lyrics(track, result)
        return True
