from __future__ import annotations

import logging
import shutil
import threading
import time

import pytest

from lyricbar.lyrics.providers import ProviderChain
from lyricbar.lyrics.resolver import LyricsResolver
from lyricbar.lyrics.script import CONFIG_KEY, ScriptProvider
from lyricbar.lyrics.types import LOADING, NOT_FOUND, LyricsResult, Outcome, TrackIdentity
from tests.mocks.host_mock import FakeHost, StubProvider, make_track

needs_sh = pytest.mark.skipif(shutil.which("sh") is None, reason="needs a POSIX shell")


def make_resolver(host, cache, *providers, workers: int = 2) -> LyricsResolver:
    return LyricsResolver(host, cache, ProviderChain(providers), workers=workers)


class TestMetadata:
    def test_tag_wins_and_is_never_cached(self, host, cache):
        provider = StubProvider("from provider")
        track = host.play(make_track("A", "T", lyrics="from tag"))
        cache.put(TrackIdentity("A", "T"), "from cache")

        res = make_resolver(host, cache, provider).resolve(track)

        assert res.outcome is Outcome.FOUND_VIA_METADATA
        assert res.text == "from tag"
        assert host.shown_for(track) == [LyricsResult.found("from tag")]
        assert cache.get(TrackIdentity("A", "T")) == "from cache"
        assert provider.calls == []

    def test_tag_without_cache_writes_nothing(self, host, cache):
        track = host.play(make_track("A", "T", lyrics="from tag"))
        make_resolver(host, cache, StubProvider("x")).resolve(track)
        assert cache.keys() == []

    def test_tag_priority(self, host, cache):
        track = host.play(make_track(lyrics="plain", UNSYNCEDLYRICS="upper", unsynced_lyrics="spaced"))
        assert make_resolver(host, cache).resolve(track).text == "spaced"

        track = host.play(make_track(lyrics="plain", UNSYNCEDLYRICS="upper"))
        assert make_resolver(host, cache).resolve(track).text == "upper"

    def test_empty_tag_is_skipped(self, host, cache):
        track = host.play(make_track(unsynced_lyrics="", lyrics="fallback"))
        assert make_resolver(host, cache).resolve(track).text == "fallback"

    def test_tag_found_without_artist_or_title(self, host, cache):
        track = host.play(make_track(artist=None, title=None, lyrics="words"))
        assert make_resolver(host, cache).resolve(track).outcome is Outcome.FOUND_VIA_METADATA


class TestIdentity:
    @pytest.mark.parametrize("artist, title", [(None, "T"), ("A", None), ("", "T"), ("A", "")])
    def test_incomplete_identity_is_not_found(self, host, cache, artist, title):
        provider = StubProvider("x")
        track = host.play(make_track(artist, title))

        res = make_resolver(host, cache, provider).resolve(track)

        assert res.outcome is Outcome.NOT_FOUND
        assert host.shown_for(track) == [NOT_FOUND]
        assert provider.calls == []
        assert cache.keys() == []


class TestCacheStage:
    def test_cache_hit_skips_providers(self, host, cache):
        provider = StubProvider("fresh")
        cache.put(TrackIdentity("A", "T"), "cached words")
        track = host.play(make_track("A", "T"))

        res = make_resolver(host, cache, provider).resolve(track)

        assert res.outcome is Outcome.FOUND_VIA_CACHE
        assert res.source == "cache"
        assert host.shown_for(track) == [LyricsResult.found("cached words")]
        assert provider.calls == []

    def test_unreadable_cache_falls_through(self, host, cache):
        cache.path_for(TrackIdentity("A", "T")).write_bytes(b"\xff\xff")
        track = host.play(make_track("A", "T"))
        res = make_resolver(host, cache, StubProvider("fresh")).resolve(track)
        assert res.outcome is Outcome.FOUND_VIA_PROVIDER
        assert cache.get(TrackIdentity("A", "T")) == "fresh"


class TestProviderStage:
    def test_loading_then_found_then_cached(self, host, cache):
        track = host.play(make_track("A", "T"))

        res = make_resolver(host, cache, StubProvider("L")).resolve(track)

        assert res.outcome is Outcome.FOUND_VIA_PROVIDER
        assert res.source == "stub"
        assert host.shown_for(track) == [LOADING, LyricsResult.found("L")]
        assert cache.get(TrackIdentity("A", "T")) == "L"

    def test_display_happens_before_cache_write(self, host, cache):
        seen: list[bool] = []

        def on_push(track, result):
            if result == LyricsResult.found("L"):
                seen.append(cache.has(TrackIdentity("A", "T")))

        host.on_push = on_push
        track = host.play(make_track("A", "T"))
        make_resolver(host, cache, StubProvider("L")).resolve(track)
        assert seen == [False]

    def test_chain_order_and_short_circuit(self, host, cache):
        first = StubProvider(None, name="first")
        second = StubProvider("two", name="second")
        third = StubProvider("three", name="third")
        track = host.play(make_track())

        res = make_resolver(host, cache, first, second, third).resolve(track)

        assert res.text == "two"
        assert res.source == "second"
        assert first.calls == [track]
        assert third.calls == []

    def test_failing_provider_does_not_stop_the_chain(self, host, cache, caplog):
        def boom(track):
            raise RuntimeError("provider exploded")

        track = host.play(make_track())
        with caplog.at_level(logging.ERROR):
            res = make_resolver(host, cache, StubProvider(boom, name="bad"), StubProvider("ok")).resolve(track)
        assert res.text == "ok"
        assert "provider bad failed" in caplog.text

    def test_nothing_found(self, host, cache):
        track = host.play(make_track("A", "T"))
        res = make_resolver(host, cache, StubProvider(None)).resolve(track)
        assert res.outcome is Outcome.NOT_FOUND
        assert host.shown_for(track) == [LOADING, NOT_FOUND]
        assert cache.keys() == []

    def test_unconfigured_script_leaves_cache_untouched(self, host, cache):
        track = host.play(make_track("A", "T"))
        res = make_resolver(host, cache, ScriptProvider(host)).resolve(track)
        assert res.outcome is Outcome.NOT_FOUND
        assert host.last_shown == NOT_FOUND
        assert cache.keys() == []

    def test_metadata_lock_released_before_providers(self, host, cache):
        provider = StubProvider("x", host=host)
        track = host.play(make_track())
        make_resolver(host, cache, provider).resolve(track)
        assert provider.lock_held_during_fetch == [False]

    def test_failed_cache_write_still_displays(self, host, tmp_path):
        from lyricbar.cache.files import CacheStore

        broken = CacheStore(tmp_path / "never-created")
        track = host.play(make_track())
        res = make_resolver(host, broken, StubProvider("L")).resolve(track)
        assert res.outcome is Outcome.FOUND_VIA_PROVIDER
        assert host.last_shown == LyricsResult.found("L")


@needs_sh
class TestScriptScenarios:
    def test_acdc_hello(self, cache):
        host = FakeHost(config={CONFIG_KEY: "printf Hello"})
        track = host.play(make_track("AC/DC", "T.N.T"))

        res = make_resolver(host, cache, ScriptProvider(host, timeout_s=5.0)).resolve(track)

        assert res.outcome is Outcome.FOUND_VIA_PROVIDER
        assert host.last_shown == LyricsResult.found("Hello")
        assert (cache.root / "AC_DC-T.N.T").read_text(encoding="utf-8") == "Hello"

    def test_acdc_exit_status_one(self, cache):
        host = FakeHost(config={CONFIG_KEY: "sh -c 'printf Hello; exit 1'"})
        track = host.play(make_track("AC/DC", "T.N.T"))

        res = make_resolver(host, cache, ScriptProvider(host, timeout_s=5.0)).resolve(track)

        assert res.outcome is Outcome.NOT_FOUND
        assert host.last_shown == NOT_FOUND
        assert not (cache.root / "AC_DC-T.N.T").exists()

    def test_template_fields_reach_the_script(self, cache):
        host = FakeHost(config={CONFIG_KEY: 'printf "%%s by %%s" "%title%" "%artist%"'})
        track = host.play(make_track("AC/DC", "T.N.T"))
        res = make_resolver(host, cache, ScriptProvider(host)).resolve(track)
        assert res.text == "T.N.T by AC/DC"


class TestStaleness:
    def test_result_for_track_no_longer_playing_is_dropped(self, host, cache):
        track = make_track("A", "T")
        host.play(make_track("Other", "Song"))

        res = make_resolver(host, cache, StubProvider("L")).resolve(track)

        assert res.outcome is Outcome.FOUND_VIA_PROVIDER
        assert res.displayed is False
        assert host.pushes == []
        # still worth keeping for next time
        assert cache.get(TrackIdentity("A", "T")) == "L"

    def test_nothing_playing(self, host, cache):
        res = make_resolver(host, cache, StubProvider("L")).resolve(make_track())
        assert res.displayed is False
        assert host.pushes == []

    def test_rapid_track_change_shows_only_latest(self, host, cache):
        x = make_track("X", "x-song")
        y = make_track("Y", "y-song")
        gate = threading.Event()
        x_started = threading.Event()

        def answer(track):
            if track is x:
                x_started.set()
                assert gate.wait(5)
            return f"{track.meta['title']} words"

        with make_resolver(host, cache, StubProvider(answer)) as resolver:
            host.play(x)
            fx = resolver.on_track_changed(x)
            assert x_started.wait(5)

            host.play(y)
            ry = resolver.on_track_changed(y).result(timeout=5)
            gate.set()
            rx = fx.result(timeout=5)

        assert ry.displayed is True
        assert rx.displayed is False
        assert LyricsResult.found("x-song words") not in host.shown_for(x)
        assert host.last_shown == LyricsResult.found("y-song words")
        assert cache.get(TrackIdentity("X", "x-song")) == "x-song words"


class TestDeduplication:
    def test_same_identity_runs_providers_once(self, host, cache):
        gate = threading.Event()
        provider = StubProvider("words", gate=gate)
        first = make_track("A", "T")
        second = make_track("A", "T")
        host.play(second)

        with make_resolver(host, cache, provider) as resolver:
            f1 = resolver.on_track_changed(first)
            assert provider.started.wait(5)
            f2 = resolver.on_track_changed(second)
            deadline = time.monotonic() + 5
            while not host.shown_for(second) and time.monotonic() < deadline:
                time.sleep(0.01)
            # the waiting track shows a loading marker meanwhile
            assert host.shown_for(second) == [LOADING]
            gate.set()
            r1 = f1.result(timeout=5)
            r2 = f2.result(timeout=5)

        assert provider.calls == [first]
        assert r1.displayed is False
        assert r2.text == "words"
        assert r2.displayed is True
        assert host.shown_for(second) == [LOADING, LyricsResult.found("words")]

    def test_in_flight_slot_released(self, host, cache):
        provider = StubProvider(None)
        track = host.play(make_track("A", "T"))
        resolver = make_resolver(host, cache, provider)
        resolver.resolve(track)
        resolver.resolve(track)
        assert len(provider.calls) == 2
        assert resolver._in_flight == {}


class TestClose:
    def test_close_cancels_queued_lookups(self, host, cache):
        gate = threading.Event()
        provider = StubProvider("words", gate=gate)
        first = host.play(make_track("A", "1"))
        resolver = make_resolver(host, cache, provider, workers=1)

        running = resolver.on_track_changed(first)
        assert provider.started.wait(5)
        queued = resolver.on_track_changed(make_track("B", "2"))
        resolver.close(wait=False)
        gate.set()

        assert queued.cancelled()
        assert running.result(timeout=5).text == "words"
        assert provider.calls == [first]


class TestFromConfig:
    def test_builds_script_provider_and_cache_dir(self, app_config):
        cfg = app_config()
        resolver = LyricsResolver.from_config(cfg, FakeHost())
        assert cfg.cache_dir.is_dir()
        assert [type(p) for p in resolver.providers.providers] == [ScriptProvider]
        assert resolver.providers.providers[0].timeout_s == 5.0

    def test_unknown_provider_skipped(self, app_config, caplog):
        with caplog.at_level(logging.INFO):
            resolver = LyricsResolver.from_config(app_config(providers=("genius", "script")), FakeHost())
        assert len(resolver.providers) == 1
        assert "Unknown provider 'genius'" in caplog.text
