from __future__ import annotations

import pytest

from lyricbar.cache.files import CacheStore
from lyricbar.config import AppConfig
from lyricbar.i18n import set_lang
from tests.mocks.host_mock import FakeHost


@pytest.fixture(autouse=True)
def _english():
    set_lang("en")
    yield
    set_lang("en")


@pytest.fixture
def cache(tmp_path) -> CacheStore:
    store = CacheStore(tmp_path / "cache" / "lyricbar" / "lyrics")
    assert store.ensure_ready()
    return store


@pytest.fixture
def host() -> FakeHost:
    return FakeHost()


@pytest.fixture
def app_config(tmp_path):
    def make(**overrides) -> AppConfig:
        values = dict(
            cache_dir=tmp_path / "cache" / "lyricbar" / "lyrics",
            config_dir=tmp_path / "config",
            lang="EN",
            custom_command="",
            providers=("script",),
            script_timeout_s=5.0,
            workers=2,
            preferred_player=None,
            refresh_hz=50.0,
            use_alt_screen=False,
        )
        values.update(overrides)
        return AppConfig(**values)

    return make
