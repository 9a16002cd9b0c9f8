from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Iterable

if TYPE_CHECKING:
    from lyricbar.host.base import TrackRef

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class FetchResult:
    text: str
    source: str


class LyricsProvider:
    name: str

    def fetch(self, track: TrackRef) -> str | None:
        raise NotImplementedError


class ProviderChain:
    """Asks each provider in turn; the first one with an answer wins."""

    def __init__(self, providers: Iterable[LyricsProvider] = ()):
        self.providers = tuple(providers)

    def __len__(self) -> int:
        return len(self.providers)

    def fetch(self, track: TrackRef) -> FetchResult | None:
        for provider in self.providers:
            try:
                text = provider.fetch(track)
            except Exception:
                logger.exception("provider %s failed", provider.name)
                continue
            if text is not None:
                return FetchResult(text=text, source=provider.name)
        return None
