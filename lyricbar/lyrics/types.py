from __future__ import annotations

import enum
from dataclasses import dataclass

from lyricbar.i18n import t


@dataclass(frozen=True, slots=True)
class TrackIdentity:
    artist: str
    title: str

    @property
    def complete(self) -> bool:
        return bool(self.artist) and bool(self.title)

    @property
    def display(self) -> str:
        if self.artist and self.title:
            return f"{self.artist} - {self.title}"
        return self.title or self.artist or t("unknown_track")


class ResultKind(enum.Enum):
    FOUND = "found"
    LOADING = "loading"
    NOT_FOUND = "not_found"


@dataclass(frozen=True, slots=True)
class LyricsResult:
    """What the UI shows for a track: lyrics, a loading marker or a miss."""

    kind: ResultKind
    text: str | None = None

    @classmethod
    def found(cls, text: str) -> "LyricsResult":
        return cls(ResultKind.FOUND, text)

    @property
    def is_placeholder(self) -> bool:
        return self.kind is not ResultKind.FOUND

    def display_text(self) -> str:
        if self.kind is ResultKind.FOUND:
            return self.text or ""
        if self.kind is ResultKind.LOADING:
            return t("loading")
        return t("lyrics_not_found")


LOADING = LyricsResult(ResultKind.LOADING)
NOT_FOUND = LyricsResult(ResultKind.NOT_FOUND)


class Outcome(enum.Enum):
    FOUND_VIA_METADATA = "metadata"
    FOUND_VIA_CACHE = "cache"
    FOUND_VIA_PROVIDER = "provider"
    NOT_FOUND = "not_found"


@dataclass(frozen=True, slots=True)
class Resolution:
    outcome: Outcome
    text: str | None = None
    source: str | None = None
    # False when the track stopped playing before the final push
    displayed: bool = True

    @property
    def found(self) -> bool:
        return self.outcome is not Outcome.NOT_FOUND

    def as_result(self) -> LyricsResult:
        if self.found and self.text is not None:
            return LyricsResult.found(self.text)
        return NOT_FOUND
