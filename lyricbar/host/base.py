from __future__ import annotations

import logging
import threading
from contextlib import AbstractContextManager
from typing import Any, Hashable, Iterable

from lyricbar.lyrics.types import LyricsResult

from .titleformat import CompiledTemplate, TemplateError, compile_template, evaluate

logger = logging.getLogger(__name__)

# Whatever the host uses to identify a track. Borrowed, never owned.
TrackRef = Hashable


class Host:
    """
    The slice of a media player the lyrics pipeline talks to.

    Implementations must make `set_displayed_lyrics` safe to call from a
    worker thread; everything else is called with or without
    `metadata_lock()` held, as documented per method.
    """

    def __init__(self) -> None:
        self._meta_lock = threading.RLock()

    def currently_playing(self) -> TrackRef | None:
        raise NotImplementedError

    def is_playing(self, track: TrackRef) -> bool:
        current = self.currently_playing()
        return current is not None and current == track

    def metadata_lock(self) -> AbstractContextManager[Any]:
        """Guard for reads of track metadata. Never hold it across blocking I/O."""
        return self._meta_lock

    def find_meta(self, track: TrackRef, name: str) -> str | None:
        raise NotImplementedError

    def get_config_string(self, key: str) -> str:
        raise NotImplementedError

    def compile_template(self, text: str) -> CompiledTemplate | None:
        try:
            return compile_template(text)
        except TemplateError as e:
            logger.debug("template %r: %s", text, e)
            return None

    def evaluate_template(self, compiled: CompiledTemplate, track: TrackRef) -> str | None:
        with self.metadata_lock():
            try:
                return evaluate(compiled, lambda name: self.find_meta(track, name))
            except TemplateError as e:
                logger.debug("template %r: %s", compiled.source, e)
                return None

    def set_displayed_lyrics(self, track: TrackRef, result: LyricsResult) -> None:
        raise NotImplementedError

    def playlist(self) -> Iterable[TrackRef]:
        raise NotImplementedError

    def is_selected(self, track: TrackRef) -> bool:
        raise NotImplementedError
