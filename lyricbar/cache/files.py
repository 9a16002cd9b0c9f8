from __future__ import annotations

import logging
from pathlib import Path

from lyricbar.lyrics.types import TrackIdentity

logger = logging.getLogger(__name__)


def cache_key(identity: TrackIdentity) -> str:
    """
    File name for a track: "<artist>-<title>" with every "/" replaced by "_".

    The dash is not escaped, so ("a-b", "c") and ("a", "b-c") share a key.
    """
    artist = identity.artist.replace("/", "_")
    title = identity.title.replace("/", "_")
    return f"{artist}-{title}"


class CacheStore:
    """One plain-text file per (artist, title) under a single directory."""

    def __init__(self, root: Path):
        self.root = root

    def path_for(self, identity: TrackIdentity) -> Path:
        return self.root / cache_key(identity)

    def ensure_ready(self) -> bool:
        try:
            self.root.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            logger.warning("Could not create cache directory %s: %s", self.root, e)
            return False
        return True

    def has(self, identity: TrackIdentity) -> bool:
        if not identity.complete:
            return False
        try:
            return self.path_for(identity).exists()
        except OSError:
            return False

    def get(self, identity: TrackIdentity) -> str | None:
        if not identity.complete:
            return None
        path = self.path_for(identity)
        logger.debug("cache lookup: %s", path)
        try:
            with open(path, encoding="utf-8", newline="") as f:
                return f.read()
        except FileNotFoundError:
            logger.debug("no cached lyrics at %s", path)
            return None
        except (OSError, UnicodeDecodeError) as e:
            logger.warning("Could not read cached lyrics %s: %s", path, e)
            return None

    def put(self, identity: TrackIdentity, text: str) -> bool:
        if not identity.complete:
            return False
        path = self.path_for(identity)
        try:
            f = open(path, "w", encoding="utf-8", newline="")
        except OSError as e:
            logger.error("Could not open file for writing: %s (%s)", path, e)
            return False
        try:
            with f:
                f.write(text)
        except (OSError, UnicodeEncodeError) as e:
            logger.error("Could not write cached lyrics %s: %s", path, e)
            return False
        return True

    def remove(self, identity: TrackIdentity) -> bool:
        if not identity.complete:
            return False
        path = self.path_for(identity)
        try:
            path.unlink()
        except FileNotFoundError:
            return False
        except OSError as e:
            logger.warning("Could not remove cached lyrics %s: %s", path, e)
            return False
        return True

    def keys(self) -> list[str]:
        try:
            return sorted(p.name for p in self.root.iterdir() if p.is_file())
        except OSError:
            return []

    def clear(self) -> int:
        removed = 0
        for name in self.keys():
            try:
                (self.root / name).unlink()
                removed += 1
            except OSError as e:
                logger.warning("Could not remove %s: %s", self.root / name, e)
        return removed
