from __future__ import annotations

import logging

from lyricbar.cache.files import CacheStore
from lyricbar.host.base import Host

from .types import TrackIdentity

logger = logging.getLogger(__name__)


def remove_from_cache(host: Host, cache: CacheStore) -> int:
    """Forget cached lyrics for every selected playlist item. Returns how many were removed."""
    removed = 0
    with host.metadata_lock():
        for track in host.playlist():
            if not host.is_selected(track):
                continue
            identity = TrackIdentity(
                artist=host.find_meta(track, "artist") or "",
                title=host.find_meta(track, "title") or "",
            )
            if cache.has(identity) and cache.remove(identity):
                logger.info("Removed cached lyrics for %s", identity.display)
                removed += 1
    return removed
