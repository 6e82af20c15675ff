"""Caller-owned memoization of resolved reference documents."""
from __future__ import annotations
import logging
import threading

from mixscore.profiles.resolver import resolve_reference
from mixscore.types import ReferenceDocument
from mixscore.utils.canonical import content_hash

logger = logging.getLogger(__name__)


class ReferenceCache:
    """
    Resolved references keyed by ``(genre, content hash of the raw payload)``.

    A changed payload (new version, edited targets) hashes differently and
    therefore never returns a stale document.
    """

    def __init__(self, *, default_band_tolerance_db: float = 2.0):
        self.default_band_tolerance_db = default_band_tolerance_db
        self._entries: dict[tuple[str | None, str], ReferenceDocument] = {}
        self._lock = threading.Lock()

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def get_or_resolve(self, payload: dict, genre: str | None = None) -> ReferenceDocument:
        key = (genre, content_hash(payload, allow_nan=True))
        with self._lock:
            hit = self._entries.get(key)
        if hit is not None:
            return hit
        doc = resolve_reference(payload, genre, default_band_tolerance_db=self.default_band_tolerance_db)
        with self._lock:
            # Resolution is deterministic, so a concurrent fill is equivalent.
            self._entries.setdefault(key, doc)
            return self._entries[key]

    def invalidate(self, genre: str | None) -> int:
        """Drop every entry for ``genre``; returns the number removed."""
        with self._lock:
            stale = [k for k in self._entries if k[0] == genre]
            for k in stale:
                del self._entries[k]
        if stale:
            logger.debug("invalidated %d cached reference(s) for %s", len(stale), genre)
        return len(stale)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()


class CachedReferenceSource:
    """Wrap a payload source (``load_payload(genre)``) with a ReferenceCache."""

    def __init__(self, source, cache: ReferenceCache | None = None):
        self.source = source
        self.cache = cache if cache is not None else ReferenceCache(
            default_band_tolerance_db=getattr(source, "default_band_tolerance_db", 2.0)
        )

    def load(self, genre: str) -> ReferenceDocument:
        return self.cache.get_or_resolve(self.source.load_payload(genre), genre)
