"""
Cover art URL retrieval and caching.
"""

import asyncio
import logging
from typing import Any, Callable, Coroutine, Optional

logger = logging.getLogger(__name__)

DEFAULT_COVER_ART_SIZE = 300

# (cover_art_id, size) -> URL
CoverArtCallback = Callable[[str, int], Coroutine[Any, Any, str]]


class CoverArtResolver:
    """
    Memoizing cover art URL lookup.

    Resolved URLs are cached for the life of the process; they are stable
    and the key space is small. Concurrent requests for the same uncached
    key share one in-flight lookup. Failed lookups are not cached.
    """

    def __init__(self, lookup: CoverArtCallback, default_size: int = DEFAULT_COVER_ART_SIZE):
        """
        Initialize resolver.

        Args:
            lookup: Async callback resolving an ID and size to a URL
            default_size: Size used when callers pass none
        """
        self._lookup = lookup
        self._default_size = default_size
        self._cache: dict[tuple[str, int], str] = {}
        self._in_flight: dict[tuple[str, int], asyncio.Future] = {}

    @property
    def default_size(self) -> int:
        return self._default_size

    def _key(self, cover_art_id: str, size: Optional[int]) -> tuple[str, int]:
        return (cover_art_id, size if size is not None else self._default_size)

    def get_cached(self, cover_art_id: Optional[str], size: Optional[int] = None) -> Optional[str]:
        """Get a cached URL without performing a lookup."""
        if not cover_art_id:
            return None
        return self._cache.get(self._key(cover_art_id, size))

    async def resolve(self, cover_art_id: Optional[str], size: Optional[int] = None) -> Optional[str]:
        """
        Resolve cover art to a URL.

        Args:
            cover_art_id: Catalog cover art ID; None or empty returns None
            size: Requested size in pixels

        Returns:
            URL, or None if there is no cover art or the lookup failed
        """
        if not cover_art_id:
            return None

        key = self._key(cover_art_id, size)

        cached = self._cache.get(key)
        if cached is not None:
            return cached

        pending = self._in_flight.get(key)
        if pending is None:
            pending = asyncio.ensure_future(self._fetch(key))
            self._in_flight[key] = pending
        else:
            logger.debug(f"Joining in-flight cover art lookup for {key[0]} @ {key[1]}")

        # Shield so one cancelled caller does not cancel the shared lookup
        return await asyncio.shield(pending)

    async def _fetch(self, key: tuple[str, int]) -> Optional[str]:
        cover_art_id, size = key
        try:
            url = await self._lookup(cover_art_id, size)
        except Exception as e:
            logger.error(f"Failed to resolve cover art {cover_art_id} @ {size}: {e}")
            return None
        finally:
            self._in_flight.pop(key, None)

        self._cache[key] = url
        logger.debug(f"Cover art resolved: {cover_art_id} @ {size}")
        return url

    def __len__(self) -> int:
        return len(self._cache)
