"""
Catalog collaborator interface.

The player core never talks to the music server itself. Whatever client
the embedding application uses must provide these coroutines.
"""

from typing import Protocol, runtime_checkable


@runtime_checkable
class CatalogClient(Protocol):
    """Remote catalog operations the playback engine depends on."""

    async def resolve_stream_url(self, track_id: str) -> str:
        """Return a streamable URL for ``track_id``. Raises on failure."""
        ...

    async def report_play_event(self, track_id: str, *, submission: bool) -> None:
        """Report a now-playing (``submission=False``) or scrobble event."""
        ...

    async def resolve_cover_art_url(self, cover_art_id: str, size: int) -> str:
        """Return the URL of a cover art image at ``size`` pixels."""
        ...

    async def set_starred(self, track_id: str, starred: bool) -> None:
        """Star or unstar a track."""
        ...
