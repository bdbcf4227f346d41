from dataclasses import dataclass
from typing import Dict, Optional

from loguru import logger


@dataclass(frozen=True)
class Album:
    title: str
    remote_id: str


class AlbumDirectory:
    """
    Cache of the remote albums, keyed by title.

    The remote service stays the source of truth: after creating an album
    the whole listing is fetched again instead of patching the cache, so
    whatever id or title the service assigned is what later photos see.
    """

    def __init__(self, service):
        self.service = service
        self.albums: Dict[str, Album] = {}

    def fetch_all(self) -> Dict[str, Album]:
        albums = {}
        for item in self.service.list_albums():
            title = item.get("title")
            if not title:
                continue
            albums[title] = Album(title=title, remote_id=item["id"])
        self.albums = albums
        logger.debug(f"Fetched {len(albums)} albums")
        return albums

    def get(self, title: str) -> Optional[Album]:
        return self.albums.get(title)

    def create(self, title: str, description: str, cover_photo_id: str) -> str:
        """
        Create an album with `cover_photo_id` in it, then refresh the cache.
        Returns the new album's id.

        The cache is refreshed even when creation fails part way, so an
        album that exists remotely is found by later photos.
        """
        try:
            return self.service.create_album(title, description, cover_photo_id)
        finally:
            self.fetch_all()

    def __contains__(self, title: str) -> bool:
        return title in self.albums

    def __len__(self) -> int:
        return len(self.albums)
