from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Optional, Protocol, Sequence, Tuple

import requests
from loguru import logger

from birdsync.albums import AlbumDirectory
from birdsync.config import DRY_RUN_ALBUM_ID, DRY_RUN_PHOTO_ID, UploadOptions
from birdsync.errors import PhotoServiceError
from birdsync.photos import Photo


class PhotoService(Protocol):
    """
    What the uploader needs from a remote photo service.
    """

    def list_albums(self) -> List[dict]: ...

    def upload_photo(
        self, path: Path, title: str, description: str, tags: Sequence[str]
    ) -> str: ...

    def create_album(self, title: str, description: str, cover_photo_id: str) -> str: ...

    def add_photo_to_album(self, album_id: str, photo_id: str) -> None: ...

    def reorder_album(self, album_id: str) -> None: ...


# Failures reported per photo instead of ending the run; OSError covers
# files that disappeared after the directory scan
REMOTE_ERRORS = (PhotoServiceError, requests.RequestException, OSError)


@dataclass
class UploadReport:
    uploaded: List[Path] = field(default_factory=list)
    albums_created: List[str] = field(default_factory=list)
    reordered: List[str] = field(default_factory=list)
    reorder_candidates: List[str] = field(default_factory=list)
    failures: List[Tuple[str, str]] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.failures


class Uploader:
    """
    Uploads validated photos, files each into the album named by its title,
    and reorders every touched album once at the end.

    Photos are handled one at a time. A failed remote call is logged and
    recorded against that photo; the remaining photos are still uploaded.
    """

    def __init__(self, service: PhotoService, albums: AlbumDirectory, options: UploadOptions):
        self.service = service
        self.albums = albums
        self.options = options
        # title -> id (None if creation failed) for albums created in this run
        self.created: Dict[str, Optional[str]] = {}
        self.albums_to_reorder: List[str] = []
        self.report = UploadReport()

    def run(self, photos: Sequence[Photo]) -> UploadReport:
        for photo in photos:
            try:
                self.upload_photo(photo)
            except REMOTE_ERRORS as e:
                logger.error(f"Upload of {photo.filename} failed: {e}")
                self.report.failures.append((str(photo.filename), str(e)))

        self.reorder_albums()
        return self.report

    def upload_photo(self, photo: Photo):
        dry_run = self.options.dry_run
        logger.debug(f"UPLOAD {photo.filename} {photo.title!r}")
        if dry_run:
            photo_id = DRY_RUN_PHOTO_ID
        else:
            photo_id = self.service.upload_photo(
                photo.filename, photo.title, photo.description, photo.tags
            )
            self.report.uploaded.append(photo.filename)
        logger.debug(f"UPLOADED_AS {photo_id}")

        album = self.albums.get(photo.title)
        if album:
            logger.debug(f"ADD_TO_ALBUM {album.title!r} {photo_id}")
            if not dry_run:
                self.service.add_photo_to_album(album.remote_id, photo_id)
        elif photo.title in self.created:
            album_id = self.created[photo.title]
            if album_id is None:
                raise PhotoServiceError(f"Album {photo.title!r} could not be created")
            logger.debug(f"ADD_TO_ALBUM {photo.title!r} {photo_id}")
            if not dry_run:
                self.service.add_photo_to_album(album_id, photo_id)
        else:
            self.create_album(photo, photo_id)

        self._queue_reorder(photo.title)

    def create_album(self, photo: Photo, cover_photo_id: str):
        logger.debug(f"CREATE_ALBUM {photo.title!r}")
        if self.options.dry_run:
            self.created[photo.title] = DRY_RUN_ALBUM_ID
            self.report.albums_created.append(photo.title)
            return
        # Marked before the call so a failed creation is not retried
        self.created[photo.title] = None
        album_id = self.albums.create(photo.title, photo.album_description, cover_photo_id)
        self.created[photo.title] = album_id
        self.report.albums_created.append(photo.title)
        logger.info(f"Created album {photo.title!r}")

    def _queue_reorder(self, title: str):
        if title not in self.albums_to_reorder:
            self.albums_to_reorder.append(title)

    def reorder_albums(self):
        self.report.reorder_candidates = list(self.albums_to_reorder)
        for title in self.albums_to_reorder:
            logger.debug(f"REORDER_ALBUM {title!r}")
            album = self.albums.get(title)
            if album is None:
                if self.options.dry_run and title in self.created:
                    # Would have been created; nothing to look up in a dry run
                    continue
                logger.error(f"REORDER-ERROR! Album {title!r} not found.")
                continue
            if self.options.dry_run:
                continue
            try:
                self.service.reorder_album(album.remote_id)
            except REMOTE_ERRORS as e:
                logger.error(f"Reordering album {title!r} failed: {e}")
                self.report.failures.append((title, str(e)))
                continue
            self.report.reordered.append(title)
