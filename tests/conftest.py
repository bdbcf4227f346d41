from __future__ import annotations

import sys
from pathlib import Path

import pytest
from loguru import logger

from birdsync.errors import MetadataError, PhotoServiceError
from birdsync.metadata import BirdEntry, MetadataStore, TagSet


class FakeWorkbook:
    """In-memory stand-in for an xls workbook: sheet name -> list of rows."""

    def __init__(self, sheets: dict[str, list[list]]):
        self.sheets = sheets

    def rows(self, sheet_name: str, start: int = 0):
        if sheet_name not in self.sheets:
            raise MetadataError(f"workbook has no sheet named {sheet_name}")
        for row in self.sheets[sheet_name][start:]:
            yield list(row)


class FakePhotoService:
    """Records every call; albums created here show up in list_albums()."""

    def __init__(self, albums: list[dict] | None = None):
        self.albums = list(albums or [])
        self.calls: list[tuple] = []
        self.fail_uploads: set[str] = set()
        self.fail_reorders: set[str] = set()
        self._next_id = 0

    def _new_id(self, prefix: str) -> str:
        self._next_id += 1
        return f"{prefix}-{self._next_id}"

    def list_albums(self) -> list[dict]:
        self.calls.append(("list_albums",))
        return [dict(album) for album in self.albums]

    def upload_photo(self, path, title, description, tags) -> str:
        self.calls.append(("upload_photo", Path(path).name, title))
        if Path(path).name in self.fail_uploads:
            raise PhotoServiceError(f"Upload failed: 500 {Path(path).name}")
        return self._new_id("photo")

    def create_album(self, title, description, cover_photo_id) -> str:
        self.calls.append(("create_album", title, description, cover_photo_id))
        album_id = self._new_id("album")
        self.albums.append({"id": album_id, "title": title})
        return album_id

    def add_photo_to_album(self, album_id, photo_id) -> None:
        self.calls.append(("add_photo_to_album", album_id, photo_id))

    def reorder_album(self, album_id) -> None:
        self.calls.append(("reorder_album", album_id))
        if album_id in self.fail_reorders:
            raise PhotoServiceError(f"Reorder failed for {album_id}")

    def called(self, name: str) -> list[tuple]:
        return [call for call in self.calls if call[0] == name]


@pytest.fixture
def workbook() -> FakeWorkbook:
    return FakeWorkbook(
        {
            "Birds": [
                ["B1", "Blåmes", "Blue Tit", "Cyanistes caeruleus"],
                ["B2", "Talgoxe", "Great Tit", "Parus major"],
            ],
            "Tags": [
                ["Code", "Tags"],
                ["T1", "forest", "winter"],
                ["T2", "garden"],
            ],
        }
    )


@pytest.fixture
def metadata() -> MetadataStore:
    return MetadataStore(
        birds={
            "B1": BirdEntry("B1", "Blåmes", "Blue Tit", "Cyanistes caeruleus"),
            "B2": BirdEntry("B2", "Talgoxe", "Great Tit", "Parus major"),
        },
        tags={
            "T1": TagSet("T1", ("forest", "winter")),
            "T2": TagSet("T2", ("garden",)),
            "T9": TagSet("T9", ()),
        },
    )


@pytest.fixture
def service() -> FakePhotoService:
    return FakePhotoService()


@pytest.fixture
def log_messages():
    messages: list[str] = []
    handler_id = logger.add(lambda message: messages.append(str(message)), level="DEBUG")
    yield messages
    logger.remove(handler_id)


def make_photo_tree(root: Path, paths: list[str]) -> Path:
    for relative in paths:
        target = root / relative
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_bytes(b"\xff\xd8\xff")
    return root


@pytest.fixture
def photo_tree(tmp_path):
    def build(paths: list[str]) -> Path:
        return make_photo_tree(tmp_path / "upload", paths)

    return build


@pytest.fixture(autouse=True)
def reset_logging():
    yield
    logger.remove()
    logger.add(sys.stderr)
