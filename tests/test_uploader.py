from pathlib import Path

import requests

from birdsync.albums import AlbumDirectory
from birdsync.config import DRY_RUN_ALBUM_ID, DRY_RUN_PHOTO_ID, UploadOptions
from birdsync.errors import PhotoServiceError
from birdsync.metadata import BirdEntry
from birdsync.photos import Photo
from birdsync.uploader import Uploader

from conftest import FakePhotoService

MUTATING_CALLS = {"upload_photo", "create_album", "add_photo_to_album", "reorder_album"}

BLUE_TIT = BirdEntry("B1", "Blåmes", "Blue Tit", "Cyanistes caeruleus")
GREAT_TIT = BirdEntry("B2", "Talgoxe", "Great Tit", "Parus major")


def _photos() -> list[Photo]:
    return [
        Photo.build(Path("root/B1/T1/one.jpg"), BLUE_TIT, ["forest"]),
        Photo.build(Path("root/B2/T1/two.jpg"), GREAT_TIT, ["forest"]),
        Photo.build(Path("root/B1/T2/three.jpg"), BLUE_TIT, ["garden"]),
    ]


def _run(service: FakePhotoService, dry_run: bool = False):
    albums = AlbumDirectory(service)
    albums.fetch_all()
    return Uploader(service, albums, UploadOptions(dry_run=dry_run)).run(_photos())


def test_creates_each_album_once_and_adds_later_photos(service) -> None:
    report = _run(service)

    created = service.called("create_album")
    assert [call[1] for call in created] == ["Blåmes / Blue Tit", "Talgoxe / Great Tit"]
    assert created[0][2] == "Scientific name: Cyanistes caeruleus\n"
    # first upload is the cover of the first album; the third photo joins it
    assert created[0][3] == "photo-1"
    blue_tit_album = next(a["id"] for a in service.albums if a["title"] == "Blåmes / Blue Tit")
    assert service.called("add_photo_to_album") == [("add_photo_to_album", blue_tit_album, "photo-5")]
    assert report.albums_created == ["Blåmes / Blue Tit", "Talgoxe / Great Tit"]
    assert len(report.uploaded) == 3
    assert report.ok


def test_uses_existing_album(service) -> None:
    service.albums.append({"id": "existing", "title": "Talgoxe / Great Tit"})

    _run(service)

    assert [call[1] for call in service.called("create_album")] == ["Blåmes / Blue Tit"]
    assert ("add_photo_to_album", "existing", "photo-3") in service.calls


def test_reorders_each_touched_album_once_after_uploads(service) -> None:
    report = _run(service)

    reorders = service.called("reorder_album")
    assert len(reorders) == 2
    last_upload = max(i for i, call in enumerate(service.calls) if call[0] == "upload_photo")
    first_reorder = min(i for i, call in enumerate(service.calls) if call[0] == "reorder_album")
    assert last_upload < first_reorder
    assert report.reorder_candidates == ["Blåmes / Blue Tit", "Talgoxe / Great Tit"]
    assert report.reordered == report.reorder_candidates


def test_dry_run_makes_no_remote_changes(service) -> None:
    report = _run(service, dry_run=True)

    assert not [call for call in service.calls if call[0] in MUTATING_CALLS]
    assert report.uploaded == []
    assert report.albums_created == ["Blåmes / Blue Tit", "Talgoxe / Great Tit"]


def test_dry_run_has_same_reorder_candidates() -> None:
    real = _run(FakePhotoService())
    dry = _run(FakePhotoService(), dry_run=True)

    assert dry.reorder_candidates == real.reorder_candidates


def test_dry_run_does_not_report_missing_albums(service, log_messages) -> None:
    _run(service, dry_run=True)

    assert not any("REORDER-ERROR" in message for message in log_messages)
    assert any(f"UPLOADED_AS {DRY_RUN_PHOTO_ID}" in message for message in log_messages)


def test_failed_upload_is_reported_and_batch_continues(service, log_messages) -> None:
    service.fail_uploads.add("one.jpg")

    report = _run(service)

    assert not report.ok
    assert report.failures[0][0] == str(Path("root/B1/T1/one.jpg"))
    assert len(service.called("upload_photo")) == 3
    # the third photo still creates the album the first one would have
    assert [call[1] for call in service.called("create_album")] == [
        "Talgoxe / Great Tit",
        "Blåmes / Blue Tit",
    ]
    assert any("Upload of" in message and "one.jpg" in message for message in log_messages)


def test_network_errors_are_reported_per_photo(service) -> None:
    def broken_upload(*args, **kwargs):
        raise requests.ConnectionError("connection reset")

    service.upload_photo = broken_upload

    report = _run(service)

    assert len(report.failures) == 3
    assert service.called("create_album") == []


def test_album_missing_after_creation_is_not_reordered(log_messages) -> None:
    class NormalizingService(FakePhotoService):
        def create_album(self, title, description, cover_photo_id):
            album_id = super().create_album(title, description, cover_photo_id)
            self.albums[-1]["title"] = title.upper()
            return album_id

    service = NormalizingService()
    report = _run(service)

    # the created album is still used for the later photo with the same title
    assert len(service.called("create_album")) == 2
    assert len(service.called("add_photo_to_album")) == 1
    assert service.called("reorder_album") == []
    assert any("REORDER-ERROR! Album 'Blåmes / Blue Tit' not found." in m for m in log_messages)
    assert report.reordered == []


def test_failed_reorder_is_recorded(service) -> None:
    service.albums.append({"id": "existing", "title": "Talgoxe / Great Tit"})
    service.fail_reorders.add("existing")

    report = _run(service)

    assert report.failures == [("Talgoxe / Great Tit", "Reorder failed for existing")]
    assert report.reordered == ["Blåmes / Blue Tit"]


def test_partly_failed_album_creation_still_files_later_photos(log_messages) -> None:
    class EnrichmentFailingService(FakePhotoService):
        def create_album(self, title, description, cover_photo_id):
            super().create_album(title, description, cover_photo_id)
            raise PhotoServiceError("Adding description failed: 500")

    service = EnrichmentFailingService()
    report = _run(service)

    blue_tit_album = next(a["id"] for a in service.albums if a["title"] == "Blåmes / Blue Tit")
    # the third photo shares the first one's title and joins the album that exists
    assert ("add_photo_to_album", blue_tit_album, "photo-5") in service.calls
    assert [name for name, _ in report.failures] == [
        str(Path("root/B1/T1/one.jpg")),
        str(Path("root/B2/T1/two.jpg")),
    ]
    assert len(service.called("create_album")) == 2
    assert "Blåmes / Blue Tit" in report.reordered


def test_missing_file_fails_only_that_photo() -> None:
    class MissingFileService(FakePhotoService):
        def upload_photo(self, path, title, description, tags):
            if Path(path).name == "two.jpg":
                raise FileNotFoundError(f"No such file: {path}")
            return super().upload_photo(path, title, description, tags)

    service = MissingFileService()
    report = _run(service)

    assert [name for name, _ in report.failures] == [str(Path("root/B2/T1/two.jpg"))]
    assert len(report.uploaded) == 2


def test_dry_run_uses_album_placeholder(service) -> None:
    albums = AlbumDirectory(service)
    albums.fetch_all()
    uploader = Uploader(service, albums, UploadOptions(dry_run=True))

    uploader.run(_photos())

    assert set(uploader.created.values()) == {DRY_RUN_ALBUM_ID}
    assert DRY_RUN_ALBUM_ID != DRY_RUN_PHOTO_ID
