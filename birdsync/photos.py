"""
Matching photos on disk to spreadsheet metadata.

Photos live exactly two directories below the upload directory:

    <upload dir>/<bird code>/<tag code>/<photo>.jpg

or, with tags_root, <tag code>/<bird code>/<photo>.jpg. Each file resolves
to either a Photo (ready to upload) or an InvalidPhoto carrying the reason.
"""

from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, List, Optional, Sequence, Tuple, Union

from loguru import logger

from birdsync.config import IMAGE_SUFFIXES, UploadOptions
from birdsync.metadata import BirdEntry, MetadataStore


@dataclass(frozen=True)
class Photo:
    filename: Path
    title: str
    description: str
    scientific_name: str
    tags: Tuple[str, ...]

    @classmethod
    def build(cls, filename: Path, bird: BirdEntry, tags: Sequence[str]) -> "Photo":
        filename = Path(filename)
        return cls(
            filename=filename,
            title=f"{bird.common_name_a} / {bird.common_name_b}",
            description=(
                f"Scientific name: {bird.scientific_name}\n"
                f"Original file: {filename.stem}\n"
            ),
            scientific_name=bird.scientific_name,
            tags=(bird.common_name_a, bird.common_name_b, *tags, bird.scientific_name),
        )

    @property
    def album_description(self) -> str:
        return f"Scientific name: {self.scientific_name}\n"


@dataclass(frozen=True)
class InvalidPhoto:
    filename: Path
    reason: str


PhotoRecord = Union[Photo, InvalidPhoto]


def is_valid_photo(bird: BirdEntry, tags: Sequence[str]) -> bool:
    """
    A photo is uploadable only with all three names, at least one tag,
    and a title that is more than the bare separator.
    """
    title = f"{bird.common_name_a} / {bird.common_name_b}"
    return bool(
        bird.common_name_a
        and bird.common_name_b
        and bird.scientific_name
        and tags
        and title != " / "
    )


def find_photos(directory: Path) -> List[Path]:
    """
    Return jpg/jpeg files (any letter case) two levels below `directory`,
    relative to it and sorted. Hidden files and directories are skipped.
    """
    directory = Path(directory)
    found = []
    for path in directory.glob("*/*/*"):
        relative = path.relative_to(directory)
        if any(part.startswith(".") for part in relative.parts):
            continue
        if path.is_file() and path.suffix.lower() in IMAGE_SUFFIXES:
            found.append(relative)
    return sorted(found)


def resolve_photo(
    relative_path: Path,
    metadata: MetadataStore,
    tags_root: bool = False,
    root: Optional[Path] = None,
) -> PhotoRecord:
    relative_path = Path(relative_path)
    filename = Path(root) / relative_path if root is not None else relative_path

    parts = relative_path.parts
    if len(parts) != 3:
        return InvalidPhoto(filename, f"Expected <code>/<code>/<file>, got {relative_path}")

    bird_code, tag_code = parts[0], parts[1]
    if tags_root:
        bird_code, tag_code = tag_code, bird_code

    bird = metadata.bird(bird_code)
    if bird is None:
        return InvalidPhoto(filename, f"Could not find bird data for {bird_code}")
    tags = metadata.tags_for(tag_code)
    if not tags:
        return InvalidPhoto(filename, f"Could not find tags for {tag_code}")
    if not is_valid_photo(bird, tags):
        return InvalidPhoto(filename, f"Incomplete names for {bird_code}")
    return Photo.build(filename, bird, tags)


def check_photos(
    directory: Path, metadata: MetadataStore, options: UploadOptions
) -> List[PhotoRecord]:
    """
    Resolve every photo under `directory`.
    """
    directory = Path(directory)
    records = [
        resolve_photo(path, metadata, tags_root=options.tags_root, root=directory)
        for path in find_photos(directory)
    ]
    logger.debug(f"Found {len(records)} photos under {directory}")
    return records


def report_invalid(records: Iterable[PhotoRecord]) -> bool:
    """
    Print a line for every invalid record. Returns True if there were none.
    """
    valid = True
    for record in records:
        if isinstance(record, InvalidPhoto):
            print(f"File: {record.filename} is invalid: {record.reason}")
            valid = False
    return valid


def valid_photos(records: Iterable[PhotoRecord]) -> List[Photo]:
    """
    Narrow records that have passed report_invalid() to Photo instances.
    """
    photos = []
    for record in records:
        assert isinstance(record, Photo), f"{record.filename} is not a valid photo"
        photos.append(record)
    return photos
