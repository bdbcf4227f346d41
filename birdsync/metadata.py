"""
Bird names and tag lists looked up from the names spreadsheet.

The "Birds" sheet has one row per bird code:

    code | common name A | common name B | scientific name

The "Tags" sheet has a header row, then one row per tag code followed
by any number of tags. In both sheets a first cell of "-" ends the data;
anything below it is ignored.
"""

from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Tuple

from loguru import logger

from birdsync.config import BIRDS_SHEET, SENTINEL, TAGS_SHEET
from birdsync.errors import MetadataError
from birdsync.workbook import Row, open_workbook


@dataclass(frozen=True)
class BirdEntry:
    code: str
    common_name_a: str
    common_name_b: str
    scientific_name: str


@dataclass(frozen=True)
class TagSet:
    code: str
    tags: Tuple[str, ...]


def _pad(row: Row, width: int) -> Row:
    return list(row) + [None] * (width - len(row))


def parse_birds(rows: Iterable[Row]) -> Dict[str, BirdEntry]:
    birds: Dict[str, BirdEntry] = {}
    for row in rows:
        code, name_a, name_b, scientific = _pad(row, 4)[:4]
        if code == SENTINEL:
            break
        if not code:
            if name_a or name_b or scientific:
                raise MetadataError(
                    f"Missing code for {{{name_a}, {name_b}, {scientific}}}"
                )
            continue
        if not name_a:
            raise MetadataError(f"Missing common name A for {code}")
        if not name_b:
            raise MetadataError(f"Missing common name B for {code}")
        if not scientific:
            raise MetadataError(f"Missing scientific name for {code}")
        birds[code] = BirdEntry(code, name_a, name_b, scientific)
    return birds


def parse_tags(rows: Iterable[Row]) -> Dict[str, TagSet]:
    tags: Dict[str, TagSet] = {}
    for row in rows:
        if not row:
            continue
        code = row[0]
        if code == SENTINEL:
            break
        taglist = [tag for tag in row[1:] if tag]
        if not code:
            if taglist:
                raise MetadataError(f"Missing code for tags {taglist!r}")
            continue
        if not taglist:
            # Not fatal; photos filed under this code resolve as invalid.
            logger.warning(f"Missing tags for {code}")
        tags[code] = TagSet(code, tuple(taglist))
    return tags


class MetadataStore:
    """
    Lookup tables for bird codes and tag codes.
    """

    def __init__(self, birds: Dict[str, BirdEntry], tags: Dict[str, TagSet]):
        self.birds = birds
        self.tags = tags

    @classmethod
    def from_workbook(cls, workbook) -> "MetadataStore":
        """
        Build the store from anything with a `rows(sheet_name, start)` method.
        Both sheets are checked for before any row is parsed.
        """
        birds_rows = workbook.rows(BIRDS_SHEET)
        tags_rows = workbook.rows(TAGS_SHEET, start=1)
        # rows() is lazy; materialize both so a missing sheet fails before parsing
        birds_rows, tags_rows = list(birds_rows), list(tags_rows)
        return cls(parse_birds(birds_rows), parse_tags(tags_rows))

    def bird(self, code: str) -> Optional[BirdEntry]:
        return self.birds.get(code)

    def tags_for(self, code: str) -> List[str]:
        """
        Return the tags for `code`, or an empty list if the code is unknown.
        """
        entry = self.tags.get(code)
        return list(entry.tags) if entry else []

    def __eq__(self, other):
        if not isinstance(other, MetadataStore):
            return NotImplemented
        return self.birds == other.birds and self.tags == other.tags


def load_metadata(path: Path) -> MetadataStore:
    """
    Read the names spreadsheet at `path`. Raises MetadataError if the file,
    either sheet, or any required field is missing.
    """
    store = MetadataStore.from_workbook(open_workbook(path))
    logger.debug(
        f"Loaded {len(store.birds)} bird codes and {len(store.tags)} tag codes from {path}"
    )
    return store
