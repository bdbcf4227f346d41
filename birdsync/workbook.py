"""
Thin wrapper around xlrd that hands sheets out as rows of plain strings.
"""

from __future__ import annotations

from pathlib import Path
from typing import Iterator, List, Optional

import xlrd

from birdsync.errors import MetadataError

Row = List[Optional[str]]


def cell_text(cell) -> Optional[str]:
    """
    Return the text of an xlrd cell, or None for an empty one.
    Whole numbers come back without a trailing ".0".
    """
    if cell.ctype in (xlrd.XL_CELL_EMPTY, xlrd.XL_CELL_BLANK):
        return None
    value = cell.value
    if cell.ctype == xlrd.XL_CELL_NUMBER and float(value).is_integer():
        value = int(value)
    text = str(value).strip()
    return text or None


class Workbook:
    def __init__(self, book: "xlrd.book.Book", path: Path):
        self.book = book
        self.path = path

    def rows(self, sheet_name: str, start: int = 0) -> Iterator[Row]:
        """
        Yield rows of `sheet_name` from row index `start` onwards.
        """
        if sheet_name not in self.book.sheet_names():
            raise MetadataError(f"{self.path} has no sheet named {sheet_name}")
        sheet = self.book.sheet_by_name(sheet_name)
        for index in range(start, sheet.nrows):
            yield [cell_text(cell) for cell in sheet.row(index)]


def open_workbook(path: Path) -> Workbook:
    path = Path(path)
    if not path.exists():
        raise MetadataError(f"Could not find {path}")
    try:
        book = xlrd.open_workbook(str(path))
    except xlrd.XLRDError as e:
        raise MetadataError(f"Could not read {path}: {e}") from e
    return Workbook(book, path)
