"""Flat-file persistence for the library.

Each book is stored on its own line as::

    <id>|<title>|<author>|<year>|<status tag>

There is no header and no escaping. A title or author containing ``|`` or a
line break is written as-is and will not load back; ``save_library`` logs a
warning for every such record.

The file is read line by line in binary mode, so a line that is not valid
UTF-8 is skipped like any other malformed record.
"""

import csv
import json
import logging
import os
import re
from typing import List, Optional, Union

from digital_library.book import Book, Status
from digital_library.library import Library

logger = logging.getLogger(__name__)

DELIMITER = "|"
LINE_BREAKS = ("\n", "\r")
FIELD_COUNT = 5
EXPORT_FORMATS = ("csv", "json")
ENCODING = "utf-8"

# Plain ASCII integers only: no underscores, padding or non-ASCII digits
_INT_FIELD = re.compile(r"-?[0-9]+")


class StorageError(Exception):
    pass


class MalformedRecordError(StorageError, ValueError):
    pass


class PersistenceError(StorageError):
    """The data file could not be opened or written."""


def format_record(book: Book) -> str:
    fields = (book.id, book.title, book.author, book.year, int(book.status))
    return DELIMITER.join(str(f) for f in fields)


def _parse_int(raw: str, name: str) -> int:
    if not _INT_FIELD.fullmatch(raw):
        raise MalformedRecordError(f"{name} is not an integer: {raw!r}")
    return int(raw)


def parse_record(line: Union[str, bytes]) -> Book:
    """Parse a single stored line into a Book. Raises MalformedRecordError."""
    if isinstance(line, bytes):
        try:
            line = line.decode(ENCODING)
        except UnicodeDecodeError as e:
            raise MalformedRecordError(f"not valid {ENCODING}: {e}") from e

    parts = line.rstrip("\r\n").split(DELIMITER)
    if len(parts) != FIELD_COUNT:
        raise MalformedRecordError(f"expected {FIELD_COUNT} fields, got {len(parts)}")

    raw_id, title, author, raw_year, raw_status = parts
    book_id = _parse_int(raw_id, "id")
    year = _parse_int(raw_year, "year")
    try:
        status = Status(_parse_int(raw_status, "status"))
    except ValueError as e:
        raise MalformedRecordError(str(e)) from e

    return Book(book_id=book_id, title=title, author=author, year=year, status=status)


def unstorable_chars(book: Book) -> List[str]:
    """Characters in the title or author that the line format cannot hold."""
    text = book.title + book.author
    return [c for c in (DELIMITER,) + LINE_BREAKS if c in text]


# ------------------------- Save / load ------------------------- #
def save_library(library: Library, path: str) -> None:
    """Write every book to ``path``, replacing any existing file."""
    for book in library.books:
        bad = unstorable_chars(book)
        if bad:
            logger.warning(f"Book {book.id} contains {bad!r} and will not load back correctly")

    try:
        with open(path, "w", encoding=ENCODING, newline="\n") as f:
            for book in library.books:
                f.write(format_record(book) + "\n")
    except OSError as e:
        raise PersistenceError(f"Could not save library to {path}: {e}") from e
    logger.info(f"Saved {len(library)} books to {path}")


def load_library(path: str, capacity: Optional[int] = None) -> Library:
    """Read a library from ``path``.

    A missing or unreadable file yields an empty library. Lines that do not
    parse (including lines that are not valid UTF-8) are skipped, as are lines
    beyond the library's capacity.
    """
    empty = Library(capacity=capacity)
    if not os.path.exists(path):
        logger.info(f"No data file at {path}, starting with an empty library")
        return empty

    books: List[Book] = []
    try:
        with open(path, "rb") as f:
            for lineno, line in enumerate(f, 1):
                if not line.strip():
                    continue
                try:
                    book = parse_record(line)
                except MalformedRecordError as e:
                    logger.debug(f"{path}:{lineno}: skipping malformed record ({e})")
                    continue
                if len(books) >= empty.capacity:
                    logger.warning(f"{path}:{lineno}: library capacity ({empty.capacity}) reached, skipping record")
                    continue
                books.append(book)
    except OSError as e:
        logger.warning(f"Could not read {path}, starting with an empty library: {e}")
        return empty

    logger.info(f"Loaded {len(books)} books from {path}")
    return Library.from_books(books, capacity=empty.capacity)


# ------------------------- Export ------------------------- #
def export_library(library: Library, path: str, fmt: str = "csv") -> int:
    """Export all books to CSV or JSON. Returns the number of books written."""
    fmt = fmt.lower()
    if fmt not in EXPORT_FORMATS:
        raise ValueError(f"Unsupported format: {fmt}. Use {' or '.join(EXPORT_FORMATS)}.")

    books = library.list_books()
    try:
        if fmt == "csv":
            with open(path, "w", newline="", encoding="utf-8") as csvfile:
                writer = csv.writer(csvfile)
                writer.writerow(["ID", "Title", "Author", "Year", "Status"])
                for book in books:
                    writer.writerow([book.id, book.title, book.author, book.year, book.status.label])
        else:
            with open(path, "w", encoding="utf-8") as jsonfile:
                json.dump([b.to_dict() for b in books], jsonfile, indent=2, ensure_ascii=False)
    except OSError as e:
        raise PersistenceError(f"Could not export library to {path}: {e}") from e
    return len(books)
