from __future__ import annotations

from enum import IntEnum


class Status(IntEnum):
    """Reading status of a book; the integer value is the on-disk tag."""
    READ = 1
    OWNED = 2
    WISHLIST = 3

    @property
    def label(self) -> str:
        return self.name.lower()


class Book:
    """Represents a single book tracked in the library.

    Books are mutable (status changes in place) and compare by value, so they
    are not hashable.
    """

    __hash__ = None

    def __init__(self, book_id: int, title: str, author: str, year: int, status: Status) -> None:
        self.id = book_id
        self.title = title.strip()
        self.author = author.strip()
        self.year = year
        self.status = Status(status)

    def __str__(self) -> str:  # pragma: no cover - string formatting trivial
        return f"ID:{self.id} | {self.title} | {self.author} | {self.year}"

    def __repr__(self) -> str:
        return f"Book(id={self.id!r}, title={self.title!r}, status={self.status.label})"

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Book):
            return NotImplemented
        return self.to_dict() == other.to_dict()

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "title": self.title,
            "author": self.author,
            "year": self.year,
            "status": self.status.label,
        }

    @staticmethod
    def from_dict(data: dict) -> "Book":
        # Status may come in as a name ("read") or as the integer tag
        status = data["status"]
        if isinstance(status, str):
            status = Status[status.strip().upper()]

        return Book(
            book_id=int(data["id"]),
            title=data["title"],
            author=data["author"],
            year=int(data["year"]),
            status=status,
        )
