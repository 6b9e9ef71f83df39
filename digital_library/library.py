import logging
import re
from typing import Dict, Iterable, List, Optional

from config import settings
from digital_library.book import Book, Status

logger = logging.getLogger(__name__)

_LINE_BREAKS = re.compile(r"[\r\n]+")


class LibraryError(Exception):
    pass


class CapacityExceededError(LibraryError):
    """Raised when adding to a library that already holds its maximum number of books."""

    def __init__(self, capacity: int) -> None:
        super().__init__(f"Library is full ({capacity} books).")
        self.capacity = capacity


class BookNotFoundError(LibraryError, LookupError):
    def __init__(self, book_id: int) -> None:
        super().__init__(f"Book with ID {book_id} not found.")
        self.book_id = book_id


class Library:
    """Manages the in-memory collection of books and the id counter."""

    def __init__(self, capacity: Optional[int] = None, title_max_length: Optional[int] = None,
                 author_max_length: Optional[int] = None) -> None:
        self.capacity = settings.max_books if capacity is None else capacity
        self.title_max_length = settings.title_max_length if title_max_length is None else title_max_length
        self.author_max_length = settings.author_max_length if author_max_length is None else author_max_length
        self.books: List[Book] = []
        self.next_id = 1

    @classmethod
    def from_books(cls, books: Iterable[Book], capacity: Optional[int] = None) -> "Library":
        """Rebuild a library from already-identified books, keeping their order.

        ``next_id`` becomes one greater than the highest id seen, or 1 when empty.
        """
        lib = cls(capacity=capacity)
        lib.books = list(books)
        if len(lib.books) > lib.capacity:
            raise CapacityExceededError(lib.capacity)
        if lib.books:
            lib.next_id = max(max(b.id for b in lib.books) + 1, 1)
        return lib

    def __len__(self) -> int:
        return len(self.books)

    def is_full(self) -> bool:
        return len(self.books) >= self.capacity

    # ------------------------- Core operations ------------------------- #
    def add(self, title: str, author: str, year: int, status: Status) -> int:
        """Append a new book and return the id assigned to it.

        Line breaks in the title or author become single spaces; the data file
        holds one book per line.
        """
        if self.is_full():
            logger.warning(f"Add rejected, library is at capacity ({self.capacity})")
            raise CapacityExceededError(self.capacity)

        book = Book(
            book_id=self.next_id,
            title=self._single_line(title)[:self.title_max_length],
            author=self._single_line(author)[:self.author_max_length],
            year=year,
            status=status,
        )
        self.next_id += 1
        self.books.append(book)
        logger.info(f"Book added: id={book.id}, title={book.title!r}, status={book.status.label}")
        return book.id

    def find_book(self, book_id: int) -> Optional[Book]:
        for book in self.books:
            if book.id == book_id:
                return book
        return None

    def get_book(self, book_id: int) -> Book:
        """Like find_book, but raises BookNotFoundError for an unknown id."""
        book = self.find_book(book_id)
        if book is None:
            raise BookNotFoundError(book_id)
        return book

    def list_books(self) -> List[Book]:
        return list(self.books)

    def list_by_status(self, status: Status) -> List[Book]:
        return [b for b in self.books if b.status == status]

    def search_books(self, query: str) -> List[Book]:
        """Search for books by title or author (case-insensitive substring)."""
        q = query.strip().lower()
        return [b for b in self.books if q in b.title.lower() or q in b.author.lower()]

    def update_status(self, book_id: int, status: Status) -> bool:
        """Set the status of a book. Returns False if the id is unknown."""
        book = self.find_book(book_id)
        if not book:
            return False
        book.status = Status(status)
        logger.info(f"Book {book_id} status set to {book.status.label}")
        return True

    def delete(self, book_id: int) -> bool:
        """Remove a book, preserving the order of the remaining ones. Returns False if the id is unknown."""
        for index, book in enumerate(self.books):
            if book.id == book_id:
                del self.books[index]
                logger.info(f"Book {book_id} deleted")
                return True
        return False

    @staticmethod
    def _single_line(text: str) -> str:
        return _LINE_BREAKS.sub(" ", text)

    def get_statistics(self) -> Dict[str, int]:
        """Get library statistics."""
        counts = {status: 0 for status in Status}
        authors = set()
        for book in self.books:
            counts[book.status] += 1
            authors.add(book.author)

        return {
            "total_books": len(self.books),
            "read": counts[Status.READ],
            "owned": counts[Status.OWNED],
            "wishlist": counts[Status.WISHLIST],
            "unique_authors": len(authors),
        }
