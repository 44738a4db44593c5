import logging
from typing import Dict, List, Optional

from lending.book import Book
from lending.errors import (
    BookNotFoundError,
    DuplicateBookError,
    InvalidRecordError,
    NegativeStockError,
)
from lending.validators import normalize_id

logger = logging.getLogger(__name__)


class Catalog:
    """Owns the book records and the per-title stock counters."""

    def __init__(self) -> None:
        self._books: Dict[str, Book] = {}
        self._stock: Dict[str, int] = {}
        self._totals: Dict[str, int] = {}

    # ------------------------- Registration ------------------------- #
    def add_book(self, book: Book, initial_quantity: int = 1) -> None:
        """Register a new title with ``initial_quantity`` copies (0 allowed)."""
        if book.id in self._books:
            raise DuplicateBookError(f"Book with id {book.id} already exists.")
        if initial_quantity < 0:
            raise NegativeStockError(f"Initial quantity cannot be negative: {initial_quantity}")

        self._books[book.id] = book
        self._stock[book.id] = initial_quantity
        self._totals[book.id] = initial_quantity
        logger.info(f"Book added: id={book.id}, quantity={initial_quantity}")

    def restock(self, book_id: str, quantity: int) -> int:
        """Add copies of an existing title. Returns the new available count."""
        book_id = normalize_id(book_id)
        if quantity < 0:
            raise NegativeStockError(f"Restock quantity cannot be negative: {quantity}")
        if quantity == 0:
            raise InvalidRecordError("Restock quantity must be positive.")
        new_count = self.adjust_stock(book_id, quantity)
        self._totals[book_id] += quantity
        logger.info(f"Book restocked: id={book_id}, added={quantity}, stock={new_count}")
        return new_count

    def restore(self, book: Book, stock: int, total: int) -> None:
        """Load a record as-is when rebuilding from a snapshot."""
        if book.id in self._books:
            raise DuplicateBookError(f"Book with id {book.id} already exists.")
        if stock < 0:
            raise NegativeStockError(f"Stock for book {book.id} cannot be negative: {stock}")
        self._books[book.id] = book
        self._stock[book.id] = stock
        self._totals[book.id] = total

    # ------------------------- Lookups ------------------------- #
    def get_book(self, book_id: str) -> Book:
        book_id = normalize_id(book_id)
        book = self._books.get(book_id)
        if book is None:
            raise BookNotFoundError(f"Book with id {book_id} not found.")
        return book

    def find_book(self, book_id: str) -> Optional[Book]:
        return self._books.get(normalize_id(book_id))

    def list_books(self) -> List[Book]:
        return list(self._books.values())

    def available_books(self) -> List[Book]:
        return [b for b in self._books.values() if b.is_published and self._stock[b.id] > 0]

    # ------------------------- Stock ------------------------- #
    def stock_of(self, book_id: str) -> int:
        # Unknown ids simply have nothing on the shelf.
        return self._stock.get(normalize_id(book_id), 0)

    def total_added(self, book_id: str) -> int:
        return self._totals.get(normalize_id(book_id), 0)

    def adjust_stock(self, book_id: str, delta: int) -> int:
        """Apply ``delta`` to the available count and return the new count.

        The count is never allowed to drop below zero, even though the
        lending engine checks availability before it gets here.
        """
        book_id = normalize_id(book_id)
        if book_id not in self._stock:
            raise BookNotFoundError(f"Book with id {book_id} not found.")
        new_count = self._stock[book_id] + delta
        if new_count < 0:
            raise NegativeStockError(
                f"Stock for book {book_id} cannot drop below zero (current {self._stock[book_id]}, delta {delta})."
            )
        self._stock[book_id] = new_count
        return new_count

    def __contains__(self, book_id: object) -> bool:
        return normalize_id(book_id) in self._books

    def __len__(self) -> int:
        return len(self._books)
