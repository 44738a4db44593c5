import logging
from typing import Dict, List, Optional

from lending.book import Book
from lending.catalog import Catalog
from lending.config import settings
from lending.errors import (
    AgeRestrictedError,
    AlreadyBorrowedError,
    BorrowLimitReachedError,
    InvariantViolation,
    LendingError,
    NotBorrowedError,
    NotPublishedError,
    OutOfStockError,
)
from lending.membership import Membership
from lending.snapshot import LibraryState
from lending.user import User
from lending.validators import normalize_id

logger = logging.getLogger(__name__)


class LendingEngine:
    """Applies borrow/return transitions across the catalog and the membership.

    Every transition is validated in full before anything is written, so a
    rejected request leaves both aggregates exactly as they were.
    """

    def __init__(self, enforce_publish_state: Optional[bool] = None) -> None:
        if enforce_publish_state is None:
            enforce_publish_state = settings.enforce_publish_state
        self.enforce_publish_state = enforce_publish_state
        self.catalog = Catalog()
        self.membership = Membership()

    # ------------------------- Registration ------------------------- #
    def add_book(self, book: Book, initial_quantity: int = 1) -> None:
        self.catalog.add_book(book, initial_quantity)

    def register_user(self, user: User) -> None:
        self.membership.register(user)

    def restock(self, book_id: str, quantity: int) -> int:
        return self.catalog.restock(book_id, quantity)

    # ------------------------- Transitions ------------------------- #
    def can_borrow(self, user_id: str, book_id: str) -> Optional[LendingError]:
        """Return the error ``borrow_book`` would raise, or None if it would succeed."""
        try:
            self._validate_borrow(user_id, book_id)
        except LendingError as exc:
            return exc
        return None

    def borrow_book(self, user_id: str, book_id: str) -> User:
        user_id, book_id = normalize_id(user_id), normalize_id(book_id)
        try:
            self._validate_borrow(user_id, book_id)
        except LendingError as exc:
            logger.warning(f"Borrow rejected: user={user_id}, book={book_id}, reason={exc.kind.value}")
            raise

        self.catalog.adjust_stock(book_id, -1)
        try:
            user = self.membership.record_borrow(user_id, book_id)
        except LendingError:
            self.catalog.adjust_stock(book_id, 1)
            raise
        logger.info(f"Book borrowed: user={user_id}, book={book_id}, stock={self.catalog.stock_of(book_id)}")
        return user

    def return_book(self, user_id: str, book_id: str) -> User:
        user_id, book_id = normalize_id(user_id), normalize_id(book_id)
        try:
            user = self.membership.get_user(user_id)
            if not user.has_borrowed(book_id):
                raise NotBorrowedError(f"User {user_id} has not borrowed book {book_id}.")
        except LendingError as exc:
            logger.warning(f"Return rejected: user={user_id}, book={book_id}, reason={exc.kind.value}")
            raise

        user = self.membership.record_return(user_id, book_id)
        self.catalog.adjust_stock(book_id, 1)
        logger.info(f"Book returned: user={user_id}, book={book_id}, stock={self.catalog.stock_of(book_id)}")
        return user

    def _validate_borrow(self, user_id: str, book_id: str) -> None:
        # Order matters: the first failing check decides the error kind.
        user_id, book_id = normalize_id(user_id), normalize_id(book_id)
        user = self.membership.get_user(user_id)
        book = self.catalog.get_book(book_id)
        if self.enforce_publish_state and not book.is_published:
            raise NotPublishedError(
                f"Book {book_id} is not available for lending: {book.publish_state.value}."
            )
        if self.catalog.stock_of(book_id) <= 0:
            raise OutOfStockError(f"Book {book_id} is out of stock.")
        if user.has_borrowed(book_id):
            raise AlreadyBorrowedError(f"User {user_id} has already borrowed book {book_id}.")
        if not user.can_borrow_more:
            raise BorrowLimitReachedError(
                f"User {user_id} has reached the borrow limit ({user.max_borrowed})."
            )
        if book.age_limit > 0 and user.age < book.age_limit:
            raise AgeRestrictedError(
                f"User {user_id} is {user.age}; book {book_id} requires age {book.age_limit} or above."
            )

    # ------------------------- Queries ------------------------- #
    def get_book(self, book_id: str) -> Book:
        return self.catalog.get_book(book_id)

    def get_user(self, user_id: str) -> User:
        return self.membership.get_user(user_id)

    def stock_of(self, book_id: str) -> int:
        return self.catalog.stock_of(book_id)

    def list_books(self) -> List[Book]:
        return self.catalog.list_books()

    def available_books(self) -> List[Book]:
        return self.catalog.available_books()

    def list_users(self) -> List[User]:
        return self.membership.list_users()

    def find_borrower(self, book_id: str) -> Optional[User]:
        """Return some user currently holding a copy of ``book_id``, or None.

        Copies are counted, not identified, so when several users hold the
        same title this answers with the earliest registered of them.
        """
        for user in self.membership.list_users():
            if user.has_borrowed(book_id):
                return user
        return None

    def borrowers_of(self, book_id: str) -> List[User]:
        return [u for u in self.membership.list_users() if u.has_borrowed(book_id)]

    def get_statistics(self) -> Dict[str, int]:
        books = self.catalog.list_books()
        users = self.membership.list_users()
        available = sum(self.catalog.stock_of(b.id) for b in books)
        on_loan = sum(len(u.borrowed_books) for u in users)
        return {
            "total_titles": len(books),
            "total_copies": sum(self.catalog.total_added(b.id) for b in books),
            "available_copies": available,
            "on_loan": on_loan,
            "total_users": len(users),
            "active_borrowers": sum(1 for u in users if u.borrowed_books),
        }

    def check_invariants(self) -> None:
        """Raise InvariantViolation if stock, limits or conservation are broken."""
        users = self.membership.list_users()
        for user in users:
            if len(user.borrowed_books) > user.max_borrowed:
                raise InvariantViolation(
                    f"User {user.id} holds {len(user.borrowed_books)} books, limit is {user.max_borrowed}"
                )
            for book_id in user.borrowed_books:
                if book_id not in self.catalog:
                    raise InvariantViolation(f"User {user.id} holds unknown book {book_id}")
        for book in self.catalog.list_books():
            stock = self.catalog.stock_of(book.id)
            if stock < 0:
                raise InvariantViolation(f"Stock for book {book.id} is negative: {stock}")
            on_loan = self.membership.borrow_count(book.id)
            total = self.catalog.total_added(book.id)
            if stock + on_loan != total:
                logger.error(f"Conservation broken for {book.id}: stock={stock}, on_loan={on_loan}, total={total}")
                raise InvariantViolation(
                    f"Book {book.id}: stock {stock} + on loan {on_loan} != total added {total}"
                )

    # ------------------------- Snapshots ------------------------- #
    def snapshot(self) -> LibraryState:
        books = self.catalog.list_books()
        return LibraryState.build(
            books={b.id: b for b in books},
            stock={b.id: self.catalog.stock_of(b.id) for b in books},
            totals={b.id: self.catalog.total_added(b.id) for b in books},
            users={u.id: u for u in self.membership.list_users()},
            enforce_publish_state=self.enforce_publish_state,
        )

    @classmethod
    def from_snapshot(cls, state: LibraryState) -> "LendingEngine":
        engine = cls(enforce_publish_state=state.enforce_publish_state)
        for book_id, book in state.books.items():
            engine.catalog.restore(book, state.stock.get(book_id, 0), state.totals.get(book_id, 0))
        for user in state.users.values():
            engine.membership.restore(user)
        engine.check_invariants()
        return engine
