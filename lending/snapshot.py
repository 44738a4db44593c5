"""Immutable view of the whole lending state.

Each function here takes a ``LibraryState`` and returns a new one; the input
is never modified. The work is done by a throwaway ``LendingEngine`` built
from the state, so validation order and error kinds are the same as for the
in-place engine.
"""
from __future__ import annotations

from dataclasses import dataclass
from types import MappingProxyType
from typing import TYPE_CHECKING, Mapping, Optional

from lending.book import Book
from lending.config import settings
from lending.user import User
from lending.validators import normalize_id

if TYPE_CHECKING:
    from lending.engine import LendingEngine


@dataclass(frozen=True)
class LibraryState:
    books: Mapping[str, Book]
    stock: Mapping[str, int]
    totals: Mapping[str, int]
    users: Mapping[str, User]
    enforce_publish_state: bool = True

    # Mappings are not hashable, so neither is a state.
    __hash__ = None

    @staticmethod
    def build(books: dict, stock: dict, totals: dict, users: dict,
              enforce_publish_state: bool = True) -> "LibraryState":
        return LibraryState(
            books=MappingProxyType(dict(books)),
            stock=MappingProxyType(dict(stock)),
            totals=MappingProxyType(dict(totals)),
            users=MappingProxyType(dict(users)),
            enforce_publish_state=enforce_publish_state,
        )

    def stock_of(self, book_id: str) -> int:
        return self.stock.get(normalize_id(book_id), 0)

    def to_dict(self) -> dict:
        return {
            "books": [
                {**b.to_dict(), "stock": self.stock[b.id], "total": self.totals[b.id]}
                for b in self.books.values()
            ],
            "users": [u.to_dict() for u in self.users.values()],
            "enforce_publish_state": self.enforce_publish_state,
        }


def _engine_for(state: LibraryState) -> "LendingEngine":
    from lending.engine import LendingEngine

    return LendingEngine.from_snapshot(state)


def empty_state(enforce_publish_state: Optional[bool] = None) -> LibraryState:
    if enforce_publish_state is None:
        enforce_publish_state = settings.enforce_publish_state
    return LibraryState.build({}, {}, {}, {}, enforce_publish_state)


def add_book(state: LibraryState, book: Book, initial_quantity: int = 1) -> LibraryState:
    engine = _engine_for(state)
    engine.add_book(book, initial_quantity)
    return engine.snapshot()


def register_user(state: LibraryState, user: User) -> LibraryState:
    engine = _engine_for(state)
    engine.register_user(user)
    return engine.snapshot()


def restock(state: LibraryState, book_id: str, quantity: int) -> LibraryState:
    engine = _engine_for(state)
    engine.restock(book_id, quantity)
    return engine.snapshot()


def borrow_book(state: LibraryState, user_id: str, book_id: str) -> LibraryState:
    engine = _engine_for(state)
    engine.borrow_book(user_id, book_id)
    return engine.snapshot()


def return_book(state: LibraryState, user_id: str, book_id: str) -> LibraryState:
    engine = _engine_for(state)
    engine.return_book(user_id, book_id)
    return engine.snapshot()


def find_borrower(state: LibraryState, book_id: str) -> Optional[User]:
    for user in state.users.values():
        if user.has_borrowed(book_id):
            return user
    return None
