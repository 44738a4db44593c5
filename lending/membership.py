import logging
from typing import Dict, List, Optional

from lending.errors import (
    AlreadyBorrowedError,
    BorrowLimitReachedError,
    DuplicateUserError,
    InvalidRecordError,
    NotBorrowedError,
    UserNotFoundError,
)
from lending.user import User
from lending.validators import normalize_id

logger = logging.getLogger(__name__)


class Membership:
    """Owns user records and each user's set of borrowed book ids."""

    def __init__(self) -> None:
        self._users: Dict[str, User] = {}

    def register(self, user: User) -> None:
        if user.id in self._users:
            raise DuplicateUserError(f"User with id {user.id} already exists.")
        if user.borrowed_books:
            raise InvalidRecordError(f"User {user.id} cannot be registered with outstanding loans.")
        self._users[user.id] = user
        logger.info(f"User registered: id={user.id}, max_borrowed={user.max_borrowed}")

    def restore(self, user: User) -> None:
        """Load a user together with their loans when rebuilding from a snapshot."""
        if user.id in self._users:
            raise DuplicateUserError(f"User with id {user.id} already exists.")
        self._users[user.id] = user

    def get_user(self, user_id: str) -> User:
        user_id = normalize_id(user_id)
        user = self._users.get(user_id)
        if user is None:
            raise UserNotFoundError(f"User with id {user_id} not found.")
        return user

    def find_user(self, user_id: str) -> Optional[User]:
        return self._users.get(normalize_id(user_id))

    def list_users(self) -> List[User]:
        return list(self._users.values())

    def borrow_count(self, book_id: str) -> int:
        book_id = normalize_id(book_id)
        return sum(1 for u in self._users.values() if book_id in u.borrowed_books)

    def record_borrow(self, user_id: str, book_id: str) -> User:
        user = self.get_user(user_id)
        user_id, book_id = user.id, normalize_id(book_id)
        if user.has_borrowed(book_id):
            raise AlreadyBorrowedError(f"User {user_id} has already borrowed book {book_id}.")
        if not user.can_borrow_more:
            raise BorrowLimitReachedError(
                f"User {user_id} has reached the borrow limit ({user.max_borrowed})."
            )
        updated = user.with_borrowed(book_id)
        self._users[user_id] = updated
        return updated

    def record_return(self, user_id: str, book_id: str) -> User:
        user = self.get_user(user_id)
        user_id, book_id = user.id, normalize_id(book_id)
        if not user.has_borrowed(book_id):
            raise NotBorrowedError(f"User {user_id} has not borrowed book {book_id}.")
        updated = user.without_borrowed(book_id)
        self._users[user_id] = updated
        return updated

    def __contains__(self, user_id: object) -> bool:
        return normalize_id(user_id) in self._users

    def __len__(self) -> int:
        return len(self._users)
