from __future__ import annotations

from enum import Enum


class ErrorKind(str, Enum):
    """Enumerates every expected failure of the lending core."""

    DUPLICATE_BOOK = "DuplicateBook"
    DUPLICATE_USER = "DuplicateUser"
    BOOK_NOT_FOUND = "BookNotFound"
    USER_NOT_FOUND = "UserNotFound"
    OUT_OF_STOCK = "OutOfStock"
    NEGATIVE_STOCK = "NegativeStock"
    ALREADY_BORROWED = "AlreadyBorrowed"
    BORROW_LIMIT_REACHED = "BorrowLimitReached"
    AGE_RESTRICTED = "AgeRestricted"
    NOT_BORROWED = "NotBorrowed"
    NOT_PUBLISHED = "NotPublished"
    INVALID_RECORD = "InvalidRecord"


class LendingError(Exception):
    """Base class for validation failures. Never raised after a partial update."""

    kind: ErrorKind

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message

    def to_dict(self) -> dict:
        return {"kind": self.kind.value, "message": self.message}


class DuplicateBookError(LendingError, ValueError):
    kind = ErrorKind.DUPLICATE_BOOK


class DuplicateUserError(LendingError, ValueError):
    kind = ErrorKind.DUPLICATE_USER


class BookNotFoundError(LendingError, LookupError):
    kind = ErrorKind.BOOK_NOT_FOUND


class UserNotFoundError(LendingError, LookupError):
    kind = ErrorKind.USER_NOT_FOUND


class OutOfStockError(LendingError):
    kind = ErrorKind.OUT_OF_STOCK


class NegativeStockError(LendingError, ValueError):
    kind = ErrorKind.NEGATIVE_STOCK


class AlreadyBorrowedError(LendingError):
    kind = ErrorKind.ALREADY_BORROWED


class BorrowLimitReachedError(LendingError):
    kind = ErrorKind.BORROW_LIMIT_REACHED


class AgeRestrictedError(LendingError):
    kind = ErrorKind.AGE_RESTRICTED


class NotBorrowedError(LendingError):
    kind = ErrorKind.NOT_BORROWED


class NotPublishedError(LendingError):
    kind = ErrorKind.NOT_PUBLISHED


class InvalidRecordError(LendingError, ValueError):
    kind = ErrorKind.INVALID_RECORD


class InvariantViolation(AssertionError):
    """Raised by consistency checks. Indicates a bug, not a rejected request."""
