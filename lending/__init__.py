"""Library Lending - Core Package

This package contains the in-memory lending model:
- Book and user records (book.py, user.py)
- Typed lending errors (errors.py)
- Catalog of titles and stock (catalog.py)
- Membership and loans (membership.py)
- Borrow/return engine (engine.py)
- Immutable state snapshots (snapshot.py)
- JSON batch scripts and the CLI (script.py, cli.py)
"""
from lending.book import Book, PublishState
from lending.engine import LendingEngine
from lending.errors import ErrorKind, InvariantViolation, LendingError
from lending.snapshot import LibraryState
from lending.user import User

__all__ = [
    "Book",
    "ErrorKind",
    "InvariantViolation",
    "LendingEngine",
    "LendingError",
    "LibraryState",
    "PublishState",
    "User",
]
