from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import FrozenSet

from lending.errors import InvalidRecordError
from lending.validators import is_whole_number, normalize_id

DEFAULT_MAX_BORROWED = 5


@dataclass(frozen=True)
class User:
    """A library member and the set of book ids they currently hold."""

    id: str
    name: str
    age: int
    max_borrowed: int = DEFAULT_MAX_BORROWED
    borrowed_books: FrozenSet[str] = field(default_factory=frozenset)

    def __post_init__(self) -> None:
        user_id = normalize_id(self.id)
        if not user_id:
            raise InvalidRecordError("User id cannot be empty.")
        if not is_whole_number(self.age):
            raise InvalidRecordError(f"Age must be a whole number: {self.age!r}")
        if not is_whole_number(self.max_borrowed):
            raise InvalidRecordError(f"Borrow limit must be a whole number: {self.max_borrowed!r}")
        if self.age < 0:
            raise InvalidRecordError(f"Age cannot be negative: {self.age}")
        if self.max_borrowed < 0:
            raise InvalidRecordError(f"Borrow limit cannot be negative: {self.max_borrowed}")
        object.__setattr__(self, "id", user_id)
        object.__setattr__(self, "name", (self.name or "").strip())
        object.__setattr__(self, "borrowed_books", frozenset(normalize_id(b) for b in self.borrowed_books))
        if len(self.borrowed_books) > self.max_borrowed:
            raise InvalidRecordError(
                f"User '{user_id}' holds {len(self.borrowed_books)} books, limit is {self.max_borrowed}"
            )

    @property
    def can_borrow_more(self) -> bool:
        return len(self.borrowed_books) < self.max_borrowed

    def has_borrowed(self, book_id: str) -> bool:
        return normalize_id(book_id) in self.borrowed_books

    def with_borrowed(self, book_id: str) -> "User":
        return replace(self, borrowed_books=self.borrowed_books | {normalize_id(book_id)})

    def without_borrowed(self, book_id: str) -> "User":
        return replace(self, borrowed_books=self.borrowed_books - {normalize_id(book_id)})

    def __str__(self) -> str:  # pragma: no cover - string formatting trivial
        return f"{self.name} (ID: {self.id}) - {len(self.borrowed_books)}/{self.max_borrowed} borrowed"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "age": self.age,
            "max_borrowed": self.max_borrowed,
            "borrowed_books": sorted(self.borrowed_books),
        }

    @staticmethod
    def from_dict(data: dict) -> "User":
        return User(
            id=data["id"],
            name=data["name"],
            age=int(data["age"]),
            max_borrowed=int(data.get("max_borrowed", DEFAULT_MAX_BORROWED)),
            borrowed_books=frozenset(data.get("borrowed_books") or ()),
        )
