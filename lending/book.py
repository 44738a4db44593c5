from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional

from lending.errors import InvalidRecordError
from lending.validators import is_whole_number, normalize_id


class PublishState(str, Enum):
    PUBLISHED = "published"
    UNPUBLISHED = "unpublished"
    WITHDRAWN = "withdrawn"


@dataclass(frozen=True)
class Book:
    """Represents a single title in the library catalog.

    Stock is tracked by the catalog, not here, so a Book never changes once
    registered. ``publish_state`` of ``None`` means the title does not take
    part in publish-state tracking and is always borrowable.
    """

    id: str
    title: str
    author: str
    age_limit: int = 0
    publish_state: Optional[PublishState] = PublishState.PUBLISHED

    def __post_init__(self) -> None:
        book_id = normalize_id(self.id)
        if not book_id:
            raise InvalidRecordError("Book id cannot be empty.")
        age_limit = 0 if self.age_limit is None else self.age_limit
        if not is_whole_number(age_limit):
            raise InvalidRecordError(f"Age limit must be a whole number: {age_limit!r}")
        if age_limit < 0:
            raise InvalidRecordError(f"Age limit cannot be negative: {age_limit}")
        object.__setattr__(self, "id", book_id)
        object.__setattr__(self, "age_limit", age_limit)
        object.__setattr__(self, "title", (self.title or "").strip())
        object.__setattr__(self, "author", (self.author or "").strip())
        if self.publish_state is not None and not isinstance(self.publish_state, PublishState):
            object.__setattr__(self, "publish_state", PublishState(self.publish_state))

    @property
    def is_published(self) -> bool:
        return self.publish_state is None or self.publish_state is PublishState.PUBLISHED

    def __str__(self) -> str:  # pragma: no cover - string formatting trivial
        return f"[{self.id}] {self.title} by {self.author}"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "title": self.title,
            "author": self.author,
            "age_limit": self.age_limit,
            "publish_state": self.publish_state.value if self.publish_state else None,
        }

    @staticmethod
    def from_dict(data: dict) -> "Book":
        state = data.get("publish_state", PublishState.PUBLISHED.value)
        return Book(
            id=data["id"],
            title=data["title"],
            author=data["author"],
            age_limit=int(data.get("age_limit") or 0),
            publish_state=PublishState(state) if state else None,
        )
