"""Batch scripts: a JSON document of books, users and lending operations.

The document is validated with pydantic and then replayed against a
``LendingEngine``. Each step produces an ``OperationOutcome``; a failed step
is recorded and, unless ``stop_on_error`` is set, the batch carries on.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import List, Literal, Optional, Tuple, Union

from pydantic import BaseModel, Field, model_validator

from lending.book import Book, PublishState
from lending.config import settings
from lending.engine import LendingEngine
from lending.errors import ErrorKind, LendingError
from lending.user import User

logger = logging.getLogger(__name__)


class BookEntry(BaseModel):
    id: str = Field(..., min_length=1)
    title: str
    author: str = ""
    age_limit: int = Field(0, ge=0)
    publish_state: Optional[PublishState] = PublishState.PUBLISHED
    quantity: int = Field(default_factory=lambda: settings.default_quantity, ge=0)

    def to_book(self) -> Book:
        return Book(
            id=self.id,
            title=self.title,
            author=self.author,
            age_limit=self.age_limit,
            publish_state=self.publish_state,
        )


class UserEntry(BaseModel):
    id: str = Field(..., min_length=1)
    name: str
    age: int = Field(..., ge=0)
    max_borrowed: int = Field(default_factory=lambda: settings.default_max_borrowed, ge=0)

    def to_user(self) -> User:
        return User(id=self.id, name=self.name, age=self.age, max_borrowed=self.max_borrowed)


class Operation(BaseModel):
    action: Literal["borrow", "return", "restock", "find_borrower"]
    book_id: str
    user_id: Optional[str] = None
    quantity: Optional[int] = None

    @model_validator(mode="after")
    def _check_arguments(self) -> "Operation":
        if self.action in ("borrow", "return") and not self.user_id:
            raise ValueError(f"'{self.action}' requires a user_id")
        if self.action == "restock" and self.quantity is None:
            raise ValueError("'restock' requires a quantity")
        return self

    def describe(self) -> str:
        if self.action == "restock":
            return f"restock {self.book_id} +{self.quantity}"
        if self.action == "find_borrower":
            return f"find_borrower {self.book_id}"
        return f"{self.action} {self.user_id} {self.book_id}"


class LendingScript(BaseModel):
    books: List[BookEntry] = Field(default_factory=list)
    users: List[UserEntry] = Field(default_factory=list)
    operations: List[Operation] = Field(default_factory=list)


@dataclass
class OperationOutcome:
    step: str
    ok: bool
    message: str
    error_kind: Optional[ErrorKind] = None

    def to_dict(self) -> dict:
        return {
            "step": self.step,
            "ok": self.ok,
            "message": self.message,
            "error_kind": self.error_kind.value if self.error_kind else None,
        }


def load_script(path: Union[str, Path]) -> LendingScript:
    """Read and validate a batch file. Raises pydantic.ValidationError on bad input."""
    text = Path(path).read_text(encoding="utf-8")
    return LendingScript.model_validate_json(text)


def _apply(engine: LendingEngine, op: Operation) -> str:
    if op.action == "borrow":
        engine.borrow_book(op.user_id, op.book_id)
        book = engine.get_book(op.book_id)
        return f"{op.user_id} borrowed '{book.title}' (stock {engine.stock_of(op.book_id)})"
    if op.action == "return":
        engine.return_book(op.user_id, op.book_id)
        book = engine.get_book(op.book_id)
        return f"{op.user_id} returned '{book.title}' (stock {engine.stock_of(op.book_id)})"
    if op.action == "restock":
        count = engine.restock(op.book_id, op.quantity)
        return f"{op.book_id} restocked (stock {count})"
    borrower = engine.find_borrower(op.book_id)
    if borrower is None:
        return f"{op.book_id} is held by none"
    return f"{op.book_id} is held by {borrower.id} ({borrower.name})"


def run_script(
    script: LendingScript,
    engine: Optional[LendingEngine] = None,
    stop_on_error: bool = False,
) -> Tuple[LendingEngine, List[OperationOutcome]]:
    """Replay ``script`` against ``engine`` (a fresh one if omitted)."""
    if engine is None:
        engine = LendingEngine()
    outcomes: List[OperationOutcome] = []

    steps = (
        [(f"add_book {b.id}", lambda b=b: _add_book(engine, b)) for b in script.books]
        + [(f"register {u.id}", lambda u=u: _register(engine, u)) for u in script.users]
        + [(op.describe(), lambda op=op: _apply(engine, op)) for op in script.operations]
    )

    for step, action in steps:
        try:
            message = action()
        except LendingError as exc:
            outcomes.append(OperationOutcome(step, False, exc.message, exc.kind))
            if stop_on_error:
                logger.info(f"Stopping batch after failed step: {step}")
                break
            continue
        outcomes.append(OperationOutcome(step, True, message))

    return engine, outcomes


def _add_book(engine: LendingEngine, entry: BookEntry) -> str:
    book = entry.to_book()
    engine.add_book(book, entry.quantity)
    return f"Added '{book.title}' x{entry.quantity}"


def _register(engine: LendingEngine, entry: UserEntry) -> str:
    user = entry.to_user()
    engine.register_user(user)
    return f"Registered {user.name}"


DEMO_SCRIPT = LendingScript(
    books=[
        BookEntry(id="B001", title="Python Programming Guide", author="Guido", quantity=2),
        BookEntry(id="B002", title="Design Patterns", author="GoF", quantity=1),
        BookEntry(id="B003", title="Introduction to Algorithms", author="Cormen", quantity=1, age_limit=18),
        BookEntry(id="B004", title="Clean Code", author="Robert Martin", quantity=1,
                  publish_state=PublishState.UNPUBLISHED),
    ],
    users=[
        UserEntry(id="U001", name="Alice", age=30, max_borrowed=3),
        UserEntry(id="U002", name="Bob", age=12, max_borrowed=1),
    ],
    operations=[
        Operation(action="borrow", user_id="U001", book_id="B001"),
        Operation(action="borrow", user_id="U001", book_id="B002"),
        Operation(action="borrow", user_id="U002", book_id="B002"),
        Operation(action="borrow", user_id="U002", book_id="B003"),
        Operation(action="borrow", user_id="U001", book_id="B004"),
        Operation(action="borrow", user_id="U001", book_id="B999"),
        Operation(action="borrow", user_id="U999", book_id="B001"),
        Operation(action="borrow", user_id="U002", book_id="B001"),
        Operation(action="borrow", user_id="U002", book_id="B003"),
        Operation(action="find_borrower", book_id="B001"),
        Operation(action="return", user_id="U001", book_id="B001"),
        Operation(action="return", user_id="U001", book_id="B001"),
        Operation(action="restock", book_id="B002", quantity=1),
        Operation(action="borrow", user_id="U001", book_id="B003"),
    ],
)
