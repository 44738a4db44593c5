import pytest

from lending import snapshot
from lending.book import Book, PublishState
from lending.engine import LendingEngine
from lending.errors import (
    AgeRestrictedError,
    BookNotFoundError,
    DuplicateUserError,
    InvariantViolation,
    NotBorrowedError,
    NotPublishedError,
    OutOfStockError,
)
from lending.user import User


@pytest.fixture
def state():
    s = snapshot.empty_state(enforce_publish_state=True)
    s = snapshot.add_book(s, Book("B1", "Only Copy", "Author"), 1)
    s = snapshot.add_book(s, Book("B2", "Mature", "Author", age_limit=18), 2)
    s = snapshot.register_user(s, User("U1", "Alice", 30))
    s = snapshot.register_user(s, User("U2", "Bob", 10))
    return s


def test_empty_state():
    s = snapshot.empty_state(enforce_publish_state=False)
    assert dict(s.books) == {}
    assert s.enforce_publish_state is False


def test_borrow_returns_new_state_and_keeps_old(state):
    after = snapshot.borrow_book(state, "U1", "B1")

    assert after.stock_of("B1") == 0
    assert after.users["U1"].borrowed_books == frozenset({"B1"})
    assert state.stock_of("B1") == 1
    assert state.users["U1"].borrowed_books == frozenset()


def test_return_round_trip_equals_original(state):
    after = snapshot.return_book(snapshot.borrow_book(state, "U1", "B1"), "U1", "B1")
    assert after == state


def test_failures_match_engine(state):
    borrowed = snapshot.borrow_book(state, "U1", "B1")
    with pytest.raises(OutOfStockError):
        snapshot.borrow_book(borrowed, "U2", "B1")
    with pytest.raises(AgeRestrictedError):
        snapshot.borrow_book(state, "U2", "B2")
    with pytest.raises(BookNotFoundError):
        snapshot.borrow_book(state, "U1", "B404")
    with pytest.raises(NotBorrowedError):
        snapshot.return_book(state, "U1", "B1")
    with pytest.raises(DuplicateUserError):
        snapshot.register_user(state, User("U1", "Again", 30))


def test_failed_operation_leaves_state_untouched(state):
    with pytest.raises(AgeRestrictedError):
        snapshot.borrow_book(state, "U2", "B2")
    assert state.stock_of("B2") == 2
    assert state.users["U2"].borrowed_books == frozenset()


def test_publish_flag_carried_through(state):
    s = snapshot.add_book(state, Book("B3", "Draft", "A", publish_state=PublishState.UNPUBLISHED), 1)
    with pytest.raises(NotPublishedError):
        snapshot.borrow_book(s, "U1", "B3")


def test_restock(state):
    s = snapshot.restock(state, "B1", 2)
    assert s.stock_of("B1") == 3
    assert s.totals["B1"] == 3
    assert state.stock_of("B1") == 1


def test_find_borrower(state):
    assert snapshot.find_borrower(state, "B1") is None
    s = snapshot.borrow_book(state, "U1", "B1")
    assert snapshot.find_borrower(s, "B1").name == "Alice"


def test_state_mappings_are_read_only(state):
    with pytest.raises(TypeError):
        state.stock["B1"] = 99


def test_state_is_not_hashable(state):
    with pytest.raises(TypeError, match="unhashable"):
        hash(state)


def test_engine_round_trips_through_snapshot(stocked_engine):
    stocked_engine.borrow_book("U1", "B1")
    state = stocked_engine.snapshot()
    rebuilt = LendingEngine.from_snapshot(state)

    assert rebuilt.snapshot() == state
    assert rebuilt.find_borrower("B1").id == "U1"
    rebuilt.return_book("U1", "B1")
    assert stocked_engine.stock_of("B1") == 0


def test_from_snapshot_rejects_inconsistent_state(state):
    broken = snapshot.LibraryState.build(
        books=dict(state.books),
        stock={"B1": 1, "B2": 2},
        totals=dict(state.totals),
        users={**state.users, "U1": state.users["U1"].with_borrowed("B1")},
    )
    with pytest.raises(InvariantViolation):
        LendingEngine.from_snapshot(broken)


def test_to_dict(state):
    s = snapshot.borrow_book(state, "U1", "B1")
    data = s.to_dict()
    assert data["books"][0] == {
        "id": "B1", "title": "Only Copy", "author": "Author", "age_limit": 0,
        "publish_state": "published", "stock": 0, "total": 1,
    }
    assert data["users"][0]["borrowed_books"] == ["B1"]
