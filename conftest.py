import pytest

from lending.book import Book, PublishState
from lending.engine import LendingEngine
from lending.user import User


@pytest.fixture
def engine():
    # Each test gets its own engine; nothing is shared between tests
    return LendingEngine(enforce_publish_state=True)


@pytest.fixture
def stocked_engine(engine):
    engine.add_book(Book("B1", "Ulysses", "James Joyce"), 1)
    engine.add_book(Book("B2", "Sapiens", "Yuval Noah Harari"), 3)
    engine.add_book(Book("B3", "Blood Meridian", "Cormac McCarthy", age_limit=18), 2)
    engine.add_book(Book("B4", "Draft Notes", "Anon", publish_state=PublishState.UNPUBLISHED), 1)
    engine.register_user(User("U1", "Alice", 30))
    engine.register_user(User("U2", "Bob", 10, max_borrowed=1))
    engine.register_user(User("U3", "Carol", 20))
    return engine
