import pytest

from lending.errors import (
    AlreadyBorrowedError,
    BorrowLimitReachedError,
    DuplicateUserError,
    ErrorKind,
    InvalidRecordError,
    NotBorrowedError,
    UserNotFoundError,
)
from lending.membership import Membership
from lending.user import User


@pytest.fixture
def members():
    membership = Membership()
    membership.register(User("U1", "Alice", 30, max_borrowed=2))
    return membership


def test_register_and_get(members):
    assert members.get_user("U1").name == "Alice"
    assert members.find_user("U1") is not None
    assert "U1" in members
    assert len(members) == 1


def test_register_duplicate(members):
    with pytest.raises(DuplicateUserError, match="User with id U1 already exists.") as exc_info:
        members.register(User("U1", "Someone Else", 40))
    assert exc_info.value.kind is ErrorKind.DUPLICATE_USER
    assert members.get_user("U1").name == "Alice"


def test_register_with_loans_rejected():
    membership = Membership()
    with pytest.raises(InvalidRecordError):
        membership.register(User("U1", "Alice", 30, borrowed_books=frozenset({"B1"})))
    assert membership.list_users() == []


def test_get_user_not_found(members):
    with pytest.raises(UserNotFoundError) as exc_info:
        members.get_user("U404")
    assert exc_info.value.kind is ErrorKind.USER_NOT_FOUND
    assert members.find_user("U404") is None


def test_record_borrow_and_return(members):
    user = members.record_borrow("U1", "B1")
    assert user.borrowed_books == frozenset({"B1"})
    assert members.get_user("U1").borrowed_books == frozenset({"B1"})
    assert members.borrow_count("B1") == 1

    user = members.record_return("U1", "B1")
    assert user.borrowed_books == frozenset()
    assert members.borrow_count("B1") == 0


def test_record_borrow_twice(members):
    members.record_borrow("U1", "B1")
    with pytest.raises(AlreadyBorrowedError):
        members.record_borrow("U1", "B1")
    assert members.get_user("U1").borrowed_books == frozenset({"B1"})


def test_record_borrow_limit(members):
    members.record_borrow("U1", "B1")
    members.record_borrow("U1", "B2")
    with pytest.raises(BorrowLimitReachedError):
        members.record_borrow("U1", "B3")
    assert len(members.get_user("U1").borrowed_books) == 2


def test_record_borrow_already_borrowed_wins_over_limit(members):
    members.record_borrow("U1", "B1")
    members.record_borrow("U1", "B2")
    with pytest.raises(AlreadyBorrowedError):
        members.record_borrow("U1", "B1")


def test_record_return_not_borrowed(members):
    with pytest.raises(NotBorrowedError) as exc_info:
        members.record_return("U1", "B1")
    assert exc_info.value.kind is ErrorKind.NOT_BORROWED


def test_record_for_unknown_user(members):
    with pytest.raises(UserNotFoundError):
        members.record_borrow("U404", "B1")
    with pytest.raises(UserNotFoundError):
        members.record_return("U404", "B1")


def test_list_users_keeps_registration_order(members):
    members.register(User("U0", "Zed", 50))
    assert [u.id for u in members.list_users()] == ["U1", "U0"]
