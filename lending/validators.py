from typing import Any


def normalize_id(raw: Any) -> str:
    """Book and user ids are compared as stripped strings, both on registration and on lookup."""
    if raw is None:
        return ""
    return str(raw).strip()


def is_whole_number(value: Any) -> bool:
    # bool is an int subclass but never a valid count or age
    return isinstance(value, int) and not isinstance(value, bool)
