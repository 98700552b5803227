"""
Exceptions raised by the API layer and mapped to responses in main.
"""

from typing import Dict, List, Sequence

from pydantic_core import ErrorDetails


class PersistenceError(Exception):
    """The repository reported a failed commit."""


class UnprocessableEntityError(Exception):
    """A request body parsed but failed validation."""

    def __init__(self, errors: Dict[str, List[str]], status_code: int = 422):
        self.errors = errors
        self.status_code = status_code
        super().__init__("Validation failed")


def format_validation_errors(errors: Sequence[ErrorDetails], default_key: str = "body") -> Dict[str, List[str]]:
    """
    Group pydantic error details by field.

    Location prefixes added by FastAPI ("body", "query", "path", "header")
    are dropped, so a body error on ``title`` is reported under "title".
    """
    grouped: Dict[str, List[str]] = {}
    for error in errors:
        location = [str(part) for part in error.get("loc", ())]
        if location and location[0] in ("body", "query", "path", "header"):
            location = location[1:]
        key = ".".join(location) or default_key
        message = error.get("msg", "Invalid value")
        if message.startswith("Value error, "):
            message = message[len("Value error, "):]
        grouped.setdefault(key, []).append(message)
    return grouped
