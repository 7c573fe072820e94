"""
Request validator — shape checks that run before quota is consulted.

Rules, first failure wins:
  1. userId present and a non-empty string      → else MissingIdentity (401)
  2. books is a list of book-shaped objects      → else MalformedInput (400)

An empty book list is valid here; the flows short-circuit on it.
Because this runs first, malformed requests never consume quota.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from pydantic import TypeAdapter
from pydantic import ValidationError as PydanticValidationError

from app.core.errors import MalformedInput, MissingIdentity
from app.schemas.books import BookRecord

_books_adapter = TypeAdapter(list[BookRecord])


@dataclass(frozen=True, slots=True)
class ValidatedRequest:
    user_id: str
    books: tuple[BookRecord, ...]


@dataclass(frozen=True, slots=True)
class ValidatedSummaryRequest:
    user_id: str
    title: str
    author: str


def _require_identity(raw: Any) -> str:
    if not isinstance(raw, dict):
        raise MissingIdentity()
    user_id = raw.get("userId")
    if not isinstance(user_id, str) or not user_id.strip():
        raise MissingIdentity()
    return user_id


def validate(raw: Any) -> ValidatedRequest:
    """Validate an analysis / recommendation body."""
    user_id = _require_identity(raw)

    books = raw.get("books")
    # Must be a JSON array; each element must be an object.
    if not isinstance(books, list) or not all(isinstance(b, dict) for b in books):
        raise MalformedInput()

    try:
        records = _books_adapter.validate_python(books)
    except PydanticValidationError as exc:
        index = exc.errors()[0]["loc"][0]
        raise MalformedInput(f"Invalid book at index {index}") from exc

    return ValidatedRequest(user_id=user_id, books=tuple(records))


def validate_summary(raw: Any) -> ValidatedSummaryRequest:
    """Validate a summary body: identity, then title + author."""
    user_id = _require_identity(raw)

    title = raw.get("title")
    author = raw.get("author")
    if not (isinstance(title, str) and title.strip() and isinstance(author, str) and author.strip()):
        raise MalformedInput("Title and author required")

    return ValidatedSummaryRequest(user_id=user_id, title=title.strip(), author=author.strip())
