"""
Prompt builders for the Gemini-backed endpoints.

Pure functions of validated book data: the same input always renders the
same text. Missing optional fields render as "Unknown" rather than
failing, and a degenerate book list still yields a well-formed prompt —
spotting useless content is not this module's job.
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import Any

from app.schemas.books import BookRecord

_UNKNOWN = "Unknown"

# ── Templates ───────────────────────────────────────────────
ANALYSIS_TEMPLATE = """\
Analyze my reading habits based on this list: {book_list}.
Tell me what kind of reader I am in 50 words or less. Be fun and encouraging.\
"""

RECOMMENDATION_TEMPLATE = """\
Based on the following books I have read:
{book_list}

Please recommend 3 new books I might enjoy.
For each book, provide the title, author, and a brief, compelling reason why it fits my taste.\
"""

SUMMARY_TEMPLATE = 'Write a concise 2-sentence hook/summary for the book "{title}" by {author}.'

# Gemini responseSchema dialect: array of {title, author, reason} strings.
RECOMMENDATION_SCHEMA: dict[str, Any] = {
    "type": "ARRAY",
    "items": {
        "type": "OBJECT",
        "properties": {
            "title": {"type": "STRING"},
            "author": {"type": "STRING"},
            "reason": {"type": "STRING"},
        },
    },
}


def _or_unknown(value: str | None) -> str:
    return value if value else _UNKNOWN


def _format_rating(rating: float | None) -> str:
    # None covers absent, 0 and out-of-range ratings.
    return f"{rating:g}" if rating else "N/A"


def build_analysis_prompt(books: Sequence[BookRecord]) -> str:
    """Render every book as `<title> (<genre>, <status>)`, joined by '; '."""
    book_list = "; ".join(
        f"{b.title} ({_or_unknown(b.genre)}, {_or_unknown(b.status)})" for b in books
    )
    return ANALYSIS_TEMPLATE.format(book_list=book_list)


def build_recommendation_prompt(
    books: Sequence[BookRecord],
) -> tuple[str, dict[str, Any]]:
    """
    Render the recommendation prompt and its output schema.

    Completed books are preferred, with author and rating. If none are
    completed, every book is listed with its genre instead.
    """
    completed = ", ".join(
        f"{b.title} by {_or_unknown(b.author)} (Rated: {_format_rating(b.rating)}/5)"
        for b in books
        if b.is_completed
    )
    book_list = completed or ", ".join(f"{b.title} ({_or_unknown(b.genre)})" for b in books)
    return RECOMMENDATION_TEMPLATE.format(book_list=book_list), RECOMMENDATION_SCHEMA


def build_summary_prompt(title: str, author: str) -> str:
    return SUMMARY_TEMPLATE.format(title=title, author=author)
