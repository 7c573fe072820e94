"""
Pydantic v2 schemas for the gateway's request and response bodies.

Separation:
  • BookRecord       — one book as the client sends it (extra fields ignored).
  • Recommendation   — one item of the structured model output.
  • AnalysisResponse / SummaryResponse — free-text endpoint bodies.

Request bodies are NOT bound to FastAPI's automatic validation: the
validator in app.services.request_validator decides between 401 and 400
itself, so a missing userId never turns into a framework 422.
"""

from __future__ import annotations

from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, StrictStr, field_validator


class ReadingStatus(str, Enum):
    """Statuses the reading-tracker client assigns to books."""

    TO_READ = "To Read"
    IN_PROGRESS = "In Progress"
    COMPLETED = "Completed"


# ── Request schemas ─────────────────────────────────────────
class BookRecord(BaseModel):
    """
    A single book supplied by the caller.

    Only the fields the prompts use are modelled; the client also sends
    id, coverUrl, format, notes, … which are dropped on validation.
    """

    model_config = ConfigDict(extra="ignore", frozen=True)

    title: str = Field(default="", examples=["Dune"])
    author: str | None = Field(default=None, examples=["Frank Herbert"])
    genre: str | None = Field(default=None, examples=["Science Fiction"])
    status: str | None = Field(
        default=None,
        examples=[ReadingStatus.COMPLETED.value],
        description="Reading status; 'Completed' books drive recommendations.",
    )
    rating: float | None = Field(
        default=None,
        description="Star rating 1-5; anything outside that range is treated as unrated.",
    )

    @field_validator("title", mode="before")
    @classmethod
    def null_title_is_blank(cls, value: Any) -> Any:
        return "" if value is None else value

    @field_validator("rating")
    @classmethod
    def out_of_range_rating_is_unrated(cls, value: float | None) -> float | None:
        if value is not None and not 1 <= value <= 5:
            return None
        return value

    @property
    def is_completed(self) -> bool:
        return (self.status or "").strip().casefold() == ReadingStatus.COMPLETED.value.casefold()


# ── Response schemas ────────────────────────────────────────
class Recommendation(BaseModel):
    """One recommended book, as produced by the recommendation flow."""

    model_config = ConfigDict(extra="ignore")

    # Strict: a number where a string belongs is a contract violation.
    title: StrictStr = ""
    author: StrictStr = ""
    reason: StrictStr = ""


class AnalysisResponse(BaseModel):
    analysis: str


class SummaryResponse(BaseModel):
    summary: str


class ErrorResponse(BaseModel):
    """Body for every non-2xx outcome."""

    error: str
    resetInMs: int | None = Field(
        default=None,
        description="Only present on 429 — milliseconds until the window resets.",
    )
