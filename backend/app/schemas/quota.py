"""Quota decision returned by the admission controller."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field


class QuotaDecision(BaseModel):
    """
    Ephemeral allow/deny verdict for one request.

    Never persisted — derived from a UserQuota record at decision time.
    `remaining` and `reset_in_ms` are surfaced on every response as
    rate-limit telemetry, whatever the request's final outcome.
    """

    model_config = ConfigDict(frozen=True)

    allowed: bool
    remaining: int = Field(..., ge=0)
    reset_in_ms: int = Field(..., ge=0)

    def headers(self) -> dict[str, str]:
        """Telemetry headers attached to the HTTP response."""
        return {
            "X-RateLimit-Remaining": str(self.remaining),
            "X-RateLimit-Reset-In": str(self.reset_in_ms),
        }
