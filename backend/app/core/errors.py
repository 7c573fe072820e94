"""
Closed error taxonomy for the AI gateway, and the single place that
turns those errors into HTTP outcomes.

Services raise the exceptions below; nothing outside `map_error` knows
about status codes. Every error raised after admission carries the
QuotaDecision that was made for the request so the HTTP layer can still
attach rate-limit telemetry.
"""

from __future__ import annotations

import math
from dataclasses import dataclass

from fastapi import status

from app.schemas.quota import QuotaDecision


class GatewayError(Exception):
    """Base class for every failure the gateway reports to a caller."""

    default_message = "Request failed"

    def __init__(self, message: str | None = None) -> None:
        super().__init__(message or self.default_message)
        self.message = message or self.default_message
        self.decision: QuotaDecision | None = None
        # Caller-facing text when nothing safe can be passed through;
        # each flow sets its own ("Failed to analyze habits", ...).
        self.failure_message = "Request failed"


class InvalidRequest(GatewayError):
    """Raised by the request validator. Quota is never consulted."""


class MissingIdentity(InvalidRequest):
    default_message = "User ID required"


class MalformedInput(InvalidRequest):
    default_message = "Books array required"


class QuotaExceeded(GatewayError):
    """Admission denied — the model is never called."""

    def __init__(self, decision: QuotaDecision) -> None:
        super().__init__(
            f"Rate limited. Try again in {math.ceil(decision.reset_in_ms / 1000)}s"
        )
        self.decision = decision


class BackendMisconfigured(GatewayError):
    """A required credential is missing.

    The message is for server-side logs only; callers always get the
    generic text from `map_error`.
    """

    default_message = "Backend configuration error"


class UpstreamFailure(GatewayError):
    """The model call failed, or its output did not match the contract.

    `safe` marks whether `message` may be passed through to the caller.
    Provider error messages are safe; local parse diagnostics are not.
    """

    def __init__(self, message: str | None = None, *, safe: bool = True) -> None:
        super().__init__(message)
        self.safe = safe and bool(message)


@dataclass(frozen=True, slots=True)
class Outcome:
    """HTTP status code + caller-facing message for one failure."""

    status_code: int
    message: str


def map_error(exc: GatewayError) -> Outcome:
    """
    Map a gateway error onto its stable outcome.

    Upstream failures pass the provider's message through when it is
    safe to do so, otherwise the flow's `failure_message`.
    """
    if isinstance(exc, MissingIdentity):
        return Outcome(status.HTTP_401_UNAUTHORIZED, exc.message)
    if isinstance(exc, MalformedInput):
        return Outcome(status.HTTP_400_BAD_REQUEST, exc.message)
    if isinstance(exc, QuotaExceeded):
        return Outcome(status.HTTP_429_TOO_MANY_REQUESTS, exc.message)
    if isinstance(exc, BackendMisconfigured):
        return Outcome(
            status.HTTP_500_INTERNAL_SERVER_ERROR,
            BackendMisconfigured.default_message,
        )
    if isinstance(exc, UpstreamFailure):
        message = exc.message if exc.safe else exc.failure_message
        return Outcome(status.HTTP_500_INTERNAL_SERVER_ERROR, message)
    # Unknown subclasses are treated as opaque server errors.
    return Outcome(status.HTTP_500_INTERNAL_SERVER_ERROR, exc.failure_message)
