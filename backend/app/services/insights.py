"""
Reading-insight flows: analysis, recommendations, summary.

Each flow runs the same pipeline:

    validate → (empty-input short-circuit) → admit → prompt → model → interpret

The empty-book short-circuits sit at the top, before admission, so they
never consume quota or reach the model; they still report a
non-consuming quota snapshot as telemetry. Every GatewayError raised after
admission is tagged with the QuotaDecision so telemetry still reaches
the caller on failure.
"""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Any, TypeVar

from app.core.errors import GatewayError, QuotaExceeded
from app.schemas.quota import QuotaDecision
from app.services.interpreter import (
    interpret_analysis,
    interpret_recommendations,
    interpret_summary,
)
from app.services.llm_client import ModelGateway
from app.services.prompts import (
    build_analysis_prompt,
    build_recommendation_prompt,
    build_summary_prompt,
)
from app.services.rate_limiter import AdmissionController
from app.services.request_validator import validate, validate_summary

logger = logging.getLogger(__name__)

T = TypeVar("T")

EMPTY_ANALYSIS = "Add at least 1 book to get an analysis of your habits!"
ANALYSIS_FAILED = "Failed to analyze habits"
RECOMMENDATIONS_FAILED = "Failed to generate recommendations"
SUMMARY_FAILED = "Failed to generate summary"

EMPTY_RECOMMENDATION: dict[str, str] = {
    "title": "No books yet",
    "author": "System",
    "reason": "Please add some books to your library so I can understand your taste!",
}


@dataclass(frozen=True, slots=True)
class FlowResult:
    """JSON-ready body plus the quota decision (or snapshot) for telemetry."""

    body: Any
    decision: QuotaDecision | None = None


class InsightsService:
    """Orchestrates the AI endpoints against an admission controller and a model."""

    def __init__(self, admission: AdmissionController, gateway: ModelGateway) -> None:
        self.admission = admission
        self.gateway = gateway

    def _admit(self, user_id: str) -> QuotaDecision:
        decision = self.admission.evaluate(user_id)
        if not decision.allowed:
            raise QuotaExceeded(decision)
        return decision

    async def _with_decision(
        self,
        decision: QuotaDecision,
        call: Callable[[], Awaitable[T]],
        failure_message: str,
    ) -> T:
        try:
            return await call()
        except GatewayError as exc:
            exc.decision = decision
            exc.failure_message = failure_message
            raise

    async def analyze(self, raw: Any) -> FlowResult:
        request = validate(raw)
        if not request.books:
            return FlowResult(
                body={"analysis": EMPTY_ANALYSIS},
                decision=self.admission.peek(request.user_id),
            )

        decision = self._admit(request.user_id)
        prompt = build_analysis_prompt(request.books)
        text = await self._with_decision(
            decision, lambda: self.gateway.generate(prompt), ANALYSIS_FAILED
        )
        return FlowResult(body={"analysis": interpret_analysis(text)}, decision=decision)

    async def recommend(self, raw: Any) -> FlowResult:
        request = validate(raw)
        if not request.books:
            return FlowResult(
                body=[dict(EMPTY_RECOMMENDATION)],
                decision=self.admission.peek(request.user_id),
            )

        decision = self._admit(request.user_id)
        prompt, schema = build_recommendation_prompt(request.books)

        async def _call() -> list[dict[str, str]]:
            text = await self.gateway.generate(prompt, schema)
            return [r.model_dump() for r in interpret_recommendations(text)]

        body = await self._with_decision(decision, _call, RECOMMENDATIONS_FAILED)
        logger.debug("Returning %d recommendation(s) to %s", len(body), request.user_id)
        return FlowResult(body=body, decision=decision)

    async def summarize(self, raw: Any) -> FlowResult:
        request = validate_summary(raw)

        decision = self._admit(request.user_id)
        prompt = build_summary_prompt(request.title, request.author)
        text = await self._with_decision(
            decision, lambda: self.gateway.generate(prompt), SUMMARY_FAILED
        )
        return FlowResult(body={"summary": interpret_summary(text)}, decision=decision)
