"""
AI insight router — the browser-facing Gemini endpoints.

POST /api/gemini-analyze           {userId, books}        → {analysis}
POST /api/gemini-recommendations   {userId, books}        → Recommendation[]
POST /api/gemini-summary           {userId, title, author} → {summary}

Bodies are read as raw JSON rather than bound to a Pydantic model, so
the validator — not FastAPI's 422 — decides between 401 and 400.
Failures are raised as GatewayError and rendered by the handler in
app.main. Successful responses carry X-RateLimit-* telemetry whenever
the quota was consulted.
"""

import logging
from typing import Any

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse

from app.core.dependencies import Insights
from app.schemas.books import AnalysisResponse, ErrorResponse, Recommendation, SummaryResponse
from app.services.insights import FlowResult

logger = logging.getLogger(__name__)

router = APIRouter(tags=["AI Insights"])

_ERROR_RESPONSES: dict[int | str, dict[str, Any]] = {
    400: {"model": ErrorResponse, "description": "Malformed request body"},
    401: {"model": ErrorResponse, "description": "userId missing"},
    429: {"model": ErrorResponse, "description": "Per-user quota exhausted"},
    500: {"model": ErrorResponse, "description": "Backend misconfigured or model failure"},
}


async def _read_body(request: Request) -> Any:
    """Parsed JSON body, or None if the body is not valid JSON."""
    try:
        return await request.json()
    except ValueError:
        return None


def _render(result: FlowResult) -> JSONResponse:
    headers = result.decision.headers() if result.decision else None
    return JSONResponse(content=result.body, headers=headers)


@router.post(
    "/gemini-analyze",
    response_model=AnalysisResponse,
    responses=_ERROR_RESPONSES,
    summary="Characterize the reader from their book list",
)
async def analyze_reading_habits(request: Request, insights: Insights) -> JSONResponse:
    return _render(await insights.analyze(await _read_body(request)))


@router.post(
    "/gemini-recommendations",
    response_model=list[Recommendation],
    responses=_ERROR_RESPONSES,
    summary="Recommend three books",
    description=(
        "Prefers completed books (with ratings) as the taste signal. "
        "The model is asked for structured JSON; output that does not "
        "parse is reported as a 500, never as an empty list."
    ),
)
async def recommend_books(request: Request, insights: Insights) -> JSONResponse:
    return _render(await insights.recommend(await _read_body(request)))


@router.post(
    "/gemini-summary",
    response_model=SummaryResponse,
    responses=_ERROR_RESPONSES,
    summary="Two-sentence hook for a single book",
)
async def summarize_book(request: Request, insights: Insights) -> JSONResponse:
    return _render(await insights.summarize(await _read_body(request)))
