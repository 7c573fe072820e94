"""
FastAPI dependencies for the AI endpoints.

The admission controller is process-wide shared state: one instance,
built from settings on first use. Tests replace either dependency via
`app.dependency_overrides`.
"""

from __future__ import annotations

from functools import lru_cache
from typing import Annotated

from fastapi import Depends

from app.core.config import settings
from app.services.insights import InsightsService
from app.services.llm_client import GeminiGateway, ModelGateway
from app.services.rate_limiter import AdmissionController


@lru_cache(maxsize=1)
def get_admission_controller() -> AdmissionController:
    return AdmissionController(limit=settings.QUOTA_LIMIT, window_ms=settings.QUOTA_WINDOW_MS)


def get_model_gateway() -> ModelGateway:
    return GeminiGateway(settings)


def get_insights_service(
    admission: Annotated[AdmissionController, Depends(get_admission_controller)],
    gateway: Annotated[ModelGateway, Depends(get_model_gateway)],
) -> InsightsService:
    return InsightsService(admission=admission, gateway=gateway)


Insights = Annotated[InsightsService, Depends(get_insights_service)]
