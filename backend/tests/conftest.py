from __future__ import annotations

from typing import Any

import pytest
from fastapi.testclient import TestClient

from app.core.dependencies import get_admission_controller, get_model_gateway
from app.main import app
from app.services.rate_limiter import AdmissionController

LIMIT = 3
WINDOW_MS = 60_000


class ManualClock:
    """Millisecond clock that only moves when told to."""

    def __init__(self, start: int = 1_000_000) -> None:
        self.now = start

    def __call__(self) -> int:
        return self.now

    def advance(self, ms: int) -> None:
        self.now += ms


class FakeGateway:
    """ModelGateway stand-in: records prompts, returns canned text or raises."""

    def __init__(self, text: str = "", error: Exception | None = None) -> None:
        self.text = text
        self.error = error
        self.calls: list[tuple[str, dict[str, Any] | None]] = []

    async def generate(self, prompt: str, schema: dict[str, Any] | None = None) -> str:
        self.calls.append((prompt, schema))
        if self.error is not None:
            raise self.error
        return self.text


@pytest.fixture
def clock() -> ManualClock:
    return ManualClock()


@pytest.fixture
def admission(clock: ManualClock) -> AdmissionController:
    return AdmissionController(limit=LIMIT, window_ms=WINDOW_MS, clock=clock)


@pytest.fixture
def gateway() -> FakeGateway:
    return FakeGateway(text="You are a curious explorer of worlds.")


@pytest.fixture
def client(admission: AdmissionController, gateway: FakeGateway):
    app.dependency_overrides[get_admission_controller] = lambda: admission
    app.dependency_overrides[get_model_gateway] = lambda: gateway
    yield TestClient(app)
    app.dependency_overrides.clear()


BOOKS = [
    {"id": "1", "title": "Dune", "author": "Frank Herbert", "genre": "Sci-Fi", "status": "Completed", "rating": 5},
    {"id": "2", "title": "Emma", "author": "Jane Austen", "genre": "Classic", "status": "In Progress"},
]


@pytest.fixture
def books() -> list[dict[str, Any]]:
    return [dict(b) for b in BOOKS]
