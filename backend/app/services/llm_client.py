"""
Gemini client — the model gateway behind every AI endpoint.

Uses Gemini's REST `models/{model}:generateContent` API via httpx.
The rest of the app only sees the `ModelGateway` protocol, so tests can
swap in a fake without any network access.

Configuration:
  GEMINI_API_KEY — server-side only (never exposed to clients or logs)
  LLM_MODEL      — defaults to gemini-2.5-flash

Failure mapping:
  • Missing key                         → BackendMisconfigured
  • Network error / timeout / non-200   → UpstreamFailure
  • Response without candidates         → UpstreamFailure
"""

from __future__ import annotations

import logging
from typing import Any, Protocol

import httpx

from app.core.config import Settings, settings as default_settings
from app.core.errors import BackendMisconfigured, UpstreamFailure

logger = logging.getLogger(__name__)


class ModelGateway(Protocol):
    """Opaque text generator: prompt (+ optional output schema) in, text out."""

    async def generate(self, prompt: str, schema: dict[str, Any] | None = None) -> str:
        ...


class GeminiGateway:
    """ModelGateway backed by the Gemini REST API."""

    def __init__(
        self,
        config: Settings | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.config = config or default_settings
        self._transport = transport

    def _build_payload(self, prompt: str, schema: dict[str, Any] | None) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "contents": [{"role": "user", "parts": [{"text": prompt}]}],
        }
        if schema is not None:
            payload["generationConfig"] = {
                "responseMimeType": "application/json",
                "responseSchema": schema,
            }
        return payload

    async def generate(self, prompt: str, schema: dict[str, Any] | None = None) -> str:
        """
        Send one prompt to Gemini and return the generated text.

        Returns:
            Concatenated text parts of the first candidate ("" if none).

        Raises:
            BackendMisconfigured: GEMINI_API_KEY is empty.
            UpstreamFailure: The call failed or the response was unusable.
        """
        if not self.config.GEMINI_API_KEY:
            logger.error("[Gemini API] Missing GEMINI_API_KEY environment variable")
            raise BackendMisconfigured("GEMINI_API_KEY is not configured")

        url = f"{self.config.GEMINI_BASE_URL}/models/{self.config.LLM_MODEL}:generateContent"
        headers = {
            "x-goog-api-key": self.config.GEMINI_API_KEY,
            "Content-Type": "application/json",
        }

        try:
            async with httpx.AsyncClient(
                timeout=self.config.LLM_TIMEOUT_SECONDS,
                transport=self._transport,
            ) as client:
                response = await client.post(
                    url,
                    json=self._build_payload(prompt, schema),
                    headers=headers,
                )
        except httpx.HTTPError as exc:
            logger.error("[Gemini API] Request failed: %s", exc.__class__.__name__)
            raise UpstreamFailure(safe=False) from exc

        if response.status_code != 200:
            logger.error(
                "[Gemini API] error: status=%d body=%s",
                response.status_code,
                response.text[:500],
            )
            raise UpstreamFailure(_provider_message(response))

        # ── Extract candidate text ──────────────────────────────
        try:
            data = response.json()
            candidates = data["candidates"]
            text = None
            if candidates:
                parts = (candidates[0].get("content") or {}).get("parts") or []
                # Non-string parts (e.g. "text": null) carry no text.
                text = "".join(
                    p["text"]
                    for p in parts
                    if isinstance(p, dict) and isinstance(p.get("text"), str)
                )
        except (ValueError, KeyError, IndexError, TypeError, AttributeError) as exc:
            logger.error("[Gemini API] Unexpected response shape: %s", exc)
            raise UpstreamFailure(safe=False) from exc

        if text is None:
            # Typically a safety block: promptFeedback carries the reason.
            logger.error("[Gemini API] No candidates returned: %s", data.get("promptFeedback"))
            raise UpstreamFailure(safe=False)

        return text


def _provider_message(response: httpx.Response) -> str | None:
    """Pull Gemini's `error.message` out of an error body, if any."""
    try:
        error = response.json().get("error")
    except (ValueError, AttributeError):
        return None
    if isinstance(error, dict) and isinstance(error.get("message"), str):
        return error["message"]
    return None
