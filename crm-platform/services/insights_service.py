"""
AI sales insights (best effort).

Builds a short prompt from the current sales, prospects and clients and sends
it to the Gemini `generateContent` REST endpoint. Any failure (no API key,
network, HTTP status, unexpected payload) is logged and replaced by
NO_ANALYSIS_MESSAGE. Nothing here may block or fail a lifecycle operation.
"""

from __future__ import annotations

import json
import logging
from dataclasses import asdict
from typing import Any, Optional, Sequence

import httpx

from config import get_settings
from domain.client import Client
from domain.prospect import Prospect
from domain.sale import Sale
from services.lifecycle_service import LifecycleEngine

logger = logging.getLogger(__name__)

GEMINI_BASE_URL = "https://generativelanguage.googleapis.com/v1beta"
NO_ANALYSIS_MESSAGE = "No analysis available at the moment."
SAMPLE_SIZE = 5


def _sample(records: Sequence[Any]) -> str:
    return json.dumps([asdict(r) for r in records[:SAMPLE_SIZE]], default=str, ensure_ascii=False)


def build_insights_prompt(
    sales: Sequence[Sale], prospects: Sequence[Prospect], clients: Sequence[Client]
) -> str:
    return (
        "Analyse the following data and give 3 key recommendations to improve the "
        "sales team's performance.\n\n"
        "Data summary:\n"
        f"- Sales volume: {len(sales)} transactions\n"
        f"- Prospects: {len(prospects)} opportunities\n"
        f"- Client portfolio: {len(clients)} active clients\n\n"
        "Raw data (sample):\n"
        f"Sales: {_sample(sales)}\n"
        f"Prospects: {_sample(prospects)}"
    )


def _system_instruction(app_name: str) -> str:
    return (
        f"As a strategy expert for {app_name}, act as a senior advisor specialised "
        "in African markets."
    )


def _extract_text(body: Any) -> Optional[str]:
    try:
        parts = body["candidates"][0]["content"]["parts"]
    except (KeyError, IndexError, TypeError):
        return None
    text = "".join(str(p.get("text", "")) for p in parts if isinstance(p, dict))
    return text.strip() or None


class InsightsClient:
    def __init__(
        self,
        api_key: Optional[str],
        *,
        model: str = "gemini-1.5-pro",
        timeout: float = 30.0,
        app_name: str = "AFTRAS CRM",
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self._api_key = api_key
        self._model = model
        self._timeout = timeout
        self._app_name = app_name
        self._transport = transport

    @classmethod
    def from_settings(cls) -> "InsightsClient":
        settings = get_settings()
        return cls(
            settings.gemini_api_key,
            model=settings.gemini_model,
            timeout=settings.gemini_timeout_seconds,
            app_name=settings.app_name,
        )

    async def generate_insights(self, prompt: str) -> str:
        if not self._api_key:
            logger.warning("GEMINI_API_KEY is not set; insights unavailable")
            return NO_ANALYSIS_MESSAGE

        payload = {
            "systemInstruction": {"parts": [{"text": _system_instruction(self._app_name)}]},
            "contents": [{"role": "user", "parts": [{"text": prompt}]}],
        }
        url = f"{GEMINI_BASE_URL}/models/{self._model}:generateContent"

        try:
            async with httpx.AsyncClient(timeout=self._timeout, transport=self._transport) as client:
                response = await client.post(url, params={"key": self._api_key}, json=payload)
                response.raise_for_status()
                body = response.json()
        except httpx.TimeoutException as exc:
            logger.error("Insights request timed out", extra={"model": self._model, "error": str(exc)})
            return NO_ANALYSIS_MESSAGE
        except (httpx.HTTPError, ValueError) as exc:
            logger.error("Insights request failed", extra={"model": self._model, "error": str(exc)})
            return NO_ANALYSIS_MESSAGE

        text = _extract_text(body)
        if text is None:
            logger.error("Insights response had no text", extra={"model": self._model})
            return NO_ANALYSIS_MESSAGE
        return text


async def generate_team_insights(engine: LifecycleEngine, client: InsightsClient) -> str:
    sales = await engine.list_sales()
    prospects = await engine.list_prospects()
    clients = await engine.list_clients()
    return await client.generate_insights(build_insights_prompt(sales, prospects, clients))


__all__ = [
    "NO_ANALYSIS_MESSAGE",
    "InsightsClient",
    "build_insights_prompt",
    "generate_team_insights",
]
