from __future__ import annotations
import logging
from typing import Any, Dict, List, Optional

import httpx

from fanplay.config import Config
from fanplay.errors import EngineUnavailableError, MalformedResponseError
from fanplay.models import EngineReply

logger = logging.getLogger(__name__)

# Gemini Developer API (AI Studio) REST base
DEFAULT_GEMINI_BASE = "https://generativelanguage.googleapis.com"


class GeminiGateway:
    """
    Sends one generateContent request per analysis. Never retries: a retry is
    the caller's decision.
    """

    def __init__(
        self,
        api_key: str = None,
        model: str = None,
        base_url: str = None,
        timeout: float = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.api_key = (api_key or Config.GEMINI_API_KEY or "").strip()
        self.model = (model or Config.GEMINI_MODEL).strip()
        self.base_url = (base_url or Config.GEMINI_BASE_URL or DEFAULT_GEMINI_BASE).rstrip("/")
        self.timeout = timeout if timeout is not None else Config.ENGINE_TIMEOUT_SECONDS
        self._transport = transport

        if not self.api_key:
            raise ValueError(
                "GEMINI_API_KEY is required. Please set it in your .env file or environment variables. "
                "Get your API key from: https://aistudio.google.com/apikey"
            )

    @property
    def url(self) -> str:
        # Gemini REST: POST /v1beta/models/{model}:generateContent
        return f"{self.base_url}/v1beta/models/{self.model}:generateContent"

    def build_body(
        self,
        parts: List[Dict[str, Any]],
        instruction: str,
        schema: Dict[str, Any],
        enable_search: bool,
    ) -> Dict[str, Any]:
        body: Dict[str, Any] = {
            "systemInstruction": {"parts": [{"text": instruction}]},
            "contents": [{"role": "user", "parts": parts}],
            "generationConfig": {
                "responseMimeType": "application/json",
                "responseSchema": schema,
            },
        }
        if enable_search:
            body["tools"] = [{"google_search": {}}]
        return body

    async def invoke(
        self,
        parts: List[Dict[str, Any]],
        instruction: str,
        schema: Dict[str, Any],
        enable_search: bool = True,
    ) -> EngineReply:
        body = self.build_body(parts, instruction, schema, enable_search)
        headers = {
            "Content-Type": "application/json",
            # Recommended auth header for Gemini Developer API
            "x-goog-api-key": self.api_key,
        }

        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
                r = await client.post(self.url, json=body, headers=headers)
                r.raise_for_status()
        except httpx.TimeoutException as e:
            logger.error("[GEMINI] Timed out after %ss: %s", self.timeout, e)
            raise EngineUnavailableError(
                "The analysis engine took too long to answer. Please try again."
            ) from e
        except httpx.HTTPStatusError as e:
            logger.error("[GEMINI] HTTP %s from %s", e.response.status_code, self.model)
            raise EngineUnavailableError() from e
        except httpx.HTTPError as e:
            logger.error("[GEMINI] Request failed: %s: %s", type(e).__name__, e)
            raise EngineUnavailableError() from e

        try:
            data = r.json()
        except ValueError as e:
            logger.warning("[GEMINI] Response body is not JSON: %r", r.text[:200])
            raise MalformedResponseError() from e

        return parse_reply(data)


def parse_reply(data: Any) -> EngineReply:
    """Pull the answer text and grounding chunks out of a generateContent response."""
    if not isinstance(data, dict):
        raise MalformedResponseError()

    candidates = data.get("candidates") or []
    if not candidates or not isinstance(candidates[0], dict):
        feedback = data.get("promptFeedback") or {}
        logger.warning("[GEMINI] No candidates in response (promptFeedback=%s)", feedback)
        raise MalformedResponseError()

    cand0 = candidates[0]
    parts = (cand0.get("content") or {}).get("parts") or []
    text = "".join([p.get("text", "") for p in parts if isinstance(p, dict)])

    grounding = cand0.get("groundingMetadata") or {}
    chunks = grounding.get("groundingChunks") or []

    return EngineReply(text=text, grounding_chunks=[c for c in chunks if isinstance(c, dict)])
