"""LLM client — HTTP connection to a structured chat-completion backend.

The turn controller injects an LLM callable matching the protocol:

    async def __call__(self, stage: str, request: ChatRequest) -> str: ...

`stage` identifies why the call is made ("opening" or "turn"). The
implementation may use it for logging; the simplest implementation ignores
it. `request` carries the system instruction, the JSON response schema and
the full turn history ending with the new user message. The return value is
the raw reply text, expected to parse as JSON matching the schema.

HttpLLM is the real client and supports Gemini and OpenAI-compatible
backends, selected by provider_format. Tests use StubLLM (defined in the
test helpers); the backend's demo mode uses DemoNarrator.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Literal, Protocol

import httpx

from quest_narrator.schema import to_json_schema

logger = logging.getLogger(__name__)

GEMINI_URL = "https://generativelanguage.googleapis.com"
DEFAULT_MODEL = "gemini-flash-lite-latest"


# ---------------------------------------------------------------------------
# Request types
# ---------------------------------------------------------------------------

@dataclass
class ChatTurn:
    role: Literal["user", "model"]
    text: str


@dataclass
class ChatRequest:
    system_instruction: str
    response_schema: dict[str, Any]
    turns: list[ChatTurn] = field(default_factory=list)


# ---------------------------------------------------------------------------
# Protocol: every LLM implementation must match this signature
# ---------------------------------------------------------------------------

class LLM(Protocol):
    async def __call__(self, stage: str, request: ChatRequest) -> str: ...


# ---------------------------------------------------------------------------
# HttpLLM: connects to a real backend
# ---------------------------------------------------------------------------

ProviderFormat = Literal["gemini", "openai"]


class HttpLLM:
    """Async HTTP client for structured chat backends.

    Supported formats:
      "gemini"  — POST /v1beta/models/{model}:generateContent
                  {"systemInstruction": ..., "contents": [...],
                   "generationConfig": {"responseMimeType": "application/json",
                                        "responseSchema": ...}}
                  Response: {"candidates": [{"content": {"parts": [{"text": "..."}]}}]}
      "openai"  — POST /v1/chat/completions
                  {"model": ..., "messages": [...], "response_format": {"type": "json_schema", ...}}
                  Response: {"choices": [{"message": {"content": "..."}}]}

    Args:
        provider_url:    Base URL of the backend. Defaults to the public Gemini API.
        api_key:         API key, or empty string if not required.
        provider_format: Wire format to use. Defaults to "gemini".
        model:           Model identifier.
        timeout:         HTTP timeout in seconds. Defaults to 120.
    """

    def __init__(
        self,
        provider_url: str = GEMINI_URL,
        api_key: str = "",
        provider_format: ProviderFormat = "gemini",
        model: str = DEFAULT_MODEL,
        timeout: float = 120.0,
    ) -> None:
        self._base_url = provider_url.rstrip("/")
        self._api_key = api_key
        self._format = provider_format
        self._model = model
        self._timeout = timeout

    def _headers(self) -> dict[str, str]:
        headers: dict[str, str] = {"Content-Type": "application/json"}
        if self._api_key:
            if self._format == "gemini":
                headers["x-goog-api-key"] = self._api_key
            else:
                headers["Authorization"] = f"Bearer {self._api_key}"
        return headers

    def _build_request(self, request: ChatRequest) -> tuple[str, dict]:
        """Return (url, body) for the configured format."""
        if self._format == "openai":
            url = f"{self._base_url}/v1/chat/completions"
            messages = [{"role": "system", "content": request.system_instruction}]
            for turn in request.turns:
                role = "assistant" if turn.role == "model" else "user"
                messages.append({"role": role, "content": turn.text})
            body: dict = {
                "messages": messages,
                "response_format": {
                    "type": "json_schema",
                    "json_schema": {
                        "name": "turn_response",
                        "schema": to_json_schema(request.response_schema),
                    },
                },
            }
            if self._model:
                body["model"] = self._model
            return url, body

        # gemini (default)
        url = f"{self._base_url}/v1beta/models/{self._model}:generateContent"
        return url, {
            "systemInstruction": {"parts": [{"text": request.system_instruction}]},
            "contents": [
                {"role": turn.role, "parts": [{"text": turn.text}]}
                for turn in request.turns
            ],
            "generationConfig": {
                "responseMimeType": "application/json",
                "responseSchema": request.response_schema,
            },
        }

    def _parse_response(self, data: dict) -> str:
        """Extract the reply text from the response body."""
        if self._format == "openai":
            choices = data.get("choices")
            if not choices or "message" not in choices[0]:
                raise LLMError("Unexpected response format from OpenAI-compatible backend")
            return choices[0]["message"].get("content") or ""

        # gemini
        candidates = data.get("candidates")
        if not candidates:
            reason = data.get("promptFeedback", {}).get("blockReason")
            if reason:
                raise LLMError(f"Gemini blocked the request: {reason}")
            raise LLMError("Unexpected response format from Gemini backend")
        parts = candidates[0].get("content", {}).get("parts")
        if parts is None:
            finish = candidates[0].get("finishReason", "unknown")
            raise LLMError(f"Gemini returned no content (finishReason={finish})")
        return "".join(part.get("text", "") for part in parts)

    async def __call__(self, stage: str, request: ChatRequest) -> str:
        url, body = self._build_request(request)
        logger.debug(
            "llm call stage=%s url=%s turns=%d", stage, url, len(request.turns)
        )

        try:
            async with httpx.AsyncClient(timeout=self._timeout) as client:
                resp = await client.post(url, json=body, headers=self._headers())
                resp.raise_for_status()
        except httpx.ConnectError as e:
            raise LLMError(f"Cannot connect to LLM backend at {self._base_url}") from e
        except httpx.HTTPStatusError as e:
            raise LLMError(
                f"LLM backend returned HTTP {e.response.status_code}"
            ) from e
        except httpx.TimeoutException as e:
            raise LLMError(f"LLM backend timed out after {self._timeout}s") from e
        except httpx.HTTPError as e:
            raise LLMError(f"LLM request failed: {e}") from e

        try:
            data = resp.json()
        except ValueError as e:
            raise LLMError("LLM backend returned a non-JSON body") from e
        text = self._parse_response(data)
        logger.debug("llm response stage=%s len=%d", stage, len(text))
        return text


# ---------------------------------------------------------------------------
# LLMError: raised by HttpLLM for all connection and protocol failures
# ---------------------------------------------------------------------------

class LLMError(RuntimeError):
    """Raised when the LLM backend cannot be reached or returns an error."""
