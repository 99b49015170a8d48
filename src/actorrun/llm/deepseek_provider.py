"""DeepSeek LLM provider (OpenAI-compatible ``/v1/chat/completions``)."""

from __future__ import annotations

import logging
import time

import httpx

from actorrun.llm.base import LLMProvider, LLMResult

logger = logging.getLogger(__name__)


class DeepSeekProvider(LLMProvider):
    """LLM provider backed by the DeepSeek chat completions API.

    Args:
        api_key: Bearer token for the API.
        base_url: API root (e.g. ``https://api.deepseek.com``).
        model: Model name (e.g. ``deepseek-chat``).
        temperature: Default sampling temperature.
        max_tokens: Default max generation tokens.
        timeout_sec: HTTP timeout per request.
    """

    def __init__(
        self,
        api_key: str,
        base_url: str = "https://api.deepseek.com",
        model: str = "deepseek-chat",
        temperature: float = 0.2,
        max_tokens: int = 5000,
        timeout_sec: float = 120.0,
    ) -> None:
        if not api_key:
            logger.warning("DeepSeek API key is not configured; planner calls will fail.")
        self.base_url = base_url.rstrip("/")
        self.model = model
        self.temperature = temperature
        self.max_tokens = max_tokens
        self._client = httpx.Client(
            timeout=timeout_sec,
            headers={"Authorization": f"Bearer {api_key}", "Content-Type": "application/json"},
        )
        self._has_key = bool(api_key)

    def chat(
        self,
        messages: list[dict[str, str]],
        *,
        temperature: float | None = None,
        max_tokens: int | None = None,
        json_mode: bool = False,
    ) -> LLMResult:
        """Send a chat completion request to DeepSeek."""
        if not self._has_key:
            raise RuntimeError("DeepSeek API key is not configured")

        payload: dict = {
            "model": self.model,
            "messages": messages,
            "temperature": temperature if temperature is not None else self.temperature,
            "max_tokens": max_tokens if max_tokens is not None else self.max_tokens,
        }
        if json_mode:
            payload["response_format"] = {"type": "json_object"}

        start = time.monotonic()
        try:
            resp = self._client.post(f"{self.base_url}/v1/chat/completions", json=payload)
            resp.raise_for_status()
            body = resp.json()
        except httpx.HTTPStatusError as e:
            logger.error("DeepSeek HTTP error: %s %s", e.response.status_code, e.response.text[:500])
            raise

        latency_ms = (time.monotonic() - start) * 1000
        choices = body.get("choices") or [{}]
        usage = body.get("usage") or {}

        return LLMResult(
            content=choices[0].get("message", {}).get("content", "") or "",
            input_tokens=usage.get("prompt_tokens", 0),
            output_tokens=usage.get("completion_tokens", 0),
            latency_ms=latency_ms,
            model=self.model,
            raw_response=body,
        )

    def check_connectivity(self) -> bool:
        """Return ``True`` if the models endpoint answers with our key."""
        if not self._has_key:
            return False
        try:
            return self._client.get(f"{self.base_url}/models").status_code == 200
        except httpx.HTTPError:
            return False

    def close(self) -> None:
        self._client.close()
