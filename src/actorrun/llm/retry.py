"""Retrying LLM provider wrapper.

Wraps any ``LLMProvider`` with exponential-backoff retry so transient
network or rate-limit errors from the planner backend do not fail an
execution outright.
"""

from __future__ import annotations

import logging
import time

from actorrun.llm.base import LLMProvider, LLMResult

logger = logging.getLogger(__name__)

# Exceptions that are safe to retry: transient network / rate-limit issues.
_RETRYABLE_EXCEPTION_NAMES = frozenset({
    "ConnectionError",
    "TimeoutError",
    "ReadTimeout",
    "ConnectTimeout",
    "ConnectError",
    "RemoteProtocolError",
})

_RETRYABLE_STATUS_CODES = frozenset({429, 500, 502, 503, 504})


def _is_retryable(exc: Exception) -> bool:
    """Return True if *exc* looks like a transient error worth retrying."""
    if type(exc).__name__ in _RETRYABLE_EXCEPTION_NAMES:
        return True
    status_code = getattr(exc, "status_code", None) or getattr(
        getattr(exc, "response", None), "status_code", None
    )
    return bool(status_code and status_code in _RETRYABLE_STATUS_CODES)


class RetryingLLMProvider(LLMProvider):
    """Transparent retry wrapper around any ``LLMProvider``.

    Args:
        delegate: The provider to delegate calls to.
        max_retries: Number of retry attempts (0 = pass through).
        base_delay: Base delay in seconds for exponential backoff.
        max_delay: Cap on the backoff delay.
        sleep: Sleep function (injectable for tests).
    """

    def __init__(
        self,
        delegate: LLMProvider,
        *,
        max_retries: int = 3,
        base_delay: float = 1.0,
        max_delay: float = 30.0,
        sleep=time.sleep,
    ) -> None:
        self._delegate = delegate
        self._max_retries = max_retries
        self._base_delay = base_delay
        self._max_delay = max_delay
        self._sleep = sleep
        self.model = getattr(delegate, "model", "")

    def chat(
        self,
        messages: list[dict[str, str]],
        *,
        temperature: float | None = None,
        max_tokens: int | None = None,
        json_mode: bool = False,
    ) -> LLMResult:
        """Send a chat completion request with retry on transient errors."""
        for attempt in range(1, self._max_retries + 2):  # attempt 1 = initial call
            try:
                return self._delegate.chat(
                    messages,
                    temperature=temperature,
                    max_tokens=max_tokens,
                    json_mode=json_mode,
                )
            except Exception as exc:
                if attempt > self._max_retries or not _is_retryable(exc):
                    raise
                delay = min(self._base_delay * (2 ** (attempt - 1)), self._max_delay)
                logger.warning(
                    "LLM call failed (attempt %d/%d): %s, retrying in %.1fs",
                    attempt,
                    self._max_retries + 1,
                    type(exc).__name__,
                    delay,
                )
                self._sleep(delay)
        raise AssertionError("unreachable")

    def check_connectivity(self) -> bool:
        return self._delegate.check_connectivity()

    def close(self) -> None:
        self._delegate.close()
