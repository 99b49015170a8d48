"""Factory for creating LLM provider instances from settings."""

from __future__ import annotations

import logging

from actorrun.llm.base import LLMProvider

logger = logging.getLogger(__name__)


def create_llm_provider(provider: str | None = None) -> LLMProvider:
    """Create an LLM provider from settings or an explicit provider name.

    The returned provider is wrapped with ``RetryingLLMProvider``.

    Args:
        provider: Override provider name (``deepseek`` or ``ollama``).
            If None, reads ``get_settings().llm.provider``.

    Raises:
        ValueError: If the provider name is not recognized.
    """
    from actorrun.llm.retry import RetryingLLMProvider
    from actorrun.settings import get_settings

    llm = get_settings().llm
    provider_name = (provider or llm.provider).lower().strip()

    base: LLMProvider

    if provider_name == "deepseek":
        from actorrun.llm.deepseek_provider import DeepSeekProvider

        base = DeepSeekProvider(
            api_key=llm.api_key,
            base_url=llm.deepseek_base_url,
            model=llm.model,
            temperature=llm.temperature,
            max_tokens=llm.max_tokens,
            timeout_sec=llm.timeout_sec,
        )

    elif provider_name == "ollama":
        from actorrun.llm.ollama_provider import OllamaProvider

        base = OllamaProvider(
            base_url=llm.ollama_base_url,
            model=llm.model,
            temperature=llm.temperature,
            max_tokens=llm.max_tokens,
            timeout_sec=llm.timeout_sec,
        )

    else:
        raise ValueError(f"Unknown LLM provider: {provider_name!r}. Supported: deepseek, ollama")

    logger.info("Created LLM provider: provider=%s model=%s", provider_name, llm.model)
    return RetryingLLMProvider(base, max_retries=llm.max_retries, base_delay=1.0)
