"""LLM provider abstraction backing the content planner.

Supports ``deepseek`` (OpenAI-compatible chat completions) and ``ollama``
(local) backends through a unified interface.
"""

from actorrun.llm.base import LLMProvider, LLMResult
from actorrun.llm.factory import create_llm_provider

__all__ = ["LLMProvider", "LLMResult", "create_llm_provider"]
