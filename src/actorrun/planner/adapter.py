"""Content planner adapter.

Turns a natural-language intent into a validated ``PlanningResult`` (target
URL, extraction script, selectors, pagination) by asking the configured
LLM provider. Answers are cached under a deterministic fingerprint of the
planner inputs so repeated intents skip the LLM round-trip.
"""

from __future__ import annotations

import hashlib
import json
import logging
from collections.abc import Mapping
from typing import Any
from urllib.parse import urlparse

from actorrun.exceptions import PlanningError
from actorrun.llm.base import LLMProvider
from actorrun.models.planning import PaginationSpec, PlanningResult
from actorrun.planner.cache import PlanCache
from actorrun.planner.prompts import (
    SCRIPT_PROMPT_TEMPLATE,
    SCRIPT_SYSTEM_PROMPT,
    URL_PROMPT_TEMPLATE,
    URL_SYSTEM_PROMPT,
)

logger = logging.getLogger(__name__)

_URL_TEMPERATURE = 0.1


def fingerprint(prompt: str, context: Mapping[str, Any], options: Mapping[str, Any], prefix: str = "planner:") -> str:
    """Return the cache key for a planner call.

    The key is a sha256 of the canonical JSON encoding of the inputs, so
    dict ordering never changes it.
    """
    canonical = json.dumps(
        {"prompt": prompt, "context": context, "options": options},
        sort_keys=True,
        separators=(",", ":"),
        default=str,
    )
    return prefix + hashlib.sha256(canonical.encode("utf-8")).hexdigest()


def _strip_fences(text: str) -> str:
    """Remove markdown code fences an LLM may wrap around its answer."""
    text = text.strip()
    if text.startswith("```"):
        text = text.split("\n", 1)[1] if "\n" in text else text[3:]
    if text.endswith("```"):
        text = text[: text.rfind("```")]
    return text.strip()


def _is_http_url(value: str) -> bool:
    parsed = urlparse(value)
    return parsed.scheme in ("http", "https") and bool(parsed.netloc)


def _normalize_pagination(raw: Any) -> PaginationSpec | None:
    """Coerce the planner's pagination descriptor; ``None`` when absent."""
    if raw is None:
        return None
    if not isinstance(raw, Mapping):
        raise PlanningError(f"Planner pagination must be an object, got {type(raw).__name__}")

    selector = raw.get("nextPageSelector", raw.get("next_page_selector"))
    if selector is not None and not isinstance(selector, str):
        raise PlanningError("Planner pagination selector must be a string")

    max_pages = raw.get("maxPages", raw.get("max_pages", 1))
    try:
        max_pages = int(max_pages)
    except (TypeError, ValueError):
        max_pages = 1

    return PaginationSpec(next_page_selector=selector or None, max_pages=max(max_pages, 1))


def validate_plan(payload: Any) -> PlanningResult:
    """Validate a raw planner answer.

    Raises:
        PlanningError: If ``url`` or ``script`` is missing or empty, or
            ``selectors`` / ``pagination`` have the wrong shape.
    """
    if not isinstance(payload, Mapping):
        raise PlanningError(f"Planner returned {type(payload).__name__}, expected an object")

    url = payload.get("url")
    script = payload.get("script")
    if not isinstance(url, str) or not url.strip():
        raise PlanningError("Planner result is missing a target url")
    if not isinstance(script, str) or not script.strip():
        raise PlanningError("Planner result is missing an extraction script")

    selectors = payload.get("selectors") or {}
    if not isinstance(selectors, Mapping):
        raise PlanningError("Planner selectors must be an object")

    return PlanningResult(
        url=url.strip(),
        script=script,
        selectors={str(k): str(v) for k, v in selectors.items()},
        pagination=_normalize_pagination(payload.get("pagination")),
    )


class ContentPlanner:
    """LLM-backed planner with a bounded-lifetime answer cache.

    Args:
        provider: LLM provider used for planning calls.
        cache: Plan cache backend.
        ttl_seconds: Lifetime of cached answers.
        key_prefix: Prefix for cache keys.
    """

    def __init__(
        self,
        provider: LLMProvider,
        cache: PlanCache,
        *,
        ttl_seconds: int = 1800,
        key_prefix: str = "planner:",
    ) -> None:
        self.provider = provider
        self.cache = cache
        self.ttl_seconds = ttl_seconds
        self.key_prefix = key_prefix

    @classmethod
    def from_settings(cls) -> ContentPlanner:
        from actorrun.llm.factory import create_llm_provider
        from actorrun.planner.cache import build_plan_cache
        from actorrun.settings import get_settings

        cfg = get_settings().planner
        return cls(
            create_llm_provider(),
            build_plan_cache(),
            ttl_seconds=cfg.cache_ttl_seconds,
            key_prefix=cfg.key_prefix,
        )

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def plan(self, namespace: str, intent: str, context: Mapping[str, Any] | None = None) -> PlanningResult:
        """Propose a URL, extraction script and selectors for *intent*.

        Raises:
            PlanningError: On transport failure, malformed JSON, or an
                answer without a usable url/script.
        """
        context = dict(context or {})
        prompt = SCRIPT_PROMPT_TEMPLATE.format(
            namespace=namespace,
            intent=intent,
            context=json.dumps(context, sort_keys=True, default=str),
        )
        messages = [
            {"role": "system", "content": SCRIPT_SYSTEM_PROMPT},
            {"role": "user", "content": prompt},
        ]
        options = {"model": self.provider.model, "json_mode": True}
        key = fingerprint(prompt, {"namespace": namespace, **context}, options, prefix=self.key_prefix)

        cached = self.cache.get(key)
        if cached is not None:
            logger.debug("Plan cache hit for %s", namespace)
            return validate_plan(cached)

        payload = self._complete_json(messages, json_mode=True)
        result = validate_plan(payload)
        self.cache.set(key, result.model_dump(mode="json"), ttl_seconds=self.ttl_seconds)
        logger.info(
            "Planned %s: url=%s selectors=%d paginated=%s",
            namespace,
            result.url,
            len(result.selectors),
            bool(result.pagination and result.pagination.enabled),
        )
        return result

    def generate_url(self, platform_url: str, intent: str, context: Mapping[str, Any] | None = None) -> str:
        """Rewrite *platform_url*'s query to match *intent*.

        Raises:
            PlanningError: On transport failure or if the answer is not an
                http(s) URL.
        """
        context = dict(context or {})
        prompt = URL_PROMPT_TEMPLATE.format(
            platform_url=platform_url,
            intent=intent,
            context=json.dumps(context, sort_keys=True, default=str),
        )
        messages = [
            {"role": "system", "content": URL_SYSTEM_PROMPT},
            {"role": "user", "content": prompt},
        ]
        options = {"model": self.provider.model, "temperature": _URL_TEMPERATURE}
        key = fingerprint(prompt, {"platformUrl": platform_url, **context}, options, prefix=self.key_prefix)

        cached = self.cache.get(key)
        if cached is not None and isinstance(cached.get("url"), str):
            return cached["url"]

        content = _strip_fences(self._chat(messages, temperature=_URL_TEMPERATURE))
        url = content
        if content.startswith("{"):
            try:
                url = str(json.loads(content).get("url", ""))
            except (json.JSONDecodeError, AttributeError) as exc:
                raise PlanningError(f"Planner returned malformed URL answer: {content[:200]}") from exc
        url = url.strip().strip("\"'<>")

        if not _is_http_url(url):
            raise PlanningError(f"Planner did not return a valid URL: {content[:200]!r}")

        self.cache.set(key, {"url": url}, ttl_seconds=self.ttl_seconds)
        return url

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _chat(self, messages: list[dict[str, str]], **kwargs: Any) -> str:
        try:
            return self.provider.chat(messages, **kwargs).content
        except Exception as exc:
            raise PlanningError(f"Planner call failed: {type(exc).__name__}: {exc}") from exc

    def _complete_json(self, messages: list[dict[str, str]], *, json_mode: bool) -> Any:
        content = _strip_fences(self._chat(messages, json_mode=json_mode))
        try:
            return json.loads(content)
        except json.JSONDecodeError as exc:
            logger.warning("Planner returned non-JSON content: %s", content[:200])
            raise PlanningError("Planner returned malformed JSON") from exc
