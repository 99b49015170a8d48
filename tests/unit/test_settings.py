"""Unit tests for actorrun settings.

Covers default loading, env var overrides, the prod profile, and path
resolution.
"""

from __future__ import annotations

import os


class TestSettings:
    """Core settings loading and override mechanics."""

    def test_default_settings_load(self, monkeypatch):
        """Settings should load without any env overrides."""
        monkeypatch.delenv("ACTORRUN_ENV", raising=False)
        from actorrun.settings import get_settings

        s = get_settings()
        assert s.env == "local"
        assert s.llm.provider == "deepseek"
        assert s.capture.settle_ms == 3000
        assert s.planner.cache_ttl_seconds == 1800
        assert s.browser.viewport_width == 1280
        assert s.browser.viewport_height == 800
        assert "Chrome/" in s.browser.user_agent

    def test_env_override(self, monkeypatch):
        """ACTORRUN_LLM__PROVIDER should override the default."""
        monkeypatch.setenv("ACTORRUN_LLM__PROVIDER", "ollama")
        monkeypatch.setenv("ACTORRUN_SANDBOX__TIMEOUT_MS", "500")
        from actorrun.settings.config import Settings

        s = Settings()
        assert s.llm.provider == "ollama"
        assert s.sandbox.timeout_ms == 500

    def test_prod_profile(self, monkeypatch):
        """ACTORRUN_ENV=prod should layer settings.prod.toml over the defaults."""
        monkeypatch.setenv("ACTORRUN_ENV", "prod")
        from actorrun.settings.config import Settings

        s = Settings()
        assert s.env == "prod"
        assert s.planner.cache_backend == "redis"
        assert s.planner.cache_ttl_seconds == 1800
        assert "graphql" in s.capture.url_patterns

    def test_paths_resolved_relative_to_project_root(self):
        from actorrun.settings.config import Settings

        s = Settings()
        assert os.path.isabs(s.storage.sqlite_path)

    def test_get_settings_is_cached(self):
        from actorrun.settings import get_settings

        assert get_settings() is get_settings()
