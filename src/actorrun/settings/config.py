"""Configuration loader for actorrun using Pydantic settings.

Config precedence (highest wins):
  1. CLI flags (where applicable)
  2. Environment variables (ACTORRUN_* with __ for nesting)
  3. settings.local.toml
  4. settings.<env>.toml
  5. settings.default.toml
"""

from __future__ import annotations

import os
import tomllib
from functools import lru_cache
from pathlib import Path
from typing import Any

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

# ---------------------------------------------------------------------------
# Path helpers
# ---------------------------------------------------------------------------

_THIS_DIR = Path(__file__).resolve().parent
PROJECT_ROOT = Path(os.getenv("ACTORRUN_PROJECT_ROOT", _THIS_DIR.parents[2]))
CONFIG_DIR = PROJECT_ROOT / "config"

ENV_VAR_NAME = "ACTORRUN_ENV"
DEFAULT_ENV = "local"

DEFAULT_USER_AGENT = (
    "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/108.0.0.0 Safari/537.36"
)


def _resolve_env() -> str:
    return (os.getenv(ENV_VAR_NAME) or DEFAULT_ENV).strip()


def _load_toml(path: Path) -> dict[str, Any]:
    if path.is_file():
        with open(path, "rb") as f:
            return tomllib.load(f)
    return {}


# ---------------------------------------------------------------------------
# Section models
# ---------------------------------------------------------------------------


class BrowserSettings(BaseSettings):
    """Shared Chromium process settings."""

    model_config = SettingsConfigDict(env_prefix="ACTORRUN_BROWSER__")

    headless: bool = True
    executable_path: str = ""
    args: list[str] = Field(
        default_factory=lambda: [
            "--disable-gpu",
            "--disable-dev-shm-usage",
            "--disable-setuid-sandbox",
            "--no-sandbox",
        ]
    )
    viewport_width: int = 1280
    viewport_height: int = 800
    user_agent: str = DEFAULT_USER_AGENT


class CaptureSettings(BaseSettings):
    """Network response capture settings."""

    model_config = SettingsConfigDict(env_prefix="ACTORRUN_CAPTURE__")

    url_patterns: list[str] = Field(default_factory=lambda: ["/api/"])
    methods: list[str] = Field(default_factory=lambda: ["GET", "POST"])
    navigation_timeout_ms: int = 60_000
    settle_ms: int = 3_000


class SandboxSettings(BaseSettings):
    """Extraction script sandbox settings."""

    model_config = SettingsConfigDict(env_prefix="ACTORRUN_SANDBOX__")

    timeout_ms: int = 30_000


class PaginationSettings(BaseSettings):
    """Pagination traversal settings."""

    model_config = SettingsConfigDict(env_prefix="ACTORRUN_PAGINATION__")

    navigation_timeout_ms: int = 30_000
    max_pages_limit: int = 50


class ScrapeSettings(BaseSettings):
    """Selector scrape settings."""

    model_config = SettingsConfigDict(env_prefix="ACTORRUN_SCRAPE__")

    navigation_timeout_ms: int = 30_000
    selector_timeout_ms: int = 5_000
    cache_ttl_seconds: int = 3600
    key_prefix: str = "scrape:"


class LLMSettings(BaseSettings):
    """LLM provider configuration for the content planner."""

    model_config = SettingsConfigDict(env_prefix="ACTORRUN_LLM__")

    provider: str = "deepseek"
    model: str = "deepseek-chat"
    api_key: str = ""
    deepseek_base_url: str = "https://api.deepseek.com"
    ollama_base_url: str = "http://localhost:11434"
    temperature: float = 0.2
    max_tokens: int = 5000
    timeout_sec: float = 120.0
    max_retries: int = 3


class PlannerSettings(BaseSettings):
    """Content planner cache settings."""

    model_config = SettingsConfigDict(env_prefix="ACTORRUN_PLANNER__")

    cache_backend: str = "memory"  # memory | redis
    cache_ttl_seconds: int = 1800
    redis_url: str = "redis://localhost:6379/0"
    key_prefix: str = "planner:"


class StorageSettings(BaseSettings):
    """Actor / execution persistence settings."""

    model_config = SettingsConfigDict(env_prefix="ACTORRUN_STORAGE__")

    sqlite_path: str = "data/actorrun.db"
    database_url: str = ""


class APISettings(BaseSettings):
    """API server configuration."""

    model_config = SettingsConfigDict(env_prefix="ACTORRUN_API__")

    host: str = "0.0.0.0"
    port: int = 8200
    cors_origins: list[str] = ["http://localhost:3000"]


# ---------------------------------------------------------------------------
# Root settings
# ---------------------------------------------------------------------------


class Settings(BaseSettings):
    """Root actorrun settings with nested sections."""

    model_config = SettingsConfigDict(
        env_prefix="ACTORRUN_",
        env_nested_delimiter="__",
        extra="ignore",
    )

    env: str = Field(default_factory=_resolve_env)
    project_root: Path = Field(default=PROJECT_ROOT)
    debug: bool = False
    log_level: str = "INFO"

    browser: BrowserSettings = Field(default_factory=BrowserSettings)
    capture: CaptureSettings = Field(default_factory=CaptureSettings)
    sandbox: SandboxSettings = Field(default_factory=SandboxSettings)
    pagination: PaginationSettings = Field(default_factory=PaginationSettings)
    scrape: ScrapeSettings = Field(default_factory=ScrapeSettings)
    llm: LLMSettings = Field(default_factory=LLMSettings)
    planner: PlannerSettings = Field(default_factory=PlannerSettings)
    storage: StorageSettings = Field(default_factory=StorageSettings)
    api: APISettings = Field(default_factory=APISettings)

    @model_validator(mode="before")
    @classmethod
    def _merge_toml_files(cls, values: dict[str, Any]) -> dict[str, Any]:
        """Layer TOML config files before env var overrides."""
        defaults = _load_toml(CONFIG_DIR / "settings.default.toml")
        env_name = (values.get("env") or os.getenv(ENV_VAR_NAME) or DEFAULT_ENV).strip()
        env_overrides = _load_toml(CONFIG_DIR / f"settings.{env_name}.toml")
        local_overrides = _load_toml(CONFIG_DIR / "settings.local.toml")

        # Merge: defaults < env-specific < local < explicit values
        merged: dict[str, Any] = {}
        for layer in (defaults, env_overrides, local_overrides, values):
            for key, val in layer.items():
                if isinstance(val, dict) and isinstance(merged.get(key), dict):
                    merged[key] = {**merged[key], **val}
                else:
                    merged[key] = val
        return merged

    @model_validator(mode="after")
    def _resolve_paths(self) -> "Settings":
        """Normalize relative paths against project_root."""
        if not Path(self.storage.sqlite_path).is_absolute():
            self.storage.sqlite_path = str(self.project_root / self.storage.sqlite_path)
        return self


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return the singleton settings instance (cached)."""
    return Settings()
