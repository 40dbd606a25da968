"""Centralized configuration for the TabGrouper backend.

Typed constants for providers, the analysis cooldown, transport, logging and
API settings. Environment variable overrides use safe defaults so the app
starts without extra env configuration.
"""

from __future__ import annotations

import os


def _env(key: str, default: str) -> str:
    """Read a TABGROUPER_* env var, treating blank values as unset."""
    value = os.getenv(key, "").strip()
    return value or default


# Environment
ENV = _env("TABGROUPER_ENV", "development")
DEBUG = ENV == "development"

# --- App ---
APP_VERSION: str = "0.3.0"
API_HOST: str = _env("API_HOST", "127.0.0.1")
API_PORT: int = int(_env("API_PORT", "8765"))
LOG_LEVEL: str = _env("TABGROUPER_LOG_LEVEL", "INFO")

# --- Analysis ---
DEFAULT_PROVIDER: str = _env("TABGROUPER_PROVIDER", "claude")
DEFAULT_COOLDOWN_MS: int = int(_env("TABGROUPER_COOLDOWN_MS", "10000"))
OTHER_GROUP_NAME: str = "Other"
UNTITLED_GROUP_NAME: str = "Untitled"

# --- LLM ---
LLM_MAX_TOKENS: int = int(_env("TABGROUPER_LLM_MAX_TOKENS", "1024"))
LLM_TIMEOUT_SECONDS: float = float(_env("TABGROUPER_LLM_TIMEOUT", "60"))
ERROR_BODY_PREVIEW_CHARS: int = 200

ANTHROPIC_URL: str = "https://api.anthropic.com/v1/messages"
ANTHROPIC_VERSION: str = "2023-06-01"
OPENAI_URL: str = "https://api.openai.com/v1/chat/completions"
GEMINI_URL_TEMPLATE: str = (
    "https://generativelanguage.googleapis.com/v1beta/models/{model}:generateContent"
)

DEFAULT_MODELS: dict[str, str] = {
    "claude": "claude-haiku-4-5-20251001",
    "openai": "gpt-4o-mini",
    "gemini": "gemini-2.0-flash",
    "ollama": "llama3.2",
}

# Env vars consulted by ProviderSettings.from_env (first non-empty wins)
API_KEY_ENV_VARS: dict[str, tuple[str, ...]] = {
    "claude": ("ANTHROPIC_API_KEY",),
    "openai": ("OPENAI_API_KEY",),
    "gemini": ("GEMINI_API_KEY", "GOOGLE_API_KEY"),
    "ollama": (),
}
OLLAMA_URL_ENV_VAR: str = "OLLAMA_URL"
MODEL_ENV_VAR: str = "TABGROUPER_MODEL"

# --- Rate Limiting (API) ---
RATE_LIMIT_RPM: int = int(_env("TABGROUPER_RATE_LIMIT_RPM", "30"))
RATE_LIMIT_MAX_CLIENTS: int = 1000

# --- API ---
API_MAX_TABS: int = 500
ALLOWED_ORIGINS: list[str] = [
    origin.strip()
    for origin in _env("TABGROUPER_ALLOWED_ORIGINS", "").split(",")
    if origin.strip()
]
DEV_ORIGINS: list[str] = [
    "http://localhost:3000",
    "http://127.0.0.1:3000",
    "http://localhost:8765",
    "http://127.0.0.1:8765",
]
