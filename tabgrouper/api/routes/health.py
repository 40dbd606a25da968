"""Health check endpoint for the TabGrouper API."""

from __future__ import annotations

import os
from datetime import UTC, datetime
from typing import Any

from fastapi import APIRouter

from tabgrouper.config import API_KEY_ENV_VARS, APP_VERSION, DEFAULT_PROVIDER, OLLAMA_URL_ENV_VAR
from tabgrouper.observability.telemetry import get_counters, get_latency_stats

router = APIRouter(tags=["health"])


@router.get("/health")
async def health_check() -> dict[str, Any]:
    """Health check endpoint.

    Reports which providers have credentials in the environment (presence
    only, never values), analysis outcome counts and provider
    latency. Does not call any provider.
    """
    credentials = {
        provider: any(os.getenv(name) for name in env_vars)
        for provider, env_vars in API_KEY_ENV_VARS.items()
        if env_vars
    }
    credentials["ollama"] = bool(os.getenv(OLLAMA_URL_ENV_VAR))

    return {
        "status": "healthy",
        "service": "TabGrouper API",
        "version": APP_VERSION,
        "timestamp": datetime.now(UTC).isoformat(),
        "default_provider": DEFAULT_PROVIDER,
        "credentials": credentials,
        "analyses": get_counters("groups.analyze."),
        "llm_latency_ms": get_latency_stats("llm.request.latency"),
    }
