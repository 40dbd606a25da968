"""
Provider adapters: canonical (system prompt, tabs) in, provider HTTP request out;
provider HTTP response in, canonical response text out.

Each supported backend is one ProviderAdapter subclass registered in
_ADAPTERS. Adding a provider means adding one class and one registry entry;
nothing in the grouping core branches on the provider id.
"""

from __future__ import annotations

import ipaddress
from abc import ABC, abstractmethod
from collections.abc import Sequence
from dataclasses import dataclass, field
from typing import Any
from urllib.parse import quote, urlencode, urlsplit

from tabgrouper.config import (
    ANTHROPIC_URL,
    ANTHROPIC_VERSION,
    DEFAULT_MODELS,
    GEMINI_URL_TEMPLATE,
    LLM_MAX_TOKENS,
    OPENAI_URL,
)
from tabgrouper.grouping.errors import ConfigError, EmptyResponse
from tabgrouper.grouping.models import Provider, ProviderSettings, Tab
from tabgrouper.llm.prompts import build_user_message

JSON_HEADERS = {"Content-Type": "application/json"}


@dataclass(frozen=True)
class ProviderRequest:
    """A fully shaped provider call: POST body to url with headers."""

    url: str
    headers: dict[str, str] = field(default_factory=dict)
    body: dict[str, Any] = field(default_factory=dict)


def _dig(value: Any, *path: str | int) -> Any:
    """Walk nested dicts/lists, returning None as soon as a step is missing."""
    for step in path:
        if isinstance(step, int):
            if not isinstance(value, list) or len(value) <= step:
                return None
        elif not isinstance(value, dict):
            return None
        value = value[step] if isinstance(step, int) else value.get(step)
    return value


def _chat_messages(system_prompt: str, user_message: str) -> list[dict[str, str]]:
    return [
        {"role": "system", "content": system_prompt},
        {"role": "user", "content": user_message},
    ]


class ProviderAdapter(ABC):
    """Request shaping and response unwrapping for one LLM backend."""

    provider: Provider
    requires_api_key: bool = True

    def check_settings(self, settings: ProviderSettings) -> None:
        """Raise ConfigError when a call cannot be attempted with these settings."""
        if self.requires_api_key and not settings.api_key:
            raise ConfigError("No API key configured. Open extension settings.")

    def resolve_model(self, settings: ProviderSettings) -> str:
        return settings.model or DEFAULT_MODELS[self.provider.value]

    @abstractmethod
    def build_request(
        self, settings: ProviderSettings, system_prompt: str, tabs: Sequence[Tab]
    ) -> ProviderRequest:
        """Shape the provider-specific request."""

    @abstractmethod
    def _response_text(self, raw: Any) -> Any:
        """Locate the answer text in the provider's response body."""

    def extract_text(self, raw: Any) -> str:
        """
        Unwrap the model's answer text.

        Raises:
            EmptyResponse: If the field is absent, not a string, or blank
        """
        text = self._response_text(raw)
        if not isinstance(text, str) or not text.strip():
            raise EmptyResponse()
        return text


class AnthropicAdapter(ProviderAdapter):
    """Messages API: separate system field, text at content[0].text."""

    provider = Provider.CLAUDE

    def build_request(
        self, settings: ProviderSettings, system_prompt: str, tabs: Sequence[Tab]
    ) -> ProviderRequest:
        return ProviderRequest(
            url=ANTHROPIC_URL,
            headers={
                **JSON_HEADERS,
                "x-api-key": settings.api_key or "",
                "anthropic-version": ANTHROPIC_VERSION,
            },
            body={
                "model": self.resolve_model(settings),
                "max_tokens": LLM_MAX_TOKENS,
                "system": system_prompt,
                "messages": [{"role": "user", "content": build_user_message(tabs)}],
            },
        )

    def _response_text(self, raw: Any) -> Any:
        return _dig(raw, "content", 0, "text")


class OpenAIAdapter(ProviderAdapter):
    """Chat completions: system prompt as a system-role message."""

    provider = Provider.OPENAI

    def build_request(
        self, settings: ProviderSettings, system_prompt: str, tabs: Sequence[Tab]
    ) -> ProviderRequest:
        return ProviderRequest(
            url=OPENAI_URL,
            headers={**JSON_HEADERS, "Authorization": f"Bearer {settings.api_key}"},
            body={
                "model": self.resolve_model(settings),
                "max_tokens": LLM_MAX_TOKENS,
                "messages": _chat_messages(system_prompt, build_user_message(tabs)),
            },
        )

    def _response_text(self, raw: Any) -> Any:
        return _dig(raw, "choices", 0, "message", "content")


class GeminiAdapter(ProviderAdapter):
    """generateContent: systemInstruction + contents, key as a query parameter."""

    provider = Provider.GEMINI

    def build_request(
        self, settings: ProviderSettings, system_prompt: str, tabs: Sequence[Tab]
    ) -> ProviderRequest:
        model = quote(self.resolve_model(settings), safe="-._")
        url = GEMINI_URL_TEMPLATE.format(model=model)
        return ProviderRequest(
            url=f"{url}?{urlencode({'key': settings.api_key or ''})}",
            headers=dict(JSON_HEADERS),
            body={
                "systemInstruction": {"parts": [{"text": system_prompt}]},
                "contents": [{"role": "user", "parts": [{"text": build_user_message(tabs)}]}],
                "generationConfig": {"maxOutputTokens": LLM_MAX_TOKENS},
            },
        )

    def _response_text(self, raw: Any) -> Any:
        return _dig(raw, "candidates", 0, "content", "parts", 0, "text")


def loopback_base_url(base_url: str) -> str:
    """
    Validate a local-model base URL and return it without a trailing slash.

    Raises:
        ConfigError: If the URL is not http(s) or its host is not loopback
    """
    parts = urlsplit(base_url)
    host = parts.hostname
    if parts.scheme not in ("http", "https") or not host:
        raise ConfigError("Ollama URL must be an http(s) URL.")

    if host.lower() != "localhost":
        try:
            is_loopback = ipaddress.ip_address(host).is_loopback
        except ValueError:
            is_loopback = False
        if not is_loopback:
            raise ConfigError("Ollama URL must point to a loopback host.")

    return base_url.rstrip("/")


class OllamaAdapter(ProviderAdapter):
    """Local chat API: OpenAI-style messages, stream disabled, no key header."""

    provider = Provider.OLLAMA
    requires_api_key = False

    def check_settings(self, settings: ProviderSettings) -> None:
        if not settings.base_url:
            raise ConfigError("No Ollama URL configured. Open extension settings.")
        loopback_base_url(settings.base_url)

    def build_request(
        self, settings: ProviderSettings, system_prompt: str, tabs: Sequence[Tab]
    ) -> ProviderRequest:
        self.check_settings(settings)
        base = loopback_base_url(settings.base_url or "")
        return ProviderRequest(
            url=f"{base}/api/chat",
            headers=dict(JSON_HEADERS),
            body={
                "model": self.resolve_model(settings),
                "stream": False,
                "messages": _chat_messages(system_prompt, build_user_message(tabs)),
            },
        )

    def _response_text(self, raw: Any) -> Any:
        return _dig(raw, "message", "content")


_ADAPTERS: dict[Provider, ProviderAdapter] = {
    adapter.provider: adapter
    for adapter in (AnthropicAdapter(), OpenAIAdapter(), GeminiAdapter(), OllamaAdapter())
}


def get_adapter(provider: Provider | str) -> ProviderAdapter:
    """
    Resolve the adapter for a provider id.

    Raises:
        ConfigError: If the provider id is unknown
    """
    try:
        return _ADAPTERS[Provider(provider)]
    except ValueError as exc:
        raise ConfigError(f"Unknown provider: {provider}") from exc
