from __future__ import annotations

import pytest
from pydantic import ValidationError

from tabgrouper.api.models import AnalyzeRequest, ApplyPlanRequest
from tabgrouper.config import DEFAULT_COOLDOWN_MS
from tabgrouper.grouping.models import (
    GroupColor,
    GroupSetCandidate,
    Provider,
    ProviderSettings,
    Tab,
    TabGroup,
)


def _tab(**overrides) -> Tab:
    data = {"id": 7, "title": "Docs", "url": "https://docs.example.com"}
    data.update(overrides)
    return Tab.model_validate(data)


def test_tab_accepts_wire_field_names():
    tab = _tab(favIconUrl="https://docs.example.com/favicon.ico")

    assert tab.fav_icon_url == "https://docs.example.com/favicon.ico"


def test_tab_null_title_and_url_become_empty():
    tab = _tab(title=None, url=None)

    assert tab.title == ""
    assert tab.url == ""


def test_tab_is_frozen():
    tab = _tab()

    with pytest.raises(ValidationError):
        tab.title = "changed"


def test_tab_requires_integer_id():
    with pytest.raises(ValidationError):
        _tab(id="abc")


def test_tab_group_wire_shape():
    group = TabGroup(name="Dev", color=GroupColor.BLUE, tab_ids=[1, 2])

    assert group.to_wire() == {"name": "Dev", "color": "blue", "tabIds": [1, 2]}
    assert TabGroup.model_validate(group.to_wire()) == group


def test_tab_group_rejects_unknown_color():
    with pytest.raises(ValidationError):
        TabGroup.model_validate({"name": "Dev", "color": "magenta", "tabIds": [1]})


def test_group_set_candidate_accepts_empty_groups():
    assert GroupSetCandidate.model_validate({"groups": []}).groups == []


def test_group_set_candidate_rejects_entry_without_tab_ids():
    with pytest.raises(ValidationError):
        GroupSetCandidate.model_validate({"groups": [{"name": "Dev"}]})


def test_provider_settings_blank_strings_are_unset():
    settings = ProviderSettings.model_validate({"apiKey": "  ", "model": "", "baseUrl": "\t"})

    assert settings.api_key is None
    assert settings.model is None
    assert settings.base_url is None


def test_provider_settings_cooldown_default_and_zero():
    assert ProviderSettings().effective_cooldown_ms == DEFAULT_COOLDOWN_MS
    assert ProviderSettings(cooldownMs=0).effective_cooldown_ms == DEFAULT_COOLDOWN_MS
    assert ProviderSettings(cooldownMs=2_500).effective_cooldown_ms == 2_500

    with pytest.raises(ValidationError):
        ProviderSettings(cooldownMs=-1)


def test_provider_settings_from_env(monkeypatch):
    monkeypatch.delenv("GEMINI_API_KEY", raising=False)
    monkeypatch.setenv("GOOGLE_API_KEY", "AIza-from-env")
    monkeypatch.setenv("TABGROUPER_MODEL", "gemini-1.5-pro")

    settings = ProviderSettings.from_env(Provider.GEMINI)

    assert settings.api_key == "AIza-from-env"
    assert settings.model == "gemini-1.5-pro"
    assert settings.base_url is None


def test_provider_settings_from_env_local(monkeypatch):
    monkeypatch.delenv("TABGROUPER_MODEL", raising=False)
    monkeypatch.setenv("OLLAMA_URL", "http://localhost:11434")

    settings = ProviderSettings.from_env("ollama")

    assert settings.api_key is None
    assert settings.base_url == "http://localhost:11434"


def test_provider_settings_overrides_win_when_set(monkeypatch):
    monkeypatch.setenv("ANTHROPIC_API_KEY", "sk-env")
    monkeypatch.setenv("TABGROUPER_MODEL", "claude-env-model")

    merged = ProviderSettings.from_env("claude").with_overrides(
        ProviderSettings(api_key="sk-request", cooldownMs=2_000)
    )

    assert merged.api_key == "sk-request"
    assert merged.model == "claude-env-model"
    assert merged.cooldown_ms == 2_000
    assert ProviderSettings(api_key="x").with_overrides(None).api_key == "x"


def test_analyze_request_defaults_and_uniqueness():
    request = AnalyzeRequest.model_validate({"tabs": [{"id": 1}, {"id": 2}]})

    assert request.provider is Provider.CLAUDE
    assert request.settings is None

    with pytest.raises(ValidationError):
        AnalyzeRequest.model_validate({"tabs": [{"id": 1}, {"id": 1}]})


def test_analyze_request_rejects_unknown_provider():
    with pytest.raises(ValidationError):
        AnalyzeRequest.model_validate({"tabs": [{"id": 1}], "provider": "mistral"})


def test_apply_plan_request_aliases():
    request = ApplyPlanRequest.model_validate(
        {"groups": [{"name": "A", "color": "red", "tabIds": [1]}], "openTabIds": [1, 2]}
    )

    assert request.open_tab_ids == [1, 2]
    assert request.groups[0].tab_ids == [1]
