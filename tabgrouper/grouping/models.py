"""
Domain models for tab grouping.

Tab is owned by the host browser and only read here. TabGroup is produced
fresh per analysis. GroupCandidate/GroupSetCandidate are the loosely-typed
intermediate shape of an untrusted model answer: they fix the structure
(an object with a groups array whose entries carry a tabIds array)
and leave every value unchecked for the validator to repair.
"""

from __future__ import annotations

import os
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

from tabgrouper.config import (
    API_KEY_ENV_VARS,
    DEFAULT_COOLDOWN_MS,
    MODEL_ENV_VAR,
    OLLAMA_URL_ENV_VAR,
)


class GroupColor(str, Enum):
    """Colors accepted by the host browser's tab group API."""

    BLUE = "blue"
    CYAN = "cyan"
    GREY = "grey"
    GREEN = "green"
    ORANGE = "orange"
    PINK = "pink"
    PURPLE = "purple"
    RED = "red"
    YELLOW = "yellow"


VALID_COLORS: frozenset[str] = frozenset(color.value for color in GroupColor)


class Provider(str, Enum):
    """Supported LLM backends (three hosted, one loopback-local)."""

    CLAUDE = "claude"
    OPENAI = "openai"
    GEMINI = "gemini"
    OLLAMA = "ollama"


class Tab(BaseModel):
    """A browser tab snapshot. Immutable for the duration of one analysis."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    id: int
    title: str = ""
    url: str = ""
    fav_icon_url: str | None = Field(default=None, alias="favIconUrl")

    @field_validator("title", "url", mode="before")
    @classmethod
    def none_to_empty(cls, v: Any) -> Any:
        return "" if v is None else v


class TabGroup(BaseModel):
    """A named, colored group of tab ids."""

    model_config = ConfigDict(populate_by_name=True)

    name: str
    color: GroupColor
    tab_ids: list[int] = Field(alias="tabIds")

    def to_wire(self) -> dict[str, Any]:
        """Serialize using the wire field names (tabIds)."""
        return self.model_dump(by_alias=True, mode="json")


class TabSummary(BaseModel):
    """Display details for one tab inside a group card."""

    model_config = ConfigDict(populate_by_name=True)

    id: int
    title: str = ""
    url: str = ""
    fav_icon_url: str | None = Field(default=None, alias="favIconUrl")


class GroupView(TabGroup):
    """TabGroup plus the tab details a UI needs to render it."""

    tabs: list[TabSummary] = Field(default_factory=list)


class GroupCandidate(BaseModel):
    """One group as proposed by the model. Values are unchecked."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    name: Any = None
    color: Any = None
    tab_ids: list[Any] = Field(alias="tabIds")


class GroupSetCandidate(BaseModel):
    """Proposed groups. May be empty; the parser rejects empty answers."""

    groups: list[GroupCandidate] = Field(default_factory=list)


class ProviderSettings(BaseModel):
    """
    Per-call provider options.

    api_key is required for every hosted provider; base_url is only used by
    the local provider and must resolve to a loopback host. cooldown_ms falls
    back to DEFAULT_COOLDOWN_MS when unset or 0.
    """

    model_config = ConfigDict(populate_by_name=True)

    model: str | None = None
    api_key: str | None = Field(default=None, alias="apiKey")
    base_url: str | None = Field(default=None, alias="baseUrl")
    cooldown_ms: int | None = Field(default=None, alias="cooldownMs", ge=0)

    @field_validator("model", "api_key", "base_url", mode="before")
    @classmethod
    def blank_to_none(cls, v: Any) -> Any:
        if isinstance(v, str):
            v = v.strip()
            return v or None
        return v

    @property
    def effective_cooldown_ms(self) -> int:
        # 0 means "not configured", same as unset
        return self.cooldown_ms or DEFAULT_COOLDOWN_MS

    @classmethod
    def from_env(cls, provider: Provider | str) -> ProviderSettings:
        """
        Build settings from environment variables.

        Side Effects:
            None (reads os.environ only)
        """
        provider_id = Provider(provider).value
        api_key = next(
            (os.environ[name] for name in API_KEY_ENV_VARS.get(provider_id, ()) if os.getenv(name)),
            None,
        )
        base_url = os.getenv(OLLAMA_URL_ENV_VAR) if provider_id == Provider.OLLAMA.value else None
        return cls(model=os.getenv(MODEL_ENV_VAR), api_key=api_key, base_url=base_url)

    def with_overrides(self, overrides: ProviderSettings | None) -> ProviderSettings:
        """Return a copy where every field set on overrides wins."""
        if overrides is None:
            return self
        return self.model_copy(update=overrides.model_dump(exclude_none=True))
