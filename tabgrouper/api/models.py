"""Pydantic request/response models for the TabGrouper API."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field, field_validator

from tabgrouper.config import API_MAX_TABS, DEFAULT_PROVIDER
from tabgrouper.grouping.models import GroupView, Provider, ProviderSettings, Tab, TabGroup


class AnalyzeRequest(BaseModel):
    """Tabs to organize plus optional provider overrides."""

    tabs: list[Tab] = Field(..., max_length=API_MAX_TABS)
    provider: Provider = Provider(DEFAULT_PROVIDER)
    settings: ProviderSettings | None = None

    @field_validator("tabs")
    @classmethod
    def unique_tab_ids(cls, v: list[Tab]) -> list[Tab]:
        ids = [tab.id for tab in v]
        if len(ids) != len(set(ids)):
            raise ValueError("tab ids must be unique within a batch")
        return v


class AnalyzeResponse(BaseModel):
    ok: bool = True
    groups: list[GroupView]


class PendingResponse(BaseModel):
    """Latest analysis result; timestamp is epoch ms of that analysis."""

    ok: bool = True
    groups: list[TabGroup]
    timestamp: int


class DiscardResponse(BaseModel):
    ok: bool = True
    discarded: bool


class ApplyPlanRequest(BaseModel):
    """A (possibly user-edited) GroupSet and the tab ids open right now."""

    model_config = ConfigDict(populate_by_name=True)

    groups: list[TabGroup] = Field(..., max_length=API_MAX_TABS)
    open_tab_ids: list[int] = Field(..., alias="openTabIds", max_length=API_MAX_TABS * 4)


class ApplyPlanResponse(BaseModel):
    ok: bool = True
    groups: list[TabGroup]


class ErrorResponse(BaseModel):
    """Standard error envelope."""

    ok: bool = False
    error: str
    kind: str
    wait_seconds: int | None = None
