"""Tab grouping endpoints: analyze, pending result (read or discard), apply plan."""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter
from fastapi.responses import JSONResponse

from tabgrouper.api.models import (
    AnalyzeRequest,
    AnalyzeResponse,
    ApplyPlanRequest,
    ApplyPlanResponse,
    DiscardResponse,
    ErrorResponse,
    PendingResponse,
)
from tabgrouper.grouping.apply import reconcile_for_apply
from tabgrouper.grouping.errors import NothingApplied
from tabgrouper.grouping.models import ProviderSettings
from tabgrouper.grouping.service import describe_groups, get_grouping_service
from tabgrouper.observability.telemetry import log_event

router = APIRouter(prefix="/api/groups", tags=["groups"])


@router.post("/analyze", response_model=AnalyzeResponse)
async def analyze_tabs(request: AnalyzeRequest) -> dict[str, Any]:
    """Ask the configured provider to group the given tabs.

    Settings omitted from the request fall back to environment credentials.

    Side Effects:
        - Records the analysis timestamp (cooldown gate)
        - Calls the LLM provider once
        - Replaces the pending result
    """
    settings = ProviderSettings.from_env(request.provider).with_overrides(request.settings)
    groups = await get_grouping_service().analyze(request.tabs, request.provider, settings)
    return {"ok": True, "groups": describe_groups(groups, request.tabs)}


@router.get(
    "/pending",
    response_model=PendingResponse,
    responses={404: {"model": ErrorResponse}},
)
async def get_pending_groups() -> Any:
    """Return the result of the latest successful analysis, if any.

    The timestamp lets a client show how old the result is.
    """
    pending = get_grouping_service().session.pending
    if pending is None:
        return JSONResponse(
            status_code=404,
            content={"ok": False, "error": "No pending analysis.", "kind": "no_pending"},
        )
    return {"ok": True, "groups": pending.groups, "timestamp": pending.timestamp}


@router.delete("/pending", response_model=DiscardResponse)
async def discard_pending_groups() -> dict[str, Any]:
    """Discard the pending result (the user dismissed the proposed groups).

    Side Effects:
        - Empties the session's pending slot
    """
    discarded = get_grouping_service().session.clear_pending()
    log_event("groups.pending.discarded", discarded=discarded)
    return {"ok": True, "discarded": discarded}


@router.post(
    "/apply-plan",
    response_model=ApplyPlanResponse,
    responses={409: {"model": ErrorResponse}},
)
async def build_apply_plan(request: ApplyPlanRequest) -> dict[str, Any]:
    """Reconcile groups against the tabs that are still open."""
    groups = reconcile_for_apply(request.groups, request.open_tab_ids)
    if not groups:
        raise NothingApplied()
    return {"ok": True, "groups": groups}
