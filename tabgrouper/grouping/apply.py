"""
Apply boundary: hand a (possibly user-edited) GroupSet to the host browser.

Tabs may close between analysis and apply, so ids are re-checked against the
tabs open now. The host may reject one group; the rest are still applied and
the outcome is reported as counts.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from typing import Protocol

from tabgrouper.grouping.errors import NoTabs, NothingApplied
from tabgrouper.grouping.models import GroupColor, TabGroup
from tabgrouper.observability.logging import get_logger
from tabgrouper.observability.telemetry import counter, log_event

logger = get_logger(__name__)


class TabGroupHost(Protocol):
    """The host browser's native grouping primitive."""

    def group_tabs(self, tab_ids: list[int], name: str, color: GroupColor) -> object: ...


@dataclass(frozen=True)
class ApplyResult:
    applied: int
    failed: int


def reconcile_for_apply(groups: Sequence[TabGroup], open_tab_ids: Iterable[int]) -> list[TabGroup]:
    """
    Keep only ids of tabs that are still open; drop groups left empty.

    An id listed twice (after user edits) stays with the first group.
    """
    still_open = set(open_tab_ids)
    claimed: set[int] = set()
    reconciled = []
    for group in groups:
        kept = []
        for tab_id in group.tab_ids:
            if tab_id in still_open and tab_id not in claimed:
                claimed.add(tab_id)
                kept.append(tab_id)
        if kept:
            reconciled.append(group.model_copy(update={"tab_ids": kept}))
    return reconciled


def apply_groups(
    groups: Sequence[TabGroup],
    open_tab_ids: Sequence[int],
    host: TabGroupHost,
) -> ApplyResult:
    """
    Create one host tab group per reconciled group.

    Raises:
        NoTabs: If no tabs are open
        NothingApplied: If not a single group could be created

    Side Effects:
        - Calls host.group_tabs once per non-empty group
        - Increments groups.apply.* counters
    """
    if not open_tab_ids:
        raise NoTabs("No open tabs found.")

    applied = 0
    failed = 0
    for group in reconcile_for_apply(groups, open_tab_ids):
        try:
            host.group_tabs(list(group.tab_ids), group.name, group.color)
        except Exception as exc:
            # The host rejecting one group must not stop the others
            failed += 1
            counter("groups.apply.failed")
            logger.warning("Failed to create group %r: %s", group.name, exc)
            continue
        applied += 1

    log_event("groups.apply.done", applied=applied, failed=failed)
    if applied == 0:
        raise NothingApplied()
    counter("groups.apply.ok")
    return ApplyResult(applied=applied, failed=failed)
