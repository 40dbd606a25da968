"""
Group validator & repairer.

validate_groups() never fails. Whatever the model proposed, the result is a
total, disjoint partition of the input tab ids:

1. Unknown colors become grey.
2. Groups are walked in order; each keeps only ids that are in the input
   and not already claimed by an earlier group (first claim wins).
3. Groups left empty are dropped.
4. Unclaimed input ids go to a trailing grey "Other" group, in input order.

The 2-8 group count the prompt asks for is advisory and not enforced here.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from typing import Any

from tabgrouper.config import OTHER_GROUP_NAME, UNTITLED_GROUP_NAME
from tabgrouper.grouping.models import VALID_COLORS, GroupColor, GroupSetCandidate, TabGroup
from tabgrouper.observability.telemetry import counter, log_event


@dataclass
class RepairStats:
    coerced_colors: int = 0
    unknown_ids: int = 0
    duplicate_ids: int = 0
    purged_groups: int = 0
    orphans: int = 0

    @property
    def repaired(self) -> bool:
        return any(
            (self.coerced_colors, self.unknown_ids, self.duplicate_ids, self.purged_groups, self.orphans)
        )


def coerce_color(value: Any) -> GroupColor:
    if isinstance(value, str) and value in VALID_COLORS:
        return GroupColor(value)
    return GroupColor.GREY


def coerce_name(value: Any) -> str:
    if isinstance(value, str) and value.strip():
        return value
    return UNTITLED_GROUP_NAME


def coerce_tab_id(value: Any) -> int | None:
    """Integral JSON numbers only; 3.0 counts as 3, "3" and true do not."""
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float) and value.is_integer():
        return int(value)
    return None


def validate_groups(
    candidate: GroupSetCandidate,
    all_tab_ids: Sequence[int],
    stats: RepairStats | None = None,
) -> list[TabGroup]:
    """
    Repair a parsed model answer into a valid GroupSet.

    Args:
        candidate: Parsed (structurally valid) model answer
        all_tab_ids: Every tab id in the analysis batch, in input order
        stats: Optional accumulator for what was repaired

    Returns:
        Groups in model order, synthetic "Other" group last if needed

    Side Effects:
        - Increments groups.validator.* counters
        - Writes a groups.validator.repaired event when anything changed
    """
    stats = stats if stats is not None else RepairStats()
    known = set(all_tab_ids)
    claimed: set[int] = set()
    groups: list[TabGroup] = []

    for proposed in candidate.groups:
        color = coerce_color(proposed.color)
        if color.value != proposed.color:
            stats.coerced_colors += 1

        kept: list[int] = []
        for raw_id in proposed.tab_ids:
            tab_id = coerce_tab_id(raw_id)
            if tab_id is None or tab_id not in known:
                stats.unknown_ids += 1
                continue
            if tab_id in claimed:
                stats.duplicate_ids += 1
                continue
            claimed.add(tab_id)
            kept.append(tab_id)

        if not kept:
            stats.purged_groups += 1
            continue

        groups.append(TabGroup(name=coerce_name(proposed.name), color=color, tab_ids=kept))

    orphans = [tab_id for tab_id in dict.fromkeys(all_tab_ids) if tab_id not in claimed]
    if orphans:
        stats.orphans = len(orphans)
        groups.append(TabGroup(name=OTHER_GROUP_NAME, color=GroupColor.GREY, tab_ids=orphans))

    if stats.repaired:
        counter("groups.validator.repaired")
        log_event(
            "groups.validator.repaired",
            coerced_colors=stats.coerced_colors,
            unknown_ids=stats.unknown_ids,
            duplicate_ids=stats.duplicate_ids,
            purged_groups=stats.purged_groups,
            orphans=stats.orphans,
        )

    return groups
