"""
Analysis gate and session state.

The gate enforces a cooldown between analysis calls. check_and_record() is a
plain (non-async) method: the check and the timestamp update happen with no
await in between, so a second request scheduled on the same event loop
always observes the first request's timestamp and fails fast with TooSoon
instead of racing it to the provider.
"""

from __future__ import annotations

import math
import time
from collections.abc import Callable
from dataclasses import dataclass

from tabgrouper.config import DEFAULT_COOLDOWN_MS
from tabgrouper.grouping.errors import TooSoon
from tabgrouper.grouping.models import TabGroup
from tabgrouper.observability.telemetry import counter, log_event


def now_ms() -> int:
    return int(time.time() * 1000)


def remaining_wait_seconds(last_analysis_ms: int | None, cooldown_ms: int, current_ms: int) -> int:
    """Whole seconds (rounded up) left in the cooldown window; 0 when open."""
    if last_analysis_ms is None:
        return 0
    elapsed = current_ms - last_analysis_ms
    if elapsed >= cooldown_ms:
        return 0
    return math.ceil((cooldown_ms - elapsed) / 1000)


class AnalysisGate:
    """Cooldown gate with one last-analysis timestamp."""

    def __init__(
        self,
        cooldown_ms: int = DEFAULT_COOLDOWN_MS,
        clock: Callable[[], int] = now_ms,
    ) -> None:
        self.cooldown_ms = cooldown_ms
        self.clock = clock
        self.last_analysis_ms: int | None = None

    def check_and_record(self, cooldown_ms: int | None = None, current_ms: int | None = None) -> int:
        """
        Admit one analysis or reject it.

        Args:
            cooldown_ms: Per-call cooldown override (defaults to the gate's)
            current_ms: Current time in epoch milliseconds (defaults to clock())

        Returns:
            The timestamp recorded for the admitted call

        Raises:
            TooSoon: If the previous admitted call is inside the cooldown window

        Side Effects:
            Overwrites last_analysis_ms before any network call starts
        """
        cooldown = self.cooldown_ms if cooldown_ms is None else cooldown_ms
        current = self.clock() if current_ms is None else current_ms

        wait = remaining_wait_seconds(self.last_analysis_ms, cooldown, current)
        if wait > 0:
            counter("groups.gate.too_soon")
            log_event("groups.gate.too_soon", wait_seconds=wait)
            raise TooSoon(wait)

        self.last_analysis_ms = current
        return current


@dataclass(frozen=True)
class PendingAnalysis:
    """The latest successful analysis and when it was admitted (epoch ms)."""

    groups: list[TabGroup]
    timestamp: int


class AnalysisSession:
    """
    Process-wide analysis state: the gate plus the pending result slot.

    The pending slot holds the latest successful analysis until the caller
    discards it. A new analysis overwrites it.
    """

    def __init__(self, gate: AnalysisGate | None = None) -> None:
        self.gate = gate or AnalysisGate()
        self._pending: PendingAnalysis | None = None

    @property
    def pending(self) -> PendingAnalysis | None:
        return self._pending

    def store_pending(self, groups: list[TabGroup], timestamp: int) -> PendingAnalysis:
        self._pending = PendingAnalysis(groups=list(groups), timestamp=timestamp)
        return self._pending

    def clear_pending(self) -> bool:
        """Discard the pending result. Returns whether there was one."""
        had_pending = self._pending is not None
        self._pending = None
        return had_pending
