"""
In-process telemetry for TabGrouper.

Nothing leaves the process: events go to the log, counters and latency
samples stay in memory where the health endpoint and tests can read them.
"""

from __future__ import annotations

import contextlib
import logging
import time
from collections.abc import Iterator
from typing import Any

logger = logging.getLogger("tabgrouper.telemetry")

_COUNTERS: dict[str, int] = {}
_LATENCIES: dict[str, list[float]] = {}


def _latency_key(metric_name: str) -> str:
    # "llm.request.latency" and "llm.request.latency_ms" share one series
    return metric_name if metric_name.endswith("_ms") else f"{metric_name}_ms"


def log_event(event_name: str, **fields: Any) -> None:
    """
    Structured log event. Caller must ensure secrets are redacted.

    Side Effects:
        - Writes to logger (info level)
    """
    logger.info("event=%s %s", event_name, fields)


def counter(name: str, increment: int = 1) -> int:
    """
    Increment an in-memory counter and return its new value.

    Side Effects:
        - Modifies _COUNTERS dict (in-memory state)
    """
    _COUNTERS[name] = _COUNTERS.get(name, 0) + increment
    logger.debug("counter=%s value=%s", name, _COUNTERS[name])
    return _COUNTERS[name]


def get_counters(prefix: str = "") -> dict[str, int]:
    """Copy of the counters whose name starts with prefix."""
    return {name: value for name, value in sorted(_COUNTERS.items()) if name.startswith(prefix)}


@contextlib.contextmanager
def time_block(metric_name: str) -> Iterator[None]:
    """
    Record the wall time of the enclosed block in milliseconds.

    Side Effects:
        - Appends to _LATENCIES dict (in-memory state)
    """
    start = time.perf_counter()
    try:
        yield
    finally:
        elapsed_ms = (time.perf_counter() - start) * 1000
        key = _latency_key(metric_name)
        _LATENCIES.setdefault(key, []).append(elapsed_ms)
        logger.debug("timing=%s ms=%.1f", key, elapsed_ms)


def get_latency_stats(metric_name: str) -> dict[str, float]:
    """Count, min, max, avg and p95 (milliseconds) for one latency series."""
    samples = sorted(_LATENCIES.get(_latency_key(metric_name), []))
    if not samples:
        return {"count": 0, "min": 0.0, "max": 0.0, "avg": 0.0, "p95": 0.0}

    count = len(samples)
    return {
        "count": count,
        "min": samples[0],
        "max": samples[-1],
        "avg": sum(samples) / count,
        "p95": samples[min(int(count * 0.95), count - 1)],
    }


def reset_telemetry() -> None:
    """
    Clear counters and latency samples.

    Side Effects:
        - Clears _COUNTERS and _LATENCIES (in-memory state)
    """
    _COUNTERS.clear()
    _LATENCIES.clear()
