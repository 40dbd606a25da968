"""TabGrouper - Organize browser tabs into named, colored groups using an LLM"""

from __future__ import annotations

__version__ = "0.3.0"


# Lazy imports for grouping module
def __getattr__(name: str):
    """
    Lazy imports to avoid loading the HTTP stack when only importing lightweight modules.
    """
    if name in ("Tab", "TabGroup", "GroupColor", "ProviderSettings"):
        from tabgrouper.grouping import models

        return getattr(models, name)

    if name == "TabGroupingService":
        from tabgrouper.grouping.service import TabGroupingService

        return TabGroupingService

    msg = f"module {__name__!r} has no attribute {name!r}"
    raise AttributeError(msg)


__all__ = [
    "GroupColor",
    "ProviderSettings",
    "Tab",
    "TabGroup",
    "TabGroupingService",
]
