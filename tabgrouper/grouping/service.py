"""
Tab grouping service: the single analyze() entry point.

Flow per call: adapter settings check -> gate -> build request -> one provider
call -> unwrap text -> parse -> validate. The provider call is the only await.
"""

from __future__ import annotations

from collections.abc import Sequence

from tabgrouper.grouping.errors import NoTabs, TabGroupingError
from tabgrouper.grouping.gate import AnalysisSession
from tabgrouper.grouping.models import GroupView, Provider, ProviderSettings, Tab, TabGroup, TabSummary
from tabgrouper.grouping.parser import parse_group_response
from tabgrouper.grouping.validator import RepairStats, validate_groups
from tabgrouper.llm.prompts import get_system_prompt
from tabgrouper.llm.providers import get_adapter
from tabgrouper.llm.transport import RequestsTransport, Transport
from tabgrouper.observability.logging import get_logger
from tabgrouper.observability.telemetry import counter, log_event
from tabgrouper.utils.redaction import redact

logger = get_logger(__name__)


class TabGroupingService:
    """Runs analyses against one session (gate + pending slot)."""

    def __init__(
        self,
        session: AnalysisSession | None = None,
        transport: Transport | None = None,
        system_prompt: str | None = None,
    ) -> None:
        self.session = session or AnalysisSession()
        self.transport = transport or RequestsTransport()
        self._system_prompt = system_prompt

    @property
    def system_prompt(self) -> str:
        if self._system_prompt is None:
            self._system_prompt = get_system_prompt()
        return self._system_prompt

    async def analyze(
        self,
        tabs: Sequence[Tab],
        provider: Provider | str,
        settings: ProviderSettings,
    ) -> list[TabGroup]:
        """
        Group tabs with the given provider.

        Returns:
            A total, disjoint GroupSet over the ids of `tabs`

        Raises:
            TabGroupingError: ConfigError, TooSoon, NoTabs, a transport error,
                EmptyResponse, InvalidJson or MissingGroups

        Side Effects:
            - Records the analysis timestamp on the session gate
            - Makes one outbound HTTP call
            - Stores the result and its timestamp in the session's pending slot
        """
        adapter = get_adapter(provider)
        adapter.check_settings(settings)

        # No await between here and the gate: check-and-record stays atomic
        analyzed_at = self.session.gate.check_and_record(settings.effective_cooldown_ms)

        if not tabs:
            raise NoTabs()

        log_event(
            "groups.analyze.start",
            provider=adapter.provider.value,
            tab_count=len(tabs),
            api_key=redact(settings.api_key) if settings.api_key else None,
        )
        try:
            request = adapter.build_request(settings, self.system_prompt, tabs)
            raw = await self.transport.send(request)
            text = adapter.extract_text(raw)
            candidate = parse_group_response(text)
        except TabGroupingError as exc:
            counter("groups.analyze.error")
            log_event("groups.analyze.error", provider=adapter.provider.value, kind=exc.kind)
            raise

        stats = RepairStats()
        groups = validate_groups(candidate, [tab.id for tab in tabs], stats)
        self.session.store_pending(groups, analyzed_at)

        counter("groups.analyze.ok")
        log_event(
            "groups.analyze.ok",
            provider=adapter.provider.value,
            group_count=len(groups),
            repaired=stats.repaired,
        )
        return groups


def describe_groups(groups: Sequence[TabGroup], tabs: Sequence[Tab]) -> list[GroupView]:
    """Attach title/url/favicon of every tab so a UI can render group cards."""
    by_id = {tab.id: tab for tab in tabs}
    views = []
    for group in groups:
        summaries = []
        for tab_id in group.tab_ids:
            tab = by_id.get(tab_id)
            if tab is None:
                summaries.append(TabSummary(id=tab_id))
            else:
                summaries.append(
                    TabSummary(id=tab.id, title=tab.title, url=tab.url, fav_icon_url=tab.fav_icon_url)
                )
        views.append(
            GroupView(name=group.name, color=group.color, tab_ids=list(group.tab_ids), tabs=summaries)
        )
    return views


# Singleton instance
_service: TabGroupingService | None = None


def get_grouping_service() -> TabGroupingService:
    """Get or create the process-wide TabGroupingService."""
    global _service
    if _service is None:
        _service = TabGroupingService()
    return _service
