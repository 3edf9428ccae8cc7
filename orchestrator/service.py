"""Research service: routes a query to the external agent or the phase pipeline."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional

from aggregator import EvidenceAggregator
from config.settings import Settings
from intelligence.llm.registry import ProviderRegistry
from intelligence.pipeline import ResearchPipeline, _emit_progress
from models import PhaseStatus, ProviderId, ResearchPhase, ResearchRecord, ScoredPaper
from storage import HistoryStore, InMemoryHistoryStore

from .external_job import ExternalJobClient, ExternalJobPoller


logger = logging.getLogger(__name__)

ProgressCallback = Callable[[Dict[str, Any]], Any]


@dataclass
class ResearchOutcome:
    """Final result of one research request."""

    query: str
    report: str
    mode: str
    phases: List[ResearchPhase] = field(default_factory=list)
    papers: List[ScoredPaper] = field(default_factory=list)
    record_id: Optional[str] = None
    job_id: Optional[str] = None


class ResearchOrchestrator:
    """Entry point tying settings, providers, evidence search and history together."""

    def __init__(
        self,
        settings: Settings,
        *,
        registry: Optional[ProviderRegistry] = None,
        aggregator: Optional[EvidenceAggregator] = None,
        history_store: Optional[HistoryStore] = None,
        poller: Optional[ExternalJobPoller] = None,
    ) -> None:
        self.settings = settings
        self.registry = registry or ProviderRegistry.from_settings(settings.llm)
        self.aggregator = aggregator
        self.history_store = history_store if history_store is not None else InMemoryHistoryStore()
        self._poller = poller

    @property
    def uses_external_agent(self) -> bool:
        if not self.settings.external_agent.enabled:
            return False
        return self._poller is not None or self.registry.get_config(ProviderId.GEMINI).is_configured

    def _get_poller(self) -> ExternalJobPoller:
        if self._poller is None:
            client = ExternalJobClient.from_settings(
                self.registry.get_config(ProviderId.GEMINI).api_key,
                self.settings.external_agent,
                timeout=float(self.settings.general.request_timeout),
            )
            self._poller = ExternalJobPoller.from_settings(client, self.settings.external_agent)
        return self._poller

    def build_pipeline(self, progress_callback: Optional[ProgressCallback] = None) -> ResearchPipeline:
        llm = self.settings.llm
        return ResearchPipeline(
            self.registry,
            primary_provider=llm.primary_provider,
            secondary_provider=llm.secondary_provider,
            dialectical_mode=llm.dialectical_mode,
            aggregator=self.aggregator,
            history_store=self.history_store,
            progress_callback=progress_callback,
        )

    async def run(
        self,
        query: str,
        attachments_context: Optional[str] = None,
        progress_callback: Optional[ProgressCallback] = None,
        cancel_event: Optional[asyncio.Event] = None,
    ) -> ResearchOutcome:
        if self.uses_external_agent:
            return await self._run_external(query, progress_callback, cancel_event)

        result = await self.build_pipeline(progress_callback).run(query, attachments_context)
        return ResearchOutcome(
            query=query,
            report=result.report,
            mode="pipeline",
            phases=result.phases,
            papers=result.papers,
            record_id=result.record_id,
        )

    async def _run_external(
        self,
        query: str,
        progress_callback: Optional[ProgressCallback],
        cancel_event: Optional[asyncio.Event],
    ) -> ResearchOutcome:
        logger.info("Routing research to the external agent")

        async def on_status(status) -> None:
            await _emit_progress(
                progress_callback,
                event="job_status",
                job_id=status.job_id,
                status=status.status.value,
                progress=status.progress,
            )

        result = await self._get_poller().run(query, status_callback=on_status, cancel_event=cancel_event)
        phase = ResearchPhase(id="external", name="External Deep Research", status=PhaseStatus.COMPLETED, output=result.report)

        record_id = None
        try:
            record_id = self.history_store.save(ResearchRecord.from_run(query, result.report, [phase]))
        except Exception as e:
            logger.warning(f"Could not save research to history: {e}")

        return ResearchOutcome(
            query=query,
            report=result.report,
            mode="external",
            phases=[phase],
            record_id=record_id,
            job_id=result.job_id,
        )

    async def aclose(self) -> None:
        await self.registry.aclose()
        if self.aggregator is not None:
            await self.aggregator.close()
        if self._poller is not None:
            await self._poller.client.aclose()
