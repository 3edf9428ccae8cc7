"""
Research Pipeline
Five sequential research phases built on accumulated context.
"""

from __future__ import annotations

import asyncio
import inspect
import logging
from typing import Any, Callable, Dict, List, Optional

from aggregator import EvidenceAggregator, format_papers_for_prompt
from intelligence.dialectical import DialecticalCoordinator
from intelligence.llm.registry import ProviderKey, ProviderRegistry
from intelligence.prompts import (
    PHASES,
    PhaseDefinition,
    build_phase_prompt,
    compose_with_context,
    join_report,
    select_context,
)
from models import PipelineResult, ProviderId, ResearchPhase, ResearchRecord, ScoredPaper
from storage import HistoryStore
from utils.exceptions import PhaseExecutionError


logger = logging.getLogger(__name__)

ProgressCallback = Callable[[Dict[str, Any]], Any]


async def _emit_progress(
    progress_callback: Optional[ProgressCallback],
    *,
    event: str,
    **payload: Any,
) -> None:
    if progress_callback is None:
        return
    message: Dict[str, Any] = {"event": event}
    message.update(payload)
    try:
        result = progress_callback(message)
        if inspect.isawaitable(result):
            await result
    except Exception:
        logger.debug("Progress callback failed", exc_info=True)


def new_phases() -> List[ResearchPhase]:
    return [ResearchPhase(id=p.id, name=p.name, description=p.description) for p in PHASES]


class ResearchPipeline:
    """
    Sequential phase runner.

    Each phase moves pending -> running -> completed; the first failure moves
    that phase to error, leaves the rest pending and raises
    PhaseExecutionError. Progress events: phase_started, phase_completed,
    phase_failed, evidence_collected, pipeline_completed.
    """

    def __init__(
        self,
        registry: ProviderRegistry,
        *,
        primary_provider: ProviderKey,
        secondary_provider: Optional[ProviderKey] = None,
        dialectical_mode: bool = False,
        aggregator: Optional[EvidenceAggregator] = None,
        history_store: Optional[HistoryStore] = None,
        progress_callback: Optional[ProgressCallback] = None,
    ):
        self.registry = registry
        self.primary_provider = ProviderId(primary_provider)
        self.secondary_provider = ProviderId(secondary_provider) if secondary_provider else None
        self.dialectical_mode = dialectical_mode
        self.aggregator = aggregator
        self.history_store = history_store
        self.progress_callback = progress_callback
        self._coordinator = DialecticalCoordinator(registry)

    @property
    def uses_dialectical(self) -> bool:
        return self.dialectical_mode and self.secondary_provider is not None

    async def _collect_evidence(self, query: str) -> tuple:
        if self.aggregator is None:
            return None, []
        papers = await self.aggregator.aggregate(query)
        await _emit_progress(self.progress_callback, event="evidence_collected", count=len(papers))
        return format_papers_for_prompt(papers), papers

    async def _execute(self, prompt: str, context: List[str]) -> str:
        if self.uses_dialectical:
            result = await self._coordinator.run(
                self.primary_provider,
                self.secondary_provider,
                prompt,
                context,
            )
            return result.synthesis
        response = await self.registry.send(self.primary_provider, compose_with_context(prompt, context))
        return response.content

    async def _run_phase(
        self,
        index: int,
        definition: PhaseDefinition,
        query: str,
        attachments_context: Optional[str],
        outputs: List[str],
        papers: List[ScoredPaper],
    ) -> str:
        evidence = None
        if index == 0:
            evidence, found = await self._collect_evidence(query)
            papers.extend(found)
        prompt = build_phase_prompt(
            definition,
            query,
            attachments_context=attachments_context if index == 0 else None,
            evidence=evidence,
        )
        return await self._execute(prompt, select_context(definition, outputs))

    async def run(self, query: str, attachments_context: Optional[str] = None) -> PipelineResult:
        """
        Run all phases for a query.

        Returns:
            PipelineResult whose report joins the phase outputs in order

        Raises:
            PhaseExecutionError: a phase failed; carries the phase list
        """
        if not query or not query.strip():
            raise ValueError("query must not be empty")

        phases = new_phases()
        outputs: List[str] = []
        papers: List[ScoredPaper] = []
        provider = self.primary_provider.value

        for index, (definition, phase) in enumerate(zip(PHASES, phases)):
            phase.start()
            await _emit_progress(
                self.progress_callback,
                event="phase_started",
                phase_id=phase.id,
                index=index,
                total=len(phases),
            )
            try:
                output = await self._run_phase(index, definition, query, attachments_context, outputs, papers)
            except Exception as exc:
                message = f"Failed to execute {phase.name}: {exc}"
                phase.fail(message)
                logger.error(message)
                await _emit_progress(
                    self.progress_callback,
                    event="phase_failed",
                    phase_id=phase.id,
                    index=index,
                    error=message,
                )
                raise PhaseExecutionError(
                    phase.id,
                    phase.name,
                    getattr(exc, "provider", None) or provider,
                    exc,
                    [p.model_copy(deep=True) for p in phases],
                ) from exc

            phase.complete(output)
            outputs.append(output)
            logger.info(f"Phase {index + 1}/{len(phases)} completed: {phase.name}")
            await _emit_progress(
                self.progress_callback,
                event="phase_completed",
                phase_id=phase.id,
                index=index,
                output=output,
            )

        report = join_report(outputs)
        record_id = self._save_history(query, report, phases)
        await _emit_progress(self.progress_callback, event="pipeline_completed", record_id=record_id)

        return PipelineResult(
            query=query,
            phases=phases,
            report=report,
            papers=papers,
            record_id=record_id,
        )

    def _save_history(self, query: str, report: str, phases: List[ResearchPhase]) -> Optional[str]:
        if self.history_store is None:
            return None
        try:
            return self.history_store.save(ResearchRecord.from_run(query, report, phases))
        except Exception as e:
            logger.warning(f"Could not save research to history: {e}")
            return None

    def run_sync(self, query: str, attachments_context: Optional[str] = None) -> PipelineResult:
        return asyncio.run(self.run(query, attachments_context))
