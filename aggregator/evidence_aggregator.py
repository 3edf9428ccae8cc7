"""
Evidence Aggregator
Multi-source paper search with escalating query broadening, dedup and scoring.
"""
import asyncio
from datetime import datetime
from typing import Awaitable, Dict, List, Optional
import logging

from rich.console import Console
from rich.table import Table

from config.settings import AggregatorSettings, Settings
from models import AcademicPaper, ScoredPaper
from scrapers import (
    ArxivScraper,
    BaseScraper,
    CrossRefScraper,
    OpenAlexScraper,
    SemanticScholarScraper,
)

from .quality import rank_papers, to_scored_paper
from .query_decomposer import core_concept_query, decompose_query, fallback_queries


logger = logging.getLogger(__name__)
console = Console(stderr=True)

FIRST_ATTEMPT_VARIANTS = 4


class _RunState:
    """Accumulator owned by a single aggregate() call"""

    def __init__(self):
        self.seen: set = set()
        self.papers: List[AcademicPaper] = []
        self.queries: List[str] = []
        self.attempts = 0

    def add(self, papers: List[AcademicPaper]) -> int:
        added = 0
        for paper in papers:
            key = paper.dedup_key
            if key in self.seen:
                continue
            self.seen.add(key)
            self.papers.append(paper)
            added += 1
        return added

    def __len__(self) -> int:
        return len(self.papers)


class EvidenceAggregator:
    """
    Evidence aggregator

    Runs up to four search attempts, each broadening the query set, until
    at least ``min_results`` unique papers are collected:

    1. the first four decomposed variants (stops early at 2x min_results)
    2. the remaining decomposed variants
    3. a two-word core-concept query
    4. fixed cross-domain fallback queries
    """

    def __init__(
        self,
        settings: Optional[AggregatorSettings] = None,
        scrapers: Optional[Dict[str, BaseScraper]] = None,
        enable_semantic_scholar: bool = True,
        enable_openalex: bool = True,
        enable_arxiv: bool = True,
        enable_crossref: bool = False,
        source_settings: Optional[Settings] = None,
        show_summary: bool = False,
    ):
        """
        Args:
            settings: thresholds (defaults from AggregatorSettings)
            scrapers: prebuilt source clients keyed by name; overrides enable_*
            enable_*: which built-in sources to create
            source_settings: per-source settings for the built-in clients
            show_summary: print a Rich table after each aggregation
        """
        self.settings = settings or AggregatorSettings()
        self.source_timeout_sec = max(1.0, float(self.settings.source_timeout))
        self.show_summary = show_summary

        if scrapers is not None:
            self._scrapers: Dict[str, BaseScraper] = dict(scrapers)
            return

        self._scrapers = {}
        if enable_semantic_scholar:
            self._scrapers["semantic_scholar"] = SemanticScholarScraper(
                source_settings.semantic_scholar if source_settings else None
            )
        if enable_openalex:
            self._scrapers["openalex"] = OpenAlexScraper(
                source_settings.openalex if source_settings else None
            )
        if enable_arxiv:
            self._scrapers["arxiv"] = ArxivScraper(source_settings.arxiv if source_settings else None)
        if enable_crossref:
            self._scrapers["crossref"] = CrossRefScraper(
                source_settings.crossref if source_settings else None
            )

    @classmethod
    def from_settings(cls, settings: Settings, **kwargs) -> "EvidenceAggregator":
        return cls(
            settings=settings.aggregator,
            enable_crossref=settings.crossref.enabled,
            source_settings=settings,
            **kwargs,
        )

    @property
    def source_names(self) -> List[str]:
        return list(self._scrapers)

    async def _run_source_task(self, source_name: str, task_coro: Awaitable[List[AcademicPaper]]):
        try:
            return await asyncio.wait_for(task_coro, timeout=self.source_timeout_sec)
        except Exception as exc:
            logger.warning(f"{source_name} source skipped: {exc}")
            return exc

    async def _search_variant(self, query: str, limit_per_source: int) -> List[AcademicPaper]:
        """Search every source for one query in parallel; failed sources count as empty"""
        names = list(self._scrapers)
        tasks = [
            self._run_source_task(name, self._scrapers[name].search(query, limit_per_source))
            for name in names
        ]
        results = await asyncio.gather(*tasks, return_exceptions=True)

        papers: List[AcademicPaper] = []
        for name, res in zip(names, results):
            if isinstance(res, BaseException):
                continue
            papers.extend(res or [])
        return papers

    async def _search_queries(
        self,
        state: _RunState,
        queries: List[str],
        limit_per_source: int,
        stop_at: Optional[int] = None,
    ) -> None:
        for query in queries:
            if stop_at is not None and len(state) >= stop_at:
                break
            papers = await self._search_variant(query, limit_per_source)
            added = state.add(papers)
            state.queries.append(query)
            logger.debug(f"Query '{query}': {len(papers)} hits, {added} new, {len(state)} unique")

    async def aggregate(
        self,
        query: str,
        limit_per_source: Optional[int] = None,
        min_results: Optional[int] = None,
        min_quality: Optional[float] = None,
        max_results: Optional[int] = None,
        now: Optional[datetime] = None,
    ) -> List[ScoredPaper]:
        """
        Collect, dedup, score, filter and rank papers for a query.

        Args:
            query: research query
            limit_per_source: per-source result limit for each variant
            min_results: unique papers wanted before escalation stops
            min_quality: papers scoring below are dropped
            max_results: cap on the returned list
            now: reference time for recency scoring

        Returns:
            Papers sorted by quality score desc, then citation count desc
        """
        if not query or not query.strip():
            raise ValueError("query must not be empty")

        limit_per_source = limit_per_source or self.settings.limit_per_source
        min_results = self.settings.min_results if min_results is None else min_results
        min_quality = self.settings.min_quality if min_quality is None else min_quality
        max_results = max_results or self.settings.max_results

        state = _RunState()
        variants = decompose_query(query)
        logger.info(f"Aggregating evidence for '{query}' across {len(self._scrapers)} sources")

        state.attempts = 1
        await self._search_queries(
            state,
            variants[:FIRST_ATTEMPT_VARIANTS],
            limit_per_source,
            stop_at=2 * min_results,
        )

        if len(state) < min_results and variants[FIRST_ATTEMPT_VARIANTS:]:
            state.attempts = 2
            logger.info(f"{len(state)} < {min_results} unique papers, searching remaining variants")
            await self._search_queries(
                state, variants[FIRST_ATTEMPT_VARIANTS:], limit_per_source, stop_at=min_results
            )

        if len(state) < min_results:
            core = core_concept_query(query)
            if core and core.lower() not in {q.lower() for q in state.queries}:
                state.attempts = 3
                logger.info(f"{len(state)} < {min_results} unique papers, trying core concept '{core}'")
                await self._search_queries(state, [core], limit_per_source)

        if len(state) < min_results:
            state.attempts = 4
            logger.info(f"{len(state)} < {min_results} unique papers, trying fallback queries")
            await self._search_queries(state, fallback_queries(query), limit_per_source, stop_at=min_results)

        scored = [to_scored_paper(paper, now) for paper in state.papers]
        kept = [paper for paper in scored if paper.quality_score >= min_quality]
        ranked = rank_papers(kept)[:max_results]

        logger.info(
            f"Aggregation finished after {state.attempts} attempt(s): "
            f"{len(state)} unique, {len(kept)} above {min_quality}, returning {len(ranked)}"
        )
        if self.show_summary:
            self._print_summary(query, state, ranked)
        return ranked

    def aggregate_sync(self, query: str, **kwargs) -> List[ScoredPaper]:
        return asyncio.run(self._aggregate_and_close(query, **kwargs))

    async def _aggregate_and_close(self, query: str, **kwargs) -> List[ScoredPaper]:
        try:
            return await self.aggregate(query, **kwargs)
        finally:
            await self.close()

    def _print_summary(self, query: str, state: _RunState, ranked: List[ScoredPaper]):
        table = Table(title=f"Evidence for: {query}", show_header=True)
        table.add_column("Source", style="cyan")
        table.add_column("Papers", justify="right", style="green")
        for name in self._scrapers:
            count = sum(1 for p in ranked if p.source.value == name)
            table.add_row(name, str(count))
        table.add_row("", "")
        table.add_row("[bold]Queries[/bold]", str(len(state.queries)))
        table.add_row("[bold]Unique[/bold]", str(len(state)))
        table.add_row("[bold]Returned[/bold]", f"[bold]{len(ranked)}[/bold]")
        console.print(table)

    async def close(self):
        for scraper in self._scrapers.values():
            await scraper.close()

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()
