"""
ArXiv Scraper
arXiv 预印本检索
"""
from typing import List, Optional
import logging

import arxiv
from tenacity import retry, stop_after_attempt, wait_exponential

from config.settings import ArxivSettings
from models import AcademicPaper, SourceType

from .base import BaseScraper


logger = logging.getLogger(__name__)

ARXIV_VENUE = "ArXiv Preprint"


class ArxivScraper(BaseScraper):
    """
    ArXiv client

    The arxiv library is synchronous; searches run in a worker thread.
    """

    def __init__(self, settings: Optional[ArxivSettings] = None, timeout: float = 30.0):
        super().__init__(timeout=timeout)
        self.settings = settings or ArxivSettings()
        self._sort_map = {
            "relevance": arxiv.SortCriterion.Relevance,
            "lastUpdatedDate": arxiv.SortCriterion.LastUpdatedDate,
            "submittedDate": arxiv.SortCriterion.SubmittedDate,
        }

    @property
    def source_type(self) -> SourceType:
        return SourceType.ARXIV

    @property
    def name(self) -> str:
        return "ArXiv"

    async def search(self, query: str, max_results: Optional[int] = None) -> List[AcademicPaper]:
        if max_results is None:
            max_results = self.settings.max_results
        sort_criterion = self._sort_map.get(self.settings.sort_by, arxiv.SortCriterion.Relevance)

        logger.info(f"[ArXiv] Searching: {query}")
        try:
            results = await self._run_blocking(self._sync_search, query, max_results, sort_criterion)
        except Exception as e:
            self._log_error("Search failed", e)
            return []

        papers = [self._convert_to_paper(result) for result in results]
        self._log_search(query, len(papers))
        return papers

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=1, max=10),
        reraise=True,
    )
    def _sync_search(
        self,
        query: str,
        max_results: int,
        sort_criterion: arxiv.SortCriterion,
    ) -> List[arxiv.Result]:
        client = arxiv.Client(
            page_size=min(max_results, 100),
            delay_seconds=1.0,
            num_retries=1,
        )
        search = arxiv.Search(
            query=query,
            max_results=max_results,
            sort_by=sort_criterion,
        )
        return list(client.results(search))

    def _convert_to_paper(self, result: arxiv.Result) -> AcademicPaper:
        published = result.published
        return AcademicPaper(
            paper_id=result.get_short_id(),
            title=" ".join(result.title.split()),
            authors=[author.name for author in result.authors],
            year=published.year if published else 0,
            abstract=result.summary.replace("\n", " ").strip() or None,
            doi=result.doi or None,
            url=result.entry_id,
            citation_count=0,
            venue=ARXIV_VENUE,
            source=SourceType.ARXIV,
        )
