"""
Semantic Scholar Scraper
Semantic Scholar 论文检索 (Graph API)
API docs: https://api.semanticscholar.org/
"""
import asyncio
from typing import Any, Dict, List, Optional
import logging
import threading
import time

from config.settings import SemanticScholarSettings
from models import AcademicPaper, SourceType

from .base import BaseScraper


logger = logging.getLogger(__name__)


class SemanticScholarScraper(BaseScraper):
    """
    Semantic Scholar client

    The public limit is 1 req/s across all endpoints, so throttling uses a
    process-wide lock shared by every instance.
    """

    PAPER_FIELDS = [
        "paperId",
        "title",
        "authors",
        "year",
        "abstract",
        "citationCount",
        "venue",
        "externalIds",
        "url",
    ]

    _global_rate_lock = threading.Lock()
    _global_last_request_time = 0.0

    def __init__(self, settings: Optional[SemanticScholarSettings] = None, timeout: float = 30.0):
        self.settings = settings or SemanticScholarSettings()
        super().__init__(timeout=timeout)
        self._min_interval = max(1.0, float(self.settings.min_interval))
        self.base_url = self.settings.base_url.rstrip("/")
        self._api_key = self.settings.api_key

    @property
    def source_type(self) -> SourceType:
        return SourceType.SEMANTIC_SCHOLAR

    @property
    def name(self) -> str:
        return "Semantic Scholar"

    def _get_headers(self) -> Dict[str, str]:
        headers = {"Accept": "application/json"}
        if self._api_key:
            headers["x-api-key"] = self._api_key
        return headers

    async def _wait_for_rate_limit(self):
        while True:
            with self._global_rate_lock:
                now = time.monotonic()
                elapsed = now - self.__class__._global_last_request_time
                if elapsed >= self._min_interval:
                    self.__class__._global_last_request_time = now
                    return
                wait_sec = self._min_interval - elapsed
            await asyncio.sleep(wait_sec)

    async def search(self, query: str, max_results: Optional[int] = None) -> List[AcademicPaper]:
        if max_results is None:
            max_results = self.settings.max_results
        # API caps a page at 100
        max_results = min(max_results, 100)

        logger.info(f"[Semantic Scholar] Searching: {query}")
        await self._wait_for_rate_limit()

        data = await self._get_json(
            f"{self.base_url}/paper/search",
            params={
                "query": query,
                "limit": max_results,
                "fields": ",".join(self.PAPER_FIELDS),
            },
        )
        if not data:
            return []

        papers = []
        for item in data.get("data") or []:
            paper = self._convert_to_paper(item)
            if paper:
                papers.append(paper)

        self._log_search(query, len(papers))
        return papers

    def _convert_to_paper(self, data: Dict[str, Any]) -> Optional[AcademicPaper]:
        if not data or not data.get("paperId") or not data.get("title"):
            return None

        external_ids = data.get("externalIds") or {}
        return AcademicPaper(
            paper_id=data["paperId"],
            title=data["title"],
            authors=[a.get("name", "Unknown") for a in data.get("authors") or []],
            year=int(data.get("year") or 0),
            abstract=data.get("abstract") or None,
            doi=external_ids.get("DOI") or None,
            url=data.get("url") or f"https://www.semanticscholar.org/paper/{data['paperId']}",
            citation_count=data.get("citationCount") or 0,
            venue=data.get("venue") or None,
            source=SourceType.SEMANTIC_SCHOLAR,
        )
