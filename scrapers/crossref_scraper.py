"""
CrossRef Scraper
DOI registry search and DOI verification.
"""
from typing import Any, Dict, List, Optional
from urllib.parse import quote
import asyncio
import logging

import aiohttp

from config.settings import CrossRefSettings
from models import AcademicPaper, SourceType

from .base import BaseScraper


logger = logging.getLogger(__name__)


class CrossRefScraper(BaseScraper):
    """CrossRef works search (off by default in aggregation)"""

    def __init__(self, settings: Optional[CrossRefSettings] = None, timeout: float = 30.0):
        super().__init__(timeout=timeout)
        self.settings = settings or CrossRefSettings()
        self.base_url = self.settings.base_url.rstrip("/")

    @property
    def source_type(self) -> SourceType:
        return SourceType.CROSSREF

    @property
    def name(self) -> str:
        return "CrossRef"

    def _get_headers(self) -> Dict[str, str]:
        headers = {"Accept": "application/json"}
        if self.settings.mailto:
            headers["User-Agent"] = f"research-agent/0.1 (mailto:{self.settings.mailto})"
        return headers

    async def search(self, query: str, max_results: Optional[int] = None) -> List[AcademicPaper]:
        if max_results is None:
            max_results = self.settings.max_results

        logger.info(f"[CrossRef] Searching: {query}")
        data = await self._get_json(
            f"{self.base_url}/works",
            params={"query": query, "rows": min(max_results, 100)},
        )
        if not data:
            return []

        papers = []
        for item in (data.get("message") or {}).get("items") or []:
            paper = self._convert_to_paper(item)
            if paper:
                papers.append(paper)

        self._log_search(query, len(papers))
        return papers

    async def verify_doi(self, doi: str) -> bool:
        """True when CrossRef resolves the DOI"""
        if not doi or not doi.strip():
            return False
        session = await self._get_session()
        try:
            async with session.get(f"{self.base_url}/works/{quote(doi.strip(), safe='/')}") as response:
                return 200 <= response.status < 300
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            self._log_error(f"DOI verification failed for {doi}", e)
            return False

    def _convert_to_paper(self, data: Dict[str, Any]) -> Optional[AcademicPaper]:
        titles = data.get("title") or []
        doi = data.get("DOI")
        if not titles or not doi:
            return None

        authors = []
        for author in data.get("author") or []:
            name = " ".join(part for part in (author.get("given"), author.get("family")) if part)
            if name:
                authors.append(name)

        year = 0
        date_parts = (data.get("issued") or {}).get("date-parts") or []
        if date_parts and date_parts[0] and date_parts[0][0]:
            year = int(date_parts[0][0])

        venues = data.get("container-title") or []
        return AcademicPaper(
            paper_id=doi,
            title=titles[0],
            authors=authors,
            year=year,
            abstract=data.get("abstract") or None,
            doi=doi,
            url=data.get("URL") or f"https://doi.org/{doi}",
            citation_count=data.get("is-referenced-by-count") or 0,
            venue=venues[0] if venues else None,
            source=SourceType.CROSSREF,
        )
