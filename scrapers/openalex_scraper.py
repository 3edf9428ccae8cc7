"""
OpenAlex Scraper
Open scholarly graph search, most-cited works first.
API docs: https://docs.openalex.org/
"""
from typing import Any, Dict, List, Optional
import logging

from config.settings import OpenAlexSettings
from models import AcademicPaper, SourceType

from .base import BaseScraper


logger = logging.getLogger(__name__)

ABSTRACT_MAX_CHARS = 500
DOI_URL_PREFIX = "https://doi.org/"


def reconstruct_abstract(inverted_index: Optional[Dict[str, List[int]]]) -> Optional[str]:
    """Rebuild an abstract from OpenAlex's word -> positions index"""
    if not inverted_index:
        return None
    positioned = []
    for word, positions in inverted_index.items():
        for position in positions:
            positioned.append((position, word))
    positioned.sort()
    text = " ".join(word for _, word in positioned)
    return text[:ABSTRACT_MAX_CHARS] or None


class OpenAlexScraper(BaseScraper):
    """OpenAlex works search"""

    def __init__(self, settings: Optional[OpenAlexSettings] = None, timeout: float = 30.0):
        super().__init__(timeout=timeout)
        self.settings = settings or OpenAlexSettings()
        self.base_url = self.settings.base_url.rstrip("/")

    @property
    def source_type(self) -> SourceType:
        return SourceType.OPENALEX

    @property
    def name(self) -> str:
        return "OpenAlex"

    async def search(self, query: str, max_results: Optional[int] = None) -> List[AcademicPaper]:
        if max_results is None:
            max_results = self.settings.max_results

        params = {
            "search": query,
            "per_page": min(max_results, 200),
            "sort": "cited_by_count:desc",
        }
        if self.settings.mailto:
            params["mailto"] = self.settings.mailto

        logger.info(f"[OpenAlex] Searching: {query}")
        data = await self._get_json(f"{self.base_url}/works", params=params)
        if not data:
            return []

        papers = []
        for item in data.get("results") or []:
            paper = self._convert_to_paper(item)
            if paper:
                papers.append(paper)

        self._log_search(query, len(papers))
        return papers

    def _convert_to_paper(self, data: Dict[str, Any]) -> Optional[AcademicPaper]:
        title = data.get("title") or data.get("display_name")
        if not data.get("id") or not title:
            return None

        doi = data.get("doi") or None
        if doi and doi.startswith(DOI_URL_PREFIX):
            doi = doi[len(DOI_URL_PREFIX):]

        authors = []
        for authorship in data.get("authorships") or []:
            name = (authorship.get("author") or {}).get("display_name")
            if name:
                authors.append(name)

        venue = ((data.get("primary_location") or {}).get("source") or {}).get("display_name")

        return AcademicPaper(
            paper_id=data["id"],
            title=title,
            authors=authors,
            year=int(data.get("publication_year") or 0),
            abstract=reconstruct_abstract(data.get("abstract_inverted_index")),
            doi=doi,
            url=data.get("id"),
            citation_count=data.get("cited_by_count") or 0,
            venue=venue or None,
            source=SourceType.OPENALEX,
        )
