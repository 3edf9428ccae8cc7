"""
Scrapers Module
Bibliographic source clients.
"""
from .base import BaseScraper
from .arxiv_scraper import ArxivScraper
from .crossref_scraper import CrossRefScraper
from .openalex_scraper import OpenAlexScraper
from .semantic_scholar_scraper import SemanticScholarScraper

__all__ = [
    "BaseScraper",
    "ArxivScraper",
    "CrossRefScraper",
    "OpenAlexScraper",
    "SemanticScholarScraper",
]
