"""
Base Scraper
爬虫基类 - 文献数据源的统一接口
"""
from abc import ABC, abstractmethod
from typing import Any, Callable, Dict, List, Optional, TypeVar
import asyncio
import logging

import aiohttp

from models import AcademicPaper, SourceType


logger = logging.getLogger(__name__)

R = TypeVar("R")


class BaseScraper(ABC):
    """
    Source client base class.

    ``search`` never raises for remote failures: errors are logged and an
    empty list is returned so one bad source cannot sink an aggregation.
    """

    def __init__(self, timeout: float = 30.0):
        self.timeout = timeout
        self._session: Optional[aiohttp.ClientSession] = None

    @property
    @abstractmethod
    def source_type(self) -> SourceType:
        pass

    @property
    @abstractmethod
    def name(self) -> str:
        pass

    @abstractmethod
    async def search(self, query: str, max_results: Optional[int] = None) -> List[AcademicPaper]:
        """
        Search the source.

        Args:
            query: free-text query
            max_results: upper bound on returned papers

        Returns:
            Normalized papers, possibly empty
        """
        pass

    def _get_headers(self) -> Dict[str, str]:
        return {"Accept": "application/json"}

    async def _get_session(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(
                headers=self._get_headers(),
                timeout=aiohttp.ClientTimeout(total=self.timeout),
            )
        return self._session

    async def _get_json(self, url: str, params: Optional[Dict[str, Any]] = None) -> Optional[Dict[str, Any]]:
        """GET a JSON document; None on any non-2xx status or transport error"""
        session = await self._get_session()
        try:
            async with session.get(url, params=params) as response:
                if response.status == 429:
                    logger.warning(f"[{self.name}] Rate limit exceeded")
                    return None
                if response.status >= 400:
                    logger.warning(f"[{self.name}] HTTP {response.status} for {url}")
                    return None
                return await response.json(content_type=None)
        except (aiohttp.ClientError, asyncio.TimeoutError, ValueError) as e:
            self._log_error("Request failed", e)
            return None

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()

    async def close(self):
        if self._session:
            await self._session.close()
            self._session = None

    async def _run_blocking(self, func: Callable[..., R], *args, **kwargs) -> R:
        """Run a blocking call in the default thread pool"""
        return await asyncio.to_thread(func, *args, **kwargs)

    def _log_search(self, query: str, count: int):
        logger.info(f"[{self.name}] Search '{query}' returned {count} results")

    def _log_error(self, message: str, error: Exception):
        logger.error(f"[{self.name}] {message}: {error}")
