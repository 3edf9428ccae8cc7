"""Shared fakes for provider and source tests."""

from __future__ import annotations

from typing import Callable, Dict, List, Optional, Union

import pytest

from intelligence.llm.base import BaseLLM, LLMResponse, Message
from intelligence.llm.registry import ProviderRegistry
from models import AcademicPaper, ProviderConfig, ProviderId, SourceType
from scrapers.base import BaseScraper


Reply = Union[str, Exception, Callable[[str, str], str]]


class FakeLLM(BaseLLM):
    """Scripted adapter: replies are consumed in order, the last one repeats."""

    def __init__(
        self,
        provider_id: ProviderId,
        replies: Optional[List[Reply]] = None,
        model: str = "fake-model",
        fallback_model: Optional[str] = None,
        api_key: str = "test-key",
    ):
        super().__init__(model=model, api_key=api_key, fallback_model=fallback_model)
        self._provider_id = provider_id
        self.replies: List[Reply] = list(replies or [f"{provider_id.value} says hi"])
        self.calls: List[Dict[str, str]] = []
        self.closed = False

    @property
    def provider_id(self) -> ProviderId:
        return self._provider_id

    async def acomplete(self, messages: List[Message], model: Optional[str] = None, **kwargs) -> LLMResponse:
        prompt = messages[-1].content
        used_model = model or self.model
        self.calls.append({"prompt": prompt, "model": used_model})
        reply = self.replies.pop(0) if len(self.replies) > 1 else self.replies[0]
        if isinstance(reply, Exception):
            raise reply
        if callable(reply):
            reply = reply(prompt, used_model)
        return LLMResponse(content=reply, model=used_model, usage={"total_tokens": 7})

    async def aclose(self) -> None:
        self.closed = True


class FakeScraper(BaseScraper):
    """Returns canned papers per query; ``default`` answers unknown queries."""

    def __init__(
        self,
        name: str,
        by_query: Optional[Dict[str, List[AcademicPaper]]] = None,
        default: Optional[List[AcademicPaper]] = None,
        error: Optional[Exception] = None,
    ):
        super().__init__()
        self._name = name
        self.by_query = by_query or {}
        self.default = default or []
        self.error = error
        self.queries: List[str] = []
        self.closed = False

    @property
    def source_type(self) -> SourceType:
        return SourceType.OPENALEX

    @property
    def name(self) -> str:
        return self._name

    async def search(self, query: str, max_results: Optional[int] = None) -> List[AcademicPaper]:
        self.queries.append(query)
        if self.error is not None:
            raise self.error
        return list(self.by_query.get(query, self.default))

    async def close(self):
        self.closed = True


def make_paper(
    title: str,
    doi: Optional[str] = None,
    citations: int = 0,
    year: int = 2023,
    venue: Optional[str] = "Journal of Testing",
    abstract: Optional[str] = "x" * 120,
    authors: Optional[List[str]] = None,
    source: SourceType = SourceType.OPENALEX,
) -> AcademicPaper:
    return AcademicPaper(
        paper_id=title,
        title=title,
        authors=["Ada Lovelace"] if authors is None else authors,
        year=year,
        abstract=abstract,
        doi=doi,
        citation_count=citations,
        venue=venue,
        source=source,
    )


def make_registry(*adapters: BaseLLM) -> ProviderRegistry:
    configs = {a.provider_id: ProviderConfig(api_key="test-key", model=a.model) for a in adapters}
    registry = ProviderRegistry(configs=configs)
    for adapter in adapters:
        registry.register(adapter)
    return registry


@pytest.fixture
def fake_llm_cls():
    return FakeLLM


@pytest.fixture
def fake_scraper_cls():
    return FakeScraper


@pytest.fixture
def paper_factory():
    return make_paper


@pytest.fixture
def registry_factory():
    return make_registry
