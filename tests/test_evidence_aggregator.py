"""Tests for the escalating multi-source evidence aggregator."""

import asyncio
from datetime import datetime

import pytest

from aggregator import EvidenceAggregator
from aggregator.query_decomposer import decompose_query
from config.settings import AggregatorSettings


NOW = datetime(2024, 6, 1)
QUERY = "reinforcement learning for trading"


def _papers(paper_factory, prefix, count, **kwargs):
    return [paper_factory(f"{prefix} paper {i}", doi=f"10.1/{prefix}.{i}", **kwargs) for i in range(count)]


def _aggregator(*scrapers):
    return EvidenceAggregator(AggregatorSettings(), scrapers={s.name: s for s in scrapers})


@pytest.mark.asyncio
async def test_too_few_results_escalate_to_remaining_variants(fake_scraper_cls, paper_factory):
    scrapers = [
        fake_scraper_cls(name, by_query={QUERY: _papers(paper_factory, name, 5)})
        for name in ("alpha", "beta", "gamma")
    ]
    aggregator = _aggregator(*scrapers)

    papers = await aggregator.aggregate(QUERY, limit_per_source=5, min_results=20, min_quality=0, now=NOW)

    variants = decompose_query(QUERY)
    assert len(papers) == 15
    assert len({p.dedup_key for p in papers}) == 15
    for scraper in scrapers:
        # second attempt reached the variants after the first four
        assert variants[4] in scraper.queries
        assert "reinforcement learning" in scraper.queries
        assert "reinforcement learning survey" in scraper.queries


@pytest.mark.asyncio
async def test_first_attempt_stops_at_twice_min_results(fake_scraper_cls, paper_factory):
    scraper = fake_scraper_cls("alpha", by_query={QUERY: _papers(paper_factory, "a", 4)})
    aggregator = _aggregator(scraper)

    papers = await aggregator.aggregate(QUERY, min_results=2, min_quality=0, now=NOW)

    assert scraper.queries == [QUERY]
    assert len(papers) == 4


@pytest.mark.asyncio
async def test_duplicates_across_sources_are_merged(fake_scraper_cls, paper_factory):
    shared = paper_factory("Shared Study", doi="10.1/SHARED")
    same_doi = paper_factory("Shared study (preprint)", doi="10.1/shared", venue="arXiv")
    no_doi = paper_factory("Untitled   Work on Trading")
    no_doi_again = paper_factory("untitled work on trading")
    aggregator = _aggregator(
        fake_scraper_cls("alpha", default=[shared, no_doi]),
        fake_scraper_cls("beta", default=[same_doi, no_doi_again]),
    )

    papers = await aggregator.aggregate("quantum annealing", min_results=1, min_quality=0, now=NOW)

    assert sorted(p.title for p in papers) == ["Shared Study", "Untitled   Work on Trading"]


@pytest.mark.asyncio
async def test_results_sorted_by_score_then_citations(fake_scraper_cls, paper_factory):
    strong = paper_factory("Strong", doi="10.1/strong", citations=500, venue="Nature")
    tied_low = paper_factory("Tied low", citations=55)
    tied_high = paper_factory("Tied high", citations=90)
    aggregator = _aggregator(fake_scraper_cls("alpha", default=[tied_low, tied_high, strong]))

    papers = await aggregator.aggregate("quantum annealing", min_results=1, min_quality=0, now=NOW)

    assert [p.title for p in papers] == ["Strong", "Tied high", "Tied low"]
    scores = [p.quality_score for p in papers]
    assert scores == sorted(scores, reverse=True)


@pytest.mark.asyncio
async def test_failing_source_is_absorbed(fake_scraper_cls, paper_factory):
    broken = fake_scraper_cls("broken", error=RuntimeError("503 from upstream"))
    healthy = fake_scraper_cls("healthy", default=_papers(paper_factory, "h", 3))
    aggregator = _aggregator(broken, healthy)

    papers = await aggregator.aggregate("quantum annealing", min_results=3, min_quality=0, now=NOW)

    assert len(papers) == 3
    assert broken.queries


@pytest.mark.asyncio
async def test_all_sources_failing_yields_empty_list(fake_scraper_cls):
    aggregator = _aggregator(
        fake_scraper_cls("one", error=RuntimeError("down")),
        fake_scraper_cls("two", error=asyncio.TimeoutError()),
    )

    assert await aggregator.aggregate("quantum annealing", min_results=5, min_quality=0, now=NOW) == []


@pytest.mark.asyncio
async def test_core_concept_attempt_satisfies_minimum(fake_scraper_cls, paper_factory):
    scraper = fake_scraper_cls(
        "alpha",
        by_query={"reinforcement learning": _papers(paper_factory, "core", 5)},
    )
    aggregator = _aggregator(scraper)

    papers = await aggregator.aggregate(QUERY, min_results=5, min_quality=0, now=NOW)

    assert len(papers) == 5
    assert "reinforcement learning" in scraper.queries
    assert "reinforcement learning survey" not in scraper.queries


@pytest.mark.asyncio
async def test_core_equal_to_variant_is_not_searched_twice(fake_scraper_cls):
    scraper = fake_scraper_cls("alpha")
    aggregator = _aggregator(scraper)

    await aggregator.aggregate("quantum annealing", min_results=5, min_quality=0, now=NOW)

    assert scraper.queries == [
        "quantum annealing",
        "quantum annealing systematic review",
        "quantum annealing empirical study",
        "quantum annealing survey",
        "quantum annealing applications",
        "quantum annealing case study",
    ]


@pytest.mark.asyncio
async def test_quality_floor_and_result_cap(fake_scraper_cls, paper_factory):
    weak = paper_factory("Weak", venue=None, year=0, abstract=None, authors=[])
    strong = _papers(paper_factory, "s", 6, citations=120)
    aggregator = _aggregator(fake_scraper_cls("alpha", default=strong + [weak]))

    papers = await aggregator.aggregate(
        "quantum annealing", min_results=1, min_quality=0.2, max_results=4, now=NOW
    )

    assert len(papers) == 4
    assert all(p.quality_score >= 0.2 for p in papers)
    assert "Weak" not in {p.title for p in papers}


@pytest.mark.asyncio
async def test_blank_query_rejected(fake_scraper_cls):
    with pytest.raises(ValueError):
        await _aggregator(fake_scraper_cls("alpha")).aggregate("   ")


@pytest.mark.asyncio
async def test_close_closes_every_source(fake_scraper_cls):
    scrapers = [fake_scraper_cls("a"), fake_scraper_cls("b")]
    async with _aggregator(*scrapers) as aggregator:
        assert aggregator.source_names == ["a", "b"]

    assert all(s.closed for s in scrapers)
