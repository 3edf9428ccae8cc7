"""Tests for paper quality scoring and citation formatting."""

from datetime import datetime

from aggregator.formatting import (
    NO_PAPERS_TEXT,
    format_apa_citation,
    format_paper_for_llm,
    format_papers_for_prompt,
)
from aggregator.quality import rank_papers, score_quality, to_scored_paper


NOW = datetime(2024, 6, 1)


def test_score_is_bounded(paper_factory):
    best = paper_factory("Best", doi="10.1/best", citations=5000, year=2024, venue="Nature")
    bare = paper_factory("Bare", venue=None, year=0, abstract=None, authors=[])

    assert score_quality(best, NOW) == 1.0
    assert score_quality(bare, NOW) == 0.0


def test_doi_adds_weight(paper_factory):
    without = paper_factory("Same", citations=12)
    with_doi = paper_factory("Same", doi="10.1/same", citations=12)

    assert round(score_quality(with_doi, NOW) - score_quality(without, NOW), 4) == 0.2


def test_more_citations_never_lower_score(paper_factory):
    scores = [
        score_quality(paper_factory("P", citations=count), NOW)
        for count in (0, 1, 9, 10, 49, 50, 99, 100, 10_000)
    ]
    assert scores == sorted(scores)


def test_venue_tiers(paper_factory):
    def venue_score(venue):
        return score_quality(paper_factory("V", venue=venue, year=0, abstract=None, authors=[]), NOW)

    assert venue_score("IEEE Transactions on Robotics") == 0.2
    assert venue_score("Regional Workshop on Things") == 0.1
    assert venue_score("ArXiv Preprint") == 0.0
    assert venue_score(None) == 0.0


def test_recency_tiers(paper_factory):
    def recency(year):
        return score_quality(paper_factory("R", venue=None, year=year, abstract=None, authors=[]), NOW)

    assert recency(2022) == 0.15
    assert recency(2019) == 0.1
    assert recency(2014) == 0.05
    assert recency(2010) == 0.0


def test_short_abstract_gets_no_credit(paper_factory):
    short = paper_factory("A", venue=None, year=0, abstract="tiny", authors=[])
    assert score_quality(short, NOW) == 0.0


def test_scored_paper_marks_doi_as_verified(paper_factory):
    scored = to_scored_paper(paper_factory("Doi", doi="10.1/x"), NOW)
    unverified = to_scored_paper(paper_factory("No doi"), NOW)

    assert scored.verified is True
    assert unverified.verified is False
    assert 0.0 <= scored.quality_score <= 1.0


def test_rank_breaks_score_ties_by_citations(paper_factory):
    low = to_scored_paper(paper_factory("Low", citations=60), NOW)
    high = to_scored_paper(paper_factory("High", citations=70), NOW)
    top = to_scored_paper(paper_factory("Top", doi="10.1/top", citations=60), NOW)

    assert low.quality_score == high.quality_score
    assert [p.title for p in rank_papers([low, high, top])] == ["Top", "High", "Low"]


def test_apa_citation_variants(paper_factory):
    many = paper_factory("Deep Nets", doi="10.1/dn", authors=["A. One", "B. Two", "C. Three", "D. Four"])
    few = paper_factory("Small Nets", authors=["A. One", "B. Two"], venue=None)
    anon = paper_factory("Nameless", authors=[], year=0)

    assert format_apa_citation(many) == (
        "A. One et al. (2023). Deep Nets. Journal of Testing. https://doi.org/10.1/dn"
    )
    assert format_apa_citation(few) == "A. One, B. Two (2023). Small Nets."
    assert format_apa_citation(anon).startswith("Unknown Author (n.d.). Nameless.")


def test_paper_prompt_block(paper_factory):
    paper = paper_factory("Cited", citations=42, abstract="a" * 400)
    entry = format_paper_for_llm(paper, 0)

    assert entry.startswith("[1] ")
    assert "(42 citations)" in entry
    assert "Abstract: " + "a" * 300 + "..." in entry

    block = format_papers_for_prompt([paper, paper_factory("Second")])
    assert block.startswith("## Verified Academic Sources (2 papers)")
    assert "[2] " in block
    assert format_papers_for_prompt([]) == NO_PAPERS_TEXT
