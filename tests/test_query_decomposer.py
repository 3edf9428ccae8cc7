"""Unit tests for query decomposition."""

from aggregator.query_decomposer import (
    MAX_VARIANTS,
    core_concept_query,
    decompose_query,
    fallback_queries,
)


def test_four_token_query_has_pairs_and_suffixes():
    query = "reinforcement learning for trading"
    variants = decompose_query(query)

    assert variants[0] == query
    assert "reinforcement trading" in variants
    assert "learning for" in variants
    assert f"{query} systematic review" in variants
    assert f"{query} empirical study" in variants
    assert len(set(v.lower() for v in variants)) == len(variants)
    assert 5 <= len(variants) <= MAX_VARIANTS


def test_synonyms_fill_free_slots_only():
    variants = decompose_query("reinforcement learning for trading")

    assert len(variants) == MAX_VARIANTS
    assert "deep reinforcement learning for trading" in variants
    # structural variants sit after the synonym substitutions
    assert variants.index("reinforcement trading") > variants.index("deep reinforcement learning for trading")


def test_short_query_without_known_terms():
    variants = decompose_query("quantum annealing")

    assert variants == [
        "quantum annealing",
        "quantum annealing systematic review",
        "quantum annealing empirical study",
    ]


def test_three_token_query_has_only_first_last_pair():
    variants = decompose_query("graph neural networks")

    assert "graph networks" in variants
    assert len(variants) == 4


def test_nested_term_uses_longest_match():
    variants = decompose_query("deep reinforcement learning")

    assert "deep deep reinforcement learning" not in variants


def test_query_is_kept_verbatim_and_variants_are_normalized():
    for query in ["  sleep   quality ", "sleep\tquality", "   ", ""]:
        assert query in decompose_query(query)

    variants = decompose_query("  sleep   quality ")
    assert variants == [
        "  sleep   quality ",
        "sleep quality systematic review",
        "sleep quality empirical study",
    ]


def test_decomposition_properties_hold_for_many_queries():
    queries = [
        "machine learning in healthcare diagnosis",
        "impact of social media on mental health of teenagers",
        "climate change",
        "blockchain supply chain transparency",
        "COVID-19 vaccine hesitancy",
        "a",
    ]
    for query in queries:
        variants = decompose_query(query)
        assert query in variants
        assert len(variants) <= MAX_VARIANTS
        assert len({v.lower() for v in variants}) == len(variants)


def test_core_concept_skips_stopwords():
    assert core_concept_query("the impact of social media on teenagers") == "social media"
    assert core_concept_query("of the") == "of the"


def test_fallback_queries_build_on_core_concept():
    assert fallback_queries("reinforcement learning for trading") == [
        "reinforcement learning survey",
        "reinforcement learning applications",
        "reinforcement learning case study",
    ]
    assert fallback_queries("") == []
