"""
Aggregator Module
Query decomposition, multi-source evidence search and quality scoring.
"""
from .evidence_aggregator import EvidenceAggregator
from .formatting import format_apa_citation, format_paper_for_llm, format_papers_for_prompt
from .quality import rank_papers, score_quality, to_scored_paper
from .query_decomposer import core_concept_query, decompose_query, fallback_queries

__all__ = [
    "EvidenceAggregator",
    "format_apa_citation",
    "format_paper_for_llm",
    "format_papers_for_prompt",
    "rank_papers",
    "score_quality",
    "to_scored_paper",
    "core_concept_query",
    "decompose_query",
    "fallback_queries",
]
