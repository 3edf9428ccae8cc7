"""
Quality Scoring
Additive trust heuristic for bibliographic records, bounded to [0, 1].
"""
from datetime import datetime
from typing import Iterable, List, Optional

from models import AcademicPaper, ScoredPaper


DOI_WEIGHT = 0.2
HIGH_QUALITY_VENUE_WEIGHT = 0.2
OTHER_VENUE_WEIGHT = 0.1
ABSTRACT_WEIGHT = 0.1
AUTHOR_WEIGHT = 0.05
ABSTRACT_MIN_CHARS = 100

# (minimum citations, points), highest tier first
CITATION_TIERS = ((100, 0.3), (50, 0.2), (10, 0.1), (1, 0.05))
# (maximum age in years, points)
RECENCY_TIERS = ((2, 0.15), (5, 0.1), (10, 0.05))

HIGH_QUALITY_VENUE_KEYWORDS = (
    "nature",
    "science",
    "lancet",
    "cell",
    "nejm",
    "new england journal",
    "jama",
    "pnas",
    "ieee",
    "acm",
    "neurips",
    "icml",
    "iclr",
    "cvpr",
    "acl",
    "plos",
    "springer",
    "elsevier",
    "journal of",
    "proceedings",
)

PREPRINT_MARKERS = ("arxiv", "preprint", "biorxiv", "medrxiv", "ssrn")


def _clamp01(value: float) -> float:
    return max(0.0, min(1.0, float(value)))


def _citation_points(citation_count: Optional[int]) -> float:
    count = citation_count or 0
    for threshold, points in CITATION_TIERS:
        if count >= threshold:
            return points
    return 0.0


def _venue_points(venue: Optional[str]) -> float:
    if not venue or not venue.strip():
        return 0.0
    lowered = venue.lower()
    if any(keyword in lowered for keyword in HIGH_QUALITY_VENUE_KEYWORDS):
        return HIGH_QUALITY_VENUE_WEIGHT
    if any(marker in lowered for marker in PREPRINT_MARKERS):
        return 0.0
    return OTHER_VENUE_WEIGHT


def _recency_points(year: int, now: datetime) -> float:
    if not year:
        return 0.0
    age = now.year - year
    for max_age, points in RECENCY_TIERS:
        if age <= max_age:
            return points
    return 0.0


def score_quality(paper: AcademicPaper, now: Optional[datetime] = None) -> float:
    """
    Score a paper in [0, 1].

    Pure given ``now``: DOI presence, citation tier, venue, recency,
    abstract length and authorship each add a fixed weight.
    """
    now = now or datetime.now()
    score = 0.0
    if paper.doi and paper.doi.strip():
        score += DOI_WEIGHT
    score += _citation_points(paper.citation_count)
    score += _venue_points(paper.venue)
    score += _recency_points(paper.year, now)
    if paper.abstract and len(paper.abstract) > ABSTRACT_MIN_CHARS:
        score += ABSTRACT_WEIGHT
    if paper.authors:
        score += AUTHOR_WEIGHT
    return round(_clamp01(score), 4)


def to_scored_paper(paper: AcademicPaper, now: Optional[datetime] = None) -> ScoredPaper:
    return ScoredPaper(
        **paper.model_dump(),
        quality_score=score_quality(paper, now),
        verified=bool(paper.doi and paper.doi.strip()),
    )


def rank_papers(papers: Iterable[ScoredPaper]) -> List[ScoredPaper]:
    """Quality score descending, citation count breaking ties"""
    return sorted(papers, key=lambda p: (-p.quality_score, -(p.citation_count or 0)))
