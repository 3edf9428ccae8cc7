"""
Evidence Formatting
Citation strings and prompt blocks built from papers.
"""
from typing import Sequence

from models import AcademicPaper


NO_PAPERS_TEXT = "No academic papers found for this query."
ABSTRACT_PREVIEW_CHARS = 300


def format_apa_citation(paper: AcademicPaper) -> str:
    if not paper.authors:
        authors = "Unknown Author"
    elif len(paper.authors) > 3:
        authors = f"{paper.authors[0]} et al."
    else:
        authors = ", ".join(paper.authors)

    year = paper.year or "n.d."
    title = paper.title or "Untitled"
    venue = f" {paper.venue}." if paper.venue else ""
    doi = f" https://doi.org/{paper.doi}" if paper.doi else ""
    return f"{authors} ({year}). {title}.{venue}{doi}"


def format_paper_for_llm(paper: AcademicPaper, index: int) -> str:
    """One numbered entry; ``index`` is zero-based"""
    citations = f" ({paper.citation_count} citations)" if paper.citation_count else ""
    abstract = f"\nAbstract: {paper.abstract[:ABSTRACT_PREVIEW_CHARS]}..." if paper.abstract else ""
    return f"[{index + 1}] {format_apa_citation(paper)}{citations}{abstract}"


def format_papers_for_prompt(papers: Sequence[AcademicPaper]) -> str:
    if not papers:
        return NO_PAPERS_TEXT
    formatted = "\n\n".join(format_paper_for_llm(paper, i) for i, paper in enumerate(papers))
    return f"## Verified Academic Sources ({len(papers)} papers)\n\n{formatted}"
