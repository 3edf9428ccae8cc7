"""
Query Decomposer
Expands one research query into alternative search queries.
"""
import re
from typing import Dict, List


MAX_VARIANTS = 8
SYNONYMS_PER_TERM = 2

METHODOLOGY_SUFFIXES = ("systematic review", "empirical study")

FALLBACK_QUERY_TEMPLATES = (
    "{core} survey",
    "{core} applications",
    "{core} case study",
)

# Static thesaurus keyed by lower-cased term; multi-word keys are matched first.
SYNONYMS: Dict[str, List[str]] = {
    "machine learning": ["statistical learning", "predictive modeling"],
    "deep learning": ["neural networks", "representation learning"],
    "reinforcement learning": ["deep reinforcement learning", "sequential decision making"],
    "artificial intelligence": ["AI", "intelligent systems"],
    "natural language processing": ["NLP", "computational linguistics"],
    "large language model": ["LLM", "foundation model"],
    "large language models": ["LLMs", "foundation models"],
    "computer vision": ["image recognition", "visual computing"],
    "climate change": ["global warming", "climate variability"],
    "mental health": ["psychological well-being", "psychiatric disorders"],
    "social media": ["online social networks", "social networking sites"],
    "supply chain": ["logistics network", "value chain"],
    "public health": ["population health", "epidemiology"],
    "renewable energy": ["clean energy", "sustainable energy"],
    "trading": ["algorithmic trading", "portfolio management"],
    "finance": ["financial markets", "economics"],
    "education": ["learning outcomes", "pedagogy"],
    "healthcare": ["health care", "clinical care"],
    "diagnosis": ["detection", "clinical assessment"],
    "sustainability": ["sustainable development", "environmental impact"],
    "blockchain": ["distributed ledger", "cryptocurrency"],
    "cancer": ["oncology", "tumor"],
    "depression": ["depressive disorder", "major depression"],
    "covid-19": ["SARS-CoV-2", "coronavirus pandemic"],
    "robotics": ["autonomous robots", "robot control"],
    "cybersecurity": ["information security", "network security"],
    "privacy": ["data protection", "confidentiality"],
    "agriculture": ["crop production", "farming systems"],
}

STOPWORDS = frozenset({
    "a", "an", "the", "of", "for", "in", "on", "to", "and", "or", "with", "by",
    "from", "at", "as", "into", "about", "between", "using", "via", "how",
    "what", "why", "does", "do", "is", "are", "its", "their", "impact", "effect",
    "effects", "role",
})

_TOKEN = re.compile(r"[\w][\w'+#.-]*")
_DOUBLED_WORD = re.compile(r"\b(\w+)\s+\1\b", re.IGNORECASE)


def tokenize(query: str) -> List[str]:
    return _TOKEN.findall(query)


def _dedupe(queries: List[str]) -> List[str]:
    seen = set()
    unique = []
    for query in queries:
        normalized = " ".join(query.split())
        key = normalized.lower()
        if not key or key in seen:
            continue
        seen.add(key)
        unique.append(normalized)
    return unique


def _synonym_variants(query: str) -> List[str]:
    variants = []
    lowered = query.lower()
    claimed = []
    for term in sorted(SYNONYMS, key=len, reverse=True):
        pattern = re.compile(r"(?<!\w)" + re.escape(term) + r"(?!\w)", re.IGNORECASE)
        match = pattern.search(lowered)
        if not match:
            continue
        # skip terms nested inside a longer term already used
        if any(start <= match.start() and match.end() <= end for start, end in claimed):
            continue
        claimed.append((match.start(), match.end()))
        for synonym in SYNONYMS[term][:SYNONYMS_PER_TERM]:
            variant = pattern.sub(synonym, query, count=1)
            if not _DOUBLED_WORD.search(variant):
                variants.append(variant)
    return variants


def _concept_pairs(tokens: List[str]) -> List[str]:
    pairs = []
    if len(tokens) >= 3:
        pairs.append(f"{tokens[0]} {tokens[-1]}")
    if len(tokens) >= 4:
        mid = len(tokens) // 2
        pairs.append(f"{tokens[mid - 1]} {tokens[mid]}")
    return pairs


def decompose_query(query: str) -> List[str]:
    """
    Expand a query into at most 8 unique search variants.

    Order: verbatim query, synonym substitutions, concept pairs,
    methodology suffixes. The first entry is ``query`` exactly as given;
    the others are derived from its whitespace-collapsed form. Synonyms
    only take the slots the other variants leave free, so the cap never
    drops a pair or a suffix.
    """
    base = " ".join(query.split())
    if not base:
        return [query]

    derived = _dedupe(
        [base]
        + _concept_pairs(tokenize(base))
        + [f"{base} {suffix}" for suffix in METHODOLOGY_SUFFIXES]
    )[1:]
    synonym_budget = max(0, MAX_VARIANTS - 1 - len(derived))
    taken = {base.lower()} | {d.lower() for d in derived}
    synonyms = [
        variant for variant in _dedupe(_synonym_variants(base))
        if variant.lower() not in taken
    ][:synonym_budget]

    return [query] + synonyms + derived


def core_concept_query(query: str) -> str:
    """The first two content words of the query"""
    tokens = tokenize(query)
    content = [t for t in tokens if t.lower() not in STOPWORDS]
    return " ".join((content or tokens)[:2])


def fallback_queries(query: str) -> List[str]:
    core = core_concept_query(query)
    if not core:
        return []
    return _dedupe([template.format(core=core) for template in FALLBACK_QUERY_TEMPLATES])
