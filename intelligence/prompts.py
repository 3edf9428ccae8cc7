"""
Research Prompts
Phase definitions, prompt templates and report assembly.
"""
from dataclasses import dataclass
from datetime import datetime
from typing import List, Optional, Sequence


REPORT_SEPARATOR = "\n\n---\n\n"

QUALITY_CONSTRAINTS = """
CRITICAL RESEARCH STANDARDS (NON-NEGOTIABLE):
1. Source Quality: Use ONLY Tier 1 (Verified Journals/Conferences) or Tier 2 (ArXiv/SSRN/Institutional Reports). Reject blogs, news sites (unless for factual timelines), and Wikipedia.
2. Citation Style: All citations must be strictly APA 7th Edition.
3. Empirical Rigor: Distinguish clearly between "Theoretical Models" and "Empirical Data". Do not conflate them.
4. Metrics: Use standard financial/scientific notation.
5. Hallucination Policy: If exact data is found, cite it. If not, state "Data unavailable" - DO NOT fabricate numbers.
"""


@dataclass(frozen=True)
class PhaseDefinition:
    id: str
    name: str
    description: str
    template: str
    # None means every previous output is passed as context
    context_window: Optional[int] = None


LITERATURE_TEMPLATE = """Phase 1: Literature Discovery

RESEARCH TOPIC: {topic}

{evidence}

TASK: Analyze the VERIFIED academic papers above. For each, provide:
- Relevance score (0-100) to the research topic
- Level of Evidence (LOE 1-4): 1=Meta-analysis, 2=RCT, 3=Observational, 4=Expert

OUTPUT:
## Literature Discovery
| # | Citation | Year | Score | LOE | Key Finding |
|---|----------|------|-------|-----|-------------|
[Summarize each verified paper above]

### Key Findings Summary
[5-10 bullet points of the most important findings]

Themes identified: [list 3-4 major themes]"""

CONCEPTUAL_TEMPLATE = """Phase 2: Conceptual Framework & Mapping

RESEARCH TOPIC: {topic}

TASK: Create a conceptual framework based on the literature reviewed so far.

OUTPUT:
## Conceptual Framework & Mapping

### Glossary (10-15 key terms)
| Term | Definition | Source |
|------|------------|--------|

### Concept Hierarchy
1. Core Concepts (with citations)
2. Contributing Factors
3. Outcomes & Effects

### Relationship Matrix
| Concept A | Relationship | Concept B | Evidence | Sources |
|-----------|--------------|-----------|----------|---------|

### Theoretical Integration
[How concepts connect]"""

EVIDENCE_TEMPLATE = """Phase 3: Deep Analysis & Evidence Review

RESEARCH TOPIC: {topic}

TASK: Identify and analyze 3-4 CASE STUDIES or real-world examples from the literature.
Focus on: Empirical data, timeline of events, root causes, and outcomes.

OUTPUT:
## Case Studies & Empirical Evidence

### Case Study 1: [Name/Event]
**Context:** [Background]
**Timeline/Progression:** [Key events]
**Data Points:** [Quantifiable metrics found in literature]
**Key Lessons:** [What this case demonstrates]

### Cross-Case Analysis
| Feature | Case 1 | Case 2 | Case 3 | Pattern Identified |
|---------|--------|--------|--------|--------------------|"""

METHODOLOGY_TEMPLATE = """Phase 4: Methodology & Framework Design

RESEARCH TOPIC: {topic}

TASK: Design an empirical validation study based on the findings and case studies.

OUTPUT:
## Empirical Validation Framework

### Proposed Methodology
[How to validate the findings using real data]

### Key Variables & Metrics
| Variable | Definition | Measurement Source |
|----------|------------|-------------------|
[8-12 variables]

### Validation Steps
1. **Data Collection:** [Where to get data]
2. **Analysis Model:** [Statistical/Machine Learning approach]
3. **Hypotheses:** [What to test]"""

SYNTHESIS_TEMPLATE = """Phase 5: Synthesis & Recommendations

RESEARCH TOPIC: {topic}

TASK: Create a final synthesis report.

OUTPUT:
## Executive Summary
**Research Question:** [Restated]
**Answer:** [1-paragraph answer]
**Confidence:** High/Medium/Low

## Key Takeaways (5-6)
1. [Takeaway]

## Summary Table
| Finding | Evidence | Confidence |
|---------|----------|------------|

## Recommendations
### For Researchers
| Recommendation | Priority |
|----------------|----------|

### For Practitioners
| Recommendation | Risk |
|----------------|------|

## Limitations
- Scope, Data, Biases

## Top 10 References
[Key citations]"""


PHASES: List[PhaseDefinition] = [
    PhaseDefinition(
        id="literature",
        name="Literature Discovery",
        description="Find and appraise verified academic sources",
        template=LITERATURE_TEMPLATE,
    ),
    PhaseDefinition(
        id="conceptual",
        name="Conceptual Framework & Mapping",
        description="Define key terms and map relationships between concepts",
        template=CONCEPTUAL_TEMPLATE,
    ),
    PhaseDefinition(
        id="evidence",
        name="Deep Analysis & Evidence Review",
        description="Analyze case studies and empirical evidence",
        template=EVIDENCE_TEMPLATE,
    ),
    PhaseDefinition(
        id="methodology",
        name="Methodology & Framework Design",
        description="Design a validation methodology for the findings",
        template=METHODOLOGY_TEMPLATE,
        context_window=2,
    ),
    PhaseDefinition(
        id="synthesis",
        name="Synthesis & Recommendations",
        description="Compile findings into actionable insights and conclusions",
        template=SYNTHESIS_TEMPLATE,
    ),
]

NO_EVIDENCE_TEXT = "No papers found - please generate representative sources."


def compose_with_context(prompt: str, previous_outputs: Sequence[str]) -> str:
    """Append earlier outputs to a prompt under a 'Previous context' heading"""
    outputs = [output for output in previous_outputs if output]
    if not outputs:
        return prompt
    return f"{prompt}\n\nPrevious context:\n" + "\n\n".join(outputs)


def select_context(phase: PhaseDefinition, outputs: Sequence[str]) -> List[str]:
    if phase.context_window is None:
        return list(outputs)
    return list(outputs[-phase.context_window:]) if phase.context_window > 0 else []


def build_phase_prompt(
    phase: PhaseDefinition,
    query: str,
    attachments_context: Optional[str] = None,
    evidence: Optional[str] = None,
) -> str:
    """
    Render a phase template.

    Attachments are only passed for the first phase; the research
    quality constraints are always appended to the topic.
    """
    topic = query.strip()
    if attachments_context:
        topic = f"{topic}\n\n{attachments_context.strip()}"
    topic = f"{topic}\n\n{QUALITY_CONSTRAINTS.strip()}"
    return phase.template.format(topic=topic, evidence=evidence or NO_EVIDENCE_TEXT)


def join_report(outputs: Sequence[str]) -> str:
    return REPORT_SEPARATOR.join(outputs)


def render_report_document(query: str, report: str, generated_at: Optional[datetime] = None) -> str:
    """Wrap a joined report in a Markdown document header"""
    generated_at = generated_at or datetime.now()
    topic = query[:200] + ("..." if len(query) > 200 else "")
    return (
        "# Deep Research Report\n\n"
        f"**Research Topic:** {topic}\n\n"
        f"**Generated:** {generated_at.strftime('%Y-%m-%d %H:%M:%S')}\n\n"
        "---\n\n"
        f"{report}\n"
    )
