"""
Prompt Enhancer
Pilot survey plus LLM rewrite of a short research prompt into a structured brief.
"""

from __future__ import annotations

import json
import logging
import re
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field

from intelligence.llm.registry import ProviderKey, ProviderRegistry


logger = logging.getLogger(__name__)

ENHANCEMENT_THRESHOLD = 5000
DEFAULT_METHODOLOGY = "Systematic Literature Review"

_JSON_BLOCK = re.compile(r"\{[\s\S]*\}")
_ENHANCED_SECTION = re.compile(r"##\s*Enhanced Prompt\s*\n([\s\S]*?)(?=\n##\s|\Z)", re.IGNORECASE)


class PilotSource(BaseModel):
    title: str
    snippet: str = ""
    relevance: str = ""
    key_terms: List[str] = Field(default_factory=list)


class EnhancementScope(BaseModel):
    timeframe: str = "Recent 5 years"
    domains: List[str] = Field(default_factory=lambda: ["General"])
    depth: str = "moderate"


class EnhancedPrompt(BaseModel):
    original: str
    enhanced: str
    pilot_sources: List[PilotSource] = Field(default_factory=list)
    key_terms: List[str] = Field(default_factory=list)
    suggested_methodology: str = DEFAULT_METHODOLOGY
    scope: EnhancementScope = Field(default_factory=EnhancementScope)

    @property
    def word_count(self) -> Dict[str, int]:
        return {"original": len(self.original.split()), "enhanced": len(self.enhanced.split())}


def should_suggest_enhancement(prompt: str) -> bool:
    return len(prompt.strip()) < ENHANCEMENT_THRESHOLD


def extract_json(text: str) -> Dict[str, Any]:
    raw = (text or "").strip()
    if not raw:
        return {}
    try:
        parsed = json.loads(raw)
        return parsed if isinstance(parsed, dict) else {}
    except ValueError:
        pass
    match = _JSON_BLOCK.search(raw)
    if not match:
        return {}
    try:
        parsed = json.loads(match.group())
        return parsed if isinstance(parsed, dict) else {}
    except ValueError:
        return {}


def extract_enhanced_section(text: str) -> Optional[str]:
    match = _ENHANCED_SECTION.search(text or "")
    if not match:
        return None
    section = match.group(1).strip()
    return section or None


def _string_list(values: Any) -> List[str]:
    if not isinstance(values, list):
        return []
    return [str(v).strip() for v in values if str(v).strip()]


def _unique(values: List[str]) -> List[str]:
    seen = set()
    ordered = []
    for value in values:
        if value not in seen:
            seen.add(value)
            ordered.append(value)
    return ordered


PILOT_SURVEY_PROMPT = """You are conducting a preliminary literature survey for the following research topic:

"{prompt}"

TASK: Identify 10 highly relevant academic sources, papers, or authoritative resources that would be foundational for researching this topic.

For each source, provide:
1. Title (real or representative of what exists in literature)
2. A brief snippet describing its relevance (1-2 sentences)
3. Why it's relevant to the research question
4. 3-5 key terms or concepts from this source

FORMAT YOUR RESPONSE AS JSON:
{{
  "sources": [
    {{
      "title": "Source Title",
      "snippet": "Brief description of the source content and findings",
      "relevance": "Why this source is important for the research",
      "keyTerms": ["term1", "term2", "term3"]
    }}
  ]
}}

Return ONLY valid JSON, no additional text."""

ENHANCEMENT_PROMPT = """You are an expert research methodology consultant. Your task is to enhance and expand a research prompt into a comprehensive, well-structured research brief.

ORIGINAL PROMPT:
"{prompt}"

PILOT SURVEY FINDINGS ({count} initial sources identified):
{sources}

KEY TERMS IDENTIFIED: {key_terms}

TASK: Create an enhanced research prompt that is:
1. Well-structured with clear sections
2. Comprehensive in scope
3. Methodologically sound
4. Specific about desired outputs

The enhanced prompt should include:
- Clear research question(s)
- Scope definition (timeframe, domains, depth)
- Specific aspects to investigate
- Desired output format
- Quality criteria for sources

FORMAT YOUR RESPONSE AS JSON:
{{
  "enhanced": "The full enhanced prompt text (can be multiple paragraphs)",
  "keyTerms": ["extracted", "key", "terms"],
  "suggestedMethodology": "Recommended research methodology approach",
  "scope": {{
    "timeframe": "e.g., 2020-present, or all time",
    "domains": ["list", "of", "relevant", "academic", "domains"],
    "depth": "surface | moderate | deep"
  }}
}}

Return ONLY valid JSON, no additional text."""


class PromptEnhancer:
    """
    Two-step enhancement: a pilot survey of likely sources, then a rewrite.

    Parsing is best effort. Malformed model output or provider errors
    fall back to the original prompt instead of failing.
    """

    def __init__(self, registry: ProviderRegistry, provider: ProviderKey):
        self.registry = registry
        self.provider = provider

    async def run_pilot_survey(self, prompt: str) -> List[PilotSource]:
        try:
            response = await self.registry.send(self.provider, PILOT_SURVEY_PROMPT.format(prompt=prompt))
        except Exception as e:
            logger.error(f"Pilot survey failed: {e}")
            return []

        sources = []
        for item in extract_json(response.content).get("sources") or []:
            if not isinstance(item, dict) or not str(item.get("title") or "").strip():
                continue
            sources.append(PilotSource(
                title=str(item["title"]).strip(),
                snippet=str(item.get("snippet") or ""),
                relevance=str(item.get("relevance") or ""),
                key_terms=_string_list(item.get("keyTerms")),
            ))
        return sources

    def _fallback(self, prompt: str, pilot_sources: List[PilotSource], key_terms: List[str]) -> EnhancedPrompt:
        return EnhancedPrompt(
            original=prompt,
            enhanced=prompt,
            pilot_sources=pilot_sources,
            key_terms=key_terms,
        )

    async def enhance(self, prompt: str, pilot_sources: List[PilotSource]) -> EnhancedPrompt:
        key_terms = _unique([term for source in pilot_sources for term in source.key_terms])
        sources_text = "\n\n".join(
            f"{i + 1}. {s.title}\n   - {s.snippet}\n   - Relevance: {s.relevance}\n   - Key Terms: {', '.join(s.key_terms)}"
            for i, s in enumerate(pilot_sources)
        )
        request = ENHANCEMENT_PROMPT.format(
            prompt=prompt,
            count=len(pilot_sources),
            sources=sources_text,
            key_terms=", ".join(key_terms),
        )

        try:
            response = await self.registry.send(self.provider, request)
        except Exception as e:
            logger.error(f"Prompt enhancement failed: {e}")
            return self._fallback(prompt, pilot_sources, key_terms)

        parsed = extract_json(response.content)
        if not parsed:
            section = extract_enhanced_section(response.content)
            if section is None:
                logger.warning("Enhancement response had no JSON or Enhanced Prompt section")
                return self._fallback(prompt, pilot_sources, key_terms)
            return EnhancedPrompt(
                original=prompt,
                enhanced=section,
                pilot_sources=pilot_sources,
                key_terms=key_terms,
            )

        scope = parsed.get("scope")
        return EnhancedPrompt(
            original=prompt,
            enhanced=str(parsed.get("enhanced") or "").strip() or prompt,
            pilot_sources=pilot_sources,
            key_terms=_string_list(parsed.get("keyTerms")) or key_terms,
            suggested_methodology=str(parsed.get("suggestedMethodology") or "").strip() or DEFAULT_METHODOLOGY,
            scope=EnhancementScope(
                timeframe=str(scope.get("timeframe") or "Recent 5 years"),
                domains=_string_list(scope.get("domains")) or ["General"],
                depth=str(scope.get("depth") or "moderate"),
            ) if isinstance(scope, dict) else EnhancementScope(),
        )

    async def run(self, prompt: str) -> EnhancedPrompt:
        pilot_sources = await self.run_pilot_survey(prompt)
        return await self.enhance(prompt, pilot_sources)
