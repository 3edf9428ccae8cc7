"""Tests for pilot-survey prompt enhancement."""

import json

import pytest

from intelligence.prompt_enhancer import (
    DEFAULT_METHODOLOGY,
    PromptEnhancer,
    extract_enhanced_section,
    extract_json,
    should_suggest_enhancement,
)
from models import ProviderId
from utils.exceptions import RemoteError


PILOT_REPLY = json.dumps({
    "sources": [
        {"title": "Sleep and memory consolidation", "snippet": "Review", "relevance": "Core", "keyTerms": ["sleep", "memory"]},
        {"title": "", "snippet": "dropped"},
        {"title": "Spindles", "keyTerms": ["memory", "spindles"]},
    ]
})

ENHANCE_REPLY = "Here you go:\n" + json.dumps({
    "enhanced": "Investigate how slow-wave sleep supports declarative memory.",
    "keyTerms": ["slow-wave sleep"],
    "suggestedMethodology": "Meta-analysis",
    "scope": {"timeframe": "2015-present", "domains": ["neuroscience"], "depth": "deep"},
})


def test_threshold():
    assert should_suggest_enhancement("short prompt")
    assert not should_suggest_enhancement("x" * 5000)


def test_extract_json_variants():
    assert extract_json('{"a": 1}') == {"a": 1}
    assert extract_json('```json\n{"a": 2}\n```') == {"a": 2}
    assert extract_json("[1, 2]") == {}
    assert extract_json("no json here") == {}
    assert extract_json("") == {}


def test_extract_enhanced_section():
    text = "## Notes\nignored\n## Enhanced Prompt\nDo the thing well.\n## Key Terms\na, b"
    assert extract_enhanced_section(text) == "Do the thing well."
    assert extract_enhanced_section("nothing") is None


@pytest.mark.asyncio
async def test_full_enhancement(fake_llm_cls, registry_factory):
    llm = fake_llm_cls(ProviderId.DEEPSEEK, replies=[PILOT_REPLY, ENHANCE_REPLY])
    enhancer = PromptEnhancer(registry_factory(llm), "deepseek")

    result = await enhancer.run("sleep and memory")

    assert [s.title for s in result.pilot_sources] == ["Sleep and memory consolidation", "Spindles"]
    assert result.enhanced.startswith("Investigate how slow-wave sleep")
    assert result.key_terms == ["slow-wave sleep"]
    assert result.suggested_methodology == "Meta-analysis"
    assert result.scope.domains == ["neuroscience"]
    assert result.word_count["original"] == 3
    # pilot key terms are deduplicated into the rewrite request
    assert "KEY TERMS IDENTIFIED: sleep, memory, spindles" in llm.calls[1]["prompt"]


@pytest.mark.asyncio
async def test_markdown_section_is_accepted(fake_llm_cls, registry_factory):
    llm = fake_llm_cls(
        ProviderId.DEEPSEEK,
        replies=[PILOT_REPLY, "## Enhanced Prompt\nA sharper question.\n"],
    )

    result = await PromptEnhancer(registry_factory(llm), "deepseek").run("sleep and memory")

    assert result.enhanced == "A sharper question."
    assert result.key_terms == ["sleep", "memory", "spindles"]
    assert result.suggested_methodology == DEFAULT_METHODOLOGY


@pytest.mark.asyncio
async def test_unparseable_output_falls_back_to_original(fake_llm_cls, registry_factory):
    llm = fake_llm_cls(ProviderId.DEEPSEEK, replies=["not json", "still not json"])

    result = await PromptEnhancer(registry_factory(llm), "deepseek").run("sleep and memory")

    assert result.pilot_sources == []
    assert result.enhanced == "sleep and memory"


@pytest.mark.asyncio
async def test_provider_errors_fall_back_to_original(fake_llm_cls, registry_factory):
    llm = fake_llm_cls(ProviderId.DEEPSEEK, replies=[RemoteError("down", "deepseek", status=503)])

    result = await PromptEnhancer(registry_factory(llm), "deepseek").run("sleep and memory")

    assert result.enhanced == "sleep and memory"
    assert len(llm.calls) == 2
