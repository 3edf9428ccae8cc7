"""Tests for phase prompt assembly and report rendering."""

from datetime import datetime

from intelligence.prompts import (
    PHASES,
    QUALITY_CONSTRAINTS,
    build_phase_prompt,
    compose_with_context,
    join_report,
    render_report_document,
    select_context,
)


def test_phase_order():
    assert [p.id for p in PHASES] == ["literature", "conceptual", "evidence", "methodology", "synthesis"]


def test_compose_with_context():
    assert compose_with_context("Prompt", []) == "Prompt"
    assert compose_with_context("Prompt", ["a", "", "b"]) == "Prompt\n\nPrevious context:\na\n\nb"


def test_select_context_window():
    outputs = ["one", "two", "three"]
    methodology = next(p for p in PHASES if p.id == "methodology")

    assert select_context(methodology, outputs) == ["two", "three"]
    assert select_context(PHASES[-1], outputs) == outputs


def test_build_phase_prompt_includes_topic_and_constraints():
    prompt = build_phase_prompt(PHASES[0], "  sleep and memory ", attachments_context="notes", evidence="PAPERS")

    assert "RESEARCH TOPIC: sleep and memory\n\nnotes" in prompt
    assert QUALITY_CONSTRAINTS.strip() in prompt
    assert "PAPERS" in prompt


def test_report_rendering():
    report = join_report(["A", "B"])

    assert report == "A\n\n---\n\nB"
    document = render_report_document("q", report, generated_at=datetime(2024, 1, 2, 3, 4, 5))
    assert document.startswith("# Deep Research Report\n\n**Research Topic:** q")
    assert "**Generated:** 2024-01-02 03:04:05" in document
    assert document.endswith("A\n\n---\n\nB\n")
