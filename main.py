"""CLI entrypoint for research runs, evidence search and provider checks."""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
from pathlib import Path
from typing import Any, Dict

from aggregator import EvidenceAggregator
from config import get_settings
from intelligence.llm import ProviderRegistry
from intelligence.prompt_enhancer import PromptEnhancer, should_suggest_enhancement
from intelligence.prompts import render_report_document
from orchestrator import ExternalJobClient, ExternalJobPoller, ResearchOrchestrator
from utils.exceptions import ResearchAgentError
from utils.logger import configure_package_logging


logger = logging.getLogger("main")


def _print(payload: Dict[str, Any]) -> None:
    print(json.dumps(payload, ensure_ascii=False, indent=2, default=str))


def _log_progress(event: Dict[str, Any]) -> None:
    name = event.get("event")
    if name == "phase_started":
        logger.info(f"[{event['index'] + 1}/{event['total']}] {event['phase_id']} running")
    elif name == "phase_failed":
        logger.error(event.get("error"))
    elif name == "job_status":
        logger.info(f"Job {event.get('job_id')}: {event.get('status')} ({event.get('progress')})")


async def _research(args, settings) -> Dict[str, Any]:
    llm = settings.llm
    if args.primary:
        llm.primary_provider = args.primary
    if args.secondary:
        llm.secondary_provider = args.secondary
    if args.dialectical:
        llm.dialectical_mode = True
    if args.external:
        settings.external_agent.enabled = True

    attachments = Path(args.attachments).read_text(encoding="utf-8") if args.attachments else None
    aggregator = None if args.no_evidence else EvidenceAggregator.from_settings(settings)
    orchestrator = ResearchOrchestrator(settings, aggregator=aggregator)
    try:
        outcome = await orchestrator.run(args.query, attachments, progress_callback=_log_progress)
    finally:
        await orchestrator.aclose()

    if args.output:
        Path(args.output).write_text(render_report_document(args.query, outcome.report), encoding="utf-8")
    return {
        "mode": outcome.mode,
        "record_id": outcome.record_id,
        "job_id": outcome.job_id,
        "phases": [{"id": p.id, "status": p.status.value} for p in outcome.phases],
        "papers": len(outcome.papers),
        "output": args.output,
        "report": None if args.output else outcome.report,
    }


async def _search(args, settings) -> Dict[str, Any]:
    async with EvidenceAggregator.from_settings(settings, show_summary=True) as aggregator:
        papers = await aggregator.aggregate(
            args.query,
            limit_per_source=args.limit_per_source,
            min_results=args.min_results,
        )
    return {"query": args.query, "count": len(papers), "papers": [p.model_dump(mode="json") for p in papers]}


async def _external(args, settings) -> Dict[str, Any]:
    api_key = settings.llm.gemini_api_key or ""
    if not api_key:
        raise ResearchAgentError("LLM_GEMINI_API_KEY is required for the external agent")
    client = ExternalJobClient.from_settings(api_key, settings.external_agent)
    poller = ExternalJobPoller.from_settings(client, settings.external_agent)
    try:
        result = await poller.run(args.query, status_callback=lambda s: logger.info(f"{s.job_id}: {s.status.value}"))
    finally:
        await client.aclose()
    return {"job_id": result.job_id, "report": result.report}


async def _test_providers(args, settings) -> Dict[str, Any]:
    registry = ProviderRegistry.from_settings(settings.llm)
    try:
        if args.provider:
            return {args.provider: await registry.test_connection(args.provider)}
        return await registry.test_all()
    finally:
        await registry.aclose()


async def _enhance(args, settings) -> Dict[str, Any]:
    if not should_suggest_enhancement(args.prompt):
        return {"enhanced": args.prompt, "skipped": True}
    registry = ProviderRegistry.from_settings(settings.llm)
    try:
        enhanced = await PromptEnhancer(registry, settings.llm.primary_provider).run(args.prompt)
    finally:
        await registry.aclose()
    return enhanced.model_dump(mode="json")


COMMANDS = {
    "research": _research,
    "search": _search,
    "external": _external,
    "test-providers": _test_providers,
    "enhance": _enhance,
}


def main() -> None:
    parser = argparse.ArgumentParser(description="Deep research agent CLI")
    sub = parser.add_subparsers(dest="command", required=True)

    research = sub.add_parser("research")
    research.add_argument("--query", required=True)
    research.add_argument("--primary", default="")
    research.add_argument("--secondary", default="")
    research.add_argument("--dialectical", action="store_true")
    research.add_argument("--external", action="store_true")
    research.add_argument("--no-evidence", action="store_true")
    research.add_argument("--attachments", default="")
    research.add_argument("--output", default="")

    search = sub.add_parser("search")
    search.add_argument("--query", required=True)
    search.add_argument("--limit-per-source", type=int, default=None)
    search.add_argument("--min-results", type=int, default=None)

    external = sub.add_parser("external")
    external.add_argument("--query", required=True)

    test = sub.add_parser("test-providers")
    test.add_argument("--provider", default="")

    enhance = sub.add_parser("enhance")
    enhance.add_argument("--prompt", required=True)

    args = parser.parse_args()
    settings = get_settings()
    configure_package_logging(settings.general.log_level, settings.general.log_file)

    try:
        payload = asyncio.run(COMMANDS[args.command](args, settings))
    except ResearchAgentError as e:
        _print({"error": str(e), "type": e.__class__.__name__})
        raise SystemExit(1)
    _print(payload)


if __name__ == "__main__":
    main()
