"""Tests for routing research between the pipeline and the external agent."""

import pytest

from config.settings import ExternalAgentSettings, LLMSettings, Settings
from models import ExternalJobStatus, JobState, ProviderId
from orchestrator import ResearchOrchestrator
from orchestrator.external_job import ExternalJobPoller
from storage import InMemoryHistoryStore


class _DoneClient:
    def __init__(self):
        self.closed = False

    async def start(self, query):
        return "interactions/xyz"

    async def poll(self, job_id):
        return ExternalJobStatus(job_id=job_id, status=JobState.COMPLETED, outputs=["External report"])

    async def aclose(self):
        self.closed = True


def _settings(external_enabled=False):
    return Settings(
        llm=LLMSettings(
            primary_provider="deepseek",
            secondary_provider=None,
            dialectical_mode=False,
            gemini_api_key=None,
        ),
        external_agent=ExternalAgentSettings(enabled=external_enabled, poll_interval=0, timeout=5),
    )


@pytest.mark.asyncio
async def test_runs_pipeline_by_default(fake_llm_cls, registry_factory):
    llm = fake_llm_cls(ProviderId.DEEPSEEK, replies=["one", "two", "three", "four", "five"])
    store = InMemoryHistoryStore()
    orchestrator = ResearchOrchestrator(_settings(), registry=registry_factory(llm), history_store=store)

    outcome = await orchestrator.run("sleep and memory")

    assert orchestrator.uses_external_agent is False
    assert outcome.mode == "pipeline"
    assert len(outcome.phases) == 5
    assert outcome.report.startswith("one")
    assert store.get(outcome.record_id).report == outcome.report


@pytest.mark.asyncio
async def test_routes_to_external_agent_when_enabled(fake_llm_cls, registry_factory):
    llm = fake_llm_cls(ProviderId.DEEPSEEK)
    client = _DoneClient()
    store = InMemoryHistoryStore()
    events = []
    orchestrator = ResearchOrchestrator(
        _settings(external_enabled=True),
        registry=registry_factory(llm),
        history_store=store,
        poller=ExternalJobPoller(client, poll_interval=0, timeout=5),
    )

    outcome = await orchestrator.run("sleep and memory", progress_callback=events.append)
    await orchestrator.aclose()

    assert outcome.mode == "external"
    assert outcome.report == "External report"
    assert outcome.job_id == "interactions/xyz"
    assert outcome.phases[0].status.value == "completed"
    assert llm.calls == []
    assert events == [{"event": "job_status", "job_id": "interactions/xyz", "status": "completed", "progress": None}]
    assert store.get(outcome.record_id).report == "External report"
    assert client.closed is True


def test_external_agent_needs_gemini_key_without_injected_poller(fake_llm_cls, registry_factory):
    registry = registry_factory(fake_llm_cls(ProviderId.DEEPSEEK))
    orchestrator = ResearchOrchestrator(_settings(external_enabled=True), registry=registry)

    assert orchestrator.uses_external_agent is False

    registry.update_config("gemini", api_key="g-key")
    assert orchestrator.uses_external_agent is True
