"""Tests for shared value types."""

import pytest

from models import (
    AcademicPaper,
    ExternalJobStatus,
    JobState,
    PhaseStatus,
    ResearchPhase,
    ResearchRecord,
    SourceType,
)
from models.schemas import title_from_prompt
from utils.exceptions import PhaseTransitionError


def _phase():
    return ResearchPhase(id="literature", name="Literature Discovery")


def test_phase_moves_forward_only():
    phase = _phase()
    phase.start()
    phase.complete("done")

    assert phase.status == PhaseStatus.COMPLETED
    assert phase.output == "done"
    assert phase.is_terminal
    with pytest.raises(PhaseTransitionError):
        phase.start()
    with pytest.raises(PhaseTransitionError):
        phase.fail("late")


def test_phase_must_run_before_finishing():
    with pytest.raises(PhaseTransitionError):
        _phase().complete("too early")

    failed = _phase()
    failed.start()
    failed.fail("boom")
    assert failed.status == PhaseStatus.ERROR
    with pytest.raises(PhaseTransitionError):
        failed.complete("retry")


def test_dedup_key_prefers_doi():
    with_doi = AcademicPaper(paper_id="1", title="A", doi=" 10.1/ABC ", source=SourceType.ARXIV)
    long_title = AcademicPaper(paper_id="2", title="  An   Extremely " + "long " * 20, source=SourceType.ARXIV)

    assert with_doi.dedup_key == "doi:10.1/abc"
    assert long_title.dedup_key.startswith("title:an extremely long")
    assert len(long_title.dedup_key) == len("title:") + 50


def test_title_from_prompt():
    assert title_from_prompt("Short question\nwith details") == "Short question"
    assert title_from_prompt("x" * 80) == "x" * 47 + "..."
    assert title_from_prompt("   ") == "Untitled research"


def test_record_snapshots_phases():
    phase = _phase()
    phase.start()
    record = ResearchRecord.from_run("prompt", "report", [phase])

    phase.complete("later")

    assert record.phases[0].status == PhaseStatus.RUNNING


def test_job_status_terminal_states():
    assert not ExternalJobStatus(job_id="j", status=JobState.RUNNING).is_terminal
    for state in (JobState.COMPLETED, JobState.FAILED, JobState.CANCELLED):
        assert ExternalJobStatus(job_id="j", status=state).is_terminal
