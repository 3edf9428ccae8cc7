"""
Data Models / Schemas
Shared value types for providers, evidence, phases and external jobs.
"""
import re
from datetime import datetime
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field

from utils.exceptions import PhaseTransitionError


class ProviderId(str, Enum):
    """LLM backend identity"""
    GEMINI = "gemini"
    DEEPSEEK = "deepseek"
    CLAUDE = "claude"
    OPENAI = "openai"


PROVIDER_DISPLAY_NAMES = {
    ProviderId.GEMINI: "Google Gemini",
    ProviderId.DEEPSEEK: "DeepSeek",
    ProviderId.CLAUDE: "Anthropic Claude",
    ProviderId.OPENAI: "OpenAI",
}


class SourceType(str, Enum):
    """Bibliographic source"""
    SEMANTIC_SCHOLAR = "semantic_scholar"
    OPENALEX = "openalex"
    ARXIV = "arxiv"
    CROSSREF = "crossref"


class ProviderConfig(BaseModel):
    """Per-provider credentials and model choice"""
    api_key: str = Field(default="", description="Empty means not configured")
    model: str = Field(..., description="Model requested by default")
    enabled: bool = Field(default=True)

    @property
    def is_configured(self) -> bool:
        return bool(self.api_key.strip())


class AIResponse(BaseModel):
    """One completed generation"""
    model_config = ConfigDict(frozen=True)

    content: str
    provider: ProviderId
    model: str = Field(..., description="Model that produced the content")
    tokens_used: Optional[int] = None


_WHITESPACE = re.compile(r"\s+")


class AcademicPaper(BaseModel):
    """Normalized paper record from any bibliographic source"""
    model_config = ConfigDict(frozen=True)

    paper_id: str = Field(..., description="Source-specific identifier")
    title: str
    authors: List[str] = Field(default_factory=list)
    year: int = Field(default=0, description="0 when unknown")
    abstract: Optional[str] = None
    doi: Optional[str] = None
    url: Optional[str] = None
    citation_count: Optional[int] = None
    venue: Optional[str] = None
    source: SourceType

    @property
    def dedup_key(self) -> str:
        """DOI when present, otherwise a normalized title prefix"""
        if self.doi and self.doi.strip():
            return f"doi:{self.doi.strip().lower()}"
        title = _WHITESPACE.sub(" ", self.title.strip().lower())
        return f"title:{title[:50]}"


class ScoredPaper(AcademicPaper):
    """Paper annotated with its quality score"""
    quality_score: float = Field(..., ge=0.0, le=1.0)
    verified: bool = Field(default=False, description="True when a DOI is present")


class PhaseStatus(str, Enum):
    PENDING = "pending"
    RUNNING = "running"
    COMPLETED = "completed"
    ERROR = "error"


class ResearchPhase(BaseModel):
    """One step of the research pipeline; terminal states are final"""
    id: str
    name: str
    description: str = ""
    status: PhaseStatus = PhaseStatus.PENDING
    output: Optional[str] = None

    @property
    def is_terminal(self) -> bool:
        return self.status in (PhaseStatus.COMPLETED, PhaseStatus.ERROR)

    def _require(self, expected: PhaseStatus, target: PhaseStatus) -> None:
        if self.status != expected:
            raise PhaseTransitionError(
                f"Phase '{self.id}' cannot move from {self.status.value} to {target.value}",
                {"phase_id": self.id},
            )

    def start(self) -> None:
        self._require(PhaseStatus.PENDING, PhaseStatus.RUNNING)
        self.status = PhaseStatus.RUNNING

    def complete(self, output: str) -> None:
        self._require(PhaseStatus.RUNNING, PhaseStatus.COMPLETED)
        self.status = PhaseStatus.COMPLETED
        self.output = output

    def fail(self, message: str) -> None:
        self._require(PhaseStatus.RUNNING, PhaseStatus.ERROR)
        self.status = PhaseStatus.ERROR
        self.output = message


class DialecticalResult(BaseModel):
    """Both analyses and the primary-authored synthesis of one run"""
    model_config = ConfigDict(frozen=True)

    primary: AIResponse
    secondary: AIResponse
    primary_review: Optional[AIResponse] = None
    secondary_review: Optional[AIResponse] = None
    synthesis: str
    synthesis_provider: ProviderId


class JobState(str, Enum):
    PENDING = "pending"
    RUNNING = "running"
    COMPLETED = "completed"
    FAILED = "failed"
    CANCELLED = "cancelled"


TERMINAL_JOB_STATES = frozenset({JobState.COMPLETED, JobState.FAILED, JobState.CANCELLED})


class ExternalJobStatus(BaseModel):
    """Latest snapshot of a remote research job"""
    model_config = ConfigDict(frozen=True)

    job_id: str
    status: JobState
    progress: Optional[float] = None
    outputs: List[str] = Field(default_factory=list)
    error: Optional[str] = None

    @property
    def is_terminal(self) -> bool:
        return self.status in TERMINAL_JOB_STATES


def title_from_prompt(prompt: str) -> str:
    first_line = prompt.strip().split("\n", 1)[0].strip()
    if len(first_line) > 50:
        return first_line[:47] + "..."
    return first_line or "Untitled research"


class ResearchRecord(BaseModel):
    """History entry for a finished research run"""
    title: str
    prompt: str
    report: str
    phases: List[ResearchPhase] = Field(default_factory=list)
    status: str = "completed"
    created_at: datetime = Field(default_factory=datetime.now)

    @classmethod
    def from_run(cls, prompt: str, report: str, phases: List[ResearchPhase], status: str = "completed") -> "ResearchRecord":
        return cls(
            title=title_from_prompt(prompt),
            prompt=prompt,
            report=report,
            phases=[p.model_copy(deep=True) for p in phases],
            status=status,
        )


class PipelineResult(BaseModel):
    """Outcome of a complete pipeline run"""
    query: str
    phases: List[ResearchPhase]
    report: str
    papers: List[ScoredPaper] = Field(default_factory=list)
    record_id: Optional[str] = None
