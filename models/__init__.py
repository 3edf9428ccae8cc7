"""
Data Models
"""
from .schemas import (
    PROVIDER_DISPLAY_NAMES,
    AcademicPaper,
    AIResponse,
    DialecticalResult,
    ExternalJobStatus,
    JobState,
    PhaseStatus,
    PipelineResult,
    ProviderConfig,
    ProviderId,
    ResearchPhase,
    ResearchRecord,
    ScoredPaper,
    SourceType,
    title_from_prompt,
)

__all__ = [
    "PROVIDER_DISPLAY_NAMES",
    "AcademicPaper",
    "AIResponse",
    "DialecticalResult",
    "ExternalJobStatus",
    "JobState",
    "PhaseStatus",
    "PipelineResult",
    "ProviderConfig",
    "ProviderId",
    "ResearchPhase",
    "ResearchRecord",
    "ScoredPaper",
    "SourceType",
    "title_from_prompt",
]
