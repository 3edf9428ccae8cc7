"""Research orchestration: external agent polling and the top-level service."""

from .external_job import (
    ExternalJobClient,
    ExternalJobPoller,
    ExternalJobResult,
    parse_job_status,
)
from .service import ResearchOrchestrator, ResearchOutcome

__all__ = [
    "ExternalJobClient",
    "ExternalJobPoller",
    "ExternalJobResult",
    "parse_job_status",
    "ResearchOrchestrator",
    "ResearchOutcome",
]
