"""
Custom Exceptions
自定义异常 - 供应商、数据源、流水线与外部任务共用
"""
from typing import Any, List, Optional


QUOTA_MARKERS = (
    "quota",
    "rate limit",
    "rate_limit",
    "insufficient balance",
    "insufficient_quota",
    "resource_exhausted",
    "resource exhausted",
)


class ResearchAgentError(Exception):
    """Base error for the research agent"""

    def __init__(self, message: str, details: dict = None):
        self.message = message
        self.details = details or {}
        super().__init__(self.message)

    def __str__(self):
        if self.details:
            return f"{self.message} | Details: {self.details}"
        return self.message


class ConfigurationError(ResearchAgentError):
    """Missing or invalid configuration, e.g. an empty API key"""
    pass


class ProviderError(ResearchAgentError):
    """LLM provider call failure"""

    def __init__(self, message: str, provider: str = None, **kwargs):
        super().__init__(message, kwargs)
        self.provider = provider


class RemoteError(ProviderError):
    """Non-success response or malformed payload from a provider"""

    def __init__(self, message: str, provider: str = None, status: Optional[int] = None, body: str = "", **kwargs):
        super().__init__(message, provider, status=status, **kwargs)
        self.status = status
        self.body = body or ""

    @property
    def is_quota_error(self) -> bool:
        if self.status in (402, 429):
            return True
        text = f"{self.message} {self.body}".lower()
        return any(marker in text for marker in QUOTA_MARKERS)


class ProviderTimeoutError(ProviderError):
    """Provider did not answer in time"""
    pass


class InsufficientProvidersError(ResearchAgentError):
    """Dialectical mode requested without a second provider"""
    pass


class PhaseTransitionError(ResearchAgentError):
    """Illegal research phase state change"""
    pass


class PhaseExecutionError(ResearchAgentError):
    """A pipeline phase failed; later phases were not run"""

    def __init__(
        self,
        phase_id: str,
        phase_name: str,
        provider: Optional[str],
        cause: BaseException,
        phases: Optional[List[Any]] = None,
    ):
        super().__init__(
            f"Phase '{phase_name}' failed: {cause}",
            {"phase_id": phase_id, "provider": provider},
        )
        self.phase_id = phase_id
        self.phase_name = phase_name
        self.provider = provider
        self.cause = cause
        self.phases = list(phases or [])


class ExternalJobError(ResearchAgentError):
    """External research job failed remotely"""

    def __init__(self, message: str, job_id: Optional[str] = None, **kwargs):
        super().__init__(message, kwargs)
        self.job_id = job_id


class ExternalJobStartError(ExternalJobError):
    """External research job could not be created"""
    pass


class JobCancelledError(ExternalJobError):
    """Polling stopped because the caller cancelled"""
    pass


class PollTimeoutError(ResearchAgentError, TimeoutError):
    """External job did not finish before the deadline"""

    def __init__(self, message: str, elapsed: float, job_id: Optional[str] = None):
        super().__init__(message, {"elapsed": round(elapsed, 3), "job_id": job_id})
        self.elapsed = elapsed
        self.job_id = job_id
