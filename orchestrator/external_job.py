"""External research agent client and deadline-bounded status poller."""

from __future__ import annotations

import asyncio
import inspect
import logging
import time
from dataclasses import dataclass
from typing import Any, AsyncIterator, Callable, Dict, Optional

import httpx

from config.settings import ExternalAgentSettings
from models import ExternalJobStatus, JobState
from utils.exceptions import (
    ExternalJobError,
    ExternalJobStartError,
    JobCancelledError,
    PollTimeoutError,
)


logger = logging.getLogger(__name__)

StatusCallback = Callable[[ExternalJobStatus], Any]


def _remote_error_message(response: httpx.Response) -> str:
    try:
        data = response.json()
    except ValueError:
        data = {}
    error = data.get("error") if isinstance(data, dict) else None
    if isinstance(error, dict) and error.get("message"):
        return str(error["message"])
    return f"API Error: {response.status_code} {response.reason_phrase}".strip()


def parse_job_status(job_id: str, data: Dict[str, Any]) -> ExternalJobStatus:
    """Map the remote interaction document onto a JobState snapshot"""
    error = data.get("error")
    metadata = data.get("metadata") or {}

    if data.get("done") is True:
        status = JobState.FAILED if error else JobState.COMPLETED
    elif metadata.get("state") == "RUNNING":
        status = JobState.RUNNING
    else:
        status = JobState.PENDING

    outputs = [
        output["text"]
        for output in (data.get("response") or {}).get("outputs") or []
        if isinstance(output, dict) and output.get("text")
    ]

    error_message = None
    if isinstance(error, dict):
        error_message = error.get("message") or str(error)
    elif error:
        error_message = str(error)

    progress = metadata.get("progress")
    return ExternalJobStatus(
        job_id=job_id,
        status=status,
        progress=float(progress) if isinstance(progress, (int, float)) else None,
        outputs=outputs,
        error=error_message,
    )


class ExternalJobClient:
    """HTTP client for the background research interactions API."""

    def __init__(
        self,
        api_key: str,
        *,
        base_url: str = "https://generativelanguage.googleapis.com/v1beta",
        agent: str = "deep-research-pro-preview-12-2025",
        timeout: float = 30.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self.api_key = api_key
        self.base_url = base_url.rstrip("/")
        self.agent = agent
        self.timeout = timeout
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None

    @classmethod
    def from_settings(cls, api_key: str, settings: ExternalAgentSettings, **kwargs) -> "ExternalJobClient":
        return cls(api_key, base_url=settings.base_url, agent=settings.agent, **kwargs)

    def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(
                timeout=httpx.Timeout(self.timeout),
                headers={"Content-Type": "application/json"},
                transport=self._transport,
            )
        return self._client

    async def start(self, query: str) -> str:
        """Create a background job and return its identifier."""
        client = self._get_client()
        try:
            response = await client.post(
                f"{self.base_url}/interactions",
                params={"key": self.api_key},
                json={"input": query, "agent": self.agent, "background": True},
            )
        except httpx.HTTPError as exc:
            raise ExternalJobStartError(f"Failed to start deep research: {exc}") from exc

        if response.is_error:
            raise ExternalJobStartError(_remote_error_message(response), status=response.status_code)

        try:
            data = response.json()
        except ValueError as exc:
            raise ExternalJobStartError("Malformed start response") from exc

        job_id = data.get("name") or data.get("id")
        if not job_id:
            raise ExternalJobStartError("Start response carried no job identifier")
        logger.info(f"External research job started: {job_id}")
        return str(job_id)

    async def poll(self, job_id: str) -> ExternalJobStatus:
        """Fetch one status snapshot; request failures come back as a failed snapshot."""
        client = self._get_client()
        try:
            response = await client.get(f"{self.base_url}/{job_id}", params={"key": self.api_key})
        except httpx.HTTPError as exc:
            return ExternalJobStatus(job_id=job_id, status=JobState.FAILED, error=str(exc) or "Failed to get status")

        if response.is_error:
            return ExternalJobStatus(
                job_id=job_id,
                status=JobState.FAILED,
                error=f"API Error: {response.status_code}",
            )
        try:
            data = response.json()
        except ValueError:
            return ExternalJobStatus(job_id=job_id, status=JobState.FAILED, error="Malformed status response")
        return parse_job_status(job_id, data)

    async def aclose(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None


@dataclass
class ExternalJobResult:
    job_id: str
    report: str
    last_status: ExternalJobStatus


async def _notify(callback: Optional[StatusCallback], status: ExternalJobStatus) -> None:
    if callback is None:
        return
    try:
        result = callback(status)
        if inspect.isawaitable(result):
            await result
    except Exception:
        logger.debug("Status callback failed", exc_info=True)


class ExternalJobPoller:
    """
    Polls a job on a fixed interval until it is terminal.

    The loop is bounded by a wall-clock deadline and can be cancelled
    through an asyncio.Event; no request is issued after it returns or
    raises.
    """

    def __init__(self, client: ExternalJobClient, *, poll_interval: float = 5.0, timeout: float = 600.0) -> None:
        self.client = client
        self.poll_interval = max(0.0, float(poll_interval))
        self.timeout = max(0.0, float(timeout))

    @classmethod
    def from_settings(cls, client: ExternalJobClient, settings: ExternalAgentSettings) -> "ExternalJobPoller":
        return cls(client, poll_interval=settings.poll_interval, timeout=settings.timeout)

    async def _wait(self, delay: float, cancel_event: Optional[asyncio.Event]) -> None:
        if cancel_event is None:
            await asyncio.sleep(delay)
            return
        try:
            await asyncio.wait_for(cancel_event.wait(), timeout=delay)
        except asyncio.TimeoutError:
            pass

    async def iter_status(
        self,
        job_id: str,
        cancel_event: Optional[asyncio.Event] = None,
    ) -> AsyncIterator[ExternalJobStatus]:
        """
        Yield snapshots until one is terminal.

        Raises:
            PollTimeoutError: deadline passed before a terminal snapshot
            JobCancelledError: cancel_event was set
        """
        started = time.monotonic()
        deadline = started + self.timeout

        def timed_out() -> PollTimeoutError:
            elapsed = time.monotonic() - started
            return PollTimeoutError(
                f"Research timed out after {elapsed:.1f}s",
                elapsed=elapsed,
                job_id=job_id,
            )

        while True:
            if cancel_event is not None and cancel_event.is_set():
                raise JobCancelledError("Polling cancelled", job_id)

            # a slow poll must not outlive the deadline
            try:
                status = await asyncio.wait_for(
                    self.client.poll(job_id),
                    timeout=max(0.0, deadline - time.monotonic()),
                )
            except asyncio.TimeoutError:
                raise timed_out() from None
            yield status
            if status.is_terminal:
                return

            remaining = deadline - time.monotonic()
            if remaining > 0:
                await self._wait(min(self.poll_interval, remaining), cancel_event)
            if cancel_event is not None and cancel_event.is_set():
                raise JobCancelledError("Polling cancelled", job_id)
            if time.monotonic() >= deadline:
                raise timed_out()

    async def run(
        self,
        query: str,
        status_callback: Optional[StatusCallback] = None,
        cancel_event: Optional[asyncio.Event] = None,
    ) -> ExternalJobResult:
        """
        Start a job and wait for its report.

        Raises:
            ExternalJobStartError: the job could not be created
            ExternalJobError: the job ended failed or cancelled remotely
            PollTimeoutError / JobCancelledError: see ``iter_status``
        """
        job_id = await self.client.start(query)
        last: Optional[ExternalJobStatus] = None

        async for status in self.iter_status(job_id, cancel_event):
            last = status
            await _notify(status_callback, status)

        if last.status == JobState.COMPLETED:
            return ExternalJobResult(job_id=job_id, report="\n\n".join(last.outputs), last_status=last)
        raise ExternalJobError(last.error or f"Research {last.status.value}", job_id, status=last.status.value)
