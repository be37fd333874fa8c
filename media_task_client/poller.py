import asyncio
import inspect
from typing import Any, Callable, Dict, Optional

import aiohttp
from loguru import logger

from media_task_client.envelope import read_envelope
from media_task_client.errors import (
    JobCancelled,
    JobFailed,
    JobTimedOut,
    TransportError,
    UnknownJobState,
)
from media_task_client.models import (
    ClientConfig,
    JobProfile,
    JobResult,
    JobState,
    StatusSnapshot,
)
from media_task_client.profiles import poll_interval


def _usage(data: Dict[str, Any]) -> str:
    meta = data.get("meta")
    usage = meta.get("usage") if isinstance(meta, dict) else None
    if isinstance(usage, dict):
        usage = usage.get("consume")
    return "unknown" if usage is None else str(usage)


def _failure_reason(data: Dict[str, Any]) -> str:
    error = data.get("error")
    if isinstance(error, dict):
        error = error.get("message")
    return str(error) if error else "Unknown error"


class StatusPoller:
    def __init__(
        self,
        config: ClientConfig,
        on_status_change: Optional[Callable[[StatusSnapshot], Any]] = None,
    ):
        self.config = config
        self.logger = logger
        self.on_status_change = on_status_change

    async def fetch_status(
        self,
        session: aiohttp.ClientSession,
        job_id: str,
        api_key: str,
        kind: Optional[str] = None,
    ) -> StatusSnapshot:
        """Fetches the current status of a task from the provider"""
        url = f"{self.config.base_url.rstrip('/')}/task/{job_id}"

        try:
            async with session.get(
                url,
                headers={self.config.credential_header: api_key},
                **self.config.request_kwargs(),
            ) as response:
                envelope = await read_envelope(response, job_id=job_id, kind=kind)
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            self.logger.error(f"HTTP error at {url}: {e!r}")
            raise TransportError(
                f"Status check failed: {e!r}", job_id=job_id, kind=kind
            ) from e

        data = envelope.get("data") or {}
        raw_status = data.get("status")
        try:
            state = JobState(str(raw_status).lower())
        except ValueError:
            raise UnknownJobState(raw_status, job_id=job_id, kind=kind) from None

        return StatusSnapshot(job_id=job_id, state=state, raw_response=envelope)

    async def _handle_status_change(
        self, snapshot: StatusSnapshot, last_state: Optional[JobState]
    ) -> None:
        """Invoke the status change callback if the state has changed"""
        if last_state == snapshot.state:
            return
        self.logger.info(f"Task {snapshot.job_id} status: {snapshot.state.value}")
        if self.on_status_change is not None:
            result = self.on_status_change(snapshot)
            if inspect.isawaitable(result):
                await result

    async def _wait_before_retry(
        self, delay: float, cancel_event: Optional[asyncio.Event]
    ) -> None:
        """Sleeps for delay, returning early when cancel_event is set"""
        self.logger.debug(f"Task still running, waiting {delay:.2f}s before next check")
        if cancel_event is None:
            await asyncio.sleep(delay)
            return
        try:
            await asyncio.wait_for(cancel_event.wait(), timeout=delay)
        except asyncio.TimeoutError:
            pass

    async def wait_until_terminal(
        self,
        session: aiohttp.ClientSession,
        job_id: str,
        profile: JobProfile,
        api_key: str,
        *,
        kind: Optional[str] = None,
        cancel_event: Optional[asyncio.Event] = None,
    ) -> JobResult:
        """Poll the task until it completes or fails, bounded by the profile's attempts and timeout"""
        start_time = asyncio.get_event_loop().time()
        delay = poll_interval(profile, self.config.max_poll_interval)
        attempt = 0
        last_state = None

        while True:
            if cancel_event is not None and cancel_event.is_set():
                raise JobCancelled(
                    "Polling cancelled by caller",
                    job_id=job_id,
                    kind=kind,
                    attempts=attempt,
                )

            attempt += 1
            self.logger.debug(
                f"Checking task status (attempt {attempt}/{profile.max_attempts})..."
            )
            snapshot = await self.fetch_status(session, job_id, api_key, kind)
            await self._handle_status_change(snapshot, last_state)
            last_state = snapshot.state

            data = snapshot.raw_response.get("data") or {}
            elapsed = asyncio.get_event_loop().time() - start_time

            if snapshot.state == JobState.failed:
                reason = _failure_reason(data)
                self.logger.error(f"Task {job_id} failed: {reason}")
                raise JobFailed(reason, job_id=job_id, kind=kind, attempts=attempt)

            if snapshot.state == JobState.completed:
                return JobResult(
                    job_id=job_id,
                    resource_usage=_usage(data),
                    raw_output=data.get("output"),
                    elapsed_seconds=elapsed,
                )

            if elapsed >= profile.timeout_seconds:
                message = (
                    f"Generation timed out after {profile.timeout_seconds} seconds "
                    f"({attempt}/{profile.max_attempts} status checks)"
                )
            elif attempt >= profile.max_attempts:
                message = (
                    f"Generation still {snapshot.state.value} after "
                    f"{profile.max_attempts} status checks ({elapsed:.1f}s elapsed)"
                )
            else:
                message = None
            if message is not None:
                self.logger.error(
                    f"Task {job_id} still {snapshot.state.value} after {attempt} checks and {elapsed:.1f}s"
                )
                raise JobTimedOut(message, job_id=job_id, kind=kind, attempts=attempt)

            # never sleep past the wall-clock budget
            remaining = profile.timeout_seconds - elapsed
            await self._wait_before_retry(min(delay, remaining), cancel_event)
