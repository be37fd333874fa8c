import asyncio
from pathlib import Path
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional, Tuple
from urllib.parse import urlparse

import aiohttp
from loguru import logger

from media_task_client.errors import (
    MediaTaskError,
    MissingCredentials,
    TransportError,
    UnknownOutputCategory,
)
from media_task_client.models import (
    ClientConfig,
    JobProfile,
    JobRequest,
    JobResult,
    OutputCategory,
    StatusSnapshot,
    TaskOutcome,
    TaskRun,
)
from media_task_client.parsers import extract
from media_task_client.poller import StatusPoller
from media_task_client.profiles import DEFAULT_PROFILE, PROFILES, effective_steps, lookup
from media_task_client.schemas import validate_output
from media_task_client.submitter import JobSubmitter


class MediaTaskClient:
    """Submits a generation task, waits for it and returns its validated output.

    Each call owns its task id and HTTP session; the only state shared between
    concurrent calls is the read-only profile registry.
    """

    def __init__(
        self,
        config: Optional[ClientConfig] = None,
        profiles: Mapping[str, JobProfile] = PROFILES,
        on_status_change: Optional[Callable[[StatusSnapshot], Any]] = None,
    ):
        self.config = config or ClientConfig()
        self.profiles = profiles
        self.logger = logger
        self.submitter = JobSubmitter(self.config)
        self.poller = StatusPoller(self.config, on_status_change)

    def _session(self) -> aiohttp.ClientSession:
        return aiohttp.ClientSession(
            timeout=aiohttp.ClientTimeout(total=self.config.request_timeout)
        )

    def _credentials(self, api_key: Optional[str], kind: Optional[str] = None) -> str:
        key = api_key or self.config.api_key
        if not key:
            raise MissingCredentials("PiAPI API key missing from call and configuration", kind=kind)
        return key

    def resolve_profile(self, kind: str) -> JobProfile:
        profile = lookup(kind, self.profiles)
        if profile is None:
            self.logger.warning(f"No configuration found for model {kind}, using defaults")
            return DEFAULT_PROFILE
        return profile

    def _resolve_category(
        self, kind: str, profile: JobProfile, category: Optional[OutputCategory]
    ) -> OutputCategory:
        resolved = category or profile.category
        if resolved is None:
            raise UnknownOutputCategory(
                f"No output category known for {kind}; pass category explicitly", kind=kind
            )
        return OutputCategory(resolved)

    def _prepare_input(
        self, request: JobRequest, profile: JobProfile
    ) -> Tuple[Dict[str, Any], int]:
        """Copies the request input, writing the clamped step count into the profile's step keys"""
        payload = dict(request.input)
        steps = effective_steps(profile, request.steps)
        for key in profile.steps_keys:
            payload[key] = steps
        if "batch_size" in payload and not profile.supports_batch_size:
            self.logger.warning(f"{request.kind} does not support batch_size, dropping it")
            del payload["batch_size"]
        return payload, steps

    def _finish(
        self, result: JobResult, kind: str, category: OutputCategory, steps: int
    ) -> TaskOutcome:
        validated = validate_output(category, result.job_id, result.raw_output)
        output = extract(category, result.job_id, validated)
        self.logger.info(
            f"Task {result.job_id} completed in {result.elapsed_seconds:.1f}s, usage {result.resource_usage}"
        )
        return TaskOutcome(
            job_id=result.job_id,
            kind=kind,
            category=category,
            steps=steps,
            usage=result.resource_usage,
            elapsed_seconds=result.elapsed_seconds,
            output=output,
        )

    async def _execute(
        self,
        request: JobRequest,
        api_key: Optional[str],
        category: Optional[OutputCategory],
        cancel_event: Optional[asyncio.Event],
    ) -> TaskOutcome:
        profile = self.resolve_profile(request.kind)
        resolved_category = self._resolve_category(request.kind, profile, category)
        key = self._credentials(api_key, request.kind)
        payload, steps = self._prepare_input(request, profile)

        try:
            async with self._session() as session:
                job_id = await self.submitter.create(session, request, payload, key)
                self.logger.info(
                    f"Task created with ID: {job_id} ({request.kind}/{request.operation})"
                )
                result = await self.poller.wait_until_terminal(
                    session,
                    job_id,
                    profile,
                    key,
                    kind=request.kind,
                    cancel_event=cancel_event,
                )
            return self._finish(result, request.kind, resolved_category, steps)
        except MediaTaskError as e:
            if e.kind is None:
                e.kind = request.kind
            raise

    async def submit_and_wait(
        self,
        kind: str,
        operation: str,
        input: Optional[Dict[str, Any]] = None,
        *,
        steps: Optional[int] = None,
        api_key: Optional[str] = None,
        category: Optional[OutputCategory] = None,
        cancel_event: Optional[asyncio.Event] = None,
    ) -> TaskOutcome:
        """Create a task and wait for its validated output, raising MediaTaskError on failure"""
        request = JobRequest(kind=kind, operation=operation, input=input or {}, steps=steps)
        return await self._execute(request, api_key, category, cancel_event)

    async def run(
        self,
        request: JobRequest,
        api_key: Optional[str] = None,
        *,
        category: Optional[OutputCategory] = None,
        cancel_event: Optional[asyncio.Event] = None,
    ) -> TaskRun:
        """Like submit_and_wait, but every MediaTaskError comes back as a value"""
        try:
            outcome = await self._execute(request, api_key, category, cancel_event)
        except MediaTaskError as e:
            self.logger.error(f"{request.kind}/{request.operation} failed: {e}")
            return TaskRun(error=e)
        return TaskRun(outcome=outcome)

    async def get_task_status(self, job_id: str, api_key: Optional[str] = None) -> StatusSnapshot:
        """Single status query for an existing task"""
        key = self._credentials(api_key)
        async with self._session() as session:
            return await self.poller.fetch_status(session, job_id, key)

    async def wait_for_task(
        self,
        job_id: str,
        kind: str,
        *,
        api_key: Optional[str] = None,
        category: Optional[OutputCategory] = None,
        cancel_event: Optional[asyncio.Event] = None,
    ) -> TaskOutcome:
        """Resume waiting on a task submitted earlier, under the kind's profile"""
        profile = self.resolve_profile(kind)
        resolved_category = self._resolve_category(kind, profile, category)
        key = self._credentials(api_key, kind)
        async with self._session() as session:
            result = await self.poller.wait_until_terminal(
                session, job_id, profile, key, kind=kind, cancel_event=cancel_event
            )
        return self._finish(result, kind, resolved_category, profile.default_steps)

    async def download_outputs(
        self, urls: Iterable[str], directory: Optional[str] = None
    ) -> List[Path]:
        """Downloads result files into directory (or the configured output directory)"""
        target = directory or self.config.output_directory
        if not target:
            raise ValueError("No output directory configured")
        output_dir = Path(target)
        output_dir.mkdir(parents=True, exist_ok=True)

        saved = []
        async with self._session() as session:
            for index, url in enumerate(urls, start=1):
                name = Path(urlparse(url).path).name or f"output_{index}"
                path = output_dir / name
                try:
                    async with session.get(url, **self.config.request_kwargs()) as response:
                        if not 200 <= response.status < 300:
                            text = await response.text()
                            raise TransportError(
                                f"Failed to download {url}: {response.status} {response.reason}",
                                status=response.status,
                                body=text,
                            )
                        path.write_bytes(await response.read())
                except (aiohttp.ClientError, asyncio.TimeoutError) as e:
                    raise TransportError(f"Failed to download {url}: {e!r}") from e
                self.logger.info(f"Saved {url} to {path}")
                saved.append(path)
        return saved
