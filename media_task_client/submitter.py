import asyncio
from typing import Any, Dict

import aiohttp
from loguru import logger

from media_task_client.envelope import read_envelope
from media_task_client.errors import ProviderRejected, TransportError, redact
from media_task_client.models import ClientConfig, JobRequest


class JobSubmitter:
    """Sends exactly one creation request per call; never retries"""

    def __init__(self, config: ClientConfig):
        self.config = config
        self.logger = logger

    def _headers(self, api_key: str) -> Dict[str, str]:
        return {
            self.config.credential_header: api_key,
            "Content-Type": "application/json",
        }

    async def create(
        self,
        session: aiohttp.ClientSession,
        request: JobRequest,
        payload: Dict[str, Any],
        api_key: str,
    ) -> str:
        url = f"{self.config.base_url.rstrip('/')}/task"
        body = {"model": request.kind, "task_type": request.operation, "input": payload}

        if self.config.ignore_ssl_errors:
            self.logger.info("SSL verification disabled")

        try:
            async with session.post(
                url,
                json=body,
                headers=self._headers(api_key),
                **self.config.request_kwargs(),
            ) as response:
                envelope = await read_envelope(response, kind=request.kind)
        except TransportError as e:
            self.logger.error(
                f"Task creation failed for {request.kind} (key {redact(api_key)}): {e}"
            )
            raise
        except ProviderRejected as e:
            self.logger.error(f"Task creation rejected for {request.kind}: {e}")
            raise
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            self.logger.error(f"HTTP error at {url}: {e!r}")
            raise TransportError(
                f"Could not reach {url}: {e!r}",
                kind=request.kind,
                credential=redact(api_key),
            ) from e

        task_id = (envelope.get("data") or {}).get("task_id")
        if not task_id:
            raise ProviderRejected(
                "Task creation response carried no task_id",
                code=envelope.get("code"),
                kind=request.kind,
            )
        return str(task_id)
