from typing import Any, Dict, Optional

import aiohttp

from media_task_client.errors import ProviderRejected, TransportError

SUCCESS_CODE = 200


async def read_envelope(
    response: aiohttp.ClientResponse,
    *,
    job_id: Optional[str] = None,
    kind: Optional[str] = None,
) -> Dict[str, Any]:
    """Reads a provider envelope ``{code, message, data}``.

    Non-2xx responses and unparseable bodies raise TransportError with the
    status and body text preserved. A well-formed envelope whose ``code`` is
    not a success raises ProviderRejected.
    """
    text = await response.text()
    if not 200 <= response.status < 300:
        raise TransportError(
            f"PiAPI error: {response.status} {response.reason}\n{text}",
            status=response.status,
            body=text,
            job_id=job_id,
            kind=kind,
        )

    try:
        envelope = await response.json(content_type=None)
    except ValueError as e:
        raise TransportError(
            f"Malformed response body: {text[:200]}",
            status=response.status,
            body=text,
            job_id=job_id,
            kind=kind,
        ) from e

    if not isinstance(envelope, dict):
        raise TransportError(
            f"Unexpected response body: {text[:200]}",
            status=response.status,
            body=text,
            job_id=job_id,
            kind=kind,
        )

    if envelope.get("code") != SUCCESS_CODE:
        raise ProviderRejected(
            f"Request rejected: {envelope.get('message') or 'unknown error'}",
            code=envelope.get("code"),
            job_id=job_id,
            kind=kind,
        )

    data = envelope.get("data")
    if data is not None and not isinstance(data, dict):
        raise TransportError(
            f"Unexpected data field in response: {text[:200]}",
            status=response.status,
            body=text,
            job_id=job_id,
            kind=kind,
        )
    return envelope
