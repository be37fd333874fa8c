from typing import Any, Optional


def redact(secret: Optional[str]) -> str:
    """Keeps the first four characters of a credential and masks the rest"""
    if not secret:
        return "<none>"
    return f"{secret[:4]}***"


class MediaTaskError(Exception):
    """Base class for every failure surfaced by the task engine"""

    def __init__(
        self,
        message: str,
        *,
        job_id: Optional[str] = None,
        kind: Optional[str] = None,
        attempts: Optional[int] = None,
        **context: Any,
    ):
        self.job_id = job_id
        self.kind = kind
        self.attempts = attempts
        self.context = context
        if job_id:
            message = f"TaskId: {job_id}, {message}"
        super().__init__(message)


class MissingCredentials(MediaTaskError):
    pass


class TransportError(MediaTaskError):
    def __init__(
        self,
        message: str,
        *,
        status: Optional[int] = None,
        body: Optional[str] = None,
        **kwargs: Any,
    ):
        self.status = status
        self.body = body
        super().__init__(message, **kwargs)


class ProviderRejected(MediaTaskError):
    def __init__(self, message: str, *, code: Optional[int] = None, **kwargs: Any):
        self.code = code
        super().__init__(message, **kwargs)


class JobFailed(MediaTaskError):
    def __init__(self, reason: str, **kwargs: Any):
        self.reason = reason
        super().__init__(f"Generation failed: {reason}", **kwargs)


class JobTimedOut(MediaTaskError):
    pass


class JobCancelled(MediaTaskError):
    pass


class UnknownJobState(MediaTaskError):
    def __init__(self, value: Any, **kwargs: Any):
        self.value = value
        super().__init__(f"Unknown task status: {value!r}", **kwargs)


class OutputValidationError(MediaTaskError):
    pass


class NoResourceFound(MediaTaskError):
    pass


class UnknownOutputCategory(MediaTaskError):
    pass
