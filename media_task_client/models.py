import os
from enum import Enum
from typing import Any, Dict, Optional, Tuple

from dotenv import load_dotenv
from pydantic import BaseModel, ConfigDict, Field


class JobState(str, Enum):
    pending = "pending"
    processing = "processing"
    completed = "completed"
    failed = "failed"

    @property
    def is_terminal(self) -> bool:
        return self in (JobState.completed, JobState.failed)


class OutputCategory(str, Enum):
    image = "image"
    video = "video"
    audio = "audio"
    model_3d = "model_3d"
    music = "music"
    suno_music = "suno_music"
    kling_video = "kling_video"
    luma_video = "luma_video"


class JobRequest(BaseModel):
    model_config = ConfigDict(frozen=True)

    kind: str
    operation: str
    input: Dict[str, Any] = Field(default_factory=dict)
    steps: Optional[int] = None


class JobProfile(BaseModel):
    """Tunable limits for one job kind"""

    model_config = ConfigDict(frozen=True)

    default_steps: int = Field(default=25, ge=1)
    max_steps: int = Field(default=50, ge=1)
    max_attempts: int = Field(default=30, ge=1)
    timeout_seconds: float = Field(default=180.0, gt=0)
    category: Optional[OutputCategory] = None
    steps_keys: Tuple[str, ...] = ()
    supports_batch_size: bool = False


class StatusSnapshot(BaseModel):
    job_id: str
    state: JobState
    raw_response: dict


class JobResult(BaseModel):
    job_id: str
    resource_usage: str
    raw_output: Any = None
    elapsed_seconds: float


class TaskOutcome(BaseModel):
    job_id: str
    kind: str
    category: OutputCategory
    steps: int
    usage: str
    elapsed_seconds: float
    output: Any


class TaskRun(BaseModel):
    """Value-returning wrapper around one orchestration call"""

    model_config = ConfigDict(arbitrary_types_allowed=True)

    outcome: Optional[TaskOutcome] = None
    error: Optional[Exception] = None

    @property
    def ok(self) -> bool:
        return self.error is None


class ClientConfig(BaseModel):
    base_url: str = "https://api.piapi.ai/api/v1"
    api_key: Optional[str] = None
    credential_header: str = "X-API-Key"
    request_timeout: float = 30.0
    max_poll_interval: float = 5.0  # ceiling on a single sleep between status checks
    ignore_ssl_errors: bool = False
    output_directory: Optional[str] = None

    @classmethod
    def from_env(cls) -> "ClientConfig":
        """Builds a config from PIAPI_* environment variables, reading .env first"""
        load_dotenv()
        values: Dict[str, Any] = {}
        if os.getenv("PIAPI_BASE_URL"):
            values["base_url"] = os.getenv("PIAPI_BASE_URL")
        if os.getenv("PIAPI_API_KEY"):
            values["api_key"] = os.getenv("PIAPI_API_KEY")
        if os.getenv("PIAPI_REQUEST_TIMEOUT"):
            values["request_timeout"] = float(os.getenv("PIAPI_REQUEST_TIMEOUT"))
        if os.getenv("PIAPI_OUTPUT_DIRECTORY"):
            values["output_directory"] = os.getenv("PIAPI_OUTPUT_DIRECTORY")
        values["ignore_ssl_errors"] = os.getenv(
            "PIAPI_IGNORE_SSL_ERRORS", "false"
        ).lower() in ("1", "true", "yes")
        return cls(**values)

    def request_kwargs(self) -> Dict[str, Any]:
        """Extra keyword arguments for every aiohttp request"""
        return {"ssl": False} if self.ignore_ssl_errors else {}
