"""Shape checks for the payload of a completed task, one model per output category.

Validation never touches the network and never mutates the provider payload.
A payload that passes here may still be operationally empty (for example an
empty clip map); the parsers in ``media_task_client.parsers`` reject those.
"""
from typing import Any, Dict, List, Optional, Type

from pydantic import BaseModel, ConfigDict, Field, ValidationError, model_validator

from media_task_client.errors import OutputValidationError
from media_task_client.models import OutputCategory


class ImageOutput(BaseModel):
    image_url: Optional[str] = None
    image_urls: Optional[List[str]] = None

    @model_validator(mode="after")
    def _require_image(self) -> "ImageOutput":
        if not self.image_url and not self.image_urls:
            raise ValueError("At least one image URL must be provided")
        return self


class VideoOutput(BaseModel):
    video_url: str

    @model_validator(mode="after")
    def _require_video(self) -> "VideoOutput":
        if not self.video_url:
            raise ValueError("At least one video URL must be provided")
        return self


class AudioOutput(BaseModel):
    audio_url: str

    @model_validator(mode="after")
    def _require_audio(self) -> "AudioOutput":
        if not self.audio_url:
            raise ValueError("At least one audio URL must be provided")
        return self


class Model3DOutput(BaseModel):
    model_config = ConfigDict(protected_namespaces=())

    model_file: Optional[str] = None
    combined_video: Optional[str] = None
    no_background_image: Optional[str] = None

    @model_validator(mode="after")
    def _require_any(self) -> "Model3DOutput":
        if not (self.model_file or self.combined_video or self.no_background_image):
            raise ValueError("At least one of model_file, combined_video, no_background_image must be provided")
        return self


class Song(BaseModel):
    title: Optional[str] = None
    song_path: Optional[str] = None
    image_path: Optional[str] = None
    lyrics: Optional[str] = None
    duration: float = 0
    tags: List[str] = []


class MusicOutput(BaseModel):
    songs: List[Song]


class SunoClipMetadata(BaseModel):
    tags: Optional[str] = None
    duration: Optional[float] = None
    prompt: Optional[str] = None


class SunoClip(BaseModel):
    audio_url: str
    image_url: Optional[str] = None
    video_url: Optional[str] = None
    title: Optional[str] = None
    metadata: SunoClipMetadata = Field(default_factory=SunoClipMetadata)


class SunoMusicOutput(BaseModel):
    clips: Dict[str, SunoClip]


class KlingVideo(BaseModel):
    resource: Optional[str] = None
    resource_without_watermark: Optional[str] = None


class KlingWork(BaseModel):
    video: Optional[KlingVideo] = None


class KlingOutput(BaseModel):
    video_url: Optional[str] = None
    works: List[KlingWork] = []


class LumaAsset(BaseModel):
    url: str
    width: int
    height: int


class LumaOutput(BaseModel):
    video_raw: LumaAsset
    last_frame: Optional[LumaAsset] = None


OUTPUT_SCHEMAS: Dict[OutputCategory, Type[BaseModel]] = {
    OutputCategory.image: ImageOutput,
    OutputCategory.video: VideoOutput,
    OutputCategory.audio: AudioOutput,
    OutputCategory.model_3d: Model3DOutput,
    OutputCategory.music: MusicOutput,
    OutputCategory.suno_music: SunoMusicOutput,
    OutputCategory.kling_video: KlingOutput,
    OutputCategory.luma_video: LumaOutput,
}

_missing = set(OutputCategory) - set(OUTPUT_SCHEMAS)
if _missing:
    raise RuntimeError(f"No output schema for categories: {sorted(c.value for c in _missing)}")


def _first_violation(error: ValidationError) -> str:
    first = error.errors()[0]
    location = ".".join(str(part) for part in first["loc"]) or "<root>"
    return f"{location}: {first['msg']}"


def validate_output(category: OutputCategory, job_id: str, raw_output: Any) -> BaseModel:
    """Checks raw_output against the schema of its category"""
    schema = OUTPUT_SCHEMAS[category]
    try:
        return schema.model_validate(raw_output)
    except ValidationError as e:
        raise OutputValidationError(
            f"Invalid {category.value} output format: {_first_violation(e)}",
            job_id=job_id,
        ) from e
