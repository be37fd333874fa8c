from typing import Callable, Dict, List, Optional

from pydantic import BaseModel, ConfigDict

from media_task_client.errors import NoResourceFound
from media_task_client.models import OutputCategory
from media_task_client.schemas import (
    AudioOutput,
    ImageOutput,
    KlingOutput,
    LumaAsset,
    LumaOutput,
    Model3DOutput,
    MusicOutput,
    SunoMusicOutput,
    VideoOutput,
)


class MusicClip(BaseModel):
    audio_url: str
    video_url: Optional[str] = None
    image_url: Optional[str] = None
    title: str = "Untitled"
    lyrics: str = ""
    duration: float = 0
    tags: List[str] = []


class Model3DAsset(BaseModel):
    model_config = ConfigDict(protected_namespaces=())

    model_url: str
    preview_video_url: Optional[str] = None
    cutout_image_url: Optional[str] = None


class LumaVideo(BaseModel):
    video: LumaAsset
    last_frame: Optional[LumaAsset] = None


def parse_images(job_id: str, output: ImageOutput) -> List[str]:
    urls = [url for url in [output.image_url, *(output.image_urls or [])] if url]
    if not urls:
        raise NoResourceFound("Task completed but no image URLs found", job_id=job_id)
    return urls


def parse_video(job_id: str, output: VideoOutput) -> str:
    if not output.video_url:
        raise NoResourceFound("Task completed but no video URL found", job_id=job_id)
    return output.video_url


def parse_audio(job_id: str, output: AudioOutput) -> str:
    if not output.audio_url:
        raise NoResourceFound("Task completed but no audio URL found", job_id=job_id)
    return output.audio_url


def parse_model_3d(job_id: str, output: Model3DOutput) -> Model3DAsset:
    if not output.model_file:
        raise NoResourceFound("No model file URL in completed task", job_id=job_id)
    return Model3DAsset(
        model_url=output.model_file,
        preview_video_url=output.combined_video or None,
        cutout_image_url=output.no_background_image or None,
    )


def parse_music(job_id: str, output: MusicOutput) -> List[MusicClip]:
    clips = [
        MusicClip(
            audio_url=song.song_path,
            image_url=song.image_path or None,
            title=song.title or "Untitled",
            lyrics=song.lyrics or "",
            duration=song.duration,
            tags=song.tags,
        )
        for song in output.songs
        if song.song_path
    ]
    if not clips:
        raise NoResourceFound("No songs were generated", job_id=job_id)
    return clips


def parse_suno_music(job_id: str, output: SunoMusicOutput) -> List[MusicClip]:
    clips = []
    for clip_id, clip in output.clips.items():
        if not clip.audio_url:
            continue
        tags = clip.metadata.tags or ""
        clips.append(
            MusicClip(
                audio_url=clip.audio_url,
                video_url=clip.video_url or None,
                image_url=clip.image_url or None,
                title=clip.title or clip_id,
                duration=clip.metadata.duration or 0,
                tags=[tag.strip() for tag in tags.split(",") if tag.strip()],
            )
        )
    if not clips:
        raise NoResourceFound("Task completed but no audio/image URLs found", job_id=job_id)
    return clips


def parse_kling_video(job_id: str, output: KlingOutput) -> List[str]:
    urls = [output.video_url]
    for work in output.works:
        if work.video is not None:
            urls.append(work.video.resource_without_watermark or work.video.resource)
    urls = [url for url in urls if url]
    if not urls:
        raise NoResourceFound("Task completed but no video/work URLs found", job_id=job_id)
    return urls


def parse_luma_video(job_id: str, output: LumaOutput) -> LumaVideo:
    if not output.video_raw.url:
        raise NoResourceFound("Task completed but no video URL found", job_id=job_id)
    return LumaVideo(video=output.video_raw, last_frame=output.last_frame)


PARSERS: Dict[OutputCategory, Callable] = {
    OutputCategory.image: parse_images,
    OutputCategory.video: parse_video,
    OutputCategory.audio: parse_audio,
    OutputCategory.model_3d: parse_model_3d,
    OutputCategory.music: parse_music,
    OutputCategory.suno_music: parse_suno_music,
    OutputCategory.kling_video: parse_kling_video,
    OutputCategory.luma_video: parse_luma_video,
}

_missing = set(OutputCategory) - set(PARSERS)
if _missing:
    raise RuntimeError(f"No output parser for categories: {sorted(c.value for c in _missing)}")


def extract(category: OutputCategory, job_id: str, validated: BaseModel):
    """Turns a validated payload into the representation callers consume"""
    return PARSERS[category](job_id, validated)
