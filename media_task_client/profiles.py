from types import MappingProxyType
from typing import Mapping, Optional

from media_task_client.models import JobProfile, OutputCategory

DEFAULT_PROFILE = JobProfile(
    default_steps=25,
    max_steps=50,
    max_attempts=30,
    timeout_seconds=180,
    category=OutputCategory.image,
    steps_keys=("steps",),
)

_VIDEO = dict(max_attempts=120, timeout_seconds=900)

# Read-only after import; safe for unsynchronized concurrent reads.
PROFILES: Mapping[str, JobProfile] = MappingProxyType(
    {
        "Qubico/flux1-schnell": JobProfile(
            default_steps=4,
            max_steps=10,
            max_attempts=30,
            timeout_seconds=60,
            category=OutputCategory.image,
            steps_keys=("steps",),
            supports_batch_size=True,
        ),
        "Qubico/flux1-dev": JobProfile(
            default_steps=25,
            max_steps=40,
            max_attempts=30,
            timeout_seconds=120,
            category=OutputCategory.image,
            steps_keys=("steps",),
        ),
        "Qubico/flux1-dev-advanced": JobProfile(
            default_steps=25,
            max_steps=40,
            max_attempts=30,
            timeout_seconds=180,
            category=OutputCategory.image,
            steps_keys=("steps",),
        ),
        "Qubico/trellis": JobProfile(
            default_steps=50,
            max_steps=50,
            max_attempts=30,
            timeout_seconds=600,
            category=OutputCategory.model_3d,
            steps_keys=("ss_sampling_steps", "slat_sampling_steps"),
        ),
        "Qubico/image-toolkit": JobProfile(
            max_attempts=60, timeout_seconds=180, category=OutputCategory.image
        ),
        "midjourney": JobProfile(
            max_attempts=120, timeout_seconds=600, category=OutputCategory.image
        ),
        "Qubico/video-toolkit": JobProfile(**_VIDEO, category=OutputCategory.video),
        "Qubico/hunyuan": JobProfile(**_VIDEO, category=OutputCategory.video),
        "Qubico/skyreels": JobProfile(**_VIDEO, category=OutputCategory.video),
        "Qubico/wanx": JobProfile(**_VIDEO, category=OutputCategory.video),
        "kling": JobProfile(**_VIDEO, category=OutputCategory.kling_video),
        "luma": JobProfile(
            max_attempts=120, timeout_seconds=600, category=OutputCategory.luma_video
        ),
        "Qubico/mmaudio": JobProfile(
            max_attempts=60, timeout_seconds=300, category=OutputCategory.audio
        ),
        "Qubico/tts": JobProfile(
            max_attempts=60, timeout_seconds=180, category=OutputCategory.audio
        ),
        "music-u": JobProfile(
            max_attempts=120, timeout_seconds=600, category=OutputCategory.music
        ),
        "music-s": JobProfile(
            max_attempts=120, timeout_seconds=600, category=OutputCategory.suno_music
        ),
    }
)


def lookup(kind: str, profiles: Mapping[str, JobProfile] = PROFILES) -> Optional[JobProfile]:
    return profiles.get(kind)


def effective_steps(profile: JobProfile, requested: Optional[int] = None) -> int:
    """Clamps a requested step count into [1, max_steps]; absent or zero means default_steps"""
    if not requested:
        return profile.default_steps
    return max(1, min(requested, profile.max_steps))


def poll_interval(profile: JobProfile, ceiling: float = 5.0) -> float:
    return min(profile.timeout_seconds / profile.max_attempts, ceiling)
