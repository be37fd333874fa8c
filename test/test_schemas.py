import pytest
from media_task_client.errors import NoResourceFound, OutputValidationError
from media_task_client.models import OutputCategory
from media_task_client.parsers import PARSERS, Model3DAsset, extract
from media_task_client.schemas import OUTPUT_SCHEMAS, validate_output


def _parse(category, raw):
    return extract(category, "task-1", validate_output(category, "task-1", raw))


def test_every_category_has_a_schema_and_parser():
    assert set(OUTPUT_SCHEMAS) == set(OutputCategory)
    assert set(PARSERS) == set(OutputCategory)


def test_images_single_and_multiple():
    assert _parse(OutputCategory.image, {"image_url": "https://x/a.png"}) == ["https://x/a.png"]
    assert _parse(
        OutputCategory.image,
        {"image_url": "https://x/a.png", "image_urls": ["https://x/b.png", "https://x/c.png"]},
    ) == ["https://x/a.png", "https://x/b.png", "https://x/c.png"]


@pytest.mark.parametrize("raw", [{}, None, {"image_urls": []}, {"image_url": 12}, "https://x/a.png"])
def test_images_invalid(raw):
    with pytest.raises(OutputValidationError) as exc_info:
        validate_output(OutputCategory.image, "task-1", raw)
    assert str(exc_info.value).startswith("TaskId: task-1, ")


def test_images_well_formed_but_empty():
    with pytest.raises(NoResourceFound):
        _parse(OutputCategory.image, {"image_urls": ["", ""]})


def test_validation_does_not_mutate_input():
    raw = {"image_urls": ["https://x/a.png"], "extra": {"nested": True}}
    snapshot = {"image_urls": ["https://x/a.png"], "extra": {"nested": True}}
    validate_output(OutputCategory.image, "task-1", raw)
    assert raw == snapshot


def test_video_and_audio():
    assert _parse(OutputCategory.video, {"video_url": "https://x/v.mp4"}) == "https://x/v.mp4"
    assert _parse(OutputCategory.audio, {"audio_url": "https://x/a.mp3"}) == "https://x/a.mp3"

    with pytest.raises(OutputValidationError):
        validate_output(OutputCategory.video, "task-1", {"video_url": ""})
    with pytest.raises(OutputValidationError) as exc_info:
        validate_output(OutputCategory.audio, "task-1", {"audio": "https://x/a.mp3"})
    assert "audio_url" in str(exc_info.value)


def test_model_3d():
    asset = _parse(
        OutputCategory.model_3d,
        {
            "model_file": "https://x/m.glb",
            "combined_video": "https://x/m.mp4",
            "no_background_image": "https://x/m.png",
        },
    )
    assert asset == Model3DAsset(
        model_url="https://x/m.glb",
        preview_video_url="https://x/m.mp4",
        cutout_image_url="https://x/m.png",
    )

    with pytest.raises(OutputValidationError):
        validate_output(OutputCategory.model_3d, "task-1", {})
    with pytest.raises(NoResourceFound):
        _parse(OutputCategory.model_3d, {"combined_video": "https://x/m.mp4"})


def test_music_songs():
    clips = _parse(
        OutputCategory.music,
        {
            "songs": [
                {
                    "title": "Rain",
                    "song_path": "https://x/rain.mp3",
                    "image_path": "https://x/rain.png",
                    "lyrics": "[Verse] ...",
                    "duration": 93.5,
                    "tags": ["lofi", "chill"],
                },
                {"title": "Broken", "song_path": ""},
            ]
        },
    )
    assert len(clips) == 1
    assert clips[0].audio_url == "https://x/rain.mp3"
    assert clips[0].duration == 93.5
    assert clips[0].tags == ["lofi", "chill"]

    with pytest.raises(NoResourceFound):
        _parse(OutputCategory.music, {"songs": []})
    with pytest.raises(OutputValidationError):
        validate_output(OutputCategory.music, "task-1", {"songs": "nope"})


def test_suno_clips():
    clips = _parse(
        OutputCategory.suno_music,
        {
            "clips": {
                "c1": {
                    "audio_url": "https://x/c1.mp3",
                    "video_url": "https://x/c1.mp4",
                    "image_url": "https://x/c1.png",
                    "metadata": {"tags": "pop, upbeat", "duration": 120},
                }
            }
        },
    )
    assert clips[0].title == "c1"
    assert clips[0].video_url == "https://x/c1.mp4"
    assert clips[0].tags == ["pop", "upbeat"]
    assert clips[0].duration == 120

    with pytest.raises(NoResourceFound):
        _parse(OutputCategory.suno_music, {"clips": {}})


def test_kling():
    urls = _parse(
        OutputCategory.kling_video,
        {
            "video_url": "https://x/k.mp4",
            "works": [
                {"video": {"resource": "https://x/w.mp4", "resource_without_watermark": "https://x/w-clean.mp4"}},
                {"video": {"resource": "https://x/w2.mp4"}},
            ],
        },
    )
    assert urls == ["https://x/k.mp4", "https://x/w-clean.mp4", "https://x/w2.mp4"]

    with pytest.raises(NoResourceFound):
        _parse(OutputCategory.kling_video, {"works": []})


def test_luma():
    video = _parse(
        OutputCategory.luma_video,
        {
            "video_raw": {"url": "https://x/l.mp4", "width": 1280, "height": 720},
            "last_frame": {"url": "https://x/l.png", "width": 1280, "height": 720},
        },
    )
    assert video.video.url == "https://x/l.mp4"
    assert video.last_frame.url == "https://x/l.png"

    with pytest.raises(OutputValidationError):
        validate_output(OutputCategory.luma_video, "task-1", {"last_frame": None})
