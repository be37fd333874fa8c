import asyncio

from media_task_client.errors import MediaTaskError
from media_task_client.log import configure_logging
from media_task_client.media_task_client import MediaTaskClient
from media_task_client.models import ClientConfig, JobProfile, OutputCategory
from provider_server import ProviderServer


async def status_changed(snapshot):
    print(f"Status changed to: {snapshot.state.value}")


async def main():
    configure_logging("INFO")

    PORT = 8000
    server = ProviderServer(
        statuses=["pending", "processing", "processing", "completed"],
        output={
            "model_file": "https://example.com/chair.glb",
            "combined_video": "https://example.com/chair.mp4",
            "no_background_image": "https://example.com/chair.png",
        },
    )
    await server.start(port=PORT)
    print(f"Server started on http://localhost:{PORT}")

    config = ClientConfig(base_url=f"http://localhost:{PORT}", api_key="test-key")
    profiles = {
        "Qubico/trellis": JobProfile(
            default_steps=50,
            max_steps=50,
            max_attempts=10,
            timeout_seconds=10,
            category=OutputCategory.model_3d,
            steps_keys=("ss_sampling_steps", "slat_sampling_steps"),
        )
    }
    client = MediaTaskClient(config, profiles=profiles, on_status_change=status_changed)

    try:
        outcome = await client.submit_and_wait(
            "Qubico/trellis",
            "image-to-3d",
            {"image": "https://example.com/chair.jpg", "seed": 0},
            steps=30,
        )
        print(f"Task ID: {outcome.job_id}")
        print(f"3D model URL: {outcome.output.model_url}")
        print(f"Preview video URL: {outcome.output.preview_video_url}")
        print(f"Processing time: {outcome.elapsed_seconds:.1f}s, usage: {outcome.usage}")
    except MediaTaskError as e:
        print(f"Generation failed: {e}")
    finally:
        await server.stop()


if __name__ == "__main__":
    asyncio.run(main())
