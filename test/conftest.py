from typing import AsyncGenerator, Tuple

import pytest
import pytest_asyncio
from media_task_client.models import ClientConfig, JobProfile, OutputCategory
from provider_server import ProviderServer

BASE_URL_TEMPLATE = "http://localhost:{}"


@pytest_asyncio.fixture
async def server(unused_tcp_port_factory) -> AsyncGenerator[Tuple[ProviderServer, int], None]:
    """Start and yield a provider stand-in on a random port."""
    port = unused_tcp_port_factory()
    server_instance = ProviderServer()
    await server_instance.start(port=port)
    try:
        yield server_instance, port
    finally:
        await server_instance.stop()


@pytest.fixture
def config(server) -> ClientConfig:
    """Client configuration pointing at the provider stand-in."""
    _, port = server
    return ClientConfig(
        base_url=BASE_URL_TEMPLATE.format(port),
        api_key="test-key",
        request_timeout=5.0,
    )


@pytest.fixture
def profiles():
    """Small budgets so the polling tests finish in well under a second."""
    return {
        "image": JobProfile(
            default_steps=25,
            max_steps=50,
            max_attempts=3,
            timeout_seconds=0.3,
            category=OutputCategory.image,
            steps_keys=("steps",),
        ),
        "slow-image": JobProfile(
            max_attempts=50,
            timeout_seconds=0.3,
            category=OutputCategory.image,
        ),
        "patient-image": JobProfile(
            max_attempts=100,
            timeout_seconds=10,
            category=OutputCategory.image,
        ),
        "sleepy-image": JobProfile(
            max_attempts=2,
            timeout_seconds=20,
            category=OutputCategory.image,
        ),
    }
