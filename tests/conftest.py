"""Shared pytest fixtures for Cards for Care tests."""

from __future__ import annotations

import asyncio
import shutil
import tempfile
from collections.abc import Callable, Generator
from pathlib import Path

import pytest
from fastapi.testclient import TestClient

from cardsforcare.api.main import app, get_image_provider
from cardsforcare.core.config import CardsConfig, get_config
from cardsforcare.core.provider import ImageProvider, ProviderImage

# "hello" base64-encoded; the handler never decodes inline payloads.
FAKE_B64 = "aGVsbG8="

VALID_CARD = {
    "cardType": "Welcome Home",
    "whoFor": "Grandma",
    "theme": "Cute Animals",
    "vibe": "Calm & gentle",
}


class FakeImageProvider(ImageProvider):
    """Provider double that records every call.

    Args:
        image: Response returned from :meth:`generate`.
        error: If set, raised from :meth:`generate` instead.
        delay: Seconds to sleep before answering.
    """

    provider_name = "fake"

    def __init__(
        self,
        image: ProviderImage | None = None,
        error: Exception | None = None,
        delay: float = 0.0,
    ) -> None:
        self.image = image if image is not None else ProviderImage(b64_json=FAKE_B64)
        self.error = error
        self.delay = delay
        self.calls: list[tuple[str, str]] = []

    async def generate(self, prompt: str, size: str) -> ProviderImage:
        self.calls.append((prompt, size))
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.error is not None:
            raise self.error
        return self.image


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """Create a temporary directory for test files.

    Yields:
        Path to temporary directory

    Cleanup:
        Directory is removed after test completes
    """
    temp_path = Path(tempfile.mkdtemp())
    try:
        yield temp_path
    finally:
        shutil.rmtree(temp_path, ignore_errors=True)


@pytest.fixture
def test_config() -> CardsConfig:
    """Configuration with a dummy key and no ``.env`` file."""
    return CardsConfig(
        openai_api_key="sk-test",
        image_size="1024x1536",
        remote_image_policy="inline",
        _env_file=None,
    )


@pytest.fixture
def fake_provider() -> FakeImageProvider:
    """Provider double returning inline base64 bytes."""
    return FakeImageProvider()


@pytest.fixture
def valid_card() -> dict[str, str]:
    """A request body that passes every allow-list."""
    return dict(VALID_CARD)


@pytest.fixture
def use_config() -> Generator[Callable[..., CardsConfig], None, None]:
    """Install a configuration loader for the app.

    Returns a callable taking ``CardsConfig`` keyword arguments; the built
    config is returned and used for all subsequent requests in the test.
    """

    def _install(**kwargs) -> CardsConfig:
        kwargs.setdefault("_env_file", None)
        cfg = CardsConfig(**kwargs)
        app.state.config_loader = lambda: cfg
        return cfg

    yield _install
    app.state.config_loader = get_config


@pytest.fixture
def test_client(
    test_config: CardsConfig, fake_provider: FakeImageProvider
) -> Generator[TestClient, None, None]:
    """TestClient with the config loader and provider dependency replaced."""
    app.state.config_loader = lambda: test_config
    app.dependency_overrides[get_image_provider] = lambda: fake_provider
    try:
        with TestClient(app) as client:
            yield client
    finally:
        app.dependency_overrides.clear()
        app.state.config_loader = get_config
