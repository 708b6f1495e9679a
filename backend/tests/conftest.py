# backend/tests/conftest.py
from collections.abc import AsyncGenerator, Callable

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from deepl_wrapper.core.config import Settings
from deepl_wrapper.core.rate_limit import limiter
from tests.fakes.deepl import SERVER_KEY, FakeDeepL, build_app


@pytest.fixture(autouse=True)
def reset_rate_limiter():
    limiter.reset()
    yield
    limiter.reset()


@pytest.fixture
def fake_deepl() -> FakeDeepL:
    return FakeDeepL()


@pytest.fixture
def artifact_dir(tmp_path):
    return tmp_path / "artifacts"


@pytest.fixture
def make_settings(artifact_dir) -> Callable[..., Settings]:
    def _make(**overrides) -> Settings:
        values = {
            "CREDENTIAL_MODE": "server",
            "DEEPL_API_KEY": SERVER_KEY,
            "TEMP_DIR": str(artifact_dir),
            "POLL_INTERVAL_SECONDS": 0,
            "POLL_MAX_ATTEMPTS": 60,
            "BACKEND_CORS_ORIGINS": '["*"]',
        }
        values.update(overrides)
        return Settings(_env_file=None, **values)

    return _make


@pytest.fixture
def test_settings(make_settings) -> Settings:
    return make_settings()


@pytest_asyncio.fixture(scope="function")
async def test_client(test_settings, fake_deepl) -> AsyncGenerator[AsyncClient, None]:
    """Client for an app running in server mode against the fake DeepL."""
    app = build_app(test_settings, fake_deepl)
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        yield client


@pytest_asyncio.fixture(scope="function")
async def caller_client(make_settings, fake_deepl) -> AsyncGenerator[AsyncClient, None]:
    """Client for an app running in caller mode (each request brings its own key)."""
    app = build_app(make_settings(CREDENTIAL_MODE="caller", DEEPL_API_KEY=None), fake_deepl)
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        yield client
