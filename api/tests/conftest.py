"""Pytest configuration and shared fixtures.

This module provides:
- Isolated settings (no .env leakage, default template pointed at a temp dir)
- Settings/layout cache resets between tests
- Sample certificate data
- FastAPI test client for route tests
"""

# Set environment variables BEFORE any imports that trigger Settings creation
import os

os.environ.setdefault("ENVIRONMENT", "development")
os.environ.setdefault("LOG_FORMAT", "console")

from collections.abc import AsyncGenerator, Callable, Generator
from pathlib import Path

import pytest
import pytest_asyncio
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient

from core.config import clear_settings_cache
from rendering.canvas import load_font
from rendering.layout import get_layout
from schemas import CertificateData
from tests.factories import make_image_bytes

# =============================================================================
# Settings Fixtures
# =============================================================================


@pytest.fixture(autouse=True)
def reset_settings_cache() -> Generator[None]:
    """Reset settings and layout caches before and after each test."""
    clear_settings_cache()
    get_layout.cache_clear()
    yield
    clear_settings_cache()
    get_layout.cache_clear()
    load_font.cache_clear()


@pytest.fixture(autouse=True)
def missing_default_template(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> Path:
    """Point DEFAULT_TEMPLATE_PATH at a file that doesn't exist.

    Tests that need a bundled background use ``default_template`` instead.
    """
    path = tmp_path / "missing-certificate.jpg"
    monkeypatch.setenv("DEFAULT_TEMPLATE_PATH", str(path))
    monkeypatch.setenv("FONT_CSS_URL", "")
    return path


@pytest.fixture
def default_template(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """A bundled default background (solid green PNG)."""
    path = tmp_path / "certificate.png"
    path.write_bytes(make_image_bytes(color="green", fmt="PNG"))
    monkeypatch.setenv("DEFAULT_TEMPLATE_PATH", str(path))
    clear_settings_cache()
    return path


@pytest.fixture
def settings_env(monkeypatch: pytest.MonkeyPatch) -> Callable[..., None]:
    """Set environment variables and refresh cached settings."""

    def _set(**values: str) -> None:
        for key, value in values.items():
            monkeypatch.setenv(key.upper(), value)
        clear_settings_cache()
        get_layout.cache_clear()

    return _set


# =============================================================================
# Data Fixtures
# =============================================================================


@pytest.fixture
def certificate_data() -> CertificateData:
    return CertificateData(
        recipient_name="John Doe",
        certificate_number="TSP-2024-001",
    )


# =============================================================================
# FastAPI Test Client Fixtures
# =============================================================================


@pytest_asyncio.fixture(scope="function")
async def app() -> AsyncGenerator[FastAPI]:
    """FastAPI app under test (lifespan is not run by ASGITransport)."""
    # Import here so Settings are built from the test environment
    from main import app as fastapi_app

    yield fastapi_app


@pytest_asyncio.fixture(scope="function")
async def client(app: FastAPI) -> AsyncGenerator[AsyncClient]:
    """Create async HTTP client for testing routes."""
    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as ac:
        yield ac


@pytest.fixture
def anyio_backend() -> str:
    """Use asyncio backend for anyio (required by httpx)."""
    return "asyncio"
