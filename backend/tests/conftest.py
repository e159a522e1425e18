"""Pytest configuration and fixtures.

Provides fixtures for:
- Settings override for testing
- FastAPI app and test client
- Page metadata for the default and a non-default content type
"""

from collections.abc import Generator

import pytest
from fastapi.testclient import TestClient

from link_manager.core.config import Settings, get_settings
from link_manager.schemas.link_mapping import PageMeta

SITE_URL = "https://example.com"

# ---------------------------------------------------------------------------
# Settings Fixtures
# ---------------------------------------------------------------------------


def get_test_settings() -> Settings:
    """Get test settings for an example.com site."""
    return Settings(
        app_name="Test App",
        app_version="0.0.1",
        debug=True,
        environment="test",
        log_level="DEBUG",
        log_format="text",
        site_url=SITE_URL,
        default_post_type="post",
        apply_post_types=["post", "page"],
        mappings_json=None,
        mappings_file=None,
    )


@pytest.fixture(scope="session")
def test_settings() -> Settings:
    """Session-scoped test settings."""
    return get_test_settings()


@pytest.fixture
def site_url() -> str:
    return SITE_URL


# ---------------------------------------------------------------------------
# Page Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def post_meta() -> PageMeta:
    """A blog post (default content type, no hero block)."""
    return PageMeta(
        own_url=f"{SITE_URL}/blog/pet-care/",
        title="Pet Care Basics",
        slug="pet-care",
        is_default_content_type=True,
    )


@pytest.fixture
def page_meta() -> PageMeta:
    """A static page (non-default content type, hero block protected)."""
    return PageMeta(
        own_url=f"{SITE_URL}/about/",
        title="About Us",
        slug="about",
        is_default_content_type=False,
    )


# ---------------------------------------------------------------------------
# App Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def app():
    """Create FastAPI app for testing."""
    from link_manager.main import create_app

    return create_app()


@pytest.fixture
def client(app) -> Generator[TestClient, None, None]:
    """Create synchronous test client with test settings."""
    app.dependency_overrides[get_settings] = get_test_settings

    test_client = TestClient(app)
    yield test_client

    app.dependency_overrides.clear()
