"""
Pytest fixtures for converter service tests.
"""

import os
from contextlib import asynccontextmanager
from unittest.mock import AsyncMock

# IMPORTANT: Set environment variables BEFORE any imports from html_pdf_service
# so the module-level app is built from a known configuration.
os.environ["ENVIRONMENT"] = "development"
os.environ["FONT_SETTLE_MS"] = "0"
os.environ.pop("CHROMIUM_EXECUTABLE_PATH", None)

import pytest

from html_pdf_service.config import ConverterSettings

FAKE_PDF = b"%PDF-1.4 fake pdf content"


def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line(
        "markers", "e2e: Drives a real Chromium (skipped when it cannot be launched)"
    )


class FakeSession:
    """Stands in for BrowserSession, handing out one mocked Playwright page."""

    def __init__(self, page):
        self.page = page
        self.viewports = []
        self.headers = []
        self.started = False
        self.closed = False
        self.start_error = None

    async def start(self):
        if self.start_error:
            raise self.start_error
        self.started = True

    async def self_test(self):
        pass

    @asynccontextmanager
    async def new_page(self, viewport=None, extra_http_headers=None):
        self.viewports.append(viewport)
        self.headers.append(extra_http_headers)
        yield self.page

    async def close(self):
        self.closed = True


@pytest.fixture
def settings(tmp_path):
    """Settings rooted in a temporary directory with no settle delay."""
    return ConverterSettings(base_dir=tmp_path, font_settle_ms=0, _env_file=None)


@pytest.fixture
def mock_page():
    """Playwright page double; every method is awaitable."""
    page = AsyncMock()
    page.pdf = AsyncMock(return_value=FAKE_PDF)
    page.content = AsyncMock(return_value="<html><head></head><body><h1>Remote</h1></body></html>")
    return page


@pytest.fixture
def fake_session(mock_page):
    return FakeSession(mock_page)
