"""
Shared Chromium session for conversions.

One BrowserSession owns the Playwright driver and a single Chromium process.
It is started lazily on first use and reused by every conversion; each call
gets its own tab (a fresh browser context) through ``new_page()`` so
concurrent conversions never share rendering state.
"""

import asyncio
import logging
import os
from contextlib import asynccontextmanager
from typing import AsyncIterator, Dict, List, Optional

from .config import ConverterSettings
from .errors import BrowserLaunchError, BrowserNotAvailableError

logger = logging.getLogger(__name__)

LAUNCH_ARGS: List[str] = [
    "--no-sandbox",
    "--disable-setuid-sandbox",
    "--disable-dev-shm-usage",
    "--disable-accelerated-2d-canvas",
    "--no-first-run",
    "--no-zygote",
    "--disable-gpu",
    "--disable-background-timer-throttling",
    "--disable-backgrounding-occluded-windows",
    "--disable-renderer-backgrounding",
    "--disable-web-security",
    "--disable-features=VizDisplayCompositor",
    "--disable-extensions",
    "--disable-plugins",
    "--disable-background-networking",
    "--disable-client-side-phishing-detection",
    "--disable-default-apps",
    "--disable-hang-monitor",
    "--disable-popup-blocking",
    "--disable-prompt-on-repost",
    "--disable-sync",
    "--disable-translate",
    "--metrics-recording-only",
    "--no-default-browser-check",
    "--safebrowsing-disable-auto-update",
    "--password-store=basic",
    "--use-mock-keychain",
    "--font-render-hinting=none",  # non-Latin glyph shaping
]

# Checked in order when running in production without an explicit path
SYSTEM_CHROMIUM_PATHS: List[str] = [
    "/usr/bin/chromium",
    "/usr/bin/chromium-browser",
    "/usr/bin/google-chrome",
]

DEFAULT_VIEWPORT: Dict[str, int] = {"width": 1200, "height": 800}
SELF_TEST_HTML = "<html><body><h1>Test</h1></body></html>"


class BrowserSession:
    """Lazily started Playwright + Chromium handle shared across conversions."""

    def __init__(
        self,
        headless: bool = True,
        executable_path: Optional[str] = None,
        search_system_paths: bool = False,
    ):
        self.headless = headless
        self.executable_path = executable_path
        self.search_system_paths = search_system_paths

        self._playwright = None
        self._browser = None
        self._lock = asyncio.Lock()

    @classmethod
    def from_settings(cls, settings: ConverterSettings) -> "BrowserSession":
        return cls(
            headless=settings.playwright_headless,
            executable_path=settings.chromium_executable_path,
            search_system_paths=settings.is_production,
        )

    @property
    def is_running(self) -> bool:
        return self._browser is not None

    def resolve_executable_path(self) -> Optional[str]:
        """
        Pick the Chromium binary to launch.

        An explicit path always wins. In production the well-known system
        locations are tried next; otherwise Playwright's bundled build is used.
        """
        if self.executable_path:
            return self.executable_path
        if self.search_system_paths:
            for candidate in SYSTEM_CHROMIUM_PATHS:
                if os.path.exists(candidate):
                    logger.info(f"Using system Chromium at: {candidate}")
                    return candidate
        return None

    async def start(self):
        """Launch Playwright + Chromium once and return the browser."""
        if self._browser is not None:
            return self._browser

        async with self._lock:
            # Another caller may have finished launching while we waited
            if self._browser is not None:
                return self._browser

            try:
                from playwright.async_api import async_playwright
            except ImportError as e:
                raise BrowserNotAvailableError(
                    "Playwright not installed. Run: pip install playwright && "
                    "python -m playwright install chromium"
                ) from e

            launch_options = {"headless": self.headless, "args": LAUNCH_ARGS}
            executable_path = self.resolve_executable_path()
            if executable_path:
                launch_options["executable_path"] = executable_path

            logger.info("Launching Chromium...")
            try:
                if self._playwright is None:
                    self._playwright = await async_playwright().start()
                self._browser = await self._playwright.chromium.launch(**launch_options)
            except Exception as e:
                logger.error(f"Failed to launch browser: {e}")
                await self._stop_driver()
                raise BrowserLaunchError(f"Browser launch failed: {e}") from e

            logger.info("Chromium launched successfully")
            return self._browser

    async def self_test(self) -> None:
        """Render a trivial page to prove the browser can actually load content."""
        try:
            async with self.new_page(viewport=DEFAULT_VIEWPORT) as page:
                await page.set_content(SELF_TEST_HTML)
        except BrowserLaunchError:
            raise
        except Exception as e:
            raise BrowserLaunchError(f"Browser launch failed: {e}") from e
        logger.info("Browser self-test completed successfully")

    @asynccontextmanager
    async def new_page(
        self,
        viewport: Optional[Dict[str, int]] = None,
        extra_http_headers: Optional[Dict[str, str]] = None,
    ) -> AsyncIterator:
        """
        Acquire a fresh tab for one conversion step and always release it.

        Args:
            viewport: Page viewport in CSS pixels (defaults to 1200x800)
            extra_http_headers: Headers sent with every request from the tab

        Yields:
            Playwright Page
        """
        browser = await self.start()
        page = await browser.new_page(
            viewport=viewport or DEFAULT_VIEWPORT,
            device_scale_factor=1,
            extra_http_headers=extra_http_headers or {},
        )
        try:
            yield page
        finally:
            try:
                await page.close()
            except Exception as e:
                logger.warning(f"Failed to close tab: {e}")

    async def close(self) -> None:
        """Close the browser and Playwright driver."""
        async with self._lock:
            if self._browser is not None:
                try:
                    await self._browser.close()
                    logger.info("Browser closed successfully")
                except Exception as e:
                    # Typical when the driver is already gone at process shutdown
                    logger.warning(f"Error closing browser (ignored during shutdown): {e}")
                finally:
                    self._browser = None
            await self._stop_driver()

    async def _stop_driver(self) -> None:
        if self._playwright is None:
            return
        try:
            await self._playwright.stop()
        except Exception as e:
            logger.warning(f"Error stopping Playwright (ignored during shutdown): {e}")
        finally:
            self._playwright = None
