"""
Headless page capture with Playwright (Chromium).
"""

import logging

from ..config import SCREENSHOT_TIMEOUT, USER_AGENT
from ..core.errors import ProbeUnavailable
from .interfaces import IScreenshotRenderer

try:
    from playwright.sync_api import Error as PlaywrightError
    from playwright.sync_api import sync_playwright

    PLAYWRIGHT_AVAILABLE = True
except ImportError:
    PlaywrightError = None
    sync_playwright = None
    PLAYWRIGHT_AVAILABLE = False

LOG = logging.getLogger(__name__)

VIEWPORT = {"width": 1366, "height": 768}


class PlaywrightRenderer(IScreenshotRenderer):
    """Renders the target in headless Chromium and returns a full-page PNG."""

    def __init__(self, timeout: float = SCREENSHOT_TIMEOUT, user_agent: str = USER_AGENT):
        self.timeout_ms = int(timeout * 1000)
        self.user_agent = user_agent

    def capture(self, url: str) -> bytes:
        if not PLAYWRIGHT_AVAILABLE:
            raise ProbeUnavailable("playwright is not installed; screenshots are unavailable")

        try:
            with sync_playwright() as p:
                browser = p.chromium.launch(headless=True)
                try:
                    context = browser.new_context(user_agent=self.user_agent, viewport=VIEWPORT)
                    page = context.new_page()
                    page.goto(url, timeout=self.timeout_ms, wait_until="load")
                    return page.screenshot(full_page=True, type="png")
                finally:
                    browser.close()
        except PlaywrightError as e:
            raise ProbeUnavailable(f"Screenshot of {url} failed: {e}", context={"url": url}) from e
