# landbot/adapters/browser/pool.py
from __future__ import annotations

import logging
from functools import partial
from typing import Any, Awaitable, Callable

from playwright.async_api import Browser, BrowserContext, Page, Playwright, async_playwright
from playwright_stealth import Stealth

from ...config import settings
from ...domain.criteria import ScrapingSettings

log = logging.getLogger(__name__)

STEALTH_LAUNCH_ARGS = [
    "--disable-blink-features=AutomationControlled",
    "--disable-features=IsolateOrigins,site-per-process",
    "--disable-dev-shm-usage",
    "--no-sandbox",
]

STEALTH_HEADERS = {
    "Accept-Language": "en-US,en;q=0.9",
    "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,image/avif,image/webp,*/*;q=0.8",
    "Upgrade-Insecure-Requests": "1",
}

DEFAULT_VIEWPORT = {"width": 1920, "height": 1080}


class BrowserPool:
    """
    One browser process and one context shared by every source in a run.

    Each caller gets its own page from `create_page()`; cookies, user agent
    and fingerprint come from the shared context.
    """

    def __init__(
        self,
        playwright: Playwright,
        browser: Browser,
        context: BrowserContext,
        *,
        stealth: Stealth | None = None,
    ) -> None:
        self.playwright = playwright
        self.browser = browser
        self.context = context
        self._stealth = stealth
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    async def create_page(self) -> Page:
        if self._closed:
            raise RuntimeError("browser pool is closed")
        page = await self.context.new_page()
        if self._stealth is not None:
            await self._stealth.apply_stealth_async(page)
        log.debug("Created new tab in shared browser")
        return page

    async def close(self) -> None:
        """Tear down context, then browser, then the driver. Second call is a no-op."""
        if self._closed:
            return
        self._closed = True
        try:
            await self.context.close()
        finally:
            try:
                await self.browser.close()
            finally:
                await self.playwright.stop()
        log.debug("Browser pool closed")


async def create_browser_pool(
    *,
    headless: bool | None = None,
    stealth: bool | None = None,
    user_agent: str | None = None,
    viewport: dict[str, int] | None = None,
) -> BrowserPool:
    headless = settings.BROWSER_HEADLESS if headless is None else headless
    stealth = settings.BROWSER_STEALTH if stealth is None else stealth

    log.debug("Launching shared browser (headless=%s, stealth=%s)", headless, stealth)

    pw = await async_playwright().start()
    try:
        browser = await pw.chromium.launch(
            headless=headless,
            args=STEALTH_LAUNCH_ARGS if stealth else [],
        )

        context_opts: dict[str, Any] = {
            "user_agent": user_agent or settings.BROWSER_USER_AGENT,
            "viewport": viewport or DEFAULT_VIEWPORT,
        }
        if stealth:
            context_opts.update(
                locale="en-US",
                timezone_id="America/Los_Angeles",
                extra_http_headers=STEALTH_HEADERS,
            )

        try:
            context = await browser.new_context(**context_opts)
        except Exception:
            await browser.close()
            raise
    except Exception:
        await pw.stop()
        raise

    return BrowserPool(pw, browser, context, stealth=Stealth() if stealth else None)


def browser_pool_factory(scraping: ScrapingSettings | None = None) -> Callable[[], Awaitable[BrowserPool]]:
    """`create_browser_pool` bound to the profiles file's scraping settings."""
    if scraping is None:
        return create_browser_pool
    return partial(create_browser_pool, headless=scraping.headless, user_agent=scraping.user_agent)
