# landbot/adapters/browser/helpers.py
from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass

from playwright.async_api import Browser, BrowserContext, Error as PlaywrightError, Page, Playwright, async_playwright

from ...config import settings

log = logging.getLogger(__name__)


@dataclass
class PrivateBrowser:
    """A browser owned by a single adapter, used when no shared pool is supplied."""

    playwright: Playwright
    browser: Browser
    context: BrowserContext
    page: Page


async def launch_browser(*, headless: bool = True, user_agent: str | None = None) -> PrivateBrowser:
    pw = await async_playwright().start()
    try:
        browser = await pw.chromium.launch(headless=headless)
        context = await browser.new_context(user_agent=user_agent or settings.BROWSER_USER_AGENT)
        page = await context.new_page()
    except Exception:
        await pw.stop()
        raise
    return PrivateBrowser(playwright=pw, browser=browser, context=context, page=page)


async def close_browser(session: PrivateBrowser) -> None:
    try:
        await session.context.close()
        await session.browser.close()
    finally:
        await session.playwright.stop()


async def navigate_with_retry(
    page: Page,
    url: str,
    *,
    max_retries: int | None = None,
    timeout_ms: int | None = None,
) -> bool:
    """Navigate, retrying with linear backoff. False once retries are exhausted."""
    retries = settings.BROWSER_NAV_RETRIES if max_retries is None else max_retries
    timeout = settings.BROWSER_NAV_TIMEOUT_MS if timeout_ms is None else timeout_ms

    for attempt in range(1, retries + 1):
        try:
            await page.goto(url, wait_until="domcontentloaded", timeout=timeout)
            return True
        except PlaywrightError as e:
            log.warning("Navigation attempt %d/%d failed for %s: %s", attempt, retries, url, e)
            if attempt < retries:
                await asyncio.sleep(1.0 * attempt)
    return False


async def wait_for_selector(page: Page, selector: str, timeout_ms: int = 10000) -> bool:
    try:
        await page.wait_for_selector(selector, timeout=timeout_ms)
        return True
    except PlaywrightError:
        return False


async def extract_text(page: Page, selector: str) -> str | None:
    el = await page.query_selector(selector)
    if el is None:
        return None
    text = await el.text_content()
    return text.strip() if text else None


async def extract_attribute(page: Page, selector: str, attribute: str) -> str | None:
    el = await page.query_selector(selector)
    if el is None:
        return None
    return await el.get_attribute(attribute)
