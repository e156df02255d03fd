# landbot/adapters/sources/landwatch.py
from __future__ import annotations

import asyncio
import logging
import re
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, AsyncIterator, ClassVar
from urllib.parse import urljoin

from bs4 import BeautifulSoup
from bs4.element import Tag

from ...config import settings
from ...domain.criteria import SearchCriteria
from ...domain.filters import matches_local_filters
from ...domain.property import generate_property_id
from ...domain.types import Property
from ..browser.helpers import (
    close_browser,
    extract_attribute,
    extract_text,
    launch_browser,
    navigate_with_retry,
    wait_for_selector,
)
from ..browser.rate_limiter import RateLimiter, random_delay
from .base import SearchCallbacks, SourceMetadata, SupportedFilters

if TYPE_CHECKING:
    from ..browser.pool import BrowserPool

log = logging.getLogger(__name__)

SOURCE_NAME = "landwatch"
BASE = "https://www.landwatch.com/"

LISTING_SELECTOR = "[data-qa-listing]"
NEXT_SELECTOR = "[data-testid='next']"
RESULTS_COUNT_SELECTOR = "[data-qa-results-count]"
MAX_PAGES = 25

STATE_SLUGS: dict[str, str] = {
    "AL": "alabama", "AK": "alaska", "AZ": "arizona", "AR": "arkansas", "CA": "california",
    "CO": "colorado", "CT": "connecticut", "DE": "delaware", "FL": "florida", "GA": "georgia",
    "HI": "hawaii", "ID": "idaho", "IL": "illinois", "IN": "indiana", "IA": "iowa",
    "KS": "kansas", "KY": "kentucky", "LA": "louisiana", "ME": "maine", "MD": "maryland",
    "MA": "massachusetts", "MI": "michigan", "MN": "minnesota", "MS": "mississippi", "MO": "missouri",
    "MT": "montana", "NE": "nebraska", "NV": "nevada", "NH": "new-hampshire", "NJ": "new-jersey",
    "NM": "new-mexico", "NY": "new-york", "NC": "north-carolina", "ND": "north-dakota", "OH": "ohio",
    "OK": "oklahoma", "OR": "oregon", "PA": "pennsylvania", "RI": "rhode-island", "SC": "south-carolina",
    "SD": "south-dakota", "TN": "tennessee", "TX": "texas", "UT": "utah", "VT": "vermont",
    "VA": "virginia", "WA": "washington", "WV": "west-virginia", "WI": "wisconsin", "WY": "wyoming",
}

_PID_RE = re.compile(r"/pid/(\d+)")
_PRICE_RE = re.compile(r"\$[\d,]+")
_ACRES_RE = re.compile(r"([\d,]+(?:\.\d+)?)\s*acres", re.IGNORECASE)
_CITY_RE = re.compile(r"([A-Za-z\s]+),\s*([A-Z]{2}),?\s*(\d{5})?")
_COUNTY_RE = re.compile(r"([A-Za-z\s]+?)\s+County", re.IGNORECASE)


def build_search_url(
    state: str,
    *,
    min_price: float | None = None,
    max_price: float | None = None,
    min_acres: float | None = None,
    max_acres: float | None = None,
) -> str:
    slug = STATE_SLUGS.get(state.upper(), state.lower())
    parts = [f"{slug}-land-for-sale"]

    if min_price is not None or max_price is not None:
        parts.append(f"price-{int(min_price or 0)}-{int(max_price if max_price is not None else 99999999)}")

    if min_acres is not None or max_acres is not None:
        lo = min_acres or 0
        hi = max_acres if max_acres is not None else 99999
        parts.append(f"acres-{lo:g}-{hi:g}")

    return urljoin(BASE, "/".join(parts))


def _parse_number(text: str | None) -> float | None:
    if not text:
        return None
    m = re.search(r"[\d,]+(?:\.\d+)?", text)
    if not m:
        return None
    return float(m.group(0).replace(",", ""))


def parse_listing_card(card: Tag, *, state: str) -> Property | None:
    """One search-result card -> Property. None when the card has no listing link."""
    link = card.select_one("a[href*='/pid/']")
    if link is None:
        return None
    href = (link.get("href") or "").strip()
    if not href:
        return None

    url = href if href.startswith("http") else urljoin(BASE, href)
    m = _PID_RE.search(href)
    source_id = m.group(1) if m else href

    text = card.get_text(" ", strip=True)
    price = _PRICE_RE.search(text)
    acres = _ACRES_RE.search(text)
    loc_el = card.select_one("[data-qa-placard-location]")
    loc_text = loc_el.get_text(" ", strip=True) if loc_el else text
    city = _CITY_RE.search(loc_text)
    county = _COUNTY_RE.search(loc_text)

    desc_el = card.select_one("[data-qa-placard-description]")
    description = desc_el.get_text(" ", strip=True) if desc_el else None

    raw: dict[str, Any] = {
        "source_id": source_id,
        "url": url,
        "title": link.get_text(" ", strip=True),
        "state": state,
        "price": price.group(0) if price else None,
        "acres": acres.group(1) if acres else None,
        "city": city.group(1).strip() if city else None,
        "county": county.group(1).strip() if county else None,
        "description": description,
    }

    return Property(
        id=generate_property_id(SOURCE_NAME, source_id),
        source=SOURCE_NAME,
        source_id=source_id,
        url=url,
        title=raw["title"] or url,
        description=description or None,
        price=_parse_number(raw["price"]),
        acres=_parse_number(raw["acres"]),
        state=state,
        county=raw["county"],
        city=raw["city"],
        raw_data={k: v for k, v in raw.items() if v is not None},
    )


async def _has_next_page(page) -> bool:
    if await page.query_selector(NEXT_SELECTOR) is None:
        return False
    if await extract_attribute(page, NEXT_SELECTOR, "disabled") is not None:
        return False
    return await extract_attribute(page, NEXT_SELECTOR, "aria-disabled") != "true"


@dataclass
class LandWatchSource:
    """
    LandWatch search results, filtered server-side by state, price and acreage
    through the URL path. Distance and terrain are checked locally.
    """

    rate_limit_ms: float = field(default_factory=lambda: float(settings.SCRAPE_DEFAULT_RATE_LIMIT_MS))
    max_pages: int = MAX_PAGES
    page_pause_ms: float = 1800
    # only used when no shared pool is passed to search()
    headless: bool | None = None
    user_agent: str | None = None

    metadata: ClassVar[SourceMetadata] = SourceMetadata(
        name=SOURCE_NAME,
        display_name="LandWatch",
        version="1.0.0",
        description="Scrapes LandWatch.com search results with price and acreage filters in the URL.",
        supported_filters=SupportedFilters(states=True, price_range=True, acreage_range=True),
    )

    async def search(
        self,
        criteria: SearchCriteria,
        *,
        callbacks: SearchCallbacks | None = None,
        pool: "BrowserPool | None" = None,
    ) -> AsyncIterator[Property]:
        cb = callbacks or SearchCallbacks()
        limiter = RateLimiter(self.rate_limit_ms)
        private = None

        if pool is not None:
            cb.progress(f"[{SOURCE_NAME}] Opening tab in shared browser")
            page = await pool.create_page()
        else:
            cb.progress(f"[{SOURCE_NAME}] Launching own browser")
            private = await launch_browser(
                headless=settings.BROWSER_HEADLESS if self.headless is None else self.headless,
                user_agent=self.user_agent,
            )
            page = private.page

        try:
            for state in criteria.states:
                band = criteria.price_for_state(state)
                url = build_search_url(
                    state,
                    min_price=band.min,
                    max_price=band.max,
                    min_acres=criteria.min_acres,
                    max_acres=criteria.max_acres,
                )
                cb.progress(f"[{SOURCE_NAME}] Searching {state}: {url}")

                await limiter.wait()
                if not await navigate_with_retry(page, url):
                    cb.error(RuntimeError(f"Failed to navigate to {url}"))
                    limiter.increase_delay()
                    continue

                if not await wait_for_selector(page, LISTING_SELECTOR):
                    cb.progress(f"[{SOURCE_NAME}] No listings found for {state}")
                    continue

                total = await extract_text(page, RESULTS_COUNT_SELECTOR)
                if total:
                    cb.progress(f"[{SOURCE_NAME}] {state}: {total}")

                for page_num in range(1, self.max_pages + 1):
                    soup = BeautifulSoup(await page.content(), "lxml")
                    cards = soup.select(LISTING_SELECTOR)
                    cb.progress(f"[{SOURCE_NAME}] {state} page {page_num}: {len(cards)} listings")

                    for card in cards:
                        try:
                            p = parse_listing_card(card, state=state)
                        except (AttributeError, TypeError, ValueError) as e:
                            log.debug("[%s] skipping listing: %s", SOURCE_NAME, e)
                            continue
                        if p is None or not matches_local_filters(p, criteria):
                            continue
                        cb.property_found(p)
                        yield p

                    if page_num >= self.max_pages:
                        log.info("[%s] %s: stopping at page cap (%d)", SOURCE_NAME, state, self.max_pages)
                        break
                    if not await _has_next_page(page):
                        break

                    await limiter.wait()
                    await page.click(NEXT_SELECTOR)
                    await asyncio.sleep(random_delay(self.page_pause_ms, 0.4) / 1000.0)
                    if not await wait_for_selector(page, LISTING_SELECTOR):
                        cb.progress(f"[{SOURCE_NAME}] {state}: no listings after page {page_num}")
                        break
        finally:
            if private is not None:
                await close_browser(private)
            else:
                await page.close()
