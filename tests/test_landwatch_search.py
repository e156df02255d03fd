from playwright.async_api import Error as PlaywrightError

from landbot.adapters.sources.base import SearchCallbacks
from landbot.adapters.sources.landwatch import (
    LISTING_SELECTOR,
    NEXT_SELECTOR,
    RESULTS_COUNT_SELECTOR,
    LandWatchSource,
)
from fakes import make_profile


def _page_html(n: int) -> str:
    return f"""
    <html><body>
    <div data-qa-listing="{n}">
      <a href="/granite-county-montana-land-for-sale/pid/{1000 + n}">Lot {n}</a>
      <span>$100,000</span><span>40 acres</span>
    </div>
    </body></html>
    """


class FakeElement:
    def __init__(self, text: str | None = None, attrs: dict[str, str] | None = None) -> None:
        self.text = text
        self.attrs = attrs or {}

    async def text_content(self) -> str | None:
        return self.text

    async def get_attribute(self, name: str) -> str | None:
        return self.attrs.get(name)


class FakeResultsPage:
    """
    Paginated results. `next_attrs[i]` is the next button on page i
    (None: no button); `listings_after_click=False` simulates an empty page.
    """

    def __init__(self, pages: int, *, next_attrs=None, listings_after_click: bool = True, count_text=None) -> None:
        self.pages = pages
        self.current = 0
        self.next_attrs = next_attrs or [{} for _ in range(pages - 1)] + [None]
        self.listings_after_click = listings_after_click
        self.count_text = count_text
        self.visited: list[str] = []
        self.clicks = 0
        self.contents_read = 0
        self.closed = False

    async def goto(self, url, wait_until=None, timeout=None):
        self.visited.append(url)
        self.current = 0

    async def wait_for_selector(self, selector, timeout=None):
        if selector == LISTING_SELECTOR and self.clicks and not self.listings_after_click:
            raise PlaywrightError("Timeout 10000ms exceeded")

    async def content(self) -> str:
        self.contents_read += 1
        return _page_html(self.current + 1)

    async def query_selector(self, selector):
        if selector == NEXT_SELECTOR:
            attrs = self.next_attrs[self.current]
            return None if attrs is None else FakeElement(attrs=attrs)
        if selector == RESULTS_COUNT_SELECTOR and self.count_text:
            return FakeElement(text=self.count_text)
        return None

    async def click(self, selector):
        assert selector == NEXT_SELECTOR
        self.clicks += 1
        self.current += 1

    async def close(self):
        self.closed = True


class PagePool:
    def __init__(self, page: FakeResultsPage) -> None:
        self.page = page

    async def create_page(self):
        return self.page


def _source(**kw) -> LandWatchSource:
    return LandWatchSource(rate_limit_ms=0, page_pause_ms=0, **kw)


async def _collect(source, page, callbacks=None):
    criteria = make_profile(states=["MT"]).criteria
    return [p async for p in source.search(criteria, callbacks=callbacks, pool=PagePool(page))]


async def test_follows_next_button_until_last_page():
    page = FakeResultsPage(3)
    found = await _collect(_source(), page)

    assert [p.source_id for p in found] == ["1001", "1002", "1003"]
    assert page.clicks == 2
    assert page.closed


async def test_page_cap_stops_before_clicking_next():
    page = FakeResultsPage(5)
    found = await _collect(_source(max_pages=2), page)

    assert len(found) == 2
    assert page.clicks == 1
    assert page.contents_read == 2


async def test_disabled_next_button_ends_pagination():
    page = FakeResultsPage(3, next_attrs=[{}, {"aria-disabled": "true"}, None])
    found = await _collect(_source(), page)

    assert len(found) == 2
    assert page.clicks == 1


async def test_empty_page_after_click_ends_pagination():
    page = FakeResultsPage(3, listings_after_click=False)
    found = await _collect(_source(), page)

    assert [p.source_id for p in found] == ["1001"]
    assert page.clicks == 1
    assert page.contents_read == 1


async def test_results_count_is_reported_as_progress():
    messages: list[str] = []
    page = FakeResultsPage(1, count_text="57 Properties")
    await _collect(_source(), page, SearchCallbacks(on_progress=messages.append))

    assert "[landwatch] MT: 57 Properties" in messages
