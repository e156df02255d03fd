# tests/fakes.py
from __future__ import annotations

from datetime import datetime, timedelta
from typing import Iterable

from landbot.adapters.sources.base import SearchCallbacks, SourceMetadata, SupportedFilters
from landbot.domain.criteria import PluginSettings, Profile, SearchCriteria
from landbot.domain.property import generate_property_id
from landbot.domain.types import Property


class FakeClock:
    """Deterministic, manually advanced clock."""

    def __init__(self, start: datetime | None = None) -> None:
        self.now = start or datetime(2024, 5, 1, 12, 0, 0)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> datetime:
        self.now = self.now + timedelta(**kwargs)
        return self.now


def make_property(source: str = "test", source_id: str = "1", **fields) -> Property:
    fields.setdefault("url", f"https://example.com/{source}/{source_id}")
    fields.setdefault("title", f"Listing {source_id}")
    return Property(
        id=generate_property_id(source, source_id),
        source=source,
        source_id=source_id,
        **fields,
    )


def make_profile(name: str = "test", plugins: dict[str, PluginSettings] | None = None, **criteria) -> Profile:
    return Profile(name=name, criteria=SearchCriteria(**criteria), plugins=plugins or {})


class FakePage:
    async def close(self) -> None:
        pass


class FakePool:
    """Stands in for the shared browser; records whether it was closed."""

    def __init__(self) -> None:
        self.closed = False
        self.pages_created = 0

    async def create_page(self) -> FakePage:
        self.pages_created += 1
        return FakePage()

    async def close(self) -> None:
        self.closed = True


class FakeSource:
    """In-memory source yielding a fixed list of records, or raising partway."""

    def __init__(
        self,
        name: str,
        records: Iterable[Property] = (),
        *,
        fail_with: Exception | None = None,
        fail_after: int = 0,
    ) -> None:
        self.metadata = SourceMetadata(
            name=name,
            display_name=name.title(),
            version="0.0.1",
            description="fake",
            supported_filters=SupportedFilters(states=True, price_range=True),
        )
        self.records = list(records)
        self.fail_with = fail_with
        self.fail_after = fail_after
        self.calls = 0

    async def search(self, criteria, *, callbacks: SearchCallbacks | None = None, pool=None):
        self.calls += 1
        cb = callbacks or SearchCallbacks()
        for i, p in enumerate(self.records):
            if self.fail_with is not None and i >= self.fail_after:
                raise self.fail_with
            cb.property_found(p)
            yield p
        if self.fail_with is not None and self.fail_after >= len(self.records):
            raise self.fail_with


class Recorder:
    """Shared call log for the fake playwright objects below."""

    def __init__(self) -> None:
        self.calls: list[str] = []


class FakePlaywrightPage:
    def __init__(self, rec: Recorder) -> None:
        self.rec = rec

    async def close(self) -> None:
        self.rec.calls.append("page.close")


class FakeContext:
    def __init__(self, rec: Recorder, *, fail_close: bool = False) -> None:
        self.rec = rec
        self.fail_close = fail_close

    async def new_page(self) -> FakePlaywrightPage:
        self.rec.calls.append("context.new_page")
        return FakePlaywrightPage(self.rec)

    async def close(self) -> None:
        self.rec.calls.append("context.close")
        if self.fail_close:
            raise RuntimeError("context already gone")


class FakeBrowser:
    def __init__(self, rec: Recorder, *, context: FakeContext | None = None, fail_new_context: bool = False) -> None:
        self.rec = rec
        self.context = context or FakeContext(rec)
        self.fail_new_context = fail_new_context
        self.launch_kwargs: dict = {}
        self.context_kwargs: dict = {}

    async def new_context(self, **kwargs) -> FakeContext:
        self.rec.calls.append("browser.new_context")
        self.context_kwargs = kwargs
        if self.fail_new_context:
            raise RuntimeError("cannot create context")
        return self.context

    async def close(self) -> None:
        self.rec.calls.append("browser.close")


class FakeChromium:
    def __init__(self, browser: FakeBrowser) -> None:
        self.browser = browser

    async def launch(self, **kwargs) -> FakeBrowser:
        self.browser.rec.calls.append("chromium.launch")
        self.browser.launch_kwargs = kwargs
        return self.browser


class FakePlaywright:
    def __init__(self, rec: Recorder, browser: FakeBrowser | None = None) -> None:
        self.rec = rec
        self.chromium = FakeChromium(browser or FakeBrowser(rec))

    async def stop(self) -> None:
        self.rec.calls.append("playwright.stop")


class FakePlaywrightManager:
    """What `async_playwright()` returns: an object with an async `start()`."""

    def __init__(self, pw: FakePlaywright) -> None:
        self.pw = pw

    async def start(self) -> FakePlaywright:
        self.pw.rec.calls.append("playwright.start")
        return self.pw
