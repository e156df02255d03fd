# landbot/registry.py
from __future__ import annotations

import logging

from .adapters.sources.base import PropertySource
from .adapters.sources.landwatch import LandWatchSource
from .adapters.sources.stub_json import StubJsonSource
from .domain.criteria import Profile, ScrapingSettings
from .domain.dedup import DuplicateMatcher, IdentifierMatcher, ProximityMatcher

log = logging.getLogger(__name__)


class PluginRegistry:
    """
    Sources and duplicate matchers known to this process.

    Built once at startup (see build_registry) and handed to whoever runs searches.
    """

    def __init__(self) -> None:
        self._sources: dict[str, PropertySource] = {}
        self._matchers: dict[str, DuplicateMatcher] = {}

    def register_source(self, source: PropertySource) -> None:
        name = source.metadata.name
        if name in self._sources:
            log.warning("Property source %r is already registered", name)
            return
        self._sources[name] = source
        log.debug("Registered property source: %s (%s) v%s", source.metadata.display_name, name, source.metadata.version)

    def register_matcher(self, matcher: DuplicateMatcher) -> None:
        if matcher.name in self._matchers:
            log.warning("Duplicate matcher %r is already registered", matcher.name)
            return
        self._matchers[matcher.name] = matcher
        log.debug("Registered duplicate matcher: %s", matcher.name)

    def get_source(self, name: str) -> PropertySource | None:
        return self._sources.get(name)

    def sources(self) -> list[PropertySource]:
        return list(self._sources.values())

    def matchers(self) -> list[DuplicateMatcher]:
        return list(self._matchers.values())

    def enabled_sources(self, profile: Profile) -> list[PropertySource]:
        """Profile-enabled, registered sources, highest priority first."""
        enabled = [(name, cfg) for name, cfg in profile.plugins.items() if cfg.enabled]
        enabled.sort(key=lambda item: item[1].priority, reverse=True)

        out: list[PropertySource] = []
        for name, _ in enabled:
            source = self._sources.get(name)
            if source is None:
                log.warning("Profile %r enables unknown source %r; skipping", profile.name, name)
                continue
            out.append(source)
        return out

    def clear(self) -> None:
        self._sources.clear()
        self._matchers.clear()


def build_registry(scraping: ScrapingSettings | None = None) -> PluginRegistry:
    landwatch = LandWatchSource()
    if scraping is not None:
        if scraping.default_rate_limit_ms is not None:
            landwatch.rate_limit_ms = float(scraping.default_rate_limit_ms)
        landwatch.headless = scraping.headless
        landwatch.user_agent = scraping.user_agent

    reg = PluginRegistry()
    reg.register_source(landwatch)
    reg.register_source(StubJsonSource.from_settings())
    reg.register_matcher(IdentifierMatcher())
    reg.register_matcher(ProximityMatcher())
    return reg
