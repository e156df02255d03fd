# landbot/adapters/sources/base.py
from __future__ import annotations

import logging
from dataclasses import dataclass, field, fields
from typing import TYPE_CHECKING, Any, AsyncIterator, Callable, Protocol

from ...domain.criteria import SearchCriteria
from ...domain.types import Property

if TYPE_CHECKING:
    from ..browser.pool import BrowserPool

log = logging.getLogger(__name__)


@dataclass(frozen=True)
class SupportedFilters:
    """Which criteria a source applies on its own side (URL params, site filters)."""

    states: bool = False
    price_range: bool = False
    acreage_range: bool = False
    water_features: bool = False
    structures: bool = False
    terrain: bool = False
    distance_to_town: bool = False

    def names(self) -> list[str]:
        return [f.name for f in fields(self) if getattr(self, f.name)]


@dataclass(frozen=True)
class SourceMetadata:
    name: str
    display_name: str
    version: str
    description: str
    supported_filters: SupportedFilters = field(default_factory=SupportedFilters)


@dataclass
class SearchCallbacks:
    """Advisory hooks. Nothing in the pipeline depends on them being set."""

    on_progress: Callable[[str], None] | None = None
    on_error: Callable[[Exception], None] | None = None
    on_property_found: Callable[[Property], None] | None = None

    def _call(self, hook: Callable[[Any], None], arg: Any) -> None:
        # hooks are advisory; failures are only logged
        try:
            hook(arg)
        except Exception:
            log.warning("Search callback %s raised", getattr(hook, "__name__", hook), exc_info=True)

    def progress(self, message: str) -> None:
        if self.on_progress is not None:
            self._call(self.on_progress, message)
        else:
            log.debug(message)

    def error(self, exc: Exception) -> None:
        if self.on_error is not None:
            self._call(self.on_error, exc)

    def property_found(self, p: Property) -> None:
        if self.on_property_found is not None:
            self._call(self.on_property_found, p)


class PropertySource(Protocol):
    metadata: SourceMetadata

    def search(
        self,
        criteria: SearchCriteria,
        *,
        callbacks: SearchCallbacks | None = None,
        pool: "BrowserPool | None" = None,
    ) -> AsyncIterator[Property]:
        """
        Yield normalized records for `criteria`.

        Finite and not restartable. With a pool, open pages from it and close
        only those pages; without one, the source may launch its own browser.
        """
        ...
