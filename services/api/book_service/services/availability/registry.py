from __future__ import annotations

import logging
from functools import lru_cache
from pathlib import Path

import httpx

from book_service.core.config import Settings, settings
from book_service.domain.types import Format
from book_service.services.availability.base import SourceAdapter
from book_service.services.availability.fixture import FixtureAdapter
from book_service.services.availability.open_library import OpenLibraryAdapter
from book_service.services.availability.thriftbooks import ThriftbooksAdapter

logger = logging.getLogger(__name__)


class AdapterRegistry:
    """Name -> adapter instance, fixed for the life of the process.

    There is no deregistration; registering a name twice replaces the first
    adapter.
    """

    def __init__(self, adapters: list[SourceAdapter] | None = None):
        self._adapters: dict[str, SourceAdapter] = {}
        for adapter in adapters or []:
            self.register(adapter)

    def register(self, adapter: SourceAdapter) -> None:
        if adapter.name in self._adapters:
            logger.warning("Replacing registered adapter %r", adapter.name)
        self._adapters[adapter.name] = adapter

    def get(self, name: str) -> SourceAdapter | None:
        return self._adapters.get(name)

    def all(self) -> list[SourceAdapter]:
        return list(self._adapters.values())

    def all_supporting(self, format: Format) -> list[SourceAdapter]:
        return [a for a in self._adapters.values() if a.supports_format(format)]

    def names(self) -> list[str]:
        return list(self._adapters)

    def __contains__(self, name: object) -> bool:
        return name in self._adapters

    def __len__(self) -> int:
        return len(self._adapters)


def build_http_client(cfg: Settings) -> httpx.AsyncClient:
    return httpx.AsyncClient(
        timeout=cfg.http_timeout_secs,
        follow_redirects=True,
        headers={"User-Agent": cfg.user_agent},
    )


def build_registry(
    cfg: Settings, client: httpx.AsyncClient | None = None
) -> AdapterRegistry:
    """Construct the built-in adapters, sharing one HTTP client."""
    client = client or build_http_client(cfg)
    registry = AdapterRegistry()
    registry.register(OpenLibraryAdapter(client))
    registry.register(ThriftbooksAdapter(client))

    fixture_path = Path(cfg.fixture_availability_path)
    if fixture_path.exists():
        registry.register(FixtureAdapter(str(fixture_path)))
    else:
        logger.info("No availability fixture at %s; fixture source disabled", fixture_path)

    missing = [n for n in cfg.enabled_sources if n not in registry]
    if missing:
        logger.warning("Enabled sources with no registered adapter: %s", ", ".join(missing))

    return registry


@lru_cache
def get_http_client() -> httpx.AsyncClient:
    return build_http_client(settings)


@lru_cache
def get_registry() -> AdapterRegistry:
    return build_registry(settings, get_http_client())
