"""
Capability interfaces for crawlers and fetchers, and the factories that map
each configured variant onto its implementation.
"""

import asyncio
from typing import Optional, Protocol

from spider_cli.api.qbittorrent import QBittorrentClient
from spider_cli.exceptions import ConfigurationError
from spider_cli.models.config import (
    CrawlerConfig,
    FetcherConfig,
    QBFetcherConfig,
    TwoStageWebConfig,
)
from spider_cli.models.outcome import CrawlOutcome, DeliveryResult
from spider_cli.web.two_stage import TwoStageWebCrawler


class Crawler(Protocol):
    async def crawl(
        self, query: str, stop_event: Optional[asyncio.Event] = None
    ) -> CrawlOutcome: ...

    async def close(self) -> None: ...


class Fetcher(Protocol):
    async def deliver(self, link: str, title: str) -> DeliveryResult: ...

    async def close(self) -> None: ...


def build_crawler(config: CrawlerConfig, timeout: float = 30.0) -> Crawler:
    """Creates the crawler for a configured variant."""
    if isinstance(config, TwoStageWebConfig):
        return TwoStageWebCrawler(config, timeout=timeout)
    raise ConfigurationError(f"Unsupported crawler type: {type(config).__name__}")


def build_fetcher(config: FetcherConfig, timeout: float = 30.0) -> Fetcher:
    """Creates the fetcher for a configured variant."""
    if isinstance(config, QBFetcherConfig):
        return QBittorrentClient(config, timeout=timeout)
    raise ConfigurationError(f"Unsupported fetcher type: {type(config).__name__}")
