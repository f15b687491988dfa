"""
Two-stage web crawler: searches a site for a query, follows the first
matching result and extracts the final download link from that page.
"""

import asyncio
import logging
from typing import Optional
from urllib.parse import unquote, urljoin

import aiohttp

from spider_cli.exceptions import ParseError, RunCancelledError, TransportError
from spider_cli.models.config import TwoStageWebConfig
from spider_cli.models.outcome import (
    CrawlOutcome,
    Failed,
    FailureReason,
    NoMatch,
    Resolved,
    Stage,
)

from .selector import LinkSelector, SoupLinkSelector

log = logging.getLogger(__name__)


def filter_by_keywords(links: list[str], query: str) -> list[str]:
    """Keeps links whose decoded URL contains every word of the query."""
    words = [w.lower() for w in query.split()]
    return [link for link in links if all(w in unquote(link).lower() for w in words)]


class TwoStageWebCrawler:
    """
    Search-then-resolve crawler for sites whose search results link to a
    detail page that carries the actual download link.

    Both stages are strictly sequential and separated by the configured wait.
    The wait is a coroutine sleep so other entries keep running meanwhile.
    """

    def __init__(
        self,
        config: TwoStageWebConfig,
        timeout: float = 30.0,
        selector: Optional[LinkSelector] = None,
    ):
        """
        Initializes the crawler.

        Args:
            config: The validated `twostageweb` configuration.
            timeout: Total timeout in seconds for each HTTP request.
            selector: Link extraction strategy; defaults to BeautifulSoup.
        """
        self.config = config
        self.timeout = timeout
        self._selector = selector or SoupLinkSelector()
        self._session: Optional[aiohttp.ClientSession] = None

    async def _initialize_session(self) -> None:
        """Ensures an active aiohttp session is available."""
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(
                headers={"User-Agent": self.config.user_agent},
                timeout=aiohttp.ClientTimeout(total=self.timeout),
            )

    async def close(self) -> None:
        """Gracefully closes the aiohttp session."""
        if self._session and not self._session.closed:
            await self._session.close()

    async def __aenter__(self) -> "TwoStageWebCrawler":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()

    @property
    def search_url(self) -> str:
        return urljoin(self.config.url, self.config.search_page)

    def search_params(self, query: str) -> list[tuple[str, str]]:
        """Query parameters for the search request; categories repeat one key."""
        params = [(self.config.search_get_name, query)]
        params.extend(
            (self.config.categories_get_name, category)
            for category in self.config.categories
        )
        return params

    async def crawl(
        self, query: str, stop_event: Optional[asyncio.Event] = None
    ) -> CrawlOutcome:
        """
        Runs both stages for a query.

        Returns:
            `Resolved` with an absolute link, `NoMatch` when either stage finds
            nothing, or `Failed` on transport and parse errors.

        Raises:
            RunCancelledError: If a stop was requested between the stages.
        """
        await self._initialize_session()

        stage = Stage.SEARCH
        try:
            log.debug(f"Searching {self.search_url} for '{query}'")
            body, base_url = await self._fetch(self.search_url, self.search_params(query))
            candidates = self._selector.links(
                body, self.config.first_stage_match, base_url
            )
            if self.config.keyword_filter:
                candidates = filter_by_keywords(candidates, query)
            if not candidates:
                log.debug(f"No search results for '{query}'.")
                return NoMatch(stage=Stage.SEARCH)
            candidate = candidates[0]

            await self._wait(stop_event)

            stage = Stage.RESOLVE
            log.debug(f"Resolving candidate {candidate}")
            body, base_url = await self._fetch(candidate)
            link = self._selector.first_link(
                body, self.config.second_stage_match, base_url
            )
            if not link:
                log.debug(f"Candidate page {candidate} had no matching link.")
                return NoMatch(stage=Stage.RESOLVE)
            return Resolved(link=link)

        except TransportError as e:
            return Failed(FailureReason.TRANSPORT_ERROR, stage, str(e))
        except ParseError as e:
            return Failed(FailureReason.PARSE_ERROR, stage, str(e))

    async def _wait(self, stop_event: Optional[asyncio.Event]) -> None:
        """Sleeps for the configured wait, waking early if a stop is requested."""
        seconds = self.config.wait.total_seconds()
        if stop_event is None:
            await asyncio.sleep(seconds)
            return
        try:
            await asyncio.wait_for(stop_event.wait(), timeout=seconds)
        except asyncio.TimeoutError:
            return
        raise RunCancelledError("Stop requested between crawl stages.")

    async def _fetch(
        self, url: str, params: Optional[list[tuple[str, str]]] = None
    ) -> tuple[str, str]:
        """
        Fetches a page.

        Returns:
            The decoded body and the effective URL after redirects.
        """
        try:
            async with self._session.get(url, params=params) as response:
                response.raise_for_status()
                body = await response.text()
                return body, str(response.url)
        except UnicodeDecodeError as e:
            raise ParseError(f"Could not decode response from {url}: {e}") from e
        except aiohttp.ClientResponseError as e:
            raise TransportError(f"HTTP {e.status} from {url}") from e
        except asyncio.TimeoutError as e:
            raise TransportError(f"Request to {url} timed out") from e
        except aiohttp.ClientError as e:
            raise TransportError(f"Request to {url} failed: {e}") from e
