"""
Structural link extraction over fetched markup.

The crawl engine only needs "the links matched by this selector, in document
order". `LinkSelector` hides the markup library behind that question.
"""

import logging
from typing import Protocol
from urllib.parse import urljoin

from bs4 import BeautifulSoup
from soupsieve import SelectorSyntaxError

from spider_cli.exceptions import ParseError

log = logging.getLogger(__name__)


class LinkSelector(Protocol):
    def links(self, markup: str, selector: str, base_url: str) -> list[str]: ...

    def first_link(self, markup: str, selector: str, base_url: str) -> str | None: ...


class SoupLinkSelector:
    """
    CSS-selector link extraction backed by BeautifulSoup.

    The extracted link of a matched element is its ``href`` attribute, made
    absolute against `base_url`. Matched elements without an ``href`` are
    skipped.
    """

    def __init__(self, parser: str = "html.parser"):
        self._parser = parser

    def links(self, markup: str, selector: str, base_url: str) -> list[str]:
        soup = BeautifulSoup(markup, self._parser)
        try:
            elements = soup.select(selector)
        except (SelectorSyntaxError, ValueError) as e:
            raise ParseError(f"Invalid selector {selector!r}: {e}") from e

        result = []
        for element in elements:
            href = element.get("href")
            if not href:
                continue
            try:
                result.append(urljoin(base_url, href.strip()))
            except ValueError as e:
                log.debug(f"Skipping unusable link {href!r}: {e}")
        log.debug(f"Selector {selector!r} matched {len(result)} link(s).")
        return result

    def first_link(self, markup: str, selector: str, base_url: str) -> str | None:
        links = self.links(markup, selector, base_url)
        return links[0] if links else None
