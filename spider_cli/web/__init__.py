"""
Web Scraping Layer.

This package contains the crawl engine: fetching search and detail pages
and extracting links from them with CSS selectors.
"""

from .selector import LinkSelector, SoupLinkSelector
from .two_stage import TwoStageWebCrawler, filter_by_keywords

__all__ = ["LinkSelector", "SoupLinkSelector", "TwoStageWebCrawler", "filter_by_keywords"]
