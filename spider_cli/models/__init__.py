"""
Data Models Layer.

This package contains the Pydantic models and result types that define the
core data structures used throughout the application: content entries and
their counters, crawler/fetcher configuration, outcomes and statistics.
"""

from .config import QBFetcherConfig, SpiderSettings, TwoStageWebConfig
from .content import Candidate, Content
from .outcome import (
    CrawlOutcome,
    DeliveryResult,
    EntryResult,
    Failed,
    FailureReason,
    NoMatch,
    Outcome,
    Resolved,
    Stage,
)
from .stats import RunStats

__all__ = [
    "Candidate",
    "Content",
    "CrawlOutcome",
    "DeliveryResult",
    "EntryResult",
    "Failed",
    "FailureReason",
    "NoMatch",
    "Outcome",
    "QBFetcherConfig",
    "Resolved",
    "RunStats",
    "SpiderSettings",
    "Stage",
    "TwoStageWebConfig",
]
