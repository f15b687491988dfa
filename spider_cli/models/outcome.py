"""
Result types passed between the crawl engine, the delivery client and the
pipeline coordinator.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional, Union

from .content import Candidate


class FailureReason(str, Enum):
    """Why a crawl or delivery attempt failed."""

    TRANSPORT_ERROR = "transport_error"
    PARSE_ERROR = "parse_error"
    AUTH_REJECTED = "auth_rejected"
    SUBMIT_ERROR = "submit_error"
    UNEXPECTED = "unexpected"


class Stage(str, Enum):
    """Where in the pipeline an outcome was decided."""

    SEARCH = "search"
    RESOLVE = "resolve"
    DELIVER = "deliver"
    COMMIT = "commit"


@dataclass(frozen=True)
class Resolved:
    """The crawl found a final, absolute download link."""

    link: str


@dataclass(frozen=True)
class NoMatch:
    """The selectors matched nothing; nothing new has been released yet."""

    stage: Stage


@dataclass(frozen=True)
class Failed:
    """A transport or parse error, distinct from an honest empty result."""

    reason: FailureReason
    stage: Stage
    detail: str = ""


CrawlOutcome = Union[Resolved, NoMatch, Failed]


@dataclass(frozen=True)
class DeliveryResult:
    """Outcome of handing a link to the download service."""

    success: bool
    already_existed: bool = False
    reason: Optional[FailureReason] = None
    detail: str = ""

    @classmethod
    def ok(cls, already_existed: bool = False) -> "DeliveryResult":
        return cls(success=True, already_existed=already_existed)

    @classmethod
    def failed(cls, reason: FailureReason, detail: str) -> "DeliveryResult":
        return cls(success=False, reason=reason, detail=detail)


class Outcome(str, Enum):
    """Terminal state of one content entry for a run."""

    DELIVERED = "delivered"
    NO_MATCH = "no_match"
    FAILED = "failed"
    CANCELLED = "cancelled"


@dataclass
class EntryResult:
    """Per-entry record of a run, suitable for structured logging."""

    title: str
    outcome: Outcome
    candidate: Optional[Candidate] = None
    query: str = ""
    link: str = ""
    reason: Optional[FailureReason] = None
    stage: Optional[Stage] = None
    detail: str = ""
    committed: bool = True
    already_existed: bool = False

    @property
    def is_error(self) -> bool:
        """True for failures and for deliveries whose counters were not persisted."""
        return self.outcome is Outcome.FAILED or not self.committed

    def to_dict(self) -> dict:
        return {
            "title": self.title,
            "outcome": self.outcome.value,
            "candidate": list(self.candidate) if self.candidate else None,
            "query": self.query,
            "link": self.link,
            "reason": self.reason.value if self.reason else None,
            "stage": self.stage.value if self.stage else None,
            "detail": self.detail,
            "committed": self.committed,
            "already_existed": self.already_existed,
        }
