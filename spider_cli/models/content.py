"""
Pydantic model for a content entry and its counter scheme.

A content entry describes one episodic release series. Its two counters
(for example season and episode) are rendered into a search query and
predicted forward when looking for the next release.
"""

from typing import NamedTuple

from pydantic import BaseModel, Field


class Candidate(NamedTuple):
    """A predicted (first, second) counter pair."""

    first: int
    second: int


def zero_pad(value: int, digits: int) -> str:
    """Pads a counter value with zeros to `digits`; wider values are never truncated."""
    return str(value).zfill(digits)


class Content(BaseModel):
    """A configured query definition and its counter state."""

    title: str = ""
    prefix: str = ""
    postfix: str = ""
    first: int = Field(0, ge=0)
    first_prefix: str = ""
    second: int = Field(0, ge=0)
    second_prefix: str = ""
    digits: int = Field(0, ge=0)

    class Config:
        """Pydantic model configuration."""

        validate_assignment = True

    @property
    def candidate(self) -> Candidate:
        """The counter pair currently stored on this entry."""
        return Candidate(self.first, self.second)

    def counter_text(self, candidate: Candidate | None = None) -> str:
        first, second = candidate or self.candidate
        return (
            f"{self.first_prefix}{zero_pad(first, self.digits)}"
            f"{self.second_prefix}{zero_pad(second, self.digits)}"
        )

    def render(self, candidate: Candidate | None = None) -> str:
        """
        Builds the search query for this entry.

        Segments are emitted in a fixed order (prefix, title, counters, postfix)
        and joined by single spaces; empty segments are left out entirely.

        Args:
            candidate: Counter pair to render instead of the stored one.

        Returns:
            The query string, e.g. ``"Show S01E02 1080p"``.
        """
        segments = (self.prefix, self.title, self.counter_text(candidate), self.postfix)
        return " ".join(segment for segment in segments if segment)

    def label(self, candidate: Candidate | None = None) -> str:
        """Human-readable form for log lines, with the two counters spaced apart."""
        first, second = candidate or self.candidate
        segments = (
            self.prefix,
            self.title,
            f"{self.first_prefix}{zero_pad(first, self.digits)}",
            f"{self.second_prefix}{zero_pad(second, self.digits)}",
            self.postfix,
        )
        return " ".join(segment for segment in segments if segment)

    def predict(self) -> list[Candidate]:
        """
        Returns the next counter pairs to try, in priority order: the next
        `second` within the current `first`, then the first `second` of the
        next `first`.
        """
        return [
            Candidate(self.first, self.second + 1),
            Candidate(self.first + 1, 1),
        ]

    def advance(self, candidate: Candidate) -> "Content":
        """Returns a copy of this entry with its counters moved to `candidate`."""
        return self.model_copy(
            update={"first": candidate.first, "second": candidate.second}
        )

    def __str__(self) -> str:
        return self.label()
