"""Tests for content entries: query rendering and counter prediction."""

import pytest
from pydantic import ValidationError

from spider_cli.models.content import Candidate, Content, zero_pad


def test_zero_pad_widens_but_never_truncates() -> None:
    assert zero_pad(1, 2) == "01"
    assert zero_pad(7, 3) == "007"
    assert zero_pad(123, 2) == "123"
    assert zero_pad(5, 0) == "5"


def test_render_joins_non_empty_segments_with_single_spaces() -> None:
    content = Content(
        title="Show",
        prefix="[Group]",
        postfix="1080p",
        first=1,
        first_prefix="S",
        second=2,
        second_prefix="E",
        digits=2,
    )

    assert content.render() == "[Group] Show S01E02 1080p"


def test_render_without_prefixes_keeps_counters_adjacent() -> None:
    content = Content(title="Show", first=1, second=2, digits=2)

    assert content.render() == "Show 0102"
    assert "  " not in content.render()


def test_render_with_candidate_does_not_touch_stored_counters() -> None:
    content = Content(title="Show", first=1, second=2, digits=2, second_prefix="E")

    assert content.render(Candidate(3, 1)) == "Show 03E01"
    assert content.candidate == Candidate(1, 2)


def test_label_separates_counters_for_display() -> None:
    content = Content(title="Show", first=1, second=2, digits=2)

    assert content.label() == "Show 01 02"
    assert str(content) == "Show 01 02"


def test_predict_tries_next_second_before_next_first() -> None:
    content = Content(title="Show", first=1, second=2)

    assert content.predict() == [Candidate(1, 3), Candidate(2, 1)]


def test_advance_returns_copy() -> None:
    content = Content(title="Show", first=1, second=2, digits=2)

    advanced = content.advance(Candidate(2, 1))

    assert advanced.candidate == Candidate(2, 1)
    assert advanced.title == "Show"
    assert advanced.digits == 2
    assert content.candidate == Candidate(1, 2)


def test_negative_counters_are_rejected() -> None:
    with pytest.raises(ValidationError):
        Content(title="Show", first=-1)
    with pytest.raises(ValidationError):
        Content(title="Show", digits=-2)
