"""Tests for the human-readable formatting helpers."""

from spider_cli.utils.formatting import format_duration, truncate


def test_format_duration_scales_units() -> None:
    assert format_duration(0.25) == "250ms"
    assert format_duration(12.44) == "12.4s"
    assert format_duration(185) == "3m 05s"
    assert format_duration(3725) == "1h 02m 05s"


def test_truncate_keeps_short_text_and_cuts_long_text() -> None:
    assert truncate("short") == "short"
    assert truncate("x" * 100, width=10) == "xxxxxxx..."
