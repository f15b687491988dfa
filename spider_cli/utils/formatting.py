"""
Helper functions for formatting data into human-readable strings.
"""


def format_duration(seconds: float) -> str:
    """
    Formats a duration for the run summary, e.g. '850ms', '12.4s' or '3m 05s'.
    Passes spend most of their time in crawl waits, so sub-minute runs keep
    one decimal.
    """
    if seconds < 1:
        return f"{int(seconds * 1000)}ms"
    if seconds < 60:
        return f"{seconds:.1f}s"
    minutes, secs = divmod(int(seconds), 60)
    hours, minutes = divmod(minutes, 60)
    if hours:
        return f"{hours}h {minutes:02d}m {secs:02d}s"
    return f"{minutes}m {secs:02d}s"


def truncate(text: str, width: int = 60) -> str:
    """Shortens long links for table cells, keeping the start."""
    if len(text) <= width:
        return text
    return text[: width - 3] + "..."
