"""
Structured logging for run results.

Events go through a dedicated `logging` logger whose file handler renders
each record as one JSON object per line, so a pass can be audited later
with standard tooling (``jq``, log shippers).
"""

import json
import logging
import uuid
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

EVENT_LOGGER_NAME = "spider_cli.events"


class JsonLineFormatter(logging.Formatter):
    """Renders a record carrying `event` and `context` extras as a JSON line."""

    def __init__(self, run_context: dict[str, Any]):
        super().__init__()
        self.run_context = run_context

    def format(self, record: logging.LogRecord) -> str:
        entry = {
            "timestamp": datetime.fromtimestamp(record.created, timezone.utc).isoformat(),
            "level": record.levelname,
            "event": getattr(record, "event", record.getMessage()),
            **self.run_context,
            **getattr(record, "context", {}),
        }
        return json.dumps(entry, default=str)


class StructuredLogger:
    """
    Writes machine-parseable run events to ``<log_dir>/spider_<ts>.jsonl``.

    With `log_dir` set to None every call is a no-op, so callers never need
    to check whether event logging is enabled.

    Usage:
        with StructuredLogger(Path("logs")) as events:
            events.info("entry_finished", title="Show", outcome="delivered")
    """

    def __init__(self, log_dir: Path | None = None):
        self.path: Path | None = None
        self._run_context: dict[str, Any] = {"run_id": uuid.uuid4().hex[:12]}
        self._handler: logging.FileHandler | None = None

        # Each instance owns a child logger so handlers never leak between runs.
        self._logger = logging.getLogger(f"{EVENT_LOGGER_NAME}.{self._run_context['run_id']}")
        self._logger.propagate = False
        self._logger.setLevel(logging.INFO)

        if log_dir is not None:
            log_dir.mkdir(parents=True, exist_ok=True)
            stamp = datetime.now().strftime("%Y%m%d_%H%M%S")
            self.path = log_dir / f"spider_{stamp}.jsonl"
            self._handler = logging.FileHandler(self.path, mode="a", encoding="utf-8")
            self._handler.setFormatter(JsonLineFormatter(self._run_context))
            self._logger.addHandler(self._handler)

    @property
    def enabled(self) -> bool:
        return self._handler is not None

    def set_run_context(self, **kwargs) -> None:
        """Adds fields that appear in every following event."""
        self._run_context.update(kwargs)

    def log(self, level: int, event: str, **context) -> None:
        if self.enabled:
            self._logger.log(level, event, extra={"event": event, "context": context})

    def info(self, event: str, **context) -> None:
        self.log(logging.INFO, event, **context)

    def error(self, event: str, **context) -> None:
        self.log(logging.ERROR, event, **context)

    def critical(self, event: str, **context) -> None:
        self.log(logging.CRITICAL, event, **context)

    def close(self) -> None:
        """Flushes and detaches the file handler."""
        if self._handler is not None:
            self._logger.removeHandler(self._handler)
            self._handler.close()
            self._handler = None

    def __enter__(self) -> "StructuredLogger":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> bool:
        self.close()
        return False


class RunLogger:
    """Names the events of a pass; failures go out at ERROR or CRITICAL."""

    def __init__(self, events: StructuredLogger):
        self.events = events

    def run_started(self, total_entries: int, max_workers: int) -> None:
        self.events.info("run_started", total_entries=total_entries, max_workers=max_workers)

    def entry_finished(self, result: dict[str, Any]) -> None:
        if result["outcome"] == "failed":
            self.events.error("entry_finished", **result)
        else:
            self.events.info("entry_finished", **result)

    def commit_failed(self, title: str, error: str) -> None:
        self.events.critical("commit_failed", title=title, error=error)

    def run_completed(
        self,
        duration_s: float,
        delivered: int,
        no_match: int,
        failed: int,
        cancelled: int,
    ) -> None:
        self.events.info(
            "run_completed",
            duration_s=round(duration_s, 2),
            delivered=delivered,
            no_match=no_match,
            failed=failed,
            cancelled=cancelled,
        )


def create_run_logger(log_dir: Path | None = None) -> tuple[StructuredLogger, RunLogger]:
    """
    Creates the event loggers for a run.

    Returns:
        Tuple of (structured_logger, run_logger)
    """
    events = StructuredLogger(log_dir)
    return events, RunLogger(events)
