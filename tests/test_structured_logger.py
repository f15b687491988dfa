"""Tests for the JSON-lines run event log."""

import json
from pathlib import Path

from spider_cli.models.outcome import EntryResult, FailureReason, Outcome, Stage
from spider_cli.utils.structured_logger import create_run_logger


def test_run_events_are_written_as_json_lines(tmp_path: Path) -> None:
    base, run_logger = create_run_logger(tmp_path / "events")
    failed = EntryResult(
        "Show",
        Outcome.FAILED,
        query="Show 0103",
        reason=FailureReason.TRANSPORT_ERROR,
        stage=Stage.SEARCH,
        detail="HTTP 502",
    )

    with base:
        run_logger.run_started(total_entries=1, max_workers=4)
        run_logger.entry_finished(failed.to_dict())
        run_logger.commit_failed("Other", "disk full")

    lines = [json.loads(line) for line in base.path.read_text().splitlines()]
    assert [e["event"] for e in lines] == ["run_started", "entry_finished", "commit_failed"]
    assert lines[1]["level"] == "ERROR"
    assert lines[1]["reason"] == "transport_error"
    assert lines[2]["level"] == "CRITICAL"
    assert len({e["run_id"] for e in lines}) == 1


def test_disabled_logger_writes_nothing() -> None:
    base, run_logger = create_run_logger(None)

    run_logger.run_started(total_entries=0, max_workers=1)

    assert base.path is None
    base.close()
