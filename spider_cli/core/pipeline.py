"""
The coordinator for a single pass: predicts the next release of every content
entry, crawls for it, delivers it and commits the advanced counters.
"""

import asyncio
import logging
from typing import Optional, Protocol, Sequence

from rich.markup import escape

from spider_cli.exceptions import CommitError, RunCancelledError
from spider_cli.models.content import Content
from spider_cli.models.outcome import (
    EntryResult,
    Failed,
    FailureReason,
    NoMatch,
    Outcome,
    Stage,
)
from spider_cli.models.stats import RunStats
from spider_cli.utils.structured_logger import RunLogger

from .backends import Crawler, Fetcher

log = logging.getLogger(__name__)


class CounterStore(Protocol):
    def commit(self, contents: list[Content]) -> None:
        """Persists the full list of content entries; raises `CommitError` on failure."""
        ...


class Pipeline:
    """
    Orchestrates one pass over all content entries.

    Entries are independent and processed concurrently up to `max_workers`.
    Counters move only after the download service confirmed the job, and at
    most once per entry per pass.
    """

    def __init__(
        self,
        contents: Sequence[Content],
        crawler: Crawler,
        fetcher: Fetcher,
        store: CounterStore,
        max_workers: int = 4,
        run_logger: Optional[RunLogger] = None,
    ):
        self.contents: list[Content] = list(contents)
        self.crawler = crawler
        self.fetcher = fetcher
        self.store = store
        self.max_workers = max_workers
        self.run_logger = run_logger
        self.stats = RunStats()
        self.semaphore = asyncio.Semaphore(max_workers)
        self._commit_lock = asyncio.Lock()
        self._stop = asyncio.Event()

    def request_stop(self) -> None:
        """Asks the run to stop at the next stage or entry boundary."""
        if not self._stop.is_set():
            log.warning("[yellow]Stop requested, finishing in-flight stages...[/yellow]")
        self._stop.set()

    @property
    def stop_requested(self) -> bool:
        return self._stop.is_set()

    def _check_stop(self) -> None:
        if self._stop.is_set():
            raise RunCancelledError("Stop requested.")

    async def run_once(self) -> list[EntryResult]:
        """
        Processes every content entry once.

        Returns:
            One result per entry, in configuration order.
        """
        if not self.contents:
            log.info("No content entries configured. Nothing to do.")
            return []

        if self.run_logger:
            self.run_logger.run_started(len(self.contents), self.max_workers)

        tasks = [self._process_entry(index) for index in range(len(self.contents))]
        results = list(await asyncio.gather(*tasks))

        if self.run_logger:
            self.run_logger.run_completed(
                self.stats.elapsed,
                self.stats.entries_delivered,
                self.stats.entries_no_match,
                self.stats.entries_failed,
                self.stats.entries_cancelled,
            )
        return results

    async def _process_entry(self, index: int) -> EntryResult:
        """Runs one entry under the worker pool, isolating any failure to it."""
        content = self.contents[index]
        async with self.semaphore:
            try:
                result = await self._evaluate(index, content)
            except RunCancelledError:
                result = EntryResult(content.title, Outcome.CANCELLED)
            except Exception as e:
                log.error(
                    f"[red]✗ Unexpected error for '{escape(content.title)}': {e}[/red]",
                    exc_info=log.getEffectiveLevel() == logging.DEBUG,
                )
                result = EntryResult(
                    content.title,
                    Outcome.FAILED,
                    reason=FailureReason.UNEXPECTED,
                    detail=str(e),
                )

        self.stats.record(result)
        if self.run_logger:
            self.run_logger.entry_finished(result.to_dict())
        return result

    async def _evaluate(self, index: int, content: Content) -> EntryResult:
        """Walks the predicted candidates until one is delivered or the entry stops."""
        title = escape(content.title)

        for candidate in content.predict():
            self._check_stop()
            query = content.render(candidate)
            log.info(f"Trying to find: {escape(content.label(candidate))}")

            outcome = await self.crawler.crawl(query, self._stop)

            if isinstance(outcome, NoMatch):
                log.debug(f"No match for '{escape(query)}' at {outcome.stage.value}.")
                continue

            if isinstance(outcome, Failed):
                # A failed crawl says nothing about whether the release exists,
                # so the next candidate is not tried.
                log.error(
                    f"[red]✗ Content not found for '{title}' ({outcome.stage.value}):"
                    f" {outcome.detail}[/red]"
                )
                return EntryResult(
                    content.title,
                    Outcome.FAILED,
                    candidate=candidate,
                    query=query,
                    reason=outcome.reason,
                    stage=outcome.stage,
                    detail=outcome.detail,
                )

            self._check_stop()
            log.info(f"Now downloading: {escape(content.label(candidate))}")
            delivery = await self.fetcher.deliver(outcome.link, content.title)
            if not delivery.success:
                log.error(
                    f"[red]✗ Cannot start download for '{title}': {delivery.detail}[/red]"
                )
                return EntryResult(
                    content.title,
                    Outcome.FAILED,
                    candidate=candidate,
                    query=query,
                    link=outcome.link,
                    reason=delivery.reason,
                    stage=Stage.DELIVER,
                    detail=delivery.detail,
                )

            if delivery.already_existed:
                log.info(f"[dim]Job already present for '{title}'.[/dim]")
            committed = await self._commit(index, content.advance(candidate))
            log.info(f"[green]✓ Done: {escape(content.label(candidate))}[/green]")
            return EntryResult(
                content.title,
                Outcome.DELIVERED,
                candidate=candidate,
                query=query,
                link=outcome.link,
                stage=Stage.COMMIT if not committed else None,
                committed=committed,
                already_existed=delivery.already_existed,
            )

        log.info(f"[dim]Nothing new for '{title}'.[/dim]")
        return EntryResult(content.title, Outcome.NO_MATCH)

    async def _commit(self, index: int, advanced: Content) -> bool:
        """
        Stores the advanced entry and writes all counters back.

        Returns:
            False if the write-back failed; the delivery already happened, so a
            later pass could deliver the same release again.
        """
        async with self._commit_lock:
            self.contents[index] = advanced
            snapshot = list(self.contents)
            try:
                await asyncio.to_thread(self.store.commit, snapshot)
            except CommitError as e:
                log.critical(
                    f"[bold red]✗ Delivered '{escape(advanced.title)}' but could not "
                    f"save counters: {e}. It may be delivered again next run.[/bold red]"
                )
                if self.run_logger:
                    self.run_logger.commit_failed(advanced.title, str(e))
                return False
        return True

