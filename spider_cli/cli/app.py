"""
Defines the command-line interface for the application using Typer.
"""

import asyncio
import logging
import signal
from pathlib import Path

import typer
from pydantic import ValidationError
from rich.console import Console
from rich.errors import MarkupError
from rich.logging import RichHandler
from rich.text import Text

from spider_cli import __version__
from spider_cli.core.backends import build_crawler, build_fetcher
from spider_cli.core.pipeline import Pipeline
from spider_cli.exceptions import ConfigurationError
from spider_cli.models.config import CrawlerConfig, FetcherConfig, SpiderSettings
from spider_cli.models.content import Content
from spider_cli.models.outcome import EntryResult
from spider_cli.models.stats import RunStats
from spider_cli.storage.config_manager import ConfigManager
from spider_cli.utils.structured_logger import create_run_logger

from .formatters import (
    print_preview_table,
    print_results_table,
    print_summary_panel,
    print_validation_table,
)

console = Console()

logging.basicConfig(
    level="INFO",
    format="%(message)s",
    datefmt="[%X]",
    handlers=[
        RichHandler(
            console=console,
            rich_tracebacks=True,
            show_path=False,
            show_level=False,
            markup=True,
        )
    ],
)
log = logging.getLogger("spider_cli")

app = typer.Typer(
    name="spider-cli",
    help=(
        "Finds the next episode of each configured series and hands it to a"
        " download service. Use 'spider-cli <command> --help' for more info."
    ),
    rich_markup_mode="rich",
    pretty_exceptions_show_locals=False,
    add_completion=False,
)


class PlainFormatter(logging.Formatter):
    """File log formatter that strips Rich markup from messages."""

    def format(self, record: logging.LogRecord) -> str:
        formatted = super().format(record)
        try:
            return Text.from_markup(formatted).plain
        except MarkupError:
            return formatted


def attach_log_file(log_file: Path) -> None:
    """Appends all `spider_cli` log records to `log_file`."""
    handler = logging.FileHandler(log_file, mode="a", encoding="utf-8")
    handler.setFormatter(
        PlainFormatter(
            "%(asctime)s [%(levelname)s] %(name)s: %(message)s",
            datefmt="%Y-%m-%dT%H:%M:%S%z",
        )
    )
    logging.getLogger("spider_cli").addHandler(handler)


ContentsOption = typer.Option(
    Path("./contents.toml"), "-c", "--contents", help="Content entries file."
)
CrawlersOption = typer.Option(
    Path("./crawlers.toml"), "-r", "--crawlers", help="Crawler configuration file."
)
FetchersOption = typer.Option(
    Path("./fetchers.toml"), "-f", "--fetchers", help="Fetcher configuration file."
)


@app.callback(invoke_without_command=True)
def main_callback(
    ctx: typer.Context,
    verbose: int = typer.Option(
        0,
        "--verbose",
        "-v",
        count=True,
        help="Increase logging verbosity (-v for debug).",
    ),
    version: bool = typer.Option(
        False, "--version", help="Show version and exit.", is_eager=True
    ),
):
    """Episode spider CLI"""
    if version:
        console.print(f"[bold]spider-cli[/bold] version [cyan]{__version__}[/cyan]")
        raise typer.Exit()

    log_level = "DEBUG" if verbose >= 1 else "INFO"
    logging.getLogger("spider_cli").setLevel(log_level)

    if ctx.invoked_subcommand is None:
        console.print(ctx.get_help())


def _load_all(
    config_manager: ConfigManager,
) -> tuple[list[Content], list[CrawlerConfig], list[FetcherConfig]]:
    contents = config_manager.load_contents()
    crawlers = config_manager.load_crawlers()
    fetchers = config_manager.load_fetchers()
    if not crawlers:
        raise ConfigurationError(f"No crawler configured in '{config_manager.crawlers_path}'.")
    if not fetchers:
        raise ConfigurationError(f"No fetcher configured in '{config_manager.fetchers_path}'.")
    return contents, crawlers, fetchers


async def run_pass(
    settings: SpiderSettings,
    config_manager: ConfigManager,
    contents: list[Content],
    crawler_config: CrawlerConfig,
    fetcher_config: FetcherConfig,
) -> tuple[list[EntryResult], RunStats]:
    """Runs one pass over all entries; Ctrl-C requests a cooperative stop."""
    base_logger, run_logger = create_run_logger(settings.json_log_dir)
    base_logger.set_run_context(crawler=crawler_config.type, fetcher=fetcher_config.type)
    crawler = build_crawler(crawler_config, timeout=settings.request_timeout)
    fetcher = build_fetcher(fetcher_config, timeout=settings.request_timeout)
    pipeline = Pipeline(
        contents,
        crawler,
        fetcher,
        config_manager,
        max_workers=settings.max_workers,
        run_logger=run_logger if settings.json_log_dir else None,
    )

    loop = asyncio.get_running_loop()
    signal_installed = False
    try:
        loop.add_signal_handler(signal.SIGINT, pipeline.request_stop)
        signal_installed = True
    except (NotImplementedError, RuntimeError):
        # Not available on Windows event loops; Ctrl-C then aborts the run.
        log.debug("Cooperative Ctrl-C handling is not available on this platform.")

    try:
        results = await pipeline.run_once()
    finally:
        if signal_installed:
            loop.remove_signal_handler(signal.SIGINT)
        await crawler.close()
        await fetcher.close()
        base_logger.close()

    return results, pipeline.stats


@app.command(name="run")
def run_command(
    contents_path: Path = ContentsOption,
    crawlers_path: Path = CrawlersOption,
    fetchers_path: Path = FetchersOption,
    log_file: Path = typer.Option(
        Path("spider.log"), "-l", "--log-file", help="Append log lines to this file."
    ),
    workers: int = typer.Option(
        4, "-w", "--workers", help="Number of content entries processed at once."
    ),
    timeout: float = typer.Option(
        30.0, "--timeout", help="Timeout in seconds for each HTTP request."
    ),
    json_log: Path | None = typer.Option(
        None, "--json-log", help="Directory for a JSON-lines event log of this run."
    ),
):
    """Search for the next release of every entry and deliver what is found."""
    try:
        settings = SpiderSettings(
            contents_path=contents_path,
            crawlers_path=crawlers_path,
            fetchers_path=fetchers_path,
            log_file=log_file,
            json_log_dir=json_log,
            max_workers=workers,
            request_timeout=timeout,
        )
    except ValidationError as e:
        raise ConfigurationError(f"Invalid options:\n{e}") from e

    attach_log_file(settings.log_file)
    config_manager = ConfigManager(
        settings.contents_path, settings.crawlers_path, settings.fetchers_path
    )
    contents, crawlers, fetchers = _load_all(config_manager)

    console.print(
        f"[bold cyan]🕷  Checking {len(contents)} entries...[/bold cyan]"
    )
    results, stats = asyncio.run(
        run_pass(settings, config_manager, contents, crawlers[0], fetchers[0])
    )

    if results:
        print_results_table(results)
    print_summary_panel(stats)
    if stats.has_errors:
        raise typer.Exit(code=1)


@app.command()
def validate(
    contents_path: Path = ContentsOption,
    crawlers_path: Path = CrawlersOption,
    fetchers_path: Path = FetchersOption,
):
    """Validate the configuration files."""
    config_manager = ConfigManager(contents_path, crawlers_path, fetchers_path)
    try:
        contents, crawlers, fetchers = _load_all(config_manager)
    except ConfigurationError as e:
        console.print(f"[red]✗ Configuration is invalid: {e}[/red]")
        raise typer.Exit(code=1) from e
    print_validation_table(contents, crawlers, fetchers)


@app.command()
def preview(contents_path: Path = ContentsOption):
    """Show the queries the next run would search for, without network access."""
    config_manager = ConfigManager(contents_path)
    print_preview_table(config_manager.load_contents())
