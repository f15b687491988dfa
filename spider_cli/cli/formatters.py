"""
Functions for formatting and displaying data in the console using Rich.
"""

from rich import box
from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from spider_cli.exceptions import (
    AuthRejectedError,
    CommitError,
    ConfigurationError,
    TransportError,
)
from spider_cli.models.config import CrawlerConfig, FetcherConfig
from spider_cli.models.content import Content
from spider_cli.models.outcome import EntryResult, Outcome
from spider_cli.models.stats import RunStats
from spider_cli.utils.formatting import format_duration, truncate

_OUTCOME_STYLES = {
    Outcome.DELIVERED: "[green]✓ delivered[/green]",
    Outcome.NO_MATCH: "[dim]○ nothing new[/dim]",
    Outcome.FAILED: "[red]✗ failed[/red]",
    Outcome.CANCELLED: "[yellow]⚠ cancelled[/yellow]",
}


_SUGGESTIONS: dict[type[Exception], list[str]] = {
    ConfigurationError: [
        "Check the file paths passed with -c, -r and -f.",
        "Run `spider-cli validate` to see which entry is invalid.",
    ],
    CommitError: [
        "Make sure the contents file and its directory are writable.",
        "Fix the counters by hand before the next run to avoid duplicates.",
    ],
    AuthRejectedError: [
        "Verify the username and password in the fetchers file.",
        "qBittorrent bans an IP after repeated failed logins.",
    ],
    TransportError: [
        "The site or the download service may be unreachable right now.",
    ],
}


def format_error_with_suggestions(
    error: Exception, context: dict | None = None
) -> Panel:
    """Formats an error with actionable suggestions into a Rich Panel."""
    suggestions = next(
        (tips for kind, tips in _SUGGESTIONS.items() if isinstance(error, kind)),
        ["Run the command with -v for detailed logs."],
    )

    body = Text.assemble((f"{type(error).__name__}: ", "bold red"), str(error))
    body.append("\n\nSuggestions\n", style="bold yellow")
    body.append("\n".join(f"• {tip}" for tip in suggestions))
    if context:
        body.append(f"\n\nContext: {context}", style="dim")

    return Panel(
        body,
        title="[bold red]An Error Occurred[/bold red]",
        border_style="red",
        expand=False,
    )


def print_results_table(results: list[EntryResult]):
    """Displays one row per content entry with its outcome."""
    console = Console()
    table = Table(box=box.ROUNDED, title="[bold]Run Results[/bold]")
    table.add_column("Title", style="bold cyan")
    table.add_column("Outcome")
    table.add_column("Query")
    table.add_column("Details", style="dim")

    for result in results:
        details = ""
        if result.outcome is Outcome.FAILED:
            stage = result.stage.value if result.stage else "?"
            reason = result.reason.value if result.reason else "?"
            details = escape(f"{reason} at {stage}: {result.detail}")
        elif result.outcome is Outcome.DELIVERED:
            details = escape(truncate(result.link))
            if not result.committed:
                details = f"[bold red]counters not saved[/bold red] {details}"
        table.add_row(
            escape(result.title),
            _OUTCOME_STYLES[result.outcome],
            escape(result.query),
            details,
        )

    console.print(table)


def print_summary_panel(stats: RunStats):
    """Displays the final summary of a run."""
    console = Console()

    stats_table = Table(show_header=False, box=None, padding=(0, 2))
    stats_table.add_column(style="bold cyan", justify="right", width=20)
    stats_table.add_column(style="white", justify="left")

    stats_table.add_row("Entries:", str(stats.total))
    stats_table.add_row(
        "✓ Delivered:", f"[bold green]{stats.entries_delivered}[/bold green]"
    )
    if stats.already_existed > 0:
        stats_table.add_row(
            "  already queued:", f"[dim]{stats.already_existed}[/dim]"
        )
    stats_table.add_row("○ Nothing new:", f"[dim]{stats.entries_no_match}[/dim]")

    if stats.entries_failed > 0:
        stats_table.add_row("✗ Failed:", f"[bold red]{stats.entries_failed}[/bold red]")
    if stats.commits_failed > 0:
        stats_table.add_row(
            "✗ Not saved:", f"[bold red]{stats.commits_failed}[/bold red]"
        )
    if stats.entries_cancelled > 0:
        stats_table.add_row(
            "⚠ Cancelled:", f"[yellow]{stats.entries_cancelled}[/yellow]"
        )

    stats_table.add_row("", "")
    stats_table.add_row("Time Elapsed:", f"[blue]{format_duration(stats.elapsed)}[/blue]")

    if stats.has_errors:
        title = "[bold]Run Finished With Errors[/bold]"
        border_color = "red"
    else:
        title = "[bold]Run Complete[/bold]"
        border_color = "green"

    console.print()
    console.print(
        Panel(
            stats_table,
            title=title,
            border_style=border_color,
            box=box.DOUBLE,
            expand=False,
            padding=(1, 2),
        )
    )


def print_validation_table(
    contents: list[Content],
    crawlers: list[CrawlerConfig],
    fetchers: list[FetcherConfig],
):
    """Displays a summary of the loaded configuration, hiding credentials."""
    console = Console()
    table = Table(show_header=False, box=None, padding=(0, 2))
    table.add_column(style="bold cyan")
    table.add_column()

    table.add_row("Content Entries:", str(len(contents)))
    for crawler in crawlers:
        table.add_row(
            "Crawler:",
            f"[green]{crawler.type}[/green] {escape(crawler.url)}"
            f" [dim](wait {crawler.wait.total_seconds():g}s)[/dim]",
        )
    for fetcher in fetchers:
        auth = f"as {escape(fetcher.username)}" if fetcher.username else "no login"
        table.add_row(
            "Fetcher:",
            f"[green]{fetcher.type}[/green] {escape(fetcher.url)} [dim]({auth})[/dim]",
        )
    if len(crawlers) > 1 or len(fetchers) > 1:
        table.add_row("", "[yellow]Only the first crawler and fetcher are used.[/yellow]")

    console.print(
        Panel(
            table,
            title="[bold green]✓ Validated Settings[/bold green]",
            border_style="green",
        )
    )


def print_preview_table(contents: list[Content]):
    """Displays the current query and the predicted queries of each entry."""
    console = Console()
    table = Table(box=box.ROUNDED, title="[bold]Next Queries[/bold]")
    table.add_column("Title", style="bold cyan")
    table.add_column("Current", style="dim")
    table.add_column("Next", style="green")
    table.add_column("Fallback", style="yellow")

    for content in contents:
        next_candidate, fallback = content.predict()
        table.add_row(
            escape(content.title),
            escape(content.render()),
            escape(content.render(next_candidate)),
            escape(content.render(fallback)),
        )

    console.print(table)
