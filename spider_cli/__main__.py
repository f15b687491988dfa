"""
Main entry point for spider-cli.
Sets up the console, invokes the Typer app and turns errors into exit codes.
"""

import asyncio
import logging
import os
import sys

import typer
from rich.console import Console

from spider_cli.cli.app import app
from spider_cli.cli.formatters import format_error_with_suggestions
from spider_cli.exceptions import SpiderCliError

EXIT_FAILURE = 1
EXIT_INTERRUPTED = 130


def _use_utf8_console() -> None:
    # Titles and status glyphs are not representable in legacy Windows code pages.
    if os.name != "nt":
        return
    for stream in (sys.stdout, sys.stderr):
        try:
            stream.reconfigure(encoding="utf-8")
        except (TypeError, AttributeError):
            pass


def main() -> None:
    """Runs the CLI and maps uncaught errors to an error panel and exit status."""
    _use_utf8_console()
    log = logging.getLogger("spider_cli")
    console = Console(stderr=True)

    try:
        app()
    except (typer.Exit, typer.Abort):
        pass
    except (KeyboardInterrupt, asyncio.CancelledError):
        console.print("\n[yellow]⚠️  Interrupted, counters of unfinished entries were not changed.[/yellow]")
        sys.exit(EXIT_INTERRUPTED)
    except SpiderCliError as e:
        console.print(format_error_with_suggestions(e))
        sys.exit(EXIT_FAILURE)
    except Exception as e:
        console.print(format_error_with_suggestions(e, {"type": "Unexpected"}))
        log.debug("Full traceback:", exc_info=True)
        sys.exit(EXIT_FAILURE)


if __name__ == "__main__":
    main()
