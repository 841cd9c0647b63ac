"""Command line interface for branchsync."""

import logging
from pathlib import Path
from typing import Annotated

import typer
from rich import print
from rich.console import Console
from rich.logging import RichHandler

from branchsync import __version__
from branchsync.git import GitError, GitRepo
from branchsync.report import OutputConfig, Reporter
from branchsync.sync import sync

app = typer.Typer(help="Sync local git branches with origin", add_completion=False)


def configure_logging(debug: bool) -> None:
    """Send debug logs to stderr through rich."""
    if not debug:
        return
    logger = logging.getLogger("branchsync")
    logger.setLevel(logging.DEBUG)
    if not any(isinstance(handler, RichHandler) for handler in logger.handlers):
        logger.addHandler(RichHandler(console=Console(stderr=True), show_time=False, show_path=False))
    logger.propagate = False


def version_callback(value: bool) -> None:
    if value:
        print(f"branchsync {__version__}")
        raise typer.Exit()


@app.command()
def main(
    path: Annotated[Path, typer.Option(help="Path to git repository")] = Path("."),
    color: Annotated[bool, typer.Option("--color/--no-color", help="Colorize output")] = True,
    verbose: Annotated[bool, typer.Option("--verbose", "-v", help="Also report untouched branches")] = False,
    debug: Annotated[bool, typer.Option("--debug", help="Enable debug logging")] = False,
    version: Annotated[
        bool, typer.Option("--version", callback=version_callback, is_eager=True, help="Show version and exit")
    ] = False,
) -> None:
    """Fetch origin, fast-forward stale branches and delete merged branches whose upstream is gone."""
    configure_logging(debug)
    reporter = Reporter(OutputConfig(color=color, verbose=verbose))

    try:
        sync(GitRepo(path), reporter)
    except GitError as err:
        reporter.fatal(str(err))
        raise typer.Exit(code=1) from err


if __name__ == "__main__":
    app()
