"""Terminal output for a sync run."""

from dataclasses import dataclass
from typing import Optional

from rich.console import Console
from rich.markup import escape


@dataclass(frozen=True)
class OutputConfig:
    """How results are written to the terminal."""

    color: bool = True
    verbose: bool = False


class Reporter:
    """Writes sync messages to a rich console."""

    def __init__(self, config: OutputConfig, console: Optional[Console] = None) -> None:
        self.config = config
        self.console = console or Console(
            color_system="auto" if config.color else None,
            highlight=False,
            emoji=False,
            soft_wrap=True,
        )

    def _print(self, message: str) -> None:
        self.console.print(message)

    def updated(self, branch: str, was: str) -> None:
        self._print(f"[green]Updated branch [bold green]{escape(branch)}[/bold green] (was {was[:7]}).[/green]")

    def deleted(self, branch: str, was: str) -> None:
        self._print(f"[red]Deleted branch [bold red]{escape(branch)}[/bold red] (was {was[:7]}).[/red]")

    def warning(self, message: str) -> None:
        self._print(f"[yellow]warning:[/yellow] {escape(message)}")

    def up_to_date(self, branch: str) -> None:
        if self.config.verbose:
            self._print(f"[dim]Branch {escape(branch)} is up to date.[/dim]")

    def skipped(self, branch: str) -> None:
        if self.config.verbose:
            self._print(f"[dim]Skipped branch {escape(branch)} (no remote counterpart).[/dim]")

    def fatal(self, message: str) -> None:
        """Print an error as one `fatal:` line, dropping git's own `fatal: ` prefixes."""
        parts = []
        for line in message.splitlines():
            line = line.strip()
            if line.startswith("fatal: "):
                line = line[len("fatal: ") :]
            if line:
                parts.append(line)
        self._print(f"[red]fatal:[/red] {escape(' '.join(parts))}")
