"""Rich console output for the apiscramble CLI.

Status messages go to stderr so generated documents can be piped from
stdout.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from typing import Any

from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from apiscramble.errors import ScrambleError


class CLIOutput:
    """Formats CLI status, summaries and errors."""

    def __init__(self, console: Console | None = None, verbose: bool = False) -> None:
        self.console = console or Console(stderr=True)
        self.verbose = verbose

    def success(self, message: str) -> None:
        self.console.print(f"[green]✓[/green] {message}")

    def warning(self, message: str) -> None:
        self.console.print(f"[yellow]![/yellow] {message}")

    def warnings(self, messages: Iterable[str]) -> None:
        for message in messages:
            self.warning(message)

    def error(self, error: ScrambleError | str) -> None:
        if isinstance(error, ScrambleError):
            body = error.format_verbose() if self.verbose else str(error)
            self.console.print(Panel(body, title=error.error_code.value, border_style="red"))
        else:
            self.console.print(f"[red]✗[/red] {error}")

    def document_summary(self, summary: Mapping[str, Any]) -> None:
        """Print the counts produced by ``ExportManager.summary``."""
        table = Table(title=f"{summary['title']} {summary['version']}", show_header=False)
        table.add_column("Item", style="cyan")
        table.add_column("Count", justify="right")
        table.add_row("Paths", str(summary["paths"]))
        table.add_row("Operations", str(summary["operations"]))
        for method, count in sorted(summary["methods"].items()):
            table.add_row(f"  {method}", str(count))
        table.add_row("Schemas", str(summary["schemas"]))
        table.add_row("Security schemes", str(summary["security_schemes"]))
        self.console.print(table)
