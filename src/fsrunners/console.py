"""Rich console output for the command line."""

from __future__ import annotations

from typing import TYPE_CHECKING

from rich.console import Console
from rich.markup import escape
from rich.table import Table

if TYPE_CHECKING:
    from fsrunners.locking import LockProbeResult
    from fsrunners.retry import DeletionResult
    from fsrunners.types import ClassifiedOutcome, OperationKind


class Reporter:
    """Formats results for the terminal."""

    def __init__(self, console: Console | None = None) -> None:
        """Initialize the reporter.

        Args:
            console: Console to print to. Defaults to stdout.
        """
        self.console = console or Console()

    def show_success(self, message: str) -> None:
        self.console.print(f"[green]✓[/green] {message}")

    def show_error(self, message: str) -> None:
        self.console.print(f"[red]✗[/red] {message}")

    def show_warning(self, message: str) -> None:
        self.console.print(f"[yellow]![/yellow] {message}")

    def show_runners(
        self,
        rows: list[tuple[str, bool, bool, frozenset[OperationKind]]],
    ) -> None:
        """Display the runner table.

        Args:
            rows: (name, available, selected, unsupported kinds) per runner.
        """
        table = Table(title="Runners")
        table.add_column("Name", style="cyan")
        table.add_column("Available")
        table.add_column("Selected")
        table.add_column("Unsupported")

        for name, available, selected, unsupported in rows:
            table.add_row(
                name,
                "[green]yes[/green]" if available else "[red]no[/red]",
                "yes" if selected else "",
                ", ".join(sorted(kind.value for kind in unsupported)) or "-",
            )

        self.console.print(table)

    def show_outcome(self, outcome: ClassifiedOutcome) -> None:
        """Display a classified outcome with its backend output.

        Args:
            outcome: Outcome to display.
        """
        message = escape(
            f"[{outcome.runner}] {outcome.operation.describe()}: {outcome.category.value}"
        )
        if outcome.succeeded:
            self.show_success(message)
            if outcome.output:
                self.console.print(escape(outcome.output))
            return

        self.show_error(message)
        if outcome.raw_text:
            self.console.print(f"[dim]{escape(outcome.raw_text)}[/dim]")

    def show_deletion(self, result: DeletionResult) -> None:
        """Display the result of a retrying deletion."""
        if result.succeeded:
            self.show_success(f"Deleted {escape(result.path)} ({result.attempts} attempt(s))")
            return
        self.show_error(
            f"Could not delete {escape(result.path)} after {result.attempts} attempt(s)"
        )
        if result.last_outcome is not None and result.last_outcome.raw_text:
            self.console.print(f"[dim]{escape(result.last_outcome.raw_text)}[/dim]")

    def show_lock(self, result: LockProbeResult) -> None:
        """Display the result of a lock probe."""
        if result.acquired:
            self.show_success(f"Lock {escape(result.path)} is free")
            return
        self.show_warning(f"Lock {escape(result.path)} is held")
        if result.detail:
            self.console.print(f"[dim]{escape(result.detail)}[/dim]")
