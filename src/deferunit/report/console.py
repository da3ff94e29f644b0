"""Console result sink using rich."""

from typing import Optional

from rich.console import Console
from rich.table import Table

from deferunit.core.models import TestResult
from deferunit.report.base import AdvancedResultSink


class ConsoleSink(AdvancedResultSink):
    """Prints progress per test class and a summary table."""

    id = "console"

    def __init__(
        self,
        console: Optional[Console] = None,
        verbose: bool = False,
        show_ignored: bool = True,
    ):
        super().__init__()
        self.console = console or Console()
        self.verbose = verbose
        self.show_ignored = show_ignored

        self._current_class: Optional[str] = None
        self._problems: list[TestResult] = []
        self._ignored: list[TestResult] = []

    def set_current_test_class(self, class_name: Optional[str]) -> None:
        if class_name is not None and class_name != self._current_class:
            self.console.print(f"[bold]{class_name}[/bold]")
        self._current_class = class_name

    def add_pass(self, result: TestResult) -> None:
        if self.verbose:
            self.console.print(
                f"  [green]✓[/green] {result.name} [dim]({result.execution_time * 1000:.0f}ms)[/dim]"
            )

    def add_fail(self, result: TestResult) -> None:
        self._problems.append(result)
        self.console.print(f"  [red]✗[/red] {result.name} [red]FAILED[/red]")

    def add_error(self, result: TestResult) -> None:
        self._problems.append(result)
        self.console.print(f"  [red]![/red] {result.name} [red]ERROR[/red]")

    def add_ignore(self, result: TestResult) -> None:
        self._ignored.append(result)
        if self.verbose:
            self.console.print(f"  [yellow]-[/yellow] {result.name} [yellow]ignored[/yellow]")

    def report_final_statistics(self, total, passed, failed, errors, ignored, elapsed) -> None:
        if self._problems:
            self.console.print("\n[bold red]Problems:[/bold red]")
            for result in self._problems:
                detail = result.failure or result.error
                self.console.print(f"  [red]{result.full_name}[/red]")
                if detail is not None:
                    self.console.print(f"    {detail}", markup=False)

        if self.show_ignored and self._ignored:
            self.console.print("\n[yellow]Ignored:[/yellow]")
            for result in self._ignored:
                reason = f" - {result.description}" if result.description else ""
                self.console.print(f"  {result.full_name}{reason}", markup=False)

        self.console.print("\n" + "=" * 50)
        self.console.print("[bold]Test Results Summary[/bold]")
        self.console.print("=" * 50)

        table = Table(show_header=False, box=None)
        table.add_column("Metric", style="bold")
        table.add_column("Value", justify="right")

        table.add_row("Tests", str(total))
        table.add_row("Passed", f"[green]{passed}[/green]")
        table.add_row("Failed", f"[red]{failed}[/red]")
        table.add_row("Errors", f"[red]{errors}[/red]")
        table.add_row("Ignored", f"[yellow]{ignored}[/yellow]")
        table.add_row("Time", f"{elapsed:.3f}s")

        self.console.print(table)

        if passed == total:
            self.console.print("\n[green]PASSED[/green]")
        else:
            self.console.print("\n[red]FAILED[/red]")

        self.complete()
