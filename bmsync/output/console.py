# bmsync Console Output
# Rich-based console output for user-friendly display

from typing import Optional

from rich.console import Console as RichConsole
from rich.panel import Panel
from rich.table import Table

from bmsync.sync.cache import CacheStats
from bmsync.sync.changes import ChangeReport
from bmsync.sync.layout import TRACKED_CATEGORIES
from bmsync.sync.pull import PullResult
from bmsync.sync.push import PushResult


class Console:
    """
    Console output manager using Rich.

    Provides formatted output for pull, push and status.
    """

    def __init__(self, *, verbose: bool = False, colored: bool = True, console: Optional[RichConsole] = None):
        """
        Initialize console.

        Args:
            verbose: Enable verbose output.
            colored: Enable colored output.
            console: Rich console to render to, mainly for tests.
        """
        self.verbose = verbose
        self._console = console or RichConsole(no_color=not colored, highlight=False)

    @property
    def rich(self) -> RichConsole:
        """Underlying rich console."""
        return self._console

    def print(self, *args, **kwargs) -> None:
        """Print to console."""
        self._console.print(*args, **kwargs)

    def print_error(self, message: str) -> None:
        """Print error message."""
        self._console.print(f"[red]Error:[/red] {message}")

    def print_warning(self, message: str) -> None:
        """Print warning message."""
        self._console.print(f"[yellow]Warning:[/yellow] {message}")

    def print_success(self, message: str) -> None:
        """Print success message."""
        self._console.print(f"[green]{message}[/green]")

    def print_info(self, message: str) -> None:
        """Print info message."""
        self._console.print(f"[blue]{message}[/blue]")

    def print_changes(self, report: ChangeReport, *, total_tracked: Optional[int] = None) -> None:
        """
        Print a change report grouped by category.

        Args:
            report: Change report to display.
            total_tracked: Number of cached entries, shown in the summary.
        """
        if not report.has_changes:
            self._console.print("[green]✓[/green] No local changes")
        else:
            for category in TRACKED_CATEGORIES:
                self._print_category_changes(category, report)

        summary = (
            f"[yellow]{report.total.changed} changed[/yellow], "
            f"[green]{report.total.new} new[/green], "
            f"[red]{report.total.deleted} deleted[/red]"
        )
        if total_tracked is not None:
            summary += f"\nTracked files: {total_tracked}"
        self._console.print()
        self._console.print(Panel(summary, title="Status", border_style="yellow" if report.has_changes else "green"))

    def _print_category_changes(self, category: str, report: ChangeReport) -> None:
        changed = report.changed.get(category, [])
        new = report.new.get(category, [])
        deleted = report.deleted.get(category, [])
        if not (changed or new or deleted):
            return

        self._console.print(f"\n[bold]{category}[/bold]")
        for path in changed:
            self._console.print(f"    [yellow]M[/yellow] {path}")
        for path in new:
            self._console.print(f"    [green]+[/green] {path}")
        for path in deleted:
            self._console.print(f"    [red]×[/red] {path}")

    def print_pull_result(self, result: PullResult) -> None:
        """Print pull result per category and an overall summary."""
        table = Table(show_header=True, header_style="bold")
        table.add_column("Category")
        table.add_column("Items", justify="right")
        table.add_column("Written", justify="right")
        table.add_column("Unchanged", justify="right", style="dim")
        table.add_column("Status")

        for category in result.categories:
            status = "[green]✓[/green]" if category.success else f"[red]✗ {len(category.errors)} errors[/red]"
            table.add_row(
                category.category,
                str(category.item_count),
                str(category.written),
                str(category.unchanged),
                status,
            )
        self._console.print(table)

        for category in result.categories:
            for error in category.errors:
                self._console.print(f"    [red]✗[/red] {category.category}: {error.message}")

        text = "Pull completed" if result.success else "Pull completed with errors"
        color = "green" if result.success else "red"
        self._console.print(
            Panel(
                f"[{color}]{text}[/{color}]\n"
                f"Items: {result.total_items}, files written: {result.files_written}",
                title="Summary",
                border_style=color,
            )
        )

    def print_push_result(self, result: PushResult) -> None:
        """Print pushed files, errors and a summary."""
        if result.nothing_to_do:
            self._console.print("[green]✓[/green] Nothing to push")
            return

        for path in result.pushed_files:
            self._console.print(f"    [green]↑[/green] {path}")
        if self.verbose:
            for path in result.skipped_files:
                self._console.print(f"    [dim]○ {path}[/dim]")
        for error in result.errors:
            self._console.print(f"    [red]✗[/red] {error.file} ({error.type}): {error.message}")

        text = "Push completed" if result.success else "Push completed with errors"
        color = "green" if result.success else "red"
        self._console.print(
            Panel(
                f"[{color}]{text}[/{color}]\n"
                f"Pushed: {len(result.pushed_files)} files, "
                f"skipped: {len(result.skipped_files)}, errors: {len(result.errors)}",
                title="Summary",
                border_style=color,
            )
        )

    def print_cache_cleared(self, before: CacheStats) -> None:
        """Print the outcome of clearing the hash cache."""
        self._console.print(f"[green]✓[/green] Cleared hash cache ({before.total_files} entries removed)")
        self._console.print("[dim]The next pull rewrites every file; the next push sends every file.[/dim]")

    def print_config_summary(self, config_path: str, instances: dict[str, str], default_alias: str) -> None:
        """Print configuration summary."""
        lines = [f"Config: {config_path}", f"Default alias: {default_alias}"]
        for alias, url in instances.items():
            marker = "*" if alias == default_alias else " "
            lines.append(f"{marker} {alias}: {url}")
        self._console.print(Panel("\n".join(lines), title="bmsync Configuration", border_style="blue"))


def create_console(*, verbose: bool = False, colored: bool = True) -> Console:
    """
    Create a console instance.

    Args:
        verbose: Enable verbose output.
        colored: Enable colored output.

    Returns:
        Console instance.
    """
    return Console(verbose=verbose, colored=colored)
