# SMSYNC Console Output
# Rich-based console output for user-friendly display

from datetime import datetime
from typing import Optional

from rich.console import Console as RichConsole
from rich.panel import Panel
from rich.table import Table

from smsync.sync.engine import RoutineResult, SyncReport
from smsync.sync.state import Checkpoint, SyncType

_CURSOR_LABELS = {
    SyncType.PRODUCTS: "Offers",
    SyncType.INVENTORY: "Inventory",
    SyncType.ORDERS: "Orders",
    SyncType.TRACKING: "Tracking",
}


def _format_time(value: Optional[datetime]) -> str:
    if value is None:
        return "[dim]never[/dim]"
    return value.strftime("%Y-%m-%d %H:%M:%S %Z").strip()


class Console:
    """
    Console output manager using Rich.

    Provides formatted output for sync operations.
    """

    def __init__(self, *, verbose: bool = False, colored: bool = True):
        """
        Initialize console.

        Args:
            verbose: Enable verbose output.
            colored: Enable colored output.
        """
        self.verbose = verbose
        self._console = RichConsole(no_color=not colored, highlight=False)

    def print(self, *args, **kwargs) -> None:
        """Print to console."""
        self._console.print(*args, **kwargs)

    def print_error(self, message: str) -> None:
        self._console.print(f"[red]Error:[/red] {message}")

    def print_warning(self, message: str) -> None:
        self._console.print(f"[yellow]Warning:[/yellow] {message}")

    def print_success(self, message: str) -> None:
        self._console.print(f"[green]{message}[/green]")

    def print_info(self, message: str) -> None:
        self._console.print(f"[blue]{message}[/blue]")

    def print_report(self, report: SyncReport, *, dry_run: bool = False) -> None:
        """
        Print a table of routine results and an overall summary.

        Args:
            report: Results to display.
            dry_run: Whether this was a dry run (changes wording).
        """
        if not report.results:
            self._console.print("[dim]No routines ran[/dim]")
            return

        table = Table(show_header=True, header_style="bold")
        table.add_column("Routine", style="cyan")
        table.add_column("Status", justify="center")
        table.add_column("Processed", justify="right")
        table.add_column("Skipped", justify="right")
        table.add_column("Details")

        for name, result in report.results.items():
            status = "[green]✓[/green]" if result.success else "[red]✗[/red]"
            table.add_row(name, status, str(result.count), str(result.skipped), self._details(result))

        self._console.print()
        self._console.print(table)

        if self.verbose and dry_run:
            for result in report.results.values():
                if result.payload:
                    self._console.print(Panel(result.payload, title=f"{result.name} offer file", border_style="dim"))

        status_text = "Dry run completed" if dry_run else "Sync completed"
        if report.success:
            self._console.print(Panel(f"[green]{status_text}[/green]", title="Summary", border_style="green"))
        else:
            failed = ", ".join(report.failed_routines)
            self._console.print(
                Panel(f"[red]{status_text} with errors[/red]\nFailed: {failed}", title="Summary", border_style="red")
            )

    def _details(self, result: RoutineResult) -> str:
        if result.error:
            return f"[red]{result.error}[/red]"
        parts = []
        if result.import_id:
            parts.append(f"import {result.import_id}")
        if result.failed:
            parts.append(f"{result.failed} failed")
        if result.dry_run:
            parts.append("dry run")
        elif result.cursor_advanced:
            parts.append("cursor advanced")
        return ", ".join(parts)

    def print_checkpoint(self, checkpoint: Checkpoint, path: str) -> None:
        """Print cursors and processed order count."""
        table = Table(title="Sync Checkpoint", show_header=True, header_style="bold")
        table.add_column("Routine", style="cyan")
        table.add_column("Last successful sync")

        for sync_type, label in _CURSOR_LABELS.items():
            table.add_row(label, _format_time(checkpoint.get_cursor(sync_type)))

        self._console.print()
        self._console.print(table)
        self._console.print(f"Processed Mirakl orders: [cyan]{len(checkpoint.processed_order_ids)}[/cyan]")
        if self.verbose and checkpoint.processed_order_ids:
            for order_id in checkpoint.processed_order_ids:
                self._console.print(f"  • {order_id}")
        self._console.print(f"[dim]State file: {path}[/dim]")

    def print_config_summary(self, config_path: str, shop: str, marketplace: str, schedules: dict[str, str]) -> None:
        """Print configuration summary."""
        lines = [f"Config: {config_path}", f"Shopify store: {shop}", f"Mirakl URL: {marketplace}", "Schedules:"]
        lines.extend(f"  {name}: {expression}" for name, expression in schedules.items())
        self._console.print(Panel("\n".join(lines), title="SMSYNC Configuration", border_style="blue"))


def create_console(*, verbose: bool = False, colored: bool = True) -> Console:
    """Create a console instance."""
    return Console(verbose=verbose, colored=colored)
