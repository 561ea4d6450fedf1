# vaultsync Console Output
# Rich-based notifications and summaries

from rich.console import Console as RichConsole
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

from vaultsync.git.engine import WorkingTreeStatus
from vaultsync.sync.result import StepOutcome, SyncResult

_OUTCOME_STYLE: dict[StepOutcome, str] = {
    StepOutcome.SUCCEEDED: "[green]✓[/green]",
    StepOutcome.SKIPPED: "[dim]○[/dim]",
    StepOutcome.FAILED: "[red]✗[/red]",
}


class Console:
    """
    Console output manager using Rich.

    Implements the Notifier protocol for sync notifications.
    """

    def __init__(self, *, verbose: bool = False, colored: bool = True):
        """
        Initialize console.

        Args:
            verbose: Enable verbose output.
            colored: Enable colored output.
        """
        self.verbose = verbose
        self._console = RichConsole(force_terminal=colored or None, no_color=not colored)

    def print(self, *args, **kwargs) -> None:
        """Print to console."""
        self._console.print(*args, **kwargs)

    def info(self, message: str) -> None:
        """Blue info message."""
        self._console.print(f"[blue]ℹ[/blue] {escape(message)}")

    def success(self, message: str) -> None:
        """Green success message."""
        self._console.print(f"[green]✓[/green] {escape(message)}")

    def warning(self, message: str) -> None:
        """Yellow warning message."""
        self._console.print(f"[yellow]⚠[/yellow] {escape(message)}")

    def error(self, message: str) -> None:
        """Red error message."""
        self._console.print(f"[red]✗[/red] {escape(message)}")

    def print_status(self, status: WorkingTreeStatus) -> None:
        """Print working tree status with ahead/behind counts."""
        state = "[green]clean[/green]" if status.clean else f"[yellow]{len(status.changed_paths)} changed[/yellow]"
        self._console.print(f"Working tree: {state}")
        self._console.print(f"Ahead: [cyan]{status.ahead}[/cyan]  Behind: [cyan]{status.behind}[/cyan]")

        if status.changed_paths and (self.verbose or len(status.changed_paths) <= 20):
            table = Table(show_header=True, header_style="bold")
            table.add_column("Changed path", style="yellow")
            for path in status.changed_paths:
                table.add_row(escape(path))
            self._console.print(table)
        elif status.changed_paths:
            self._console.print("[dim]Use --verbose to list all changed paths[/dim]")

    def print_sync_result(self, result: SyncResult) -> None:
        """Print per-step outcomes and an overall summary panel."""
        if result.skipped:
            self._console.print("[dim]Sync skipped: another sync is in progress[/dim]")
            return

        if self.verbose or not result.success:
            for step in result.steps:
                icon = _OUTCOME_STYLE[step.outcome]
                detail = step.reason or step.detail
                suffix = f" [dim]{escape(detail)}[/dim]" if detail else ""
                self._console.print(f"  {icon} {step.step.value}{suffix}")

        backend = result.backend.value if result.backend else "none"
        lines = [
            f"Backend: {backend}",
            f"Committed: {'yes' if result.committed else 'no'}",
            f"Pushed: {'yes' if result.pushed else 'no'}",
        ]
        if result.success:
            title_text = "[green]Sync completed[/green]"
        else:
            title_text = f"[red]Sync failed[/red]\n{escape(result.summary)}"

        self._console.print(
            Panel(
                title_text + "\n" + "\n".join(lines),
                title="Summary",
                border_style="green" if result.success else "red",
            )
        )

    def print_config_summary(self, config_path: str, remote_url: str, backend: str) -> None:
        """Print configuration summary."""
        self._console.print(
            Panel(
                f"Config: {config_path}\nRemote: {escape(remote_url) or '[dim]not set[/dim]'}\nBackend: {backend}",
                title="vaultsync Configuration",
                border_style="blue",
            )
        )


def create_console(*, verbose: bool = False, colored: bool = True) -> Console:
    """Create a console instance."""
    return Console(verbose=verbose, colored=colored)
