# gitftp Console Output
# Rich-based diagnostics sink for deployment runs

from rich.console import Console as RichConsole
from rich.markup import escape
from rich.table import Table

from gitftp.sync.changeset import ChangeKind, ChangeSet


class Console:
    """
    Console output manager using Rich.

    The deployment engine reports through this object only; it never
    prints or exits on its own.
    """

    def __init__(self, *, verbose: bool = False, silent: bool = False, colored: bool = True):
        """
        Initialize console.

        Args:
            verbose: Show verbose messages.
            silent: Hide info and success messages.
            colored: Enable colored output.
        """
        self.verbose_enabled = verbose
        self.silent = silent
        self._console = RichConsole(no_color=not colored, highlight=False)
        self._err_console = RichConsole(stderr=True, no_color=not colored, highlight=False)

    def print(self, *args, **kwargs) -> None:
        """Print to console."""
        self._console.print(*args, **kwargs)

    def info(self, message: str) -> None:
        """Print info message."""
        if not self.silent:
            self._console.print(f"[blue]ℹ[/blue] {escape(message)}")

    def verbose(self, message: str) -> None:
        """Print message only in verbose mode."""
        if self.verbose_enabled:
            self._console.print(f"[dim]{escape(message)}[/dim]")

    def success(self, message: str) -> None:
        """Print success message."""
        if not self.silent:
            self._console.print(f"[green]✓[/green] {escape(message)}")

    def warning(self, message: str) -> None:
        """Print warning message."""
        self._err_console.print(f"[yellow]Warning:[/yellow] {escape(message)}")

    def error(self, message: str) -> None:
        """Print error message."""
        self._err_console.print(f"[red]Error:[/red] {escape(message)}")

    def print_changeset(self, changeset: ChangeSet, *, dry_run: bool = False) -> None:
        """Show the planned transfers as a table."""
        if self.silent or not changeset:
            return

        title = "Planned Changes (dry-run)" if dry_run else "Changes to Deploy"
        table = Table(title=title, show_header=True, header_style="bold")
        table.add_column("Action")
        table.add_column("Path", style="cyan")

        styles = {
            ChangeKind.ADDED: "[green]add[/green]",
            ChangeKind.MODIFIED: "[yellow]update[/yellow]",
            ChangeKind.DELETED: "[red]delete[/red]",
        }
        for entry in changeset:
            table.add_row(styles[entry.kind], escape(entry.path))

        self._console.print(table)

    def confirm(self, message: str, default: bool = False) -> bool:
        """
        Ask for confirmation.

        Args:
            message: Confirmation message.
            default: Default value if user just presses enter.

        Returns:
            True if confirmed.
        """
        suffix = " [Y/n]" if default else " [y/N]"
        response = self._console.input(f"{escape(message)}{suffix}: ").strip().lower()

        if not response:
            return default

        return response in ("y", "yes")


def create_console(*, verbose: bool = False, silent: bool = False, colored: bool = True) -> Console:
    """Create a console instance."""
    return Console(verbose=verbose, silent=silent, colored=colored)
