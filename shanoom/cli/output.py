"""Terminal output handling using Rich library.

This module provides the OutputHandler class for all CLI terminal output.
It doubles as the ProgressReporter handed to the API client and the sync
engine: ``start``/``update`` drive a single spinner, ``succeed``/``fail``/
``info`` print a line above it. Calls may arrive from worker threads while
the watcher runs, so every method takes the same lock.
"""

import json
import threading
from datetime import datetime
from typing import Any, Optional

from rich.console import Console
from rich.markup import escape
from rich.status import Status


def format_timestamp(value: Any) -> str:
    """Render an ISO-8601 timestamp in local time, or return it unchanged."""
    if not isinstance(value, str):
        return str(value)
    try:
        parsed = datetime.fromisoformat(value)
    except ValueError:
        return value
    return parsed.astimezone().strftime("%d %b %Y, %H:%M")


class OutputHandler:
    """Handles all terminal output using Rich library.

    Attributes:
        verbosity: Verbosity level (0=summary, 1=info, 2=debug)
        console: Rich Console instance for output

    Example:
        >>> output = OutputHandler(verbosity=1, no_color=False)
        >>> output.start("Processing data files...")
        >>> output.succeed("File: user.data.yaml has been created. Content name: user.")
    """

    def __init__(self, verbosity: int = 0, no_color: bool = False, console: Optional[Console] = None):
        """Initialize output handler.

        Args:
            verbosity: Verbosity level (0=summary, 1=info, 2=debug)
            no_color: Disable color output and the animated spinner
            console: Console to write to (tests pass a recording console)
        """
        self.verbosity = verbosity
        self.no_color = no_color
        self.console = console or Console(
            force_terminal=False if no_color else None,
            no_color=no_color,
            highlight=False,
            soft_wrap=True,
        )
        self._lock = threading.RLock()
        self._status: Optional[Status] = None

    # ------------------------------------------------------------------
    # Spinner (ProgressReporter)
    # ------------------------------------------------------------------

    def start(self, message: str) -> None:
        with self._lock:
            if self._status is None:
                self._status = self.console.status(escape(message), spinner="dots")
                self._status.start()
            else:
                self._status.update(escape(message))

    def update(self, message: str) -> None:
        with self._lock:
            if self._status is None:
                self.start(message)
            else:
                self._status.update(escape(message))

    def stop(self) -> None:
        with self._lock:
            if self._status is not None:
                self._status.stop()
                self._status = None

    def succeed(self, message: str) -> None:
        self.success(message)

    def fail(self, message: str) -> None:
        self.error(message)

    # ------------------------------------------------------------------
    # Messages
    # ------------------------------------------------------------------

    def success(self, message: str) -> None:
        """Display success message in green."""
        with self._lock:
            self.console.print(f"[green]✓[/green] {escape(message)}")

    def error(self, message: str) -> None:
        """Display error message in red."""
        with self._lock:
            self.console.print(f"[red]✗[/red] {escape(message)}", style="red")

    def warning(self, message: str) -> None:
        """Display warning message in yellow."""
        with self._lock:
            self.console.print(f"[yellow]⚠[/yellow] {escape(message)}", style="yellow")

    def info(self, message: str) -> None:
        """Display informational message."""
        with self._lock:
            self.console.print(f"[blue]ℹ[/blue] {escape(message)}")

    def debug(self, message: str) -> None:
        """Display debug message (only if verbosity >= 2)."""
        if self.verbosity >= 2:
            with self._lock:
                self.console.print(f"[dim]{escape(message)}[/dim]")

    def print(self, message: str = "") -> None:
        """Display message without formatting."""
        with self._lock:
            self.console.print(escape(message))

    def print_heading(self, message: str) -> None:
        with self._lock:
            self.console.print(f"\n[bold]{escape(message)}[/bold]")

    def print_data(self, data: Any) -> None:
        """Pretty-print JSON-compatible data."""
        with self._lock:
            if self.no_color:
                self.console.print(json.dumps(data, indent=2, ensure_ascii=False, default=str))
            else:
                self.console.print_json(data=data, ensure_ascii=False, default=str)

    def print_summary(self, created: int = 0, updated: int = 0, unchanged: int = 0, failed: int = 0) -> None:
        """Display bulk sync summary with color coding."""
        with self._lock:
            self.console.print("\n[bold]Sync Summary:[/bold]")

            if created > 0:
                self.console.print(f"  [green]+[/green] Created: {created} item(s)")
            if updated > 0:
                self.console.print(f"  [blue]↑[/blue] Updated: {updated} item(s)")
            if unchanged > 0:
                self.console.print(f"  [dim]─[/dim] Unchanged: {unchanged} item(s)")
            if failed > 0:
                self.console.print(f"  [red]✗[/red] Failed: {failed} item(s)")

            total = created + updated + unchanged + failed
            if total == 0:
                self.console.print("\n[yellow]No data files to sync[/yellow]")
            elif failed > 0:
                self.console.print("\n[red]Sync completed with errors[/red]")
            elif created == 0 and updated == 0:
                self.console.print("\n[green]Already in sync. No changes detected.[/green]")
            else:
                self.console.print("\n[green]Sync completed successfully[/green]")
