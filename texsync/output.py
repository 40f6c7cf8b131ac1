"""Console output helpers for the CLI."""

import json
from typing import Any

from rich.console import Console
from rich.table import Table
from rich.text import Text


class OutputFormatter:
    """Writes human-readable or JSON output.

    In quiet mode informational messages are dropped; warnings, errors and
    JSON payloads are always written. Errors go to stderr.
    """

    def __init__(self, json_output: bool = False, quiet: bool = False):
        self.json_output = json_output
        self.quiet = quiet
        self.console = Console(highlight=False)
        self.err_console = Console(stderr=True, highlight=False)

    def print(self, message: str = "") -> None:
        if not self.quiet and not self.json_output:
            self.console.print(message, markup=False)

    def info(self, message: str) -> None:
        if not self.quiet and not self.json_output:
            self.console.print(message, markup=False)

    def success(self, message: str) -> None:
        if not self.quiet and not self.json_output:
            self.console.print(message, style="green", markup=False)

    def warning(self, message: str) -> None:
        if not self.json_output:
            self.console.print(message, style="yellow", markup=False)

    def error(self, message: str) -> None:
        self.err_console.print(Text.assemble(("Error:", "red"), f" {message}"))

    def output_json(self, data: Any) -> None:
        self.console.print_json(json.dumps(data))

    def print_summary(self, title: str, rows: list[tuple[str, str]]) -> None:
        """Print a two-column summary table.

        Args:
            title: Table title
            rows: (label, value) pairs
        """
        if self.quiet or self.json_output:
            return
        table = Table(title=title, show_header=False)
        table.add_column("Item", style="cyan")
        table.add_column("Value", style="green")
        for label, value in rows:
            table.add_row(label, value)
        self.console.print(table)
