"""Functions command - list functions available to function rules."""

from __future__ import annotations

from rich.console import Console
from rich.table import Table

from ..loader import GrammarLoader


def run_functions() -> int:
    console = Console()
    loader = GrammarLoader()

    table = Table(title="Registered functions", show_header=True)
    table.add_column("Name", style="cyan")
    table.add_column("Description")

    for name in loader.get_registered_functions():
        definition = loader.get_function(name)
        table.add_row(name, definition.description if definition else "")

    console.print(table)
    return 0
