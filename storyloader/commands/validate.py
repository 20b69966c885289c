"""Validate command - static checks over a loaded grammar."""

from __future__ import annotations

import json
from pathlib import Path

from rich.console import Console
from rich.table import Table

from . import build_loader


def run_validate(grammar_path: Path, *, keywords: bool = False, output_json: bool = False) -> int:
    """Print the grammar's ValidationResult. Returns 1 when the grammar is invalid."""
    console = Console(stderr=True)
    loader = build_loader(grammar_path, keywords=keywords)
    result = loader.validate()

    if output_json:
        print(json.dumps(result.to_dict(), indent=2))
        return 0 if result.is_valid else 1

    table = Table(title=f"Grammar: {grammar_path.name}", show_header=True)
    table.add_column("Check", style="cyan")
    table.add_column("Findings")

    table.add_row("Missing rules", ", ".join(result.missing_rules) or "-")
    table.add_row("Circular references", "\n".join(result.circular_references) or "-")
    table.add_row("Warnings", "\n".join(result.warnings) or "-")
    console.print(table)

    if result.is_valid:
        console.print("✅ Grammar is valid", style="bold green")
        return 0

    console.print("❌ Grammar has unresolved or circular references", style="bold red")
    return 1
