"""Classify command - show which rule type each keyword rule resolves to."""

from __future__ import annotations

import json
from pathlib import Path

from rich.console import Console
from rich.table import Table

from ..errors import AmbiguousRuleShapeError
from ..keywords import classify_keyword_rule
from ..load import read_grammar_file


def run_classify(grammar_path: Path, *, output_json: bool = False) -> int:
    """
    Classify every rule of a keyword grammar without loading it.

    Rules whose shape matches no probe are reported as "ambiguous" and make
    the command exit 1.
    """
    console = Console(stderr=True)
    rules = read_grammar_file(grammar_path)["rules"]

    classified: dict[str, str] = {}
    for name, rule in rules.items():
        try:
            classified[str(name)] = classify_keyword_rule(rule, str(name))
        except AmbiguousRuleShapeError:
            classified[str(name)] = "ambiguous"

    ambiguous = [name for name, kind in classified.items() if kind == "ambiguous"]

    if output_json:
        print(json.dumps({"rules": classified, "ambiguous": ambiguous}, indent=2))
    else:
        table = Table(title=f"Keyword rules: {grammar_path.name}", show_header=True)
        table.add_column("Rule", style="cyan")
        table.add_column("Type")
        for name, kind in classified.items():
            table.add_row(name, f"[red]{kind}[/red]" if kind == "ambiguous" else kind)
        console.print(table)

    return 1 if ambiguous else 0
