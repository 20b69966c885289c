"""Render command - expand text against a grammar file."""

from __future__ import annotations

from pathlib import Path

from rich.console import Console

from . import build_loader


def run_render(
    grammar_path: Path,
    text: str,
    *,
    count: int = 1,
    seed: int | None = None,
    preserve_context: bool = False,
    keywords: bool = False,
) -> int:
    console = Console(stderr=True)
    loader = build_loader(grammar_path, keywords=keywords, seed=seed)

    console.print(f"Loaded grammar from {grammar_path}", style="dim")

    for _ in range(max(count, 1)):
        print(loader.parse(text, preserve_context))
    return 0
