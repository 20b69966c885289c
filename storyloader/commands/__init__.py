"""Command implementations behind the storyloader CLI."""

from __future__ import annotations

from pathlib import Path

from ..keywords import KeywordRuleBuilder
from ..loader import GrammarLoader


def build_loader(grammar_path: Path, *, keywords: bool = False, seed: int | None = None) -> GrammarLoader:
    """Load a grammar file into a fresh loader."""
    loader = GrammarLoader()
    if keywords:
        KeywordRuleBuilder(loader).load_keyword_file(grammar_path)
    else:
        loader.load_from_file(grammar_path)
    # A seed on the command line overrides the file's settings.randomSeed.
    if seed is not None:
        loader.get_parser().set_random_seed(seed)
    return loader
