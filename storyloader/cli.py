"""CLI entrypoint for storyloader."""

import logging
import sys
from pathlib import Path

import click

from . import __version__
from .errors import GrammarEngineError, GrammarLoaderError

_grammar_path = click.Path(exists=True, file_okay=True, dir_okay=False, path_type=Path)


def _run(fn, *args, **kwargs) -> None:
    """Run a command body, turning loader/engine errors into CLI errors."""
    try:
        exit_code = fn(*args, **kwargs)
    except (GrammarLoaderError, GrammarEngineError) as e:
        raise click.ClickException(str(e)) from e
    sys.exit(exit_code)


@click.group()
@click.version_option(__version__, prog_name="storyloader")
@click.option("--verbose", "-v", is_flag=True, help="Log loader and engine activity to stderr")
@click.pass_context
def cli(ctx: click.Context, verbose: bool) -> None:
    """storyloader - declarative grammars for text generation.

    Load JSON, YAML or TOML grammar files, expand text, and check grammars
    for missing or circular rule references.
    """
    ctx.ensure_object(dict)
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )


@cli.command()
@click.argument("grammar", type=_grammar_path)
@click.argument("text")
@click.option("--count", "-n", type=int, default=1, show_default=True, help="Number of expansions to print")
@click.option("--seed", type=int, default=None, help="Random seed (overrides settings.randomSeed)")
@click.option("--preserve-context", is_flag=True, help="Record resolved values for conditional rules")
@click.option("--keywords", is_flag=True, help="Treat GRAMMAR as a keyword (untyped) grammar")
def render(grammar: Path, text: str, count: int, seed: int | None, preserve_context: bool, keywords: bool) -> None:
    """Expand TEXT against GRAMMAR.

    Examples:

        storyloader render story.json '%hero% %action% %location%.'

        storyloader render story.yaml '%character_type% wields %weapon%' --preserve-context -n 5
    """
    from .commands.render import run_render

    _run(
        run_render,
        grammar,
        text,
        count=count,
        seed=seed,
        preserve_context=preserve_context,
        keywords=keywords,
    )


@cli.command()
@click.argument("grammar", type=_grammar_path)
@click.option("--keywords", is_flag=True, help="Treat GRAMMAR as a keyword (untyped) grammar")
@click.option("--json", "output_json", is_flag=True, help="Output results as JSON")
def validate(grammar: Path, keywords: bool, output_json: bool) -> None:
    """Check GRAMMAR for missing and circular rule references."""
    from .commands.validate import run_validate

    _run(run_validate, grammar, keywords=keywords, output_json=output_json)


@cli.command()
def functions() -> None:
    """List functions available to function rules."""
    from .commands.functions import run_functions

    _run(run_functions)


@cli.command()
@click.argument("grammar", type=_grammar_path)
@click.option("--json", "output_json", is_flag=True, help="Output results as JSON")
def classify(grammar: Path, output_json: bool) -> None:
    """Show the rule type inferred for each rule of a keyword GRAMMAR."""
    from .commands.classify import run_classify

    _run(run_classify, grammar, output_json=output_json)


def main() -> None:
    """Main entrypoint."""
    cli()


if __name__ == "__main__":
    main()
