"""Command-line interface for codeloc."""

import re
from pathlib import Path
from typing import List, NoReturn, Optional

import typer

from .analyzer import Processor
from .classifier import LineObservers
from .config import build_analysis_options, find_config_root, load_config, merge_options
from .languages import DEFAULT_REGISTRY, LanguageRegistry, load_registry
from .report import RENDERERS, get_renderer
from .resolver import LanguageResolver
from .sorting import SortKey, sort_result

__version__ = "1.0.0"


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _registry(languages_file: Optional[Path]) -> LanguageRegistry:
    if languages_file is None:
        return DEFAULT_REGISTRY
    try:
        return load_registry(languages_file)
    except (OSError, ValueError) as exc:
        typer.secho(f"❌ ERROR: cannot load {languages_file}: {exc}", fg=typer.colors.RED, err=True)
        raise typer.Exit(code=1)


def _debug_observers() -> LineObservers:
    return LineObservers(
        on_code=lambda line: typer.echo(f"[CODE] {line}", err=True),
        on_comment=lambda line: typer.echo(f"[COMM] {line}", err=True),
        on_blank=lambda line: typer.echo(f"[BLNK] {line}", err=True),
    )


class EchoingResolver(LanguageResolver):
    """Resolver that reports every decision on stderr (``--debug``)."""

    def resolve(self, path, content=None):
        language = super().resolve(path, content)
        typer.echo(f"[FILE] {path}: {language or '<unresolved>'}", err=True)
        return language


def _fail(message: str) -> NoReturn:
    typer.secho(f"❌ ERROR: {message}", fg=typer.colors.RED, err=True)
    raise typer.Exit(code=1)


# ---------------------------------------------------------------------------
# CLI application
# ---------------------------------------------------------------------------


def version_callback(value: bool):
    if value:
        typer.echo(f"codeloc Version: {__version__}")
        raise typer.Exit()


app = typer.Typer(
    help="codeloc: count blank, comment and code lines per language.",
    context_settings={"help_option_names": ["-h", "--help"]},
    add_completion=False,
)


@app.callback()
def main(
    version: Optional[bool] = typer.Option(
        None,
        "--version",
        "-v",
        help="Show the application's version and exit.",
        callback=version_callback,
        is_eager=True,
    )
):
    """codeloc: count blank, comment and code lines per language."""
    pass


@app.command()
def count(
    paths: List[Path] = typer.Argument(..., exists=True, help="Files or directories to count."),
    by_file: bool = typer.Option(False, "--by-file", help="Report results for every file."),
    sort: Optional[str] = typer.Option(
        None, "--sort", help="Sort by name, files, blank, comment, code or tokens (default: code)."
    ),
    output_type: Optional[str] = typer.Option(
        None, "--output-type", help="Output format: default, cloc-xml, sloccount or json."
    ),
    exclude_ext: Optional[str] = typer.Option(
        None, "--exclude-ext", help="Comma-separated extensions to exclude (e.g. json,lock)."
    ),
    include_lang: Optional[str] = typer.Option(
        None, "--include-lang", help="Comma-separated languages to count exclusively."
    ),
    match: Optional[str] = typer.Option(None, "--match", help="Only count files whose name matches this regex."),
    not_match: Optional[str] = typer.Option(None, "--not-match", help="Skip files whose name matches this regex."),
    match_dir: Optional[str] = typer.Option(None, "--match-d", help="Only count files in directories matching this regex."),
    not_match_dir: Optional[str] = typer.Option(None, "--not-match-d", help="Skip files in directories matching this regex."),
    skip_duplicated: bool = typer.Option(False, "--skip-duplicated", help="Count files with identical content once."),
    include_hidden: bool = typer.Option(False, "-i", "--include-hidden", help="Include hidden files."),
    no_gitignore: bool = typer.Option(False, "--no-gitignore", help="Do not honour .gitignore."),
    unknown: bool = typer.Option(False, "--unknown", help="Count unresolved files under 'Unknown'."),
    tokens: bool = typer.Option(False, "--tokens", help="Count cl100k_base LLM tokens per file."),
    jobs: Optional[int] = typer.Option(None, "-j", "--jobs", min=1, help="Worker processes (default: CPU count)."),
    debug: bool = typer.Option(False, "--debug", help="Print every line with its classification."),
    languages_file: Optional[Path] = typer.Option(
        None, "--languages-file", exists=True, dir_okay=False, help="YAML file with extra language definitions."
    ),
    output_file: Optional[Path] = typer.Option(None, "-o", "--output", help="Save the report here."),
):
    """Count lines in PATHS and print a report on stdout or *output_file*."""

    config = load_config(find_config_root(paths))
    merged = merge_options(
        config,
        "count",
        {
            "by_file": by_file,
            "sort": sort,
            "output_type": output_type,
            "exclude_ext": exclude_ext,
            "include_lang": include_lang,
            "match": match,
            "not_match": not_match,
            "match_dir": match_dir,
            "not_match_dir": not_match_dir,
            "skip_duplicated": skip_duplicated,
            "include_hidden": include_hidden,
            "unknown_language": unknown,
            "count_tokens": tokens,
            "jobs": jobs,
        },
    )
    # An explicit --no-gitignore must beat the config file.
    if no_gitignore:
        merged["respect_gitignore"] = False

    by_file = bool(merged.get("by_file", False))
    sort_name = str(merged.get("sort") or SortKey.CODE.value)
    output_name = str(merged.get("output_type") or "default")

    try:
        sort_key = SortKey(sort_name)
    except ValueError:
        _fail(f"unknown sort key {sort_name!r}; expected one of: {', '.join(k.value for k in SortKey)}")
    if by_file and sort_key is SortKey.FILES:
        _fail("'--sort files' cannot be combined with '--by-file'.")
    if output_name not in RENDERERS:
        _fail(f"unknown output type {output_name!r}; expected one of: {', '.join(RENDERERS)}")

    try:
        options = build_analysis_options(merged)
    except ValueError as exc:
        _fail(f"invalid configuration: {exc}")

    registry = _registry(languages_file)
    resolver = EchoingResolver(registry) if debug else LanguageResolver(registry)
    observers = _debug_observers() if debug else None

    try:
        processor = Processor(registry, options, resolver=resolver, observers=observers)
    except re.error as exc:
        _fail(f"invalid regular expression: {exc}")

    result = processor.analyze(paths)

    for record in result.errors:
        typer.secho(f"⚠️  {record.path}: {record.error}", fg=typer.colors.YELLOW, err=True)

    renderer = get_renderer(output_name, by_file=by_file, show_tokens=options.count_tokens)
    report = renderer.render(sort_result(result, sort_key))

    if output_file:
        output_file.parent.mkdir(parents=True, exist_ok=True)
        output_file.write_text(report, encoding="utf-8")
        typer.echo(
            f"✅ Counted {result.total.file_count} files; report saved to: {output_file}",
            err=True,
        )
    else:
        typer.echo(report, nl=False)


@app.command()
def languages(
    languages_file: Optional[Path] = typer.Option(
        None, "--languages-file", exists=True, dir_okay=False, help="YAML file with extra language definitions."
    ),
):
    """List supported languages and their file extensions."""

    typer.echo(_registry(languages_file).describe(), nl=False)


if __name__ == "__main__":  # pragma: no cover
    app()
