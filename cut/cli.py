"""CLI interface for the unmarked test collector."""

import logging
from importlib.metadata import PackageNotFoundError, version
from pathlib import Path
from typing import Annotated

import typer
from pydantic import ValidationError
from rich.console import Console
from rich.markup import escape
from rich.progress import (
    BarColumn,
    MofNCompleteColumn,
    Progress,
    TextColumn,
)

from cut.core.collector import UnmarkedTestCollector
from cut.core.config import (
    DEFAULT_TEST_PREFIX,
    ScannerOptions,
    parse_marker_list,
    split_csv,
)
from cut.core.exceptions import InvalidMarkerConfigurationError
from cut.core.models import MarkerSet, ScanResult
from cut.output.formatters.enums import OutputFormat
from cut.output.formatters.formatter_factory import get_formatter
from cut.output.progress.callbacks import RichProgressCallback

app = typer.Typer(
    name="collect-unmarked-tests",
    help="🏷️  Find pytest tests that carry none of the required markers",
    no_args_is_help=True,
    add_completion=False,
)

console = Console()
err_console = Console(stderr=True)

DEFAULT_TEST_DIR = Path("tests")

ExcludeMarkersOption = Annotated[
    str | None,
    typer.Option(
        "--exclude-markers",
        "-m",
        envvar="CUT_EXCLUDE_MARKERS",
        help="Comma-separated markers that count as categorized "
        "(default: unit,integration,component,skip,slow)",
        show_default=False,
    ),
]


def _load_markers(exclude_markers: str | None) -> MarkerSet:
    try:
        return parse_marker_list(exclude_markers)
    except InvalidMarkerConfigurationError as e:
        raise typer.BadParameter(e.message, param_hint="'--exclude-markers'") from e


def _print_plain(target: Console, text: str) -> None:
    target.print(text, markup=False, highlight=False, emoji=False, soft_wrap=True)


def _report_warnings(result: ScanResult) -> None:
    for warning in result.warnings:
        err_console.print(
            f"[yellow]⚠ {escape(warning.location)}: {escape(warning.message)}[/yellow]"
        )


@app.command()
def check(
    paths: Annotated[
        list[Path] | None,
        typer.Argument(
            help="Test directories or files to scan (default: tests)",
            show_default=False,
        ),
    ] = None,
    exclude_markers: ExcludeMarkersOption = None,
    packages: Annotated[
        str | None,
        typer.Option(
            "--packages",
            envvar="CUT_PACKAGES",
            help="Comma-separated package directories to scan instead of PATHS (monorepos)",
        ),
    ] = None,
    test_prefix: Annotated[
        str,
        typer.Option(
            "--test-prefix",
            help="Function name prefix that identifies a test",
        ),
    ] = DEFAULT_TEST_PREFIX,
    strict_comments: Annotated[
        bool,
        typer.Option(
            "--strict-comments",
            help="Comment lines between a decorator and its def break the decorator chain",
        ),
    ] = False,
    jobs: Annotated[
        int,
        typer.Option(
            "--jobs",
            "-j",
            min=1,
            help="Number of files to scan in parallel",
        ),
    ] = 1,
    output_format: Annotated[
        OutputFormat,
        typer.Option(
            "--output",
            "-o",
            help="Output format: text, tree, json, csv",
        ),
    ] = OutputFormat.TEXT,
    output_file: Annotated[
        Path | None,
        typer.Option(
            "--output-file",
            "-f",
            help="Save results to file",
        ),
    ] = None,
    verbose: Annotated[
        bool,
        typer.Option(
            "--verbose",
            "-v",
            help="Verbose output",
        ),
    ] = False,
) -> None:
    """
    Scan test files for test functions without a category marker.

    Exits with status 1 when unmarked tests are found, so it can gate CI.

    Examples:
        collect-unmarked-tests check
        collect-unmarked-tests check tests/ -m unit,integration
        collect-unmarked-tests check --packages services/api/tests,services/web/tests
        collect-unmarked-tests check -o json -f unmarked.json
    """
    if verbose:
        logging.basicConfig(level=logging.DEBUG)
    else:
        logging.basicConfig(level=logging.WARNING)

    marker_set = _load_markers(exclude_markers)

    try:
        options = ScannerOptions(test_prefix=test_prefix, strict_comments=strict_comments)
    except ValidationError as e:
        raise typer.BadParameter(
            f"{test_prefix!r} is not a valid identifier", param_hint="'--test-prefix'"
        ) from e

    if packages is not None:
        roots = [Path(package) for package in split_csv(packages) if package]
    else:
        roots = paths or [DEFAULT_TEST_DIR]

    collector = UnmarkedTestCollector(marker_set, options=options, jobs=jobs)

    with Progress(
        MofNCompleteColumn(),
        BarColumn(),
        TextColumn("[progress.description]{task.description}"),
        console=err_console,
        transient=True,
    ) as progress:
        task_id = progress.add_task("Scanning for unmarked tests...", total=None)
        progress_callback = RichProgressCallback(progress, task_id)

        try:
            result = collector.collect(roots, progress_callback=progress_callback)
        except Exception as e:
            err_console.print(f"[red]Error during scan: {escape(str(e))}[/red]")
            if verbose:
                err_console.print_exception()
            raise typer.Exit(1)

    formatter = get_formatter(output_format)

    if output_file:
        formatter.save(result, output_file)
        err_console.print(f"[green]Results saved to {escape(str(output_file))}[/green]")
    else:
        output = formatter.format(result)
        target = err_console if output_format is OutputFormat.TEXT and result.unmarked else console
        if isinstance(output, str):
            _print_plain(target, output)
        else:
            target.print(output)

    _report_warnings(result)

    if result.unmarked:
        if output_format is not OutputFormat.TEXT or output_file:
            err_console.print(
                f"[yellow]⚠️  Found {len(result.unmarked)} unmarked test(s)[/yellow]"
            )
        raise typer.Exit(1)

    if output_format is not OutputFormat.TEXT or output_file:
        err_console.print("[green]✅ No unmarked tests found![/green]")


@app.command()
def markers(exclude_markers: ExcludeMarkersOption = None) -> None:
    """Show the markers that count as categorized, one per line."""
    for name in _load_markers(exclude_markers).sorted_names():
        _print_plain(console, name)


@app.command("version")
def cli_version() -> None:
    """Show version information."""
    try:
        console.print(version("collect-unmarked-tests"))
    except PackageNotFoundError:
        console.print("unknown")


if __name__ == "__main__":
    app()
