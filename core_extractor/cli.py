"""CLI entry point for core-extractor."""

from __future__ import annotations

import io
import logging
import sys
from pathlib import Path

import click
from rich.console import Console

from core_extractor import __version__
from core_extractor.analysis.dataset import LicenseDataset, load_dataset
from core_extractor.analysis.diff import diff_results
from core_extractor.config import ExtractorConfig, load_config
from core_extractor.constants import EXIT_ERROR, EXIT_ISSUES, EXIT_SUCCESS
from core_extractor.exceptions import ConfigurationError, ExtractorError
from core_extractor.models.result import ExtractionResult, Verbosity
from core_extractor.output.result_json import ResultJsonFormatter, parse_result_json
from core_extractor.output.terminal import TerminalFormatter
from core_extractor.output.tree import TreeFormatter
from core_extractor.pipeline import ExtractionPipeline

# Module-level console for consistent output
_console = Console()
# Separate console for error output (writes to stderr)
_error_console = Console(stderr=True)

logger = logging.getLogger("core_extractor")


def _setup_logging(verbose: bool) -> None:
    """Configure logging level based on verbosity flag."""
    logging.basicConfig(format="%(levelname)s: %(name)s: %(message)s")
    logger.setLevel(logging.DEBUG if verbose else logging.WARNING)


def _verbosity(verbose_flag: bool, quiet_flag: bool) -> Verbosity:
    if verbose_flag and quiet_flag:
        raise click.UsageError("--verbose and --quiet are mutually exclusive.")
    if quiet_flag:
        return Verbosity.QUIET
    if verbose_flag:
        return Verbosity.VERBOSE
    return Verbosity.NORMAL


@click.group()
@click.version_option(version=__version__)
def main() -> None:
    """Core Extractor - License-aware extraction of vendor code packages.

    Discovers packages in a raw extracted tree, checks the license header
    of every source file, and decides which packages may be redistributed
    given their own files and everything they depend on.

    \b
    Examples:
        core-extractor extract ./raw
        core-extractor extract ./raw --format json --output result.json
        core-extractor tree ./raw
        core-extractor diff previous.json result.json
    """
    pass


def _run_pipeline(
    root: str,
    config: ExtractorConfig,
    dataset_path: str | None,
    show_progress: bool,
) -> ExtractionResult:
    """Load the dataset and run the pipeline on a tree."""
    dataset: LicenseDataset | None = None
    if dataset_path is not None:
        dataset = load_dataset(Path(dataset_path))
    pipeline = ExtractionPipeline(
        dataset=dataset,
        config=config,
        console=_error_console,
        show_progress=show_progress,
    )
    return pipeline.run(Path(root))


_config_option = click.option(
    "--config",
    "-c",
    "config_path",
    type=click.Path(exists=True, dir_okay=False),
    default=None,
    help="Path to configuration file.",
)
_dataset_option = click.option(
    "--dataset",
    "-d",
    "dataset_path",
    type=click.Path(exists=True),
    default=None,
    help="License dataset file or SPDX details directory (overrides config).",
)
_verbose_option = click.option(
    "--verbose",
    "-v",
    "verbose_flag",
    is_flag=True,
    default=False,
    help="Show detailed information and debug logging.",
)
_quiet_option = click.option(
    "--quiet",
    "-q",
    "quiet_flag",
    is_flag=True,
    default=False,
    help="Suppress non-essential output.",
)


@main.command()
@click.argument("root", type=click.Path(exists=True, file_okay=False))
@click.option(
    "--format",
    "output_format",
    type=click.Choice(["terminal", "json"], case_sensitive=False),
    default="terminal",
    help="Output format for extraction results (default: terminal).",
)
@click.option(
    "--output",
    "-o",
    "output_path",
    type=click.Path(dir_okay=False),
    default=None,
    help="Write report to file instead of stdout.",
)
@_config_option
@_dataset_option
@_verbose_option
@_quiet_option
def extract(
    root: str,
    output_format: str,
    output_path: str | None,
    config_path: str | None,
    dataset_path: str | None,
    verbose_flag: bool,
    quiet_flag: bool,
) -> None:
    """Extract packages from ROOT and decide which may be published.

    Exits with 0 when every package is included, 1 when some are blocked
    or unlicensed, and 2 on error.

    \b
    Examples:
        core-extractor extract ./raw
        core-extractor extract ./raw --format json
        core-extractor extract ./raw --output result.json --format json
        core-extractor extract ./raw --dataset ./license-list-data/json/details
        core-extractor extract ./raw --verbose
    """
    verbosity = _verbosity(verbose_flag, quiet_flag)
    _setup_logging(verbose_flag)
    format_value = output_format.lower()

    try:
        config = load_config(config_path)
        result = _run_pipeline(
            root,
            config,
            dataset_path,
            show_progress=format_value == "terminal" and verbosity != Verbosity.QUIET,
        )
        _display_result(result, format_value, output_path, verbosity)

        if result.has_issues:
            sys.exit(EXIT_ISSUES)
        sys.exit(EXIT_SUCCESS)

    except ExtractorError as e:
        _display_error(e, format_value)
        sys.exit(EXIT_ERROR)


@main.command()
@click.argument("root", type=click.Path(exists=True, file_okay=False))
@_config_option
@_dataset_option
@_verbose_option
@_quiet_option
def tree(
    root: str,
    config_path: str | None,
    dataset_path: str | None,
    verbose_flag: bool,
    quiet_flag: bool,
) -> None:
    """Display the dependency tree of ROOT with package statuses.

    Cycles are marked rather than expanded.

    \b
    Examples:
        core-extractor tree ./raw
        core-extractor tree ./raw --verbose
    """
    verbosity = _verbosity(verbose_flag, quiet_flag)
    _setup_logging(verbose_flag)

    try:
        config = load_config(config_path)
        result = _run_pipeline(root, config, dataset_path, show_progress=False)
        TreeFormatter(console=_console, verbosity=verbosity).format_result(result)

        if result.has_issues:
            sys.exit(EXIT_ISSUES)
        sys.exit(EXIT_SUCCESS)

    except ExtractorError as e:
        _display_error(e, "terminal")
        sys.exit(EXIT_ERROR)


@main.command()
@click.argument("previous", type=click.Path(exists=True, dir_okay=False))
@click.argument("current", type=click.Path(exists=True, dir_okay=False))
def diff(previous: str, current: str) -> None:
    """Compare two JSON results written by `extract --format json`.

    Exits with 1 if a package lost its included status.

    \b
    Examples:
        core-extractor diff previous.json result.json
    """
    try:
        before = _read_result(previous)
        after = _read_result(current)
        result_diff = diff_results(before, after)
        TerminalFormatter(console=_console).format_diff(result_diff)

        if result_diff.regressions:
            sys.exit(EXIT_ISSUES)
        sys.exit(EXIT_SUCCESS)

    except ExtractorError as e:
        _display_error(e, "terminal")
        sys.exit(EXIT_ERROR)


def _read_result(path: str) -> ExtractionResult:
    """Read a JSON result file.

    Raises:
        ConfigurationError: If the file cannot be read or parsed.
    """
    try:
        content = Path(path).read_text(encoding="utf-8")
    except OSError as e:
        raise ConfigurationError(f"Cannot read result file '{path}': {e}") from e
    try:
        return parse_result_json(content)
    except ConfigurationError as e:
        raise ConfigurationError(f"{path}: {e}") from e


def _write_output_to_file(content: str, path: str) -> None:
    """Write report content to file.

    Args:
        content: The report content to write.
        path: The file path to write to.

    Raises:
        ConfigurationError: If file cannot be written.
    """
    file_path = Path(path)

    try:
        if file_path.exists():
            _error_console.print(
                f"[yellow]Warning: Overwriting existing file: {path}[/yellow]"
            )
        file_path.write_text(content, encoding="utf-8")
    except OSError as e:
        raise ConfigurationError(f"Cannot write to file '{path}': {e}") from e

    _error_console.print(f"[green]Report written to {path}[/green]")


def _display_result(
    result: ExtractionResult,
    format_type: str,
    output_path: str | None = None,
    verbosity: Verbosity = Verbosity.NORMAL,
) -> None:
    """Display extraction results in the specified format.

    Args:
        result: The result to display.
        format_type: Output format (terminal or json).
        output_path: Optional file path to write output to.
        verbosity: Output verbosity level.
    """
    if format_type == "json":
        content = ResultJsonFormatter().format_result(result)
    elif output_path:
        # Terminal format to file is rendered as plain text
        buffer = Console(file=io.StringIO(), width=120, record=True)
        TerminalFormatter(console=buffer, verbosity=verbosity).format_result(result)
        content = buffer.export_text()
    else:
        TerminalFormatter(console=_console, verbosity=verbosity).format_result(result)
        return

    if output_path:
        _write_output_to_file(content, output_path)
    else:
        click.echo(content)


def _display_error(error: ExtractorError, format_type: str) -> None:
    """Display error message to user.

    All errors are written to stderr for consistent CI/CD behavior.

    Args:
        error: The exception that occurred.
        format_type: Output format type for styling.
    """
    error_type = type(error).__name__
    message = f"Error: {error_type}: {error}"

    if format_type == "terminal":
        _error_console.print(f"[red bold]{message}[/red bold]")
    else:
        click.echo(message, err=True)


if __name__ == "__main__":
    main()
