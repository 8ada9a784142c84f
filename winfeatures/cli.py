"""windows-features CLI - Determine required windows-rs features for a crate."""

from __future__ import annotations

import json
import logging
from pathlib import Path

import click
from rich.console import Console
from rich.logging import RichHandler

from winfeatures import __version__
from winfeatures.catalog import CatalogError, load_catalog
from winfeatures.config import DEFAULT_WINDOWS_VERSION, ResolutionResult, ToolConfig
from winfeatures.languages import get_analyser
from winfeatures.output import build_result, write_output
from winfeatures.phases.resolve import resolve_all
from winfeatures.phases.scan import split_search_line
from winfeatures.pipeline import run_pipeline

logger = logging.getLogger("winfeatures")


def _configure_logging(debug: bool, quiet: bool) -> None:
    if debug:
        level = logging.DEBUG
    elif quiet:
        level = logging.WARNING
    else:
        level = logging.INFO

    handler = RichHandler(
        console=Console(stderr=True),
        show_time=False,
        show_path=False,
    )
    handler.setFormatter(logging.Formatter("%(message)s"))
    logger.handlers[:] = [handler]
    logger.setLevel(level)
    logger.propagate = False


def _common_options(fn):
    options = [
        click.option("--catalog", "catalog_path", type=click.Path(dir_okay=False),
                     default=None, help="Local features.json to use instead of the cache"),
        click.option("--windows-version", default=DEFAULT_WINDOWS_VERSION, show_default=True,
                     help="windows-rs release whose features.json is used"),
        click.option("--cache-dir", type=click.Path(file_okay=False), default=None,
                     help="Directory for the downloaded features.json"),
        click.option("--refresh", is_flag=True, help="Download features.json even if cached"),
        click.option("--offline", is_flag=True, help="Never download features.json"),
        click.option("--format", "output_format", type=click.Choice(["text", "json"]),
                     default="text", show_default=True, help="Output format"),
        click.option("-o", "--output", "output_path", default=None,
                     help="Write JSON output to this file"),
        click.option("--debug", is_flag=True, help="Enable debug output"),
        click.option("--quiet", is_flag=True,
                     help="Suppress all output except the final list of features"),
    ]
    for option in reversed(options):
        fn = option(fn)
    return fn


def _print_summary(config: ToolConfig, result: ResolutionResult, console: Console) -> None:
    from rich.table import Table

    stats = result.stats()
    table = Table(title=f"windows-features: {Path(config.scan_dir).resolve().name}",
                  show_edge=False)
    table.add_column("Metric", style="bold")
    table.add_column("Value", justify="right")
    table.add_row("Imports", str(stats["imports"]))
    table.add_row("Exact", str(stats["exact"]))
    table.add_row("Wildcard", str(stats["wildcard"]))
    table.add_row("Corrected", str(stats["corrected"]))
    table.add_row("Unresolved", str(stats["unresolved"] + stats["unparseable"]))
    table.add_row("Features", str(stats["features"]))
    table.add_row("Duration", f"{result.duration_ms:.1f}ms")
    console.print(table)

    if config.verbose and result.timings:
        timing_table = Table(title="Phase Timings", show_edge=False)
        timing_table.add_column("Phase", style="bold")
        timing_table.add_column("Time (ms)", justify="right")
        for phase, seconds in result.timings.items():
            timing_table.add_row(phase, f"{seconds * 1000:.1f}")
        console.print(timing_table)


def _emit_result(
    config: ToolConfig,
    result: ResolutionResult,
    output_format: str,
    output_path: str | None,
) -> None:
    if output_format == "json" or output_path:
        data = build_result(config, result)
        if output_path:
            write_output(data, output_path)
            if not config.quiet:
                Console(stderr=True).print(f"[green]Output written to:[/green] {output_path}")
        else:
            click.echo(json.dumps(data, indent=2, default=str))
        if output_format == "json":
            return

    if not config.quiet:
        click.echo("Required windows-rs features:", err=True)
    for feature in result.features:
        click.echo(feature)


@click.group()
@click.version_option(__version__, prog_name="windows-features")
def cli() -> None:
    """Determine the windows-rs features required by a crate's imports."""
    pass


@cli.command("scan")
@click.argument("scan_dir", default=".", type=click.Path(exists=True, file_okay=False))
@click.option("--exclude", multiple=True, help="Additional directory names to skip")
@_common_options
def scan_cmd(
    scan_dir: str,
    exclude: tuple[str, ...],
    catalog_path: str | None,
    windows_version: str,
    cache_dir: str | None,
    refresh: bool,
    offline: bool,
    output_format: str,
    output_path: str | None,
    debug: bool,
    quiet: bool,
) -> None:
    """Scan SCAN_DIR for `use windows::` imports and list required features."""
    _configure_logging(debug, quiet)
    config = ToolConfig(
        scan_dir=scan_dir,
        catalog_path=catalog_path,
        windows_version=windows_version,
        cache_dir=cache_dir,
        refresh=refresh,
        offline=offline,
        exclude_patterns=list(exclude),
        verbose=debug,
        quiet=quiet,
    )
    logger.debug(f"Scan directory: {Path(scan_dir).resolve()}")

    try:
        if quiet:
            result = run_pipeline(config)
        else:
            result = _run_with_progress(config)
    except CatalogError as e:
        raise click.ClickException(str(e)) from e

    if not quiet:
        _print_summary(config, result, Console(stderr=True))
    _emit_result(config, result, output_format, output_path)


def _run_with_progress(config: ToolConfig) -> ResolutionResult:
    """Run the pipeline with a Rich spinner on stderr."""
    from rich.progress import Progress, SpinnerColumn, TextColumn, TimeElapsedColumn

    with Progress(
        SpinnerColumn(),
        TextColumn("[bold blue]{task.description}"),
        TimeElapsedColumn(),
        console=Console(stderr=True),
        transient=True,
    ) as progress:
        task = progress.add_task("Initialising...", total=None)

        def on_phase(name, label):
            progress.update(task, description=label)

        return run_pipeline(config, progress_callback=on_phase)


def _collect_imports(lines, crate_name: str) -> list[str]:
    """Expand statements (optionally ``file:``-prefixed) into distinct use paths."""
    analyser = get_analyser()
    seen: dict[str, None] = {}
    for line in lines:
        if not line.strip():
            continue
        _file, statement = split_search_line(line)
        paths = analyser.expand_use_text(statement, crate_name)
        if not paths:
            logger.info(f"Skipping statement with no '{crate_name}::' path: {statement}")
            continue
        for path in paths:
            seen.setdefault(path, None)
    return list(seen)


@cli.command("resolve")
@click.argument("imports", nargs=-1)
@_common_options
def resolve_cmd(
    imports: tuple[str, ...],
    catalog_path: str | None,
    windows_version: str,
    cache_dir: str | None,
    refresh: bool,
    offline: bool,
    output_format: str,
    output_path: str | None,
    debug: bool,
    quiet: bool,
) -> None:
    """Resolve IMPORTS (or stdin lines) to the required features.

    Lines may carry a `file:` prefix, as emitted by text-search tools.
    """
    _configure_logging(debug, quiet)
    config = ToolConfig(
        catalog_path=catalog_path,
        windows_version=windows_version,
        cache_dir=cache_dir,
        refresh=refresh,
        offline=offline,
        verbose=debug,
        quiet=quiet,
    )

    if not imports or imports == ("-",):
        lines = click.get_text_stream("stdin").read().splitlines()
    else:
        lines = list(imports)
    raw_imports = _collect_imports(lines, config.crate_name)
    if not raw_imports:
        logger.warning(f"No 'use {config.crate_name}::' imports given.")

    try:
        catalog = load_catalog(config)
    except CatalogError as e:
        raise click.ClickException(str(e)) from e

    result = resolve_all(raw_imports, catalog)
    _emit_result(config, result, output_format, output_path)


if __name__ == "__main__":
    cli()
