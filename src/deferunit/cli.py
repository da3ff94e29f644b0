"""Command-line interface for deferunit."""

import asyncio
import importlib
import logging
import sys
from pathlib import Path
from typing import Optional

import click
from rich.console import Console
from rich.logging import RichHandler
from rich.panel import Panel

from deferunit import __version__
from deferunit.config import DeferunitConfig, create_example_config


console = Console()


def print_banner() -> None:
    """Print the deferunit banner."""
    console.print(
        Panel.fit(
            "[bold blue]deferunit[/bold blue] - async-aware test runner",
            subtitle=f"v{__version__}",
        )
    )


def setup_logging(verbose: bool) -> None:
    """Route log records through rich."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=console, show_path=False)],
        force=True,
    )


def load_suite(path: str) -> object:
    """Import a suite from a ``package.module:Name`` path."""
    module_name, _, attr = path.partition(":")
    if not module_name or not attr:
        raise click.BadParameter(f"Expected 'module:SuiteClass', got {path!r}")
    module = importlib.import_module(module_name)
    try:
        return getattr(module, attr)
    except AttributeError:
        raise click.BadParameter(f"Module {module_name!r} has no attribute {attr!r}") from None


@click.group()
@click.version_option(version=__version__, prog_name="deferunit")
@click.option(
    "--config",
    "-c",
    type=click.Path(exists=False),
    help="Path to configuration file (default: deferunit.json)",
)
@click.option("--verbose", "-v", is_flag=True, help="Enable verbose output")
@click.pass_context
def main(ctx: click.Context, config: Optional[str], verbose: bool) -> None:
    """deferunit - run test suites with synchronous and async tests."""
    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose
    ctx.obj["config_path"] = config
    setup_logging(verbose)


@main.command()
@click.option(
    "--output",
    "-o",
    type=click.Path(),
    default="deferunit.json",
    help="Output path for configuration file",
)
@click.option("--force", "-f", is_flag=True, help="Overwrite existing configuration")
def init(output: str, force: bool) -> None:
    """Initialize a new deferunit configuration file."""
    print_banner()

    output_path = Path(output)
    if output_path.exists() and not force:
        console.print(f"[yellow]Configuration file already exists:[/yellow] {output_path}")
        console.print("Use --force to overwrite")
        sys.exit(1)

    create_example_config(output_path)
    console.print(f"[green]Created configuration file:[/green] {output_path}")
    console.print("\nNext steps:")
    console.print("  1. List your suites under 'suites' as 'module:SuiteClass'")
    console.print("  2. Run [bold]deferunit run[/bold] to execute them")


@main.command()
@click.argument("suites", nargs=-1)
@click.option("--debug", is_flag=True, help="Include tests marked debug_only")
@click.option(
    "--report/--no-report",
    default=None,
    help="Write an HTML report (default: from configuration)",
)
@click.pass_context
def run(ctx: click.Context, suites: tuple[str, ...], debug: bool, report: Optional[bool]) -> None:
    """Run test suites given as 'module:SuiteClass' (default: from configuration)."""
    print_banner()

    config_path = ctx.obj.get("config_path")
    verbose = ctx.obj.get("verbose", False)

    try:
        if config_path:
            config = DeferunitConfig.from_file(config_path)
        else:
            config = DeferunitConfig.find_and_load()
        base_dir = Path(config_path).parent if config_path else Path.cwd()
    except FileNotFoundError as e:
        if not suites:
            console.print(f"[red]Error:[/red] {e}")
            console.print("Pass suites on the command line or run [bold]deferunit init[/bold]")
            sys.exit(1)
        config = DeferunitConfig()
        base_dir = Path.cwd()

    from deferunit.core.runner import TestRunner
    from deferunit.report.console import ConsoleSink
    from deferunit.report.html import HtmlReportSink

    # Suites are usually importable relative to the project directory.
    if str(base_dir.resolve()) not in sys.path:
        sys.path.insert(0, str(base_dir.resolve()))

    suite_paths = list(suites) or config.suites
    if not suite_paths:
        console.print("[yellow]No suites to run[/yellow]")
        sys.exit(1)
    loaded = [load_suite(path) for path in suite_paths]

    runner = TestRunner(config=config.execution)
    runner.add_result_sink(
        ConsoleSink(
            console=console,
            verbose=verbose or config.console.verbose,
            show_ignored=config.console.show_ignored,
        )
    )
    if report if report is not None else config.report.html:
        runner.add_result_sink(
            HtmlReportSink(config.report_path(base_dir), title=config.report.title)
        )

    successful = asyncio.run(runner.run_async(loaded, debug=debug or config.execution.debug))
    sys.exit(0 if successful else 1)


if __name__ == "__main__":
    main()
