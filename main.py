#!/usr/bin/env python3
"""
Database Client Benchmark - CLI Entry Point

Usage:
    python main.py run-all
    python main.py run --suite sqlite --iterations 5000
    python main.py check --suite redis
    python main.py show results/sqlite-2025-01-01T00-00-00-000Z.json
"""

import sys
import time
import logging
from pathlib import Path

# Add project root to path for imports
sys.path.insert(0, str(Path(__file__).parent))

import click
from rich.console import Console
from rich.table import Table

from dbbench import __version__
from dbbench.config import Config
from dbbench.suites import SUITES, DEFAULT_SUITES, get_suite, list_suites, SuiteError
from dbbench.benchmark.runner import SuiteRunner
from dbbench.benchmark.reporter import Reporter
from dbbench.benchmark.utils import get_machine_info, wait_for_connection

logger = logging.getLogger(__name__)

console = Console()


def setup_logging(verbose: bool = False, debug: bool = False):
    """Configure logging level."""
    if debug:
        level = logging.DEBUG
    elif verbose:
        level = logging.INFO
    else:
        level = logging.WARNING

    # Configure root logger
    logging.basicConfig(
        level=level,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        force=True
    )

    logging.getLogger('dbbench').setLevel(level)


def _print_failure(error: Exception, suites) -> None:
    """Print a diagnostic line and the remediation hints of the given suites."""
    console.print(f"\n[red]❌ Benchmark error occurred: {error}[/red]")
    hints = [(s.display_name, s.setup_hint) for s in suites if s.setup_hint]
    if hints:
        console.print("\nTips:")
        for display_name, hint in hints:
            console.print(f"[yellow]- {display_name}:[/yellow]", highlight=False)
            for line in hint.splitlines():
                console.print(f"    {line}", highlight=False, markup=False)


def _build_suite(name: str, iterations, warmup):
    try:
        return get_suite(name, iterations=iterations, warmup=warmup)
    except ValueError as e:
        console.print(f"[red]Error: {e}[/red]")
        console.print(f"Available suites: {', '.join(list_suites())}")
        sys.exit(1)
    except SuiteError as e:
        console.print(f"[red]Error initializing suite: {e}[/red]")
        sys.exit(1)


@click.group()
@click.version_option(version=__version__)
@click.option('--verbose', '-v', is_flag=True, help='Enable verbose output (INFO level)')
@click.option('--debug', is_flag=True, help='Enable debug output (DEBUG level, shows per-run timings)')
@click.pass_context
def cli(ctx, verbose, debug):
    """
    Database Client Benchmark Tool

    Times competing client libraries against SQLite, MariaDB and Redis
    and compares their throughput.

    Use -v for verbose output, --debug for detailed logs.
    """
    ctx.ensure_object(dict)
    ctx.obj['verbose'] = verbose
    ctx.obj['debug'] = debug
    setup_logging(verbose, debug)


@cli.command('run-all')
@click.option('--suites', '-s', default=','.join(DEFAULT_SUITES), help='Comma-separated suite names')
@click.option('--iterations', '-n', default=None, type=int, help='Timed iterations per benchmark')
@click.option('--warmup', '-w', default=None, type=int, help='Warmup iterations per benchmark')
@click.option('--save/--no-save', default=True, help='Save results as JSON')
def run_all(suites, iterations, warmup, save):
    """
    Run several suites one after another.

    Example:
        python main.py run-all -s sqlite,redis -n 1000
    """
    names = [s.strip() for s in suites.split(',') if s.strip()]

    console.print("\n[bold blue]DATABASE BENCHMARK SUITE[/bold blue]")
    console.print("Native drivers vs third-party client packages\n")
    machine = get_machine_info()
    console.print(
        f"Host: [cyan]{machine['hostname']}[/cyan]  "
        f"Platform: [cyan]{machine['platform']}[/cyan]  "
        f"Python: [cyan]{machine['python']}[/cyan]  "
        f"CPUs: [cyan]{machine['cpu_count']}[/cyan]"
    )

    runner = SuiteRunner(save=save)
    for name in names:
        runner.add_suite(_build_suite(name, iterations, warmup))

    def announce(position, total, suite):
        console.print("\n" + "━" * 80)
        console.print(f"{position}/{total} - {suite.display_name} Benchmark")
        console.print("━" * 80)

    runner.on_suite_start(announce)

    reporter = Reporter(console=console)
    start = time.perf_counter()
    try:
        runner.run_all(reporter)
    except Exception as e:
        _print_failure(e, runner.suites)
        sys.exit(1)

    total_time = time.perf_counter() - start
    console.print("\n[bold green]BENCHMARK COMPLETED[/bold green]")
    console.print(f"\n⏱️  Total time: {total_time:.2f} seconds")
    if save:
        console.print(f"📁 Results saved to {Config.RESULTS_DIR}/ directory\n")


@cli.command()
@click.option('--suite', '-s', required=True, help='Suite name (e.g., sqlite)')
@click.option('--iterations', '-n', default=None, type=int, help='Timed iterations per benchmark')
@click.option('--warmup', '-w', default=None, type=int, help='Warmup iterations per benchmark')
@click.option('--save/--no-save', default=True, help='Save results as JSON')
def run(suite, iterations, warmup, save):
    """
    Run a single suite.

    Example:
        python main.py run -s sqlite -n 5000
    """
    suite_instance = _build_suite(suite, iterations, warmup)

    console.print(f"\n🚀 Starting {suite_instance.display_name} Benchmark...")
    console.print(f"Iterations: [cyan]{suite_instance.iterations}[/cyan]")
    console.print("")

    reporter = Reporter(console=console)
    try:
        results = suite_instance.run()
        reporter.print_results(results, suite_instance.title, baseline=suite_instance.baseline_library)
        if save:
            reporter.save_results(results, suite_instance.result_stem)
    except Exception as e:
        _print_failure(e, [suite_instance])
        sys.exit(1)

    console.print(f"\n[green]✅ {suite_instance.display_name} benchmark completed![/green]")


@cli.command('list-suites')
def list_suites_cmd():
    """List available suites."""
    console.print("\n[bold]Available Suites:[/bold]\n")

    table = Table()
    table.add_column("Name", style="cyan")
    table.add_column("Display Name")
    table.add_column("Libraries")
    table.add_column("Results File")

    for name, suite_class in SUITES.items():
        table.add_row(
            name,
            suite_class.display_name,
            ", ".join(suite_class.libraries),
            f"{suite_class.result_stem}-<timestamp>.json",
        )

    console.print(table)
    console.print("\nConfigure backends with environment variables in .env")


@cli.command()
@click.option('--suite', '-s', required=True, help='Suite name')
@click.option('--retries', '-r', default=None, type=int, help='Connection attempts')
@click.option('--delay', '-d', default=None, type=float, help='Seconds between attempts')
def check(suite, retries, delay):
    """
    Wait until a suite's backend accepts connections.

    Example:
        python main.py check -s redis -r 10
    """
    suite_instance = _build_suite(suite, None, None)
    retries = Config.CONNECT_RETRIES if retries is None else retries
    delay = Config.CONNECT_DELAY if delay is None else delay

    with console.status(f"Connecting to {suite_instance.display_name}..."):
        ready = wait_for_connection(suite_instance.check_connection, retries, delay)

    if ready:
        console.print(f"✅ {suite_instance.display_name} is reachable")
    else:
        console.print(f"[red]❌ {suite_instance.display_name} is not reachable after {retries} attempts[/red]")
        _print_failure(RuntimeError("connection check failed"), [suite_instance])
        sys.exit(1)


@cli.command()
@click.argument('path', type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option('--baseline', '-b', default=None, help='Library column to print last')
def show(path, baseline):
    """
    Print a saved results file as a comparison table.

    Example:
        python main.py show results/redis-2025-01-01T00-00-00-000Z.json
    """
    try:
        timestamp, results, _ = Reporter.load_results(path)
    except (OSError, ValueError, KeyError) as e:
        console.print(f"[red]Error reading {path}: {e}[/red]")
        sys.exit(1)

    reporter = Reporter(console=console)
    reporter.print_results(results, f"{path.stem} ({timestamp})", baseline=baseline)


if __name__ == "__main__":
    cli()
