"""
Report generation for benchmark results.
Supports console tables and JSON output.
"""

import json
import logging
from pathlib import Path
from typing import Dict, List, Any, Optional, Sequence, Tuple

from rich.console import Console
from rich.table import Table
from rich.text import Text

from .metrics import BenchmarkResult, group_and_rank, row_speedup, speedup, summarize
from .utils import iso_timestamp, timestamp_slug
from ..config import Config

logger = logging.getLogger(__name__)

RULE_WIDTH = 80
CELL_PADDING = 2
MISSING = "-"

# A line is a list of (text, emphasized) segments
Segment = Tuple[str, bool]


def order_libraries(
    results: Sequence[BenchmarkResult],
    baseline: Optional[str] = None,
) -> List[str]:
    """
    Distinct library names in column order.

    Alphabetical, except that the baseline library is always last.
    """
    libraries = sorted({r.library for r in results})
    if baseline in libraries:
        libraries.remove(baseline)
        libraries.append(baseline)
    return libraries


def format_ops(ops_per_second: float) -> str:
    """Format an ops/sec value for a table cell."""
    return f"{ops_per_second:,.0f}"


class Reporter:
    """
    Print and persist benchmark results.

    Supports:
        - Aligned comparison tables (plain text or rich)
        - Per-result timing details
        - Per-operation speedup summary
        - JSON export with comparison summary

    Example:
        reporter = Reporter()
        reporter.print_results(results, "SQLite Benchmark Results")
        reporter.save_results(results, "sqlite")
    """

    def __init__(self, output_dir: Optional[Path] = None, console: Optional[Console] = None):
        """
        Initialize reporter.

        Args:
            output_dir: Directory for result files (default: Config.RESULTS_DIR)
            console: Rich console for output (default: a new Console)
        """
        self.output_dir = Path(output_dir) if output_dir else Config.RESULTS_DIR
        self.console = console or Console()

    # ------------------------------------------------------------------
    # Tables
    # ------------------------------------------------------------------

    def _table_lines(
        self,
        results: Sequence[BenchmarkResult],
        title: str,
        baseline: Optional[str],
    ) -> List[List[Segment]]:
        """Lay out the banner and comparison table as emphasized segments."""
        libraries = order_libraries(results, baseline)
        headers = ["Operation"] + libraries

        rows: List[List[Segment]] = []
        for operation, ranked in group_and_rank(results).items():
            by_library = {r.library: r for r in ranked}
            fastest = ranked[0]
            multiplier = row_speedup(ranked)

            row: List[Segment] = [(operation, False)]
            for library in libraries:
                result = by_library.get(library)
                if result is None:
                    row.append((MISSING, False))
                elif result is fastest and len(ranked) > 1:
                    row.append((f"{format_ops(result.ops_per_second)} ({multiplier:.1f}x)", True))
                else:
                    row.append((format_ops(result.ops_per_second), False))
            rows.append(row)

        widths = [len(h) + CELL_PADDING for h in headers]
        for row in rows:
            for i, (text, _) in enumerate(row):
                widths[i] = max(widths[i], len(text) + CELL_PADDING)

        def cell(text: str, column: int) -> str:
            inner = widths[column] - CELL_PADDING
            aligned = text.ljust(inner) if column == 0 else text.rjust(inner)
            return f" {aligned} "

        def line(cells: List[Segment]) -> List[Segment]:
            segments: List[Segment] = []
            for i, (text, emphasized) in enumerate(cells):
                if i:
                    segments.append(("|", False))
                segments.append((cell(text, i), emphasized))
            return segments

        rule = "=" * RULE_WIDTH
        lines: List[List[Segment]] = [[(rule, False)], [(title, False)], [(rule, False)]]
        lines.append(line([(h, False) for h in headers]))
        lines.append([("+".join("-" * w for w in widths), False)])
        lines.extend(line(row) for row in rows)
        return lines

    def render(
        self,
        results: Sequence[BenchmarkResult],
        title: str,
        baseline: Optional[str] = None,
    ) -> str:
        """
        Render results as a plain-text comparison table.

        One row per operation, one ops/sec column per library. The fastest
        cell of each row is annotated with its speedup over the slowest.

        Args:
            results: Benchmark results in collection order
            title: Banner title
            baseline: Library whose column is always placed last

        Returns:
            The banner and table as text
        """
        lines = self._table_lines(results, title, baseline)
        return "\n".join("".join(text for text, _ in segments) for segments in lines)

    def render_text(
        self,
        results: Sequence[BenchmarkResult],
        title: str,
        baseline: Optional[str] = None,
    ) -> Text:
        """Same table as :meth:`render`, with the fastest cells in bold."""
        text = Text()
        lines = self._table_lines(results, title, baseline)
        for index, segments in enumerate(lines):
            if index:
                text.append("\n")
            for segment, emphasized in segments:
                text.append(segment, style="bold" if emphasized else None)
        return text

    def details_table(self, results: Sequence[BenchmarkResult]) -> Table:
        """One row per result with its raw timing figures, in collection order."""
        table = Table(title="Run Details")
        table.add_column("Operation", style="cyan")
        table.add_column("Library")
        table.add_column("Iterations", justify="right")
        table.add_column("Duration (ms)", justify="right")
        table.add_column("Ops/sec", justify="right")
        table.add_column("Avg (ms)", justify="right")

        for r in results:
            table.add_row(
                r.operation,
                r.library,
                f"{r.iterations:,}",
                f"{r.duration:.2f}",
                f"{r.ops_per_second:,.2f}",
                f"{r.avg_time_per_op:.4f}",
            )

        return table

    def comparison_lines(self, results: Sequence[BenchmarkResult]) -> List[str]:
        """One line per operation describing the fastest library."""
        lines = []
        for operation, ranked in group_and_rank(results).items():
            first = ranked[0]
            if len(ranked) == 1:
                lines.append(
                    f"  {operation}: only {first.library} measured "
                    f"({format_ops(first.ops_per_second)} ops/sec)"
                )
                continue
            second = ranked[1]
            lines.append(
                f"  {operation}: {first.library} is {speedup(ranked):.2f}x faster than "
                f"{second.library} ({format_ops(first.ops_per_second)} vs "
                f"{format_ops(second.ops_per_second)} ops/sec)"
            )
        return lines

    def print_results(
        self,
        results: Sequence[BenchmarkResult],
        title: str,
        baseline: Optional[str] = None,
    ) -> None:
        """Print the comparison table, per-result details and speedup summary."""
        self.console.print()
        self.console.print(self.render_text(results, title, baseline), highlight=False)
        self.console.print()
        self.console.print(self.details_table(results))
        self.console.print("\n[bold]Performance Comparison:[/bold]")
        for line in self.comparison_lines(results):
            self.console.print(line, highlight=False, markup=False)

    # ------------------------------------------------------------------
    # Persistence
    # ------------------------------------------------------------------

    def build_record(
        self,
        results: Sequence[BenchmarkResult],
        timestamp: Optional[str] = None,
    ) -> Dict[str, Any]:
        """Build the JSON document persisted for a results list."""
        return {
            "timestamp": timestamp or iso_timestamp(),
            "results": [r.to_dict() for r in results],
            "summary": {
                operation: item.to_dict()
                for operation, item in summarize(results).items()
            },
        }

    def save_results(
        self,
        results: Sequence[BenchmarkResult],
        filename: str,
    ) -> Path:
        """
        Save results and their comparison summary as JSON.

        The file is named ``<filename>-<timestamp>.json`` inside the output
        directory, which is created if needed. Two saves with the same
        millisecond timestamp write the same file; the later one wins.

        Args:
            results: Benchmark results to export
            filename: File name stem, e.g. "sqlite"

        Returns:
            Path to generated file

        Raises:
            OSError: If the directory or file cannot be written
        """
        timestamp = iso_timestamp()
        self.output_dir.mkdir(parents=True, exist_ok=True)
        output_path = self.output_dir / f"{filename}-{timestamp_slug(timestamp)}.json"

        data = self.build_record(results, timestamp)

        with open(output_path, "w", encoding="utf-8") as f:
            json.dump(data, f, ensure_ascii=False, indent=2, allow_nan=False)

        logger.info(f"Results saved: {output_path}")
        self.console.print(f"\n✓ Results saved: [green]{output_path}[/green]")
        return output_path

    @staticmethod
    def load_results(path: Path) -> Tuple[str, List[BenchmarkResult], Dict[str, Any]]:
        """
        Load a file written by :meth:`save_results`.

        Returns:
            Tuple of (timestamp, results, summary)
        """
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)

        results = [BenchmarkResult.from_dict(item) for item in data["results"]]
        return data["timestamp"], results, data.get("summary", {})
