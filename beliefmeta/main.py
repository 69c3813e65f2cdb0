"""CLI entry point."""

from __future__ import annotations

import argparse
import os
import sys
import uuid
from pathlib import Path
from typing import Sequence

from dotenv import load_dotenv
from rich.console import Console
from rich.rule import Rule
from rich.table import Table

from beliefmeta.config import DEFAULT_CONFIG_ENV, load_config
from beliefmeta.exceptions import SchemaViolationError
from beliefmeta.export import write_harmonized_csv, write_results_json, write_subsets
from beliefmeta.ingest import load_study_records
from beliefmeta.models import PooledEstimate, ResultsBundle
from beliefmeta.pipeline import run_pipeline
from beliefmeta.utils.logging_config import DEFAULT_LOG_FILE, LogLevel, setup_logging
from beliefmeta.utils.structured_log import bind_run, configure_run_logging, log_stage

console = Console()


def parse_args(argv: Sequence[str] | None = None) -> argparse.Namespace:
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        description="Normalize effect sizes and run the random-effects synthesis",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("--input", "-i", type=str, required=True, help="Effect-size extraction sheet (CSV)")
    parser.add_argument(
        "--output-dir",
        "-o",
        type=str,
        default="output",
        help="Directory for harmonized tables, results.json and the audit log (default: output)",
    )
    parser.add_argument(
        "--config",
        type=str,
        default=os.getenv(DEFAULT_CONFIG_ENV),
        help=f"Pipeline YAML (default: ${DEFAULT_CONFIG_ENV}, then config/pipeline.yaml, then built-ins)",
    )
    parser.add_argument("--verbose", "-v", action="store_true", help="Enable verbose output (detailed logging)")
    parser.add_argument("--debug", "-d", action="store_true", help="Enable debug mode (full logging with all details)")
    parser.add_argument(
        "--log-file",
        type=str,
        nargs="?",
        const=DEFAULT_LOG_FILE,
        default=None,
        help="Enable file logging. Use --log-file for logs/beliefmeta.log or --log-file <path>",
    )
    return parser.parse_args(argv)


def _format(value: float | None, digits: int = 3) -> str:
    return "-" if value is None else f"{value:.{digits}f}"


def _pooled_table(bundle: ResultsBundle) -> Table:
    table = Table(title="Pooled effects (Fisher's z, REML)")
    table.add_column("Analysis", style="cyan")
    table.add_column("k", justify="right")
    table.add_column("z [95% CI]", justify="right")
    table.add_column("r", justify="right")
    table.add_column("p", justify="right")
    table.add_column("I²", justify="right")
    table.add_column("Status")
    for key, result in bundle.sections.get("pooled", {}).items():
        value = result.value
        if result.ok and isinstance(value, PooledEstimate):
            table.add_row(
                key,
                str(value.k),
                f"{_format(value.estimate)} [{_format(value.ci_lower)}, {_format(value.ci_upper)}]",
                _format(value.r),
                _format(value.p_value, 4),
                f"{value.heterogeneity.i_squared:.1f}%",
                "[green]ok[/green]",
            )
        else:
            table.add_row(key, str(result.n), "-", "-", "-", "-", f"[yellow]{result.status.value}[/yellow]")
    return table


def _status_table(bundle: ResultsBundle) -> Table:
    table = Table(title="Analyses by section")
    table.add_column("Section", style="cyan")
    table.add_column("ok", justify="right", style="green")
    table.add_column("insufficient_data", justify="right", style="yellow")
    table.add_column("fit_failure", justify="right", style="red")
    for section, results in bundle.sections.items():
        counts = {"ok": 0, "insufficient_data": 0, "fit_failure": 0}
        for result in results.values():
            counts[result.status.value] += 1
        table.add_row(section, *(str(counts[status]) for status in counts))
    return table


def main(argv: Sequence[str] | None = None) -> int:
    """Main entry point."""
    load_dotenv()
    args = parse_args(argv)

    level = LogLevel.DEBUG if args.debug else LogLevel.VERBOSE if args.verbose else LogLevel.NORMAL
    setup_logging(level=level, log_file=args.log_file)

    output_dir = Path(args.output_dir)
    configure_run_logging(str(output_dir))
    bind_run(uuid.uuid4().hex[:12], input_path=args.input)

    console.print()
    console.print(Rule("[bold cyan]Belief meta-analysis[/bold cyan]", style="cyan"))

    try:
        config = load_config(args.config)
        records = load_study_records(args.input)
    except SchemaViolationError as exc:
        console.print(f"[red]Schema error:[/] {exc}")
        log_stage("load", "failed", columns=exc.columns)
        return 1
    except FileNotFoundError as exc:
        console.print(f"[red]Error:[/] {exc}")
        return 1

    output = run_pipeline(records, config)

    log_stage("export", "start", output_dir=str(output_dir))
    write_subsets(output.subsets, str(output_dir))
    results_path = write_results_json(output.bundle, str(output_dir / "results.json"))
    if output.harmonization.issues:
        write_harmonized_csv(
            [output.records[issue.row] for issue in output.harmonization.issues],
            str(output_dir / "conversion_issues.csv"),
        )
    log_stage("export", "done", results=results_path)

    summary = output.bundle.data_summary
    console.print(
        f"Rows: {summary['total_rows']}  usable: {summary['usable_rows']}  "
        f"excluded: {summary['excluded_rows']}  studies: {summary['studies']}"
    )
    console.print(_pooled_table(output.bundle))
    console.print(_status_table(output.bundle))
    console.print(f"[bold]Results written to[/bold] {output_dir}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
