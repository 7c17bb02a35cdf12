"""
layerscan command line.

Examples:
  layerscan https://example.com
  layerscan https://example.com https://api.github.com --validate-json
  layerscan -f targets.txt --screenshot -o /tmp/reports
"""

import argparse
import logging
import sys
from typing import List, Optional

from rich.console import Console
from rich.markup import escape
from rich.table import Table

from . import __version__
from .capabilities import build_default_capabilities
from .config import DEFAULT_OUTPUT_ROOT, ProbeConfig
from .core.errors import ConfigurationError
from .core.models import LATENCY_UNMEASURED
from .core.pipeline import PipelineDriver, TargetOutcome
from .core.run_controller import RunController, RunSummary
from .utils.targets import load_targets

LOG = logging.getLogger("layerscan")

EXIT_OK = 0
EXIT_TARGET_FAULT = 1
EXIT_USAGE = 2


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="layerscan",
        description="Probe target URLs layer by layer (physical to application) and write "
        "a text log, JSON, CSV, HTML body and optional screenshot per target.",
        epilog=__doc__,
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("urls", nargs="*", metavar="URL", help="Target URL(s) to analyse.")
    parser.add_argument(
        "-f",
        "--targets-file",
        help="File with one target URL per line ('#' starts a comment).",
    )
    parser.add_argument(
        "--screenshot", action="store_true", help="Capture a PNG screenshot of each target."
    )
    parser.add_argument(
        "--validate-json",
        action="store_true",
        help="Check whether each response body parses as JSON.",
    )
    parser.add_argument(
        "-o",
        "--output-dir",
        default=None,
        help=f"Root directory for per-target reports (default: {DEFAULT_OUTPUT_ROOT}).",
    )
    parser.add_argument("--config", help="JSON file overriding probe settings.")
    parser.add_argument(
        "--no-notify",
        action="store_true",
        help="Print completion notices to the console instead of desktop popups.",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging.")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    return parser


def collect_targets(urls: List[str], targets_file: Optional[str]) -> List[str]:
    """Command-line URLs first, then the targets file, without duplicates."""
    targets = list(urls)
    if targets_file:
        targets.extend(load_targets(targets_file))
    unique: List[str] = []
    for target in targets:
        if target not in unique:
            unique.append(target)
    return unique


def _display(url: str) -> str:
    """URL safe to print: undecodable command-line bytes become backslash escapes."""
    return escape(url.encode("utf-8", "backslashreplace").decode("utf-8"))


def _print_outcome(console: Console, outcome: TargetOutcome) -> None:
    url = _display(outcome.url)
    if outcome.faulted:
        console.print(f"[bold red]✗ {url}: aborted ({_display(outcome.fault)})[/bold red]")
    elif outcome.error_layers:
        failed = ", ".join(layer.label for layer in outcome.error_layers)
        console.print(f"[yellow]! {url}: completed with errors in {failed}[/yellow]")
    else:
        console.print(f"[green]✓ {url}: all layers completed[/green]")


def _summary_table(summary: RunSummary) -> Table:
    table = Table(title="Layer analysis")
    table.add_column("URL")
    table.add_column("Error layers", justify="right")
    table.add_column("Latency (ms)", justify="right")
    table.add_column("Bandwidth (KB/s)", justify="right")
    table.add_column("Output")
    for outcome in summary.outcomes:
        latency = "-" if outcome.latency_ms == LATENCY_UNMEASURED else f"{outcome.latency_ms:.2f}"
        bandwidth = "-" if outcome.bandwidth_kbps is None else f"{outcome.bandwidth_kbps:.2f}"
        table.add_row(
            _display(outcome.url),
            str(len(outcome.error_layers)),
            latency,
            bandwidth,
            str(outcome.output_dir or "-"),
        )
    return table


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s [%(levelname)-7s] %(name)s: %(message)s",
        datefmt="%H:%M:%S",
    )
    console = Console(highlight=False)

    try:
        targets = collect_targets(args.urls, args.targets_file)
    except FileNotFoundError as e:
        parser.error(str(e))
    if not targets:
        parser.error("at least one target URL is required (positional or --targets-file)")

    try:
        config = ProbeConfig.from_file(args.config).with_overrides(
            output_root=args.output_dir,
            screenshot=True if args.screenshot else None,
            validate_json=True if args.validate_json else None,
            notify=False if args.no_notify else None,
        )
    except ConfigurationError as e:
        console.print(f"[bold red]Configuration error: {e}[/bold red]")
        return EXIT_USAGE

    console.print(f"[bold]layerscan {__version__}[/bold]: {len(targets)} target(s) -> {config.output_root}")
    capabilities = build_default_capabilities(config, console)
    controller = RunController(
        PipelineDriver(capabilities, config),
        on_target_done=lambda outcome: _print_outcome(console, outcome),
    )
    try:
        summary = controller.run(targets)
    finally:
        close = getattr(capabilities.http, "close", None)
        if close is not None:
            close()

    console.print(_summary_table(summary))
    console.print(f"[bold]{summary.summary_line()}[/bold]")
    return EXIT_TARGET_FAULT if summary.faulted else EXIT_OK


if __name__ == "__main__":
    sys.exit(main())
