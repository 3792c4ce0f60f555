"""CLI entry point for the visual regression toolkit."""

from __future__ import annotations

import logging
import sys
from pathlib import Path

import click
from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

from witness.models.config import CONFIG_FILENAME, WitnessConfig
from witness.models.comparison import VerificationSummary
from witness.orchestrator import Orchestrator

console = Console()

SUMMARY_ROWS = [
    ("passed", "Passed", "green"),
    ("failed", "Diff Detected", "red"),
    ("new", "New", "blue"),
    ("missing", "Missing", "yellow"),
    ("error", "Errors", "red"),
]


def setup_logging(verbose: bool = False) -> None:
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=console, rich_tracebacks=True)],
    )


def _load_orchestrator(config: str) -> Orchestrator:
    try:
        cfg = WitnessConfig.load(config)
    except ValueError as e:
        console.print(f"[red]{e}[/red]")
        sys.exit(1)
    return Orchestrator(cfg)


def _print_summary(summary: VerificationSummary) -> None:
    table = Table(title="Verification Summary")
    table.add_column("Status", style="bold")
    table.add_column("Count")
    table.add_row("Total", str(summary.total))
    counts = summary.category_counts()
    for status, label, color in SUMMARY_ROWS:
        if status in counts:
            table.add_row(label, f"[{color}]{counts[status]}[/{color}]")
    console.print(table)


@click.group()
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging")
def cli(verbose: bool) -> None:
    """Visual regression testing: verify screenshots and approve changes."""
    setup_logging(verbose)


@cli.command()
@click.option("--config", "-c", default=CONFIG_FILENAME, help="Config file path")
def init(config: str) -> None:
    """Create a default configuration file and artifact directories."""
    config_path = Path(config)
    if config_path.exists():
        if not click.confirm(f"{config_path} already exists. Overwrite?"):
            return

    cfg = WitnessConfig()
    cfg.save(config_path)
    paths = cfg.resolve(Path.cwd())
    for directory in (paths.baseline, paths.current, paths.diff, paths.reports):
        directory.mkdir(parents=True, exist_ok=True)
    console.print(f"[green]Created {config_path}[/green]")
    console.print("\nCapture screenshots in your tests, then run:")
    console.print("  [blue]witness verify[/blue]")


@cli.command()
@click.option("--config", "-c", default=CONFIG_FILENAME, help="Config file path")
def verify(config: str) -> None:
    """Compare current screenshots against baselines and write the dashboard."""
    orchestrator = _load_orchestrator(config)
    summary, reports = orchestrator.verify()

    _print_summary(summary)
    for fmt, path in reports.items():
        console.print(f"  {fmt.upper()} report: [blue]{path}[/blue]")

    if summary.missing:
        console.print(
            f"\n[yellow]{summary.missing} screenshot(s) are missing.[/yellow] "
            "These tests may have been intentionally deleted."
        )
    if summary.failed:
        console.print(
            f"\n[red]{summary.failed} screenshot(s) have visual differences.[/red] "
            "Review the dashboard and approve intentional changes."
        )
    if summary.new:
        console.print(f"\n[blue]{summary.new} new screenshot(s)[/blue] are waiting for approval.")
    console.print("\nRun [blue]witness serve[/blue] to review and approve from the dashboard.")


@cli.command()
@click.argument("name", required=False)
@click.option("--all", "approve_all", is_flag=True, help="Approve all failed and new snapshots")
@click.option("--list", "list_only", is_flag=True, help="List snapshots that have a current screenshot")
@click.option("--yes", "-y", is_flag=True, help="Skip the confirmation prompt for --all")
@click.option("--config", "-c", default=CONFIG_FILENAME, help="Config file path")
def approve(name: str | None, approve_all: bool, list_only: bool, yes: bool, config: str) -> None:
    """Promote current screenshots to baselines."""
    orchestrator = _load_orchestrator(config)

    if list_only:
        names = orchestrator.approval.list_approvable()
        if not names:
            console.print("[yellow]No current screenshots found[/yellow]")
            return
        for i, n in enumerate(names, 1):
            console.print(f"  {i}. {n}")
        return

    if approve_all:
        summary = orchestrator.compare()
        pending = [r for r in summary.results if r.approvable]
        if not pending:
            console.print("[green]No snapshots need approval.[/green]")
            return
        for i, r in enumerate(pending, 1):
            console.print(f"  {i}. {r.name} ({r.status})")
        if not yes and not click.confirm(f"Approve {len(pending)} snapshot(s)?"):
            console.print("[yellow]Approval cancelled.[/yellow]")
            return

        results = orchestrator.approve_all([r.name for r in pending])
        for result in results:
            if result.success:
                console.print(f"[green]✓[/green] {result.snapshot_name}")
            else:
                console.print(f"[red]✗[/red] {result.snapshot_name}: {result.message}")
        failures = sum(1 for r in results if not r.success)
        console.print(f"\nApproved: {len(results) - failures}")
        if failures:
            console.print(f"[red]Failed: {failures}[/red]")
        return

    if not name:
        console.print("[red]Snapshot name is required.[/red]")
        console.print("Usage: witness approve NAME | witness approve --all")
        sys.exit(1)

    result = orchestrator.approve(name)
    if not result.success:
        console.print(f"[red]{result.message}[/red]")
        if result.error == "FILE_NOT_FOUND":
            console.print("Check that the snapshot name is correct and the tests have been run.")
        sys.exit(1)
    console.print(f"[green]{result.message}[/green]")
    console.print("Run [blue]witness verify[/blue] to see updated results.")


@cli.command()
@click.option("--port", "-p", default=None, type=int, help="Port to listen on (default: from config)")
@click.option("--config", "-c", default=CONFIG_FILENAME, help="Config file path")
def serve(port: int | None, config: str) -> None:
    """Serve the dashboard with approvals enabled."""
    orchestrator = _load_orchestrator(config)
    if not orchestrator.report_exists():
        console.print("[red]No report found.[/red] Run [blue]witness verify[/blue] first.")
        sys.exit(1)
    console.print("Press Ctrl+C to stop the server.")
    orchestrator.serve(port=port)


if __name__ == "__main__":
    cli()
