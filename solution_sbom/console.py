"""Rich console utilities for solution-sbom.

Human-facing summaries of a run: what was resolved, what was enriched, and
everything that makes the SBOM less than complete. Summaries go to stderr
so the document itself can be piped.
"""

import os
from typing import Any, Dict, List, Optional, Tuple

from rich.console import Console
from rich.table import Table
from rich.text import Text
from rich.theme import Theme

# Detect CI environments
IS_GITHUB_ACTIONS = os.getenv("GITHUB_ACTIONS") == "true"

custom_theme = Theme(
    {
        "info": "cyan",
        "warning": "yellow",
        "error": "bold red",
        "success": "bold green",
        "step": "bold blue",
        "highlight": "magenta",
    }
)

# Shared console instance
console = Console(
    theme=custom_theme,
    stderr=True,
    force_terminal=IS_GITHUB_ACTIONS or None,
    color_system="auto",
)


def print_banner(version: str = "unknown") -> None:
    """Print the tool banner."""
    banner = Text()
    banner.append("solution-sbom", style="bold blue")
    version_display = f"v{version}" if version and version[0:1].isdigit() else version
    banner.append(f" {version_display}", style="magenta")
    banner.append(" - dependency graphs for whole solutions", style="cyan")
    console.print(banner)


def gha_warning(message: str, title: Optional[str] = None) -> None:
    """Emit a warning that appears in the GitHub Actions job summary."""
    if IS_GITHUB_ACTIONS:
        if title:
            print(f"::warning title={title}::{message}")
        else:
            print(f"::warning::{message}")
    else:
        if title:
            console.print(f"[warning]Warning ({title}):[/warning] {message}")
        else:
            console.print(f"[warning]Warning:[/warning] {message}")


def gha_error(message: str, title: Optional[str] = None) -> None:
    """Emit an error that appears in the GitHub Actions job summary."""
    if IS_GITHUB_ACTIONS:
        if title:
            print(f"::error title={title}::{message}")
        else:
            print(f"::error::{message}")
    else:
        if title:
            console.print(f"[error]Error ({title}):[/error] {message}")
        else:
            console.print(f"[error]Error:[/error] {message}")


def print_summary_table(
    title: str,
    data: List[Tuple[str, Any]],
    show_if_empty: bool = False,
) -> None:
    """
    Print a two-column summary table.

    Args:
        title: Table title
        data: List of (label, value) tuples
        show_if_empty: Whether to show the table if all values are 0/empty
    """
    if not show_if_empty:
        data = [(label, value) for label, value in data if value]

    if not data:
        return

    table = Table(title=title, show_header=True, header_style="bold")
    table.add_column("Metric", style="cyan")
    table.add_column("Value", justify="right")

    for label, value in data:
        table.add_row(label, str(value))

    console.print(table)


def print_aggregation_summary(
    projects: int,
    failed: int,
    components: int,
    edges: int,
    conflicts: int,
    unresolved: int,
) -> None:
    """Print the solution graph summary."""
    data = [
        ("Projects resolved", projects),
        ("Projects failed", failed),
        ("Components", components),
        ("Dependency edges", edges),
        ("Conflicted components", conflicts),
        ("Unresolved dependencies", unresolved),
    ]
    print_summary_table("Solution Graph", data)


def print_enrichment_summary(stats: Dict[str, Any]) -> None:
    """
    Print enrichment summary as a Rich table.

    Args:
        stats: Statistics from EnrichmentReport.get_stats()
    """
    data = [
        ("Components enriched", f"{stats.get('enriched', 0)}/{stats.get('total', 0)}"),
        ("Licenses added", stats.get("licenses", 0)),
        ("Vendors added", stats.get("vendors", 0)),
        ("Already licensed", stats.get("skipped", 0)),
        ("Timed out", stats.get("timed_out", 0)),
    ]

    print_summary_table("Enrichment Summary", data)

    sources = stats.get("sources", {})
    if sources:
        source_data = [(source, count) for source, count in sorted(sources.items())]
        print_summary_table("Enrichment by Source", source_data)


def print_degraded_items(degraded: Any, limit: int = 20) -> None:
    """
    Print everything that makes the SBOM incomplete.

    Args:
        degraded: DegradedItems from a pipeline run
        limit: Maximum rows per section before truncating
    """
    if degraded.is_empty:
        return

    if degraded.failed_projects:
        table = Table(title="Failed Projects", show_header=True, header_style="bold")
        table.add_column("Project", style="cyan")
        table.add_column("Kind", style="warning")
        table.add_column("Message")
        for failure in degraded.failed_projects[:limit]:
            table.add_row(failure.project_path, failure.kind.value, failure.message)
        console.print(table)

    if degraded.conflicts:
        table = Table(title="Version Conflicts", show_header=True, header_style="bold")
        table.add_column("Component", style="cyan")
        table.add_column("Versions", style="highlight")
        for (ecosystem, name), versions in sorted(degraded.conflicts.items(), key=lambda kv: kv[0][1].lower())[:limit]:
            table.add_row(f"{ecosystem}/{name}", ", ".join(versions))
        console.print(table)

    for title, identities in (
        ("Unresolved dependencies", degraded.unresolved),
        ("Components without metadata", degraded.unenriched),
    ):
        if not identities:
            continue
        console.print(f"[warning]{title} ({len(identities)}):[/warning]")
        for identity in identities[:limit]:
            console.print(f"  {identity}")
        if len(identities) > limit:
            console.print(f"  ... and {len(identities) - limit} more")


def print_final_success(output_path: Optional[str] = None) -> None:
    """Print final success message."""
    console.print()
    if IS_GITHUB_ACTIONS:
        console.print("[bold green]✓ SUCCESS![/bold green] SBOM generated.")
    else:
        console.rule("[bold green]SUCCESS[/bold green]", style="green")
    if output_path:
        console.print(f"[success]SBOM written to {output_path}[/success]", justify="center")
    console.print()


def print_final_failure(message: str) -> None:
    """Print final failure message."""
    console.print()
    gha_error(message, title="SBOM Generation Failed")
    if not IS_GITHUB_ACTIONS:
        console.rule("[bold red]FAILED[/bold red]", style="red")
        console.print(f"[bold red]{message}[/bold red]", justify="center")
    console.print()
