"""Rich output formatting helpers for the semver-resolver CLI."""

from __future__ import annotations

from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

console = Console()


def print_resolution_summary(
    success: bool,
    installed: dict[str, str],
    conflicts: list[str],
    requirements: dict[str, str] | None = None,
) -> None:
    """Print dependency resolution results.

    Args:
        success: Whether resolution succeeded.
        installed: Library-name to version mapping (if success).
        conflicts: Failure descriptions (if failure).
        requirements: Root requirements; when given, directly required
            libraries are shown with the range that pulled them in.
    """
    requirements = requirements or {}
    if success:
        console.print(
            Panel("[bold green]Resolution successful[/bold green]",
                  title="Dependency Resolution")
        )
        if installed:
            table = Table(show_header=True)
            table.add_column("Library", style="bold")
            table.add_column("Resolved Version")
            table.add_column("Required As", style="dim")
            for name in sorted(installed):
                table.add_row(name, installed[name], requirements.get(name, "(transitive)"))
            console.print(table)
        else:
            console.print("[dim]No libraries to resolve.[/dim]")
    else:
        console.print(
            Panel("[bold red]Resolution failed[/bold red]",
                  title="Dependency Resolution")
        )
        for conflict in conflicts:
            console.print(f"  [red]- {escape(conflict)}[/red]", soft_wrap=True)

