"""Rich output formatting helpers for the gitpin CLI.

Provides consistent, state-colored terminal output for sync results,
package status, and fatal errors.

State Color Mapping:
    CURRENT = green, ABSENT = cyan, STALE = yellow, FOREIGN = bold red
"""

from __future__ import annotations

import json
import logging
from typing import Any

from rich.console import Console
from rich.logging import RichHandler
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from gitpin.core.constraints.models import Requirement
from gitpin.core.package.models import PackageDeclaration
from gitpin.core.package.realizer import RealizationOutcome
from gitpin.core.package.state import Decision, PackageState

_STATE_STYLES: dict[PackageState, str] = {
    PackageState.CURRENT: "green",
    PackageState.ABSENT: "cyan",
    PackageState.STALE: "yellow",
    PackageState.FOREIGN: "bold red",
}

console = Console()
err_console = Console(stderr=True)


def state_style(state: PackageState) -> str:
    """Return the Rich style string for a given package state."""
    return _STATE_STYLES.get(state, "white")


def setup_logging(verbose: bool = False) -> None:
    """Route gitpin's log records to stderr through Rich."""
    handler = RichHandler(console=err_console, show_time=False, show_path=False)
    root = logging.getLogger("gitpin")
    root.handlers[:] = [handler]
    root.setLevel(logging.DEBUG if verbose else logging.INFO)


def _short(commit: str) -> str:
    return commit[:12]


def print_sync_results(outcomes: list[RealizationOutcome], checked: list[Requirement]) -> None:
    """Print a table of realized packages and the constraint summary.

    Args:
        outcomes: Realization outcomes in declaration order.
        checked: Requirements verified by the Finalizer.
    """
    if not outcomes:
        console.print("[dim]No packages declared.[/dim]")
    else:
        table = Table(title="gitpin sync", show_header=True, header_style="bold")
        table.add_column("Package", style="bold")
        table.add_column("Commit", style="dim")
        table.add_column("Mode")
        table.add_column("State", justify="center")
        table.add_column("Action")

        for outcome in outcomes:
            decl = outcome.declaration
            state = outcome.decision.state
            action = "realized" if outcome.realized else outcome.decision.action.value
            table.add_row(
                decl.name,
                _short(decl.commit),
                decl.checkout_mode.value,
                Text(state.value.upper(), style=state_style(state)),
                action,
            )
        console.print(table)

    realized = sum(1 for o in outcomes if o.realized)
    skipped = sum(1 for o in outcomes if o.decision.action.is_refusal)
    parts = [f"[bold]{len(outcomes)}[/bold] packages"]
    if realized:
        parts.append(f"[cyan]{realized} realized[/cyan]")
    if skipped:
        parts.append(f"[yellow]{skipped} left untouched[/yellow]")
    parts.append(f"[green]{len(checked)} constraints satisfied[/green]")
    console.print(" | ".join(parts))


def print_status(report: list[tuple[PackageDeclaration, Decision]]) -> None:
    """Print the state of each declared package.

    Args:
        report: (declaration, decision) pairs from ``project_status``.
    """
    if not report:
        console.print("[dim]No packages declared.[/dim]")
        return

    table = Table(title="gitpin status", show_header=True, header_style="bold")
    table.add_column("Package", style="bold")
    table.add_column("Commit", style="dim")
    table.add_column("Mode")
    table.add_column("State", justify="center")
    table.add_column("Next action")
    for decl, decision in report:
        table.add_row(
            decl.name,
            _short(decl.commit),
            decl.checkout_mode.value,
            Text(decision.state.value.upper(), style=state_style(decision.state)),
            decision.action.value,
        )
    console.print(table)

    for _, decision in report:
        if decision.reason and decision.action.is_refusal:
            console.print(f"  [yellow]- {decision.reason}[/yellow]")


def print_error(message: str) -> None:
    """Print a fatal error panel to stderr."""
    err_console.print(Panel(Text(message), title="gitpin: error", border_style="red"))


def outcome_to_dict(outcome: RealizationOutcome) -> dict[str, Any]:
    decl = outcome.declaration
    return {
        "name": decl.name,
        "repository_url": decl.repository_url,
        "commit": decl.commit,
        "checkout_mode": decl.checkout_mode.value,
        "directory": str(outcome.directory),
        "state": outcome.decision.state.value,
        "action": outcome.decision.action.value,
        "realized": outcome.realized,
    }


def print_json(data: Any) -> None:
    """Print data as formatted JSON to stdout.

    Args:
        data: Any JSON-serializable data structure.
    """
    console.print_json(json.dumps(data, default=str))


def error_to_json(exc: Exception) -> str:
    """Serialize a fatal error for ``--format json`` output."""
    return json.dumps({"error": str(exc), "kind": type(exc).__name__})
