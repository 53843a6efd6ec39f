"""``gitpin status [PROJECT_DIR]`` - Show what ``sync`` would do.

Reads only the metadata records next to each package checkout; runs no
git command and changes nothing on disk.

Exit Codes:
    0 - Every package is current.
    1 - A fatal error (e.g. an invalid manifest).
    3 - At least one package is absent, stale, or foreign.
"""

from __future__ import annotations

import sys
from pathlib import Path

import click

from gitpin.cli.output import error_to_json, print_error, print_json, print_status
from gitpin.core.package.state import PackageState
from gitpin.exceptions import GitPinError
from gitpin.project import project_status


@click.command("status")
@click.argument(
    "project_dir",
    type=click.Path(exists=True, file_okay=False),
    default=".",
)
@click.option(
    "--format", "output_format",
    type=click.Choice(["text", "json"]),
    default="text",
    help="Output format (default: text).",
)
def status_command(project_dir: str, output_format: str) -> None:
    """Show the state of each package declared in PROJECT_DIR/gitpin.yaml.

    Exit code 0 if all packages are current, 3 otherwise.
    """
    try:
        report = project_status(Path(project_dir))
    except GitPinError as exc:
        if output_format == "json":
            click.echo(error_to_json(exc))
        else:
            print_error(str(exc))
        sys.exit(1)

    if output_format == "json":
        print_json([
            {
                "name": decl.name,
                "commit": decl.commit,
                "checkout_mode": decl.checkout_mode.value,
                "state": decision.state.value,
                "action": decision.action.value,
                "reason": decision.reason,
            }
            for decl, decision in report
        ])
    else:
        print_status(report)

    all_current = all(d.state is PackageState.CURRENT for _, d in report)
    sys.exit(0 if all_current else 3)
