"""``gitpin sync [PROJECT_DIR]`` - Realize all packages and check constraints.

Reads ``gitpin.yaml``, brings every package directory to its declared
commit and checkout mode, and verifies that each declared minimum commit
is an ancestor of the commit chosen for its package.

Exit Codes:
    0 - All packages processed and all constraints satisfied.
    1 - A fatal error: git failure, configuration error, dirty checkout,
        or constraint violation.
"""

from __future__ import annotations

import sys
from pathlib import Path

import click

from gitpin.cli.output import (
    error_to_json,
    outcome_to_dict,
    print_error,
    print_json,
    print_sync_results,
)
from gitpin.exceptions import GitPinError
from gitpin.project import sync_project


@click.command("sync")
@click.argument(
    "project_dir",
    type=click.Path(exists=True, file_okay=False),
    default=".",
)
@click.option(
    "--auto-update/--no-auto-update",
    default=None,
    help="Update stale checkouts (default: on, or $GITPIN_AUTO_UPDATE).",
)
@click.option(
    "--allow-mode-switch",
    is_flag=True,
    default=False,
    help="Allow converting a package between checkout modes.",
)
@click.option(
    "--format", "output_format",
    type=click.Choice(["text", "json"]),
    default="text",
    help="Output format (default: text).",
)
def sync_command(
    project_dir: str,
    auto_update: bool | None,
    allow_mode_switch: bool,
    output_format: str,
) -> None:
    """Realize the packages declared in PROJECT_DIR/gitpin.yaml.

    Packages are processed in declaration order; requirements are checked
    after all packages are declared.

    Exit code 0 on success, 1 on any fatal error.
    """
    try:
        report = sync_project(
            Path(project_dir),
            auto_update=auto_update,
            allow_mode_switch=allow_mode_switch,
        )
    except GitPinError as exc:
        if output_format == "json":
            click.echo(error_to_json(exc))
        else:
            print_error(str(exc))
        sys.exit(1)

    if output_format == "json":
        print_json({
            "packages": [outcome_to_dict(o) for o in report.outcomes],
            "constraints_checked": len(report.checked),
        })
    else:
        print_sync_results(report.outcomes, report.checked)
    sys.exit(0)
