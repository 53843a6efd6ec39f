"""gitpin CLI - Pin and realize git source dependencies.

Entry point for the ``gitpin`` command-line tool. Registers all
subcommands under a single Click group.

Commands:
    sync      - Realize all packages of a project and check constraints.
    status    - Show each package's state without changing anything.
    cache     - Show cache locations (``cache dir``, ``cache path URL``).
    ancestry  - Ask the ancestry oracle about two commits.

Usage::

    gitpin sync                       # project in the current directory
    gitpin sync ./my-project --no-auto-update
    gitpin sync --allow-mode-switch
    gitpin status --format json
    gitpin cache path https://github.com/project-arcana/clean-core.git
    gitpin ancestry https://github.com/org/repo.git <sha-a> <sha-b>
"""

from __future__ import annotations

import click

from gitpin import __version__
from gitpin.cli.cache_cmd import ancestry_command, cache_group
from gitpin.cli.output import setup_logging
from gitpin.cli.status_cmd import status_command
from gitpin.cli.sync_cmd import sync_command


@click.group()
@click.version_option(version=__version__)
@click.option("--verbose", "-v", is_flag=True, default=False, help="Log every git invocation.")
def cli(verbose: bool) -> None:
    """gitpin: pin and realize git source dependencies.

    Packages are declared in gitpin.yaml at the project root, realized into
    the extern directory through a shared local cache of each repository,
    and checked against the minimum commits their dependents require.
    """
    setup_logging(verbose)


# Register all subcommands
cli.add_command(sync_command)
cli.add_command(status_command)
cli.add_command(cache_group)
cli.add_command(ancestry_command)
