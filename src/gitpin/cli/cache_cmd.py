"""``gitpin cache`` and ``gitpin ancestry`` - Inspect the shared cache.

Subcommands:
    cache dir          - Print the base cache directory.
    cache path URL     - Print the mirror path for a repository URL.
    ancestry URL A B   - Is commit A an ancestor of commit B?

``ancestry`` exit codes:
    0 - A is an ancestor of B.
    1 - A is not an ancestor of B.
    2 - Ancestry could not be determined (git failure).
"""

from __future__ import annotations

import os
import sys

import click

from gitpin.cli.output import print_error
from gitpin.config import ANCESTRY_FILENAME, ENV_GIT, resolve_cache_dir
from gitpin.core.git import AncestryOracle, GitRunner, JsonFactStore, RepositoryCache
from gitpin.exceptions import GitPinError


def _cache() -> RepositoryCache:
    return RepositoryCache(resolve_cache_dir(), GitRunner(os.environ.get(ENV_GIT) or "git"))


@click.group("cache")
def cache_group() -> None:
    """Inspect the shared repository cache."""


@cache_group.command("dir")
def cache_dir_command() -> None:
    """Print the base cache directory."""
    click.echo(str(resolve_cache_dir()))


@cache_group.command("path")
@click.argument("url")
def cache_path_command(url: str) -> None:
    """Print the mirror directory used for repository URL."""
    click.echo(str(_cache().path_for(url)))


@click.command("ancestry")
@click.argument("url")
@click.argument("commit_a")
@click.argument("commit_b")
def ancestry_command(url: str, commit_a: str, commit_b: str) -> None:
    """Check whether COMMIT_A is an ancestor of COMMIT_B in repository URL.

    Answers are cached across invocations.
    """
    cache = _cache()
    oracle = AncestryOracle(cache, JsonFactStore(cache.base_dir / ANCESTRY_FILENAME))
    try:
        answer = oracle.is_ancestor(url, commit_a, commit_b)
    except GitPinError as exc:
        print_error(str(exc))
        sys.exit(2)

    if answer:
        click.echo(f"{commit_a} is an ancestor of {commit_b}")
        sys.exit(0)
    click.echo(f"{commit_a} is not an ancestor of {commit_b}")
    sys.exit(1)
