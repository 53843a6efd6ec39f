"""Project-level driver: realize a manifest's packages and finalize.

``sync_project`` is what ``gitpin sync`` runs:

1. Load ``gitpin.yaml`` and resolve settings (environment, manifest, CLI).
2. Declare the root manifest's own requirements.
3. Declare each package in manifest order. A wired package's own
   ``gitpin.yaml`` contributes its ``requires`` entries, with the manifest's
   path relative to the project root as the origin.
4. Finalize: check every requirement against the declared commits.

``project_status`` answers the first half of the question without doing
anything: it only reads metadata records.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Mapping

from gitpin.config import Settings
from gitpin.core.constraints.models import Requirement
from gitpin.core.context import RunContext
from gitpin.core.git.runner import GitRunner
from gitpin.core.git.store import FactStore
from gitpin.core.package.models import CheckoutMode, PackageDeclaration
from gitpin.core.package.realizer import RealizationOutcome
from gitpin.core.package.state import Decision
from gitpin.exceptions import ConfigurationError
from gitpin.manifest import MANIFEST_FILENAME, Manifest, load_manifest, load_requirements

logger = logging.getLogger(__name__)


@dataclass
class SyncReport:
    """Result of a successful ``sync_project``.

    Attributes:
        outcomes: One realization outcome per package, in manifest order.
        requirements: Every requirement declared during the run.
        checked: The requirements verified by the Finalizer.
    """

    outcomes: list[RealizationOutcome] = field(default_factory=list)
    requirements: list[Requirement] = field(default_factory=list)
    checked: list[Requirement] = field(default_factory=list)


def find_manifest(project_dir: Path) -> Path:
    path = Path(project_dir) / MANIFEST_FILENAME
    if not path.is_file():
        raise ConfigurationError(f"no {MANIFEST_FILENAME} found in {project_dir}")
    return path


def load_settings(
    project_dir: Path,
    manifest: Manifest,
    environ: Mapping[str, str] | None = None,
    auto_update: bool | None = None,
    allow_mode_switch: bool = False,
) -> Settings:
    """Resolve settings: environment first, then manifest, then CLI flags."""
    settings = Settings.from_env(project_dir, environ)
    if manifest.extern_dir:
        settings.extern_dir = Path(project_dir) / manifest.extern_dir
    if manifest.build_descriptor:
        settings.build_descriptor = manifest.build_descriptor
    if auto_update is not None:
        settings.auto_update = auto_update
    settings.allow_mode_switch = allow_mode_switch
    return settings


def _relative_origin(path: Path, project_dir: Path) -> str:
    try:
        return path.resolve().relative_to(project_dir.resolve()).as_posix()
    except ValueError:
        return str(path)


def sync_project(
    project_dir: Path,
    environ: Mapping[str, str] | None = None,
    auto_update: bool | None = None,
    allow_mode_switch: bool = False,
    store: FactStore | None = None,
    runner: GitRunner | None = None,
) -> SyncReport:
    """Realize every package of a project and validate all requirements.

    Args:
        project_dir: Root project directory containing ``gitpin.yaml``.
        environ: Environment to read settings from (default ``os.environ``).
        auto_update: Override of the global auto-update switch.
        allow_mode_switch: Allow converting checkouts between modes.
        store: Ancestry fact store override.
        runner: Git runner override.

    Returns:
        A ``SyncReport``.

    Raises:
        GitPinError: Any fatal condition; the run stops at the first one.
    """
    project_dir = Path(project_dir)
    manifest_path = find_manifest(project_dir)
    manifest = load_manifest(manifest_path)
    settings = load_settings(project_dir, manifest, environ, auto_update, allow_mode_switch)
    ctx = RunContext.from_settings(settings, store=store, runner=runner)

    root_origin = _relative_origin(manifest_path, project_dir)
    for req in manifest.requires:
        ctx.declare_requirement(root_origin, req.name, req.url, req.min_commit)

    for entry in manifest.packages:
        outcome = ctx.declare_package(
            entry.name,
            entry.url,
            entry.commit,
            checkout_mode=entry.checkout,
            update_ref=entry.update_ref,
            wire_into_build=entry.wire,
            auto_update=entry.auto_update,
        )
        if entry.wire:
            nested = outcome.directory / MANIFEST_FILENAME
            if nested.is_file():
                origin = _relative_origin(nested, project_dir)
                for req in load_requirements(nested):
                    ctx.declare_requirement(origin, req.name, req.url, req.min_commit)

    checked = ctx.finalize()
    return SyncReport(outcomes=list(ctx.outcomes), requirements=list(ctx.requirements), checked=checked)


def project_status(
    project_dir: Path,
    environ: Mapping[str, str] | None = None,
    auto_update: bool | None = None,
    allow_mode_switch: bool = False,
) -> list[tuple[PackageDeclaration, Decision]]:
    """Report what ``sync_project`` would do for each package.

    Reads metadata records only; runs no git command and writes nothing.
    """
    project_dir = Path(project_dir)
    manifest = load_manifest(find_manifest(project_dir))
    settings = load_settings(project_dir, manifest, environ, auto_update, allow_mode_switch)
    ctx = RunContext.from_settings(settings)

    report = []
    for entry in manifest.packages:
        decl = PackageDeclaration(
            name=entry.name,
            repository_url=entry.url,
            commit=entry.commit,
            checkout_mode=CheckoutMode.parse(entry.checkout),
            update_ref=entry.update_ref,
            wire_into_build=entry.wire,
            auto_update=entry.auto_update,
        )
        report.append((decl, ctx.realizer.inspect(decl, ctx.flags_for(decl))))
    return report
