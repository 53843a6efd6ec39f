"""Package Realizer: bring a package directory to its declared state.

For each declaration the realizer reads the metadata record, asks
``decide`` what to do, and, when the answer is ``REALIZE``, materializes
the package according to its checkout mode:

- **WORKTREE / VENDORED** (snapshot): a scratch repository next to the
  target fetches only the commit at depth 1 from the declared URL, checks
  it out, and drops its ``.git``. The scratch directory then replaces the
  package directory. WORKTREE additionally gets ``*`` as the first line of
  its ``.gitignore`` so the snapshot never becomes tracked by the outer
  project.
- **FULL** (nested repository): objects come from the repository cache.
  Upstream branches and tags are fetched from the origin remote. An
  existing checkout with uncommitted changes is never overwritten.

After a successful realization the metadata record is rewritten. A
package that is already current costs one metadata read and nothing else.
"""

from __future__ import annotations

import logging
import os
import shutil
import stat
import sys
from dataclasses import dataclass
from pathlib import Path

from gitpin.core.git.cache import RepositoryCache
from gitpin.core.package.metadata import METADATA_FILENAME, read_metadata, write_metadata
from gitpin.core.package.models import CheckoutMode, PackageDeclaration, PackageMetadata
from gitpin.core.package.state import Decision, RealizeAction, UpdateFlags, decide
from gitpin.exceptions import ConfigurationError, DirtyCheckoutError, GitPinError

logger = logging.getLogger(__name__)

DEFAULT_BUILD_DESCRIPTOR = "CMakeLists.txt"

# Marker written into WORKTREE snapshots: ignore everything in the directory.
_IGNORE_ALL = "*\n"


# ---------------------------------------------------------------------------
# RealizationOutcome
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class RealizationOutcome:
    """What happened to one package.

    Attributes:
        declaration: The package declaration.
        directory: The package directory.
        decision: The state-machine decision taken.
        realized: True if the directory was (re)materialized in this run.
    """

    declaration: PackageDeclaration
    directory: Path
    decision: Decision
    realized: bool = False


# ---------------------------------------------------------------------------
# PackageRealizer
# ---------------------------------------------------------------------------


class PackageRealizer:
    """Realizes package declarations below an extern directory.

    Args:
        extern_dir: Directory holding one subdirectory per package.
        cache: Repository cache used for FULL checkouts and dirty checks.
        build_descriptor: File a wired package must contain.
    """

    def __init__(
        self,
        extern_dir: Path,
        cache: RepositoryCache,
        build_descriptor: str = DEFAULT_BUILD_DESCRIPTOR,
    ) -> None:
        self.extern_dir = Path(extern_dir)
        self.cache = cache
        self.build_descriptor = build_descriptor

    def package_dir(self, decl: PackageDeclaration) -> Path:
        return self.extern_dir / decl.name

    def inspect(self, decl: PackageDeclaration, flags: UpdateFlags) -> Decision:
        """Decide what ``realize`` would do, touching nothing but the record."""
        pkg_dir = self.package_dir(decl)
        dir_exists = pkg_dir.exists()
        recorded = read_metadata(pkg_dir) if dir_exists else None
        return decide(decl, recorded, flags, dir_exists)

    def realize(self, decl: PackageDeclaration, flags: UpdateFlags) -> RealizationOutcome:
        """Bring the package directory of ``decl`` to its declared state.

        Args:
            decl: The package declaration.
            flags: Auto-update and mode-switch switches for this package.

        Returns:
            The ``RealizationOutcome``.

        Raises:
            DirtyCheckoutError: If a git checkout that would be replaced has
                uncommitted changes.
            GitCommandError: If any git invocation fails.
            ConfigurationError: If the package is wired into the build but
                has no build descriptor.
        """
        pkg_dir = self.package_dir(decl)
        decision = self.inspect(decl, flags)

        realized = False
        if decision.action is RealizeAction.REALIZE:
            if decision.reason:
                logger.info("%s Updating.", decision.reason)
            self._realize(decl, pkg_dir)
            write_metadata(pkg_dir, PackageMetadata.from_declaration(decl))
            realized = True
            logger.info(
                "Realized %s at %s (%s)", decl.name, decl.commit, decl.checkout_mode.value
            )
        elif decision.action.is_refusal:
            logger.warning(decision.reason)
        else:
            logger.debug("Package %s is current", decl.name)

        if decl.wire_into_build and not (pkg_dir / self.build_descriptor).is_file():
            raise ConfigurationError(
                f"package '{decl.name}' in '{pkg_dir}' has no {self.build_descriptor}; "
                "cannot wire it into the build."
            )

        return RealizationOutcome(
            declaration=decl, directory=pkg_dir, decision=decision, realized=realized
        )

    # -- Realization --------------------------------------------------------

    def _realize(self, decl: PackageDeclaration, pkg_dir: Path) -> None:
        self.extern_dir.mkdir(parents=True, exist_ok=True)
        if decl.checkout_mode is CheckoutMode.FULL:
            self._realize_full(decl, pkg_dir)
        else:
            self._realize_snapshot(decl, pkg_dir)

    def _guard_local_changes(self, decl: PackageDeclaration, pkg_dir: Path) -> None:
        if (pkg_dir / ".git").exists() and self.cache.is_dirty(pkg_dir):
            raise DirtyCheckoutError(
                f"package '{decl.name}' at '{pkg_dir}' has uncommitted changes; "
                f"refusing to replace it with commit '{decl.commit}'. Commit or "
                "stash your changes, or disable auto-update for this package."
            )

    def _realize_full(self, decl: PackageDeclaration, pkg_dir: Path) -> None:
        with self.cache.locked(decl.repository_url) as cache_path:
            self.cache.ensure_initialized(decl.repository_url, cache_path)
            self.cache.ensure_has_commit(cache_path, decl.commit)

            if pkg_dir.exists():
                if (pkg_dir / ".git").exists():
                    self._guard_local_changes(decl, pkg_dir)
                else:
                    # a snapshot being converted; it carries no history
                    remove_tree(pkg_dir)

            fresh = not pkg_dir.exists()
            try:
                self.cache.checkout_full_repo_at(
                    cache_path,
                    decl.repository_url,
                    decl.commit,
                    pkg_dir,
                    exclude=(METADATA_FILENAME,),
                )
            except GitPinError:
                # a half-built checkout without metadata would read as foreign
                if fresh and pkg_dir.exists():
                    remove_tree(pkg_dir)
                raise

    def _realize_snapshot(self, decl: PackageDeclaration, pkg_dir: Path) -> None:
        if pkg_dir.exists():
            self._guard_local_changes(decl, pkg_dir)

        runner = self.cache.runner
        scratch = pkg_dir.with_name(f".{decl.name}.gitpin-tmp")
        if scratch.exists():
            remove_tree(scratch)
        scratch.mkdir(parents=True)
        try:
            runner.run("init", "--quiet", cwd=scratch, operation="initialize snapshot")
            runner.run(
                "fetch", "--quiet", "--depth", "1", decl.repository_url, decl.commit,
                cwd=scratch, operation=f"fetch {decl.commit} from {decl.repository_url}",
            )
            runner.run(
                "-c", "advice.detachedHead=false", "checkout", "--quiet", "--detach", decl.commit,
                cwd=scratch, operation=f"check out {decl.commit}",
            )
            remove_tree(scratch / ".git")
            if decl.checkout_mode is CheckoutMode.WORKTREE:
                ignore = scratch / ".gitignore"
                upstream = ignore.read_text(encoding="utf-8") if ignore.exists() else ""
                ignore.write_text(_IGNORE_ALL + upstream, encoding="utf-8")

            if pkg_dir.exists():
                remove_tree(pkg_dir)
            scratch.rename(pkg_dir)
        finally:
            if scratch.exists():
                remove_tree(scratch)


def _make_writable_and_retry(func, path, _exc) -> None:
    # git marks pack files read-only, which blocks deletion on Windows
    os.chmod(path, stat.S_IWRITE)
    func(path)


def remove_tree(path: Path) -> None:
    """Delete a directory tree, including read-only git object files."""
    if sys.version_info >= (3, 12):
        shutil.rmtree(path, onexc=_make_writable_and_retry)
    else:
        shutil.rmtree(path, onerror=_make_writable_and_retry)
