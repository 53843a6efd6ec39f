"""Repository Object Cache: shared local mirrors of remote repositories.

Each distinct repository URL gets one bare, partial mirror under
``<base>/repos/<sha256(url)>``. Package checkouts pull their objects from
the mirror instead of the network, so a commit is transferred at most once
per machine no matter how many projects pin it.

Invariants:
    * A mirror's ``origin`` remote always points at the URL it was created
      for (the directory name is derived from that URL).
    * Mirrors only ever grow. Nothing in gitpin prunes or deletes them.
    * Every mutation of one mirror happens under its advisory lock
      (``<base>/repos/<sha256(url)>.lock``).
"""

from __future__ import annotations

import hashlib
import logging
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator

from gitpin.core.git.locking import file_lock
from gitpin.core.git.runner import GitRunner

logger = logging.getLogger(__name__)

# Name of the remote inside a package checkout that points at its mirror.
CACHE_REMOTE = "cache"

# Upstream refs mirrored into a FULL checkout; tags are forced so a moved
# upstream tag replaces the local one.
REF_SPECS = ("+refs/heads/*:refs/remotes/origin/*", "+refs/tags/*:refs/tags/*")


def url_hash(repo_url: str) -> str:
    """Return the SHA-256 hex digest that names the mirror of ``repo_url``."""
    return hashlib.sha256(repo_url.encode("utf-8")).hexdigest()


class RepositoryCache:
    """Shared, append-only mirrors of remote repositories.

    Args:
        base_dir: Base cache directory (see ``gitpin.config.resolve_cache_dir``).
        runner: The ``GitRunner`` used for all invocations.
    """

    def __init__(self, base_dir: Path, runner: GitRunner | None = None) -> None:
        self.base_dir = Path(base_dir)
        self.runner = runner or GitRunner()

    # -- Paths --------------------------------------------------------------

    @property
    def repos_dir(self) -> Path:
        return self.base_dir / "repos"

    def path_for(self, repo_url: str) -> Path:
        """Return the mirror path for ``repo_url``.

        Pure: the same URL always maps to the same path, and the path does
        not depend on whether the mirror exists yet.
        """
        return self.repos_dir / url_hash(repo_url)

    def lock_path_for(self, repo_url: str) -> Path:
        return self.repos_dir / f"{url_hash(repo_url)}.lock"

    @contextmanager
    def locked(self, repo_url: str) -> Iterator[Path]:
        """Hold the mirror lock for ``repo_url`` and yield the mirror path."""
        with file_lock(self.lock_path_for(repo_url)):
            yield self.path_for(repo_url)

    # -- Mirror maintenance -------------------------------------------------

    def is_initialized(self, path: Path) -> bool:
        return (path / "HEAD").exists()

    def ensure_initialized(self, repo_url: str, path: Path) -> None:
        """Create the bare mirror at ``path`` unless it already exists.

        A new mirror gets ``repo_url`` as its ``origin`` and allows fetching
        any object by id, which is how package checkouts pull single
        commits from it.

        Raises:
            GitCommandError: If initialization fails. Nothing downstream can
                proceed without object storage, so this is always fatal.
        """
        if self.is_initialized(path):
            return

        logger.info("Initializing cache mirror for %s at %s", repo_url, path)
        path.parent.mkdir(parents=True, exist_ok=True)
        self.runner.run("init", "--bare", "--quiet", str(path), operation="initialize cache mirror")
        self.runner.run(
            "remote", "add", "origin", repo_url,
            cwd=path, operation="register cache origin",
        )
        self.runner.run(
            "config", "uploadpack.allowAnySHA1InWant", "true",
            cwd=path, operation="configure cache mirror",
        )

    def missing_objects(self, path: Path, commit: str) -> bool:
        """Return True if ``commit`` or any object it reaches is absent.

        Uses ``git rev-list --objects --missing=print``: missing objects are
        reported on lines starting with ``?``. A failing rev-list means the
        commit itself is unknown to the mirror.
        """
        result = self.runner.run(
            "rev-list", "--objects", "--missing=print", commit, "--",
            cwd=path,
            ok_codes=range(0, 256),
            operation="list cached objects",
        )
        if not result.ok:
            logger.debug("Commit %s not present in %s", commit, path)
            return True
        return any(line.startswith("?") for line in result.stdout.splitlines())

    def ensure_has_commit(self, path: Path, commit: str) -> None:
        """Make sure ``commit`` and its full object closure are in the mirror.

        Safe to call repeatedly: a fully populated mirror only performs the
        presence check, with no network I/O.

        ``--refetch`` skips negotiation: a commit that arrived through a
        tree-less fetch is already present locally, and a plain fetch would
        treat it as complete and transfer nothing.
        """
        if not self.missing_objects(path, commit):
            return
        logger.info("Fetching %s into cache mirror %s", commit, path)
        self.runner.run(
            "fetch", "--quiet", "--no-filter", "--refetch", "origin", commit,
            cwd=path, operation=f"fetch {commit} into cache",
        )

    def fetch_commits_treeless(self, path: Path, *commits: str) -> bool:
        """Fetch only the commit objects (no trees, no blobs) for ``commits``.

        Returns:
            True if the fetch succeeded.
        """
        result = self.runner.run(
            "fetch", "--quiet", "--filter=tree:0", "origin", *commits,
            cwd=path,
            ok_codes=range(0, 256),
            operation="tree-less fetch",
        )
        if not result.ok:
            logger.warning(
                "Tree-less fetch of %s into %s failed: %s",
                ", ".join(commits), path, result.stderr.strip(),
            )
        return result.ok

    # -- Checkouts ----------------------------------------------------------

    def checkout_full_repo_at(
        self,
        cache_path: Path,
        repo_url: str,
        commit: str,
        target_dir: Path,
        exclude: tuple[str, ...] = (),
    ) -> None:
        """Materialize a normal repository at ``target_dir`` from the mirror.

        A fresh target is initialized with ``origin = repo_url`` and a
        second remote ``cache = cache_path``. Then, always, ``commit`` is
        fetched from the ``cache`` remote, all branches and tags are fetched
        from ``origin`` (so the checkout carries the upstream refs, not just
        the pinned history), and ``commit`` is checked out detached. Running
        it again against a target already at ``commit`` leaves the working
        tree unchanged.

        Args:
            cache_path: Path of the mirror holding ``commit``.
            repo_url: The package's upstream URL.
            commit: Commit to check out.
            target_dir: Checkout directory (created if needed).
            exclude: Patterns appended to ``.git/info/exclude`` so files
                gitpin writes inside the checkout never show as changes.
        """
        target_dir.mkdir(parents=True, exist_ok=True)
        if not (target_dir / ".git").exists():
            self.runner.run("init", "--quiet", cwd=target_dir, operation="initialize checkout")
            self.runner.run(
                "remote", "add", "origin", repo_url,
                cwd=target_dir, operation="register checkout origin",
            )
            self.runner.run(
                "remote", "add", CACHE_REMOTE, str(cache_path),
                cwd=target_dir, operation="register cache remote",
            )
        else:
            # the declared URL may have changed since the last realization
            self.runner.run(
                "config", "remote.origin.url", repo_url,
                cwd=target_dir, operation="update checkout origin",
            )
            self.runner.run(
                "config", f"remote.{CACHE_REMOTE}.url", str(cache_path),
                cwd=target_dir, operation="update cache remote",
            )

        if exclude:
            _append_excludes(target_dir / ".git" / "info" / "exclude", exclude)

        self.runner.run(
            "fetch", "--quiet", CACHE_REMOTE, commit,
            cwd=target_dir, operation=f"fetch {commit} from cache",
        )
        self.runner.run(
            "fetch", "--quiet", "origin", *REF_SPECS,
            cwd=target_dir, operation="fetch branches and tags from origin",
        )
        self.runner.run(
            "-c", "advice.detachedHead=false", "checkout", "--quiet", "--detach", commit,
            cwd=target_dir, operation=f"check out {commit}",
        )

    def is_dirty(self, repo_path: Path) -> bool:
        """Return True if the working tree or index differs from HEAD.

        Untracked files are not considered.

        Raises:
            GitCommandError: If git answers neither clean nor dirty, which
                means ``repo_path`` is not a valid repository.
        """
        self.runner.run(
            "update-index", "-q", "--refresh",
            cwd=repo_path, ok_codes=(0, 1), operation="refresh index",
        )
        result = self.runner.run(
            "diff-index", "--quiet", "HEAD", "--",
            cwd=repo_path, ok_codes=(0, 1), operation="check for local changes",
        )
        return result.returncode == 1


def _append_excludes(exclude_file: Path, patterns: tuple[str, ...]) -> None:
    existing = exclude_file.read_text(encoding="utf-8") if exclude_file.exists() else ""
    lines = set(existing.splitlines())
    missing = [p for p in patterns if p not in lines]
    if not missing:
        return
    exclude_file.parent.mkdir(parents=True, exist_ok=True)
    prefix = "" if not existing or existing.endswith("\n") else "\n"
    with exclude_file.open("a", encoding="utf-8") as fh:
        fh.write(prefix + "\n".join(missing) + "\n")
