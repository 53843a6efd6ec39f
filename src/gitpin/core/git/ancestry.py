"""Ancestry Oracle: memoized "is commit A an ancestor of commit B?".

For fixed commit ids the answer is fully determined by the commit DAG and
never changes, so every computed fact is kept for the rest of the process
and written to a persisted ``FactStore`` for later invocations. Facts are
keyed by ``(a, b)`` alone; see ``gitpin.core.git.store``.

Lookup order:
    1. process memo, 2. persisted store, 3. ``git merge-base
    --is-ancestor`` in the repository's cache mirror.

``merge-base --is-ancestor`` is ternary: exit 0 = yes, 1 = no, anything
else = indeterminate (usually because a commit is not in the mirror). An
indeterminate answer triggers one tree-less fetch of exactly the two
commits followed by exactly one retry; a second indeterminate answer is
fatal.
"""

from __future__ import annotations

import logging
from pathlib import Path

from gitpin.core.git.cache import RepositoryCache
from gitpin.core.git.runner import GitResult
from gitpin.core.git.store import FactStore, MemoryFactStore, fact_key
from gitpin.exceptions import AncestryError

logger = logging.getLogger(__name__)


class AncestryOracle:
    """Answers ancestry questions against repository cache mirrors.

    Args:
        cache: The repository cache whose mirrors serve as the DAG source.
        store: Persisted fact store. Defaults to an in-memory store.
    """

    def __init__(self, cache: RepositoryCache, store: FactStore | None = None) -> None:
        self.cache = cache
        self.store: FactStore = store if store is not None else MemoryFactStore()
        self._memo: dict[str, bool] = {}

    def is_ancestor(self, repo_url: str, commit_a: str, commit_b: str) -> bool:
        """Return True if ``commit_a`` is an ancestor of ``commit_b``.

        A commit counts as its own ancestor.

        Args:
            repo_url: Repository whose mirror provides the commit graph.
            commit_a: Candidate ancestor.
            commit_b: Candidate descendant.

        Raises:
            AncestryError: If git cannot decide even after fetching both
                commits.
            GitCommandError: If the mirror cannot be initialized.
        """
        if commit_a == commit_b:
            return True

        key = fact_key(commit_a, commit_b)
        if key in self._memo:
            return self._memo[key]

        cached = self.store.get(key)
        if cached is not None:
            self._memo[key] = cached
            return cached

        value = self._compute(repo_url, commit_a, commit_b)
        self.store.put(key, value)
        self._memo[key] = value
        return value

    def _compute(self, repo_url: str, commit_a: str, commit_b: str) -> bool:
        with self.cache.locked(repo_url) as path:
            self.cache.ensure_initialized(repo_url, path)

            result = self._merge_base(path, commit_a, commit_b)
            if result.returncode in (0, 1):
                return result.returncode == 0

            logger.info(
                "Ancestry of %s and %s undecided in %s; fetching both commits",
                commit_a, commit_b, repo_url,
            )
            self.cache.fetch_commits_treeless(path, commit_a, commit_b)

            result = self._merge_base(path, commit_a, commit_b)
            if result.returncode in (0, 1):
                return result.returncode == 0

        raise AncestryError(
            result,
            f"cannot decide whether {commit_a} is an ancestor of {commit_b} "
            f"in {repo_url}",
        )

    def _merge_base(self, path: Path, commit_a: str, commit_b: str) -> GitResult:
        return self.cache.runner.run(
            "merge-base", "--is-ancestor", commit_a, commit_b,
            cwd=path,
            ok_codes=range(0, 256),
            operation="ancestry check",
        )
