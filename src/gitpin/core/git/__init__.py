"""Git plumbing: subprocess runner, repository cache, and ancestry oracle.

All public names are re-exported here so callers can write
``from gitpin.core.git import RepositoryCache``.
"""

from gitpin.core.git.ancestry import AncestryOracle
from gitpin.core.git.cache import CACHE_REMOTE, RepositoryCache, url_hash
from gitpin.core.git.locking import file_lock
from gitpin.core.git.runner import GitResult, GitRunner
from gitpin.core.git.store import FactStore, JsonFactStore, MemoryFactStore, fact_key

__all__ = [
    "AncestryOracle",
    "CACHE_REMOTE",
    "FactStore",
    "GitResult",
    "GitRunner",
    "JsonFactStore",
    "MemoryFactStore",
    "RepositoryCache",
    "fact_key",
    "file_lock",
    "url_hash",
]
