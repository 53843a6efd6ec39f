"""Key/value stores for ancestry facts.

The ancestry oracle only needs ``get(key)`` and ``put(key, value)``. Two
implementations are provided:

- ``MemoryFactStore``: a dict, for tests and one-off queries.
- ``JsonFactStore``: a JSON document on disk shared by every gitpin
  invocation of the current user. Writes are a locked read-modify-write
  followed by an atomic replace, so concurrent runs never lose each
  other's facts and readers never see a half-written file.

Facts are keyed ``"<commit_a>:<commit_b>"``. The repository is not part of
the key: commit ids are content hashes, so the relation between two given
ids is the same in every repository that contains both.
"""

from __future__ import annotations

import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Protocol

from gitpin.core.git.locking import file_lock

logger = logging.getLogger(__name__)


def fact_key(commit_a: str, commit_b: str) -> str:
    """Return the store key for "is ``commit_a`` an ancestor of ``commit_b``"."""
    return f"{commit_a}:{commit_b}"


class FactStore(Protocol):
    """Capability interface of an ancestry fact store."""

    def get(self, key: str) -> bool | None: ...

    def put(self, key: str, value: bool) -> None: ...


class MemoryFactStore:
    """In-memory fact store."""

    def __init__(self, facts: dict[str, bool] | None = None) -> None:
        self.facts: dict[str, bool] = dict(facts or {})

    def get(self, key: str) -> bool | None:
        return self.facts.get(key)

    def put(self, key: str, value: bool) -> None:
        self.facts[key] = bool(value)


class JsonFactStore:
    """Fact store persisted as a JSON object on disk.

    The file is read lazily on first ``get``. A missing file is an empty
    store; a corrupt one is logged and treated as empty (the facts are
    recomputable, and the next ``put`` rewrites the file).

    Args:
        path: Location of the JSON document, e.g. ``<cache>/ancestry.json``.
    """

    def __init__(self, path: Path) -> None:
        self.path = Path(path)
        self._facts: dict[str, bool] | None = None

    @property
    def lock_path(self) -> Path:
        return self.path.with_name(self.path.name + ".lock")

    def _load(self) -> dict[str, bool]:
        if not self.path.exists():
            return {}
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError):
            logger.warning("Ignoring unreadable ancestry cache %s", self.path, exc_info=True)
            return {}
        if not isinstance(data, dict):
            logger.warning("Ignoring malformed ancestry cache %s", self.path)
            return {}
        return {str(k): bool(v) for k, v in data.items() if isinstance(v, bool)}

    def get(self, key: str) -> bool | None:
        if self._facts is None:
            self._facts = self._load()
        return self._facts.get(key)

    def put(self, key: str, value: bool) -> None:
        with file_lock(self.lock_path):
            facts = self._load()
            facts[key] = bool(value)
            self._write(facts)
        self._facts = facts

    def _write(self, facts: dict[str, bool]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(
            prefix=self.path.name + ".", suffix=".tmp", dir=self.path.parent
        )
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as fh:
                json.dump(facts, fh, indent=2, sort_keys=True)
            os.replace(tmp_name, self.path)
        except BaseException:
            Path(tmp_name).unlink(missing_ok=True)
            raise
