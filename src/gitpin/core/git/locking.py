"""Advisory file locks for state shared between gitpin processes.

The repository cache and the ancestry store live in a per-user directory
that unrelated projects, and concurrent runs on the same project, all use.
Each cache entry is guarded by an exclusive advisory lock on a sibling
``.lock`` file for as long as it is being mutated.

Locks are re-entrant within one process: nested ``file_lock`` calls on the
same path only take the OS lock once. ``flock`` locks belong to the open
file description, so a second open-and-lock of the same file from the
same process would otherwise deadlock.
"""

from __future__ import annotations

import logging
import os
import sys
from contextlib import contextmanager
from pathlib import Path
from typing import IO, Iterator

if sys.platform == "win32":
    import msvcrt
else:
    import fcntl

logger = logging.getLogger(__name__)

# path -> (open handle, nesting depth) for locks held by this process
_held: dict[str, tuple[IO[bytes], int]] = {}


def _acquire(handle: IO[bytes]) -> None:
    if sys.platform == "win32":
        handle.seek(0)
        msvcrt.locking(handle.fileno(), msvcrt.LK_LOCK, 1)
    else:
        fcntl.flock(handle.fileno(), fcntl.LOCK_EX)


def _release(handle: IO[bytes]) -> None:
    if sys.platform == "win32":
        handle.seek(0)
        msvcrt.locking(handle.fileno(), msvcrt.LK_UNLCK, 1)
    else:
        fcntl.flock(handle.fileno(), fcntl.LOCK_UN)


@contextmanager
def file_lock(lock_path: Path) -> Iterator[Path]:
    """Hold an exclusive advisory lock on ``lock_path`` for the block.

    The lock file (and its parent directory) is created if needed and is
    left in place afterwards.

    Args:
        lock_path: Path of the lock file.

    Yields:
        The lock file path.
    """
    key = os.path.abspath(lock_path)
    if key in _held:
        handle, depth = _held[key]
        _held[key] = (handle, depth + 1)
        try:
            yield lock_path
        finally:
            handle, depth = _held[key]
            _held[key] = (handle, depth - 1)
        return

    lock_path.parent.mkdir(parents=True, exist_ok=True)
    handle = open(lock_path, "a+b")
    try:
        logger.debug("Waiting for lock %s", lock_path)
        _acquire(handle)
        _held[key] = (handle, 1)
        try:
            yield lock_path
        finally:
            del _held[key]
            _release(handle)
    finally:
        handle.close()


def is_locked_by_us(lock_path: Path) -> bool:
    """Return True if this process currently holds the lock on ``lock_path``."""
    return os.path.abspath(lock_path) in _held
