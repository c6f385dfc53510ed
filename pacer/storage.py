"""JSON file helpers -- locked reads, atomic writes, and read-modify-write locking.

Writers never touch the live file in place: each save goes through a temp
file in the same directory and ``os.replace``. A read-modify-write cycle
additionally holds an exclusive lock on a ``<path>.lock`` sidecar, since the
live file's inode changes on every replace and cannot carry the lock itself.
"""

import fcntl
import json
import os
import tempfile
from contextlib import contextmanager
from typing import Any, Iterator


def load_json(path: str) -> Any:
    """Parse ``path`` under a shared lock. None if missing or empty."""
    if not os.path.isfile(path) or os.path.getsize(path) == 0:
        return None
    with open(path, "r") as f:
        fcntl.flock(f.fileno(), fcntl.LOCK_SH)
        try:
            return json.load(f)
        finally:
            fcntl.flock(f.fileno(), fcntl.LOCK_UN)


def save_json(path: str, data: Any) -> None:
    """Replace ``path`` with ``data`` in one step. The temp file is removed on failure."""
    dir_path = os.path.dirname(path) or "."
    os.makedirs(dir_path, exist_ok=True)
    fd, tmp = tempfile.mkstemp(dir=dir_path, prefix=".", suffix=".tmp")
    try:
        with os.fdopen(fd, "w") as f:
            json.dump(data, f, indent=2)
            f.flush()
            os.fsync(f.fileno())
        os.replace(tmp, path)
    except BaseException:
        try:
            os.unlink(tmp)
        except OSError:
            pass
        raise


@contextmanager
def update_lock(path: str) -> Iterator[None]:
    """Hold an exclusive lock on ``path``'s sidecar for a read-modify-write."""
    lock_path = path + ".lock"
    os.makedirs(os.path.dirname(lock_path) or ".", exist_ok=True)
    with open(lock_path, "a") as f:
        fcntl.flock(f.fileno(), fcntl.LOCK_EX)
        try:
            yield
        finally:
            fcntl.flock(f.fileno(), fcntl.LOCK_UN)
