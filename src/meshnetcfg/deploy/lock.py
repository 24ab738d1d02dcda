"""Exclusive lock serialising configuration writes on a node."""

from __future__ import annotations

import fcntl
import os
from pathlib import Path


class ConfigLock:
    """Advisory ``flock`` held for the backup + write + validate sequence.

    Usage::

        with ConfigLock(Path("/run/lock/meshnetcfg.lock")):
            ...

    Raises BlockingIOError on entry when ``blocking`` is False and
    another process holds the lock.
    """

    def __init__(self, path: Path, blocking: bool = True) -> None:
        self.path = path
        self.blocking = blocking
        self._fd: int | None = None

    def __enter__(self) -> ConfigLock:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        fd = os.open(self.path, os.O_RDWR | os.O_CREAT, 0o644)
        flags = fcntl.LOCK_EX if self.blocking else fcntl.LOCK_EX | fcntl.LOCK_NB
        try:
            fcntl.flock(fd, flags)
        except OSError:
            os.close(fd)
            raise
        self._fd = fd
        return self

    def __exit__(self, *exc_info: object) -> None:
        if self._fd is not None:
            fcntl.flock(self._fd, fcntl.LOCK_UN)
            os.close(self._fd)
            self._fd = None
