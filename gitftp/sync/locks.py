# gitftp Locks
# Local PID lock and advisory remote deployment lock

from __future__ import annotations

import os
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path
from typing import TYPE_CHECKING, Optional

import psutil
from filelock import FileLock, Timeout

from gitftp.errors import RemoteLockedError, TransferError
from gitftp.sync.state import RemoteLock, StateStore

if TYPE_CHECKING:
    from gitftp.output.console import Console


class AlreadyRunningError(Exception):
    """Another process holds the local lock. Not a failure: that run will deploy."""

    def __init__(self, pid: int):
        self.pid = pid
        super().__init__(f"Another deployment is already running (pid {pid})")


class LocalLock:
    """
    PID file guarding one local clone against concurrent runs.

    A lock whose PID is no longer alive is stale and gets reclaimed. The
    check and the write happen under an OS file lock on a sibling guard
    file, so two runs can never both take it.
    """

    def __init__(self, path: Path, pid: Optional[int] = None):
        self.path = path
        self.pid = pid or os.getpid()
        self._held = False

    @property
    def guard_path(self) -> Path:
        return self.path.with_name(self.path.name + ".lock")

    @property
    def held(self) -> bool:
        return self._held

    def holder(self) -> Optional[int]:
        """PID recorded in the lock file, or None if absent or unreadable."""
        try:
            return int(self.path.read_text(encoding="utf-8").strip())
        except (FileNotFoundError, ValueError):
            return None

    def acquire(self) -> bool:
        """
        Take the lock.

        Returns:
            False if a live process other than this one holds it.
        """
        self.path.parent.mkdir(parents=True, exist_ok=True)
        try:
            with FileLock(self.guard_path, timeout=0):
                holder = self.holder()
                if holder is not None and holder != self.pid and psutil.pid_exists(holder):
                    return False
                self.path.write_text(f"{self.pid}\n", encoding="utf-8")
        except Timeout:
            # Another run is between its check and its write
            return False

        self._held = True
        return True

    def release(self) -> None:
        if self._held:
            self.path.unlink(missing_ok=True)
            self._held = False

    def __enter__(self) -> LocalLock:
        if not self.acquire():
            raise AlreadyRunningError(self.holder() or 0)
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.release()


class RemoteLockManager:
    """
    Advisory lock file on the remote target.

    Check-then-set is not atomic; a conflict is for humans to resolve
    (with --force or by removing the lock file).
    """

    def __init__(
        self,
        store: StateStore,
        *,
        enabled: bool,
        identity: str,
        console: Optional[Console] = None,
    ):
        self.store = store
        self.enabled = enabled
        self.identity = identity
        self.console = console

    def conflict(self, local_revision: str) -> Optional[RemoteLock]:
        """Return the remote lock if it blocks deploying local_revision."""
        if not self.enabled:
            return None
        lock = self.store.read_lock()
        if lock is None or lock.revision == local_revision:
            return None
        return lock

    def check(self, local_revision: str, *, force: bool = False) -> None:
        """
        Raises:
            RemoteLockedError: If another revision holds the lock and force is not set.
        """
        lock = self.conflict(local_revision)
        if lock is None:
            return
        if force:
            if self.console:
                self.console.warning(f"Ignoring remote lock held by {lock.identity}")
            return
        raise RemoteLockedError(lock.identity, lock.revision)

    def set(self, revision: str) -> None:
        if self.enabled:
            self.store.write_lock(RemoteLock(revision=revision, identity=self.identity))

    def clear(self) -> bool:
        """Remove the lock; failure leaves a stale lock, which is recoverable."""
        if not self.enabled:
            return True
        try:
            cleared = self.store.clear_lock()
        except TransferError as e:
            cleared = False
            if self.console:
                self.console.warning(f"Could not clear remote lock: {e}")
        return cleared

    @contextmanager
    def held(self, revision: str) -> Iterator[None]:
        """Hold the remote lock for the duration of the block."""
        self.set(revision)
        try:
            yield
        finally:
            self.clear()
