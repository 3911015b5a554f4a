# gitftp Lock Tests
# Local PID lock and remote advisory lock

import os
from pathlib import Path
from unittest.mock import MagicMock, patch

import pytest
from filelock import FileLock

from gitftp.errors import RemoteLockedError, UploadError
from gitftp.sync.locks import AlreadyRunningError, LocalLock, RemoteLockManager
from gitftp.sync.state import RemoteLock, StateStore


class TestLocalLock:
    """Tests for the PID lock file."""

    def test_acquire_and_release(self, temp_dir: Path):
        path = temp_dir / ".git" / "gitftp.lck"
        lock = LocalLock(path)

        assert lock.acquire() is True
        assert lock.held
        assert lock.holder() == os.getpid()

        lock.release()
        assert not path.exists()
        assert not lock.held

    @patch("gitftp.sync.locks.psutil.pid_exists", return_value=True)
    def test_live_holder_blocks(self, mock_exists, temp_dir: Path):
        path = temp_dir / "gitftp.lck"
        path.write_text("4242\n", encoding="utf-8")

        assert LocalLock(path, pid=1000).acquire() is False
        mock_exists.assert_called_once_with(4242)

    @patch("gitftp.sync.locks.psutil.pid_exists", return_value=False)
    def test_stale_lock_is_reclaimed(self, mock_exists, temp_dir: Path):
        path = temp_dir / "gitftp.lck"
        path.write_text("4242\n", encoding="utf-8")

        assert LocalLock(path, pid=1000).acquire() is True
        assert path.read_text(encoding="utf-8").strip() == "1000"

    def test_garbage_lock_is_reclaimed(self, temp_dir: Path):
        path = temp_dir / "gitftp.lck"
        path.write_text("not a pid", encoding="utf-8")

        assert LocalLock(path, pid=1000).acquire() is True

    @patch("gitftp.sync.locks.psutil.pid_exists", return_value=True)
    def test_context_manager_raises_when_held(self, mock_exists, temp_dir: Path):
        path = temp_dir / "gitftp.lck"
        path.write_text("4242\n", encoding="utf-8")

        with pytest.raises(AlreadyRunningError) as exc_info:
            with LocalLock(path, pid=1000):
                pass
        assert exc_info.value.pid == 4242
        # Someone else's lock is left alone
        assert path.exists()

    def test_context_manager_releases(self, temp_dir: Path):
        path = temp_dir / "gitftp.lck"
        with LocalLock(path):
            assert path.exists()
        assert not path.exists()

    @patch("gitftp.sync.locks.psutil.pid_exists", return_value=True)
    def test_only_one_of_two_runs_wins(self, mock_exists, temp_dir: Path):
        path = temp_dir / "gitftp.lck"
        first = LocalLock(path, pid=1000)
        second = LocalLock(path, pid=2000)

        assert first.acquire() is True
        assert second.acquire() is False
        assert not (first.held and second.held)
        assert first.holder() == 1000

    def test_busy_guard_blocks(self, temp_dir: Path):
        path = temp_dir / "gitftp.lck"
        lock = LocalLock(path, pid=1000)

        with FileLock(lock.guard_path, timeout=0):
            assert lock.acquire() is False

        assert not lock.held
        assert not path.exists()

    def test_guard_is_free_after_acquire(self, temp_dir: Path):
        lock = LocalLock(temp_dir / "gitftp.lck", pid=1000)
        lock.acquire()

        with FileLock(lock.guard_path, timeout=0):
            pass

    def test_release_without_acquire_keeps_file(self, temp_dir: Path):
        path = temp_dir / "gitftp.lck"
        path.write_text("4242\n", encoding="utf-8")
        LocalLock(path, pid=1000).release()
        assert path.exists()


class TestRemoteLockManager:
    """Tests for the remote advisory lock."""

    @pytest.fixture
    def store(self, executor) -> StateStore:
        return StateStore(executor)

    def test_disabled_is_a_no_op(self, store, remote):
        remote.files["git-ftp.lck"] = b"other\nbob\n"
        manager = RemoteLockManager(store, enabled=False, identity="me")

        manager.check("mine")
        manager.set("mine")
        assert manager.clear() is True
        assert remote.files["git-ftp.lck"] == b"other\nbob\n"

    def test_no_lock_no_conflict(self, store):
        manager = RemoteLockManager(store, enabled=True, identity="me")
        assert manager.conflict("mine") is None

    def test_conflict_raises(self, store, remote):
        remote.files["git-ftp.lck"] = b"other\nbob@build\n"
        manager = RemoteLockManager(store, enabled=True, identity="me")

        with pytest.raises(RemoteLockedError) as exc_info:
            manager.check("mine")
        assert exc_info.value.identity == "bob@build"
        assert exc_info.value.revision == "other"

    def test_force_warns(self, store, remote):
        remote.files["git-ftp.lck"] = b"other\nbob@build\n"
        console = MagicMock()
        manager = RemoteLockManager(store, enabled=True, identity="me", console=console)

        manager.check("mine", force=True)
        console.warning.assert_called_once()

    def test_same_revision_is_not_a_conflict(self, store, remote):
        remote.files["git-ftp.lck"] = b"mine\nbob@build\n"
        manager = RemoteLockManager(store, enabled=True, identity="me")
        manager.check("mine")

    def test_held_sets_and_clears(self, store, remote):
        manager = RemoteLockManager(store, enabled=True, identity="me@host")

        with manager.held("mine"):
            assert RemoteLock.parse(remote.files["git-ftp.lck"]) == RemoteLock("mine", "me@host")
        assert "git-ftp.lck" not in remote.files

    def test_held_clears_on_error(self, store, remote):
        manager = RemoteLockManager(store, enabled=True, identity="me")

        with pytest.raises(UploadError):
            with manager.held("mine"):
                raise UploadError("boom", "x")
        assert "git-ftp.lck" not in remote.files

    def test_clear_failure_is_a_warning(self, store):
        console = MagicMock()
        manager = RemoteLockManager(store, enabled=True, identity="me", console=console)

        with patch.object(store, "clear_lock", side_effect=UploadError("no", "git-ftp.lck")):
            assert manager.clear() is False
        console.warning.assert_called_once()
