# gitftp State Tests
# Remote marker and lock records

from gitftp.sync.state import DeploymentMarker, RemoteLock, StateStore
from gitftp.transfer.executor import TransferExecutor

REVISION = "3f2a9c0d1e4b5a6f7c8d9e0f1a2b3c4d5e6f7a8b"


class TestDeploymentMarker:
    """Tests for marker serialization."""

    def test_serialize(self):
        assert DeploymentMarker(REVISION).serialize() == f"{REVISION}\n".encode()

    def test_parse_ignores_whitespace(self):
        assert DeploymentMarker.parse(f"  {REVISION}\r\n".encode()) == DeploymentMarker(REVISION)

    def test_parse_empty(self):
        assert DeploymentMarker.parse(b"") is None
        assert DeploymentMarker.parse(b"\n\n") is None


class TestRemoteLock:
    """Tests for lock serialization."""

    def test_parse(self):
        lock = RemoteLock.parse(f"{REVISION}\nalice@web1 on 2026-03-01T12:00:00\n".encode())
        assert lock.revision == REVISION
        assert lock.identity == "alice@web1 on 2026-03-01T12:00:00"

    def test_parse_without_identity(self):
        assert RemoteLock.parse(f"{REVISION}\n".encode()) == RemoteLock(REVISION)

    def test_parse_round_trip(self):
        lock = RemoteLock(REVISION, "bob@ci")
        assert RemoteLock.parse(lock.serialize()) == lock


class TestStateStore:
    """Tests for StateStore over the in-memory remote."""

    def test_read_marker_missing(self, executor):
        assert StateStore(executor).read_marker() is None

    def test_write_then_read_marker(self, executor, remote):
        store = StateStore(executor)
        store.write_marker(REVISION)

        assert remote.files[".git-ftp.log"] == f"{REVISION}\n".encode()
        assert store.read_marker() == DeploymentMarker(REVISION)

    def test_marker_below_base_path(self, remote, target):
        executor = TransferExecutor(remote, target.scoped("www"), retry_delay=0)
        StateStore(executor).write_marker(REVISION)

        assert "www/.git-ftp.log" in remote.files

    def test_lock_lifecycle(self, executor, remote):
        store = StateStore(executor)
        assert store.read_lock() is None

        store.write_lock(RemoteLock(REVISION, "alice@web1"))
        assert store.read_lock() == RemoteLock(REVISION, "alice@web1")

        assert store.clear_lock() is True
        assert "git-ftp.lck" not in remote.files

    def test_clear_missing_lock(self, executor):
        assert StateStore(executor).clear_lock() is True
