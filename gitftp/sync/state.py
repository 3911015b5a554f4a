# gitftp Deployment State
# Remote marker and lock records, and the store that reads and writes them

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Optional

from gitftp.config.defaults import LOCK_FILE, MARKER_FILE

if TYPE_CHECKING:
    from gitftp.transfer.executor import TransferExecutor


@dataclass(frozen=True)
class DeploymentMarker:
    """Last successfully deployed revision."""

    revision: str

    def serialize(self) -> bytes:
        return f"{self.revision}\n".encode("utf-8")

    @classmethod
    def parse(cls, data: bytes) -> Optional[DeploymentMarker]:
        """Parse marker content; empty content counts as no marker."""
        text = data.decode("utf-8", errors="replace").strip()
        if not text:
            return None
        return cls(revision=text.splitlines()[0].strip())


@dataclass(frozen=True)
class RemoteLock:
    """Advisory lock left on the remote side during a deployment."""

    revision: str
    identity: str = ""

    def serialize(self) -> bytes:
        return f"{self.revision}\n{self.identity}\n".encode("utf-8")

    @classmethod
    def parse(cls, data: bytes) -> Optional[RemoteLock]:
        text = data.decode("utf-8", errors="replace").strip()
        if not text:
            return None
        revision, _, identity = text.partition("\n")
        return cls(revision=revision.strip(), identity=identity.strip())


class StateStore:
    """
    Reads and writes the remote marker and lock files.

    Nothing else in the engine touches these two remote paths.
    """

    def __init__(self, executor: TransferExecutor):
        self.executor = executor

    def read_marker(self) -> Optional[DeploymentMarker]:
        """
        Read the deployment marker.

        Returns:
            The marker, or None on a first deployment.

        Raises:
            DownloadError: If the remote could not be read.
        """
        data = self.executor.fetch(MARKER_FILE)
        if data is None:
            return None
        return DeploymentMarker.parse(data)

    def write_marker(self, revision: str) -> None:
        """
        Record revision as deployed.

        Raises:
            UploadError: If the marker could not be written.
        """
        self.executor.upload(DeploymentMarker(revision).serialize(), MARKER_FILE)

    def read_lock(self) -> Optional[RemoteLock]:
        data = self.executor.fetch(LOCK_FILE)
        if data is None:
            return None
        return RemoteLock.parse(data)

    def write_lock(self, lock: RemoteLock) -> None:
        self.executor.upload(lock.serialize(), LOCK_FILE)

    def clear_lock(self) -> bool:
        return self.executor.remove(LOCK_FILE)
