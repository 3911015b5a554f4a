# gitftp Transfer Executor
# Retrying, dry-run aware upload/delete/fetch over a transfer client

from __future__ import annotations

import time
from collections.abc import Callable
from typing import TYPE_CHECKING, Optional, TypeVar

from gitftp.config.schema import ResolvedSettings
from gitftp.errors import DownloadError, TransferError, UploadError
from gitftp.transfer.client import TransferClient, create_client
from gitftp.transfer.target import TransferTarget, parse_url
from gitftp.utils.paths import parent_directories

if TYPE_CHECKING:
    from gitftp.output.console import Console

T = TypeVar("T")

DEFAULT_RETRY_DELAY = 1.0


class TransferExecutor:
    """
    Executes remote file operations for one target.

    Uploads are fatal after retries, deletions never are, fetches return
    None for missing files. In dry-run mode uploads and deletions are
    only reported; fetches still run so state is read faithfully.
    """

    def __init__(
        self,
        client: TransferClient,
        target: TransferTarget,
        *,
        dry_run: bool = False,
        retries: int = 3,
        retry_delay: float = DEFAULT_RETRY_DELAY,
        console: Optional[Console] = None,
        owns_client: bool = True,
    ):
        self.client = client
        self.target = target
        self.dry_run = dry_run
        self.retries = retries
        self.retry_delay = retry_delay
        self.console = console
        self._owns_client = owns_client

    def __enter__(self) -> TransferExecutor:
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def close(self) -> None:
        if self._owns_client and self.client.connected:
            self.client.close()

    def scoped(self, subpath: str) -> TransferExecutor:
        """Executor for a subdirectory of the target, sharing the connection."""
        return TransferExecutor(
            self.client,
            self.target.scoped(subpath),
            dry_run=self.dry_run,
            retries=self.retries,
            retry_delay=self.retry_delay,
            console=self.console,
            owns_client=False,
        )

    def _log(self, message: str) -> None:
        if self.console:
            self.console.verbose(message)

    def _warn(self, message: str) -> None:
        if self.console:
            self.console.warning(message)

    def _attempt(
        self,
        operation: Callable[[], T],
        description: str,
        error_cls: type[TransferError],
        remote: str,
    ) -> T:
        """Run operation, reconnecting and retrying on transport errors."""
        last_error: Optional[BaseException] = None

        for attempt in range(self.retries + 1):
            try:
                if not self.client.connected:
                    self.client.connect()
                return operation()
            except FileNotFoundError:
                raise
            except self.client.errors as e:
                last_error = e
                if attempt < self.retries:
                    self._log(f"{description} failed ({e}), retrying ({attempt + 1}/{self.retries})")
                    self.client.close()
                    time.sleep(self.retry_delay * (2**attempt))

        raise error_cls(
            f"{description} failed after {self.retries + 1} attempts: {last_error}",
            remote,
        ) from last_error

    def upload(self, data: bytes, path: str) -> None:
        """
        Upload data to path, creating parent directories.

        Raises:
            UploadError: After all retries failed.
        """
        remote = self.target.remote_path(path)
        if self.dry_run:
            self._log(f"[dry-run] Would upload {remote}")
            return

        def operation() -> None:
            parents = parent_directories(remote)
            if parents:
                self.client.make_dirs(parents[0])
            self.client.store(data, remote)

        self._log(f"Uploading {remote}")
        self._attempt(operation, f"Upload of {remote}", UploadError, remote)

    def fetch(self, path: str) -> Optional[bytes]:
        """
        Download path.

        Returns:
            File content, or None if the file doesn't exist.

        Raises:
            DownloadError: After all retries failed.
        """
        remote = self.target.remote_path(path)
        try:
            return self._attempt(lambda: self.client.retrieve(remote), f"Download of {remote}", DownloadError, remote)
        except FileNotFoundError:
            return None

    def remove(self, path: str) -> bool:
        """
        Delete a remote file. Never fatal.

        Returns:
            True if the file is gone afterwards.
        """
        remote = self.target.remote_path(path)
        if self.dry_run:
            self._log(f"[dry-run] Would delete {remote}")
            return True

        self._log(f"Deleting {remote}")
        try:
            self._attempt(lambda: self.client.delete(remote), f"Deletion of {remote}", UploadError, remote)
        except FileNotFoundError:
            self._log(f"{remote} was already gone")
        except TransferError as e:
            self._warn(f"Could not delete {remote}: {e}")
            return False
        return True

    def remove_directory_if_empty(self, path: str) -> bool:
        """
        Remove a remote directory; a server refusal (not empty, missing) is not an error.

        Returns:
            True if the directory was removed.
        """
        remote = self.target.remote_path(path)
        if self.dry_run:
            self._log(f"[dry-run] Would remove directory {remote} if empty")
            return True

        try:
            if not self.client.connected:
                self.client.connect()
            self.client.remove_dir(remote)
        except self.client.errors as e:
            self._log(f"Kept directory {remote}: {e}")
            return False
        self._log(f"Removed directory {remote}")
        return True


def create_executor(
    settings: ResolvedSettings,
    *,
    dry_run: bool = False,
    console: Optional[Console] = None,
) -> TransferExecutor:
    """Build the executor for the settings' URL."""
    target = parse_url(settings.url)
    client = create_client(target, settings)
    return TransferExecutor(
        client,
        target,
        dry_run=dry_run,
        retries=settings.retries,
        console=console,
    )
