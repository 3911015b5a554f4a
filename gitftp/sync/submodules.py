# gitftp Submodule Controller
# Recursive deployment of nested repositories (git submodules)

from __future__ import annotations

from collections.abc import Iterable
from typing import TYPE_CHECKING, Callable, Optional

from gitftp.config.defaults import IGNORE_FILE, INCLUDE_FILE
from gitftp.config.loader import read_rules_file
from gitftp.config.schema import ResolvedSettings
from gitftp.errors import GitError, MarkerNotFoundError, UploadError
from gitftp.git.repository import GitRepository
from gitftp.utils.paths import relative_to

if TYPE_CHECKING:
    from gitftp.output.console import Console
    from gitftp.sync.engine import DeployEngine, DeployOptions, DeployResult
    from gitftp.transfer.executor import TransferExecutor


class SubmoduleController:
    """
    Deploys submodules found in a changeset.

    Each submodule runs the full pipeline in-process, against the parent's
    connection scoped to the submodule's remote directory, with its own
    marker. A submodule that was never deployed is initialized.
    """

    def __init__(
        self,
        repo: GitRepository,
        settings: ResolvedSettings,
        console: Console,
        engine_factory: Callable[..., DeployEngine],
        mount_points: Optional[Iterable[str]] = None,
    ):
        """
        Args:
            repo: Parent repository.
            settings: Parent settings; credentials and retries are inherited.
            console: Diagnostics sink.
            engine_factory: Builds the engine for a submodule.
            mount_points: Submodule paths; read from the repository when None.
        """
        self.repo = repo
        self.settings = settings
        self.console = console
        self.engine_factory = engine_factory
        self._mount_points = set(mount_points) if mount_points is not None else None

    @property
    def mount_points(self) -> set[str]:
        if self._mount_points is None:
            self._mount_points = set(self.repo.list_submodules())
        return self._mount_points

    def is_nested_unit(self, path: str) -> bool:
        return path in self.mount_points

    def nested_settings(self, nested_repo: GitRepository) -> ResolvedSettings:
        """Settings for a submodule: same remote credentials, its own rule files, no remote lock."""
        return self.settings.model_copy(
            update={
                "syncroot": "",
                "remote_lock": False,
                "ignore_patterns": read_rules_file(nested_repo.root / IGNORE_FILE),
                "include_patterns": read_rules_file(nested_repo.root / INCLUDE_FILE),
            }
        )

    def sync_nested_unit(
        self,
        path: str,
        executor: TransferExecutor,
        options: DeployOptions,
    ) -> DeployResult:
        """
        Deploy the submodule mounted at path.

        Raises:
            GitFtpError: Any failure other than a missing marker.
        """
        # Imported here, the engine module imports this one
        from gitftp.sync.engine import DeployStatus

        nested_repo = self.repo.submodule(path)
        if not nested_repo.is_checked_out():
            raise GitError(f"Submodule {path} is not initialized, run 'git submodule update --init'")
        remote_subpath = relative_to(path, self.settings.syncroot)
        engine = self.engine_factory(
            self.nested_settings(nested_repo),
            nested_repo,
            self.console,
            executor=executor.scoped(remote_subpath),
        )
        nested_options = options.for_nested_unit()

        self.console.info(f"Entering submodule {path}")
        try:
            result = engine.push(nested_options)
        except MarkerNotFoundError:
            self.console.info(f"Submodule {path} was never deployed, initializing")
            result = engine.init(nested_options)

        if result.status == DeployStatus.ALREADY_RUNNING:
            raise UploadError(f"Submodule {path} is being deployed by another process", path)
        return result
