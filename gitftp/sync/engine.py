# gitftp Deploy Engine
# Runs init/push/catchup/show/log against one remote target

from __future__ import annotations

from collections.abc import Callable
from contextlib import nullcontext
from dataclasses import dataclass, field, replace
from enum import Enum
from pathlib import Path
from typing import TYPE_CHECKING, Optional

from gitftp.config.defaults import LOCAL_LOCK_FILE
from gitftp.config.schema import ResolvedSettings
from gitftp.errors import (
    DirtyRepositoryError,
    ExitCode,
    GitError,
    GitFtpError,
    MarkerExistsError,
    MarkerNotFoundError,
    UnknownRevisionError,
    UploadError,
)
from gitftp.git.repository import GitRepository
from gitftp.sync.changeset import ChangeSet, IgnoreRules, IncludeRules, resolve_changeset
from gitftp.sync.locks import AlreadyRunningError, LocalLock, RemoteLockManager
from gitftp.sync.state import StateStore
from gitftp.sync.submodules import SubmoduleController
from gitftp.transfer.executor import TransferExecutor, create_executor
from gitftp.utils.identity import deploy_identity
from gitftp.utils.paths import relative_to

if TYPE_CHECKING:
    from gitftp.output.console import Console


class Action(str, Enum):
    """Engine actions."""

    INIT = "init"
    PUSH = "push"
    CATCHUP = "catchup"
    SHOW = "show"
    LOG = "log"


class DeployStatus(str, Enum):
    """How a run ended."""

    DEPLOYED = "deployed"
    NOTHING_TO_DO = "nothing_to_do"
    ALREADY_RUNNING = "already_running"
    ABORTED = "aborted"
    ERROR = "error"


@dataclass(frozen=True)
class DeployOptions:
    """Per-run switches."""

    dry_run: bool = False
    force: bool = False
    all_files: bool = False
    interactive: bool = True

    def for_nested_unit(self) -> DeployOptions:
        """Submodules inherit dry-run and all-files, and never ask."""
        return replace(self, force=True, interactive=False)


@dataclass
class DeployResult:
    """Result of one engine action."""

    action: Action
    status: DeployStatus
    revision: Optional[str] = None
    previous_revision: Optional[str] = None
    uploaded: list[str] = field(default_factory=list)
    deleted: list[str] = field(default_factory=list)
    failed_deletions: list[str] = field(default_factory=list)
    nested: dict[str, DeployResult] = field(default_factory=dict)
    error: Optional[GitFtpError] = None

    @property
    def exit_code(self) -> int:
        if self.error is not None:
            return int(self.error.exit_code)
        return int(ExitCode.OK)


ExecutorFactory = Callable[..., TransferExecutor]


def _marker_message(revision: str, dry_run: bool) -> str:
    if dry_run:
        return f"Dry run, would set marker to {revision}"
    return f"Marker set to {revision}"


class DeployEngine:
    """
    Deployment pipeline for one repository and one remote target.

    The engine never prints or exits on its own: diagnostics go to the
    injected console and failures are raised as GitFtpError subclasses.
    """

    def __init__(
        self,
        settings: ResolvedSettings,
        repo: GitRepository,
        console: Console,
        *,
        executor: Optional[TransferExecutor] = None,
        executor_factory: ExecutorFactory = create_executor,
        lock_path: Optional[Path] = None,
        submodules: Optional[SubmoduleController] = None,
    ):
        """
        Initialize deploy engine.

        Args:
            settings: Resolved settings for this run.
            repo: Repository to deploy from.
            console: Diagnostics sink.
            executor: Already open executor to use (submodules share their
                parent's connection); not closed by the engine.
            executor_factory: Builds an executor when none is given.
            lock_path: Local lock file (defaults to one inside the git dir).
            submodules: Submodule controller (built from repo when None).
        """
        self.settings = settings
        self.repo = repo
        self.console = console
        self._executor = executor
        self._executor_factory = executor_factory
        self._lock_path = lock_path
        self.submodules = submodules or SubmoduleController(repo, settings, console, engine_factory=type(self))

    # Helpers

    @property
    def lock_path(self) -> Path:
        if self._lock_path is None:
            self._lock_path = self.repo.git_dir / LOCAL_LOCK_FILE
        return self._lock_path

    def _open_executor(self, options: DeployOptions):
        if self._executor is not None:
            return nullcontext(self._executor)
        return self._executor_factory(self.settings, dry_run=options.dry_run, console=self.console)

    def _check_preconditions(self) -> None:
        """
        Raises:
            GitError: Not inside a repository, or git too old.
            DirtyRepositoryError: Uncommitted changes in tracked files.
        """
        if not self.repo.is_inside_repository():
            raise GitError(f"Not a git repository: {self.repo.root}")
        self.repo.check_version()
        if self.repo.is_dirty():
            raise DirtyRepositoryError("Dirty repository: having uncommitted changes, commit or stash them first")

    def _remote_path(self, path: str) -> str:
        return relative_to(path, self.settings.syncroot)

    def _resolve(self, deployed: Optional[str], current: str, options: DeployOptions) -> Optional[ChangeSet]:
        """
        Changeset from deployed to current.

        Returns:
            None if the user declined a full upload.
        """
        rules = dict(
            syncroot=self.settings.syncroot,
            ignore_rules=IgnoreRules.from_lines(self.settings.ignore_patterns),
            include_rules=IncludeRules.from_lines(self.settings.include_patterns),
            current_revision=current,
        )
        try:
            return resolve_changeset(self.repo, deployed, full_sync=options.all_files, **rules)
        except UnknownRevisionError as e:
            if options.force:
                self.console.warning(f"{e.message}. Uploading all files")
            elif not options.interactive:
                raise
            elif not self.console.confirm(f"{e.message}. Upload all files?"):
                return None
        return resolve_changeset(self.repo, deployed, full_sync=True, **rules)

    def _transfer(
        self,
        changeset: ChangeSet,
        executor: TransferExecutor,
        options: DeployOptions,
        result: DeployResult,
    ) -> None:
        """Uploads (submodules in place), then deletions, then emptied directories."""
        for entry in changeset.uploads:
            if self.submodules.is_nested_unit(entry.path):
                result.nested[entry.path] = self.submodules.sync_nested_unit(entry.path, executor, options)
                continue

            remote = self._remote_path(entry.path)
            try:
                data = self.repo.read_file(entry.path)
            except OSError as e:
                raise UploadError(f"Cannot read {entry.path}: {e}", remote) from e
            executor.upload(data, remote)
            result.uploaded.append(entry.path)

        for entry in changeset.deletions:
            if executor.remove(self._remote_path(entry.path)):
                result.deleted.append(entry.path)
            else:
                result.failed_deletions.append(entry.path)

        for directory in changeset.directories_to_prune():
            remote = self._remote_path(directory)
            if remote:
                executor.remove_directory_if_empty(remote)

    def _deploy(self, action: Action, options: DeployOptions) -> DeployResult:
        self._check_preconditions()
        result = DeployResult(action=action, status=DeployStatus.DEPLOYED)

        try:
            with LocalLock(self.lock_path), self._open_executor(options) as executor:
                store = StateStore(executor)
                current = self.repo.current_revision()
                result.revision = current

                marker = store.read_marker()
                if action == Action.INIT and marker is not None:
                    raise MarkerExistsError(
                        f"Commit {marker.revision} found on remote, use 'gitftp push' to deploy changes"
                    )
                if action == Action.PUSH and marker is None:
                    raise MarkerNotFoundError(
                        "Could not get last commit from remote, use 'gitftp init' for the initial push"
                    )
                deployed = marker.revision if marker else None
                result.previous_revision = deployed

                changeset = self._resolve(deployed, current, options)
                if changeset is None:
                    self.console.info("Aborted")
                    result.status = DeployStatus.ABORTED
                    return result

                remote_lock = RemoteLockManager(
                    store,
                    enabled=self.settings.remote_lock,
                    identity=deploy_identity(),
                    console=self.console,
                )
                remote_lock.check(current, force=options.force)

                if not changeset and deployed == current:
                    self.console.info("Everything up-to-date")
                    result.status = DeployStatus.NOTHING_TO_DO
                    return result

                if options.dry_run or self.console.verbose_enabled:
                    self.console.print_changeset(changeset, dry_run=options.dry_run)
                self.console.info(f"{len(changeset)} file(s) to sync")

                with remote_lock.held(current):
                    self._transfer(changeset, executor, options, result)
                    store.write_marker(current)
        except AlreadyRunningError as e:
            self.console.info(str(e))
            return DeployResult(action=action, status=DeployStatus.ALREADY_RUNNING)

        if not changeset:
            result.status = DeployStatus.NOTHING_TO_DO
            self.console.success(_marker_message(current, options.dry_run))
        elif options.dry_run:
            self.console.success(f"Dry run, would have deployed {current}")
        else:
            self.console.success(f"Deployed {current}")
        return result

    # Actions

    def init(self, options: Optional[DeployOptions] = None) -> DeployResult:
        """
        First deployment: upload every tracked file and write the marker.

        Raises:
            MarkerExistsError: The target was already deployed.
            GitFtpError: Any other failure.
        """
        return self._deploy(Action.INIT, options or DeployOptions())

    def push(self, options: Optional[DeployOptions] = None) -> DeployResult:
        """
        Incremental deployment since the revision in the remote marker.

        Raises:
            MarkerNotFoundError: The target was never deployed.
            GitFtpError: Any other failure.
        """
        return self._deploy(Action.PUSH, options or DeployOptions())

    def catchup(self, options: Optional[DeployOptions] = None) -> DeployResult:
        """Record the current revision as deployed without transferring files."""
        options = options or DeployOptions()
        self._check_preconditions()

        try:
            with LocalLock(self.lock_path), self._open_executor(options) as executor:
                current = self.repo.current_revision()
                StateStore(executor).write_marker(current)
        except AlreadyRunningError as e:
            self.console.info(str(e))
            return DeployResult(action=Action.CATCHUP, status=DeployStatus.ALREADY_RUNNING)

        self.console.success(_marker_message(current, options.dry_run))
        return DeployResult(action=Action.CATCHUP, status=DeployStatus.DEPLOYED, revision=current)

    def deployed_revision(self) -> str:
        """
        Revision recorded in the remote marker.

        Raises:
            MarkerNotFoundError: No marker on the remote.
        """
        with self._open_executor(DeployOptions()) as executor:
            marker = StateStore(executor).read_marker()
        if marker is None:
            raise MarkerNotFoundError("Could not get last commit from remote, nothing deployed yet")
        return marker.revision

    def show(self) -> str:
        """Show the deployed revision with git show."""
        revision = self.deployed_revision()
        self.repo.show(revision)
        return revision

    def log(self) -> str:
        """Show history up to the deployed revision with git log."""
        revision = self.deployed_revision()
        self.repo.log(revision)
        return revision


def run_action(
    engine: DeployEngine,
    action: Action,
    options: Optional[DeployOptions] = None,
) -> DeployResult:
    """
    Run an engine action and fold failures into the result.

    Returns:
        DeployResult; status ERROR carries the exception and its exit code.
    """
    try:
        if action == Action.SHOW:
            return DeployResult(action=action, status=DeployStatus.NOTHING_TO_DO, revision=engine.show())
        if action == Action.LOG:
            return DeployResult(action=action, status=DeployStatus.NOTHING_TO_DO, revision=engine.log())
        handlers = {
            Action.INIT: engine.init,
            Action.PUSH: engine.push,
            Action.CATCHUP: engine.catchup,
        }
        return handlers[action](options)
    except GitFtpError as e:
        engine.console.error(e.message)
        return DeployResult(action=action, status=DeployStatus.ERROR, error=e)
