# gitftp Sync Module
# Changeset resolution, deployment state, locking and the deploy engine

from gitftp.sync.changeset import (
    ChangeEntry,
    ChangeKind,
    ChangeSet,
    IgnoreRules,
    IncludeRule,
    IncludeRules,
    resolve_changeset,
)
from gitftp.sync.engine import Action, DeployEngine, DeployOptions, DeployResult, DeployStatus, run_action
from gitftp.sync.locks import AlreadyRunningError, LocalLock, RemoteLockManager
from gitftp.sync.state import DeploymentMarker, RemoteLock, StateStore
from gitftp.sync.submodules import SubmoduleController

__all__ = [
    # Changeset
    "ChangeKind",
    "ChangeEntry",
    "ChangeSet",
    "IgnoreRules",
    "IncludeRule",
    "IncludeRules",
    "resolve_changeset",
    # State
    "DeploymentMarker",
    "RemoteLock",
    "StateStore",
    # Locks
    "AlreadyRunningError",
    "LocalLock",
    "RemoteLockManager",
    # Submodules
    "SubmoduleController",
    # Engine
    "Action",
    "DeployEngine",
    "DeployOptions",
    "DeployResult",
    "DeployStatus",
    "run_action",
]
