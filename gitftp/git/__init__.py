# gitftp Git Module
# Git queries used to compute what needs deploying

from gitftp.git.operations import (
    check_git_version,
    diff_name_status,
    get_git_dir,
    get_head_revision,
    get_repo_root,
    has_uncommitted_changes,
    is_git_repo,
    list_files,
    list_submodules,
    revision_exists,
)
from gitftp.git.repository import GitRepository

__all__ = [
    "GitRepository",
    "get_repo_root",
    "get_git_dir",
    "is_git_repo",
    "check_git_version",
    "has_uncommitted_changes",
    "get_head_revision",
    "revision_exists",
    "diff_name_status",
    "list_files",
    "list_submodules",
]
