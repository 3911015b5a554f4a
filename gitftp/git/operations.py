# gitftp Git Operations
# Git command execution and repository queries

import re
import subprocess
from pathlib import Path
from typing import Optional

from gitftp.errors import GitError

MINIMUM_GIT_VERSION = (1, 7)

# git ls-files --stage mode for gitlinks (submodule mount points)
GITLINK_MODE = "160000"


def _run_git(
    *args: str,
    cwd: Optional[Path] = None,
    check: bool = True,
    capture_output: bool = True,
) -> subprocess.CompletedProcess[str]:
    """
    Run a git command.

    Args:
        *args: Git command arguments.
        cwd: Working directory.
        check: Whether to raise on non-zero exit.
        capture_output: Whether to capture stdout/stderr.

    Returns:
        CompletedProcess with result.

    Raises:
        GitError: If command fails and check is True.
    """
    cmd = ["git", *args]
    try:
        result = subprocess.run(
            cmd,
            cwd=cwd,
            check=False,
            capture_output=capture_output,
            text=True,
            # Paths that are not valid UTF-8 round-trip through os.fsencode
            encoding="utf-8",
            errors="surrogateescape",
        )
        if check and result.returncode != 0:
            raise GitError(
                f"Git command failed: {' '.join(cmd)}",
                returncode=result.returncode,
                stderr=result.stderr.strip() if result.stderr else "",
            )
        return result
    except FileNotFoundError:
        raise GitError("git command not found. Is git installed?")


def get_repo_root(path: Optional[Path] = None) -> Optional[Path]:
    """
    Get the root directory of a git repository.

    Args:
        path: Starting path (defaults to current directory).

    Returns:
        Path to repo root, or None if not in a repo.
    """
    try:
        result = _run_git("rev-parse", "--show-toplevel", cwd=path)
        return Path(result.stdout.strip())
    except GitError:
        return None


def is_git_repo(path: Optional[Path] = None) -> bool:
    """Check if path is within a git repository."""
    return get_repo_root(path) is not None


def get_git_dir(path: Optional[Path] = None) -> Path:
    """
    Get the .git directory of the repository containing path.

    Submodule checkouts report their gitdir under the parent's
    .git/modules, which is why this asks git instead of guessing.
    """
    result = _run_git("rev-parse", "--git-dir", cwd=path)
    git_dir = Path(result.stdout.strip())
    if not git_dir.is_absolute():
        git_dir = (path or Path.cwd()) / git_dir
    return git_dir.resolve()


def get_git_version() -> tuple[int, ...]:
    """
    Get the installed git version.

    Returns:
        Version tuple, e.g. (2, 39, 2).
    """
    result = _run_git("--version")
    match = re.search(r"(\d+(?:\.\d+)+)", result.stdout)
    if not match:
        raise GitError(f"Unable to parse git version: {result.stdout.strip()}")
    return tuple(int(part) for part in match.group(1).split("."))


def check_git_version(minimum: tuple[int, ...] = MINIMUM_GIT_VERSION) -> tuple[int, ...]:
    """
    Ensure the installed git is recent enough.

    Raises:
        GitError: If git is older than minimum.
    """
    version = get_git_version()
    if version < minimum:
        wanted = ".".join(str(v) for v in minimum)
        found = ".".join(str(v) for v in version)
        raise GitError(f"git {wanted} or newer is required, found {found}")
    return version


def has_uncommitted_changes(path: Optional[Path] = None) -> bool:
    """
    Check if tracked files have uncommitted changes.

    Untracked files are not considered, they are never deployed.
    """
    result = _run_git("status", "--porcelain", "--untracked-files=no", cwd=path)
    return len(result.stdout.strip()) > 0


def get_head_revision(path: Optional[Path] = None) -> str:
    """Get the commit SHA-1 of HEAD."""
    result = _run_git("rev-parse", "HEAD", cwd=path)
    return result.stdout.strip()


def revision_exists(revision: str, path: Optional[Path] = None) -> bool:
    """Check whether revision names a commit in the local history."""
    if not revision:
        return False
    result = _run_git("cat-file", "-e", f"{revision}^{{commit}}", cwd=path, check=False)
    return result.returncode == 0


def _split_nul(output: str) -> list[str]:
    return [part for part in output.split("\0") if part]


def diff_name_status(
    from_revision: str,
    to_revision: str,
    scope: str = "",
    path: Optional[Path] = None,
) -> list[tuple[str, str]]:
    """
    List paths changed between two revisions.

    Args:
        from_revision: Older revision.
        to_revision: Newer revision.
        scope: Optional pathspec restricting the diff.
        path: Repository path.

    Returns:
        List of (status letter, repo-relative path) in git's path order.
        Renames are reported as a deletion plus an addition.
    """
    args = ["diff", "--name-status", "--no-renames", "-z", from_revision, to_revision]
    if scope:
        args.extend(["--", scope])

    result = _run_git(*args, cwd=path)
    fields = _split_nul(result.stdout)

    changes: list[tuple[str, str]] = []
    for status, filename in zip(fields[0::2], fields[1::2]):
        changes.append((status[0], filename))
    return changes


def list_files(scope: str = "", path: Optional[Path] = None) -> list[str]:
    """
    List tracked files (and submodule mount points) under scope.

    Returns:
        Repo-relative paths.
    """
    args = ["ls-files", "-z"]
    if scope:
        args.extend(["--", scope])
    result = _run_git(*args, cwd=path)
    return _split_nul(result.stdout)


def list_submodules(path: Optional[Path] = None) -> list[str]:
    """
    List submodule mount points from the index.

    Reads gitlink entries instead of running `git submodule`,
    so no network access or .gitmodules parsing is needed.
    """
    result = _run_git("ls-files", "--stage", "-z", cwd=path)

    mounts: list[str] = []
    for entry in _split_nul(result.stdout):
        # Format: <mode> <object> <stage>\t<path>
        meta, _, filename = entry.partition("\t")
        if meta.split(" ", 1)[0] == GITLINK_MODE:
            mounts.append(filename)
    return mounts


def show_revision(revision: str, path: Optional[Path] = None) -> int:
    """
    Display a revision with `git show`, attached to the terminal.

    Returns:
        The exit status of git.
    """
    result = _run_git("show", revision, cwd=path, check=False, capture_output=False)
    return result.returncode


def log_revision(revision: str, path: Optional[Path] = None) -> int:
    """Display history up to revision with `git log`, attached to the terminal."""
    result = _run_git("log", revision, cwd=path, check=False, capture_output=False)
    return result.returncode
