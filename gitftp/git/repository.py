# gitftp Git Repository
# Version-control query surface bound to one working tree

from pathlib import Path
from typing import Optional

from gitftp.errors import GitError
from gitftp.git import operations


class GitRepository:
    """
    A git working tree the deployment engine reads from.

    All queries run against `root`, so a submodule checkout is simply
    another GitRepository rooted at the mount point.
    """

    def __init__(self, root: Path):
        self.root = Path(root)

    @classmethod
    def discover(cls, path: Optional[Path] = None) -> "GitRepository":
        """
        Find the repository containing path.

        Raises:
            GitError: If path is not inside a git repository.
        """
        root = operations.get_repo_root(path)
        if root is None:
            raise GitError("Not a git repository (or any of the parent directories)")
        return cls(root)

    def __repr__(self) -> str:
        return f"GitRepository({str(self.root)!r})"

    @property
    def git_dir(self) -> Path:
        return operations.get_git_dir(self.root)

    def is_inside_repository(self) -> bool:
        return operations.is_git_repo(self.root)

    def check_version(self) -> None:
        """
        Raises:
            GitError: If the installed git is too old.
        """
        operations.check_git_version()

    def is_dirty(self) -> bool:
        return operations.has_uncommitted_changes(self.root)

    def current_revision(self) -> str:
        return operations.get_head_revision(self.root)

    def revision_exists(self, revision: str) -> bool:
        return operations.revision_exists(revision, self.root)

    def diff(self, from_revision: str, to_revision: str, scope: str = "") -> list[tuple[str, str]]:
        return operations.diff_name_status(from_revision, to_revision, scope, self.root)

    def list_files(self, scope: str = "") -> list[str]:
        return operations.list_files(scope, self.root)

    def list_submodules(self) -> list[str]:
        return operations.list_submodules(self.root)

    def is_checked_out(self) -> bool:
        """True if root is the top of its own work tree, not a directory inside another one."""
        if not self.root.is_dir():
            return False
        top = operations.get_repo_root(self.root)
        return top is not None and top.resolve() == self.root.resolve()

    def submodule(self, path: str) -> "GitRepository":
        """Repository checked out at a submodule mount point."""
        return GitRepository(self.root / path)

    def file_exists(self, path: str) -> bool:
        return (self.root / path).is_file()

    def list_working_files(self, directory: str) -> list[str]:
        """List files below a working-tree directory, tracked or not."""
        base = self.root / directory
        if not base.is_dir():
            return []
        return sorted(p.relative_to(self.root).as_posix() for p in base.rglob("*") if p.is_file())

    def read_file(self, path: str) -> bytes:
        """Read a file from the working tree."""
        return (self.root / path).read_bytes()

    def show(self, revision: str) -> int:
        return operations.show_revision(revision, self.root)

    def log(self, revision: str) -> int:
        return operations.log_revision(revision, self.root)
