# gitftp Changeset Resolver
# Computes which paths to upload and delete between two revisions

from __future__ import annotations

from collections.abc import Iterable, Iterator
from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, Optional

from gitftp.config.defaults import BUILTIN_IGNORES
from gitftp.errors import UnknownRevisionError
from gitftp.utils.paths import is_under, matches_any_pattern, parent_directories

if TYPE_CHECKING:
    from gitftp.git.repository import GitRepository

Revision = str


class ChangeKind(str, Enum):
    """What happens to a path on the remote side."""

    ADDED = "added"
    MODIFIED = "modified"
    DELETED = "deleted"


# git diff --name-status letters; others (U, X) are never deployable
_STATUS_KINDS: dict[str, ChangeKind] = {
    "A": ChangeKind.ADDED,
    "M": ChangeKind.MODIFIED,
    "T": ChangeKind.MODIFIED,
    "D": ChangeKind.DELETED,
}


@dataclass(frozen=True)
class ChangeEntry:
    """A single path-level change."""

    path: str
    kind: ChangeKind

    @property
    def is_upload(self) -> bool:
        return self.kind in (ChangeKind.ADDED, ChangeKind.MODIFIED)

    @property
    def is_delete(self) -> bool:
        return self.kind == ChangeKind.DELETED


class ChangeSet:
    """
    Ordered, path-unique sequence of changes.

    Iteration order is transfer order: uploads by path, then deletions
    by path. Directories emptied by deletions are reported separately by
    directories_to_prune() so they are only touched after their files.
    """

    def __init__(self, entries: Iterable[ChangeEntry] = ()):
        unique: dict[str, ChangeEntry] = {}
        for entry in entries:
            unique.setdefault(entry.path, entry)

        self.uploads: list[ChangeEntry] = sorted(
            (e for e in unique.values() if e.is_upload), key=lambda e: e.path
        )
        self.deletions: list[ChangeEntry] = sorted(
            (e for e in unique.values() if e.is_delete), key=lambda e: e.path
        )

    def __iter__(self) -> Iterator[ChangeEntry]:
        yield from self.uploads
        yield from self.deletions

    def __len__(self) -> int:
        return len(self.uploads) + len(self.deletions)

    def __bool__(self) -> bool:
        return len(self) > 0

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, ChangeSet):
            return NotImplemented
        return list(self) == list(other)

    def __repr__(self) -> str:
        return f"ChangeSet(uploads={len(self.uploads)}, deletions={len(self.deletions)})"

    @property
    def paths(self) -> list[str]:
        return [entry.path for entry in self]

    def directories_to_prune(self) -> list[str]:
        """
        Parent directories of deleted files that may now be empty.

        Deepest first, and never a directory that also receives an upload
        in this changeset.
        """
        kept: set[str] = set()
        for entry in self.uploads:
            kept.update(parent_directories(entry.path))

        candidates: set[str] = set()
        for entry in self.deletions:
            candidates.update(parent_directories(entry.path))

        return sorted(candidates - kept, key=lambda d: (-d.count("/"), d))


class IgnoreRules:
    """Glob patterns from the ignore file; matching paths are never transferred."""

    def __init__(self, patterns: Iterable[str] = ()):
        self.patterns: list[str] = list(BUILTIN_IGNORES) + list(patterns)

    @classmethod
    def from_lines(cls, lines: Iterable[str]) -> IgnoreRules:
        """Parse ignore file lines, skipping blanks and # comments."""
        patterns = []
        for line in lines:
            line = line.strip()
            if not line or line.startswith("#"):
                continue
            patterns.append(line)
        return cls(patterns)

    def matches(self, path: str) -> bool:
        return matches_any_pattern(path, self.patterns)


@dataclass(frozen=True)
class IncludeRule:
    """
    Upload target (usually untracked build output) when source changes.

    A rule without source is uploaded on every non-empty deployment.
    """

    target: str
    source: Optional[str] = None

    @classmethod
    def parse(cls, line: str) -> Optional[IncludeRule]:
        line = line.strip()
        if not line or line.startswith("#"):
            return None
        if line.startswith("!"):
            return cls(target=line[1:].strip().strip("/"))
        target, sep, source = line.partition(":")
        if not sep:
            return cls(target=target.strip().strip("/"))
        return cls(target=target.strip().strip("/"), source=source.strip().strip("/"))

    @property
    def always(self) -> bool:
        return self.source is None

    def triggered_by(self, paths: Iterable[str]) -> bool:
        if self.always:
            return True
        return any(is_under(path, self.source) for path in paths)


class IncludeRules:
    """Rules from the include file."""

    def __init__(self, rules: Iterable[IncludeRule] = ()):
        self.rules: list[IncludeRule] = list(rules)

    @classmethod
    def from_lines(cls, lines: Iterable[str]) -> IncludeRules:
        parsed = (IncludeRule.parse(line) for line in lines)
        return cls(rule for rule in parsed if rule is not None)

    def __bool__(self) -> bool:
        return bool(self.rules)

    def targets_for(self, changed_paths: list[str], *, full_sync: bool) -> list[str]:
        """Targets to upload given the paths already in the changeset."""
        if not changed_paths and not full_sync:
            return []
        return [rule.target for rule in self.rules if full_sync or rule.triggered_by(changed_paths)]


def _expand_targets(repo: GitRepository, targets: list[str]) -> list[str]:
    """Expand directory targets into the files below them in the working tree."""
    files: list[str] = []
    for target in targets:
        if repo.file_exists(target):
            files.append(target)
        else:
            files.extend(repo.list_working_files(target))
    return files


def resolve_changeset(
    repo: GitRepository,
    deployed_revision: Optional[Revision],
    *,
    full_sync: bool = False,
    syncroot: str = "",
    ignore_rules: Optional[IgnoreRules] = None,
    include_rules: Optional[IncludeRules] = None,
    current_revision: Optional[Revision] = None,
) -> ChangeSet:
    """
    Compute the changes needed to bring the remote from deployed_revision
    to the current revision.

    Args:
        repo: Repository to query.
        deployed_revision: Revision recorded in the remote marker, or None.
        full_sync: Take every tracked file regardless of deployed_revision.
        syncroot: Only consider paths under this repository directory.
        ignore_rules: Paths to drop entirely.
        include_rules: Extra (untracked) files to upload.
        current_revision: Target revision (defaults to HEAD).

    Returns:
        ChangeSet with repo-relative paths.

    Raises:
        UnknownRevisionError: If deployed_revision is not in the local history.
    """
    ignore_rules = ignore_rules or IgnoreRules()
    entries: list[ChangeEntry] = []

    if full_sync or not deployed_revision:
        entries = [ChangeEntry(path, ChangeKind.ADDED) for path in repo.list_files(syncroot)]
    else:
        if not repo.revision_exists(deployed_revision):
            raise UnknownRevisionError(deployed_revision)

        current = current_revision or repo.current_revision()
        if current != deployed_revision:
            for status, path in repo.diff(deployed_revision, current, syncroot):
                kind = _STATUS_KINDS.get(status)
                if kind is not None:
                    entries.append(ChangeEntry(path, kind))

    changeset = ChangeSet(e for e in entries if is_under(e.path, syncroot) and not ignore_rules.matches(e.path))

    if include_rules:
        targets = include_rules.targets_for(changeset.paths, full_sync=full_sync or not deployed_revision)
        included = [
            ChangeEntry(path, ChangeKind.MODIFIED)
            for path in _expand_targets(repo, targets)
            if is_under(path, syncroot) and not ignore_rules.matches(path)
        ]
        changeset = ChangeSet([*changeset, *included])

    return changeset
