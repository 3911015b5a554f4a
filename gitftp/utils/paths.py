# gitftp Path Utilities
# Pattern matching and remote (POSIX) path helpers

import fnmatch
from pathlib import PurePosixPath


def matches_pattern(path: str, pattern: str) -> bool:
    """
    Check if path matches a glob pattern.

    Supports:
    - * for any characters, including /
    - ** for any path components
    - ? for single character

    A pattern naming a directory (trailing /) matches everything below it.

    Args:
        path: Repo-relative path to check.
        pattern: Glob pattern.

    Returns:
        True if path matches pattern.
    """
    pattern = pattern.lstrip("/")

    if pattern.endswith("/"):
        return path.startswith(pattern) or fnmatch.fnmatch(path, f"{pattern}*")

    # Handle ** patterns specially
    if "**" in pattern:
        parts = pattern.split("**")
        if len(parts) == 2:
            prefix, suffix = parts
            if prefix and not fnmatch.fnmatch(path, f"{prefix}*"):
                return False
            if suffix:
                suffix = suffix.lstrip("/")
                if not fnmatch.fnmatch(path, f"*{suffix}"):
                    return False
            return True

    return fnmatch.fnmatch(path, pattern)


def matches_any_pattern(path: str, patterns: list[str]) -> bool:
    """Check if path matches any of the given patterns."""
    return any(matches_pattern(path, p) for p in patterns)


def is_under(path: str, directory: str) -> bool:
    """Check if path equals directory or lies below it."""
    directory = directory.strip("/")
    if not directory:
        return True
    return path == directory or path.startswith(directory + "/")


def relative_to(path: str, directory: str) -> str:
    """
    Strip directory from the front of path.

    Raises:
        ValueError: If path is not under directory.
    """
    directory = directory.strip("/")
    if not directory:
        return path
    if not is_under(path, directory):
        raise ValueError(f"{path!r} is not under {directory!r}")
    return path[len(directory) + 1 :]


def parent_directories(path: str) -> list[str]:
    """
    List the parent directories of path, deepest first.

    >>> parent_directories("a/b/c.txt")
    ['a/b', 'a']
    """
    parents = [str(p) for p in PurePosixPath(path).parents]
    return [p for p in parents if p != "."]


def join_remote(*parts: str) -> str:
    """Join remote path fragments with single slashes, keeping a leading slash."""
    leading = parts[0].startswith("/") if parts and parts[0] else False
    joined = "/".join(p.strip("/") for p in parts if p and p.strip("/"))
    return f"/{joined}" if leading else joined
