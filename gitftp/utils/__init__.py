# gitftp Utilities Module
# Helper functions for path handling and remote identity

from gitftp.utils.identity import deploy_identity
from gitftp.utils.paths import (
    is_under,
    join_remote,
    matches_any_pattern,
    matches_pattern,
    parent_directories,
    relative_to,
)

__all__ = [
    # Identity
    "deploy_identity",
    # Paths
    "is_under",
    "join_remote",
    "matches_pattern",
    "matches_any_pattern",
    "parent_directories",
    "relative_to",
]
