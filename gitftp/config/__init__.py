# gitftp Configuration Module
# Handles YAML-based configuration loading, validation, and defaults

from gitftp.config.defaults import DEFAULT_CONFIG
from gitftp.config.loader import (
    add_scope,
    get_config_path,
    load_config,
    remove_scope,
    resolve_settings,
    save_config,
)
from gitftp.config.schema import GitFtpConfig, ResolvedSettings, ScopeConfig

__all__ = [
    # Schema
    "GitFtpConfig",
    "ScopeConfig",
    "ResolvedSettings",
    # Loader
    "load_config",
    "save_config",
    "get_config_path",
    "resolve_settings",
    "add_scope",
    "remove_scope",
    # Defaults
    "DEFAULT_CONFIG",
]
