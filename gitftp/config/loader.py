# gitftp Configuration Loader
# Load, save and layer YAML configuration into resolved settings

import os
from pathlib import Path
from typing import Any, Optional
from urllib.parse import unquote, urlsplit

import yaml
from pydantic import ValidationError

from gitftp.config.defaults import (
    CONFIG_ENV_VAR,
    CONFIG_FILE_NAME,
    CONFIG_HEADER,
    DEFAULT_CONFIG,
    DEFAULT_SETTINGS,
    IGNORE_FILE,
    INCLUDE_FILE,
)
from gitftp.config.schema import SCOPE_NAME_PATTERN, GitFtpConfig, ResolvedSettings, ScopeConfig
from gitftp.errors import MissingArgumentError, UsageError


def get_config_path(git_dir: Path) -> Path:
    """Get the path to the configuration file of a repository."""
    # Allow override via environment variable
    env_path = os.environ.get(CONFIG_ENV_VAR)
    if env_path:
        return Path(env_path).expanduser()
    return git_dir / CONFIG_FILE_NAME


def load_config(config_path: Path) -> GitFtpConfig:
    """
    Load configuration from YAML file.

    A missing file is an empty configuration: everything can come
    from the command line.

    Raises:
        UsageError: If the file is not valid YAML or fails validation.
    """
    if not config_path.exists():
        return GitFtpConfig()

    try:
        with open(config_path, encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise UsageError(f"Invalid YAML syntax in {config_path}: {e}")

    if data is None:
        data = {}

    try:
        return GitFtpConfig.model_validate(data)
    except ValidationError as e:
        problems = []
        for error in e.errors():
            loc = " -> ".join(str(part) for part in error["loc"])
            problems.append(f"{loc}: {error['msg']}")
        raise UsageError(f"Invalid configuration {config_path}: " + "; ".join(problems))


def save_config(config: GitFtpConfig, config_path: Path) -> Path:
    """Save configuration to YAML file."""
    config_path.parent.mkdir(parents=True, exist_ok=True)

    data = config.model_dump(exclude_none=True, mode="json")

    with open(config_path, "w", encoding="utf-8") as f:
        f.write(CONFIG_HEADER)
        yaml.dump(data, f, default_flow_style=False, sort_keys=False, allow_unicode=True)

    return config_path


def add_scope(name: str, url: str, config_path: Path) -> GitFtpConfig:
    """
    Add a scope (or replace its URL) and save.

    Raises:
        UsageError: If the scope name is invalid.
        MissingArgumentError: If url is empty.
    """
    if not name or not SCOPE_NAME_PATTERN.match(name):
        raise UsageError(f"Invalid scope name: {name!r}")
    if not url:
        raise MissingArgumentError("Scope URL not set")

    if config_path.exists():
        config = load_config(config_path)
    else:
        config = GitFtpConfig.model_validate(DEFAULT_CONFIG)
    scope = config.scopes.get(name, ScopeConfig())
    config.scopes[name] = scope.model_copy(update={"url": url})
    save_config(config, config_path)
    return config


def remove_scope(name: str, config_path: Path) -> GitFtpConfig:
    """
    Remove a scope and save.

    Raises:
        UsageError: If the scope doesn't exist.
    """
    config = load_config(config_path)

    if name not in config.scopes:
        raise UsageError(f"Scope '{name}' not found in configuration")

    del config.scopes[name]
    save_config(config, config_path)
    return config


def read_rules_file(path: Path) -> tuple[str, ...]:
    """Read a rules file (ignore or include) as raw lines."""
    if not path.is_file():
        return ()
    return tuple(path.read_text(encoding="utf-8").splitlines())


def _url_credentials(url: str) -> dict[str, str]:
    """Extract user and password embedded in a URL."""
    parts = urlsplit(url if "://" in url else f"ftp://{url}")
    credentials = {}
    if parts.username:
        credentials["user"] = unquote(parts.username)
    if parts.password:
        credentials["password"] = unquote(parts.password)
    return credentials


def resolve_settings(
    config: GitFtpConfig,
    *,
    scope: Optional[str] = None,
    overrides: Optional[dict[str, Any]] = None,
    repo_root: Optional[Path] = None,
) -> ResolvedSettings:
    """
    Layer configuration into the settings for one run.

    Precedence, lowest first: built-in defaults, URL credentials,
    the `defaults` section, the selected scope, overrides.

    Args:
        config: Loaded configuration.
        scope: Optional scope name.
        overrides: Command-line values; None values are ignored.
        repo_root: Repository root to read ignore/include files from.

    Raises:
        UsageError: If scope is not defined.
        MissingArgumentError: If no URL is set anywhere.
    """
    layers: list[dict[str, Any]] = [config.defaults.model_dump(exclude_none=True)]

    if scope:
        scope_config = config.get_scope(scope)
        if scope_config is None:
            raise UsageError(f"Scope '{scope}' not found in configuration")
        layers.append(scope_config.model_dump(exclude_none=True))

    layers.append({k: v for k, v in (overrides or {}).items() if v is not None})

    merged: dict[str, Any] = {}
    for layer in layers:
        merged.update(layer)

    url = merged.get("url")
    if not url:
        raise MissingArgumentError("Remote host not set. Pass a URL or select a scope with a URL")

    resolved: dict[str, Any] = {**DEFAULT_SETTINGS, **_url_credentials(url), **merged, "scope": scope}

    if repo_root is not None:
        resolved["ignore_patterns"] = read_rules_file(repo_root / IGNORE_FILE)
        resolved["include_patterns"] = read_rules_file(repo_root / INCLUDE_FILE)

    return ResolvedSettings.model_validate(resolved)
