# gitftp Configuration Schema
# Pydantic models for YAML configuration validation

import re
from pathlib import Path
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

SCOPE_NAME_PATTERN = re.compile(r"^[A-Za-z0-9_-]+$")


class ScopeConfig(BaseModel):
    """One settings layer: the `defaults` section or a named scope."""

    url: Optional[str] = Field(default=None, description="Remote URL")
    user: Optional[str] = Field(default=None, description="Login name")
    password: Optional[str] = Field(default=None, description="Login password")
    syncroot: Optional[str] = Field(default=None, description="Repository subdirectory to deploy")
    remote_lock: Optional[bool] = Field(default=None, description="Use the remote deployment lock")
    active_mode: Optional[bool] = Field(default=None, description="Use active FTP")
    retries: Optional[int] = Field(default=None, ge=0, description="Retries per transfer")
    insecure: Optional[bool] = Field(default=None, description="Skip certificate and host key checks")
    cacert: Optional[str] = Field(default=None, description="CA bundle for FTPS/FTPES")
    key: Optional[str] = Field(default=None, description="SFTP private key file")
    timeout: Optional[float] = Field(default=None, gt=0, description="Socket timeout in seconds")

    @field_validator("cacert", "key")
    @classmethod
    def expand_optional_paths(cls, v: Optional[str]) -> Optional[str]:
        """Expand ~ in optional paths."""
        if v is None:
            return None
        return str(Path(v).expanduser())


class GitFtpConfig(BaseModel):
    """Root configuration model."""

    defaults: ScopeConfig = Field(default_factory=ScopeConfig, description="Settings for every run")
    scopes: dict[str, ScopeConfig] = Field(default_factory=dict, description="Named setting overrides")

    @field_validator("scopes")
    @classmethod
    def check_scope_names(cls, v: dict[str, ScopeConfig]) -> dict[str, ScopeConfig]:
        for name in v:
            if not SCOPE_NAME_PATTERN.match(name):
                raise ValueError(f"Invalid scope name: {name!r}")
        return v

    def get_scope(self, name: str) -> Optional[ScopeConfig]:
        """Get a scope by name."""
        return self.scopes.get(name)


class ResolvedSettings(BaseModel):
    """
    Settings for one run, after layering defaults, scope and overrides.

    Immutable: the engine and everything below it only read it.
    """

    model_config = ConfigDict(frozen=True)

    url: str
    user: str = ""
    password: str = ""
    syncroot: str = ""
    ignore_patterns: tuple[str, ...] = ()
    include_patterns: tuple[str, ...] = ()
    remote_lock: bool = False
    active_mode: bool = False
    retries: int = Field(default=3, ge=0)
    insecure: bool = False
    cacert: Optional[str] = None
    key: Optional[str] = None
    timeout: float = 30.0
    scope: Optional[str] = None

    @field_validator("syncroot")
    @classmethod
    def normalize_syncroot(cls, v: str) -> str:
        v = v.strip().strip("/")
        return "" if v == "." else v
