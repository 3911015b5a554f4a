# gitftp Transfer Target
# Remote endpoint parsed once from the deployment URL

from __future__ import annotations

from dataclasses import dataclass, replace
from enum import Enum
from urllib.parse import unquote, urlsplit

from gitftp.errors import UnknownProtocolError, UsageError
from gitftp.utils.paths import join_remote


class Protocol(str, Enum):
    """Supported transfer protocols."""

    FTP = "ftp"
    FTPS = "ftps"  # implicit TLS
    FTPES = "ftpes"  # explicit TLS (AUTH TLS)
    SFTP = "sftp"

    @property
    def default_port(self) -> int:
        return _DEFAULT_PORTS[self]

    @property
    def uses_tls(self) -> bool:
        return self in (Protocol.FTPS, Protocol.FTPES)


_DEFAULT_PORTS = {
    Protocol.FTP: 21,
    Protocol.FTPS: 990,
    Protocol.FTPES: 21,
    Protocol.SFTP: 22,
}


@dataclass(frozen=True)
class TransferTarget:
    """
    Where files go.

    base_path is already in the form the protocol expects: relative to
    the login directory for FTP (absolute when the URL used //), and
    absolute for SFTP unless the URL used ~.
    """

    protocol: Protocol
    host: str
    port: int
    base_path: str = ""

    def __str__(self) -> str:
        return f"{self.protocol.value}://{self.host}:{self.port}/{self.base_path.lstrip('/')}"

    def remote_path(self, path: str = "") -> str:
        """Full remote path of a path relative to the deployment root."""
        return join_remote(self.base_path, path)

    def scoped(self, subpath: str) -> TransferTarget:
        """Target rooted at subpath below this one."""
        return replace(self, base_path=self.remote_path(subpath))


def _normalize_base_path(protocol: Protocol, path: str) -> str:
    path = unquote(path)
    if protocol == Protocol.SFTP:
        if path.startswith("/~/") or path == "/~":
            return path[3:].strip("/")
        return "/" + path.strip("/") if path.strip("/") else ""
    # ftp://host//abs/path is absolute, ftp://host/rel/path is relative to login dir
    if path.startswith("//"):
        return "/" + path.strip("/")
    return path.strip("/")


def parse_url(url: str) -> TransferTarget:
    """
    Parse a deployment URL.

    A URL without scheme is FTP. User and password embedded in the URL
    are ignored here; settings resolution picks them up.

    Raises:
        UnknownProtocolError: If the scheme is not supported.
        UsageError: If host or port are invalid.
    """
    if "://" not in url:
        url = f"ftp://{url}"

    parts = urlsplit(url)
    try:
        protocol = Protocol(parts.scheme.lower())
    except ValueError:
        raise UnknownProtocolError(f"Protocol unknown '{parts.scheme}'")

    if not parts.hostname:
        raise UsageError(f"No host in URL '{url}'")

    try:
        port = parts.port or protocol.default_port
    except ValueError:
        raise UsageError(f"Invalid port in URL '{url}'")

    return TransferTarget(
        protocol=protocol,
        host=parts.hostname,
        port=port,
        base_path=_normalize_base_path(protocol, parts.path),
    )
