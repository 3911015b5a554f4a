# gitftp Transfer Clients
# Protocol clients behind one small file-store interface

from __future__ import annotations

import ftplib
import io
import ssl
from abc import ABC, abstractmethod
from typing import Optional

import paramiko

from gitftp.config.schema import ResolvedSettings
from gitftp.transfer.target import Protocol, TransferTarget
from gitftp.utils.paths import parent_directories


class TransferClient(ABC):
    """
    Minimal remote file store.

    Paths are full remote paths (see TransferTarget.remote_path).
    retrieve() and delete() raise FileNotFoundError for missing files;
    any exception in `errors` is a transport failure worth retrying.
    """

    errors: tuple[type[BaseException], ...] = (OSError,)

    def __init__(self, target: TransferTarget, settings: ResolvedSettings):
        self.target = target
        self.settings = settings

    @property
    @abstractmethod
    def connected(self) -> bool: ...

    @abstractmethod
    def connect(self) -> None: ...

    @abstractmethod
    def close(self) -> None: ...

    @abstractmethod
    def store(self, data: bytes, path: str) -> None: ...

    @abstractmethod
    def retrieve(self, path: str) -> bytes: ...

    @abstractmethod
    def delete(self, path: str) -> None: ...

    @abstractmethod
    def remove_dir(self, path: str) -> None: ...

    @abstractmethod
    def make_dirs(self, path: str) -> None: ...


class ImplicitFTP_TLS(ftplib.FTP_TLS):
    """FTP_TLS whose control connection is wrapped in TLS before the greeting (FTPS)."""

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self._sock = None

    @property
    def sock(self):
        return self._sock

    @sock.setter
    def sock(self, value):
        if value is not None and not isinstance(value, ssl.SSLSocket):
            value = self.context.wrap_socket(value, server_hostname=self.host)
        self._sock = value


def _is_missing(error: ftplib.error_perm) -> bool:
    return str(error).startswith("550")


class FtpClient(TransferClient):
    """FTP, FTPS and FTPES through ftplib."""

    errors = ftplib.all_errors

    def __init__(self, target: TransferTarget, settings: ResolvedSettings):
        super().__init__(target, settings)
        self._ftp: Optional[ftplib.FTP] = None
        self._known_dirs: set[str] = set()

    @property
    def connected(self) -> bool:
        return self._ftp is not None

    def _tls_context(self) -> ssl.SSLContext:
        context = ssl.create_default_context(cafile=self.settings.cacert)
        if self.settings.insecure:
            context.check_hostname = False
            context.verify_mode = ssl.CERT_NONE
        return context

    def connect(self) -> None:
        timeout = self.settings.timeout
        if self.target.protocol == Protocol.FTPS:
            ftp: ftplib.FTP = ImplicitFTP_TLS(context=self._tls_context(), timeout=timeout)
        elif self.target.protocol == Protocol.FTPES:
            ftp = ftplib.FTP_TLS(context=self._tls_context(), timeout=timeout)
        else:
            ftp = ftplib.FTP(timeout=timeout)

        try:
            ftp.connect(self.target.host, self.target.port)
            ftp.login(self.settings.user or "anonymous", self.settings.password)
            if self.target.protocol.uses_tls:
                ftp.prot_p()
            ftp.set_pasv(not self.settings.active_mode)
        except Exception:
            ftp.close()
            raise
        self._ftp = ftp

    def close(self) -> None:
        if self._ftp is None:
            return
        try:
            self._ftp.quit()
        except ftplib.all_errors:
            self._ftp.close()
        finally:
            self._ftp = None
            self._known_dirs.clear()

    def store(self, data: bytes, path: str) -> None:
        self._ftp.storbinary(f"STOR {path}", io.BytesIO(data))

    def retrieve(self, path: str) -> bytes:
        buffer = io.BytesIO()
        try:
            self._ftp.retrbinary(f"RETR {path}", buffer.write)
        except ftplib.error_perm as e:
            if _is_missing(e):
                raise FileNotFoundError(path) from e
            raise
        return buffer.getvalue()

    def delete(self, path: str) -> None:
        try:
            self._ftp.delete(path)
        except ftplib.error_perm as e:
            if _is_missing(e):
                raise FileNotFoundError(path) from e
            raise

    def remove_dir(self, path: str) -> None:
        self._ftp.rmd(path)
        self._known_dirs.discard(path)

    def make_dirs(self, path: str) -> None:
        if not path or path in self._known_dirs:
            return
        for directory in reversed([path, *parent_directories(path)]):
            if directory in ("", "/") or directory in self._known_dirs:
                continue
            try:
                self._ftp.mkd(directory)
            except ftplib.error_perm:
                # Already exists; a real failure shows up on the STOR
                pass
            self._known_dirs.add(directory)


class SftpClient(TransferClient):
    """SFTP through paramiko."""

    errors = (OSError, EOFError, paramiko.SSHException)

    def __init__(self, target: TransferTarget, settings: ResolvedSettings):
        super().__init__(target, settings)
        self._ssh: Optional[paramiko.SSHClient] = None
        self._sftp: Optional[paramiko.SFTPClient] = None

    @property
    def connected(self) -> bool:
        return self._sftp is not None

    def connect(self) -> None:
        client = paramiko.SSHClient()
        client.load_system_host_keys()
        if self.settings.insecure:
            client.set_missing_host_key_policy(paramiko.AutoAddPolicy())
        else:
            client.set_missing_host_key_policy(paramiko.RejectPolicy())

        kw: dict = dict(
            hostname=self.target.host,
            port=self.target.port,
            timeout=self.settings.timeout,
            banner_timeout=self.settings.timeout,
            auth_timeout=self.settings.timeout,
        )
        if self.settings.user:
            kw["username"] = self.settings.user
        if self.settings.key:
            kw["key_filename"] = self.settings.key
        if self.settings.password:
            kw["password"] = self.settings.password

        try:
            client.connect(**kw)
            sftp = client.open_sftp()
        except Exception:
            client.close()
            raise
        self._ssh = client
        self._sftp = sftp

    def close(self) -> None:
        try:
            if self._sftp is not None:
                self._sftp.close()
        finally:
            if self._ssh is not None:
                self._ssh.close()
            self._sftp = None
            self._ssh = None

    def store(self, data: bytes, path: str) -> None:
        self._sftp.putfo(io.BytesIO(data), path)

    def retrieve(self, path: str) -> bytes:
        buffer = io.BytesIO()
        self._sftp.getfo(path, buffer)
        return buffer.getvalue()

    def delete(self, path: str) -> None:
        self._sftp.remove(path)

    def remove_dir(self, path: str) -> None:
        self._sftp.rmdir(path)

    def make_dirs(self, path: str) -> None:
        if not path:
            return
        for directory in reversed([path, *parent_directories(path)]):
            if directory in ("", "/"):
                continue
            try:
                self._sftp.stat(directory)
            except FileNotFoundError:
                self._sftp.mkdir(directory)


def create_client(target: TransferTarget, settings: ResolvedSettings) -> TransferClient:
    """Build the client for the target's protocol."""
    if target.protocol == Protocol.SFTP:
        return SftpClient(target, settings)
    return FtpClient(target, settings)
