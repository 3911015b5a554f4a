# gitftp Errors
# Exception hierarchy and stable process exit codes

from enum import IntEnum


class ExitCode(IntEnum):
    """Process exit codes, one per failure class."""

    OK = 0
    USAGE = 2
    MISSING_ARGUMENTS = 3
    UPLOAD = 4
    DOWNLOAD = 5
    UNKNOWN_PROTOCOL = 6
    REMOTE_LOCKED = 7
    GIT = 8


class GitFtpError(Exception):
    """Base class for all errors that end a deployment run."""

    exit_code: ExitCode = ExitCode.USAGE

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)


class UsageError(GitFtpError):
    """Bad arguments or an unknown scope."""

    exit_code = ExitCode.USAGE


class MissingArgumentError(GitFtpError):
    """A required setting (usually the URL) was not provided."""

    exit_code = ExitCode.MISSING_ARGUMENTS


class UnknownProtocolError(GitFtpError):
    """URL scheme is not one of ftp, ftps, ftpes, sftp."""

    exit_code = ExitCode.UNKNOWN_PROTOCOL


class TransferError(GitFtpError):
    """Base class for transport failures."""

    def __init__(self, message: str, remote_path: str = ""):
        self.remote_path = remote_path
        super().__init__(message)


class UploadError(TransferError):
    exit_code = ExitCode.UPLOAD


class DownloadError(TransferError):
    exit_code = ExitCode.DOWNLOAD


class MarkerNotFoundError(DownloadError):
    """No deployment marker exists on the remote side."""


class MarkerExistsError(UsageError):
    """`init` was called against a target that was already deployed."""


class RemoteLockedError(GitFtpError):
    """Another deployment holds the remote lock."""

    exit_code = ExitCode.REMOTE_LOCKED

    def __init__(self, identity: str, revision: str = ""):
        self.identity = identity
        self.revision = revision
        super().__init__(f"Remote locked by {identity}")


class GitError(GitFtpError):
    """Exception raised for git operation errors."""

    exit_code = ExitCode.GIT

    def __init__(self, message: str, returncode: int = 1, stderr: str = ""):
        self.returncode = returncode
        self.stderr = stderr
        super().__init__(message)


class DirtyRepositoryError(GitError):
    """Working tree has uncommitted changes."""


class UnknownRevisionError(GitError):
    """The deployed revision is not part of the local history."""

    def __init__(self, revision: str):
        self.revision = revision
        super().__init__(f"Unknown revision {revision}: make sure you are deploying the right branch")
