"""gitftp - deploy git repositories to FTP, FTPS, FTPES and SFTP servers.

Only files changed since the last deployment are transferred; the
deployed revision is kept in a marker file on the remote side.
"""

__version__ = "1.0.0"
__author__ = "Equitania Software GmbH"
__email__ = "info@equitania.de"

__all__ = [
    "__version__",
    "DeployEngine",
    "DeployOptions",
    "DeployResult",
    "DeployStatus",
    "GitRepository",
    "ResolvedSettings",
    "GitFtpError",
    "ExitCode",
]


def __getattr__(name: str):
    """Lazy import to avoid loading dependencies during setup."""
    if name in ("DeployEngine", "DeployOptions", "DeployResult", "DeployStatus"):
        from gitftp.sync import engine

        return getattr(engine, name)
    if name == "GitRepository":
        from gitftp.git.repository import GitRepository

        return GitRepository
    if name == "ResolvedSettings":
        from gitftp.config.schema import ResolvedSettings

        return ResolvedSettings
    if name in ("GitFtpError", "ExitCode"):
        from gitftp import errors

        return getattr(errors, name)
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
