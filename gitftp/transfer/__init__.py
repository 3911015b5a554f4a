# gitftp Transfer Module
# Protocol-agnostic remote file operations

from gitftp.transfer.client import FtpClient, SftpClient, TransferClient, create_client
from gitftp.transfer.executor import TransferExecutor, create_executor
from gitftp.transfer.target import Protocol, TransferTarget, parse_url

__all__ = [
    # Target
    "Protocol",
    "TransferTarget",
    "parse_url",
    # Clients
    "TransferClient",
    "FtpClient",
    "SftpClient",
    "create_client",
    # Executor
    "TransferExecutor",
    "create_executor",
]
