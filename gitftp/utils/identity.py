# gitftp Identity Utilities
# Who is deploying, for remote lock diagnostics

import getpass
import socket
from datetime import datetime
from typing import Optional


def deploy_identity(now: Optional[datetime] = None) -> str:
    """
    Describe the current deployer as "user@host on timestamp".

    Args:
        now: Timestamp to use (defaults to the current local time).
    """
    try:
        user = getpass.getuser()
    except (KeyError, OSError):
        user = "unknown"
    stamp = (now or datetime.now()).isoformat(timespec="seconds")
    return f"{user}@{socket.gethostname()} on {stamp}"
