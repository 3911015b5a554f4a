# gitftp Output Module
# Rich console output

from gitftp.output.console import Console, create_console

__all__ = [
    "Console",
    "create_console",
]
