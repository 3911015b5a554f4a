# gitftp Default Configuration
# File names, built-in defaults and the commented YAML template

from typing import Any

# Configuration file, stored inside the git dir so credentials are never committed
CONFIG_FILE_NAME = "gitftp.yaml"
CONFIG_ENV_VAR = "GITFTP_CONFIG"

# Remote layout
MARKER_FILE = ".git-ftp.log"
LOCK_FILE = "git-ftp.lck"

# Local layout
LOCAL_LOCK_FILE = "gitftp.lck"
IGNORE_FILE = ".git-ftp-ignore"
INCLUDE_FILE = ".git-ftp-include"

# Never uploaded, whatever the ignore file says
BUILTIN_IGNORES: tuple[str, ...] = (IGNORE_FILE, INCLUDE_FILE)

DEFAULT_RETRIES = 3
DEFAULT_TIMEOUT = 30.0

DEFAULT_SETTINGS: dict[str, Any] = {
    "user": "",
    "password": "",
    "syncroot": "",
    "remote_lock": False,
    "active_mode": False,
    "retries": DEFAULT_RETRIES,
    "insecure": False,
    "cacert": None,
    "key": None,
    "timeout": DEFAULT_TIMEOUT,
}

DEFAULT_CONFIG: dict[str, Any] = {
    "defaults": {
        "retries": DEFAULT_RETRIES,
        "remote_lock": False,
    },
    "scopes": {},
}


CONFIG_HEADER = """# gitftp configuration
#
# `defaults` applies to every run, a scope overrides it when selected
# with --scope NAME. Command-line options override both.
#
# Keys:
#   url          ftp://, ftps://, ftpes:// or sftp://host[:port]/path
#   user         login name (may also be embedded in the url)
#   password     login password (may also be embedded in the url)
#   syncroot     only deploy files below this repository directory
#   remote_lock  guard the target against concurrent deployments
#   active_mode  use active instead of passive FTP
#   retries      retries after a failed transfer
#   insecure     skip TLS certificate / SSH host key verification
#   cacert       CA bundle for FTPS/FTPES
#   key          private key file for SFTP
#   timeout      socket timeout in seconds

"""
