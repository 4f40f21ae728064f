"""Constants used in the project."""

from enum import Enum


class ExitCodes(Enum):
    """Exit codes for the program.

    Args:
        Enum (int): Exit codes for the program.
    """

    SUCCESS = 0
    FILE_ERROR = 1
    CONNECTION_ERROR = 2
    RESOLUTION_ERROR = 3
    USAGE_ERROR = 4


class Constants:  # pylint: disable=too-few-public-methods
    """General constants used in the project.
    Data holder for configuration constants; not intended to provide behavior.
    """

    DEFAULT_GOPROXY = "https://proxy.golang.org"
    USER_AGENT = "ModBump/1.0"
    REQUEST_TIMEOUT = 30  # Timeout in seconds for all HTTP requests

    # Module proxy protocol
    LIST_SUFFIX = "@v/list"
    MOD_SUFFIX = ".mod"
    NOT_FOUND_STATUSES = (404, 410)
    CACHED_HEADER = "Disable-Module-Fetch"

    # Resolver
    MAX_MAJOR_CHAIN = 100
    LATEST_QUERIES = ("latest", "master", "default")
    INCOMPATIBLE = "incompatible"
    DOTTED_PREFIX = "gopkg.in/"

    # Update scanner
    CACHED_CONCURRENCY = 3
    LIVE_CONCURRENCY = 1

    # Source tree
    MOD_FILE = "go.mod"
    SOURCE_SUFFIX = ".go"
    VENDOR_DIR = "vendor"
    COMPAT_COMMENT = '// import "'

    # Environment / config
    ENV_LOG_LEVEL = "MODBUMP_LOG_LEVEL"
    ENV_GOPROXY = "GOPROXY"
    ENV_GOPRIVATE = "GOPRIVATE"
    ENV_GONOPROXY = "GONOPROXY"
    GO_BINARY = "go"
    GO_ENV_TIMEOUT = 10
    LOG_FORMAT = "[%(levelname)s] %(message)s"
    LOG_FILE_FORMAT = "%(asctime)s %(levelname)s %(name)s %(message)s"
