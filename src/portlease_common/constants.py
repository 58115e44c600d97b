"""Constants shared across portlease packages."""

PORTLEASE_HOME_DIR = ".portlease"
LOG_SUBDIR = "log"

REGISTRY_FILE_NAME = "leases.json"
LOCK_FILE_NAME = "leases.lock"

PROJECT_CONFIG_FILE = ".portlease.yaml"

DEFAULT_FRONTEND_START = 3000
DEFAULT_BACKEND_START = 8000
DEFAULT_LOCK_TIMEOUT_S = 10.0
DEFAULT_HASH_SPAN = 100

MAX_PORT = 65535


class StartStrategy:
    """How the default start port of a search is chosen."""

    FIXED = "fixed"
    HASHED = "hashed"

    ALL = (FIXED, HASHED)


class EnvVars:
    """Environment variable names honored by portlease."""

    REGISTRY_DIR = "PORTLEASE_REGISTRY_DIR"
    LOCK_TIMEOUT = "PORTLEASE_LOCK_TIMEOUT_SEC"
    FORCE_BREAK_LOCK = "PORTLEASE_FORCE_BREAK_LOCK"
    START_STRATEGY = "PORTLEASE_START_STRATEGY"
    LOG_LEVEL = "PORTLEASE_LOG_LEVEL"
    NO_FILE_LOGGING = "PORTLEASE_NO_FILE_LOGGING"

    # Launcher hints; both present means "search from here, skip reuse"
    FRONTEND_START_PORT = "FRONTEND_START_PORT"
    BACKEND_START_PORT = "BACKEND_START_PORT"
