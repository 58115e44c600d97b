"""Process liveness checks."""

import os

import psutil

from portlease_logging import get_logger

logger = get_logger(__name__)


class LivenessChecker:
    """Answer whether a recorded process id still names a live process.

    On POSIX a process counts as alive when signal 0 can be delivered to it
    (it exists and we may signal it) and it is not a zombie. On Windows,
    where ``os.kill`` would terminate the target, existence is checked
    through psutil only. Any failure to decide reads as "not alive", so
    stale leases get reclaimed rather than leaked.
    """

    def is_alive(self, pid: int | None) -> bool:
        if pid is None or pid <= 0:
            return False

        if os.name == "nt":
            try:
                return psutil.pid_exists(pid)
            except Exception as e:
                logger.debug("Cannot determine state of pid %d: %s", pid, e)
                return False

        try:
            os.kill(pid, 0)
        except ProcessLookupError:
            return False
        except PermissionError:
            logger.debug("Pid %d exists but belongs to another user", pid)
            return False
        except OSError as e:
            logger.debug("Cannot signal pid %d: %s", pid, e)
            return False

        try:
            return psutil.Process(pid).status() != psutil.STATUS_ZOMBIE
        except (psutil.NoSuchProcess, psutil.ZombieProcess):
            return False
        except psutil.AccessDenied:
            # Signal 0 already succeeded
            return True
