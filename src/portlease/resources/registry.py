"""Host-wide lease registry with cross-process locking.

The registry is a JSON object mapping project names to leases, stored next
to a lock file in the registry directory::

    ~/.portlease/leases.json
    ~/.portlease/leases.lock

Exclusion comes from ``fcntl.flock`` on the lock file. The holder writes its
pid into the lock file, which is informational only. Every read that feeds a
decision and every write must happen inside ``with_lock``.
"""

import contextlib
import errno
import fcntl
import os
import time
from collections.abc import Iterator, Mapping
from pathlib import Path
from typing import IO

from portlease.common.errors import LockTimeoutError, RegistryCorruptError
from portlease.models import Lease
from portlease.resources.liveness import LivenessChecker
from portlease_common.constants import (
    DEFAULT_LOCK_TIMEOUT_S,
    LOCK_FILE_NAME,
    REGISTRY_FILE_NAME,
)
from portlease_common.io import ensure_dir, safe_read_json, safe_write_json
from portlease_common.io.files import FileOperationError
from portlease_logging import get_logger

logger = get_logger(__name__)

LOCK_INITIAL_BACKOFF_S = 0.02
LOCK_MAX_BACKOFF_S = 0.5

_LOCK_BUSY_ERRNOS = (errno.EAGAIN, errno.EWOULDBLOCK, errno.EACCES)


class LeaseRegistry:
    """Durable project-to-lease mapping shared by all coordinators on a host.

    Parameters
    ----------
    registry_dir : Path
        Directory holding the registry and lock files (created on demand)
    liveness : LivenessChecker, optional
        Used by ``reconcile_dead_leases``
    lock_timeout : float
        Default wait for ``with_lock``
    force_break_on_timeout : bool
        When the wait expires, delete the lock file and take a fresh lock
        instead of raising ``LockTimeoutError``. This can let two holders
        run at once if the previous holder was merely slow, not dead.
    """

    def __init__(
        self,
        registry_dir: Path,
        liveness: LivenessChecker | None = None,
        lock_timeout: float = DEFAULT_LOCK_TIMEOUT_S,
        force_break_on_timeout: bool = False,
    ) -> None:
        self.registry_dir = Path(registry_dir)
        self.registry_file = self.registry_dir / REGISTRY_FILE_NAME
        self.lock_file = self.registry_dir / LOCK_FILE_NAME
        self.liveness = liveness or LivenessChecker()
        self.lock_timeout = lock_timeout
        self.force_break_on_timeout = force_break_on_timeout

    # ------------------------------------------------------------------
    # Locking
    # ------------------------------------------------------------------

    @contextlib.contextmanager
    def with_lock(self, timeout: float | None = None) -> Iterator[None]:
        """Hold the registry lock for the duration of the block.

        Parameters
        ----------
        timeout : float, optional
            Seconds to wait; defaults to ``self.lock_timeout``

        Raises
        ------
        LockTimeoutError
            If the lock is still busy after ``timeout`` (and, with
            ``force_break_on_timeout``, after one forced retry)
        """
        wait = self.lock_timeout if timeout is None else timeout
        handle = self._acquire(wait)
        try:
            yield
        finally:
            self._release(handle)

    def _acquire(self, timeout: float) -> IO[str]:
        ensure_dir(self.registry_dir)
        start = time.monotonic()
        delay = LOCK_INITIAL_BACKOFF_S
        attempts = 0

        while True:
            attempts += 1
            handle = self._try_lock()
            if handle is not None:
                waited = time.monotonic() - start
                if waited > LOCK_MAX_BACKOFF_S:
                    logger.debug(
                        "Registry lock acquired after %.2fs (%d attempts)",
                        waited,
                        attempts,
                    )
                return handle

            waited = time.monotonic() - start
            if waited >= timeout:
                break
            time.sleep(min(delay, max(timeout - waited, 0.0)))
            delay = min(delay * 2.0, LOCK_MAX_BACKOFF_S)

        holder = self._read_holder()
        if self.force_break_on_timeout:
            handle = self._force_break(holder, timeout)
            if handle is not None:
                return handle

        msg = f"Registry lock timeout after {timeout:.1f}s ({self.lock_file})"
        raise LockTimeoutError(
            msg,
            details={
                "lock_file": str(self.lock_file),
                "timeout": timeout,
                "attempts": attempts,
                "holder_pid": holder,
                "force_break_on_timeout": self.force_break_on_timeout,
            },
        )

    def _try_lock(self) -> IO[str] | None:
        """Open the lock file and try a non-blocking exclusive flock.

        Returns the open handle on success. A lock taken on a file that was
        unlinked or replaced in the meantime (by a forced break) is dropped
        and reported as busy.
        """
        handle = self.lock_file.open("a+", encoding="utf-8")
        try:
            try:
                fcntl.flock(handle.fileno(), fcntl.LOCK_EX | fcntl.LOCK_NB)
            except OSError as e:
                if e.errno not in _LOCK_BUSY_ERRNOS:
                    raise
                handle.close()
                return None

            if not self._is_current(handle):
                fcntl.flock(handle.fileno(), fcntl.LOCK_UN)
                handle.close()
                return None

            self._write_holder(handle)
            return handle
        except BaseException:
            handle.close()
            raise

    def _is_current(self, handle: IO[str]) -> bool:
        """Check that ``handle`` still refers to the file at ``lock_file``."""
        try:
            on_disk = os.stat(self.lock_file)
        except FileNotFoundError:
            return False
        opened = os.fstat(handle.fileno())
        return (opened.st_dev, opened.st_ino) == (on_disk.st_dev, on_disk.st_ino)

    def _write_holder(self, handle: IO[str]) -> None:
        with contextlib.suppress(OSError):
            handle.seek(0)
            handle.truncate()
            handle.write(str(os.getpid()))
            handle.flush()

    def _read_holder(self) -> int | None:
        try:
            content = self.lock_file.read_text(encoding="utf-8").strip()
        except OSError:
            return None
        return int(content) if content.isdigit() else None

    def _force_break(self, holder: int | None, timeout: float) -> IO[str] | None:
        logger.warning(
            "Registry lock held for over %.1fs (holder pid %s); forcing it open",
            timeout,
            holder if holder is not None else "unknown",
        )
        with contextlib.suppress(FileNotFoundError):
            self.lock_file.unlink()
        return self._try_lock()

    def _release(self, handle: IO[str]) -> None:
        try:
            if self._is_current(handle):
                with contextlib.suppress(OSError):
                    handle.seek(0)
                    handle.truncate()
            fcntl.flock(handle.fileno(), fcntl.LOCK_UN)
        finally:
            handle.close()

    # ------------------------------------------------------------------
    # Persistence
    # ------------------------------------------------------------------

    def load(self) -> dict[str, Lease]:
        """Read the registry.

        A missing file is an empty registry. An unreadable file, or one that
        is not a JSON object, is logged and treated as empty. Individual
        malformed leases are skipped, and a lease whose ports collide with a
        more recently used lease is dropped, so the returned snapshot always
        has globally unique ports.
        """
        if not self.registry_file.exists():
            return {}
        try:
            raw = safe_read_json(self.registry_file)
        except FileOperationError as e:
            logger.warning("Ignoring unreadable registry %s: %s", self.registry_file, e)
            return {}
        return self._parse(raw)

    def _parse(self, raw: Mapping[str, object]) -> dict[str, Lease]:
        parsed: list[Lease] = []
        for name, data in raw.items():
            try:
                parsed.append(Lease.from_dict(name, data))
            except RegistryCorruptError as e:
                logger.warning("Dropping corrupt registry entry: %s", e)

        leases: dict[str, Lease] = {}
        claimed: set[int] = set()
        for lease in sorted(parsed, key=lambda item: item.last_used, reverse=True):
            ports = {lease.frontend_port, lease.backend_port}
            if len(ports) < 2 or ports & claimed:
                logger.warning(
                    "Dropping lease for '%s': ports %s conflict with another lease",
                    lease.project_name,
                    sorted(ports),
                )
                continue
            claimed |= ports
            leases[lease.project_name] = lease
        return leases

    def store(self, leases: Mapping[str, Lease]) -> None:
        """Atomically replace the registry file with ``leases``.

        Raises
        ------
        FileOperationError
            If the file cannot be written; the previous content is kept
        """
        payload = {name: lease.to_dict() for name, lease in sorted(leases.items())}
        safe_write_json(self.registry_file, payload)

    # ------------------------------------------------------------------
    # Reconciliation
    # ------------------------------------------------------------------

    def reconcile_dead_leases(self, leases: Mapping[str, Lease]) -> dict[str, Lease]:
        """Clear pid claims of leases whose processes are all gone.

        A lease is cleared only when neither recorded pid is alive. Ports
        stay with the lease; only the "running" claim is removed.
        """
        reconciled: dict[str, Lease] = {}
        for name, lease in leases.items():
            if lease.has_pids and not (
                self.liveness.is_alive(lease.pid_frontend)
                or self.liveness.is_alive(lease.pid_backend)
            ):
                logger.info(
                    "Reclaiming stale lease for '%s' (pids %s/%s no longer running)",
                    name,
                    lease.pid_frontend,
                    lease.pid_backend,
                )
                lease = lease.cleared()
            reconciled[name] = lease
        return reconciled
