"""Port lease coordination for development sessions.

A coordinator answers "which ports should project X use now" for any number
of processes on the same host. Each operation takes the registry lock, loads
the snapshot, reconciles leases whose processes died, decides and persists.

Typical launcher flow::

    coordinator = PortRegistryCoordinator.from_settings(resolve_settings())
    ports = coordinator.acquire("shop")
    # ... start frontend on ports.frontend_port, backend on ports.backend_port
    coordinator.record_pids("shop", frontend.pid, backend.pid)
    # ... on shutdown
    coordinator.release("shop")
"""

from __future__ import annotations

from collections.abc import Callable

from portlease.common.errors import AlreadyRunningError
from portlease.models import Lease, LeasePorts
from portlease.models.lease import utc_now
from portlease.resources import (
    LeaseAllocator,
    LeaseRegistry,
    LivenessChecker,
    PortProbe,
    collect_reserved_ports,
)
from portlease_common.config import Settings
from portlease_common.constants import DEFAULT_BACKEND_START, DEFAULT_FRONTEND_START
from portlease_logging import get_logger

logger = get_logger(__name__)

StartPortFunc = Callable[[str], tuple[int, int]]


def fixed_start_ports(_project_name: str) -> tuple[int, int]:
    """Default search starts: 3000 for frontends, 8000 for backends."""
    return DEFAULT_FRONTEND_START, DEFAULT_BACKEND_START


class PortRegistryCoordinator:
    """Acquire, record and release per-project port pairs.

    Parameters
    ----------
    registry : LeaseRegistry
        Shared registry (owns the lock and break-on-timeout policy)
    probe : PortProbe, optional
        Listener detection used for reuse decisions and allocation
    liveness : LivenessChecker, optional
        Process checks for the double-start guard; defaults to the
        registry's checker
    allocator : LeaseAllocator, optional
        Free-port search; defaults to one sharing ``probe``
    lock_timeout : float, optional
        Wait for the registry lock; defaults to the registry's timeout
    start_ports : callable, optional
        Maps a project name to default (frontend, backend) search starts
    start_hints : tuple, optional
        (frontend, backend) starts used when ``acquire`` is given none,
        usually from ``FRONTEND_START_PORT``/``BACKEND_START_PORT``
    """

    def __init__(
        self,
        registry: LeaseRegistry,
        probe: PortProbe | None = None,
        liveness: LivenessChecker | None = None,
        allocator: LeaseAllocator | None = None,
        lock_timeout: float | None = None,
        start_ports: StartPortFunc | None = None,
        start_hints: tuple[int | None, int | None] = (None, None),
    ) -> None:
        self.registry = registry
        self.probe = probe or PortProbe()
        self.liveness = liveness or registry.liveness
        self.allocator = allocator or LeaseAllocator(self.probe)
        self.lock_timeout = (
            registry.lock_timeout if lock_timeout is None else lock_timeout
        )
        self.start_ports = start_ports or fixed_start_ports
        self.start_hints = start_hints

    @classmethod
    def from_settings(cls, settings: Settings) -> PortRegistryCoordinator:
        """Build a coordinator wired from resolved settings."""
        registry = LeaseRegistry(
            settings.registry_dir,
            lock_timeout=settings.lock_timeout,
            force_break_on_timeout=settings.force_break_on_timeout,
        )
        if settings.has_explicit_hints:
            logger.debug(
                "Start hints %d/%d set; acquire will skip lease reuse",
                settings.frontend_hint,
                settings.backend_hint,
            )
        return cls(
            registry,
            start_ports=settings.start_ports_for,
            start_hints=(settings.frontend_hint, settings.backend_hint),
        )

    def acquire(
        self,
        project_name: str,
        frontend_start: int | None = None,
        backend_start: int | None = None,
    ) -> LeasePorts:
        """Return the port pair ``project_name`` should use now.

        The project's existing ports are reused when neither is listening.
        Otherwise a new pair is allocated. Passing both start hints skips
        reuse and searches from the hints. Starts left as None fall back to
        ``start_hints``, so hints from the environment apply the same way.
        The new lease is stored with no pids; call ``record_pids`` once the
        processes are running.

        Raises
        ------
        ValueError
            If ``project_name`` is empty
        LockTimeoutError
            If the registry lock cannot be obtained
        AlreadyRunningError
            If both recorded processes of the project are alive; the
            registry is left untouched
        NoFreePortError
            If no free port exists above a start value
        """
        _check_project_name(project_name)
        hint_frontend, hint_backend = self.start_hints
        if frontend_start is None:
            frontend_start = hint_frontend
        if backend_start is None:
            backend_start = hint_backend
        force_fresh = frontend_start is not None and backend_start is not None

        with self.registry.with_lock(self.lock_timeout):
            leases = self.registry.reconcile_dead_leases(self.registry.load())
            existing = leases.get(project_name)

            if existing is not None:
                self._ensure_not_running(existing)

            if existing is not None and not force_fresh and self._can_reuse(existing):
                ports = existing.ports
                logger.info(
                    "Reusing ports %d/%d for '%s'",
                    ports.frontend_port,
                    ports.backend_port,
                    project_name,
                )
            else:
                ports = self._allocate(project_name, leases, frontend_start, backend_start)
                logger.info(
                    "Allocated ports %d/%d for '%s' (previous lease: %s)",
                    ports.frontend_port,
                    ports.backend_port,
                    project_name,
                    "%d/%d" % existing.ports if existing else "none",
                )

            leases[project_name] = Lease(
                project_name=project_name,
                frontend_port=ports.frontend_port,
                backend_port=ports.backend_port,
                last_used=utc_now(),
            )
            self.registry.store(leases)

        return ports

    def record_pids(
        self,
        project_name: str,
        pid_frontend: int | None,
        pid_backend: int | None,
    ) -> bool:
        """Record the processes started on the project's ports.

        Returns
        -------
        bool
            False if the project has no lease
        """
        _check_project_name(project_name)
        with self.registry.with_lock(self.lock_timeout):
            leases = self.registry.load()
            lease = leases.get(project_name)
            if lease is None:
                logger.warning("Cannot record pids: no lease for '%s'", project_name)
                return False
            leases[project_name] = lease.with_pids(pid_frontend, pid_backend)
            self.registry.store(leases)

        logger.info(
            "Recorded pids %s/%s for '%s'",
            pid_frontend,
            pid_backend,
            project_name,
        )
        return True

    def release(self, project_name: str) -> bool:
        """Clear the project's pids, keeping its ports for the next run.

        Returns
        -------
        bool
            False if the project has no lease
        """
        _check_project_name(project_name)
        with self.registry.with_lock(self.lock_timeout):
            leases = self.registry.load()
            lease = leases.get(project_name)
            if lease is None:
                logger.warning("Cannot release: no lease for '%s'", project_name)
                return False
            if lease.has_pids:
                leases[project_name] = lease.cleared()
                self.registry.store(leases)

        logger.info("Released '%s'", project_name)
        return True

    def leases(self) -> dict[str, Lease]:
        """Return a consistent snapshot of all leases."""
        with self.registry.with_lock(self.lock_timeout):
            return self.registry.load()

    def lookup(self, project_name: str) -> Lease | None:
        """Return the project's lease, if any."""
        return self.leases().get(project_name)

    def is_running(self, lease: Lease) -> bool:
        """Whether at least one of the lease's recorded processes is alive."""
        return self.liveness.is_alive(lease.pid_frontend) or self.liveness.is_alive(
            lease.pid_backend,
        )

    def _ensure_not_running(self, lease: Lease) -> None:
        if self.liveness.is_alive(lease.pid_frontend) and self.liveness.is_alive(
            lease.pid_backend,
        ):
            msg = (
                f"Project '{lease.project_name}' is already running "
                f"(frontend pid {lease.pid_frontend} on port {lease.frontend_port}, "
                f"backend pid {lease.pid_backend} on port {lease.backend_port})"
            )
            raise AlreadyRunningError(
                msg,
                details={
                    "project": lease.project_name,
                    "frontend_port": lease.frontend_port,
                    "backend_port": lease.backend_port,
                    "pid_frontend": lease.pid_frontend,
                    "pid_backend": lease.pid_backend,
                },
            )

    def _can_reuse(self, lease: Lease) -> bool:
        with self.probe.snapshot():
            for port in lease.ports:
                if self.probe.is_listening(port):
                    logger.debug(
                        "Cannot reuse lease of '%s': port %d is in use",
                        lease.project_name,
                        port,
                    )
                    return False
        return True

    def _allocate(
        self,
        project_name: str,
        leases: dict[str, Lease],
        frontend_start: int | None,
        backend_start: int | None,
    ) -> LeasePorts:
        default_frontend, default_backend = self.start_ports(project_name)
        excluded = collect_reserved_ports(leases, skip_project=project_name)
        return self.allocator.allocate_pair(
            default_frontend if frontend_start is None else frontend_start,
            default_backend if backend_start is None else backend_start,
            excluded,
        )


def _check_project_name(project_name: str) -> None:
    if not project_name or not project_name.strip():
        msg = "project_name must be a non-empty string"
        raise ValueError(msg)
