"""Linear free-port search honoring registry reservations."""

from collections.abc import Iterable, Mapping

from portlease.common.errors import NoFreePortError
from portlease.models import Lease, LeasePorts
from portlease.resources.probe import PortProbe
from portlease_common.constants import MAX_PORT
from portlease_logging import get_logger

logger = get_logger(__name__)


def collect_reserved_ports(
    leases: Mapping[str, Lease],
    skip_project: str | None = None,
) -> set[int]:
    """Return every port held by a lease in the snapshot.

    Parameters
    ----------
    leases : Mapping[str, Lease]
        Registry snapshot
    skip_project : str, optional
        Project whose own lease is being replaced and should not count

    Returns
    -------
    set[int]
        Frontend and backend ports of all other leases
    """
    reserved: set[int] = set()
    for name, lease in leases.items():
        if name == skip_project:
            continue
        reserved.add(lease.frontend_port)
        reserved.add(lease.backend_port)
    return reserved


class LeaseAllocator:
    """Find free ports by scanning upward from a start value."""

    def __init__(self, probe: PortProbe | None = None, max_port: int = MAX_PORT) -> None:
        self.probe = probe or PortProbe()
        self.max_port = max_port

    def find_free_port(self, start_port: int, excluded: Iterable[int]) -> int:
        """Return the first port >= ``start_port`` that is free.

        A candidate is free when it is not in ``excluded`` and the probe
        reports no listener on it.

        Raises
        ------
        ValueError
            If ``start_port`` is not a valid port number
        NoFreePortError
            If the scan passes ``max_port``
        """
        if start_port < 1 or start_port > self.max_port:
            msg = f"Start port {start_port} outside 1-{self.max_port}"
            raise ValueError(msg)

        excluded_set = set(excluded)
        with self.probe.snapshot():
            for port in range(start_port, self.max_port + 1):
                if port in excluded_set:
                    continue
                if self.probe.is_listening(port):
                    logger.debug("Skipping port %d: in use on this host", port)
                    continue
                return port

        msg = f"No free port between {start_port} and {self.max_port}"
        raise NoFreePortError(
            msg,
            details={
                "start_port": start_port,
                "max_port": self.max_port,
                "excluded_count": len(excluded_set),
            },
        )

    def allocate_pair(
        self,
        frontend_start: int,
        backend_start: int,
        excluded: Iterable[int],
    ) -> LeasePorts:
        """Pick a frontend port, then a backend port distinct from it."""
        excluded_set = set(excluded)
        with self.probe.snapshot():
            frontend = self.find_free_port(frontend_start, excluded_set)
            backend = self.find_free_port(backend_start, excluded_set | {frontend})
        return LeasePorts(frontend, backend)
