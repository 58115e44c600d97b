"""portlease: per-project frontend/backend port leases for development hosts."""

from portlease.common.errors import (
    AlreadyRunningError,
    LockTimeoutError,
    NoFreePortError,
    PortLeaseError,
    RegistryCorruptError,
)
from portlease.coordinator import PortRegistryCoordinator
from portlease.models import Lease, LeasePorts
from portlease.resources import LeaseAllocator, LeaseRegistry, LivenessChecker, PortProbe

__version__ = "0.1.0"

__all__ = [
    "AlreadyRunningError",
    "Lease",
    "LeaseAllocator",
    "LeasePorts",
    "LeaseRegistry",
    "LivenessChecker",
    "LockTimeoutError",
    "NoFreePortError",
    "PortLeaseError",
    "PortProbe",
    "PortRegistryCoordinator",
    "RegistryCorruptError",
]
