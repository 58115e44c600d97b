"""Host resources: ports, processes and the shared lease registry."""

from .allocator import LeaseAllocator, collect_reserved_ports
from .liveness import LivenessChecker
from .probe import PortProbe
from .registry import LeaseRegistry

__all__ = [
    "LeaseAllocator",
    "LeaseRegistry",
    "LivenessChecker",
    "PortProbe",
    "collect_reserved_ports",
]
