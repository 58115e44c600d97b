"""Data models."""

from .lease import Lease, LeasePorts

__all__ = ["Lease", "LeasePorts"]
