"""Detection of TCP listeners on the local host."""

import contextlib
import errno
import socket
from collections.abc import Iterator

import psutil

from portlease_logging import get_logger

logger = get_logger(__name__)

IPV4_ANY = "0.0.0.0"
IPV6_ANY = "::"


class PortProbe:
    """Answer whether some process is listening on a local TCP port.

    The primary method enumerates listening sockets through psutil. Where
    that is not permitted (e.g. macOS without root) the probe falls back to
    trying to bind the port on the wildcard addresses; a failed bind counts
    as "in use". Neither method is authoritative: a port can be taken right
    after the probe returns, so the launcher's own bind is the final word.
    """

    def __init__(self, use_psutil: bool = True) -> None:
        self.use_psutil = use_psutil
        self._in_snapshot = False
        self._snapshot: set[int] | None = None

    @contextlib.contextmanager
    def snapshot(self) -> Iterator[None]:
        """Answer every check in the block from one read of the socket table.

        A scan over many ports would otherwise re-read the whole host table
        per port. Nested blocks reuse the outer snapshot. When the table
        cannot be read, checks fall back to binding as usual.
        """
        if self._in_snapshot or not self.use_psutil:
            yield
            return
        self._snapshot = self._listening_ports()
        self._in_snapshot = True
        try:
            yield
        finally:
            self._in_snapshot = False
            self._snapshot = None

    def is_listening(self, port: int) -> bool:
        """Return True if ``port`` appears to be in use.

        Parameters
        ----------
        port : int
            TCP port to check

        Returns
        -------
        bool
            True when a listener was found or the port could not be bound
        """
        if self._in_snapshot:
            listening = self._snapshot
        elif self.use_psutil:
            listening = self._listening_ports()
        else:
            listening = None
        if listening is not None:
            return port in listening
        return not self._is_port_bindable(port)

    def _listening_ports(self) -> set[int] | None:
        """Read listening ports from the host socket table; None when unreadable."""
        try:
            connections = psutil.net_connections(kind="tcp")
        except (psutil.AccessDenied, PermissionError) as e:
            logger.debug("Socket table unavailable (%s), falling back to bind", e)
            return None
        except (OSError, NotImplementedError) as e:
            logger.debug("psutil.net_connections failed: %s", e)
            return None

        return {
            conn.laddr.port
            for conn in connections
            if conn.status == psutil.CONN_LISTEN and conn.laddr
        }

    def _is_port_bindable(self, port: int) -> bool:
        """Try binding the port on IPv4 and, when available, IPv6."""
        if not self._try_bind(socket.AF_INET, IPV4_ANY, port):
            return False
        if socket.has_ipv6 and not self._try_bind(socket.AF_INET6, IPV6_ANY, port):
            return False
        return True

    def _try_bind(self, family: int, host: str, port: int) -> bool:
        try:
            sock = socket.socket(family, socket.SOCK_STREAM)
        except OSError as e:
            # Address family not supported on this host: nothing to conflict with
            logger.debug("Cannot create socket for family %s: %s", family, e)
            return True

        with contextlib.closing(sock):
            sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
            if family == socket.AF_INET6:
                with contextlib.suppress(OSError, AttributeError):
                    sock.setsockopt(socket.IPPROTO_IPV6, socket.IPV6_V6ONLY, 1)
            try:
                sock.bind((host, port))
            except OSError as e:
                if e.errno not in (errno.EADDRINUSE, errno.EACCES):
                    logger.debug("Unexpected bind error on %s:%d: %s", host, port, e)
                return False
        return True
