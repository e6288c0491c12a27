"""Thin owner of a TCP socket with the option setters the reactor needs."""

from __future__ import annotations

import errno
import socket
from typing import Optional, Tuple

from .net_address import NetAddress


def _flag(on: bool) -> int:
    return 1 if on else 0


class Socketer:
    """Owns a socket: binding, listening, accepting and socket options.

    Failures of the underlying calls are raised as ``OSError``.
    """

    def __init__(self, sock: socket.socket) -> None:
        self._sock = sock

    @property
    def socket(self) -> socket.socket:
        return self._sock

    def fileno(self) -> int:
        return self._sock.fileno()

    def bind(self, address: NetAddress) -> None:
        """Bind to the local ``address``."""
        self._sock.bind(address.sockaddr())

    def listen(self) -> None:
        """Start listening with the system's maximum backlog."""
        self._sock.listen(socket.SOMAXCONN)

    def accept(self) -> Tuple[socket.socket, NetAddress]:
        """Accept one connection; the new socket is non-blocking.

        ``BlockingIOError`` is raised when no connection is pending on a
        non-blocking listener.
        """
        conn, peer = self._sock.accept()
        conn.setblocking(False)
        try:
            address = NetAddress.from_sockaddr(conn.family, peer)
        except (ValueError, IndexError):
            conn.close()
            raise
        return conn, address

    def shutdown_write(self) -> None:
        """Close the writing half of the connection."""
        self._sock.shutdown(socket.SHUT_WR)

    def set_tcp_no_delay(self, on: bool) -> None:
        self._sock.setsockopt(socket.IPPROTO_TCP, socket.TCP_NODELAY, _flag(on))

    def set_reuse_address(self, on: bool) -> None:
        self._sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, _flag(on))

    def set_reuse_port(self, on: bool) -> None:
        option: Optional[int] = getattr(socket, "SO_REUSEPORT", None)
        if option is None:
            if on:
                raise OSError(errno.ENOPROTOOPT, "SO_REUSEPORT is not supported")
            return
        self._sock.setsockopt(socket.SOL_SOCKET, option, _flag(on))

    def set_keep_alive(self, on: bool) -> None:
        self._sock.setsockopt(socket.SOL_SOCKET, socket.SO_KEEPALIVE, _flag(on))

    def close(self) -> None:
        """Close the socket and give its descriptor back."""
        self._sock.close()

    def __enter__(self) -> "Socketer":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def __repr__(self) -> str:
        return f"Socketer(fd={self.fileno()})"